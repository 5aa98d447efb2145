"""Listings module for managing marketplace listings.

This module provides functionality for:
- Creating listings with complete business and product details
- Looking up one listing or all live listings
- Letting the seller remove their own listing
"""

import logging
from typing import List, Optional, Union, Dict, Any

from pydantic import ValidationError

from database import Store, Session, DatabaseError
from identity import CallContext, IdGenerator, UUIDGenerator
from results import ErrorKind, MarketError
from .models import BusinessPayload, Listing, UINT64_MAX
from .get_listing import get_listing
from .get_listings import get_listings

logger = logging.getLogger(__name__)

# Attempts at drawing an id not already used by a live, sold or removed record
MAX_ID_ATTEMPTS = 5

# Required payload fields, checked in order, with the message for a missing value
REQUIRED_FIELDS = (
    ('name', "name of business is missing"),
    ('continent', "continent where business is located is missing"),
    ('country', "country where business is located is missing"),
    ('location', "location where business is located is missing"),
    ('zipcode', "zipcode where business is located is missing"),
    ('product_label', "label of product is missing"),
    ('description', "description of product is missing"),
    ('item_name', "item name of product is missing"),
    ('price', "price of product is missing"),
)

class ListingError(MarketError):
    """Base exception for listing operations."""
    kind = ErrorKind.BAD_REQUEST

class MissingFieldError(ListingError):
    """Raised when a required listing field is missing or empty."""
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)

class ListingNotFoundError(ListingError):
    """Raised when a listing is not found."""
    pass

class NotListingOwnerError(ListingError):
    """Raised when someone other than the seller tries to remove a listing."""
    kind = ErrorKind.FORBIDDEN

class ListingManager:
    """Manager class for handling listing operations."""

    def __init__(self, store: Store, id_generator: Optional[IdGenerator] = None):
        """Initialize the listing manager.

        Args:
            store: The marketplace store
            id_generator: Optional id source. Defaults to random UUIDs.
        """
        self.store = store
        self.id_generator = id_generator or UUIDGenerator()

    def _validate_payload(self, payload: Union[BusinessPayload, Dict[str, Any]]) -> BusinessPayload:
        if not isinstance(payload, BusinessPayload):
            try:
                payload = BusinessPayload.model_validate(payload)
            except ValidationError as e:
                raise ListingError(f"Invalid listing payload: {e.errors()[0]['msg']}")

        for field, message in REQUIRED_FIELDS:
            if not getattr(payload, field):
                raise MissingFieldError(field, message)

        if payload.price < 0:
            raise ListingError("price of product must be positive")
        if payload.price > UINT64_MAX:
            raise ListingError("price of product is too large")

        return payload

    async def _new_listing_id(self, session: Session) -> str:
        """Draw an id that no live, sold or removed listing has used."""
        for _ in range(MAX_ID_ATTEMPTS):
            listing_id = self.id_generator.new_id()
            if not await session.listings.contains(listing_id) and \
                    not await session.sold_items.contains(listing_id) and \
                    not await session.retired_listings.contains(listing_id):
                return listing_id
            logger.warning(f"Generated listing id {listing_id} already in use, retrying")
        raise DatabaseError(f"Could not allocate a unique listing id after {MAX_ID_ATTEMPTS} attempts")

    async def create_listing(
        self,
        ctx: CallContext,
        payload: Union[BusinessPayload, Dict[str, Any]]
    ) -> Listing:
        """Create a new listing owned by the caller.

        Args:
            ctx: Call context; the caller becomes the owner
            payload: Business and product details. Every field is required.

        Returns:
            The created listing

        Raises:
            MissingFieldError: If a required field is missing or empty
            ListingError: If the payload is otherwise invalid
        """
        payload = self._validate_payload(payload)

        async with self.store.transaction() as session:
            listing = Listing(
                id=await self._new_listing_id(session),
                owner=ctx.caller,
                business_name=payload.name,
                product_name=payload.item_name,
                product_label=payload.product_label,
                price=payload.price,
                location=payload.location,
                country=payload.country,
                continent=payload.continent,
                zipcode=payload.zipcode,
                description=payload.description,
                listed_at=ctx.now,
                updated_at=None
            )
            await session.listings.insert(listing.id, listing.to_record())

        logger.info(f"Listing {listing.id} created by {ctx.caller} at price {listing.price}")
        return listing

    async def get_listing(self, ctx: CallContext, listing_id: str) -> Listing:
        """Get a listing by ID.

        Raises:
            ListingError: If no id is given
            ListingNotFoundError: If listing doesn't exist
        """
        if not listing_id:
            raise ListingError("listing id is missing")

        async with self.store.transaction(readonly=True) as session:
            try:
                return await get_listing(session, listing_id)
            except LookupError:
                raise ListingNotFoundError(f"no business with id {listing_id} found")

    async def get_listings(self, ctx: CallContext) -> List[Listing]:
        """Get all live listings."""
        async with self.store.transaction(readonly=True) as session:
            return await get_listings(session)

    async def delete_listing(self, ctx: CallContext, listing_id: str) -> Listing:
        """Remove a listing on behalf of its seller.

        The ownership check and the removal run in one transaction.

        Args:
            ctx: Call context; the caller must own the listing
            listing_id: The listing id

        Returns:
            The removed listing

        Raises:
            ListingError: If no id is given
            ListingNotFoundError: If listing doesn't exist
            NotListingOwnerError: If the caller is not the seller
        """
        if not listing_id:
            raise ListingError("item id is missing")

        async with self.store.transaction() as session:
            try:
                listing = await get_listing(session, listing_id)
            except LookupError:
                raise ListingNotFoundError(f"item with id {listing_id} not found")

            if listing.owner != ctx.caller:
                raise NotListingOwnerError("only seller can delete the product")

            await session.listings.remove(listing_id)
            # Keep the id so it is never issued again
            await session.retired_listings.insert(listing_id, {
                'id': listing_id,
                'owner': listing.owner,
                'removed_at': ctx.now.isoformat()
            })

        logger.info(f"Deleted listing {listing_id}")
        return listing

__all__ = [
    'ListingManager', 'ListingError', 'MissingFieldError', 'ListingNotFoundError',
    'NotListingOwnerError', 'BusinessPayload', 'Listing', 'UINT64_MAX', 'MAX_ID_ATTEMPTS',
    'get_listing', 'get_listings'
]

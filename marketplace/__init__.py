"""Marketplace operations.

``Marketplace`` is the entry point the transport layer calls. Each operation
takes an explicit ``CallContext`` and returns ``Ok(value)`` or
``Err(kind, reason)``; an ``Err`` guarantees nothing was written.
The methods below are annotated with the value carried by ``Ok``.
"""
from typing import Any, Dict, List, Optional, Union

from database import Store
from feedback import Comment, CommentPayload, Enquiry, EnquiryPayload, FeedbackManager
from identity import CallContext, IdGenerator
from ledger import LedgerEngine
from listings import BusinessPayload, Listing, ListingManager
from results import to_result

class Marketplace:
    """Listing, purchase and feedback operations over one store."""

    def __init__(
        self,
        store: Store,
        id_generator: Optional[IdGenerator] = None,
        derive_seller_from_listing: bool = False,
        require_buyer_for_comments: bool = False
    ) -> None:
        self.store = store
        self.listings = ListingManager(store, id_generator)
        self.ledger = LedgerEngine(store, derive_seller_from_listing)
        self.feedback = FeedbackManager(store, id_generator, require_buyer_for_comments)

    @classmethod
    def from_settings(
        cls,
        store: Store,
        settings: Dict[str, Any],
        id_generator: Optional[IdGenerator] = None
    ) -> 'Marketplace':
        """Build a marketplace with the policy switches from settings."""
        return cls(
            store,
            id_generator=id_generator,
            derive_seller_from_listing=settings.get('derive_seller_from_listing', False),
            require_buyer_for_comments=settings.get('require_buyer_for_comments', False)
        )

    # Listings

    @to_result
    async def create_business(
        self, ctx: CallContext, payload: Union[BusinessPayload, Dict[str, Any]]
    ) -> Listing:
        return await self.listings.create_listing(ctx, payload)

    @to_result
    async def get_all_business(self, ctx: CallContext) -> List[Listing]:
        return await self.listings.get_listings(ctx)

    @to_result
    async def get_specific_business(self, ctx: CallContext, listing_id: str) -> Listing:
        return await self.listings.get_listing(ctx, listing_id)

    @to_result
    async def seller_delete_business(self, ctx: CallContext, listing_id: str) -> Listing:
        return await self.listings.delete_listing(ctx, listing_id)

    # Ledger

    @to_result
    async def buy_product(
        self, ctx: CallContext, item_id: str, seller: Optional[str]
    ) -> Listing:
        return await self.ledger.buy_product(ctx, item_id, seller)

    @to_result
    async def get_balance(self, ctx: CallContext, identity: str) -> int:
        return await self.ledger.get_balance(ctx, identity)

    @to_result
    async def credit_account(self, ctx: CallContext, identity: str, amount: int) -> int:
        return await self.ledger.credit_account(ctx, identity, amount)

    @to_result
    async def get_sold_record(self, ctx: CallContext, item_id: str) -> str:
        return await self.ledger.get_sold_record(ctx, item_id)

    # Feedback

    @to_result
    async def buyer_comments(
        self, ctx: CallContext, payload: Union[CommentPayload, Dict[str, Any]]
    ) -> Comment:
        return await self.feedback.add_comment(ctx, payload)

    @to_result
    async def get_info_about_a_business(
        self, ctx: CallContext, payload: Union[EnquiryPayload, Dict[str, Any]]
    ) -> Enquiry:
        return await self.feedback.add_enquiry(ctx, payload)

    @to_result
    async def get_comments(self, ctx: CallContext, item_id: str) -> List[Comment]:
        return await self.feedback.get_comments(ctx, item_id)

    @to_result
    async def get_enquiries(self, ctx: CallContext, business_id: str) -> List[Enquiry]:
        return await self.feedback.get_enquiries(ctx, business_id)

__all__ = ['Marketplace']

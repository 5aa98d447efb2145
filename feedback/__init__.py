"""Feedback module for buyer comments and enquiries.

Comments can only be left on items that have been sold. Enquiries can be
asked about any live listing.
"""
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from database import Collection, DatabaseError, Store
from identity import CallContext, IdGenerator, UUIDGenerator
from listings import MAX_ID_ATTEMPTS, UINT64_MAX, get_listing
from results import ErrorKind, MarketError
from .models import Comment, CommentPayload, Enquiry, EnquiryPayload

logger = logging.getLogger(__name__)

P = TypeVar('P', bound=BaseModel)

class FeedbackError(MarketError):
    """Base exception for feedback operations."""
    kind = ErrorKind.BAD_REQUEST

class ItemNotSoldError(FeedbackError):
    """Raised when commenting on an item that has not been sold."""
    pass

class NotItemBuyerError(FeedbackError):
    """Raised when someone other than the buyer comments on a sold item."""
    kind = ErrorKind.FORBIDDEN

def _parse(model: Type[P], payload: Union[P, Dict[str, Any]]) -> P:
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise FeedbackError(f"Invalid payload: {e.errors()[0]['msg']}")

class FeedbackManager:
    """Records buyer comments and enquiries against listings."""

    def __init__(
        self,
        store: Store,
        id_generator: Optional[IdGenerator] = None,
        require_buyer_for_comments: bool = False
    ) -> None:
        """Initialize the feedback manager.

        Args:
            store: The marketplace store
            id_generator: Optional id source. Defaults to random UUIDs.
            require_buyer_for_comments: Only accept comments from the
                recorded buyer of the item.
        """
        self.store = store
        self.id_generator = id_generator or UUIDGenerator()
        self.require_buyer_for_comments = require_buyer_for_comments

    async def _new_record_id(self, collection: Collection) -> str:
        """Draw an id not already used in collection. Records are never overwritten."""
        for _ in range(MAX_ID_ATTEMPTS):
            record_id = self.id_generator.new_id()
            if not await collection.contains(record_id):
                return record_id
            logger.warning(f"Generated {collection.name} id {record_id} already in use, retrying")
        raise DatabaseError(
            f"Could not allocate a unique {collection.name} id after {MAX_ID_ATTEMPTS} attempts"
        )

    async def add_comment(
        self,
        ctx: CallContext,
        payload: Union[CommentPayload, Dict[str, Any]]
    ) -> Comment:
        """Record a buyer comment on a sold item.

        Raises:
            FeedbackError: If a field is missing or invalid
            ItemNotSoldError: If the item has not been sold
            NotItemBuyerError: If buyer checks are on and the caller is not the buyer
        """
        payload = _parse(CommentPayload, payload)

        if not payload.item_id:
            raise FeedbackError("item id is missing")
        if not payload.comment:
            raise FeedbackError("comment is missing")
        if not payload.rate:
            raise FeedbackError("rate is missing")
        if not 0 < payload.rate <= UINT64_MAX:
            raise FeedbackError("rate is out of range")
        if not payload.seller_id:
            raise FeedbackError("seller id is missing")

        async with self.store.transaction() as session:
            buyer = await session.sold_items.get(payload.item_id)
            if buyer is None:
                raise ItemNotSoldError(f"item {payload.item_id} has not been sold")
            if self.require_buyer_for_comments and buyer != ctx.caller:
                raise NotItemBuyerError("only the buyer can comment on this item")

            comment = Comment(
                id=await self._new_record_id(session.comments),
                item_id=payload.item_id,
                seller_id=payload.seller_id,
                comment=payload.comment,
                rate=payload.rate,
                author=ctx.caller,
                created_at=ctx.now
            )
            await session.comments.insert(comment.id, comment.model_dump(mode='json'))

        logger.info(f"Comment {comment.id} on item {comment.item_id} by {ctx.caller}")
        return comment

    async def add_enquiry(
        self,
        ctx: CallContext,
        payload: Union[EnquiryPayload, Dict[str, Any]]
    ) -> Enquiry:
        """Record a question about a live listing.

        Raises:
            FeedbackError: If a field is missing or the listing doesn't exist
        """
        payload = _parse(EnquiryPayload, payload)

        if not payload.business_id:
            raise FeedbackError("business id is required")
        if not payload.question:
            raise FeedbackError("question is required")

        async with self.store.transaction() as session:
            try:
                await get_listing(session, payload.business_id)
            except LookupError:
                raise FeedbackError("no business with that id found")

            enquiry = Enquiry(
                id=await self._new_record_id(session.enquiries),
                business_id=payload.business_id,
                question=payload.question,
                author=ctx.caller,
                created_at=ctx.now
            )
            await session.enquiries.insert(enquiry.id, enquiry.model_dump(mode='json'))

        logger.info(f"Enquiry {enquiry.id} on business {enquiry.business_id} by {ctx.caller}")
        return enquiry

    async def get_comments(self, ctx: CallContext, item_id: str) -> List[Comment]:
        """Comments left on an item, oldest first."""
        if not item_id:
            raise FeedbackError("item id is missing")
        async with self.store.transaction(readonly=True) as session:
            records = await session.comments.filter('item_id', item_id)
        comments = [Comment.model_validate(record) for record in records]
        return sorted(comments, key=lambda c: (c.created_at, c.id))

    async def get_enquiries(self, ctx: CallContext, business_id: str) -> List[Enquiry]:
        """Enquiries about a business, oldest first."""
        if not business_id:
            raise FeedbackError("business id is required")
        async with self.store.transaction(readonly=True) as session:
            records = await session.enquiries.filter('business_id', business_id)
        enquiries = [Enquiry.model_validate(record) for record in records]
        return sorted(enquiries, key=lambda e: (e.created_at, e.id))

__all__ = [
    'FeedbackManager', 'FeedbackError', 'ItemNotSoldError', 'NotItemBuyerError',
    'Comment', 'CommentPayload', 'Enquiry', 'EnquiryPayload'
]

"""Tests for buyer comments and enquiries."""

import pytest
import pytest_asyncio
from datetime import datetime, timedelta, timezone

from database import MemoryStore, DatabaseError
from feedback import (
    FeedbackManager,
    FeedbackError,
    ItemNotSoldError,
    NotItemBuyerError,
    CommentPayload,
    EnquiryPayload
)
from identity import CallContext, SequentialIdGenerator
from ledger import LedgerEngine
from listings import ListingManager

SELLER = "seller-principal"
BUYER = "buyer-principal"
STRANGER = "stranger-principal"
NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
PAYLOAD = {
    "name": "Mama Njeri Crafts",
    "location": "Westlands",
    "zipcode": "00800",
    "continent": "Africa",
    "country": "Kenya",
    "product_label": "handmade",
    "price": 40,
    "item_name": "Kiondo basket",
    "description": "Woven sisal basket"
}

@pytest_asyncio.fixture
async def store():
    store = MemoryStore()
    yield store
    await store.close()

@pytest.fixture
def feedback_manager(store):
    return FeedbackManager(store, SequentialIdGenerator("feedback"))

@pytest_asyncio.fixture
async def listing(store):
    manager = ListingManager(store, SequentialIdGenerator("item"))
    return await manager.create_listing(CallContext(SELLER, NOW), PAYLOAD)

@pytest_asyncio.fixture
async def sold_item(store, listing):
    """A listing bought by BUYER."""
    ledger = LedgerEngine(store)
    await ledger.credit_account(CallContext("treasury", NOW), BUYER, 100)
    await ledger.buy_product(CallContext(BUYER, NOW), listing.id, SELLER)
    return listing

def comment_payload(item_id, **overrides):
    payload = {"item_id": item_id, "seller_id": SELLER, "comment": "Lovely basket", "rate": 5}
    payload.update(overrides)
    return payload

async def comment_count(store):
    async with store.transaction(readonly=True) as session:
        return await session.comments.count()

@pytest.mark.asyncio
async def test_comment_on_sold_item(feedback_manager, sold_item):
    """Test the buyer can comment once the item is sold."""
    ctx = CallContext(BUYER, NOW)
    comment = await feedback_manager.add_comment(ctx, CommentPayload(**comment_payload(sold_item.id)))

    assert comment.id == "feedback-000001"
    assert comment.item_id == sold_item.id
    assert comment.seller_id == SELLER
    assert comment.comment == "Lovely basket"
    assert comment.rate == 5
    assert comment.author == BUYER
    assert comment.created_at == NOW

    assert await feedback_manager.get_comments(ctx, sold_item.id) == [comment]

@pytest.mark.asyncio
async def test_comment_on_unsold_item(store, feedback_manager, listing):
    """Test comments on an item that was never sold are rejected."""
    with pytest.raises(ItemNotSoldError):
        await feedback_manager.add_comment(CallContext(BUYER, NOW), comment_payload(listing.id))
    assert await comment_count(store) == 0

@pytest.mark.asyncio
@pytest.mark.parametrize("field,message", [
    ("item_id", "item id is missing"),
    ("comment", "comment is missing"),
    ("rate", "rate is missing"),
    ("seller_id", "seller id is missing"),
])
async def test_comment_missing_field(store, feedback_manager, sold_item, field, message):
    payload = comment_payload(sold_item.id)
    del payload[field]

    with pytest.raises(FeedbackError) as exc_info:
        await feedback_manager.add_comment(CallContext(BUYER, NOW), payload)

    assert str(exc_info.value) == message
    assert await comment_count(store) == 0

@pytest.mark.asyncio
async def test_comment_negative_rate(feedback_manager, sold_item):
    with pytest.raises(FeedbackError):
        await feedback_manager.add_comment(CallContext(BUYER, NOW), comment_payload(sold_item.id, rate=-1))

@pytest.mark.asyncio
async def test_any_caller_can_comment_on_sold_item(feedback_manager, sold_item):
    """Test the author is not checked against the recorded buyer by default."""
    comment = await feedback_manager.add_comment(
        CallContext(STRANGER, NOW), comment_payload(sold_item.id)
    )
    assert comment.author == STRANGER

@pytest.mark.asyncio
async def test_require_buyer_for_comments(store, sold_item):
    manager = FeedbackManager(store, SequentialIdGenerator("c"), require_buyer_for_comments=True)

    with pytest.raises(NotItemBuyerError):
        await manager.add_comment(CallContext(STRANGER, NOW), comment_payload(sold_item.id))

    comment = await manager.add_comment(CallContext(BUYER, NOW), comment_payload(sold_item.id))
    assert comment.author == BUYER

@pytest.mark.asyncio
async def test_comments_are_ordered_by_time(feedback_manager, sold_item):
    later = await feedback_manager.add_comment(
        CallContext(BUYER, NOW + timedelta(minutes=5)), comment_payload(sold_item.id, rate=3)
    )
    earlier = await feedback_manager.add_comment(
        CallContext(BUYER, NOW), comment_payload(sold_item.id, rate=4)
    )

    comments = await feedback_manager.get_comments(CallContext(BUYER, NOW), sold_item.id)
    assert [c.id for c in comments] == [earlier.id, later.id]

@pytest.mark.asyncio
async def test_enquiry_on_live_listing(feedback_manager, listing):
    """Test anyone can ask about a live listing."""
    ctx = CallContext(STRANGER, NOW)
    enquiry = await feedback_manager.add_enquiry(
        ctx, EnquiryPayload(business_id=listing.id, question="Do you ship to Nakuru?")
    )

    assert enquiry.business_id == listing.id
    assert enquiry.question == "Do you ship to Nakuru?"
    assert enquiry.author == STRANGER
    assert enquiry.created_at == NOW

    assert await feedback_manager.get_enquiries(ctx, listing.id) == [enquiry]
    assert await feedback_manager.get_enquiries(ctx, "other-listing") == []

@pytest.mark.asyncio
async def test_enquiry_on_missing_listing(store, feedback_manager):
    with pytest.raises(FeedbackError) as exc_info:
        await feedback_manager.add_enquiry(
            CallContext(STRANGER, NOW), {"business_id": "missing", "question": "Still available?"}
        )
    assert str(exc_info.value) == "no business with that id found"

    async with store.transaction(readonly=True) as session:
        assert await session.enquiries.count() == 0

@pytest.mark.asyncio
async def test_enquiry_on_sold_listing(feedback_manager, sold_item):
    """Test a sold listing no longer takes enquiries."""
    with pytest.raises(FeedbackError):
        await feedback_manager.add_enquiry(
            CallContext(STRANGER, NOW), {"business_id": sold_item.id, "question": "Any more?"}
        )

@pytest.mark.asyncio
async def test_enquiry_missing_fields(feedback_manager, listing):
    ctx = CallContext(STRANGER, NOW)
    with pytest.raises(FeedbackError, match="business id is required"):
        await feedback_manager.add_enquiry(ctx, {"question": "Hello?"})
    with pytest.raises(FeedbackError, match="question is required"):
        await feedback_manager.add_enquiry(ctx, {"business_id": listing.id, "question": ""})

class RepeatingIdGenerator:
    """Always returns the same id."""
    def new_id(self) -> str:
        return "fixed-id"

@pytest.mark.asyncio
async def test_comment_ids_are_not_reused(store, sold_item):
    """Test a repeated id never overwrites an existing comment."""
    manager = FeedbackManager(store, RepeatingIdGenerator())
    first = await manager.add_comment(CallContext(BUYER, NOW), comment_payload(sold_item.id))

    with pytest.raises(DatabaseError):
        await manager.add_comment(
            CallContext(STRANGER, NOW), comment_payload(sold_item.id, comment="Overwritten")
        )

    assert await manager.get_comments(CallContext(BUYER, NOW), sold_item.id) == [first]

@pytest.mark.asyncio
async def test_enquiry_ids_are_not_reused(store, listing):
    manager = FeedbackManager(store, RepeatingIdGenerator())
    first = await manager.add_enquiry(
        CallContext(STRANGER, NOW), {"business_id": listing.id, "question": "Still available?"}
    )

    with pytest.raises(DatabaseError):
        await manager.add_enquiry(
            CallContext(BUYER, NOW), {"business_id": listing.id, "question": "Overwritten?"}
        )

    assert await manager.get_enquiries(CallContext(BUYER, NOW), listing.id) == [first]

@pytest.mark.asyncio
async def test_boolean_rate_rejected(store, feedback_manager, sold_item):
    with pytest.raises(FeedbackError):
        await feedback_manager.add_comment(CallContext(BUYER, NOW), comment_payload(sold_item.id, rate=True))
    assert await comment_count(store) == 0

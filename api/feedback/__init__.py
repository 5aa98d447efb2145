"""Buyer comment and enquiry endpoints."""

from typing import List
from fastapi import APIRouter, Depends

from feedback import Comment, CommentPayload, Enquiry, EnquiryPayload
from identity import CallContext
from marketplace import Marketplace
from ..dependencies import get_call_context, get_marketplace, unwrap

router = APIRouter(
    prefix="/feedback",
    tags=["Feedback"]
)

@router.post("/comments", response_model=Comment)
async def buyer_comments(
    payload: CommentPayload,
    ctx: CallContext = Depends(get_call_context),
    marketplace: Marketplace = Depends(get_marketplace)
):
    """Comment on a sold item."""
    return unwrap(await marketplace.buyer_comments(ctx, payload))

@router.get("/comments/{item_id}", response_model=List[Comment])
async def get_comments(
    item_id: str,
    ctx: CallContext = Depends(get_call_context),
    marketplace: Marketplace = Depends(get_marketplace)
):
    """Get the comments left on an item, oldest first."""
    return unwrap(await marketplace.get_comments(ctx, item_id))

@router.post("/enquiries", response_model=Enquiry)
async def get_info_about_a_business(
    payload: EnquiryPayload,
    ctx: CallContext = Depends(get_call_context),
    marketplace: Marketplace = Depends(get_marketplace)
):
    """Ask a question about a live listing."""
    return unwrap(await marketplace.get_info_about_a_business(ctx, payload))

@router.get("/enquiries/{business_id}", response_model=List[Enquiry])
async def get_enquiries(
    business_id: str,
    ctx: CallContext = Depends(get_call_context),
    marketplace: Marketplace = Depends(get_marketplace)
):
    """Get the enquiries about a listing, oldest first."""
    return unwrap(await marketplace.get_enquiries(ctx, business_id))

__all__ = ['router']

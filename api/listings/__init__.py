"""Listings API endpoints."""

from typing import List
from fastapi import APIRouter, Depends

from identity import CallContext
from listings import BusinessPayload, Listing
from marketplace import Marketplace
from ..dependencies import get_call_context, get_marketplace, unwrap

router = APIRouter(
    prefix="/listings",
    tags=["Listings"]
)

@router.post("/", response_model=Listing)
async def create_business(
    payload: BusinessPayload,
    ctx: CallContext = Depends(get_call_context),
    marketplace: Marketplace = Depends(get_marketplace)
):
    """Create a listing owned by the caller."""
    return unwrap(await marketplace.create_business(ctx, payload))

@router.get("/", response_model=List[Listing])
async def get_all_business(
    ctx: CallContext = Depends(get_call_context),
    marketplace: Marketplace = Depends(get_marketplace)
):
    """Get all live listings."""
    return unwrap(await marketplace.get_all_business(ctx))

@router.get("/{listing_id}", response_model=Listing)
async def get_specific_business(
    listing_id: str,
    ctx: CallContext = Depends(get_call_context),
    marketplace: Marketplace = Depends(get_marketplace)
):
    """Get a listing by ID."""
    return unwrap(await marketplace.get_specific_business(ctx, listing_id))

@router.delete("/{listing_id}", response_model=Listing)
async def seller_delete_business(
    listing_id: str,
    ctx: CallContext = Depends(get_call_context),
    marketplace: Marketplace = Depends(get_marketplace)
):
    """Remove a listing. Only its seller may do this."""
    return unwrap(await marketplace.seller_delete_business(ctx, listing_id))

# Export the router
__all__ = ['router']

"""Purchase API endpoints."""

from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from identity import CallContext
from listings import Listing
from marketplace import Marketplace
from ..dependencies import get_call_context, get_marketplace, unwrap

# Create router
router = APIRouter(
    prefix="/listings",
    tags=["Orders"]
)

class BuyRequest(BaseModel):
    """Request model for buying a listing."""
    seller: Optional[str] = None

class SaleResponse(BaseModel):
    item_id: str
    buyer: str

@router.post("/{listing_id}/buy", response_model=Listing)
async def buy_product(
    listing_id: str,
    request: BuyRequest,
    ctx: CallContext = Depends(get_call_context),
    marketplace: Marketplace = Depends(get_marketplace)
):
    """Buy a listing, paying its price to the named seller."""
    return unwrap(await marketplace.buy_product(ctx, listing_id, request.seller))

@router.get("/{listing_id}/sale", response_model=SaleResponse)
async def get_sold_record(
    listing_id: str,
    ctx: CallContext = Depends(get_call_context),
    marketplace: Marketplace = Depends(get_marketplace)
):
    """Get who bought a sold listing."""
    buyer = unwrap(await marketplace.get_sold_record(ctx, listing_id))
    return {"item_id": listing_id, "buyer": buyer}

# Export the router
__all__ = ['router']

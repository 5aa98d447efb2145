"""Account balance endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel

from identity import CallContext
from marketplace import Marketplace
from ..dependencies import get_call_context, get_marketplace, unwrap

router = APIRouter(
    prefix="/accounts",
    tags=["Accounts"]
)

class CreditRequest(BaseModel):
    """Request model for crediting an account."""
    amount: int

class BalanceResponse(BaseModel):
    identity: str
    balance: int

@router.get("/{identity}", response_model=BalanceResponse)
async def get_balance(
    identity: str,
    ctx: CallContext = Depends(get_call_context),
    marketplace: Marketplace = Depends(get_marketplace)
):
    """Get the balance of an account."""
    balance = unwrap(await marketplace.get_balance(ctx, identity))
    return {"identity": identity, "balance": balance}

@router.post("/{identity}/credit", response_model=BalanceResponse)
async def credit_account(
    identity: str,
    credit: CreditRequest,
    request: Request,
    ctx: CallContext = Depends(get_call_context),
    marketplace: Marketplace = Depends(get_marketplace)
):
    """Credit tokens to an account. Restricted to treasury identities."""
    if ctx.caller not in request.app.state.settings['treasury_identities']:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"Forbidden": "only treasury identities can credit accounts"}
        )
    balance = unwrap(await marketplace.credit_account(ctx, identity, credit.amount))
    return {"identity": identity, "balance": balance}

__all__ = ['router']

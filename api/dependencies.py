"""Shared FastAPI dependencies and result handling."""

from fastapi import HTTPException, Request, Security, status

from auth import get_current_identity
from identity import CallContext
from marketplace import Marketplace
from results import Err, ErrorKind, Result

STATUS_BY_KIND = {
    ErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}

def get_marketplace(request: Request) -> Marketplace:
    """The marketplace held by the running app."""
    return request.app.state.marketplace

async def get_call_context(identity: str = Security(get_current_identity)) -> CallContext:
    """Call context for the authenticated caller, stamped now."""
    return CallContext.for_caller(identity)

def unwrap(result: Result):
    """Return the value of an Ok result or raise the matching HTTPException."""
    if isinstance(result, Err):
        raise HTTPException(
            status_code=STATUS_BY_KIND[result.kind],
            detail=result.to_dict()
        )
    return result.value

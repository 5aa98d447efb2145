from database import Session
from .models import Listing

async def get_listing(session: Session, listing_id: str) -> Listing:
    """Get a listing by ID.

    Args:
        session: Open store session
        listing_id: The listing id

    Returns:
        The listing

    Raises:
        LookupError: If listing doesn't exist
    """
    record = await session.listings.get(listing_id)
    if record is None:
        raise LookupError(f"Listing {listing_id} not found")
    return Listing.from_record(record)

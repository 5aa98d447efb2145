from typing import List
from database import Session
from .models import Listing

async def get_listings(session: Session) -> List[Listing]:
    """Get every live listing, ordered by id."""
    return [Listing.from_record(record) for record in await session.listings.values()]

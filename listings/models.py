from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, StrictInt

UINT64_MAX = 2 ** 64 - 1


class BusinessPayload(BaseModel):
    """Fields a seller supplies to list a business."""
    name: Optional[str] = Field(None, description="Name of the business")
    location: Optional[str] = None
    zipcode: Optional[str] = None
    continent: Optional[str] = None
    country: Optional[str] = None
    product_label: Optional[str] = Field(None, description="Label of the product being sold")
    price: Optional[StrictInt] = Field(None, description="Price in ledger tokens")
    item_name: Optional[str] = Field(None, description="Name of the product being sold")
    description: Optional[str] = None


class Listing(BaseModel):
    id: str
    owner: str
    business_name: str
    product_name: str
    product_label: str
    price: int
    location: str
    country: str
    continent: str
    zipcode: str
    description: str
    listed_at: datetime
    updated_at: Optional[datetime] = None

    def to_record(self) -> dict:
        return self.model_dump(mode='json')

    @classmethod
    def from_record(cls, record: dict) -> 'Listing':
        return cls.model_validate(record)

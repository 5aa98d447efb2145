from datetime import datetime
from typing import Optional
from pydantic import BaseModel, StrictInt


class CommentPayload(BaseModel):
    item_id: Optional[str] = None
    seller_id: Optional[str] = None
    comment: Optional[str] = None
    rate: Optional[StrictInt] = None


class Comment(BaseModel):
    id: str
    item_id: str
    seller_id: str
    comment: str
    rate: int
    author: str
    created_at: datetime


class EnquiryPayload(BaseModel):
    business_id: Optional[str] = None
    question: Optional[str] = None


class Enquiry(BaseModel):
    id: str
    business_id: str
    question: str
    author: str
    created_at: datetime

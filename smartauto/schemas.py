"""Request forms for the storefront and payload variants for the webhook relay.

Forms keep every text field optional so blank or whitespace-only values reach
the submission pipeline, which owns the required-field check. Relay payloads
are validated per webhook type before anything is forwarded; unknown extra
keys are kept and forwarded unchanged.
"""
from typing import Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .order_ids import ORDER_ID_PATTERN


# ---------- storefront forms ----------
class OrderForm(BaseModel):
    product_id: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    customer_name: Optional[str] = Field(default=None, max_length=100)
    shipping_address: Optional[str] = Field(default=None, max_length=500)
    special_instructions: Optional[str] = Field(default=None, max_length=500)


class ComplaintForm(BaseModel):
    subject: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    order_id: Optional[str] = Field(default=None, max_length=20)


class ReviewForm(BaseModel):
    product_id: Optional[str] = None
    rating: int = Field(default=5, ge=1, le=5)
    title: Optional[str] = Field(default=None, max_length=200)
    review_text: Optional[str] = Field(default=None, max_length=2000)


# ---------- relay payloads ----------
class RelayPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    user_id: str
    customer_email: EmailStr


class OrderPayload(RelayPayload):
    order_id: str = Field(pattern=ORDER_ID_PATTERN)
    product_id: str
    product_name: str
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)
    total_price: float = Field(ge=0)
    customer_name: str
    shipping_address: str
    special_instructions: Optional[str] = None


class ComplaintPayload(RelayPayload):
    subject: str
    description: str
    order_id: Optional[str] = None


class ReviewPayload(RelayPayload):
    product_id: str
    product_name: Optional[str] = None
    rating: int = Field(ge=1, le=5)
    title: str
    review_text: str


PAYLOAD_TYPES: Dict[str, Type[RelayPayload]] = {
    "order": OrderPayload,
    "invoice": OrderPayload,
    "complaint": ComplaintPayload,
    "review": ReviewPayload,
}


class OwnerLoginIn(BaseModel):
    email: str = ""
    password: str = ""
    owner_id: str = ""

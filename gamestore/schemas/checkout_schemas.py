from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional


class BillingInfo(BaseModel):
    email: EmailStr
    firstName: str
    lastName: str
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postalCode: Optional[str] = None


class CheckoutItem(BaseModel):
    product_id: Optional[str] = None
    bundle_id: Optional[str] = None
    product_name: str
    price: float = Field(ge=0)
    quantity: int = Field(default=1, ge=1)


class CheckoutSchema(BaseModel):
    billing_info: BillingInfo
    items: List[CheckoutItem]
    customer_notes: Optional[str] = None

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class CreatePaymentSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: Optional[int] = Field(default=None, alias="orderId")


class VerifyPaymentSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = Field(default=None, alias="sessionId")
    order_number: Optional[str] = Field(default=None, alias="orderNumber")


class VerificationResult(BaseModel):
    verified: bool = True
    paid: bool
    status: str
    order_status: str
    session_id: str
    order_id: int

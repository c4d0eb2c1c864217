from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, JSON
from typing import List, Optional
from datetime import datetime

from gamestore.models.order_item import OrderItem


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_number: str = Field(index=True, unique=True)
    user_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)

    subtotal: float = 0
    total: float = 0

    status: str = Field(default="draft")
    payment_status: str = Field(default="pending")
    payment_method: Optional[str] = None
    # provider session / preference reference
    payment_id: Optional[str] = Field(default=None, index=True)

    billing_info: dict = Field(default_factory=dict, sa_column=Column(JSON))
    customer_notes: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    items: List["OrderItem"] = Relationship(back_populates="order")

    @property
    def billing_email(self) -> Optional[str]:
        return (self.billing_info or {}).get("email") or None

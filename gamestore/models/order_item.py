from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime

if TYPE_CHECKING:
    from gamestore.models.order import Order


class OrderItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)
    product_id: Optional[str] = None
    bundle_id: Optional[str] = None

    product_name: str
    price: float
    quantity: int = 1

    # serialized redemption payload, written once after payment
    digital_content: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)

    order: Optional["Order"] = Relationship(back_populates="items")

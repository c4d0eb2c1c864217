import logging
import time
from typing import Optional

from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from gamestore.constants.order_status import OrderStatus, PaymentStatus
from gamestore.exceptions import InvalidRequest, OrderNotFound
from gamestore.models.order import Order
from gamestore.models.order_item import OrderItem
from gamestore.models.user import User
from gamestore.schemas.checkout_schemas import CheckoutSchema
from gamestore.services.order_event_service import log_order_event

logger = logging.getLogger(__name__)


def generate_order_number() -> str:
    return f"VG{int(time.time() * 1000)}"


def create_order(session: Session, payload: CheckoutSchema, user: Optional[User] = None) -> Order:
    """Store a draft order awaiting payment. Guests are allowed."""
    if not payload.items:
        raise InvalidRequest("Cart is empty")

    subtotal = sum(item.price * item.quantity for item in payload.items)

    order = Order(
        order_number=generate_order_number(),
        user_id=user.id if user else None,
        subtotal=subtotal,
        total=subtotal,
        status=OrderStatus.DRAFT.value,
        payment_status=PaymentStatus.PENDING.value,
        billing_info=payload.billing_info.model_dump(),
        customer_notes=payload.customer_notes,
    )
    session.add(order)
    session.commit()
    session.refresh(order)

    for item in payload.items:
        session.add(OrderItem(
            order_id=order.id,
            product_id=item.product_id,
            bundle_id=item.bundle_id,
            product_name=item.product_name,
            price=item.price,
            quantity=item.quantity,
        ))

    log_order_event(
        session,
        order_id=order.id,
        event_type="order_placed",
        label="Order placed",
        created_by=user.email if user else "guest",
        meta={"total": order.total, "items": len(payload.items)},
    )
    session.commit()
    session.refresh(order)

    logger.info(f"Order {order.order_number} created with {len(payload.items)} items")
    return order


def get_order(session: Session, order_id: int) -> Order:
    order = session.exec(
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.items))
    ).first()

    if not order:
        raise OrderNotFound()
    return order


def find_order_by_number(session: Session, order_number: str) -> Optional[Order]:
    return session.exec(
        select(Order).where(Order.order_number == order_number)
    ).first()


def find_order_by_payment_id(session: Session, payment_id: str) -> Optional[Order]:
    return session.exec(
        select(Order).where(Order.payment_id == payment_id)
    ).first()


from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from gamestore.database import get_session
from gamestore.models.order import Order
from gamestore.models.order_item import OrderItem
from gamestore.models.user import User
from gamestore.services.digital_content_service import parse_content
from gamestore.services.order_event_service import list_order_events
from gamestore.services.order_service import find_order_by_number
from gamestore.utils.pagination import paginate
from gamestore.utils.token import get_current_user, get_optional_user

router = APIRouter()


def _serialize_order(session: Session, order: Order, include_content: bool = True) -> dict:
    items = session.exec(
        select(OrderItem).where(OrderItem.order_id == order.id)
    ).all()

    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "status": order.status,
        "payment_status": order.payment_status,
        "payment_method": order.payment_method,
        "total": order.total,
        "created_at": order.created_at,
        "items": [
            {
                "product_name": i.product_name,
                "price": i.price,
                "quantity": i.quantity,
                "total": i.price * i.quantity,
                "digital_content": parse_content(i.digital_content) if include_content else None,
            }
            for i in items
        ],
    }


def _can_view_content(order: Order, user: Optional[User], session_id: Optional[str]) -> bool:
    # Guests prove ownership with the session id from the provider redirect.
    if user and (order.user_id == user.id or user.role == "admin"):
        return True
    return bool(session_id) and session_id == order.payment_id


@router.get("/mine")
def my_orders(
    page: int = 1,
    limit: int = 10,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    query = (
        select(Order)
        .where(Order.user_id == current_user.id)
        .order_by(Order.created_at.desc())
    )

    data = paginate(session=session, query=query, page=page, limit=limit)
    data["results"] = [_serialize_order(session, o) for o in data["results"]]
    return data


@router.get("/{order_number}")
def order_confirmation(
    order_number: str,
    session_id: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_user),
):
    order = find_order_by_number(session, order_number)
    if not order:
        raise HTTPException(404, "Order not found")

    return _serialize_order(session, order, include_content=_can_view_content(order, current_user, session_id))


@router.get("/{order_number}/timeline")
def order_timeline(
    order_number: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = find_order_by_number(session, order_number)
    if not order:
        raise HTTPException(404, "Order not found")

    if order.user_id != current_user.id and current_user.role != "admin":
        raise HTTPException(403, "Not allowed to view this order")

    return [
        {
            "event_type": e.event_type,
            "label": e.label,
            "meta": e.meta,
            "created_by": e.created_by,
            "created_at": e.created_at,
        }
        for e in list_order_events(session, order.id)
    ]

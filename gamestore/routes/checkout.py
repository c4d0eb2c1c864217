from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from gamestore.database import get_session
from gamestore.exceptions import InvalidRequest
from gamestore.models.user import User
from gamestore.schemas.checkout_schemas import CheckoutSchema
from gamestore.services.order_service import create_order
from gamestore.utils.token import get_optional_user

router = APIRouter()


@router.post("/orders", status_code=201)
def place_order(
    payload: CheckoutSchema,
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_user),
):
    try:
        order = create_order(session, payload, current_user)
    except InvalidRequest as e:
        raise HTTPException(400, str(e))

    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "status": order.status,
        "payment_status": order.payment_status,
        "subtotal": order.subtotal,
        "total": order.total,
    }

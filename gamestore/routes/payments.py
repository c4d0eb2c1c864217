import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from gamestore.exceptions import InvalidRequest, PaymentWorkflowError
from gamestore.dependencies.payments import get_payment_verifier, get_session_initiator
from gamestore.models.user import User
from gamestore.schemas.payment_schemas import CreatePaymentSchema, VerifyPaymentSchema
from gamestore.services.payment_session_service import PaymentSessionInitiator
from gamestore.services.payment_verification_service import PaymentVerifier
from gamestore.utils.token import get_optional_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/create-payment")
def create_payment(
    payload: CreatePaymentSchema,
    request: Request,
    initiator: PaymentSessionInitiator = Depends(get_session_initiator),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """Card checkout. Guests may pay; the billing email identifies them."""
    if payload.order_id is None:
        raise InvalidRequest("Order ID is required")

    return initiator.create_card_session(
        payload.order_id,
        user=current_user,
        origin=request.headers.get("origin"),
    )


@router.post("/create-mercadopago-payment")
def create_mercadopago_payment(
    payload: CreatePaymentSchema,
    request: Request,
    initiator: PaymentSessionInitiator = Depends(get_session_initiator),
    current_user: Optional[User] = Depends(get_optional_user),
):
    if payload.order_id is None:
        raise InvalidRequest("Order ID is required")

    return initiator.create_wallet_session(
        payload.order_id,
        user=current_user,
        origin=request.headers.get("origin"),
    )


@router.post("/verify-payment")
def verify_payment(
    payload: VerifyPaymentSchema,
    verifier: PaymentVerifier = Depends(get_payment_verifier),
):
    # polled by the confirmation page, so failures are reported in the body
    try:
        result = verifier.verify(
            session_id=payload.session_id,
            order_number=payload.order_number,
        )
    except PaymentWorkflowError as e:
        logger.error(f"[VERIFY-PAYMENT] ERROR: {e}")
        return JSONResponse(
            status_code=500,
            content={"verified": False, "error": str(e)},
        )

    return result

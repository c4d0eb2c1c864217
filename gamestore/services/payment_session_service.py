import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from gamestore.config import Settings
from gamestore.constants.order_status import PaymentMethod, PaymentStatus
from gamestore.exceptions import UnauthenticatedCustomer
from gamestore.models.order import Order
from gamestore.models.order_item import OrderItem
from gamestore.models.user import User
from gamestore.services.gateways import ProviderCheckout
from gamestore.services.mercadopago_gateway import MercadoPagoGateway
from gamestore.services.order_event_service import log_order_event
from gamestore.services.order_service import get_order
from gamestore.services.stripe_gateway import StripeGateway

logger = logging.getLogger(__name__)


def to_minor_units(amount: float) -> int:
    return int(round(float(amount) * 100))


def stripe_line_items(items: List[OrderItem], currency: str) -> List[dict]:
    return [
        {
            "price_data": {
                "currency": currency,
                "product_data": {
                    "name": item.product_name,
                    "description": f"Producto digital - {item.product_name}",
                },
                "unit_amount": to_minor_units(item.price),
            },
            "quantity": item.quantity,
        }
        for item in items
    ]


def mercadopago_items(items: List[OrderItem]) -> List[dict]:
    return [
        {
            "title": item.product_name,
            "quantity": item.quantity,
            "unit_price": float(item.price),
        }
        for item in items
    ]


class PaymentSessionInitiator:
    """
    Creates a provider checkout attempt for an existing order and records
    the provider's reference on it.

    The provider is called exactly once. Provider failures propagate; a
    failure to store the reference afterwards is only logged, since the
    buyer can already be redirected.
    """

    def __init__(
        self,
        session: Session,
        settings: Settings,
        stripe_gateway: Optional[StripeGateway] = None,
        mercadopago_gateway: Optional[MercadoPagoGateway] = None,
    ):
        self.session = session
        self.settings = settings
        self.stripe_gateway = stripe_gateway
        self.mercadopago_gateway = mercadopago_gateway

    def _origin(self, origin: Optional[str]) -> str:
        return (origin or self.settings.FRONTEND_URL).rstrip("/")

    def create_card_session(self, order_id: int, user: Optional[User] = None, origin: Optional[str] = None) -> dict:
        log = "[CREATE-PAYMENT]"
        self.stripe_gateway.ensure_configured()

        order = get_order(self.session, order_id)
        logger.info(f"{log} Order fetched: {order.order_number}, total {order.total}")

        customer_email = (user.email if user else None) or order.billing_email
        customer_id = None
        if customer_email:
            customer_id = self.stripe_gateway.find_customer_id(customer_email)
            if customer_id:
                logger.info(f"{log} Existing Stripe customer found: {customer_id}")
        else:
            logger.info(f"{log} No customer email, proceeding as guest")

        origin = self._origin(origin)
        checkout = self.stripe_gateway.create_checkout_session(
            line_items=stripe_line_items(order.items, self.settings.STRIPE_CURRENCY),
            success_url=f"{origin}/order-confirmation/{order.order_number}?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{origin}/checkout?cancelled=true",
            metadata={"order_id": str(order.id), "order_number": order.order_number},
            customer_id=customer_id,
            customer_email=None if customer_id else customer_email,
        )
        logger.info(f"{log} Stripe checkout session created: {checkout.id}")

        self._record_reference(order, checkout, PaymentMethod.STRIPE, log)
        return {"url": checkout.url}

    def create_wallet_session(self, order_id: int, user: Optional[User] = None, origin: Optional[str] = None) -> dict:
        log = "[CREATE-MERCADOPAGO-PAYMENT]"
        if not user or not user.email:
            raise UnauthenticatedCustomer()

        order = get_order(self.session, order_id)
        logger.info(f"{log} Order fetched: {order.order_number}, total {order.total}")

        billing = order.billing_info or {}
        confirmation_url = f"{self._origin(origin)}/order-confirmation/{order.order_number}"
        preference = {
            "items": mercadopago_items(order.items),
            "back_urls": {
                "success": f"{confirmation_url}?status=approved",
                "failure": f"{confirmation_url}?status=rejected",
                "pending": f"{confirmation_url}?status=pending",
            },
            "auto_return": "approved",
            "external_reference": str(order.id),
            "metadata": {"order_id": str(order.id), "order_number": order.order_number},
            "payment_methods": {
                "excluded_payment_types": [],
                "installments": self.settings.MERCADOPAGO_MAX_INSTALLMENTS,
            },
            "payer": {
                "email": user.email,
                "name": billing.get("firstName") or "",
                "surname": billing.get("lastName") or "",
            },
        }

        checkout = self.mercadopago_gateway.create_preference(preference)
        logger.info(f"{log} MercadoPago preference created: {checkout.id}")

        self._record_reference(order, checkout, PaymentMethod.MERCADOPAGO, log)
        return {"id": checkout.id, "init_point": checkout.url}

    def _record_reference(self, order: Order, checkout: ProviderCheckout, method: PaymentMethod, log: str):
        try:
            order.payment_id = checkout.id
            order.payment_status = PaymentStatus.PENDING.value
            order.payment_method = method.value
            order.updated_at = datetime.utcnow()
            self.session.add(order)
            log_order_event(
                self.session,
                order_id=order.id,
                event_type="payment_session_created",
                label="Payment session created",
                meta={"provider": method.value, "payment_id": checkout.id},
            )
            self.session.commit()
            logger.info(f"{log} Order {order.order_number} updated with payment id")
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.warning(f"{log} Failed to update order {order.id} with payment id {checkout.id}: {e}")

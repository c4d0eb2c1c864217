import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col

from gamestore.config import Settings
from gamestore.constants.order_status import OrderStatus, PaymentStatus
from gamestore.exceptions import (
    InvalidRequest,
    OrderNotFound,
    PersistenceError,
    ProviderError,
    SessionNotFound,
)
from gamestore.models.order import Order
from gamestore.schemas.payment_schemas import VerificationResult
from gamestore.services.digital_content_service import issue_digital_content
from gamestore.services.email_service import send_digital_delivery_email
from gamestore.services.gateways import ProviderSession
from gamestore.services.order_event_service import log_order_event
from gamestore.services.order_service import find_order_by_number, find_order_by_payment_id
from gamestore.services.stripe_gateway import StripeGateway

logger = logging.getLogger(__name__)

LOG = "[VERIFY-PAYMENT]"


@dataclass
class Resolved:
    order: Order
    provider_session: ProviderSession


@dataclass
class SessionMissing:
    provider_error: Optional[ProviderError] = None


@dataclass
class OrderMissing:
    provider_session: ProviderSession


Resolution = Union[Resolved, SessionMissing, OrderMissing]


def _retrieve(gateway: StripeGateway, reference: str):
    try:
        return gateway.retrieve_session(reference), None
    except ProviderError as e:
        logger.warning(f"{LOG} Failed to retrieve session {reference}: {e}")
        return None, e


def _belongs_to(session: Session, order: Order, provider_session: ProviderSession) -> bool:
    if provider_session.metadata.get("order_id") == str(order.id):
        return True
    owner = find_order_by_payment_id(session, provider_session.id)
    return owner is not None and owner.id == order.id


def resolve_payment(
    session: Session,
    gateway: StripeGateway,
    session_id: Optional[str] = None,
    order_number: Optional[str] = None,
) -> Resolution:
    """
    Find the order and the provider session a verification request refers to.

    The order number path runs first and uses the order's stored
    reference; the raw session id is only queried when that did not
    produce a session. A session fetched that way is only paired with the
    numbered order when its metadata or stored reference points back at
    that order.
    """
    order = None
    provider_session = None
    provider_error = None

    if order_number:
        order = find_order_by_number(session, order_number)
        if order and order.payment_id:
            provider_session, provider_error = _retrieve(gateway, order.payment_id)

    if session_id and provider_session is None:
        provider_session, provider_error = _retrieve(gateway, session_id)
        if provider_session is not None:
            if order is None:
                order = find_order_by_payment_id(session, session_id)
            elif not _belongs_to(session, order, provider_session):
                logger.warning(
                    f"{LOG} Session {session_id} does not belong to order {order.order_number}"
                )
                order = None

    if provider_session is None:
        return SessionMissing(provider_error=provider_error)
    if order is None:
        return OrderMissing(provider_session=provider_session)
    return Resolved(order=order, provider_session=provider_session)


class PaymentVerifier:
    """Reconciles local order state with the provider's verdict."""

    def __init__(self, session: Session, settings: Settings, gateway: StripeGateway):
        self.session = session
        self.settings = settings
        self.gateway = gateway

    def verify(self, session_id: Optional[str] = None, order_number: Optional[str] = None) -> VerificationResult:
        if not session_id and not order_number:
            raise InvalidRequest("Either sessionId or orderNumber is required")
        self.gateway.ensure_configured()

        logger.info(f"{LOG} Request received: session_id={session_id} order_number={order_number}")

        resolution = resolve_payment(self.session, self.gateway, session_id, order_number)
        if isinstance(resolution, SessionMissing):
            if resolution.provider_error is not None:
                raise resolution.provider_error
            raise SessionNotFound()
        if isinstance(resolution, OrderMissing):
            raise OrderNotFound()

        order = resolution.order
        provider_session = resolution.provider_session
        is_paid = provider_session.is_paid
        logger.info(
            f"{LOG} Provider status for order {order.id}: {provider_session.payment_status}"
        )

        self._reconcile(order, provider_session)

        if is_paid:
            issued = issue_digital_content(self.session, order)
            if issued:
                log_order_event(
                    self.session,
                    order_id=order.id,
                    event_type="digital_content_issued",
                    label="Digital content delivered",
                    meta={"items": len(issued)},
                )
                self.session.commit()
                send_digital_delivery_email(self.settings, order, issued)

        return VerificationResult(
            verified=True,
            paid=order.payment_status == PaymentStatus.PAID.value,
            status=order.payment_status,
            order_status=order.status,
            session_id=provider_session.id,
            order_id=order.id,
        )

    def _reconcile(self, order: Order, provider_session: ProviderSession):
        """
        Apply the provider's verdict.

        The reference and timestamp are always refreshed. The status write
        is conditional: an order that is already paid keeps its paid state
        even if a stale query reports otherwise.
        """
        was_paid = order.payment_status == PaymentStatus.PAID.value
        now = datetime.utcnow()

        if provider_session.is_paid:
            values = {
                "payment_status": PaymentStatus.PAID.value,
                "status": OrderStatus.PAID.value,
            }
        else:
            values = {
                "payment_status": PaymentStatus.PENDING.value,
                "status": OrderStatus.DRAFT.value,
            }

        try:
            self.session.execute(
                update(Order)
                .where(Order.id == order.id)
                .values(payment_id=provider_session.id, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            self.session.execute(
                update(Order)
                .where(Order.id == order.id)
                .where(col(Order.payment_status) != PaymentStatus.PAID.value)
                .values(**values)
                .execution_options(synchronize_session=False)
            )

            if provider_session.is_paid and not was_paid:
                log_order_event(
                    self.session,
                    order_id=order.id,
                    event_type="payment_confirmed",
                    label="Payment confirmed",
                    meta={"payment_id": provider_session.id},
                )

            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"{LOG} Failed to update order {order.id}: {e}")
            raise PersistenceError(f"Failed to update order: {e}") from e

        self.session.refresh(order)
        logger.info(
            f"{LOG} Order {order.id} reconciled: payment_status={order.payment_status} status={order.status}"
        )

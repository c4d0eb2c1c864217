from fastapi import Depends
from sqlmodel import Session

from gamestore.config import Settings, get_settings
from gamestore.database import get_session
from gamestore.services.mercadopago_gateway import MercadoPagoGateway
from gamestore.services.payment_session_service import PaymentSessionInitiator
from gamestore.services.payment_verification_service import PaymentVerifier
from gamestore.services.stripe_gateway import StripeGateway


def get_stripe_gateway(settings: Settings = Depends(get_settings)) -> StripeGateway:
    return StripeGateway.from_settings(settings)


def get_mercadopago_gateway(settings: Settings = Depends(get_settings)) -> MercadoPagoGateway:
    return MercadoPagoGateway.from_settings(settings)


def get_session_initiator(
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
    stripe_gateway: StripeGateway = Depends(get_stripe_gateway),
    mercadopago_gateway: MercadoPagoGateway = Depends(get_mercadopago_gateway),
) -> PaymentSessionInitiator:
    return PaymentSessionInitiator(session, settings, stripe_gateway, mercadopago_gateway)


def get_payment_verifier(
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
    stripe_gateway: StripeGateway = Depends(get_stripe_gateway),
) -> PaymentVerifier:
    return PaymentVerifier(session, settings, stripe_gateway)

import logging
from typing import Any, Dict, List, Optional

import stripe

from gamestore.config import Settings
from gamestore.exceptions import ConfigurationError, ProviderError
from gamestore.services.gateways import ProviderCheckout, ProviderSession

logger = logging.getLogger(__name__)


class StripeGateway:
    """Card processor: hosted Stripe Checkout sessions."""

    def __init__(self, secret_key: Optional[str], api_version: str = "2023-10-16"):
        self.secret_key = secret_key
        self.api_version = api_version

    @classmethod
    def from_settings(cls, settings: Settings) -> "StripeGateway":
        return cls(settings.STRIPE_SECRET_KEY, settings.STRIPE_API_VERSION)

    def ensure_configured(self):
        if not self.secret_key:
            raise ConfigurationError("STRIPE_SECRET_KEY is not set")

    def _options(self) -> Dict[str, Any]:
        self.ensure_configured()
        return {"api_key": self.secret_key, "stripe_version": self.api_version}

    def find_customer_id(self, email: str) -> Optional[str]:
        try:
            customers = stripe.Customer.list(email=email, limit=1, **self._options())
        except stripe.StripeError as e:
            raise ProviderError(f"Stripe customer lookup failed: {e}") from e

        if customers.data:
            return customers.data[0].id
        return None

    def create_checkout_session(
        self,
        *,
        line_items: List[dict],
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
        customer_id: Optional[str] = None,
        customer_email: Optional[str] = None,
    ) -> ProviderCheckout:
        params: Dict[str, Any] = {
            "mode": "payment",
            "line_items": line_items,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
            "payment_intent_data": {"metadata": metadata},
        }
        if customer_id:
            params["customer"] = customer_id
        elif customer_email:
            params["customer_email"] = customer_email

        try:
            session = stripe.checkout.Session.create(**params, **self._options())
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout session failed: {e} ({type(e).__name__})")
            raise ProviderError(f"Stripe checkout session failed: {e}") from e

        return ProviderCheckout(id=session.id, url=session.url)

    def retrieve_session(self, session_id: str) -> Optional[ProviderSession]:
        """Returns None when Stripe has no session with this id."""
        try:
            session = stripe.checkout.Session.retrieve(session_id, **self._options())
        except stripe.InvalidRequestError as e:
            if e.code == "resource_missing":
                return None
            raise ProviderError(f"Stripe session lookup failed: {e}") from e
        except stripe.StripeError as e:
            raise ProviderError(f"Stripe session lookup failed: {e}") from e

        return ProviderSession(
            id=session.id,
            payment_status=session.payment_status,
            metadata=dict(session.metadata or {}),
        )

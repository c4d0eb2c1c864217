import logging
from typing import Optional

import requests

from gamestore.config import Settings
from gamestore.exceptions import ConfigurationError, ProviderError
from gamestore.services.gateways import ProviderCheckout

logger = logging.getLogger(__name__)


class MercadoPagoGateway:
    """Regional wallet: MercadoPago checkout preferences over the REST API."""

    def __init__(
        self,
        access_token: Optional[str],
        api_url: str = "https://api.mercadopago.com",
        timeout: int = 10,
    ):
        self.access_token = access_token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "MercadoPagoGateway":
        return cls(settings.MERCADOPAGO_ACCESS_TOKEN, settings.MERCADOPAGO_API_URL)

    def create_preference(self, preference: dict) -> ProviderCheckout:
        if not self.access_token:
            raise ConfigurationError("MercadoPago access token not configured")

        try:
            response = requests.post(
                f"{self.api_url}/checkout/preferences",
                json=preference,
                headers={
                    "Authorization": f"Bearer {self.access_token}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ProviderError(f"MercadoPago request failed: {e}") from e

        if not response.ok:
            logger.error(f"MercadoPago API error ({response.status_code}): {response.text}")
            raise ProviderError(f"MercadoPago API error: {response.status_code}")

        data = response.json()
        return ProviderCheckout(id=str(data["id"]), url=data.get("init_point"))

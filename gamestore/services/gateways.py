from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ProviderCheckout:
    """Reference returned by a provider when a checkout attempt is created."""
    id: str
    url: Optional[str] = None


@dataclass
class ProviderSession:
    """Authoritative view of a checkout attempt as reported by the provider."""
    id: str
    payment_status: Optional[str]
    metadata: dict = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"

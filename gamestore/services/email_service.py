import logging
import re
from typing import List, Optional

import requests

from gamestore.config import Settings
from gamestore.models.order import Order
from gamestore.utils.template import render_template

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"


def is_valid_email(email: Optional[str]) -> bool:
    if not email:
        return False

    return re.match(r"[^@]+@[^@]+\.[^@]+", email) is not None


def send_email(settings: Settings, to: str, subject: str, html: str) -> bool:
    """
    Send a transactional email via Brevo.

    Returns False instead of raising: email delivery never decides the
    outcome of the request that triggered it.
    """
    if not settings.BREVO_API_KEY:
        logger.info(f"Brevo not configured, skipping email to {to}")
        return False

    if not is_valid_email(to):
        logger.warning(f"Invalid email address: {to}")
        return False

    payload = {
        "sender": {
            "email": settings.MAIL_FROM,
            "name": settings.STORE_NAME,
        },
        "to": [{"email": to}],
        "subject": subject,
        "htmlContent": html,
    }

    headers = {
        "api-key": settings.BREVO_API_KEY,
        "Content-Type": "application/json",
    }

    try:
        response = requests.post(
            BREVO_API_URL,
            json=payload,
            headers=headers,
            timeout=10,
        )

        if response.status_code >= 400:
            logger.error(
                f"Brevo email failed ({response.status_code}): {response.text}"
            )
            return False

        logger.info(f"Brevo email sent to {to}")
        return True

    except requests.RequestException:
        logger.exception("Brevo email exception")
        return False


def send_digital_delivery_email(settings: Settings, order: Order, contents: List[dict]) -> bool:
    to = order.billing_email
    if not to or not contents:
        return False

    try:
        html = render_template(
            "user_emails/digital_delivery.html",
            order_number=order.order_number,
            first_name=(order.billing_info or {}).get("firstName"),
            contents=contents,
            store_name=settings.STORE_NAME,
        )
    except Exception:
        logger.exception(f"Failed to render delivery email for order {order.order_number}")
        return False

    return send_email(
        settings,
        to=to,
        subject=f"Tus códigos del pedido {order.order_number}",
        html=html,
    )

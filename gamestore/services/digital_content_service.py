import json
import logging
import secrets
import string
import time
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from gamestore.exceptions import PersistenceError
from gamestore.models.order import Order
from gamestore.models.order_item import OrderItem

logger = logging.getLogger(__name__)

CODE_PREFIX = "VG"
CODE_SUFFIX_LENGTH = 9
CODE_ALPHABET = string.ascii_uppercase + string.digits

REDEMPTION_INSTRUCTIONS = "Activa este código en tu plataforma de gaming correspondiente."


def generate_code() -> str:
    """Millisecond timestamp plus a random base36 suffix, e.g. ``VG-1718000000000-K3Z9Q0P1A``."""
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_SUFFIX_LENGTH))
    return f"{CODE_PREFIX}-{int(time.time() * 1000)}-{suffix}"


def build_content(item: OrderItem) -> dict:
    return {
        "product_name": item.product_name,
        "digital_code": generate_code(),
        "instructions": REDEMPTION_INSTRUCTIONS,
    }


def assign_content_once(session: Session, item_id: int, content: dict) -> bool:
    """Write ``content`` only if the item has none yet. Returns whether it was written."""
    result = session.execute(
        update(OrderItem)
        .where(OrderItem.id == item_id)
        .where(col(OrderItem.digital_content).is_(None))
        .values(digital_content=json.dumps(content, ensure_ascii=False))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def issue_digital_content(session: Session, order: Order) -> List[dict]:
    """
    Issue one redemption record per item of a paid order.

    Items that already carry content are skipped, so this is safe to call
    on every verification of the same order.
    """
    items = session.exec(
        select(OrderItem).where(OrderItem.order_id == order.id)
    ).all()

    issued = []
    try:
        for item in items:
            if item.digital_content:
                continue

            content = build_content(item)
            if assign_content_once(session, item.id, content):
                issued.append(content)
            else:
                logger.info(f"Item {item.id} received content concurrently, skipping")

        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise PersistenceError(f"Failed to store digital content: {e}") from e

    # the bulk UPDATE bypasses the identity map
    for item in items:
        session.refresh(item)

    logger.info(f"Digital content issued for order {order.id}: {len(issued)} new of {len(items)} items")
    return issued


def parse_content(raw: Optional[str]) -> Optional[dict]:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return {"digital_code": raw}

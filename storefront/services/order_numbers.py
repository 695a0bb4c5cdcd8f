import secrets
from datetime import datetime, timezone
from ..models.order import Order

ORDER_NUMBER_PREFIX = "ORD"
MAX_ATTEMPTS = 5


def _candidate(now: datetime) -> str:
    return f"{ORDER_NUMBER_PREFIX}-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"


def generate_order_number(session) -> str:
    """Mint an order number such as ``ORD-20240501-9F2C1A`` not yet used by any order."""
    now = datetime.now(timezone.utc)
    for _ in range(MAX_ATTEMPTS):
        number = _candidate(now)
        taken = session.query(Order.id).filter(Order.order_number == number).first()
        if taken is None:
            return number
    raise RuntimeError("could not allocate a unique order number")

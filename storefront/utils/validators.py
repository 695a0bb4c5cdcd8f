import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List

from ..services.errors import ValidationFailed


def ensure_int(value: Any, field: str) -> int:
    # int() would truncate 2.9 and accept True
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationFailed(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationFailed(f"{field} must be an integer")


def ensure_non_negative_int(value: Any, field: str) -> int:
    number = ensure_int(value, field)
    if number < 0:
        raise ValidationFailed(f"{field} must be >= 0")
    return number


def ensure_non_negative_decimal(value: Any, field: str) -> Decimal:
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationFailed(f"{field} must be a number")
    if not amount.is_finite() or amount < 0:
        raise ValidationFailed(f"{field} must be >= 0")
    return amount


def require_fields(payload: Dict[str, Any], fields: Iterable[str]) -> None:
    missing: List[str] = [f for f in fields if not str(payload.get(f) or "").strip()]
    if missing:
        raise ValidationFailed("missing required fields: " + ", ".join(missing))


def slugify(name: str) -> str:
    return re.sub(r"\s+", "-", (name or "").strip().lower())

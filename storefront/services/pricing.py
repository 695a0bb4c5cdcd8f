"""Cart and order totals.

Arithmetic stays in full ``Decimal`` precision; rounding for display is done
by the caller (see ``utils.dto.format_money``).
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, Union

DEFAULT_TAX_RATE = Decimal("0.10")
DEFAULT_SHIPPING_FLAT = Decimal("10.00")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    # str() first so 19.99 does not become 19.989999...
    return Decimal(str(value))


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal

    def to_dict(self) -> Dict[str, Decimal]:
        return {
            "subtotal": self.subtotal,
            "tax": self.tax,
            "shipping": self.shipping,
            "total": self.total,
        }


def _line_value(line: Any, field: str) -> Any:
    if isinstance(line, dict):
        return line.get(field)
    return getattr(line, field, None)


def line_total(unit_price: Number, quantity: int) -> Decimal:
    return to_decimal(unit_price) * Decimal(int(quantity))


def subtotal_of(lines: Iterable[Any]) -> Decimal:
    total = Decimal("0")
    for line in lines:
        total += line_total(_line_value(line, "unit_price"), _line_value(line, "quantity") or 0)
    return total


def calculate_totals(
    lines: Iterable[Any],
    tax_rate: Number = DEFAULT_TAX_RATE,
    shipping_flat: Number = DEFAULT_SHIPPING_FLAT,
) -> PriceBreakdown:
    """Price a set of line items.

    Each line is a mapping or object exposing ``unit_price`` and ``quantity``.
    Shipping is a flat fee whatever the cart holds.
    """
    subtotal = subtotal_of(lines)
    tax = subtotal * to_decimal(tax_rate)
    shipping = to_decimal(shipping_flat)
    return PriceBreakdown(subtotal=subtotal, tax=tax, shipping=shipping, total=subtotal + tax + shipping)

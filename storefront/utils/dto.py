from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

_CENT = Decimal("0.01")


def format_money(value: Any) -> str:
    """Two-place display string; the only place amounts get rounded."""
    if value is None:
        value = 0
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    return str(amount.quantize(_CENT, rounding=ROUND_HALF_UP))


def _money_or_none(value: Any) -> Optional[str]:
    return None if value is None else format_money(value)


def _iso(value: Any) -> Optional[str]:
    return value.isoformat() if value is not None else None


def to_product_dto(row: Any) -> Dict:
    return {
        "id": getattr(row, "id", None),
        "category_id": getattr(row, "category_id", None),
        "name": getattr(row, "name", None),
        "slug": getattr(row, "slug", None),
        "description": getattr(row, "description", None),
        "price": getattr(row, "price", None) or Decimal("0"),
        "compare_at_price": getattr(row, "compare_at_price", None),
        "sku": getattr(row, "sku", None),
        "barcode": getattr(row, "barcode", None),
        "quantity": getattr(row, "quantity", 0) or 0,
        "is_active": bool(getattr(row, "is_active", True)),
        "is_featured": bool(getattr(row, "is_featured", False)),
        "metadata": getattr(row, "extra", None) or {},
        "created_at": _iso(getattr(row, "created_at", None)),
    }


def to_category_dto(row: Any) -> Dict:
    return {
        "id": row.id,
        "name": row.name,
        "slug": row.slug,
        "description": row.description,
        "parent_id": row.parent_id,
        "display_order": row.display_order or 0,
        "is_active": bool(row.is_active),
    }


def to_profile_dto(row: Any) -> Dict:
    return {
        "id": row.id,
        "email": row.email,
        "full_name": row.full_name,
        "phone": row.phone,
    }


def present_product(dto: Dict) -> Dict:
    out = dict(dto)
    out["price"] = format_money(dto.get("price"))
    out["compare_at_price"] = _money_or_none(dto.get("compare_at_price"))
    return out


def present_cart(cart: Dict) -> Dict:
    items = []
    for it in cart.get("items", []):
        line = dict(it)
        line["unit_price"] = format_money(it["unit_price"])
        line["line_total"] = format_money(it["line_total"])
        items.append(line)
    return {"items": items, "subtotal": format_money(cart.get("subtotal")), "count": cart.get("count", 0)}


def present_totals(totals: Dict) -> Dict:
    return {k: format_money(v) for k, v in totals.items()}


def present_order(order: Dict) -> Dict:
    out = dict(order)
    for key in ("subtotal", "tax", "shipping", "total"):
        if key in out:
            out[key] = format_money(out[key])
    items = []
    for it in order.get("items", []):
        line = dict(it)
        line["price"] = format_money(it["price"])
        line["total"] = format_money(it["total"])
        items.append(line)
    if "items" in order:
        out["items"] = items
    return out

"""Checkout and order read-back.

Checkout runs as three dependent writes, each in its own session and
committed on its own:

    idle -> address_pending -> order_pending -> items_pending -> complete

A failure at any pending stage raises ``CheckoutFailed(stage, cause)`` and
leaves the earlier writes in place: a failed order stage orphans the address,
a failed items stage leaves an order whose items do not add up to its
subtotal. The cart is cleared only after every item is stored, so a failed
checkout never loses the user's cart.
"""

from enum import Enum
from typing import Callable, Dict, List, Optional
from uuid import uuid4
from ..db.session import get_session
from ..models.address import Address
from ..models.order import Order
from ..models.order_item import OrderItem
from ..utils.validators import require_fields
from .cart_service import CartService
from .errors import CheckoutFailed, NotFound, Unauthenticated, ValidationFailed, persistence_errors
from .logging import log_event
from .order_numbers import generate_order_number
from .pricing import DEFAULT_SHIPPING_FLAT, DEFAULT_TAX_RATE, PriceBreakdown, calculate_totals, line_total

ORDER_STATUS_INITIAL = "processing"
# no payment gateway is contacted; the order is recorded as paid
PAYMENT_STATUS_INITIAL = "paid"
ADDRESS_TYPE = "both"
ADDRESS_FIELDS = ("full_name", "address_line1", "city", "state", "postal_code", "country")


class CheckoutStage(str, Enum):
    IDLE = "idle"
    ADDRESS_PENDING = "address_pending"
    ORDER_PENDING = "order_pending"
    ITEMS_PENDING = "items_pending"
    CART_CLEAR = "cart_clear"
    COMPLETE = "complete"


# stage name reported in CheckoutFailed
FAILED_STAGE_NAMES = {
    CheckoutStage.ADDRESS_PENDING: "address",
    CheckoutStage.ORDER_PENDING: "order",
    CheckoutStage.ITEMS_PENDING: "items",
    CheckoutStage.CART_CLEAR: "cart_clear",
}


class OrderService:
    """Order creation and retrieval backed by DB."""

    def __init__(
        self,
        session_factory=get_session,
        *,
        cart_service: Optional[CartService] = None,
        order_number_factory: Callable = generate_order_number,
        tax_rate=DEFAULT_TAX_RATE,
        shipping_flat=DEFAULT_SHIPPING_FLAT,
    ):
        self._session_factory = session_factory
        self._cart = cart_service or CartService(session_factory)
        self._order_number_factory = order_number_factory
        self._tax_rate = tax_rate
        self._shipping_flat = shipping_flat

    def checkout(self, *, user_id: Optional[str], address: Dict, payment_method: str = "card") -> Dict:
        """Turn the user's cart into an order.

        Prices are frozen from the cart snapshot taken before the first write.
        Returns the new order's id, number and totals.
        """
        if not user_id:
            raise Unauthenticated()
        address = address or {}
        require_fields(address, ADDRESS_FIELDS)

        cart = self._cart.get_cart(user_id=user_id)
        if not cart["items"]:
            raise ValidationFailed("cart is empty")
        if any(it["product"] is None for it in cart["items"]):
            raise ValidationFailed("cart contains products that are no longer available")
        lines = [
            {"product_id": it["product_id"], "quantity": it["quantity"], "unit_price": it["unit_price"]}
            for it in cart["items"]
        ]
        totals = calculate_totals(lines, self._tax_rate, self._shipping_flat)

        stage = CheckoutStage.IDLE
        try:
            stage = self._advance(user_id, CheckoutStage.ADDRESS_PENDING)
            address_id = self._insert_address(user_id, address)
            stage = self._advance(user_id, CheckoutStage.ORDER_PENDING)
            order_id, order_number = self._insert_order(user_id, address_id, totals, payment_method)
            stage = self._advance(user_id, CheckoutStage.ITEMS_PENDING)
            self._insert_items(order_id, lines)
            stage = self._advance(user_id, CheckoutStage.CART_CLEAR)
            self._cart.clear(user_id=user_id)
        except Exception as exc:
            failed = FAILED_STAGE_NAMES.get(stage, stage.value)
            log_event("error", "checkout.failed", user_id=user_id, stage=failed, error=str(exc))
            raise CheckoutFailed(failed, exc) from exc

        self._advance(user_id, CheckoutStage.COMPLETE)
        log_event(
            "info",
            "order.created",
            order_id=order_id,
            order_number=order_number,
            items=len(lines),
            subtotal=totals.subtotal,
            total=totals.total,
        )
        result = {
            "order_id": order_id,
            "order_number": order_number,
            "status": ORDER_STATUS_INITIAL,
            "payment_status": PAYMENT_STATUS_INITIAL,
            "address_id": address_id,
        }
        result.update(totals.to_dict())
        return result

    @staticmethod
    def _advance(user_id: str, stage: CheckoutStage) -> CheckoutStage:
        log_event("debug", "checkout.stage", user_id=user_id, stage=stage.value)
        return stage

    def _insert_address(self, user_id: str, address: Dict) -> str:
        with self._session_factory() as session:
            row = Address(
                id=str(uuid4()),
                user_id=user_id,
                type=ADDRESS_TYPE,
                full_name=_clean(address["full_name"]),
                address_line1=_clean(address["address_line1"]),
                address_line2=_clean(address.get("address_line2")) or None,
                city=_clean(address["city"]),
                state=_clean(address["state"]),
                postal_code=_clean(address["postal_code"]),
                country=_clean(address["country"]),
                phone=_clean(address.get("phone")) or None,
            )
            session.add(row)
            session.flush()
            return row.id

    def _insert_order(self, user_id: str, address_id: str, totals: PriceBreakdown, payment_method: str):
        with self._session_factory() as session:
            order_number = self._order_number_factory(session)
            order = Order(
                id=str(uuid4()),
                user_id=user_id,
                order_number=order_number,
                status=ORDER_STATUS_INITIAL,
                subtotal=totals.subtotal,
                tax=totals.tax,
                shipping=totals.shipping,
                total=totals.total,
                shipping_address_id=address_id,
                billing_address_id=address_id,
                payment_status=PAYMENT_STATUS_INITIAL,
                payment_method=payment_method,
            )
            session.add(order)
            session.flush()
            return order.id, order_number

    def _insert_items(self, order_id: str, lines: List[Dict]) -> None:
        with self._session_factory() as session:
            for line in lines:
                session.add(
                    OrderItem(
                        id=str(uuid4()),
                        order_id=order_id,
                        product_id=line["product_id"],
                        quantity=line["quantity"],
                        price=line["unit_price"],
                        total=line_total(line["unit_price"], line["quantity"]),
                    )
                )
            session.flush()

    def get_order(self, *, user_id: Optional[str], order_id: str) -> Dict:
        if not user_id:
            raise Unauthenticated()
        with persistence_errors("order read"), self._session_factory() as session:
            o = (
                session.query(Order)
                .filter(Order.id == order_id, Order.user_id == user_id)
                .first()
            )
            if not o:
                raise NotFound("order not found")
            items = (
                session.query(OrderItem)
                .filter(OrderItem.order_id == o.id)
                .order_by(OrderItem.created_at.asc(), OrderItem.id.asc())
                .all()
            )
            data = _order_summary(o)
            data["items"] = [
                {"id": it.id, "product_id": it.product_id, "quantity": it.quantity, "price": it.price, "total": it.total}
                for it in items
            ]
            return data

    def list_orders(self, *, user_id: Optional[str]) -> List[Dict]:
        if not user_id:
            raise Unauthenticated()
        with persistence_errors("order list"), self._session_factory() as session:
            rows = (
                session.query(Order)
                .filter(Order.user_id == user_id)
                .order_by(Order.created_at.desc(), Order.id.asc())
                .all()
            )
            return [_order_summary(o) for o in rows]


def _order_summary(o: Order) -> Dict:
    return {
        "order_id": o.id,
        "order_number": o.order_number,
        "status": o.status,
        "payment_status": o.payment_status,
        "payment_method": o.payment_method,
        "subtotal": o.subtotal,
        "tax": o.tax,
        "shipping": o.shipping,
        "total": o.total,
        "shipping_address_id": o.shipping_address_id,
        "billing_address_id": o.billing_address_id,
        "created_at": o.created_at.isoformat() if o.created_at else None,
    }


def _clean(value) -> str:
    return str(value if value is not None else "").strip()

from decimal import Decimal
from typing import Dict, Optional
from uuid import uuid4
from ..db.session import get_session
from ..models.product import Product
from ..models.cart_item import CartItem
from ..utils.validators import ensure_int
from .errors import InsufficientStock, NotFound, Unauthenticated, ValidationFailed, persistence_errors
from .logging import log_event
from .pricing import line_total


class CartService:
    """Per-user cart backed by DB.

    At most one line exists per (user, product): adding a product already in
    the cart raises the quantity of that line. Totals are recomputed from the
    live product prices on every read. Concurrent writers on one cart are not
    serialized; the last write wins.
    """

    def __init__(self, session_factory=get_session, *, enforce_stock: bool = False):
        self._session_factory = session_factory
        self._enforce_stock = enforce_stock

    @staticmethod
    def _require_user(user_id: Optional[str]) -> str:
        if not user_id:
            raise Unauthenticated()
        return user_id

    def _check_stock(self, product: Product, quantity: int) -> None:
        if self._enforce_stock and quantity > int(product.quantity or 0):
            raise InsufficientStock("insufficient stock")

    def get_cart(self, *, user_id: Optional[str]) -> Dict:
        """Snapshot of the cart: { items, subtotal, count }.

        Anonymous callers get an empty cart. A line whose product has been
        deleted prices at zero.
        """
        if not user_id:
            return {"items": [], "subtotal": Decimal("0"), "count": 0}
        with persistence_errors("cart read"), self._session_factory() as session:
            rows = (
                session.query(CartItem, Product)
                .outerjoin(Product, Product.id == CartItem.product_id)
                .filter(CartItem.user_id == user_id)
                .order_by(CartItem.created_at.asc(), CartItem.id.asc())
                .all()
            )
            items = []
            for it, prod in rows:
                unit_price = prod.price if prod is not None and prod.price is not None else Decimal("0")
                items.append(
                    {
                        "id": it.id,
                        "product_id": it.product_id,
                        "quantity": it.quantity,
                        "unit_price": unit_price,
                        "line_total": line_total(unit_price, it.quantity),
                        "product": (
                            {"id": prod.id, "name": prod.name, "price": prod.price, "slug": prod.slug}
                            if prod is not None
                            else None
                        ),
                    }
                )
            subtotal = sum((it["line_total"] for it in items), Decimal("0"))
            count = sum(it["quantity"] for it in items)
            return {"items": items, "subtotal": subtotal, "count": count}

    def add_item(self, *, user_id: Optional[str], product_id: str, quantity: int = 1) -> Dict:
        uid = self._require_user(user_id)
        if not product_id:
            raise ValidationFailed("product_id required")
        qnty = ensure_int(quantity, "quantity")
        if qnty < 1:
            raise ValidationFailed("quantity must be >= 1")

        with persistence_errors("cart add"):
            with self._session_factory() as session:
                prod = (
                    session.query(Product)
                    .filter(Product.id == product_id, Product.is_active.is_(True))
                    .first()
                )
                if not prod:
                    raise NotFound("product not found or inactive")
                existing = (
                    session.query(CartItem)
                    .filter(CartItem.user_id == uid, CartItem.product_id == product_id)
                    .first()
                )
                if existing:
                    existing_id, merged = existing.id, existing.quantity + qnty
                else:
                    existing_id = None
                    self._check_stock(prod, qnty)
                    item = CartItem(id=str(uuid4()), user_id=uid, product_id=product_id, quantity=qnty)
                    session.add(item)
                    session.flush()
                    created_id = item.id

        if existing_id is None:
            log_event("info", "cart.item_added", user_id=uid, product_id=product_id, quantity=qnty)
            return {"status": "added", "item_id": created_id}
        self.update_quantity(user_id=uid, item_id=existing_id, quantity=merged)
        log_event("info", "cart.item_added", user_id=uid, product_id=product_id, quantity=merged)
        return {"status": "added", "item_id": existing_id}

    def update_quantity(self, *, user_id: Optional[str], item_id: str, quantity: int) -> Dict:
        """Set a line's quantity; zero or less removes the line."""
        uid = self._require_user(user_id)
        if not item_id:
            raise ValidationFailed("item_id required")
        qnty = ensure_int(quantity, "quantity")
        if qnty <= 0:
            self.remove_item(user_id=uid, item_id=item_id)
            return {"status": "removed", "item_id": item_id}

        with persistence_errors("cart update"):
            with self._session_factory() as session:
                it = (
                    session.query(CartItem)
                    .filter(CartItem.id == item_id, CartItem.user_id == uid)
                    .first()
                )
                if not it:
                    raise NotFound("cart item not found")
                if self._enforce_stock:
                    prod = session.query(Product).filter(Product.id == it.product_id).first()
                    if prod is not None:
                        self._check_stock(prod, qnty)
                it.quantity = qnty
                session.flush()
        return {"status": "updated", "item_id": item_id}

    def remove_item(self, *, user_id: Optional[str], item_id: str) -> None:
        # removing a missing line is not an error
        uid = self._require_user(user_id)
        with persistence_errors("cart remove"):
            with self._session_factory() as session:
                it = (
                    session.query(CartItem)
                    .filter(CartItem.id == item_id, CartItem.user_id == uid)
                    .first()
                )
                if it:
                    session.delete(it)
                    session.flush()
                    log_event("info", "cart.item_removed", user_id=uid, item_id=item_id)
        return None

    def clear(self, *, user_id: Optional[str]) -> int:
        uid = self._require_user(user_id)
        with persistence_errors("cart clear"):
            with self._session_factory() as session:
                removed = (
                    session.query(CartItem)
                    .filter(CartItem.user_id == uid)
                    .delete(synchronize_session=False)
                )
        log_event("info", "cart.cleared", user_id=uid, removed=removed)
        return removed

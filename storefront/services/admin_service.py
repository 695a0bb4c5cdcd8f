from typing import Any, Dict, List, Optional
from uuid import uuid4
from ..db.session import get_session
from ..models.cart_item import CartItem
from ..models.category import Category
from ..models.order_item import OrderItem
from ..models.product import Product
from ..utils.dto import to_category_dto, to_product_dto
from ..utils.validators import ensure_non_negative_decimal, ensure_non_negative_int, slugify
from .errors import NotFound, ValidationFailed, persistence_errors
from .logging import log_event

_TEXT_FIELDS = ("name", "slug", "description", "sku", "barcode")
_FLAG_FIELDS = ("is_active", "is_featured")


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


class AdminService:
    """Product and category maintenance for the admin panel."""

    def __init__(self, session_factory=get_session):
        self._session_factory = session_factory

    def list_products(self) -> List[Dict]:
        """All products, inactive included, newest first."""
        with persistence_errors("product list"), self._session_factory() as session:
            rows = session.query(Product).order_by(Product.created_at.desc(), Product.id.asc()).all()
            return [to_product_dto(r) for r in rows]

    def create_product(self, data: Dict) -> Dict:
        fields = self._clean_product(data or {})
        if not fields.get("name"):
            raise ValidationFailed("name required")
        fields["slug"] = fields.get("slug") or slugify(fields["name"])
        fields.setdefault("price", ensure_non_negative_decimal(0, "price"))
        self._check_compare_at(fields.get("price"), fields.get("compare_at_price"))
        with persistence_errors("product create"):
            with self._session_factory() as session:
                self._check_references(session, fields, product_id=None)
                row = Product(id=str(uuid4()), **fields)
                session.add(row)
                session.flush()
                dto = to_product_dto(row)
        log_event("info", "admin.product_saved", product_id=dto["id"], created=True)
        return dto

    def update_product(self, product_id: str, data: Dict) -> Dict:
        fields = self._clean_product(data or {})
        if "name" in fields and not fields["name"]:
            raise ValidationFailed("name required")
        if "slug" in fields and not fields["slug"]:
            raise ValidationFailed("slug required")
        with persistence_errors("product update"):
            with self._session_factory() as session:
                row = session.query(Product).filter(Product.id == product_id).first()
                if not row:
                    raise NotFound("product not found")
                self._check_compare_at(
                    fields.get("price", row.price),
                    fields["compare_at_price"] if "compare_at_price" in fields else row.compare_at_price,
                )
                self._check_references(session, fields, product_id=product_id)
                for key, value in fields.items():
                    setattr(row, key, value)
                session.flush()
                dto = to_product_dto(row)
        log_event("info", "admin.product_saved", product_id=product_id, created=False)
        return dto

    def delete_product(self, product_id: str) -> bool:
        """Delete a product; cart lines go with it, order items keep their snapshot."""
        with persistence_errors("product delete"):
            with self._session_factory() as session:
                row = session.query(Product).filter(Product.id == product_id).first()
                if not row:
                    return False
                session.query(CartItem).filter(CartItem.product_id == product_id).delete(
                    synchronize_session=False
                )
                session.query(OrderItem).filter(OrderItem.product_id == product_id).update(
                    {OrderItem.product_id: None}, synchronize_session=False
                )
                session.delete(row)
        log_event("info", "admin.product_deleted", product_id=product_id)
        return True

    def list_categories(self) -> List[Dict]:
        with persistence_errors("category list"), self._session_factory() as session:
            rows = session.query(Category).order_by(Category.name.asc()).all()
            return [to_category_dto(r) for r in rows]

    def create_category(self, name: str) -> Dict:
        label = (name or "").strip()
        if not label:
            raise ValidationFailed("category name required")
        slug = slugify(label)
        with persistence_errors("category create"):
            with self._session_factory() as session:
                if session.query(Category.id).filter(Category.slug == slug).first():
                    raise ValidationFailed("category slug already in use")
                row = Category(id=str(uuid4()), name=label, slug=slug)
                session.add(row)
                session.flush()
                return to_category_dto(row)

    def delete_category(self, category_id: str) -> bool:
        # products only lose the reference
        with persistence_errors("category delete"):
            with self._session_factory() as session:
                row = session.query(Category).filter(Category.id == category_id).first()
                if not row:
                    return False
                session.query(Product).filter(Product.category_id == category_id).update(
                    {Product.category_id: None}, synchronize_session=False
                )
                session.delete(row)
                return True

    @staticmethod
    def _clean_product(data: Dict) -> Dict:
        fields: Dict[str, Any] = {}
        for key in _TEXT_FIELDS:
            if key in data:
                fields[key] = (str(data[key]).strip() if data[key] is not None else "") or None
        if fields.get("slug"):
            fields["slug"] = slugify(fields["slug"])
        for key in _FLAG_FIELDS:
            if key in data:
                fields[key] = _as_bool(data[key])
        if "price" in data:
            fields["price"] = ensure_non_negative_decimal(data["price"], "price")
        if "compare_at_price" in data:
            raw = data["compare_at_price"]
            fields["compare_at_price"] = (
                None if raw in (None, "") else ensure_non_negative_decimal(raw, "compare_at_price")
            )
        if "quantity" in data:
            fields["quantity"] = ensure_non_negative_int(data["quantity"], "quantity")
        if "category_id" in data:
            fields["category_id"] = data["category_id"] or None
        if "metadata" in data:
            fields["extra"] = data["metadata"] or {}
        return fields

    @staticmethod
    def _check_compare_at(price, compare_at) -> None:
        if compare_at is not None and price is not None and compare_at < price:
            raise ValidationFailed("compare_at_price must be >= price")

    @staticmethod
    def _check_references(session, fields: Dict, product_id: Optional[str]) -> None:
        slug = fields.get("slug")
        if slug:
            q = session.query(Product.id).filter(Product.slug == slug)
            if product_id:
                q = q.filter(Product.id != product_id)
            if q.first():
                raise ValidationFailed("slug already in use")
        category_id = fields.get("category_id")
        if category_id and not session.query(Category.id).filter(Category.id == category_id).first():
            raise ValidationFailed("unknown category")

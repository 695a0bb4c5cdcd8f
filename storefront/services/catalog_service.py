from typing import Dict, List, Optional
from sqlalchemy import or_
from ..db.session import get_session
from ..models.product import Product
from ..models.category import Category
from ..utils.pagination import normalize_paging, page_offset
from ..utils.dto import to_category_dto, to_product_dto
from .errors import persistence_errors


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class CatalogService:
    """Read-only catalog queries.

    Responsibilities:
    - List/search products (active flag, name search, category) with paging
    - Order featured first, then newest, then id for a stable order
    - Get single product detail by id or slug
    """

    def __init__(self, session_factory=get_session):
        self._session_factory = session_factory

    def list_products(
        self,
        *,
        active_only: bool = True,
        search: Optional[str] = None,
        featured_first: bool = True,
        category: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Dict:
        """Return dict: { items: [ProductDTO], page, page_size, total }

        ``search`` is a case-insensitive substring match on the product name;
        LIKE wildcards typed by the user match literally. No match gives an
        empty ``items`` list.
        """
        p, ps = normalize_paging(page, page_size)
        with persistence_errors("product list"), self._session_factory() as session:
            q = session.query(Product)
            if active_only:
                q = q.filter(Product.is_active.is_(True))
            text = (search or "").strip()
            if text:
                q = q.filter(Product.name.ilike(f"%{_escape_like(text)}%", escape="\\"))
            if category:
                q = (
                    q.join(Category, Category.id == Product.category_id)
                    .filter(or_(Category.slug == category, Category.id == category))
                )
            total = q.count()
            ordering = [Product.is_featured.desc()] if featured_first else []
            ordering += [Product.created_at.desc(), Product.id.asc()]
            rows = q.order_by(*ordering).offset(page_offset(p, ps)).limit(ps).all()
            items = [to_product_dto(r) for r in rows]
            return {"items": items, "page": p, "page_size": ps, "total": total}

    def get_product(self, product_id: str) -> Dict:
        """Return ProductDTO for an active product, looked up by id or slug."""
        if not product_id:
            return {}
        with persistence_errors("product read"), self._session_factory() as session:
            r = (
                session.query(Product)
                .filter(
                    or_(Product.id == product_id, Product.slug == product_id),
                    Product.is_active.is_(True),
                )
                .first()
            )
            return to_product_dto(r) if r else {}

    def list_categories(self, *, active_only: bool = True) -> List[Dict]:
        with persistence_errors("category list"), self._session_factory() as session:
            q = session.query(Category)
            if active_only:
                q = q.filter(Category.is_active.is_(True))
            rows = q.order_by(Category.display_order.asc(), Category.name.asc()).all()
            return [to_category_dto(r) for r in rows]

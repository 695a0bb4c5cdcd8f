from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, func
from .base import Base


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # survives product deletion
    product_id = Column(String(36), ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(18, 6), nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

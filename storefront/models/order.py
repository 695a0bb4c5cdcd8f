from sqlalchemy import Column, DateTime, ForeignKey, JSON, Numeric, String, Text, func
from .base import Base


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    order_number = Column(String(64), nullable=False, unique=True)
    status = Column(String(32), nullable=False)
    # six places so tax and total are stored unrounded
    subtotal = Column(Numeric(18, 6), nullable=False)
    tax = Column(Numeric(18, 6), nullable=False)
    shipping = Column(Numeric(18, 6), nullable=False)
    total = Column(Numeric(18, 6), nullable=False)
    shipping_address_id = Column(String(36), ForeignKey("addresses.id"), nullable=True)
    billing_address_id = Column(String(36), ForeignKey("addresses.id"), nullable=True)
    payment_status = Column(String(32), nullable=False)
    payment_method = Column(String(32), nullable=True)
    notes = Column(Text, nullable=True)
    extra = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

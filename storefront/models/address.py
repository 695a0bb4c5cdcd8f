from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, func
from .base import Base


class Address(Base):
    __tablename__ = "addresses"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    type = Column(String(16), nullable=False, default="both")
    full_name = Column(String(255), nullable=False)
    address_line1 = Column(String(255), nullable=False)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(128), nullable=False)
    state = Column(String(128), nullable=False)
    postal_code = Column(String(32), nullable=False)
    country = Column(String(128), nullable=False)
    phone = Column(String(64), nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

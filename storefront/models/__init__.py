from .base import Base
from .profile import Profile
from .category import Category
from .product import Product
from .cart_item import CartItem
from .address import Address
from .order import Order
from .order_item import OrderItem

__all__ = [
    "Base",
    "Profile",
    "Category",
    "Product",
    "CartItem",
    "Address",
    "Order",
    "OrderItem",
]

from .product import Product
from .cart import Cart
from .wishlist import WishlistEntry
from .order import Order
from .profile import Profile

__all__ = ["Product", "Cart", "WishlistEntry", "Order", "Profile"]

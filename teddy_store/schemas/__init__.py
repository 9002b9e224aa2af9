from .cart import CartLine, CartLineCreate, CartQuantityUpdate, CartRecord, CartSummary, compute_total
from .wishlist import WishlistAdd, WishlistEntry, WishlistProduct, WishlistSummary
from .notice import Notice, NoticeKind

__all__ = [
    "CartLine", "CartLineCreate", "CartQuantityUpdate", "CartRecord", "CartSummary", "compute_total",
    "WishlistAdd", "WishlistEntry", "WishlistProduct", "WishlistSummary",
    "Notice", "NoticeKind",
]

from .base import CartStore, WishlistStore, InsertOutcome, InsertResult
from .cart_store import SqlCartStore
from .wishlist_store import SqlWishlistStore

__all__ = [
    "CartStore",
    "WishlistStore",
    "InsertOutcome",
    "InsertResult",
    "SqlCartStore",
    "SqlWishlistStore",
]

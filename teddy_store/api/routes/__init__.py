from .session import router as session_router
from .cart import router as cart_router
from .wishlist import router as wishlist_router
from .products import router as products_router
from .orders import router as orders_router
from .profile import router as profile_router

__all__ = [
    "session_router",
    "cart_router",
    "wishlist_router",
    "products_router",
    "orders_router",
    "profile_router",
]

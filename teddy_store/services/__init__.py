from .reconciler import BaseReconciler, MutationOutcome, ReconcilerState
from .cart_reconciler import CartReconciler
from .wishlist_reconciler import WishlistReconciler
from .catalog_service import CatalogService
from .order_service import OrderService
from .checkout_service import CheckoutService
from .profile_service import ProfileService

__all__ = [
    "BaseReconciler",
    "MutationOutcome",
    "ReconcilerState",
    "CartReconciler",
    "WishlistReconciler",
    "CatalogService",
    "OrderService",
    "CheckoutService",
    "ProfileService",
]

from fastapi import APIRouter
from .routes import (
    session_router,
    cart_router,
    wishlist_router,
    products_router,
    orders_router,
    profile_router,
)

# Создаем основной API router
api_router = APIRouter(prefix="/api/v1")

# Подключаем роуты
api_router.include_router(session_router)
api_router.include_router(cart_router)
api_router.include_router(wishlist_router)
api_router.include_router(products_router)
api_router.include_router(orders_router)
api_router.include_router(profile_router)

__all__ = ["api_router"]

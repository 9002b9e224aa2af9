from typing import List
from fastapi import APIRouter, Depends, HTTPException
import logging

from ...exceptions import CheckoutError, RemoteFailure, Unauthenticated
from ...schemas.order import CheckoutRequest, CheckoutResponse, OrderResponse
from ...services.checkout_service import CheckoutService
from ...services.order_service import OrderService
from ...storefront import StorefrontSession
from ..dependencies import get_order_service, get_storefront_session, require_owner

logger = logging.getLogger(__name__)

router = APIRouter(tags=["orders"])


@router.post("/checkout", response_model=CheckoutResponse)
async def checkout(
        data: CheckoutRequest,
        storefront: StorefrontSession = Depends(get_storefront_session),
        order_service: OrderService = Depends(get_order_service)
):
    """Оформление заказа из корзины"""
    checkout_service = CheckoutService(
        order_service,
        storefront.cart,
        storefront.notifier,
        storefront.cart.events
    )
    try:
        order = await checkout_service.place_order(data)
    except Unauthenticated:
        raise HTTPException(status_code=401, detail="Authentication required")
    except CheckoutError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RemoteFailure as e:
        logger.error(f"❌ Checkout failed: {e}")
        raise HTTPException(status_code=503, detail="Failed to place order")

    return CheckoutResponse(order=order, notices=storefront.notices.drain())


@router.get("/orders", response_model=List[OrderResponse])
async def get_orders(
        owner: str = Depends(require_owner),
        order_service: OrderService = Depends(get_order_service)
):
    """Заказы текущего пользователя"""
    return await order_service.list_orders(owner)

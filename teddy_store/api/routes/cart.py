from fastapi import APIRouter, Depends, Response

from ...schemas.cart import CartLineCreate, CartQuantityUpdate, CartResponse
from ...services.reconciler import MutationOutcome
from ...storefront import StorefrontSession
from ..dependencies import OUTCOME_STATUS, get_storefront_session

router = APIRouter(prefix="/cart", tags=["cart"])


def _respond(storefront: StorefrontSession, response: Response, outcome: MutationOutcome = None) -> CartResponse:
    if outcome is not None:
        response.status_code = OUTCOME_STATUS[outcome]
    return CartResponse(
        outcome=outcome.value if outcome else None,
        cart=storefront.cart.summary(),
        notices=storefront.notices.drain()
    )


@router.get("", response_model=CartResponse)
async def get_cart(response: Response, storefront: StorefrontSession = Depends(get_storefront_session)):
    """Получение текущей корзины пользователя"""
    await storefront.cart.wait_loaded()
    return _respond(storefront, response)


@router.post("/items", response_model=CartResponse)
async def add_item_to_cart(
        item: CartLineCreate,
        response: Response,
        storefront: StorefrontSession = Depends(get_storefront_session)
):
    """Добавление товара в корзину"""
    outcome = await storefront.cart.add(item)
    return _respond(storefront, response, outcome)


@router.put("/items/{line_id}", response_model=CartResponse)
async def update_cart_item(
        line_id: str,
        item: CartQuantityUpdate,
        response: Response,
        storefront: StorefrontSession = Depends(get_storefront_session)
):
    """Обновление количества товара в корзине"""
    outcome = await storefront.cart.update_quantity(line_id, item.quantity)
    return _respond(storefront, response, outcome)


@router.delete("/items/{line_id}", response_model=CartResponse)
async def remove_item_from_cart(
        line_id: str,
        response: Response,
        storefront: StorefrontSession = Depends(get_storefront_session)
):
    """Удаление товара из корзины"""
    outcome = await storefront.cart.remove(line_id)
    return _respond(storefront, response, outcome)


@router.delete("", response_model=CartResponse)
async def clear_cart(response: Response, storefront: StorefrontSession = Depends(get_storefront_session)):
    """Очистка корзины"""
    outcome = await storefront.cart.clear()
    return _respond(storefront, response, outcome)

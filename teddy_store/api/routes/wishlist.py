from fastapi import APIRouter, Depends, Response

from ...schemas.wishlist import WishlistAdd, WishlistMembership, WishlistResponse
from ...services.reconciler import MutationOutcome
from ...storefront import StorefrontSession
from ..dependencies import OUTCOME_STATUS, get_storefront_session

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


def _respond(storefront: StorefrontSession, response: Response, outcome: MutationOutcome = None) -> WishlistResponse:
    if outcome is not None:
        response.status_code = OUTCOME_STATUS[outcome]
    return WishlistResponse(
        outcome=outcome.value if outcome else None,
        wishlist=storefront.wishlist.summary(),
        notices=storefront.notices.drain()
    )


@router.get("", response_model=WishlistResponse)
async def get_wishlist(response: Response, storefront: StorefrontSession = Depends(get_storefront_session)):
    """Избранное текущего пользователя"""
    await storefront.wishlist.wait_loaded()
    return _respond(storefront, response)


@router.get("/contains/{product_id}", response_model=WishlistMembership)
async def wishlist_contains(product_id: str, storefront: StorefrontSession = Depends(get_storefront_session)):
    """Есть ли товар в избранном (без запроса к БД)"""
    await storefront.wishlist.wait_loaded()
    return WishlistMembership(
        product_id=product_id,
        present=storefront.wishlist.is_present(product_id),
        entry_id=storefront.wishlist.id_for(product_id)
    )


@router.post("", response_model=WishlistResponse)
async def add_to_wishlist(
        data: WishlistAdd,
        response: Response,
        storefront: StorefrontSession = Depends(get_storefront_session)
):
    """Добавление товара в избранное"""
    outcome = await storefront.wishlist.add(data.product_id)
    return _respond(storefront, response, outcome)


@router.delete("/{entry_id}", response_model=WishlistResponse)
async def remove_from_wishlist(
        entry_id: str,
        response: Response,
        storefront: StorefrontSession = Depends(get_storefront_session)
):
    """Удаление записи из избранного"""
    outcome = await storefront.wishlist.remove(entry_id)
    return _respond(storefront, response, outcome)

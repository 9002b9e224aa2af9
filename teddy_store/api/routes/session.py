from fastapi import APIRouter, Depends

from ...schemas.session import SessionInfo, SignIn
from ...storefront import SessionRegistry, StorefrontSession
from ..dependencies import get_registry, get_storefront_session

router = APIRouter(prefix="/session", tags=["session"])


def _info(storefront: StorefrontSession) -> SessionInfo:
    return SessionInfo(
        session_id=storefront.session_id,
        owner=storefront.owner,
        cart_state=storefront.cart.state.value,
        wishlist_state=storefront.wishlist.state.value,
        notices=storefront.notices.drain()
    )


@router.get("", response_model=SessionInfo)
async def get_session(storefront: StorefrontSession = Depends(get_storefront_session)):
    """Текущий пользователь сессии"""
    return _info(storefront)


@router.post("", response_model=SessionInfo)
async def sign_in(data: SignIn, storefront: StorefrontSession = Depends(get_storefront_session)):
    """Вход: корзина и избранное загружаются для нового пользователя"""
    await storefront.sign_in(data.user_id)
    return _info(storefront)


@router.delete("", response_model=SessionInfo)
async def sign_out(
        storefront: StorefrontSession = Depends(get_storefront_session),
        registry: SessionRegistry = Depends(get_registry)
):
    """Выход: зеркала очищаются сразу, сессия закрывается"""
    storefront.sign_out()
    info = _info(storefront)
    registry.drop(storefront.session_id)
    return info

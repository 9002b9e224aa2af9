from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..services.catalog_service import CatalogService
from ..services.order_service import OrderService
from ..services.reconciler import MutationOutcome
from ..storefront import SessionRegistry, StorefrontSession

# HTTP-статус для исхода операции реконсайлера
OUTCOME_STATUS = {
    MutationOutcome.APPLIED: 200,
    MutationOutcome.SKIPPED: 200,
    MutationOutcome.DUPLICATE: 200,
    MutationOutcome.UNAUTHENTICATED: 401,
    MutationOutcome.FAILED: 503,
}


def get_registry(request: Request) -> SessionRegistry:
    """Dependency для получения реестра сессий"""
    return request.app.state.registry


def get_storefront_session(
        session_id: str = Header(..., alias=settings.session_header),
        registry: SessionRegistry = Depends(get_registry)
) -> StorefrontSession:
    """Сессия браузера по заголовку X-Session-Id"""
    return registry.get(session_id)


def require_owner(storefront: StorefrontSession = Depends(get_storefront_session)) -> str:
    """Текущий пользователь или 401"""
    if storefront.owner is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return storefront.owner


async def get_catalog_service(db: AsyncSession = Depends(get_db)) -> CatalogService:
    """Dependency для получения CatalogService"""
    return CatalogService(db)


async def get_order_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    """Dependency для получения OrderService"""
    return OrderService(db)

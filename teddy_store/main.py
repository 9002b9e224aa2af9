import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .database import AsyncSessionLocal, check_connection, create_tables
from .api import api_router
from .events.publisher import EventPublisher
from .exceptions import CheckoutError, NotFound, RemoteFailure, StorefrontError, Unauthenticated
from .storefront import SessionRegistry
from .stores.cart_store import SqlCartStore
from .stores.wishlist_store import SqlWishlistStore

VERSION = "1.0.0"

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def build_registry(session_factory, events: Optional[EventPublisher] = None) -> SessionRegistry:
    """Реестр браузерных сессий поверх SQL-хранилищ корзин и избранного"""
    return SessionRegistry(
        cart_store=SqlCartStore(session_factory),
        wishlist_store=SqlWishlistStore(session_factory),
        events=events
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Старт: таблицы, продюсер событий, реестр сессий. Стоп: в обратном порядке"""
    logger.info(f"🧸 Starting {settings.app_name}...")

    events = EventPublisher()
    try:
        await create_tables()
        logger.info("Storefront tables are ready")

        await events.start()
    except Exception as e:
        logger.error(f"❌ Storefront startup failed: {e}")
        raise

    app.state.events = events
    app.state.registry = build_registry(AsyncSessionLocal, events)
    logger.info("✅ Storefront is accepting requests")

    yield

    logger.info(f"Closing {len(app.state.registry)} storefront sessions...")
    app.state.registry.close_all()
    await events.stop()
    logger.info("✅ Storefront stopped")


app = FastAPI(
    title=settings.app_name,
    description="Витрина магазина плюшевых игрушек: каталог, корзина, избранное, заказы",
    version=VERSION,
    debug=settings.debug,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check(request: Request):
    """Состояние БД, Kafka и число открытых сессий"""
    try:
        database_up = await check_connection()
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(status_code=503, detail="Service unhealthy")

    events = getattr(request.app.state, "events", None)
    registry = getattr(request.app.state, "registry", None)

    return {
        "status": "healthy" if database_up else "degraded",
        "service": settings.app_name,
        "database": "connected" if database_up else "disconnected",
        "kafka": "connected" if events is not None and events.producer else "disabled",
        "sessions": len(registry) if registry is not None else 0,
        "version": VERSION
    }


@app.get("/")
async def root():
    return {
        "service": settings.app_name,
        "version": VERSION,
        "docs": "/docs",
        "api": api_router.prefix,
        "session_header": settings.session_header
    }


# Ошибки домена, не перехваченные в роутерах
_ERROR_STATUS = {
    Unauthenticated: 401,
    NotFound: 404,
    CheckoutError: 400,
    RemoteFailure: 503,
}


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    status_code = next(
        (code for error_type, code in _ERROR_STATUS.items() if isinstance(exc, error_type)),
        500
    )
    if status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status_code, content={"error": type(exc).__name__, "detail": str(exc)})


@app.exception_handler(404)
async def not_found_handler(request: Request, exc):
    return JSONResponse(
        status_code=404,
        content={"error": "Resource not found", "detail": getattr(exc, "detail", None) or request.url.path}
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "teddy_store.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )

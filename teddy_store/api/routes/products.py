from decimal import Decimal
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from ...exceptions import NotFound
from ...schemas.product import ProductResponse, ProductSort
from ...services.catalog_service import CatalogService
from ..dependencies import get_catalog_service

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=List[ProductResponse])
async def list_products(
        search: Optional[str] = Query(None, description="Поиск по названию и описанию"),
        category: Optional[str] = Query(None, description="Категория или all"),
        min_price: Optional[Decimal] = Query(None, ge=0),
        max_price: Optional[Decimal] = Query(None, ge=0),
        sort: Optional[ProductSort] = Query(None, description="name-asc, name-desc, price-asc, price-desc"),
        catalog: CatalogService = Depends(get_catalog_service)
):
    """Каталог товаров с фильтрами"""
    return await catalog.list_products(
        search=search,
        category=category,
        min_price=min_price,
        max_price=max_price,
        sort=sort
    )


@router.get("/categories", response_model=List[str])
async def list_categories(catalog: CatalogService = Depends(get_catalog_service)):
    """Категории для фильтра"""
    return await catalog.list_categories()


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str, catalog: CatalogService = Depends(get_catalog_service)):
    """Карточка товара"""
    try:
        return await catalog.get_product(product_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Product not found")

"""Catalog routes - read-only products and services"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException

from .. import catalog
from ..catalog import Product, Service

router = APIRouter(prefix="/catalog", tags=["Catalog"])


@router.get("/products", response_model=List[Product])
async def list_products(category: Optional[str] = None):
    return catalog.list_products(category)


@router.get("/products/{product_id}", response_model=Product)
async def get_product(product_id: int):
    product = catalog.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("/services", response_model=List[Service])
async def list_services(category: Optional[str] = None):
    return catalog.list_services(category)


@router.get("/categories")
async def list_categories():
    """Filter values for the products and services pages"""
    return {
        "products": catalog.categories(catalog.PRODUCTS),
        "services": catalog.categories(catalog.SERVICES),
    }

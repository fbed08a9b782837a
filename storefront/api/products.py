from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from storefront.config import Settings
from storefront.models.database import get_db
from storefront.schemas.products import (
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    RestockRequest,
    StockFilter,
)
from storefront.services.products import ProductService
from storefront.api.dependencies import get_app_settings

router = APIRouter()

@router.get("", response_model=List[ProductResponse])
def list_products(
    stock: Optional[StockFilter] = Query(None, description="in_stock, low_stock or out_of_stock"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings)
):
    """
    List products.

    Examples:
    - Storefront listing: /products?stock=in_stock
    - Reorder report: /products?stock=low_stock
    """
    product_service = ProductService(db, settings)
    return [ProductResponse.model_validate(p) for p in product_service.list_products(stock)]

@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    product: ProductCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings)
):
    """Create a new product"""
    product_service = ProductService(db, settings)
    return ProductResponse.model_validate(product_service.create_product(product))

@router.get("/search", response_model=List[ProductResponse])
def search_products(
    q: str = Query(..., min_length=1, description="Search term for product name or description"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings)
):
    """Search products by name or description"""
    product_service = ProductService(db, settings)
    return [ProductResponse.model_validate(p) for p in product_service.search_products(q)]

@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings)
):
    """Get a product by ID"""
    product_service = ProductService(db, settings)
    return ProductResponse.model_validate(product_service.get_product(product_id))

@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    product: ProductUpdate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings)
):
    """Replace a product record"""
    product_service = ProductService(db, settings)
    return ProductResponse.model_validate(product_service.update_product(product_id, product))

@router.post("/{product_id}/restock", response_model=ProductResponse)
def restock_product(
    product_id: int,
    restock: RestockRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings)
):
    """Add units to a product's stock"""
    product_service = ProductService(db, settings)
    return ProductResponse.model_validate(product_service.restock(product_id, restock.quantity))

@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings)
):
    """Delete a product"""
    product_service = ProductService(db, settings)
    product_service.delete_product(product_id)

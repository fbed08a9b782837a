from fastapi import APIRouter, Depends, Header, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional

from storefront.config import Settings
from storefront.models.database import get_db
from storefront.schemas.orders import (
    CheckoutRequest,
    CheckoutResponse,
    OrderDetailResponse,
    OrderItemResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from storefront.services.checkout import OrderCommitCoordinator
from storefront.services.orders import OrderService
from storefront.api.dependencies import get_app_settings

router = APIRouter()

@router.post("", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    checkout: CheckoutRequest,
    response: Response,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings)
):
    """
    Place an order.

    Prices, subtotal, tax and total are recomputed from the catalogue; the
    figures in the request body are ignored. Either the whole order is
    committed (order, items, stock) or nothing is.

    - 422: invalid customer data, empty cart, bad quantity or unknown product
    - 409: not enough stock; change the cart before retrying
    - 503: storage failure; safe to retry with the same Idempotency-Key
    """
    coordinator = OrderCommitCoordinator(db, settings)
    result = coordinator.place_order(checkout, idempotency_key=idempotency_key)
    if result.replayed:
        response.status_code = status.HTTP_200_OK
    return CheckoutResponse(
        order_id=result.order_id,
        order_number=result.order_number,
        message="Order created successfully",
    )

@router.get("", response_model=List[OrderResponse])
def list_orders(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    """
    Get all orders with pagination, newest first.
    """
    order_service = OrderService(db)
    return [OrderResponse.model_validate(order) for order in order_service.list_orders(skip, limit)]

@router.get("/{order_id}", response_model=OrderDetailResponse)
def get_order(
    order_id: int,
    db: Session = Depends(get_db)
):
    """Get an order and its line items"""
    order_service = OrderService(db)
    db_order = order_service.get_order(order_id)
    return OrderDetailResponse(
        order=OrderResponse.model_validate(db_order),
        items=[OrderItemResponse.model_validate(item) for item in db_order.items]
    )

@router.patch("/{order_id}/status")
def update_order_status(
    order_id: int,
    status_update: OrderStatusUpdate,
    db: Session = Depends(get_db)
):
    """
    Update order status (admin).
    Any known status is accepted; transition policy is not enforced here.
    """
    order_service = OrderService(db)
    order_service.update_order_status(order_id, status_update.status)
    return {"success": True, "message": "Order status updated"}

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from storefront.models.orders import OrderStatus

MAX_ITEM_QUANTITY = 10_000

class CustomerInfo(BaseModel):
    name: str
    email: str
    address: str
    city: str
    zip_code: str = Field(..., alias="zipCode")

    model_config = ConfigDict(populate_by_name=True)

class CartItem(BaseModel):
    """
    One cart line as submitted by the browser.
    name and price are informational; checkout reads both from the catalogue.
    """
    id: int
    quantity: int = Field(..., le=MAX_ITEM_QUANTITY)
    name: Optional[str] = None
    price: Optional[Decimal] = None

class CheckoutRequest(BaseModel):
    customer: CustomerInfo
    items: List[CartItem]
    # Client-computed figures, never persisted
    subtotal: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    total: Optional[Decimal] = None

class CheckoutResponse(BaseModel):
    success: bool = True
    order_id: int = Field(..., alias="orderId")
    order_number: str = Field(..., alias="orderNumber")
    message: str

    model_config = ConfigDict(populate_by_name=True)

class OrderItemResponse(BaseModel):
    id: int
    order_id: int
    product_id: int
    product_name: str
    price: Decimal
    quantity: int
    total: Decimal

    model_config = ConfigDict(from_attributes=True)

class OrderResponse(BaseModel):
    id: int
    customer_name: str
    customer_email: str
    customer_address: str
    customer_city: str
    customer_zipcode: str
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class OrderDetailResponse(BaseModel):
    order: OrderResponse
    items: List[OrderItemResponse]

class OrderStatusUpdate(BaseModel):
    status: OrderStatus = Field(..., description="New status for the order")

from pydantic import BaseModel, Field, ConfigDict
from typing import Dict, List, Optional
from datetime import datetime
from enum import Enum
import uuid

from models.payment import PaymentMethod, PaymentResult


class OrderStatus(str, Enum):
    PENDING = "Pending"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class OrderItem(BaseModel):
    """Line item snapshotted from the catalog or cart at checkout."""
    product_id: str
    name: str
    quantity: int = Field(..., ge=1)
    unit_price: float = Field(..., ge=0)
    size: Optional[str] = None
    color: Optional[str] = None
    image: Optional[str] = None

    @property
    def subtotal(self) -> float:
        return self.quantity * self.unit_price


class ShippingAddress(BaseModel):
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid")


class Pricing(BaseModel):
    # Sign and sum checks live in the order store so they surface as ValidationError
    items_total: float
    tax_total: float
    shipping_total: float
    grand_total: float

    model_config = ConfigDict(extra="forbid")


class Order(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    owner_user_id: str
    items: List[OrderItem]
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    pricing: Pricing
    status: OrderStatus = OrderStatus.PENDING
    payment_result: Optional[PaymentResult] = None
    paid_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime
    version: int = 0

    @property
    def is_paid(self) -> bool:
        return self.paid_at is not None


class CheckoutItem(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1)
    size: Optional[str] = None
    color: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class OrderCreateRequest(BaseModel):
    """Checkout body. Items default to the caller's cart when omitted."""
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    items: Optional[List[CheckoutItem]] = None
    pricing: Optional[Pricing] = None

    model_config = ConfigDict(extra="forbid")


class StatusUpdateRequest(BaseModel):
    status: OrderStatus

    model_config = ConfigDict(extra="forbid")


class DailyOrders(BaseModel):
    date: str
    count: int
    sales: float


class OrderStats(BaseModel):
    total_orders: int
    total_revenue: float
    collected_revenue: float
    per_day: List[DailyOrders]
    per_status: Dict[str, int]
    window_days: int

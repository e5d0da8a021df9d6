from pydantic import BaseModel, Field, ConfigDict
from enum import Enum
from datetime import datetime
from typing import Optional


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "Cash-on-Delivery"
    GATEWAY = "Gateway"


class PaymentResult(BaseModel):
    """Settlement facts attached to an order once the gateway payment verifies."""
    external_payment_id: str
    verified_at: datetime
    payer_email: str


class PaymentMethodInfo(BaseModel):
    id: str
    name: str
    description: str
    available: bool


class GatewayIntentRequest(BaseModel):
    amount: float = Field(..., description="Amount in major currency units")
    currency: Optional[str] = None
    receipt: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class GatewayIntent(BaseModel):
    intent_id: str
    amount: int  # minor units
    currency: str
    receipt: str


class PaymentVerificationRequest(BaseModel):
    gateway_order_id: str
    gateway_payment_id: str
    signature: str
    order_id: str

    model_config = ConfigDict(extra="forbid")

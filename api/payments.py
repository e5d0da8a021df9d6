from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.deps import Services, get_current_user, get_services
from models.order import Order
from models.payment import GatewayIntent, GatewayIntentRequest, PaymentMethodInfo, PaymentVerificationRequest
from models.user import Actor

router = APIRouter()


class PaymentVerificationResponse(BaseModel):
    success: bool
    message: str
    order: Order


@router.get("/methods", response_model=List[PaymentMethodInfo])
def payment_methods(services: Services = Depends(get_services)):
    return services.settlement.list_methods()


@router.post("/gateway/create-order", response_model=GatewayIntent)
def create_gateway_order(
    body: GatewayIntentRequest,
    user: Actor = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.settlement.create_gateway_intent(body.amount, body.currency, body.receipt)


@router.post("/gateway/verify", response_model=PaymentVerificationResponse)
def verify_gateway_payment(
    body: PaymentVerificationRequest,
    user: Actor = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    order = services.settlement.verify(
        gateway_order_id=body.gateway_order_id,
        gateway_payment_id=body.gateway_payment_id,
        signature=body.signature,
        order_id=body.order_id,
        payer_email=None,
        actor=user,
    )
    return PaymentVerificationResponse(success=True, message="Payment verified successfully", order=order)

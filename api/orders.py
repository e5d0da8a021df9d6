from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from api.deps import Services, get_current_user, get_services, require_admin
from models.order import Order, OrderCreateRequest, OrderStats, StatusUpdateRequest
from models.user import Actor
from services.export import orders_to_csv

router = APIRouter()


@router.post("", response_model=Order, status_code=status.HTTP_201_CREATED)
def place_order(
    body: OrderCreateRequest,
    user: Actor = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Places an order from the request items or the caller's cart."""
    return services.lifecycle.place_order(user, body)


@router.get("/my", response_model=List[Order])
def my_orders(user: Actor = Depends(get_current_user), services: Services = Depends(get_services)):
    return services.orders.list_by_owner(user.id)


@router.get("/stats", response_model=OrderStats)
def order_stats(
    days: Optional[int] = Query(None, ge=1, le=366),
    admin: Actor = Depends(require_admin),
    services: Services = Depends(get_services),
):
    return services.orders.aggregate(window_days=days or services.settings.stats_window_days)


@router.get("/export/csv")
def export_orders(admin: Actor = Depends(require_admin), services: Services = Depends(get_services)):
    orders = services.lifecycle.list_all(admin)
    owners = services.users.get_many(o.owner_user_id for o in orders)
    return Response(
        content=orders_to_csv(orders, owners),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="orders.csv"'},
    )


@router.get("", response_model=List[Order])
def all_orders(admin: Actor = Depends(require_admin), services: Services = Depends(get_services)):
    return services.lifecycle.list_all(admin)


@router.get("/{order_id}", response_model=Order)
def get_order(order_id: str, user: Actor = Depends(get_current_user), services: Services = Depends(get_services)):
    return services.lifecycle.get_order(order_id, user)


@router.put("/{order_id}/cancel", response_model=Order)
def cancel_order(order_id: str, user: Actor = Depends(get_current_user), services: Services = Depends(get_services)):
    return services.lifecycle.cancel(order_id, user)


@router.put("/{order_id}", response_model=Order)
def update_order_status(
    order_id: str,
    body: StatusUpdateRequest,
    admin: Actor = Depends(require_admin),
    services: Services = Depends(get_services),
):
    return services.lifecycle.update_status(order_id, body.status, admin)

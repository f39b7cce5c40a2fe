"""Order endpoints. Non-admin callers only see and act on their own orders."""
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from ... import models, schemas
from ...dependencies import CurrentUser, get_current_user, get_order_service
from ...errors import AuthorizationError
from ...services import OrderService
from ...utils import envelope

router = APIRouter(prefix="/pedidos", tags=["orders"])

# columns a client may clear by sending null
NULLABLE_FIELDS = ("complement",)


def _order(order) -> schemas.OrderRead:
    return schemas.OrderRead.model_validate(order)


def _owned(service: OrderService, order_id: int, current: CurrentUser) -> models.Order:
    order = service.get_by_id(order_id)
    if not current.is_admin and order.user_id != current.id:
        raise AuthorizationError("access denied")
    return order


def list_filters(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[schemas.OrderStatus] = Query(None),
    client: Optional[str] = Query(None, max_length=100),
) -> schemas.OrderFilters:
    return schemas.OrderFilters(page=page, limit=limit, status=status, client=client)


@router.post("", status_code=201)
def create_order(
    payload: schemas.OrderCreate,
    current: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    order = service.create(payload.model_dump(), user_id=current.id)
    return envelope(data=_order(order), message="order created")


@router.get("")
def list_orders(
    filters: schemas.OrderFilters = Depends(list_filters),
    current: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    if not current.is_admin:
        filters.user_id = current.id
    orders, pagination = service.list(filters)
    return envelope(data=[_order(o) for o in orders], pagination=pagination)


@router.get("/stats")
def order_stats(
    current: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    stats = service.statistics(user_id=None if current.is_admin else current.id)
    return envelope(data=stats)


@router.get("/{order_id}")
def get_order(
    order_id: int = Path(..., ge=1),
    current: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    return envelope(data=_order(_owned(service, order_id, current)))


@router.put("/{order_id}")
def update_order(
    payload: schemas.OrderUpdate,
    order_id: int = Path(..., ge=1),
    current: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    _owned(service, order_id, current)
    patch = {
        k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None or k in NULLABLE_FIELDS
    }
    order = service.update(order_id, patch)
    return envelope(data=_order(order), message="order updated")


@router.patch("/{order_id}/status")
def update_order_status(
    payload: schemas.OrderStatusUpdate,
    order_id: int = Path(..., ge=1),
    current: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    _owned(service, order_id, current)
    order = service.update_status(order_id, payload.status)
    return envelope(data=_order(order), message="order status updated")


@router.delete("/{order_id}")
def delete_order(
    order_id: int = Path(..., ge=1),
    current: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    _owned(service, order_id, current)
    service.delete(order_id)
    return envelope(message="order deleted")

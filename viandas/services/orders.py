"""Order rules: positive prices, the status lifecycle and delete protection."""
import logging
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .. import models
from ..errors import DomainError, NotFoundError
from ..repositories import OrderRepository
from ..schemas import OrderFilters, OrderStatus
from ..utils import paginate

logger = logging.getLogger(__name__)

STATUSES = tuple(s.value for s in OrderStatus)

# pending -> preparing -> ready -> delivered; cancelled from any non-terminal state
TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    "pending": ("preparing", "cancelled"),
    "preparing": ("ready", "cancelled"),
    "ready": ("delivered", "cancelled"),
    "delivered": (),
    "cancelled": (),
}


def _plain(data: dict) -> dict:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in data.items()}


def _check_price(price) -> None:
    try:
        positive = Decimal(str(price)) > 0
    except (InvalidOperation, ValueError):
        positive = False
    if not positive:
        raise DomainError("price must be greater than zero")


class OrderService:
    def __init__(self, orders: OrderRepository):
        self.orders = orders

    def create(self, data: dict, user_id: int) -> models.Order:
        data = _plain(data)
        _check_price(data.get("price"))
        data["status"] = "pending"
        order = self.orders.create(user_id, data)
        logger.info("order %s created by user %s", order.id, user_id)
        return order

    def get_by_id(self, order_id: int) -> models.Order:
        order = self.orders.find_by_id(order_id)
        if not order:
            raise NotFoundError("order not found")
        return order

    def list(self, filters: OrderFilters) -> Tuple[List[models.Order], dict]:
        orders, total = self.orders.find_many(
            page=filters.page,
            limit=filters.limit,
            status=filters.status.value if filters.status else None,
            client=filters.client,
            user_id=filters.user_id,
        )
        return orders, paginate(filters.page, filters.limit, total)

    def update(self, order_id: int, patch: dict) -> models.Order:
        order = self.get_by_id(order_id)
        patch = _plain(patch)
        if "price" in patch:
            _check_price(patch["price"])
        new_status = patch.get("status")
        if new_status is not None and new_status != order.status:
            if new_status not in TRANSITIONS.get(order.status, ()):
                raise DomainError(f"cannot change status from '{order.status}' to '{new_status}'")
        elif "status" in patch:
            patch.pop("status")
        return self.orders.update(order, patch)

    def update_status(self, order_id: int, status: str) -> models.Order:
        status = status.value if isinstance(status, Enum) else status
        if status not in STATUSES:
            raise DomainError("invalid status")
        return self.update(order_id, {"status": status})

    def delete(self, order_id: int) -> None:
        order = self.get_by_id(order_id)
        if order.status == "delivered":
            raise DomainError("delivered orders cannot be deleted")
        self.orders.delete(order)
        logger.info("order %s deleted", order_id)

    def statistics(self, user_id: Optional[int] = None) -> Dict[str, int]:
        return self.orders.count_by_status(user_id=user_id)

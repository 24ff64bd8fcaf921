from __future__ import annotations

from decimal import Decimal
from typing import Any, Protocol

from support_portal.core.catalog import unit_price
from support_portal.core.errors import NotFound, Unauthenticated
from support_portal.core.utils import generate_id, iso_now
from support_portal.infrastructure.logging import get_logger
from support_portal.models.schemas import OrderForm, parse_form
from support_portal.repositories.order_repository import OrderRepository
from support_portal.services.identity_resolver import IdentityResolver

logger = get_logger(__name__)

CENTS = Decimal("0.01")


class OrderNumberGenerator(Protocol):
    def next(self) -> str: ...


def order_total(model: str, quantity: int) -> Decimal:
    return (unit_price(model) * quantity).quantize(CENTS)


class OrderSubmissionService:
    def __init__(
        self,
        *,
        order_repository: OrderRepository,
        order_number_generator: OrderNumberGenerator,
    ) -> None:
        self.order_repository = order_repository
        self.order_number_generator = order_number_generator

    def place_order(self, *, resolver: IdentityResolver, form_data: dict[str, Any]) -> dict[str, Any]:
        form = parse_form(OrderForm, form_data)
        customer_id = self._require_customer(resolver)

        price = unit_price(form.scooterModel)
        total = order_total(form.scooterModel, form.quantity)
        order_number = self.order_number_generator.next()

        now = iso_now()
        order = {
            "id": generate_id("order"),
            "customerId": customer_id,
            "orderNumber": order_number,
            "scooterModel": form.scooterModel,
            "quantity": form.quantity,
            "unitPrice": float(price),
            "totalAmount": float(total),
            "deliveryAddress": form.deliveryAddress,
            "deliveryCity": form.deliveryCity,
            "deliveryPostalCode": form.deliveryPostalCode,
            "deliveryPhone": form.deliveryPhone,
            "notes": form.notes or None,
            "status": "pending",
            "trackingNumber": None,
            "estimatedDeliveryDate": None,
            "createdAt": now,
            "updatedAt": now,
        }
        created = self.order_repository.create(order)
        logger.info("order.created", order_id=created["id"], order_number=order_number, total=str(total))
        return created

    def list_orders(self, *, resolver: IdentityResolver) -> dict[str, Any]:
        customer_id = self._require_customer(resolver)
        return {"orders": self.order_repository.list_by_customer(customer_id)}

    def get_order(self, *, resolver: IdentityResolver, order_id: str) -> dict[str, Any]:
        customer_id = self._require_customer(resolver)
        order = self.order_repository.get(order_id)
        if not order or order.get("customerId") != customer_id:
            raise NotFound("Order not found")
        return order

    @staticmethod
    def _require_customer(resolver: IdentityResolver) -> str:
        customer_id = resolver.resolve_ambient()
        if not customer_id:
            raise Unauthenticated()
        return customer_id

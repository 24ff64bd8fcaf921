from __future__ import annotations

from fastapi import APIRouter, Depends

from support_portal.api.deps import ClientScope, get_client_scope
from support_portal.container import order_submission_service
from support_portal.core.catalog import list_models
from support_portal.models.schemas import CreateOrderRequest

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("/models")
def scooter_models() -> dict[str, object]:
    return {"models": list_models()}


@router.post("", status_code=201)
def create_order(
    payload: CreateOrderRequest,
    scope: ClientScope = Depends(get_client_scope),
) -> dict[str, object]:
    order = order_submission_service.place_order(
        resolver=scope.resolver,
        form_data=payload.model_dump(),
    )
    return {"order": order}


@router.get("")
def list_orders(scope: ClientScope = Depends(get_client_scope)) -> dict[str, object]:
    return order_submission_service.list_orders(resolver=scope.resolver)


@router.get("/{order_id}")
def get_order(order_id: str, scope: ClientScope = Depends(get_client_scope)) -> dict[str, object]:
    return {"order": order_submission_service.get_order(resolver=scope.resolver, order_id=order_id)}

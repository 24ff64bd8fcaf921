from __future__ import annotations

from fastapi import APIRouter, Depends

from support_portal.api.deps import ClientScope, get_client_scope
from support_portal.container import profile_service
from support_portal.models.schemas import UpdateProfileRequest

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("")
def get_profile(scope: ClientScope = Depends(get_client_scope)) -> dict[str, object]:
    return profile_service.get_profile(resolver=scope.resolver)


@router.put("")
def update_profile(
    payload: UpdateProfileRequest,
    scope: ClientScope = Depends(get_client_scope),
) -> dict[str, object]:
    return profile_service.update_profile(
        resolver=scope.resolver,
        display_name=payload.displayName,
        mobile_number=payload.mobileNumber,
    )

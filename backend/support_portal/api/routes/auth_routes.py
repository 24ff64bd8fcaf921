from __future__ import annotations

from fastapi import APIRouter, Depends

from support_portal.api.deps import ClientScope, get_client_scope
from support_portal.container import otp_service
from support_portal.models.schemas import OtpRequest, OtpVerifyRequest

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/otp/request")
def request_otp(payload: OtpRequest) -> dict[str, object]:
    return otp_service.request_otp(payload.phone)


@router.post("/otp/verify")
def verify_otp(payload: OtpVerifyRequest, scope: ClientScope = Depends(get_client_scope)) -> dict[str, object]:
    return otp_service.verify_otp(resolver=scope.resolver, phone=payload.phone, code=payload.otp)


@router.get("/me")
def me(scope: ClientScope = Depends(get_client_scope)) -> dict[str, object]:
    user_id = scope.resolver.resolve_ambient()
    return {"authenticated": user_id is not None, "userId": user_id}


@router.post("/logout")
def logout(scope: ClientScope = Depends(get_client_scope)) -> dict[str, object]:
    scope.resolver.sign_out()
    return {"success": True}

from __future__ import annotations

from typing import Any

from support_portal.core.errors import DuplicatePhone, Unauthenticated, ValidationError
from support_portal.core.utils import is_phone_number
from support_portal.infrastructure.logging import get_logger
from support_portal.repositories.profile_repository import ProfileRepository
from support_portal.services.identity_resolver import IdentityResolver

logger = get_logger(__name__)


class ProfileService:
    def __init__(self, *, profile_repository: ProfileRepository) -> None:
        self.profile_repository = profile_repository

    def get_profile(self, *, resolver: IdentityResolver) -> dict[str, Any]:
        user_id = self._require_user(resolver)
        profile = self.profile_repository.find_by_user_id(user_id)
        return {"profile": profile}

    def update_profile(
        self,
        *,
        resolver: IdentityResolver,
        display_name: str | None,
        mobile_number: str | None,
    ) -> dict[str, Any]:
        user_id = self._require_user(resolver)
        display_name = (display_name or "").strip() or None
        mobile_number = (mobile_number or "").strip() or None

        if mobile_number is not None:
            if not is_phone_number(mobile_number):
                raise ValidationError.for_field("mobileNumber", "Enter a valid mobile number (at least 10 digits).")
            owner = self.profile_repository.find_by_phone(mobile_number)
            if owner is not None and owner.get("userId") != user_id:
                raise DuplicatePhone()

        profile = self.profile_repository.upsert_by_user_id(
            user_id,
            {"displayName": display_name, "mobileNumber": mobile_number},
        )
        logger.info("profile.updated", user_id=user_id)
        return {"profile": profile}

    @staticmethod
    def _require_user(resolver: IdentityResolver) -> str:
        user_id = resolver.resolve_ambient()
        if not user_id:
            raise Unauthenticated()
        return user_id

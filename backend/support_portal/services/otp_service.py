from __future__ import annotations

import time
from typing import Any

from support_portal.core.config import Settings
from support_portal.core.errors import ValidationError
from support_portal.core.utils import is_phone_number
from support_portal.infrastructure.logging import get_logger
from support_portal.services.identity_resolver import IdentityResolver

logger = get_logger(__name__)

OTP_LENGTH = 6


class OtpService:
    """Simulated one-time passcode step in front of phone login.

    Nothing is sent and any six-digit code is accepted; the delay only
    mimics the round trip a real SMS provider would add.
    """

    def __init__(self, *, settings: Settings) -> None:
        self.settings = settings

    def request_otp(self, phone: str) -> dict[str, Any]:
        phone = self._validated_phone(phone)
        self._simulate_delay()
        logger.info("otp.requested", phone_suffix=phone[-4:])
        return {"sent": True, "phone": phone, "codeLength": OTP_LENGTH}

    def verify_otp(self, *, resolver: IdentityResolver, phone: str, code: str) -> dict[str, Any]:
        phone = self._validated_phone(phone)
        code = code.strip()
        if len(code) != OTP_LENGTH or not (code.isascii() and code.isdigit()):
            raise ValidationError.for_field("otp", "Enter the 6-digit code.")
        self._simulate_delay()
        user_id = resolver.resolve_from_phone(phone)
        return {"userId": user_id}

    @staticmethod
    def _validated_phone(phone: str) -> str:
        phone = phone.strip()
        if not is_phone_number(phone):
            raise ValidationError.for_field("phone", "Enter a valid mobile number (at least 10 digits).")
        return phone

    def _simulate_delay(self) -> None:
        if self.settings.otp_simulated_delay_seconds > 0:
            time.sleep(self.settings.otp_simulated_delay_seconds)

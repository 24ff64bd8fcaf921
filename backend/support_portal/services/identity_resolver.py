from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from support_portal.core.errors import DuplicatePhone, IdentityCreationError, PortalError, ValidationError
from support_portal.core.utils import is_phone_number
from support_portal.infrastructure.logging import get_logger
from support_portal.services.auth_backend import AuthSession
from support_portal.services.identity_cache import PersistentMapping, SessionCache

logger = get_logger(__name__)


class AuthBackend(Protocol):
    def create_anonymous_session(self) -> AuthSession: ...

    def current_session(self) -> AuthSession | None: ...

    def sign_out(self) -> None: ...


class ProfileStore(Protocol):
    def find_by_phone(self, phone: str) -> dict[str, Any] | None: ...

    def insert(self, profile: dict[str, Any]) -> dict[str, Any]: ...


@dataclass
class IdentityContext:
    """Client-side identity state for one tab on one device."""

    session_cache: SessionCache
    persistent_mapping: PersistentMapping
    auth_backend: AuthBackend


def default_display_name(phone: str) -> str:
    return f"User {phone[-4:]}"


class IdentityResolver:
    def __init__(self, *, context: IdentityContext, profile_store: ProfileStore) -> None:
        self.context = context
        self.profile_store = profile_store

    def resolve_from_phone(self, phone: str) -> str:
        """Returns the stable identity for `phone`, creating its profile on first sight.

        Both the tab cache and the device mapping are rewritten so later
        ambient lookups resolve to the same identity without a backend call.
        """
        phone = phone.strip()
        if not is_phone_number(phone):
            raise ValidationError.for_field("phone", "Enter a valid mobile number (at least 10 digits).")

        session: AuthSession | None = None
        try:
            existing = self.profile_store.find_by_phone(phone)
            session = self.context.auth_backend.create_anonymous_session()
            identity_id, created = self._establish_identity(phone, existing, session)
            self.context.session_cache.set(identity_id)
            self.context.persistent_mapping.set(phone, identity_id)
        except PortalError as exc:
            logger.warning("identity.resolution_failed", code=exc.code, error=exc.message)
            if session is not None:
                self._discard_attempt()
            raise IdentityCreationError() from exc

        logger.info("identity.resolved", identity_id=identity_id, created=created)
        return identity_id

    def resolve_ambient(self) -> str | None:
        cached = self.context.session_cache.get()
        if cached:
            return cached

        mapped = self.context.persistent_mapping.identity_id()
        if mapped:
            self.context.session_cache.set(mapped)
            return mapped

        session = self.context.auth_backend.current_session()
        if session is not None:
            return session.user_id
        return None

    def sign_out(self) -> None:
        self.context.auth_backend.sign_out()
        self.context.session_cache.clear()
        self.context.persistent_mapping.clear()

    def _discard_attempt(self) -> None:
        # The session issued for a failed login must not resolve as an identity later.
        try:
            self.sign_out()
        except PortalError as exc:
            logger.warning("identity.discard_failed", code=exc.code, error=exc.message)

    def _establish_identity(
        self,
        phone: str,
        existing: dict[str, Any] | None,
        session: AuthSession,
    ) -> tuple[str, bool]:
        if existing is not None:
            return str(existing["userId"]), False

        identity_id = session.user_id
        try:
            self.profile_store.insert(
                {
                    "userId": identity_id,
                    "mobileNumber": phone,
                    "displayName": default_display_name(phone),
                }
            )
        except DuplicatePhone:
            # Another device created the profile first; adopt its identity.
            winner = self.profile_store.find_by_phone(phone)
            if winner is None:
                raise
            logger.info("identity.phone_conflict_resolved", identity_id=winner["userId"])
            return str(winner["userId"]), False
        return identity_id, True

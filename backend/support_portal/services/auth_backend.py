from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from support_portal.core.config import Settings
from support_portal.core.security import InvalidTokenError, create_session_token, decode_session_token
from support_portal.core.utils import generate_id, utc_now
from support_portal.infrastructure.key_value_storage import KeyValueStorage
from support_portal.infrastructure.logging import get_logger
from support_portal.repositories.session_repository import SessionRepository

logger = get_logger(__name__)

AUTH_SESSION_KEY = "authSession"


@dataclass(frozen=True)
class AuthSession:
    session_id: str
    user_id: str
    access_token: str
    expires_at: str


class AnonymousAuthBackend:
    """Issues anonymous sessions for one device.

    The device keeps a signed token naming its session; the session record
    itself lives in the session repository so sign-out can revoke it.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        session_repository: SessionRepository,
        device_storage: KeyValueStorage,
    ) -> None:
        self.settings = settings
        self.session_repository = session_repository
        self.device_storage = device_storage

    def create_anonymous_session(self) -> AuthSession:
        now = utc_now()
        ttl = self.settings.anonymous_session_ttl_seconds
        session_id = generate_id("session")
        user_id = generate_id("user")
        token = create_session_token(
            session_id=session_id,
            user_id=user_id,
            ttl_seconds=ttl,
            secret=self.settings.token_secret,
        )
        expires_at = (now + timedelta(seconds=ttl)).isoformat()
        self.session_repository.create(
            {
                "id": session_id,
                "userId": user_id,
                "anonymous": True,
                "createdAt": now.isoformat(),
                "expiresAt": expires_at,
            }
        )
        self.device_storage.set(AUTH_SESSION_KEY, token)
        logger.info("auth.anonymous_session_created", session_id=session_id)
        return AuthSession(session_id=session_id, user_id=user_id, access_token=token, expires_at=expires_at)

    def current_session(self) -> AuthSession | None:
        token = self.device_storage.get(AUTH_SESSION_KEY)
        if not token:
            return None
        try:
            claims = decode_session_token(token, self.settings.token_secret)
        except InvalidTokenError as exc:
            logger.info("auth.session_token_rejected", reason=str(exc))
            self.device_storage.delete(AUTH_SESSION_KEY)
            return None

        session = self.session_repository.get(str(claims["sid"]))
        if session is None:
            return None
        return AuthSession(
            session_id=str(session["id"]),
            user_id=str(session["userId"]),
            access_token=token,
            expires_at=str(session.get("expiresAt", "")),
        )

    def sign_out(self) -> None:
        current = self.current_session()
        if current is not None:
            self.session_repository.delete(current.session_id)
            logger.info("auth.signed_out", session_id=current.session_id)
        self.device_storage.delete(AUTH_SESSION_KEY)

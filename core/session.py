# core/session.py

from threading import Lock
from typing import Callable, Optional

from core.cache import TTLCache
from core.errors import Unauthenticated
from core.logging_config import logger
from core.recovery import RecoveryFlagService
from core.utils import normalize_email
from models.auth import AuthSession, Identity

# Supabase access tokens live one hour by default; a revoked token only has
# to be remembered for that long.
REVOKED_TOKEN_TTL_SECONDS = 3600


def to_identity(user) -> Optional[Identity]:
    if not user or not getattr(user, "id", None) or not getattr(user, "email", None):
        return None
    return Identity(
        id=str(user.id),
        email=user.email,
        user_metadata=dict(getattr(user, "user_metadata", None) or {}),
    )


class SessionStore:
    """
    Source of truth for "who is asking".

    • current_identity() fails closed: any provider error is "no identity".
    • sign_out() always drops local state, even when Supabase is unreachable,
      and is idempotent per token.
    """

    def __init__(
        self,
        client_factory: Callable,
        recovery: RecoveryFlagService,
        ttl_seconds: int = 60,
        cache: Optional[TTLCache] = None,
        revoked: Optional[TTLCache] = None,
    ):
        self._client_factory = client_factory
        self.recovery = recovery
        self._ttl = ttl_seconds
        self._identities = cache if cache is not None else TTLCache(default_ttl=ttl_seconds)
        self._revoked = revoked if revoked is not None else TTLCache(default_ttl=REVOKED_TOKEN_TTL_SECONDS)
        self._sign_out_lock = Lock()

    # -----------------------------------------------------
    # Login
    # -----------------------------------------------------
    def sign_in(self, email: str, password: str) -> AuthSession:
        email = normalize_email(email)

        client = self._client_factory()
        if not client:
            raise Unauthenticated("Authentication service not configured")

        try:
            response = client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            logger.warning(f"Login attempt failed for {email}: {type(e).__name__}")
            raise Unauthenticated("Invalid email or password")

        session = getattr(response, "session", None)
        identity = to_identity(getattr(response, "user", None))
        if not session or not getattr(session, "access_token", None) or identity is None:
            raise Unauthenticated("Invalid email or password")

        self._identities.set(session.access_token, identity, self._ttl)

        return AuthSession(
            access_token=session.access_token,
            refresh_token=getattr(session, "refresh_token", None),
            expires_in=getattr(session, "expires_in", None),
            identity=identity,
        )

    def remember(self, access_token: str, identity: Identity) -> None:
        """Cache an identity obtained outside sign_in (e.g. a verified recovery link)."""
        self._revoked.pop(access_token)
        self._identities.set(access_token, identity, self._ttl)

    # -----------------------------------------------------
    # Session check
    # -----------------------------------------------------
    def current_identity(self, token: Optional[str]) -> Optional[Identity]:
        if not token:
            return None

        if self._revoked.get(token):
            return None

        cached = self._identities.get(token)
        if cached is not None:
            return cached

        client = self._client_factory()
        if not client:
            logger.error("Session check skipped: Supabase client not configured")
            return None

        try:
            auth_resp = client.auth.get_user(token)
        except Exception as e:
            logger.warning(f"Session check failed: {type(e).__name__}")
            return None

        identity = to_identity(getattr(auth_resp, "user", None))
        if identity is None:
            return None

        self._identities.set(token, identity, self._ttl)
        return identity

    # -----------------------------------------------------
    # Logout
    # -----------------------------------------------------
    def sign_out(self, token: Optional[str]) -> bool:
        """
        Returns True when this call signed the token out, False when it was
        already signed out (no-op success).
        """
        if not token:
            return False

        with self._sign_out_lock:
            if self._revoked.get(token):
                return False
            self._revoked.set(token, True)
            self._identities.pop(token)

        try:
            client = self._client_factory()
            if client:
                client.auth.admin.sign_out(token)
        except Exception as e:
            # Local state is already cleared; the remote session expires on its own.
            logger.warning(f"Remote sign-out failed: {type(e).__name__}: {e}")

        return True

    # -----------------------------------------------------
    # Recovery flag (injected service)
    # -----------------------------------------------------
    def is_recovery(self, identity: Optional[Identity]) -> bool:
        return bool(identity) and self.recovery.is_set(identity.id)

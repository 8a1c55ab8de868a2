# core/recovery.py

"""
Password-recovery flag service.

Supabase Auth emits PASSWORD_RECOVERY while it processes a reset link. That
event can arrive as soon as the auth client exists, before any route has
been registered, so the listener has to be in place first.

Initialization order contract:
    create_app() builds the single RecoveryFlagService instance and calls
    attach() on the auth client BEFORE include_router() runs for any router.
    Routers and the session store receive the instance through
    get_recovery_service(); nothing imports a mutable flag.

A flag is only ever set by a recovery event (or a verified recovery token)
and only ever cleared by a completed reset. It is never rebuilt from
session data, so a cleared flag stays cleared across reloads.
"""

from threading import Lock
from typing import Optional, Set

from core.logging_config import logger

RECOVERY_EVENT = "PASSWORD_RECOVERY"


class RecoveryFlagService:
    def __init__(self):
        self._flags: Set[str] = set()
        self._lock = Lock()
        self._attached_clients: Set[int] = set()

    # -----------------------------------------------------
    # Event subscription
    # -----------------------------------------------------
    def attach(self, auth_client) -> bool:
        """
        Subscribe to auth-state events of a GoTrue client.
        Returns False when this client was already attached.
        """
        if auth_client is None:
            logger.warning("Recovery listener not attached: no auth client")
            return False

        key = id(auth_client)
        with self._lock:
            if key in self._attached_clients:
                return False
            self._attached_clients.add(key)

        auth_client.on_auth_state_change(self.handle_auth_event)
        logger.info("Password recovery listener attached")
        return True

    def handle_auth_event(self, event, session) -> None:
        if str(getattr(event, "value", event)) != RECOVERY_EVENT:
            return

        user = getattr(session, "user", None) if session else None
        user_id = getattr(user, "id", None)
        if not user_id:
            logger.warning("PASSWORD_RECOVERY event without a session user, ignored")
            return

        self.mark(user_id)

    # -----------------------------------------------------
    # Flag access
    # -----------------------------------------------------
    def mark(self, user_id: str) -> None:
        with self._lock:
            self._flags.add(str(user_id))
        logger.info(f"Recovery flow started for user {user_id}")

    def is_set(self, user_id: Optional[str]) -> bool:
        if not user_id:
            return False
        with self._lock:
            return str(user_id) in self._flags

    def clear(self, user_id: str) -> bool:
        with self._lock:
            present = str(user_id) in self._flags
            self._flags.discard(str(user_id))
        if present:
            logger.info(f"Recovery flow completed for user {user_id}")
        return present

    def reset(self) -> None:
        with self._lock:
            self._flags.clear()
            self._attached_clients.clear()


# Process-wide instance; see the initialization order contract above.
_recovery_service: Optional[RecoveryFlagService] = None


def init_recovery_service(auth_client=None) -> RecoveryFlagService:
    """Create (once) and attach the process-wide recovery service."""
    global _recovery_service
    if _recovery_service is None:
        _recovery_service = RecoveryFlagService()
    if auth_client is not None:
        _recovery_service.attach(auth_client)
    return _recovery_service


def get_recovery_service() -> RecoveryFlagService:
    """FastAPI dependency. Fails loudly if the app skipped init_recovery_service()."""
    if _recovery_service is None:
        raise RuntimeError("RecoveryFlagService used before init_recovery_service()")
    return _recovery_service

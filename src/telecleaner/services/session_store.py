"""Session and token persistence plus the authentication gate.

The session (user id + session string) and the bearer token are stored as
three independent keys. Only a complete triple counts as authenticated; a
session without a token has to be silently re-validated first.
"""

import logging
from collections.abc import Awaitable, Callable

from telecleaner.entities import SessionRecord
from telecleaner.exceptions import AuthRequiredError, GatewayError
from telecleaner.protocols import KeyValueStore

logger = logging.getLogger(__name__)

Revalidator = Callable[[SessionRecord], Awaitable[str | None]]


class SessionStore:
    """Thin wrapper over the key-value store for authentication identifiers.

    Writes propagate storage errors (the caller must know a login was not
    persisted); reads degrade to "nothing stored".
    """

    SESSION_KEY = "@telegram_session_string"
    USER_ID_KEY = "@telegram_user_id"
    TOKEN_KEY = "@auth_token"

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def save_session(self, user_id: str, session_string: str) -> None:
        await self._store.set(self.USER_ID_KEY, user_id)
        await self._store.set(self.SESSION_KEY, session_string)

    async def load_session(self) -> dict[str, str] | None:
        """Load the stored session.

        Returns:
            ``{"user_id": ..., "session_string": ...}``, or None if either part is missing
        """
        try:
            user_id, session_string = await self._store.multi_get([self.USER_ID_KEY, self.SESSION_KEY])
        except Exception as e:
            logger.error("Failed to load session: %s", e)
            return None
        if not user_id or not session_string:
            return None
        return {"user_id": user_id, "session_string": session_string}

    async def clear_session(self) -> None:
        await self._store.multi_remove([self.USER_ID_KEY, self.SESSION_KEY])

    async def save_token(self, token: str) -> None:
        await self._store.set(self.TOKEN_KEY, token)

    async def load_token(self) -> str | None:
        try:
            return await self._store.get(self.TOKEN_KEY) or None
        except Exception as e:
            logger.error("Failed to load auth token: %s", e)
            return None

    async def clear_token(self) -> None:
        await self._store.remove(self.TOKEN_KEY)

    async def clear(self) -> None:
        """Forget everything (logout)."""
        await self.clear_session()
        await self.clear_token()


class AuthGate:
    """Single authentication check consumed by the pipelines.

    Example:
        ```python
        gate = AuthGate(session_store, revalidate=gateway.validate_session)
        session = await gate.require_auth()  # raises AuthRequiredError
        ```
    """

    def __init__(self, session_store: SessionStore, revalidate: Revalidator | None = None) -> None:
        """Initialize the gate.

        Args:
            session_store: Where the session and token live (required).
            revalidate: Exchanges a token-less session for a fresh token, or returns None.
        """
        self._sessions = session_store
        self._revalidate = revalidate

    async def require_auth(self) -> SessionRecord:
        """Return the current session or raise.

        Raises:
            AuthRequiredError: If no session is stored, or a token-less session fails re-validation
        """
        session = await self._sessions.load_session()
        if session is None:
            raise AuthRequiredError("No stored session")

        token = await self._sessions.load_token()
        if token:
            return SessionRecord(user_id=session["user_id"], session_string=session["session_string"], token=token)

        if self._revalidate is None:
            raise AuthRequiredError("Session has no auth token")

        logger.info("Session for user %s has no token, re-validating", session["user_id"])
        pending = SessionRecord(user_id=session["user_id"], session_string=session["session_string"], token="")
        try:
            token = await self._revalidate(pending)
        except GatewayError as e:
            raise AuthRequiredError(f"Session re-validation failed: {e}") from e
        if not token:
            raise AuthRequiredError("Session re-validation failed")

        await self._sessions.save_token(token)
        return SessionRecord(user_id=pending.user_id, session_string=pending.session_string, token=token)

    async def is_authenticated(self) -> bool:
        """Check for a complete session without re-validating or raising."""
        session = await self._sessions.load_session()
        return session is not None and bool(await self._sessions.load_token())

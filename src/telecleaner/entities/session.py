"""Session domain entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SessionRecord:
    """Authenticated platform session.

    Attributes:
        user_id: Platform user identifier
        session_string: Opaque session string issued at sign-in
        token: Bearer token for the gateway
    """

    user_id: str
    session_string: str
    token: str

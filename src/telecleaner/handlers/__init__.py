"""HTTP handlers layer.

Handlers convert between DTOs and service calls,
handling HTTP-specific concerns.
"""

from .chat_handler import ChatHandler

__all__ = [
    "ChatHandler",
]

"""Placeholder avatars for chats without a usable photo."""

from telecleaner.entities import ChatType

CHANNEL_GLYPH = "📢"
GROUP_GLYPH = "👥"
MESSAGE_GLYPH = "💬"

IMAGE_PREFIX = "data:image"


def is_image_payload(value: str | None) -> bool:
    """True if ``value`` is an encoded image rather than a placeholder glyph."""
    return bool(value) and value.startswith(IMAGE_PREFIX)


def fallback_avatar(payload: str | None, chat_type: ChatType | str | None, chat_name: str | None) -> str:
    """Pick what to show as a chat's avatar. Never raises, never returns "".

    Args:
        payload: Cached or freshly fetched photo, if any
        chat_type: Chat kind (enum or raw platform string)
        chat_name: Display name

    Returns:
        The payload if present, else a type glyph or the name's initial
    """
    if payload:
        return payload

    kind = chat_type if isinstance(chat_type, ChatType) else ChatType.parse(chat_type)
    if kind is ChatType.CHANNEL:
        return CHANNEL_GLYPH
    if kind.is_group:
        return GROUP_GLYPH

    name = (chat_name or "").strip()
    if kind is ChatType.PRIVATE and name:
        return name[0].upper()
    return MESSAGE_GLYPH

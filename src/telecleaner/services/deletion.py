"""Bulk deletion of the user's own messages."""

import logging
from collections.abc import Iterable
from datetime import datetime, time, timedelta, timezone

from telecleaner.entities import DeletionResult, Message, TimeRange
from telecleaner.exceptions import AuthRequiredError
from telecleaner.protocols import ChatGateway
from telecleaner.services.session_store import AuthGate

logger = logging.getLogger(__name__)


def filter_messages_by_time(
    messages: Iterable[Message],
    time_range: TimeRange,
    start: datetime | None = None,
    end: datetime | None = None,
    now: datetime | None = None,
) -> list[Message]:
    """Keep the messages that fall inside ``time_range``.

    ``CUSTOM`` spans from the start of ``start``'s day to the end of
    ``end``'s day; without both bounds it keeps everything.
    """
    messages = list(messages)
    now = now or datetime.now(timezone.utc)

    if time_range is TimeRange.LAST_DAY:
        cutoff = now - timedelta(days=1)
        return [m for m in messages if m.date >= cutoff]

    if time_range is TimeRange.LAST_WEEK:
        cutoff = now - timedelta(weeks=1)
        return [m for m in messages if m.date >= cutoff]

    if time_range is TimeRange.CUSTOM and start is not None and end is not None:
        start_of_day = datetime.combine(start.date(), time.min, tzinfo=start.tzinfo or timezone.utc)
        end_of_day = datetime.combine(end.date(), time.max, tzinfo=end.tzinfo or timezone.utc)
        return [m for m in messages if start_of_day <= m.date <= end_of_day]

    return messages


class DeletionService:
    """Deletes the user's outgoing messages across several chats."""

    def __init__(self, gateway: ChatGateway, auth_gate: AuthGate, fetch_limit: int = 100) -> None:
        self._gateway = gateway
        self._auth = auth_gate
        self._fetch_limit = fetch_limit

    async def delete_messages(
        self,
        chat_ids: list[str],
        time_range: TimeRange,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> DeletionResult:
        """Delete own messages in ``time_range`` from every chat in ``chat_ids``.

        Chats are processed one after another. A failing chat is recorded in
        the result and the run continues.

        Raises:
            AuthRequiredError: If the session is missing or expires mid-run
        """
        session = await self._auth.require_auth()
        self._gateway.authenticate(session)

        result = DeletionResult()
        for chat_id in chat_ids:
            try:
                messages = await self._gateway.get_messages(chat_id, limit=self._fetch_limit)
                own = [m for m in messages if m.is_outgoing]
                targets = filter_messages_by_time(own, time_range, start=start, end=end)
                if not targets:
                    continue
                result.deleted_count += await self._gateway.delete_messages(chat_id, [m.id for m in targets])
            except AuthRequiredError:
                raise
            except Exception as e:
                logger.error("Failed to delete messages in chat %s: %s", chat_id, e)
                result.record_failure(chat_id, e)

        logger.info(
            "Deleted %d messages across %d chats (%d failed)",
            result.deleted_count,
            len(chat_ids),
            result.failed_count,
        )
        return result

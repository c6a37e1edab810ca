from __future__ import annotations

import datetime
import html
from typing import Iterable

from aiogram import types
from loguru import logger

from wishpool.core import clock
from wishpool.db import Participant, PoolPhase, repo
from wishpool.services.engine import PoolStatus
from wishpool.services.errors import ErrorCode, ValidationError
from wishpool.services.rate_limit import rate_limiter

SLOW_DOWN = "You're doing that too often. Please slow down."
GENERIC_ERROR = "Something went wrong. Please try again later."


def is_organizer(admin_ids: Iterable[int], user_id: int) -> bool:
    return user_id in set(admin_ids)


def check_rate_limit(user_id: int, action: str) -> bool:
    key = f"{user_id}:{action}"
    result = rate_limiter.allow(key)
    return result.allowed


def ensure_participant(session, user: types.User) -> Participant:
    display_name = " ".join(filter(None, [user.first_name, user.last_name])) or None
    return repo.upsert_participant(session, user.id, user.username, display_name)


def format_instant(value: datetime.datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M UTC")


def quote(text: str) -> str:
    return html.escape(text)


def log_handler_exception(action: str, user_id: int | None, chat_id: int | None, error: Exception) -> None:
    logger.bind(action=action, user_id=user_id, chat_id=chat_id).exception(
        "Handler error: {error}", error=str(error)
    )


def parse_deadline(raw: str) -> datetime.datetime:
    """Parse an ISO-8601 datetime or Unix epoch milliseconds."""
    raw = raw.strip()
    try:
        if raw.isdigit():
            return clock.from_epoch_ms(int(raw))
        return datetime.datetime.fromisoformat(raw)
    except (ValueError, OverflowError):
        raise ValidationError(ErrorCode.INVALID_DEADLINE) from None


def format_status(status: PoolStatus) -> str:
    lines = [
        f"Wishes: {status.total_wishes}/{status.capacity}",
        f"Deadline: {format_instant(status.deadline)}",
        f"Round: {status.cycle}",
    ]
    if status.phase == PoolPhase.ASSIGNED:
        lines.append("Pairs are assigned. Use /reveal to see the wish you drew.")
    elif status.now >= status.deadline:
        lines.append("Submissions are closed. Waiting for the organizer to assign pairs.")
    else:
        lines.append("Submissions are open. Send /wish &lt;text&gt; to add your wish.")
    return "\n".join(lines)

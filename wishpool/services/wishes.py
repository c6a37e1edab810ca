from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from wishpool.core import clock
from wishpool.db import PoolConfig, PoolPhase, Wish, repo
from wishpool.services import pool
from wishpool.services.errors import ConflictError, ErrorCode, ValidationError

MAX_WISH_LENGTH = 200

MODE_CREATED = "created"
MODE_UPDATED = "updated"


@dataclass(frozen=True)
class SubmitResult:
    mode: str
    wish: Wish


def normalize_text(text: Optional[str]) -> str:
    return (text or "").strip()


def _validate_text(text: Optional[str]) -> str:
    text = normalize_text(text)
    if not text:
        raise ValidationError(ErrorCode.EMPTY_WISH)
    if len(text) > MAX_WISH_LENGTH:
        raise ValidationError(ErrorCode.WISH_TOO_LONG)
    return text


def _check_gates(config: PoolConfig, now: datetime.datetime) -> None:
    if config.phase != PoolPhase.OPEN:
        raise ConflictError(ErrorCode.ALREADY_ASSIGNED)
    if now >= config.deadline:
        raise ConflictError(ErrorCode.DEADLINE_PASSED)


def get(session, participant_id: int) -> Optional[Wish]:
    return repo.get_wish(session, participant_id)


def count(session) -> int:
    return repo.count_wishes(session)


def clear(session) -> int:
    return repo.clear_wishes(session)


def create(session, participant_id: int, text: str, now: Optional[datetime.datetime] = None) -> Wish:
    now = now or clock.utcnow()
    config = pool.read(session, for_update=True)
    _check_gates(config, now)

    if repo.get_wish(session, participant_id) is not None:
        raise ConflictError(ErrorCode.WISH_EXISTS)
    if repo.count_wishes(session) >= config.capacity:
        raise ConflictError(ErrorCode.POOL_FULL)

    text = _validate_text(text)
    wish = repo.add_wish(session, participant_id, text, now)
    logger.bind(participant_id=participant_id, cycle=config.cycle).info("Wish created")
    return wish


def edit(session, participant_id: int, text: str, now: Optional[datetime.datetime] = None) -> Wish:
    now = now or clock.utcnow()
    config = pool.read(session, for_update=True)
    _check_gates(config, now)

    wish = repo.get_wish(session, participant_id)
    if wish is None:
        raise ConflictError(ErrorCode.NO_WISH)
    if wish.edit_count >= 1:
        raise ConflictError(ErrorCode.EDIT_LIMIT_REACHED)

    wish.text = _validate_text(text)
    wish.edit_count = wish.edit_count + 1
    wish.updated_at = now
    session.flush()
    logger.bind(participant_id=participant_id, cycle=config.cycle).info("Wish edited")
    return wish


def submit(
    session,
    participant_id: int,
    text: str,
    now: Optional[datetime.datetime] = None,
) -> SubmitResult:
    now = now or clock.utcnow()
    config = pool.read(session, for_update=True)
    _check_gates(config, now)

    if repo.get_wish(session, participant_id) is None:
        return SubmitResult(MODE_CREATED, create(session, participant_id, text, now=now))
    return SubmitResult(MODE_UPDATED, edit(session, participant_id, text, now=now))

from __future__ import annotations

import datetime
from typing import Optional

from loguru import logger

from wishpool.core import clock
from wishpool.db import PoolConfig, PoolPhase, repo
from wishpool.services.errors import ConflictError, ErrorCode, ValidationError

MIN_CAPACITY = 2
MAX_CAPACITY = 500
DEFAULT_CAPACITY = 50
DEFAULT_DEADLINE_WINDOW = datetime.timedelta(hours=72)


def default_deadline(
    now: Optional[datetime.datetime] = None,
    window: datetime.timedelta = DEFAULT_DEADLINE_WINDOW,
) -> datetime.datetime:
    return (now or clock.utcnow()) + window


def ensure(
    session,
    capacity: int = DEFAULT_CAPACITY,
    window: datetime.timedelta = DEFAULT_DEADLINE_WINDOW,
    now: Optional[datetime.datetime] = None,
) -> PoolConfig:
    config = repo.get_pool_config(session)
    if config:
        return config
    capacity = validate_capacity(capacity)
    config = repo.create_pool_config(session, capacity, default_deadline(now, window))
    logger.bind(capacity=config.capacity, deadline=config.deadline).info("Pool config created")
    return config


def read(session, for_update: bool = False) -> PoolConfig:
    config = repo.get_pool_config(session, for_update=for_update)
    if config is None:
        ensure(session)
        config = repo.get_pool_config(session, for_update=for_update)
    return config


def validate_capacity(capacity) -> int:
    if isinstance(capacity, bool) or not isinstance(capacity, int):
        raise ValidationError(ErrorCode.INVALID_CAPACITY)
    if capacity < MIN_CAPACITY or capacity > MAX_CAPACITY:
        raise ValidationError(ErrorCode.INVALID_CAPACITY)
    return capacity


def validate_deadline(deadline) -> datetime.datetime:
    if not isinstance(deadline, datetime.datetime):
        raise ValidationError(ErrorCode.INVALID_DEADLINE)
    deadline = clock.to_naive_utc(deadline)
    if deadline < clock.EPOCH:
        raise ValidationError(ErrorCode.INVALID_DEADLINE)
    return deadline


def configure(
    session,
    capacity: Optional[int] = None,
    deadline: Optional[datetime.datetime] = None,
) -> PoolConfig:
    """Partially update capacity and/or deadline.

    Both values are validated before anything is written; phase and cycle are
    never touched.
    """
    if capacity is not None:
        capacity = validate_capacity(capacity)
    if deadline is not None:
        deadline = validate_deadline(deadline)

    config = read(session, for_update=True)
    if capacity is not None:
        config.capacity = capacity
    if deadline is not None:
        config.deadline = deadline
    session.flush()

    logger.bind(capacity=config.capacity, deadline=config.deadline).info("Pool configured")
    return config


def can_submit_or_edit(config: PoolConfig, now: datetime.datetime) -> bool:
    return config.phase == PoolPhase.OPEN and now < config.deadline


def transition_to_assigned(
    session,
    config: PoolConfig,
    now: datetime.datetime,
    seed: Optional[int] = None,
) -> None:
    if not repo.mark_pool_assigned(session, config.cycle, now, seed):
        raise ConflictError(ErrorCode.ALREADY_ASSIGNED)
    session.refresh(config)


def reopen(session, config: PoolConfig, new_deadline: datetime.datetime) -> None:
    config.phase = PoolPhase.OPEN
    config.cycle = config.cycle + 1
    config.deadline = new_deadline
    config.assigned_at = None
    session.flush()

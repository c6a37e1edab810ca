from __future__ import annotations

import datetime
import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

from loguru import logger

from wishpool.core import clock
from wishpool.db import PoolConfig, PoolPhase, Wish, repo
from wishpool.services import pool
from wishpool.services.derangement import derangement
from wishpool.services.errors import AssignmentError, ConflictError, ErrorCode, RevealError


@dataclass(frozen=True)
class PoolStatus:
    total_wishes: int
    capacity: int
    deadline: datetime.datetime
    phase: PoolPhase
    cycle: int
    now: datetime.datetime


@dataclass(frozen=True)
class MyWish:
    wish: Optional[Wish]
    can_create: bool
    can_edit: bool


@dataclass(frozen=True)
class AdminStatus:
    config: PoolConfig
    participants: int
    wishes: int
    assignments: int


@dataclass(frozen=True)
class AssignResult:
    pairs: List[Tuple[int, int]]
    cycle: int
    seed: int


@dataclass(frozen=True)
class RevealResult:
    wish_text: str


def get_status(session, now: Optional[datetime.datetime] = None) -> PoolStatus:
    config = pool.read(session)
    return PoolStatus(
        total_wishes=repo.count_wishes(session),
        capacity=config.capacity,
        deadline=config.deadline,
        phase=config.phase,
        cycle=config.cycle,
        now=now or clock.utcnow(),
    )


def get_my_wish(session, participant_id: int, now: Optional[datetime.datetime] = None) -> MyWish:
    now = now or clock.utcnow()
    config = pool.read(session)
    wish = repo.get_wish(session, participant_id)
    gate_open = pool.can_submit_or_edit(config, now)
    return MyWish(
        wish=wish,
        can_create=wish is None and gate_open,
        can_edit=wish is not None and gate_open and wish.edit_count < 1,
    )


def get_admin_status(session) -> AdminStatus:
    return AdminStatus(
        config=pool.read(session),
        participants=repo.count_participants(session),
        wishes=repo.count_wishes(session),
        assignments=repo.count_assignments(session),
    )


def assign(
    session,
    seed: Optional[int] = None,
    rng: Optional[random.Random] = None,
    now: Optional[datetime.datetime] = None,
) -> AssignResult:
    """Pair every wish owner with another owner's wish and close the pool.

    Runs inside the caller's transaction: if the derangement is infeasible an
    ``AssignmentError`` is raised before anything is written, and any failure
    afterwards rolls back the assignments together with the phase flip.
    """
    now = now or clock.utcnow()
    config = pool.read(session, for_update=True)
    if config.phase == PoolPhase.ASSIGNED:
        raise ConflictError(ErrorCode.ALREADY_ASSIGNED)

    giver_ids = repo.list_wish_owner_ids(session)

    if seed is None:
        seed = random.randint(1, 2**31 - 1)

    receiver_ids = derangement(giver_ids, seed=seed, rng=rng)
    if receiver_ids is None:
        logger.bind(cycle=config.cycle, wishes=len(giver_ids)).warning("Assignment infeasible")
        raise AssignmentError(ErrorCode.NOT_ENOUGH_WISHES)

    pairs = list(zip(giver_ids, receiver_ids))
    repo.clear_assignments(session)
    repo.create_assignments(session, config.cycle, pairs)
    pool.transition_to_assigned(session, config, now, seed=seed)

    logger.bind(cycle=config.cycle, seed=seed, pairs=len(pairs)).info("Assignments generated")
    return AssignResult(pairs=pairs, cycle=config.cycle, seed=seed)


def reveal(session, participant_id: int) -> RevealResult:
    config = pool.read(session)
    if config.phase != PoolPhase.ASSIGNED:
        raise RevealError(ErrorCode.NOT_ASSIGNED)

    assignment = repo.get_assignment_for_giver(session, config.cycle, participant_id)
    if assignment is None:
        raise RevealError(ErrorCode.NO_ASSIGNMENT)

    wish = repo.get_wish(session, assignment.receiver_participant_id)
    if wish is None:
        raise RevealError(ErrorCode.NO_ASSIGNMENT)
    return RevealResult(wish_text=wish.text)


def reset_pool(
    session,
    now: Optional[datetime.datetime] = None,
    window: datetime.timedelta = pool.DEFAULT_DEADLINE_WINDOW,
) -> PoolConfig:
    config = pool.read(session, for_update=True)
    cleared_wishes = repo.clear_wishes(session)
    cleared_assignments = repo.clear_assignments(session)
    pool.reopen(session, config, pool.default_deadline(now, window))

    logger.bind(
        cycle=config.cycle,
        wishes=cleared_wishes,
        assignments=cleared_assignments,
    ).info("Pool reset")
    return config


def reset_all(
    session,
    now: Optional[datetime.datetime] = None,
    window: datetime.timedelta = pool.DEFAULT_DEADLINE_WINDOW,
    capacity: int = pool.DEFAULT_CAPACITY,
) -> PoolConfig:
    capacity = pool.validate_capacity(capacity)
    config = pool.read(session, for_update=True)
    repo.clear_assignments(session)
    repo.clear_wishes(session)
    removed = repo.delete_participants(session)

    config.capacity = capacity
    config.phase = PoolPhase.OPEN
    config.cycle = 1
    config.deadline = pool.default_deadline(now, window)
    config.assigned_at = None
    config.last_assignment_seed = None
    session.flush()

    logger.bind(participants=removed).info("Pool fully reset")
    return config

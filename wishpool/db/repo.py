from __future__ import annotations

import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import and_, delete, func, select, update

from wishpool.db.models import POOL_CONFIG_ID, Assignment, Participant, PoolConfig, PoolPhase, Wish


def get_participant_by_telegram_id(session, telegram_id: int) -> Optional[Participant]:
    return session.scalar(select(Participant).where(Participant.telegram_id == telegram_id))


def get_participant(session, participant_id: int) -> Optional[Participant]:
    return session.get(Participant, participant_id)


def upsert_participant(
    session,
    telegram_id: int,
    telegram_username: Optional[str],
    display_name: Optional[str],
) -> Participant:
    participant = get_participant_by_telegram_id(session, telegram_id)
    if participant:
        participant.telegram_username = telegram_username
        participant.display_name = display_name
        return participant

    participant = Participant(
        telegram_id=telegram_id,
        telegram_username=telegram_username,
        display_name=display_name,
    )
    session.add(participant)
    session.flush()
    return participant


def count_participants(session) -> int:
    return session.scalar(select(func.count()).select_from(Participant))


def delete_participants(session) -> int:
    result = session.execute(delete(Participant))
    return result.rowcount or 0


def get_pool_config(session, for_update: bool = False) -> Optional[PoolConfig]:
    query = select(PoolConfig).where(PoolConfig.id == POOL_CONFIG_ID)
    if for_update:
        query = query.with_for_update()
    return session.scalar(query)


def create_pool_config(session, capacity: int, deadline: datetime.datetime) -> PoolConfig:
    config = PoolConfig(
        id=POOL_CONFIG_ID,
        capacity=capacity,
        deadline=deadline,
        phase=PoolPhase.OPEN,
        cycle=1,
    )
    session.add(config)
    session.flush()
    return config


def mark_pool_assigned(
    session,
    cycle: int,
    assigned_at: datetime.datetime,
    seed: Optional[int],
) -> bool:
    result = session.execute(
        update(PoolConfig)
        .where(
            and_(
                PoolConfig.id == POOL_CONFIG_ID,
                PoolConfig.phase == PoolPhase.OPEN,
                PoolConfig.cycle == cycle,
            )
        )
        .values(phase=PoolPhase.ASSIGNED, assigned_at=assigned_at, last_assignment_seed=seed)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount == 1


def get_wish(session, participant_id: int) -> Optional[Wish]:
    return session.scalar(select(Wish).where(Wish.participant_id == participant_id))


def add_wish(session, participant_id: int, text: str, created_at: datetime.datetime) -> Wish:
    wish = Wish(
        participant_id=participant_id,
        text=text,
        edit_count=0,
        created_at=created_at,
        updated_at=created_at,
    )
    session.add(wish)
    session.flush()
    return wish


def count_wishes(session) -> int:
    return session.scalar(select(func.count()).select_from(Wish))


def list_wishes(session) -> List[Wish]:
    return list(session.scalars(select(Wish).order_by(Wish.participant_id)).all())


def list_wish_owner_ids(session) -> List[int]:
    return list(session.scalars(select(Wish.participant_id).order_by(Wish.participant_id)).all())


def clear_wishes(session) -> int:
    result = session.execute(delete(Wish))
    return result.rowcount or 0


def create_assignments(session, cycle: int, pairs: Iterable[Tuple[int, int]]) -> int:
    rows = [
        Assignment(cycle=cycle, giver_participant_id=giver_id, receiver_participant_id=receiver_id)
        for giver_id, receiver_id in pairs
    ]
    session.add_all(rows)
    session.flush()
    return len(rows)


def get_assignment_for_giver(session, cycle: int, giver_id: int) -> Optional[Assignment]:
    return session.scalar(
        select(Assignment).where(
            and_(Assignment.cycle == cycle, Assignment.giver_participant_id == giver_id)
        )
    )


def list_assignments(session, cycle: int) -> List[Assignment]:
    return list(
        session.scalars(
            select(Assignment)
            .where(Assignment.cycle == cycle)
            .order_by(Assignment.giver_participant_id)
        ).all()
    )


def count_assignments(session) -> int:
    return session.scalar(select(func.count()).select_from(Assignment))


def clear_assignments(session) -> int:
    result = session.execute(delete(Assignment))
    return result.rowcount or 0

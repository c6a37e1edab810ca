from wishpool.db.models import (
    POOL_CONFIG_ID,
    Assignment,
    Base,
    Participant,
    PoolConfig,
    PoolPhase,
    Wish,
)
from wishpool.db.session import SessionLocal, get_session, init_engine

__all__ = [
    "POOL_CONFIG_ID",
    "Assignment",
    "Base",
    "Participant",
    "PoolConfig",
    "PoolPhase",
    "Wish",
    "SessionLocal",
    "get_session",
    "init_engine",
]

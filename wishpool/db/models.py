from __future__ import annotations

import enum

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

POOL_CONFIG_ID = 1


class PoolPhase(str, enum.Enum):
    OPEN = "open"
    ASSIGNED = "assigned"


class Participant(Base):
    __tablename__ = "participants"

    id = Column(Integer, primary_key=True)
    telegram_id = Column(BigInteger, unique=True, nullable=False, index=True)
    telegram_username = Column(String, nullable=True)
    display_name = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    wish = relationship("Wish", back_populates="participant", uselist=False, passive_deletes=True)

    def __repr__(self) -> str:
        return (
            "<Participant(id={0}, telegram_id={1}, username={2})>"
        ).format(self.id, self.telegram_id, self.telegram_username)


class PoolConfig(Base):
    __tablename__ = "pool_config"

    id = Column(Integer, primary_key=True, default=POOL_CONFIG_ID)
    capacity = Column(Integer, nullable=False)
    deadline = Column(DateTime, nullable=False)
    phase = Column(
        Enum(
            PoolPhase,
            name="pool_phase",
            values_callable=lambda phases: [phase.value for phase in phases],
        ),
        nullable=False,
        default=PoolPhase.OPEN,
        server_default=PoolPhase.OPEN.value,
    )
    cycle = Column(Integer, nullable=False, default=1, server_default="1")
    assigned_at = Column(DateTime, nullable=True)
    last_assignment_seed = Column(BigInteger, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("id = 1", name="ck_pool_config_singleton"),
        CheckConstraint("capacity >= 2 AND capacity <= 500", name="ck_pool_config_capacity"),
        CheckConstraint("cycle >= 1", name="ck_pool_config_cycle"),
    )

    def __repr__(self) -> str:
        return (
            f"<PoolConfig(capacity={self.capacity}, deadline={self.deadline}, "
            f"phase={self.phase}, cycle={self.cycle})>"
        )


class Wish(Base):
    __tablename__ = "wishes"

    id = Column(Integer, primary_key=True)
    participant_id = Column(
        Integer,
        ForeignKey("participants.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    text = Column(String(200), nullable=False)
    edit_count = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    participant = relationship("Participant", back_populates="wish")

    __table_args__ = (
        CheckConstraint("edit_count >= 0 AND edit_count <= 1", name="ck_wishes_edit_count"),
    )


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True)
    cycle = Column(Integer, nullable=False)
    giver_participant_id = Column(
        Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False
    )
    receiver_participant_id = Column(
        Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    giver = relationship("Participant", foreign_keys=[giver_participant_id])
    receiver = relationship("Participant", foreign_keys=[receiver_participant_id])

    __table_args__ = (
        UniqueConstraint("cycle", "giver_participant_id", name="uq_assignments_cycle_giver"),
        UniqueConstraint("cycle", "receiver_participant_id", name="uq_assignments_cycle_receiver"),
        CheckConstraint(
            "giver_participant_id <> receiver_participant_id", name="ck_assignments_no_self"
        ),
    )

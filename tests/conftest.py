import datetime

import pytest

from wishpool.db import Base, get_session, init_engine, repo
from wishpool.services import pool

NOW = datetime.datetime(2026, 12, 1, 12, 0, 0)


@pytest.fixture
def db(tmp_path):
    engine = init_engine(f"sqlite+pysqlite:///{tmp_path / 'wishpool.db'}")
    Base.metadata.create_all(engine)
    with get_session() as session:
        pool.ensure(session, now=NOW)
    yield engine
    engine.dispose()


@pytest.fixture
def make_participants(db):
    def _make(count):
        ids = []
        with get_session() as session:
            for index in range(1, count + 1):
                participant = repo.upsert_participant(
                    session, 1000 + index, f"user{index}", f"User {index}"
                )
                ids.append(participant.id)
        return ids

    return _make

import datetime
import random
import threading

import pytest

from wishpool.db import PoolPhase, get_session, repo
from wishpool.services import AssignmentError, ConflictError, ErrorCode, RevealError, engine, pool, wishes

NOW = datetime.datetime(2026, 12, 1, 12, 0, 0)


class IdentityShuffle(random.Random):
    def shuffle(self, x):
        pass


def submit_all(participant_ids, texts):
    with get_session() as session:
        for participant_id, text in zip(participant_ids, texts):
            wishes.submit(session, participant_id, text, now=NOW)


def reveal(participant_id):
    with get_session() as session:
        return engine.reveal(session, participant_id).wish_text


def reveal_error(participant_id):
    with pytest.raises(RevealError) as exc_info:
        reveal(participant_id)
    return exc_info.value.code


def test_scenario_three_participants(make_participants):
    ids = make_participants(3)
    with get_session() as session:
        pool.configure(session, capacity=3)
    submit_all(ids, ["a", "b", "c"])

    with get_session() as session:
        result = engine.assign(session, now=NOW)

    assert sorted(giver for giver, _ in result.pairs) == sorted(ids)
    assert sorted(receiver for _, receiver in result.pairs) == sorted(ids)
    assert all(giver != receiver for giver, receiver in result.pairs)

    own = dict(zip(ids, ["a", "b", "c"]))
    revealed = [reveal(participant_id) for participant_id in ids]
    assert sorted(revealed) == ["a", "b", "c"]
    assert all(text != own[participant_id] for participant_id, text in zip(ids, revealed))

    with get_session() as session:
        rows = repo.list_assignments(session, cycle=1)
        assert {(row.giver_participant_id, row.receiver_participant_id) for row in rows} == set(result.pairs)
        config = pool.read(session)
        assert config.phase == PoolPhase.ASSIGNED
        assert config.assigned_at == NOW
        assert config.last_assignment_seed == result.seed


def test_scenario_single_wish_is_not_enough(make_participants):
    (alice,) = make_participants(1)
    submit_all([alice], ["lonely wish"])

    with pytest.raises(AssignmentError) as exc_info:
        with get_session() as session:
            engine.assign(session, now=NOW)
    assert exc_info.value.code == ErrorCode.NOT_ENOUGH_WISHES

    with get_session() as session:
        config = pool.read(session)
        assert config.phase == PoolPhase.OPEN
        assert config.capacity == 50
        assert config.assigned_at is None
        assert repo.count_assignments(session) == 0


def test_assign_with_no_wishes(db):
    with pytest.raises(AssignmentError):
        with get_session() as session:
            engine.assign(session, now=NOW)


def test_infeasible_draw_leaves_pool_unchanged(make_participants):
    ids = make_participants(3)
    submit_all(ids, ["a", "b", "c"])

    with pytest.raises(AssignmentError) as exc_info:
        with get_session() as session:
            engine.assign(session, rng=IdentityShuffle(), now=NOW)
    assert exc_info.value.code == ErrorCode.NOT_ENOUGH_WISHES

    with get_session() as session:
        assert pool.read(session).phase == PoolPhase.OPEN
        assert repo.count_assignments(session) == 0
        assert wishes.count(session) == 3


def test_assign_twice_is_rejected(make_participants):
    ids = make_participants(4)
    submit_all(ids, ["a", "b", "c", "d"])

    with get_session() as session:
        first = engine.assign(session, now=NOW)

    with pytest.raises(ConflictError) as exc_info:
        with get_session() as session:
            engine.assign(session, now=NOW)
    assert exc_info.value.code == ErrorCode.ALREADY_ASSIGNED

    with get_session() as session:
        rows = repo.list_assignments(session, cycle=1)
        assert {(row.giver_participant_id, row.receiver_participant_id) for row in rows} == set(first.pairs)


def test_assign_is_reproducible_by_seed(make_participants):
    ids = make_participants(6)
    submit_all(ids, ["a", "b", "c", "d", "e", "f"])

    with get_session() as session:
        result = engine.assign(session, seed=77, now=NOW)

    with get_session() as session:
        engine.reset_pool(session, now=NOW)
    submit_all(ids, ["a", "b", "c", "d", "e", "f"])

    with get_session() as session:
        again = engine.assign(session, seed=77, now=NOW)
    assert again.pairs == result.pairs
    assert again.cycle == 2


def test_participants_without_wish_are_not_paired(make_participants):
    alice, bob, carol = make_participants(3)
    submit_all([alice, bob], ["a", "b"])

    with get_session() as session:
        result = engine.assign(session, now=NOW)
    assert sorted(result.pairs) == [(alice, bob), (bob, alice)]

    assert reveal(alice) == "b"
    assert reveal(bob) == "a"
    assert reveal_error(carol) == ErrorCode.NO_ASSIGNMENT


def test_reveal_before_assignment(make_participants):
    (alice,) = make_participants(1)
    submit_all([alice], ["a"])
    assert reveal_error(alice) == ErrorCode.NOT_ASSIGNED


def test_scenario_reset_pool(make_participants):
    ids = make_participants(3)
    submit_all(ids, ["a", "b", "c"])
    with get_session() as session:
        engine.assign(session, now=NOW)

    later = NOW + datetime.timedelta(days=4)
    with get_session() as session:
        engine.reset_pool(session, now=later)

    with get_session() as session:
        config = pool.read(session)
        assert config.phase == PoolPhase.OPEN
        assert config.cycle == 2
        assert config.deadline == later + pool.DEFAULT_DEADLINE_WINDOW
        assert wishes.count(session) == 0
        assert repo.count_assignments(session) == 0
        assert repo.count_participants(session) == 3

    assert reveal_error(ids[0]) == ErrorCode.NOT_ASSIGNED

    with get_session() as session:
        assert wishes.submit(session, ids[0], "fresh start", now=later).mode == wishes.MODE_CREATED


def test_reset_pool_with_custom_window(db):
    window = datetime.timedelta(hours=5)
    with get_session() as session:
        config = engine.reset_pool(session, now=NOW, window=window)
        assert config.deadline == NOW + window


def test_reset_all(make_participants):
    ids = make_participants(3)
    with get_session() as session:
        pool.configure(session, capacity=5)
    submit_all(ids, ["a", "b", "c"])
    with get_session() as session:
        engine.assign(session, now=NOW)
    with get_session() as session:
        engine.reset_pool(session, now=NOW)

    with get_session() as session:
        engine.reset_all(session, now=NOW)

    with get_session() as session:
        config = pool.read(session)
        assert config.capacity == pool.DEFAULT_CAPACITY
        assert config.phase == PoolPhase.OPEN
        assert config.cycle == 1
        assert config.last_assignment_seed is None
        assert config.deadline == NOW + pool.DEFAULT_DEADLINE_WINDOW
        assert repo.count_participants(session) == 0
        assert wishes.count(session) == 0
        assert repo.count_assignments(session) == 0


def test_status_is_stable_without_mutation(make_participants):
    ids = make_participants(2)
    submit_all(ids, ["a", "b"])

    with get_session() as session:
        first = engine.get_status(session, now=NOW)
    with get_session() as session:
        second = engine.get_status(session, now=NOW)

    assert first == second
    assert first.total_wishes == 2
    assert first.capacity == 50
    assert first.phase == PoolPhase.OPEN
    assert first.deadline == NOW + pool.DEFAULT_DEADLINE_WINDOW


def test_my_wish_flags(make_participants):
    alice, bob = make_participants(2)

    with get_session() as session:
        mine = engine.get_my_wish(session, alice, now=NOW)
    assert mine.wish is None and mine.can_create and not mine.can_edit

    submit_all([alice], ["a"])
    with get_session() as session:
        mine = engine.get_my_wish(session, alice, now=NOW)
    assert mine.wish.text == "a" and not mine.can_create and mine.can_edit

    submit_all([alice], ["aa"])
    with get_session() as session:
        mine = engine.get_my_wish(session, alice, now=NOW)
    assert not mine.can_create and not mine.can_edit

    late = NOW + datetime.timedelta(days=30)
    with get_session() as session:
        mine = engine.get_my_wish(session, bob, now=late)
    assert mine.wish is None and not mine.can_create and not mine.can_edit


def test_admin_status_counts(make_participants):
    ids = make_participants(3)
    submit_all(ids[:2], ["a", "b"])
    with get_session() as session:
        engine.assign(session, now=NOW)
    with get_session() as session:
        status = engine.get_admin_status(session)
        assert status.participants == 3
        assert status.wishes == 2
        assert status.assignments == 2
        assert status.config.phase == PoolPhase.ASSIGNED


def test_concurrent_assign_commits_exactly_once(make_participants):
    ids = make_participants(5)
    submit_all(ids, ["a", "b", "c", "d", "e"])

    barrier = threading.Barrier(2)
    outcomes = []
    results = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        try:
            with get_session() as session:
                result = engine.assign(session, now=NOW)
            with lock:
                outcomes.append("ok")
                results.append(result)
        except ConflictError as exc:
            with lock:
                outcomes.append(exc.code)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert outcomes.count("ok") == 1
    assert outcomes.count(ErrorCode.ALREADY_ASSIGNED) == 1

    with get_session() as session:
        rows = repo.list_assignments(session, cycle=1)
        assert len(rows) == 5
        assert {(row.giver_participant_id, row.receiver_participant_id) for row in rows} == set(
            results[0].pairs
        )


def run_concurrently(*targets):
    barrier = threading.Barrier(len(targets))
    outcomes = []
    lock = threading.Lock()

    def wrap(target):
        def worker():
            barrier.wait()
            try:
                outcome = target()
            except (ConflictError, AssignmentError) as exc:
                outcome = exc.code
            with lock:
                outcomes.append(outcome)

        return worker

    threads = [threading.Thread(target=wrap(target)) for target in targets]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return outcomes


def test_concurrent_submits_respect_capacity(make_participants):
    ids = make_participants(6)
    with get_session() as session:
        pool.configure(session, capacity=3)

    def submitter(participant_id):
        def target():
            with get_session() as session:
                return wishes.submit(session, participant_id, f"wish {participant_id}", now=NOW).mode

        return target

    outcomes = run_concurrently(*[submitter(participant_id) for participant_id in ids])

    assert outcomes.count(wishes.MODE_CREATED) == 3
    assert outcomes.count(ErrorCode.POOL_FULL) == 3
    with get_session() as session:
        assert wishes.count(session) == 3


def test_submit_racing_assign_is_paired_or_rejected(make_participants):
    *early, late = make_participants(4)

    def late_submit():
        with get_session() as session:
            return wishes.submit(session, late, "last minute", now=NOW).mode

    def organizer_assign():
        with get_session() as session:
            return engine.assign(session, now=NOW)

    for _ in range(5):
        with get_session() as session:
            engine.reset_pool(session, now=NOW)
        submit_all(early, ["a", "b", "c"])

        outcomes = run_concurrently(late_submit, organizer_assign)
        assert len(outcomes) == 2

        with get_session() as session:
            config = pool.read(session)
            assert config.phase == PoolPhase.ASSIGNED
            owners = set(repo.list_wish_owner_ids(session))
            givers = {row.giver_participant_id for row in repo.list_assignments(session, config.cycle)}
            assert givers == owners

        if wishes.MODE_CREATED in outcomes:
            assert late in givers
        else:
            assert ErrorCode.ALREADY_ASSIGNED in outcomes
            assert late not in owners

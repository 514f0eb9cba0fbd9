# tests/orchestration/test_performance_session.py
from models import PerformanceState
from orchestration.models import PerformanceSession, PerformanceTimings


def test_seen_ids_are_bounded_by_lookback():
    session = PerformanceSession(lookback=50)
    for joke_id in range(1, 121):
        session.record_joke(joke_id)
        assert len(session.seen_joke_ids) <= 50
    assert session.seen_joke_ids[0] == 71
    assert session.exclusion_ids() == set(range(71, 121))


def test_repeated_id_moves_to_most_recent():
    session = PerformanceSession(lookback=3)
    for joke_id in (1, 2, 3, 1):
        session.record_joke(joke_id)
    assert session.seen_joke_ids == [2, 3, 1]
    session.record_joke(4)
    assert session.seen_joke_ids == [3, 1, 4]


def test_outcomes_and_reset():
    session = PerformanceSession()
    original_id = session.session_id
    session.record_outcome(True)
    session.record_outcome(False)
    session.record_outcome(False)
    session.state = PerformanceState.FETCHING
    assert (session.triumphs, session.defeats, session.performances) == (1, 2, 3)

    session.reset()
    assert session.performances == 0
    assert session.seen_joke_ids == []
    assert session.state is PerformanceState.IDLE
    assert session.session_id != original_id


def test_timings_from_settings_use_configured_values():
    timings = PerformanceTimings.from_settings()
    assert timings.setup_dwell == 3.0
    assert timings.network_auto_retry is None

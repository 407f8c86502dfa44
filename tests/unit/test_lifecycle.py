import threading

import pytest

from services.errors import SessionNotFound
from services.lifecycle import SessionLifecycleManager
from storage.models import SessionConfig
from storage.sqlite import to_iso


@pytest.fixture
def manager(store, date_clock):
    return SessionLifecycleManager(store, clock=date_clock)


def _session(store, date_clock, **fields):
    session = store.create_session(
        SessionConfig(job_position="Engineer"), total_questions=3, created_at=to_iso(date_clock())
    )
    if fields:
        session = store.update_session(session.id, **fields)
    return session


def test_is_active_window(manager, store, date_clock):
    session = _session(store, date_clock, status="active", last_activity=to_iso(date_clock()))
    assert manager.is_active(session)
    date_clock.advance(minutes=30)
    assert not manager.is_active(session)
    assert manager.session_status(session).status == "timeout"


def test_extend_revives_expired_window(manager, store, date_clock):
    session = _session(store, date_clock, status="active", last_activity=to_iso(date_clock()))
    date_clock.advance(minutes=45)
    assert not manager.is_active(store.get_session(session.id))

    extended = manager.extend(session.id)

    assert manager.is_active(extended)
    with pytest.raises(SessionNotFound):
        manager.extend("missing")


def test_completed_sessions_count_as_active(manager, store, date_clock):
    session = _session(store, date_clock, status="completed", phase="completed", completed_at=to_iso(date_clock()))
    date_clock.advance(days=2)
    assert manager.is_active(session)
    assert manager.session_status(session).status == "completed"


def test_session_status_reports_minutes_and_expired(manager, store, date_clock):
    active = _session(store, date_clock, status="active", last_activity=to_iso(date_clock()))
    date_clock.advance(minutes=10)
    report = manager.session_status(active)
    assert report.status == "active"
    assert report.minutes_remaining == 20
    assert manager.session_status(_session(store, date_clock)).status == "expired"


def test_recover(manager, store, date_clock):
    live = _session(store, date_clock, status="active", last_activity=to_iso(date_clock()))
    stale = _session(store, date_clock, status="active", last_activity=to_iso(date_clock()))
    done = _session(store, date_clock, status="completed", phase="completed")
    date_clock.advance(minutes=20)
    store.update_session(live.id, last_activity=to_iso(date_clock()))
    date_clock.advance(minutes=15)

    result = manager.recover(live.id)
    assert result.recoverable is True
    assert result.minutes_remaining == 30
    assert result.session.last_activity == to_iso(date_clock())

    assert manager.recover(stale.id).recoverable is False
    assert manager.recover(done.id).recoverable is False
    assert manager.recover("missing").recoverable is False


def test_cleanup_and_archive_never_reopen_completed(manager, store, date_clock):
    stale = _session(store, date_clock, status="active", last_activity=to_iso(date_clock()))
    done = _session(
        store, date_clock, status="completed", phase="completed", completed_at=to_iso(date_clock()),
        last_activity=to_iso(date_clock()),
    )
    date_clock.advance(hours=25)
    assert manager.cleanup_abandoned() == 1
    assert store.get_session(stale.id).abandoned_at == to_iso(date_clock())

    assert manager.archive() == 0
    date_clock.advance(days=90)
    result = manager.sweep_once()
    assert result.archived == 1
    archived = store.get_session(done.id)
    assert archived.status == "completed"
    assert archived.abandoned_at is None
    assert manager.archive(cutoff_days=1) == 0


def test_stats(manager, store, date_clock):
    _session(store, date_clock, status="active", last_activity=to_iso(date_clock()))
    _session(store, date_clock, status="completed", phase="completed")
    old = _session(store, date_clock, status="active", last_activity=to_iso(date_clock()))
    date_clock.advance(minutes=5)
    store.update_session(old.id, last_activity="2024-01-01T00:00:00.000000+00:00")
    assert manager.stats() == {"active": 1, "completed": 1, "abandoned": 0, "timed_out": 1}
    manager.cleanup_abandoned()
    assert manager.stats()["abandoned"] == 1


def test_background_sweeper_runs_and_stops(manager, monkeypatch):
    swept = threading.Event()
    monkeypatch.setattr(manager, "sweep_once", lambda: swept.set())
    manager.start(interval_s=0.01)
    assert manager.running
    assert swept.wait(2.0)
    manager.stop()
    assert not manager.running

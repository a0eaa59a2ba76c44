"""Tests for ExpirySweeper service."""

import asyncio

import pytest

from app.core.clock import FixedClock
from app.core.delegation_repository import DelegationRepository
from app.core.expiry_sweeper import ExpirySweeper
from tests.conftest import utc


@pytest.mark.asyncio
async def test_run_once_expires_ended_delegations(
    session_factory, db_session, approver, delegate, outsider
):
    ended = await DelegationRepository.create(
        db_session, approver.id, delegate.id, utc(2026, 2, 1), utc(2026, 2, 10), "Leave"
    )
    running = await DelegationRepository.create(
        db_session, outsider.id, delegate.id, utc(2026, 2, 1), utc(2026, 3, 1), "Leave"
    )
    await db_session.commit()

    sweeper = ExpirySweeper(session_factory, FixedClock(utc(2026, 2, 15)))
    assert await sweeper.run_once() == 1
    assert await sweeper.run_once() == 0

    ended = await DelegationRepository.get(db_session, ended.id)
    running = await DelegationRepository.get(db_session, running.id)
    assert (ended.is_active, ended.auto_expired) == (False, True)
    assert (running.is_active, running.auto_expired) == (True, False)


@pytest.mark.asyncio
async def test_run_once_updates_metrics(session_factory, db_session, approver, delegate):
    await DelegationRepository.create(
        db_session, approver.id, delegate.id, utc(2026, 2, 1), utc(2026, 2, 10), "Leave"
    )
    await db_session.commit()

    sweeper = ExpirySweeper(session_factory, FixedClock(utc(2026, 2, 5)))
    assert await sweeper.run_once() == 0
    assert await sweeper.run_once(at=utc(2026, 2, 11)) == 1

    metrics = sweeper.get_metrics()
    assert metrics["runs_total"] == 2
    assert metrics["expired_total"] == 1
    assert metrics["failed_total"] == 0
    assert metrics["last_run_at"] == utc(2026, 2, 11)


@pytest.mark.asyncio
async def test_get_metrics_initial():
    sweeper = ExpirySweeper(session_factory=None)

    assert sweeper.get_metrics() == {
        "runs_total": 0,
        "expired_total": 0,
        "failed_total": 0,
        "last_run_at": None,
    }
    assert sweeper.running is False


@pytest.mark.asyncio
async def test_start_runs_immediately_and_stop_cancels(session_factory):
    sweeper = ExpirySweeper(
        session_factory, FixedClock(utc(2026, 2, 5)), interval_seconds=3600
    )

    await sweeper.start()
    assert sweeper.running is True
    for _ in range(50):
        if sweeper.metrics["runs_total"]:
            break
        await asyncio.sleep(0.01)

    await sweeper.stop()
    assert sweeper.running is False
    assert sweeper.metrics["runs_total"] == 1


@pytest.mark.asyncio
async def test_failed_sweep_does_not_kill_loop():
    """A sweep that raises is counted and the loop keeps going."""
    attempts = []

    def broken_factory():
        attempts.append(1)
        raise RuntimeError("database unavailable")

    sweeper = ExpirySweeper(
        broken_factory, FixedClock(utc(2026, 2, 5)), interval_seconds=0.01
    )
    await sweeper.start()
    for _ in range(100):
        if len(attempts) >= 2:
            break
        await asyncio.sleep(0.01)
    await sweeper.stop()

    assert len(attempts) >= 2
    assert sweeper.metrics["failed_total"] >= 2
    assert sweeper.metrics["runs_total"] == 0

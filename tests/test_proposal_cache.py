# ruff: noqa: INP001

from __future__ import annotations

import asyncio

import pytest
from conftest import FakeClock

from trip_roster.services.roster.proposals import ProposalCache, run_proposal_sweeper


def test_put_then_get_returns_live_proposal(fake_clock: FakeClock) -> None:
    cache = ProposalCache(ttl_seconds=600, clock=fake_clock)
    cache.put("trip", roster_ids=["a", "b"], waitlist_ids=["c"])

    fake_clock.advance(599)
    proposal = cache.get("trip")

    assert proposal is not None
    assert proposal.roster_ids == ("a", "b")
    assert proposal.waitlist_ids == ("c",)


def test_expired_proposal_is_absent_and_evicted(fake_clock: FakeClock) -> None:
    cache = ProposalCache(ttl_seconds=600, clock=fake_clock)
    cache.put("trip", roster_ids=["a"], waitlist_ids=[])

    fake_clock.advance(601)

    assert cache.get("trip") is None
    assert len(cache) == 0


def test_put_replaces_earlier_proposal(fake_clock: FakeClock) -> None:
    cache = ProposalCache(clock=fake_clock)
    cache.put("trip", roster_ids=["a"], waitlist_ids=["b"])
    cache.put("trip", roster_ids=["b"], waitlist_ids=["a"])

    proposal = cache.get("trip")
    assert proposal is not None
    assert proposal.roster_ids == ("b",)
    assert len(cache) == 1


def test_delete_reports_whether_anything_was_removed(fake_clock: FakeClock) -> None:
    cache = ProposalCache(clock=fake_clock)
    cache.put("trip", roster_ids=["a"], waitlist_ids=[])

    assert cache.delete("trip") is True
    assert cache.delete("trip") is False


def test_take_if_match_removes_on_match(fake_clock: FakeClock) -> None:
    cache = ProposalCache(clock=fake_clock)
    cache.put("trip", roster_ids=["a"], waitlist_ids=[])

    proposal, taken = cache.take_if_match("trip", lambda _: True)

    assert taken is True
    assert proposal is not None
    assert cache.get("trip") is None


def test_take_if_match_keeps_rejected_proposal(fake_clock: FakeClock) -> None:
    cache = ProposalCache(clock=fake_clock)
    cache.put("trip", roster_ids=["a"], waitlist_ids=[])

    proposal, taken = cache.take_if_match("trip", lambda _: False)

    assert taken is False
    assert proposal is not None
    assert cache.get("trip") is not None


def test_take_if_match_on_missing_trip(fake_clock: FakeClock) -> None:
    cache = ProposalCache(clock=fake_clock)

    assert cache.take_if_match("trip", lambda _: True) == (None, False)


def test_sweep_removes_only_expired_entries(fake_clock: FakeClock) -> None:
    cache = ProposalCache(ttl_seconds=600, clock=fake_clock)
    cache.put("old", roster_ids=["a"], waitlist_ids=[])
    fake_clock.advance(300)
    cache.put("new", roster_ids=["b"], waitlist_ids=[])
    fake_clock.advance(301)

    removed = cache.sweep_expired()

    assert removed == 1
    assert cache.get("old") is None
    assert cache.get("new") is not None


@pytest.mark.asyncio
async def test_sweeper_runs_until_cancelled(fake_clock: FakeClock) -> None:
    cache = ProposalCache(ttl_seconds=1, clock=fake_clock)
    cache.put("trip", roster_ids=["a"], waitlist_ids=[])
    fake_clock.advance(5)

    task = asyncio.create_task(run_proposal_sweeper(cache, interval_seconds=0.01))
    for _ in range(50):
        if len(cache) == 0:
            break
        await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(cache) == 0

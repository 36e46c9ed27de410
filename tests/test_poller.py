import asyncio
import gc

import pytest

from streamwatch import UNSET, Duration, Poller
from streamwatch.poller import _ABANDONED


async def noop_fetch():
    return None


@pytest.mark.asyncio
@pytest.mark.parametrize("every", [0, -1, 1.5, True, None])
async def test_every_must_be_positive_int(every):
    with pytest.raises(TypeError, match="`every` must be a positive integer"):
        Poller(fn=noop_fetch, callback=print, every=every)


@pytest.mark.asyncio
async def test_validates_callables_and_flag():
    with pytest.raises(TypeError, match="`fn` is required"):
        Poller(fn=None, callback=print, every=10)
    with pytest.raises(TypeError, match="`fn` must be a function"):
        Poller(fn=1, callback=print, every=10)
    with pytest.raises(TypeError, match="`callback` is required"):
        Poller(fn=noop_fetch, callback=None, every=10)
    with pytest.raises(TypeError, match="`callback` must be a function"):
        Poller(fn=noop_fetch, callback="x", every=10)
    with pytest.raises(TypeError, match="`immediately` must be a boolean"):
        Poller(fn=noop_fetch, callback=print, every=10, immediately=1)


def test_requires_running_loop():
    with pytest.raises(RuntimeError):
        Poller(fn=noop_fetch, callback=print, every=10)


@pytest.mark.asyncio
async def test_waits_for_first_interval():
    results = []

    async def fetch():
        return "live"

    poller = Poller(fn=fetch, callback=results.append, every=Duration.ms(30))
    assert poller.scheduled and not poller.in_flight
    await asyncio.sleep(0.01)
    assert results == []
    await asyncio.sleep(0.05)
    assert results[:1] == ["live"]
    poller.destroy()


@pytest.mark.asyncio
async def test_immediately_polls_at_once():
    results = []

    async def fetch():
        return "live"

    poller = Poller(fn=fetch, callback=results.append, every=Duration.second(10), immediately=True)
    assert poller.in_flight and not poller.scheduled
    await asyncio.sleep(0.01)
    assert results == ["live"]
    # next poll is a full interval away
    assert poller.scheduled and not poller.in_flight
    poller.destroy()
    assert not poller.scheduled


@pytest.mark.asyncio
async def test_one_fetch_in_flight_at_a_time():
    release = asyncio.Event()
    calls = 0
    results = []

    async def slow_fetch():
        nonlocal calls
        calls += 1
        await release.wait()
        return calls

    poller = Poller(fn=slow_fetch, callback=results.append, every=Duration.ms(5), immediately=True)
    await asyncio.sleep(0.05)
    assert calls == 1
    assert poller.in_flight and not poller.scheduled

    release.set()
    await asyncio.sleep(0.01)
    # overdue, so the next fetch starts right away
    assert results[:1] == [1]
    assert calls >= 2
    poller.destroy()


@pytest.mark.asyncio
async def test_destroy_during_fetch_suppresses_callback():
    release = asyncio.Event()
    results = []

    async def slow_fetch():
        await release.wait()
        return "live"

    poller = Poller(fn=slow_fetch, callback=results.append, every=Duration.ms(5), immediately=True)
    await asyncio.sleep(0)
    poller.destroy()
    release.set()
    await asyncio.sleep(0.03)
    assert results == []
    assert poller.destroyed
    assert not poller.in_flight and not poller.scheduled


@pytest.mark.asyncio
async def test_none_is_delivered_unset_is_dropped():
    answers = [None, UNSET, "live"]
    results = []

    async def fetch():
        return answers.pop(0) if answers else UNSET

    poller = Poller(fn=fetch, callback=results.append, every=Duration.ms(5), immediately=True)
    await asyncio.sleep(0.1)
    poller.destroy()
    assert results == [None, "live"]


@pytest.mark.asyncio
async def test_failures_do_not_stop_polling():
    attempts = 0
    results = []

    async def flaky():
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise RuntimeError("boom")
        return "live"

    poller = Poller(fn=flaky, callback=results.append, every=Duration.ms(5), immediately=True)
    await asyncio.sleep(0.1)
    poller.destroy()
    assert attempts >= 2
    assert results[:1] == ["live"]


@pytest.mark.asyncio
async def test_abandoned_fetch_survives_garbage_collection():
    release = asyncio.Event()
    finished = []
    results = []

    async def slow_fetch():
        await release.wait()
        finished.append(True)
        return "live"

    poller = Poller(fn=slow_fetch, callback=results.append, every=Duration.ms(5), immediately=True)
    await asyncio.sleep(0)
    task = poller._task
    poller.destroy()
    del poller
    gc.collect()
    assert task in _ABANDONED

    release.set()
    await asyncio.sleep(0.01)
    assert finished == [True]
    assert task not in _ABANDONED
    assert results == []

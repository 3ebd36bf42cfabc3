import asyncio

from miniflix.player import BestEffortDispatcher

from .helpers import run, settle


def test_successful_writes_are_counted():
    async def scenario():
        dispatcher = BestEffortDispatcher(max_pending=4)
        sent = []

        async def send():
            sent.append(1)

        dispatcher.submit(send, label="heartbeat")
        dispatcher.submit(send, label="heartbeat")
        await dispatcher.drain()
        return dispatcher, sent

    dispatcher, sent = run(scenario())

    assert len(sent) == 2
    assert dispatcher.sent == 2
    assert dispatcher.pending == 0


def test_failures_are_counted_not_raised():
    async def scenario():
        dispatcher = BestEffortDispatcher(max_pending=4)

        async def send():
            raise ConnectionError("offline")

        task = dispatcher.submit(send, label="final-position")
        await dispatcher.drain()
        return dispatcher, task

    dispatcher, task = run(scenario())

    assert dispatcher.failed == 1
    assert task.exception() is None


def test_writes_beyond_max_pending_are_dropped():
    async def scenario():
        dispatcher = BestEffortDispatcher(max_pending=2)
        gate = asyncio.Event()
        sent = []

        async def send():
            await gate.wait()
            sent.append(1)

        tasks = [dispatcher.submit(send, label="heartbeat") for _ in range(3)]
        await settle()
        pending = dispatcher.pending
        gate.set()
        await dispatcher.drain()

        # capacity frees up once in-flight writes finish
        later = dispatcher.submit(send, label="heartbeat")
        await dispatcher.drain()
        return dispatcher, tasks, pending, later, sent

    dispatcher, tasks, pending, later, sent = run(scenario())

    assert tasks[2] is None
    assert pending == 2
    assert dispatcher.dropped == 1
    assert later is not None
    assert len(sent) == 3


def test_cancelled_writes_stay_cancelled():
    async def scenario():
        dispatcher = BestEffortDispatcher(max_pending=2)

        async def send():
            await asyncio.Event().wait()

        task = dispatcher.submit(send, label="heartbeat")
        await settle()
        task.cancel()
        await asyncio.wait({task})
        return dispatcher, task

    dispatcher, task = run(scenario())

    assert task.cancelled()
    assert dispatcher.failed == 0
    assert dispatcher.pending == 0

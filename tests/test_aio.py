"""
Tests for asyncio integration: AsyncioTurn delivery and watch().
"""

import asyncio

import pytest

from overlaytreelib import TreeContext
from overlaytreelib.aio import AsyncioTurn, watch
from overlaytreelib.observe import SchedulerState
from overlaytreelib.testing import RecordingObserver


@pytest.fixture
def context():
    return TreeContext(turn=AsyncioTurn())


class TestAsyncioTurn:
    """Deliveries happen on the next loop iteration."""

    @pytest.mark.asyncio
    async def test_delivery_after_yield(self, context):
        recorder = RecordingObserver()
        observer = context.create_observer(recorder)
        root = context.create_element('root')
        observer.subscribe(root, childList=True)

        context.mutator.append(root, context.create_element('a'))
        context.mutator.append(root, context.create_element('b'))
        assert recorder.call_count == 0

        await asyncio.sleep(0)

        assert recorder.call_count == 1
        assert len(recorder.batches[0]) == 2
        assert not context.scheduler.turn.armed

    @pytest.mark.asyncio
    async def test_explicit_flush_cancels_pending_callback(self, context):
        recorder = RecordingObserver()
        observer = context.create_observer(recorder)
        root = context.create_element('root')
        observer.subscribe(root, childList=True)
        context.mutator.append(root, context.create_element('a'))

        assert context.flush() == 1
        await asyncio.sleep(0)

        assert recorder.call_count == 1
        assert context.scheduler.flush_count == 1

    @pytest.mark.asyncio
    async def test_callback_mutation_delivered_in_same_flush(self, context):
        log = []
        root = context.create_element('root')

        def mutate_once(records, observer):
            log.append(len(records))
            if len(log) == 1:
                context.mutator.append(root, context.create_element('again'))

        observer = context.create_observer(mutate_once)
        observer.subscribe(root, childList=True)
        context.mutator.append(root, context.create_element('a'))

        await asyncio.sleep(0)

        assert log == [1, 1]
        assert context.scheduler.flush_count == 1
        assert not context.scheduler.turn.armed

    def test_arm_without_running_loop(self):
        turn = AsyncioTurn()
        with pytest.raises(RuntimeError):
            turn.arm(lambda: None)

    def test_failed_arm_does_not_stall_delivery(self, context):
        recorder = RecordingObserver()
        observer = context.create_observer(recorder)
        root = context.create_element('root')
        observer.subscribe(root, childList=True)

        with pytest.raises(RuntimeError):
            context.mutator.append(root, context.create_element('outside'))
        assert context.scheduler.state is SchedulerState.IDLE
        assert not context.scheduler.turn.armed

        async def mutate_in_loop():
            context.mutator.append(root, context.create_element('inside'))
            await asyncio.sleep(0)

        asyncio.run(mutate_in_loop())

        assert recorder.call_count == 1
        assert [r.added_nodes[0].name for r in recorder.batches[0]] == ['outside', 'inside']
        assert context.scheduler.state is SchedulerState.IDLE

    def test_explicit_loop(self):
        loop = asyncio.new_event_loop()
        try:
            calls = []
            turn = AsyncioTurn(loop=loop)
            turn.arm(lambda: calls.append(1))
            assert turn.armed

            loop.run_until_complete(asyncio.sleep(0))

            assert calls == [1]
            assert not turn.armed
        finally:
            loop.close()


class TestWatch:
    """Async iteration over delivered batches."""

    @pytest.mark.asyncio
    async def test_yields_batches(self, context):
        root = context.create_element('root')
        batches = watch(context, root, childList=True, subtree=True)

        pending = asyncio.ensure_future(batches.__anext__())
        await asyncio.sleep(0)
        child = context.create_element('child')
        context.mutator.append(root, child)

        records = await asyncio.wait_for(pending, timeout=1)

        record, = records
        assert record.added_nodes == (child,)
        await batches.aclose()

    @pytest.mark.asyncio
    async def test_close_unsubscribes(self, context):
        root = context.create_element('root')
        batches = watch(context, root, {'childList': True})

        pending = asyncio.ensure_future(batches.__anext__())
        await asyncio.sleep(0)
        assert len(context.registry.registrations_for(root)) == 1

        context.mutator.append(root, context.create_element('a'))
        await asyncio.wait_for(pending, timeout=1)
        await batches.aclose()

        assert context.registry.registrations_for(root) == []

    @pytest.mark.asyncio
    async def test_async_for(self, context):
        root = context.create_element('root')
        seen = []

        async def consume():
            async for records in watch(context, root, childList=True):
                seen.extend(records)
                if len(seen) >= 2:
                    break

        task = asyncio.ensure_future(consume())
        await asyncio.sleep(0)
        context.mutator.append(root, context.create_element('a'))
        await asyncio.sleep(0)
        context.mutator.append(root, context.create_element('b'))
        await asyncio.wait_for(task, timeout=1)

        assert [r.added_nodes[0].name for r in seen] == ['a', 'b']

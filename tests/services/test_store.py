import asyncio
import pytest
from dataclasses import FrozenInstanceError

from services.errors import FetchError
from services.query import derive_view
from services.store import CategoryStore, StoreState
from tests.helpers import FakeRemote, make_category

pytestmark = pytest.mark.asyncio


class TestCategoryStore:
    """Tests for CategoryStore."""

    async def test_empty_before_first_refresh(self, store):
        assert store.current_snapshot() == ()
        assert store.state is StoreState.UNINITIALIZED

    async def test_refresh_replaces_snapshot(self, store, sample_categories):
        result = await store.refresh()

        assert result.ok is True
        assert result.applied is True
        assert list(store.current_snapshot()) == sample_categories
        assert store.state is StoreState.READY

    async def test_snapshot_is_immutable(self, store):
        await store.refresh()

        assert isinstance(store.current_snapshot(), tuple)

    async def test_refresh_replaces_rather_than_merges(self, store, fake_remote):
        await store.refresh()
        fake_remote.categories = [make_category("Only")]

        await store.refresh()

        assert [c.name for c in store.current_snapshot()] == ["Only"]

    async def test_failed_refresh_keeps_previous_snapshot(self, store, fake_remote):
        await store.refresh()
        before = store.current_snapshot()
        fake_remote.fail_list = True

        result = await store.refresh()

        assert result.ok is False
        assert isinstance(result.error, FetchError)
        assert store.current_snapshot() == before
        assert store.state is StoreState.READY
        assert store.is_stale is True
        assert store.last_error is result.error

    async def test_successful_refresh_clears_stale(self, store, fake_remote):
        await store.refresh()
        fake_remote.fail_list = True
        await store.refresh()
        fake_remote.fail_list = False

        await store.refresh()

        assert store.is_stale is False
        assert store.last_error is None

    async def test_failed_first_refresh_stays_uninitialized(self, store, fake_remote):
        fake_remote.fail_list = True

        result = await store.refresh()

        assert result.ok is False
        assert store.current_snapshot() == ()
        assert store.state is StoreState.UNINITIALIZED

    async def test_unexpected_exception_is_reported_as_fetch_error(self):
        class BrokenRemote(FakeRemote):
            async def list_categories(self):
                raise RuntimeError("connection reset")

        store = CategoryStore(BrokenRemote())

        result = await store.refresh()

        assert result.ok is False
        assert isinstance(result.error, FetchError)
        assert isinstance(result.error.cause, RuntimeError)

    async def test_loading_while_refresh_in_flight(self):
        gate = asyncio.Event()
        remote = FakeRemote()
        remote.script_list([make_category("A")], gate)
        store = CategoryStore(remote)

        task = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)

        assert store.state is StoreState.LOADING

        gate.set()
        await task

        assert store.state is StoreState.READY

    async def test_later_issued_refresh_wins_when_earlier_completes_last(self):
        first_gate = asyncio.Event()
        second_gate = asyncio.Event()
        first = [make_category("First")]
        second = [make_category("Second")]
        remote = FakeRemote()
        remote.script_list(first, first_gate)
        remote.script_list(second, second_gate)
        store = CategoryStore(remote)

        first_task = asyncio.create_task(store.refresh())
        second_task = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)

        second_gate.set()
        second_result = await second_task
        first_gate.set()
        first_result = await first_task

        assert second_result.applied is True
        assert first_result.ok is True
        assert first_result.applied is False
        assert list(store.current_snapshot()) == second

    async def test_refreshes_completing_in_order_apply_both(self):
        first_gate = asyncio.Event()
        second_gate = asyncio.Event()
        remote = FakeRemote()
        remote.script_list([make_category("First")], first_gate)
        remote.script_list([make_category("Second")], second_gate)
        store = CategoryStore(remote)

        first_task = asyncio.create_task(store.refresh())
        second_task = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)

        first_gate.set()
        assert (await first_task).applied is True
        assert [c.name for c in store.current_snapshot()] == ["First"]

        second_gate.set()
        assert (await second_task).applied is True
        assert [c.name for c in store.current_snapshot()] == ["Second"]

    async def test_subscribers_receive_new_snapshot(self, store, sample_categories):
        received = []
        store.subscribe(received.append)

        await store.refresh()

        assert received == [tuple(sample_categories)]

    async def test_unsubscribe(self, store):
        received = []
        unsubscribe = store.subscribe(received.append)
        unsubscribe()

        await store.refresh()

        assert received == []

    async def test_failing_subscriber_does_not_break_refresh(self, store):
        def broken(snapshot):
            raise RuntimeError("render failed")

        store.subscribe(broken)

        result = await store.refresh()

        assert result.ok is True

    async def test_refresh_completing_after_close_is_discarded(self):
        gate = asyncio.Event()
        remote = FakeRemote()
        remote.script_list([make_category("Late")], gate)
        store = CategoryStore(remote)

        task = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)
        store.close()
        gate.set()
        result = await task

        assert result.applied is False
        assert store.current_snapshot() == ()


class TestSnapshotIsReadOnly:
    """Records handed out by the store cannot be changed by callers."""

    async def test_view_records_are_frozen(self, store):
        await store.refresh()
        view = derive_view(store.current_snapshot(), "", "game_count", "desc")

        with pytest.raises(FrozenInstanceError):
            view[0].game_count = 99

        assert store.current_snapshot()[0].game_count == 5


class TestSupersededFailures:
    """Failures of refreshes that lost the ordering race."""

    async def test_superseded_failure_does_not_mark_stale(self):
        class OrderedRemote(FakeRemote):
            def __init__(self):
                super().__init__()
                self.first_gate = asyncio.Event()
                self.count = 0

            async def list_categories(self):
                self.count += 1
                if self.count == 1:
                    await self.first_gate.wait()
                    raise FetchError("timed out")
                return [make_category("Fresh")]

        remote = OrderedRemote()
        store = CategoryStore(remote)

        first_task = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)
        second_result = await store.refresh()
        remote.first_gate.set()
        first_result = await first_task

        assert second_result.applied is True
        assert first_result.ok is False
        assert store.is_stale is False
        assert store.last_error is None
        assert [c.name for c in store.current_snapshot()] == ["Fresh"]

    async def test_later_failure_while_earlier_in_flight(self):
        class OrderedRemote(FakeRemote):
            def __init__(self):
                super().__init__()
                self.first_gate = asyncio.Event()
                self.count = 0

            async def list_categories(self):
                self.count += 1
                if self.count == 1:
                    await self.first_gate.wait()
                    return [make_category("Slow")]
                raise FetchError("backend unavailable")

        remote = OrderedRemote()
        store = CategoryStore(remote)

        first_task = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)
        second_result = await store.refresh()

        assert second_result.ok is False
        assert store.is_stale is True
        assert store.state is StoreState.LOADING

        remote.first_gate.set()
        first_result = await first_task

        assert first_result.applied is True
        assert [c.name for c in store.current_snapshot()] == ["Slow"]
        assert store.is_stale is False
        assert store.state is StoreState.READY

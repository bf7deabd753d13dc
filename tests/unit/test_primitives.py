"""Unit tests for the cache, event bus, worklist and worker pool."""

import asyncio

import pytest

from content_hub.agent.cache import TTLCache
from content_hub.agent.concurrency import process_concurrently
from content_hub.agent.events import EventBus, EventType
from content_hub.agent.state import ContentItem, GeneratedContent, ItemStatus
from content_hub.agent.worklist import Worklist


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestTTLCache:
    """Tests for TTLCache."""

    def test_hit_within_ttl(self):
        clock = FakeClock()
        cache = TTLCache(ttl_seconds=3600, clock=clock)
        cache.set("sk-compost", ["soil"])

        clock.now = 3599
        assert cache.get("sk-compost") == ["soil"]
        assert "sk-compost" in cache

    def test_expired_entry_is_miss(self):
        """Entries older than the TTL are dropped on read."""
        clock = FakeClock()
        cache = TTLCache(ttl_seconds=3600, clock=clock)
        cache.set("serp-compost", {"x": 1})

        clock.now = 3600
        assert cache.get("serp-compost") is None
        assert len(cache) == 0

    def test_last_write_wins(self):
        cache = TTLCache(clock=FakeClock())
        cache.set("k", 1)
        cache.set("k", 2)
        assert cache.get("k") == 2

    def test_unknown_key(self):
        assert TTLCache().get("missing") is None


class TestEventBus:
    """Tests for EventBus."""

    def test_subscribe_and_unsubscribe(self):
        bus = EventBus()
        seen = []
        unsubscribe = bus.subscribe(seen.append)

        bus.emit(EventType.STATUS, "a", "Stage 1/5: Analyzing Topic...")
        unsubscribe()
        bus.emit(EventType.STATUS, "a", "ignored")

        assert [e.message for e in seen] == ["Stage 1/5: Analyzing Topic..."]
        assert len(bus.history) == 2

    def test_history_keeps_latest_events(self):
        bus = EventBus(history_size=3)

        for i in range(5):
            bus.emit(EventType.PROGRESS, message=f"{i}/5")

        assert [e.message for e in bus.history] == ["2/5", "3/5", "4/5"]

    def test_failing_handler_does_not_break_publish(self):
        bus = EventBus()
        seen = []

        def broken(event):
            raise RuntimeError("observer bug")

        bus.subscribe(broken)
        bus.subscribe(seen.append)
        bus.emit(EventType.PROGRESS, message="1/2", completed=1, total=2)

        assert seen[0].data == {"completed": 1, "total": 2}

    @pytest.mark.asyncio
    async def test_queue_receives_events_until_closed(self):
        bus = EventBus()
        queue = bus.queue()

        bus.emit(EventType.ITEM_COMPLETED, "a", "Completed")
        bus.close()

        assert (await queue.get()).type == EventType.ITEM_COMPLETED
        assert await queue.get() is None


class TestWorklist:
    """Tests for Worklist."""

    def test_set_items_resets_state(self):
        """A fresh plan starts every item idle without content."""
        item = ContentItem(
            id="a", title="A", status=ItemStatus.DONE, status_text="Completed",
            generated_content=GeneratedContent(title="A", slug="a"),
        )
        worklist = Worklist([item])

        stored = worklist.get("a")
        assert stored.status == ItemStatus.IDLE
        assert stored.status_text == "Not Started"
        assert stored.generated_content is None

    def test_updates_replace_by_identity(self):
        worklist = Worklist([ContentItem(id="a", title="A"), ContentItem(id="b", title="B")])
        before = worklist.get("a")

        worklist.update_status("a", ItemStatus.GENERATING, "Initializing...")

        assert before.status == ItemStatus.IDLE
        assert worklist.get("a").status_text == "Initializing..."
        assert [i.id for i in worklist] == ["a", "b"]

    def test_set_content_and_partial(self):
        worklist = Worklist([ContentItem(id="a", title="A"), ContentItem(id="b", title="B")])
        content = GeneratedContent(title="A", slug="a")

        worklist.set_content("a", content)
        worklist.attach_partial("b", content, "Word count too low: 120")

        assert worklist.get("a").status == ItemStatus.DONE
        assert worklist.get("a").status_text == "Completed"
        assert worklist.get("b").status == ItemStatus.ERROR
        assert worklist.get("b").generated_content == content

    def test_unknown_item(self):
        assert Worklist().update_status("nope", ItemStatus.DONE, "x") is None


class TestProcessConcurrently:
    """Tests for process_concurrently function."""

    @pytest.mark.asyncio
    async def test_respects_concurrency_limit(self):
        in_flight = 0
        peak = 0
        progress = []

        async def processor(item):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1

        done = await process_concurrently(
            range(6), processor, concurrency=2, on_progress=lambda c, t: progress.append((c, t)),
        )

        assert done == 6
        assert peak == 2
        assert progress[-1] == (6, 6)

    @pytest.mark.asyncio
    async def test_items_start_in_order(self):
        started = []

        async def processor(item):
            started.append(item)

        await process_concurrently(["a", "b", "c"], processor, concurrency=3)
        assert started == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_stop_skips_queued_items(self):
        """Once stop is requested no new item is started."""
        processed = []
        stop = False

        async def processor(item):
            nonlocal stop
            processed.append(item)
            stop = True

        done = await process_concurrently(range(5), processor, concurrency=1, should_stop=lambda: stop)

        assert processed == [0]
        assert done == 1

    @pytest.mark.asyncio
    async def test_empty_input(self):
        async def processor(item):
            raise AssertionError("should not run")

        assert await process_concurrently([], processor, concurrency=3) == 0

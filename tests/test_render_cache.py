"""
Tests for the shared render cache and render slots.
"""

import asyncio

import pytest

from apollo.errors import RenderEngineError
from apollo.viewer import AsyncRenderCache, RenderOutcome, RenderSlot


class CountingEngine:
    def __init__(self):
        self.calls: list[str] = []

    async def render(self, text: str) -> str:
        self.calls.append(text)
        await asyncio.sleep(0.01)
        if text == "bad":
            raise ValueError("cannot render bad")
        return f"<b>{text}</b>"


def make_cache(engine=None, delay: float = 0.0):
    engine = engine or CountingEngine()
    builds = []

    async def factory():
        builds.append(1)
        await asyncio.sleep(delay)
        return engine

    return AsyncRenderCache("test", factory), engine, builds


class TestSingleFlight:
    """Concurrent requests share engine builds and render work."""

    def test_same_key_renders_once(self):
        cache, engine, builds = make_cache(delay=0.01)

        async def scenario():
            return await asyncio.gather(*(
                cache.render("k", lambda e: e.render("x")) for _ in range(10)
            ))

        outcomes = asyncio.run(scenario())
        assert all(o.markup == "<b>x</b>" for o in outcomes)
        assert engine.calls == ["x"]
        assert builds == [1]

    def test_distinct_keys_share_engine(self):
        cache, engine, builds = make_cache(delay=0.01)

        async def scenario():
            return await asyncio.gather(*(
                cache.render(f"k{i}", lambda e, i=i: e.render(str(i))) for i in range(5)
            ))

        outcomes = asyncio.run(scenario())
        assert [o.markup for o in outcomes] == [f"<b>{i}</b>" for i in range(5)]
        assert sorted(engine.calls) == [str(i) for i in range(5)]
        assert builds == [1]
        assert cache.stats().engine_builds == 1

    def test_cached_result_reused(self):
        cache, engine, _ = make_cache()

        async def scenario():
            await cache.render("k", lambda e: e.render("x"))
            return await cache.render("k", lambda e: e.render("x"))

        outcome = asyncio.run(scenario())
        assert outcome.ok
        assert engine.calls == ["x"]
        assert cache.stats().hits == 1
        assert cache.peek("k") == RenderOutcome(markup="<b>x</b>")

    def test_cancelled_consumer_does_not_cancel_render(self):
        cache, engine, _ = make_cache()

        async def scenario():
            waiter = asyncio.ensure_future(cache.render("k", lambda e: e.render("x")))
            await asyncio.sleep(0)
            waiter.cancel()
            return await cache.render("k", lambda e: e.render("x"))

        outcome = asyncio.run(scenario())
        assert outcome.markup == "<b>x</b>"
        assert engine.calls == ["x"]


class TestFailures:
    """Render and engine failures."""

    def test_failure_recorded_for_key_only(self):
        cache, engine, _ = make_cache()

        async def scenario():
            return await asyncio.gather(
                cache.render("bad", lambda e: e.render("bad")),
                cache.render("good", lambda e: e.render("good")),
            )

        bad, good = asyncio.run(scenario())
        assert bad.markup is None
        assert "cannot render bad" in bad.error
        assert good.markup == "<b>good</b>"
        assert cache.stats().failures == 1

    def test_failure_not_retried_by_default(self):
        cache, engine, _ = make_cache()

        async def scenario():
            await cache.render("bad", lambda e: e.render("bad"))
            return await cache.render("bad", lambda e: e.render("bad"))

        outcome = asyncio.run(scenario())
        assert not outcome.ok
        assert engine.calls == ["bad"]

    def test_retry_failed(self):
        cache, engine, _ = make_cache()

        async def scenario():
            await cache.render("k", lambda e: e.render("bad"))
            return await cache.render("k", lambda e: e.render("fixed"), retry_failed=True)

        outcome = asyncio.run(scenario())
        assert outcome.markup == "<b>fixed</b>"

    def test_forget_allows_recompute(self):
        cache, engine, _ = make_cache()

        async def scenario():
            await cache.render("k", lambda e: e.render("x"))
            cache.forget("k")
            await cache.render("k", lambda e: e.render("x"))

        asyncio.run(scenario())
        assert engine.calls == ["x", "x"]

    def test_engine_failure_allows_retry(self):
        attempts = []

        async def factory():
            attempts.append(1)
            if len(attempts) == 1:
                raise OSError("engine missing")
            return CountingEngine()

        cache = AsyncRenderCache("flaky", factory)

        async def scenario():
            with pytest.raises(RenderEngineError):
                await cache.engine()
            first = await cache.render("k", lambda e: e.render("x"))
            return first

        outcome = asyncio.run(scenario())
        assert outcome.markup == "<b>x</b>"
        assert len(attempts) == 2
        assert cache.engine_ready

    def test_engine_failure_marks_key_failed(self):
        async def factory():
            raise OSError("engine missing")

        cache = AsyncRenderCache("broken", factory)
        outcome = asyncio.run(cache.render("k", lambda e: e.render("x")))
        assert outcome.markup is None
        assert "engine missing" in outcome.error


class TestRenderSlot:
    """Consumer-side staleness."""

    def test_stale_result_discarded(self):
        slot = RenderSlot()
        slot.request("a")
        slot.request("b")
        assert slot.apply("a", RenderOutcome(markup="A")) is False
        assert slot.is_loading
        assert slot.apply("b", RenderOutcome(markup="B")) is True
        assert slot.outcome.markup == "B"
        assert not slot.is_loading

    def test_load_after_navigation(self):
        cache, _, _ = make_cache()
        slot = RenderSlot()

        async def scenario():
            first = asyncio.ensure_future(slot.load(cache, "a", lambda e: e.render("a")))
            await asyncio.sleep(0)
            second = await slot.load(cache, "b", lambda e: e.render("b"))
            return await first, second

        first, second = asyncio.run(scenario())
        assert first is None
        assert second.markup == "<b>b</b>"
        assert slot.key == "b"
        # The abandoned result is still cached for whoever asks next
        assert cache.peek("a").markup == "<b>a</b>"

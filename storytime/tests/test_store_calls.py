"""
Tests for executor-bound store calls and service-level retries.
"""

import time

import pytest

from storytime.config import config
from storytime.discovery import FeedPolicy
from storytime.discovery.store_calls import run_store_call
from storytime.errors import StoreTimeoutError, UpstreamQueryError, is_retryable
from storytime.services import DiscoveryService


class TestRunStoreCall:
    """Tests for the timeout wrapper."""

    @pytest.mark.asyncio
    async def test_returns_result(self):
        assert await run_store_call(lambda: 42, 1.0, "stories") == 42

    @pytest.mark.asyncio
    async def test_slow_call_times_out(self):
        with pytest.raises(StoreTimeoutError, match="stories query timed out") as excinfo:
            await run_store_call(lambda: time.sleep(0.5), 0.01, "stories")
        assert excinfo.value.source == "stories"
        assert is_retryable(excinfo.value)

    @pytest.mark.asyncio
    async def test_store_errors_pass_through(self):
        def broken():
            raise UpstreamQueryError("no such table", source="reactions")

        with pytest.raises(UpstreamQueryError, match="no such table"):
            await run_store_call(broken, 1.0, "reactions")


class TestServiceRetries:
    """Retryable store errors are retried on feed builds."""

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, test_db, add_story, clock, monkeypatch):
        story_id = add_story()
        original = test_db.stories.query
        calls = []

        def flaky(story_query):
            calls.append(story_query)
            if len(calls) == 1:
                raise StoreTimeoutError("database is locked", source="stories")
            return original(story_query)

        monkeypatch.setattr(test_db.stories, "query", flaky)
        items = await DiscoveryService(test_db, clock=clock).list_discovery_feed(FeedPolicy())

        assert len(calls) == 2
        assert [item.id for item in items] == [story_id]

    @pytest.mark.asyncio
    async def test_gives_up_after_configured_attempts(self, test_db, add_story, clock, monkeypatch):
        add_story()
        calls = []

        def locked(story_query):
            calls.append(story_query)
            raise StoreTimeoutError("database is locked", source="stories")

        monkeypatch.setattr(test_db.stories, "query", locked)
        with pytest.raises(StoreTimeoutError):
            await DiscoveryService(test_db, clock=clock).list_discovery_feed(FeedPolicy())
        assert len(calls) == max(config.STORE_RETRY_ATTEMPTS, 1)

    @pytest.mark.asyncio
    async def test_query_errors_are_not_retried(self, test_db, add_story, clock, monkeypatch):
        add_story()
        calls = []

        def broken(story_query):
            calls.append(story_query)
            raise UpstreamQueryError("no such column: status", source="stories")

        monkeypatch.setattr(test_db.stories, "query", broken)
        with pytest.raises(UpstreamQueryError):
            await DiscoveryService(test_db, clock=clock).list_discovery_feed(FeedPolicy())
        assert len(calls) == 1

"""
Tests for the discovery query service.
"""

from datetime import timedelta

import pytest

from storytime.database.models import DBStory
from storytime.discovery import DiscoveryFilters, DiscoveryQueryService
from storytime.discovery.query import NO_SYNOPSIS, UNKNOWN_AUTHOR, extract_synopsis, resolve_author_name
from storytime.errors import StoryNotFoundError, UpstreamQueryError

from .conftest import NOW


def ids(items):
    return [item.id for item in items]


def make_story(**fields) -> DBStory:
    values = dict(
        id="s1", title="Story", slug="story", body="", length_class="flash",
        reading_time=3, genre="Fantasy", status="published", published_at=NOW,
    )
    values.update(fields)
    return DBStory(**values)


class TestSynopsis:
    """Tests for synopsis extraction."""

    def test_prefers_explicit_synopsis(self):
        story = make_story(synopsis_1="  A short pitch.  ", body="Body text. More.")
        assert extract_synopsis(story) == "A short pitch."

    def test_first_sentence_of_body(self):
        story = make_story(body="It was\n\n a dark night!  Then morning came.")
        assert extract_synopsis(story) == "It was a dark night!"

    def test_long_sentence_truncated(self):
        story = make_story(body="word " * 60)
        synopsis = extract_synopsis(story)
        assert len(synopsis) == 140
        assert synopsis.endswith("...")

    def test_empty_body(self):
        assert extract_synopsis(make_story(body="   ")) == NO_SYNOPSIS


class TestAuthorName:
    """Tests for author name resolution."""

    def test_public_domain_uses_original_author(self):
        story = make_story(is_public_domain=True, original_author="Edgar Allan Poe", author_id="p1")
        assert resolve_author_name(story, {"p1": "Uploader"}) == "Edgar Allan Poe"

    def test_public_domain_without_original_author(self):
        story = make_story(is_public_domain=True)
        assert resolve_author_name(story, {}) == UNKNOWN_AUTHOR

    def test_profile_display_name(self):
        story = make_story(author_id="p1")
        assert resolve_author_name(story, {"p1": "Ada"}) == "Ada"

    def test_missing_profile_or_name(self):
        assert resolve_author_name(make_story(author_id="p1"), {}) == UNKNOWN_AUTHOR
        assert resolve_author_name(make_story(author_id="p1"), {"p1": None}) == UNKNOWN_AUTHOR
        assert resolve_author_name(make_story(), {}) == UNKNOWN_AUTHOR


class TestFetchDiscoveryItems:
    """Tests for fetch_discovery_items."""

    @pytest.mark.asyncio
    async def test_end_to_end_algo_scenario(self, test_db, add_story, add_signals, clock):
        story_a = add_story("A", "flash", days_ago=0.1)
        story_b = add_story("B", "short", days_ago=10)
        story_c = add_story("C", "storytime", days_ago=40)
        add_signals(story_a, opens=10, completes=8, likes=2)
        add_signals(story_b, opens=4, completes=1)
        add_signals(story_c, opens=50, completes=45, likes=20)

        service = DiscoveryQueryService(test_db, clock=clock)
        items = await service.fetch_discovery_items(DiscoveryFilters(mode="algo", since_days=180))

        assert ids(items) == [story_a, story_b, story_c]
        scores = {item.id: item.score for item in items}
        assert scores[story_a] == pytest.approx(94.4)
        assert scores[story_b] == pytest.approx(32.0)
        assert scores[story_c] == pytest.approx(114.0)
        rates = {item.id: item.metrics.completion_rate for item in items}
        assert rates == {
            story_a: pytest.approx(0.8),
            story_b: pytest.approx(0.25),
            story_c: pytest.approx(0.9),
        }

    @pytest.mark.asyncio
    async def test_newest_orders_by_publish_date(self, test_db, add_story, add_signals, clock):
        older = add_story(days_ago=9)
        newest = add_story(days_ago=1)
        middle = add_story(days_ago=4)
        add_signals(older, opens=10, completes=10)

        items = await DiscoveryQueryService(test_db, clock=clock).fetch_discovery_items()
        assert ids(items) == [newest, middle, older]

    @pytest.mark.asyncio
    async def test_unknown_mode_behaves_as_newest(self, test_db, add_story, clock):
        older = add_story(days_ago=9)
        newer = add_story(days_ago=1)
        items = await DiscoveryQueryService(test_db, clock=clock).fetch_discovery_items(
            DiscoveryFilters(mode="trending")
        )
        assert ids(items) == [newer, older]

    @pytest.mark.asyncio
    async def test_only_published_stories(self, test_db, add_story, clock):
        published = add_story()
        add_story(status="draft", published_at=None)
        add_story(status="hidden")
        items = await DiscoveryQueryService(test_db, clock=clock).fetch_discovery_items()
        assert ids(items) == [published]

    @pytest.mark.asyncio
    async def test_text_search(self, test_db, add_story, clock):
        dragon = add_story("The Dragon's Bargain")
        add_story("Quiet Harbor", synopsis_1="A lighthouse tale.")
        mystery = add_story("Harbor Lights", genre="Mystery")
        service = DiscoveryQueryService(test_db, clock=clock)

        assert ids(await service.fetch_discovery_items(DiscoveryFilters(query="DRAGON"))) == [dragon]
        assert ids(await service.fetch_discovery_items(DiscoveryFilters(query="mystery"))) == [mystery]
        assert len(await service.fetch_discovery_items(DiscoveryFilters(query="lighthouse"))) == 1

    @pytest.mark.asyncio
    async def test_text_search_folds_non_ascii_case(self, test_db, add_story, clock):
        elan = add_story("Élan of the Night")
        street = add_story("Die Straße", synopsis_1="Ein Märchen über Ölmühlen.")
        add_story("Plain Title")
        service = DiscoveryQueryService(test_db, clock=clock)

        for query in ("élan", "ÉLAN", "Élan"):
            assert ids(await service.fetch_discovery_items(DiscoveryFilters(query=query))) == [elan]
        assert ids(await service.fetch_discovery_items(DiscoveryFilters(query="STRASSE"))) == [street]
        assert ids(await service.fetch_discovery_items(DiscoveryFilters(query="ölmühlen"))) == [street]

    @pytest.mark.asyncio
    async def test_wildcards_stripped_from_search(self, test_db, add_story, clock):
        add_story("First")
        add_story("Second")
        service = DiscoveryQueryService(test_db, clock=clock)
        # Only wildcards means no text filter at all
        assert len(await service.fetch_discovery_items(DiscoveryFilters(query="%_%"))) == 2
        assert await service.fetch_discovery_items(DiscoveryFilters(query="fir%st_")) != []

    @pytest.mark.asyncio
    async def test_public_domain_genre_and_length_filters(self, test_db, add_story, clock):
        classic = add_story(
            "The Raven", "short", genre="Horror",
            is_public_domain=True, original_author="Edgar Allan Poe",
        )
        add_story("Modern", "short", genre="Horror")
        add_story("Elsewhere", "flash", genre="Fantasy")
        service = DiscoveryQueryService(test_db, clock=clock)

        public = await service.fetch_discovery_items(DiscoveryFilters(only_public_domain=True))
        assert ids(public) == [classic]
        assert public[0].author_name == "Edgar Allan Poe"

        horror = await service.fetch_discovery_items(DiscoveryFilters(genre="Horror"))
        assert len(horror) == 2
        flash = await service.fetch_discovery_items(DiscoveryFilters(length_class="flash"))
        assert [item.length_class for item in flash] == ["flash"]

    @pytest.mark.asyncio
    async def test_limit(self, test_db, add_story, clock):
        for days in range(5):
            add_story(days_ago=days + 1)
        items = await DiscoveryQueryService(test_db, clock=clock).fetch_discovery_items(
            DiscoveryFilters(limit=3)
        )
        assert len(items) == 3

    @pytest.mark.asyncio
    async def test_author_names(self, test_db, add_story, clock):
        author_id = test_db.add_profile("Ada Writer")
        nameless_id = test_db.add_profile(None)
        named = add_story(author_id=author_id, days_ago=1)
        nameless = add_story(author_id=nameless_id, days_ago=2)
        orphan = add_story(days_ago=3)

        items = await DiscoveryQueryService(test_db, clock=clock).fetch_discovery_items()
        names = {item.id: item.author_name for item in items}
        assert names == {named: "Ada Writer", nameless: UNKNOWN_AUTHOR, orphan: UNKNOWN_AUTHOR}

    @pytest.mark.asyncio
    async def test_profile_failure_degrades(self, test_db, add_story, clock, monkeypatch):
        author_id = test_db.add_profile("Ada Writer")
        story_id = add_story(author_id=author_id)

        def broken(*args, **kwargs):
            raise UpstreamQueryError("profiles unavailable", source="profiles")

        monkeypatch.setattr(test_db.profiles, "get_display_names", broken)
        items = await DiscoveryQueryService(test_db, clock=clock).fetch_discovery_items()

        assert ids(items) == [story_id]
        assert items[0].author_name == UNKNOWN_AUTHOR

    @pytest.mark.asyncio
    async def test_story_query_failure_is_fatal(self, test_db, add_story, clock, monkeypatch):
        add_story()

        def broken(*args, **kwargs):
            raise UpstreamQueryError("relation stories does not exist", source="stories")

        monkeypatch.setattr(test_db.stories, "query", broken)
        with pytest.raises(UpstreamQueryError, match="relation stories does not exist"):
            await DiscoveryQueryService(test_db, clock=clock).fetch_discovery_items()


class TestFetchByStoryIds:
    """Tests for fetch_discovery_items_by_story_ids."""

    @pytest.mark.asyncio
    async def test_preserves_caller_order(self, test_db, add_story, clock):
        a = add_story(days_ago=1)
        b = add_story(days_ago=5)
        c = add_story(days_ago=3)
        items = await DiscoveryQueryService(test_db, clock=clock).fetch_discovery_items_by_story_ids(
            [b, a, c]
        )
        assert ids(items) == [b, a, c]

    @pytest.mark.asyncio
    async def test_skips_missing_unpublished_and_duplicates(self, test_db, add_story, clock):
        a = add_story()
        draft = add_story(status="draft", published_at=None)
        items = await DiscoveryQueryService(test_db, clock=clock).fetch_discovery_items_by_story_ids(
            ["missing", a, draft, a, ""]
        )
        assert ids(items) == [a]

    @pytest.mark.asyncio
    async def test_empty(self, test_db, clock):
        service = DiscoveryQueryService(test_db, clock=clock)
        assert await service.fetch_discovery_items_by_story_ids([]) == []


class TestFetchStory:
    """Tests for fetch_story."""

    @pytest.mark.asyncio
    async def test_by_slug(self, test_db, add_story, add_signals, clock):
        story_id = add_story("The Lantern", body="One. Two.")
        add_signals(story_id, opens=2, completes=1)
        slug = test_db.get_story(story_id).slug

        item = await DiscoveryQueryService(test_db, clock=clock).fetch_story(slug)
        assert item.id == story_id
        assert item.synopsis == "One."
        assert item.metrics.completion_rate == pytest.approx(0.5)

    @pytest.mark.asyncio
    async def test_missing_or_draft(self, test_db, add_story, clock):
        draft_id = add_story(status="draft", published_at=None)
        slug = test_db.get_story(draft_id).slug
        service = DiscoveryQueryService(test_db, clock=clock)

        with pytest.raises(StoryNotFoundError):
            await service.fetch_story("no-such-story")
        with pytest.raises(StoryNotFoundError):
            await service.fetch_story(slug)

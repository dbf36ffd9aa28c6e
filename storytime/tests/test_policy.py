"""
Tests for feed policy normalization and ordering rules.
"""

from datetime import datetime, timedelta

from storytime.database.models import DBStory
from storytime.discovery import DiscoveryItem, FeedPolicy, StoryMetrics, interleave_by_length, rank_hot, rank_personal
from storytime.discovery.composer import month_start
from storytime.discovery.policy import filter_by_length, normalize_filter, normalize_mode, order_by_reading_time
from storytime.identity import AnonymousIdentity

NOW = datetime(2026, 3, 15, 12, 0, 0)


def make_item(
    story_id: str,
    length_class: str = "flash",
    score: float = 0.0,
    metrics: StoryMetrics | None = None,
    days_ago: float = 1,
    reading_time: int = 5,
) -> DiscoveryItem:
    story = DBStory(
        id=story_id,
        title=story_id,
        slug=story_id,
        body="",
        length_class=length_class,
        reading_time=reading_time,
        genre="Fantasy",
        status="published",
        published_at=NOW - timedelta(days=days_ago),
    )
    return DiscoveryItem(
        story=story,
        author_name="Someone",
        synopsis="",
        metrics=metrics or StoryMetrics(),
        score=score,
    )


def ids(items):
    return [item.id for item in items]


class TestNormalization:
    """Tests for mode and filter normalization."""

    def test_unknown_mode_is_newest(self):
        assert normalize_mode("bogus") == "newest"
        assert normalize_mode(None) == "newest"
        assert normalize_mode(" ALGO ") == "algo"

    def test_all_filter_is_none(self):
        assert normalize_filter("All") is None
        assert normalize_filter("  ") is None
        assert normalize_filter(None) is None
        assert normalize_filter("Fantasy") == "Fantasy"

    def test_policy_defaults(self):
        viewer = AnonymousIdentity("anon-1")
        policy = FeedPolicy(
            mode="whatever",
            genre_filter="All",
            length_filter="Flash",
            window_days=0,
            hot_window="decade",
            personal_mode="public-domain",
            query="  ",
            limit=-1,
            viewer=viewer,
        ).normalized()

        assert policy.mode == "newest"
        assert policy.genre_filter is None
        assert policy.length_filter == "flash"
        assert policy.window_days is None
        assert policy.hot_window == "month"
        assert policy.personal_mode == "public_domain"
        assert policy.query is None
        assert policy.limit is None
        assert policy.viewer == viewer

    def test_unknown_personal_mode_is_all(self):
        assert FeedPolicy(personal_mode="friends").normalized().personal_mode == "all"


class TestInterleave:
    """Tests for round-robin across length pools."""

    def test_two_flash_one_short(self):
        items = [
            make_item("f1", "flash", score=50),
            make_item("f2", "flash", score=10),
            make_item("s1", "short", score=30),
        ]
        result = interleave_by_length(items)
        assert [item.length_class for item in result] == ["flash", "short", "flash"]
        assert ids(result) == ["f1", "s1", "f2"]

    def test_pools_sorted_by_score(self):
        items = [
            make_item("t1", "storytime", score=1),
            make_item("t2", "storytime", score=9),
            make_item("s1", "short", score=5),
            make_item("f1", "flash", score=2),
        ]
        assert ids(interleave_by_length(items)) == ["f1", "s1", "t2", "t1"]

    def test_empty(self):
        assert interleave_by_length([]) == []


class TestRankHot:
    """Tests for hot ranking."""

    def test_excludes_low_sample_even_with_top_score(self):
        loud = make_item("loud", metrics=StoryMetrics(views=4, completions=100, likes=100, like_ratio=1.0))
        quiet = make_item("quiet", metrics=StoryMetrics(views=5, completions=1))
        assert ids(rank_hot([loud, quiet])) == ["quiet"]

    def test_orders_by_score_then_recency(self):
        a = make_item("a", metrics=StoryMetrics(views=5, completions=2), days_ago=5)
        b = make_item("b", metrics=StoryMetrics(views=5, completions=2), days_ago=1)
        c = make_item("c", metrics=StoryMetrics(views=5, completions=9), days_ago=9)
        assert ids(rank_hot([a, b, c])) == ["c", "b", "a"]

    def test_top_n(self):
        items = [make_item(f"s{i}", metrics=StoryMetrics(views=5, completions=i)) for i in range(15)]
        result = rank_hot(items)
        assert len(result) == 10
        assert result[0].id == "s14"


class TestRankPersonal:
    """Tests for personal ranking."""

    def test_drops_cold_stories_and_sorts(self):
        cold = make_item("cold", metrics=StoryMetrics(views=50))
        liked = make_item("liked", metrics=StoryMetrics(likes=3))
        finished = make_item("finished", metrics=StoryMetrics(completions=2))
        assert ids(rank_personal([cold, liked, finished])) == ["finished", "liked"]


class TestCuratedHelpers:
    """Tests for length filtering, reading-time order and month math."""

    def test_filter_by_length(self):
        items = [make_item("f", "flash"), make_item("s", "short")]
        assert ids(filter_by_length(items, "short")) == ["s"]
        assert ids(filter_by_length(items, None)) == ["f", "s"]

    def test_order_by_reading_time_is_stable(self):
        items = [
            make_item("long", reading_time=30),
            make_item("a", reading_time=5),
            make_item("b", reading_time=5),
        ]
        assert ids(order_by_reading_time(items)) == ["a", "b", "long"]

    def test_month_start_crosses_years(self):
        assert month_start(datetime(2026, 1, 20).date(), -2).isoformat() == "2025-11-01"
        assert month_start(datetime(2026, 12, 5).date(), 1).isoformat() == "2027-01-01"

"""Tests for startup ingestion."""
from unittest.mock import Mock

import pytest

from services.collector.app.ingest import Ingestor, IngestResult
from shared.schemas.article import FeedArticle
from shared.utils.errors import UpstreamFetchFailure


class FakeFeed:
    """Stands in for NewsApiClient; categories listed in ``failing`` raise."""

    def __init__(self, pages, failing=()):
        self.pages = pages
        self.failing = set(failing)
        self.calls = []

    async def fetch_top_headlines(self, category):
        self.calls.append(category)
        if category in self.failing:
            raise UpstreamFetchFailure(category)
        return [FeedArticle.model_validate(item) for item in self.pages.get(category, [])]


PAGES = {
    "general": [
        {"title": "Alpha", "url": "https://example.com/a", "publishedAt": "2024-01-15T10:00:00Z",
         "source": {"id": None, "name": "Wire"}},
        {"title": "Beta", "url": "https://example.com/b"},
    ],
    "sports": [{"title": "Gamma"}, {"title": None, "url": "https://example.com/untitled"}],
    "technology": [{"title": "Alpha"}, {"title": "Delta"}],
}


@pytest.mark.asyncio
async def test_ingest_category_sets_requested_category(article_store):
    ingestor = Ingestor(FakeFeed(PAGES), article_store, ["general"])

    result = await ingestor.ingest_category("general")

    assert result == IngestResult(category="general", inserted=2, skipped=0)
    stored = article_store.find_by_category("general")
    assert sorted(a.title for a in stored) == ["Alpha", "Beta"]
    alpha = next(a for a in stored if a.title == "Alpha")
    assert alpha.source_name == "Wire"
    assert alpha.likes == []


@pytest.mark.asyncio
async def test_already_seen_titles_are_skipped(article_store):
    ingestor = Ingestor(FakeFeed(PAGES), article_store, ["general", "technology"])

    results = await ingestor.ingest_all()

    assert [(r.category, r.inserted, r.skipped) for r in results] == [
        ("general", 2, 0),
        ("technology", 1, 1),
    ]
    # Alpha keeps the category it was first seen under
    assert [a.title for a in article_store.find_by_category("technology")] == ["Delta"]


@pytest.mark.asyncio
async def test_rerun_inserts_nothing_new(article_store):
    ingestor = Ingestor(FakeFeed(PAGES), article_store, ["general"])
    await ingestor.ingest_all()
    [result] = await ingestor.ingest_all()
    assert (result.inserted, result.skipped) == (0, 2)


@pytest.mark.asyncio
async def test_untitled_items_are_skipped(article_store):
    result = await Ingestor(FakeFeed(PAGES), article_store, ["sports"]).ingest_category("sports")
    assert (result.inserted, result.skipped) == (1, 1)


@pytest.mark.asyncio
async def test_failing_category_does_not_stop_the_rest(article_store):
    feed = FakeFeed(PAGES, failing={"general"})
    ingestor = Ingestor(feed, article_store, ["general", "sports", "technology"])

    results = await ingestor.ingest_all()

    assert feed.calls == ["general", "sports", "technology"]
    assert [r.category for r in results] == ["sports", "technology"]
    assert article_store.find_by_category("general") == []
    assert [a.title for a in article_store.find_by_category("sports")] == ["Gamma"]


@pytest.mark.asyncio
async def test_store_failure_is_isolated_to_its_category(article_store):
    store = Mock(wraps=article_store)
    calls = {"n": 0}

    def flaky_insert(article):
        calls["n"] += 1
        if article.category == "general":
            raise RuntimeError("disk full")
        return article_store.insert_if_absent(article)

    store.insert_if_absent.side_effect = flaky_insert
    results = await Ingestor(FakeFeed(PAGES), store, ["general", "sports"]).ingest_all()

    assert [r.category for r in results] == ["sports"]
    # general aborted on its first item, sports wrote its one titled item
    assert calls["n"] == 2


@pytest.mark.asyncio
async def test_ingest_category_propagates_feed_failure(article_store):
    ingestor = Ingestor(FakeFeed(PAGES, failing={"health"}), article_store, ["health"])
    with pytest.raises(UpstreamFetchFailure) as exc:
        await ingestor.ingest_category("health")
    assert "health" in exc.value.message

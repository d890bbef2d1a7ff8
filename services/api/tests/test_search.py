"""Tests for the search filter builder and ArticleStore.search."""
import time
from datetime import date, datetime, timezone
from types import SimpleNamespace
from typing import Optional
from zoneinfo import ZoneInfo

import pytest

from shared.database.crud.articles import ArticleStore
from shared.database.search import (
    ContainsCriterion,
    DayRangeCriterion,
    SearchCriteria,
    all_of,
    parse_day,
)
from shared.schemas.article import ArticleSource, NewArticle
from shared.utils.errors import BadRequest, NotFound


@pytest.fixture
def seeded(article_store):
    rows = [
        NewArticle(
            title="Election results announced",
            category="general",
            source=ArticleSource(name="Reuters", country="us"),
            published_at=datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc),
        ),
        NewArticle(
            title="Cup final preview",
            category="sports",
            source=ArticleSource(name="BBC Sport", country="gb"),
            published_at=datetime(2024, 1, 16, 0, 0, 1, tzinfo=timezone.utc),
        ),
        NewArticle(title="100% growth_rate in chips", category="technology"),
    ]
    for row in rows:
        article_store.insert_if_absent(row)
    return article_store


def titles(articles):
    return sorted(a.title for a in articles)


def test_search_without_criteria_returns_everything(seeded):
    assert len(seeded.search(SearchCriteria())) == 3


def test_search_matching_nothing_raises_not_found(seeded):
    with pytest.raises(NotFound):
        seeded.search(SearchCriteria(title="no such headline"))


def test_title_is_case_insensitive_substring(seeded):
    assert titles(seeded.search(SearchCriteria(title="ELECTION"))) == ["Election results announced"]


def test_country_matches_source_country(seeded):
    assert titles(seeded.search(SearchCriteria(country="G"))) == ["Cup final preview"]


def test_category_is_substring_match(seeded):
    assert titles(seeded.search(SearchCriteria(category="port"))) == ["Cup final preview"]


def test_criteria_are_combined_with_and(seeded):
    assert titles(seeded.search(SearchCriteria(title="cup", country="gb"))) == ["Cup final preview"]
    with pytest.raises(NotFound):
        seeded.search(SearchCriteria(title="cup", country="us"))


def test_date_window_covers_the_whole_day(seeded):
    found = seeded.search(SearchCriteria(date=date(2024, 1, 15)))
    assert titles(found) == ["Election results announced"]


def test_like_wildcards_are_literal(seeded):
    assert titles(seeded.search(SearchCriteria(title="100%"))) == ["100% growth_rate in chips"]
    with pytest.raises(NotFound):
        seeded.search(SearchCriteria(title="growth%rate"))


def test_day_range_bounds_in_given_timezone():
    criterion = DayRangeCriterion("published_at", date(2024, 1, 15), ZoneInfo("America/New_York"))
    assert criterion.start == datetime(2024, 1, 15, 5, 0)
    assert criterion.end == datetime(2024, 1, 16, 4, 59, 59, 999000)


@pytest.fixture
def new_york_local_time(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is unavailable on this platform")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def test_day_range_defaults_to_server_local_time(new_york_local_time):
    criterion = DayRangeCriterion("published_at", date(2024, 1, 15))
    assert criterion.start == datetime(2024, 1, 15, 5, 0)
    assert criterion.end == datetime(2024, 1, 16, 4, 59, 59, 999000)


def test_store_without_timezone_searches_local_day(database, new_york_local_time):
    store = ArticleStore(database)
    for title, published_at in [
        ("Late on the 14th locally", datetime(2024, 1, 15, 4, 30, tzinfo=timezone.utc)),
        ("Morning of the 15th", datetime(2024, 1, 15, 5, 0, tzinfo=timezone.utc)),
        ("Evening of the 15th", datetime(2024, 1, 16, 0, 0, 1, tzinfo=timezone.utc)),
        ("Early on the 16th locally", datetime(2024, 1, 16, 5, 0, tzinfo=timezone.utc)),
    ]:
        store.insert_if_absent(NewArticle(title=title, category="general", published_at=published_at))

    found = store.search(SearchCriteria(date=date(2024, 1, 15)))

    assert titles(found) == ["Evening of the 15th", "Morning of the 15th"]


def test_day_range_is_inclusive_of_last_millisecond():
    criterion = DayRangeCriterion("published_at", date(2024, 1, 15), timezone.utc)
    assert criterion.matches(SimpleNamespace(published_at=datetime(2024, 1, 15, 23, 59, 59, 999000)))
    assert not criterion.matches(SimpleNamespace(published_at=datetime(2024, 1, 16, 0, 0, 1)))
    assert not criterion.matches(SimpleNamespace(published_at=None))


def test_contains_criterion_handles_missing_values():
    criterion = ContainsCriterion("source_country", "us")
    assert criterion.matches(SimpleNamespace(source_country="US"))
    assert not criterion.matches(SimpleNamespace(source_country=None))


def test_all_of_with_no_predicates_accepts_everything():
    assert all_of([])(object())


def test_python_predicates_agree_with_sql(seeded):
    """The same criteria evaluated in Python and in SQL select the same rows."""
    everything = seeded.search(SearchCriteria())
    cases = [
        SearchCriteria(title="e"),
        SearchCriteria(country="us"),
        SearchCriteria(category="general", date=date(2024, 1, 15)),
        SearchCriteria(date=date(2024, 1, 16)),
    ]
    for criteria in cases:
        expected = titles(a for a in everything if criteria.matches(a, tz=timezone.utc))
        try:
            actual = titles(seeded.search(criteria))
        except NotFound:
            actual = []
        assert actual == expected, criteria


def test_from_params_treats_blank_as_absent():
    criteria = SearchCriteria.from_params(title="", country=None, category="sports", date="")
    assert criteria == SearchCriteria(category="sports")


@pytest.mark.parametrize("raw", ["2024-01-15", "2024-01-15T10:00:00Z"])
def test_parse_day_accepts_date_or_timestamp(raw):
    assert parse_day(raw) == date(2024, 1, 15)


def test_parse_day_rejects_garbage():
    with pytest.raises(BadRequest):
        parse_day("yesterday")


def test_search_criteria_date_field_is_typed_as_date():
    assert SearchCriteria.__dataclass_fields__["date"].type == Optional[date]

"""
Search filter builder.

A ``SearchCriteria`` expands into criterion objects. Every criterion knows how
to test a record in Python (``matches``) and how to render itself as a SQL
clause (``clause``); the criteria object combines them with AND. Absent fields
contribute nothing, so an empty criteria matches every record.
"""

from dataclasses import dataclass
from datetime import date as date_type, datetime, time, timezone, tzinfo
from typing import Any, Callable, List, Optional

from sqlalchemy import String, and_, func, true
from sqlalchemy.sql.elements import ColumnElement

from shared.database.models.article import Article
from shared.utils.errors import BadRequest

END_OF_DAY = time(23, 59, 59, 999000)


class ContainsCriterion:
    """Case-insensitive substring match on one attribute."""

    def __init__(self, attribute: str, value: str):
        self.attribute = attribute
        self.value = value

    def matches(self, record: Any) -> bool:
        field_value = getattr(record, self.attribute, None)
        if field_value is None:
            return False
        return self.value.lower() in str(field_value).lower()

    def clause(self) -> ColumnElement:
        column = getattr(Article, self.attribute)
        return func.lower(column, type_=String()).contains(self.value.lower(), autoescape=True)

    def __repr__(self):
        return f"ContainsCriterion({self.attribute!r}, {self.value!r})"


class DayRangeCriterion:
    """
    Timestamp falls on ``day``: ``[00:00:00.000, 23:59:59.999]`` inclusive.

    The day is interpreted in ``tz`` (server local time when None) and the
    bounds are converted to naive UTC to compare with stored values.
    """

    def __init__(self, attribute: str, day: date_type, tz: Optional[tzinfo] = None):
        self.attribute = attribute
        self.day = day
        self.tz = tz

    def _bound(self, at: time) -> datetime:
        moment = datetime.combine(self.day, at)
        moment = moment.replace(tzinfo=self.tz) if self.tz is not None else moment.astimezone()
        return moment.astimezone(timezone.utc).replace(tzinfo=None)

    @property
    def start(self) -> datetime:
        return self._bound(time.min)

    @property
    def end(self) -> datetime:
        return self._bound(END_OF_DAY)

    def matches(self, record: Any) -> bool:
        value = getattr(record, self.attribute, None)
        if value is None:
            return False
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return self.start <= value <= self.end

    def clause(self) -> ColumnElement:
        column = getattr(Article, self.attribute)
        return column.between(self.start, self.end)

    def __repr__(self):
        return f"DayRangeCriterion({self.attribute!r}, {self.day.isoformat()})"


def all_of(predicates: List[Callable[[Any], bool]]) -> Callable[[Any], bool]:
    """AND-combine predicates; no predicates accepts everything."""

    def combined(record: Any) -> bool:
        return all(predicate(record) for predicate in predicates)

    return combined


def parse_day(raw: str) -> date_type:
    """Accept ``YYYY-MM-DD`` or a full ISO timestamp and keep its date."""
    value = raw.strip()
    try:
        return date_type.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        raise BadRequest(f"Invalid date: {raw}")


@dataclass
class SearchCriteria:
    title: Optional[str] = None
    country: Optional[str] = None
    category: Optional[str] = None
    date: Optional[date_type] = None

    @classmethod
    def from_params(
        cls,
        title: Optional[str] = None,
        country: Optional[str] = None,
        category: Optional[str] = None,
        date: Optional[str] = None,
    ) -> "SearchCriteria":
        """Build criteria from raw query strings; blank values count as absent."""
        return cls(
            title=title or None,
            country=country or None,
            category=category or None,
            date=parse_day(date) if date else None,
        )

    def criteria(self, tz: Optional[tzinfo] = None) -> list:
        built = []
        if self.title:
            built.append(ContainsCriterion("title", self.title))
        if self.country:
            built.append(ContainsCriterion("source_country", self.country))
        if self.category:
            built.append(ContainsCriterion("category", self.category))
        if self.date:
            built.append(DayRangeCriterion("published_at", self.date, tz))
        return built

    def matches(self, record: Any, tz: Optional[tzinfo] = None) -> bool:
        return all_of([c.matches for c in self.criteria(tz)])(record)

    def clause(self, tz: Optional[tzinfo] = None) -> ColumnElement:
        clauses = [c.clause() for c in self.criteria(tz)]
        return and_(*clauses) if clauses else true()

"""
Startup ingestion of top headlines.

Categories are processed one at a time in configured order, and articles
within a category one at a time, each store write completing before the next
item. A failing category is logged and skipped.
"""
from dataclasses import dataclass
from typing import Iterable, List

from prometheus_client import Counter

from shared.app_logging.logger import get_logger, log_error_with_context
from shared.database.crud.articles import ArticleStore
from shared.schemas.article import NewArticle
from shared.utils.errors import UpstreamFetchFailure
from services.collector.app.feed import NewsApiClient

logger = get_logger("newsdesk.ingest")

ARTICLES_INSERTED = Counter(
    "newsdesk_articles_inserted_total", "Articles stored by ingestion", ["category"]
)
ARTICLES_SKIPPED = Counter(
    "newsdesk_articles_skipped_total", "Feed items skipped as duplicates or untitled", ["category"]
)
CATEGORY_FAILURES = Counter(
    "newsdesk_ingest_category_failures_total", "Categories whose ingestion failed", ["category"]
)


@dataclass
class IngestResult:
    category: str
    inserted: int = 0
    skipped: int = 0

    @property
    def message(self) -> str:
        return f"Headlines for category {self.category} fetched and saved to the database (if new)."


class Ingestor:
    def __init__(self, feed: NewsApiClient, store: ArticleStore, categories: Iterable[str]):
        self.feed = feed
        self.store = store
        self.categories = list(categories)

    async def ingest_category(self, category: str) -> IngestResult:
        """Fetch ``category`` and insert each new title. Raises UpstreamFetchFailure if the feed fails."""
        items = await self.feed.fetch_top_headlines(category)
        result = IngestResult(category=category)

        for item in items:
            if not item.title:
                logger.warning(f"Skipping untitled {category} article: {item.url}")
                result.skipped += 1
                ARTICLES_SKIPPED.labels(category=category).inc()
                continue

            if self.store.insert_if_absent(NewArticle.from_feed(item, category)):
                result.inserted += 1
                ARTICLES_INSERTED.labels(category=category).inc()
            else:
                result.skipped += 1
                ARTICLES_SKIPPED.labels(category=category).inc()

        return result

    async def ingest_all(self) -> List[IngestResult]:
        """Ingest every category; one category failing does not stop the rest."""
        logger.info(f"🚀 Starting ingestion for {len(self.categories)} categories")
        results = []
        for category in self.categories:
            try:
                result = await self.ingest_category(category)
            except UpstreamFetchFailure as e:
                CATEGORY_FAILURES.labels(category=category).inc()
                logger.error(f"Error fetching {category} articles: {e.message}")
                continue
            except Exception as e:
                CATEGORY_FAILURES.labels(category=category).inc()
                log_error_with_context(logger, e, {"category": category})
                continue
            logger.info(f"{result.message} inserted={result.inserted} skipped={result.skipped}")
            results.append(result)

        logger.info(f"✅ Ingestion complete: {len(results)}/{len(self.categories)} categories succeeded")
        return results

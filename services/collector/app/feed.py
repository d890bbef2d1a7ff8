# services/collector/app/feed.py
from typing import List, Optional

import httpx
from pydantic import ValidationError

from shared.app_logging.logger import get_logger
from shared.config.settings import NewsApiSettings
from shared.schemas.article import FeedArticle
from shared.utils.errors import UpstreamFetchFailure

logger = get_logger("newsdesk.feed")


class NewsApiClient:
    """Client for the headlines feed's ``/v2/top-headlines`` endpoint."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://newsapi.org",
        language: str = "en",
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.language = language
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: NewsApiSettings) -> "NewsApiClient":
        return cls(
            api_key=settings.api_key,
            base_url=settings.base_url,
            language=settings.language,
            timeout=settings.timeout,
        )

    async def fetch_top_headlines(self, category: str) -> List[FeedArticle]:
        """Fetch one page of top headlines for ``category``."""
        url = f"{self.base_url}/v2/top-headlines"
        params = {"language": self.language, "category": category, "apiKey": self.api_key}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url, params=params, headers={"X-Api-Key": self.api_key})
                response.raise_for_status()
                body = response.json()
            items = body["articles"]
            if not isinstance(items, list):
                raise TypeError(f"articles is {type(items).__name__}, expected a list")
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Error fetching {category} headlines: {e}")
            raise UpstreamFetchFailure(category) from e

        articles = []
        for item in items:
            try:
                articles.append(FeedArticle.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed {category} feed item: {e.error_count()} error(s)")
        logger.info(f"📄 Found {len(articles)} {category} articles in feed")
        return articles

from datetime import tzinfo
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from shared.app_logging.logger import get_logger
from shared.database.models.article import Article
from shared.database.search import SearchCriteria
from shared.database.session import Database
from shared.schemas.article import NewArticle
from shared.utils.errors import NotFound

logger = get_logger("newsdesk.crud.articles")


def _parse_id(article_id) -> UUID:
    if isinstance(article_id, UUID):
        return article_id
    try:
        return UUID(str(article_id))
    except ValueError:
        raise NotFound("Article not found")


class ArticleStore:
    """Persistence contract for articles: dedup-on-title, lookups, like set."""

    def __init__(self, database: Database, tz: Optional[tzinfo] = None):
        self.database = database
        self.tz = tz

    def exists(self, title: str) -> bool:
        with self.database.session_scope() as session:
            found = session.execute(
                select(Article.id).where(Article.title == title).limit(1)
            ).first()
            return found is not None

    def insert_if_absent(self, article: NewArticle) -> bool:
        """Insert unless the title is already stored. Returns True when written."""
        if self.exists(article.title):
            logger.info(f"Article already exists: {article.title}")
            return False

        with self.database.session_scope() as session:
            row = Article(
                title=article.title,
                description=article.description,
                url=article.url,
                url_to_image=article.url_to_image,
                published_at=article.published_at,
                source_id=article.source.id,
                source_name=article.source.name,
                source_country=article.source.country,
                category=article.category,
                likes=[],
            )
            session.add(row)
            try:
                session.commit()
            except IntegrityError as e:
                # Lost the race against another writer with the same title
                session.rollback()
                logger.warning(f"Article already exists: {article.title} ({e.orig})")
                return False
        logger.info(f"New article saved: {article.title}")
        return True

    def find_by_category(self, category: str) -> List[Article]:
        with self.database.session_scope() as session:
            return list(
                session.scalars(
                    select(Article)
                    .where(Article.category == category)
                    .order_by(Article.inserted_at)
                )
            )

    def search(self, criteria: SearchCriteria) -> List[Article]:
        """Articles matching every provided criterion. Raises NotFound when none do."""
        logger.debug(f"Searching articles with {criteria.criteria(self.tz)}")
        with self.database.session_scope() as session:
            results = list(
                session.scalars(
                    select(Article)
                    .where(criteria.clause(self.tz))
                    .order_by(Article.inserted_at)
                )
            )
        if not results:
            raise NotFound("No articles found matching your query")
        return results

    # like/unlike rewrite the whole list; concurrent calls on one article can lose an update
    def like(self, article_id, user_id: str) -> int:
        """Add ``user_id`` to the like set. Returns the resulting like count."""
        with self.database.session_scope() as session:
            article = session.get(Article, _parse_id(article_id))
            if article is None:
                raise NotFound("Article not found")
            likes = list(article.likes or [])
            if user_id not in likes:
                likes.append(user_id)
                article.likes = likes
                session.commit()
            logger.debug(f"Article {article.id} has {len(likes)} likes")
            return len(likes)

    def unlike(self, article_id, user_id: str) -> int:
        """Remove ``user_id`` from the like set if present. Returns the resulting like count."""
        with self.database.session_scope() as session:
            article = session.get(Article, _parse_id(article_id))
            if article is None:
                raise NotFound("Article not found")
            likes = [liked for liked in (article.likes or []) if liked != user_id]
            if len(likes) != len(article.likes or []):
                article.likes = likes
                session.commit()
            return len(likes)

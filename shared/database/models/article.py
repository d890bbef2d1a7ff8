import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, String, Text, Uuid

from ..base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Article(Base):
    """Headline ingested from the feed. ``title`` is the dedup key."""

    __tablename__ = "articles"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(Text, unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    url = Column(Text, nullable=True)
    url_to_image = Column(Text, nullable=True)
    published_at = Column(DateTime, nullable=True, index=True)
    source_id = Column(String, nullable=True)
    source_name = Column(String, nullable=True)
    source_country = Column(String, nullable=True)
    category = Column(String, nullable=True, index=True)
    # Opaque user ids, no foreign key: a deleted user's like is left in place.
    likes = Column(JSON, nullable=False, default=list)
    inserted_at = Column(DateTime, default=_utcnow, nullable=False)

    @property
    def like_count(self) -> int:
        return len(self.likes or [])

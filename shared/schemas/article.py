from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ArticleSource(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    country: Optional[str] = None


class FeedArticle(BaseModel):
    """One item of the feed's ``articles`` list."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    url_to_image: Optional[str] = Field(None, alias="urlToImage")
    published_at: Optional[datetime] = Field(None, alias="publishedAt")
    source: Optional[ArticleSource] = None


class NewArticle(BaseModel):
    """Record handed to the article store on ingestion."""

    title: str
    description: Optional[str] = None
    url: Optional[str] = None
    url_to_image: Optional[str] = None
    published_at: Optional[datetime] = None
    source: ArticleSource = Field(default_factory=ArticleSource)
    category: str

    @field_validator("published_at")
    @classmethod
    def to_naive_utc(cls, v):
        """Timestamps are stored as naive UTC."""
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    @classmethod
    def from_feed(cls, item: FeedArticle, category: str) -> "NewArticle":
        return cls(
            title=item.title,
            description=item.description,
            url=item.url,
            url_to_image=item.url_to_image,
            published_at=item.published_at,
            source=item.source or ArticleSource(),
            category=category,
        )


class ArticleOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: UUID
    title: str
    description: Optional[str] = None
    url: Optional[str] = None
    url_to_image: Optional[str] = Field(None, alias="urlToImage")
    published_at: Optional[datetime] = Field(None, alias="publishedAt")
    source: ArticleSource
    category: Optional[str] = None
    likes: List[str] = []

    @classmethod
    def from_row(cls, row) -> "ArticleOut":
        return cls(
            id=row.id,
            title=row.title,
            description=row.description,
            url=row.url,
            url_to_image=row.url_to_image,
            published_at=row.published_at,
            source=ArticleSource(
                id=row.source_id, name=row.source_name, country=row.source_country
            ),
            category=row.category,
            likes=list(row.likes or []),
        )

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

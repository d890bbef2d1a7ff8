import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Uuid

from ..base import Base


class User(Base):
    """Local copy of an identity-provider user, keyed by ``external_id``."""

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    external_id = Column(String, unique=True, nullable=False, index=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    inserted_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc).replace(tzinfo=None),
        nullable=False,
    )

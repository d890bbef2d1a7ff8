from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from shared.app_logging.logger import get_logger
from .base import Base
from .models.article import Article  # noqa: F401  (registers table)
from .models.user import User  # noqa: F401  (registers table)

logger = get_logger("newsdesk.database")


def _redact(url: str) -> str:
    return url.split("@")[1] if "@" in url else url.split("://")[0]


class Database:
    """
    Explicitly constructed store handle.

    ``connect()`` builds the engine and pings it; any failure is logged and
    the handle stays usable so that later operations fail on their own.
    ``dispose()`` releases the pool.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self.engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    def _engine_options(self) -> dict:
        if self.url.startswith("sqlite"):
            options = {"connect_args": {"check_same_thread": False}}
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection, otherwise every session sees an empty database
                options["poolclass"] = StaticPool
            return options
        return {
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,
            "pool_recycle": 3600,
        }

    def connect(self) -> bool:
        """Create the engine and check connectivity. Returns False on failure."""
        logger.info(f"▶︎ Connecting to database: {_redact(self.url)}")
        try:
            self.engine = create_engine(self.url, echo=self.echo, **self._engine_options())
            self._session_factory = sessionmaker(
                autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False
            )
            self.ping()
        except Exception as e:
            logger.error(f"❌ Database connection error: {e}")
            return False
        logger.info("✅ Connected to database")
        return True

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def init_db(self) -> None:
        """Initialize database tables."""
        try:
            Base.metadata.create_all(bind=self.engine)
            logger.info("✅ Database initialized successfully")
        except Exception as e:
            logger.error(f"❌ Failed to initialize database: {e}")
            raise

    def session(self) -> Session:
        if self._session_factory is None:
            raise RuntimeError("Database.connect() has not been called")
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session with rollback on error and guaranteed close."""
        session = self.session()
        try:
            yield session
        except SQLAlchemyError as e:
            logger.error(f"Database session error: {e}")
            session.rollback()
            raise
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Database connections closed")

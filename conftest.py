from datetime import timezone

import pytest

from shared.database.crud.articles import ArticleStore
from shared.database.crud.users import UserStore
from shared.database.session import Database


@pytest.fixture
def database():
    # Set up SQLite in-memory
    db = Database("sqlite://")
    assert db.connect()
    db.init_db()
    yield db
    db.dispose()


@pytest.fixture
def article_store(database):
    return ArticleStore(database, tz=timezone.utc)


@pytest.fixture
def user_store(database):
    return UserStore(database)

"""Tests for the Database handle's connect path."""
import pytest

from shared.database.session import Database
from shared.utils.health import create_api_health_checker


@pytest.mark.parametrize("url", ["mongodb://localhost:27017/news", "not a url"])
def test_connect_reports_unusable_url_instead_of_raising(url):
    db = Database(url)

    assert db.connect() is False
    assert db.engine is None
    with pytest.raises(RuntimeError):
        db.session()
    db.dispose()


def test_unconnected_handle_reports_not_ready():
    db = Database("mongodb://localhost:27017/news")
    db.connect()

    readiness = create_api_health_checker("newsdesk", db).readiness()

    assert readiness["status"] == "not_ready"
    assert readiness["critical_dependencies"] == {"database": "unhealthy"}

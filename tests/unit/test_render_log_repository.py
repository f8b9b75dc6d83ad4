"""RenderLogRepository 테스트 (인메모리 SQLite)"""
import pytest

from src.core.database import Base, SessionLocal, engine, init_db
from src.repositories.impl.render_log_repository import RenderLogRepository


@pytest.fixture
def repo():
    Base.metadata.drop_all(bind=engine)
    init_db()
    db = SessionLocal()
    try:
        yield RenderLogRepository(db)
    finally:
        db.close()


def test_create_and_count(repo):
    log = repo.create(url="https://example.com/a", status=200, source="cache", elapsed_ms=3.5)

    assert log.id is not None
    assert log.created_at is not None
    assert repo.get_total_count() == 1


def test_status_counts_include_missing_results(repo):
    repo.create(url="https://example.com/a", status=200, source="cache")
    repo.create(url="https://example.com/b", status=200, source="render")
    repo.create(url="https://example.com/c", status=404, source="render")
    repo.create(url="https://example.com/d", status=None, source="render")

    assert repo.get_status_counts() == {"200": 2, "404": 1, "none": 1}


def test_recent_logs_newest_first(repo):
    for i in range(5):
        repo.create(url=f"https://example.com/{i}", status=200)

    logs = repo.get_recent_logs(limit=3)

    assert [log.url for log in logs] == [
        "https://example.com/4",
        "https://example.com/3",
        "https://example.com/2",
    ]


def test_empty_table(repo):
    assert repo.get_total_count() == 0
    assert repo.get_status_counts() == {}
    assert repo.get_recent_logs() == []

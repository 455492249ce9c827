import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from exercise_tracker.database import create_db_and_tables, get_repositories, make_engine
from exercise_tracker.main import app
from exercise_tracker.repositories import memory_repositories, sql_repositories


@pytest.fixture
def sql_engine(tmp_path):
    """A fresh SQLite database file per test."""
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_session(sql_engine):
    with Session(sql_engine) as session:
        yield session


@pytest.fixture(params=["memory", "sql"])
def repos(request):
    """Empty stores from each backend; tests using this run twice."""
    if request.param == "memory":
        return memory_repositories()
    return sql_repositories(request.getfixturevalue("sql_session"))


@pytest.fixture(params=["memory", "sql"])
def client(request):
    """TestClient whose requests hit empty stores of each backend."""
    if request.param == "memory":
        shared = memory_repositories()

        def override():
            yield shared
    else:
        engine = request.getfixturevalue("sql_engine")

        def override():
            with Session(engine) as session:
                yield sql_repositories(session)

    app.dependency_overrides[get_repositories] = override
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

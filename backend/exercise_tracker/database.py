"""Store wiring and database helpers.

`get_repositories` is the FastAPI dependency that hands each request its
stores. With `STORE_BACKEND=memory` every request shares one
process-wide pair of in-memory stores; with `STORE_BACKEND=sql` each
request gets SQL stores bound to its own `Session`.
"""

from typing import Iterator

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

from .config import settings
from .repositories import Repositories, memory_repositories, sql_repositories

_memory = memory_repositories()
_engine = None


def make_engine(url: str) -> Engine:
    """Create an engine for `url`; SQLite connections may cross threads."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, connect_args=connect_args)


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = make_engine(settings.DATABASE_URL)
    return _engine


def create_db_and_tables(engine: Engine = None) -> None:
    """Create tables from SQLModel metadata (idempotent)."""
    SQLModel.metadata.create_all(engine or get_engine())


def get_repositories() -> Iterator[Repositories]:
    """Yield the stores for one request according to `STORE_BACKEND`."""
    if settings.STORE_BACKEND == "sql":
        with Session(get_engine()) as session:
            yield sql_repositories(session)
    else:
        yield _memory

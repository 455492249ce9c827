"""Repository classes encapsulating storage operations.

Two interchangeable backends implement the same small contract:

- `MemoryUserRepository` / `MemoryExerciseRepository` keep everything in
  process-wide lists for the lifetime of the process.
- `SqlUserRepository` / `SqlExerciseRepository` persist the same models
  through a SQLModel `Session` and reproduce the in-memory ordering and
  id format exactly.

Ids come from an allocator (`IdAllocator` or `SqlIdAllocator`) with one
independent counter per entity kind.
"""

import enum
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Protocol

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from . import models

logger = logging.getLogger("exercise_tracker.repositories")

USER_KIND = "user"
EXERCISE_KIND = "exercise"


class LogOrder(str, enum.Enum):
    """Ordering applied when listing a user's exercises."""
    INSERTION = "insertion"
    DATE_DESC = "date_desc"


class IdAllocator:
    """Issue increasing decimal string ids, one counter per kind."""
    def __init__(self):
        self._counters: Dict[str, int] = {}
        self._lock = threading.Lock()

    def next_id(self, kind: str) -> str:
        with self._lock:
            value = self._counters.get(kind, 0) + 1
            self._counters[kind] = value
        return str(value)


class SqlIdAllocator:
    """Counter-per-kind allocator stored in the `idcounter` table.

    The increment is flushed in the caller's transaction and committed
    (or rolled back) together with the row that uses the id.
    """
    def __init__(self, session: Session):
        self.session = session

    def next_id(self, kind: str) -> str:
        counter = self.session.get(models.IdCounter, kind)
        if counter is None:
            counter = models.IdCounter(kind=kind, value=0)
        counter.value += 1
        self.session.add(counter)
        self.session.flush()
        return str(counter.value)


class UserStore(Protocol):
    def create_or_get(self, username: str) -> models.User: ...

    def get(self, user_id: str) -> Optional[models.User]: ...

    def list_all(self) -> List[models.User]: ...


class ExerciseStore(Protocol):
    def append(self, user_id: str, description: str, duration: int, date: datetime) -> models.ExerciseRecord: ...

    def list_for(self, user_id: str, order: LogOrder = LogOrder.INSERTION) -> List[models.ExerciseRecord]: ...


class MemoryUserRepository:
    """Users held in a list in creation order."""
    def __init__(self, allocator: Optional[IdAllocator] = None):
        self.allocator = allocator or IdAllocator()
        self._users: List[models.User] = []
        self._lock = threading.Lock()

    def create_or_get(self, username: str) -> models.User:
        """Return the user named `username`, creating it on first use."""
        if not username:
            raise ValueError("username must be non-empty")
        with self._lock:
            existing = self._find_by_username(username)
            if existing:
                return existing
            user = models.User(id=self.allocator.next_id(USER_KIND), username=username)
            self._users.append(user)
        logger.info("created user id=%s username=%s", user.id, user.username)
        return user

    def get(self, user_id: str) -> Optional[models.User]:
        return next((u for u in self._users if u.id == user_id), None)

    def list_all(self) -> List[models.User]:
        return list(self._users)

    def _find_by_username(self, username: str) -> Optional[models.User]:
        return next((u for u in self._users if u.username == username), None)


class MemoryExerciseRepository:
    """Exercise records held in a list in arrival order."""
    def __init__(self, allocator: Optional[IdAllocator] = None):
        self.allocator = allocator or IdAllocator()
        self._records: List[models.ExerciseRecord] = []
        self._lock = threading.Lock()

    def append(self, user_id: str, description: str, duration: int, date: datetime) -> models.ExerciseRecord:
        """Store a new record with a freshly allocated id and return it."""
        if not description:
            raise ValueError("description must be non-empty")
        with self._lock:
            record = models.ExerciseRecord(
                id=self.allocator.next_id(EXERCISE_KIND),
                user_id=user_id,
                description=description,
                duration=duration,
                date=date,
            )
            self._records.append(record)
        return record

    def list_for(self, user_id: str, order: LogOrder = LogOrder.INSERTION) -> List[models.ExerciseRecord]:
        """Return `user_id`'s records in insertion or descending-date order."""
        records = [r for r in self._records if r.user_id == user_id]
        if order == LogOrder.DATE_DESC:
            # sorted() is stable, so equal dates keep arrival order
            records = sorted(records, key=lambda r: r.date, reverse=True)
        return records


class SqlUserRepository:
    """`User` persistence through a SQLModel session."""
    def __init__(self, session: Session, allocator: Optional[SqlIdAllocator] = None):
        self.session = session
        self.allocator = allocator or SqlIdAllocator(session)

    def create_or_get(self, username: str) -> models.User:
        """Return the user named `username`, creating it on first use.

        A concurrent insert of the same name trips the unique index; the
        transaction is rolled back and the stored row is returned.
        """
        if not username:
            raise ValueError("username must be non-empty")
        existing = self.get_by_username(username)
        if existing:
            return existing
        user = models.User(id=self.allocator.next_id(USER_KIND), username=username)
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            existing = self.get_by_username(username)
            if existing is None:
                raise
            return existing
        self.session.refresh(user)
        logger.info("created user id=%s username=%s", user.id, user.username)
        return user

    def get_by_username(self, username: str) -> Optional[models.User]:
        """Return a `User` by username or `None` if not found."""
        stmt = select(models.User).where(models.User.username == username)
        return self.session.exec(stmt).first()

    def get(self, user_id: str) -> Optional[models.User]:
        stmt = select(models.User).where(models.User.id == user_id)
        return self.session.exec(stmt).first()

    def list_all(self) -> List[models.User]:
        stmt = select(models.User).order_by(models.User.pk)
        return list(self.session.exec(stmt).all())


class SqlExerciseRepository:
    """`ExerciseRecord` persistence through a SQLModel session."""
    def __init__(self, session: Session, allocator: Optional[SqlIdAllocator] = None):
        self.session = session
        self.allocator = allocator or SqlIdAllocator(session)

    def append(self, user_id: str, description: str, duration: int, date: datetime) -> models.ExerciseRecord:
        if not description:
            raise ValueError("description must be non-empty")
        record = models.ExerciseRecord(
            id=self.allocator.next_id(EXERCISE_KIND),
            user_id=user_id,
            description=description,
            duration=duration,
            date=date,
        )
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record

    def list_for(self, user_id: str, order: LogOrder = LogOrder.INSERTION) -> List[models.ExerciseRecord]:
        stmt = select(models.ExerciseRecord).where(models.ExerciseRecord.user_id == user_id)
        if order == LogOrder.DATE_DESC:
            stmt = stmt.order_by(models.ExerciseRecord.date.desc(), models.ExerciseRecord.pk)
        else:
            stmt = stmt.order_by(models.ExerciseRecord.pk)
        return list(self.session.exec(stmt).all())


@dataclass
class Repositories:
    """The pair of stores a request works against."""
    users: UserStore
    exercises: ExerciseStore


def memory_repositories() -> Repositories:
    """Build a fresh, empty pair of in-memory stores."""
    return Repositories(users=MemoryUserRepository(), exercises=MemoryExerciseRepository())


def sql_repositories(session: Session) -> Repositories:
    """Build SQL stores sharing one session and one allocator."""
    allocator = SqlIdAllocator(session)
    return Repositories(
        users=SqlUserRepository(session, allocator),
        exercises=SqlExerciseRepository(session, allocator),
    )

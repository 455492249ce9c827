"""SQLModel data models.

The same classes back both store implementations: the SQL repositories
persist them as tables, the in-memory repositories keep detached
instances in lists. Public identifiers (`id`) are strings issued by an
id allocator; `pk` is a surrogate key that records insertion order.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """A registered user.

    Fields:
    - `id`: public identifier, a decimal string starting at "1"
    - `username`: unique name, first registration wins
    """
    pk: Optional[int] = Field(default=None, primary_key=True)
    id: str = Field(index=True, unique=True, nullable=False)
    username: str = Field(index=True, unique=True, nullable=False)


class ExerciseRecord(SQLModel, table=True):
    """A single timed exercise entry owned by a `User`."""
    pk: Optional[int] = Field(default=None, primary_key=True)
    id: str = Field(index=True, unique=True, nullable=False)
    user_id: str = Field(index=True, foreign_key="user.id")
    description: str
    duration: int
    # naive local time, stored without tz conversion
    date: datetime = Field(sa_type=DateTime)


class IdCounter(SQLModel, table=True):
    """Last identifier issued for an entity kind (SQL backend only)."""
    kind: str = Field(primary_key=True)
    value: int = 0

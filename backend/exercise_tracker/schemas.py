"""Pydantic response schemas used by the API.

Schemas keep the JSON output shapes stable. Public ids are exposed
under the `_id` key, so those fields are declared with an alias.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List


class UserOut(BaseModel):
    """A registered user as returned by the users endpoints."""
    model_config = ConfigDict(populate_by_name=True)

    username: str
    id: str = Field(alias="_id")


class ExerciseOut(BaseModel):
    """The owning user merged with the exercise just added."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    username: str
    description: str
    duration: int
    date: str


class LogEntry(BaseModel):
    description: str
    duration: int
    date: str


class LogOut(BaseModel):
    """A user's filtered exercise log."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    username: str
    count: int
    log: List[LogEntry]


class ErrorOut(BaseModel):
    error: str

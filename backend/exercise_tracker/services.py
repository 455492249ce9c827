"""Business logic services used by HTTP controllers.

Services validate raw request values, coordinate the user and exercise
stores, and return plain dictionaries ready for JSON serialization.
Failures are raised as `ValidationError` / `NotFoundError`.
"""

import logging
import math
from datetime import datetime
from typing import Any, List, Optional

from . import models
from .errors import NotFoundError, ValidationError
from .repositories import LogOrder, Repositories
from .utils.dates import format_calendar_date, parse_date, parse_optional_date
from .utils.log_query import parse_limit, query_log

logger = logging.getLogger("exercise_tracker.services")

# largest value a signed 64-bit INTEGER column holds
MAX_DURATION = 2 ** 63 - 1


def user_out(user: models.User) -> dict:
    return {"username": user.username, "_id": user.id}


def parse_duration(raw: Any) -> int:
    """Coerce a submitted duration to a whole number, truncating toward zero.

    Accepts ints, floats and numeric strings. Non-numeric, negative and
    out-of-range values raise `ValidationError`.
    """
    if isinstance(raw, bool):
        raise ValidationError("Invalid duration")
    if isinstance(raw, (int, float)):
        value = raw
    else:
        try:
            value = float(str(raw).strip())
        except ValueError:
            raise ValidationError("Invalid duration") from None
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError("Invalid duration")
    duration = int(value)
    if duration < 0 or duration > MAX_DURATION:
        raise ValidationError("Invalid duration")
    return duration


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class UserService:
    """Registration and lookup of users."""
    def __init__(self, repos: Repositories):
        self.repos = repos

    def register(self, username: Optional[str]) -> dict:
        """Register `username`, returning the existing user on repeats."""
        if not isinstance(username, str) or not username:
            raise ValidationError("Username is required")
        return user_out(self.repos.users.create_or_get(username))

    def list_users(self) -> List[dict]:
        return [user_out(u) for u in self.repos.users.list_all()]

    def require(self, user_id: str) -> models.User:
        """Return the user with `user_id` or raise `NotFoundError`."""
        user = self.repos.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user


class ExerciseService:
    """Adding exercises and building filtered logs."""
    def __init__(self, repos: Repositories, order: LogOrder = LogOrder.INSERTION):
        self.repos = repos
        self.order = order
        self.users = UserService(repos)

    def add_exercise(self, user_id: str, description: Any, duration: Any, date: Any = None) -> dict:
        """Validate the submission and append it to the user's exercises.

        Field checks run before the user lookup; the date is parsed before
        anything is written.
        """
        if _is_blank(description) or _is_blank(duration):
            raise ValidationError("Description and duration are required")
        if not isinstance(description, str):
            description = str(description)
        minutes = parse_duration(duration)
        user = self.users.require(user_id)
        if _is_blank(date):
            when = datetime.now()
        else:
            try:
                when = parse_date(date)
            except ValueError:
                raise ValidationError("Invalid date format") from None
        record = self.repos.exercises.append(user.id, description, minutes, when)
        logger.debug("added exercise id=%s user_id=%s duration=%s", record.id, user.id, minutes)
        return {
            "_id": user.id,
            "username": user.username,
            "description": record.description,
            "duration": record.duration,
            "date": format_calendar_date(record.date),
        }

    def get_log(self, user_id: str, date_from: Optional[str] = None, date_to: Optional[str] = None, limit: Any = None) -> dict:
        """Return the user's log filtered by the optional bounds and limit."""
        user = self.users.require(user_id)
        try:
            lower = parse_optional_date(date_from)
            upper = parse_optional_date(date_to)
        except ValueError:
            raise ValidationError("Invalid date format") from None
        records = self.repos.exercises.list_for(user.id, self.order)
        result = query_log(records, lower, upper, parse_limit(limit))
        return {
            "_id": user.id,
            "username": user.username,
            "count": result.count,
            "log": result.log,
        }

"""Error types raised by services and mapped to HTTP responses."""


class ExerciseTrackerError(Exception):
    """Base class for expected, client-facing failures."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ExerciseTrackerError, ValueError):
    """A required field is missing or malformed."""
    status_code = 400


class NotFoundError(ExerciseTrackerError, LookupError):
    """A referenced entity does not exist."""
    status_code = 404

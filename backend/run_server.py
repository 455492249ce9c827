"""Start the exercise tracker API with uvicorn.

Host and port come from the `HOST` and `PORT` environment variables
(defaults `0.0.0.0` and `3000`).

Usage:
    python run_server.py
"""
import sys
from pathlib import Path

import uvicorn

# Ensure `backend/` is on sys.path so the package imports when run directly
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from exercise_tracker.config import settings  # noqa: E402


def main() -> None:
    config = uvicorn.Config(
        "exercise_tracker.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
    uvicorn.Server(config).run()


if __name__ == '__main__':
    main()

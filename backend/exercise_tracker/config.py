"""Application settings and validation."""

import os
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent

STORE_BACKENDS = ("memory", "sql")
LOG_ORDERS = ("insertion", "date_desc")


class Settings:
    ENV: str
    LOG_LEVEL: str
    STORE_BACKEND: str
    DATABASE_URL: str
    LOG_ORDER: str
    ALLOW_DEV_CORS: bool
    HOST: str
    PORT: int

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.STORE_BACKEND = os.getenv("STORE_BACKEND", "memory").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'exercise_tracker.db'}")
        self.LOG_ORDER = os.getenv("LOG_ORDER", "insertion").lower()
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.HOST = os.getenv("HOST", "0.0.0.0")
        self.PORT = int(os.getenv("PORT", "3000"))
        self._validate()

    def _validate(self):
        if self.STORE_BACKEND not in STORE_BACKENDS:
            raise RuntimeError(f"STORE_BACKEND must be one of {', '.join(STORE_BACKENDS)}")
        if self.LOG_ORDER not in LOG_ORDERS:
            raise RuntimeError(f"LOG_ORDER must be one of {', '.join(LOG_ORDERS)}")


settings = Settings()

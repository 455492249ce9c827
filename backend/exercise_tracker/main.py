"""FastAPI application entrypoint and HTTP controllers.

Controllers are thin: they read the request body or query string,
delegate to services, and return JSON. Service errors are mapped to
`{"error": <message>}` bodies by the exception handlers below.

Endpoints implemented:
- POST /api/users
- GET /api/users
- POST /api/users/{user_id}/exercises
- GET /api/users/{user_id}/logs
- GET /health
"""

import json
import logging
import time
import uuid
from typing import List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .database import create_db_and_tables, get_repositories
from .errors import ExerciseTrackerError, ValidationError
from .logging_config import setup_logging
from .repositories import LogOrder, Repositories
from .schemas import ErrorOut, ExerciseOut, LogOut, UserOut
from .services import ExerciseService, UserService

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger("exercise_tracker.api")

app = FastAPI(title="Exercise Tracker API")

FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")
ERROR_RESPONSES = {400: {"model": ErrorOut}, 404: {"model": ErrorOut}}

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

if settings.STORE_BACKEND == "sql":
    create_db_and_tables()


def _request_log_fields(request: Request, started: float) -> dict:
    return {
        "request_id": getattr(request.state, "request_id", ""),
        "path": request.url.path,
        "method": request.method,
        "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
    }


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """Tag each request with an `X-Request-ID` and log API timings."""
    request.state.request_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("request_failed %s", json.dumps(_request_log_fields(request, started)))
        raise
    response.headers["X-Request-ID"] = request.state.request_id
    if request.url.path.startswith("/api"):
        fields = _request_log_fields(request, started)
        fields["status_code"] = response.status_code
        logger.info("request_done %s", json.dumps(fields))
    return response


@app.exception_handler(ExerciseTrackerError)
async def tracker_error_handler(request: Request, exc: ExerciseTrackerError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request"})


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    # details are logged by the request middleware, never returned
    headers = {"X-Request-ID": request.state.request_id} if hasattr(request.state, "request_id") else None
    return JSONResponse(status_code=500, content={"error": "Internal server error"}, headers=headers)


def get_log_order() -> LogOrder:
    """Log ordering selected by the `LOG_ORDER` setting."""
    return LogOrder(settings.LOG_ORDER)


async def read_payload(request: Request) -> dict:
    """Return the request body as a dict, from JSON or form encoding."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_TYPES):
        form = await request.form()
        return {k: v for k, v in form.items()}
    body = await request.body()
    if not body.strip():
        return {}
    try:
        data = json.loads(body)
    except ValueError:
        raise ValidationError("Invalid JSON body") from None
    if not isinstance(data, dict):
        raise ValidationError("Request body must be an object")
    return data


@app.post("/api/users", response_model=UserOut, responses=ERROR_RESPONSES)
def create_user(payload: dict = Depends(read_payload), repos: Repositories = Depends(get_repositories)):
    """Register a username (idempotent).

    Posting an existing username returns the stored user unchanged.
    """
    return UserService(repos).register(payload.get("username"))


@app.get("/api/users", response_model=List[UserOut])
def list_users(repos: Repositories = Depends(get_repositories)):
    """List all users in creation order."""
    return UserService(repos).list_users()


@app.post("/api/users/{user_id}/exercises", response_model=ExerciseOut, responses=ERROR_RESPONSES)
def add_exercise(
    user_id: str,
    payload: dict = Depends(read_payload),
    repos: Repositories = Depends(get_repositories),
    order: LogOrder = Depends(get_log_order),
):
    """Add an exercise to the user's log.

    Body fields: `description`, `duration` and an optional `date`. The
    date defaults to now and is echoed back as a calendar string.
    """
    svc = ExerciseService(repos, order)
    return svc.add_exercise(
        user_id,
        payload.get("description"),
        payload.get("duration"),
        payload.get("date"),
    )


@app.get("/api/users/{user_id}/logs", response_model=LogOut, responses=ERROR_RESPONSES)
def get_logs(
    user_id: str,
    date_from: Optional[str] = Query(default=None, alias="from"),
    date_to: Optional[str] = Query(default=None, alias="to"),
    limit: Optional[str] = None,
    repos: Repositories = Depends(get_repositories),
    order: LogOrder = Depends(get_log_order),
):
    """Return the user's exercise log.

    `from` and `to` bound the exercise date inclusively; `limit` keeps
    only the first N matching entries.
    """
    return ExerciseService(repos, order).get_log(user_id, date_from, date_to, limit)


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}


@app.get("/", response_class=HTMLResponse)
def home():
    """Minimal homepage with forms for manual testing."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
      <meta charset="UTF-8" />
      <title>Exercise Tracker</title>
      <style>
        body { font-family: Arial, sans-serif; margin: 32px; }
        form { max-width: 420px; padding: 16px; border: 1px solid #ddd; border-radius: 8px; margin-bottom: 16px; }
        input { display: block; width: 100%; margin: 6px 0; }
      </style>
    </head>
    <body>
      <h1>Exercise Tracker</h1>
      <form action="/api/users" method="post">
        <h3>Create a new user</h3>
        <input name="username" placeholder="username" />
        <input type="submit" value="Submit" />
      </form>
      <form id="exercise-form" method="post">
        <h3>Add exercises</h3>
        <input id="uid" placeholder=":_id" />
        <input name="description" placeholder="description*" />
        <input name="duration" placeholder="duration* (mins.)" />
        <input name="date" placeholder="date (yyyy-mm-dd)" />
        <input type="submit" value="Submit" />
      </form>
      <p>GET user's exercise log: <code>GET /api/users/:_id/logs?[from][&amp;to][&amp;limit]</code></p>
      <script>
        document.getElementById('exercise-form').addEventListener('submit', function () {
          this.action = '/api/users/' + document.getElementById('uid').value + '/exercises';
        });
      </script>
    </body>
    </html>
    """

import asyncio
import logging
import time
from contextvars import ContextVar

from sqlalchemy import event
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Per-request context variable
# ---------------------------------------------------------------------------

query_count_var: ContextVar[int] = ContextVar("query_count", default=0)


def install_query_counter(engine) -> None:
    """
    Register a ``before_cursor_execute`` listener on *engine* that
    increments the per-request ``query_count_var`` for every SQL statement,
    including the ones issued by the unit of work and the lock store.

    Must be called once per engine (production engine in ``database.py``,
    test engine in ``conftest.py``).
    """
    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "before_cursor_execute")
    def _count_query(conn, cursor, statement, parameters, context, executemany):
        query_count_var.set(query_count_var.get() + 1)


# ---------------------------------------------------------------------------
# Middleware (pure ASGI; avoids BaseHTTPMiddleware ContextVar isolation)
# ---------------------------------------------------------------------------

class TimingMiddleware:
    """
    Pure ASGI middleware wrapping every HTTP request with:

    - ``X-Response-Time-Ms``: wall-clock time until the response started.
    - ``X-Query-Count``: SQL statements executed for the request.
    - a request deadline: if the app has not started a response within
      *timeout* seconds the task is cancelled and a 504 is returned.
    - one access-log line per request.
    """

    def __init__(self, app: ASGIApp, timeout: float | None = None) -> None:
        self.app = app
        self.timeout = timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        query_count_var.set(0)
        start = time.perf_counter()
        status: dict[str, int] = {}

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                # Read the counter here: the app runs in a child task whose
                # context changes are not visible after wait_for returns.
                status["code"] = message["status"]
                status["queries"] = query_count_var.get()
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                headers = list(message.get("headers", []))
                headers.append((b"x-response-time-ms", str(duration_ms).encode()))
                headers.append((b"x-query-count", str(status["queries"]).encode()))
                message["headers"] = headers
            await send(message)

        try:
            await asyncio.wait_for(self.app(scope, receive, send_wrapper), self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Request timed out after %ss: %s %s", self.timeout, scope["method"], scope["path"])
            if "code" in status:
                raise
            await send_wrapper({
                "type": "http.response.start",
                "status": 504,
                "headers": [(b"content-type", b"application/json")],
            })
            await send_wrapper({"type": "http.response.body", "body": b'{"detail":"Request timed out"}'})

        logger.info(
            "%s %s -> %s (%.2f ms, %d queries)",
            scope["method"],
            scope["path"],
            status.get("code"),
            (time.perf_counter() - start) * 1000,
            status.get("queries", 0),
        )

"""Structured JSON logging.

Each line carries the request id and the scope (user) id of the request that
produced it. Domain code can attach identifiers through ``extra=``; only the
keys in ``EXTRA_FIELDS`` are copied into the output.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
scope_id_ctx: ContextVar[str | None] = ContextVar("scope_id", default=None)

EXTRA_FIELDS = (
    "expense_id",
    "category_id",
    "day_key",
    "week_key",
    "method",
    "path",
    "status",
    "duration_ms",
)


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        record.request_id = request_id_ctx.get() or "-"
        record.scope_id = scope_id_ctx.get() or "-"
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        stamp = datetime.fromtimestamp(record.created, timezone.utc)
        base: Dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "time": stamp.isoformat(timespec="milliseconds"),
            "request_id": getattr(record, "request_id", "-"),
            "scope_id": getattr(record, "scope_id", "-"),
        }
        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                base[key] = getattr(record, key)
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False, default=str)


def init_logging(level: str = "INFO", debug: bool = False) -> None:
    root = logging.getLogger()
    root.handlers.clear()
    resolved = logging.DEBUG if debug else logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level {level!r}")
    root.setLevel(resolved)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(resolved)
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)


async def request_context_middleware(request, call_next):  # type: ignore
    rid = request.headers.get("x-request-id") or uuid.uuid4().hex
    rid_token = request_id_ctx.set(rid)
    scope_token = scope_id_ctx.set(None)
    logger = logging.getLogger("spendlog.request")
    started = time.perf_counter()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        response.headers["X-Request-Id"] = rid
        return response
    finally:
        logger.info(
            "%s %s -> %s",
            request.method,
            request.url.path,
            status,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        scope_id_ctx.reset(scope_token)
        request_id_ctx.reset(rid_token)

"""Request scope resolution.

The scope id (the user every row belongs to) is trusted from the
``X-Scope-Id`` header. The resolved value is also stamped into the logging
context so every log line of the request carries it.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, Request
from starlette import status

from spendlog.core.logging import scope_id_ctx
from spendlog.db.dal import Database

SCOPE_HEADER = "X-Scope-Id"


async def get_scope_id(x_scope_id: Optional[str] = Header(None)) -> str:
    scope = (x_scope_id or "").strip()
    if not scope:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"missing {SCOPE_HEADER} header",
        )
    scope_id_ctx.set(scope)
    return scope


def get_db(request: Request) -> Database:
    return request.app.state.db


__all__ = ["SCOPE_HEADER", "get_scope_id", "get_db"]

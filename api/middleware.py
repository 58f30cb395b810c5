"""Per-warehouse scoping of rule catalogs and reorder lists.

A client names its warehouse (or packing station) in the
``X-Warehouse-ID`` header; the stores key everything by that name. The
value lives in a ContextVar for the duration of the request, which is
how the route handlers find it.
"""

import re
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from core.exceptions import InvalidWarehouseError
from core.storage import DEFAULT_NAMESPACE

WAREHOUSE_HEADER = "X-Warehouse-ID"

# Matches the width of the ``stored_settings.namespace`` column.
_WAREHOUSE_ID = re.compile(r"^[a-z0-9][a-z0-9_-]{0,63}$")

_warehouse: ContextVar[str] = ContextVar("warehouse", default=DEFAULT_NAMESPACE)


def get_current_warehouse() -> str:
    """Warehouse of the request being handled; ``default`` outside a request."""
    return _warehouse.get()


def normalize_warehouse_id(raw: str) -> str:
    """Lowercase and trim a header value. An empty value means the default."""
    return raw.strip().lower() or DEFAULT_NAMESPACE


class WarehouseMiddleware(BaseHTTPMiddleware):
    """Bind the request's warehouse, rejecting names the store cannot key."""

    async def dispatch(self, request: Request, call_next) -> Response:
        warehouse = normalize_warehouse_id(request.headers.get(WAREHOUSE_HEADER, ""))
        if not _WAREHOUSE_ID.match(warehouse):
            error = InvalidWarehouseError(warehouse)
            return JSONResponse(status_code=error.status_code, content=error.to_dict())

        token = _warehouse.set(warehouse)
        try:
            return await call_next(request)
        finally:
            _warehouse.reset(token)

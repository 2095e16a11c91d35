"""aiohttp history endpoint over a telemetry repository.

``GET /api/history?from=&to=&limit=&cursor=``: query-string values are
validated the same way as :meth:`InMemoryTelemetryRepository.query`;
a :class:`QueryError` is answered with HTTP 400.
"""

from __future__ import annotations

from typing import Any

from aiohttp import web

from pytelesim.models.history import QueryError, parse_history_query
from pytelesim.storage.repository import InMemoryTelemetryRepository

REPOSITORY_KEY = web.AppKey("repository", InMemoryTelemetryRepository)

_QUERY_KEYS = ("from", "to", "limit", "cursor")
_NO_STORE = {"Cache-Control": "no-store"}


def _json(body: dict[str, Any], status: int = 200) -> web.Response:
    return web.json_response(body, status=status, headers=_NO_STORE)


async def handle_history(request: web.Request) -> web.Response:
    repository = request.app[REPOSITORY_KEY]
    raw = {key: request.query[key] for key in _QUERY_KEYS if key in request.query}

    query = parse_history_query(raw)
    if isinstance(query, QueryError):
        return _json(query.to_wire(), status=400)

    result = repository.query(query)
    if isinstance(result, QueryError):
        return _json(result.to_wire(), status=400)

    body: dict[str, Any] = {
        "samples": [sample.to_wire() for sample in result.samples],
        "count": len(result.samples),
        "totalAvailable": result.total_available,
        "query": query.model_dump(mode="json", by_alias=True, exclude_none=True),
    }
    if result.next_cursor is not None:
        body["nextCursor"] = result.next_cursor
    return _json(body)


def create_history_app(repository: InMemoryTelemetryRepository) -> web.Application:
    """Build an application serving *repository* under ``/api/history``."""
    app = web.Application()
    app[REPOSITORY_KEY] = repository
    app.router.add_get("/api/history", handle_history)
    return app

"""Record source backed by a PostgREST endpoint (Supabase REST API)."""

from datetime import datetime
from typing import Any, Sequence

import httpx
from aiolimiter import AsyncLimiter
from loguru import logger

from ..constants import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_REQUESTS_PER_SECOND,
    MAX_CONCURRENT_BATCHES,
    REST_API_PATH,
)
from .base import Operator, Predicate, RecordQuery


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _quote(value: Any) -> str:
    escaped = _format_value(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def render_predicate(predicate: Predicate) -> tuple[str, str]:
    """Render a predicate as a PostgREST query parameter.

    Args:
        predicate: Column filter to render.

    Returns:
        tuple[str, str]: ``(column, "operator.value")`` pair.
    """
    if predicate.operator is Operator.NOT_NULL:
        return predicate.column, "not.is.null"
    if predicate.operator is Operator.IN:
        values = ",".join(_quote(value) for value in predicate.value)
        return predicate.column, f"in.({values})"
    return predicate.column, f"{predicate.operator}.{_format_value(predicate.value)}"


def render_query(query: RecordQuery) -> list[tuple[str, str]]:
    """Render every predicate; repeated columns become repeated parameters."""
    return [render_predicate(predicate) for predicate in query.predicates]


def parse_content_range(header: str | None) -> int:
    """Extract the total from a ``Content-Range: 0-999/4321`` header.

    Raises:
        ValueError: If the header is missing or carries no exact total.
    """
    if not header or "/" not in header:
        raise ValueError(f"Missing exact count in Content-Range header: {header!r}")
    total = header.rsplit("/", 1)[1]
    if total == "*":
        raise ValueError("Server did not return an exact count")
    return int(total)


class PostgrestRecordSource:
    """Reads tables through the hosted store's REST interface.

    Attributes:
        client: Shared httpx client, pooled to the fetch concurrency.
        rate_limiter: AsyncLimiter capping requests per second.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        requests_per_second: int = DEFAULT_REQUESTS_PER_SECOND,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the source.

        Args:
            base_url: Project URL, e.g. ``https://xyz.supabase.co``.
            api_key: Service role key sent as ``apikey`` and bearer token.
            requests_per_second: Upper bound on request rate.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport, used by tests.
        """
        self.client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}{REST_API_PATH}",
            headers={"apikey": api_key, "Authorization": f"Bearer {api_key}"},
            limits=httpx.Limits(
                max_connections=MAX_CONCURRENT_BATCHES * 2,
                max_keepalive_connections=MAX_CONCURRENT_BATCHES * 2,
            ),
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )
        self.rate_limiter = AsyncLimiter(max_rate=requests_per_second, time_period=1)

    async def __aenter__(self) -> "PostgrestRecordSource":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def count(self, table: str, query: RecordQuery) -> int:
        params = [("select", "id"), *render_query(query)]
        async with self.rate_limiter:
            response = await self.client.head(
                f"/{table}", params=params, headers={"Prefer": "count=exact"}
            )
            response.raise_for_status()
        total = parse_content_range(response.headers.get("content-range"))
        logger.debug(f"Counted {total} rows in {table}")
        return total

    async def read(
        self,
        table: str,
        columns: Sequence[str],
        query: RecordQuery,
        *,
        offset: int,
        limit: int,
        order: Sequence[str] = (),
    ) -> list[dict[str, Any]]:
        params = [
            ("select", ",".join(columns)),
            *render_query(query),
            ("offset", str(offset)),
            ("limit", str(limit)),
        ]
        if order:
            params.append(("order", ",".join(f"{column}.asc" for column in order)))

        async with self.rate_limiter:
            response = await self.client.get(f"/{table}", params=params)
            response.raise_for_status()
        rows = response.json()
        logger.trace(f"Read {len(rows)} rows from {table} at offset {offset}")
        return rows

"""Query description shared by all record sources."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum
from typing import Any, Protocol, Sequence

from ..timestamps import assume_utc


class Operator(StrEnum):
    """Filter operators supported by the remote store."""

    GTE = "gte"
    LT = "lt"
    EQ = "eq"
    NEQ = "neq"
    IN = "in"
    NOT_NULL = "not_null"


@dataclass(frozen=True)
class Predicate:
    """A single column filter."""

    column: str
    operator: Operator
    value: Any = None


def _as_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    return assume_utc(parsed)


def _compare(row_value: Any, query_value: Any) -> tuple[Any, Any] | None:
    """Bring a stored value and a query value to comparable types."""
    if isinstance(query_value, datetime):
        parsed = _as_datetime(row_value)
        if parsed is None:
            return None
        return parsed, _as_datetime(query_value)
    return row_value, query_value


@dataclass(frozen=True)
class RecordQuery:
    """Immutable, chainable filter over one table.

    NULL handling follows SQL: a NULL column never satisfies a comparison,
    inclusion or inequality predicate.
    """

    predicates: tuple[Predicate, ...] = field(default_factory=tuple)

    def _with(self, predicate: Predicate) -> "RecordQuery":
        return replace(self, predicates=self.predicates + (predicate,))

    def gte(self, column: str, value: Any) -> "RecordQuery":
        return self._with(Predicate(column, Operator.GTE, value))

    def lt(self, column: str, value: Any) -> "RecordQuery":
        return self._with(Predicate(column, Operator.LT, value))

    def eq(self, column: str, value: Any) -> "RecordQuery":
        return self._with(Predicate(column, Operator.EQ, value))

    def neq(self, column: str, value: Any) -> "RecordQuery":
        return self._with(Predicate(column, Operator.NEQ, value))

    def in_(self, column: str, values: Sequence[Any]) -> "RecordQuery":
        return self._with(Predicate(column, Operator.IN, tuple(values)))

    def not_null(self, column: str) -> "RecordQuery":
        return self._with(Predicate(column, Operator.NOT_NULL))

    def matches(self, row: dict[str, Any]) -> bool:
        """Evaluate the query against a row held in memory."""
        return all(_matches(predicate, row) for predicate in self.predicates)


def _matches(predicate: Predicate, row: dict[str, Any]) -> bool:
    row_value = row.get(predicate.column)
    if row_value is None:
        return False
    if predicate.operator is Operator.NOT_NULL:
        return True
    if predicate.operator is Operator.IN:
        return row_value in predicate.value

    pair = _compare(row_value, predicate.value)
    if pair is None:
        return False
    left, right = pair
    if predicate.operator is Operator.GTE:
        return left >= right
    if predicate.operator is Operator.LT:
        return left < right
    if predicate.operator is Operator.EQ:
        return left == right
    return left != right


class RecordSource(Protocol):
    """Paginated read access to the hosted store."""

    async def count(self, table: str, query: RecordQuery) -> int:
        """Exact number of rows of ``table`` matching ``query``."""
        ...

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
        """Read at most ``limit`` projected rows starting at ``offset``.

        ``order`` lists ascending sort columns; paging callers end it with a
        unique column so consecutive pages neither repeat nor skip rows.
        """
        ...

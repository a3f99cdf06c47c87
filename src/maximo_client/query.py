"""
Query specification and OSLC query-string serialization.

A QuerySpec accumulates selection, filter clauses, ordering and page size.
Clause sequencing (where/and followed by exactly one predicate) is tracked
by a two-state machine; misuse is recorded and only reported when the spec
is serialized, so long fluent chains never raise half way through.
"""

from __future__ import annotations
import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from numbers import Number
from typing import Any, List, Optional, Sequence, Tuple

from .runtime.errors import ErrorCode, QueryUsageError


logger = logging.getLogger(__name__)

AND_JOINER = " and "
ORDER_TOKENS = {"asc": "+", "desc": "-"}


class ClauseState(Enum):
    """Where the builder is in a filter clause."""
    IDLE = "idle"
    OPEN = "open"


class Operator(Enum):
    EQUAL = "="
    IN = "in"
    NOT_NULL = "notnull"


def quote_literal(value: Any) -> str:
    """Serialize a filter literal: numbers bare, everything else double-quoted."""
    if isinstance(value, Number) and not isinstance(value, bool):
        return str(value)
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


@dataclass(frozen=True)
class FilterClause:
    """One completed ``field <op> value`` predicate."""
    field: str
    operator: Operator
    value: Any = None
    is_int: bool = False

    def serialize(self) -> str:
        if self.operator is Operator.EQUAL:
            return f"{self.field}={quote_literal(self.value)}"
        if self.operator is Operator.NOT_NULL:
            return f'{self.field}="*"'
        if self.is_int:
            items = ",".join(str(v) for v in self.value)
        else:
            items = ",".join(quote_literal(str(v)) for v in self.value)
        return f"{self.field} in [{items}]"


@dataclass
class QuerySpec:
    """Accumulated query against one object structure."""
    mbo: str
    select: List[str] = field(default_factory=list)
    clauses: List[FilterClause] = field(default_factory=list)
    order: Optional[Tuple[str, str]] = None
    page_size: Optional[int] = None
    collection_count: bool = True
    state: ClauseState = ClauseState.IDLE
    open_field: Optional[str] = None
    usage_error: Optional[str] = None

    # -- state machine -------------------------------------------------

    def _misuse(self, message: str) -> None:
        # First error wins; later calls are judged against a broken sequence
        if self.usage_error is None:
            self.usage_error = message

    def open_clause(self, field_name: str, keyword: str) -> None:
        if self.state is ClauseState.OPEN:
            self._misuse(f"{keyword}({field_name!r}) called while clause on {self.open_field!r} "
                         f"has no predicate")
        elif keyword == "and" and not self.clauses:
            self._misuse(f"and({field_name!r}) called before any where()")
        self.state = ClauseState.OPEN
        self.open_field = field_name

    def close_clause(self, operator: Operator, value: Any = None, is_int: bool = False) -> None:
        if self.state is not ClauseState.OPEN:
            self._misuse(f"{operator.name.lower()} predicate without an open where()/and() clause")
            return
        self.clauses.append(FilterClause(self.open_field, operator, value, is_int))
        self.state = ClauseState.IDLE
        self.open_field = None

    def validate(self) -> None:
        """
        Raise the first recorded misuse, or an unterminated clause.

        Raises:
            QueryUsageError: If the clause sequence is malformed
        """
        if self.usage_error is not None:
            raise QueryUsageError(self.usage_error, details={"mbo": self.mbo})
        if self.state is ClauseState.OPEN:
            raise QueryUsageError(
                f"Filter clause on {self.open_field!r} was never completed with "
                f"equal(), in_() or notnull()",
                ErrorCode.UNTERMINATED_CLAUSE,
                details={"mbo": self.mbo},
            )

    # -- serialization -------------------------------------------------

    def where_expression(self) -> str:
        return AND_JOINER.join(clause.serialize() for clause in self.clauses)

    def to_params(self, common: Sequence[Tuple[str, str]] = ()) -> List[Tuple[str, str]]:
        """
        Ordered query parameters for this spec.

        ``common`` carries lean/tenant parameters from the session; lean goes
        first and the tenant last.
        """
        self.validate()
        common = list(common)
        params = [p for p in common if p[0] == "lean"]
        if self.select:
            params.append(("oslc.select", ",".join(self.select)))
        if self.clauses:
            params.append(("oslc.where", self.where_expression()))
        if self.order is not None:
            field_name, direction = self.order
            params.append(("oslc.orderBy", f"{ORDER_TOKENS[direction]}{field_name}"))
        if self.page_size is not None:
            params.append(("oslc.pageSize", str(self.page_size)))
        if self.collection_count:
            params.append(("collectioncount", "1"))
        params.extend(p for p in common if p[0] != "lean")
        logger.debug(f"Serialized query for {self.mbo}: {params}")
        return params

    def frozen(self) -> QuerySpec:
        """Independent copy, so later builder calls cannot touch a result."""
        return copy.deepcopy(self)


def validate_page_size(size: Any) -> int:
    """
    Check a page-size hint.

    Raises:
        QueryUsageError: For non-int, bool, zero or negative values
    """
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        raise QueryUsageError(f"Page size must be a positive integer, got {size!r}",
                              ErrorCode.INVALID_PAGE_SIZE)
    return size


def validate_direction(direction: str) -> str:
    """
    Normalize an ordering direction.

    Raises:
        QueryUsageError: For anything but asc/desc
    """
    normalized = str(direction).lower()
    if normalized not in ORDER_TOKENS:
        raise QueryUsageError(f"Order direction must be 'asc' or 'desc', got {direction!r}",
                              ErrorCode.INVALID_ORDER)
    return normalized

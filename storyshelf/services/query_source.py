from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from contextlib import contextmanager
from typing import Any, Callable, NamedTuple, Protocol, Sequence, TypeVar

from sqlalchemy import asc, desc, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query

from storyshelf.services.query_errors import QueryCancelled, QueryStoreError

_LOG = logging.getLogger("storyshelf.query")

_INTERRUPT_POLL_SECONDS = 0.05

T = TypeVar("T")


class SortKey(NamedTuple):
    field: str
    descending: bool = False


class QuerySource(Protocol):
    """Lazily composed, read-only view over a store.

    Every composing call returns a new source; nothing runs until ``count``
    or ``slice`` is called.
    """

    def search(self, term: str, fields: Sequence[str]) -> "QuerySource":
        ...

    def order_by(self, keys: Sequence[SortKey]) -> "QuerySource":
        ...

    def bind_cancel(self, cancel: threading.Event | None) -> "QuerySource":
        ...

    def count(self) -> int:
        ...

    def slice(self, offset: int, limit: int) -> list[Any]:
        ...


def _driver_interrupt(query: Query) -> Callable[[], None] | None:
    # sqlite3 exposes interrupt(), psycopg and psycopg2 expose cancel().
    driver = query.session.connection().connection.driver_connection
    return getattr(driver, "interrupt", None) or getattr(driver, "cancel", None)


class SqlAlchemyQuerySource:
    def __init__(self, query: Query, columns: Mapping[str, Any], *, cancel: threading.Event | None = None):
        self.query = query
        self.columns = dict(columns)
        self.cancel = cancel

    def _column(self, path: str):
        try:
            return self.columns[path]
        except KeyError:
            raise KeyError(f'Unknown storage field "{path}"') from None

    def _with(self, query: Query) -> "SqlAlchemyQuerySource":
        return SqlAlchemyQuerySource(query, self.columns, cancel=self.cancel)

    def search(self, term: str, fields: Sequence[str]) -> "SqlAlchemyQuerySource":
        if not term or not fields:
            return self
        clauses = [self._column(path).icontains(term, autoescape=True) for path in fields]
        return self._with(self.query.filter(or_(*clauses)))

    def order_by(self, keys: Sequence[SortKey]) -> "SqlAlchemyQuerySource":
        if not keys:
            return self
        # NULLs first ascending and last descending on every backend.
        clauses = [
            desc(self._column(k.field)).nulls_last() if k.descending else asc(self._column(k.field)).nulls_first()
            for k in keys
        ]
        return self._with(self.query.order_by(*clauses))

    def bind_cancel(self, cancel: threading.Event | None) -> "SqlAlchemyQuerySource":
        return SqlAlchemyQuerySource(self.query, self.columns, cancel=cancel)

    @contextmanager
    def _interrupt_on_cancel(self):
        """Abort the running statement from a watcher thread once ``cancel`` is set."""
        if self.cancel is None:
            yield
            return
        interrupt = _driver_interrupt(self.query)
        if interrupt is None:
            yield
            return
        cancel = self.cancel
        done = threading.Event()

        def _watch() -> None:
            while not done.is_set():
                if cancel.wait(_INTERRUPT_POLL_SECONDS):
                    if not done.is_set():
                        _LOG.info("query_interrupted")
                        interrupt()
                    return

        watcher = threading.Thread(target=_watch, name="query-cancel-watch", daemon=True)
        watcher.start()
        try:
            yield
        finally:
            # The watcher exits on its next poll.
            done.set()

    def _execute(self, run: Callable[[], T], action: str) -> T:
        try:
            with self._interrupt_on_cancel():
                return run()
        except SQLAlchemyError as exc:
            if self.cancel is not None and self.cancel.is_set():
                raise QueryCancelled(f"Query was cancelled while trying to {action}") from exc
            _LOG.warning("query_%s_failed", action.replace(" ", "_"), exc_info=True)
            raise QueryStoreError(f"Failed to {action}") from exc

    def count(self) -> int:
        return self._execute(lambda: int(self.query.order_by(None).count()), "count results")

    def slice(self, offset: int, limit: int) -> list[Any]:
        return self._execute(lambda: list(self.query.offset(offset).limit(limit).all()), "fetch results")


def resolve_path(record: Any, path: str) -> Any:
    value = record
    for part in path.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


class MemoryQuerySource:
    def __init__(self, records: Sequence[Any], resolver: Callable[[Any, str], Any] = resolve_path):
        self.records = tuple(records)
        self.resolver = resolver

    def _with(self, records: Sequence[Any]) -> "MemoryQuerySource":
        return type(self)(records, self.resolver)

    def search(self, term: str, fields: Sequence[str]) -> "MemoryQuerySource":
        if not term or not fields:
            return self
        needle = term.casefold()

        def _matches(record) -> bool:
            for path in fields:
                value = self.resolver(record, path)
                if isinstance(value, str) and needle in value.casefold():
                    return True
            return False

        return self._with([r for r in self.records if _matches(r)])

    def order_by(self, keys: Sequence[SortKey]) -> "MemoryQuerySource":
        rows = list(self.records)
        # Stable sorts applied from the least significant key up.
        for key in reversed(list(keys)):
            rows.sort(
                key=lambda r, _f=key.field: _null_first_key(self.resolver(r, _f)),
                reverse=key.descending,
            )
        return self._with(rows)

    def bind_cancel(self, cancel: threading.Event | None) -> "MemoryQuerySource":
        return self

    def count(self) -> int:
        return len(self.records)

    def slice(self, offset: int, limit: int) -> list[Any]:
        return list(self.records[offset:offset + limit])


def _null_first_key(value: Any) -> tuple:
    # NULL sorts before any value ascending and after it descending, like the
    # NULLS FIRST / NULLS LAST clauses SqlAlchemyQuerySource emits.
    if value is None:
        return (0, 0)
    return (1, value)

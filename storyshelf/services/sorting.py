from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from storyshelf.services.query_errors import (
    QueryError,
    QueryValidationError,
    invalid_sort_directions,
    invalid_sort_fields,
)
from storyshelf.services.query_source import SortKey

DIRECTIONS = {"asc": False, "desc": True}


@dataclass(frozen=True)
class SortMapping:
    """Public sort field name and the storage field it orders by.

    ``reverse`` flips the natural direction, e.g. ``usage`` ascending lists the
    most used rows first.
    """

    sort_field: str
    storage_field: str = ""
    reverse: bool = False

    def __post_init__(self):
        if not self.storage_field:
            object.__setattr__(self, "storage_field", self.sort_field)


@dataclass(frozen=True)
class SortTerm:
    field: str
    direction: str | None = None
    extra: tuple[str, ...] = ()

    @property
    def raw(self) -> str:
        return " ".join([self.field, *([self.direction] if self.direction else []), *self.extra])

    @property
    def direction_valid(self) -> bool:
        if self.extra:
            return False
        return self.direction is None or self.direction.lower() in DIRECTIONS

    @property
    def descending(self) -> bool:
        return DIRECTIONS.get(str(self.direction or "asc").lower(), False)


def parse_sort_expression(sort: str | None) -> list[SortTerm]:
    terms: list[SortTerm] = []
    for token in str(sort or "").split(","):
        parts = token.split()
        if not parts:
            continue
        terms.append(SortTerm(field=parts[0], direction=parts[1] if len(parts) > 1 else None, extra=tuple(parts[2:])))
    return terms


class SortMappingTable:
    def __init__(self, mappings: Iterable[SortMapping], *, default: str, tiebreaker: str | None = None):
        self.mappings: tuple[SortMapping, ...] = tuple(mappings)
        if not self.mappings:
            raise ValueError("A sort mapping table needs at least one mapping")
        self._by_name = {m.sort_field.lower(): m for m in self.mappings}
        if len(self._by_name) != len(self.mappings):
            raise ValueError("Duplicate sort field in sort mapping table")
        self.default = default
        self.tiebreaker = tiebreaker
        errors = validate_sort(self, default)
        if errors:
            raise ValueError(f'Default sort "{default}" is not valid: {errors[0].description}')

    @property
    def sort_fields(self) -> tuple[str, ...]:
        return tuple(m.sort_field for m in self.mappings)

    def find(self, name: str) -> SortMapping | None:
        return self._by_name.get(str(name or "").lower())


def find_invalid_sort_fields(table: SortMappingTable, sort: str | None) -> tuple[str, ...]:
    seen: dict[str, str] = {}
    for term in parse_sort_expression(sort):
        if table.find(term.field) is None:
            seen.setdefault(term.field.lower(), term.field)
    return tuple(seen.values())


def validate_sort(table: SortMappingTable, sort: str | None) -> list[QueryError]:
    errors: list[QueryError] = []
    invalid = find_invalid_sort_fields(table, sort)
    if invalid:
        errors.append(invalid_sort_fields(invalid, table.sort_fields))
    bad_directions = tuple(t.raw for t in parse_sort_expression(sort) if not t.direction_valid)
    if bad_directions:
        errors.append(invalid_sort_directions(bad_directions))
    return errors


def ensure_valid_sort(table: SortMappingTable, sort: str | None) -> None:
    errors = validate_sort(table, sort)
    if errors:
        raise QueryValidationError(errors)


def resolve_sort_keys(table: SortMappingTable, sort: str | None) -> list[SortKey]:
    """Turn a validated sort expression into storage-level sort keys."""
    # Blank or separator-only expressions fall back to the declared default.
    expression = sort if parse_sort_expression(sort) else table.default
    ensure_valid_sort(table, expression)
    keys: list[SortKey] = []
    used: set[str] = set()
    for term in parse_sort_expression(expression):
        mapping = table.find(term.field)
        if mapping.storage_field in used:
            continue
        used.add(mapping.storage_field)
        keys.append(SortKey(mapping.storage_field, term.descending != mapping.reverse))
    if table.tiebreaker and table.tiebreaker not in used:
        keys.append(SortKey(table.tiebreaker, False))
    return keys


class SortMappingProvider:
    def __init__(self):
        self._tables: dict[str, SortMappingTable] = {}

    def register(self, result_type: str, table: SortMappingTable) -> SortMappingTable:
        if result_type in self._tables:
            raise ValueError(f'Sort mappings for "{result_type}" are already registered')
        self._tables[result_type] = table
        return table

    def get(self, result_type: str) -> SortMappingTable:
        try:
            return self._tables[result_type]
        except KeyError:
            raise LookupError(f'No sort mapping definition found for "{result_type}"') from None


sort_mappings = SortMappingProvider()

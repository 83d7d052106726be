from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Iterable

from storyshelf.services.query_errors import QueryError, QueryValidationError, invalid_shape_fields
from storyshelf.services.query_source import resolve_path


def parse_field_list(fields: str | None) -> list[str]:
    """Split a comma separated allow-list, dropping blanks and repeated names."""
    names: list[str] = []
    seen: set[str] = set()
    for raw in str(fields or "").split(","):
        name = raw.strip()
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        names.append(name)
    return names


def _canonical_names(known: Iterable[str]) -> dict[str, str]:
    return {name.lower(): name for name in known}


def find_invalid_fields(known: Iterable[str], fields: str | None) -> tuple[str, ...]:
    canonical = _canonical_names(known)
    return tuple(name for name in parse_field_list(fields) if name.lower() not in canonical)


def validate_fields(known: Iterable[str], fields: str | None) -> list[QueryError]:
    invalid = find_invalid_fields(known, fields)
    return [invalid_shape_fields(invalid)] if invalid else []


def shape_data(data: Mapping[str, Any], fields: str | None) -> dict[str, Any]:
    """Return only the allow-listed keys of ``data``, in allow-list order.

    No allow-list means the whole mapping. Unknown names raise instead of being
    dropped, so callers validate at the boundary first.
    """
    names = parse_field_list(fields)
    if not names:
        return dict(data)
    canonical = _canonical_names(data.keys())
    invalid = tuple(name for name in names if name.lower() not in canonical)
    if invalid:
        raise QueryValidationError([invalid_shape_fields(invalid)])
    return {canonical[name.lower()]: data[canonical[name.lower()]] for name in names}


class FieldProjection:
    """Static, ordered table of output field name -> accessor for one result type."""

    def __init__(self, accessors: Mapping[str, Callable[[Any], Any] | str]):
        if not accessors:
            raise ValueError("A projection needs at least one field")
        self._accessors: dict[str, Callable[[Any], Any]] = {}
        for name, accessor in accessors.items():
            if isinstance(accessor, str):
                accessor = _path_accessor(accessor)
            self._accessors[name] = accessor

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(self._accessors)

    def project(self, row: Any) -> dict[str, Any]:
        return {name: accessor(row) for name, accessor in self._accessors.items()}

    def validate(self, fields: str | None) -> list[QueryError]:
        return validate_fields(self.field_names, fields)


def _path_accessor(path: str) -> Callable[[Any], Any]:
    def _get(row: Any) -> Any:
        return resolve_path(row, path)

    return _get

from __future__ import annotations

import re
from typing import Sequence

from storyshelf.services.query_errors import QueryError, harmful_search_term, search_term_too_long
from storyshelf.services.query_source import QuerySource

_CONSECUTIVE_WHITESPACE_RE = re.compile(r"\s+")
# Script tags, javascript: URLs and inline event handlers.
_HARMFUL_CONTENT_RE = re.compile(r"<script|javascript:|on\w+\s*=", re.IGNORECASE)


def normalize_search_term(search: str | None) -> str:
    text = str(search or "").strip()
    if not text:
        return ""
    return _CONSECUTIVE_WHITESPACE_RE.sub(" ", text)


def contains_harmful_content(value: str | None) -> bool:
    return bool(_HARMFUL_CONTENT_RE.search(str(value or "")))


def validate_search(search: str | None, *, max_length: int) -> list[QueryError]:
    term = normalize_search_term(search)
    errors: list[QueryError] = []
    if len(term) > max_length:
        errors.append(search_term_too_long(len(term), max_length))
    if contains_harmful_content(term):
        errors.append(harmful_search_term())
    return errors


def apply_search(source: QuerySource, search: str | None, fields: Sequence[str]) -> QuerySource:
    """Keep rows where the term is a case-insensitive substring of any field.

    Empty search text leaves the source untouched.
    """
    term = normalize_search_term(search)
    if not term or not fields:
        return source
    return source.search(term, fields)

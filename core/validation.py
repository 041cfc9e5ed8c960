# =============================================================================
# core/validation.py  —  Input checks applied before a document is built
# =============================================================================
#
# Everything a caller supplies passes through here before it reaches query
# text.  All failures raise ValidationError, so no network call is made.
#
#   enumerations  allowlist (status, severity, priority, ...)
#   free text     escaped as a GraphQL string literal AND screened against a
#                 denylist of clause-terminating / injection sequences
#   field names   plain GraphQL names only
#   numbers       real numbers; booleans are not numbers
#   limits        positive integers, clamped to the resource ceiling
# =============================================================================

import json
import numbers
import re
from typing import Any, Iterable, Optional

from core.errors import ValidationError


# Sequences that close a string literal and then the argument list or the
# selection set it sits in.
_CLOSING_DELIMITERS = ('"}', '")')

_REFLECTION_MARKERS = re.compile(r"__schema|__type\b", re.IGNORECASE)
_SECONDARY_OPERATIONS = re.compile(r"\b(mutation|subscription|fragment)\b", re.IGNORECASE)
_RAW_FORBIDDEN_OPERATIONS = re.compile(r"\b(mutation|subscription)\b", re.IGNORECASE)

_GRAPHQL_NAME = re.compile(r"^[_A-Za-z][_0-9A-Za-z]*$")


def check_enum(name: str, value: Any, allowed: Iterable[str]) -> str:
    allowed = tuple(allowed)
    if not isinstance(value, str) or value not in allowed:
        raise ValidationError(
            f"Invalid {name} {value!r}; expected one of: {', '.join(allowed)}"
        )
    return value


def check_text(name: str, value: Any) -> str:
    """Screen a free-text filter value and return it unchanged."""
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string, got {type(value).__name__}")
    for delimiter in _CLOSING_DELIMITERS:
        if delimiter in value:
            raise ValidationError(f"{name} contains a forbidden sequence {delimiter!r}")
    if _REFLECTION_MARKERS.search(value):
        raise ValidationError(f"{name} must not reference introspection fields")
    match = _SECONDARY_OPERATIONS.search(value)
    if match:
        raise ValidationError(f"{name} must not contain the keyword {match.group(1)!r}")
    return value


def string_literal(name: str, value: Any) -> str:
    """Render a screened value as a GraphQL string literal."""
    # JSON string escaping is a subset of GraphQL string escaping.
    return json.dumps(check_text(name, value))


def check_number(name: str, value: Any) -> numbers.Real:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if value != value or value in (float("inf"), float("-inf")):
        raise ValidationError(f"{name} must be a finite number")
    return value


def check_integer(name: str, value: Any) -> int:
    check_number(name, value)
    if int(value) != value:
        raise ValidationError(f"{name} must be a whole number, got {value!r}")
    return int(value)


def check_bool(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be true or false, got {value!r}")
    return value


def clamp_limit(value: Optional[Any], default: int, ceiling: int) -> int:
    """Default when unset, ceiling when larger; never the raw oversize input."""
    if value is None:
        return default
    limit = check_integer("limit", value)
    if limit < 1:
        raise ValidationError(f"limit must be at least 1, got {limit}")
    return min(limit, ceiling)


def check_field_names(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        raise ValidationError("fields must be a list of field names")
    for name in value:
        if not isinstance(name, str) or not _GRAPHQL_NAME.match(name):
            raise ValidationError(f"Invalid field name {name!r}")
    return list(value)


def check_raw_query(query: Any) -> str:
    """Guard for caller-supplied GraphQL text.

    Closing delimiters are normal in a whole document, so only a second
    operation or an introspection read is rejected.
    """
    if not isinstance(query, str) or not query.strip():
        raise ValidationError("query must be a non-empty GraphQL document")
    match = _RAW_FORBIDDEN_OPERATIONS.search(query)
    if match:
        raise ValidationError(f"{match.group(1)} operations are not allowed")
    if _REFLECTION_MARKERS.search(query):
        raise ValidationError("Introspection queries are not allowed")
    return query

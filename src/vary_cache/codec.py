"""
Segmentation cookie grammar.

A cookie value is an optional leading no-cache token followed by
``name_--_value`` chunks joined by ``---__``::

    nocache---__dev-group_--_yes---__design-group_--_
"""
import logging
import re
from typing import Dict, Optional, Tuple

from .types import VaryCacheError, VaryCacheErrorCode, VaryCacheResult

logger = logging.getLogger(__name__)

GROUP_SEPARATOR = "---__"
VALUE_SEPARATOR = "_--_"
NOCACHE_TOKEN = "nocache"

_DELIMITERS = (GROUP_SEPARATOR, VALUE_SEPARATOR)
_INVALID_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def _count_occurrences(haystack: str, needle: str) -> int:
    """Count occurrences of needle, overlapping ones included."""
    count = 0
    start = haystack.find(needle)
    while start != -1:
        count += 1
        start = haystack.find(needle, start + 1)
    return count


def _forms_delimiter(value: str) -> bool:
    """
    Check whether value contains a delimiter or would create one
    together with a neighbouring delimiter once serialized.
    """
    for delimiter in _DELIMITERS:
        if delimiter in value:
            return True

    for before in _DELIMITERS:
        for after in _DELIMITERS:
            framed = before + value + after
            expected = {before: 1, after: 1} if before != after else {before: 2}
            for delimiter in _DELIMITERS:
                if _count_occurrences(framed, delimiter) != expected.get(delimiter, 0):
                    return True
    return False


def validate_cookie_value(value: str) -> VaryCacheResult:
    """
    Validate a group name or segment value.

    Returns:
        True if the value can be stored in the cookie, else a VaryCacheError
        with code ``vary_cache_group_cannot_use_delimiter`` or
        ``vary_cache_group_invalid_chars``.
    """
    if not isinstance(value, str):
        return VaryCacheError(
            code=VaryCacheErrorCode.INVALID_CHARS,
            message=f"Vary Cache groups and values must be strings, got {type(value).__name__}",
            data={"value": value},
        )

    if _forms_delimiter(value):
        return VaryCacheError(
            code=VaryCacheErrorCode.CANNOT_USE_DELIMITER,
            message=(
                f'Vary Cache group names and values cannot use the delimiters '
                f'"{GROUP_SEPARATOR}" or "{VALUE_SEPARATOR}"'
            ),
            data={"value": value},
        )

    if _INVALID_CHARS.search(value):
        return VaryCacheError(
            code=VaryCacheErrorCode.INVALID_CHARS,
            message="Vary Cache group names and values can only contain a-z, A-Z, 0-9, - and _",
            data={"value": value},
        )

    return True


def serialize(groups: Dict[str, str], nocache: bool = False) -> str:
    """Encode groups and the no-cache flag into a cookie value."""
    chunks = [NOCACHE_TOKEN] if nocache else []
    chunks.extend(f"{name}{VALUE_SEPARATOR}{value}" for name, value in groups.items())
    return GROUP_SEPARATOR.join(chunks)


def parse(raw: Optional[str]) -> Tuple[Dict[str, str], bool]:
    """
    Decode a cookie value into (groups, nocache).

    The cookie is client-controlled: malformed or invalid chunks are
    skipped and this never raises.
    """
    groups: Dict[str, str] = {}
    nocache = False

    if not raw or not isinstance(raw, str):
        return groups, nocache

    for position, chunk in enumerate(raw.split(GROUP_SEPARATOR)):
        if position == 0 and chunk == NOCACHE_TOKEN:
            nocache = True
            continue

        parts = chunk.split(VALUE_SEPARATOR)
        if len(parts) != 2:
            logger.debug(f"Skipping malformed vary cache chunk: {chunk!r}")
            continue

        name, value = parts
        if validate_cookie_value(name) is not True or validate_cookie_value(value) is not True:
            logger.debug(f"Skipping invalid vary cache chunk: {chunk!r}")
            continue

        groups[name] = value

    return groups, nocache

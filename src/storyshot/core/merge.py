"""Merge and coercion helpers used while resolving configuration."""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple

LOGGER = logging.getLogger(__name__)

Path = Tuple[str, ...]
Guard = Callable[[Any], bool]

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off"}


def is_mapping(value: Any) -> bool:
    return isinstance(value, Mapping)


def deep_merge(
    target: Mapping[str, Any],
    source: Mapping[str, Any],
    guards: Optional[Mapping[Path, Guard]] = None,
    _path: Path = (),
) -> dict[str, Any]:
    """Return ``source`` merged onto ``target`` without mutating either.

    Rules, applied per key:
    - ``None`` in the source never erases a target value.
    - Two mappings are merged recursively.
    - Anything else (lists included) replaces the target value wholesale.

    ``guards`` maps a key path to a predicate; when the predicate rejects the
    incoming value the target keeps its current value for that path.
    """

    result = dict(target)
    for key, value in source.items():
        if value is None:
            continue
        path = _path + (key,)
        guard = guards.get(path) if guards else None
        if guard is not None and not guard(value):
            LOGGER.debug("Keeping resolved %s; ignoring override %r", ".".join(path), value)
            continue
        if is_mapping(value):
            current = result.get(key)
            base = current if is_mapping(current) else {}
            result[key] = deep_merge(base, value, guards, path)
        else:
            result[key] = copy.deepcopy(value)
    return result


def parse_list(value: Any) -> List[Any]:
    """Parse a comma-separated string into a list; lists pass through."""

    if isinstance(value, (list, tuple)):
        return list(value)
    if not value:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [value]


def parse_boolean(value: Any, default: bool) -> bool:
    """Coerce loose boolean input; unrecognized values keep ``default``."""

    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if value in (0, 1):
            return bool(value)
        return default
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return default


def parse_number(value: Any, default: float) -> Any:
    """Coerce numeric input, falling back to ``default`` when not a number."""

    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return value if value == value else default
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return default
        if number != number or number in (float("inf"), float("-inf")):
            return default
        return number
    return default


def get_path(data: Mapping[str, Any], path: Iterable[str], default: Any = None) -> Any:
    """Read a nested mapping value by key path."""

    current: Any = data
    for key in path:
        if not is_mapping(current) or key not in current:
            return default
        current = current[key]
    return current

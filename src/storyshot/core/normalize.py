"""Config normalization and validation on raw (camelCase) mappings."""

from __future__ import annotations

import copy
from typing import Any, Mapping

from storyshot.core import defaults
from storyshot.core.errors import InvalidPortError, InvalidThresholdError
from storyshot.core.merge import deep_merge, is_mapping, parse_boolean, parse_list, parse_number

# Sections that older config files kept at the top level.
_LEGACY_SNAPSHOT_SECTIONS = ("testMatcher", "filters", "paths", "errorHandling", "diff")

_MATCHER_LIST_KEYS = ("tags", "suffix", "keywords")

# (path to a mapping, list-valued keys inside it)
_LIST_FIELDS = (
    (("snapshot", "filters"), ("includePaths", "storyIds", "exclusions")),
    (("snapshot", "paths"), ("componentPaths",)),
    (("snapshot", "errorHandling"), ("ignorePatterns",)),
    (("snapshot", "masking"), ("selectors",)),
    (("snapshot", "mobile", "discovery"), ("excludeTags",)),
)

_MATCHER_PATHS = (
    ("snapshot", "testMatcher"),
    ("snapshot", "image", "testMatcher"),
    ("snapshot", "position", "testMatcher"),
    ("snapshot", "mobile", "testMatcher"),
    ("snapshot", "locale", "testMatcher"),
)

# (path to a mapping, key, default)
_BOOLEAN_FIELDS = (
    (("snapshot", "image"), "enabled", defaults.DEFAULT_ENABLE_IMAGE_SNAPSHOTS),
    (("snapshot", "position"), "enabled", defaults.DEFAULT_ENABLE_POSITION_SNAPSHOTS),
    (("snapshot", "position"), "orderCheck", defaults.DEFAULT_ENABLE_ORDER_CHECK),
    (("snapshot", "mobile"), "enabled", False),
    (("snapshot", "locale"), "enabled", False),
    (("storybook",), "reuseExistingServer", True),
    ((), "mobile", False),
)

_NUMBER_FIELDS = (
    (("storybook",), "timeout", defaults.DEFAULT_STORYBOOK_TIMEOUT_MS),
    (("playwright",), "timeout", defaults.DEFAULT_PLAYWRIGHT_TIMEOUT_MS),
    (("playwright",), "retries", defaults.DEFAULT_PLAYWRIGHT_RETRIES),
    (("snapshot", "position", "thresholds"), "position", defaults.DEFAULT_POSITION_THRESHOLD),
    (("snapshot", "position", "thresholds"), "size", defaults.DEFAULT_SIZE_THRESHOLD),
    (
        ("snapshot", "mobile", "discovery", "thresholds"),
        "minWidth",
        defaults.DEFAULT_MOBILE_DISCOVERY_MIN_WIDTH,
    ),
)


def _section(data: dict, path: tuple) -> Any:
    current: Any = data
    for key in path:
        if not is_mapping(current):
            return None
        current = current.get(key)
    return current if isinstance(current, dict) else None


def migrate_legacy_layout(data: Mapping[str, Any]) -> dict[str, Any]:
    """Move sections from the older flat file layout into their nested home.

    - top-level ``testMatcher``/``filters``/``paths``/``errorHandling``/``diff``
      move under ``snapshot`` (nested values win on conflict)
    - ``storybookConfig`` merges into ``storybook``
    - ``playwrightConfig`` merges into ``playwright``
    - ``playwright.masking`` moves to ``snapshot.masking``
    """

    migrated = copy.deepcopy(dict(data))

    legacy = {key: migrated.pop(key) for key in _LEGACY_SNAPSHOT_SECTIONS if key in migrated}
    playwright = migrated.get("playwright")
    if is_mapping(playwright) and "masking" in playwright:
        playwright = dict(playwright)
        legacy["masking"] = playwright.pop("masking")
        migrated["playwright"] = playwright
    if legacy:
        snapshot = migrated.get("snapshot") if is_mapping(migrated.get("snapshot")) else {}
        migrated["snapshot"] = deep_merge(legacy, snapshot)

    if is_mapping(migrated.get("storybookConfig")):
        legacy_storybook = migrated.pop("storybookConfig")
        storybook = migrated.get("storybook") if is_mapping(migrated.get("storybook")) else {}
        migrated["storybook"] = deep_merge(legacy_storybook, storybook)

    if is_mapping(migrated.get("playwrightConfig")):
        legacy_playwright = migrated.pop("playwrightConfig")
        current = migrated.get("playwright") if is_mapping(migrated.get("playwright")) else {}
        migrated["playwright"] = deep_merge(legacy_playwright, current)

    return migrated


def normalize_config(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return a normalized copy of a raw config mapping.

    Comma-separated strings become lists, loose booleans and numbers are
    coerced (unrecognized input keeps the default), and the legacy flat
    threshold keys move into ``position.thresholds``. Normalizing twice gives
    the same result as normalizing once.
    """

    normalized = copy.deepcopy(dict(data))

    for path in _MATCHER_PATHS:
        matcher = _section(normalized, path)
        if matcher is None:
            continue
        for key in _MATCHER_LIST_KEYS:
            if key in matcher:
                matcher[key] = parse_list(matcher[key])

    for path, keys in _LIST_FIELDS:
        section = _section(normalized, path)
        if section is None:
            continue
        for key in keys:
            if key in section:
                section[key] = parse_list(section[key])

    for path, key, default in _BOOLEAN_FIELDS:
        section = _section(normalized, path) if path else normalized
        if section is not None and key in section:
            section[key] = parse_boolean(section[key], default)

    position = _section(normalized, ("snapshot", "position"))
    if position is not None:
        thresholds = position.get("thresholds")
        if not isinstance(thresholds, dict):
            thresholds = position["thresholds"] = {}
        if "positionThreshold" in position:
            thresholds["position"] = position.pop("positionThreshold")
        if "sizeThreshold" in position:
            thresholds["size"] = position.pop("sizeThreshold")

    for path, key, default in _NUMBER_FIELDS:
        section = _section(normalized, path)
        if section is not None and section.get(key) is not None:
            section[key] = parse_number(section[key], default)

    return normalized


def _parse_port(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidPortError(value)
    if isinstance(value, int):
        port = value
    elif isinstance(value, float) and value.is_integer():
        port = int(value)
    elif isinstance(value, str):
        try:
            port = int(value.strip())
        except ValueError:
            raise InvalidPortError(value) from None
    else:
        raise InvalidPortError(value)
    if not 1 <= port <= 65535:
        raise InvalidPortError(value)
    return port


def validate_config(data: Mapping[str, Any]) -> None:
    """Raise on an invalid Storybook port or negative/non-numeric thresholds."""

    storybook = data.get("storybook")
    if is_mapping(storybook) and storybook.get("port") is not None:
        _parse_port(storybook["port"])

    thresholds = _section(dict(data), ("snapshot", "position", "thresholds")) or {}
    for name in ("position", "size"):
        if thresholds.get(name) is None:
            continue
        value = thresholds[name]
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value != value or value < 0:
            raise InvalidThresholdError(name, value)


def coerce_port(data: dict[str, Any]) -> None:
    """Store the validated port as an int."""

    storybook = data.get("storybook")
    if isinstance(storybook, dict) and storybook.get("port") is not None:
        storybook["port"] = _parse_port(storybook["port"])

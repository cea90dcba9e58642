"""Project config file discovery and loading.

Supported formats: JSON, YAML and Python. A Python config file is executed
and must define a ``CONFIG`` (or ``config``) mapping.
"""

from __future__ import annotations

import json
import logging
import os
import runpy
from typing import Any, Iterable, Optional

import yaml

from storyshot.core.defaults import CONFIG_FILE_NAMES
from storyshot.core.errors import ConfigFileLoadError

LOGGER = logging.getLogger(__name__)

_PY_EXPORTS = ("CONFIG", "config")


def find_config_file(cwd: Optional[str] = None, names: Iterable[str] = CONFIG_FILE_NAMES) -> Optional[str]:
    """Return the first conventional config file present in ``cwd``."""

    root = cwd or os.getcwd()
    for name in names:
        path = os.path.join(root, name)
        if os.path.isfile(path):
            return path
    return None


def _parse(path: str) -> Any:
    ext = os.path.splitext(path)[1].lower()
    if ext == ".py":
        namespace = runpy.run_path(path)
        for name in _PY_EXPORTS:
            if name in namespace:
                return namespace[name]
        raise ValueError(f"defines none of {', '.join(_PY_EXPORTS)}")

    with open(path, "r", encoding="utf-8") as handle:
        text = handle.read()
    if ext == ".json":
        return json.loads(text)
    if ext in (".yaml", ".yml"):
        return yaml.safe_load(text)
    raise ValueError(f"unsupported config file extension '{ext}'")


def read_config_file(path: str) -> dict[str, Any]:
    """Parse ``path`` and return its top-level mapping.

    Raises ``ConfigFileLoadError`` for unreadable, unparsable or non-mapping
    content.
    """

    try:
        data = _parse(path)
    except Exception as exc:
        raise ConfigFileLoadError(path, str(exc) or type(exc).__name__) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileLoadError(path, f"top level must be a mapping, got {type(data).__name__}")
    return data


def load_config_file(
    path: Optional[str],
    *,
    explicit: bool = False,
    strict: bool = False,
) -> dict[str, Any]:
    """Load a config file, degrading to an empty mapping on failure.

    Only a parse failure of an explicitly requested file in strict mode is
    raised; every other problem is logged and yields ``{}``.
    """

    if not path:
        return {}
    if not os.path.isfile(path):
        if explicit:
            LOGGER.warning("Config file not found: %s; using defaults", path)
        return {}

    try:
        data = read_config_file(path)
    except ConfigFileLoadError as exc:
        if explicit and strict:
            raise
        LOGGER.warning("%s; using defaults", exc)
        return {}

    LOGGER.info("Loaded config file %s", path)
    return data

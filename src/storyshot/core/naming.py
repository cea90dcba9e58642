"""Snapshot naming helpers.

Every consumer that needs a snapshot filename (existence checks, test
generation, orphan detection) goes through ``sanitize`` so names never drift
between subsystems.
"""

from __future__ import annotations

import os
import re
from typing import Any, Optional, Tuple

IMAGE_SUFFIX = ".png"
POSITION_SUFFIX = ".positions.json"
MOBILE_SUBDIR = "mobile"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def _dimension(viewport: Any, name: str) -> Any:
    if isinstance(viewport, dict):
        return viewport.get(name)
    return getattr(viewport, name, None)


def sanitize(story_id: str, viewport: Optional[Any] = None) -> str:
    """Return the filesystem-safe snapshot base name for a story id.

    ``viewport`` may be a mapping or an object with ``width``/``height``; the
    suffix is only added when both are set.
    """

    name = _NON_ALNUM.sub("-", (story_id or "").lower()).strip("-")
    if viewport is None:
        return name
    width = _dimension(viewport, "width")
    height = _dimension(viewport, "height")
    if width and height:
        return f"{name}-{width}x{height}"
    return name


def snapshot_dir(config, root: Optional[str] = None) -> str:
    """Directory holding snapshots for the config's mode (mobile and/or locale)."""

    base = config.snapshot.paths.snapshots_dir
    if not os.path.isabs(base):
        base = os.path.join(root or os.getcwd(), base)
    parts = [base]
    if config.active_viewport is not None:
        parts.append(MOBILE_SUBDIR)
    if config.locale is not None:
        parts.append(config.locale.code)
    return os.path.join(*parts)


def snapshot_paths(story_id: str, config, root: Optional[str] = None) -> Tuple[str, str]:
    """Return ``(image_path, position_path)`` for a story under this config."""

    directory = snapshot_dir(config, root)
    base_name = sanitize(story_id, config.active_viewport)
    return (
        os.path.join(directory, f"{base_name}{IMAGE_SUFFIX}"),
        os.path.join(directory, f"{base_name}{POSITION_SUFFIX}"),
    )

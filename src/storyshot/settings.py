"""Environment settings for storyshot.

Values come from the process environment, with a local ``.env`` loaded via
python-dotenv so CI and developer machines can share one layout.
"""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv

load_dotenv()

# Logging: level name, optional rotating log file, console on/off.
LOG_LEVEL = os.getenv("STORYSHOT_LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("STORYSHOT_LOG_FILE")
LOG_CONSOLE = os.getenv("STORYSHOT_LOG_CONSOLE", "true").strip().lower() not in {"0", "false", "no", "off"}
LOG_MAX_BYTES = int(os.getenv("STORYSHOT_LOG_MAX_BYTES", str(5 * 1024 * 1024)))
LOG_BACKUP_COUNT = int(os.getenv("STORYSHOT_LOG_BACKUP_COUNT", "5"))


def env_options() -> dict[str, Any]:
    """Config overrides taken from well-known environment variables.

    Lists stay comma-separated strings; the resolver normalizes them.
    """

    options: dict[str, Any] = {}

    storybook: dict[str, Any] = {}
    if os.getenv("STORYBOOK_HOST"):
        storybook["host"] = os.environ["STORYBOOK_HOST"]
    if os.getenv("STORYBOOK_PORT"):
        storybook["port"] = os.environ["STORYBOOK_PORT"]
    if storybook:
        options["storybook"] = storybook

    filters: dict[str, Any] = {}
    if os.getenv("STORY_INCLUDE_PATHS"):
        filters["includePaths"] = os.environ["STORY_INCLUDE_PATHS"]
    if os.getenv("STORY_IDS"):
        filters["storyIds"] = os.environ["STORY_IDS"]
    if os.getenv("STORY_VISUAL_EXCLUSIONS"):
        filters["exclusions"] = os.environ["STORY_VISUAL_EXCLUSIONS"]

    snapshot: dict[str, Any] = {}
    if filters:
        snapshot["filters"] = filters
    if os.getenv("VISUAL_TESTS_TARGET_BRANCH"):
        snapshot["diff"] = {"targetBranch": os.environ["VISUAL_TESTS_TARGET_BRANCH"]}
    if snapshot:
        options["snapshot"] = snapshot

    return options

"""Default configuration values.

This is the single source of truth for defaults. ``default_config`` returns a
fresh mapping in the same camelCase shape config files use, so the resolver
can merge file and programmatic overrides onto it directly.
"""

from __future__ import annotations

from typing import Any

DEFAULT_STORYBOOK_HOST = "localhost"
DEFAULT_STORYBOOK_PORT = 6006
DEFAULT_STORYBOOK_INDEX_PATH = "/index.json"
DEFAULT_STORYBOOK_COMMAND = "npm run storybook"
DEFAULT_STORYBOOK_TIMEOUT_MS = 120000

# Stories carrying any of these tags are visual tests.
DEFAULT_TEST_MATCHER_TAGS = ["visual"]
# Stories whose id, name or import path contain these are never tested.
DEFAULT_VISUAL_EXCLUSIONS = ["no-visual"]

DEFAULT_ENABLE_IMAGE_SNAPSHOTS = True
DEFAULT_ENABLE_POSITION_SNAPSHOTS = True
DEFAULT_ENABLE_ORDER_CHECK = True

# Pixels.
DEFAULT_POSITION_THRESHOLD = 5
DEFAULT_SIZE_THRESHOLD = 5

DEFAULT_PLAYWRIGHT_CONFIG_PATH = "playwright/config/playwright.storybook.config.ts"
DEFAULT_TEST_SPEC_PATH = "playwright/storybook-visual/visual-tests.spec.ts"
DEFAULT_LOGS_DIR = "logs"
DEFAULT_SNAPSHOTS_DIR = "playwright/storybook-visual/__visual_snapshots__"
DEFAULT_SCREENSHOTS_DIR = "screenshots"
DEFAULT_COMPONENT_PATHS = ["src/components/"]

DEFAULT_IGNORE_ERROR_PATTERNS = ["closed", "timeout"]
DEFAULT_TARGET_BRANCH = "main"

DEFAULT_MOBILE_DISCOVERY_MIN_WIDTH = 400
DEFAULT_LOCALE_GLOBAL_PARAM = "locale"
DEFAULT_LOCALE_DIRECTION = "ltr"

DEFAULT_VIEWPORT = {"width": 800, "height": 600}
DEFAULT_PLAYWRIGHT_WORKERS = 6
DEFAULT_PLAYWRIGHT_TIMEOUT_MS = 30000
DEFAULT_PLAYWRIGHT_RETRIES = 0
DEFAULT_REPORT_DIR = "logs/playwright/storybook/reports"

# Seconds to wait for the story index before giving up.
DEFAULT_CATALOG_TIMEOUT = 30.0

CONFIG_FILE_NAMES = (
    "visual-tests.config.py",
    "visual-tests.config.json",
    "visual-tests.config.yaml",
    "visual-tests.config.yml",
    ".visual-tests.config.py",
    ".visual-tests.config.json",
    ".visual-tests.config.yaml",
    ".visual-tests.config.yml",
)


def default_config() -> dict[str, Any]:
    """Return a new default config mapping (safe to mutate)."""

    return {
        "storybook": {
            "host": DEFAULT_STORYBOOK_HOST,
            "port": DEFAULT_STORYBOOK_PORT,
            "indexPath": DEFAULT_STORYBOOK_INDEX_PATH,
            "command": DEFAULT_STORYBOOK_COMMAND,
            "timeout": DEFAULT_STORYBOOK_TIMEOUT_MS,
            "reuseExistingServer": True,
        },
        "snapshot": {
            "testMatcher": {
                "tags": list(DEFAULT_TEST_MATCHER_TAGS),
            },
            "filters": {
                "includePaths": [],
                "storyIds": [],
                "exclusions": list(DEFAULT_VISUAL_EXCLUSIONS),
            },
            "paths": {
                "playwrightConfig": DEFAULT_PLAYWRIGHT_CONFIG_PATH,
                "testSpec": DEFAULT_TEST_SPEC_PATH,
                "logsDir": DEFAULT_LOGS_DIR,
                "snapshotsDir": DEFAULT_SNAPSHOTS_DIR,
                "screenshotsDir": DEFAULT_SCREENSHOTS_DIR,
                "componentPaths": list(DEFAULT_COMPONENT_PATHS),
            },
            "errorHandling": {
                "ignorePatterns": list(DEFAULT_IGNORE_ERROR_PATTERNS),
            },
            "image": {
                "enabled": DEFAULT_ENABLE_IMAGE_SNAPSHOTS,
            },
            "position": {
                "enabled": DEFAULT_ENABLE_POSITION_SNAPSHOTS,
                "orderCheck": DEFAULT_ENABLE_ORDER_CHECK,
                "thresholds": {
                    "position": DEFAULT_POSITION_THRESHOLD,
                    "size": DEFAULT_SIZE_THRESHOLD,
                },
            },
            "mobile": {
                "enabled": False,
                "viewports": [],
                "discovery": {
                    "thresholds": {"minWidth": DEFAULT_MOBILE_DISCOVERY_MIN_WIDTH},
                    "excludeTags": [],
                },
            },
            "locale": {
                "enabled": False,
                "locales": [],
                "storybookGlobalParam": DEFAULT_LOCALE_GLOBAL_PARAM,
            },
            "diff": {
                "targetBranch": DEFAULT_TARGET_BRANCH,
            },
            "masking": {
                "selectors": [],
            },
        },
        "playwright": {
            "fullyParallel": True,
            "workers": DEFAULT_PLAYWRIGHT_WORKERS,
            "timeout": DEFAULT_PLAYWRIGHT_TIMEOUT_MS,
            "retries": DEFAULT_PLAYWRIGHT_RETRIES,
            "forbidOnly": False,
            "reporter": [
                ["html", {"outputFolder": DEFAULT_REPORT_DIR, "open": "never"}],
                ["list"],
                ["json", {"outputFile": f"{DEFAULT_REPORT_DIR}/results.json"}],
            ],
            "use": {
                "viewport": dict(DEFAULT_VIEWPORT),
            },
        },
        "mobile": False,
    }

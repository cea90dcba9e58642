"""Entry points wiring the core to its adapters.

``resolve_config`` reads the project config file and hands it to the core
resolver; ``resolve_stories`` runs discovery against a live Storybook with
filesystem snapshot checks.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, List, Mapping, Optional

from storyshot.adapters.config_files import find_config_file, load_config_file
from storyshot.adapters.snapshot_store import FileSystemSnapshotStore
from storyshot.adapters.storybook_catalog import StorybookCatalog
from storyshot.core.config import Config
from storyshot.core.defaults import DEFAULT_CATALOG_TIMEOUT
from storyshot.core.discovery import StoryMatcher
from storyshot.core.errors import InvalidLocaleError
from storyshot.core.merge import parse_boolean
from storyshot.core.models import StoryEntry
from storyshot.core.resolver import build_config, locales_to_run

LOGGER = logging.getLogger(__name__)


def _load_file_config(options: Mapping[str, Any], cwd: Optional[str]) -> dict[str, Any]:
    explicit = options.get("configFile")
    path = explicit or find_config_file(cwd)
    if not path:
        LOGGER.debug("No config file found; using defaults")
        return {}
    return load_config_file(
        path,
        explicit=bool(explicit),
        strict=parse_boolean(options.get("strict"), False),
    )


async def resolve_config(
    options: Optional[Mapping[str, Any]] = None,
    *,
    cwd: Optional[str] = None,
) -> Config:
    """Resolve a fresh, frozen ``Config`` from defaults, config file and options.

    Recognized control options: ``configFile`` (explicit path), ``strict``
    (raise on an unparsable explicit file), ``mobile`` (apply the mobile
    overlay) and ``locale`` (apply the overlay for this locale code).
    """

    options = dict(options or {})
    file_config = _load_file_config(options, cwd)
    return build_config(options, file_config)


async def resolve_locale_runs(
    options: Optional[Mapping[str, Any]] = None,
    *,
    cwd: Optional[str] = None,
) -> List[Config]:
    """Resolve one independent ``Config`` per non-default configured locale.

    Raises ``InvalidLocaleError`` when no locales are configured at all. Each
    config is built from its own copy of ``options``; none is derived from
    another.
    """

    base_options = {key: value for key, value in dict(options or {}).items() if key != "locale"}
    base = await resolve_config(copy.deepcopy(base_options), cwd=cwd)

    configured = base.snapshot.locale.locales
    if not configured:
        raise InvalidLocaleError(None, [])

    selected = locales_to_run(base)
    if not selected:
        LOGGER.warning("Every configured locale is marked default; nothing to run")

    configs: List[Config] = []
    for entry in selected:
        locale_options = copy.deepcopy(base_options)
        locale_options["locale"] = entry.code
        configs.append(await resolve_config(locale_options, cwd=cwd))
    LOGGER.info("Resolved %s of %s configured locales", len(configs), len(configured))
    return configs


async def resolve_stories(
    config: Config,
    include_all_matching: bool = False,
    *,
    root: Optional[str] = None,
    timeout: float = DEFAULT_CATALOG_TIMEOUT,
) -> List[StoryEntry]:
    """Fetch the live story index and return the annotated stories to test."""

    matcher = StoryMatcher(
        catalog=StorybookCatalog(timeout=timeout),
        snapshots=FileSystemSnapshotStore(),
        root=root,
    )
    return await matcher.resolve_stories(config, include_all_matching)

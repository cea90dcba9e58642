"""Configuration resolution (core domain).

``build_config`` turns caller options plus an already-loaded file config into
a frozen ``Config``. It does no I/O; finding and reading the file is the
service layer's job.

Order of precedence, lowest first:
1) built-in defaults
2) project config file
3) mobile / locale overlays from the config file
4) programmatic options
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from storyshot.core import defaults
from storyshot.core.config import Config, LocaleEntry, parse_viewport
from storyshot.core.errors import InvalidLocaleError
from storyshot.core.merge import Guard, Path, deep_merge, get_path, is_mapping, parse_boolean
from storyshot.core.normalize import (
    coerce_port,
    migrate_legacy_layout,
    normalize_config,
    validate_config,
)

LOGGER = logging.getLogger(__name__)

# Options that steer resolution but are not config fields themselves.
CONTROL_KEYS = ("configFile", "strict")

_MATCHER_PATH: Path = ("snapshot", "testMatcher")


def _merge_matcher(config: dict[str, Any], overlay: Any) -> bool:
    if not is_mapping(overlay):
        return False
    snapshot = config.setdefault("snapshot", {})
    current = snapshot.get("testMatcher")
    snapshot["testMatcher"] = deep_merge(current if is_mapping(current) else {}, overlay)
    return True


def apply_mobile_overlay(
    config: dict[str, Any],
    file_config: Mapping[str, Any],
    guards: dict[Path, Guard],
) -> None:
    """Apply ``snapshot.mobile`` from the config file onto ``config`` in place."""

    mobile = get_path(file_config, ("snapshot", "mobile")) or {}
    if _merge_matcher(config, mobile.get("testMatcher")):
        guards[_MATCHER_PATH] = is_mapping

    viewports = []
    for item in mobile.get("viewports") or []:
        if parse_viewport(item) is None:
            LOGGER.warning("Skipping mobile viewport without numeric width and height: %r", item)
            continue
        viewports.append(item)
    if not viewports:
        LOGGER.info("Mobile mode enabled without viewports; keeping the default viewport")
        return

    viewport = dict(viewports[0])
    playwright = config.setdefault("playwright", {})
    use = playwright.setdefault("use", {})
    use["viewport"] = {"width": viewport.get("width"), "height": viewport.get("height")}
    config["activeViewport"] = viewport
    guards[("activeViewport",)] = is_mapping
    LOGGER.info(
        "Mobile viewport %sx%s%s",
        viewport.get("width"),
        viewport.get("height"),
        f" ({viewport['name']})" if viewport.get("name") else "",
    )


def apply_locale_overlay(
    config: dict[str, Any],
    file_config: Mapping[str, Any],
    requested: str,
    guards: dict[Path, Guard],
) -> None:
    """Validate ``requested`` against the configured locales and apply it in place."""

    section = get_path(file_config, ("snapshot", "locale")) or {}
    locales = [item for item in section.get("locales") or [] if is_mapping(item)]
    match = next((item for item in locales if item.get("code") == requested), None)
    if match is None:
        available = [str(item["code"]) for item in locales if item.get("code")]
        raise InvalidLocaleError(requested, available)

    if _merge_matcher(config, section.get("testMatcher")):
        guards[_MATCHER_PATH] = is_mapping

    config["locale"] = {
        "code": requested,
        "name": match.get("name"),
        "direction": match.get("direction") or defaults.DEFAULT_LOCALE_DIRECTION,
        "default": parse_boolean(match.get("default"), False),
        "storybookGlobalParam": section.get("storybookGlobalParam")
        or defaults.DEFAULT_LOCALE_GLOBAL_PARAM,
    }
    guards[("locale",)] = is_mapping
    LOGGER.info("Locale %s (%s) applied", requested, match.get("name") or requested)


def _option_overrides(options: Mapping[str, Any]) -> dict[str, Any]:
    overrides = {key: value for key, value in options.items() if key not in CONTROL_KEYS}
    locale = overrides.get("locale")
    if locale is not None and not is_mapping(locale):
        # A bare locale code selects the overlay; it is not a config value.
        overrides.pop("locale")
    elif is_mapping(locale) and not locale.get("code"):
        raise InvalidLocaleError("<missing code>", [])
    if "mobile" in overrides:
        overrides["mobile"] = parse_boolean(overrides["mobile"], False)
    return migrate_legacy_layout(overrides)


def build_config(
    options: Optional[Mapping[str, Any]] = None,
    file_config: Optional[Mapping[str, Any]] = None,
) -> Config:
    """Resolve defaults, file config and options into a validated ``Config``.

    Fields set by an overlay (``locale``, ``activeViewport`` and an overlaid
    ``snapshot.testMatcher``) only accept mapping overrides from ``options``;
    a bare string or boolean under the same key never replaces them.
    """

    options = dict(options or {})
    file_config = migrate_legacy_layout(file_config or {})

    config = deep_merge(defaults.default_config(), file_config)
    guards: dict[Path, Guard] = {}

    if parse_boolean(options.get("mobile"), False):
        if parse_boolean(get_path(file_config, ("snapshot", "mobile", "enabled")), False):
            apply_mobile_overlay(config, file_config, guards)
        else:
            LOGGER.warning("Mobile mode requested but snapshot.mobile.enabled is not set")

    requested = options.get("locale")
    if isinstance(requested, str) and requested:
        if parse_boolean(get_path(file_config, ("snapshot", "locale", "enabled")), False):
            apply_locale_overlay(config, file_config, requested, guards)
        else:
            LOGGER.warning(
                "Locale %s requested but snapshot.locale.enabled is not set; ignoring", requested
            )

    config = deep_merge(config, _option_overrides(options), guards)
    config = normalize_config(config)
    validate_config(config)
    coerce_port(config)
    return Config.from_mapping(config)


def locales_to_run(config: Config) -> List[LocaleEntry]:
    """Configured locales for an "all locales" run, default locales excluded.

    The default locale is what a plain desktop run already renders, so it is
    skipped here.
    """

    selected: List[LocaleEntry] = []
    for entry in config.snapshot.locale.locales:
        if entry.default:
            LOGGER.info(
                "Skipping default locale %s (%s); run without a locale to cover it",
                entry.code,
                entry.name or entry.code,
            )
            continue
        selected.append(entry)
    return selected

"""Resolved configuration dataclasses.

The resolver works on plain mappings (the shape config files use) and builds
these frozen dataclasses as its last step. Everything downstream reads the
dataclasses, so a resolved config cannot be patched in place by accident.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, is_dataclass, replace
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple, Union

from storyshot.core import defaults
from storyshot.core.merge import is_mapping, parse_boolean, parse_list, parse_number


def _key(name: str, **kwargs: Any) -> Any:
    """Dataclass field exported under the camelCase ``name``."""

    return field(metadata={"key": name}, **kwargs)


def _frozen_mapping(value: Any) -> Mapping[str, Any]:
    if not is_mapping(value):
        return MappingProxyType({})
    return MappingProxyType(
        {key: _freeze(item) for key, item in value.items()}
    )


def _freeze(value: Any) -> Any:
    if is_mapping(value):
        return _frozen_mapping(value)
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _export(value: Any) -> Any:
    if hasattr(value, "to_value"):
        return value.to_value()
    if is_dataclass(value):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_export(item) for item in value]
    if is_mapping(value):
        return {key: _export(item) for key, item in value.items()}
    return value


class _Exportable:
    """Mixin giving dataclasses a camelCase ``to_dict``; ``None`` fields are skipped."""

    def to_dict(self) -> dict[str, Any]:
        exported: dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if value is None:
                continue
            exported[item.metadata.get("key", item.name)] = _export(value)
        return exported


def _as_int(value: Any, default: int) -> int:
    try:
        return int(parse_number(value, default))
    except (OverflowError, ValueError):
        return default


def _workers(value: Any) -> Union[int, str]:
    # Playwright also accepts a percentage of CPU cores, e.g. "50%".
    number = parse_number(value, None)
    if number is not None:
        return _as_int(number, defaults.DEFAULT_PLAYWRIGHT_WORKERS)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return defaults.DEFAULT_PLAYWRIGHT_WORKERS


def _optional_matcher(value: Any) -> Optional["TestMatcher"]:
    if not is_mapping(value):
        return None
    return TestMatcher.from_mapping(value)


@dataclass(frozen=True)
class TestMatcher(_Exportable):
    """Rule set deciding whether a story is in scope for a snapshot category."""

    tags: Tuple[str, ...] = ()
    suffix: Tuple[str, ...] = ()
    keywords: Tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TestMatcher":
        return cls(
            tags=tuple(str(tag) for tag in parse_list(data.get("tags"))),
            suffix=tuple(str(item) for item in parse_list(data.get("suffix"))),
            keywords=tuple(str(item) for item in parse_list(data.get("keywords"))),
        )


@dataclass(frozen=True)
class Viewport(_Exportable):
    width: int
    height: int
    name: Optional[str] = None


def parse_viewport(data: Any) -> Optional[Viewport]:
    """Viewport from a mapping, or ``None`` without a numeric width and height."""

    if not is_mapping(data):
        return None
    width = parse_number(data.get("width"), None)
    height = parse_number(data.get("height"), None)
    if width is None or height is None:
        return None
    try:
        return Viewport(width=int(width), height=int(height), name=data.get("name"))
    except (OverflowError, ValueError):
        return None


@dataclass(frozen=True)
class StorybookConfig(_Exportable):
    host: str
    port: int
    index_path: str = _key("indexPath")
    command: Optional[str] = None
    timeout: int = defaults.DEFAULT_STORYBOOK_TIMEOUT_MS
    reuse_existing_server: bool = _key("reuseExistingServer", default=True)

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def index_url(self) -> str:
        return f"{self.base_url}{self.index_path}"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StorybookConfig":
        return cls(
            host=str(data.get("host") or defaults.DEFAULT_STORYBOOK_HOST),
            port=int(data.get("port", defaults.DEFAULT_STORYBOOK_PORT)),
            index_path=str(data.get("indexPath") or defaults.DEFAULT_STORYBOOK_INDEX_PATH),
            command=data.get("command"),
            timeout=_as_int(data.get("timeout"), defaults.DEFAULT_STORYBOOK_TIMEOUT_MS),
            reuse_existing_server=parse_boolean(data.get("reuseExistingServer"), True),
        )


@dataclass(frozen=True)
class FilterConfig(_Exportable):
    include_paths: Tuple[str, ...] = _key("includePaths", default=())
    story_ids: Tuple[str, ...] = _key("storyIds", default=())
    exclusions: Tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "FilterConfig":
        return cls(
            include_paths=tuple(parse_list(data.get("includePaths"))),
            story_ids=tuple(parse_list(data.get("storyIds"))),
            exclusions=tuple(parse_list(data.get("exclusions"))),
        )


@dataclass(frozen=True)
class PathsConfig(_Exportable):
    snapshots_dir: str = _key("snapshotsDir")
    logs_dir: str = _key("logsDir")
    playwright_config: str = _key("playwrightConfig")
    test_spec: str = _key("testSpec")
    screenshots_dir: str = _key("screenshotsDir")
    component_paths: Tuple[str, ...] = _key("componentPaths", default=())

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PathsConfig":
        return cls(
            snapshots_dir=str(data.get("snapshotsDir") or defaults.DEFAULT_SNAPSHOTS_DIR),
            logs_dir=str(data.get("logsDir") or defaults.DEFAULT_LOGS_DIR),
            playwright_config=str(
                data.get("playwrightConfig") or defaults.DEFAULT_PLAYWRIGHT_CONFIG_PATH
            ),
            test_spec=str(data.get("testSpec") or defaults.DEFAULT_TEST_SPEC_PATH),
            screenshots_dir=str(data.get("screenshotsDir") or defaults.DEFAULT_SCREENSHOTS_DIR),
            component_paths=tuple(parse_list(data.get("componentPaths"))),
        )


@dataclass(frozen=True)
class ImageConfig(_Exportable):
    enabled: bool = True
    test_matcher: Optional[TestMatcher] = _key("testMatcher", default=None)
    max_diff_pixel_ratio: Optional[float] = _key("maxDiffPixelRatio", default=None)
    max_diff_pixels: Optional[int] = _key("maxDiffPixels", default=None)
    threshold: Optional[float] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ImageConfig":
        return cls(
            enabled=parse_boolean(data.get("enabled"), defaults.DEFAULT_ENABLE_IMAGE_SNAPSHOTS),
            test_matcher=_optional_matcher(data.get("testMatcher")),
            max_diff_pixel_ratio=data.get("maxDiffPixelRatio"),
            max_diff_pixels=data.get("maxDiffPixels"),
            threshold=data.get("threshold"),
        )


@dataclass(frozen=True)
class PositionThresholds(_Exportable):
    position: float = defaults.DEFAULT_POSITION_THRESHOLD
    size: float = defaults.DEFAULT_SIZE_THRESHOLD


@dataclass(frozen=True)
class PositionConfig(_Exportable):
    enabled: bool = True
    order_check: bool = _key("orderCheck", default=True)
    thresholds: PositionThresholds = PositionThresholds()
    test_matcher: Optional[TestMatcher] = _key("testMatcher", default=None)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PositionConfig":
        thresholds = data.get("thresholds") if is_mapping(data.get("thresholds")) else {}
        return cls(
            enabled=parse_boolean(
                data.get("enabled"), defaults.DEFAULT_ENABLE_POSITION_SNAPSHOTS
            ),
            order_check=parse_boolean(data.get("orderCheck"), defaults.DEFAULT_ENABLE_ORDER_CHECK),
            thresholds=PositionThresholds(
                position=thresholds.get("position", defaults.DEFAULT_POSITION_THRESHOLD),
                size=thresholds.get("size", defaults.DEFAULT_SIZE_THRESHOLD),
            ),
            test_matcher=_optional_matcher(data.get("testMatcher")),
        )


@dataclass(frozen=True)
class MobileDiscovery:
    """Thresholds used when recommending stories for mobile snapshots."""

    min_width: float = defaults.DEFAULT_MOBILE_DISCOVERY_MIN_WIDTH
    exclude_tags: Tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "thresholds": {"minWidth": self.min_width},
            "excludeTags": list(self.exclude_tags),
        }


@dataclass(frozen=True)
class MobileSettings(_Exportable):
    enabled: bool = False
    viewports: Tuple[Viewport, ...] = ()
    test_matcher: Optional[TestMatcher] = _key("testMatcher", default=None)
    discovery: MobileDiscovery = MobileDiscovery()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "MobileSettings":
        discovery = data.get("discovery") if is_mapping(data.get("discovery")) else {}
        thresholds = discovery.get("thresholds") if is_mapping(discovery.get("thresholds")) else {}
        return cls(
            enabled=parse_boolean(data.get("enabled"), False),
            viewports=tuple(
                viewport
                for viewport in map(parse_viewport, data.get("viewports") or [])
                if viewport is not None
            ),
            test_matcher=_optional_matcher(data.get("testMatcher")),
            discovery=MobileDiscovery(
                min_width=thresholds.get("minWidth", defaults.DEFAULT_MOBILE_DISCOVERY_MIN_WIDTH),
                exclude_tags=tuple(parse_list(discovery.get("excludeTags"))),
            ),
        )


@dataclass(frozen=True)
class LocaleEntry(_Exportable):
    code: str
    name: Optional[str] = None
    direction: Optional[str] = None
    default: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LocaleEntry":
        return cls(
            code=str(data["code"]),
            name=data.get("name"),
            direction=data.get("direction"),
            default=parse_boolean(data.get("default"), False),
        )


@dataclass(frozen=True)
class LocaleSettings(_Exportable):
    enabled: bool = False
    locales: Tuple[LocaleEntry, ...] = ()
    test_matcher: Optional[TestMatcher] = _key("testMatcher", default=None)
    storybook_global_param: str = _key(
        "storybookGlobalParam", default=defaults.DEFAULT_LOCALE_GLOBAL_PARAM
    )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LocaleSettings":
        return cls(
            enabled=parse_boolean(data.get("enabled"), False),
            locales=tuple(
                LocaleEntry.from_mapping(item)
                for item in data.get("locales") or []
                if is_mapping(item) and item.get("code")
            ),
            test_matcher=_optional_matcher(data.get("testMatcher")),
            storybook_global_param=str(
                data.get("storybookGlobalParam") or defaults.DEFAULT_LOCALE_GLOBAL_PARAM
            ),
        )


@dataclass(frozen=True)
class ActiveLocale(_Exportable):
    """Locale selected for this run (set by the locale overlay)."""

    code: str
    name: Optional[str] = None
    direction: str = defaults.DEFAULT_LOCALE_DIRECTION
    default: bool = False
    global_param: str = _key("storybookGlobalParam", default=defaults.DEFAULT_LOCALE_GLOBAL_PARAM)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ActiveLocale":
        return cls(
            code=str(data["code"]),
            name=data.get("name"),
            direction=str(data.get("direction") or defaults.DEFAULT_LOCALE_DIRECTION),
            default=parse_boolean(data.get("default"), False),
            global_param=str(
                data.get("storybookGlobalParam") or defaults.DEFAULT_LOCALE_GLOBAL_PARAM
            ),
        )


@dataclass(frozen=True)
class SnapshotConfig(_Exportable):
    test_matcher: TestMatcher = _key("testMatcher")
    filters: FilterConfig
    paths: PathsConfig
    image: ImageConfig = ImageConfig()
    position: PositionConfig = PositionConfig()
    mobile: MobileSettings = MobileSettings()
    locale: LocaleSettings = LocaleSettings()
    ignore_error_patterns: Tuple[str, ...] = _key("ignoreErrorPatterns", default=())
    mask_selectors: Tuple[str, ...] = _key("maskSelectors", default=())
    target_branch: str = _key("targetBranch", default=defaults.DEFAULT_TARGET_BRANCH)

    def to_dict(self) -> dict[str, Any]:
        exported = super().to_dict()
        # Pass-through sections keep their nested file layout.
        exported["errorHandling"] = {"ignorePatterns": exported.pop("ignoreErrorPatterns")}
        exported["masking"] = {"selectors": exported.pop("maskSelectors")}
        exported["diff"] = {"targetBranch": exported.pop("targetBranch")}
        return exported

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SnapshotConfig":
        def section(name: str) -> Mapping[str, Any]:
            value = data.get(name)
            return value if is_mapping(value) else {}

        matcher = data.get("testMatcher")
        return cls(
            test_matcher=TestMatcher.from_mapping(matcher if is_mapping(matcher) else {}),
            filters=FilterConfig.from_mapping(section("filters")),
            paths=PathsConfig.from_mapping(section("paths")),
            image=ImageConfig.from_mapping(section("image")),
            position=PositionConfig.from_mapping(section("position")),
            mobile=MobileSettings.from_mapping(section("mobile")),
            locale=LocaleSettings.from_mapping(section("locale")),
            ignore_error_patterns=tuple(parse_list(section("errorHandling").get("ignorePatterns"))),
            mask_selectors=tuple(parse_list(section("masking").get("selectors"))),
            target_branch=str(
                section("diff").get("targetBranch") or defaults.DEFAULT_TARGET_BRANCH
            ),
        )


@dataclass(frozen=True)
class Reporter:
    """One automation-engine reporter entry, e.g. ``("json", {"outputFile": ...})``."""

    name: str
    options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_value(cls, value: Any) -> "Reporter":
        if isinstance(value, str):
            return cls(name=value)
        items = list(value)
        options = items[1] if len(items) > 1 else {}
        return cls(name=str(items[0]), options=_frozen_mapping(options))

    def to_value(self) -> list:
        if not self.options:
            return [self.name]
        return [self.name, _export(self.options)]


@dataclass(frozen=True)
class PlaywrightConfig(_Exportable):
    """Settings handed to the browser automation engine."""

    fully_parallel: bool = _key("fullyParallel", default=True)
    workers: Union[int, str] = defaults.DEFAULT_PLAYWRIGHT_WORKERS
    timeout: int = defaults.DEFAULT_PLAYWRIGHT_TIMEOUT_MS
    retries: int = defaults.DEFAULT_PLAYWRIGHT_RETRIES
    forbid_only: bool = _key("forbidOnly", default=False)
    reporters: Tuple[Reporter, ...] = _key("reporter", default=())
    use: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def viewport(self) -> Optional[Viewport]:
        return parse_viewport(self.use.get("viewport"))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PlaywrightConfig":
        reporters = data.get("reporter") or []
        if isinstance(reporters, str):
            reporters = [reporters]
        return cls(
            fully_parallel=parse_boolean(data.get("fullyParallel"), True),
            workers=_workers(data.get("workers")),
            timeout=_as_int(data.get("timeout"), defaults.DEFAULT_PLAYWRIGHT_TIMEOUT_MS),
            retries=_as_int(data.get("retries"), defaults.DEFAULT_PLAYWRIGHT_RETRIES),
            forbid_only=parse_boolean(data.get("forbidOnly"), False),
            reporters=tuple(Reporter.from_value(item) for item in reporters),
            use=_frozen_mapping(data.get("use")),
        )


@dataclass(frozen=True)
class Config(_Exportable):
    """Fully resolved, validated configuration for one invocation."""

    storybook: StorybookConfig
    snapshot: SnapshotConfig
    playwright: PlaywrightConfig = PlaywrightConfig()
    mobile: bool = False
    active_viewport: Optional[Viewport] = _key("activeViewport", default=None)
    locale: Optional[ActiveLocale] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Config":
        active_viewport = data.get("activeViewport")
        locale = data.get("locale")
        return cls(
            storybook=StorybookConfig.from_mapping(data.get("storybook") or {}),
            snapshot=SnapshotConfig.from_mapping(data.get("snapshot") or {}),
            playwright=PlaywrightConfig.from_mapping(data.get("playwright") or {}),
            mobile=parse_boolean(data.get("mobile"), False),
            active_viewport=parse_viewport(active_viewport),
            locale=ActiveLocale.from_mapping(locale) if is_mapping(locale) else None,
        )


_MISSING = object()


def get_config_value(config: Any, path: str, default: Any = None) -> Any:
    """Read a dotted path (``"storybook.port"``) from a Config or mapping."""

    value = config
    for key in path.split("."):
        if is_mapping(value):
            value = value.get(key, _MISSING)
        else:
            value = getattr(value, key, _MISSING)
        if value is _MISSING:
            return default
    return value


def isolate_locale_reports(config: Config) -> Config:
    """Return a copy of ``config`` whose report outputs are scoped to its locale.

    The json reporter's ``outputFile`` gains a ``-{code}`` suffix and the html
    reporter's ``outputFolder`` gains a ``{code}`` subfolder. Without an active
    locale the config is returned unchanged.
    """

    if config.locale is None:
        return config

    code = config.locale.code
    reporters = []
    for reporter in config.playwright.reporters:
        options = dict(reporter.options)
        if reporter.name == "json" and options.get("outputFile"):
            stem, ext = os.path.splitext(options["outputFile"])
            options["outputFile"] = f"{stem}-{code}{ext}"
        elif reporter.name == "html" and options.get("outputFolder"):
            options["outputFolder"] = os.path.join(options["outputFolder"], code)
        reporters.append(Reporter(name=reporter.name, options=_frozen_mapping(options)))

    playwright = replace(config.playwright, reporters=tuple(reporters))
    return replace(config, playwright=playwright)

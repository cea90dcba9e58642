from __future__ import annotations

import os

from storyshot.core.config import ActiveLocale, Viewport
from storyshot.core.naming import sanitize, snapshot_dir, snapshot_paths
from storyshot.core.resolver import build_config


def test_sanitize_lowercases_and_collapses_separators() -> None:
    assert sanitize("Components/Button--Large Red") == "components-button-large-red"


def test_sanitize_appends_viewport_dimensions() -> None:
    assert sanitize("button--primary", {"width": 375, "height": 667}) == "button-primary-375x667"
    assert sanitize("button--primary", Viewport(width=375, height=667)) == "button-primary-375x667"


def test_sanitize_trims_edge_dashes() -> None:
    assert sanitize("--Hello, World!--") == "hello-world"
    assert sanitize("") == ""


def test_sanitize_ignores_incomplete_viewport() -> None:
    assert sanitize("button--primary", {"width": 375}) == "button-primary"


def test_snapshot_dir_qualifies_mobile_and_locale(tmp_path) -> None:
    config = build_config({"snapshot": {"paths": {"snapshotsDir": "snaps"}}})
    assert snapshot_dir(config, str(tmp_path)) == os.path.join(str(tmp_path), "snaps")

    mobile = build_config(
        {"mobile": True, "snapshot": {"paths": {"snapshotsDir": "snaps"}}},
        {"snapshot": {"mobile": {"enabled": True, "viewports": [{"width": 375, "height": 667}]}}},
    )
    assert snapshot_dir(mobile, str(tmp_path)) == os.path.join(str(tmp_path), "snaps", "mobile")

    localized = build_config(
        {"locale": "de-DE", "snapshot": {"paths": {"snapshotsDir": "snaps"}}},
        {"snapshot": {"locale": {"enabled": True, "locales": [{"code": "de-DE"}]}}},
    )
    assert localized.locale == ActiveLocale(code="de-DE")
    assert snapshot_dir(localized, str(tmp_path)) == os.path.join(str(tmp_path), "snaps", "de-DE")


def test_snapshot_paths_use_viewport_qualified_name(tmp_path) -> None:
    config = build_config(
        {"mobile": True, "snapshot": {"paths": {"snapshotsDir": "snaps"}}},
        {"snapshot": {"mobile": {"enabled": True, "viewports": [{"width": 375, "height": 667}]}}},
    )
    image_path, position_path = snapshot_paths("Button--Primary", config, str(tmp_path))
    directory = os.path.join(str(tmp_path), "snaps", "mobile")
    assert image_path == os.path.join(directory, "button-primary-375x667.png")
    assert position_path == os.path.join(directory, "button-primary-375x667.positions.json")

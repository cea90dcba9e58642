from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from storyshot.core.config import isolate_locale_reports
from storyshot.core.errors import InvalidLocaleError
from storyshot.service import resolve_locale_runs


def _write_config(tmp_path: Path, locales: list[dict]) -> None:
    payload = {
        "snapshot": {
            "locale": {
                "enabled": True,
                "locales": locales,
                "testMatcher": {"tags": ["i18n"]},
            }
        }
    }
    (tmp_path / "visual-tests.config.json").write_text(json.dumps(payload), encoding="utf-8")


def test_default_locale_is_skipped(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        [
            {"code": "en-US", "default": True},
            {"code": "de-DE", "name": "Deutsch"},
            {"code": "ar-SA", "direction": "rtl"},
        ],
    )

    configs = asyncio.run(resolve_locale_runs({}, cwd=str(tmp_path)))

    assert [config.locale.code for config in configs] == ["de-DE", "ar-SA"]
    assert configs[1].locale.direction == "rtl"
    assert all(config.snapshot.test_matcher.tags == ("i18n",) for config in configs)


def test_all_default_locales_yield_no_runs(tmp_path: Path) -> None:
    _write_config(tmp_path, [{"code": "en-US", "default": True}])

    assert asyncio.run(resolve_locale_runs({}, cwd=str(tmp_path))) == []


def test_no_configured_locales_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(InvalidLocaleError):
        asyncio.run(resolve_locale_runs({}, cwd=str(tmp_path)))


def test_locale_configs_are_independent(tmp_path: Path) -> None:
    _write_config(tmp_path, [{"code": "de-DE"}, {"code": "fr-FR"}])
    options = {"storybook": {"port": 7007}, "locale": "de-DE"}

    first, second = asyncio.run(resolve_locale_runs(options, cwd=str(tmp_path)))

    assert first.locale.code == "de-DE"
    assert second.locale.code == "fr-FR"
    assert first.storybook.port == second.storybook.port == 7007
    assert first.snapshot is not second.snapshot
    # Caller options are left as they were.
    assert options == {"storybook": {"port": 7007}, "locale": "de-DE"}


def test_isolate_locale_reports(tmp_path: Path) -> None:
    _write_config(tmp_path, [{"code": "de-DE"}])
    (config,) = asyncio.run(resolve_locale_runs({}, cwd=str(tmp_path)))

    isolated = isolate_locale_reports(config)
    reporters = {reporter.name: dict(reporter.options) for reporter in isolated.playwright.reporters}

    assert reporters["json"]["outputFile"].endswith("results-de-DE.json")
    assert reporters["html"]["outputFolder"].endswith("de-DE")
    untouched = {reporter.name: dict(reporter.options) for reporter in config.playwright.reporters}
    assert untouched["json"]["outputFile"].endswith("results.json")

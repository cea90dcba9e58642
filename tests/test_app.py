from __future__ import annotations

import json

import pytest

from storyshot import app, settings
from storyshot.core.models import StoryEntry, TestOptions as Options


@pytest.fixture(autouse=True)
def _quiet(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(settings, "LOG_CONSOLE", False)
    monkeypatch.setattr(settings, "LOG_FILE", None)
    for name in ("STORYBOOK_HOST", "STORYBOOK_PORT", "STORY_INCLUDE_PATHS", "STORY_IDS"):
        monkeypatch.delenv(name, raising=False)


def test_no_command_prints_help(capsys) -> None:
    assert app.main([]) == 2
    assert "dry-run" in capsys.readouterr().out


def test_config_command_prints_resolved_config(capsys) -> None:
    code = app.main(["--no-banner", "config", "-p", "9009", "--story-ids", "button--primary"])

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["storybook"]["port"] == 9009
    assert payload["snapshot"]["filters"]["storyIds"] == ["button--primary"]


def test_environment_feeds_options(monkeypatch, capsys) -> None:
    monkeypatch.setenv("STORYBOOK_PORT", "7007")
    monkeypatch.setenv("STORY_INCLUDE_PATHS", "components,pages")

    assert app.main(["--no-banner", "config"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["storybook"]["port"] == 7007
    assert payload["snapshot"]["filters"]["includePaths"] == ["components", "pages"]

    # Flags win over the environment.
    assert app.main(["--no-banner", "config", "-p", "9009"]) == 0
    assert json.loads(capsys.readouterr().out)["storybook"]["port"] == 9009


def test_resolution_errors_exit_with_one(tmp_path) -> None:
    (tmp_path / "visual-tests.config.json").write_text(
        json.dumps({"snapshot": {"locale": {"enabled": True, "locales": [{"code": "de-DE"}]}}}),
        encoding="utf-8",
    )

    assert app.main(["--no-banner", "config", "--locale", "xx-XX"]) == 1
    assert app.main(["--no-banner", "config", "-p", "not-a-port"]) == 1


def test_malformed_values_do_not_crash(tmp_path, capsys) -> None:
    (tmp_path / "visual-tests.config.json").write_text(
        json.dumps(
            {
                "playwright": {"workers": "50%"},
                "snapshot": {"mobile": {"enabled": True, "viewports": [{"name": "phone"}]}},
            }
        ),
        encoding="utf-8",
    )

    assert app.main(["--no-banner", "config", "--mobile"]) == 0
    assert json.loads(capsys.readouterr().out)["playwright"]["workers"] == "50%"


def test_dry_run_lists_stories(monkeypatch, capsys) -> None:
    seen = {}

    async def fake_resolve_stories(config, include_all_matching=False):
        seen["include_all_matching"] = include_all_matching
        return [
            StoryEntry(
                id="button--primary",
                name="Primary",
                import_path="./src/Button.stories.tsx",
                test_options=Options(image=True, position=False),
            )
        ]

    monkeypatch.setattr(app, "resolve_stories", fake_resolve_stories)

    assert app.main(["--no-banner", "dry-run", "-v"]) == 0

    out = capsys.readouterr().out
    assert seen["include_all_matching"] is True
    assert "Found 1 stories that would be tested" in out
    assert "button--primary (Primary) [image]" in out

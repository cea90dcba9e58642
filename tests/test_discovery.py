from __future__ import annotations

import asyncio
import os
from typing import Any, Iterable, Mapping

import pytest

from storyshot.core.discovery import StoryMatcher, catalog_entries
from storyshot.core.errors import CatalogFetchError
from storyshot.core.models import StoryEntry
from storyshot.core.resolver import build_config

ROOT = "/project"
SNAPSHOTS = os.path.join(ROOT, "playwright", "storybook-visual", "__visual_snapshots__")


class FakeCatalog:
    def __init__(self, entries: Iterable[Mapping[str, Any]]) -> None:
        self.index = {"v": 5, "entries": {entry["id"]: dict(entry) for entry in entries}}
        self.urls: list[str] = []

    async def fetch_index(self, url: str) -> Mapping[str, Any]:
        self.urls.append(url)
        return self.index


class FakeSnapshots:
    def __init__(self, paths: Iterable[str] = ()) -> None:
        self.paths = set(paths)

    def exists(self, path: str) -> bool:
        return path in self.paths


def _entry(story_id: str, tags=(), name: str = "", import_path: str = "", **extra) -> dict:
    entry = {
        "id": story_id,
        "name": name or story_id.split("--")[-1].title(),
        "title": story_id.split("--")[0].title(),
        "type": "story",
        "tags": list(tags),
        "importPath": import_path or f"./src/{story_id.split('--')[0]}.stories.tsx",
    }
    entry.update(extra)
    return entry


def _snapshot(name: str) -> str:
    return os.path.join(SNAPSHOTS, name)


def _resolve(catalog, snapshots, config, include_all_matching=False) -> list[StoryEntry]:
    matcher = StoryMatcher(catalog=catalog, snapshots=snapshots, root=ROOT)
    return asyncio.run(matcher.resolve_stories(config, include_all_matching))


def test_end_to_end_selection() -> None:
    catalog = FakeCatalog(
        [
            _entry("button--primary", tags=["visual"]),
            _entry("button--secondary", tags=["visual"], name="Secondary (no-visual)"),
            _entry("card--default"),
            _entry("avatar--large", tags=["visual"]),
        ]
    )
    snapshots = FakeSnapshots([_snapshot("button-primary.png")])
    config = build_config({}, {})

    stories = _resolve(catalog, snapshots, config)

    assert [story.id for story in stories] == ["button--primary"]
    assert stories[0].test_options.to_dict() == {"image": True, "position": True}
    assert catalog.urls == ["http://localhost:6006/index.json"]

    everything = _resolve(catalog, snapshots, config, include_all_matching=True)
    assert [story.id for story in everything] == ["avatar--large", "button--primary"]
    assert all(story.test_options.image and story.test_options.position for story in everything)


def test_four_story_catalog_returns_visual_tagged_stories() -> None:
    catalog = FakeCatalog(
        [
            _entry("a--one", tags=["visual"]),
            _entry("b--two", tags=["layout"]),
            _entry("c--three", tags=["visual", "layout"]),
            _entry("d--four", tags=[]),
        ]
    )

    stories = _resolve(catalog, FakeSnapshots(), build_config({}, {}), include_all_matching=True)

    assert [story.id for story in stories] == ["a--one", "c--three"]
    assert [story.test_options.to_dict() for story in stories] == [
        {"image": True, "position": True},
        {"image": True, "position": True},
    ]


def test_category_matchers_cascade() -> None:
    catalog = FakeCatalog(
        [
            _entry("button--primary", tags=["visual"]),
            _entry("layout--grid", tags=["layout"]),
        ]
    )
    config = build_config(
        {},
        {"snapshot": {"position": {"testMatcher": {"tags": ["layout"]}}}},
    )

    stories = _resolve(catalog, FakeSnapshots(), config, include_all_matching=True)
    options = {story.id: story.test_options.to_dict() for story in stories}

    assert options == {
        "button--primary": {"image": True, "position": False},
        "layout--grid": {"image": False, "position": True},
    }

    image_override = build_config(
        {},
        {"snapshot": {"image": {"testMatcher": {"tags": ["layout"]}}}},
    )
    stories = _resolve(catalog, FakeSnapshots(), image_override, include_all_matching=True)
    options = {story.id: story.test_options.to_dict() for story in stories}

    assert options == {
        "button--primary": {"image": False, "position": True},
        "layout--grid": {"image": True, "position": False},
    }


def test_positions_file_alone_counts_as_existing_snapshot() -> None:
    catalog = FakeCatalog([_entry("button--primary", tags=["visual"])])
    snapshots = FakeSnapshots([_snapshot("button-primary.positions.json")])

    stories = _resolve(catalog, snapshots, build_config({}, {}))

    assert [story.id for story in stories] == ["button--primary"]


def test_mobile_snapshots_live_in_mobile_directory() -> None:
    catalog = FakeCatalog([_entry("button--primary", tags=["mobile"])])
    file_config = {
        "snapshot": {
            "mobile": {
                "enabled": True,
                "viewports": [{"width": 375, "height": 667}],
                "testMatcher": {"tags": ["mobile"]},
            }
        }
    }
    config = build_config({"mobile": True}, file_config)

    desktop_path = FakeSnapshots([_snapshot("button-primary.png")])
    assert _resolve(catalog, desktop_path, config) == []

    mobile_path = FakeSnapshots([os.path.join(SNAPSHOTS, "mobile", "button-primary-375x667.png")])
    assert [story.id for story in _resolve(catalog, mobile_path, config)] == ["button--primary"]


def test_results_are_sorted_by_id() -> None:
    catalog = FakeCatalog(
        [
            _entry("zeta--one", tags=["visual"]),
            _entry("alpha--two", tags=["visual"]),
            _entry("alpha--one", tags=["visual"]),
        ]
    )

    stories = _resolve(catalog, FakeSnapshots(), build_config({}, {}), include_all_matching=True)

    assert [story.id for story in stories] == ["alpha--one", "alpha--two", "zeta--one"]


def test_path_and_story_id_filters() -> None:
    catalog = FakeCatalog(
        [
            _entry("button--primary", tags=["visual"], import_path="./src/components/Button.stories.tsx"),
            _entry("button--ghost", tags=["visual"], import_path="./src/components/Button.stories.tsx"),
            _entry("page--home", tags=["visual"], import_path="./src/pages/Home.stories.tsx"),
        ]
    )

    by_path = build_config({"snapshot": {"filters": {"includePaths": "components"}}}, {})
    stories = _resolve(catalog, FakeSnapshots(), by_path, include_all_matching=True)
    assert [story.id for story in stories] == ["button--ghost", "button--primary"]

    by_id = build_config({"snapshot": {"filters": {"storyIds": "page--home,missing--story"}}}, {})
    stories = _resolve(catalog, FakeSnapshots(), by_id, include_all_matching=True)
    assert [story.id for story in stories] == ["page--home"]


def test_non_story_entries_are_dropped() -> None:
    index = {
        "entries": {
            "button--docs": {"id": "button--docs", "type": "docs", "tags": ["visual"]},
            "button--primary": _entry("button--primary", tags=["visual"]),
            "broken": {"type": "story"},
        }
    }

    stories = catalog_entries(index, "http://localhost:6006/index.json")

    assert [story.id for story in stories] == ["button--primary"]
    assert catalog_entries({}, "http://x") == []


def test_non_object_entries_are_rejected() -> None:
    with pytest.raises(CatalogFetchError):
        catalog_entries({"entries": ["button--primary"]}, "http://localhost:6006/index.json")


def test_story_entry_export_shape() -> None:
    catalog = FakeCatalog([_entry("button--primary", tags=["visual"])])

    (story,) = _resolve(catalog, FakeSnapshots(), build_config({}, {}), include_all_matching=True)
    exported = story.to_dict()

    assert exported["importPath"] == "./src/button.stories.tsx"
    assert exported["_testOptions"] == {"image": True, "position": True}

"""Story discovery pipeline.

This module is integration-agnostic. It only relies on ports for the story
catalog and snapshot existence checks.

The pipeline enforces a strict order:
1) Fetch the raw index from the catalog
2) Keep story entries with an id
3) Drop excluded stories
4) Match each snapshot category against its effective matcher
5) Drop stories no category wants
6) Include-path and story-id filters
7) Optionally keep only stories that already have a snapshot
8) Sort by id
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, List, Mapping, Optional

from storyshot.core.config import Config
from storyshot.core.errors import CatalogFetchError
from storyshot.core.matcher import (
    effective_matcher,
    matches_exclusion_patterns,
    matches_path_filters,
    matches_story_id_filters,
    matches_visual_criteria,
)
from storyshot.core.models import StoryEntry, TestOptions
from storyshot.core.naming import snapshot_paths
from storyshot.core.ports import CatalogPort, SnapshotStorePort

LOGGER = logging.getLogger(__name__)


def catalog_entries(index: Mapping[str, Any], url: str) -> List[StoryEntry]:
    """Return story entries (type ``story`` with an id) from an index document."""

    entries = index.get("entries") if isinstance(index, Mapping) else None
    if entries is None:
        return []
    if not isinstance(entries, Mapping):
        raise CatalogFetchError(url, "index 'entries' is not an object")

    stories: List[StoryEntry] = []
    for raw in entries.values():
        if not isinstance(raw, Mapping):
            continue
        if raw.get("type") != "story" or not raw.get("id"):
            continue
        stories.append(StoryEntry.from_catalog(raw))
    return stories


class StoryMatcher:
    """Resolves which stories are tested, and how, for a resolved config."""

    def __init__(
        self,
        catalog: CatalogPort,
        snapshots: SnapshotStorePort,
        root: Optional[str] = None,
    ) -> None:
        self._catalog = catalog
        self._snapshots = snapshots
        self._root = root

    def annotate(self, entry: StoryEntry, config: Config) -> StoryEntry:
        """Attach per-category test options computed from the cascading matchers."""

        snapshot = config.snapshot
        image_matcher = effective_matcher(snapshot.test_matcher, snapshot.image.test_matcher)
        position_matcher = effective_matcher(snapshot.test_matcher, snapshot.position.test_matcher)
        options = TestOptions(
            image=matches_visual_criteria(entry, image_matcher),
            position=matches_visual_criteria(entry, position_matcher),
        )
        return dataclasses.replace(entry, test_options=options)

    def snapshot_exists(self, story_id: str, config: Config) -> bool:
        """A story has a snapshot when either its image or its positions file exists."""

        image_path, position_path = snapshot_paths(story_id, config, self._root)
        return self._snapshots.exists(image_path) or self._snapshots.exists(position_path)

    async def resolve_stories(
        self,
        config: Config,
        include_all_matching: bool = False,
    ) -> List[StoryEntry]:
        """Run the full discovery pipeline and return annotated stories sorted by id."""

        url = config.storybook.index_url
        index = await self._catalog.fetch_index(url)
        stories = catalog_entries(index, url)
        LOGGER.debug("Catalog at %s lists %s stories", url, len(stories))

        filters = config.snapshot.filters
        stories = [s for s in stories if not matches_exclusion_patterns(s, filters.exclusions)]

        annotated = (self.annotate(story, config) for story in stories)
        stories = [story for story in annotated if story.test_options.any]
        LOGGER.debug("%s stories match the visual criteria", len(stories))

        stories = [
            story
            for story in stories
            if matches_path_filters(story, filters.include_paths)
            and matches_story_id_filters(story, filters.story_ids)
        ]

        if not include_all_matching:
            stories = [story for story in stories if self.snapshot_exists(story.id, config)]

        stories.sort(key=lambda story: story.id)
        LOGGER.info(
            "Resolved %s stories%s",
            len(stories),
            "" if include_all_matching else " with existing snapshots",
        )
        return stories


"""Story matching rules (core domain)."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from storyshot.core.config import TestMatcher
from storyshot.core.models import StoryEntry

STORY_SEGMENT_SEPARATOR = "--"


def effective_matcher(
    global_matcher: Optional[TestMatcher],
    override: Optional[TestMatcher],
) -> Optional[TestMatcher]:
    """Category-specific matcher if configured, otherwise the global one."""

    if override is not None:
        return override
    return global_matcher


def story_segment(story_id: str) -> str:
    """Trailing part of a story id (``button--primary`` -> ``primary``)."""

    return story_id.lower().rsplit(STORY_SEGMENT_SEPARATOR, 1)[-1]


def matches_visual_criteria(entry: StoryEntry, matcher: Optional[TestMatcher]) -> bool:
    """Return True when the story is in scope for ``matcher``.

    Checked in order, first hit wins:
    - any matcher tag present on the story
    - id segment or display name ends with a suffix (case-insensitive)
    - id segment or display name contains a keyword (case-insensitive)
    - the story sets ``parameters.snapshot = True``
    """

    if matcher is not None:
        if matcher.tags and any(tag in entry.tags for tag in matcher.tags):
            return True

        segment = story_segment(entry.id)
        display_name = entry.name.lower()

        suffixes = [suffix.lower() for suffix in matcher.suffix if suffix]
        if any(segment.endswith(s) or display_name.endswith(s) for s in suffixes):
            return True

        keywords = [keyword.lower() for keyword in matcher.keywords if keyword]
        if any(k in segment or k in display_name for k in keywords):
            return True

    return entry.parameters.get("snapshot") is True


def matches_exclusion_patterns(entry: StoryEntry, exclusions: Sequence[str]) -> bool:
    """True when any pattern is a case-insensitive substring of id, name or import path."""

    patterns = [pattern.lower() for pattern in exclusions if pattern]
    if not patterns:
        return False

    haystacks = (
        entry.id.lower(),
        entry.name.lower(),
        (entry.import_path or "").lower(),
    )
    return any(pattern in haystack for pattern in patterns for haystack in haystacks)


def matches_path_filters(entry: StoryEntry, include_paths: Sequence[str]) -> bool:
    """True when no paths are configured or the import path contains one of them."""

    segments = [segment for segment in include_paths if segment]
    if not segments:
        return True
    import_path = entry.import_path or ""
    return any(segment in import_path for segment in segments)


def matches_story_id_filters(entry: StoryEntry, story_ids: Sequence[str]) -> bool:
    """True when no ids are configured or the story id is listed exactly."""

    ids = [story_id for story_id in story_ids if story_id]
    if not ids:
        return True
    return entry.id in ids


def filter_stories_by_paths(stories: Iterable[StoryEntry], paths: Sequence[str]) -> List[StoryEntry]:
    return [story for story in stories if matches_path_filters(story, paths)]


def filter_stories_by_exclusions(
    stories: Iterable[StoryEntry], exclusions: Sequence[str]
) -> List[StoryEntry]:
    return [story for story in stories if not matches_exclusion_patterns(story, exclusions)]

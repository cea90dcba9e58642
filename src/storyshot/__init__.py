"""storyshot: decide which Storybook stories get visual snapshot tests."""

from storyshot.core.config import Config, isolate_locale_reports
from storyshot.core.discovery import StoryMatcher
from storyshot.core.models import StoryEntry, TestOptions
from storyshot.core.naming import sanitize
from storyshot.service import resolve_config, resolve_locale_runs, resolve_stories

__all__ = [
    "Config",
    "StoryEntry",
    "StoryMatcher",
    "TestOptions",
    "isolate_locale_reports",
    "resolve_config",
    "resolve_locale_runs",
    "resolve_stories",
    "sanitize",
]

"""Command line entry point for storyshot."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Any, List, Optional

from art import tprint

from storyshot import settings
from storyshot.core.config import Config
from storyshot.core.errors import StoryshotError
from storyshot.core.merge import deep_merge
from storyshot.core.models import StoryEntry
from storyshot.service import resolve_config, resolve_locale_runs, resolve_stories

NAME = "STORYSHOT"
FONT = "tarty-1"

ALL_LOCALES = "all"

LOGGER = logging.getLogger(__name__)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _configure_logging(verbose: bool = False) -> None:
    level_name = "DEBUG" if verbose else str(settings.LOG_LEVEL).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if settings.LOG_CONSOLE:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    if settings.LOG_FILE:
        path = settings.LOG_FILE
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _build_options(args: argparse.Namespace) -> dict[str, Any]:
    """Translate CLI flags into resolver options; flags win over the environment."""

    cli: dict[str, Any] = {"mobile": args.mobile}
    if args.config:
        cli["configFile"] = args.config
    if args.strict:
        cli["strict"] = True
    if args.locale and args.locale != ALL_LOCALES:
        cli["locale"] = args.locale

    storybook: dict[str, Any] = {}
    if args.storybook_port:
        storybook["port"] = args.storybook_port
    if args.storybook_host:
        storybook["host"] = args.storybook_host
    if storybook:
        cli["storybook"] = storybook

    filters: dict[str, Any] = {}
    if args.include_paths:
        filters["includePaths"] = args.include_paths
    if args.story_ids:
        filters["storyIds"] = args.story_ids
    if filters:
        cli["snapshot"] = {"filters": filters}

    return deep_merge(settings.env_options(), cli)


async def _resolve_configs(args: argparse.Namespace) -> List[Config]:
    options = _build_options(args)
    if args.locale == ALL_LOCALES:
        return await resolve_locale_runs(options)
    return [await resolve_config(options)]


def _print_stories(config: Config, stories: List[StoryEntry], verbose: bool) -> None:
    if config.locale is not None:
        print(f"\nLocale: {config.locale.code} ({config.locale.name or config.locale.code})")
    print(f"Found {len(stories)} stories that would be tested\n")

    if verbose:
        by_file: dict[str, List[StoryEntry]] = {}
        for story in stories:
            by_file.setdefault(story.import_path or "unknown", []).append(story)
        for import_path, file_stories in by_file.items():
            print(import_path)
            for story in file_stories:
                flags = ", ".join(
                    name for name, on in story.test_options.to_dict().items() if on
                )
                print(f"  - {story.id} ({story.name}) [{flags}]")
    else:
        for story in stories:
            print(f"  - {story.id}")

    print("\n" + "─" * 60)
    print(f"Total stories: {len(stories)}")
    if config.snapshot.image.enabled:
        print("Image snapshots: enabled")
    if config.snapshot.position.enabled:
        print("Position snapshots: enabled")
    if config.active_viewport is not None:
        print(f"Mobile mode: {config.active_viewport.width}x{config.active_viewport.height}")


async def _dry_run(args: argparse.Namespace) -> int:
    configs = await _resolve_configs(args)
    if not configs:
        LOGGER.warning("No configurations to run")
        return 0
    for config in configs:
        stories = await resolve_stories(config, include_all_matching=True)
        _print_stories(config, stories, args.verbose)
    return 0


async def _show_config(args: argparse.Namespace) -> int:
    configs = await _resolve_configs(args)
    payload = [config.to_dict() for config in configs]
    print(json.dumps(payload[0] if len(payload) == 1 else payload, indent=2))
    return 0


def _add_selection_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-c", "--config", help="Path to config file")
    parser.add_argument("--strict", action="store_true", help="Fail on an unparsable config file")
    parser.add_argument("-i", "--include-paths", help="Comma-separated path segments to include")
    parser.add_argument("--story-ids", help="Comma-separated story IDs")
    parser.add_argument("--mobile", action="store_true", help="Use the mobile configuration")
    parser.add_argument(
        "--locale",
        nargs="?",
        const=ALL_LOCALES,
        help="Locale code (e.g. de-DE); without a value, every non-default locale",
    )
    parser.add_argument("-p", "--storybook-port", help="Storybook server port")
    parser.add_argument("--storybook-host", help="Storybook server host")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show detailed output")


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="storyshot")
    parser.add_argument("--no-banner", action="store_true", help="Skip the startup banner")
    subparsers = parser.add_subparsers(dest="command")

    dry_run = subparsers.add_parser("dry-run", help="Preview which stories would be tested")
    _add_selection_flags(dry_run)
    show_config = subparsers.add_parser("config", help="Print the resolved configuration")
    _add_selection_flags(show_config)

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 2

    if not args.no_banner:
        _print_banner()
    _configure_logging(args.verbose)

    handler = _dry_run if args.command == "dry-run" else _show_config
    try:
        return asyncio.run(handler(args))
    except StoryshotError as exc:
        LOGGER.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

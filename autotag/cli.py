"""
Autotag — CLI entry point
Usage: autotag [--db PATH] [--log-level LEVEL] {view,favorites,tags} ...

Runs cycles against the local SQLite store and tag registry.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import anyio

from . import config
from .errors import AutotagError
from .models import PageLocator
from .orchestrator import Autotag
from .registry import SQLiteTagRegistry
from .snapshot import snapshot_from_html
from .storage import SQLiteStore


def _add_option_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--topic", action="append", default=[], dest="topic_list", help="Known topic (repeatable)")
    parser.add_argument("--whitelist", action="append", default=[], help="Allowed URL pattern (repeatable)")
    parser.add_argument("--blacklist", action="append", default=[], help="Denied URL pattern (repeatable)")
    parser.add_argument("--regex", action="store_true", help="Treat allow/deny patterns as regular expressions")
    parser.add_argument("--url-position", type=int, default=config.DEFAULT_URL_POSITION)
    parser.add_argument("--num-topics", type=int, default=config.DEFAULT_NUM_TOPICS)
    parser.add_argument("--min-views", type=int, default=config.DEFAULT_MIN_VIEWS)
    parser.add_argument("--max-views", type=int, default=None)
    parser.add_argument("--max-view-age", type=int, default=None, help="Milliseconds")
    parser.add_argument(
        "--age-mid-weight", type=int, default=config.DEFAULT_AGE_MID_WEIGHT, help="Half-life of a view in milliseconds"
    )
    parser.add_argument("--tag-prefix", default=config.DEFAULT_TAG_PREFIX)


def _options_from_args(args: argparse.Namespace) -> dict:
    return {
        "topic_list": args.topic_list,
        "whitelist": args.whitelist,
        "blacklist": args.blacklist,
        "pattern_mode": "regex" if args.regex else "substring",
        "url_position": args.url_position,
        "num_topics": args.num_topics,
        "min_views": args.min_views,
        "max_views": args.max_views,
        "max_view_age": args.max_view_age,
        "age_mid_weight": args.age_mid_weight,
        "tag_prefix": args.tag_prefix,
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="autotag",
        description="Infer favorite topics from page views and keep topic tags in sync.",
    )
    parser.add_argument("--db", default=config.DB_PATH, help=f"SQLite file (default: {config.DB_PATH})")
    parser.add_argument(
        "--log-level", default=config.LOG_LEVEL, choices=["debug", "info", "warning", "error"]
    )
    sub = parser.add_subparsers(dest="command", required=True)

    view = sub.add_parser("view", help="Record a page view and reconcile tags")
    view.add_argument("url")
    view.add_argument("--html", type=Path, default=None, help="HTML file of the page")
    _add_option_flags(view)

    favorites = sub.add_parser("favorites", help="Print the current favorite topics")
    _add_option_flags(favorites)

    sub.add_parser("tags", help="Print the current tags")
    return parser


async def _run(args: argparse.Namespace) -> object:
    registry = SQLiteTagRegistry(args.db)
    if args.command == "tags":
        return await registry.get_tags()

    autotag = Autotag(SQLiteStore(args.db), registry, _options_from_args(args))
    if args.command == "favorites":
        return await autotag.get_favorite_topics()

    snapshot = snapshot_from_html(args.html.read_text(encoding="utf-8")) if args.html else None
    result = await autotag.on_page_view(PageLocator.from_url(args.url), snapshot, force=True)
    return result.model_dump()


def main() -> None:
    args = build_parser().parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        output = anyio.run(_run, args)
    except (AutotagError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(output, indent=2))
    if isinstance(output, dict) and output.get("status") == "failed":
        sys.exit(1)


if __name__ == "__main__":
    main()

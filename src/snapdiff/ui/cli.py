from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from snapdiff.app import backfill, change_days, changes_feed, process
from snapdiff.config import configure_logging
from snapdiff.domain.changes import classify_record, summarize
from snapdiff.domain.model import ChangeKind

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from snapdiff.domain.feed import FeedPage
    from snapdiff.domain.model import ChangeRecord

log = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected an integer, got {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got {parsed}")
    return parsed


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Track changes between catalog snapshots")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    process_parser = subparsers.add_parser(
        "process",
        help="Materialize a crawl and record its changes against the previous crawl",
    )
    process_parser.add_argument(
        "--crawl-id",
        type=str,
        help="Archived crawl to process (defaults to the latest)",
    )

    backfill_parser = subparsers.add_parser(
        "backfill",
        help="Record changes for every adjacent pair of archived crawls",
    )
    backfill_parser.add_argument(
        "--from",
        dest="from_crawl_id",
        type=str,
        help="First crawl of the walk (defaults to the latest processed crawl)",
    )

    feed = subparsers.add_parser("feed", help="Print one page of the change feed")
    feed.add_argument("--cursor", type=str, help="Continue below this crawl id")
    feed.add_argument(
        "--page-size",
        type=_positive_int,
        help="Minimum number of changes to collect (defaults to config)",
    )
    feed.add_argument(
        "--max-groups",
        type=_positive_int,
        help="Maximum number of crawls to scan (defaults to config)",
    )
    feed.add_argument(
        "--all",
        dest="include_hidden",
        action="store_true",
        help="Include changes hidden by the display rules",
    )

    subparsers.add_parser("days", help="List days with recorded changes")

    return parser.parse_args(list(argv))


def _describe(change: ChangeRecord) -> str:
    identity = "/".join(
        value
        for value in (
            change.provider_tag_slug,
            change.model_slug,
            change.provider_slug if change.provider_tag_slug is None else None,
        )
        if value
    )
    label = f"{change.entity_type} {change.change_kind} {identity}"
    if change.change_kind is not ChangeKind.UPDATE:
        return label
    return f"{label} {change.path}: {summarize(classify_record(change))}"


def _print_feed(page: FeedPage) -> None:
    for group in page.items:
        print(f"# crawl {group.crawl_id} ({len(group.changes)} changes)")  # noqa: T201
        for change in group.changes:
            print(f"  {_describe(change)}")  # noqa: T201
    if page.done:
        print("-- end of feed --")  # noqa: T201
    else:
        print(f"-- next cursor: {page.next_cursor} --")  # noqa: T201


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        if parsed_args.command == "process":
            result = process(parsed_args.crawl_id)
            if result is None:
                log.warning("Nothing processed")
            else:
                log.info(
                    "Processed crawl %s (previous %s): changes=%s",
                    result.crawl_id,
                    result.previous_crawl_id,
                    result.changes.as_dict() if result.changes else None,
                )
        elif parsed_args.command == "backfill":
            pairs = backfill(parsed_args.from_crawl_id)
            log.info("Backfill processed %s crawl pairs", pairs)
        elif parsed_args.command == "feed":
            page = changes_feed(
                parsed_args.cursor,
                page_size=parsed_args.page_size,
                max_groups=parsed_args.max_groups,
                displayable_only=not parsed_args.include_hidden,
            )
            _print_feed(page)
        elif parsed_args.command == "days":
            for day in change_days():
                print(day.isoformat())  # noqa: T201
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()

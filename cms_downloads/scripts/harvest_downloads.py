#!/usr/bin/env python3
"""CLI entrypoint for the CMS downloads harvester."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from collections import Counter
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any, TextIO

from cms_downloads.download_harvester import harvest, normalize, source
from cms_downloads.download_harvester.normalize import DownloadRecord

logger = logging.getLogger("cms_downloads.download_harvester.cli")


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def resolve_page(path: str) -> Path:
    resolved = Path(path).expanduser().resolve()
    if not resolved.is_file():
        raise SystemExit(f"Page not found: {resolved}")
    return resolved


def parse_selector_list(value: str | None) -> list[str] | None:
    if not value:
        return None
    parts = [entry.strip() for entry in value.split(",") if entry.strip()]
    return parts or None


def load_items(args: argparse.Namespace) -> list[source.HtmlItem] | None:
    page = resolve_page(args.page)
    scheme = source.MarkerScheme(prefix=source.resolve_marker_prefix(args.marker_prefix))
    logger.info("Reading collection from %s", page)
    return source.load_html_items(
        page,
        slot_name=args.slot,
        selectors=parse_selector_list(args.selectors),
        scheme=scheme,
        base_url=args.base_url,
    )


def command_scan(args: argparse.Namespace) -> None:
    items = load_items(args)
    if items is None:
        raise SystemExit(f"Slot not found: {args.slot}")
    records = harvest.Harvester().harvest(items)
    payload = [record.to_dict() for record in records]
    if args.output:
        output_path = Path(args.output).expanduser()
        if args.jsonl:
            write_jsonl(output_path, payload)
        else:
            write_json(output_path, payload)
        logger.info("Wrote %d records to %s", len(payload), output_path)
    else:
        dump_records(payload, sys.stdout, jsonl=args.jsonl)


def command_check(args: argparse.Namespace) -> None:
    items = load_items(args)
    if items is None:
        raise SystemExit(f"Slot not found: {args.slot}")
    records = harvest.extract_records(items)
    print_status_table(records)


def dump_records(items: Iterable[dict[str, Any]], stream: TextIO, *, jsonl: bool = False) -> None:
    if jsonl:
        for item in items:
            stream.write(json.dumps(item, ensure_ascii=False))
            stream.write("\n")
        return
    json.dump(list(items), stream, indent=2, ensure_ascii=False)
    stream.write("\n")


def write_json(path: Path, items: Iterable[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        dump_records(items, fh)


def write_jsonl(path: Path, items: Iterable[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        dump_records(items, fh, jsonl=True)


def record_status(record: DownloadRecord) -> str:
    return normalize.invalid_reason(record) or "kept"


def print_status_table(records: Sequence[DownloadRecord]) -> None:
    print("Id".ljust(10), "Tier".ljust(10), "Status".ljust(10), "Name")
    print("-" * 80)
    statuses: Counter[str] = Counter()
    for record in records:
        status = record_status(record)
        statuses[status] += 1
        print(record.id.ljust(10), record.tier.ljust(10), status.ljust(10), record.name)
    summary = ", ".join(f"{status}: {count}" for status, count in sorted(statuses.items()))
    print(f"\nItems: {len(records)}" + (f" | {summary}" if summary else ""))


def add_page_arguments(parser_obj: argparse.ArgumentParser) -> None:
    parser_obj.add_argument("page", help="HTML snapshot of the page holding the collection")
    parser_obj.add_argument("--slot", help="Only read items inside <slot name=SLOT>")
    parser_obj.add_argument(
        "--selectors",
        help="Comma-separated CSS selectors for items (overrides HARVEST_ITEM_SELECTORS)",
    )
    parser_obj.add_argument(
        "--marker-prefix",
        help="Class prefix of field markers (overrides HARVEST_MARKER_PREFIX)",
    )
    parser_obj.add_argument(
        "--base-url",
        help="Base URL for relative download links (overrides HARVEST_BASE_URL)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser_obj = argparse.ArgumentParser(description="Harvest download records from CMS items")
    parser_obj.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser_obj.add_subparsers(dest="command")

    scan_parser = subparsers.add_parser("scan", help="Extract valid download records")
    add_page_arguments(scan_parser)
    scan_parser.add_argument("--output", help="Write records to this file instead of stdout")
    scan_parser.add_argument("--jsonl", action="store_true", help="Write JSON Lines")
    scan_parser.set_defaults(func=command_scan)

    check_parser = subparsers.add_parser("check", help="Dry-run status per item")
    add_page_arguments(check_parser)
    check_parser.set_defaults(func=command_check)

    return parser_obj


def main(argv: list[str] | None = None) -> None:
    parser_obj = build_parser()
    args = parser_obj.parse_args(argv)
    if not getattr(args, "command", None):
        parser_obj.print_help()
        return
    configure_logging(args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()

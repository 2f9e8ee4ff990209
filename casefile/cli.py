#!/usr/bin/env python3
"""
Command-line utility for operating on the local record store.

Examples:
  casefile list --query smith --sort dateDesc
  casefile export --dir ./exports
  casefile import convict-records-2024-05-01.json
  casefile dump
"""

import argparse
import asyncio
import json
import sys

from .core.codec import export_file, import_file
from .core.config import DB_PATH, get_storage_backend, validate_storage_config
from .core.errors import CasefileError
from .core.notifier import ChangeNotifier
from .core.query import ALL_CATEGORIES, CATEGORY_FILTERS, DEFAULT_SORT, SORT_OPTIONS, apply_query
from .core.stats import TIME_RANGES, summarize
from .core.store import RecordStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="casefile",
        description="Manage locally stored suspect case records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment variables:
- DB_PATH=./data/casefile.db (SQLite file backing the store)
- STORAGE_BACKEND=sqlite (sqlite|memory)
- STORAGE_QUOTA_BYTES=5242880
        """
    )
    sub = parser.add_subparsers(dest="command", required=True)

    list_parser = sub.add_parser("list", help="List records with optional search, filter and sort")
    list_parser.add_argument("--query", "-q", default="", help="Search name, phone and case details")
    list_parser.add_argument("--sort", "-s", default=DEFAULT_SORT, choices=list(SORT_OPTIONS))
    list_parser.add_argument("--category", "-c", default=ALL_CATEGORIES, choices=CATEGORY_FILTERS)

    show_parser = sub.add_parser("show", help="Print one record as JSON")
    show_parser.add_argument("record_id")

    export_parser = sub.add_parser("export", help="Write all records to a dated JSON file")
    export_parser.add_argument("--dir", "-d", default=".", help="Output directory (default: current)")

    import_parser = sub.add_parser("import", help="Replace all records with an export document")
    import_parser.add_argument("path")

    sub.add_parser("dump", help="Show storage diagnostics")

    stats_parser = sub.add_parser("stats", help="Show record statistics")
    stats_parser.add_argument("--range", "-r", dest="time_range", default="all", choices=list(TIME_RANGES))

    clear_parser = sub.add_parser("clear", help="Delete every record")
    clear_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    return parser


def main(argv=None, store: RecordStore = None) -> int:
    args = build_parser().parse_args(argv)

    if store is None:
        issues = validate_storage_config()
        if issues:
            for issue in issues:
                print(f"ERROR: {issue}")
            return 1
        backend = get_storage_backend()
        store = RecordStore(backend, ChangeNotifier(backend))
        store.init()

    try:
        if args.command == "list":
            records = apply_query(store.get_all(), args.query, args.sort, args.category)
            for record in records:
                category = record.category or "-"
                print(f"{record.id}  {record.name}  {record.phone}  [{category}]")
            print(f"{len(records)} record(s)")

        elif args.command == "show":
            record = store.get_by_id(args.record_id)
            if record is None:
                print(f"ERROR: Record not found: {args.record_id}")
                return 1
            print(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))

        elif args.command == "export":
            path = export_file(store, args.dir)
            print(f"Exported {store.count()} record(s) to {path}")

        elif args.command == "import":
            result = asyncio.run(import_file(store, args.path))
            print(f"Imported {result.count} record(s) from {args.path}")

        elif args.command == "dump":
            dump = store.diagnostic_dump()
            print(f"Storage: {DB_PATH} [{dump['storage_key']}]")
            print(f"Records: {dump['record_count']}")
            print(f"Usage: ~{dump['usage_bytes'] / 1024:.2f} KB")
            if dump["first_record_id"]:
                print(f"First record: {dump['first_record_id']} ({dump['first_record_name']})")

        elif args.command == "stats":
            stats = summarize(store.get_all(), args.time_range)
            print(f"Total records: {stats['total']}")
            for name, count in sorted(stats["category_counts"].items()):
                print(f"  {name}: {count}")
            if stats["top_tags"]:
                print("Top tags: " + ", ".join(f"{t['name']} ({t['count']})" for t in stats["top_tags"]))

        elif args.command == "clear":
            if not args.yes:
                response = input("Delete ALL records? This cannot be undone. (yes/no): ").strip().lower()
                if response != "yes":
                    print("Clear cancelled.")
                    return 0
            store.clear()
            print("All records deleted.")

        return 0

    except CasefileError as e:
        print(f"ERROR: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Record Book Management CLI

Commands for managing the stored record tables:
- seed: Create the reference records and save them
- clear: Empty every table
- list: Print every record of one entity type
- check: Load every table and report rows that were skipped

Storage is selected by RECORDBOOK_STORAGE_DRIVER / RECORDBOOK_DATA_DIR.

Usage:
    python -m tools.manage <command> [options]

Examples:
    RECORDBOOK_DATA_DIR=./data python -m tools.manage seed
    RECORDBOOK_DATA_DIR=./data python -m tools.manage list books
    RECORDBOOK_DATA_DIR=./data python -m tools.manage clear --yes
"""

import argparse
import sys

from recordbook import create_record_book
from recordbook.db import StorageError
from recordbook.observability import get_metrics, setup_logging


ENTITY_SLOTS = ("books", "persons", "employees", "authors", "movies")


def cmd_seed(args):
    """Create the reference records and save every table."""
    from reference.loader import load_reference_data

    book = create_record_book()
    book.load_all()

    result = load_reference_data(book, verbose=args.verbose)
    counts = book.save_all()

    print(f"[OK] {len(result.created)} records created, {len(result.rejected)} rejected")
    for slot, count in counts.items():
        print(f"  {slot}: {count}")
    return 0


def cmd_clear(args):
    """Empty every table."""
    if not args.yes:
        print("Refusing to clear without --yes.")
        return 1

    book = create_record_book()
    book.clear()
    print("[OK] All tables cleared.")
    return 0


def cmd_list(args):
    """Print every record of one entity type."""
    book = create_record_book()

    if args.entity == "persons":
        table = book.persons
        table.load_all()
    else:
        book.load_all()
        table = book.registries[args.entity]

    for key in sorted(table.instances):
        print(table.instances[key])
    print(f"\n{len(table)} {args.entity}")
    return 0


def cmd_check(args):
    """Load every table and report skipped rows."""
    book = create_record_book()
    reports = book.load_all()

    print("=== Record Book Check ===\n")
    failed = False
    for slot, report in reports.items():
        status = "[OK]" if report.clean else "[FAIL]"
        print(f"{slot}: {status} {len(report.loaded)} loaded, {len(report.skipped)} skipped")
        for key, reason in report.skipped.items():
            print(f"  {key}: {reason}")
        failed = failed or not report.clean

    if args.verbose:
        print("\nCounters:")
        for name, count in get_metrics().get_summary().items():
            print(f"  {name}: {count}")

    return 1 if failed else 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Record Book Management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # seed
    p_seed = subparsers.add_parser(
        "seed",
        help="Create the reference records"
    )
    p_seed.add_argument("--verbose", "-v", action="store_true", help="Print each record")

    # clear
    p_clear = subparsers.add_parser(
        "clear",
        help="Empty every table"
    )
    p_clear.add_argument("--yes", action="store_true", help="Confirm deletion")

    # list
    p_list = subparsers.add_parser(
        "list",
        help="Print every record of one entity type"
    )
    p_list.add_argument("entity", choices=ENTITY_SLOTS)

    # check
    p_check = subparsers.add_parser(
        "check",
        help="Load every table and report skipped rows"
    )
    p_check.add_argument("--verbose", "-v", action="store_true", help="Print counters")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging()

    commands = {
        "seed": cmd_seed,
        "clear": cmd_clear,
        "list": cmd_list,
        "check": cmd_check,
    }

    try:
        return commands[args.command](args) or 0
    except StorageError as e:
        print(f"[FAIL] Storage error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())

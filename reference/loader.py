"""
Reference Data Loader

Loads seed records from JSON data files in the reference/ directory
and creates them through the normal registry create path, so every
seed record passes the same checks as user input.

This allows:
- A known population for demos and manual testing
- PRs to be readable (JSON diffs instead of Python code changes)

Usage:
    from reference.loader import load_reference_data
    result = load_reference_data(record_book)
    record_book.save_all()
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from recordbook import RecordBook, create_record_book
from recordbook.core import OperationStatus


# Reference directory
REFERENCE_DIR = Path(__file__).parent


def load_index() -> dict:
    """Load the reference index."""
    index_path = REFERENCE_DIR / "index.json"
    with open(index_path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_data_file(filename: str) -> list[dict]:
    """Load a single data file: a list of slot records."""
    path = REFERENCE_DIR / filename
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


@dataclass
class SeedResult:
    """Result of loading reference data."""
    record_book: RecordBook
    created: list[tuple[str, str]] = field(default_factory=list)    # (slot, key)
    rejected: list[tuple[str, str, str]] = field(default_factory=list)  # (slot, key, message)


def load_reference_data(
    record_book: Optional[RecordBook] = None,
    verbose: bool = False,
) -> SeedResult:
    """
    Create all reference records in the record book.

    Records whose key already exists are rejected (uniqueness), so
    seeding twice is harmless. Nothing is saved; call save_all().

    Args:
        record_book: Existing record book. Creates an in-memory one if None.
        verbose: Print progress messages.
    """
    if record_book is None:
        record_book = create_record_book()

    def log(msg: str):
        if verbose:
            print(msg)

    result = SeedResult(record_book=record_book)
    registries = record_book.registries

    for entry in load_index()["files"]:
        slot = entry["slot"]
        registry = registries[slot]
        log(f"[LOADING] {slot} from {entry['file']}")

        for slots in load_data_file(entry["file"]):
            outcome = registry.create(slots)
            if outcome.status == OperationStatus.CREATED:
                result.created.append((slot, outcome.key))
                log(f"  + {outcome.key}")
            else:
                result.rejected.append((slot, outcome.key, outcome.violation.message))
                log(f"  ! {outcome.key}: {outcome.violation.message}")

    log(f"\n[OK] {len(result.created)} created, {len(result.rejected)} rejected")
    return result

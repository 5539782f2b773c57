"""Cron entry point for purging uploads that were never registered."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from datetime import datetime, timezone

from photovault.config import StorageSettings
from photovault.dependencies import build_storage
from photovault.logging import configure_logging


@dataclass(slots=True)
class CleanupSummary:
    uploads_removed: int
    dry_run: bool


def perform_cleanup(
    *,
    dry_run: bool,
    settings: StorageSettings | None = None,
    reference_time: datetime | None = None,
) -> CleanupSummary:
    """Execute cleanup logic and return summary counters."""
    container = build_storage(settings or StorageSettings.build_default())
    service = container.service
    now = reference_time or datetime.now(tz=timezone.utc)

    if dry_run:
        expired = service.grants.ledger.list_expired_unregistered(now)
        return CleanupSummary(uploads_removed=len(expired), dry_run=True)

    removed = service.cleanup_expired_uploads(now)
    return CleanupSummary(uploads_removed=removed, dry_run=False)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Purge expired, never registered uploads.")
    parser.add_argument("--dry-run", action="store_true", help="Only report counts without deleting files.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or [])
    configure_logging()
    try:
        summary = perform_cleanup(dry_run=args.dry_run)
    except Exception as exc:
        print(f"cleanup failed: {exc}", file=sys.stderr)
        return 2

    if summary.dry_run:
        print(f"cleanup dry-run, uploads_expired={summary.uploads_removed}", file=sys.stdout)
    else:
        print(f"cleanup done, uploads_removed={summary.uploads_removed}", file=sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

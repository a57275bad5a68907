from __future__ import annotations

import argparse
import logging

from familyspots.catalog.adapters import events_from_rows, venues_from_rows
from familyspots.catalog.loader import write_snapshot_rows
from familyspots.config.settings import get_settings
from familyspots.core.logging import configure_logging
from familyspots.ingestion.backend_client import BackendCatalog

logger = logging.getLogger("catalog_snapshot")


def main() -> int:
    ap = argparse.ArgumentParser(description="Download venues/events from the backend into a local JSON snapshot.")
    ap.add_argument("--out", default=None, help="Snapshot path (default: catalog.path from settings)")
    ap.add_argument("--dry-run", action="store_true", help="Fetch and validate only; do not write")
    args = ap.parse_args()

    configure_logging()
    settings = get_settings()
    out_path = args.out or settings.catalog.path

    with BackendCatalog(settings) as backend:
        venue_rows = backend.raw_venue_rows()
        event_rows = backend.raw_event_rows()

    # Keep only rows the adapters accept.
    ok_venues = {v.id for v in venues_from_rows(venue_rows)}
    ok_events = {e.id for e in events_from_rows(event_rows)}
    venue_rows = [r for r in venue_rows if str(r.get("id")) in ok_venues]
    event_rows = [r for r in event_rows if str(r.get("id")) in ok_events]

    print(f"venues={len(venue_rows)} events={len(event_rows)}")
    if args.dry_run:
        return 0

    written = write_snapshot_rows(out_path, venues=venue_rows, events=event_rows)
    print(f"wrote: {written}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

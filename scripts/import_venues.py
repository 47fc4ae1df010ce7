#!/usr/bin/env python3
"""
Studio CRM Venue Importer
Seeds the venues table from a spreadsheet (.xlsx or .csv).

Features:
- Exact-name deduplication (existing venues are never touched)
- Fuzzy near-duplicate warnings ("Light Fest" vs "Light Festival")
- Re-runnable / safe to run multiple times
- Dry-run mode
- New venues appended after the current last rank, in sheet order

Expected columns (case-insensitive, extra columns ignored):
    name, url, submission_form_url, city, state, country, phone, status, category, notes
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, List, Tuple

import pandas as pd
from rapidfuzz import fuzz, process

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from studiocrm.engine import crm  # noqa: E402
from studiocrm.models import Venue, Location, VENUE_STATUSES, VENUE_CATEGORIES  # noqa: E402

DEFAULT_PATH = project_root / "data" / "venues.xlsx"

# Spreadsheet header -> Venue field
COLUMN_ALIASES = {
    'name': 'name',
    'venue': 'name',
    'url': 'url',
    'website': 'url',
    'submission_form_url': 'submission_form_url',
    'submission form': 'submission_form_url',
    'submission url': 'submission_form_url',
    'city': 'city',
    'state': 'state',
    'country': 'country',
    'phone': 'phone',
    'phone number': 'phone',
    'status': 'status',
    'category': 'category',
    'notes': 'notes',
}


# =============================================================================
# SHEET PARSING
# =============================================================================

def read_sheet(path: Path) -> pd.DataFrame:
    """Load a .csv or the first sheet of an .xlsx, with normalised column names."""
    if path.suffix.lower() == '.csv':
        df = pd.read_csv(path, dtype=str)
    else:
        df = pd.read_excel(path, dtype=str)

    df.columns = [COLUMN_ALIASES.get(str(c).strip().lower(), str(c).strip().lower()) for c in df.columns]
    if 'name' not in df.columns:
        raise ValueError(f"No 'name' column in {path.name}; found {list(df.columns)}")
    return df


def _cell(row: pd.Series, column: str) -> Optional[str]:
    value = row.get(column)
    if value is None or pd.isna(value):
        return None
    value = str(value).strip()
    return value or None


def _choice(value: Optional[str], allowed: Tuple[str, ...], default: str) -> str:
    """Case-insensitive match against an enumerated set, else the default."""
    if value:
        for option in allowed:
            if option.lower() == value.lower():
                return option
        logging.warning(f"Unknown value {value!r}, using {default!r}")
    return default


def row_to_venue(row: pd.Series) -> Optional[Venue]:
    """Build a Venue from one sheet row. Rows without a name are skipped."""
    name = _cell(row, 'name')
    if not name:
        return None

    location = Location(
        city=_cell(row, 'city'),
        state=_cell(row, 'state'),
        country=_cell(row, 'country') or 'US',
        phone_number=_cell(row, 'phone'),
    )

    return Venue(
        name=name,
        url=_cell(row, 'url'),
        submission_form_url=_cell(row, 'submission_form_url'),
        locations=[location],
        status=_choice(_cell(row, 'status'), VENUE_STATUSES, 'To Contact'),
        category=_choice(_cell(row, 'category'), VENUE_CATEGORIES, 'For Review'),
        notes=_cell(row, 'notes'),
    )


# =============================================================================
# FUZZY DUPLICATE DETECTION
# =============================================================================

def find_near_duplicates(names: List[str], existing: List[str], threshold: int = 90) -> List[Tuple[str, str, float]]:
    """
    Names that closely resemble, but do not exactly equal, an existing name
    or an earlier name in the same sheet.
    Returns: [(name, closest match, score)]
    """
    matches = []
    seen = list(existing)

    for name in names:
        candidates = [n for n in seen if n != name]
        best = process.extractOne(name, candidates, scorer=fuzz.token_sort_ratio) if candidates else None
        if best and best[1] >= threshold:
            matches.append((name, best[0], best[1]))
            logging.warning(f"Possible duplicate: '{name}' ~ '{best[0]}' (score: {best[1]:.0f})")
        seen.append(name)

    return matches


# =============================================================================
# IMPORT
# =============================================================================

def run_import(path: Path, dry_run: bool = False, threshold: int = 90) -> int:
    logging.info("=" * 80)
    logging.info("STUDIO CRM VENUE IMPORT")
    logging.info("=" * 80)
    logging.info(f"Mode: {'DRY-RUN' if dry_run else 'LIVE'}")
    logging.info(f"Source: {path}")

    try:
        df = read_sheet(path)
    except (OSError, ValueError) as e:
        logging.error(f"Failed to read spreadsheet: {e}")
        return 1

    venues = [v for v in (row_to_venue(row) for _, row in df.iterrows()) if v is not None]
    logging.info(f"Rows: {len(df)}, usable venues: {len(venues)}")

    existing = [v.name for v in crm.list_venues()]
    near = find_near_duplicates([v.name for v in venues], existing, threshold=threshold)

    if dry_run:
        existing_set = set(existing)
        new = [v for v in venues if v.name not in existing_set]
        for venue in new:
            logging.info(f"[DRY-RUN] Would insert: {venue.name} ({venue.locations[0].label()})")
        logging.info(f"[DRY-RUN] {len(new)} new, {len(venues) - len(new)} existing, {len(near)} possible duplicates")
        return 0

    result = crm.seed_venues(venues)

    logging.info("=" * 80)
    logging.info("IMPORT COMPLETE")
    logging.info("=" * 80)
    logging.info(f"Venues inserted: {result['inserted']}")
    logging.info(f"Venues skipped (exact name exists): {result['skipped']}")
    logging.info(f"Possible duplicates to review: {len(near)}")
    return 0


# =============================================================================
# CLI
# =============================================================================

def main():
    parser = argparse.ArgumentParser(
        description="Seed Studio CRM venues from a spreadsheet"
    )
    parser.add_argument(
        'path',
        nargs='?',
        default=str(DEFAULT_PATH),
        help=f"Spreadsheet to import (default: {DEFAULT_PATH})"
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help="Show what would be imported without writing to database"
    )
    parser.add_argument(
        '--threshold',
        type=int,
        default=90,
        help="Fuzzy match score (0-100) that flags a possible duplicate (default: 90)"
    )
    parser.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help="Logging level (default: INFO)"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s | %(levelname)-8s | %(message)s",
    )

    sys.exit(run_import(Path(args.path), dry_run=args.dry_run, threshold=args.threshold))


if __name__ == "__main__":
    main()

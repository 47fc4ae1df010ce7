"""
CRM Engine - Data Migrations
One-off conversions from the legacy data shape (inline venue contacts,
single venue_id fields) to the relational one. Each runs in one transaction
and is safe to re-run.
"""

import logging
from typing import Dict, Optional

from studiocrm.db.connection import get_db_cursor
from studiocrm.logging_config import log_call

logger = logging.getLogger(__name__)


def _contact_key(venue_id: int, name: str, email: Optional[str]) -> str:
    return f"{venue_id}::{name.strip().lower()}::{(email or '').strip().lower()}"


@log_call
def migrate_inline_contacts() -> Dict[str, int]:
    """
    Turn every named inline venue contact into a contacts row linked to its
    venue (title becomes role) and append the new ids to venues.contact_ids.
    Contacts already present for that venue with the same name and email are skipped.

    Returns: {'migrated': n, 'skipped': m}
    """
    migrated = 0
    skipped = 0

    with get_db_cursor() as cur:
        cur.execute("SELECT id, contacts FROM venues ORDER BY id FOR UPDATE")
        venues = cur.fetchall()

        cur.execute("SELECT name, email, venue_ids FROM contacts")
        existing = {
            _contact_key(venue_id, row['name'], row['email'])
            for row in cur.fetchall()
            for venue_id in (row['venue_ids'] or [])
        }

        for venue in venues:
            new_ids = []
            for inline in venue['contacts'] or []:
                name = (inline.get('name') or '').strip()
                if not name:
                    skipped += 1
                    continue

                key = _contact_key(venue['id'], name, inline.get('email'))
                if key in existing:
                    skipped += 1
                    continue

                cur.execute("""
                    INSERT INTO contacts (name, email, role, notes, types, venue_ids, created_at, updated_at)
                    VALUES (%s, %s, %s, %s, %s, %s, NOW(), NOW())
                    RETURNING id
                """, (
                    name, inline.get('email'), inline.get('title'), inline.get('notes'),
                    ['Venue Contact'], [venue['id']],
                ))
                new_ids.append(cur.fetchone()['id'])
                existing.add(key)

            if new_ids:
                cur.execute("""
                    UPDATE venues
                    SET contact_ids = COALESCE(contact_ids, '{}') || %s::integer[], updated_at = NOW()
                    WHERE id = %s
                """, (new_ids, venue['id']))
                migrated += len(new_ids)
                logger.debug(f"Venue {venue['id']}: migrated {len(new_ids)} inline contacts")

    logger.info(f"Inline contact migration: {migrated} migrated, {skipped} skipped")
    return {'migrated': migrated, 'skipped': skipped}


def _backfill_venue_ids(table: str) -> Dict[str, int]:
    with get_db_cursor() as cur:
        cur.execute(f"SELECT COUNT(*) AS total FROM {table}")
        total = cur.fetchone()['total']
        cur.execute(f"""
            UPDATE {table}
            SET venue_ids = ARRAY[venue_id], updated_at = NOW()
            WHERE venue_id IS NOT NULL
              AND (venue_ids IS NULL OR cardinality(venue_ids) = 0)
        """)
        backfilled = cur.rowcount
        emptied = 0
        if table == 'contacts':
            cur.execute("UPDATE contacts SET venue_ids = '{}' WHERE venue_ids IS NULL")
            emptied = cur.rowcount

    logger.info(f"{table}: {total} processed, {backfilled} backfilled from venue_id, {emptied} set to empty")
    return {'total': total, 'backfilled': backfilled}


@log_call
def migrate_projects_to_multi_venue() -> Dict[str, int]:
    """Copy legacy projects.venue_id into an empty venue_ids. Returns: {'projects_processed', 'backfilled'}"""
    counts = _backfill_venue_ids('projects')
    return {'projects_processed': counts['total'], 'backfilled': counts['backfilled']}


@log_call
def migrate_contacts_to_multi_venue() -> Dict[str, int]:
    """
    Copy legacy contacts.venue_id into an empty venue_ids; contacts with
    neither get an empty array. Returns: {'contacts_processed', 'backfilled'}
    """
    counts = _backfill_venue_ids('contacts')
    return {'contacts_processed': counts['total'], 'backfilled': counts['backfilled']}

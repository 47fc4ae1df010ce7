"""
CRM Engine - Relational Links
Many-to-many link maintenance for the five junction tables and the two
array-valued relations (venue <-> contact, project -> venue).

Both kinds expose the same interface:
    link(parent_id, child_id) -> link_id        idempotent
    unlink(parent_id, child_id)                 idempotent
    list_by_parent(parent_id) -> [child_id]
    list_by_child(child_id) -> [parent_id]
    get_all_links() -> [Link]

link/unlink each run in their own transaction. sync_links() issues one
call per changed id, so a failure part-way leaves the earlier calls applied.
"""

import logging
from typing import Dict, Iterable, List, Tuple

from studiocrm.db.connection import get_db_cursor
from studiocrm.engine.crm import NotFoundError
from studiocrm.models import Link
from studiocrm.bus.events import bus, EVENT_LINK_ADDED, EVENT_LINK_REMOVED

logger = logging.getLogger(__name__)


def _require(cur, table: str, row_id: int) -> None:
    cur.execute(f"SELECT id FROM {table} WHERE id = %s", (row_id,))
    if not cur.fetchone():
        raise NotFoundError(f"{table[:-1].capitalize()} {row_id} not found")


class JunctionTable:
    """A true link table with one row per (parent, child) pair."""

    def __init__(self, name: str, table: str, parent_col: str, child_col: str,
                 parent_table: str, child_table: str):
        self.name = name
        self.table = table
        self.parent_col = parent_col
        self.child_col = child_col
        self.parent_table = parent_table
        self.child_table = child_table

    def __repr__(self):
        return f"JunctionTable({self.table})"

    def link(self, parent_id: int, child_id: int) -> int:
        """Returns: id of the new link row, or of the existing one."""
        with get_db_cursor() as cur:
            _require(cur, self.parent_table, parent_id)
            _require(cur, self.child_table, child_id)
            # A concurrent link of the same pair lands on the unique constraint
            cur.execute(f"""
                INSERT INTO {self.table} ({self.parent_col}, {self.child_col})
                VALUES (%s, %s)
                ON CONFLICT ({self.parent_col}, {self.child_col}) DO NOTHING
                RETURNING id
            """, (parent_id, child_id))
            inserted = cur.fetchone()
            if not inserted:
                cur.execute(f"""
                    SELECT id FROM {self.table}
                    WHERE {self.parent_col} = %s AND {self.child_col} = %s
                """, (parent_id, child_id))
                logger.debug(f"{self.name}: {parent_id} -> {child_id} already linked")
                return cur.fetchone()['id']
            link_id = inserted['id']

        logger.info(f"Linked {self.name}: {parent_id} -> {child_id}")
        bus.emit(EVENT_LINK_ADDED, {'relation': self.name, 'parent_id': parent_id, 'child_id': child_id})
        return link_id

    def unlink(self, parent_id: int, child_id: int) -> None:
        with get_db_cursor() as cur:
            cur.execute(f"""
                DELETE FROM {self.table}
                WHERE {self.parent_col} = %s AND {self.child_col} = %s
            """, (parent_id, child_id))
            removed = cur.rowcount

        if removed:
            logger.info(f"Unlinked {self.name}: {parent_id} -> {child_id}")
            bus.emit(EVENT_LINK_REMOVED, {'relation': self.name, 'parent_id': parent_id, 'child_id': child_id})

    def list_by_parent(self, parent_id: int) -> List[int]:
        with get_db_cursor() as cur:
            cur.execute(f"""
                SELECT {self.child_col} AS child_id FROM {self.table}
                WHERE {self.parent_col} = %s
                ORDER BY id
            """, (parent_id,))
            return [row['child_id'] for row in cur.fetchall()]

    def list_by_child(self, child_id: int) -> List[int]:
        with get_db_cursor() as cur:
            cur.execute(f"""
                SELECT {self.parent_col} AS parent_id FROM {self.table}
                WHERE {self.child_col} = %s
                ORDER BY id
            """, (child_id,))
            return [row['parent_id'] for row in cur.fetchall()]

    def get_all_links(self) -> List[Link]:
        with get_db_cursor() as cur:
            cur.execute(f"""
                SELECT {self.parent_col} AS parent_id, {self.child_col} AS child_id
                FROM {self.table}
                ORDER BY id
            """)
            return [Link(row['parent_id'], row['child_id']) for row in cur.fetchall()]


class ArrayRelation:
    """
    Adapter giving an INTEGER[] column the junction-table interface.

    The parent's array is the source of truth. With mirror_column set, the
    child's array is kept in step in the same transaction (venue.contact_ids
    and contact.venue_ids). Link ids are the child ids.
    """

    def __init__(self, name: str, parent_table: str, column: str, child_table: str,
                 mirror_column: str = None):
        self.name = name
        self.parent_table = parent_table
        self.column = column
        self.child_table = child_table
        self.mirror_column = mirror_column

    def __repr__(self):
        return f"ArrayRelation({self.parent_table}.{self.column})"

    def _append(self, cur, table: str, column: str, row_id: int, value: int) -> int:
        cur.execute(f"""
            UPDATE {table}
            SET {column} = array_append(COALESCE({column}, '{{}}'), %s), updated_at = NOW()
            WHERE id = %s AND NOT (%s = ANY(COALESCE({column}, '{{}}')))
        """, (value, row_id, value))
        return cur.rowcount

    def _remove(self, cur, table: str, column: str, row_id: int, value: int) -> int:
        cur.execute(f"""
            UPDATE {table}
            SET {column} = array_remove({column}, %s), updated_at = NOW()
            WHERE id = %s AND %s = ANY({column})
        """, (value, row_id, value))
        return cur.rowcount

    def link(self, parent_id: int, child_id: int) -> int:
        with get_db_cursor() as cur:
            _require(cur, self.parent_table, parent_id)
            _require(cur, self.child_table, child_id)
            added = self._append(cur, self.parent_table, self.column, parent_id, child_id)
            if self.mirror_column:
                self._append(cur, self.child_table, self.mirror_column, child_id, parent_id)

        if added:
            logger.info(f"Linked {self.name}: {parent_id} -> {child_id}")
            bus.emit(EVENT_LINK_ADDED, {'relation': self.name, 'parent_id': parent_id, 'child_id': child_id})
        return child_id

    def unlink(self, parent_id: int, child_id: int) -> None:
        with get_db_cursor() as cur:
            removed = self._remove(cur, self.parent_table, self.column, parent_id, child_id)
            if self.mirror_column:
                self._remove(cur, self.child_table, self.mirror_column, child_id, parent_id)

        if removed:
            logger.info(f"Unlinked {self.name}: {parent_id} -> {child_id}")
            bus.emit(EVENT_LINK_REMOVED, {'relation': self.name, 'parent_id': parent_id, 'child_id': child_id})

    def list_by_parent(self, parent_id: int) -> List[int]:
        with get_db_cursor() as cur:
            cur.execute(f"SELECT {self.column} AS ids FROM {self.parent_table} WHERE id = %s", (parent_id,))
            row = cur.fetchone()
        return list(row['ids'] or []) if row else []

    def list_by_child(self, child_id: int) -> List[int]:
        with get_db_cursor() as cur:
            cur.execute(f"""
                SELECT id FROM {self.parent_table}
                WHERE %s = ANY({self.column})
                ORDER BY id
            """, (child_id,))
            return [row['id'] for row in cur.fetchall()]

    def get_all_links(self) -> List[Link]:
        with get_db_cursor() as cur:
            cur.execute(f"""
                SELECT id AS parent_id, unnest({self.column}) AS child_id
                FROM {self.parent_table}
                ORDER BY id
            """)
            return [Link(row['parent_id'], row['child_id']) for row in cur.fetchall()]


PROJECT_COLLABORATORS = JunctionTable(
    'project-collaborators', 'project_collaborators', 'project_id', 'collaborator_id',
    'projects', 'collaborators',
)
PROJECT_CONTACTS = JunctionTable(
    'project-contacts', 'project_contacts', 'project_id', 'contact_id',
    'projects', 'contacts',
)
TASK_VENUES = JunctionTable(
    'task-venues', 'task_venues', 'task_id', 'venue_id', 'tasks', 'venues',
)
TASK_PROJECTS = JunctionTable(
    'task-projects', 'task_projects', 'task_id', 'project_id', 'tasks', 'projects',
)
TASK_CONTACTS = JunctionTable(
    'task-contacts', 'task_contacts', 'task_id', 'contact_id', 'tasks', 'contacts',
)
VENUE_CONTACTS = ArrayRelation(
    'venue-contacts', 'venues', 'contact_ids', 'contacts', mirror_column='venue_ids',
)
PROJECT_VENUES = ArrayRelation(
    'project-venues', 'projects', 'venue_ids', 'venues',
)

RELATIONS: Dict[str, object] = {
    rel.name: rel for rel in (
        PROJECT_COLLABORATORS, PROJECT_CONTACTS, TASK_VENUES, TASK_PROJECTS,
        TASK_CONTACTS, VENUE_CONTACTS, PROJECT_VENUES,
    )
}


def diff_links(previous: Iterable[int], desired: Iterable[int]) -> Tuple[List[int], List[int]]:
    """Returns: (added, removed), each sorted. Ids in both sets appear in neither."""
    previous, desired = set(previous), set(desired)
    return sorted(desired - previous), sorted(previous - desired)


def sync_links(relation, parent_id: int, desired_ids: Iterable[int]) -> Tuple[List[int], List[int]]:
    """
    Make the children of parent_id exactly desired_ids.
    One link/unlink call per changed id, in id order. Not atomic as a whole.

    Returns: (added, removed)
    """
    previous = relation.list_by_parent(parent_id)
    added, removed = diff_links(previous, desired_ids)

    for child_id in added:
        relation.link(parent_id, child_id)
    for child_id in removed:
        relation.unlink(parent_id, child_id)

    logger.info(f"Synced {relation.name} for {parent_id}: +{added} -{removed}")
    return added, removed

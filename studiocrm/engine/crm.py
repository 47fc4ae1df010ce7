"""
CRM Engine - Entity Store
CRUD for venues, collaborators, contacts, projects, tasks and outreach,
plus the venue ordering subsystem and cascade deletes.

Every public mutation runs in exactly one transaction (one get_db_cursor
block), so its internal read-then-write sequence is atomic. Multi-step
workflows built on top (link sync, scouting) are not.
"""

import logging
from dataclasses import asdict, is_dataclass
from typing import List, Optional, Dict, Any, Iterable

from psycopg2.extras import Json

from studiocrm.db.connection import get_db_cursor
from studiocrm.logging_config import log_call
from studiocrm.models import (
    Venue, Collaborator, Contact, Project, Task, Outreach, Location,
    VENUE_STATUSES, VENUE_CATEGORIES, PERSON_TYPES, PROJECT_STATUSES,
    TASK_STATUSES, TASK_PRIORITIES, OUTREACH_METHODS, OUTREACH_DIRECTIONS,
    OUTREACH_STATUSES,
)
from studiocrm.bus.events import (
    bus,
    EVENT_VENUE_CREATED, EVENT_VENUE_UPDATED, EVENT_VENUE_DELETED, EVENT_VENUE_REORDERED,
    EVENT_COLLABORATOR_CREATED, EVENT_COLLABORATOR_UPDATED, EVENT_COLLABORATOR_DELETED,
    EVENT_CONTACT_CREATED, EVENT_CONTACT_UPDATED, EVENT_CONTACT_DELETED,
    EVENT_PROJECT_CREATED, EVENT_PROJECT_UPDATED, EVENT_PROJECT_DELETED,
    EVENT_TASK_CREATED, EVENT_TASK_UPDATED, EVENT_TASK_DELETED,
    EVENT_OUTREACH_LOGGED, EVENT_OUTREACH_UPDATED, EVENT_OUTREACH_DELETED,
)

logger = logging.getLogger(__name__)


class NotFoundError(ValueError):
    """An id passed to get/update/delete/link does not match any row."""


# Allowlists for dynamic INSERT/UPDATE queries — column names never come from user input directly.
# venues.order_num is deliberately absent: only create/reorder/delete touch it.
_VENUE_COLUMNS = {
    'name', 'url', 'submission_form_url', 'locations', 'contacts', 'contact_ids',
    'status', 'category', 'notes',
}
_COLLABORATOR_COLUMNS = {'name', 'url', 'email', 'phone', 'role', 'notes'}
_CONTACT_COLUMNS = {
    'name', 'email', 'phone', 'role', 'types', 'notes', 'venue_ids', 'venue_id',
    'collaborator_id',
}
# The venue<->contact id arrays mirror each other and change only through links.VENUE_CONTACTS
_VENUE_UPDATE_COLUMNS = _VENUE_COLUMNS - {'contact_ids'}
_CONTACT_UPDATE_COLUMNS = _CONTACT_COLUMNS - {'venue_ids'}
_PROJECT_COLUMNS = {
    'name', 'venue_ids', 'venue_id', 'start_date', 'end_date', 'description',
    'status', 'notes', 'budget', 'profit',
}
_TASK_COLUMNS = {
    'title', 'description', 'status', 'priority', 'due_date', 'completed_date', 'notes',
}
_OUTREACH_COLUMNS = {
    'contact_id', 'venue_id', 'project_id', 'method', 'direction', 'date',
    'subject', 'notes', 'status', 'follow_up_date',
}

# Enumerated columns, validated on every write
_ENUMS = {
    'venue': {'status': VENUE_STATUSES, 'category': VENUE_CATEGORIES},
    'contact': {'types': PERSON_TYPES},
    'project': {'status': PROJECT_STATUSES},
    'task': {'status': TASK_STATUSES, 'priority': TASK_PRIORITIES},
    'outreach': {
        'method': OUTREACH_METHODS,
        'direction': OUTREACH_DIRECTIONS,
        'status': OUTREACH_STATUSES,
    },
}

# entity -> (table, model, default ORDER BY)
_ENTITIES = {
    'venue': ('venues', Venue, 'order_num ASC'),
    'collaborator': ('collaborators', Collaborator, 'id ASC'),
    'contact': ('contacts', Contact, 'id ASC'),
    'project': ('projects', Project, 'id ASC'),
    'task': ('tasks', Task, 'id ASC'),
    'outreach': ('outreach', Outreach, 'date DESC, id DESC'),
}


# =============================================================================
# HELPERS
# =============================================================================

def _validate_columns(updates: Dict[str, Any], allowed: set, entity: str) -> None:
    """Raise ValueError if any key in updates is not an allowed column name."""
    invalid = set(updates.keys()) - allowed
    if invalid:
        raise ValueError(f"Invalid {entity} fields: {invalid}")


def _validate_enums(entity: str, values: Dict[str, Any]) -> None:
    """Raise ValueError if an enumerated column holds a value outside its set."""
    for field_name, allowed in _ENUMS.get(entity, {}).items():
        value = values.get(field_name)
        if value is None:
            continue
        candidates = value if isinstance(value, (list, tuple)) else [value]
        bad = [v for v in candidates if v not in allowed]
        if bad:
            raise ValueError(
                f"Invalid {entity} {field_name}: {bad}. Allowed: {', '.join(allowed)}"
            )


def _entity_values(obj, allowed: set) -> Dict[str, Any]:
    return {k: v for k, v in asdict(obj).items() if k in allowed}


def _jsonb(items: Iterable) -> Json:
    return Json([asdict(i) if is_dataclass(i) else dict(i) for i in (items or [])])


def _venue_db_values(values: Dict[str, Any]) -> Dict[str, Any]:
    """Wrap the JSONB venue columns for psycopg2."""
    out = dict(values)
    for key in ('locations', 'contacts'):
        if key in out:
            out[key] = _jsonb(out[key])
    return out


def _insert_row(cur, table: str, values: Dict[str, Any]) -> int:
    columns = list(values.keys())
    placeholders = ', '.join(f"%({c})s" for c in columns)
    cur.execute(f"""
        INSERT INTO {table} ({', '.join(columns)}, created_at, updated_at)
        VALUES ({placeholders}, NOW(), NOW())
        RETURNING id
    """, values)
    return cur.fetchone()['id']


def _get(entity: str, row_id: int):
    table, model, _ = _ENTITIES[entity]
    with get_db_cursor() as cur:
        cur.execute(f"SELECT * FROM {table} WHERE id = %s", (row_id,))
        row = cur.fetchone()
    if not row:
        logger.debug(f"get_{entity}: {entity}_id={row_id} not found")
        raise NotFoundError(f"{entity.capitalize()} {row_id} not found")
    return model(**row)


def _list(entity: str, where: str = '', params: tuple = (), limit: Optional[int] = None) -> list:
    table, model, order_by = _ENTITIES[entity]
    sql = f"SELECT * FROM {table}"
    if where:
        sql += f" WHERE {where}"
    sql += f" ORDER BY {order_by}"
    if limit is not None:
        sql += " LIMIT %s"
        params = tuple(params) + (limit,)
    with get_db_cursor() as cur:
        cur.execute(sql, params)
        rows = cur.fetchall()
    logger.debug(f"list {table}: {len(rows)} rows (where={where or '-'})")
    return [model(**row) for row in rows]


def _list_by_ids(entity: str, ids: Iterable[int]) -> list:
    ids = list(ids)
    if not ids:
        return []
    return _list(entity, "id = ANY(%s)", (ids,))


def _update(entity: str, row_id: int, updates: Dict[str, Any], allowed: set, event: str) -> None:
    """
    Patch the given columns of one row.
    Empty updates is a no-op; a missing row raises NotFoundError.
    """
    if not updates:
        return

    # Guard: only known columns may appear in the SET clause
    _validate_columns(updates, allowed, entity)
    _validate_enums(entity, updates)

    table = _ENTITIES[entity][0]
    params = _venue_db_values(updates) if entity == 'venue' else dict(updates)
    set_clause = ', '.join(f"{key} = %({key})s" for key in params.keys())
    params['row_id'] = row_id

    with get_db_cursor() as cur:
        cur.execute(f"""
            UPDATE {table}
            SET {set_clause}, updated_at = NOW()
            WHERE id = %(row_id)s
        """, params)
        if cur.rowcount == 0:
            raise NotFoundError(f"{entity.capitalize()} {row_id} not found")

    logger.info(f"Updated {entity} ID {row_id}: {sorted(updates.keys())}")
    bus.emit(event, {f'{entity}_id': row_id, 'updates': updates})


def _require_row(cur, table: str, entity: str, row_id: int) -> Dict[str, Any]:
    """Lock and return a row inside the current transaction, or raise NotFoundError."""
    cur.execute(f"SELECT * FROM {table} WHERE id = %s FOR UPDATE", (row_id,))
    row = cur.fetchone()
    if not row:
        raise NotFoundError(f"{entity.capitalize()} {row_id} not found")
    return row


# =============================================================================
# VENUE OPERATIONS
# =============================================================================

def _lock_venues(cur) -> None:
    # Self-conflicting lock: readers proceed, concurrent order_num writers queue up
    cur.execute("LOCK TABLE venues IN SHARE ROW EXCLUSIVE MODE")


def _next_order_num(cur) -> int:
    cur.execute("SELECT COALESCE(MAX(order_num), 0) + 1 AS next_order FROM venues")
    return cur.fetchone()['next_order']


def list_venues() -> List[Venue]:
    """All venues, ordered by rank."""
    return _list('venue')


def list_venues_by_ids(ids: Iterable[int]) -> List[Venue]:
    return _list_by_ids('venue', ids)


def get_venue(venue_id: int) -> Venue:
    return _get('venue', venue_id)


def create_venue(venue: Venue) -> int:
    """
    Create a venue at the end of the ranking (max order_num + 1).
    Returns: venue_id
    """
    values = _entity_values(venue, _VENUE_COLUMNS)
    _validate_enums('venue', values)

    with get_db_cursor() as cur:
        _lock_venues(cur)
        order_num = _next_order_num(cur)
        params = _venue_db_values(values)
        params['order_num'] = order_num
        venue_id = _insert_row(cur, 'venues', params)

    logger.info(f"Created venue ID {venue_id} at position {order_num}: {venue.name}")
    bus.emit(EVENT_VENUE_CREATED, {'venue_id': venue_id, 'venue': venue, 'order_num': order_num})
    return venue_id


def update_venue(venue_id: int, updates: Dict[str, Any]) -> None:
    _update('venue', venue_id, updates, _VENUE_UPDATE_COLUMNS, EVENT_VENUE_UPDATED)


def move_venue_to_column(venue_id: int, status: Optional[str] = None, category: Optional[str] = None) -> None:
    """Board drag-drop: change a venue's status column and/or category column."""
    updates = {}
    if status is not None:
        updates['status'] = status
    if category is not None:
        updates['category'] = category
    update_venue(venue_id, updates)


def delete_venue(venue_id: int) -> None:
    """
    Delete a venue, its task links, and close the gap it leaves in the ranking.
    contacts.venue_ids and projects.venue_ids are left untouched.
    """
    with get_db_cursor() as cur:
        _lock_venues(cur)
        row = _require_row(cur, 'venues', 'venue', venue_id)
        cur.execute("DELETE FROM task_venues WHERE venue_id = %s", (venue_id,))
        task_links = cur.rowcount
        cur.execute("DELETE FROM venues WHERE id = %s", (venue_id,))
        cur.execute("""
            UPDATE venues SET order_num = order_num - 1
            WHERE order_num > %s
        """, (row['order_num'],))

    logger.info(f"Deleted venue ID {venue_id} ({task_links} task links removed)")
    bus.emit(EVENT_VENUE_DELETED, {'venue_id': venue_id, 'order_num': row['order_num']})


def plan_reorder(positions: Dict[int, int], venue_id: int, new_order_num: int) -> Dict[int, int]:
    """
    Compute the order_num patches for moving one venue to a new rank.

    Args:
        positions: venue_id -> current order_num for every venue
        venue_id: venue being moved
        new_order_num: target rank

    Returns: venue_id -> new order_num, only for venues that change.
    Venues strictly between the old and new rank shift one slot towards
    the old rank; all others keep their number.
    """
    if venue_id not in positions:
        raise NotFoundError(f"Venue {venue_id} not found")

    old_order_num = positions[venue_id]
    if old_order_num == new_order_num:
        return {}

    patches = {}
    for vid, order_num in positions.items():
        if vid == venue_id:
            patches[vid] = new_order_num
        elif old_order_num < new_order_num and old_order_num < order_num <= new_order_num:
            patches[vid] = order_num - 1
        elif old_order_num > new_order_num and new_order_num <= order_num < old_order_num:
            patches[vid] = order_num + 1
    return patches


@log_call
def reorder_venue(venue_id: int, new_order_num: int) -> int:
    """
    Move a venue to rank new_order_num, shifting the venues in between.
    Runs in one transaction under the venues table lock.
    Returns: number of venues whose order_num changed (0 for a no-op).
    """
    with get_db_cursor() as cur:
        _lock_venues(cur)
        cur.execute("SELECT id, order_num FROM venues")
        positions = {row['id']: row['order_num'] for row in cur.fetchall()}

        if venue_id not in positions:
            raise NotFoundError(f"Venue {venue_id} not found")
        old_order_num = positions[venue_id]
        if old_order_num == new_order_num:
            logger.debug(f"reorder_venue: venue {venue_id} already at {new_order_num}")
            return 0
        if not 1 <= new_order_num <= len(positions):
            raise ValueError(f"Position {new_order_num} out of range 1..{len(positions)}")

        patches = plan_reorder(positions, venue_id, new_order_num)
        cur.executemany(
            "UPDATE venues SET order_num = %s, updated_at = NOW() WHERE id = %s",
            [(order_num, vid) for vid, order_num in patches.items()],
        )

    logger.info(f"Reordered venue {venue_id}: {old_order_num} -> {new_order_num} ({len(patches) - 1} shifted)")
    bus.emit(EVENT_VENUE_REORDERED, {
        'venue_id': venue_id, 'old_order_num': old_order_num, 'new_order_num': new_order_num,
    })
    return len(patches)


def insert_venue_if_new(
    name: str,
    url: Optional[str] = None,
    submission_form_url: Optional[str] = None,
    city: Optional[str] = None,
    state: Optional[str] = None,
    country: str = 'US',
    notes: Optional[str] = None,
) -> Optional[int]:
    """
    Insert a scouted venue unless one with exactly this name exists.
    New venues land at the end of the ranking as To Contact / For Review.

    Returns: venue_id if inserted, None if a venue with the name exists
    """
    location = Location(city=city, state=state, country=country)
    with get_db_cursor() as cur:
        _lock_venues(cur)
        cur.execute("SELECT id FROM venues WHERE name = %s LIMIT 1", (name,))
        existing = cur.fetchone()
        if existing:
            logger.debug(f"Skipping duplicate venue: {name} (ID: {existing['id']})")
            return None

        order_num = _next_order_num(cur)
        venue_id = _insert_row(cur, 'venues', {
            'order_num': order_num,
            'name': name,
            'url': url,
            'submission_form_url': submission_form_url,
            'locations': _jsonb([location]),
            'contacts': _jsonb([]),
            'contact_ids': [],
            'status': 'To Contact',
            'category': 'For Review',
            'notes': notes,
        })

    logger.info(f"Inserted venue ID {venue_id} at position {order_num}: {name}")
    bus.emit(EVENT_VENUE_CREATED, {'venue_id': venue_id, 'order_num': order_num, 'source': 'scout'})
    return venue_id


def seed_venues(venues: List[Venue]) -> Dict[str, int]:
    """
    Bulk-insert venues whose exact name is not in the database yet,
    appended in the given order after the current last rank.
    Returns: {'inserted': n, 'skipped': m}
    """
    for venue in venues:
        _validate_enums('venue', {'status': venue.status, 'category': venue.category})

    inserted = 0
    with get_db_cursor() as cur:
        _lock_venues(cur)
        cur.execute("SELECT name FROM venues")
        existing_names = {row['name'] for row in cur.fetchall()}
        next_order = _next_order_num(cur)

        for venue in venues:
            if venue.name in existing_names:
                continue
            params = _venue_db_values(_entity_values(venue, _VENUE_COLUMNS))
            params['order_num'] = next_order + inserted
            _insert_row(cur, 'venues', params)
            existing_names.add(venue.name)
            inserted += 1

    skipped = len(venues) - inserted
    logger.info(f"Seeded venues: {inserted} inserted, {skipped} skipped")
    return {'inserted': inserted, 'skipped': skipped}


# =============================================================================
# COLLABORATOR OPERATIONS
# =============================================================================

def list_collaborators() -> List[Collaborator]:
    return _list('collaborator')


def list_collaborators_by_ids(ids: Iterable[int]) -> List[Collaborator]:
    return _list_by_ids('collaborator', ids)


def get_collaborator(collaborator_id: int) -> Collaborator:
    return _get('collaborator', collaborator_id)


def create_collaborator(collaborator: Collaborator) -> int:
    """Create a collaborator. Returns: collaborator_id"""
    with get_db_cursor() as cur:
        collaborator_id = _insert_row(
            cur, 'collaborators', _entity_values(collaborator, _COLLABORATOR_COLUMNS)
        )

    logger.info(f"Created collaborator ID {collaborator_id}: {collaborator.name}")
    bus.emit(EVENT_COLLABORATOR_CREATED, {'collaborator_id': collaborator_id, 'collaborator': collaborator})
    return collaborator_id


def update_collaborator(collaborator_id: int, updates: Dict[str, Any]) -> None:
    _update('collaborator', collaborator_id, updates, _COLLABORATOR_COLUMNS, EVENT_COLLABORATOR_UPDATED)


def delete_collaborator(collaborator_id: int) -> None:
    """Delete a collaborator, its project links, and detach contacts pointing at it."""
    with get_db_cursor() as cur:
        _require_row(cur, 'collaborators', 'collaborator', collaborator_id)
        cur.execute("DELETE FROM project_collaborators WHERE collaborator_id = %s", (collaborator_id,))
        links_removed = cur.rowcount
        cur.execute("""
            UPDATE contacts SET collaborator_id = NULL, updated_at = NOW()
            WHERE collaborator_id = %s
        """, (collaborator_id,))
        contacts_detached = cur.rowcount
        cur.execute("DELETE FROM collaborators WHERE id = %s", (collaborator_id,))

    logger.info(
        f"Deleted collaborator ID {collaborator_id} "
        f"({links_removed} project links removed, {contacts_detached} contacts detached)"
    )
    bus.emit(EVENT_COLLABORATOR_DELETED, {'collaborator_id': collaborator_id})


# =============================================================================
# CONTACT OPERATIONS
# =============================================================================

def list_contacts() -> List[Contact]:
    return _list('contact')


def list_contacts_by_ids(ids: Iterable[int]) -> List[Contact]:
    return _list_by_ids('contact', ids)


def list_contacts_by_venue(venue_id: int) -> List[Contact]:
    return _list('contact', "%s = ANY(venue_ids)", (venue_id,))


def list_contacts_by_collaborator(collaborator_id: int) -> List[Contact]:
    return _list('contact', "collaborator_id = %s", (collaborator_id,))


def get_contact(contact_id: int) -> Contact:
    return _get('contact', contact_id)


def create_contact(contact: Contact) -> int:
    """Create a contact (person). Returns: contact_id"""
    values = _entity_values(contact, _CONTACT_COLUMNS)
    _validate_enums('contact', values)

    with get_db_cursor() as cur:
        contact_id = _insert_row(cur, 'contacts', values)

    logger.info(f"Created contact ID {contact_id}: {contact.name}")
    bus.emit(EVENT_CONTACT_CREATED, {'contact_id': contact_id, 'contact': contact})
    return contact_id


def update_contact(contact_id: int, updates: Dict[str, Any]) -> None:
    _update('contact', contact_id, updates, _CONTACT_UPDATE_COLUMNS, EVENT_CONTACT_UPDATED)


def delete_contact(contact_id: int) -> None:
    """Delete a contact, scrubbing it from venue contact lists and its project/task links."""
    with get_db_cursor() as cur:
        _require_row(cur, 'contacts', 'contact', contact_id)
        cur.execute("""
            UPDATE venues SET contact_ids = array_remove(contact_ids, %s), updated_at = NOW()
            WHERE %s = ANY(contact_ids)
        """, (contact_id, contact_id))
        venues_scrubbed = cur.rowcount
        cur.execute("DELETE FROM project_contacts WHERE contact_id = %s", (contact_id,))
        cur.execute("DELETE FROM task_contacts WHERE contact_id = %s", (contact_id,))
        cur.execute("DELETE FROM contacts WHERE id = %s", (contact_id,))

    logger.info(f"Deleted contact ID {contact_id} (scrubbed from {venues_scrubbed} venues)")
    bus.emit(EVENT_CONTACT_DELETED, {'contact_id': contact_id})


# =============================================================================
# PROJECT OPERATIONS
# =============================================================================

def list_projects() -> List[Project]:
    return _list('project')


def list_projects_by_ids(ids: Iterable[int]) -> List[Project]:
    return _list_by_ids('project', ids)


def list_projects_by_venue(venue_id: int) -> List[Project]:
    return _list('project', "%s = ANY(venue_ids)", (venue_id,))


def get_project(project_id: int) -> Project:
    return _get('project', project_id)


def create_project(project: Project) -> int:
    """Create a project. Returns: project_id"""
    values = _entity_values(project, _PROJECT_COLUMNS)
    _validate_enums('project', values)

    with get_db_cursor() as cur:
        project_id = _insert_row(cur, 'projects', values)

    logger.info(f"Created project ID {project_id}: {project.name}")
    bus.emit(EVENT_PROJECT_CREATED, {'project_id': project_id, 'project': project})
    return project_id


def update_project(project_id: int, updates: Dict[str, Any]) -> None:
    _update('project', project_id, updates, _PROJECT_COLUMNS, EVENT_PROJECT_UPDATED)


def delete_project(project_id: int) -> None:
    """Delete a project and every junction row that references it."""
    with get_db_cursor() as cur:
        _require_row(cur, 'projects', 'project', project_id)
        for table in ('project_collaborators', 'project_contacts', 'task_projects'):
            cur.execute(f"DELETE FROM {table} WHERE project_id = %s", (project_id,))
        cur.execute("DELETE FROM projects WHERE id = %s", (project_id,))

    logger.info(f"Deleted project ID {project_id}")
    bus.emit(EVENT_PROJECT_DELETED, {'project_id': project_id})


# =============================================================================
# TASK OPERATIONS
# =============================================================================

def list_tasks() -> List[Task]:
    return _list('task')


def list_tasks_by_ids(ids: Iterable[int]) -> List[Task]:
    return _list_by_ids('task', ids)


def list_tasks_by_status(status: str) -> List[Task]:
    _validate_enums('task', {'status': status})
    return _list('task', "status = %s", (status,))


def get_task(task_id: int) -> Task:
    return _get('task', task_id)


def create_task(task: Task) -> int:
    """Create a task. Returns: task_id"""
    values = _entity_values(task, _TASK_COLUMNS)
    _validate_enums('task', values)

    with get_db_cursor() as cur:
        task_id = _insert_row(cur, 'tasks', values)

    logger.info(f"Created task ID {task_id}: {task.title}")
    bus.emit(EVENT_TASK_CREATED, {'task_id': task_id, 'task': task})
    return task_id


def update_task(task_id: int, updates: Dict[str, Any]) -> None:
    _update('task', task_id, updates, _TASK_COLUMNS, EVENT_TASK_UPDATED)


def delete_task(task_id: int) -> None:
    """Delete a task and its venue, project and contact links."""
    with get_db_cursor() as cur:
        _require_row(cur, 'tasks', 'task', task_id)
        for table in ('task_venues', 'task_projects', 'task_contacts'):
            cur.execute(f"DELETE FROM {table} WHERE task_id = %s", (task_id,))
        cur.execute("DELETE FROM tasks WHERE id = %s", (task_id,))

    logger.info(f"Deleted task ID {task_id}")
    bus.emit(EVENT_TASK_DELETED, {'task_id': task_id})


# =============================================================================
# OUTREACH OPERATIONS
# =============================================================================

def list_outreach() -> List[Outreach]:
    """All outreach, newest date first."""
    return _list('outreach')


def list_outreach_by_venue(venue_id: int) -> List[Outreach]:
    return _list('outreach', "venue_id = %s", (venue_id,))


def list_outreach_by_contact(contact_id: int) -> List[Outreach]:
    return _list('outreach', "contact_id = %s", (contact_id,))


def list_outreach_by_project(project_id: int) -> List[Outreach]:
    return _list('outreach', "project_id = %s", (project_id,))


def get_outreach(outreach_id: int) -> Outreach:
    return _get('outreach', outreach_id)


def log_outreach(entry: Outreach) -> int:
    """Record a piece of correspondence. Returns: outreach_id"""
    values = _entity_values(entry, _OUTREACH_COLUMNS)
    _validate_enums('outreach', values)

    with get_db_cursor() as cur:
        outreach_id = _insert_row(cur, 'outreach', values)

    logger.info(f"Logged outreach ID {outreach_id}: {entry.subject}")
    bus.emit(EVENT_OUTREACH_LOGGED, {'outreach_id': outreach_id, 'outreach': entry})
    return outreach_id


def update_outreach(outreach_id: int, updates: Dict[str, Any]) -> None:
    _update('outreach', outreach_id, updates, _OUTREACH_COLUMNS, EVENT_OUTREACH_UPDATED)


def delete_outreach(outreach_id: int) -> None:
    with get_db_cursor() as cur:
        cur.execute("DELETE FROM outreach WHERE id = %s", (outreach_id,))
        if cur.rowcount == 0:
            raise NotFoundError(f"Outreach {outreach_id} not found")

    logger.info(f"Deleted outreach ID {outreach_id}")
    bus.emit(EVENT_OUTREACH_DELETED, {'outreach_id': outreach_id})


# =============================================================================
# GLOBAL SEARCH
# =============================================================================

# kind -> (table, title column, searched columns, context SQL)
_SEARCH_TARGETS = {
    'venue': ('venues', 'name', ('name', 'notes'), "status || ' · ' || category"),
    'project': ('projects', 'name', ('name', 'description'), "status"),
    'contact': ('contacts', 'name', ('name', 'email', 'role'), "COALESCE(email, role, '')"),
    'task': ('tasks', 'title', ('title', 'description'), "status || ' · ' || priority"),
    'outreach': ('outreach', 'subject', ('subject', 'notes'), "date || ' · ' || status"),
}


def global_search(text: str, limit_per_type: int = 5) -> Dict[str, List[Dict[str, Any]]]:
    """
    Case-insensitive substring search across all entity types.
    Returns: {kind: [{'id', 'title', 'context'}, ...]}; empty for queries under 2 chars.
    """
    text = (text or '').strip()
    if len(text) < 2:
        return {}

    # ILIKE wildcards in the query match literally
    escaped = text.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
    pattern = f"%{escaped}%"
    results = {}
    with get_db_cursor() as cur:
        for kind, (table, title_col, columns, context_sql) in _SEARCH_TARGETS.items():
            where = ' OR '.join(f"{col} ILIKE %(pattern)s" for col in columns)
            cur.execute(f"""
                SELECT id, {title_col} AS title, {context_sql} AS context
                FROM {table}
                WHERE {where}
                ORDER BY id DESC
                LIMIT %(limit)s
            """, {'pattern': pattern, 'limit': limit_per_type})
            rows = cur.fetchall()
            if rows:
                results[kind] = [dict(row) for row in rows]

    logger.debug(f"global_search: {text!r} -> {sum(len(v) for v in results.values())} hits")
    return results

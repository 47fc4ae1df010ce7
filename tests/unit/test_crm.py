"""
Unit tests for the CRM Engine (studiocrm/engine/crm.py).

Strategy: patch studiocrm.engine.crm.get_db_cursor with a contextmanager that yields
a MagicMock cursor. Rows returned by the cursor are plain dicts, which unpack
cleanly into the model dataclasses. Bus events are verified by patching
studiocrm.engine.crm.bus.emit.
"""

import random
import pytest
from contextlib import contextmanager
from unittest.mock import MagicMock, patch

from psycopg2.extras import Json

from studiocrm.models import Venue, Location, Collaborator, Contact, Task, Outreach
from studiocrm.engine.crm import (
    NotFoundError,
    _validate_columns,
    _validate_enums,
    _VENUE_COLUMNS,
    _TASK_COLUMNS,
    list_venues,
    list_venues_by_ids,
    get_venue,
    create_venue,
    update_venue,
    move_venue_to_column,
    delete_venue,
    plan_reorder,
    reorder_venue,
    insert_venue_if_new,
    seed_venues,
    create_collaborator,
    delete_collaborator,
    list_contacts_by_venue,
    create_contact,
    update_contact,
    delete_contact,
    delete_project,
    list_tasks_by_status,
    create_task,
    update_task,
    delete_task,
    log_outreach,
    delete_outreach,
    global_search,
)
from studiocrm.bus.events import (
    EVENT_VENUE_CREATED, EVENT_VENUE_UPDATED, EVENT_VENUE_DELETED, EVENT_VENUE_REORDERED,
    EVENT_COLLABORATOR_CREATED, EVENT_CONTACT_UPDATED, EVENT_TASK_CREATED,
    EVENT_OUTREACH_LOGGED, EVENT_OUTREACH_DELETED,
)


# ---------------------------------------------------------------------------
# Fixtures and helpers
# ---------------------------------------------------------------------------

# A complete venue row as returned by RealDictCursor
VENUE_ROW = {
    'id': 5, 'order_num': 3, 'name': 'Lumen Gallery',
    'url': 'https://lumen.example', 'submission_form_url': None,
    'locations': [{'city': 'Portland', 'state': 'OR', 'country': 'US', 'phone_number': None}],
    'contacts': [], 'contact_ids': [11],
    'status': 'To Contact', 'category': 'Accessible', 'notes': None,
    'created_at': None, 'updated_at': None,
}


def make_cursor(fetchone=None, fetchall=None, rowcount=1):
    """Build a MagicMock cursor with preset return values."""
    cur = MagicMock()
    cur.fetchone.return_value = fetchone
    cur.fetchall.return_value = fetchall if fetchall is not None else []
    cur.rowcount = rowcount
    return cur


def cursor_patch(cur):
    """Return a patch context manager that replaces get_db_cursor with one yielding cur."""
    @contextmanager
    def _mock_ctx():
        yield cur

    return patch('studiocrm.engine.crm.get_db_cursor', _mock_ctx)


def executed_sql(cur):
    return [c[0][0] for c in cur.execute.call_args_list]


def positions_rows(positions):
    return [{'id': vid, 'order_num': n} for vid, n in positions.items()]


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def test_validate_columns_valid_passes():
    _validate_columns({'name': 'X', 'notes': 'Y'}, _VENUE_COLUMNS, 'venue')


def test_validate_columns_invalid_raises():
    with pytest.raises(ValueError, match='venue'):
        _validate_columns({'name': 'X', 'injected_col': 'bad'}, _VENUE_COLUMNS, 'venue')


def test_validate_columns_rejects_order_num():
    with pytest.raises(ValueError):
        _validate_columns({'order_num': 1}, _VENUE_COLUMNS, 'venue')


def test_validate_columns_task_invalid_raises():
    with pytest.raises(ValueError, match='task'):
        _validate_columns({'status': 'To Do', 'DROP TABLE': 'x'}, _TASK_COLUMNS, 'task')


def test_validate_enums_rejects_unknown_status():
    with pytest.raises(ValueError, match='status'):
        _validate_enums('venue', {'status': 'Maybe'})


def test_validate_enums_checks_each_list_member():
    _validate_enums('contact', {'types': ['Artist', 'Patron']})
    with pytest.raises(ValueError, match='Wizard'):
        _validate_enums('contact', {'types': ['Artist', 'Wizard']})


def test_validate_enums_ignores_none():
    _validate_enums('task', {'status': None, 'priority': None})


# ---------------------------------------------------------------------------
# Venue reads
# ---------------------------------------------------------------------------

def test_list_venues_orders_by_rank():
    cur = make_cursor(fetchall=[VENUE_ROW])
    with cursor_patch(cur):
        venues = list_venues()
    assert 'ORDER BY order_num ASC' in cur.execute.call_args[0][0]
    assert len(venues) == 1
    assert isinstance(venues[0].locations[0], Location)


def test_list_venues_by_ids_empty_skips_query():
    cur = make_cursor()
    with cursor_patch(cur):
        assert list_venues_by_ids([]) == []
    cur.execute.assert_not_called()


def test_list_venues_by_ids_uses_any():
    cur = make_cursor(fetchall=[VENUE_ROW])
    with cursor_patch(cur):
        list_venues_by_ids([5, 6])
    sql, params = cur.execute.call_args[0]
    assert 'id = ANY(%s)' in sql
    assert params == ([5, 6],)


def test_get_venue_found_returns_venue():
    cur = make_cursor(fetchone=VENUE_ROW)
    with cursor_patch(cur):
        venue = get_venue(5)
    assert isinstance(venue, Venue)
    assert venue.name == 'Lumen Gallery'
    assert venue.locations[0].city == 'Portland'


def test_get_venue_missing_raises_not_found():
    cur = make_cursor(fetchone=None)
    with cursor_patch(cur):
        with pytest.raises(NotFoundError, match='Venue 99 not found'):
            get_venue(99)


def test_not_found_error_is_a_value_error():
    assert issubclass(NotFoundError, ValueError)


# ---------------------------------------------------------------------------
# create_venue
# ---------------------------------------------------------------------------

def test_create_venue_appends_after_last_rank():
    cur = make_cursor()
    cur.fetchone.side_effect = [{'next_order': 8}, {'id': 42}]
    with cursor_patch(cur):
        venue_id = create_venue(Venue(name='Lumen', locations=[Location(city='Austin')]))
    assert venue_id == 42

    sqls = executed_sql(cur)
    assert sqls[0].startswith('LOCK TABLE venues')
    assert 'MAX(order_num)' in sqls[1]
    assert 'INSERT INTO venues' in sqls[2]
    params = cur.execute.call_args_list[2][0][1]
    assert params['order_num'] == 8
    assert isinstance(params['locations'], Json)


def test_create_venue_emits_event():
    venue = Venue(name='Lumen')
    cur = make_cursor()
    cur.fetchone.side_effect = [{'next_order': 1}, {'id': 7}]
    with cursor_patch(cur), patch('studiocrm.engine.crm.bus.emit') as mock_emit:
        create_venue(venue)
    mock_emit.assert_called_once_with(
        EVENT_VENUE_CREATED, {'venue_id': 7, 'venue': venue, 'order_num': 1}
    )


def test_create_venue_invalid_category_raises_before_db():
    cur = make_cursor()
    with cursor_patch(cur):
        with pytest.raises(ValueError, match='category'):
            create_venue(Venue(name='Lumen', category='Someday'))
    cur.execute.assert_not_called()


# ---------------------------------------------------------------------------
# update_venue / move_venue_to_column
# ---------------------------------------------------------------------------

def test_update_venue_builds_set_clause():
    cur = make_cursor()
    with cursor_patch(cur):
        update_venue(5, {'notes': 'Call in spring'})
    sql, params = cur.execute.call_args[0]
    assert 'UPDATE venues' in sql
    assert 'notes = %(notes)s' in sql
    assert params['row_id'] == 5


def test_update_venue_empty_is_noop():
    cur = make_cursor()
    with cursor_patch(cur), patch('studiocrm.engine.crm.bus.emit') as mock_emit:
        update_venue(5, {})
    cur.execute.assert_not_called()
    mock_emit.assert_not_called()


def test_update_venue_order_num_rejected():
    cur = make_cursor()
    with cursor_patch(cur):
        with pytest.raises(ValueError):
            update_venue(5, {'order_num': 1})
    cur.execute.assert_not_called()


def test_update_venue_contact_ids_rejected():
    cur = make_cursor()
    with cursor_patch(cur):
        with pytest.raises(ValueError, match='contact_ids'):
            update_venue(5, {'contact_ids': [11, 12]})
    cur.execute.assert_not_called()


def test_update_contact_venue_ids_rejected():
    cur = make_cursor()
    with cursor_patch(cur):
        with pytest.raises(ValueError, match='venue_ids'):
            update_contact(11, {'venue_ids': [5]})
    cur.execute.assert_not_called()


def test_update_venue_missing_row_raises_not_found():
    cur = make_cursor(rowcount=0)
    with cursor_patch(cur), patch('studiocrm.engine.crm.bus.emit') as mock_emit:
        with pytest.raises(NotFoundError):
            update_venue(99, {'notes': 'x'})
    mock_emit.assert_not_called()


def test_update_venue_wraps_locations_as_json():
    cur = make_cursor()
    with cursor_patch(cur):
        update_venue(5, {'locations': [Location(city='Austin')]})
    params = cur.execute.call_args[0][1]
    assert isinstance(params['locations'], Json)


def test_update_venue_emits_event():
    cur = make_cursor()
    with cursor_patch(cur), patch('studiocrm.engine.crm.bus.emit') as mock_emit:
        update_venue(5, {'notes': 'x'})
    mock_emit.assert_called_once_with(EVENT_VENUE_UPDATED, {'venue_id': 5, 'updates': {'notes': 'x'}})


def test_move_venue_to_column_sets_status_only():
    cur = make_cursor()
    with cursor_patch(cur), patch('studiocrm.engine.crm.bus.emit') as mock_emit:
        move_venue_to_column(5, status='Contacted')
    assert mock_emit.call_args[0][1]['updates'] == {'status': 'Contacted'}


def test_move_venue_to_column_nothing_given_is_noop():
    cur = make_cursor()
    with cursor_patch(cur):
        move_venue_to_column(5)
    cur.execute.assert_not_called()


# ---------------------------------------------------------------------------
# delete_venue
# ---------------------------------------------------------------------------

def test_delete_venue_closes_rank_gap():
    cur = make_cursor(fetchone=VENUE_ROW)
    with cursor_patch(cur):
        delete_venue(5)
    sqls = executed_sql(cur)
    assert sqls[0].startswith('LOCK TABLE venues')
    assert any('DELETE FROM task_venues' in s for s in sqls)
    assert any('DELETE FROM venues' in s for s in sqls)
    shift = cur.execute.call_args_list[-1][0]
    assert 'order_num = order_num - 1' in shift[0]
    assert shift[1] == (3,)


def test_delete_venue_leaves_contact_and_project_arrays():
    cur = make_cursor(fetchone=VENUE_ROW)
    with cursor_patch(cur):
        delete_venue(5)
    sqls = ' '.join(executed_sql(cur))
    assert 'contacts' not in sqls
    assert 'projects' not in sqls


def test_delete_venue_missing_raises_not_found():
    cur = make_cursor(fetchone=None)
    with cursor_patch(cur), patch('studiocrm.engine.crm.bus.emit') as mock_emit:
        with pytest.raises(NotFoundError):
            delete_venue(99)
    assert not any('DELETE' in s for s in executed_sql(cur))
    mock_emit.assert_not_called()


def test_delete_venue_emits_event():
    cur = make_cursor(fetchone=VENUE_ROW)
    with cursor_patch(cur), patch('studiocrm.engine.crm.bus.emit') as mock_emit:
        delete_venue(5)
    mock_emit.assert_called_once_with(EVENT_VENUE_DELETED, {'venue_id': 5, 'order_num': 3})


# ---------------------------------------------------------------------------
# plan_reorder - pure function
# ---------------------------------------------------------------------------

def _apply(positions, patches):
    result = dict(positions)
    result.update(patches)
    return result


def test_plan_reorder_move_up():
    positions = {1: 1, 2: 2, 3: 3, 4: 4, 5: 5}
    patches = plan_reorder(positions, 5, 2)
    assert patches == {5: 2, 2: 3, 3: 4, 4: 5}
    assert _apply(positions, patches) == {1: 1, 2: 3, 3: 4, 4: 5, 5: 2}


def test_plan_reorder_move_down():
    positions = {1: 1, 2: 2, 3: 3, 4: 4, 5: 5}
    patches = plan_reorder(positions, 1, 4)
    assert patches == {1: 4, 2: 1, 3: 2, 4: 3}


def test_plan_reorder_same_position_is_empty():
    assert plan_reorder({1: 1, 2: 2}, 2, 2) == {}


def test_plan_reorder_unknown_venue_raises():
    with pytest.raises(NotFoundError):
        plan_reorder({1: 1}, 9, 1)


def test_plan_reorder_keeps_permutation_for_every_move():
    rng = random.Random(7)
    ids = list(range(100, 108))
    rng.shuffle(ids)
    positions = {vid: i + 1 for i, vid in enumerate(ids)}

    for venue_id in positions:
        for target in range(1, len(positions) + 1):
            after = _apply(positions, plan_reorder(positions, venue_id, target))
            assert sorted(after.values()) == list(range(1, len(positions) + 1))
            assert after[venue_id] == target
            # relative order of everyone else is preserved
            others_before = sorted((n, v) for v, n in positions.items() if v != venue_id)
            others_after = sorted((n, v) for v, n in after.items() if v != venue_id)
            assert [v for _, v in others_before] == [v for _, v in others_after]


def test_plan_reorder_only_touches_range():
    positions = {vid: vid for vid in range(1, 11)}
    patches = plan_reorder(positions, 3, 6)
    assert set(patches) == {3, 4, 5, 6}


# ---------------------------------------------------------------------------
# reorder_venue
# ---------------------------------------------------------------------------

def test_reorder_venue_writes_patches():
    positions = {10: 1, 11: 2, 12: 3, 13: 4}
    cur = make_cursor(fetchall=positions_rows(positions))
    with cursor_patch(cur):
        changed = reorder_venue(13, 1)
    assert changed == 4
    sqls = executed_sql(cur)
    assert sqls[0].startswith('LOCK TABLE venues')
    sql, rows = cur.executemany.call_args[0]
    assert 'UPDATE venues SET order_num' in sql
    assert sorted(rows) == [(1, 13), (2, 10), (3, 11), (4, 12)]


def test_reorder_venue_same_position_is_noop():
    cur = make_cursor(fetchall=positions_rows({10: 1, 11: 2}))
    with cursor_patch(cur), patch('studiocrm.engine.crm.bus.emit') as mock_emit:
        assert reorder_venue(11, 2) == 0
    cur.executemany.assert_not_called()
    mock_emit.assert_not_called()


def test_reorder_venue_missing_raises_not_found():
    cur = make_cursor(fetchall=positions_rows({10: 1}))
    with cursor_patch(cur):
        with pytest.raises(NotFoundError):
            reorder_venue(99, 1)
    cur.executemany.assert_not_called()


@pytest.mark.parametrize('target', [0, 4, -1])
def test_reorder_venue_out_of_range_raises(target):
    cur = make_cursor(fetchall=positions_rows({10: 1, 11: 2, 12: 3}))
    with cursor_patch(cur):
        with pytest.raises(ValueError, match='out of range'):
            reorder_venue(10, target)
    cur.executemany.assert_not_called()


def test_reorder_venue_emits_event():
    cur = make_cursor(fetchall=positions_rows({10: 1, 11: 2, 12: 3}))
    with cursor_patch(cur), patch('studiocrm.engine.crm.bus.emit') as mock_emit:
        reorder_venue(10, 3)
    mock_emit.assert_called_once_with(
        EVENT_VENUE_REORDERED, {'venue_id': 10, 'old_order_num': 1, 'new_order_num': 3}
    )


# ---------------------------------------------------------------------------
# insert_venue_if_new / seed_venues
# ---------------------------------------------------------------------------

def test_insert_venue_if_new_existing_name_returns_none():
    cur = make_cursor(fetchone={'id': 3})
    with cursor_patch(cur), patch('studiocrm.engine.crm.bus.emit') as mock_emit:
        assert insert_venue_if_new('Lumen Gallery') is None
    assert not any('INSERT' in s for s in executed_sql(cur))
    mock_emit.assert_not_called()


def test_insert_venue_if_new_inserts_for_review():
    cur = make_cursor()
    cur.fetchone.side_effect = [None, {'next_order': 12}, {'id': 40}]
    with cursor_patch(cur):
        venue_id = insert_venue_if_new('Night Lights Festival', url='https://nlf.example', city='Austin', state='TX')
    assert venue_id == 40
    params = cur.execute.call_args_list[-1][0][1]
    assert params['order_num'] == 12
    assert params['status'] == 'To Contact'
    assert params['category'] == 'For Review'
    assert params['locations'].adapted == [
        {'city': 'Austin', 'state': 'TX', 'country': 'US', 'phone_number': None}
    ]


def test_seed_venues_skips_existing_names():
    cur = make_cursor(fetchall=[{'name': 'Lumen Gallery'}])
    cur.fetchone.side_effect = [{'next_order': 4}, {'id': 20}, {'id': 21}]
    venues = [Venue(name='Lumen Gallery'), Venue(name='Glow Park'), Venue(name='Arc Hall'), Venue(name='Glow Park')]
    with cursor_patch(cur):
        result = seed_venues(venues)
    assert result == {'inserted': 2, 'skipped': 2}
    inserts = [c[0][1] for c in cur.execute.call_args_list if 'INSERT INTO venues' in c[0][0]]
    assert [p['order_num'] for p in inserts] == [4, 5]
    assert [p['name'] for p in inserts] == ['Glow Park', 'Arc Hall']


# ---------------------------------------------------------------------------
# Collaborators / contacts
# ---------------------------------------------------------------------------

def test_create_collaborator_emits_event():
    collaborator = Collaborator(name='Sam Welder', role='Fabricator')
    cur = make_cursor(fetchone={'id': 3})
    with cursor_patch(cur), patch('studiocrm.engine.crm.bus.emit') as mock_emit:
        assert create_collaborator(collaborator) == 3
    mock_emit.assert_called_once_with(
        EVENT_COLLABORATOR_CREATED, {'collaborator_id': 3, 'collaborator': collaborator}
    )


def test_delete_collaborator_detaches_contacts():
    cur = make_cursor(fetchone={'id': 3})
    with cursor_patch(cur):
        delete_collaborator(3)
    sqls = executed_sql(cur)
    assert any('DELETE FROM project_collaborators' in s for s in sqls)
    assert any('SET collaborator_id = NULL' in s for s in sqls)
    assert 'DELETE FROM collaborators' in sqls[-1]


def test_list_contacts_by_venue_matches_array():
    cur = make_cursor(fetchall=[])
    with cursor_patch(cur):
        list_contacts_by_venue(5)
    sql, params = cur.execute.call_args[0]
    assert '%s = ANY(venue_ids)' in sql
    assert params == (5,)


def test_create_contact_rejects_unknown_type():
    cur = make_cursor()
    with cursor_patch(cur):
        with pytest.raises(ValueError, match='types'):
            create_contact(Contact(name='Ana', types=['Nemesis']))
    cur.execute.assert_not_called()


def test_update_contact_emits_event():
    cur = make_cursor()
    with cursor_patch(cur), patch('studiocrm.engine.crm.bus.emit') as mock_emit:
        update_contact(11, {'role': 'Curator'})
    mock_emit.assert_called_once_with(EVENT_CONTACT_UPDATED, {'contact_id': 11, 'updates': {'role': 'Curator'}})


def test_delete_contact_scrubs_venue_arrays():
    cur = make_cursor(fetchone={'id': 11})
    with cursor_patch(cur):
        delete_contact(11)
    calls = cur.execute.call_args_list
    scrub = next(c[0] for c in calls if 'array_remove' in c[0][0])
    assert scrub[1] == (11, 11)
    sqls = executed_sql(cur)
    assert any('DELETE FROM project_contacts' in s for s in sqls)
    assert any('DELETE FROM task_contacts' in s for s in sqls)
    assert 'DELETE FROM contacts' in sqls[-1]


def test_delete_contact_missing_raises_not_found():
    cur = make_cursor(fetchone=None)
    with cursor_patch(cur):
        with pytest.raises(NotFoundError, match='Contact 11 not found'):
            delete_contact(11)


# ---------------------------------------------------------------------------
# Projects / tasks
# ---------------------------------------------------------------------------

def test_delete_project_removes_all_junction_rows():
    cur = make_cursor(fetchone={'id': 2})
    with cursor_patch(cur):
        delete_project(2)
    sqls = executed_sql(cur)
    for table in ('project_collaborators', 'project_contacts', 'task_projects'):
        assert any(f'DELETE FROM {table}' in s for s in sqls)
    assert 'DELETE FROM projects' in sqls[-1]


def test_create_task_emits_event():
    task = Task(title='Send proposal', due_date='2024-01-01')
    cur = make_cursor(fetchone={'id': 9})
    with cursor_patch(cur), patch('studiocrm.engine.crm.bus.emit') as mock_emit:
        assert create_task(task) == 9
    mock_emit.assert_called_once_with(EVENT_TASK_CREATED, {'task_id': 9, 'task': task})


def test_update_task_invalid_priority_raises():
    cur = make_cursor()
    with cursor_patch(cur):
        with pytest.raises(ValueError, match='priority'):
            update_task(9, {'priority': 'Whenever'})
    cur.execute.assert_not_called()


def test_list_tasks_by_status_validates():
    cur = make_cursor()
    with cursor_patch(cur):
        with pytest.raises(ValueError):
            list_tasks_by_status('Someday')
    cur.execute.assert_not_called()


def test_delete_task_removes_links():
    cur = make_cursor(fetchone={'id': 9})
    with cursor_patch(cur):
        delete_task(9)
    sqls = executed_sql(cur)
    for table in ('task_venues', 'task_projects', 'task_contacts'):
        assert any(f'DELETE FROM {table}' in s for s in sqls)
    assert 'DELETE FROM tasks' in sqls[-1]


# ---------------------------------------------------------------------------
# Outreach
# ---------------------------------------------------------------------------

def test_log_outreach_inserts_and_emits():
    entry = Outreach(venue_id=5, date='2024-01-03', subject='Proposal')
    cur = make_cursor(fetchone={'id': 30})
    with cursor_patch(cur), patch('studiocrm.engine.crm.bus.emit') as mock_emit:
        assert log_outreach(entry) == 30
    assert 'INSERT INTO outreach' in cur.execute.call_args[0][0]
    mock_emit.assert_called_once_with(EVENT_OUTREACH_LOGGED, {'outreach_id': 30, 'outreach': entry})


def test_log_outreach_invalid_method_raises():
    cur = make_cursor()
    with cursor_patch(cur):
        with pytest.raises(ValueError, match='method'):
            log_outreach(Outreach(date='2024-01-03', subject='x', method='Pigeon'))


def test_delete_outreach_missing_raises_not_found():
    cur = make_cursor(rowcount=0)
    with cursor_patch(cur), patch('studiocrm.engine.crm.bus.emit') as mock_emit:
        with pytest.raises(NotFoundError):
            delete_outreach(30)
    mock_emit.assert_not_called()


def test_delete_outreach_emits_event():
    cur = make_cursor(rowcount=1)
    with cursor_patch(cur), patch('studiocrm.engine.crm.bus.emit') as mock_emit:
        delete_outreach(30)
    mock_emit.assert_called_once_with(EVENT_OUTREACH_DELETED, {'outreach_id': 30})


# ---------------------------------------------------------------------------
# global_search
# ---------------------------------------------------------------------------

@pytest.mark.parametrize('text', ['', ' ', 'a', ' b '])
def test_global_search_short_query_returns_empty(text):
    cur = make_cursor()
    with cursor_patch(cur):
        assert global_search(text) == {}
    cur.execute.assert_not_called()


def test_global_search_groups_hits_by_kind():
    cur = make_cursor()
    cur.fetchall.side_effect = [
        [{'id': 5, 'title': 'Lumen Gallery', 'context': 'To Contact · Accessible'}],
        [],
        [{'id': 11, 'title': 'Ana Lumen', 'context': 'ana@lumen.org'}],
        [],
        [],
    ]
    with cursor_patch(cur):
        results = global_search('lumen')
    assert set(results) == {'venue', 'contact'}
    assert results['venue'][0]['title'] == 'Lumen Gallery'
    params = cur.execute.call_args_list[0][0][1]
    assert params == {'pattern': '%lumen%', 'limit': 5}
    assert 'ILIKE' in cur.execute.call_args_list[0][0][0]


def test_global_search_escapes_like_wildcards():
    cur = make_cursor()
    with cursor_patch(cur):
        assert global_search('50%_off') == {}
    for args in cur.execute.call_args_list:
        assert args[0][1]['pattern'] == '%50\\%\\_off%'


def test_global_search_escapes_backslash():
    cur = make_cursor()
    with cursor_patch(cur):
        global_search('a\\b')
    assert cur.execute.call_args[0][1]['pattern'] == '%a\\\\b%'

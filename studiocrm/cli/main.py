#!/usr/bin/env python3
"""
Studio CRM Terminal CLI
Command-line interface for all CRM operations.
"""

import functools
import logging
import re
import click
from datetime import date
from typing import Optional, List

from studiocrm.engine import crm, links, dashboard
from studiocrm.engine.crm import NotFoundError
from studiocrm.models import (
    Venue, Collaborator, Contact, Project, Task, Outreach, Location,
    VENUE_STATUSES, VENUE_CATEGORIES, PERSON_TYPES, PROJECT_STATUSES,
    TASK_STATUSES, TASK_PRIORITIES, OUTREACH_METHODS, OUTREACH_DIRECTIONS,
    OUTREACH_STATUSES,
)
from studiocrm.logging_config import configure_logging, log_call

_EMAIL_RE = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

AI_MODEL_CHOICES = ['claude', 'deepseek-chat', 'deepseek-reasoner']

logger = logging.getLogger("studiocrm")


# =============================================================================
# PROMPT HELPERS
# =============================================================================

def _prompt_required(label: str) -> str:
    """Prompt until a non-blank value is entered."""
    while True:
        raw = click.prompt(label, type=str).strip()
        if raw:
            return raw
        click.echo(f"  {label} is required.", err=True)


def _prompt_optional(label: str) -> Optional[str]:
    return click.prompt(label, default="", show_default=False).strip() or None


def _prompt_date(label: str, default: Optional[str] = None) -> Optional[str]:
    """Prompt for an ISO date, re-prompting on bad format. Returns None if left blank."""
    while True:
        raw = click.prompt(label, default=default or "", show_default=bool(default)).strip()
        if not raw:
            return None
        try:
            return date.fromisoformat(raw).isoformat()
        except ValueError:
            logger.debug(f"_prompt_date | rejected input={raw!r}")
            click.echo("  Invalid format, please use YYYY-MM-DD.", err=True)


def _prompt_email() -> Optional[str]:
    """Prompt for an email address, re-prompting on bad format. Returns None if left blank."""
    while True:
        raw = click.prompt("Email", default="", show_default=False).strip() or None
        if raw is None:
            return None
        if _EMAIL_RE.match(raw):
            return raw
        logger.debug(f"_prompt_email | rejected input={raw!r}")
        click.echo("  Invalid email address, try again or press Enter to skip.", err=True)


def _parse_ids(raw: Optional[str]) -> List[int]:
    """'3, 5,8' -> [3, 5, 8]; blank -> []"""
    if not raw or not raw.strip():
        return []
    try:
        return [int(part) for part in raw.split(',') if part.strip()]
    except ValueError:
        raise click.BadParameter(f"expected comma-separated ids, got {raw!r}")


def _parse_types(raw: Optional[str]) -> List[str]:
    return [t.strip() for t in (raw or '').split(',') if t.strip()]


def _names(items, attr: str = 'name') -> str:
    return ', '.join(f"{getattr(i, attr)} (#{i.id})" for i in items) or '(none)'


def _reports_errors(func):
    """Turn store errors into a one-line message on stderr."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except NotFoundError as e:
            logger.warning(f"{func.__name__} | {e}")
            click.echo(f"{e}.", err=True)
        except ValueError as e:
            logger.warning(f"{func.__name__} | {e}")
            click.echo(f"Error: {e}", err=True)
    return wrapper


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Echo log records to stderr')
def cli(verbose):
    """Studio CRM - Venues, People, Projects & Outreach"""
    configure_logging(verbose=verbose)


@cli.command('init-db')
@log_call
def init_db():
    """Create tables and indexes (safe to re-run)"""
    from studiocrm.db.schema import init_schema

    count = init_schema()
    click.echo(f"✓ Schema ready ({count} statements)")


# =============================================================================
# VENUES COMMANDS
# =============================================================================

@cli.group()
def venues():
    """Manage venues (galleries, festivals, residencies, etc.)"""
    pass


@venues.command('list')
@click.option('--status', type=click.Choice(VENUE_STATUSES), help='Filter by status')
@click.option('--category', type=click.Choice(VENUE_CATEGORIES), help='Filter by category')
@log_call
def venues_list(status, category):
    """List venues in rank order"""
    results = [
        v for v in crm.list_venues()
        if (not status or v.status == status) and (not category or v.category == category)
    ]

    if not results:
        click.echo("No venues found.")
        return

    click.echo(f"\nFound {len(results)} venues:\n")
    click.echo(f"{'#':<5} {'ID':<6} {'Name':<32} {'Location':<22} {'Status':<16} {'Category':<20}")
    click.echo("-" * 104)

    for v in results:
        location = v.locations[0].label() if v.locations else ''
        click.echo(
            f"{v.order_num:<5} {v.id:<6} {v.name[:30]:<32} {location[:20]:<22} "
            f"{v.status:<16} {v.category:<20}"
        )


@venues.command('show')
@click.argument('venue_id', type=int)
@_reports_errors
@log_call
def venues_show(venue_id):
    """Show full venue details with linked records"""
    venue = crm.get_venue(venue_id)

    click.echo(f"\n{'='*80}")
    click.echo(f"VENUE #{venue.id}: {venue.name}  (rank {venue.order_num})")
    click.echo(f"{'='*80}")
    click.echo(f"Status:      {venue.status}")
    click.echo(f"Category:    {venue.category}")
    click.echo(f"URL:         {venue.url or '(not set)'}")
    click.echo(f"Submissions: {venue.submission_form_url or '(not set)'}")
    for loc in venue.locations:
        phone = f"  ☎ {loc.phone_number}" if loc.phone_number else ''
        click.echo(f"Location:    {loc.label() or '(blank)'}{phone}")
    click.echo(f"Created:     {venue.created_at}")

    if venue.notes:
        click.echo(f"\nNotes:\n{venue.notes}")

    click.echo(f"\nPeople:      {_names(crm.list_contacts_by_ids(venue.contact_ids))}")
    click.echo(f"Projects:    {_names(crm.list_projects_by_venue(venue_id))}")
    click.echo(f"Tasks:       {_names(crm.list_tasks_by_ids(links.TASK_VENUES.list_by_child(venue_id)), 'title')}")

    if venue.contacts:
        click.echo("\nLegacy inline contacts (run `studiocrm migrate inline-contacts`):")
        for c in venue.contacts:
            click.echo(f"  • {c.name or '(no name)'} {c.title or ''} {c.email or ''}".rstrip())

    click.echo(f"\n{'='*80}")
    click.echo("OUTREACH HISTORY")
    click.echo(f"{'='*80}")
    history = crm.list_outreach_by_venue(venue_id)
    if history:
        for o in history:
            click.echo(f"\n[{o.date}] {o.method} ({o.direction}) - {o.status}")
            click.echo(f"  {o.subject[:100]}")
            if o.follow_up_date:
                click.echo(f"  Follow up: {o.follow_up_date}")
    else:
        click.echo("No outreach yet.")

    click.echo()


@venues.command('add')
@_reports_errors
@log_call
def venues_add():
    """Add a new venue at the end of the ranking (interactive)"""
    click.echo("\n=== ADD NEW VENUE ===\n")

    name = _prompt_required("Name")
    url = _prompt_optional("Website")
    submission_form_url = _prompt_optional("Submission form URL")
    city = _prompt_optional("City")
    state = _prompt_optional("State")
    country = click.prompt("Country", default="US")
    status = click.prompt("Status", type=click.Choice(VENUE_STATUSES), default="To Contact")
    category = click.prompt("Category", type=click.Choice(VENUE_CATEGORIES), default="For Review")
    notes = _prompt_optional("Notes")

    venue = Venue(
        name=name,
        url=url,
        submission_form_url=submission_form_url,
        locations=[Location(city=city, state=state, country=country)],
        status=status,
        category=category,
        notes=notes,
    )

    venue_id = crm.create_venue(venue)
    click.echo(f"\n✓ Created venue #{venue_id}: {name}")


@venues.command('edit')
@click.argument('venue_id', type=int)
@click.option('--name', help='Update name')
@click.option('--url', help='Update website')
@click.option('--submission-form-url', help='Update submission form URL')
@click.option('--notes', help='Update notes')
@_reports_errors
@log_call
def venues_edit(venue_id, name, url, submission_form_url, notes):
    """Edit a venue (use options to set fields)"""
    updates = {
        key: value for key, value in (
            ('name', name), ('url', url),
            ('submission_form_url', submission_form_url), ('notes', notes),
        ) if value
    }

    if not updates:
        click.echo("No updates specified. Use --name, --url, --submission-form-url or --notes", err=True)
        return

    crm.update_venue(venue_id, updates)
    click.echo(f"✓ Updated venue #{venue_id}")


@venues.command('move')
@click.argument('venue_id', type=int)
@click.argument('position', type=int)
@_reports_errors
@log_call
def venues_move(venue_id, position):
    """Move a venue to a new rank, shifting the ones in between"""
    changed = crm.reorder_venue(venue_id, position)
    if changed:
        click.echo(f"✓ Moved venue #{venue_id} to position {position} ({changed} venues renumbered)")
    else:
        click.echo(f"Venue #{venue_id} is already at position {position}.")


@venues.command('column')
@click.argument('venue_id', type=int)
@click.option('--status', type=click.Choice(VENUE_STATUSES), help='New status column')
@click.option('--category', type=click.Choice(VENUE_CATEGORIES), help='New category column')
@_reports_errors
@log_call
def venues_column(venue_id, status, category):
    """Move a venue to another status and/or category column"""
    if not status and not category:
        click.echo("Specify --status and/or --category", err=True)
        return

    crm.move_venue_to_column(venue_id, status=status, category=category)
    click.echo(f"✓ Venue #{venue_id} -> {' / '.join(p for p in (status, category) if p)}")


@venues.command('delete')
@click.argument('venue_id', type=int)
@click.confirmation_option(prompt='Delete this venue and its task links?')
@_reports_errors
@log_call
def venues_delete(venue_id):
    """Delete a venue and close the gap in the ranking"""
    crm.delete_venue(venue_id)
    click.echo(f"✓ Deleted venue #{venue_id}")


# =============================================================================
# CONTACTS (PEOPLE) COMMANDS
# =============================================================================

@cli.group()
def contacts():
    """Manage people (curators, clients, patrons, agents, etc.)"""
    pass


@contacts.command('list')
@click.option('--venue', 'venue_id', type=int, help='Only people linked to this venue')
@click.option('--collaborator', 'collaborator_id', type=int, help='Only people of this collaborator')
@log_call
def contacts_list(venue_id, collaborator_id):
    """List people"""
    if venue_id is not None:
        results = crm.list_contacts_by_venue(venue_id)
    elif collaborator_id is not None:
        results = crm.list_contacts_by_collaborator(collaborator_id)
    else:
        results = crm.list_contacts()

    if not results:
        click.echo("No contacts found.")
        return

    click.echo(f"\nFound {len(results)} contacts:\n")
    click.echo(f"{'ID':<6} {'Name':<28} {'Email':<30} {'Types':<25}")
    click.echo("-" * 90)

    for c in results:
        click.echo(
            f"{c.id:<6} {c.name[:26]:<28} {(c.email or '')[:28]:<30} {', '.join(c.types)[:25]:<25}"
        )


@contacts.command('show')
@click.argument('contact_id', type=int)
@_reports_errors
@log_call
def contacts_show(contact_id):
    """Show full contact details"""
    contact = crm.get_contact(contact_id)

    click.echo(f"\n{'='*80}")
    click.echo(f"CONTACT #{contact.id}: {contact.name}")
    click.echo(f"{'='*80}")
    click.echo(f"Role:         {contact.role or '(not set)'}")
    click.echo(f"Types:        {', '.join(contact.types) or '(not set)'}")
    click.echo(f"Email:        {contact.email or '(not set)'}")
    click.echo(f"Phone:        {contact.phone or '(not set)'}")
    click.echo(f"Venues:       {_names(crm.list_venues_by_ids(contact.venue_ids or []))}")
    if contact.collaborator_id:
        click.echo(f"Collaborator: {crm.get_collaborator(contact.collaborator_id).name}")
    click.echo(f"Created:      {contact.created_at}")

    if contact.notes:
        click.echo(f"\nNotes:\n{contact.notes}")

    history = crm.list_outreach_by_contact(contact_id)
    click.echo(f"\nOutreach: {len(history)} entries")
    for o in history[:10]:
        click.echo(f"  [{o.date}] {o.subject[:60]} - {o.status}")

    click.echo()


@contacts.command('add')
@click.option('--venues', 'venue_ids', help='Comma-separated venue ids to link')
@_reports_errors
@log_call
def contacts_add(venue_ids):
    """Add a new person (interactive)"""
    click.echo("\n=== ADD NEW CONTACT ===\n")

    name = _prompt_required("Name")
    email = _prompt_email()
    phone = _prompt_optional("Phone")
    role = _prompt_optional("Role")
    types = _parse_types(click.prompt(
        f"Types (comma-separated: {', '.join(PERSON_TYPES)})", default="", show_default=False
    ))
    notes = _prompt_optional("Notes")

    contact = Contact(name=name, email=email, phone=phone, role=role, types=types, notes=notes, venue_ids=[])

    contact_id = crm.create_contact(contact)
    for venue_id in _parse_ids(venue_ids):
        links.VENUE_CONTACTS.link(venue_id, contact_id)
    click.echo(f"\n✓ Created contact #{contact_id}: {name}")


@contacts.command('edit')
@click.argument('contact_id', type=int)
@click.option('--name', help='Update name')
@click.option('--email', help='Update email')
@click.option('--phone', help='Update phone')
@click.option('--role', help='Update role')
@click.option('--types', help='Replace types (comma-separated)')
@click.option('--collaborator', 'collaborator_id', type=int, help='Attach to collaborator id (0 to detach)')
@click.option('--notes', help='Update notes')
@_reports_errors
@log_call
def contacts_edit(contact_id, name, email, phone, role, types, collaborator_id, notes):
    """Edit a contact (use options to set fields)"""
    updates = {
        key: value for key, value in (
            ('name', name), ('email', email), ('phone', phone), ('role', role), ('notes', notes),
        ) if value
    }
    if types is not None:
        updates['types'] = _parse_types(types)
    if collaborator_id is not None:
        if collaborator_id:
            crm.get_collaborator(collaborator_id)
        updates['collaborator_id'] = collaborator_id or None

    if not updates:
        click.echo("No updates specified. See --help for the editable fields.", err=True)
        return

    crm.update_contact(contact_id, updates)
    click.echo(f"✓ Updated contact #{contact_id}")


@contacts.command('delete')
@click.argument('contact_id', type=int)
@click.confirmation_option(prompt='Delete this contact?')
@_reports_errors
@log_call
def contacts_delete(contact_id):
    """Delete a contact and remove it from venues, projects and tasks"""
    crm.delete_contact(contact_id)
    click.echo(f"✓ Deleted contact #{contact_id}")


# =============================================================================
# COLLABORATORS COMMANDS
# =============================================================================

@cli.group()
def collaborators():
    """Manage collaborators (fabricators, musicians, technicians, etc.)"""
    pass


@collaborators.command('list')
@log_call
def collaborators_list():
    """List collaborators"""
    results = crm.list_collaborators()

    if not results:
        click.echo("No collaborators found.")
        return

    click.echo(f"\nFound {len(results)} collaborators:\n")
    click.echo(f"{'ID':<6} {'Name':<30} {'Role':<20} {'Email':<30}")
    click.echo("-" * 88)

    for c in results:
        click.echo(f"{c.id:<6} {c.name[:28]:<30} {(c.role or '')[:18]:<20} {(c.email or '')[:28]:<30}")


@collaborators.command('show')
@click.argument('collaborator_id', type=int)
@_reports_errors
@log_call
def collaborators_show(collaborator_id):
    """Show a collaborator with its people and projects"""
    collaborator = crm.get_collaborator(collaborator_id)
    project_ids = links.PROJECT_COLLABORATORS.list_by_child(collaborator_id)

    click.echo(f"\nCOLLABORATOR #{collaborator.id}: {collaborator.name}")
    click.echo(f"Role:     {collaborator.role or '(not set)'}")
    click.echo(f"URL:      {collaborator.url or '(not set)'}")
    click.echo(f"Email:    {collaborator.email or '(not set)'}")
    click.echo(f"Phone:    {collaborator.phone or '(not set)'}")
    click.echo(f"People:   {_names(crm.list_contacts_by_collaborator(collaborator_id))}")
    click.echo(f"Projects: {_names(crm.list_projects_by_ids(project_ids))}")
    if collaborator.notes:
        click.echo(f"\nNotes:\n{collaborator.notes}")
    click.echo()


@collaborators.command('add')
@_reports_errors
@log_call
def collaborators_add():
    """Add a new collaborator (interactive)"""
    click.echo("\n=== ADD NEW COLLABORATOR ===\n")

    collaborator = Collaborator(
        name=_prompt_required("Name"),
        role=_prompt_optional("Role"),
        url=_prompt_optional("Website"),
        email=_prompt_email(),
        phone=_prompt_optional("Phone"),
        notes=_prompt_optional("Notes"),
    )

    collaborator_id = crm.create_collaborator(collaborator)
    click.echo(f"\n✓ Created collaborator #{collaborator_id}: {collaborator.name}")


@collaborators.command('edit')
@click.argument('collaborator_id', type=int)
@click.option('--name', help='Update name')
@click.option('--role', help='Update role')
@click.option('--url', help='Update website')
@click.option('--email', help='Update email')
@click.option('--phone', help='Update phone')
@click.option('--notes', help='Update notes')
@_reports_errors
@log_call
def collaborators_edit(collaborator_id, name, role, url, email, phone, notes):
    """Edit a collaborator (use options to set fields)"""
    updates = {
        key: value for key, value in (
            ('name', name), ('role', role), ('url', url),
            ('email', email), ('phone', phone), ('notes', notes),
        ) if value
    }

    if not updates:
        click.echo("No updates specified. See --help for the editable fields.", err=True)
        return

    crm.update_collaborator(collaborator_id, updates)
    click.echo(f"✓ Updated collaborator #{collaborator_id}")


@collaborators.command('delete')
@click.argument('collaborator_id', type=int)
@click.confirmation_option(prompt='Delete this collaborator?')
@_reports_errors
@log_call
def collaborators_delete(collaborator_id):
    """Delete a collaborator, its project links, and detach its people"""
    crm.delete_collaborator(collaborator_id)
    click.echo(f"✓ Deleted collaborator #{collaborator_id}")


# =============================================================================
# PROJECTS COMMANDS
# =============================================================================

@cli.group()
def projects():
    """Manage projects (commissions, shows, installations)"""
    pass


@projects.command('list')
@click.option('--status', type=click.Choice(PROJECT_STATUSES), help='Filter by status')
@click.option('--venue', 'venue_id', type=int, help='Only projects at this venue')
@log_call
def projects_list(status, venue_id):
    """List projects"""
    results = crm.list_projects_by_venue(venue_id) if venue_id is not None else crm.list_projects()
    if status:
        results = [p for p in results if p.status == status]

    if not results:
        click.echo("No projects found.")
        return

    click.echo(f"\nFound {len(results)} projects:\n")
    click.echo(f"{'ID':<6} {'Name':<35} {'Start':<12} {'End':<12} {'Status':<12}")
    click.echo("-" * 80)

    for p in results:
        click.echo(
            f"{p.id:<6} {p.name[:33]:<35} {p.start_date or '':<12} {p.end_date or '':<12} {p.status:<12}"
        )


@projects.command('show')
@click.argument('project_id', type=int)
@_reports_errors
@log_call
def projects_show(project_id):
    """Show a project with its venues, people and collaborators"""
    project = crm.get_project(project_id)

    click.echo(f"\n{'='*80}")
    click.echo(f"PROJECT #{project.id}: {project.name}")
    click.echo(f"{'='*80}")
    click.echo(f"Status:        {project.status}")
    click.echo(f"Dates:         {project.start_date or '?'} -> {project.end_date or '?'}")
    click.echo(f"Budget:        {project.budget if project.budget is not None else '(not set)'}")
    click.echo(f"Profit:        {project.profit if project.profit is not None else '(not set)'}")
    click.echo(f"Venues:        {_names(crm.list_venues_by_ids(project.venue_ids or []))}")
    click.echo(f"People:        {_names(crm.list_contacts_by_ids(links.PROJECT_CONTACTS.list_by_parent(project_id)))}")
    click.echo(f"Collaborators: {_names(crm.list_collaborators_by_ids(links.PROJECT_COLLABORATORS.list_by_parent(project_id)))}")

    if project.description:
        click.echo(f"\nDescription:\n{project.description}")
    if project.notes:
        click.echo(f"\nNotes:\n{project.notes}")
    click.echo()


@projects.command('add')
@click.option('--venues', 'venue_ids', help='Comma-separated venue ids')
@_reports_errors
@log_call
def projects_add(venue_ids):
    """Add a new project (interactive)"""
    click.echo("\n=== ADD NEW PROJECT ===\n")

    project = Project(
        name=_prompt_required("Name"),
        start_date=_prompt_date("Start date (YYYY-MM-DD, Enter to skip)"),
        end_date=_prompt_date("End date (YYYY-MM-DD, Enter to skip)"),
        description=_prompt_optional("Description"),
        status=click.prompt("Status", type=click.Choice(PROJECT_STATUSES), default="Planning"),
        budget=click.prompt("Budget", type=float, default=0.0) or None,
        notes=_prompt_optional("Notes"),
        venue_ids=[],
    )

    project_id = crm.create_project(project)
    ids = _parse_ids(venue_ids)
    if ids:
        links.sync_links(links.PROJECT_VENUES, project_id, ids)
    click.echo(f"\n✓ Created project #{project_id}: {project.name}")


@projects.command('edit')
@click.argument('project_id', type=int)
@click.option('--name', help='Update name')
@click.option('--status', type=click.Choice(PROJECT_STATUSES), help='Update status')
@click.option('--start', 'start_date', help='Start date (YYYY-MM-DD)')
@click.option('--end', 'end_date', help='End date (YYYY-MM-DD)')
@click.option('--budget', type=float, help='Update budget')
@click.option('--profit', type=float, help='Update profit')
@click.option('--description', help='Update description')
@click.option('--notes', help='Update notes')
@_reports_errors
@log_call
def projects_edit(project_id, name, status, start_date, end_date, budget, profit, description, notes):
    """Edit a project (use options to set fields)"""
    updates = {
        key: value for key, value in (
            ('name', name), ('status', status), ('start_date', start_date),
            ('end_date', end_date), ('description', description), ('notes', notes),
        ) if value
    }
    for key, value in (('budget', budget), ('profit', profit)):
        if value is not None:
            updates[key] = value
    for key in ('start_date', 'end_date'):
        if key in updates:
            date.fromisoformat(updates[key])

    if not updates:
        click.echo("No updates specified. See --help for the editable fields.", err=True)
        return

    crm.update_project(project_id, updates)
    click.echo(f"✓ Updated project #{project_id}")


@projects.command('delete')
@click.argument('project_id', type=int)
@click.confirmation_option(prompt='Delete this project and all its links?')
@_reports_errors
@log_call
def projects_delete(project_id):
    """Delete a project and its people, collaborator and task links"""
    crm.delete_project(project_id)
    click.echo(f"✓ Deleted project #{project_id}")


# =============================================================================
# TASKS COMMANDS
# =============================================================================

@cli.group()
def tasks():
    """Manage tasks"""
    pass


@tasks.command('list')
@click.option('--status', type=click.Choice(TASK_STATUSES), help='Filter by status')
@log_call
def tasks_list(status):
    """List tasks"""
    results = crm.list_tasks_by_status(status) if status else crm.list_tasks()

    if not results:
        click.echo("No tasks found.")
        return

    click.echo(f"\nFound {len(results)} tasks:\n")
    click.echo(f"{'ID':<6} {'Title':<38} {'Due':<12} {'Priority':<9} {'Status':<12}")
    click.echo("-" * 80)

    for t in results:
        click.echo(
            f"{t.id:<6} {t.title[:36]:<38} {t.due_date or '':<12} {t.priority:<9} {t.status:<12}"
        )


@tasks.command('show')
@click.argument('task_id', type=int)
@_reports_errors
@log_call
def tasks_show(task_id):
    """Show a task with its linked venues, projects and people"""
    task = crm.get_task(task_id)

    click.echo(f"\nTASK #{task.id}: {task.title}")
    click.echo(f"Status:    {task.status}")
    click.echo(f"Priority:  {task.priority}")
    click.echo(f"Due:       {task.due_date or '(not set)'}")
    if task.completed_date:
        click.echo(f"Completed: {task.completed_date}")
    click.echo(f"Venues:    {_names(crm.list_venues_by_ids(links.TASK_VENUES.list_by_parent(task_id)))}")
    click.echo(f"Projects:  {_names(crm.list_projects_by_ids(links.TASK_PROJECTS.list_by_parent(task_id)))}")
    click.echo(f"People:    {_names(crm.list_contacts_by_ids(links.TASK_CONTACTS.list_by_parent(task_id)))}")
    if task.description:
        click.echo(f"\n{task.description}")
    if task.notes:
        click.echo(f"\nNotes:\n{task.notes}")
    click.echo()


@tasks.command('add')
@click.option('--venues', 'venue_ids', help='Comma-separated venue ids')
@click.option('--projects', 'project_ids', help='Comma-separated project ids')
@click.option('--contacts', 'contact_ids', help='Comma-separated contact ids')
@_reports_errors
@log_call
def tasks_add(venue_ids, project_ids, contact_ids):
    """Add a new task (interactive)"""
    click.echo("\n=== ADD NEW TASK ===\n")

    task = Task(
        title=_prompt_required("Title"),
        description=_prompt_optional("Description"),
        priority=click.prompt("Priority", type=click.Choice(TASK_PRIORITIES), default="Medium"),
        due_date=_prompt_date("Due date (YYYY-MM-DD, Enter to skip)"),
        notes=_prompt_optional("Notes"),
    )

    task_id = crm.create_task(task)
    for relation, raw in (
        (links.TASK_VENUES, venue_ids),
        (links.TASK_PROJECTS, project_ids),
        (links.TASK_CONTACTS, contact_ids),
    ):
        ids = _parse_ids(raw)
        if ids:
            links.sync_links(relation, task_id, ids)
    click.echo(f"\n✓ Created task #{task_id}: {task.title}")


@tasks.command('edit')
@click.argument('task_id', type=int)
@click.option('--title', help='Update title')
@click.option('--status', type=click.Choice(TASK_STATUSES), help='Update status')
@click.option('--priority', type=click.Choice(TASK_PRIORITIES), help='Update priority')
@click.option('--due', 'due_date', help='Due date (YYYY-MM-DD)')
@click.option('--description', help='Update description')
@click.option('--notes', help='Update notes')
@_reports_errors
@log_call
def tasks_edit(task_id, title, status, priority, due_date, description, notes):
    """Edit a task (use options to set fields)"""
    updates = {
        key: value for key, value in (
            ('title', title), ('status', status), ('priority', priority),
            ('due_date', due_date), ('description', description), ('notes', notes),
        ) if value
    }
    if due_date:
        date.fromisoformat(due_date)

    if not updates:
        click.echo("No updates specified. See --help for the editable fields.", err=True)
        return

    crm.update_task(task_id, updates)
    click.echo(f"✓ Updated task #{task_id}")


@tasks.command('done')
@click.argument('task_id', type=int)
@_reports_errors
@log_call
def tasks_done(task_id):
    """Mark a task completed today"""
    crm.update_task(task_id, {'status': 'Completed', 'completed_date': date.today().isoformat()})
    click.echo(f"✓ Task #{task_id} completed")


@tasks.command('delete')
@click.argument('task_id', type=int)
@click.confirmation_option(prompt='Delete this task and its links?')
@_reports_errors
@log_call
def tasks_delete(task_id):
    """Delete a task and its venue, project and people links"""
    crm.delete_task(task_id)
    click.echo(f"✓ Deleted task #{task_id}")


# =============================================================================
# OUTREACH COMMANDS
# =============================================================================

@cli.group()
def outreach():
    """Track correspondence with venues and people"""
    pass


@outreach.command('list')
@click.option('--venue', 'venue_id', type=int, help='Only outreach for this venue')
@click.option('--contact', 'contact_id', type=int, help='Only outreach with this person')
@click.option('--project', 'project_id', type=int, help='Only outreach about this project')
@click.option('--status', type=click.Choice(OUTREACH_STATUSES), help='Filter by status')
@log_call
def outreach_list(venue_id, contact_id, project_id, status):
    """List outreach, newest first"""
    if venue_id is not None:
        results = crm.list_outreach_by_venue(venue_id)
    elif contact_id is not None:
        results = crm.list_outreach_by_contact(contact_id)
    elif project_id is not None:
        results = crm.list_outreach_by_project(project_id)
    else:
        results = crm.list_outreach()
    if status:
        results = [o for o in results if o.status == status]

    if not results:
        click.echo("No outreach found.")
        return

    click.echo(f"\nFound {len(results)} outreach entries:\n")
    click.echo(f"{'ID':<6} {'Date':<12} {'Subject':<36} {'Method':<16} {'Status':<18} {'Follow up':<10}")
    click.echo("-" * 100)

    for o in results:
        click.echo(
            f"{o.id:<6} {o.date:<12} {o.subject[:34]:<36} {o.method:<16} "
            f"{o.status:<18} {o.follow_up_date or '':<10}"
        )


@outreach.command('log')
@click.option('--venue', 'venue_id', type=int, help='Venue id')
@click.option('--contact', 'contact_id', type=int, help='Contact id')
@click.option('--project', 'project_id', type=int, help='Project id')
@_reports_errors
@log_call
def outreach_log(venue_id, contact_id, project_id):
    """Log a piece of correspondence (interactive)"""
    if venue_id is not None:
        click.echo(f"\n=== LOG OUTREACH: {crm.get_venue(venue_id).name} ===\n")
    elif contact_id is not None:
        click.echo(f"\n=== LOG OUTREACH: {crm.get_contact(contact_id).name} ===\n")
    else:
        click.echo("\n=== LOG OUTREACH ===\n")

    entry = Outreach(
        venue_id=venue_id,
        contact_id=contact_id,
        project_id=project_id,
        date=_prompt_date("Date (YYYY-MM-DD)", default=date.today().isoformat()) or date.today().isoformat(),
        method=click.prompt("Method", type=click.Choice(OUTREACH_METHODS), default="Email"),
        direction=click.prompt("Direction", type=click.Choice(OUTREACH_DIRECTIONS), default="Outbound"),
        subject=_prompt_required("Subject"),
        status=click.prompt("Status", type=click.Choice(OUTREACH_STATUSES), default="Sent"),
        follow_up_date=_prompt_date("Follow-up date (YYYY-MM-DD, Enter to skip)"),
        notes=_prompt_optional("Notes"),
    )

    outreach_id = crm.log_outreach(entry)
    click.echo(f"\n✓ Logged outreach #{outreach_id}")


@outreach.command('edit')
@click.argument('outreach_id', type=int)
@click.option('--status', type=click.Choice(OUTREACH_STATUSES), help='Update status')
@click.option('--follow-up', 'follow_up_date', help='Follow-up date (YYYY-MM-DD)')
@click.option('--subject', help='Update subject')
@click.option('--notes', help='Update notes')
@_reports_errors
@log_call
def outreach_edit(outreach_id, status, follow_up_date, subject, notes):
    """Edit an outreach entry (use options to set fields)"""
    updates = {
        key: value for key, value in (
            ('status', status), ('follow_up_date', follow_up_date),
            ('subject', subject), ('notes', notes),
        ) if value
    }
    if follow_up_date:
        date.fromisoformat(follow_up_date)

    if not updates:
        click.echo("No updates specified. See --help for the editable fields.", err=True)
        return

    crm.update_outreach(outreach_id, updates)
    click.echo(f"✓ Updated outreach #{outreach_id}")


@outreach.command('delete')
@click.argument('outreach_id', type=int)
@click.confirmation_option(prompt='Delete this outreach entry?')
@_reports_errors
@log_call
def outreach_delete(outreach_id):
    """Delete an outreach entry"""
    crm.delete_outreach(outreach_id)
    click.echo(f"✓ Deleted outreach #{outreach_id}")


# =============================================================================
# LINKS COMMANDS
# =============================================================================

_RELATION_CHOICE = click.Choice(sorted(links.RELATIONS))


@cli.group('links')
def links_group():
    """Link records together (task-venues, project-contacts, ...)"""
    pass


@links_group.command('add')
@click.argument('relation', type=_RELATION_CHOICE)
@click.argument('parent_id', type=int)
@click.argument('child_id', type=int)
@_reports_errors
@log_call
def links_add(relation, parent_id, child_id):
    """Link CHILD_ID to PARENT_ID (no-op if already linked)"""
    links.RELATIONS[relation].link(parent_id, child_id)
    click.echo(f"✓ Linked {relation}: {parent_id} -> {child_id}")


@links_group.command('remove')
@click.argument('relation', type=_RELATION_CHOICE)
@click.argument('parent_id', type=int)
@click.argument('child_id', type=int)
@_reports_errors
@log_call
def links_remove(relation, parent_id, child_id):
    """Unlink CHILD_ID from PARENT_ID (no-op if not linked)"""
    links.RELATIONS[relation].unlink(parent_id, child_id)
    click.echo(f"✓ Unlinked {relation}: {parent_id} -> {child_id}")


@links_group.command('list')
@click.argument('relation', type=_RELATION_CHOICE)
@click.argument('record_id', type=int)
@click.option('--by-child', is_flag=True, help='RECORD_ID is a child; list its parents')
@log_call
def links_list(relation, record_id, by_child):
    """List the ids linked to RECORD_ID"""
    rel = links.RELATIONS[relation]
    ids = rel.list_by_child(record_id) if by_child else rel.list_by_parent(record_id)
    if not ids:
        click.echo("No links.")
        return
    click.echo(', '.join(str(i) for i in ids))


@links_group.command('sync')
@click.argument('relation', type=_RELATION_CHOICE)
@click.argument('parent_id', type=int)
@click.argument('child_ids', default='')
@_reports_errors
@log_call
def links_sync(relation, parent_id, child_ids):
    """Make PARENT_ID's links exactly CHILD_IDS (comma-separated; empty clears)"""
    added, removed = links.sync_links(links.RELATIONS[relation], parent_id, _parse_ids(child_ids))
    if not added and not removed:
        click.echo("Links already up to date.")
        return
    click.echo(f"✓ {relation} for #{parent_id}: added {added or 'none'}, removed {removed or 'none'}")


# =============================================================================
# DASHBOARD COMMANDS
# =============================================================================

@cli.command('actions')
@click.option('--today', help='Override today (YYYY-MM-DD)')
@log_call
def actions(today):
    """What needs attention: overdue tasks, follow-ups, stale outreach"""
    items = dashboard.get_action_items(today=today)

    if not items.total():
        click.echo("Nothing needs attention. You're all caught up! ✓")
        return

    if items.overdue_tasks:
        click.echo(f"\n⚠️  {len(items.overdue_tasks)} overdue tasks:")
        for t in items.overdue_tasks:
            click.echo(f"  #{t.id:<5} {t.title[:50]:<52} due {t.due_date}  [{t.priority}]")

    if items.follow_ups_due:
        click.echo(f"\n📬 {len(items.follow_ups_due)} follow-ups due:")
        for o in items.follow_ups_due:
            click.echo(f"  #{o.id:<5} {o.subject[:50]:<52} follow up {o.follow_up_date}")

    if items.stale_outreach:
        click.echo(f"\n💤 {len(items.stale_outreach)} awaiting response for over a week:")
        for o in items.stale_outreach:
            click.echo(f"  #{o.id:<5} {o.subject[:50]:<52} sent {o.date}")

    if items.venues_needing_outreach:
        click.echo(f"\n🎯 {len(items.venues_needing_outreach)} venues to contact:")
        for v in items.venues_needing_outreach[:20]:
            click.echo(f"  #{v.id:<5} {v.name[:50]}")
        if len(items.venues_needing_outreach) > 20:
            click.echo(f"  ... and {len(items.venues_needing_outreach) - 20} more")

    click.echo()


@cli.command('pipeline')
@log_call
def pipeline():
    """Counts by status for venues, projects, tasks and outreach"""
    summary = dashboard.get_pipeline_summary()

    for section in ('venues', 'projects', 'tasks', 'outreach'):
        data = summary[section]
        click.echo(f"\n{section.upper()} ({data['total']})")
        for status, count in sorted(data['by_status'].items()):
            click.echo(f"  {status:<20} {count}")
    click.echo(f"\nCONTACTS ({summary['contacts']['total']})\n")


@cli.command('recent')
@click.option('--limit', type=int, help='Max items (default: RECENT_ACTIVITY_LIMIT)')
@log_call
def recent(limit):
    """Recent outreach, completed tasks and new venues"""
    items = dashboard.merge_activity(dashboard.get_recent_activity(limit), limit)

    if not items:
        click.echo("No activity yet.")
        return

    for item in items:
        when = item.created_at.strftime('%Y-%m-%d %H:%M') if item.created_at else ''
        click.echo(f"{when:<17} {item.kind:<9} #{item.id:<5} {item.title[:45]:<47} {item.status or ''}")


@cli.command('search')
@click.argument('text')
@click.option('--limit', default=5, help='Max hits per type (default: 5)')
@log_call
def search(text, limit):
    """Search venues, projects, people, tasks and outreach"""
    results = crm.global_search(text, limit_per_type=limit)

    if not results:
        click.echo("No matches." if len(text.strip()) >= 2 else "Type at least 2 characters.")
        return

    for kind, hits in results.items():
        click.echo(f"\n{kind.upper()}")
        for hit in hits:
            click.echo(f"  #{hit['id']:<5} {(hit['title'] or '')[:45]:<47} {hit['context'] or ''}")
    click.echo()


# =============================================================================
# VENUE SCOUT
# =============================================================================

@cli.command('scout')
@click.option('--focus', help='City, region or keyword to focus the search on')
@click.option('--max-results', type=int, help='Max venues to add (default: SCOUT_MAX_RESULTS)')
@click.option('--model', type=click.Choice(AI_MODEL_CHOICES), default='claude',
              show_default=True, help='AI model for extraction')
@log_call
def scout(focus, max_results, model):
    """Search the web for open calls and add new venues for review"""
    try:
        from studiocrm.engine import venue_scout

        click.echo(f"\n🔭 Scouting venues{f' ({focus})' if focus else ''} [{model}]...\n")
        stats = venue_scout.scout_venues(search_focus=focus, max_results=max_results, model=model)

        click.echo(f"\n{'='*80}")
        click.echo("SCOUT COMPLETE")
        click.echo(f"{'='*80}")
        click.echo(f"Unique results evaluated: {stats['searched']}")
        click.echo(f"Inserted: {stats['inserted']}")
        click.echo(f"Skipped (existing or failed): {stats['skipped']}")
        if stats['inserted']:
            click.echo("\nNext: studiocrm venues list --category 'For Review'")
        click.echo()

    except ValueError as e:
        logger.warning(f"scout failed: {e}")
        click.echo(f"Error: {e}", err=True)
    except RuntimeError as e:
        logger.error(f"scout API error: {e}", exc_info=True)
        click.echo(f"API Error: {e}", err=True)


# =============================================================================
# MAINTENANCE
# =============================================================================

@cli.command('migrate')
@click.argument('which', type=click.Choice(['inline-contacts', 'projects', 'contacts', 'all']))
@log_call
def migrate(which):
    """Convert legacy data (inline venue contacts, single venue ids)"""
    from studiocrm.engine import migrations

    if which in ('inline-contacts', 'all'):
        result = migrations.migrate_inline_contacts()
        click.echo(f"✓ Inline contacts: {result['migrated']} migrated, {result['skipped']} skipped")
    if which in ('projects', 'all'):
        result = migrations.migrate_projects_to_multi_venue()
        click.echo(f"✓ Projects: {result['projects_processed']} processed, {result['backfilled']} backfilled")
    if which in ('contacts', 'all'):
        result = migrations.migrate_contacts_to_multi_venue()
        click.echo(f"✓ Contacts: {result['contacts_processed']} processed, {result['backfilled']} backfilled")


@cli.command('card')
@click.argument('kind', type=click.Choice(['venue', 'contact']))
@click.argument('record_id', type=int)
@_reports_errors
@log_call
def card(kind, record_id):
    """Create a Trello card for a venue or contact"""
    from studiocrm.engine import trello

    try:
        if kind == 'venue':
            name, description = trello.venue_card(crm.get_venue(record_id))
        else:
            name, description = trello.contact_card(crm.get_contact(record_id))
        result = trello.create_card(name, description)
    except RuntimeError as e:
        logger.error(f"card failed for {kind} {record_id}: {e}", exc_info=True)
        click.echo(f"API Error: {e}", err=True)
        return

    click.echo(f"✓ Card created: {result['url']}")


# =============================================================================
# MAIN
# =============================================================================

if __name__ == '__main__':
    cli()

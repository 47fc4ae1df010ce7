"""
Data Models
Dataclasses for all entities. These are pure Python objects, no database logic.

Dates that the dashboard compares (due_date, date, follow_up_date, ...) are
ISO 'YYYY-MM-DD' strings, never date objects: comparisons are lexicographic.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


# =============================================================================
# ENUMERATED VALUES
# =============================================================================

VENUE_STATUSES = ('Contacted', 'To Contact', 'Ignore', 'Previous Client')
VENUE_CATEGORIES = ('Ultimate Dream Goal', 'Accessible', 'Unconventional', 'For Review')

PERSON_TYPES = (
    'Venue Contact', 'Colleague', 'Artist', 'Client', 'Patron',
    'Customer', 'Agent', 'Vendor', 'Other',
)

PROJECT_STATUSES = ('Planning', 'In Progress', 'Completed', 'Cancelled')

TASK_STATUSES = ('To Do', 'In Progress', 'Completed', 'Cancelled')
TASK_PRIORITIES = ('Low', 'Medium', 'High', 'Urgent')

OUTREACH_METHODS = ('Email', 'Phone', 'In Person', 'Submission Form', 'Social Media', 'Other')
OUTREACH_DIRECTIONS = ('Outbound', 'Inbound')
OUTREACH_STATUSES = (
    'Sent', 'Awaiting Response', 'Responded', 'Follow Up Needed',
    'No Response', 'Declined', 'Accepted',
)


# =============================================================================
# VENUE
# =============================================================================

@dataclass
class Location:
    """One physical location of a venue."""
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    phone_number: Optional[str] = None

    def label(self) -> str:
        return ', '.join(p for p in (self.city, self.state, self.country) if p)


@dataclass
class InlineContact:
    """Legacy contact embedded in a venue row (pre-relational data)."""
    name: Optional[str] = None
    title: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class Venue:
    """Venue entity (gallery, festival, museum, residency program, ...)"""
    id: Optional[int] = None
    order_num: int = 0
    name: str = ''
    url: Optional[str] = None
    submission_form_url: Optional[str] = None
    locations: List[Location] = field(default_factory=list)
    contacts: List[InlineContact] = field(default_factory=list)
    contact_ids: List[int] = field(default_factory=list)
    status: str = 'To Contact'
    category: str = 'For Review'
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        # JSONB columns come back from the driver as plain dicts
        self.locations = [Location(**loc) if isinstance(loc, dict) else loc for loc in (self.locations or [])]
        self.contacts = [InlineContact(**c) if isinstance(c, dict) else c for c in (self.contacts or [])]
        self.contact_ids = list(self.contact_ids or [])


# =============================================================================
# PEOPLE
# =============================================================================

@dataclass
class Collaborator:
    """Someone the artist works with on projects (fabricator, musician, tech)."""
    id: Optional[int] = None
    name: str = ''
    url: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Contact:
    """A person: venue curator, client, patron, agent, ..."""
    id: Optional[int] = None
    name: str = ''
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    types: List[str] = field(default_factory=list)
    notes: Optional[str] = None
    venue_ids: Optional[List[int]] = None
    venue_id: Optional[int] = None  # legacy single venue, see engine.migrations
    collaborator_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.types = list(self.types or [])


# =============================================================================
# WORK
# =============================================================================

@dataclass
class Project:
    """A commission, show or installation."""
    id: Optional[int] = None
    name: str = ''
    venue_ids: Optional[List[int]] = None
    venue_id: Optional[int] = None  # legacy single venue, see engine.migrations
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    description: Optional[str] = None
    status: str = 'Planning'
    notes: Optional[str] = None
    budget: Optional[float] = None
    profit: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Task:
    """A to-do item, optionally linked to venues, projects and people."""
    id: Optional[int] = None
    title: str = ''
    description: Optional[str] = None
    status: str = 'To Do'
    priority: str = 'Medium'
    due_date: Optional[str] = None
    completed_date: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Outreach:
    """One piece of correspondence with a venue and/or person."""
    id: Optional[int] = None
    contact_id: Optional[int] = None
    venue_id: Optional[int] = None
    project_id: Optional[int] = None
    method: str = 'Email'
    direction: str = 'Outbound'
    date: str = ''
    subject: str = ''
    notes: Optional[str] = None
    status: str = 'Sent'
    follow_up_date: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# RELATIONS
# =============================================================================

@dataclass(frozen=True)
class Link:
    """One (parent, child) association of a many-to-many relation."""
    parent_id: int
    child_id: int

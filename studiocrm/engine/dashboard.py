"""
CRM Engine - Dashboard
Read-only rollups over the whole store, recomputed on every call.

The compute_* functions are pure and take entity lists; get_* wrappers fetch
from the store. All date comparisons are on ISO 'YYYY-MM-DD' strings.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional, Dict, Any

from studiocrm.config import config
from studiocrm.db.connection import get_db_cursor
from studiocrm.engine import crm
from studiocrm.models import Venue, Project, Task, Outreach, Contact

logger = logging.getLogger(__name__)

CLOSED_TASK_STATUSES = ('Completed', 'Cancelled')
CLOSED_OUTREACH_STATUSES = ('Responded', 'Declined', 'Accepted')


@dataclass
class ActionItems:
    overdue_tasks: List[Task] = field(default_factory=list)
    follow_ups_due: List[Outreach] = field(default_factory=list)
    stale_outreach: List[Outreach] = field(default_factory=list)
    venues_needing_outreach: List[Venue] = field(default_factory=list)

    def total(self) -> int:
        return (len(self.overdue_tasks) + len(self.follow_ups_due)
                + len(self.stale_outreach) + len(self.venues_needing_outreach))


@dataclass
class ActivityItem:
    """One row of the recent activity feed."""
    kind: str  # 'outreach' | 'task' | 'venue'
    id: int
    title: str
    status: Optional[str]
    created_at: Optional[datetime]


def _today() -> str:
    return date.today().isoformat()


def stale_cutoff(today: str, stale_days: int) -> str:
    """Calendar-day subtraction, returned as an ISO date string."""
    return (date.fromisoformat(today) - timedelta(days=stale_days)).isoformat()


def compute_action_items(
    tasks: List[Task],
    outreach: List[Outreach],
    venues: List[Venue],
    today: str,
    stale_days: int = 7,
) -> ActionItems:
    cutoff = stale_cutoff(today, stale_days)
    contacted_venue_ids = {o.venue_id for o in outreach if o.venue_id is not None}

    return ActionItems(
        overdue_tasks=[
            t for t in tasks
            if t.due_date and t.due_date < today and t.status not in CLOSED_TASK_STATUSES
        ],
        follow_ups_due=[
            o for o in outreach
            if o.follow_up_date and o.follow_up_date <= today
            and o.status not in CLOSED_OUTREACH_STATUSES
        ],
        stale_outreach=[
            o for o in outreach
            if o.status == 'Awaiting Response' and o.date < cutoff
        ],
        venues_needing_outreach=[
            v for v in venues
            if v.status == 'To Contact' and v.id not in contacted_venue_ids
        ],
    )


def _histogram(items, attr: str = 'status') -> Dict[str, Any]:
    return {
        'total': len(items),
        'by_status': dict(Counter(getattr(i, attr) for i in items)),
    }


def compute_pipeline_summary(
    venues: List[Venue],
    projects: List[Project],
    tasks: List[Task],
    outreach: List[Outreach],
    contacts: List[Contact],
) -> Dict[str, Dict[str, Any]]:
    return {
        'venues': _histogram(venues),
        'projects': _histogram(projects),
        'tasks': _histogram(tasks),
        'outreach': _histogram(outreach),
        'contacts': {'total': len(contacts)},
    }


def get_action_items(today: Optional[str] = None, stale_days: Optional[int] = None) -> ActionItems:
    today = today or _today()
    if stale_days is None:
        stale_days = config.STALE_OUTREACH_DAYS

    items = compute_action_items(
        crm.list_tasks(), crm.list_outreach(), crm.list_venues(), today, stale_days
    )
    logger.debug(f"Action items for {today}: {items.total()}")
    return items


def get_pipeline_summary() -> Dict[str, Dict[str, Any]]:
    return compute_pipeline_summary(
        crm.list_venues(), crm.list_projects(), crm.list_tasks(),
        crm.list_outreach(), crm.list_contacts(),
    )


def get_recent_activity(limit: Optional[int] = None) -> Dict[str, List[ActivityItem]]:
    """
    Latest outreach, completed tasks and venues, each capped at limit.
    Returns: {'outreach': [...], 'tasks': [...], 'venues': [...]}; see merge_activity().
    """
    if limit is None:
        limit = config.RECENT_ACTIVITY_LIMIT

    with get_db_cursor() as cur:
        cur.execute("""
            SELECT id, subject, status, created_at FROM outreach
            ORDER BY id DESC LIMIT %s
        """, (limit,))
        outreach = [
            ActivityItem('outreach', r['id'], r['subject'], r['status'], r['created_at'])
            for r in cur.fetchall()
        ]

        cur.execute("""
            SELECT id, title, status, created_at FROM tasks
            WHERE status = 'Completed'
            ORDER BY created_at DESC LIMIT %s
        """, (limit,))
        tasks = [
            ActivityItem('task', r['id'], r['title'], r['status'], r['created_at'])
            for r in cur.fetchall()
        ]

        cur.execute("""
            SELECT id, name, status, created_at FROM venues
            ORDER BY id DESC LIMIT %s
        """, (limit,))
        venues = [
            ActivityItem('venue', r['id'], r['name'], r['status'], r['created_at'])
            for r in cur.fetchall()
        ]

    return {'outreach': outreach, 'tasks': tasks, 'venues': venues}


def merge_activity(activity: Dict[str, List[ActivityItem]], limit: Optional[int] = None) -> List[ActivityItem]:
    """Flatten the per-kind feeds and sort newest first."""
    if limit is None:
        limit = config.RECENT_ACTIVITY_LIMIT

    items = [item for feed in activity.values() for item in feed]
    items.sort(key=lambda i: (i.created_at is not None, i.created_at or datetime.min), reverse=True)
    return items[:limit]

"""
Database schema for Studio CRM.

Raw DDL, applied in order by init_schema(). Statements are idempotent
(IF NOT EXISTS) so `studiocrm init-db` can be re-run safely.

No foreign keys: referential cleanup (cascades, array scrubbing) is done by
the engine inside the deleting transaction.
"""

import logging

from studiocrm.db.connection import get_db_cursor

logger = logging.getLogger(__name__)

TABLES = {
    "venues": """
        CREATE TABLE IF NOT EXISTS venues (
            id                    SERIAL PRIMARY KEY,
            order_num             INTEGER NOT NULL,
            name                  TEXT NOT NULL,
            url                   TEXT,
            submission_form_url   TEXT,
            locations             JSONB NOT NULL DEFAULT '[]'::jsonb,
            contacts              JSONB NOT NULL DEFAULT '[]'::jsonb,
            contact_ids           INTEGER[] NOT NULL DEFAULT '{}',
            status                TEXT NOT NULL,
            category              TEXT NOT NULL,
            notes                 TEXT,
            created_at            TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at            TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT venues_order_num_unique UNIQUE (order_num)
                DEFERRABLE INITIALLY DEFERRED
        )
    """,
    "collaborators": """
        CREATE TABLE IF NOT EXISTS collaborators (
            id          SERIAL PRIMARY KEY,
            name        TEXT NOT NULL,
            url         TEXT,
            email       TEXT,
            phone       TEXT,
            role        TEXT,
            notes       TEXT,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """,
    "contacts": """
        CREATE TABLE IF NOT EXISTS contacts (
            id               SERIAL PRIMARY KEY,
            name             TEXT NOT NULL,
            email            TEXT,
            phone            TEXT,
            role             TEXT,
            types            TEXT[] NOT NULL DEFAULT '{}',
            notes            TEXT,
            venue_ids        INTEGER[],
            venue_id         INTEGER,
            collaborator_id  INTEGER,
            created_at       TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at       TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """,
    "projects": """
        CREATE TABLE IF NOT EXISTS projects (
            id           SERIAL PRIMARY KEY,
            name         TEXT NOT NULL,
            venue_ids    INTEGER[],
            venue_id     INTEGER,
            start_date   TEXT,
            end_date     TEXT,
            description  TEXT,
            status       TEXT NOT NULL,
            notes        TEXT,
            budget       DOUBLE PRECISION,
            profit       DOUBLE PRECISION,
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """,
    "tasks": """
        CREATE TABLE IF NOT EXISTS tasks (
            id              SERIAL PRIMARY KEY,
            title           TEXT NOT NULL,
            description     TEXT,
            status          TEXT NOT NULL,
            priority        TEXT NOT NULL,
            due_date        TEXT,
            completed_date  TEXT,
            notes           TEXT,
            created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """,
    "outreach": """
        CREATE TABLE IF NOT EXISTS outreach (
            id              SERIAL PRIMARY KEY,
            contact_id      INTEGER,
            venue_id        INTEGER,
            project_id      INTEGER,
            method          TEXT NOT NULL,
            direction       TEXT NOT NULL,
            date            TEXT NOT NULL,
            subject         TEXT NOT NULL,
            notes           TEXT,
            status          TEXT NOT NULL,
            follow_up_date  TEXT,
            created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """,
    "project_collaborators": """
        CREATE TABLE IF NOT EXISTS project_collaborators (
            id               SERIAL PRIMARY KEY,
            project_id       INTEGER NOT NULL,
            collaborator_id  INTEGER NOT NULL,
            created_at       TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            UNIQUE (project_id, collaborator_id)
        )
    """,
    "project_contacts": """
        CREATE TABLE IF NOT EXISTS project_contacts (
            id          SERIAL PRIMARY KEY,
            project_id  INTEGER NOT NULL,
            contact_id  INTEGER NOT NULL,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            UNIQUE (project_id, contact_id)
        )
    """,
    "task_venues": """
        CREATE TABLE IF NOT EXISTS task_venues (
            id          SERIAL PRIMARY KEY,
            task_id     INTEGER NOT NULL,
            venue_id    INTEGER NOT NULL,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            UNIQUE (task_id, venue_id)
        )
    """,
    "task_projects": """
        CREATE TABLE IF NOT EXISTS task_projects (
            id          SERIAL PRIMARY KEY,
            task_id     INTEGER NOT NULL,
            project_id  INTEGER NOT NULL,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            UNIQUE (task_id, project_id)
        )
    """,
    "task_contacts": """
        CREATE TABLE IF NOT EXISTS task_contacts (
            id          SERIAL PRIMARY KEY,
            task_id     INTEGER NOT NULL,
            contact_id  INTEGER NOT NULL,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            UNIQUE (task_id, contact_id)
        )
    """,
}

# Secondary indexes mirror the lookups the engine performs
INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_contacts_collaborator ON contacts (collaborator_id)",
    "CREATE INDEX IF NOT EXISTS idx_contacts_venue_ids ON contacts USING GIN (venue_ids)",
    "CREATE INDEX IF NOT EXISTS idx_projects_venue_ids ON projects USING GIN (venue_ids)",
    "CREATE INDEX IF NOT EXISTS idx_venues_contact_ids ON venues USING GIN (contact_ids)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks (status)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_due_date ON tasks (due_date)",
    "CREATE INDEX IF NOT EXISTS idx_outreach_venue ON outreach (venue_id)",
    "CREATE INDEX IF NOT EXISTS idx_outreach_contact ON outreach (contact_id)",
    "CREATE INDEX IF NOT EXISTS idx_outreach_date ON outreach (date)",
    "CREATE INDEX IF NOT EXISTS idx_outreach_status ON outreach (status)",
    "CREATE INDEX IF NOT EXISTS idx_outreach_follow_up ON outreach (follow_up_date)",
    "CREATE INDEX IF NOT EXISTS idx_project_collaborators_project ON project_collaborators (project_id)",
    "CREATE INDEX IF NOT EXISTS idx_project_collaborators_collaborator ON project_collaborators (collaborator_id)",
    "CREATE INDEX IF NOT EXISTS idx_project_contacts_project ON project_contacts (project_id)",
    "CREATE INDEX IF NOT EXISTS idx_project_contacts_contact ON project_contacts (contact_id)",
    "CREATE INDEX IF NOT EXISTS idx_task_venues_task ON task_venues (task_id)",
    "CREATE INDEX IF NOT EXISTS idx_task_venues_venue ON task_venues (venue_id)",
    "CREATE INDEX IF NOT EXISTS idx_task_projects_task ON task_projects (task_id)",
    "CREATE INDEX IF NOT EXISTS idx_task_projects_project ON task_projects (project_id)",
    "CREATE INDEX IF NOT EXISTS idx_task_contacts_task ON task_contacts (task_id)",
    "CREATE INDEX IF NOT EXISTS idx_task_contacts_contact ON task_contacts (contact_id)",
]


def init_schema() -> int:
    """Create all tables and indexes. Returns the number of statements run."""
    statements = list(TABLES.values()) + INDEXES
    with get_db_cursor() as cur:
        for statement in statements:
            cur.execute(statement)
    logger.info(f"Schema initialised: {len(TABLES)} tables, {len(INDEXES)} indexes")
    return len(statements)

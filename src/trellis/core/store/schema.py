"""
SQLite schema for the trellis project/task store.

Schema Design:
- projects: one row per project
- project_members: ordered membership (position keeps insertion order)
- tasks: one row per task, referencing its project
- schema_info: version tracking for migrations

Timestamps are stored as ISO 8601 strings in UTC so that lexical
comparison in SQL matches chronological order.
"""

import sqlite3

# Schema version for migrations
SCHEMA_VERSION = 1

TASK_STATUSES = ["not_started", "in_progress", "completed"]
TASK_PRIORITIES = ["none", "low", "medium", "high"]
PROJECT_STATUSES = ["planning", "active", "completed", "archived"]
PROJECT_VISIBILITIES = ["private", "team", "public"]


SCHEMA_DDL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_info (
    version INTEGER PRIMARY KEY,
    applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    description TEXT
);

CREATE TABLE IF NOT EXISTS projects (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL DEFAULT '',
    description TEXT NOT NULL DEFAULT '',
    owner_id TEXT NOT NULL,
    visibility TEXT NOT NULL DEFAULT 'team'
        CHECK(visibility IN ('private', 'team', 'public')),
    status TEXT NOT NULL DEFAULT 'active'
        CHECK(status IN ('planning', 'active', 'completed', 'archived')),
    created_at TEXT,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS project_members (
    project_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    position INTEGER NOT NULL,

    FOREIGN KEY (project_id) REFERENCES projects(id) ON DELETE CASCADE,

    PRIMARY KEY (project_id, user_id)
);

CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    project_id TEXT NOT NULL,
    title TEXT NOT NULL DEFAULT '',
    description TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL DEFAULT 'not_started'
        CHECK(status IN ('not_started', 'in_progress', 'completed')),
    priority TEXT NOT NULL DEFAULT 'none'
        CHECK(priority IN ('none', 'low', 'medium', 'high')),
    assignee_id TEXT,
    due_date TEXT,
    sort_order INTEGER NOT NULL DEFAULT 0,
    created_at TEXT,
    updated_at TEXT,

    FOREIGN KEY (project_id) REFERENCES projects(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_projects_owner ON projects(owner_id);
CREATE INDEX IF NOT EXISTS idx_projects_visibility ON projects(visibility);
CREATE INDEX IF NOT EXISTS idx_members_user ON project_members(user_id);
CREATE INDEX IF NOT EXISTS idx_tasks_project ON tasks(project_id);
CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);
CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at);
CREATE INDEX IF NOT EXISTS idx_tasks_updated_at ON tasks(updated_at);
"""


def create_schema(conn: sqlite3.Connection) -> None:
    """
    Create the database schema.

    Idempotent - safe to call multiple times.

    Args:
        conn: SQLite database connection
    """
    conn.executescript(SCHEMA_DDL)

    conn.execute(
        """
        INSERT OR REPLACE INTO schema_info (version, description)
        VALUES (?, ?)
        """,
        (SCHEMA_VERSION, "Projects, memberships and tasks"),
    )

    conn.commit()


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    """
    Get the current schema version from the database.

    Returns:
        Current schema version, or None if schema_info table doesn't exist
    """
    try:
        cursor = conn.execute("SELECT MAX(version) AS version FROM schema_info")
        row = cursor.fetchone()
    except sqlite3.OperationalError:
        # schema_info table doesn't exist
        return None
    if row is None:
        return None
    value = row["version"] if isinstance(row, dict) else row[0]
    return int(value) if value is not None else None


def needs_migration(conn: sqlite3.Connection) -> bool:
    """Check if the database is missing the schema or is behind SCHEMA_VERSION."""
    current_version = get_schema_version(conn)
    if current_version is None:
        return True
    return current_version < SCHEMA_VERSION

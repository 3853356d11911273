"""
SQLite store backend.

Implements ProjectStore and TaskStore over a single SQLite database file.
The sqlite3 driver is blocking, so every store call runs its queries in a
worker thread via asyncio.to_thread, on a fresh connection that is closed
before the call returns.

Usage:
    stores = create_sqlite_stores(config)
    projects = await stores.projects.find_all(ProjectFilter(visible_to="u-1"))
"""

import asyncio
import logging
import sqlite3
from collections import Counter
from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

from trellis.core.errors import StoreError
from trellis.core.projects.models import Project
from trellis.core.store.backend import ProjectFilter, Stores, TaskFilter, register_store
from trellis.core.store.schema import create_schema, needs_migration
from trellis.core.tasks.models import StatusCount, Task

if TYPE_CHECKING:
    from trellis.core.config.models import TrellisConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Stay well below SQLITE_MAX_VARIABLE_NUMBER on older builds
_IN_CHUNK_SIZE = 500


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Row factory that returns rows as dictionaries."""
    fields = [column[0] for column in cursor.description]
    return dict(zip(fields, row))


def configure_connection(conn: sqlite3.Connection) -> None:
    """
    Configure a SQLite connection.

    Settings applied:
    - WAL mode: Better concurrency for reads/writes
    - Foreign keys: Enforce referential integrity
    - dict_factory: Enable dict-like row access
    """
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.row_factory = dict_factory


def init_db(db_path: Path | str) -> None:
    """
    Create the database file and schema if needed.

    Args:
        db_path: Path to the SQLite database file
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    try:
        configure_connection(conn)
        if needs_migration(conn):
            create_schema(conn)
    finally:
        conn.close()


@contextmanager
def get_connection(db_path: Path | str) -> Iterator[sqlite3.Connection]:
    """
    Get a database connection as a context manager.

    The connection is closed when the context exits. If an exception
    occurs, the transaction is rolled back.
    """
    conn = sqlite3.connect(str(db_path))
    configure_connection(conn)

    try:
        yield conn
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _chunks(values: Sequence[str], size: int = _IN_CHUNK_SIZE) -> Iterator[Sequence[str]]:
    for start in range(0, len(values), size):
        yield values[start : start + size]


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


def _to_db(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    # Fixed-width form so string comparison matches time order
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_db(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


class _SqliteBase:
    """Shared plumbing: thread offloading and driver error translation."""

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        init_db(self.db_path)

    async def _run(self, operation: str, fn: Callable[[sqlite3.Connection], T]) -> T:
        def work() -> T:
            with get_connection(self.db_path) as conn:
                return fn(conn)

        try:
            return await asyncio.to_thread(work)
        except sqlite3.Error as e:
            logger.error("SQLite %s failed on %s: %s", operation, self.db_path, e)
            raise StoreError(f"Database {operation} failed: {e}", operation=operation) from e


class SqliteProjectStore(_SqliteBase):
    """ProjectStore backed by the ``projects`` and ``project_members`` tables."""

    async def find_all(self, project_filter: ProjectFilter | None = None) -> list[Project]:
        project_filter = project_filter or ProjectFilter()

        def query(conn: sqlite3.Connection) -> list[Project]:
            if project_filter.is_unfiltered:
                rows = conn.execute("SELECT * FROM projects ORDER BY rowid").fetchall()
            else:
                # owner OR member OR public, evaluated as one predicate per row
                rows = conn.execute(
                    """
                    SELECT p.* FROM projects p
                    WHERE p.owner_id = ?
                       OR p.visibility = 'public'
                       OR EXISTS (
                           SELECT 1 FROM project_members m
                           WHERE m.project_id = p.id AND m.user_id = ?
                       )
                    ORDER BY p.rowid
                    """,
                    (project_filter.visible_to, project_filter.visible_to),
                ).fetchall()
            return self._hydrate(conn, rows)

        return await self._run("find_all", query)

    async def get(self, project_id: str) -> Project | None:
        def query(conn: sqlite3.Connection) -> Project | None:
            rows = conn.execute("SELECT * FROM projects WHERE id = ?", (project_id,)).fetchall()
            projects = self._hydrate(conn, rows)
            return projects[0] if projects else None

        return await self._run("get", query)

    async def save(self, project: Project) -> Project:
        def write(conn: sqlite3.Connection) -> Project:
            conn.execute(
                """
                INSERT INTO projects
                    (id, name, description, owner_id, visibility, status, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    description = excluded.description,
                    owner_id = excluded.owner_id,
                    visibility = excluded.visibility,
                    status = excluded.status,
                    created_at = excluded.created_at,
                    updated_at = excluded.updated_at
                """,
                (
                    project.id,
                    project.name,
                    project.description,
                    project.owner_id,
                    project.visibility.value,
                    project.status.value,
                    _to_db(project.created_at),
                    _to_db(project.updated_at),
                ),
            )
            conn.execute("DELETE FROM project_members WHERE project_id = ?", (project.id,))
            conn.executemany(
                "INSERT INTO project_members (project_id, user_id, position) VALUES (?, ?, ?)",
                [(project.id, user_id, pos) for pos, user_id in enumerate(project.members)],
            )
            conn.commit()
            return project

        return await self._run("save", write)

    async def delete(self, project_id: str) -> bool:
        def write(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
            conn.commit()
            return cursor.rowcount > 0

        return await self._run("delete", write)

    @staticmethod
    def _hydrate(conn: sqlite3.Connection, rows: list[dict[str, Any]]) -> list[Project]:
        ids = [row["id"] for row in rows]
        members: dict[str, list[str]] = {pid: [] for pid in ids}
        for chunk in _chunks(ids):
            member_rows = conn.execute(
                f"""
                SELECT project_id, user_id FROM project_members
                WHERE project_id IN ({_placeholders(len(chunk))})
                ORDER BY project_id, position
                """,
                tuple(chunk),
            ).fetchall()
            for m in member_rows:
                members[m["project_id"]].append(m["user_id"])

        return [
            Project(
                id=row["id"],
                name=row["name"],
                description=row["description"],
                owner_id=row["owner_id"],
                members=members[row["id"]],
                visibility=row["visibility"],
                status=row["status"],
                created_at=_from_db(row["created_at"]),
                updated_at=_from_db(row["updated_at"]),
            )
            for row in rows
        ]


class SqliteTaskStore(_SqliteBase):
    """TaskStore backed by the ``tasks`` table."""

    async def find_all(self, task_filter: TaskFilter | None = None) -> list[Task]:
        task_filter = task_filter or TaskFilter()
        if task_filter.project_ids is not None and not task_filter.project_ids:
            return []

        clauses: list[str] = []
        params: list[Any] = []
        if task_filter.status is not None:
            clauses.append("status = ?")
            params.append(task_filter.status.value)
        if task_filter.created_after is not None:
            clauses.append("created_at >= ?")
            params.append(_to_db(task_filter.created_after))
        if task_filter.updated_after is not None:
            clauses.append("updated_at >= ?")
            params.append(_to_db(task_filter.updated_after))

        def query(conn: sqlite3.Connection) -> list[Task]:
            if task_filter.project_ids is None:
                where = " AND ".join(clauses) or "1 = 1"
                rows = conn.execute(
                    f"SELECT * FROM tasks WHERE {where} ORDER BY sort_order, rowid",
                    tuple(params),
                ).fetchall()
                return [self._to_task(row) for row in rows]

            tasks: list[Task] = []
            for chunk in _chunks(task_filter.project_ids):
                where = " AND ".join(
                    [f"project_id IN ({_placeholders(len(chunk))})", *clauses]
                )
                rows = conn.execute(
                    f"SELECT * FROM tasks WHERE {where} ORDER BY sort_order, rowid",
                    (*chunk, *params),
                ).fetchall()
                tasks.extend(self._to_task(row) for row in rows)
            return tasks

        return await self._run("find_all", query)

    async def get_aggregated_status_counts(
        self, project_ids: Iterable[str]
    ) -> list[StatusCount]:
        ids = list(dict.fromkeys(project_ids))
        if not ids:
            return []

        def query(conn: sqlite3.Connection) -> list[StatusCount]:
            counts: Counter[str] = Counter()
            for chunk in _chunks(ids):
                rows = conn.execute(
                    f"""
                    SELECT status, COUNT(*) AS count FROM tasks
                    WHERE project_id IN ({_placeholders(len(chunk))})
                    GROUP BY status
                    """,
                    tuple(chunk),
                ).fetchall()
                for row in rows:
                    counts[row["status"]] += row["count"]
            return [StatusCount(status=status, count=count) for status, count in counts.items()]

        return await self._run("get_aggregated_status_counts", query)

    async def get(self, task_id: str) -> Task | None:
        def query(conn: sqlite3.Connection) -> Task | None:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
            return self._to_task(row) if row else None

        return await self._run("get", query)

    async def save(self, task: Task) -> Task:
        def write(conn: sqlite3.Connection) -> Task:
            conn.execute(
                """
                INSERT OR REPLACE INTO tasks
                    (id, project_id, title, description, status, priority, assignee_id,
                     due_date, sort_order, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task.id,
                    task.project_id,
                    task.title,
                    task.description,
                    task.status.value,
                    task.priority.value,
                    task.assignee_id,
                    _to_db(task.due_date),
                    task.order,
                    _to_db(task.created_at),
                    _to_db(task.updated_at),
                ),
            )
            conn.commit()
            return task

        return await self._run("save", write)

    async def delete(self, task_id: str) -> bool:
        def write(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            conn.commit()
            return cursor.rowcount > 0

        return await self._run("delete", write)

    @staticmethod
    def _to_task(row: dict[str, Any]) -> Task:
        return Task(
            id=row["id"],
            project_id=row["project_id"],
            title=row["title"],
            description=row["description"],
            status=row["status"],
            priority=row["priority"],
            assignee_id=row["assignee_id"],
            due_date=_from_db(row["due_date"]),
            order=row["sort_order"],
            created_at=_from_db(row["created_at"]),
            updated_at=_from_db(row["updated_at"]),
        )


@register_store("sqlite")
def create_sqlite_stores(config: "TrellisConfig") -> Stores:
    """Create project and task stores sharing the configured database file."""
    db_path = config.store.sqlite_path
    return Stores(projects=SqliteProjectStore(db_path), tasks=SqliteTaskStore(db_path))

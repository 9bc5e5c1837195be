import json
import logging
import sqlite3
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from worklog.database.connection import DatabaseManager
from worklog.domain.enums import Category, UpdateStatus
from worklog.domain.models import Update, generate_id
from worklog.repositories.base import UpdateRepository, UpdateNotFoundError

logger = logging.getLogger(__name__)


def utc_now() -> str:
    """Sortable UTC timestamp in the same shape as SQLite's datetime('now')"""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S.%f")


class SQLiteUpdateRepository(UpdateRepository):
    """
    SQLite implementation of the UpdateRepository.

    Handles all database operations for updates using raw SQL.
    Tags are stored as a JSON array string.
    """

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def save(self, update: Update) -> Update:
        """Save a single update."""
        if update.id is None:
            update.id = generate_id()

        now = utc_now()
        update.created_at = update.created_at or now
        update.updated_at = update.updated_at or now

        with self.db.transaction() as conn:
            self._insert(conn, update, "INSERT")

        logger.debug("Saved %r as %s", update, update.id)
        return update

    def insert_if_absent(self, update: Update) -> bool:
        """Insert keeping the given ID, skipping IDs already stored."""
        if update.id is None:
            raise ValueError("Cannot restore update without ID")

        now = utc_now()
        update.created_at = update.created_at or now
        update.updated_at = update.updated_at or now

        with self.db.transaction() as conn:
            cursor = self._insert(conn, update, "INSERT OR IGNORE")
            return cursor.rowcount > 0

    def _insert(self, conn: sqlite3.Connection, update: Update, verb: str) -> sqlite3.Cursor:
        return conn.execute(
            f"""
            {verb} INTO updates (
                id, title, description, date, category, tags, status,
                is_auto_categorized, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                update.id,
                update.title,
                update.description,
                update.date.isoformat(),
                update.category.value,
                json.dumps(update.tags or []),
                update.status.value,
                1 if update.is_auto_categorized else 0,
                update.created_at,
                update.updated_at,
            ),
        )

    def get_by_id(self, update_id: str) -> Optional[Update]:
        """Retrieve an update by ID, or None if it doesn't exist"""
        conn = self.db.get_connection()
        cursor = conn.execute(
            "SELECT * FROM updates WHERE id = ?",
            (update_id,)
        )
        row = cursor.fetchone()

        if row is None:
            return None

        return self._row_to_update(row)

    def get_all(
            self,
            date_from: Optional[date] = None,
            date_to: Optional[date] = None,
            category: Optional[Category] = None,
            tag: Optional[str] = None,
            search: Optional[str] = None,
    ) -> List[Update]:
        """Retrieve updates with optional filtering."""
        query = "SELECT * FROM updates WHERE 1=1"
        params = []

        if date_from:
            query += " AND date >= ?"
            params.append(date_from.isoformat())

        if date_to:
            query += " AND date <= ?"
            params.append(date_to.isoformat())

        if category:
            query += " AND category = ?"
            params.append(category.value)

        if tag:
            # Tags are a JSON array, so match the quoted element
            query += " AND tags LIKE ?"
            params.append(f"%{json.dumps(tag)}%")

        if search:
            query += " AND (title LIKE ? OR description LIKE ?)"
            params.extend([f"%{search}%", f"%{search}%"])

        query += " ORDER BY date DESC, created_at DESC"

        conn = self.db.get_connection()
        cursor = conn.execute(query, params)
        rows = cursor.fetchall()

        return [self._row_to_update(row) for row in rows]

    def update(self, update: Update) -> Update:
        """Update an existing update."""
        if update.id is None:
            raise ValueError("Cannot update an update without ID")

        with self.db.transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE updates
                SET title = ?, description = ?, date = ?, category = ?,
                    tags = ?, status = ?, is_auto_categorized = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    update.title,
                    update.description,
                    update.date.isoformat(),
                    update.category.value,
                    json.dumps(update.tags or []),
                    update.status.value,
                    1 if update.is_auto_categorized else 0,
                    utc_now(),
                    update.id,
                )
            )

            if cursor.rowcount == 0:
                raise UpdateNotFoundError(
                    f"Update with ID {update.id} not found"
                )

        return self.get_by_id(update.id)

    def delete(self, update_id: str) -> bool:
        """Delete an update by ID."""
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM updates WHERE id = ?",
                (update_id,)
            )
            return cursor.rowcount > 0

    def exists(self, update_id: str) -> bool:
        conn = self.db.get_connection()
        cursor = conn.execute(
            "SELECT 1 FROM updates WHERE id = ?",
            (update_id,),
        )
        return cursor.fetchone() is not None

    def count_by_category(self) -> Dict[str, int]:
        conn = self.db.get_connection()
        cursor = conn.execute(
            "SELECT category, COUNT(*) AS count FROM updates GROUP BY category"
        )
        return {row["category"]: row["count"] for row in cursor.fetchall()}

    def _row_to_update(self, row: sqlite3.Row) -> Update:
        """Convert database row to Update object."""
        return Update(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            date=date.fromisoformat(row["date"]),
            category=_parse_category(row["category"]),
            tags=json.loads(row["tags"] or "[]"),
            status=_parse_status(row["status"]),
            is_auto_categorized=bool(row["is_auto_categorized"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


def _parse_category(value: Optional[str]) -> Category:
    # Rows restored from older backups may carry labels we no longer know
    try:
        return Category(value)
    except ValueError:
        return Category.OTHER


def _parse_status(value: Optional[str]) -> UpdateStatus:
    try:
        return UpdateStatus(value)
    except ValueError:
        return UpdateStatus.COMPLETED

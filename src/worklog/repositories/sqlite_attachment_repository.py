import sqlite3
from typing import Dict, Iterable, List, Optional

from worklog.database.connection import DatabaseManager
from worklog.domain.enums import AttachmentType
from worklog.domain.models import Attachment, generate_id
from worklog.repositories.base import AttachmentRepository
from worklog.repositories.sqlite_update_repository import utc_now


class SQLiteAttachmentRepository(AttachmentRepository):
    """
    SQLite implementation of the AttachmentRepository.

    Rows are removed automatically when their update is deleted
    (ON DELETE CASCADE), but stored files are not: that is the
    caller's job.
    """

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def save(self, attachment: Attachment) -> Attachment:
        """Save a single attachment."""
        if attachment.id is None:
            attachment.id = generate_id()
        attachment.created_at = attachment.created_at or utc_now()

        with self.db.transaction() as conn:
            self._insert(conn, attachment, "INSERT")

        return attachment

    def insert_if_absent(self, attachment: Attachment) -> bool:
        if attachment.id is None:
            raise ValueError("Cannot restore attachment without ID")
        attachment.created_at = attachment.created_at or utc_now()

        with self.db.transaction() as conn:
            cursor = self._insert(conn, attachment, "INSERT OR IGNORE")
            return cursor.rowcount > 0

    def _insert(self, conn: sqlite3.Connection, attachment: Attachment, verb: str) -> sqlite3.Cursor:
        return conn.execute(
            f"""
            {verb} INTO attachments (
                id, update_id, type, filename, filepath, url, label,
                before_path, after_path, sort_order, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                attachment.id,
                attachment.update_id,
                attachment.type.value,
                attachment.filename,
                attachment.filepath,
                attachment.url,
                attachment.label,
                attachment.before_path,
                attachment.after_path,
                attachment.sort_order,
                attachment.created_at,
            ),
        )

    def get_by_id(self, attachment_id: str) -> Optional[Attachment]:
        conn = self.db.get_connection()
        cursor = conn.execute(
            "SELECT * FROM attachments WHERE id = ?",
            (attachment_id,)
        )
        row = cursor.fetchone()

        if row is None:
            return None

        return self._row_to_attachment(row)

    def get_for_updates(self, update_ids: Iterable[str]) -> Dict[str, List[Attachment]]:
        """Batch-load attachments with a single IN query."""
        ids = list(update_ids)
        if not ids:
            return {}

        placeholders = ",".join("?" for _ in ids)
        conn = self.db.get_connection()
        cursor = conn.execute(
            f"SELECT * FROM attachments WHERE update_id IN ({placeholders}) "
            "ORDER BY sort_order, created_at",
            ids,
        )

        attachment_map: Dict[str, List[Attachment]] = {}
        for row in cursor.fetchall():
            attachment = self._row_to_attachment(row)
            attachment_map.setdefault(attachment.update_id, []).append(attachment)

        return attachment_map

    def get_all(self) -> List[Attachment]:
        conn = self.db.get_connection()
        cursor = conn.execute(
            "SELECT * FROM attachments ORDER BY update_id, sort_order, created_at"
        )
        return [self._row_to_attachment(row) for row in cursor.fetchall()]

    def delete(self, attachment_id: str) -> bool:
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM attachments WHERE id = ?",
                (attachment_id,)
            )
            return cursor.rowcount > 0

    def _row_to_attachment(self, row: sqlite3.Row) -> Attachment:
        """Convert database row to Attachment object."""
        return Attachment(
            id=row["id"],
            update_id=row["update_id"],
            type=AttachmentType(row["type"]),
            filename=row["filename"],
            filepath=row["filepath"],
            url=row["url"],
            label=row["label"],
            before_path=row["before_path"],
            after_path=row["after_path"],
            sort_order=row["sort_order"] or 0,
            created_at=row["created_at"],
        )

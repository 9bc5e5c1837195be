import base64
import binascii
import json
import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from worklog.database.connection import DatabaseManager
from worklog.domain.enums import AttachmentType
from worklog.domain.models import Attachment, Update
from worklog.repositories.base import AttachmentRepository, UpdateRepository
from worklog.services.exceptions import ValidationError
from worklog.services.models import ImportResult
from worklog.services.update_service import parse_category, parse_date, parse_status
from worklog.storage.file_store import FileStore

logger = logging.getLogger(__name__)

EXPORT_VERSION = 1

# Attachment column -> key holding that file's base64 contents
FILE_FIELDS = {
    "filepath": "fileData",
    "before_path": "beforeData",
    "after_path": "afterData",
}


def default_export_filename(today: Optional[date] = None) -> str:
    """e.g. 'worklog-export-2026-02-08.json'"""
    today = today or date.today()
    return f"worklog-export-{today.isoformat()}.json"


class BackupService:
    """
    Export the whole work log to JSON and restore it again.

    The export holds raw rows plus every stored file as base64, so a
    single JSON file is a complete backup. Importing never overwrites:
    rows whose ID already exists are skipped, and restored files get
    fresh names in the file store.

    Usage:
        backup = BackupService(db, update_repo, attachment_repo, file_store)
        backup.export_to_file(Path("backup.json"))
        result = backup.import_from_file(Path("backup.json"))
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        update_repository: UpdateRepository,
        attachment_repository: AttachmentRepository,
        file_store: FileStore,
    ):
        self.db = db_manager
        self.update_repository = update_repository
        self.attachment_repository = attachment_repository
        self.file_store = file_store

    def export_data(self) -> Dict[str, Any]:
        """
        Build the export payload.

        Returns:
            {"version", "exportedAt", "updates", "attachments"}
        """
        updates = self.update_repository.get_all()
        attachments = self.attachment_repository.get_all()

        payload = {
            "version": EXPORT_VERSION,
            "exportedAt": datetime.now(timezone.utc).isoformat(),
            "updates": [self._update_to_row(u) for u in updates],
            "attachments": [self._attachment_to_row(a) for a in attachments],
        }

        logger.info("Exported %d updates and %d attachments", len(updates), len(attachments))
        return payload

    def export_to_file(self, path: Path) -> Path:
        """Write the export payload as JSON"""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.export_data(), f, indent=2)
        return path

    def import_data(self, payload: Any) -> ImportResult:
        """
        Restore a previously exported payload.

        Everything is inserted in one transaction.

        Args:
            payload: Parsed export JSON

        Returns:
            ImportResult with inserted/skipped counts

        Raises:
            ValidationError: If the payload isn't an export or a row is malformed
        """
        if not isinstance(payload, dict) or not isinstance(payload.get("updates"), list):
            raise ValidationError("Invalid import data format")

        attachment_rows = payload.get("attachments")
        if attachment_rows is None:
            attachment_rows = []
        elif not isinstance(attachment_rows, list):
            raise ValidationError("Invalid import data format: attachments must be a list")

        result = ImportResult()
        written: List[str] = []

        try:
            with self.db.transaction():
                for row in payload["updates"]:
                    if self.update_repository.insert_if_absent(self._row_to_update(row)):
                        result.updates_imported += 1
                    else:
                        result.updates_skipped += 1

                for row in attachment_rows:
                    update_id = row.get("update_id") if isinstance(row, dict) else None
                    if not update_id or not self.update_repository.exists(update_id):
                        logger.warning("Skipping attachment for unknown update %s", update_id)
                        result.attachments_skipped += 1
                        continue

                    if self.attachment_repository.get_by_id(row.get("id")) is not None:
                        result.attachments_skipped += 1
                        continue

                    attachment = self._row_to_attachment(row, written)
                    if self.attachment_repository.insert_if_absent(attachment):
                        result.attachments_imported += 1
                    else:
                        result.attachments_skipped += 1
        except Exception:
            # The rows were rolled back, so the files restored for them go too
            for name in written:
                self.file_store.delete(name)
            raise

        logger.info(
            "Import finished: %d updates, %d attachments",
            result.updates_imported,
            result.attachments_imported,
        )
        return result

    def import_from_file(self, path: Path) -> ImportResult:
        """
        Restore an export file.

        Raises:
            ValidationError: If the file isn't valid JSON or not an export
        """
        try:
            with open(path) as f:
                payload = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"{path} is not valid JSON: {e}") from e

        result = self.import_data(payload)
        result.filepath = str(path)
        return result

    def _update_to_row(self, update: Update) -> Dict[str, Any]:
        return {
            "id": update.id,
            "title": update.title,
            "description": update.description,
            "date": update.date.isoformat(),
            "category": update.category.value,
            "tags": json.dumps(update.tags),
            "status": update.status.value,
            "is_auto_categorized": 1 if update.is_auto_categorized else 0,
            "created_at": update.created_at,
            "updated_at": update.updated_at,
        }

    def _attachment_to_row(self, attachment: Attachment) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            "id": attachment.id,
            "update_id": attachment.update_id,
            "type": attachment.type.value,
            "filename": attachment.filename,
            "filepath": attachment.filepath,
            "url": attachment.url,
            "label": attachment.label,
            "before_path": attachment.before_path,
            "after_path": attachment.after_path,
            "sort_order": attachment.sort_order,
            "created_at": attachment.created_at,
        }

        for column, data_key in FILE_FIELDS.items():
            name = row[column]
            if not name:
                continue
            data = self.file_store.read_bytes(name)
            if data is not None:
                row[data_key] = base64.b64encode(data).decode("ascii")

        return row

    def _row_to_update(self, row: Any) -> Update:
        if not isinstance(row, dict) or not row.get("id") or not row.get("title") or not row.get("date"):
            raise ValidationError(f"Update rows need id, title and date: {row!r}")

        return Update(
            id=row["id"],
            title=row["title"],
            description=row.get("description"),
            date=parse_date(row["date"]),
            category=parse_category(row.get("category") or "other"),
            tags=_parse_tags(row.get("tags")),
            status=parse_status(row.get("status") or "completed"),
            is_auto_categorized=bool(row.get("is_auto_categorized", 1)),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def _row_to_attachment(self, row: Dict[str, Any], written: List[str]) -> Attachment:
        """
        Build an attachment from an export row, restoring its embedded files.

        Every stored name must be a bare file name, since the file store
        only ever resolves names inside its own directory. Names of files
        written here are appended to `written`.
        """
        if not row.get("id") or not row.get("type"):
            raise ValidationError(f"Attachment rows need id and type: {row!r}")
        try:
            attachment_type = AttachmentType(row["type"])
        except ValueError:
            raise ValidationError(f"Unknown attachment type '{row['type']}'") from None

        for column in FILE_FIELDS:
            name = row.get(column)
            if name is None:
                continue
            if not isinstance(name, str):
                raise ValidationError(f"Invalid {column} in attachment {row['id']}: {name!r}")
            try:
                self.file_store.path_for(name)
            except ValueError as e:
                raise ValidationError(f"Invalid {column} in attachment {row['id']}: {name!r}") from e

        restored = {}
        for column, data_key in FILE_FIELDS.items():
            restored[column] = row.get(column)
            if row.get(data_key) and row.get(column):
                restored[column] = self._restore_file(row[data_key], row[column])
                written.append(restored[column])

        return Attachment(
            id=row["id"],
            update_id=row["update_id"],
            type=attachment_type,
            filename=row.get("filename"),
            filepath=restored["filepath"],
            url=row.get("url"),
            label=row.get("label"),
            before_path=restored["before_path"],
            after_path=restored["after_path"],
            sort_order=row.get("sort_order") or 0,
            created_at=row.get("created_at"),
        )

    def _restore_file(self, encoded: str, original_name: str) -> str:
        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(f"Corrupt file data for {original_name}") from e
        return self.file_store.save_bytes(data, original_name)


def _parse_tags(value: Any) -> List[str]:
    # Exports store tags as a JSON string, but accept a plain list too
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return [str(t) for t in value]
    try:
        tags = json.loads(value)
    except (TypeError, json.JSONDecodeError):
        raise ValidationError(f"Invalid tags: {value!r}") from None
    if not isinstance(tags, list):
        raise ValidationError(f"Invalid tags: {value!r}")
    return [str(t) for t in tags]

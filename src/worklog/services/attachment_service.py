import logging
import mimetypes
from pathlib import Path
from typing import Optional

from worklog.config.settings import DEFAULT_MAX_UPLOAD_BYTES
from worklog.domain.enums import AttachmentType
from worklog.domain.models import Attachment
from worklog.repositories.base import (
    AttachmentNotFoundError,
    AttachmentRepository,
    UpdateNotFoundError,
    UpdateRepository,
)
from worklog.services.exceptions import ValidationError
from worklog.storage.file_store import FileStore

logger = logging.getLogger(__name__)


class AttachmentService:
    """
    Manage images, links and before/after comparisons on updates.

    Image files are validated (image MIME type, size limit) before they
    are copied into the file store.
    """

    def __init__(
        self,
        repository: AttachmentRepository,
        update_repository: UpdateRepository,
        file_store: FileStore,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    ):
        self.repository = repository
        self.update_repository = update_repository
        self.file_store = file_store
        self.max_upload_bytes = max_upload_bytes

    def add_image(
        self,
        update_id: str,
        source: Path,
        label: Optional[str] = None,
    ) -> Attachment:
        """
        Attach a single image to an update.

        Args:
            update_id: Owning update
            source: Image file to upload
            label: Optional caption

        Raises:
            UpdateNotFoundError: If the update doesn't exist
            ValidationError: If the file is missing, not an image or too big
        """
        self._require_update(update_id)
        self._validate_image(source)

        stored_name = self.file_store.save_file(source)
        attachment = self.repository.save(Attachment(
            update_id=update_id,
            type=AttachmentType.IMAGE,
            filename=source.name,
            filepath=stored_name,
            label=label or None,
        ))

        logger.info("Attached image %s to update %s", source.name, update_id)
        return attachment

    def add_before_after(
        self,
        update_id: str,
        before: Optional[Path],
        after: Optional[Path],
        label: Optional[str] = None,
    ) -> Attachment:
        """
        Attach a before/after image pair to an update.

        Raises:
            UpdateNotFoundError: If the update doesn't exist
            ValidationError: Unless both images are present and valid
        """
        self._require_update(update_id)
        if before is None or after is None:
            raise ValidationError("Both before and after images are required")
        self._validate_image(before)
        self._validate_image(after)

        before_name = self.file_store.save_file(before)
        after_name = self.file_store.save_file(after)
        attachment = self.repository.save(Attachment(
            update_id=update_id,
            type=AttachmentType.BEFORE_AFTER,
            before_path=before_name,
            after_path=after_name,
            label=label or None,
        ))

        logger.info("Attached before/after pair to update %s", update_id)
        return attachment

    def add_link(
        self,
        update_id: str,
        url: str,
        label: Optional[str] = None,
    ) -> Attachment:
        """
        Attach a URL to an update.

        Raises:
            UpdateNotFoundError: If the update doesn't exist
            ValidationError: If the URL is empty
        """
        self._require_update(update_id)
        if not url or not url.strip():
            raise ValidationError("URL is required")

        attachment = self.repository.save(Attachment(
            update_id=update_id,
            type=AttachmentType.LINK,
            url=url.strip(),
            label=label or None,
        ))

        logger.info("Attached link %s to update %s", url, update_id)
        return attachment

    def delete_attachment(self, attachment_id: str) -> None:
        """
        Remove an attachment and its stored files.

        Raises:
            AttachmentNotFoundError: If the attachment doesn't exist
        """
        attachment = self.repository.get_by_id(attachment_id)
        if attachment is None:
            raise AttachmentNotFoundError(f"Attachment not found: {attachment_id}")

        for name in attachment.stored_files:
            self.file_store.delete(name)

        self.repository.delete(attachment_id)
        logger.info("Deleted attachment %s", attachment_id)

    def _require_update(self, update_id: str) -> None:
        if not self.update_repository.exists(update_id):
            raise UpdateNotFoundError(f"Update not found: {update_id}")

    def _validate_image(self, source: Path) -> None:
        if not source.is_file():
            raise ValidationError(f"No such file: {source}")

        mime_type, _ = mimetypes.guess_type(source.name)
        if not mime_type or not mime_type.startswith("image/"):
            raise ValidationError(f"Only image files are allowed: {source.name}")

        size = source.stat().st_size
        if size > self.max_upload_bytes:
            raise ValidationError(
                f"{source.name} is {size} bytes, limit is {self.max_upload_bytes}"
            )

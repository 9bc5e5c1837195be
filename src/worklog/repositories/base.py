from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, Iterable, List, Optional

from worklog.domain.enums import Category
from worklog.domain.models import Attachment, Update

class UpdateNotFoundError(Exception):
    """Raised when an update cannot be found."""
    pass

class AttachmentNotFoundError(Exception):
    """Raised when an attachment cannot be found."""
    pass

class UpdateRepository(ABC):
    """
    Abstract repository for update persistence.

    The repository pattern abstracts the data access, making it easy
    to swap storage backends in the future.
    """

    @abstractmethod
    def save(self, update: Update) -> Update:
        """
        Save a new update to the repository.

        Args:
            update: Update to save. An ID is generated when missing.

        Returns:
            Update as stored, with ID and timestamps populated
        """
        pass

    @abstractmethod
    def insert_if_absent(self, update: Update) -> bool:
        """
        Insert an update keeping its ID and timestamps, unless the ID exists.

        Used when restoring a backup.

        Returns:
            True if a row was inserted
        """
        pass

    @abstractmethod
    def get_by_id(self, update_id: str) -> Optional[Update]:
        """
        Retrieve an update by ID.

        Args:
            update_id: Update ID

        Returns:
            Update if found, None otherwise
        """
        pass

    @abstractmethod
    def get_all(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category: Optional[Category] = None,
        tag: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Update]:
        """
        Retrieve updates with optional filtering, newest first.

        Args:
            date_from: Filter updates on or after this date
            date_to: Filter updates on or before this date
            category: Filter by category
            tag: Filter by tag membership
            search: Substring of the title or description

        Returns:
            List of matching updates
        """
        pass

    @abstractmethod
    def update(self, update: Update) -> Update:
        """
        Update an existing update.

        Args:
            update: Update with new values

        Returns:
            Updated update, re-read from storage

        Raises:
            UpdateNotFoundError: If the update doesn't exist
        """
        pass

    @abstractmethod
    def delete(self, update_id: str) -> bool:
        """
        Delete an update by ID. Its attachments go with it.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    def exists(self, update_id: str) -> bool:
        pass

    @abstractmethod
    def count_by_category(self) -> Dict[str, int]:
        """
        Count updates per stored category value.

        Returns:
            Mapping of category value to number of updates
        """
        pass


class AttachmentRepository(ABC):
    """Abstract repository for attachment persistence."""

    @abstractmethod
    def save(self, attachment: Attachment) -> Attachment:
        """
        Save a new attachment.

        Returns:
            Attachment as stored, with ID and created_at populated
        """
        pass

    @abstractmethod
    def insert_if_absent(self, attachment: Attachment) -> bool:
        """
        Insert an attachment keeping its ID, unless the ID exists.

        Returns:
            True if a row was inserted
        """
        pass

    @abstractmethod
    def get_by_id(self, attachment_id: str) -> Optional[Attachment]:
        pass

    @abstractmethod
    def get_for_updates(self, update_ids: Iterable[str]) -> Dict[str, List[Attachment]]:
        """
        Batch-load attachments for several updates.

        Args:
            update_ids: IDs of the owning updates

        Returns:
            Mapping of update ID to its attachments in sort order.
            Updates without attachments are absent from the mapping.
        """
        pass

    @abstractmethod
    def get_all(self) -> List[Attachment]:
        """All attachments, grouped by update and in sort order."""
        pass

    @abstractmethod
    def delete(self, attachment_id: str) -> bool:
        """
        Delete an attachment by ID.

        Returns:
            True if deleted, False if not found
        """
        pass

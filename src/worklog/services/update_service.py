import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from worklog.categorization import Categorizer, CategorizationResult
from worklog.categorization.categories import UNCATEGORIZED
from worklog.domain.enums import Category, UpdateStatus
from worklog.domain.models import Update
from worklog.repositories.base import (
    AttachmentRepository,
    UpdateNotFoundError,
    UpdateRepository,
)
from worklog.services.exceptions import ValidationError
from worklog.services.models import Stats, UpdateFilters, WeekGroup
from worklog.storage.file_store import FileStore

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "date", "category", "tags", "status")


def parse_date(value: date | str) -> date:
    """Accept a date or an ISO 'YYYY-MM-DD' string"""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date '{value}', expected YYYY-MM-DD") from None


def parse_category(value: Category | str) -> Category:
    if isinstance(value, Category):
        return value
    try:
        return Category(value)
    except ValueError:
        valid = ", ".join(c.value for c in Category)
        raise ValidationError(f"Unknown category '{value}' (valid: {valid})") from None


def parse_status(value: UpdateStatus | str) -> UpdateStatus:
    if isinstance(value, UpdateStatus):
        return value
    try:
        return UpdateStatus(value)
    except ValueError:
        valid = ", ".join(s.value for s in UpdateStatus)
        raise ValidationError(f"Unknown status '{value}' (valid: {valid})") from None


def clean_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """Strip whitespace and drop empty or repeated tags, keeping order"""
    cleaned: List[str] = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


class UpdateService:
    """
    Work-log operations: create, edit, query, delete and summarise updates.

    New updates without an explicit category (or with 'other') are run
    through the categorizer, the same one the edit form uses for its
    live suggestion.
    """

    def __init__(
        self,
        repository: UpdateRepository,
        attachment_repository: Optional[AttachmentRepository] = None,
        file_store: Optional[FileStore] = None,
        categorizer: Optional[Categorizer] = None,
    ):
        self.repository = repository
        self.attachment_repository = attachment_repository
        self.file_store = file_store
        self._categorizer: Optional[Categorizer] = categorizer

    @property
    def categorizer(self) -> Categorizer:
        """Lazy-load categorizer"""
        if self._categorizer is None:
            self._categorizer = Categorizer()
        return self._categorizer

    def suggest_category(
        self,
        title: Optional[str],
        description: Optional[str] = None,
    ) -> CategorizationResult:
        """Categorize text without storing anything."""
        return self.categorizer.categorize(title, description)

    def create_update(
        self,
        title: str,
        date: date | str,
        description: Optional[str] = None,
        category: Optional[Category | str] = None,
        tags: Optional[Iterable[str]] = None,
        status: Optional[UpdateStatus | str] = None,
    ) -> Update:
        """
        Create and store a new update.

        Args:
            title: Short summary, required
            date: Day the work happened (date or 'YYYY-MM-DD'), required
            description: Optional longer text
            category: Explicit category. None or 'other' means auto-detect
            tags: Optional free-form tags
            status: Defaults to 'completed'

        Returns:
            The stored update

        Raises:
            ValidationError: On missing title/date or unknown labels

        Example:
            ```
            update = service.create_update("Fixed login crash", "2026-02-03")
            update.category            # Category.BUG_FIX
            update.is_auto_categorized # True
            ```
        """
        if not title or not title.strip() or not date:
            raise ValidationError("Title and date are required")

        update_date = parse_date(date)
        final_category = parse_category(category) if category else UNCATEGORIZED
        is_auto_categorized = False

        if final_category == UNCATEGORIZED:
            result = self.categorizer.categorize(title, description)
            final_category = result.category
            is_auto_categorized = result.is_auto_categorized
            logger.debug(
                "Auto-categorized %r as %s (confidence %.2f)",
                title, result.category.value, result.confidence,
            )

        update = Update(
            title=title,
            date=update_date,
            description=description or None,
            category=final_category,
            tags=clean_tags(tags),
            status=parse_status(status) if status else UpdateStatus.COMPLETED,
            is_auto_categorized=is_auto_categorized,
        )

        saved = self.repository.save(update)
        logger.info("Created update %s (%s)", saved.id, saved.category.value)
        return saved

    def edit_update(self, update_id: str, **changes: Any) -> Update:
        """
        Change some fields of an existing update.

        Only the given fields change. Setting `category` marks the update
        as manually categorized, whatever the value.

        Args:
            update_id: ID of the update to edit
            **changes: Any of title, description, date, category, tags, status

        Returns:
            The updated update

        Raises:
            ValidationError: If nothing (or something unknown) is changed
            UpdateNotFoundError: If the update doesn't exist
        """
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot edit fields: {', '.join(sorted(unknown))}")
        if not changes:
            raise ValidationError("No fields to update")

        existing = self.repository.get_by_id(update_id)
        if existing is None:
            raise UpdateNotFoundError(f"Update not found: {update_id}")

        values: Dict[str, Any] = {}
        if "title" in changes:
            title = changes["title"]
            if not title or not title.strip():
                raise ValidationError("Title cannot be empty")
            values["title"] = title
        if "description" in changes:
            values["description"] = changes["description"] or None
        if "date" in changes:
            values["date"] = parse_date(changes["date"])
        if "category" in changes:
            values["category"] = parse_category(changes["category"])
            values["is_auto_categorized"] = False
        if "tags" in changes:
            values["tags"] = clean_tags(changes["tags"])
        if "status" in changes:
            values["status"] = parse_status(changes["status"])

        updated = self.repository.update(replace(existing, **values))
        logger.info("Edited update %s: %s", update_id, ", ".join(sorted(changes)))
        return self._with_attachments([updated])[0]

    def get_update(self, update_id: str) -> Update:
        """
        Get a single update with its attachments.

        Raises:
            UpdateNotFoundError: If the update doesn't exist
        """
        update = self.repository.get_by_id(update_id)
        if update is None:
            raise UpdateNotFoundError(f"Update not found: {update_id}")
        return self._with_attachments([update])[0]

    def list_updates(self, filters: Optional[UpdateFilters] = None) -> List[Update]:
        """
        Query updates, newest first, with attachments loaded.

        Example:
            ### Docs written in February
            updates = service.list_updates(UpdateFilters(
                date_from=date(2026, 2, 1),
                date_to=date(2026, 2, 28),
                category=Category.DOCUMENTATION,
            ))
        """
        filters = filters or UpdateFilters()
        updates = self.repository.get_all(
            date_from=filters.date_from,
            date_to=filters.date_to,
            category=filters.category,
            tag=filters.tag,
            search=filters.search,
        )
        return self._with_attachments(updates)

    def delete_update(self, update_id: str) -> None:
        """
        Delete an update, its attachments and their stored files.

        Raises:
            UpdateNotFoundError: If the update doesn't exist
        """
        update = self.get_update(update_id)

        if not self.repository.delete(update_id):
            raise UpdateNotFoundError(f"Update not found: {update_id}")

        if self.file_store is not None:
            for attachment in update.attachments:
                for name in attachment.stored_files:
                    self.file_store.delete(name)

        logger.info("Deleted update %s with %d attachments", update_id, len(update.attachments))

    def get_stats(self) -> Stats:
        """Total number of updates and count per category"""
        by_category = self.repository.count_by_category()
        return Stats(total=sum(by_category.values()), by_category=by_category)

    def recategorize(self, overwrite: bool = False) -> int:
        """
        Re-run the categorizer over stored updates.

        Manually chosen categories are never changed.

        Args:
            overwrite: If True, also refresh updates that were already
                auto-categorized. If False, only 'other' updates are tried.

        Returns:
            Number of updates whose category changed
        """
        updates = self.repository.get_all()
        if not updates:
            return 0

        categorized = self.categorizer.categorize_many(updates, overwrite=overwrite)

        changed = 0
        for before, after in zip(updates, categorized):
            if (before.category, before.is_auto_categorized) != (after.category, after.is_auto_categorized):
                self.repository.update(after)
                changed += 1

        logger.info("Recategorized %d of %d updates", changed, len(updates))
        return changed

    @staticmethod
    def group_by_week(updates: Iterable[Update]) -> List[WeekGroup]:
        """
        Group updates by ISO week, most recent week first.

        Updates keep their relative order inside each group.
        """
        groups: Dict[str, WeekGroup] = {}

        for update in updates:
            key = update.week_key
            if key not in groups:
                monday = update.date - timedelta(days=update.date.isoweekday() - 1)
                groups[key] = WeekGroup(week_key=key, start_date=monday)
            groups[key].updates.append(update)

        return sorted(groups.values(), key=lambda g: g.week_key, reverse=True)

    def _with_attachments(self, updates: List[Update]) -> List[Update]:
        if self.attachment_repository is None or not updates:
            return updates

        attachment_map = self.attachment_repository.get_for_updates(u.id for u in updates)
        return [
            replace(u, attachments=attachment_map.get(u.id, []))
            for u in updates
        ]

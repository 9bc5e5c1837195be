"""
Service layer models - DTOs for service operations.

These models represent the results of service operations, not domain entities.
"""
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from worklog.domain.enums import Category
from worklog.domain.models import Update

@dataclass
class UpdateFilters:
    """Optional filters for listing updates. Unset fields don't filter."""
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    category: Optional[Category] = None
    tag: Optional[str] = None
    search: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not any((self.date_from, self.date_to, self.category, self.tag, self.search))


@dataclass
class Stats:
    """Totals for the sidebar: all updates and per-category counts"""
    total: int
    by_category: Dict[str, int] = field(default_factory=dict)

    @property
    def sorted_counts(self) -> List[Tuple[str, int]]:
        """Categories sorted by count (descending), then name"""
        return sorted(self.by_category.items(), key=lambda x: (-x[1], x[0]))


@dataclass
class WeekGroup:
    """
    Updates that fall in the same ISO week.

    Weeks run Monday to Sunday and are keyed like '2026-W06'.
    """
    week_key: str
    start_date: date
    updates: List[Update] = field(default_factory=list)

    @property
    def end_date(self) -> date:
        return self.start_date + timedelta(days=6)

    @property
    def label(self) -> str:
        """e.g. 'Feb 2 - Feb 8, 2026'"""
        start, end = self.start_date, self.end_date
        return f"{start:%b} {start.day} - {end:%b} {end.day}, {end.year}"

    @property
    def category_counts(self) -> Dict[Category, int]:
        return dict(Counter(u.category for u in self.updates))

    def __str__(self) -> str:
        return f"{self.label} ({len(self.updates)} updates)"


@dataclass
class ImportResult:
    """
    Result of restoring a backup.

    Counts only rows actually inserted; IDs already present are skipped.
    """
    updates_imported: int = 0
    attachments_imported: int = 0
    updates_skipped: int = 0
    attachments_skipped: int = 0
    filepath: str = ""

    @property
    def success(self) -> bool:
        """Import is successful if anything new was restored"""
        return self.updates_imported > 0 or self.attachments_imported > 0

    def __str__(self) -> str:
        "Human-readable summary"
        lines = [
            f"Import summary{f' for {self.filepath}' if self.filepath else ''}:",
            f" Updates imported: {self.updates_imported}",
            f" Attachments imported: {self.attachments_imported}",
        ]

        if self.updates_skipped or self.attachments_skipped:
            lines.append(
                f" Skipped (already present): {self.updates_skipped} updates, "
                f"{self.attachments_skipped} attachments"
            )

        return "\n".join(lines)

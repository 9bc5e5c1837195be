import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional
from worklog.domain.enums import AttachmentType, Category, UpdateStatus


def generate_id() -> str:
    """Opaque unique identifier for updates, attachments and stored files"""
    return uuid.uuid4().hex


@dataclass
class Attachment:
    """A file, link or before/after image pair attached to an update"""
    update_id: str
    type: AttachmentType
    filename: Optional[str] = None
    filepath: Optional[str] = None
    url: Optional[str] = None
    label: Optional[str] = None
    before_path: Optional[str] = None
    after_path: Optional[str] = None
    sort_order: int = 0
    created_at: Optional[str] = None
    id: Optional[str] = None

    @property
    def stored_files(self) -> List[str]:
        """Names of every file this attachment keeps in the file store"""
        return [
            name for name in (self.filepath, self.before_path, self.after_path)
            if name
        ]

    def __repr__(self):
        target = self.url or self.filename or self.label or ""
        return f"Attachment({self.type.value}, {target[:30]})"


@dataclass
class Update:
    """Core domain model representing a single work-log entry"""
    title: str
    date: date
    description: Optional[str] = None
    category: Category = Category.OTHER
    tags: List[str] = field(default_factory=list)
    status: UpdateStatus = UpdateStatus.COMPLETED
    is_auto_categorized: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    attachments: List[Attachment] = field(default_factory=list)
    id: Optional[str] = None

    @property
    def week_key(self) -> str:
        """ISO week identifier, e.g. '2026-W06'"""
        iso_year, iso_week, _ = self.date.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"

    def __repr__(self):
        return f"Update({self.date}, {self.title[:30]}, {self.category.value})"

from enum import Enum

class Category(Enum):
    """Classification tag applied to an update"""
    BUG_FIX = "bug_fix"
    DEVELOPMENT = "development"
    IMPROVEMENT = "improvement"
    DOCUMENTATION = "documentation"
    DEVOPS = "devops"
    OTHER = "other" # fallback


class UpdateStatus(Enum):
    """Where the work described by an update stands"""
    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    PLANNED = "planned"


class AttachmentType(Enum):
    IMAGE = "image"
    LINK = "link"
    BEFORE_AFTER = "before_after"

"""Display metadata for the fixed category set."""
from typing import Dict, List

from worklog.domain.enums import Category

UNCATEGORIZED = Category.OTHER

LABELS: Dict[Category, str] = {
    Category.BUG_FIX: "Bug Fix",
    Category.DEVELOPMENT: "Development",
    Category.IMPROVEMENT: "Improvement",
    Category.DOCUMENTATION: "Documentation",
    Category.DEVOPS: "DevOps",
    Category.OTHER: "Other",
}

# Rich style names used by the CLI
COLORS: Dict[Category, str] = {
    Category.BUG_FIX: "red",
    Category.DEVELOPMENT: "cyan",
    Category.IMPROVEMENT: "green",
    Category.DOCUMENTATION: "yellow",
    Category.DEVOPS: "dark_orange",
    Category.OTHER: "grey50",
}


def get_label(category: Category) -> str:
    """Human-readable label, falling back to 'Other'"""
    return LABELS.get(category, LABELS[UNCATEGORIZED])


def all_categories() -> List[Category]:
    return list(LABELS)

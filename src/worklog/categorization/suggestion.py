from typing import Optional

from worklog.categorization.base import CategorizationResult
from worklog.categorization.categories import UNCATEGORIZED
from worklog.categorization.categorizer import Categorizer, categorize
from worklog.domain.enums import Category


class CategorySuggestion:
    """
    Editing-session helper that keeps a live category suggestion.

    Every title/description change re-runs the categorizer until the user
    picks a category by hand; after that the manual choice sticks for the
    rest of the session.

    Usage:
        session = CategorySuggestion()
        session.update_text(title="Fix crash on save")
        session.category          # Category.BUG_FIX
        session.is_auto_detected  # True

        session.choose(Category.DOCUMENTATION)
        session.update_text(title="Deploy to AWS")
        session.category          # still Category.DOCUMENTATION
    """

    def __init__(
        self,
        category: Category = UNCATEGORIZED,
        categorizer: Optional[Categorizer] = None,
    ):
        self._categorizer = categorizer
        self._category = category
        self._result: Optional[CategorizationResult] = None
        self._manual = False
        self.title = ""
        self.description = ""

    @property
    def category(self) -> Category:
        return self._category

    @property
    def is_manual(self) -> bool:
        return self._manual

    @property
    def is_auto_detected(self) -> bool:
        """Whether the current category came from a confident suggestion"""
        return not self._manual and self._result is not None and self._result.is_auto_categorized

    @property
    def confidence(self) -> float:
        if self._manual or self._result is None:
            return 0.0
        return self._result.confidence

    def update_text(
        self,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Category:
        """
        Record a change to the title and/or description.

        Args:
            title: New title, or None to keep the current one
            description: New description, or None to keep the current one

        Returns:
            The category the form should display
        """
        if title is not None:
            self.title = title
        if description is not None:
            self.description = description

        if self._manual:
            return self._category

        if self._categorizer is None:
            self._result = categorize(self.title, self.description)
        else:
            self._result = self._categorizer.categorize(self.title, self.description)

        self._category = self._result.category
        return self._category

    def choose(self, category: Category) -> None:
        """Record an explicit user selection and stop suggesting."""
        self._manual = True
        self._category = category
        self._result = None

    def __repr__(self) -> str:
        source = "manual" if self._manual else "auto"
        return f"CategorySuggestion({self._category.value}, {source})"

from dataclasses import replace
from typing import List, Optional, Sequence

from worklog.categorization.base import CategorizationResult, CategorizationRule
from worklog.categorization.categories import UNCATEGORIZED
from worklog.categorization.rules import DEFAULT_RULES
from worklog.domain.models import Update

# Raw score that maps to full confidence
FULL_CONFIDENCE_SCORE = 4
MIN_CONFIDENCE = 0.25


class Categorizer:
    """
    Main engine for categorizing updates.

    Scores every rule of an immutable, ordered table and keeps the best:
    1. bug_fix
    2. devops
    3. documentation
    4. improvement
    5. development
    Falls back to 'other' when nothing scores high enough.

    The engine holds no mutable state, so one instance can be shared by
    every caller.

    Usage:
        # Production - built-in rule table
        categorizer = Categorizer()

        # Testing - inject a custom table
        categorizer = Categorizer(rules=[KeywordRule(...), ...])

        result = categorizer.categorize("Fixed login bug", None)
        result.category, result.confidence
    """

    def __init__(self, rules: Optional[Sequence[CategorizationRule]] = None):
        """
        Initialize the categorizer.

        Args:
            rules: Optional rule table. Defaults to the built-in rules, which
                the edit form and the store must share.
        """
        self._rules = tuple(DEFAULT_RULES if rules is None else rules)

    @property
    def rules(self) -> tuple:
        return self._rules

    def categorize(
        self,
        title: Optional[str],
        description: Optional[str] = None,
    ) -> CategorizationResult:
        """
        Categorize a title and optional description.

        Never raises for string input; empty text falls through to 'other'.

        Args:
            title: Update title. None is treated as ""
            description: Optional longer description

        Returns:
            CategorizationResult with confidence in [0, 1]

        Example:
            ```
            >>> Categorizer().categorize("Fixed a critical bug in login")
            CategorizationResult(category=<Category.BUG_FIX: 'bug_fix'>, confidence=1.0)
            ```
        """
        title_lower = (title or "").lower()
        description_lower = (description or "").lower()

        best_category = UNCATEGORIZED
        best_score = 0

        for rule in self._rules:
            score = rule.score(title_lower, description_lower)
            if score > best_score:
                best_score = score
                best_category = rule.category

        confidence = min(1.0, best_score / FULL_CONFIDENCE_SCORE)
        if confidence < MIN_CONFIDENCE:
            return CategorizationResult(UNCATEGORIZED, 0.0)

        return CategorizationResult(best_category, confidence)

    def categorize_many(
        self,
        updates: List[Update],
        overwrite: bool = False,
    ) -> List[Update]:
        """
        Categorize multiple updates.

        Manually chosen categories are never touched.

        Args:
            updates: Updates to categorize
            overwrite: If True, also re-run on updates that were already
                auto-categorized. If False, only 'other' updates are tried.

        Returns:
            List of updates, recategorized copies where applicable
        """
        categorized = []

        for update in updates:
            manual = update.category != UNCATEGORIZED and not update.is_auto_categorized
            already_done = update.category != UNCATEGORIZED and not overwrite
            if manual or already_done:
                categorized.append(update)
                continue

            result = self.categorize(update.title, update.description)
            categorized.append(replace(
                update,
                category=result.category,
                is_auto_categorized=result.is_auto_categorized,
            ))

        return categorized

    def describe(self) -> str:
        """
        Describe the active rule table in priority order.

        Returns:
            One line per rule.
        """
        if not self._rules:
            return "No rules loaded"

        return "\n".join(
            f"{priority}. {rule}"
            for priority, rule in enumerate(self._rules, start=1)
        )

    def __repr__(self) -> str:
        return f"Categorizer({len(self._rules)} rules)"


_default_categorizer = Categorizer()


def categorize(
    title: Optional[str],
    description: Optional[str] = None,
) -> CategorizationResult:
    """Categorize with the shared built-in rule table."""
    return _default_categorizer.categorize(title, description)

from abc import ABC, abstractmethod
from dataclasses import dataclass

from worklog.domain.enums import Category

@dataclass(frozen=True)
class CategorizationResult:
    """
    Outcome of categorizing a title/description pair.

    Not persisted directly: callers store `category` and derive the
    auto-categorized flag from `confidence`.
    """
    category: Category
    confidence: float

    @property
    def is_auto_categorized(self) -> bool:
        """True when the categorizer found a confident match"""
        return self.confidence > 0


class CategorizationRule(ABC):
    """
    Abstract base class for all categorization rules.

    A rule does not decide on its own. It scores the (already lower-cased)
    text and the Categorizer keeps the best scoring rule:
    - Rules are scored in table order
    - A later rule only wins with a strictly greater score

    Usage:
        ```
        rule = KeywordRule(Category.BUG_FIX, ["fix", "bug"])
        score = rule.score("fixed a bug", "")
        ```
    """

    @property
    @abstractmethod
    def category(self) -> Category:
        """Category this rule votes for"""
        pass

    @abstractmethod
    def score(self, title: str, description: str) -> int:
        """
        Score lower-cased text against this rule.

        Args:
            title: Lower-cased title
            description: Lower-cased description ("" when absent)

        Returns:
            Non-negative raw score, 0 meaning no evidence
        """
        pass

    def __repr__(self):
        return f"{self.__class__.__name__}({self.category.value})"

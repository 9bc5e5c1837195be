"""
Categorization system for the work log.

Scores an update's title and description against a fixed, ordered table
of keyword rules and returns the best category with a confidence score.

Quick Start:
    >>> from worklog.categorization import categorize
    >>>
    >>> result = categorize("Fixed a critical bug in login")
    >>> print(f"Categorized as: {result.category.value} ({result.confidence})")
"""
from worklog.categorization.categorizer import Categorizer, categorize
from worklog.categorization.base import CategorizationResult, CategorizationRule
from worklog.categorization.rules import KeywordRule, DEFAULT_RULES
from worklog.categorization.suggestion import CategorySuggestion
from worklog.categorization import categories

__all__ = [
    "Categorizer",
    "categorize",
    "CategorizationResult",
    "CategorizationRule",
    "KeywordRule",
    "DEFAULT_RULES",
    "CategorySuggestion",
    "categories",
]

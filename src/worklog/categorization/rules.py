from typing import Iterable, Tuple

from worklog.categorization.base import CategorizationRule
from worklog.domain.enums import Category

TITLE_WEIGHT = 2
DESCRIPTION_WEIGHT = 1


class KeywordRule(CategorizationRule):
    """
    Rule that scores keyword hits in an update's title and description.

    Features:
    - Case-insensitive substring matching ("fix" also hits "prefix")
    - Title hits weigh 2, description hits weigh 1
    - A keyword found in the title is not counted again for the description

    Example:
        ```
        rule = KeywordRule(Category.DOCUMENTATION, ["readme", "docs"])
        rule.score("update readme", "")  # -> 2
        ```
    """

    def __init__(self, category: Category, keywords: Iterable[str]):
        """
        Initialize keyword rule.

        Args:
            category: Category this rule votes for
            keywords: Ordered trigger keywords
        """
        self._category = category
        # Stored lower-cased and immutable
        self._keywords: Tuple[str, ...] = tuple(kw.lower() for kw in keywords)

    @property
    def category(self) -> Category:
        return self._category

    @property
    def keywords(self) -> Tuple[str, ...]:
        return self._keywords

    def score(self, title: str, description: str) -> int:
        """Sum the weights of every keyword found in the text"""
        total = 0
        for keyword in self._keywords:
            if keyword in title:
                total += TITLE_WEIGHT
            elif keyword in description:
                total += DESCRIPTION_WEIGHT
        return total

    def __repr__(self):
        return f"KeywordRule({self._category.value}, {len(self._keywords)} keywords)"


# Ordering matters: most distinctive first, equal scores keep the earlier rule.
# `development` is deliberately broad and therefore last.
DEFAULT_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(Category.BUG_FIX, [
        "fix", "bug", "crash", "error", "broken", "issue", "patch",
        "hotfix", "resolve", "resolved", "debug", "debugged", "regression",
        "failing", "failed", "not working", "500", "404", "exception",
    ]),
    KeywordRule(Category.DEVOPS, [
        "deploy", "deployed", "ci", "cd", "pipeline", "docker", "config",
        "infra", "infrastructure", "env", "environment", "server", "nginx",
        "aws", "vercel", "netlify", "hosting", "ssl", "dns", "domain",
        "kubernetes", "k8s", "terraform", "ansible", "github actions",
    ]),
    KeywordRule(Category.DOCUMENTATION, [
        "doc", "docs", "documentation", "readme", "guide", "comment",
        "comments", "wiki", "jsdoc", "tsdoc", "changelog", "tutorial",
        "api docs", "swagger", "storybook",
    ]),
    KeywordRule(Category.IMPROVEMENT, [
        "improve", "improved", "update", "updated", "enhance", "enhanced",
        "refactor", "refactored", "optimize", "optimized", "upgrade",
        "upgraded", "cleanup", "clean up", "polish", "polished", "tweak",
        "tweaked", "simplify", "simplified", "restructure", "migration",
    ]),
    KeywordRule(Category.DEVELOPMENT, [
        "develop", "developed", "code", "coded", "build", "built",
        "scaffold", "setup", "set up", "integrate", "integrated",
        "working on", "publish", "published", "launch", "launched",
        "release", "released", "go live", "ship", "shipped", "post",
        "blog", "article", "content", "page", "draft", "wip",
        "in progress", "under development", "prototype", "poc", "started",
        "add", "added", "new", "create", "created", "implement",
        "implemented", "feature", "introduce", "introduced", "design",
        "designed", "ui", "ux", "style", "styled", "layout", "responsive",
        "css", "figma", "mockup", "component", "hook", "api", "endpoint",
        "route", "modal", "form", "table", "chart", "animation",
    ]),
)

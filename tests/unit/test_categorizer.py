import json
import pytest
from datetime import date

from worklog.categorization import (
    DEFAULT_RULES,
    CategorizationResult,
    Categorizer,
    KeywordRule,
    categorize,
)
from worklog.domain.enums import Category
from worklog.domain.models import Update
from pathlib import Path

# Shared with the edit form so both sides agree on every case
CASES_PATH = Path(__file__).parent.parent / "fixtures" / "categorization_cases.json"
CASES = json.loads(CASES_PATH.read_text())


@pytest.mark.unit
class TestCategorizeCases:
    """Known inputs and the exact result they must produce."""

    @pytest.mark.parametrize(
        "case", CASES, ids=[c["title"] or "<empty>" for c in CASES]
    )
    def test_case(self, case):
        # Act
        result = categorize(case["title"], case["description"])

        # Assert
        assert result.category == Category(case["category"])
        assert result.confidence == pytest.approx(case["confidence"])

    def test_empty_title(self):
        assert categorize("", None) == CategorizationResult(Category.OTHER, 0.0)

    def test_no_keywords(self):
        assert categorize("asdf qwerty", None) == CategorizationResult(Category.OTHER, 0.0)

    def test_bug_fix_title(self):
        result = categorize("Fixed a critical bug in login", None)

        assert result.category == Category.BUG_FIX
        assert result.confidence == 1

    def test_devops_title(self):
        result = categorize("Deployed new server to AWS", None)

        assert result.category == Category.DEVOPS
        assert result.confidence == 1

    def test_added_a_new_feature(self):
        """'add', 'added', 'new' and 'feature' all hit the title: raw 8, saturates at 1"""
        result = categorize("Added a new feature", None)

        assert result.category == Category.DEVELOPMENT
        assert result.confidence == 1

    def test_substring_matching_is_kept(self):
        """'fix' inside 'prefix' counts as a bug_fix keyword."""
        result = categorize("prefix notation", None)

        assert result.category == Category.BUG_FIX
        assert result.confidence == 0.5

    def test_matching_is_case_insensitive(self):
        assert categorize("DEPLOYED", None) == categorize("deployed", None)

    def test_description_defaults_to_empty(self):
        assert categorize("Polish") == categorize("Polish", None) == categorize("Polish", "")

    def test_none_title_is_treated_as_empty(self):
        assert categorize(None, None) == CategorizationResult(Category.OTHER, 0.0)

    def test_none_title_still_uses_description(self):
        result = categorize(None, "updated the readme docs")

        assert result.category == Category.DOCUMENTATION

    def test_whitespace_only(self):
        assert categorize("   \n\t", "  ") == CategorizationResult(Category.OTHER, 0.0)

    def test_deterministic(self):
        first = categorize("Refactored the deploy pipeline", "cleanup of ci config")

        for _ in range(5):
            assert categorize("Refactored the deploy pipeline", "cleanup of ci config") == first


@pytest.mark.unit
class TestCategorizeScoring:
    """Weights, threshold and tie-breaking."""

    def test_single_description_hit_meets_threshold(self):
        """Raw score 1 gives exactly 0.25, which is not below the threshold."""
        result = categorize("Weekly notes", "wrote the readme")

        assert result.category == Category.DOCUMENTATION
        assert result.confidence == 0.25

    def test_title_match_not_counted_again_in_description(self):
        result = categorize("readme", "readme")

        # 2 from the title only, not 2 + 1
        assert result.confidence == 0.5

    def test_description_tie_goes_to_earlier_rule(self):
        """bug_fix ('crash') and documentation ('readme') both score 1."""
        result = categorize("asdf", "crash readme")

        assert result.category == Category.BUG_FIX
        assert result.confidence == 0.25

    def test_tie_break_ignores_text_order(self):
        assert categorize("asdf", "readme crash").category == Category.BUG_FIX

    def test_higher_score_beats_rule_order(self):
        """development is last in the table but scores 4 against bug_fix's 2."""
        result = categorize("Fix the new page", None)

        assert result.category == Category.DEVELOPMENT

    def test_title_hit_outweighs_description_hit(self):
        result = categorize("Refactor", "bug")

        assert result.category == Category.IMPROVEMENT
        assert result.confidence == 0.5

    def test_tie_with_custom_rules(self):
        # Arrange
        categorizer = Categorizer(rules=[
            KeywordRule(Category.DOCUMENTATION, ["alpha"]),
            KeywordRule(Category.DEVOPS, ["beta"]),
        ])

        # Act
        forward = categorizer.categorize("", "alpha beta")
        reversed_rules = Categorizer(rules=list(reversed(categorizer.rules))).categorize("", "alpha beta")

        # Assert
        assert forward.category == Category.DOCUMENTATION
        assert reversed_rules.category == Category.DEVOPS

    @pytest.mark.parametrize("title, description", [
        ("", None),
        ("asdf", None),
        ("prefix", None),
        ("asdf", "bug"),
        ("fix bug crash error", "broken issue patch"),
        ("Deployed docker config to aws via terraform", "ci cd pipeline nginx ssl dns"),
    ])
    def test_confidence_partition(self, title, description):
        """'other' always has confidence 0, anything else is strictly positive."""
        result = categorize(title, description)

        assert 0 <= result.confidence <= 1
        if result.category == Category.OTHER:
            assert result.confidence == 0
        else:
            assert result.confidence > 0

    def test_is_auto_categorized(self):
        assert categorize("Fixed a bug").is_auto_categorized is True
        assert categorize("asdf").is_auto_categorized is False


@pytest.mark.unit
class TestRuleTable:
    """The built-in rule table."""

    def test_rule_order(self):
        assert [rule.category for rule in DEFAULT_RULES] == [
            Category.BUG_FIX,
            Category.DEVOPS,
            Category.DOCUMENTATION,
            Category.IMPROVEMENT,
            Category.DEVELOPMENT,
        ]

    def test_other_has_no_rule(self):
        assert Category.OTHER not in {rule.category for rule in DEFAULT_RULES}

    def test_keywords_are_lowercase_and_immutable(self):
        for rule in DEFAULT_RULES:
            assert isinstance(rule.keywords, tuple)
            assert all(kw == kw.lower() for kw in rule.keywords)

    def test_keyword_rule_weights(self):
        rule = KeywordRule(Category.DOCUMENTATION, ["Readme", "wiki"])

        assert rule.score("readme", "") == 2
        assert rule.score("", "wiki") == 1
        assert rule.score("readme", "wiki") == 3
        assert rule.score("", "") == 0

    def test_describe(self):
        info = Categorizer().describe()

        assert info.splitlines()[0] == "1. KeywordRule(bug_fix, 19 keywords)"
        assert len(info.splitlines()) == 5

    def test_describe_empty(self):
        assert Categorizer(rules=[]).describe() == "No rules loaded"

    def test_empty_table_always_other(self):
        result = Categorizer(rules=[]).categorize("Fixed a bug", "deploy")

        assert result == CategorizationResult(Category.OTHER, 0.0)


@pytest.mark.unit
class TestCategorizeMany:
    """Batch categorization of stored updates."""

    def _update(self, title, category=Category.OTHER, auto=False):
        return Update(title=title, date=date(2026, 1, 5), category=category, is_auto_categorized=auto)

    def test_uncategorized_get_categorized(self):
        updates = [self._update("Fixed a bug"), self._update("asdf")]

        categorized = Categorizer().categorize_many(updates)

        assert categorized[0].category == Category.BUG_FIX
        assert categorized[0].is_auto_categorized is True
        assert categorized[1].category == Category.OTHER
        assert categorized[1].is_auto_categorized is False

    def test_manual_category_is_never_touched(self):
        manual = self._update("Fixed a bug", category=Category.DOCUMENTATION)

        categorized = Categorizer().categorize_many([manual], overwrite=True)

        assert categorized[0] is manual

    def test_respects_overwrite_flag(self):
        # Arrange: auto-categorized earlier, before the title was edited
        stale = self._update("Deployed to AWS", category=Category.BUG_FIX, auto=True)

        # Act & Assert - overwrite=False keeps it
        assert Categorizer().categorize_many([stale])[0].category == Category.BUG_FIX

        # Act & Assert - overwrite=True refreshes it
        assert Categorizer().categorize_many([stale], overwrite=True)[0].category == Category.DEVOPS

    def test_does_not_mutate_input(self):
        update = self._update("Fixed a bug")

        Categorizer().categorize_many([update])

        assert update.category == Category.OTHER

"""Tests for class-name validity, confidence scoring and exclusions."""
import pytest

from stylesweep.analyzer.classifier import Confidence, classify, is_valid_class_name
from stylesweep.analyzer.exclusions import ExclusionFilter, is_excluded
from stylesweep.config import DEFAULT_EXCLUDE_PATTERNS


class TestValidity:
    """Names that can never be real class selectors."""

    @pytest.mark.parametrize("name", ["btn", "a_b-c", "Card", "x1", "icon-"])
    def test_valid_names(self, name):
        assert is_valid_class_name(name), f"'{name}' should be a valid class name"

    @pytest.mark.parametrize("name", ["", "1abc", "-lead", "_private", "123", "com", "SVG", "woff2", "base64"])
    def test_invalid_names(self, name):
        assert not is_valid_class_name(name), f"'{name}' should be rejected"


class TestClassify:
    """Rules are evaluated in order; the first match wins."""

    def test_kebab_case_is_high(self):
        assert classify("nav-item", "layout.scss") is Confidence.HIGH

    def test_kebab_rule_precedes_length_rule(self):
        assert classify("ab", "layout.scss") is Confidence.HIGH

    def test_bem_element_with_modifier_is_high(self):
        assert classify("card__title--large", "layout.scss") is Confidence.HIGH

    def test_component_directory_is_high(self):
        assert classify("x1", "components/card.scss") is Confidence.HIGH
        assert classify("Btn_Primary", "features/checkout/cart.scss") is Confidence.HIGH

    def test_short_name_is_low(self):
        # A two-character name outside component directories
        assert classify("x1", "layout.scss") is Confidence.LOW

    def test_digit_run_is_low(self):
        assert classify("col123", "layout.scss") is Confidence.LOW
        assert classify("promo-2024", "layout.scss") is Confidence.LOW

    def test_generated_suffix_in_mixins_is_low(self):
        assert classify("icon-", "mixins/_icons.scss") is Confidence.LOW
        assert classify("icon_", "utilities/_icons.scss") is Confidence.LOW

    def test_generated_suffix_elsewhere_is_medium(self):
        assert classify("icon-", "layout.scss") is Confidence.MEDIUM

    def test_everything_else_is_medium(self):
        assert classify("Btn_Primary", "layout.scss") is Confidence.MEDIUM
        assert classify("btn__icon", "layout.scss") is Confidence.MEDIUM

    def test_directory_match_ignores_file_name(self):
        assert classify("Btn_Primary", "components.scss") is Confidence.MEDIUM


class TestConfidence:
    """Threshold comparison and parsing."""

    def test_meets_is_inclusive(self):
        assert Confidence.HIGH.meets(Confidence.HIGH)
        assert Confidence.HIGH.meets(Confidence.LOW)
        assert Confidence.MEDIUM.meets(Confidence.MEDIUM)
        assert not Confidence.MEDIUM.meets(Confidence.HIGH)
        assert not Confidence.LOW.meets(Confidence.MEDIUM)

    def test_parse(self):
        assert Confidence.parse("High") is Confidence.HIGH
        assert Confidence.parse(" low ") is Confidence.LOW
        assert Confidence.parse(Confidence.MEDIUM) is Confidence.MEDIUM

    def test_parse_rejects_unknown_level(self):
        with pytest.raises(ValueError, match="Unknown confidence level"):
            Confidence.parse("certain")


class TestExclusions:
    """Glob-based exclusion of utility classes."""

    @pytest.mark.parametrize("name", ["mt-2", "px-4", "flex", "flex-row", "text-center", "sr-only", "is-active"])
    def test_default_patterns_exclude_utilities(self, name):
        assert is_excluded(name, DEFAULT_EXCLUDE_PATTERNS), f"'{name}' should be excluded by default"

    @pytest.mark.parametrize("name", ["btn", "header", "card-title", "old-banner"])
    def test_default_patterns_keep_components(self, name):
        assert not is_excluded(name, DEFAULT_EXCLUDE_PATTERNS)

    def test_matching_is_case_sensitive(self):
        assert not is_excluded("MT-2", ["mt-*"])

    def test_question_mark_wildcard(self):
        assert is_excluded("col-1", ["col-?"])
        assert not is_excluded("col-10", ["col-?"])

    def test_filter_records_excluded_names(self):
        exclusion = ExclusionFilter(["legacy-*", ""])

        kept = {name for name in ["legacy-nav", "nav", "legacy-footer"] if not exclusion(name)}

        assert kept == {"nav"}
        assert exclusion.excluded == {"legacy-nav", "legacy-footer"}
        assert exclusion.patterns == ["legacy-*"], "Empty patterns should be dropped"

"""Tests for the per-language rule table."""

import pytest

from spreadsheet_translator.services.language_rules import (
    CANONICAL_HEADERS,
    HINDI_RULES,
    MARATHI_RULES,
    get_rule_set,
    is_canonical_header,
    strip_ordinal_prefix,
)
from spreadsheet_translator.sheet_document import TargetLanguage


class TestRuleLookup:
    def test_lookup_by_enum_and_locale_code(self) -> None:
        assert get_rule_set(TargetLanguage.HINDI) is HINDI_RULES
        assert get_rule_set("mr-IN") is MARATHI_RULES

    def test_unknown_language_raises(self) -> None:
        with pytest.raises(ValueError):
            get_rule_set("ta-IN")


class TestLanguageRuleSet:
    def test_digit_map_covers_all_digits(self) -> None:
        digit_map = HINDI_RULES.digit_map
        assert len(digit_map) == 10
        assert digit_map["0"] == "०"
        assert digit_map["4"] == "४"
        assert digit_map["9"] == "९"

    def test_substitutions_use_first_alternative(self) -> None:
        assert HINDI_RULES.substitutions["औपचारिक"] == "ज़रूरी"
        assert HINDI_RULES.substitutions["प्रक्रिया"] == "तरीका"
        assert MARATHI_RULES.substitutions["प्रक्रिया"] == "पद्धत"

    def test_every_language_labels_every_canonical_header(self) -> None:
        for rules in (HINDI_RULES, MARATHI_RULES):
            assert set(rules.header_labels) == set(CANONICAL_HEADERS)

    def test_canonical_header_is_exact_after_trim(self) -> None:
        assert HINDI_RULES.canonical_header("  Option1 ") == "विकल्प 1"
        assert HINDI_RULES.canonical_header("option1") is None
        assert MARATHI_RULES.canonical_header("Explanation") == "स्पष्टीकरण"

    def test_render_prompt_rules_lists_formal_words(self) -> None:
        rendered = HINDI_RULES.render_prompt_rules()
        assert rendered is not None
        assert "- प्रक्रिया → तरीका" in rendered
        assert '"Question" → "प्रश्न"' in rendered
        assert "{formal_words}" not in rendered

    def test_language_without_prompt_rules(self) -> None:
        assert MARATHI_RULES.render_prompt_rules() is None


class TestHelpers:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("1. प्रश्न", "प्रश्न"),
            ("१. प्रश्न", "प्रश्न"),
            ("12.उत्तर", "उत्तर"),
            ("प्रश्न", "प्रश्न"),
            ("1.5 kg", "5 kg"),
        ],
    )
    def test_strip_ordinal_prefix(self, text: str, expected: str) -> None:
        assert strip_ordinal_prefix(text) == expected

    def test_strip_ordinal_prefix_only_once(self) -> None:
        assert strip_ordinal_prefix("1. 2. text") == "2. text"

    def test_is_canonical_header(self) -> None:
        assert is_canonical_header("Correct ans")
        assert not is_canonical_header("Correct answer")

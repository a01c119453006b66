"""
Name Matcher Tests
==================

Classification of display names and whether prose refers to them.
"""

import pytest

from storyweave.core.names import (
    NameType, classify_name, get_name_match_strategy, get_name_variations,
    text_contains_character_name,
)


class TestClassifyName:

    def test_known_given_and_family_name_is_proper(self):
        result = classify_name("Alex Maxwell")
        assert result.type is NameType.PROPER
        assert result.has_common_words is False
        assert result.word_count == 2
        assert result.is_likely_proper_name is True

    def test_all_common_vocabulary_is_descriptive(self):
        result = classify_name("Ancient Spirit Tree")
        assert result.type is NameType.DESCRIPTIVE
        assert result.has_common_words is True
        assert result.is_likely_proper_name is False

    def test_title_plus_surname_is_mixed(self):
        assert classify_name("Elder Zhang").type is NameType.MIXED

    def test_single_common_word_is_descriptive(self):
        assert classify_name("Dragon").type is NameType.DESCRIPTIVE

    def test_single_unknown_word_is_proper(self):
        assert classify_name("Xuanwu").type is NameType.PROPER

    def test_classification_is_deterministic(self):
        assert classify_name("Old Chen") == classify_name("Old Chen")

    def test_articles_count_as_common_words(self):
        result = classify_name("Valley of the Winds")
        assert result.has_common_words is True
        assert result.type is NameType.MIXED


class TestTextContainsCharacterName:

    def test_full_name_case_insensitive(self):
        assert text_contains_character_name(
            "The Ancient Spirit Tree watched.", "Ancient Spirit Tree"
        )
        assert text_contains_character_name("alex maxwell laughed", "Alex Maxwell")

    def test_descriptive_name_needs_full_phrase(self):
        assert not text_contains_character_name(
            "The tree grew near the ancient spirit site.", "Ancient Spirit Tree"
        )

    @pytest.mark.parametrize("text,expected", [
        ("Maxwell nodded slowly.", True),
        ("Alex smiled at the crowd.", True),
        ("Nobody answered the door.", False),
    ])
    def test_proper_name_fragments(self, text, expected):
        assert text_contains_character_name(text, "Alex Maxwell") is expected

    def test_fragments_respect_word_boundaries(self):
        assert not text_contains_character_name("Alexander arrived late.", "Alex Maxwell")

    def test_mixed_name_matches_on_surname_not_title(self):
        assert text_contains_character_name("Zhang bowed deeply.", "Elder Zhang")
        assert not text_contains_character_name("The elder bowed deeply.", "Elder Zhang")

    def test_regex_metacharacters_are_literal(self):
        assert text_contains_character_name("Then A.J. (Ace) laughed.", "A.J. (Ace)")
        assert not text_contains_character_name("Then AxJx Ace laughed.", "A.J. (Ace)")

    def test_whitespace_between_tokens_is_flexible(self):
        assert text_contains_character_name("Mei\n  Lin stood.", "Mei Lin")

    def test_unspaced_script_matches_by_substring(self):
        assert text_contains_character_name("李明走进了大殿。", "李明")
        assert not text_contains_character_name("王芳走进了大殿。", "李明")

    def test_latin_names_keep_word_boundaries(self):
        assert not text_contains_character_name("Benjamin left.", "Ben")

    @pytest.mark.parametrize("text,name", [
        ("", "Mei Lin"),
        ("Mei Lin stood.", ""),
        ("Mei Lin stood.", "   "),
        (None, "Mei Lin"),
        ("Mei Lin stood.", None),
    ])
    def test_empty_or_missing_input_is_false(self, text, name):
        assert text_contains_character_name(text, name) is False


class TestStrategy:

    def test_variations_for_proper_name(self):
        assert get_name_variations("Alex Maxwell") == ["alex maxwell", "alex", "maxwell"]

    def test_descriptive_name_keeps_only_distinctive_fragments(self):
        strategy = get_name_match_strategy("Crimson Dragon Blade")
        assert strategy.require_full_match is True
        assert strategy.variations == ("crimson dragon blade", "crimson")
        assert text_contains_character_name("The crimson edge shone.", "Crimson Dragon Blade")

    def test_full_match_flag_only_for_descriptive(self):
        assert get_name_match_strategy("Ancient Spirit Tree").require_full_match is True
        assert get_name_match_strategy("Alex Maxwell").require_full_match is False

    def test_blank_name_has_no_patterns(self):
        strategy = get_name_match_strategy("  ")
        assert strategy.patterns == ()
        assert strategy.variations == ()

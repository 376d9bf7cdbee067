"""
Tests for the closed-set tables and orthography helpers.
"""
import pytest

from nahw import lexicon


class TestOrthography:

    def test_strip_diacritics(self):
        assert lexicon.strip_diacritics("رَبُّهُمْ") == "ربهم"
        assert lexicon.strip_diacritics("ٱلْعَٰلَمِينَ") == "ٱلعلمين"

    def test_tanwin(self):
        assert lexicon.has_tanwin("كِتَابٌ")
        assert lexicon.has_tanwin("طَالِبٍ")
        assert not lexicon.has_tanwin("كِتَابُ")

    def test_begins_with_article(self):
        assert lexicon.begins_with_article("الْعَالَمِينَ")
        assert lexicon.begins_with_article("ٱلْحَمْدُ")
        assert not lexicon.begins_with_article("رَبِّ")

    def test_ends_in_short_vowel(self):
        assert lexicon.ends_in_short_vowel("رَبِّ")
        assert lexicon.ends_in_short_vowel("كِتَابُ")
        assert not lexicon.ends_in_short_vowel("كِتَابٌ")
        assert not lexicon.ends_in_short_vowel("رَبُّهُمْ")
        assert not lexicon.ends_in_short_vowel("كتاب")

    def test_case_vowels_are_read_from_the_last_letter(self):
        assert lexicon.has_kasra("طَالِبِ")
        assert lexicon.has_kasra("رَبِّ")
        assert not lexicon.has_kasra("كِتَابُ")
        assert lexicon.has_fatha("يُوسُفَ")
        assert not lexicon.has_fatha("قَوْمُ")


class TestClosedSets:

    @pytest.mark.parametrize("text,expected", [
        ("فِي", "preposition"),
        ("إِنَّ", "accusative"),
        ("لَنْ", "negation"),
        ("يَا", "vocative"),
        ("وَ", "conjunction"),
        ("إِلَّا", "exception"),
        ("قَدْ", "emphasis"),
    ])
    def test_particle_class(self, text, expected):
        assert lexicon.particle_class(text) == expected

    def test_particle_class_matches_without_diacritics(self):
        assert lexicon.particle_class("في") == "preposition"
        assert lexicon.particle_class("مِنَ") == "preposition"

    def test_pronoun_classes(self):
        assert lexicon.pronoun_class("هُوَ") == "independent"
        assert lexicon.pronoun_class("هُمْ") == "independent"
        assert lexicon.pronoun_class("هَٰذَا") == "demonstrative"
        assert lexicon.pronoun_class("الَّذِينَ") == "relative"
        assert lexicon.pronoun_class("كِتَاب") is None

    def test_unknown_text(self):
        assert lexicon.particle_class("") is None
        assert lexicon.particle_class("كِتَابٌ") is None

    def test_article_forms(self):
        assert lexicon.is_definite_article("ال")
        assert lexicon.is_definite_article("ٱلْ")
        assert not lexicon.is_definite_article("لِ")

    def test_affixes(self):
        assert lexicon.is_verbal_prefix("يَ")
        assert lexicon.is_prepositional_prefix("بِ")
        assert lexicon.is_pronoun_suffix("هُمْ")
        assert lexicon.is_pronoun_suffix("هم")
        assert lexicon.is_case_number_suffix("ِينَ")
        assert lexicon.is_case_number_suffix("ين")


class TestAttachedPronounEnding:

    def test_plural_suffix(self):
        assert lexicon.attached_pronoun_ending("رَبُّهُمْ") == "هم"

    def test_longest_suffix_wins(self):
        assert lexicon.attached_pronoun_ending("كِتَابُهُمَا") == "هما"

    def test_stem_must_be_long_enough(self):
        assert lexicon.attached_pronoun_ending("هُمْ") is None
        assert lexicon.attached_pronoun_ending("أَبِي", min_stem=2) == "ي"
        assert lexicon.attached_pronoun_ending("أَبِي", min_stem=3) is None

    def test_no_suffix(self):
        assert lexicon.attached_pronoun_ending("كِتَابُ") is None

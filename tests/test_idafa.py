"""
Tests for idafa detection: the 3-question test, the attached-pronoun rule,
chains, statistics and error handling.
"""
import re
import unittest

from nahw.config import DetectorConfig
from nahw.constructions import Certainty, TermKind
from nahw.idafa import (
    IdafaDetector,
    detect,
    genitive_status,
    is_light,
    lacks_definite_article,
)
from nahw.segments import LexiconEntry, Segment, SegmentIdError


def noun(id, text, **extra):
    record = {"id": id, "text": text, "morphology": "noun", "type": "root"}
    record.update(extra)
    return record


def as_map(*records):
    return {r["id"]: r for r in records}


class TestScenarios(unittest.TestCase):

    def test_rabbi_al_alamin(self):
        """رَبِّ الْعَالَمِينَ: the genitive tag accepts the article-bearing second term."""
        result = detect(as_map(
            noun("1-2-2-1", "رَبِّ", case="genitive", pattern="partly_flexible"),
            noun("1-2-3-1", "الْعَالَمِينَ", case="genitive"),
        ))
        self.assertEqual(len(result.constructions), 1)
        construction = result.constructions[0]
        self.assertEqual(construction.mudaf.text, "رَبِّ")
        self.assertEqual(construction.mudaf_ilayh.text, "الْعَالَمِينَ")
        self.assertEqual(construction.certainty, Certainty.DEFINITE)
        self.assertIn("3-question test", construction.applied_rule)
        self.assertEqual(construction.id, "idafa-1-2-2-1-1-2-3-1")

    def test_attached_pronoun(self):
        result = detect(as_map(noun("1-1-1-1", "رَبُّهُمْ", case="nominative")))
        self.assertEqual(len(result.constructions), 1)
        construction = result.constructions[0]
        self.assertEqual(construction.mudaf_ilayh.kind, TermKind.ATTACHED_PRONOUN)
        self.assertEqual(construction.mudaf_ilayh.text, "هم")
        self.assertEqual(construction.mudaf_ilayh.id, "1-1-1-1-pronoun")
        self.assertEqual(construction.certainty, Certainty.DEFINITE)
        self.assertEqual(result.statistics.with_pronouns, 1)

    def test_attached_pronoun_as_separate_suffix_segment(self):
        result = detect(as_map(
            noun("1-1-1-1", "رَبُّ"),
            {"id": "1-1-1-2", "text": "هُمْ", "morphology": "noun", "type": "suffix"},
        ))
        self.assertEqual(len(result.constructions), 1)
        construction = result.constructions[0]
        self.assertEqual(construction.mudaf_ilayh.kind, TermKind.ATTACHED_PRONOUN)
        self.assertEqual(construction.mudaf_ilayh.text, "هُمْ")
        self.assertEqual(construction.mudaf_ilayh.position, 1)

    def test_tanwin_fails_lightness(self):
        result = detect(as_map(
            noun("1-1-1-1", "كِتَابٌ"),
            noun("1-1-2-1", "طَالِبٍ", case="genitive"),
        ))
        self.assertEqual(len(result.constructions), 0)

    def test_three_noun_chain(self):
        result = detect(as_map(
            noun("1-1-1-1", "كِتَابِ", case="genitive"),
            noun("1-1-2-1", "طَالِبِ", case="genitive"),
            noun("1-1-3-1", "الْمَدْرَسَةِ", case="genitive"),
        ))
        self.assertGreaterEqual(len(result.constructions), 2)
        self.assertEqual(len(result.chains), 1)
        chain = result.chains[0]
        self.assertEqual([c.mudaf.text for c in chain], ["كِتَابِ", "طَالِبِ"])
        self.assertEqual([c.chain_level for c in chain], [1, 2])
        self.assertTrue(all(c.is_chain for c in result.constructions))
        self.assertEqual(result.statistics.with_chains, 2)

    def test_empty_input(self):
        result = detect({})
        self.assertEqual(result.constructions, ())
        self.assertEqual(result.statistics.total, 0)
        self.assertEqual(result.statistics.definite, 0)
        self.assertEqual(result.chains, ())
        self.assertIn("No segments supplied", result.notes)


class TestThreeQuestions(unittest.TestCase):

    def test_q1_tanwin(self):
        self.assertFalse(is_light(Segment(id="1-1-1-1", text="كِتَابٌ")).passed)

    def test_q1_lexicon_state(self):
        seg = Segment(id="1-1-1-1", text="كِتَاب")
        self.assertTrue(is_light(seg, LexiconEntry(state="construct")).passed)
        self.assertFalse(is_light(seg, LexiconEntry(state="absolute")).passed)

    def test_q1_default_assumption(self):
        verdict = is_light(Segment(id="1-1-1-1", text="كتاب"))
        self.assertTrue(verdict.passed)
        self.assertEqual(verdict.reason, "Assumed light in idafa context")

    def test_q2(self):
        self.assertFalse(lacks_definite_article(Segment(id="1-1-1-1", text="ٱلْكِتَابِ")).passed)
        self.assertFalse(lacks_definite_article(Segment(id="1-1-1-1", text="كِتَاب", definite="definite")).passed)
        self.assertFalse(lacks_definite_article(Segment(id="1-1-1-1", text="كِتَاب"), LexiconEntry(definite="DEF")).passed)
        self.assertTrue(lacks_definite_article(Segment(id="1-1-1-1", text="كِتَابُ")).passed)

    def test_q3_priority(self):
        tagged = Segment.from_record(noun("1-1-1-1", "طَالِب", case="genitive"))
        self.assertEqual(genitive_status(tagged).rule, "Direct case marking")

        kasra = Segment.from_record(noun("1-1-1-1", "طَالِبِ"))
        verdict = genitive_status(kasra)
        self.assertEqual(verdict.rule, "Genitive vowel marking")
        self.assertEqual(verdict.certainty, Certainty.DEFINITE)

        # kasra in the stem only, nominative ending
        stem_kasra = Segment.from_record(noun("1-1-1-1", "كِتَابُ"))
        self.assertNotEqual(genitive_status(stem_kasra).rule, "Genitive vowel marking")

        lexical = Segment.from_record(noun("1-1-1-1", "طالب"))
        verdict = genitive_status(lexical, LexiconEntry(case="GEN"))
        self.assertEqual(verdict.rule, "Lexicon case data")

        partly = Segment.from_record(noun("1-1-1-1", "يُوسُفَ", pattern="partly_flexible"))
        self.assertEqual(genitive_status(partly).certainty, Certainty.PROBABLE)

        non_flexible = Segment.from_record(noun("1-1-1-1", "طالب", pattern="non-flexible"))
        self.assertEqual(genitive_status(non_flexible).rule, "Non-flexible contextual inference")

        fallback = Segment.from_record(noun("1-1-1-1", "طالب"))
        verdict = genitive_status(fallback)
        self.assertEqual(verdict.certainty, Certainty.INFERRED)
        self.assertEqual(verdict.rule, "Contextual pattern matching")

    def test_q3_pronoun_particle(self):
        pronoun = Segment.from_record({"id": "1-1-1-1", "text": "هُوَ", "morphology": "particle"})
        verdict = genitive_status(pronoun)
        self.assertTrue(verdict.passed)
        self.assertEqual(verdict.kind, TermKind.PRONOUN)

    def test_q3_verb_is_never_genitive(self):
        verb = Segment.from_record({"id": "1-1-1-1", "text": "قِيلَ", "morphology": "verb"})
        self.assertFalse(genitive_status(verb).passed)

    def test_q3_other_case_tag_rejects(self):
        nominative = Segment.from_record(noun("1-1-1-1", "طَالِبِ", case="nominative"))
        self.assertFalse(genitive_status(nominative).passed)


class TestDefiniteArticleExclusion(unittest.TestCase):

    def test_article_candidate_never_accepted_from_text(self):
        """An article-bearing word with a kasra is an adjective, not a possessor."""
        result = detect(as_map(
            noun("1-1-1-1", "كِتَابُ"),
            noun("1-1-2-1", "الْكَبِيرِ"),
        ))
        self.assertEqual(result.statistics.total, 0)

    def test_article_candidate_is_a_boundary(self):
        result = detect(as_map(
            noun("1-1-1-1", "كِتَابُ"),
            noun("1-1-2-1", "الْكَبِيرِ"),
            noun("1-1-3-1", "طَالِبٍ"),
        ))
        self.assertEqual(result.statistics.total, 0)

    def test_article_mudaf_fails_q2(self):
        result = detect(as_map(
            noun("1-1-1-1", "الْكِتَابُ"),
            noun("1-1-2-1", "طَالِبِ", case="genitive"),
        ))
        self.assertEqual(result.statistics.total, 0)

    def test_article_prefix_segment_makes_stem_definite(self):
        result = detect(as_map(
            {"id": "1-1-1-1", "text": "ٱلْ", "morphology": "particle", "type": "prefix"},
            noun("1-1-1-2", "حَمْدُ"),
            noun("1-1-2-1", "طَالِبِ", case="genitive"),
        ))
        self.assertEqual(result.statistics.total, 0)

    def test_article_prefix_segment_on_candidate(self):
        article = {"id": "1-1-2-1", "text": "ٱلْ", "morphology": "particle", "type": "prefix"}

        adjective = detect(as_map(noun("1-1-1-1", "كِتَابُ"), article, noun("1-1-2-2", "كَبِيرِ")))
        self.assertEqual(adjective.statistics.total, 0)

        tagged = detect(as_map(noun("1-1-1-1", "رَبِّ"), article, noun("1-1-2-2", "عَالَمِينَ", case="genitive")))
        self.assertEqual(len(tagged.constructions), 1)
        self.assertEqual(tagged.constructions[0].mudaf_ilayh.id, "1-1-2-2")
        self.assertEqual(tagged.constructions[0].certainty, Certainty.DEFINITE)


class TestSearchWindow(unittest.TestCase):

    def test_skips_particles(self):
        result = detect(as_map(
            noun("1-1-1-1", "كِتَابُ"),
            {"id": "1-1-2-1", "text": "فِي", "morphology": "particle", "type": "root"},
            noun("1-1-3-1", "بَيْتٍ", case="genitive"),
        ))
        self.assertEqual(len(result.constructions), 1)
        self.assertEqual(result.constructions[0].mudaf_ilayh.position, 2)

    def test_stops_at_verb(self):
        result = detect(as_map(
            noun("1-1-1-1", "كِتَابُ"),
            {"id": "1-1-2-1", "text": "قَالَ", "morphology": "verb", "type": "root"},
            noun("1-1-3-1", "طَالِبِ", case="genitive"),
        ))
        mudafs = [c.mudaf.id for c in result.constructions]
        self.assertNotIn("1-1-1-1", mudafs)

    def test_window_is_configurable(self):
        segments = as_map(
            noun("1-1-1-1", "كِتَابُ"),
            {"id": "1-1-2-1", "text": "فِي", "morphology": "particle"},
            {"id": "1-1-3-1", "text": "وَ", "morphology": "particle"},
            {"id": "1-1-4-1", "text": "قَدْ", "morphology": "particle"},
            noun("1-1-5-1", "طَالِبِ", case="genitive"),
        )
        self.assertEqual(detect(segments).statistics.total, 0)
        wide = detect(segments, config=DetectorConfig(search_window=4))
        self.assertEqual(wide.statistics.total, 1)


class TestOrderingAndIds(unittest.TestCase):

    def test_numeric_ordering_of_ids(self):
        """Word 10 follows word 9; a string sort would put it first."""
        result = detect(as_map(
            noun("1-1-10-1", "طَالِبِ", case="genitive"),
            noun("1-1-9-1", "كِتَابُ"),
        ))
        self.assertEqual(len(result.constructions), 1)
        construction = result.constructions[0]
        self.assertEqual(construction.mudaf.id, "1-1-9-1")
        self.assertEqual(construction.mudaf.position, 0)
        self.assertEqual(construction.mudaf_ilayh.position, 1)

    def test_unparseable_id_raises(self):
        with self.assertRaises(SegmentIdError):
            detect({"bad": noun("bad", "كِتَابُ")})

    def test_context_words(self):
        result = detect(as_map(
            noun("1-2-1-1", "ٱلْحَمْدُ"),
            noun("1-2-2-1", "رَبِّ"),
            noun("1-2-3-1", "ٱلْعَٰلَمِينَ", case="genitive"),
            noun("1-2-4-1", "ٱلرَّحْمَٰنِ"),
        ))
        construction = result.constructions[0]
        self.assertEqual(construction.context.preceding_word, "ٱلْحَمْدُ")
        self.assertEqual(construction.context.following_word, "ٱلرَّحْمَٰنِ")


class TestNotesAndRobustness(unittest.TestCase):

    def test_malformed_segment_adds_note(self):
        result = detect({"1-1-1-1": {"id": "1-1-1-1", "text": "كِتَابُ"}})
        self.assertEqual(result.statistics.total, 0)
        self.assertTrue(any("missing morphology" in note for note in result.notes))

    def test_missing_features_still_produce_notes(self):
        result = detect(as_map(noun("1-1-1-1", "رَبِّ")))
        self.assertGreater(len(result.notes), 0)

    def test_partly_flexible_note(self):
        result = detect(as_map(
            noun("1-1-1-1", "كِتَابُ"),
            noun("1-1-2-1", "يُوسُفَ", pattern="partly_flexible"),
        ))
        self.assertEqual(len(result.constructions), 1)
        self.assertEqual(result.constructions[0].certainty, Certainty.PROBABLE)
        self.assertTrue(any(re.search(r"partly-flexible.*fatha", n, re.I) for n in result.notes))

    def test_lexicon_construct_note(self):
        lexicon = [{"surah": 1, "verse": 2, "word": 2, "segment": 1, "case": "gen",
                    "state": "construct", "pattern": "partly-flexible"}]
        result = detect(as_map(noun("1-2-2-1", "رَبِّ")), lexicon)
        self.assertTrue(any(re.search(r"Lexicon.*construct", n) for n in result.notes))

    def test_lexicon_genitive_accepts_candidate(self):
        lexicon = {"1-1-2-1": {"case": "gen"}}
        result = detect(as_map(noun("1-1-1-1", "كِتَابُ"), noun("1-1-2-1", "طالب")), lexicon)
        self.assertEqual(result.constructions[0].applied_rule, "3-question test: Lexicon case data")

    def test_malformed_candidate_is_capped_at_inferred(self):
        result = detect({
            "1-1-1-1": noun("1-1-1-1", "كِتَابُ"),
            "1-1-2-1": {"id": "1-1-2-1", "text": "طَالِبِ"},
        })
        self.assertEqual(len(result.constructions), 1)
        self.assertEqual(result.constructions[0].certainty, Certainty.INFERRED)
        self.assertTrue(any("capped at inferred" in note for note in result.notes))
        self.assertTrue(any("missing morphology" in note for note in result.notes))

    def test_words_ending_like_a_pronoun_without_carrying_one(self):
        for text in ("ٱلنَّبِيِّ", "ٱلَّذِي", "مَلِكٍ"):
            result = detect(as_map(noun("1-1-1-1", text)))
            self.assertEqual(result.statistics.with_pronouns, 0, text)
            self.assertEqual(result.statistics.total, 0, text)


class TestInvariants(unittest.TestCase):

    def setUp(self):
        self.verse = as_map(
            noun("1-2-2-1", "رَبِّ", case="genitive"),
            noun("1-2-3-1", "ٱلْعَٰلَمِينَ", case="genitive"),
            noun("1-3-1-1", "كِتَابُ"),
            noun("1-3-2-1", "طَالِبٍ"),
            noun("1-3-3-1", "رَبُّهُمْ"),
        )

    def test_statistics_consistency(self):
        result = detect(self.verse)
        stats = result.statistics
        self.assertEqual(stats.total, len(result.constructions))
        self.assertEqual(stats.definite + stats.probable + stats.inferred, stats.total)

    def test_state_isolation(self):
        detector = IdafaDetector()
        first = detector.detect(self.verse)
        second = detector.detect(as_map(noun("9-9-9-1", "كِتَابُ")))
        self.assertGreater(first.statistics.total, 0)
        first_ids = {c.id for c in first.constructions}
        self.assertFalse(first_ids & {c.id for c in second.constructions})
        self.assertEqual(second.statistics.total, 0)

    def test_repeatable(self):
        self.assertEqual(detect(self.verse).constructions, detect(self.verse).constructions)

    def test_pronoun_stem_config(self):
        segments = as_map(noun("1-1-1-1", "أَبِي"))
        self.assertEqual(detect(segments).statistics.with_pronouns, 1)
        strict = detect(segments, config=DetectorConfig(min_pronoun_stem=3))
        self.assertEqual(strict.statistics.with_pronouns, 0)


if __name__ == '__main__':
    unittest.main()

"""
Idafa (mudaf + mudaf ilayh) detection.

For every noun candidate the classical 3-question test is applied:

    Q1  Is the word light (no tanwin)?
    Q2  Does it lack the definite article?
    Q3  Is a following word in the genitive?

Q1 and Q2 qualify the mudaf; Q3 is asked of each token in a short forward
window until one is accepted or a boundary (verb, definite noun, article
particle) ends the search. Q3 evidence is ranked, and the rank decides the
certainty of the construction:

    explicit genitive case tag          definite
    kasra without tanwin                definite
    lexicon genitive                    definite
    partly-flexible noun with fatha     probable
    non-flexible noun                   inferred
    pronoun in particle position        definite
    article-less noun (contextual)      inferred

Independently of the test, a noun carrying an attached pronoun always forms
a definite construction with that pronoun.

Detection is a pure function of its input: every accumulator lives in a
per-call ``_DetectionPass``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from nahw import lexicon
from nahw.chains import link_chains
from nahw.config import DEFAULT_CONFIG, DetectorConfig
from nahw.constructions import (
    Certainty,
    Construction,
    ConstructionContext,
    ConstructionTerm,
    DetectionResult,
    MudafIlayh,
    Statistics,
    TermKind,
)
from nahw.logging_config import log_with_context
from nahw.segments import (
    LexiconEntry,
    MorphCategory,
    Segment,
    SegmentId,
    SegmentRole,
    coerce_segments,
    load_lexicon,
)

logger = logging.getLogger(__name__)

LexiconInput = Union[Mapping[str, Any], Iterable[Mapping[str, Any]], None]


@dataclass(frozen=True)
class Verdict:
    """Outcome of one question of the test."""
    passed: bool
    reason: str
    certainty: Optional[Certainty] = None
    rule: Optional[str] = None
    kind: TermKind = TermKind.NOUN


# -----------------------------------------------------------------------------
# --- Segment predicates
# -----------------------------------------------------------------------------

def is_pronoun(segment: Segment) -> bool:
    return lexicon.is_independent_pronoun(segment.text) or segment.has_role("pronoun")


def has_article(segment: Segment) -> bool:
    """True for an article-bearing word or an article particle."""
    return (
        lexicon.begins_with_article(segment.text)
        or lexicon.is_definite_article(segment.text)
        or segment.has_role("definite_article")
    )


def is_noun_candidate(segment: Segment) -> bool:
    if segment.category is MorphCategory.NOUN:
        return True
    return segment.category is MorphCategory.PARTICLE and is_pronoun(segment)


def is_boundary(segment: Segment) -> bool:
    """Tokens that end the search for a mudaf ilayh."""
    if segment.category is MorphCategory.VERB:
        return True
    if segment.category is MorphCategory.PARTICLE:
        return lexicon.is_definite_article(segment.text) or segment.has_role("definite_article")
    if segment.category is MorphCategory.NOUN:
        return lexicon.begins_with_article(segment.text)
    return False


def is_skippable(segment: Segment) -> bool:
    """Particles the search steps over without ending it."""
    return (
        segment.category is MorphCategory.PARTICLE
        and not is_pronoun(segment)
        and not is_boundary(segment)
    )


def _pattern(segment: Segment, entry: Optional[LexiconEntry]) -> str:
    if segment.has_pattern():
        raw = segment.pattern
    else:
        raw = (entry.pattern if entry else None) or ""
    return raw.lower().replace("_", "-").replace(" ", "-")


def is_partly_flexible(segment: Segment, entry: Optional[LexiconEntry] = None) -> bool:
    return "partly" in _pattern(segment, entry)


def is_non_flexible(segment: Segment, entry: Optional[LexiconEntry] = None) -> bool:
    pattern = _pattern(segment, entry)
    return "non-flexible" in pattern or "nonflexible" in pattern


# -----------------------------------------------------------------------------
# --- The three questions
# -----------------------------------------------------------------------------

def is_light(segment: Segment, entry: Optional[LexiconEntry] = None) -> Verdict:
    """Question 1: is the word light (no tanwin)?"""
    if lexicon.has_tanwin(segment.text):
        return Verdict(False, "Has tanwin marking")

    if entry is not None:
        if entry.is_construct_state():
            return Verdict(True, "Lexicon: construct state")
        if entry.is_absolute_state():
            return Verdict(False, "Lexicon: absolute state")

    if segment.is_construct_state():
        return Verdict(True, "Tagged construct state")
    if segment.is_absolute_state():
        return Verdict(False, "Tagged absolute state")

    if lexicon.ends_in_short_vowel(segment.text):
        return Verdict(True, "Matches typical light word pattern")

    return Verdict(True, "Assumed light in idafa context")


def lacks_definite_article(segment: Segment, entry: Optional[LexiconEntry] = None) -> Verdict:
    """Question 2: does the word lack the definite article?"""
    if lexicon.begins_with_article(segment.text):
        return Verdict(False, "Has definite article prefix")
    if segment.has_role("definite_article"):
        return Verdict(False, "Marked as definite article")
    if segment.is_tagged_definite():
        return Verdict(False, "Tagged definite")
    if entry is not None and entry.is_definite():
        return Verdict(False, "Lexicon: marked as definite")
    return Verdict(True, "No definite article detected")


def genitive_status(candidate: Segment, entry: Optional[LexiconEntry] = None,
                    after_article: bool = False) -> Verdict:
    """
    Question 3: is the candidate in the genitive?

    A definite article on the candidate rules out every text-derived reading
    (it marks a descriptive adjective). An explicit genitive tag, on the
    segment or in the lexicon, still accepts it. A malformed candidate is
    accepted at most as inferred.

    Args:
        candidate: Segment following the mudaf
        entry: Its lexicon entry, if any
        after_article: The article was tagged as a separate prefix segment
            of the candidate's word
    """
    verdict = _genitive_evidence(candidate, entry, after_article)
    if verdict.passed and candidate.is_malformed and verdict.certainty is not Certainty.INFERRED:
        return replace(
            verdict,
            reason=f"{verdict.reason}; capped at inferred, segment is missing "
                   f"{', '.join(candidate.missing_fields)}",
            certainty=Certainty.INFERRED,
        )
    return verdict


def _genitive_evidence(candidate: Segment, entry: Optional[LexiconEntry], after_article: bool) -> Verdict:
    if candidate.category is MorphCategory.VERB:
        return Verdict(False, "Verbs take no case", rule="No applicable rule")

    authoritative = candidate.is_genitive() or (entry is not None and entry.is_genitive())
    article = after_article or has_article(candidate)

    if article and not authoritative:
        return Verdict(
            False,
            "Has definite article: descriptive adjective, not possessor",
            rule="Definite article exclusion",
        )

    if candidate.is_genitive():
        return Verdict(True, "Explicitly marked genitive", Certainty.DEFINITE, "Direct case marking")

    if candidate.has_case() and not authoritative:
        return Verdict(False, f"Explicitly marked {candidate.case}", rule="Direct case marking")

    if not article and lexicon.has_kasra(candidate.text) and not lexicon.has_tanwin(candidate.text):
        return Verdict(
            True, "Has kasra (genitive marker) without tanwin", Certainty.DEFINITE, "Genitive vowel marking"
        )

    if entry is not None and entry.is_genitive():
        return Verdict(True, "Lexicon: genitive case", Certainty.DEFINITE, "Lexicon case data")

    if is_partly_flexible(candidate, entry) and lexicon.has_fatha(candidate.text):
        return Verdict(
            True,
            "Partly-flexible with fatha (indicating jarr)",
            Certainty.PROBABLE,
            "Partly-flexible genitive pattern",
        )

    if is_non_flexible(candidate, entry):
        return Verdict(
            True,
            "Non-flexible noun following light noun (contextual jarr)",
            Certainty.INFERRED,
            "Non-flexible contextual inference",
        )

    if candidate.category is MorphCategory.PARTICLE and is_pronoun(candidate):
        return Verdict(
            True,
            "Pronoun in genitive context",
            Certainty.DEFINITE,
            "Pronoun genitive assumption",
            kind=TermKind.PRONOUN,
        )

    if candidate.category is MorphCategory.NOUN and not article:
        return Verdict(True, "Contextual genitive inference", Certainty.INFERRED, "Contextual pattern matching")

    return Verdict(False, "No genitive indicators found", rule="No applicable rule")


# -----------------------------------------------------------------------------
# --- Detection
# -----------------------------------------------------------------------------

def coerce_lexicon(data: LexiconInput) -> Dict[str, LexiconEntry]:
    if data is None:
        return {}
    if isinstance(data, Mapping):
        entries: Dict[str, LexiconEntry] = {}
        for key, value in data.items():
            entry = value if isinstance(value, LexiconEntry) else LexiconEntry.from_record(value)
            entries[str(SegmentId.parse(key))] = entry
        return entries
    return load_lexicon(data)


class _DetectionPass:
    """State of a single ``detect`` call."""

    def __init__(self, ordered: List[Segment], keys: List[SegmentId],
                 entries: Mapping[str, LexiconEntry], config: DetectorConfig):
        self.segments = ordered
        self.keys = keys
        self.entries = entries
        self.config = config
        self.constructions: List[Construction] = []
        self.notes: List[str] = []

    def entry(self, index: int) -> Optional[LexiconEntry]:
        return self.entries.get(str(self.keys[index]))

    def text_at(self, index: int) -> Optional[str]:
        if 0 <= index < len(self.segments):
            return self.segments[index].text or None
        return None

    def same_word(self, a: int, b: int) -> bool:
        return self.keys[a].word_key == self.keys[b].word_key

    def is_article_prefix(self, index: int) -> bool:
        """An article particle fused to the next segment of its word."""
        segment = self.segments[index]
        return (
            segment.category is MorphCategory.PARTICLE
            and has_article(segment)
            and index + 1 < len(self.segments)
            and self.same_word(index, index + 1)
        )

    def after_article(self, index: int) -> bool:
        return index > 0 and self.is_article_prefix(index - 1)

    def run(self):
        for segment in self.segments:
            if segment.is_malformed:
                self.notes.append(
                    f"Segment {segment.id} is missing {', '.join(segment.missing_fields)}; "
                    f"treated as unclassified"
                )

        for index, segment in enumerate(self.segments):
            if not is_noun_candidate(segment):
                continue
            if self.qualifies_as_mudaf(index):
                self.find_mudaf_ilayh(index)

        for index, segment in enumerate(self.segments):
            if is_noun_candidate(segment):
                self.attached_pronoun(index)

    def qualifies_as_mudaf(self, index: int) -> bool:
        segment = self.segments[index]
        entry = self.entry(index)

        light = is_light(segment, entry)
        if light.reason.startswith("Lexicon"):
            self.notes.append(f"{light.reason} for {segment.id} '{segment.text}'")
        if not light.passed:
            log_with_context(
                f"Q1 failed for '{segment.text}'", {"segment": segment.id, "reason": light.reason}, logger=logger
            )
            return False

        definite = lacks_definite_article(segment, entry)
        if definite.passed and self.after_article(index):
            definite = Verdict(False, "Preceded by definite article prefix")
        if not definite.passed:
            log_with_context(
                f"Q2 failed for '{segment.text}'", {"segment": segment.id, "reason": definite.reason}, logger=logger
            )
            return False

        log_with_context(
            f"Mudaf candidate '{segment.text}'",
            {"segment": segment.id, "light": light.reason, "article": definite.reason},
            logger=logger,
        )
        return True

    def find_mudaf_ilayh(self, index: int):
        mudaf = self.segments[index]
        stop = min(index + 1 + self.config.search_window, len(self.segments))

        for j in range(index + 1, stop):
            candidate = self.segments[j]

            # Suffixes of the mudaf's own word belong to the attached-pronoun rule
            if candidate.role is SegmentRole.SUFFIX and self.same_word(index, j):
                continue
            if is_skippable(candidate):
                continue
            # The noun the article is fused to is examined next
            if self.is_article_prefix(j):
                continue

            article = self.after_article(j)
            verdict = genitive_status(candidate, self.entry(j), after_article=article)
            log_with_context(
                f"Q3 for '{candidate.text}': {verdict.passed}",
                {"mudaf": mudaf.id, "candidate": candidate.id, "reason": verdict.reason},
                logger=logger,
            )
            if verdict.passed:
                self.add(self.regular_construction(index, j, verdict))
                return

            if article or is_boundary(candidate):
                logger.debug(f"Hit construction boundary at '{candidate.text}'")
                return

    def regular_construction(self, i: int, j: int, verdict: Verdict) -> Construction:
        a, b = self.segments[i], self.segments[j]
        construction = Construction(
            id=f"idafa-{a.id}-{b.id}",
            mudaf=ConstructionTerm(id=a.id, text=a.text, position=i),
            mudaf_ilayh=MudafIlayh(id=b.id, text=b.text, position=j, kind=verdict.kind),
            certainty=verdict.certainty,
            applied_rule=f"3-question test: {verdict.rule}",
            context=ConstructionContext(preceding_word=self.text_at(i - 1), following_word=self.text_at(j + 1)),
        )
        self.notes.append(f"{a.text} + {b.text} ({verdict.certainty.value}): {verdict.reason}")
        return construction

    def attached_pronoun(self, index: int):
        segment = self.segments[index]
        # ٱلَّذِي and ٱلنَّبِيِّ end in ي without carrying a pronoun; a pronoun
        # never follows tanwin (مَلِكٍ)
        if has_article(segment) or self.after_article(index) or lexicon.has_tanwin(segment.text):
            return

        suffix_text = lexicon.attached_pronoun_ending(segment.text, self.config.min_pronoun_stem)
        position = index
        if suffix_text is None and index + 1 < len(self.segments):
            following = self.segments[index + 1]
            if (
                following.role is SegmentRole.SUFFIX
                and self.same_word(index, index + 1)
                and (lexicon.is_pronoun_suffix(following.text) or following.has_role("pronoun"))
            ):
                suffix_text = following.text
                position = index + 1
        if suffix_text is None:
            return

        construction = Construction(
            id=f"idafa-pronoun-{segment.id}",
            mudaf=ConstructionTerm(id=segment.id, text=segment.text, position=index),
            mudaf_ilayh=MudafIlayh(
                id=f"{segment.id}-pronoun", text=suffix_text, position=position, kind=TermKind.ATTACHED_PRONOUN
            ),
            certainty=Certainty.DEFINITE,
            applied_rule="Attached pronoun rule: pronouns attached to nouns always form idafa",
            context=ConstructionContext(
                preceding_word=self.text_at(index - 1), following_word=self.text_at(position + 1)
            ),
        )
        self.notes.append(f"{segment.text} + attached pronoun '{suffix_text}' (definite)")
        self.add(construction)

    def add(self, construction: Construction):
        self.constructions.append(construction)
        logger.debug(f"IDAFA DETECTED: {construction}")


def detect(
    segments: Mapping[str, Any],
    lexicon_data: LexiconInput = None,
    config: Optional[DetectorConfig] = None,
) -> DetectionResult:
    """
    Detect idafa constructions in a map of segments.

    Args:
        segments: Map of composite id -> Segment or upstream record
        lexicon_data: Optional lexicon, either a map of composite id ->
            LexiconEntry/record or an iterable of located records
        config: Detector tunables (defaults to DEFAULT_CONFIG)

    Returns:
        A fresh DetectionResult; nothing is shared with earlier calls

    Raises:
        SegmentIdError: if a segment or lexicon id cannot be parsed
    """
    if not segments:
        logger.info("No segments supplied; returning empty result")
        return DetectionResult.empty(["No segments supplied"])
    return detect_with_entries(segments, coerce_lexicon(lexicon_data), config)


def detect_with_entries(
    segments: Mapping[str, Any],
    entries: Mapping[str, LexiconEntry],
    config: Optional[DetectorConfig] = None,
) -> DetectionResult:
    """
    ``detect`` over a lexicon already keyed by canonical id.

    Batch callers coerce the lexicon once with ``coerce_lexicon`` and reuse
    it for every call.
    """
    config = config or DEFAULT_CONFIG
    if not segments:
        return DetectionResult.empty(["No segments supplied"])

    coerced = coerce_segments(segments)
    keyed = sorted(
        ((seg.key if seg.id else SegmentId.parse(key), seg) for key, seg in coerced.items()),
        key=lambda pair: pair[0],
    )
    keys = [key for key, _ in keyed]
    ordered = [seg for _, seg in keyed]

    detection = _DetectionPass(ordered, keys, entries, config)
    detection.run()

    constructions, chains = link_chains(detection.constructions)
    statistics = Statistics.from_constructions(constructions)
    notes = detection.notes + [f"Processed {len(ordered)} segments: {statistics.total} constructions"]

    logger.info(f"Idafa detection: {statistics.total} constructions in {len(ordered)} segments")
    return DetectionResult(
        constructions=tuple(constructions),
        chains=tuple(tuple(chain) for chain in chains),
        statistics=statistics,
        notes=tuple(notes),
    )


class IdafaDetector:
    """
    Configured entry point for detection.

    Holds configuration only; every ``detect`` call is independent of the
    previous ones.
    """

    def __init__(self, config: Optional[DetectorConfig] = None):
        self.config = config or DEFAULT_CONFIG

    def detect(self, segments: Mapping[str, Any], lexicon_data: LexiconInput = None) -> DetectionResult:
        return detect(segments, lexicon_data, self.config)

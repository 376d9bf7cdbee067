"""
Morpheme aggregation: group fused morphemes into display/answer units.

Segments with independent syntactic function (particles, every pronoun class)
stay selectable on their own. Purely morphological affixes (the definite
article, imperfect-verb person prefixes, trailing pronoun and case/number
suffixes) are folded into the word they belong to.

The scan is a single left-to-right pass with one token of lookahead:

1. syntactic function       -> standalone unit, advance 1
2. morphological prefix     -> collect the maximal attachable run, advance by its length
3. anything else            -> standalone unit, advance 1
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from nahw import lexicon
from nahw.segments import MorphCategory, Segment, SegmentIdError, SegmentId, SegmentRole

logger = logging.getLogger(__name__)


class AggregationRule(str, Enum):
    SYNTACTIC = "syntactic_function"
    MORPHOLOGICAL = "morphological_attachment"
    STANDALONE = "standalone"


@dataclass(frozen=True)
class AggregatedUnit:
    """
    One or more fused segments addressed as a single unit.

    The unit does not own its segments; ``indices`` point back into the list
    given to ``aggregate``.
    """
    id: str
    text: str
    category: Optional[MorphCategory]
    role: Optional[SegmentRole]
    grammatical_role: Optional[str]
    indices: Tuple[int, ...]
    segments: Tuple[Segment, ...]
    rule: AggregationRule

    @property
    def is_aggregated(self) -> bool:
        return len(self.segments) > 1


SegmentLike = Union[Segment, Mapping[str, Any]]


def _as_segment(value: SegmentLike) -> Segment:
    return value if isinstance(value, Segment) else Segment.from_record(value)


def _is_article(segment: Segment) -> bool:
    return lexicon.is_definite_article(segment.text)


def _is_verbal_prefix(segment: Segment, next_segment: Optional[Segment]) -> bool:
    return (
        segment.role is SegmentRole.PREFIX
        and lexicon.is_verbal_prefix(segment.text)
        and next_segment is not None
        and next_segment.category is MorphCategory.VERB
    )


def has_syntactic_function(segment: Segment, next_segment: Optional[Segment] = None) -> bool:
    """
    True if the segment must stay a standalone unit.

    The definite article and imperfect-verb prefixes are morphological and are
    recognised before any closed-set or particle check.
    """
    if _is_article(segment) or _is_verbal_prefix(segment, next_segment):
        return False
    if lexicon.particle_class(segment.text) or lexicon.pronoun_class(segment.text):
        return True
    if segment.role is SegmentRole.SUFFIX and segment.has_role("pronoun"):
        return True
    return segment.category is MorphCategory.PARTICLE


def attaches_to_next(current: Segment, next_segment: Segment) -> bool:
    """Prefix -> stem attachment."""
    if _is_article(current):
        return next_segment.category in (MorphCategory.NOUN, MorphCategory.ADJECTIVE)
    return _is_verbal_prefix(current, next_segment)


def attaches_from_next(current: Segment, next_segment: Segment) -> bool:
    """Stem <- suffix attachment."""
    if next_segment.role is not SegmentRole.SUFFIX or not _same_word(current, next_segment):
        return False
    return (
        lexicon.is_pronoun_suffix(next_segment.text)
        or next_segment.has_role("pronoun")
        or lexicon.is_case_number_suffix(next_segment.text)
    )


def _same_word(a: Segment, b: Segment) -> bool:
    try:
        return SegmentId.parse(a.id).word_key == SegmentId.parse(b.id).word_key
    except SegmentIdError:
        # Without a location only the tags can decide
        return True


def _collect_run(segments: Sequence[Segment], start: int) -> List[int]:
    run = [start]
    i = start + 1
    while i < len(segments):
        previous, current = segments[i - 1], segments[i]
        if attaches_to_next(previous, current) or attaches_from_next(previous, current):
            run.append(i)
            i += 1
        else:
            break
    return run


def _unit(segments: Sequence[Segment], indices: List[int], rule: AggregationRule) -> AggregatedUnit:
    members = tuple(segments[i] for i in indices)
    primary = next((s for s in members if s.role is SegmentRole.ROOT), members[0])
    return AggregatedUnit(
        id=primary.id,
        text="".join(s.text for s in members),
        category=primary.category,
        role=primary.role,
        grammatical_role=primary.grammatical_role,
        indices=tuple(indices),
        segments=members,
        rule=rule,
    )


def aggregate(segments: Sequence[SegmentLike]) -> List[AggregatedUnit]:
    """
    Group an ordered list of segments into aggregated units.

    Pure and total: the same input always yields the same grouping, and no
    input raises.

    Args:
        segments: Ordered segments (Segment instances or upstream records)

    Returns:
        Ordered list of AggregatedUnit covering every input index exactly once
    """
    items = [_as_segment(s) for s in segments]
    units: List[AggregatedUnit] = []
    i = 0

    while i < len(items):
        current = items[i]
        next_segment = items[i + 1] if i + 1 < len(items) else None

        if has_syntactic_function(current, next_segment):
            logger.debug(f"[{i}] '{current.text}' standalone (syntactic function)")
            units.append(_unit(items, [i], AggregationRule.SYNTACTIC))
            i += 1
            continue

        if next_segment is not None and attaches_to_next(current, next_segment):
            run = _collect_run(items, i)
            logger.debug(f"[{i}] attached run: {' + '.join(items[j].text for j in run)}")
            units.append(_unit(items, run, AggregationRule.MORPHOLOGICAL))
            i += len(run)
            continue

        logger.debug(f"[{i}] '{current.text}' standalone (default)")
        units.append(_unit(items, [i], AggregationRule.STANDALONE))
        i += 1

    logger.debug(f"Aggregated {len(items)} segments into {len(units)} units")
    return units


def unit_for_index(units: Sequence[AggregatedUnit], index: int) -> Optional[AggregatedUnit]:
    """Return the unit that contains the segment at ``index``, if any."""
    for unit in units:
        if index in unit.indices:
            return unit
    return None


def explain(segment: SegmentLike, next_segment: Optional[SegmentLike] = None) -> str:
    """Human-readable reason for how ``segment`` is aggregated."""
    seg = _as_segment(segment)
    nxt = _as_segment(next_segment) if next_segment is not None else None

    if _is_article(seg):
        if nxt is not None and attaches_to_next(seg, nxt):
            return "Definite article: attaches to the following noun"
        return "Definite article: nothing attachable follows, kept standalone"
    if _is_verbal_prefix(seg, nxt):
        return "Imperfect verb prefix: attaches to the following verb"

    particle = lexicon.particle_class(seg.text)
    if particle:
        if seg.role is SegmentRole.PREFIX and lexicon.is_prepositional_prefix(seg.text):
            return f"Prepositional prefix with syntactic function ({particle}): kept separate"
        return f"Syntactic particle ({particle}): kept separate"
    pronoun = lexicon.pronoun_class(seg.text)
    if pronoun:
        return f"Pronoun ({pronoun}): kept separate"
    if seg.role is SegmentRole.SUFFIX and seg.has_role("pronoun"):
        return "Pronoun suffix: kept separate"
    if seg.category is MorphCategory.PARTICLE:
        return "Particle: kept separate"
    return "Standalone word"

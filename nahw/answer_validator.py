"""
Scoring a learner's word selection against detected constructions.

Each known-correct construction is compared with the selection by Jaccard
similarity and the best match is kept:

    similarity >= 0.8          correct
    0.4 <= similarity < 0.8    partially correct
    otherwise                  incorrect

The numeric score is the best similarity x 100, rounded half up.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import AbstractSet, Iterable, List, Optional, Sequence, Tuple

from nahw.constructions import Construction

logger = logging.getLogger(__name__)

CORRECT_THRESHOLD = 0.8
PARTIAL_THRESHOLD = 0.4

MESSAGE_CORRECT = "Excellent! You correctly identified the construction."
MESSAGE_PARTIAL = "Partially correct. You identified some parts of the construction."
MESSAGE_INCORRECT = "Not quite right. Let me show you the correct construction."


@dataclass(frozen=True)
class AnswerScore:
    is_correct: bool
    is_partial: bool
    numeric_score: int
    similarity: float = 0.0
    best_index: Optional[int] = None


@dataclass(frozen=True)
class Feedback:
    message: str
    explanation: str
    correct_highlight: Tuple[str, ...] = ()
    incorrect_highlight: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AnswerValidation:
    score: AnswerScore
    feedback: Feedback
    best_match: Optional[Construction] = None
    correct_constructions: Tuple[Construction, ...] = field(default_factory=tuple)


def jaccard(a: AbstractSet[str], b: AbstractSet[str]) -> float:
    """Jaccard similarity; 0.0 when either set is empty."""
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def _round_half_up(value: float) -> int:
    return int(math.floor(value * 100 + 0.5))


def score(correct_word_id_sets: Sequence[Iterable[str]], user_word_id_set: Iterable[str]) -> AnswerScore:
    """
    Score a selection against every known-correct construction.

    Args:
        correct_word_id_sets: Word ids of each correct construction
        user_word_id_set: Word ids the user selected

    Returns:
        AnswerScore for the best-matching construction. On ties the first
        construction wins; ``best_index`` is None when nothing overlaps.
    """
    user = frozenset(user_word_id_set)
    best, best_index = 0.0, None
    for index, ids in enumerate(correct_word_id_sets):
        similarity = jaccard(frozenset(ids), user)
        if similarity > best:
            best, best_index = similarity, index

    return AnswerScore(
        is_correct=best >= CORRECT_THRESHOLD,
        is_partial=PARTIAL_THRESHOLD <= best < CORRECT_THRESHOLD,
        numeric_score=_round_half_up(best),
        similarity=best,
        best_index=best_index,
    )


def construction_word_ids(construction: Construction) -> Tuple[str, ...]:
    """Selectable segment ids of a construction."""
    return construction.word_ids()


def validate_answer(constructions: Sequence[Construction], user_word_ids: Sequence[str]) -> AnswerValidation:
    """
    Score a selection and build learner feedback.

    When the answer is correct the selection itself is highlighted;
    otherwise the best-matching construction is highlighted as correct and
    the selected ids outside it as incorrect.
    """
    selected = list(dict.fromkeys(user_word_ids))
    result = score([construction_word_ids(c) for c in constructions], selected)
    best = constructions[result.best_index] if result.best_index is not None else None

    if result.is_correct:
        message = MESSAGE_CORRECT
    elif result.is_partial:
        message = MESSAGE_PARTIAL
    else:
        message = MESSAGE_INCORRECT

    explanation = (
        f"{best.mudaf.text} + {best.mudaf_ilayh.text}: {best.applied_rule}"
        if best is not None
        else "No explanation available."
    )

    if result.is_correct:
        correct_highlight = tuple(selected)
        incorrect_highlight: Tuple[str, ...] = ()
    else:
        best_ids: List[str] = list(construction_word_ids(best)) if best is not None else []
        correct_highlight = tuple(best_ids)
        incorrect_highlight = tuple(i for i in selected if i not in best_ids)

    logger.info(
        f"Answer validation: {'correct' if result.is_correct else 'incorrect'} (score: {result.numeric_score})"
    )
    return AnswerValidation(
        score=result,
        feedback=Feedback(message, explanation, correct_highlight, incorrect_highlight),
        best_match=best,
        correct_constructions=tuple(constructions),
    )

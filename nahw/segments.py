"""
Segment model for pre-tagged Quranic morphemes.

A segment is the smallest tagged unit handed over by the upstream
segmentation/tagging step (one prefix, root or suffix of a word). Segments are
addressed by a composite id ``"{surah}-{verse}-{word}-{segment}"`` which this
module parses into a structural, numerically ordered key.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple


class SegmentIdError(ValueError):
    """Raised when a composite segment id cannot be parsed.

    This signals an upstream contract violation, not a linguistic ambiguity.
    """


class MorphCategory(str, Enum):
    NOUN = "noun"
    VERB = "verb"
    PARTICLE = "particle"
    ADJECTIVE = "adjective"


class SegmentRole(str, Enum):
    PREFIX = "prefix"
    ROOT = "root"
    SUFFIX = "suffix"


@dataclass(frozen=True, order=True)
class SegmentId:
    """Structural (surah, verse, word, segment) key.

    Ordering compares the four integers field by field, so ``1-1-10-1`` sorts
    after ``1-1-9-1``.
    """

    surah: int
    verse: int
    word: int
    segment: int

    @classmethod
    def parse(cls, raw: str) -> "SegmentId":
        """
        Parse a composite id string.

        Args:
            raw: Id of the form "{surah}-{verse}-{word}-{segment}"

        Returns:
            Parsed SegmentId

        Raises:
            SegmentIdError: if the id does not hold four positive integers
        """
        if not isinstance(raw, str):
            raise SegmentIdError(f"Segment id must be a string, got {type(raw).__name__}")
        parts = raw.strip().split("-")
        if len(parts) != 4:
            raise SegmentIdError(f"Segment id '{raw}' must have 4 dash-separated parts")
        try:
            numbers = [int(part) for part in parts]
        except ValueError:
            raise SegmentIdError(f"Segment id '{raw}' contains a non-numeric part") from None
        if any(n < 0 for n in numbers):
            raise SegmentIdError(f"Segment id '{raw}' contains a negative part")
        return cls(*numbers)

    @property
    def word_key(self) -> Tuple[int, int, int]:
        """Location of the containing word."""
        return (self.surah, self.verse, self.word)

    def __str__(self) -> str:
        return f"{self.surah}-{self.verse}-{self.word}-{self.segment}"


def _enum_or_none(enum_cls, value):
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return None


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# Upstream records use camelCase; accept snake_case too.
_FIELD_ALIASES = {
    "grammatical_role": ("grammaticalRole", "grammatical_role"),
    "morphology": ("morphology", "morphological_category", "morphologicalCategory"),
    "type": ("type", "segment_role", "segmentRole"),
}


def _lookup(record: Mapping[str, Any], name: str) -> Any:
    for key in _FIELD_ALIASES.get(name, (name,)):
        if key in record:
            return record[key]
    return None


@dataclass(frozen=True)
class Segment:
    """An immutable tagged morpheme."""

    id: str
    text: str
    category: Optional[MorphCategory] = None
    role: Optional[SegmentRole] = None
    case: Optional[str] = None
    grammatical_role: Optional[str] = None
    pattern: Optional[str] = None
    gender: Optional[str] = None
    number: Optional[str] = None
    person: Optional[str] = None
    tense: Optional[str] = None
    voice: Optional[str] = None
    mood: Optional[str] = None
    state: Optional[str] = None
    definite: Optional[str] = None
    missing_fields: Tuple[str, ...] = ()

    @classmethod
    def from_record(cls, record: Mapping[str, Any], default_id: Optional[str] = None) -> "Segment":
        """
        Build a segment from an upstream record.

        Missing text or morphology never raises; the field falls back to the
        least informative value and is listed in ``missing_fields``.

        Args:
            record: Upstream dict (camelCase or snake_case keys)
            default_id: Id to use when the record carries none (e.g. map key)

        Returns:
            Segment
        """
        seg_id = _clean(record.get("id")) or default_id or ""
        missing = []

        text = record.get("text")
        if not isinstance(text, str) or not text.strip():
            missing.append("text")
            text = ""

        raw_category = _lookup(record, "morphology")
        category = _enum_or_none(MorphCategory, raw_category)
        if category is None:
            missing.append("morphology")

        definite = record.get("definite")
        if isinstance(definite, bool) or "isDefinite" in record:
            flag = definite if isinstance(definite, bool) else record.get("isDefinite")
            definite = "definite" if flag else "indefinite"

        return cls(
            id=seg_id,
            text=text.strip(),
            category=category,
            role=_enum_or_none(SegmentRole, _lookup(record, "type")),
            case=_clean(record.get("case")),
            grammatical_role=_clean(_lookup(record, "grammatical_role")),
            pattern=_clean(record.get("pattern")),
            gender=_clean(record.get("gender")),
            number=_clean(record.get("number")),
            person=_clean(record.get("person")),
            tense=_clean(record.get("tense")),
            voice=_clean(record.get("voice")),
            mood=_clean(record.get("mood")),
            state=_clean(record.get("state")),
            definite=_clean(definite),
            missing_fields=tuple(missing),
        )

    @property
    def key(self) -> SegmentId:
        return SegmentId.parse(self.id)

    @property
    def is_malformed(self) -> bool:
        return bool(self.missing_fields)

    def has_case(self) -> bool:
        return self.case is not None

    def has_pattern(self) -> bool:
        return self.pattern is not None

    def is_genitive(self) -> bool:
        return self.case is not None and self.case.lower().startswith("gen")

    def is_construct_state(self) -> bool:
        return self.state is not None and "construct" in self.state.lower()

    def is_absolute_state(self) -> bool:
        return self.state is not None and "absolute" in self.state.lower()

    def is_tagged_definite(self) -> bool:
        return self.definite is not None and self.definite.lower().startswith("def")

    def has_role(self, role: str) -> bool:
        return self.grammatical_role is not None and role in self.grammatical_role.lower()


@dataclass(frozen=True)
class LexiconEntry:
    """Authoritative per-segment data from an external lexicon (e.g. MASAQ)."""

    case: Optional[str] = None
    state: Optional[str] = None
    definite: Optional[str] = None
    pattern: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "LexiconEntry":
        return cls(
            case=_clean(record.get("case")),
            state=_clean(record.get("state")),
            definite=_clean(record.get("definite")),
            pattern=_clean(record.get("pattern")),
        )

    def is_genitive(self) -> bool:
        return self.case is not None and "gen" in self.case.lower()

    def is_construct_state(self) -> bool:
        return self.state is not None and "construct" in self.state.lower()

    def is_absolute_state(self) -> bool:
        return self.state is not None and "absolute" in self.state.lower()

    def is_definite(self) -> bool:
        if self.definite is None:
            return False
        value = self.definite.lower()
        return "def" in value and not value.startswith("indef")


Lexicon = Mapping[str, LexiconEntry]


def load_lexicon(records: Iterable[Mapping[str, Any]]) -> Dict[str, LexiconEntry]:
    """
    Key lexicon records by composite segment id.

    Records either carry an ``id`` in composite form or separate
    ``surah``/``verse``/``word``/``segment`` fields.

    Raises:
        SegmentIdError: if a record's location cannot be parsed
    """
    lexicon: Dict[str, LexiconEntry] = {}
    for record in records:
        if all(field in record for field in ("surah", "verse", "word", "segment")):
            try:
                key = SegmentId(*(int(record[f]) for f in ("surah", "verse", "word", "segment")))
            except (TypeError, ValueError):
                raise SegmentIdError(f"Unparseable lexicon location in {dict(record)!r}") from None
        else:
            key = SegmentId.parse(record.get("id", ""))
        lexicon[str(key)] = LexiconEntry.from_record(record)
    return lexicon


def coerce_segments(segments: Mapping[str, Any]) -> Dict[str, Segment]:
    """Turn a map of records and/or Segments into a map of Segments."""
    coerced: Dict[str, Segment] = {}
    for key, value in segments.items():
        if isinstance(value, Segment):
            coerced[key] = value
        else:
            coerced[key] = Segment.from_record(value, default_id=key)
    return coerced

"""
Construction values produced by the detector.

A Construction links a mudaf (first term) to its mudaf ilayh (second term).
Constructions, their statistics and the detection result are immutable; the
statistics are always derived from a list of constructions, never counted
alongside it.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple


class Certainty(str, Enum):
    """Confidence tier, tied to which evidence accepted the construction."""
    DEFINITE = "definite"
    PROBABLE = "probable"
    INFERRED = "inferred"


class TermKind(str, Enum):
    """What fills the mudaf ilayh slot."""
    NOUN = "noun"
    PRONOUN = "pronoun"
    ATTACHED_PRONOUN = "attached_pronoun"


@dataclass(frozen=True)
class ConstructionTerm:
    """One side of a construction: segment id, surface text and sorted position."""
    id: str
    text: str
    position: int


@dataclass(frozen=True)
class MudafIlayh(ConstructionTerm):
    kind: TermKind = TermKind.NOUN


@dataclass(frozen=True)
class ConstructionContext:
    preceding_word: Optional[str] = None
    following_word: Optional[str] = None


@dataclass(frozen=True)
class Construction:
    """A detected idafa relation."""
    id: str
    mudaf: ConstructionTerm
    mudaf_ilayh: MudafIlayh
    certainty: Certainty
    applied_rule: str
    is_chain: bool = False
    chain_level: int = 0
    context: ConstructionContext = field(default_factory=ConstructionContext)

    @property
    def has_pronoun(self) -> bool:
        return self.mudaf_ilayh.kind is not TermKind.NOUN

    def word_ids(self) -> Tuple[str, ...]:
        """Selectable segment ids covered by this construction.

        An attached pronoun lives inside the mudaf's own segment, so only the
        mudaf id is returned for it.
        """
        if self.mudaf_ilayh.kind is TermKind.ATTACHED_PRONOUN:
            return (self.mudaf.id,)
        return (self.mudaf.id, self.mudaf_ilayh.id)

    def __str__(self) -> str:
        return f"{self.mudaf.text} + {self.mudaf_ilayh.text} ({self.certainty.value})"


@dataclass(frozen=True)
class Statistics:
    """Counts over a list of constructions."""
    total: int = 0
    definite: int = 0
    probable: int = 0
    inferred: int = 0
    with_chains: int = 0
    with_pronouns: int = 0

    @classmethod
    def from_constructions(cls, constructions: Iterable[Construction]) -> "Statistics":
        items = list(constructions)
        return cls(
            total=len(items),
            definite=sum(1 for c in items if c.certainty is Certainty.DEFINITE),
            probable=sum(1 for c in items if c.certainty is Certainty.PROBABLE),
            inferred=sum(1 for c in items if c.certainty is Certainty.INFERRED),
            with_chains=sum(1 for c in items if c.is_chain),
            with_pronouns=sum(1 for c in items if c.has_pronoun),
        )

    def __add__(self, other: "Statistics") -> "Statistics":
        if not isinstance(other, Statistics):
            return NotImplemented
        return Statistics(**{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)})

    def as_dict(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class DetectionResult:
    """Everything one ``detect`` call found."""
    constructions: Tuple[Construction, ...] = ()
    chains: Tuple[Tuple[Construction, ...], ...] = ()
    statistics: Statistics = field(default_factory=Statistics)
    notes: Tuple[str, ...] = ()

    @classmethod
    def empty(cls, notes: Iterable[str] = ()) -> "DetectionResult":
        return cls(notes=tuple(notes))

    def chain_ids(self) -> List[List[str]]:
        return [[c.id for c in chain] for chain in self.chains]

"""
Corpus-wide idafa detection.

Segments are partitioned by surah and each surah is run through the detector
on its own. Global statistics are the field-wise sum of the per-surah
statistics, so the result does not depend on the order segments arrive in.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from tqdm import tqdm

from nahw.config import DEFAULT_CONFIG, DetectorConfig
from nahw.constructions import DetectionResult, Statistics
from nahw.idafa import LexiconInput, coerce_lexicon, detect_with_entries
from nahw.logging_config import ProgressLogger
from nahw.segments import SegmentId, SegmentIdError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CorpusSegment:
    """A located segment as delivered by the corpus loader."""
    surah: int
    verse: int
    word: int
    segment: int
    text: str
    morphology: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CorpusSegment":
        try:
            location = [int(record[f]) for f in ("surah", "verse", "word", "segment")]
        except (KeyError, TypeError, ValueError):
            raise SegmentIdError(f"Corpus record has no usable location: {dict(record)!r}") from None
        morphology = record.get("morphology")
        return cls(
            *location,
            text=str(record.get("text") or ""),
            morphology=dict(morphology) if isinstance(morphology, Mapping) else {},
        )

    @property
    def segment_id(self) -> str:
        return str(SegmentId(self.surah, self.verse, self.word, self.segment))

    def to_record(self) -> Dict[str, Any]:
        """Upstream segment record, keyed by this segment's location."""
        record = dict(self.morphology)
        record["id"] = self.segment_id
        if not record.get("text"):
            record["text"] = self.text
        return record


@dataclass(frozen=True)
class CorpusResult:
    total_segments: int
    total_constructions: int
    surah_results: Dict[int, DetectionResult]
    global_statistics: Statistics
    processing_time_ms: float
    notes: Tuple[str, ...] = ()

    @property
    def surahs_processed(self) -> int:
        return len(self.surah_results)


def _as_corpus_segment(value: Union[CorpusSegment, Mapping[str, Any]]) -> CorpusSegment:
    return value if isinstance(value, CorpusSegment) else CorpusSegment.from_record(value)


def group_by_surah(segments: Iterable[CorpusSegment]) -> Dict[int, List[CorpusSegment]]:
    """Partition segments by surah number, in ascending surah order."""
    groups: Dict[int, List[CorpusSegment]] = {}
    for seg in segments:
        groups.setdefault(seg.surah, []).append(seg)
    return {surah: groups[surah] for surah in sorted(groups)}


def process_corpus(
    segments: Iterable[Union[CorpusSegment, Mapping[str, Any]]],
    lexicon_data: LexiconInput = None,
    config: Optional[DetectorConfig] = None,
    show_progress: bool = False,
) -> CorpusResult:
    """
    Run idafa detection over a whole corpus, one surah at a time.

    Args:
        segments: Located corpus segments (CorpusSegment or records)
        lexicon_data: Optional lexicon shared by every surah
        config: Detector tunables
        show_progress: Show a console progress bar (the log gets
            ProgressLogger lines either way)

    Returns:
        CorpusResult with per-surah results and summed global statistics

    Raises:
        SegmentIdError: if a segment has no usable location
    """
    config = config or DEFAULT_CONFIG
    items = [_as_corpus_segment(s) for s in segments]
    entries = coerce_lexicon(lexicon_data)

    start = time.perf_counter()
    groups = group_by_surah(items)
    logger.info(f"Processing {len(items)} segments across {len(groups)} surahs")

    surah_results: Dict[int, DetectionResult] = {}
    notes: List[str] = []
    total_constructions = 0

    # tqdm for console, ProgressLogger for the log file
    with ProgressLogger(total=len(groups), desc="Surahs", logger=logger) as progress, \
            tqdm(groups.items(), total=len(groups), desc="Surahs", unit=" surah", disable=not show_progress) as bar:
        for surah, group in bar:
            segment_map = {seg.segment_id: seg.to_record() for seg in group}
            result = detect_with_entries(segment_map, entries, config)

            surah_results[surah] = result
            total_constructions += result.statistics.total
            notes.extend(f"Surah {surah}: {note}" for note in result.notes)
            progress.update(1, item_desc=f"surah {surah}: {result.statistics.total} constructions")

    global_statistics = sum((r.statistics for r in surah_results.values()), Statistics())
    elapsed_ms = (time.perf_counter() - start) * 1000

    logger.info(
        f"Corpus detection complete: {total_constructions} constructions across "
        f"{len(surah_results)} surahs in {elapsed_ms:.1f}ms"
    )
    return CorpusResult(
        total_segments=len(items),
        total_constructions=total_constructions,
        surah_results=surah_results,
        global_statistics=global_statistics,
        processing_time_ms=elapsed_ms,
        notes=tuple(notes),
    )

# This file makes the 'nahw' directory a Python package.

__version__ = "1.0.0"

from nahw.segments import Segment, SegmentId, SegmentIdError, LexiconEntry, load_lexicon
from nahw.aggregator import AggregatedUnit, aggregate
from nahw.constructions import Certainty, Construction, DetectionResult, Statistics
from nahw.config import DetectorConfig, load_config
from nahw.idafa import IdafaDetector, coerce_lexicon, detect, detect_with_entries
from nahw.corpus import CorpusResult, CorpusSegment, process_corpus
from nahw.export import to_json, corpus_to_json, constructions_from_json
from nahw.answer_validator import AnswerScore, score, validate_answer

__all__ = [
    '__version__',
    'Segment',
    'SegmentId',
    'SegmentIdError',
    'LexiconEntry',
    'load_lexicon',
    'AggregatedUnit',
    'aggregate',
    'Certainty',
    'Construction',
    'DetectionResult',
    'Statistics',
    'DetectorConfig',
    'load_config',
    'IdafaDetector',
    'detect',
    'detect_with_entries',
    'coerce_lexicon',
    'CorpusResult',
    'CorpusSegment',
    'process_corpus',
    'to_json',
    'corpus_to_json',
    'constructions_from_json',
    'AnswerScore',
    'score',
    'validate_answer',
]

"""
JSON export of detection results.

The wire schema is snake_case throughout and Arabic text is written as
UTF-8, not escaped.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List

from nahw import __version__
from nahw.chains import link_chains
from nahw.constructions import (
    Certainty,
    Construction,
    ConstructionContext,
    ConstructionTerm,
    MudafIlayh,
    Statistics,
    TermKind,
)
from nahw.corpus import CorpusResult

logger = logging.getLogger(__name__)

ALGORITHM = "three_question_test"
CORPUS_ALGORITHM = "three_question_test_corpus"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _dumps(data: Dict[str, Any], prettify: bool) -> str:
    if prettify:
        return json.dumps(data, indent=2, ensure_ascii=False)
    return json.dumps(data, ensure_ascii=False)


def construction_to_dict(construction: Construction) -> Dict[str, Any]:
    context = {}
    if construction.context.preceding_word is not None:
        context["preceding_word"] = construction.context.preceding_word
    if construction.context.following_word is not None:
        context["following_word"] = construction.context.following_word

    return {
        "id": construction.id,
        "mudaf": {
            "id": construction.mudaf.id,
            "text": construction.mudaf.text,
            "position": construction.mudaf.position,
        },
        "mudaf_ilayh": {
            "id": construction.mudaf_ilayh.id,
            "text": construction.mudaf_ilayh.text,
            "position": construction.mudaf_ilayh.position,
            "type": construction.mudaf_ilayh.kind.value,
        },
        "is_chain": construction.is_chain,
        "chain_level": construction.chain_level,
        "certainty": construction.certainty.value,
        "applied_rule": construction.applied_rule,
        "context": context,
    }


def construction_from_dict(data: Dict[str, Any]) -> Construction:
    """
    Rebuild a Construction from its exported form.

    Raises:
        ValueError: if a required field is missing or holds an unknown value
    """
    try:
        mudaf = data["mudaf"]
        ilayh = data["mudaf_ilayh"]
        context = data.get("context") or {}
        return Construction(
            id=data["id"],
            mudaf=ConstructionTerm(id=mudaf["id"], text=mudaf["text"], position=int(mudaf["position"])),
            mudaf_ilayh=MudafIlayh(
                id=ilayh["id"],
                text=ilayh["text"],
                position=int(ilayh["position"]),
                kind=TermKind(ilayh.get("type", TermKind.NOUN.value)),
            ),
            certainty=Certainty(data["certainty"]),
            applied_rule=data.get("applied_rule", ""),
            is_chain=bool(data.get("is_chain", False)),
            chain_level=int(data.get("chain_level") or 0),
            context=ConstructionContext(
                preceding_word=context.get("preceding_word"),
                following_word=context.get("following_word"),
            ),
        )
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed construction record: {e}") from e


def to_json(
    constructions: Iterable[Construction],
    include_statistics: bool = False,
    include_chains: bool = False,
    prettify: bool = False,
) -> str:
    """
    Export constructions as a JSON document.

    Args:
        constructions: Constructions to export
        include_statistics: Add a ``statistics`` object computed from them
        include_chains: Add ``chains`` as ordered lists of construction ids
        prettify: Indent the output

    Returns:
        JSON string
    """
    items = list(constructions)
    data: Dict[str, Any] = {
        "timestamp": _timestamp(),
        "algorithm": ALGORITHM,
        "version": __version__,
        "constructions": [construction_to_dict(c) for c in items],
    }
    if include_statistics:
        data["statistics"] = Statistics.from_constructions(items).as_dict()
    if include_chains:
        _, chains = link_chains(items)
        data["chains"] = [[c.id for c in chain] for chain in chains]

    logger.debug(f"Exported {len(items)} constructions to JSON")
    return _dumps(data, prettify)


def constructions_from_json(text: str) -> List[Construction]:
    """
    Parse the constructions out of a ``to_json`` document.

    Raises:
        ValueError: if the text is not a valid export
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Not valid JSON: {e}") from e
    if not isinstance(data, dict) or not isinstance(data.get("constructions"), list):
        raise ValueError("Export has no 'constructions' list")
    return [construction_from_dict(item) for item in data["constructions"]]


def corpus_to_json(result: CorpusResult, include_surah_breakdown: bool = True, prettify: bool = False) -> str:
    """
    Export a corpus run, with an optional per-surah breakdown keyed by surah
    number as a string.
    """
    data: Dict[str, Any] = {
        "timestamp": _timestamp(),
        "algorithm": CORPUS_ALGORITHM,
        "version": __version__,
        "corpus_summary": {
            "total_segments": result.total_segments,
            "total_constructions": result.total_constructions,
            "processing_time_ms": round(result.processing_time_ms, 3),
            "surahs_processed": result.surahs_processed,
        },
        "global_statistics": result.global_statistics.as_dict(),
        "validation_notes": list(result.notes),
    }

    if include_surah_breakdown:
        data["surah_breakdown"] = {
            str(surah): {
                "constructions_count": len(surah_result.constructions),
                "statistics": surah_result.statistics.as_dict(),
                "chains": surah_result.chain_ids(),
                "constructions": [construction_to_dict(c) for c in surah_result.constructions],
            }
            for surah, surah_result in sorted(result.surah_results.items())
        }

    logger.debug(f"Exported corpus results ({result.total_constructions} constructions) to JSON")
    return _dumps(data, prettify)

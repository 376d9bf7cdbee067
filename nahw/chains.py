"""
Chain linking for idafa constructions.

In ``kitabu ibni sadiqi-hi`` the mudaf ilayh of one construction is the mudaf
of the next. Such constructions are linked into ordered chains.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Dict, List, Sequence, Set, Tuple

from nahw.constructions import Construction

logger = logging.getLogger(__name__)


def _follow(
    start: Construction,
    by_mudaf: Dict[str, List[Construction]],
    processed: Set[str],
) -> List[Construction]:
    """Walk from ``start`` through linked constructions, marking each as processed."""
    chain = [start]
    processed.add(start.id)
    current = start
    while True:
        successor = next(
            (c for c in by_mudaf.get(current.mudaf_ilayh.id, ()) if c.id not in processed),
            None,
        )
        if successor is None:
            return chain
        processed.add(successor.id)
        chain.append(successor)
        current = successor


def link_chains(
    constructions: Sequence[Construction],
) -> Tuple[List[Construction], List[List[Construction]]]:
    """
    Link constructions whose mudaf ilayh is the mudaf of another construction.

    Only chains of two or more constructions are reported. Constructions that
    belong to a reported chain are re-issued with ``is_chain=True`` and a
    1-based ``chain_level``; all others are returned unchanged and in their
    original order.

    Args:
        constructions: Constructions in detection order

    Returns:
        (constructions with chain flags, list of chains)
    """
    by_mudaf: Dict[str, List[Construction]] = {}
    for construction in constructions:
        by_mudaf.setdefault(construction.mudaf.id, []).append(construction)

    processed: Set[str] = set()
    raw_chains: List[List[Construction]] = []
    for construction in constructions:
        if construction.id in processed:
            continue
        chain = _follow(construction, by_mudaf, processed)
        if len(chain) > 1:
            raw_chains.append(chain)

    levels: Dict[str, int] = {}
    for chain in raw_chains:
        for level, construction in enumerate(chain, start=1):
            levels[construction.id] = level

    def flagged(construction: Construction) -> Construction:
        level = levels.get(construction.id)
        if level is None:
            return construction
        return dataclasses.replace(construction, is_chain=True, chain_level=level)

    updated = [flagged(c) for c in constructions]
    chains = [[flagged(c) for c in chain] for chain in raw_chains]

    for chain in chains:
        logger.debug(f"Chain detected: {' -> '.join(c.mudaf.text for c in chain)}")
    return updated, chains

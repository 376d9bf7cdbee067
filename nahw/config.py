"""
Detector configuration.

Only the tunables of the rule engine live here. Answer-scoring thresholds are
fixed constants in ``nahw.answer_validator``.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectorConfig:
    """
    Tunables for the idafa rule engine.

    Attributes:
        search_window: Tokens examined after a mudaf when looking for its
            mudaf ilayh (skipped particles count toward the window)
        min_pronoun_stem: Letters that must remain before an attached-pronoun
            ending for the pronoun rule to fire
    """
    search_window: int = 3
    min_pronoun_stem: int = 2

    def __post_init__(self):
        if self.search_window < 1:
            raise ValueError(f"search_window must be >= 1, got {self.search_window}")
        if self.min_pronoun_stem < 1:
            raise ValueError(f"min_pronoun_stem must be >= 1, got {self.min_pronoun_stem}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DetectorConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
        try:
            return cls(**{k: int(v) for k, v in data.items() if k in known})
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid detector config: {e}") from e


DEFAULT_CONFIG = DetectorConfig()


def load_config(path: Optional[Union[str, Path]] = None) -> DetectorConfig:
    """
    Load a DetectorConfig from a JSON file.

    Args:
        path: JSON file holding an object of config keys; None gives defaults

    Returns:
        DetectorConfig

    Raises:
        ValueError: if the file is not a JSON object or holds invalid values
        OSError: if the file cannot be read
    """
    if path is None:
        return DEFAULT_CONFIG

    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Config file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")

    config = DetectorConfig.from_dict(data)
    logger.info(f"Loaded detector config from {path}: {config}")
    return config

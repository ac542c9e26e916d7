"""Configuration loading for resolution, matching and the movie store."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path

from castmatch.constants import (
    COLLABORATOR_LIMIT,
    MIN_SINGLE_WORD_LENGTH,
    PAGE_SIZE,
    SAMPLE_LIMIT,
    SIMILARITY_THRESHOLD,
)
from castmatch.models import CREDIT_FIELDS, CreditField

logger = logging.getLogger(__name__)


@dataclass
class MatchConfig:
    """Matching configuration with defaults that reproduce the portal's behaviour."""

    db_path: Path = field(default_factory=lambda: Path("data/movies.db"))
    field_order: tuple[CreditField, ...] = CREDIT_FIELDS
    sample_limit: int = SAMPLE_LIMIT
    min_single_word_length: int = MIN_SINGLE_WORD_LENGTH
    page_size: int = PAGE_SIZE
    similarity_threshold: int = SIMILARITY_THRESHOLD
    collaborator_limit: int = COLLABORATOR_LIMIT

    def __post_init__(self) -> None:
        """Ensure paths are Path objects and field names are CreditFields."""
        if isinstance(self.db_path, str):
            self.db_path = Path(self.db_path)
        self.field_order = tuple(CreditField(f) for f in self.field_order)
        if sorted(self.field_order) != sorted(CREDIT_FIELDS):
            raise ValueError(
                "field_order must list each credit field exactly once: "
                + ", ".join(f.value for f in CREDIT_FIELDS)
            )


def load_config(config_path: Path) -> MatchConfig:
    """Load matching configuration from JSON, merging with defaults.

    Unknown keys are ignored with a warning.

    Args:
        config_path: Path to a castmatch JSON config file.

    Returns:
        MatchConfig with values from file merged over defaults.
    """
    with open(config_path) as f:
        data = json.load(f)

    known = {f.name for f in fields(MatchConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning("Ignoring unknown config keys in %s: %s", config_path, ", ".join(unknown))

    kwargs = {k: v for k, v in data.items() if k in known}
    if "field_order" in kwargs:
        kwargs["field_order"] = tuple(kwargs["field_order"])

    return MatchConfig(**kwargs)

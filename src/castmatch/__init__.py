"""Slug-to-person resolution and filmography aggregation for a movie catalogue."""

__version__ = "0.1.0"

from castmatch.aggregator import aggregate, build_profile
from castmatch.matcher import matches
from castmatch.models import CreditField, FilmographyAggregate, MovieRecord
from castmatch.names import normalize
from castmatch.resolver import resolve_person

__all__ = [
    "CreditField",
    "FilmographyAggregate",
    "MovieRecord",
    "aggregate",
    "build_profile",
    "matches",
    "normalize",
    "resolve_person",
    "__version__",
]

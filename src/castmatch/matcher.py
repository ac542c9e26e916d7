"""Decide whether a free-text credit field credits a given person.

Credit fields mix full names, first names only, comma-joined co-credits and
initials, and there is no person id to join on. ``matches`` short-circuits
through increasingly loose tiers:

1. Whole-field case-insensitive equality.
2. Equality with any comma-separated name.
3. Word-set overlap per comma-separated name, in either direction, guarded
   so that a single short word ("Ram", "Teja") never matches on overlap.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from castmatch.constants import MIN_SINGLE_WORD_LENGTH
from castmatch.models import CREDIT_FIELDS, CreditField, MatchResult, MovieRecord
from castmatch.names import name_words

logger = logging.getLogger(__name__)


def _word_set_match(
    words: list[str], token_words: list[str], min_single_word_length: int
) -> bool:
    all_words_present = all(w in token_words for w in words)
    is_subset = bool(token_words) and all(w in words for w in token_words)
    if not (all_words_present or is_subset):
        return False

    shortest = words if len(words) < len(token_words) else token_words
    if not shortest:
        return False
    return len(shortest) >= 2 or len(shortest[0]) >= min_single_word_length


def matches(
    field: str | None,
    person_name: str | None,
    min_single_word_length: int = MIN_SINGLE_WORD_LENGTH,
) -> bool:
    """Return True when the credit field credits ``person_name``.

    Args:
        field: Raw credit value, possibly comma-joined, possibly None.
        person_name: Canonical name from the resolver.
        min_single_word_length: Shortest single word accepted by the
            word-set tier.
    """
    if not field or not person_name:
        return False

    field_lower = field.strip().lower()
    person_lower = person_name.strip().lower()
    if not person_lower:
        return False

    if field_lower == person_lower:
        return True

    tokens = [t.strip() for t in field_lower.split(",")]
    if person_lower in tokens:
        return True

    words = name_words(person_lower)
    return any(
        _word_set_match(words, name_words(token), min_single_word_length)
        for token in tokens
    )


def match_record(
    record: MovieRecord,
    person_name: str,
    field_order: Iterable[CreditField] = CREDIT_FIELDS,
    min_single_word_length: int = MIN_SINGLE_WORD_LENGTH,
) -> list[MatchResult]:
    """Match every credit field of one record, in field order."""
    return [
        MatchResult(
            record=record,
            field=credit,
            matched=matches(record.credit(credit), person_name, min_single_word_length),
        )
        for credit in field_order
    ]

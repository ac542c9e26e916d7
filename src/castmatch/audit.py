"""Duplicate-name audit over the credit fields of the whole catalogue.

Finds credit spellings that probably belong to one person, so they can be
merged or registered as aliases:

- exact: same normalized key, different raw spelling ("T. Krishna" / "T Krishna")
- variation: the filmography matcher accepts one for the other
  ("Nagarjuna" / "Akkineni Nagarjuna")
- similar: RapidFuzz ratio of normalized keys at or above a threshold
  ("Chiranjeevi" / "Chiranjivi")
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from itertools import combinations
from typing import TYPE_CHECKING

from rapidfuzz import fuzz, process

from castmatch.constants import PAGE_SIZE, SIMILARITY_THRESHOLD
from castmatch.matcher import matches
from castmatch.models import CREDIT_FIELDS, DuplicateGroup, MovieRecord
from castmatch.names import name_words, normalize, split_credits

if TYPE_CHECKING:
    from castmatch.database import Database

logger = logging.getLogger(__name__)


def count_credit_names(records: Iterable[MovieRecord]) -> Counter[str]:
    """Count how many credits each raw name has across all credit fields."""
    counts: Counter[str] = Counter()
    for record in records:
        for credit in CREDIT_FIELDS:
            counts.update(split_credits(record.credit(credit)))
    return counts


def collect_credit_names(db: Database, page_size: int = PAGE_SIZE) -> Counter[str]:
    """Page through the whole catalogue and count credits per raw name."""
    counts: Counter[str] = Counter()
    pages = 0
    for page in db.iter_movies(page_size):
        counts.update(count_credit_names(page))
        pages += 1
    logger.info("Collected %d distinct credit names from %d page(s)", len(counts), pages)
    return counts


def find_duplicate_names(
    names: Counter[str] | Iterable[str],
    similarity_threshold: int = SIMILARITY_THRESHOLD,
) -> list[DuplicateGroup]:
    """Group credit names that probably refer to the same person.

    Args:
        names: Distinct raw names, or a Counter of credits per name (used to
            pick the most common spelling as a key's representative).
        similarity_threshold: Minimum RapidFuzz ratio for "similar" pairs.

    Returns:
        Exact groups first, then variation pairs, then similar pairs. Each
        pair of normalized keys is reported once, under the strongest kind.
    """
    counts = names if isinstance(names, Counter) else Counter(names)

    by_key: dict[str, list[str]] = {}
    for name in sorted(counts, key=lambda n: (-counts[n], n)):
        key = normalize(name)
        if key:
            by_key.setdefault(key, []).append(name)

    groups: list[DuplicateGroup] = []
    for key, spellings in by_key.items():
        if len(spellings) > 1:
            groups.append(
                DuplicateGroup(
                    kind="exact",
                    confidence="high",
                    reason=f"same normalized name '{key}'",
                    names=spellings,
                )
            )

    # One representative spelling per key from here on
    representative = {key: spellings[0] for key, spellings in by_key.items()}
    reported: set[tuple[str, str]] = set()

    by_word: dict[str, set[str]] = {}
    for key, name in representative.items():
        for word in name_words(name.replace(".", " ")):
            by_word.setdefault(word, set()).add(key)

    for word in sorted(by_word):
        for key_a, key_b in combinations(sorted(by_word[word]), 2):
            pair = (key_a, key_b)
            if pair in reported:
                continue
            name_a, name_b = representative[key_a], representative[key_b]
            if matches(name_a, name_b) or matches(name_b, name_a):
                reported.add(pair)
                groups.append(
                    DuplicateGroup(
                        kind="variation",
                        confidence="medium",
                        reason=f"name words overlap on '{word}'",
                        names=[name_a, name_b],
                    )
                )

    keys = sorted(representative)
    for key_a in keys:
        hits = process.extract(
            key_a,
            keys,
            scorer=fuzz.ratio,
            score_cutoff=similarity_threshold,
            limit=None,
        )
        for key_b, score, _ in hits:
            pair = (key_a, key_b) if key_a < key_b else (key_b, key_a)
            if key_a == key_b or pair in reported:
                continue
            reported.add(pair)
            groups.append(
                DuplicateGroup(
                    kind="similar",
                    confidence="low",
                    reason=f"spelling similarity {score:.0f}%",
                    names=[representative[pair[0]], representative[pair[1]]],
                )
            )

    logger.debug(
        "Duplicate audit: %d names, %d keys, %d groups",
        len(counts), len(by_key), len(groups),
    )
    return groups

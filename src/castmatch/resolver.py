"""Slug-to-person resolution.

Maps a profile URL slug ("teja", "s-v-krishna-reddy") to the raw credit
string it refers to, by scanning a small sample of candidate records in
tiers:

1. Exact: normalized credit value equals the normalized slug.
2. Boundary: normalized credit value starts or ends with the normalized
   slug ("nagarjuna" -> "Akkineni Nagarjuna", but "teja" does not
   match inside "raviteja" unless nothing better exists).
3. Fallback: credit value contains every significant slug part.

Within a tier, the first candidate wins, and within a candidate the first
field in ``field_order`` wins. A later tier only runs when the earlier
tier found nothing across all candidates.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING

from castmatch.constants import LEGACY_SLUG_PREFIX, SAMPLE_LIMIT
from castmatch.models import CREDIT_FIELDS, CreditField, MovieRecord
from castmatch.names import normalize, slug_parts, slug_search_pattern

if TYPE_CHECKING:
    from castmatch.database import Database
    from castmatch.registry import PersonRegistry

logger = logging.getLogger(__name__)


def _first_credit(
    candidates: Sequence[MovieRecord],
    field_order: Iterable[CreditField],
    predicate: Callable[[str], bool],
) -> tuple[str, MovieRecord, CreditField] | None:
    """Return the first (value, record, field) whose raw value satisfies predicate."""
    order = tuple(field_order)
    for record in candidates:
        for credit in order:
            value = record.credit(credit)
            if value and predicate(value):
                return value, record, credit
    return None


def resolve_person(
    slug: str,
    candidates: Sequence[MovieRecord],
    field_order: Iterable[CreditField] = CREDIT_FIELDS,
) -> str | None:
    """Resolve a slug to the canonical person name found in candidate credits.

    Args:
        slug: URL slug fragment, e.g. "teja".
        candidates: Records already loosely filtered by the store, in
            priority order.
        field_order: Credit fields in tie-break order.

    Returns:
        The raw credit value (original casing and punctuation), or None when
        no candidate matches in any tier.
    """
    target = normalize(slug)
    if not target or not candidates:
        return None

    order = tuple(field_order)

    found = _first_credit(candidates, order, lambda v: normalize(v) == target)
    tier = "exact"

    if found is None:
        tier = "boundary"
        found = _first_credit(
            candidates,
            order,
            lambda v: normalize(v).startswith(target) or normalize(v).endswith(target),
        )

    if found is None:
        parts = slug_parts(slug)
        if parts:
            tier = "fallback"
            found = _first_credit(
                candidates, order, lambda v: all(p in v.lower() for p in parts)
            )

    if found is None:
        logger.debug("Slug %r unresolved across %d candidates", slug, len(candidates))
        return None

    value, record, credit = found
    logger.debug(
        "Slug %r resolved to %r (%s tier, %s of record %s)",
        slug, value, tier, credit.value, record.id,
    )
    return value


class SlugResolver:
    """Resolve slugs using the alias registry first, then a sampled store query.

    Usage:
        with Database("data/movies.db") as db:
            resolver = SlugResolver(db, PersonRegistry(db))
            name = resolver.resolve("nagarjuna")
    """

    def __init__(
        self,
        db: Database,
        registry: PersonRegistry | None = None,
        field_order: Iterable[CreditField] = CREDIT_FIELDS,
        sample_limit: int = SAMPLE_LIMIT,
    ) -> None:
        self.db = db
        self.registry = registry
        self.field_order = tuple(field_order)
        self.sample_limit = sample_limit

    def resolve(self, slug: str) -> str | None:
        """Return the canonical name for a slug, or None if nobody matches."""
        slug = slug.strip().lower()
        if not slug:
            return None

        if self.registry is not None:
            for alias in (slug, f"{LEGACY_SLUG_PREFIX}{slug}"):
                person = self.registry.lookup(alias)
                if person is not None:
                    logger.debug("Slug %r resolved via alias %r", slug, alias)
                    return person.canonical_name

        candidates = self.db.sample_candidates(
            slug_search_pattern(slug), limit=self.sample_limit
        )
        return resolve_person(slug, candidates, self.field_order)

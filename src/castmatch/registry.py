"""PersonRegistry: in-memory alias lookup for reconciled persons.

Once a slug has been resolved by fuzzy matching, ``reconcile`` stores the
person and the slug as an alias, so later requests resolve by an indexed
lookup instead of re-running the sampled match.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from castmatch.models import AliasRecord, PersonRecord
from castmatch.names import slugify

if TYPE_CHECKING:
    from castmatch.database import Database

logger = logging.getLogger(__name__)


class PersonRegistry:
    """In-memory registry of canonical persons and their aliases.

    Usage:
        registry = PersonRegistry(db)
        person = registry.lookup("akkineni-nagarjuna")
    """

    def __init__(self, db: Database) -> None:
        self._persons: dict[str, PersonRecord] = {}
        self._aliases: dict[str, list[AliasRecord]] = {}  # alias_text casefold -> records
        self._blocked: set[str] = set()
        self._load(db)

    def _load(self, db: Database) -> None:
        """Load all persons and aliases from the database."""
        for person in db.get_persons():
            self._persons[person.person_id] = person

        for alias in db.get_aliases():
            self._add_alias(alias)

        logger.debug(
            "PersonRegistry loaded: %d persons, %d alias keys, %d blocked",
            len(self._persons),
            len(self._aliases),
            len(self._blocked),
        )

    def _add_alias(self, alias: AliasRecord) -> None:
        key = alias.alias_text.casefold()
        self._aliases.setdefault(key, []).append(alias)
        if alias.is_blocked:
            self._blocked.add(key)

    def get_person(self, person_id: str) -> PersonRecord | None:
        """Look up a person by their id."""
        return self._persons.get(person_id)

    def lookup(self, text: str) -> PersonRecord | None:
        """Resolve an alias to its person.

        Blocked aliases never resolve. An alias shared by several persons is
        ambiguous and resolves to None.
        """
        key = text.casefold()
        if key in self._blocked:
            return None
        person_ids = {a.person_id for a in self._aliases.get(key, [])}
        if len(person_ids) != 1:
            if len(person_ids) > 1:
                logger.debug("Alias %r is ambiguous across %s", text, sorted(person_ids))
            return None
        return self._persons.get(person_ids.pop())

    def is_blocked(self, text: str) -> bool:
        """Check if a text string is a blocked alias."""
        return text.casefold() in self._blocked

    def all_persons(self) -> list[PersonRecord]:
        """Return all canonical persons."""
        return list(self._persons.values())

    def all_aliases(self) -> list[AliasRecord]:
        """Return all alias records (flattened)."""
        result: list[AliasRecord] = []
        for records in self._aliases.values():
            result.extend(records)
        return result

    def add_person(self, person: PersonRecord) -> None:
        """Add or replace a person in the in-memory view (after persisting it)."""
        self._persons[person.person_id] = person

    def register(self, person: PersonRecord, alias: AliasRecord) -> None:
        """Add a person and alias to the in-memory view (after persisting them)."""
        self.add_person(person)
        self._add_alias(alias)


def reconcile(
    db: Database,
    slug: str,
    canonical_name: str,
    registry: PersonRegistry | None = None,
) -> PersonRecord:
    """Persist a resolved slug so future lookups skip fuzzy matching.

    The person id is the slug of the canonical name, so "nagarjuna" and
    "akkineni-nagarjuna" resolving to "Akkineni Nagarjuna" share one person.
    With a registry, an alias already blocked stays blocked and the
    person's exclude list is carried over.
    """
    person_id = slugify(canonical_name)
    alias_text = slug.strip().lower()
    known = registry.get_person(person_id) if registry is not None else None
    person = PersonRecord(
        person_id=person_id,
        canonical_name=canonical_name,
        exclude_movies=known.exclude_movies if known else [],
    )
    blocked = registry is not None and registry.is_blocked(alias_text)
    if blocked:
        logger.warning("Alias %r is blocked; saving it without unblocking", alias_text)
    alias = AliasRecord(alias_text=alias_text, person_id=person_id, is_blocked=blocked)

    db.save_person(person)
    db.save_alias(alias)
    if registry is not None:
        registry.register(person, alias)
    logger.info("Reconciled slug %r -> %s (%s)", slug, person.person_id, canonical_name)
    return person


def exclude_movies(
    db: Database,
    canonical_name: str,
    movie_slugs: Iterable[str],
    registry: PersonRegistry | None = None,
) -> PersonRecord:
    """Add movie slugs to a person's stored exclude list, creating the person if needed.

    The profile builder drops these movies even when a credit field matches
    the person's name (a namesake, or a wrong credit in the source data).
    """
    person_id = slugify(canonical_name)
    known = registry.get_person(person_id) if registry is not None else None
    if known is None:
        known = next((p for p in db.get_persons() if p.person_id == person_id), None)

    slugs = sorted(set(known.exclude_movies if known else []) | set(movie_slugs))
    person = PersonRecord(person_id=person_id, canonical_name=canonical_name, exclude_movies=slugs)
    db.save_person(person)
    db.set_excluded_movies(person_id, slugs)
    if registry is not None:
        registry.add_person(person)
    logger.info("Excluded %d movie(s) from %s", len(slugs), person_id)
    return person

"""Fold matched records into role buckets, role statistics and collaborators."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from castmatch.constants import (
    COLLABORATOR_LIMIT,
    HIT_RATING,
    MILESTONE_LIMIT,
    MILESTONE_RATING,
    MIN_SINGLE_WORD_LENGTH,
)
from castmatch.matcher import match_record, matches
from castmatch.models import (
    CREDIT_FIELDS,
    Collaborator,
    CreditField,
    FilmographyAggregate,
    FilmographyProfile,
    Milestone,
    MovieRecord,
    RoleStats,
)
from castmatch.names import split_credits

logger = logging.getLogger(__name__)

# Crew fields listed as collaborators on a profile, in display order
COLLABORATOR_FIELDS: tuple[str, ...] = (
    "director",
    "music_director",
    "cinematographer",
    "writer",
    "editor",
    "producer",
    "hero",
    "heroine",
)

# Role whose movies define "collaborators", most specific first
_PRIMARY_ROLES: tuple[CreditField, ...] = (
    CreditField.HERO,
    CreditField.HEROINE,
    CreditField.DIRECTOR,
    CreditField.WRITER,
)


def aggregate(
    records: Iterable[MovieRecord],
    person_name: str,
    min_single_word_length: int = MIN_SINGLE_WORD_LENGTH,
) -> FilmographyAggregate:
    """Group records by every credit field that credits ``person_name``.

    A record lands in each matching role bucket once. Bucket order follows
    input order; callers re-sort if they need chronology.
    """
    result = FilmographyAggregate(person_name=person_name)
    seen: dict[CreditField, set[str]] = {credit: set() for credit in CREDIT_FIELDS}

    for record in records:
        for match in match_record(record, person_name, CREDIT_FIELDS, min_single_word_length):
            if match.matched and record.id not in seen[match.field]:
                seen[match.field].add(record.id)
                result.roles[match.field].append(record)

    logger.debug(
        "Aggregated %d movies for %r: %s",
        result.total,
        person_name,
        {credit.value: n for credit, n in result.counts.items() if n},
    )
    return result


def _avg(values: Sequence[float]) -> float:
    return round(sum(values) / len(values), 1)


def role_stats(movies: Sequence[MovieRecord]) -> RoleStats:
    """Summarize one role bucket: span, average rating, hit rate, blockbusters."""
    if not movies:
        return RoleStats()

    years = [m.release_year for m in movies if m.release_year is not None]
    ratings = [m.rating for m in movies if m.rating]
    hits = sum(1 for m in movies if (m.rating or 0) >= HIT_RATING)

    return RoleStats(
        count=len(movies),
        movies=sorted(movies, key=lambda m: m.release_year or 0, reverse=True),
        first_year=min(years) if years else None,
        last_year=max(years) if years else None,
        avg_rating=_avg(ratings) if ratings else None,
        hit_rate=round(hits / len(movies) * 100),
        blockbusters=sum(1 for m in movies if m.is_blockbuster),
    )


def collaborators(
    movies: Sequence[MovieRecord],
    field: str,
    limit: int = COLLABORATOR_LIMIT,
    exclude: str | None = None,
    min_single_word_length: int = MIN_SINGLE_WORD_LENGTH,
) -> list[Collaborator]:
    """Rank the people credited in ``field`` across ``movies`` by frequency.

    Args:
        movies: The subject's movies.
        field: Record attribute to read names from, e.g. "music_director".
        limit: Maximum collaborators returned.
        exclude: The subject's own name; credits matching it are skipped.
        min_single_word_length: Matcher guard used to recognise the subject,
            the same one that built their role buckets.
    """
    grouped: dict[str, list[MovieRecord]] = {}
    for movie in movies:
        for name in split_credits(getattr(movie, field, None)):
            if exclude and matches(name, exclude, min_single_word_length):
                continue
            grouped.setdefault(name, []).append(movie)

    people = []
    for name, credited in grouped.items():
        ratings = [m.rating for m in credited if m.rating]
        people.append(
            Collaborator(
                name=name,
                count=len(credited),
                avg_rating=_avg(ratings) if ratings else 0.0,
                movies=sorted(credited, key=lambda m: m.release_year or 0, reverse=True),
            )
        )
    people.sort(key=lambda c: c.count, reverse=True)
    return people[:limit]


def roles_by_movie(filmography: FilmographyAggregate) -> dict[str, list[CreditField]]:
    """Map each movie id to every role bucket holding it, in field order."""
    roles: dict[str, list[CreditField]] = {}
    for credit, movies in filmography.roles.items():
        for movie in movies:
            roles.setdefault(movie.id, []).append(credit)
    return roles


def _milestone(movie: MovieRecord, category: str) -> Milestone:
    return Milestone(
        category=category,
        title=movie.title,
        year=movie.release_year,
        slug=movie.slug,
        rating=movie.rating,
    )


def milestones(movies: Sequence[MovieRecord], limit: int = MILESTONE_LIMIT) -> list[Milestone]:
    """Pick the career highlights shown on a profile.

    Up to ``limit`` top-rated movies (rating at least MILESTONE_RATING, best
    first), followed by up to ``limit`` blockbusters in the given order. A
    movie can appear in both categories.
    """
    top_rated = sorted(
        (m for m in movies if (m.rating or 0) >= MILESTONE_RATING),
        key=lambda m: m.rating or 0,
        reverse=True,
    )[:limit]
    blockbusters = [m for m in movies if m.is_blockbuster][:limit]
    return [_milestone(m, "top_rated") for m in top_rated] + [
        _milestone(m, "blockbuster") for m in blockbusters
    ]


def build_profile(
    records: Iterable[MovieRecord],
    person_name: str,
    exclude_slugs: Iterable[str] = (),
    min_single_word_length: int = MIN_SINGLE_WORD_LENGTH,
    collaborator_limit: int = COLLABORATOR_LIMIT,
) -> FilmographyProfile:
    """Build the full profile for a resolved person.

    Args:
        records: Records loosely matching the person (store refetch).
        person_name: Canonical name from the resolver.
        exclude_slugs: Movie slugs known to be misattributed to this person.
        min_single_word_length: Passed through to the matcher.
        collaborator_limit: Collaborators kept per field.
    """
    excluded = set(exclude_slugs)
    records = list(records)
    kept = [r for r in records if not (r.slug and r.slug in excluded)]
    if len(kept) != len(records):
        logger.debug("Excluded %d of %d records by slug", len(records) - len(kept), len(records))

    filmography = aggregate(kept, person_name, min_single_word_length)
    stats = {credit: role_stats(movies) for credit, movies in filmography.roles.items()}

    all_movies: dict[str, MovieRecord] = {}
    for movies in filmography.roles.values():
        for movie in movies:
            all_movies.setdefault(movie.id, movie)

    primary = next(
        (filmography.roles[role] for role in _PRIMARY_ROLES if filmography.roles[role]),
        list(all_movies.values()),
    )
    collabs = {
        field: collaborators(
            primary,
            field,
            collaborator_limit,
            exclude=person_name,
            min_single_word_length=min_single_word_length,
        )
        for field in COLLABORATOR_FIELDS
    }

    years = [m.release_year for m in all_movies.values() if m.release_year is not None]
    return FilmographyProfile(
        person_name=person_name,
        aggregate=filmography,
        role_stats=stats,
        collaborators=collabs,
        total_movies=len(all_movies),
        first_year=min(years) if years else None,
        last_year=max(years) if years else None,
        roles_by_movie=roles_by_movie(filmography),
        milestones=milestones(list(all_movies.values())),
    )

"""Data models for the movie catalogue and filmography aggregation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from operator import attrgetter
from typing import Callable

from pydantic import BaseModel, Field, field_validator


class CreditField(str, Enum):
    """A free-text person field on a movie record; also the role bucket name."""

    DIRECTOR = "director"
    MUSIC_DIRECTOR = "music_director"
    WRITER = "writer"
    HERO = "hero"
    HEROINE = "heroine"
    PRODUCER = "producer"


# Resolution priority: crew before cast, so director "Teja" wins over actor "Ravi Teja".
CREDIT_FIELDS: tuple[CreditField, ...] = (
    CreditField.DIRECTOR,
    CreditField.MUSIC_DIRECTOR,
    CreditField.WRITER,
    CreditField.HERO,
    CreditField.HEROINE,
    CreditField.PRODUCER,
)

_CREDIT_GETTERS: dict[CreditField, Callable[[MovieRecord], str | None]] = {
    credit: attrgetter(credit.value) for credit in CreditField
}


class MovieRecord(BaseModel):
    """A catalogue movie with its free-text credit fields.

    Each credit field may be empty, a single name, or several names
    joined by commas ("Krishna, Sobhan Babu").
    """

    id: str
    title: str
    release_year: int | None = None
    slug: str | None = None
    rating: float | None = None
    is_blockbuster: bool = False
    genres: list[str] = Field(default_factory=list)

    director: str | None = None
    music_director: str | None = None
    writer: str | None = None
    hero: str | None = None
    heroine: str | None = None
    producer: str | None = None

    # Collaborator-only crew fields, never used for resolution
    cinematographer: str | None = None
    editor: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("genres", mode="before")
    @classmethod
    def split_genres(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return [g.strip() for g in value.split(",") if g.strip()]
        return value

    def credit(self, credit: CreditField) -> str | None:
        """Return the raw value of one credit field."""
        return _CREDIT_GETTERS[credit](self)


class PersonRecord(BaseModel):
    """A canonical person reconciled from credit text."""

    person_id: str
    canonical_name: str
    # Movie slugs the name matcher wrongly credits to this person
    exclude_movies: list[str] = Field(default_factory=list)


class AliasRecord(BaseModel):
    """An alias (slug or spelling variant) mapping to a canonical person."""

    alias_text: str
    person_id: str
    alias_type: str = "slug"
    is_blocked: bool = False


class DuplicateGroup(BaseModel):
    """Credit names that probably refer to the same person."""

    kind: str  # exact | variation | similar
    confidence: str  # high | medium | low
    reason: str
    names: list[str]


@dataclass
class MatchResult:
    """Whether one credit field of one record credits the person."""

    record: MovieRecord
    field: CreditField
    matched: bool


@dataclass
class FilmographyAggregate:
    """Records grouped by the credit field that matched the person.

    Every role key is present; buckets keep input order and hold each
    record at most once.
    """

    person_name: str
    roles: dict[CreditField, list[MovieRecord]] = field(
        default_factory=lambda: {credit: [] for credit in CREDIT_FIELDS}
    )

    @property
    def counts(self) -> dict[CreditField, int]:
        return {credit: len(movies) for credit, movies in self.roles.items()}

    @property
    def total(self) -> int:
        """Number of distinct records across all buckets."""
        return len({m.id for movies in self.roles.values() for m in movies})

    def to_dict(self) -> dict[str, object]:
        """Convert to a JSON-ready dictionary keyed by role name."""
        return {
            "person_name": self.person_name,
            "roles": {
                credit.value: [m.model_dump() for m in movies]
                for credit, movies in self.roles.items()
            },
            "counts": {credit.value: n for credit, n in self.counts.items()},
            "total": self.total,
        }


@dataclass
class RoleStats:
    """Summary statistics for one role bucket."""

    count: int = 0
    movies: list[MovieRecord] = field(default_factory=list)
    first_year: int | None = None
    last_year: int | None = None
    avg_rating: float | None = None
    hit_rate: int | None = None
    blockbusters: int = 0


@dataclass
class Collaborator:
    """A person credited alongside the profile subject."""

    name: str
    count: int
    avg_rating: float
    movies: list[MovieRecord] = field(default_factory=list)


@dataclass
class Milestone:
    """A movie highlighted on a profile (top rated or blockbuster)."""

    category: str  # top_rated | blockbuster
    title: str
    year: int | None = None
    slug: str | None = None
    rating: float | None = None


@dataclass
class FilmographyProfile:
    """Everything a profile page shows for one resolved person."""

    person_name: str
    aggregate: FilmographyAggregate
    role_stats: dict[CreditField, RoleStats]
    collaborators: dict[str, list[Collaborator]]
    total_movies: int
    first_year: int | None = None
    last_year: int | None = None
    # movie id -> every role the person had in it, in field order
    roles_by_movie: dict[str, list[CreditField]] = field(default_factory=dict)
    milestones: list[Milestone] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        """Convert to a JSON-ready dictionary."""
        return {
            "person_name": self.person_name,
            "total_movies": self.total_movies,
            "first_year": self.first_year,
            "last_year": self.last_year,
            "roles": {
                credit.value: {
                    "count": stats.count,
                    "first_year": stats.first_year,
                    "last_year": stats.last_year,
                    "avg_rating": stats.avg_rating,
                    "hit_rate": stats.hit_rate,
                    "blockbusters": stats.blockbusters,
                    "movies": [
                        {
                            "id": m.id,
                            "title": m.title,
                            "year": m.release_year,
                            "slug": m.slug,
                            "roles": [r.value for r in self.roles_by_movie.get(m.id, [credit])],
                        }
                        for m in stats.movies
                    ],
                }
                for credit, stats in self.role_stats.items()
            },
            "roles_by_movie": {
                movie_id: [r.value for r in roles] for movie_id, roles in self.roles_by_movie.items()
            },
            "milestones": [
                {
                    "category": m.category,
                    "title": m.title,
                    "year": m.year,
                    "slug": m.slug,
                    "rating": m.rating,
                }
                for m in self.milestones
            ],
            "collaborators": {
                key: [
                    {"name": c.name, "count": c.count, "avg_rating": c.avg_rating}
                    for c in people
                ]
                for key, people in self.collaborators.items()
            },
        }

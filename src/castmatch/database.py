"""SQLite movie store for castmatch.

Holds the movie catalogue and the reconciled person/alias tables, and
provides the loose LIKE pre-filters that feed the resolver and matcher.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterable, Iterator
from pathlib import Path

from castmatch.constants import PAGE_SIZE, SAMPLE_LIMIT
from castmatch.models import CREDIT_FIELDS, AliasRecord, MovieRecord, PersonRecord
from castmatch.names import escape_like

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
-- Movie catalogue; credit columns are free text, possibly comma-joined
CREATE TABLE IF NOT EXISTS movies (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    release_year INTEGER,
    slug TEXT,
    rating REAL,
    is_blockbuster INTEGER NOT NULL DEFAULT 0,
    genres_json TEXT NOT NULL DEFAULT '[]',

    director TEXT,
    music_director TEXT,
    writer TEXT,
    hero TEXT,
    heroine TEXT,
    producer TEXT,
    cinematographer TEXT,
    editor TEXT,

    updated_at TEXT DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_movies_slug ON movies(slug);
CREATE INDEX IF NOT EXISTS idx_movies_year ON movies(release_year);

-- Canonical persons reconciled from credit text
CREATE TABLE IF NOT EXISTS person (
    person_id TEXT PRIMARY KEY,
    canonical_name TEXT NOT NULL,
    -- Movie slugs wrongly credited to this person by name matching
    exclude_movies_json TEXT NOT NULL DEFAULT '[]'
);

-- Slugs and spelling variants mapping to a person
CREATE TABLE IF NOT EXISTS person_alias (
    alias_text TEXT NOT NULL COLLATE NOCASE,
    person_id TEXT NOT NULL,
    alias_type TEXT NOT NULL DEFAULT 'slug',
    is_blocked INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (alias_text, person_id),
    FOREIGN KEY (person_id) REFERENCES person(person_id)
);

CREATE INDEX IF NOT EXISTS idx_alias_text ON person_alias(alias_text);
"""

_MOVIE_COLUMNS = (
    "id", "title", "release_year", "slug", "rating", "is_blockbuster", "genres_json",
    "director", "music_director", "writer", "hero", "heroine", "producer",
    "cinematographer", "editor",
)

UPSERT_MOVIE_SQL = f"""
INSERT INTO movies({", ".join(_MOVIE_COLUMNS)})
VALUES ({", ".join("?" for _ in _MOVIE_COLUMNS)})
ON CONFLICT(id) DO UPDATE SET
    {", ".join(f"{c} = excluded.{c}" for c in _MOVIE_COLUMNS if c != "id")},
    updated_at = strftime('%Y-%m-%dT%H:%M:%f', 'now')
"""

SCHEMA_VERSION = 2

# Any credit column LIKE the single bound pattern (SQLite LIKE is ASCII case-insensitive)
_CREDIT_LIKE = " OR ".join(
    f"{credit.value} LIKE :pattern ESCAPE '\\'" for credit in CREDIT_FIELDS
)


def _movie_params(record: MovieRecord) -> tuple[object, ...]:
    return (
        record.id,
        record.title,
        record.release_year,
        record.slug,
        record.rating,
        int(record.is_blockbuster),
        json.dumps(record.genres),
        record.director,
        record.music_director,
        record.writer,
        record.hero,
        record.heroine,
        record.producer,
        record.cinematographer,
        record.editor,
    )


def _row_to_movie(row: sqlite3.Row) -> MovieRecord:
    data = {key: row[key] for key in row.keys() if key in _MOVIE_COLUMNS}
    data["genres"] = json.loads(data.pop("genres_json") or "[]")
    data["is_blockbuster"] = bool(data["is_blockbuster"])
    return MovieRecord(**data)


class Database:
    """SQLite wrapper for the movie catalogue and person registry tables.

    Usage:
        with Database("data/movies.db") as db:
            db.upsert_movies(records)
            sample = db.sample_candidates("%teja%")
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        self._setup_pragmas()
        self._setup_schema()

    def _setup_pragmas(self) -> None:
        """Configure SQLite pragmas for performance and reliability."""
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.execute("PRAGMA synchronous=NORMAL")
        self.conn.execute("PRAGMA foreign_keys=ON")
        self.conn.execute("PRAGMA temp_store=MEMORY")

        result = self.conn.execute("PRAGMA journal_mode").fetchone()[0]
        if result != "wal" and self.db_path != ":memory:":
            logger.warning("WAL mode not enabled, got: %s", result)

    def _setup_schema(self) -> None:
        """Create tables and indexes if they don't exist."""
        version = self.conn.execute("PRAGMA user_version").fetchone()[0]
        self.conn.executescript(SCHEMA_SQL)

        # Version 1 stores had no per-person exclude list
        columns = {row["name"] for row in self.conn.execute("PRAGMA table_info(person)")}
        if "exclude_movies_json" not in columns:
            logger.info("Migrating schema v%d -> v%d: person.exclude_movies_json", version, SCHEMA_VERSION)
            with self.conn:
                self.conn.execute(
                    "ALTER TABLE person ADD COLUMN exclude_movies_json TEXT NOT NULL DEFAULT '[]'"
                )
        self.conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")

    # ---- movies ----

    def upsert_movies(self, records: Iterable[MovieRecord]) -> int:
        """Insert or update movie records in a single transaction.

        Returns:
            Number of records written.
        """
        params = [_movie_params(r) for r in records]
        with self.conn:
            self.conn.executemany(UPSERT_MOVIE_SQL, params)
        logger.info("Upserted %d movie records", len(params))
        return len(params)

    def get_movie(self, movie_id: str) -> MovieRecord | None:
        """Look up one movie by id."""
        row = self.conn.execute("SELECT * FROM movies WHERE id = ?", (movie_id,)).fetchone()
        return _row_to_movie(row) if row else None

    def sample_candidates(self, pattern: str, limit: int = SAMPLE_LIMIT) -> list[MovieRecord]:
        """Return up to ``limit`` movies with any credit field LIKE ``pattern``.

        Ordered by insertion (rowid), which fixes the resolver's
        first-candidate tie-break for a given catalogue.
        """
        rows = self.conn.execute(
            f"SELECT * FROM movies WHERE {_CREDIT_LIKE} ORDER BY rowid LIMIT :limit",
            {"pattern": pattern, "limit": limit},
        ).fetchall()
        return [_row_to_movie(row) for row in rows]

    def movies_mentioning(self, term: str) -> list[MovieRecord]:
        """Return every movie with ``term`` anywhere in a credit field."""
        rows = self.conn.execute(
            f"SELECT * FROM movies WHERE {_CREDIT_LIKE} ORDER BY rowid",
            {"pattern": f"%{escape_like(term)}%"},
        ).fetchall()
        return [_row_to_movie(row) for row in rows]

    def iter_movies(self, page_size: int = PAGE_SIZE) -> Iterator[list[MovieRecord]]:
        """Yield the whole catalogue in pages of ``page_size`` records."""
        offset = 0
        while True:
            rows = self.conn.execute(
                "SELECT * FROM movies ORDER BY rowid LIMIT ? OFFSET ?",
                (page_size, offset),
            ).fetchall()
            if not rows:
                return
            yield [_row_to_movie(row) for row in rows]
            if len(rows) < page_size:
                return
            offset += page_size

    def count_movies(self) -> int:
        """Return total count of movies."""
        row = self.conn.execute("SELECT COUNT(*) as cnt FROM movies").fetchone()
        return row["cnt"]

    # ---- persons and aliases ----

    def save_person(self, person: PersonRecord) -> None:
        """Insert or rename a canonical person.

        An existing person's exclude list is kept; use
        ``set_excluded_movies`` to change it.
        """
        with self.conn:
            self.conn.execute(
                """INSERT INTO person(person_id, canonical_name, exclude_movies_json)
                   VALUES (?, ?, ?)
                   ON CONFLICT(person_id) DO UPDATE SET canonical_name = excluded.canonical_name""",
                (person.person_id, person.canonical_name, json.dumps(person.exclude_movies)),
            )

    def set_excluded_movies(self, person_id: str, movie_slugs: Iterable[str]) -> bool:
        """Replace the movie slugs excluded from a person's profile.

        Returns:
            False if no such person exists.
        """
        slugs = sorted(set(movie_slugs))
        with self.conn:
            cursor = self.conn.execute(
                "UPDATE person SET exclude_movies_json = ? WHERE person_id = ?",
                (json.dumps(slugs), person_id),
            )
        return cursor.rowcount > 0

    def save_alias(self, alias: AliasRecord) -> None:
        """Insert or update an alias for an existing person."""
        with self.conn:
            self.conn.execute(
                """INSERT INTO person_alias(alias_text, person_id, alias_type, is_blocked)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(alias_text, person_id) DO UPDATE SET
                       alias_type = excluded.alias_type,
                       is_blocked = excluded.is_blocked""",
                (alias.alias_text, alias.person_id, alias.alias_type, int(alias.is_blocked)),
            )

    def get_persons(self) -> list[PersonRecord]:
        rows = self.conn.execute(
            "SELECT person_id, canonical_name, exclude_movies_json FROM person ORDER BY person_id"
        ).fetchall()
        return [
            PersonRecord(
                person_id=r["person_id"],
                canonical_name=r["canonical_name"],
                exclude_movies=json.loads(r["exclude_movies_json"] or "[]"),
            )
            for r in rows
        ]

    def get_aliases(self) -> list[AliasRecord]:
        rows = self.conn.execute(
            "SELECT alias_text, person_id, alias_type, is_blocked FROM person_alias ORDER BY alias_text"
        ).fetchall()
        return [
            AliasRecord(
                alias_text=r["alias_text"],
                person_id=r["person_id"],
                alias_type=r["alias_type"],
                is_blocked=bool(r["is_blocked"]),
            )
            for r in rows
        ]

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object) -> None:
        self.close()

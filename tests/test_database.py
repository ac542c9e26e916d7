"""Movie store tests: schema, upserts, LIKE pre-filters, paging."""

from __future__ import annotations

import sqlite3

from castmatch.database import SCHEMA_VERSION, Database
from castmatch.models import AliasRecord, MovieRecord, PersonRecord
from castmatch.names import slug_search_pattern


def test_wal_mode_enabled(tmp_db: Database) -> None:
    result = tmp_db.conn.execute("PRAGMA journal_mode").fetchone()
    assert result[0] == "wal"


def test_tables_exist(memory_db: Database) -> None:
    rows = memory_db.conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    ).fetchall()
    table_names = {row["name"] for row in rows}

    assert {"movies", "person", "person_alias"} <= table_names


def test_insert_and_retrieve(memory_db: Database) -> None:
    record = MovieRecord(
        id="10",
        title="Shiva",
        release_year=1989,
        rating=8.4,
        is_blockbuster=True,
        genres=["Action", "Crime"],
        director="Ram Gopal Varma",
        hero="Akkineni Nagarjuna",
        cinematographer="S. Gopal Reddy",
    )
    memory_db.upsert_movies([record])

    loaded = memory_db.get_movie("10")
    assert loaded == record


def test_upsert_idempotent_and_updates(memory_db: Database) -> None:
    record = MovieRecord(id="1", title="Chitram", director="Teja")
    memory_db.upsert_movies([record])
    memory_db.upsert_movies([record])
    assert memory_db.count_movies() == 1

    memory_db.upsert_movies([MovieRecord(id="1", title="Chitram", director="Teja", writer="Teja")])
    assert memory_db.get_movie("1").writer == "Teja"


def test_get_missing_movie(memory_db: Database) -> None:
    assert memory_db.get_movie("nope") is None


def test_sample_candidates_case_insensitive_and_limited(loaded_db: Database) -> None:
    sample = loaded_db.sample_candidates("%TEJA%", limit=2)

    assert [m.id for m in sample] == ["2", "3"]


def test_sample_candidates_slug_pattern(loaded_db: Database) -> None:
    sample = loaded_db.sample_candidates("%r%p%patnaik%")
    assert [m.id for m in sample] == ["2", "6"]


def test_movies_mentioning(loaded_db: Database) -> None:
    movies = loaded_db.movies_mentioning("Nagarjuna")
    assert [m.id for m in movies] == ["1", "4"]


def test_movies_mentioning_escapes_wildcards(loaded_db: Database) -> None:
    assert loaded_db.movies_mentioning("%") == []
    assert loaded_db.movies_mentioning("_") == []


def test_iter_movies_pages(loaded_db: Database) -> None:
    pages = list(loaded_db.iter_movies(page_size=4))
    assert [len(p) for p in pages] == [4, 2]

    pages = list(loaded_db.iter_movies(page_size=3))
    assert [len(p) for p in pages] == [3, 3]


def test_iter_movies_empty(memory_db: Database) -> None:
    assert list(memory_db.iter_movies()) == []


def test_person_and_alias_round_trip(memory_db: Database) -> None:
    memory_db.save_person(PersonRecord(person_id="teja", canonical_name="Teja"))
    memory_db.save_alias(AliasRecord(alias_text="teja", person_id="teja"))
    memory_db.save_alias(AliasRecord(alias_text="teja", person_id="teja", is_blocked=True))

    assert memory_db.get_persons() == [PersonRecord(person_id="teja", canonical_name="Teja")]
    aliases = memory_db.get_aliases()
    assert len(aliases) == 1
    assert aliases[0].is_blocked is True


def test_context_manager_closes(tmp_path) -> None:
    with Database(tmp_path / "ctx.db") as db:
        db.upsert_movies([MovieRecord(id="1", title="A")])
    with Database(tmp_path / "ctx.db") as db:
        assert db.count_movies() == 1


def test_sample_candidates_wildcards_in_slug_are_literal(loaded_db: Database) -> None:
    assert [m.id for m in loaded_db.sample_candidates(slug_search_pattern("teja"))] == ["2", "3", "6"]
    assert loaded_db.sample_candidates(slug_search_pattern("teja-%")) == []
    assert loaded_db.sample_candidates(slug_search_pattern("t_ja")) == []


def test_excluded_movies_round_trip(memory_db: Database) -> None:
    memory_db.save_person(PersonRecord(person_id="teja", canonical_name="Teja"))

    assert memory_db.set_excluded_movies("teja", ["movie-6", "movie-2", "movie-6"]) is True
    assert memory_db.get_persons()[0].exclude_movies == ["movie-2", "movie-6"]


def test_excluded_movies_unknown_person(memory_db: Database) -> None:
    assert memory_db.set_excluded_movies("nobody", ["movie-1"]) is False


def test_save_person_keeps_exclusions_on_rename(memory_db: Database) -> None:
    memory_db.save_person(PersonRecord(person_id="teja", canonical_name="Teja"))
    memory_db.set_excluded_movies("teja", ["movie-6"])
    memory_db.save_person(PersonRecord(person_id="teja", canonical_name="Teja (Director)"))

    person = memory_db.get_persons()[0]
    assert person.canonical_name == "Teja (Director)"
    assert person.exclude_movies == ["movie-6"]


def test_migrates_person_table_without_exclusions(tmp_path) -> None:
    path = tmp_path / "old.db"
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE person (person_id TEXT PRIMARY KEY, canonical_name TEXT NOT NULL)")
    conn.execute("INSERT INTO person VALUES ('teja', 'Teja')")
    conn.execute("PRAGMA user_version = 1")
    conn.commit()
    conn.close()

    with Database(path) as db:
        assert db.get_persons() == [PersonRecord(person_id="teja", canonical_name="Teja")]
        assert db.set_excluded_movies("teja", ["movie-6"]) is True
        assert db.conn.execute("PRAGMA user_version").fetchone()[0] == SCHEMA_VERSION

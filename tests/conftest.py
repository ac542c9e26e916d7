"""Shared pytest fixtures for castmatch tests.

Provides a temporary file database, an in-memory database, and a small
catalogue of movie records with the credit-field shapes seen in the real
data (single names, comma-joined co-credits, initials, name-order variants).
"""

from __future__ import annotations

from pathlib import Path

import pytest

from castmatch.database import Database
from castmatch.models import MovieRecord


def make_movie(movie_id: str, title: str | None = None, **credits: object) -> MovieRecord:
    """Helper to create a MovieRecord with defaults."""
    return MovieRecord(
        id=movie_id,
        title=title or f"Movie {movie_id}",
        slug=credits.pop("slug", f"movie-{movie_id}"),
        **credits,
    )


@pytest.fixture
def tmp_db(tmp_path: Path) -> Database:
    """Create a temporary SQLite database (file-based for WAL support)."""
    db = Database(tmp_path / "test.db")
    yield db
    db.close()


@pytest.fixture
def memory_db() -> Database:
    """Fresh in-memory database."""
    db = Database(":memory:")
    yield db
    db.close()


@pytest.fixture
def catalogue() -> list[MovieRecord]:
    """Small catalogue covering the tricky credit formats."""
    return [
        make_movie(
            "1", "Shiva", release_year=1989, rating=8.4, is_blockbuster=True,
            director="Ram Gopal Varma", hero="Akkineni Nagarjuna", heroine="Amala",
            music_director="Ilaiyaraaja", producer="Akkineni Venkat",
        ),
        make_movie(
            "2", "Chitram", release_year=2000, rating=6.8,
            director="Teja", hero="Uday Kiran", heroine="Reema Sen",
            music_director="R. P. Patnaik", writer="Teja",
        ),
        make_movie(
            "3", "Vikramarkudu", release_year=2006, rating=7.5, is_blockbuster=True,
            director="S. S. Rajamouli", hero="Ravi Teja", heroine="Anushka Shetty",
            music_director="M. M. Keeravani",
        ),
        make_movie(
            "4", "Manam", release_year=2014, rating=8.0,
            director="Vikram Kumar", hero="Akkineni Nageswara Rao, Nagarjuna, Naga Chaitanya",
            heroine="Shriya Saran, Samantha", music_director="Anup Rubens",
            producer="Nagarjuna Akkineni",
        ),
        make_movie(
            "5", "Mugguru Monagallu", release_year=1994, rating=6.2,
            director="K. Raghavendra Rao", hero="Chiranjeevi, Mohan Babu",
            heroine="Ramya Krishna", music_director="Vidyasagar",
        ),
        make_movie(
            "6", "Nuvvu Nenu", release_year=2001,
            director="Teja", hero="Uday Kiran", heroine="Anita Hassanandani",
            music_director="R. P. Patnaik",
        ),
    ]


@pytest.fixture
def loaded_db(memory_db: Database, catalogue: list[MovieRecord]) -> Database:
    """In-memory database pre-populated with the sample catalogue."""
    memory_db.upsert_movies(catalogue)
    return memory_db

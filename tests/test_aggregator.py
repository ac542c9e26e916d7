"""Aggregator tests: role buckets, role statistics, collaborators, profiles."""

from __future__ import annotations

import json

import castmatch.aggregator as aggregator_module
from castmatch.aggregator import (
    aggregate,
    build_profile,
    collaborators,
    milestones,
    role_stats,
    roles_by_movie,
)
from castmatch.matcher import match_record
from castmatch.models import CREDIT_FIELDS, CreditField, MovieRecord


def _ids(movies: list[MovieRecord]) -> list[str]:
    return [m.id for m in movies]


class TestAggregate:
    def test_multi_field_record_in_each_bucket_once(self):
        record = MovieRecord(id="x", title="X", director="X Person", writer="X Person")
        result = aggregate([record], "X Person")

        assert _ids(result.roles[CreditField.DIRECTOR]) == ["x"]
        assert _ids(result.roles[CreditField.WRITER]) == ["x"]
        assert result.total == 1

    def test_teja_director_and_writer(self, catalogue):
        result = aggregate(catalogue, "Teja")

        assert _ids(result.roles[CreditField.DIRECTOR]) == ["2", "6"]
        assert _ids(result.roles[CreditField.WRITER]) == ["2"]
        assert result.roles[CreditField.HERO] == []  # "Ravi Teja" is someone else
        assert result.counts[CreditField.DIRECTOR] == 2
        assert result.total == 2

    def test_name_variants_across_fields(self, catalogue):
        result = aggregate(catalogue, "Akkineni Nagarjuna")

        assert _ids(result.roles[CreditField.HERO]) == ["1", "4"]
        assert _ids(result.roles[CreditField.PRODUCER]) == ["4"]

    def test_repeated_co_credit_counts_once(self):
        record = MovieRecord(id="m", title="M", hero="Nagarjuna, Akkineni Nagarjuna")
        result = aggregate([record, record], "Akkineni Nagarjuna")

        assert _ids(result.roles[CreditField.HERO]) == ["m"]

    def test_preserves_input_order(self, catalogue):
        result = aggregate(list(reversed(catalogue)), "Teja")
        assert _ids(result.roles[CreditField.DIRECTOR]) == ["6", "2"]

    def test_buckets_come_from_match_results(self, catalogue, monkeypatch):
        calls = []

        def recording_match_record(record, *args, **kwargs):
            calls.append(record.id)
            return match_record(record, *args, **kwargs)

        monkeypatch.setattr(aggregator_module, "match_record", recording_match_record)
        result = aggregate(catalogue, "Teja")

        assert calls == [m.id for m in catalogue]
        assert _ids(result.roles[CreditField.DIRECTOR]) == ["2", "6"]

    def test_empty_input(self):
        result = aggregate([], "X")

        assert set(result.roles) == set(CREDIT_FIELDS)
        assert all(movies == [] for movies in result.roles.values())
        assert result.total == 0

    def test_to_dict_uses_role_names(self, catalogue):
        data = aggregate(catalogue, "Teja").to_dict()

        assert data["counts"]["director"] == 2
        assert [m["id"] for m in data["roles"]["writer"]] == ["2"]
        json.dumps(data)


class TestRoleStats:
    def test_summary(self, catalogue):
        directed = aggregate(catalogue, "Teja").roles[CreditField.DIRECTOR]
        stats = role_stats(directed)

        assert stats.count == 2
        assert _ids(stats.movies) == ["6", "2"]  # newest first
        assert stats.first_year == 2000
        assert stats.last_year == 2001
        assert stats.avg_rating == 6.8
        assert stats.hit_rate == 0
        assert stats.blockbusters == 0

    def test_hits_and_blockbusters(self, catalogue):
        stats = role_stats(catalogue[:3])

        assert stats.hit_rate == 67
        assert stats.blockbusters == 2
        assert stats.avg_rating == 7.6

    def test_empty(self):
        stats = role_stats([])
        assert stats.count == 0
        assert stats.first_year is None
        assert stats.avg_rating is None


class TestCollaborators:
    def test_ranked_by_count(self, catalogue):
        ranked = collaborators(catalogue, "music_director")

        assert ranked[0].name == "R. P. Patnaik"
        assert ranked[0].count == 2
        assert ranked[0].avg_rating == 6.8
        assert [m.id for m in ranked[0].movies] == ["6", "2"]

    def test_excludes_subject(self, catalogue):
        names = {c.name for c in collaborators(catalogue[:4], "hero", exclude="Akkineni Nagarjuna")}

        assert "Akkineni Nagarjuna" not in names
        assert "Nagarjuna" not in names
        assert {"Akkineni Nageswara Rao", "Naga Chaitanya", "Ravi Teja"} <= names

    def test_limit(self, catalogue):
        assert len(collaborators(catalogue, "heroine", limit=3)) == 3


class TestBuildProfile:
    def test_career_span_and_primary_role(self, catalogue):
        profile = build_profile(catalogue, "Akkineni Nagarjuna")

        assert profile.total_movies == 2
        assert profile.first_year == 1989
        assert profile.last_year == 2014
        assert profile.role_stats[CreditField.HERO].count == 2
        hero_collabs = {c.name for c in profile.collaborators["hero"]}
        assert hero_collabs == {"Akkineni Nageswara Rao", "Naga Chaitanya"}

    def test_excluded_slugs_dropped(self, catalogue):
        profile = build_profile(catalogue, "Teja", exclude_slugs=["movie-6"])

        assert _ids(profile.aggregate.roles[CreditField.DIRECTOR]) == ["2"]
        assert profile.total_movies == 1

    def test_unknown_person(self, catalogue):
        profile = build_profile(catalogue, "Prabhas")

        assert profile.total_movies == 0
        assert profile.first_year is None
        assert all(c == [] for c in profile.collaborators.values())

    def test_to_dict_is_json_ready(self, catalogue):
        data = build_profile(catalogue, "Teja").to_dict()

        assert data["roles"]["director"]["count"] == 2
        assert data["collaborators"]["music_director"][0]["name"] == "R. P. Patnaik"
        json.dumps(data)

    def test_subject_never_listed_as_own_collaborator(self):
        records = [
            MovieRecord(id="a", title="A", hero="Ravi Teja, Teja"),
            MovieRecord(id="b", title="B", hero="Ravi Teja"),
        ]
        profile = build_profile(records, "Teja", min_single_word_length=4)

        assert _ids(profile.aggregate.roles[CreditField.HERO]) == ["a", "b"]
        assert profile.collaborators["hero"] == []

    def test_roles_by_movie(self, catalogue):
        profile = build_profile(catalogue, "Teja")

        assert profile.roles_by_movie == {
            "2": [CreditField.DIRECTOR, CreditField.WRITER],
            "6": [CreditField.DIRECTOR],
        }
        writer_movies = profile.to_dict()["roles"]["writer"]["movies"]
        assert writer_movies[0]["roles"] == ["director", "writer"]

    def test_milestones(self, catalogue):
        profile = build_profile(catalogue, "Akkineni Nagarjuna")

        top = [(m.title, m.rating) for m in profile.milestones if m.category == "top_rated"]
        hits = [m.title for m in profile.milestones if m.category == "blockbuster"]
        assert top == [("Shiva", 8.4), ("Manam", 8.0)]
        assert hits == ["Shiva"]

        data = profile.to_dict()
        assert data["milestones"][0] == {
            "category": "top_rated",
            "title": "Shiva",
            "year": 1989,
            "slug": "movie-1",
            "rating": 8.4,
        }
        assert data["roles_by_movie"]["4"] == ["hero", "producer"]


class TestRolesByMovie:
    def test_multi_role_movie_lists_every_role(self):
        record = MovieRecord(id="x", title="X", director="X Person", writer="X Person", producer="X Person")
        roles = roles_by_movie(aggregate([record], "X Person"))

        assert roles == {"x": [CreditField.DIRECTOR, CreditField.WRITER, CreditField.PRODUCER]}

    def test_empty(self):
        assert roles_by_movie(aggregate([], "X")) == {}


class TestMilestones:
    def test_top_rated_best_first_and_limited(self):
        movies = [
            MovieRecord(id=str(i), title=f"M{i}", rating=8.0 + i / 10) for i in range(7)
        ] + [MovieRecord(id="low", title="Low", rating=7.9)]
        picked = milestones(movies)

        assert [m.title for m in picked] == ["M6", "M5", "M4", "M3", "M2"]
        assert all(m.category == "top_rated" for m in picked)

    def test_blockbusters_keep_input_order(self):
        movies = [
            MovieRecord(id="1", title="B1", is_blockbuster=True, rating=6.0),
            MovieRecord(id="2", title="B2", is_blockbuster=True, rating=9.0),
        ]
        picked = milestones(movies)

        assert [(m.category, m.title) for m in picked] == [
            ("top_rated", "B2"),
            ("blockbuster", "B1"),
            ("blockbuster", "B2"),
        ]

    def test_unrated_movies_ignored(self):
        assert milestones([MovieRecord(id="1", title="A")]) == []

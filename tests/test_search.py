"""Tests for search.py — sub-scores and search_history ranking."""

import math
from datetime import timedelta

import pytest

from histminer.config import ConfigError
from histminer.models import HistoryEntry
from histminer.search import (
    MIN_SCORE,
    WEIGHTS,
    exact_overlap,
    frequency_score,
    fuzzy_overlap,
    recency_score,
    round_scores,
    search_history,
    substring_score,
)

from conftest import BASE_TIME


class TestWeights:
    def test_weights_sum_to_one(self):
        assert math.isclose(float(WEIGHTS.sum()), 1.0)


class TestExactOverlap:
    def test_partial_overlap(self):
        assert exact_overlap(["git", "push"], ["git", "status"]) == 0.5

    def test_full_overlap(self):
        assert exact_overlap(["git"], ["git", "status"]) == 1.0

    def test_empty_query(self):
        assert exact_overlap([], ["git"]) == 0.0


class TestFuzzyOverlap:
    def test_all_exact_is_one(self):
        assert fuzzy_overlap(["git"], ["git", "status"]) == 1.0

    def test_typo_matches(self):
        assert fuzzy_overlap(["gti"], ["git", "status"]) == 1.0

    def test_counts_against_all_query_tokens(self):
        assert fuzzy_overlap(["git", "stauts"], ["git", "status"]) == 0.5

    def test_no_match(self):
        assert fuzzy_overlap(["kubectl"], ["git", "status"]) == 0.0

    def test_length_prefilter(self):
        assert fuzzy_overlap(["ab"], ["abcde"]) == 0.0

    def test_empty_query(self):
        assert fuzzy_overlap([], ["git"]) == 0.0


class TestSubstringScore:
    def test_full_query_substring(self):
        assert substring_score("git st", "git status", ["git", "st"], ["git", "status"]) == 1.0

    def test_case_insensitive(self):
        assert substring_score("GIT", "git status", ["git"], ["git", "status"]) == 1.0

    def test_prefix_ratio(self):
        score = substring_score("doc xyz", "docker ps", ["doc", "xyz"], ["docker", "ps"])
        assert score == 0.5

    def test_command_token_prefixes_query_token(self):
        score = substring_score("dockerfile", "docker ps", ["dockerfile"], ["docker", "ps"])
        assert score == 1.0

    def test_no_tokens(self):
        assert substring_score("zzz", "git status", [], ["git", "status"]) == 0.0


class TestFrequencyScore:
    def test_single_occurrence_dataset(self):
        assert frequency_score(1, 1) == 0.0

    def test_most_frequent_is_one(self):
        assert frequency_score(5, 5) == pytest.approx(1.0)

    def test_log_scale(self):
        assert frequency_score(1, 3) == pytest.approx(0.5)


class TestRecencyScore:
    def test_missing_timestamp(self):
        assert recency_score(None, BASE_TIME) == 0.0
        assert recency_score(BASE_TIME, None) == 0.0

    def test_newest_is_one(self):
        assert recency_score(BASE_TIME, BASE_TIME) == 1.0
        assert recency_score(BASE_TIME + timedelta(hours=1), BASE_TIME) == 1.0

    def test_linear_decay(self):
        assert recency_score(BASE_TIME - timedelta(days=15), BASE_TIME) == pytest.approx(0.5)

    def test_older_than_window(self):
        assert recency_score(BASE_TIME - timedelta(days=45), BASE_TIME) == 0.0

    def test_monotonic(self):
        newer = recency_score(BASE_TIME - timedelta(days=2), BASE_TIME)
        older = recency_score(BASE_TIME - timedelta(days=9), BASE_TIME)
        assert newer >= older


class TestRoundScores:
    def test_halves_round_up(self):
        # 62.5 and 562.5 are exact in binary; half-to-even would give 0.062 and 0.562
        assert round_scores([0.0625, 0.5625]).tolist() == [0.063, 0.563]

    def test_three_decimal_places(self):
        assert round_scores([0.1234, 0.9996, 0.0]).tolist() == [0.123, 1.0, 0.0]


class TestSearchHistory:
    def test_ranks_frequent_match_first(self, make_entries):
        entries = make_entries(["git status"] * 3 + ["git commit -m fix"])
        results = search_history(entries, "git")
        commands = [r.command for r in results]
        assert commands == ["git status", "git commit -m fix"]
        assert results[0].score == 0.95
        assert results[1].score == 0.925

    def test_typo_found_by_fuzzy_score(self, make_entries):
        results = search_history(make_entries(["git status"]), "gti")
        assert [r.command for r in results] == ["git status"]
        assert results[0].score == 0.2

    def test_max_results(self, make_entries):
        entries = make_entries(["git status", "git push", "git pull"])
        assert len(search_history(entries, "git", max_results=1)) == 1

    @pytest.mark.parametrize("query", ["", "   ", "---", "/.|"])
    def test_blank_or_punctuation_query(self, query, make_entries):
        assert search_history(make_entries(["git status"]), query) == []

    def test_empty_entries(self):
        assert search_history([], "git") == []

    def test_invalid_max_results(self, make_entries):
        with pytest.raises(ConfigError):
            search_history(make_entries(["git status"]), "git", max_results=0)

    def test_deduplicates_commands(self, make_entries):
        entries = make_entries(["git status", "npm test", "git status", "git status"])
        results = search_history(entries, "git status")
        commands = [r.command for r in results]
        assert len(commands) == len(set(commands))
        assert results[0].command == "git status"
        assert results[0].frequency == 3

    def test_aggregates_line_number_and_last_used(self, make_entries):
        entries = make_entries(["git status", "npm test", "git status"], timed=True)
        result = search_history(entries, "status")[0]
        assert result.line_number == 3
        assert result.last_used == BASE_TIME + timedelta(minutes=3)

    def test_unrelated_commands_dropped(self, make_entries):
        entries = make_entries(["git status", "kubectl get pods"])
        commands = [r.command for r in search_history(entries, "kubectl")]
        assert commands == ["kubectl get pods"]

    def test_score_bounds_and_precision(self, make_entries):
        entries = make_entries(
            ["git status", "git stash pop", "docker compose up -d", "grep -r TODO src", "gitk"],
            timed=True,
        )
        results = search_history(entries, "git st")
        assert results
        for r in results:
            assert MIN_SCORE <= r.score <= 1.0
            assert round(r.score, 3) == r.score

    def test_results_ordered_by_score_then_frequency(self, make_entries):
        entries = make_entries(
            ["npm run build", "npm test", "npm run build", "npm install", "npm test", "npm run build"]
        )
        results = search_history(entries, "npm run")
        keys = [(r.score, r.frequency) for r in results]
        assert keys == sorted(keys, reverse=True)

    def test_recency_breaks_otherwise_equal_commands(self):
        entries = [
            HistoryEntry("deploy staging", 1, BASE_TIME - timedelta(days=20)),
            HistoryEntry("deploy prod", 2, BASE_TIME),
        ]
        results = search_history(entries, "deploy")
        assert [r.command for r in results] == ["deploy prod", "deploy staging"]
        assert results[0].score > results[1].score

    def test_equal_scores_rank_more_frequent_first(self, make_entries):
        # Both commands match "deploy" fully. Their frequency signals differ by
        # less than the rounding step, so the rounded scores tie.
        entries = make_entries(
            ["deploy stage"] * 29 + ["deploy prod"] * 30 + ["other thing"] * 1000
        )
        results = search_history(entries, "deploy")
        top = [(r.command, r.score, r.frequency) for r in results[:2]]
        assert top == [("deploy prod", 0.925, 30), ("deploy stage", 0.925, 29)]

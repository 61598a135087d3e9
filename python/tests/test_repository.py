"""
Tests for thread loading, sampling, persona filtering and the persona vocabulary.

Last Grunted: 10/12/2026
"""

from __future__ import annotations

import random

import pytest

from reverse_llm.models import QuestionThread
from reverse_llm.personas import (
    DEFAULT_BADGE_COLOR,
    PERSONA_PILLS,
    available_pills,
    badge_color,
    resolve_pill,
)
from reverse_llm.repository import (
    DEFAULT_QUESTIONS_PATH,
    LoadError,
    ThreadRepository,
    filter_by_persona,
    sample,
)
from tests.mock_data import (
    generate_thread_records,
    generate_threads,
    make_thread,
    write_questions_file,
)


# =============================================================================
# Models
# =============================================================================


class TestQuestionThread:
    """Tests for the QuestionThread model."""

    def test_accepts_llm_key(self):
        thread = QuestionThread.model_validate({"id": "t1", "llm": "Gemini", "messages": ["Q"]})
        assert thread.persona == "Gemini"
        assert thread.title == "Q"

    def test_rejects_empty_messages(self):
        with pytest.raises(ValueError):
            QuestionThread(id="t1", persona="Claude", messages=[])

    def test_is_immutable(self):
        thread = make_thread()
        with pytest.raises(ValueError):
            thread.persona = "Grok"


# =============================================================================
# Loading
# =============================================================================


class TestLoadAll:
    """Tests for ThreadRepository.load_all()."""

    def test_packaged_resource_loads(self):
        """The shipped sample data is valid and has at least 20 threads."""
        repository = ThreadRepository()
        threads = repository.load_all()

        assert repository.path == DEFAULT_QUESTIONS_PATH
        assert len(threads) >= 20
        assert len({t.id for t in threads}) == len(threads)
        assert all(len(t.messages) >= 1 for t in threads)

    def test_loads_from_explicit_path(self, tmp_path):
        path = write_questions_file(tmp_path, generate_thread_records(5))
        threads = ThreadRepository(path).load_all()

        assert [t.id for t in threads] == ["t000", "t001", "t002", "t003", "t004"]

    def test_loaded_once_and_cached(self, tmp_path):
        path = write_questions_file(tmp_path, generate_thread_records(3))
        repository = ThreadRepository(path)
        repository.load_all()
        path.unlink()

        assert len(repository.load_all()) == 3
        assert repository.is_loaded is True

    def test_missing_file_raises_load_error(self, tmp_path):
        with pytest.raises(LoadError, match="not found"):
            ThreadRepository(tmp_path / "missing.json").load_all()

    def test_invalid_json_raises_load_error(self, tmp_path):
        path = tmp_path / "questions.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(LoadError, match="not valid JSON"):
            ThreadRepository(path).load_all()

    def test_non_list_raises_load_error(self, tmp_path):
        path = write_questions_file(tmp_path, {"threads": []})

        with pytest.raises(LoadError, match="JSON list"):
            ThreadRepository(path).load_all()

    def test_duplicate_ids_raise_load_error(self, tmp_path):
        records = generate_thread_records(2)
        records[1]["id"] = records[0]["id"]
        path = write_questions_file(tmp_path, records)

        with pytest.raises(LoadError, match="unique"):
            ThreadRepository(path).load_all()

    def test_empty_messages_raise_load_error(self, tmp_path):
        path = write_questions_file(tmp_path, [{"id": "t1", "llm": "Grok", "messages": []}])

        with pytest.raises(LoadError):
            ThreadRepository(path).load_all()

    def test_load_error_keeps_path_and_cause(self, tmp_path):
        missing = tmp_path / "missing.json"
        with pytest.raises(LoadError) as exc_info:
            ThreadRepository(missing).load_all()

        assert exc_info.value.path == missing
        assert exc_info.value.cause == "file not found"


# =============================================================================
# Sampling
# =============================================================================


class TestSample:
    """Tests for random sampling."""

    def test_sample_size_is_capped_by_pool(self):
        pool = generate_threads(5)

        assert len(sample(pool, 20, random.Random(1))) == 5
        assert len(sample(pool, 3, random.Random(1))) == 3
        assert sample(pool, 0, random.Random(1)) == []
        assert sample([], 4, random.Random(1)) == []

    def test_sample_has_no_duplicates(self):
        pool = generate_threads(30)
        drawn = sample(pool, 20, random.Random(3))

        assert len({t.id for t in drawn}) == 20
        assert all(t in pool for t in drawn)

    def test_sample_is_deterministic_with_seed(self):
        pool = generate_threads(30)

        first = sample(pool, 10, random.Random(42))
        second = sample(pool, 10, random.Random(42))

        assert first == second

    def test_sample_does_not_mutate_pool(self):
        pool = generate_threads(10)
        before = list(pool)
        sample(pool, 10, random.Random(5))

        assert pool == before

    def test_repository_sample_uses_injected_rng(self, tmp_path):
        path = write_questions_file(tmp_path, generate_thread_records(25))

        first = ThreadRepository(path, rng=random.Random(9)).sample(20)
        second = ThreadRepository(path, rng=random.Random(9)).sample(20)

        assert [t.id for t in first] == [t.id for t in second]
        assert len(first) == 20

    def test_load_random_threads_degrades_to_empty(self, tmp_path):
        """The LoadError goes to on_error instead of the caller."""
        errors: list[LoadError] = []
        repository = ThreadRepository(tmp_path / "missing.json")

        assert repository.load_random_threads(20, on_error=errors.append) == []
        assert len(errors) == 1
        assert errors[0].cause == "file not found"

    def test_load_random_threads_draws_inbox(self, tmp_path):
        path = write_questions_file(tmp_path, generate_thread_records(25))
        errors: list[LoadError] = []

        inbox = ThreadRepository(path, rng=random.Random(2)).load_random_threads(20, on_error=errors.append)

        assert len(inbox) == 20
        assert errors == []


# =============================================================================
# Persona Filter
# =============================================================================


class TestFilterByPersona:
    """Tests for filter_by_persona()."""

    def test_all_returns_everything_in_order(self):
        threads = generate_threads(10)
        assert filter_by_persona(threads, "All") == threads

    def test_match_is_case_insensitive_and_exact(self):
        threads = [
            make_thread("a", "Gemini"),
            make_thread("b", "gemini"),
            make_thread("c", "Gemini Pro"),
            make_thread("d", "Claude"),
        ]

        assert [t.id for t in filter_by_persona(threads, "gemini")] == ["a", "b"]
        assert [t.id for t in filter_by_persona(threads, "GEMINI")] == ["a", "b"]

    def test_multi_word_persona(self):
        threads = [make_thread("a", "Meta AI"), make_thread("b", "Meta")]
        assert [t.id for t in filter_by_persona(threads, "meta ai")] == ["a"]

    def test_no_match_returns_empty(self):
        assert filter_by_persona(generate_threads(4), "Nobody") == []


# =============================================================================
# Personas
# =============================================================================


class TestPersonas:
    """Tests for the pill vocabulary and badge colors."""

    def test_pills_start_with_wildcard(self):
        assert available_pills()[0] == "All"
        assert "Meta AI" in PERSONA_PILLS
        assert len(PERSONA_PILLS) == 9

    def test_resolve_pill_is_case_insensitive(self):
        assert resolve_pill("deepseek") == "DeepSeek"
        assert resolve_pill("  META ai ") == "Meta AI"
        assert resolve_pill("all") == "All"

    def test_resolve_unknown_pill_fails_fast(self):
        with pytest.raises(ValueError, match="Unknown persona pill"):
            resolve_pill("Bard")

    def test_resolve_empty_pill_fails(self):
        with pytest.raises(ValueError, match="empty"):
            resolve_pill("  ")

    def test_badge_colors(self):
        assert badge_color("Claude") == badge_color("claude")
        assert badge_color("meta") == badge_color("Meta AI")
        assert badge_color("Unknown bot") == DEFAULT_BADGE_COLOR

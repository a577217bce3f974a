"""Tests for exercise_store: parsing, validation errors and lookup by id."""

from __future__ import annotations

import json

import pytest

import exercise_store
from exercise_store import (
    ExerciseError,
    ExerciseNotFoundError,
    ExerciseParseError,
    ExerciseValidationError,
)
from stroke_models import StrokePoint


def _payload(**overrides):
    payload = {
        "id": "cursive-a",
        "title": "Cursive a",
        "image_url": "https://example.invalid/a.png",
        "audio_url": "https://example.invalid/a.mp3",
        "stroke_data": [
            {"x": 10, "y": 20, "time": 0, "pressure": 0.2},
            {"x": 12, "y": 22, "time": 30, "pressure": 0.25},
            {"x": 40, "y": 20, "time": 700, "pressure": 0.3},
        ],
        "canvas_width": 800,
        "canvas_height": 600,
        "rhythm_config": {"difficulty": "Medium"},
    }
    payload.update(overrides)
    return payload


def _write(directory, name, payload):
    path = directory / name
    path.write_text(json.dumps(payload) if not isinstance(payload, str) else payload, encoding="utf-8")
    return path


def test_parse_payload_builds_stroke_points_in_stored_order():
    exercise = exercise_store.parse_exercise_payload(_payload())
    assert exercise.exercise_id == "cursive-a"
    assert exercise.difficulty == "medium"
    assert exercise.canvas_width == 800
    assert exercise.canvas_height == 600
    assert exercise.points[0] == StrokePoint(x=10.0, y=20.0, time=0.0, pressure=0.2)
    assert [point.time for point in exercise.points] == [0.0, 30.0, 700.0]
    assert exercise.source_path is None


def test_optional_fields_default():
    exercise = exercise_store.parse_exercise_payload(
        {"id": 17, "stroke_data": [{"x": 0, "y": 0, "time": 5}], "canvas_width": 0, "rhythm_config": None}
    )
    assert exercise.exercise_id == "17"
    assert exercise.title == ""
    assert exercise.difficulty == "easy"
    assert exercise.canvas_width == 1024
    assert exercise.canvas_height == 768
    assert exercise.points[0].pressure == 0.0


def test_unknown_keys_are_ignored():
    exercise = exercise_store.parse_exercise_payload(_payload(created_at="2024-01-01", extra={"a": 1}))
    assert exercise.exercise_id == "cursive-a"


@pytest.mark.parametrize(
    "overrides",
    [
        {"id": ""},
        {"id": None},
        {"stroke_data": [{"x": 0, "y": 0}]},
        {"stroke_data": [{"x": "left", "y": 0, "time": 0}]},
        {"stroke_data": "not-a-list"},
        {"rhythm_config": {"difficulty": "impossible"}},
        {"canvas_width": -5},
    ],
)
def test_invalid_payloads_raise_validation_error(overrides):
    with pytest.raises(ExerciseValidationError):
        exercise_store.parse_exercise_payload(_payload(**overrides))


def test_validation_error_is_an_exercise_error():
    assert issubclass(ExerciseValidationError, ExerciseError)
    assert issubclass(ExerciseParseError, ExerciseError)
    assert issubclass(ExerciseNotFoundError, ExerciseError)


def test_load_exercise_records_source_path(tmp_path):
    path = _write(tmp_path, "cursive-a.json", _payload())
    exercise = exercise_store.load_exercise(path)
    assert exercise.source_path == path
    assert len(exercise.points) == 3


def test_load_missing_file_raises_file_not_found(tmp_path):
    with pytest.raises(FileNotFoundError):
        exercise_store.load_exercise(tmp_path / "nope.json")


@pytest.mark.parametrize("content", ["{broken", "[1, 2]", "\"text\""])
def test_load_unparseable_file_raises_parse_error(tmp_path, content):
    path = _write(tmp_path, "bad.json", content)
    with pytest.raises(ExerciseParseError):
        exercise_store.load_exercise(path)


def test_load_non_utf8_file_raises_parse_error(tmp_path):
    path = tmp_path / "latin.json"
    path.write_bytes(b"\xff\xfe\x00{")
    with pytest.raises(ExerciseParseError):
        exercise_store.load_exercise(path)


def test_validation_error_mentions_file(tmp_path):
    path = _write(tmp_path, "invalid.json", _payload(id=""))
    with pytest.raises(ExerciseValidationError, match="invalid.json"):
        exercise_store.load_exercise(path)


def test_find_exercise_by_id(tmp_path):
    _write(tmp_path, "cursive-a.json", _payload())
    exercise = exercise_store.find_exercise("cursive-a", directory=tmp_path)
    assert exercise.title == "Cursive a"


def test_find_missing_exercise(tmp_path):
    with pytest.raises(ExerciseNotFoundError):
        exercise_store.find_exercise("cursive-z", directory=tmp_path)


def test_find_requires_id(tmp_path):
    with pytest.raises(ValueError):
        exercise_store.find_exercise("  ", directory=tmp_path)


def test_list_exercise_ids(tmp_path):
    _write(tmp_path, "b.json", _payload(id="b"))
    _write(tmp_path, "a.json", _payload(id="a"))
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
    assert exercise_store.list_exercise_ids(tmp_path) == ["a", "b"]
    assert exercise_store.list_exercise_ids(tmp_path / "missing") == []


@pytest.mark.parametrize("text, expected", [("easy", "easy"), (" HARD ", "hard"), ("Medium", "medium")])
def test_normalize_difficulty(text, expected):
    assert exercise_store.normalize_difficulty(text) == expected


def test_normalize_difficulty_rejects_unknown():
    with pytest.raises(ValueError):
        exercise_store.normalize_difficulty("expert")

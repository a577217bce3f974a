# -*- coding: utf-8 -*-
########################
# exercise_store.py
########################
# Purpose:
# - Load cursive practice exercises (reference stroke data plus metadata) from JSON files.
# - Resolve exercise files by id inside the exercises directory.
#
# Design notes:
# - Parsing must be tolerant of extra keys but never silently accept invalid stroke data.
# - Stroke order is kept exactly as stored. Time ordering is the capture side's guarantee.
# - Missing exercise is a first class outcome (ExerciseNotFoundError).
#
########################
# Interfaces:
# Public exceptions:
# - class ExerciseError(Exception)
# - class ExerciseParseError(ExerciseError)
# - class ExerciseValidationError(ExerciseError)
# - class ExerciseNotFoundError(ExerciseError)
#
# Public dataclasses:
# - Exercise(exercise_id: str, title: str, difficulty: str, points: list[StrokePoint],
#            canvas_width: int, canvas_height: int, image_url: str, audio_url: str, source_path: Optional[Path])
#
# Public functions:
# - normalize_difficulty(difficulty: str) -> str
# - default_exercises_dir() -> pathlib.Path
# - list_exercise_ids(directory: pathlib.Path) -> list[str]
# - parse_exercise_payload(payload: dict, *, source_path: Optional[Path] = None) -> Exercise
# - load_exercise(exercise_path: pathlib.Path) -> Exercise
# - find_exercise(exercise_id: str, *, directory: pathlib.Path) -> Exercise
#
# Inputs:
# - UTF-8 JSON exercise files:
#   {"id": "...", "title": "...", "stroke_data": [{"x":..,"y":..,"time":..,"pressure":..}, ...],
#    "canvas_width": 1024, "canvas_height": 768, "rhythm_config": {"difficulty": "easy"}}
#
# Outputs:
# - Exercise values whose points feed RhythmEngine.parse_stroke_data.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator

from stroke_models import StrokePoint


logger = logging.getLogger(__name__)


class ExerciseError(Exception):
    """Base error for exercise loading and validation."""


class ExerciseParseError(ExerciseError):
    """Raised when the file cannot be read or is not a JSON object."""


class ExerciseValidationError(ExerciseError):
    """Raised when the file parses but its content violates the exercise schema."""


class ExerciseNotFoundError(ExerciseError):
    """Raised when no exercise file exists for the requested id."""


_ALLOWED_DIFFICULTIES = {
    "easy",
    "medium",
    "hard",
}

DEFAULT_DIFFICULTY = "easy"
DEFAULT_CANVAS_WIDTH = 1024
DEFAULT_CANVAS_HEIGHT = 768


def normalize_difficulty(difficulty: str) -> str:
    difficulty_text = str(difficulty or "").strip().lower()
    if difficulty_text not in _ALLOWED_DIFFICULTIES:
        raise ValueError(
            f"Unsupported difficulty: {difficulty!r}. Allowed: {sorted(_ALLOWED_DIFFICULTIES)}"
        )
    return difficulty_text


class _StrokeSampleModel(BaseModel):
    x: float
    y: float
    time: float
    pressure: float = Field(default=0.0)


class _RhythmSettingsModel(BaseModel):
    difficulty: str = Field(default=DEFAULT_DIFFICULTY)

    @field_validator("difficulty", mode="before")
    @classmethod
    def validate_difficulty(cls, value: Any) -> str:
        if value is None or str(value).strip() == "":
            return DEFAULT_DIFFICULTY
        return normalize_difficulty(str(value))


class _ExerciseFileModel(BaseModel):
    id: str
    title: str = Field(default="")
    image_url: str = Field(default="")
    audio_url: str = Field(default="")
    stroke_data: List[_StrokeSampleModel] = Field(default_factory=list)
    canvas_width: int = Field(default=DEFAULT_CANVAS_WIDTH, gt=0)
    canvas_height: int = Field(default=DEFAULT_CANVAS_HEIGHT, gt=0)
    rhythm_config: _RhythmSettingsModel = Field(default_factory=_RhythmSettingsModel)

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, value: Any) -> str:
        text = str(value if value is not None else "").strip()
        if not text:
            raise ValueError("id must be a non-empty string")
        return text

    @field_validator("canvas_width", "canvas_height", mode="before")
    @classmethod
    def default_canvas_size(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or value == 0:
            return DEFAULT_CANVAS_WIDTH if info.field_name == "canvas_width" else DEFAULT_CANVAS_HEIGHT
        return value

    @field_validator("rhythm_config", mode="before")
    @classmethod
    def default_rhythm_config(cls, value: Any) -> Any:
        return value if value is not None else {}


@dataclass(frozen=True)
class Exercise:
    exercise_id: str
    title: str
    difficulty: str
    points: List[StrokePoint]
    canvas_width: int = DEFAULT_CANVAS_WIDTH
    canvas_height: int = DEFAULT_CANVAS_HEIGHT
    image_url: str = ""
    audio_url: str = ""
    source_path: Optional[Path] = None


def default_exercises_dir() -> Path:
    """Return the default exercises directory (not created automatically)."""
    return Path.cwd() / "Exercises"


def list_exercise_ids(directory: Path) -> List[str]:
    directory_path = Path(directory)
    if not directory_path.is_dir():
        return []
    return sorted(path.stem for path in directory_path.glob("*.json") if path.is_file())


def parse_exercise_payload(payload: Dict[str, Any], *, source_path: Optional[Path] = None) -> Exercise:
    location = str(source_path) if source_path is not None else "<payload>"
    try:
        model = _ExerciseFileModel.model_validate(payload)
    except ValidationError as exc:
        raise ExerciseValidationError(f"Invalid exercise {location}:\n{exc}") from exc

    points = [
        StrokePoint(x=sample.x, y=sample.y, time=sample.time, pressure=sample.pressure)
        for sample in model.stroke_data
    ]
    return Exercise(
        exercise_id=model.id,
        title=model.title,
        difficulty=model.rhythm_config.difficulty,
        points=points,
        canvas_width=int(model.canvas_width),
        canvas_height=int(model.canvas_height),
        image_url=model.image_url,
        audio_url=model.audio_url,
        source_path=source_path,
    )


def _read_json_object(file_path: Path) -> Dict[str, Any]:
    try:
        raw_text = file_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except UnicodeDecodeError as exc:
        raise ExerciseParseError(f"Exercise file is not valid UTF-8: {file_path}") from exc
    except OSError as exc:
        raise ExerciseParseError(f"Failed to read exercise file: {file_path}. Error: {exc}") from exc

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise ExerciseParseError(f"Exercise file is not valid JSON: {file_path}. Error: {exc}") from exc

    if not isinstance(parsed, dict):
        raise ExerciseParseError(f"Exercise file root must be a JSON object: {file_path}")
    return parsed


def load_exercise(exercise_path: Path) -> Exercise:
    resolved_path = Path(exercise_path)
    payload = _read_json_object(resolved_path)
    exercise = parse_exercise_payload(payload, source_path=resolved_path)
    logger.info(
        "Loaded exercise %r (%s) with %d stroke points from %s",
        exercise.exercise_id,
        exercise.difficulty,
        len(exercise.points),
        resolved_path,
    )
    return exercise


def find_exercise(exercise_id: str, *, directory: Path) -> Exercise:
    exercise_id_text = str(exercise_id or "").strip()
    if not exercise_id_text:
        raise ValueError("exercise_id must be a non-empty string")

    candidate_path = Path(directory) / f"{exercise_id_text}.json"
    if not candidate_path.is_file():
        raise ExerciseNotFoundError(f"No exercise {exercise_id_text!r} in {directory}")
    return load_exercise(candidate_path)


def _run_unit_tests() -> None:
    import tempfile

    assert normalize_difficulty(" Hard ") == "hard"

    exercise = parse_exercise_payload(
        {
            "id": "a-lower",
            "title": "Letter a",
            "stroke_data": [
                {"x": 1, "y": 2, "time": 0, "pressure": 0.2},
                {"x": 2, "y": 3, "time": 40, "pressure": 0.25},
            ],
            "rhythm_config": None,
        }
    )
    assert exercise.difficulty == "easy"
    assert exercise.canvas_width == DEFAULT_CANVAS_WIDTH
    assert [point.time for point in exercise.points] == [0.0, 40.0]

    with tempfile.TemporaryDirectory() as temp_dir:
        directory = Path(temp_dir)
        (directory / "b-lower.json").write_text(
            json.dumps({"id": "b-lower", "stroke_data": [{"x": 0, "y": 0, "time": 0}]}),
            encoding="utf-8",
        )
        (directory / "broken.json").write_text("{not json", encoding="utf-8")

        assert list_exercise_ids(directory) == ["b-lower", "broken"]
        assert find_exercise("b-lower", directory=directory).exercise_id == "b-lower"

        try:
            find_exercise("broken", directory=directory)
        except ExerciseParseError:
            pass
        else:
            raise AssertionError("Expected ExerciseParseError for corrupt exercise")

        try:
            find_exercise("missing", directory=directory)
        except ExerciseNotFoundError:
            pass
        else:
            raise AssertionError("Expected ExerciseNotFoundError for missing exercise")


if __name__ == "__main__":
    _run_unit_tests()
    print("exercise_store.py: ok")

"""
practice_config.py

Typed configuration loading and validation for the cursive rhythm practice engine.

Design goals
- RhythmConfig is an immutable value injected into RhythmEngine (or defaulted)
- Load at most one UTF-8 JSON config file
- Validate with pydantic (defaults included)
- Support environment variable overrides
- No other I/O beyond reading the config file (no directory creation)

Config file location
- If CURSIVE_RHYTHM_CONFIG_PATH is set, that file is used.
- Otherwise these paths are searched in order and the first one that exists is used:
  1) ./cursive_rhythm_config.json (current working directory)
  2) <user config dir>/CursiveRhythm/CursiveRhythm/cursive_rhythm_config.json
  3) <user config dir>/CursiveRhythm/CursiveRhythm/config.json

Example config file (cursive_rhythm_config.json)
{
  "rhythm": {
    "timing_windows": {"perfect": 150, "great": 300, "good": 500},
    "pressure": {"min": 0.10, "max": 0.35, "hard_threshold": 0.50},
    "drain_rate": 5,
    "heal_rate": 2,
    "gap_threshold_ms": 300,
    "lookahead_ms": 1500
  },
  "exercises_dir": ""
}

The camelCase spellings used by exercise payloads (timingWindows, hardThreshold,
drainRate, healRate, gapThresholdMs, lookaheadMs) are accepted as well.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator


class TimingWindowsConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    perfect: float = Field(default=150.0, gt=0, description="Perfect window, +/- ms.")
    great: float = Field(default=300.0, gt=0, description="Great window, +/- ms.")
    good: float = Field(default=500.0, gt=0, description="Good window, +/- ms.")

    @model_validator(mode="after")
    def validate_ascending(self) -> "TimingWindowsConfig":
        if not (self.perfect <= self.great <= self.good):
            raise ValueError("timing windows must be ascending: perfect <= great <= good")
        return self


class PressureConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    min: float = Field(default=0.10, ge=0.0, le=1.0, description="Lower edge of the gentle band.")
    max: float = Field(default=0.35, ge=0.0, le=1.0, description="Upper edge of the gentle band.")
    hard_threshold: float = Field(
        default=0.50,
        ge=0.0,
        le=1.0,
        alias="hardThreshold",
        description="Average pressure above this always judges as miss.",
    )

    @model_validator(mode="after")
    def validate_band(self) -> "PressureConfig":
        if not (self.min <= self.max <= self.hard_threshold):
            raise ValueError("pressure band must satisfy min <= max <= hard_threshold")
        return self


class RhythmConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timing_windows: TimingWindowsConfig = Field(default_factory=TimingWindowsConfig, alias="timingWindows")
    pressure: PressureConfig = Field(default_factory=PressureConfig)
    drain_rate: int = Field(default=5, ge=0, le=100, alias="drainRate", description="Life lost per miss.")
    heal_rate: int = Field(default=2, ge=0, le=100, alias="healRate", description="Life gained per hit.")
    gap_threshold_ms: float = Field(
        default=300.0,
        gt=0,
        alias="gapThresholdMs",
        description="Pen lift gap that closes a beat segment.",
    )
    lookahead_ms: float = Field(
        default=1500.0,
        gt=0,
        alias="lookaheadMs",
        description="How far ahead approaching segments are reported.",
    )


class AppConfig(BaseModel):
    rhythm: RhythmConfig = Field(default_factory=RhythmConfig)
    exercises_dir: str = Field(default="", description="Directory holding exercise JSON files. Empty means ./Exercises.")

    @field_validator("exercises_dir")
    @classmethod
    def normalize_exercises_dir(cls, value: str) -> str:
        return (value or "").strip()


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("CursiveRhythm", "CursiveRhythm"))
    return [
        Path.cwd() / "cursive_rhythm_config.json",
        config_directory / "cursive_rhythm_config.json",
        config_directory / "config.json",
    ]


def _resolve_config_path() -> Path:
    explicit_path_text = os.environ.get("CURSIVE_RHYTHM_CONFIG_PATH", "").strip()
    if explicit_path_text:
        return Path(explicit_path_text)

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path

    candidates_text = "\n".join("  - " + str(path) for path in _default_config_candidates())
    raise FileNotFoundError(
        "No cursive rhythm config file found. Create cursive_rhythm_config.json in one of these locations:\n"
        + candidates_text
    )


def _read_json_file_utf8(config_path: Path) -> Dict[str, Any]:
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except OSError as exception:
        raise OSError(f"Failed to read config file: {config_path}. Error: {exception}") from exception

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file is not valid JSON: {config_path}. Error: {exception}") from exception

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file root must be a JSON object: {config_path}")

    return parsed


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Environment overrides are optional. The config file is the primary source of truth.

    Override variables:
    - CURSIVE_RHYTHM_GAP_THRESHOLD_MS
    - CURSIVE_RHYTHM_DRAIN_RATE
    - CURSIVE_RHYTHM_HEAL_RATE
    - CURSIVE_RHYTHM_LOOKAHEAD_MS
    - CURSIVE_RHYTHM_EXERCISES_DIR
    """
    updated_config = dict(config_dict)

    rhythm_section = updated_config.get("rhythm")
    if isinstance(rhythm_section, dict):
        rhythm_section = dict(rhythm_section)
    else:
        rhythm_section = {}
    updated_config["rhythm"] = rhythm_section

    def override_int(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = int(value_text)
        except ValueError:
            return

    def override_float(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = float(value_text)
        except ValueError:
            return

    def override_string(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "")
        if value_text.strip():
            target_dict[key_name] = value_text.strip()

    override_float("CURSIVE_RHYTHM_GAP_THRESHOLD_MS", rhythm_section, "gap_threshold_ms")
    override_int("CURSIVE_RHYTHM_DRAIN_RATE", rhythm_section, "drain_rate")
    override_int("CURSIVE_RHYTHM_HEAL_RATE", rhythm_section, "heal_rate")
    override_float("CURSIVE_RHYTHM_LOOKAHEAD_MS", rhythm_section, "lookahead_ms")

    override_string("CURSIVE_RHYTHM_EXERCISES_DIR", updated_config, "exercises_dir")

    return updated_config


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Path]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    json_dict = _read_json_file_utf8(resolved_path)
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AppConfig.model_validate(json_dict)
    except ValidationError as exception:
        raise ValueError(f"Config validation failed for {resolved_path}:\n{exception}") from exception

    return config, resolved_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[AppConfig, Path]:
    return load_config()


def rhythm_config_from_dict(payload: Optional[Dict[str, Any]]) -> RhythmConfig:
    """Build a RhythmConfig from a partial dict, keeping defaults for missing keys."""
    try:
        return RhythmConfig.model_validate(dict(payload or {}))
    except ValidationError as exception:
        raise ValueError(f"Rhythm config validation failed:\n{exception}") from exception


def to_json(config: AppConfig) -> str:
    return json.dumps(config.model_dump(), ensure_ascii=False, indent=2)


def _run_unit_tests() -> None:
    defaults = RhythmConfig()
    assert defaults.timing_windows.perfect == 150.0
    assert defaults.pressure.hard_threshold == 0.50
    assert defaults.drain_rate == 5 and defaults.heal_rate == 2

    camel = rhythm_config_from_dict({"timingWindows": {"perfect": 100, "great": 200, "good": 400}, "drainRate": 10})
    assert camel.timing_windows.great == 200.0
    assert camel.drain_rate == 10

    try:
        rhythm_config_from_dict({"timing_windows": {"perfect": 400, "great": 300, "good": 500}})
    except ValueError:
        pass
    else:
        raise AssertionError("Expected ValueError for descending timing windows")


def main() -> int:
    try:
        config, resolved_path = load_config()
    except Exception as exception:
        error_payload = {"ok": False, "error": str(exception)}
        print(json.dumps(error_payload, ensure_ascii=False, indent=2))
        return 2

    output_payload = {
        "ok": True,
        "config_path": str(resolved_path),
        "config": json.loads(to_json(config)),
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

# -*- coding: utf-8 -*-
########################
# stroke_models.py
########################
# Purpose:
# - Core data models for the handwriting rhythm pipeline.
# - Defines captured stroke samples, beat segments, judgements and result payloads.
#
# Design notes:
# - Keep these models stable. Prefer extending with new optional fields rather than breaking changes.
# - Plain dataclasses and enums. No I/O.
# - BeatSegment.judged is the only field mutated after creation (by RhythmEngine).
#
########################
# Interfaces:
# Public enums:
# - class Judgement(enum.Enum): PERFECT | GREAT | GOOD | MISS
# - class Rank(enum.Enum): S | A | B | C | F
# - class PressureZone(enum.Enum): TOO_LIGHT | GENTLE | WARNING | TOO_HARD
#
# Public dataclasses:
# - StrokePoint(x: float, y: float, time: float, pressure: float)
# - Point(x: float, y: float)
# - BeatSegment(id: int, start_time: float, end_time: float, points: list[StrokePoint], start_point: Point, judged: bool)
# - HitResult(judgement: Judgement, score: int, combo: int, timing_error: float, pressure_bonus: float)
# - SessionSummary(...)
#   - to_payload() -> dict
#
# Inputs/Outputs:
# - These types are exchanged between stroke_segmenter, RhythmEngine, exercise_store and practice_harness.
# - Times are milliseconds. Pressure is normalized 0.0 - 1.0.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import enum
from typing import Any, Dict, List, Optional


MISS_TIMING_ERROR_MS = 999


class Judgement(enum.Enum):
    PERFECT = "perfect"
    GREAT = "great"
    GOOD = "good"
    MISS = "miss"


class Rank(enum.Enum):
    S = "S"
    A = "A"
    B = "B"
    C = "C"
    F = "F"


class PressureZone(enum.Enum):
    TOO_LIGHT = "too_light"
    GENTLE = "gentle"
    WARNING = "warning"
    TOO_HARD = "too_hard"


@dataclass(frozen=True)
class StrokePoint:
    x: float
    y: float
    time: float
    pressure: float = 0.0


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass
class BeatSegment:
    id: int
    start_time: float
    end_time: float
    points: List[StrokePoint]
    start_point: Point
    judged: bool = False

    @property
    def duration(self) -> float:
        return float(self.end_time) - float(self.start_time)


@dataclass(frozen=True)
class HitResult:
    judgement: Judgement
    score: int
    combo: int
    timing_error: float
    pressure_bonus: float

    @property
    def is_miss(self) -> bool:
        return self.judgement is Judgement.MISS


@dataclass(frozen=True)
class SessionSummary:
    score: int
    max_combo: int
    perfect_count: int
    great_count: int
    good_count: int
    miss_count: int
    rank: Rank
    gentle_percent: float
    coins_earned: int
    accuracy: Optional[float]
    max_gentle_streak: int
    life: int

    def to_payload(self) -> Dict[str, Any]:
        """Result record handed to the reward persistence side."""
        return {
            "score": int(self.score),
            "perfectCount": int(self.perfect_count),
            "greatCount": int(self.great_count),
            "goodCount": int(self.good_count),
            "missCount": int(self.miss_count),
            "maxCombo": int(self.max_combo),
            "totalScore": int(self.score),
            "rank": self.rank.value,
            "gentlePercent": float(self.gentle_percent),
            "coinsEarned": int(self.coins_earned),
        }


def _run_unit_tests() -> None:
    segment = BeatSegment(
        id=0,
        start_time=100.0,
        end_time=250.0,
        points=[StrokePoint(x=1.0, y=2.0, time=100.0, pressure=0.2)],
        start_point=Point(x=1.0, y=2.0),
    )
    assert segment.judged is False
    assert segment.duration == 150.0

    result = HitResult(judgement=Judgement.MISS, score=0, combo=0, timing_error=MISS_TIMING_ERROR_MS, pressure_bonus=0.0)
    assert result.is_miss

    summary = SessionSummary(
        score=1200,
        max_combo=4,
        perfect_count=4,
        great_count=0,
        good_count=0,
        miss_count=0,
        rank=Rank.S,
        gentle_percent=1.0,
        coins_earned=8,
        accuracy=1.0,
        max_gentle_streak=4,
        life=100,
    )
    payload = summary.to_payload()
    assert payload["rank"] == "S"
    assert payload["totalScore"] == payload["score"] == 1200


if __name__ == "__main__":
    _run_unit_tests()
    print("stroke_models.py: ok")

# sample_strokes.py
from __future__ import annotations

from dataclasses import dataclass
import math
from typing import List

from exercise_store import normalize_difficulty
from stroke_models import StrokePoint


@dataclass(frozen=True)
class SampleStrokes:
    difficulty: str
    points: List[StrokePoint]
    stroke_count: int
    duration_ms: float


def build_sample_strokes(*, difficulty: str) -> SampleStrokes:
    normalized_difficulty = normalize_difficulty(difficulty or "easy")

    if normalized_difficulty == "hard":
        pen_lift_ms = 420.0
        total_strokes = 12
    elif normalized_difficulty == "medium":
        pen_lift_ms = 650.0
        total_strokes = 8
    else:
        pen_lift_ms = 900.0
        total_strokes = 5

    lead_in_ms = 2000.0
    sample_interval_ms = 20.0
    samples_per_stroke = 15

    # Deterministic loop-and-tail shapes, shifted right per stroke like letters on a line.
    points: List[StrokePoint] = []
    current_time_ms = lead_in_ms

    for stroke_index in range(total_strokes):
        origin_x = 120.0 + stroke_index * 70.0
        origin_y = 400.0
        for sample_index in range(samples_per_stroke):
            angle = math.pi * 2.0 * sample_index / (samples_per_stroke - 1)
            points.append(
                StrokePoint(
                    x=round(origin_x + 25.0 * math.sin(angle) + sample_index * 2.0, 3),
                    y=round(origin_y - 30.0 * (1.0 - math.cos(angle)) / 2.0, 3),
                    time=current_time_ms,
                    pressure=0.2 + 0.05 * (sample_index % 3) / 2.0,
                )
            )
            current_time_ms += sample_interval_ms

        current_time_ms += pen_lift_ms

    duration_ms = points[-1].time - points[0].time if points else 0.0
    return SampleStrokes(
        difficulty=normalized_difficulty,
        points=points,
        stroke_count=total_strokes,
        duration_ms=duration_ms,
    )

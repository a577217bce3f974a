# -*- coding: utf-8 -*-
########################
# stroke_segmenter.py
########################
# Purpose:
# - Split a raw, time ordered stream of pen samples into beat segments at pen lifts.
# - Provide the queries the practice view needs on top of the segment list:
#   approach lookahead and guide position along the reference path.
#
# Design notes:
# - Pure functions. The caller (RhythmEngine) owns the resulting segment list.
# - Input order is the capture layer's guarantee. Nothing here sorts.
# - Gap rule: consecutive points with time difference <= threshold stay in one segment.
#
########################
# Interfaces:
# Public constants:
# - DEFAULT_GAP_THRESHOLD_MS = 300.0
# - DEFAULT_LOOKAHEAD_MS = 1500.0
#
# Public dataclasses:
# - ApproachingSegment(segment: BeatSegment, time_until_start: float, progress: float)
#
# Public functions:
# - parse_stroke_data(points: Sequence[StrokePoint], gap_threshold_ms: float = 300.0) -> list[BeatSegment]
# - segments_in_lookahead(segments, *, current_time: float, lookahead_ms: float) -> list[ApproachingSegment]
# - guide_position(points: Sequence[StrokePoint], current_time: float) -> Optional[Point]
#
# Inputs:
# - StrokePoint sequences from the capture layer or exercise_store.
#
# Outputs:
# - BeatSegment lists consumed by RhythmEngine.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from stroke_models import BeatSegment, Point, StrokePoint


DEFAULT_GAP_THRESHOLD_MS = 300.0
DEFAULT_LOOKAHEAD_MS = 1500.0


@dataclass(frozen=True)
class ApproachingSegment:
    segment: BeatSegment
    time_until_start: float
    progress: float


def _close_segment(segment_id: int, current_points: List[StrokePoint]) -> BeatSegment:
    first_point = current_points[0]
    last_point = current_points[-1]
    return BeatSegment(
        id=int(segment_id),
        start_time=float(first_point.time),
        end_time=float(last_point.time),
        points=list(current_points),
        start_point=Point(x=float(first_point.x), y=float(first_point.y)),
    )


def parse_stroke_data(
    points: Sequence[StrokePoint],
    gap_threshold_ms: float = DEFAULT_GAP_THRESHOLD_MS,
) -> List[BeatSegment]:
    if not points:
        return []

    threshold = float(gap_threshold_ms)
    segments: List[BeatSegment] = []
    current_points: List[StrokePoint] = [points[0]]

    for index in range(1, len(points)):
        time_diff = float(points[index].time) - float(points[index - 1].time)
        if time_diff > threshold:
            segments.append(_close_segment(len(segments), current_points))
            current_points = [points[index]]
        else:
            current_points.append(points[index])

    # Trailing segment is always flushed.
    segments.append(_close_segment(len(segments), current_points))
    return segments


def segments_in_lookahead(
    segments: Sequence[BeatSegment],
    *,
    current_time: float,
    lookahead_ms: float = DEFAULT_LOOKAHEAD_MS,
) -> List[ApproachingSegment]:
    window = float(lookahead_ms)
    if window <= 0.0:
        return []

    approaching: List[ApproachingSegment] = []
    for segment in segments:
        if segment.judged:
            continue
        time_until_start = float(segment.start_time) - float(current_time)
        if 0.0 < time_until_start < window:
            approaching.append(
                ApproachingSegment(
                    segment=segment,
                    time_until_start=time_until_start,
                    progress=time_until_start / window,
                )
            )
    return approaching


def guide_position(points: Sequence[StrokePoint], current_time: float) -> Optional[Point]:
    target = float(current_time)
    for index in range(len(points) - 1):
        start_point = points[index]
        end_point = points[index + 1]
        start_time = float(start_point.time)
        end_time = float(end_point.time)
        if not (start_time <= target <= end_time):
            continue

        span = end_time - start_time
        if span <= 0.0:
            return Point(x=float(start_point.x), y=float(start_point.y))

        ratio = (target - start_time) / span
        return Point(
            x=float(start_point.x) + (float(end_point.x) - float(start_point.x)) * ratio,
            y=float(start_point.y) + (float(end_point.y) - float(start_point.y)) * ratio,
        )
    return None


def _run_unit_tests() -> None:
    assert parse_stroke_data([]) == []

    single = parse_stroke_data([StrokePoint(x=0.0, y=0.0, time=0.0)])
    assert len(single) == 1
    assert len(single[0].points) == 1

    points = [
        StrokePoint(x=0.0, y=0.0, time=0.0, pressure=0.2),
        StrokePoint(x=1.0, y=0.0, time=50.0, pressure=0.2),
        StrokePoint(x=5.0, y=5.0, time=500.0, pressure=0.2),
    ]
    segments = parse_stroke_data(points, gap_threshold_ms=300.0)
    assert [len(segment.points) for segment in segments] == [2, 1]
    assert [segment.id for segment in segments] == [0, 1]
    assert segments[1].start_point == Point(x=5.0, y=5.0)

    approaching = segments_in_lookahead(segments, current_time=0.0, lookahead_ms=1500.0)
    assert [item.segment.id for item in approaching] == [1]
    assert abs(approaching[0].progress - (500.0 / 1500.0)) < 1e-9

    middle = guide_position(points, 25.0)
    assert middle is not None
    assert abs(middle.x - 0.5) < 1e-9
    assert guide_position(points, 900.0) is None


if __name__ == "__main__":
    _run_unit_tests()
    print("stroke_segmenter.py: ok")

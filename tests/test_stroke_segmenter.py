"""Tests for stroke_segmenter: pen lift segmentation, lookahead and guide position."""

from __future__ import annotations

import random

import pytest

from stroke_models import Point, StrokePoint
from stroke_segmenter import (
    DEFAULT_GAP_THRESHOLD_MS,
    guide_position,
    parse_stroke_data,
    segments_in_lookahead,
)


def _points_at(*times: float) -> list:
    return [StrokePoint(x=float(index), y=float(index) * 2.0, time=float(t), pressure=0.2) for index, t in enumerate(times)]


def test_empty_input_yields_no_segments():
    assert parse_stroke_data([]) == []


def test_single_point_is_one_segment():
    segments = parse_stroke_data(_points_at(42.0))
    assert len(segments) == 1
    assert segments[0].start_time == segments[0].end_time == 42.0
    assert segments[0].judged is False


def test_small_gaps_keep_one_segment():
    points = _points_at(0.0, 50.0, 100.0)
    segments = parse_stroke_data(points, gap_threshold_ms=300.0)
    assert len(segments) == 1
    assert segments[0].points == points


def test_gap_above_threshold_splits():
    points = _points_at(0.0, 50.0, 500.0)
    segments = parse_stroke_data(points, gap_threshold_ms=300.0)
    assert [[p.time for p in s.points] for s in segments] == [[0.0, 50.0], [500.0]]
    assert segments[0].start_time == 0.0
    assert segments[0].end_time == 50.0
    assert segments[1].start_point == Point(x=2.0, y=4.0)


def test_gap_equal_to_threshold_does_not_split():
    segments = parse_stroke_data(_points_at(0.0, 300.0, 600.0), gap_threshold_ms=300.0)
    assert len(segments) == 1


def test_default_threshold_is_300ms():
    assert DEFAULT_GAP_THRESHOLD_MS == 300.0
    assert len(parse_stroke_data(_points_at(0.0, 301.0))) == 2


def test_ids_are_sequential_from_zero():
    segments = parse_stroke_data(_points_at(0.0, 1000.0, 2000.0, 3000.0))
    assert [segment.id for segment in segments] == [0, 1, 2, 3]


def test_parse_is_idempotent():
    points = _points_at(0.0, 10.0, 900.0, 905.0)
    first = parse_stroke_data(points)
    second = parse_stroke_data(points)
    assert first == second
    assert first is not second


@pytest.mark.parametrize("seed", [1, 7, 42, 1234])
def test_segmentation_preserves_points_and_counts_gaps(seed):
    rng = random.Random(seed)
    threshold = 300.0
    time_ms = 0.0
    points = []
    for index in range(rng.randint(1, 80)):
        points.append(StrokePoint(x=float(index), y=0.0, time=time_ms, pressure=rng.random()))
        time_ms += rng.choice([5.0, 20.0, 299.0, 300.0, 301.0, 800.0])

    segments = parse_stroke_data(points, gap_threshold_ms=threshold)

    flattened = [point for segment in segments for point in segment.points]
    assert flattened == points
    gaps = sum(1 for a, b in zip(points, points[1:]) if b.time - a.time > threshold)
    assert len(segments) == 1 + gaps
    assert all(segment.points for segment in segments)


def test_lookahead_reports_only_upcoming_unjudged_segments():
    segments = parse_stroke_data(_points_at(0.0, 1000.0, 2000.0, 5000.0))
    segments[2].judged = True

    approaching = segments_in_lookahead(segments, current_time=500.0, lookahead_ms=1500.0)

    # 0 has started, 2 is judged, 3 is too far away.
    assert [item.segment.id for item in approaching] == [1]
    assert approaching[0].time_until_start == 500.0
    assert approaching[0].progress == pytest.approx(500.0 / 1500.0)


def test_lookahead_excludes_segment_due_exactly_now():
    segments = parse_stroke_data(_points_at(1000.0))
    assert segments_in_lookahead(segments, current_time=1000.0, lookahead_ms=1500.0) == []


def test_guide_position_interpolates_between_samples():
    points = [
        StrokePoint(x=0.0, y=0.0, time=0.0),
        StrokePoint(x=10.0, y=20.0, time=100.0),
        StrokePoint(x=20.0, y=20.0, time=200.0),
    ]
    assert guide_position(points, 50.0) == Point(x=5.0, y=10.0)
    assert guide_position(points, 150.0) == Point(x=15.0, y=20.0)
    assert guide_position(points, 0.0) == Point(x=0.0, y=0.0)


def test_guide_position_outside_range_or_too_few_points():
    points = [StrokePoint(x=0.0, y=0.0, time=100.0), StrokePoint(x=1.0, y=1.0, time=200.0)]
    assert guide_position(points, 50.0) is None
    assert guide_position(points, 250.0) is None
    assert guide_position(points[:1], 100.0) is None


def test_guide_position_zero_length_pair_returns_earlier_point():
    points = [StrokePoint(x=3.0, y=4.0, time=100.0), StrokePoint(x=9.0, y=9.0, time=100.0)]
    assert guide_position(points, 100.0) == Point(x=3.0, y=4.0)

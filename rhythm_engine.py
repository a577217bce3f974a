# -*- coding: utf-8 -*-
########################
# rhythm_engine.py
########################
# Purpose:
# - Judgement and scoring engine for handwriting rhythm practice.
# - Judges one attempted stroke at a time against the active beat segment.
# - Tracks score, combo, life, per-judgement counts and the gentle pressure streak.
# - Derives rank and coin reward at the end of a session.
#
# Design notes:
# - Pure gameplay logic. Single threaded, no I/O. Callers serialize judge() calls.
# - EngineState is owned by one RhythmEngine instance and only mutated by its methods.
# - judge() never raises. An absent or already judged segment yields a miss shaped result
#   without touching any counter.
# - Every miss path reports timing_error = MISS_TIMING_ERROR_MS (999), even when a real
#   timing error was computed before a hard press forced the miss.
#
########################
# Interfaces:
# Public dataclasses:
# - EngineState(
#     active_segment_index: int, combo: int, max_combo: int, score: int, life: int,
#     perfect_count: int, great_count: int, good_count: int, miss_count: int,
#     gentle_streak: int, max_gentle_streak: int, total_pressure_samples: int, gentle_pressure_samples: int,
#   )
#   - total_hits() -> int
#
# Public functions:
# - classify_timing(timing_error: float, windows: TimingWindowsConfig) -> Judgement
# - classify_pressure(pressure: float, pressure_config: PressureConfig) -> PressureZone
# - score_delta(judgement: Judgement, *, combo: int, pressure_bonus: float) -> int
# - rank_for_accuracy(accuracy: Optional[float]) -> Rank
#
# Public classes:
# - class RhythmEngine
#   - __init__(config: Optional[RhythmConfig] = None)
#   - config() -> RhythmConfig
#   - state() -> EngineState
#   - segments() -> list[BeatSegment]
#   - active_segment() -> Optional[BeatSegment]
#   - has_remaining_segments() -> bool
#   - parse_stroke_data(points, gap_threshold_ms: Optional[float] = None) -> list[BeatSegment]
#   - judge(input_time: float, input_pos: Optional[Point], avg_pressure: float) -> HitResult
#   - classify_pressure(pressure: float) -> PressureZone
#   - approaching_segments(current_time: float) -> list[ApproachingSegment]
#   - accuracy() -> Optional[float]
#   - gentle_percent() -> float
#   - get_rank() -> Rank
#   - calculate_coin_reward() -> int
#   - session_summary() -> SessionSummary
#   - reset() -> None
#
# Inputs:
# - StrokePoint sequences (capture layer or exercise_store).
# - Per attempt: input_time (ms), input_pos (ignored by scoring), avg_pressure (0.0 - 1.0).
#
# Outputs:
# - HitResult per judge() call, SessionSummary at session end.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import List, Optional, Sequence

import stroke_segmenter
from practice_config import PressureConfig, RhythmConfig, TimingWindowsConfig
from stroke_models import (
    MISS_TIMING_ERROR_MS,
    BeatSegment,
    HitResult,
    Judgement,
    Point,
    PressureZone,
    Rank,
    SessionSummary,
    StrokePoint,
)


logger = logging.getLogger(__name__)


MAX_LIFE = 100
MIN_LIFE = 0

_BASE_SCORES = {
    Judgement.PERFECT: 300,
    Judgement.GREAT: 100,
    Judgement.GOOD: 50,
}

PRESSURE_BONUS_WEIGHT = 0.3
COMBO_STEP = 10
COMBO_MULTIPLIER_CAP = 4.0

# (minimum accuracy, rank, base coins), checked top down.
_RANK_BANDS = (
    (0.95, Rank.S, 5),
    (0.85, Rank.A, 3),
    (0.70, Rank.B, 2),
    (0.50, Rank.C, 1),
)

GENTLE_BONUS_THRESHOLD = 0.80

# (minimum base coins, gentle bonus), checked top down.
_GENTLE_BONUS_BANDS = (
    (5, 3),
    (3, 2),
    (1, 1),
)


@dataclass
class EngineState:
    active_segment_index: int = 0
    combo: int = 0
    max_combo: int = 0
    score: int = 0
    life: int = MAX_LIFE
    perfect_count: int = 0
    great_count: int = 0
    good_count: int = 0
    miss_count: int = 0
    gentle_streak: int = 0
    max_gentle_streak: int = 0
    total_pressure_samples: int = 0
    gentle_pressure_samples: int = 0

    def total_hits(self) -> int:
        return self.perfect_count + self.great_count + self.good_count + self.miss_count


def classify_timing(timing_error: float, windows: TimingWindowsConfig) -> Judgement:
    abs_error = abs(float(timing_error))
    if abs_error <= float(windows.perfect):
        return Judgement.PERFECT
    if abs_error <= float(windows.great):
        return Judgement.GREAT
    if abs_error <= float(windows.good):
        return Judgement.GOOD
    return Judgement.MISS


def classify_pressure(pressure: float, pressure_config: PressureConfig) -> PressureZone:
    value = float(pressure)
    if value < float(pressure_config.min):
        return PressureZone.TOO_LIGHT
    if value <= float(pressure_config.max):
        return PressureZone.GENTLE
    if value <= float(pressure_config.hard_threshold):
        return PressureZone.WARNING
    return PressureZone.TOO_HARD


def score_delta(judgement: Judgement, *, combo: int, pressure_bonus: float) -> int:
    base_score = _BASE_SCORES.get(judgement)
    if base_score is None:
        return 0
    pressure_multiplier = 1 + float(pressure_bonus) * PRESSURE_BONUS_WEIGHT
    combo_multiplier = min(COMBO_MULTIPLIER_CAP, 1 + int(combo) / COMBO_STEP)
    # Round half up, so 84.5 scores 85.
    return int(math.floor(base_score * pressure_multiplier * combo_multiplier + 0.5))


def rank_for_accuracy(accuracy: Optional[float]) -> Rank:
    if accuracy is None:
        return Rank.F
    for minimum, rank, _coins in _RANK_BANDS:
        if accuracy >= minimum:
            return rank
    return Rank.F


def _base_coins_for_accuracy(accuracy: Optional[float]) -> int:
    if accuracy is None:
        return 0
    for minimum, _rank, coins in _RANK_BANDS:
        if accuracy >= minimum:
            return coins
    return 0


def _gentle_bonus(base_coins: int, gentle_percent: float) -> int:
    if gentle_percent < GENTLE_BONUS_THRESHOLD:
        return 0
    for minimum_coins, bonus in _GENTLE_BONUS_BANDS:
        if base_coins >= minimum_coins:
            return bonus
    return 0


class RhythmEngine:
    def __init__(self, config: Optional[RhythmConfig] = None) -> None:
        self._config = config if config is not None else RhythmConfig()
        self._state = EngineState()
        self._segments: List[BeatSegment] = []

    def config(self) -> RhythmConfig:
        return self._config

    def state(self) -> EngineState:
        return self._state

    def segments(self) -> List[BeatSegment]:
        return list(self._segments)

    def active_segment(self) -> Optional[BeatSegment]:
        index = int(self._state.active_segment_index)
        if 0 <= index < len(self._segments):
            return self._segments[index]
        return None

    def has_remaining_segments(self) -> bool:
        segment = self.active_segment()
        return segment is not None and not segment.judged

    def parse_stroke_data(
        self,
        points: Sequence[StrokePoint],
        gap_threshold_ms: Optional[float] = None,
    ) -> List[BeatSegment]:
        threshold = float(gap_threshold_ms) if gap_threshold_ms is not None else float(self._config.gap_threshold_ms)
        segments = stroke_segmenter.parse_stroke_data(points, gap_threshold_ms=threshold)
        self._segments = segments
        logger.debug("Parsed %d stroke points into %d beat segments (gap %.1f ms)", len(points), len(segments), threshold)
        return list(segments)

    def judge(self, input_time: float, input_pos: Optional[Point], avg_pressure: float) -> HitResult:
        # input_pos is accepted for future spatial checks and ignored by scoring.
        state = self._state
        segment = self.active_segment()
        if segment is None or segment.judged:
            logger.debug("judge() with no active segment at index %d; returning no-op miss", state.active_segment_index)
            return HitResult(
                judgement=Judgement.MISS,
                score=state.score,
                combo=state.combo,
                timing_error=MISS_TIMING_ERROR_MS,
                pressure_bonus=0.0,
            )

        timing_error = abs(float(input_time) - float(segment.start_time))
        judgement = classify_timing(timing_error, self._config.timing_windows)

        pressure_config = self._config.pressure
        pressure = float(avg_pressure)
        pressure_bonus = 0.0
        if pressure > float(pressure_config.hard_threshold):
            judgement = Judgement.MISS
        elif float(pressure_config.min) <= pressure <= float(pressure_config.max):
            pressure_bonus = 1.0
            state.gentle_streak += 1
            state.gentle_pressure_samples += 1
        else:
            state.gentle_streak = 0

        state.total_pressure_samples += 1
        state.max_gentle_streak = max(state.max_gentle_streak, state.gentle_streak)

        if judgement is Judgement.MISS:
            return self._handle_miss(segment, timing_error)

        state.combo += 1
        state.max_combo = max(state.max_combo, state.combo)
        state.life = min(MAX_LIFE, state.life + int(self._config.heal_rate))
        state.score += score_delta(judgement, combo=state.combo, pressure_bonus=pressure_bonus)

        if judgement is Judgement.PERFECT:
            state.perfect_count += 1
        elif judgement is Judgement.GREAT:
            state.great_count += 1
        else:
            state.good_count += 1

        segment.judged = True
        state.active_segment_index += 1

        logger.debug(
            "Segment %d judged %s (error %.1f ms, pressure %.2f): score=%d combo=%d",
            segment.id,
            judgement.value,
            timing_error,
            pressure,
            state.score,
            state.combo,
        )
        return HitResult(
            judgement=judgement,
            score=state.score,
            combo=state.combo,
            timing_error=timing_error,
            pressure_bonus=pressure_bonus,
        )

    def _handle_miss(self, segment: BeatSegment, timing_error: float) -> HitResult:
        state = self._state
        state.combo = 0
        state.gentle_streak = 0
        state.life = max(MIN_LIFE, state.life - int(self._config.drain_rate))
        state.miss_count += 1

        # A miss still consumes the beat.
        segment.judged = True
        state.active_segment_index += 1

        logger.debug("Segment %d judged miss (error %.1f ms): life=%d", segment.id, timing_error, state.life)
        return HitResult(
            judgement=Judgement.MISS,
            score=state.score,
            combo=0,
            timing_error=MISS_TIMING_ERROR_MS,
            pressure_bonus=0.0,
        )

    def classify_pressure(self, pressure: float) -> PressureZone:
        return classify_pressure(pressure, self._config.pressure)

    def approaching_segments(self, current_time: float) -> List[stroke_segmenter.ApproachingSegment]:
        return stroke_segmenter.segments_in_lookahead(
            self._segments,
            current_time=float(current_time),
            lookahead_ms=float(self._config.lookahead_ms),
        )

    def accuracy(self) -> Optional[float]:
        """Weighted accuracy in 0.0 - 1.0, or None before any judgement."""
        state = self._state
        total_hits = state.total_hits()
        if total_hits == 0:
            return None
        weighted = state.perfect_count * 100 + state.great_count * 50 + state.good_count * 20
        return weighted / (total_hits * 100)

    def gentle_percent(self) -> float:
        state = self._state
        if state.total_pressure_samples <= 0:
            return 0.0
        return state.gentle_pressure_samples / state.total_pressure_samples

    def get_rank(self) -> Rank:
        return rank_for_accuracy(self.accuracy())

    def calculate_coin_reward(self) -> int:
        accuracy = self.accuracy()
        if accuracy is None:
            return 0
        base_coins = _base_coins_for_accuracy(accuracy)
        return base_coins + _gentle_bonus(base_coins, self.gentle_percent())

    def session_summary(self) -> SessionSummary:
        state = self._state
        return SessionSummary(
            score=state.score,
            max_combo=state.max_combo,
            perfect_count=state.perfect_count,
            great_count=state.great_count,
            good_count=state.good_count,
            miss_count=state.miss_count,
            rank=self.get_rank(),
            gentle_percent=self.gentle_percent(),
            coins_earned=self.calculate_coin_reward(),
            accuracy=self.accuracy(),
            max_gentle_streak=state.max_gentle_streak,
            life=state.life,
        )

    def reset(self) -> None:
        """Start a fresh session over the same segments."""
        self._state = EngineState()
        for segment in self._segments:
            segment.judged = False


def _run_unit_tests() -> None:
    engine = RhythmEngine()
    assert engine.get_rank() is Rank.F
    assert engine.calculate_coin_reward() == 0

    engine.parse_stroke_data(
        [
            StrokePoint(x=0.0, y=0.0, time=1000.0, pressure=0.2),
            StrokePoint(x=1.0, y=1.0, time=1100.0, pressure=0.2),
            StrokePoint(x=5.0, y=5.0, time=2000.0, pressure=0.2),
            StrokePoint(x=9.0, y=9.0, time=3000.0, pressure=0.2),
        ]
    )
    assert len(engine.segments()) == 3

    hit = engine.judge(1149.0, None, 0.2)
    assert hit.judgement is Judgement.PERFECT
    assert hit.timing_error == 149.0
    assert hit.score == 429  # 300 * 1.3 * 1.1

    hard = engine.judge(2000.0, None, 0.6)
    assert hard.judgement is Judgement.MISS
    assert hard.timing_error == MISS_TIMING_ERROR_MS
    assert engine.state().combo == 0
    assert engine.state().max_combo == 1

    engine.judge(3000.0, None, 0.2)
    before = engine.state().score
    exhausted = engine.judge(4000.0, None, 0.2)
    assert exhausted.judgement is Judgement.MISS
    assert engine.state().score == before
    assert engine.state().total_hits() == 3


if __name__ == "__main__":
    _run_unit_tests()
    print("rhythm_engine.py: ok")

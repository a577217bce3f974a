# -*- coding: utf-8 -*-
########################
# practice_harness.py
########################
# Purpose:
# - Command line harness for local testing and tuning of the rhythm engine.
# - Integrates exercise_store + SessionClock + RhythmEngine and replays one attempt per beat segment.
#
# Design notes:
# - Uses SessionClock as the single source of truth for attempt times.
# - Attempts are simulated: the pen goes down when the audio reaches start_time + offset_ms, with a fixed
#   average pressure. SessionClock then adds av_offset_ms, so output latency shifts every judgement.
# - Each attempt reports the guide point (interpolated reference path) at the judged session time.
# - Output is one JSON document on stdout. Errors are reported as {"ok": false, "error": ...} with exit code 2.
#
########################
# Interfaces:
# Public dataclasses:
# - ReplaySettings(offset_ms: float, pressure: float, av_offset_ms: float)
# - ReplayAttempt(result: HitResult, session_time_ms: float, guide: Optional[Point])
#
# Public functions:
# - resolve_app_config(config_path: Optional[pathlib.Path]) -> AppConfig
# - replay_segments(engine: RhythmEngine, settings: ReplaySettings, clock: Optional[SessionClock] = None) -> list[ReplayAttempt]
# - run_session(points, *, config: RhythmConfig, settings: ReplaySettings) -> dict
# - build_argument_parser() -> argparse.ArgumentParser
# - main(argv: Optional[list[str]] = None) -> int
#
# Inputs:
# - --exercise PATH, or --exercise-id ID (looked up in the exercises directory), or --difficulty for sample strokes.
# - --offset-ms, --av-offset-ms, --pressure, --config, --log-level, --run-tests.
#
# Outputs:
# - JSON summary with the session result payload and per attempt judgements.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import exercise_store
import practice_config
import sample_strokes
import stroke_segmenter
from rhythm_engine import RhythmEngine
from session_clock import SessionClock
from stroke_models import HitResult, Point, StrokePoint


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplaySettings:
    offset_ms: float = 0.0
    pressure: float = 0.2
    av_offset_ms: float = 0.0


@dataclass(frozen=True)
class ReplayAttempt:
    result: HitResult
    session_time_ms: float
    guide: Optional[Point]


def resolve_app_config(config_path: Optional[Path]) -> practice_config.AppConfig:
    if config_path is not None:
        config, _resolved_path = practice_config.load_config(Path(config_path))
        return config
    try:
        config, resolved_path = practice_config.get_config()
    except FileNotFoundError:
        logger.info("No config file found; using built-in defaults")
        return practice_config.AppConfig()
    logger.info("Using config file %s", resolved_path)
    return config


def replay_segments(
    engine: RhythmEngine,
    settings: ReplaySettings,
    clock: Optional[SessionClock] = None,
) -> List[ReplayAttempt]:
    """Attempt every remaining beat once, in order.

    The simulated player puts the pen down when the audio reaches start_time + offset_ms.
    The clock then maps that playback position onto the engine timeline, so a non-zero
    AV offset shifts every judgement by that amount.
    """
    session_clock = clock if clock is not None else SessionClock(av_offset_ms=settings.av_offset_ms)
    reference_points = [point for segment in engine.segments() for point in segment.points]
    attempts: List[ReplayAttempt] = []
    while engine.has_remaining_segments():
        segment = engine.active_segment()
        if segment is None:
            break
        session_clock.seek((float(segment.start_time) + float(settings.offset_ms)) / 1000.0)
        attempt_time_ms = session_clock.session_time_ms()
        result = engine.judge(attempt_time_ms, segment.start_point, float(settings.pressure))
        attempts.append(
            ReplayAttempt(
                result=result,
                session_time_ms=attempt_time_ms,
                guide=stroke_segmenter.guide_position(reference_points, attempt_time_ms),
            )
        )
    return attempts


def _guide_payload(guide: Optional[Point]) -> Optional[Dict[str, float]]:
    if guide is None:
        return None
    return {"x": guide.x, "y": guide.y}


def run_session(
    points: Sequence[StrokePoint],
    *,
    config: practice_config.RhythmConfig,
    settings: ReplaySettings,
) -> Dict[str, Any]:
    engine = RhythmEngine(config)
    segments = engine.parse_stroke_data(points)
    attempts = replay_segments(engine, settings)
    summary = engine.session_summary()
    return {
        "segment_count": len(segments),
        "attempts": [
            {
                "session_time_ms": attempt.session_time_ms,
                "judgement": attempt.result.judgement.value,
                "score": attempt.result.score,
                "combo": attempt.result.combo,
                "timing_error": attempt.result.timing_error,
                "pressure_bonus": attempt.result.pressure_bonus,
                "guide": _guide_payload(attempt.guide),
            }
            for attempt in attempts
        ],
        "pressure_zone": engine.classify_pressure(settings.pressure).value,
        "accuracy": summary.accuracy,
        "max_gentle_streak": summary.max_gentle_streak,
        "life": summary.life,
        "result": summary.to_payload(),
    }


def _load_points(args: argparse.Namespace, app_config: practice_config.AppConfig) -> Dict[str, Any]:
    if args.exercise:
        exercise = exercise_store.load_exercise(Path(args.exercise))
        return {"source": str(exercise.source_path), "title": exercise.title, "points": exercise.points}

    if args.exercise_id:
        directory = Path(args.exercises_dir or app_config.exercises_dir or exercise_store.default_exercises_dir())
        exercise = exercise_store.find_exercise(args.exercise_id, directory=directory)
        return {"source": str(exercise.source_path), "title": exercise.title, "points": exercise.points}

    sample = sample_strokes.build_sample_strokes(difficulty=args.difficulty)
    return {"source": f"sample:{sample.difficulty}", "title": "", "points": sample.points}


def _run_chunk_tests() -> None:
    import rhythm_engine
    import session_clock
    import stroke_models

    stroke_models._run_unit_tests()
    stroke_segmenter._run_unit_tests()
    practice_config._run_unit_tests()
    rhythm_engine._run_unit_tests()
    session_clock._run_unit_tests()
    exercise_store._run_unit_tests()

    # Sample strokes split into one segment per stroke and replay deterministically.
    sample = sample_strokes.build_sample_strokes(difficulty="medium")
    report = run_session(sample.points, config=practice_config.RhythmConfig(), settings=ReplaySettings())
    assert report["segment_count"] == sample.stroke_count
    assert all(attempt["judgement"] == "perfect" for attempt in report["attempts"])
    assert report["result"]["rank"] == "S"

    heavy = run_session(
        sample.points,
        config=practice_config.RhythmConfig(),
        settings=ReplaySettings(offset_ms=0.0, pressure=0.9),
    )
    assert heavy["result"]["missCount"] == sample.stroke_count
    assert heavy["result"]["coinsEarned"] == 0

    # Output latency moves every attempt later on the engine timeline.
    delayed = run_session(
        sample.points,
        config=practice_config.RhythmConfig(),
        settings=ReplaySettings(av_offset_ms=200.0),
    )
    assert all(attempt["judgement"] == "great" for attempt in delayed["attempts"])


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Replay a cursive exercise through the rhythm engine.")
    parser.add_argument("--exercise", default="", help="Path to an exercise JSON file.")
    parser.add_argument("--exercise-id", default="", help="Exercise id to look up in the exercises directory.")
    parser.add_argument("--exercises-dir", default="", help="Overrides the configured exercises directory.")
    parser.add_argument(
        "--difficulty",
        default="easy",
        choices=["easy", "medium", "hard"],
        help="Sample stroke difficulty when no exercise is given.",
    )
    parser.add_argument("--offset-ms", type=float, default=0.0, help="Simulated timing error per attempt.")
    parser.add_argument(
        "--av-offset-ms",
        type=float,
        default=0.0,
        help="Audio output latency added to every attempt time.",
    )
    parser.add_argument("--pressure", type=float, default=0.2, help="Simulated average pressure per attempt.")
    parser.add_argument("--config", default="", help="Path to a config JSON file.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for the run.",
    )
    parser.add_argument(
        "--run-tests",
        action="store_true",
        help="Run pure logic tests.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_argument_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.run_tests:
        _run_chunk_tests()
        print("Chunk tests passed.")
        return 0

    try:
        app_config = resolve_app_config(Path(args.config) if args.config else None)
        loaded = _load_points(args, app_config)
        report = run_session(
            loaded["points"],
            config=app_config.rhythm,
            settings=ReplaySettings(
                offset_ms=float(args.offset_ms),
                pressure=float(args.pressure),
                av_offset_ms=float(args.av_offset_ms),
            ),
        )
    except (OSError, ValueError, exercise_store.ExerciseError) as exception:
        logger.error("Replay failed: %s", exception)
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 2

    output_payload = {
        "ok": True,
        "source": loaded["source"],
        "title": loaded["title"],
        "summary": report,
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

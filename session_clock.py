# -*- coding: utf-8 -*-
########################
# session_clock.py
########################
# Purpose:
# - Playback timeline for a practice session.
# - Tracks where the exercise audio is (seconds) and reports the engine time (milliseconds)
#   that an attempt made at that moment is judged at.
#
# Design notes:
# - The audio cannot play before its start: seek() clamps playback to >= 0.
# - The AV offset models output latency. A positive offset means the player hears the beat late,
#   so every attempt lands av_offset_ms later on the engine timeline.
# - Pure and deterministic. The caller moves the playhead (audio element, or a replay loop).
#
########################
# Interfaces:
# Public dataclasses:
# - ClockSnapshot(playback_seconds: float, session_time_ms: float)
#
# Public classes:
# - class SessionClock
#   - __init__(*, av_offset_ms: float = 0.0)
#   - seek(playback_seconds: float) -> None
#   - advance(delta_seconds: float) -> None
#   - playback_seconds() -> float
#   - av_offset_ms() -> float
#   - set_av_offset_ms(av_offset_ms: float) -> None
#   - session_time_ms() -> float
#   - snapshot() -> ClockSnapshot
#
# Inputs:
# - Playback position from the audio element (currentTime) or a simulated replay.
#
# Outputs:
# - session_time_ms passed to RhythmEngine.judge and RhythmEngine.approaching_segments.
#
########################

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ClockSnapshot:
    playback_seconds: float
    session_time_ms: float


class SessionClock:
    def __init__(self, *, av_offset_ms: float = 0.0) -> None:
        self._playhead_seconds = 0.0
        self._latency_ms = float(av_offset_ms)

    def seek(self, playback_seconds: float) -> None:
        self._playhead_seconds = max(0.0, float(playback_seconds))

    def advance(self, delta_seconds: float) -> None:
        # Frame step from the render loop. Playback never runs backwards.
        self._playhead_seconds += max(0.0, float(delta_seconds))

    def playback_seconds(self) -> float:
        return self._playhead_seconds

    def av_offset_ms(self) -> float:
        return self._latency_ms

    def set_av_offset_ms(self, av_offset_ms: float) -> None:
        self._latency_ms = float(av_offset_ms)

    def session_time_ms(self) -> float:
        return self._playhead_seconds * 1000.0 + self._latency_ms

    def snapshot(self) -> ClockSnapshot:
        return ClockSnapshot(
            playback_seconds=self._playhead_seconds,
            session_time_ms=self.session_time_ms(),
        )


def _run_unit_tests() -> None:
    clock = SessionClock(av_offset_ms=120.0)
    clock.seek(-2.0)
    assert clock.playback_seconds() == 0.0
    assert clock.session_time_ms() == 120.0

    clock.seek(1.0)
    clock.advance(0.5)
    clock.advance(-3.0)
    assert clock.playback_seconds() == 1.5
    assert clock.snapshot() == ClockSnapshot(playback_seconds=1.5, session_time_ms=1620.0)


if __name__ == "__main__":
    _run_unit_tests()
    print("session_clock.py: ok")

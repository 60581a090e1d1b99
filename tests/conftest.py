from __future__ import annotations

import random
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from koch_clock import ManualScheduler  # noqa: E402
from koch_player import MorsePlayer, PlayerConfig  # noqa: E402
from koch_trainer import MemoryLevelStore, Trainer, TrainerConfig  # noqa: E402


class RecordingToneSource:
    """Tone source that records (time_ms, duration_ms, frequency_hz) tuples."""

    def __init__(self, clock: ManualScheduler):
        self.clock = clock
        self.tones: list[tuple[float, float, float]] = []
        self.cancelled = 0

    def emit_tone(self, duration_ms: float, frequency_hz: float) -> None:
        self.tones.append((self.clock.now_ms, duration_ms, frequency_hz))

    def cancel_pending_emission(self) -> None:
        self.cancelled += 1


@pytest.fixture
def clock() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def tones(clock: ManualScheduler) -> RecordingToneSource:
    return RecordingToneSource(clock)


@pytest.fixture
def player(tones: RecordingToneSource, clock: ManualScheduler) -> MorsePlayer:
    return MorsePlayer(tones, clock, PlayerConfig(dot_ms=50, tone_hz=600.0, repeat_pause_ms=3000))


@pytest.fixture
def make_trainer(player: MorsePlayer, clock: ManualScheduler):
    def _make(level: int | None = None, **cfg) -> Trainer:
        store = MemoryLevelStore(level)
        return Trainer(player, clock, store, TrainerConfig(**cfg), rng=random.Random(1234))

    return _make

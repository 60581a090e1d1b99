"""Adaptive Koch-method round scheduling for KochTrainer.

The Trainer owns the mastery level, the active alphabet and the per-block
counters. It picks a target letter each round, keeps the player repeating it
until the learner answers, scores the answer and, every block, moves the
level up or down according to accuracy.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
import random
from typing import Callable, List, Mapping, Optional, Protocol, Tuple

from koch_clock import Scheduler, TimerHandle
from koch_player import MorsePlayer
from koch_utils import ALPHABET, DEFAULT_MISMATCH_PAUSE_MS, KOCH_ORDER, active_alphabet, clamp_level

logger = logging.getLogger(__name__)

DEFAULT_LEVEL = 1


class LevelStore(Protocol):
    """Persistence for the single mastery-level value."""

    def get_level(self) -> Optional[int]: ...
    def set_level(self, level: int) -> None: ...


class MemoryLevelStore:
    """LevelStore that keeps the level in memory only."""

    def __init__(self, level: Optional[int] = None):
        self.level = level
        self.writes: List[int] = []

    def get_level(self) -> Optional[int]:
        return self.level

    def set_level(self, level: int) -> None:
        self.level = level
        self.writes.append(level)


class KeyState(Enum):
    INACTIVE = 'inactive'
    ACTIVE = 'active'
    CORRECT = 'correct'
    INCORRECT = 'incorrect'


@dataclass
class TrainerConfig:
    """Lesson parameters.

    Accuracy at or above ``promote_threshold`` after a block adds a letter,
    accuracy at or below ``demote_threshold`` removes one.
    """
    rounds_per_block: int = 12
    promote_threshold: float = 0.9
    demote_threshold: float = 0.6
    recent_window: int = 6
    mismatch_pause_ms: float = DEFAULT_MISMATCH_PAUSE_MS
    koch_order: Tuple[str, ...] = KOCH_ORDER
    alphabet: Mapping[str, str] = field(default_factory=lambda: ALPHABET)

    def __post_init__(self):
        self.koch_order = tuple(c.upper() for c in self.koch_order)
        if self.rounds_per_block < 1:
            raise ValueError("rounds_per_block must be at least 1")
        if not 0.0 <= self.demote_threshold < self.promote_threshold <= 1.0:
            raise ValueError("thresholds must satisfy 0 <= demote < promote <= 1")
        if self.recent_window < 1:
            raise ValueError("recent_window must be at least 1")
        if self.mismatch_pause_ms < 0:
            raise ValueError("mismatch_pause_ms must not be negative")
        if len(self.koch_order) < 2:
            raise ValueError("koch_order needs at least two characters")
        if len(set(self.koch_order)) != len(self.koch_order):
            raise ValueError("koch_order has repeated characters")
        missing = [c for c in self.koch_order if c.lower() not in self.alphabet]
        if missing:
            raise ValueError(f"Characters without Morse code: {missing}")

    @property
    def max_level(self) -> int:
        return len(self.koch_order) - 1


@dataclass(frozen=True)
class TrainerSnapshot:
    """Read-only view of trainer state for renderers."""
    level: int
    active_alphabet: Tuple[str, ...]
    rounds_played: int
    correct_count: int
    rounds_per_block: int
    round_active: bool
    wrong_letter: Optional[str] = None
    expected_letter: Optional[str] = None

    def key_state(self, char: str) -> KeyState:
        char = char.upper()
        if char == self.wrong_letter:
            return KeyState.INCORRECT
        if char == self.expected_letter:
            return KeyState.CORRECT
        if char in self.active_alphabet:
            return KeyState.ACTIVE
        return KeyState.INACTIVE

    @property
    def round_number(self) -> int:
        """1-based number of the round in progress within the block."""
        return self.rounds_played + (1 if self.round_active else 0)

    @property
    def tally(self) -> str:
        return f"{self.correct_count} / {self.round_number} / {self.rounds_per_block}"


class Trainer:
    """Koch-method lesson state machine.

    States: idle (not started or stopped), round active (target playing,
    waiting for an answer) and scored (answer taken, next round pending).
    Deferred work carries the round generation and is dropped when stale.
    """
    def __init__(self, player: MorsePlayer, scheduler: Scheduler, store: LevelStore,
                 cfg: Optional[TrainerConfig] = None, rng: Optional[random.Random] = None,
                 on_change: Optional[Callable[[TrainerSnapshot], None]] = None):
        self.player = player
        self.scheduler = scheduler
        self.store = store
        self.cfg = cfg or TrainerConfig()
        unplayable = [c for c in self.cfg.koch_order if player.codec.code_for(c) is None]
        if unplayable:
            raise ValueError(f"Player cannot encode: {unplayable}")
        self.rng = rng or random.Random()
        self._listeners: List[Callable[[TrainerSnapshot], None]] = []
        if on_change is not None:
            self._listeners.append(on_change)

        stored = store.get_level()
        self.level = clamp_level(DEFAULT_LEVEL if stored is None else stored, self.cfg.koch_order)
        self.active_alphabet = active_alphabet(self.level, self.cfg.koch_order)
        self.rounds_played = 0
        self.correct_count = 0

        self.target: Optional[str] = None
        self.answered = False
        self.running = False
        self.wrong_letter: Optional[str] = None
        self.expected_letter: Optional[str] = None
        self._generation = 0
        self._pending: Optional[TimerHandle] = None

    # ---- public API ----
    def add_listener(self, callback: Callable[[TrainerSnapshot], None]) -> None:
        self._listeners.append(callback)

    @property
    def round_active(self) -> bool:
        return self.running and self.target is not None and not self.answered

    def start(self) -> None:
        """Begin drilling. Has no effect if already running."""
        if self.running:
            return
        self.running = True
        logger.info("Training started at level %d (%s)", self.level, ''.join(self.active_alphabet))
        self._start_round()

    def stop(self) -> None:
        """Return to idle, silencing playback and dropping pending rounds."""
        self.running = False
        self._invalidate()
        self.player.stop()
        self.target = None
        self.answered = False
        self._notify()

    def replay(self) -> None:
        """Play the current target again from the start."""
        if self.round_active:
            self.player.play_text(self.target)

    def answer(self, char: str) -> bool:
        """Score the learner's answer for the current round.

        Returns:
            False if the answer was ignored (no round active, or the letter is
            not in the active alphabet), True if it was scored.
        """
        if not char or not self.round_active:
            return False
        char = char.upper()
        if char not in self.active_alphabet:
            return False

        self.player.stop()
        self.answered = True
        self.rounds_played += 1
        correct = char == self.target
        logger.debug("Round %d: target %r answered %r", self.rounds_played, self.target, char)
        if correct:
            self.correct_count += 1
        else:
            self.wrong_letter = char
            self.expected_letter = self.target

        if self.rounds_played >= self.cfg.rounds_per_block:
            self._evaluate_block()

        if correct:
            self._start_round()
        else:
            generation = self._generation
            self._pending = self.scheduler.call_later(
                self.cfg.mismatch_pause_ms, lambda: self._resume(generation))
            self._notify()
        return True

    def set_level(self, level: int) -> None:
        """Jump to ``level`` (clamped), discarding the current block."""
        level = clamp_level(level, self.cfg.koch_order)
        changed = level != self.level
        self._apply_level(level)
        self.rounds_played = 0
        self.correct_count = 0
        if changed:
            self.store.set_level(self.level)
        if self.running:
            self._start_round()
        else:
            self._notify()

    def snapshot(self) -> TrainerSnapshot:
        return TrainerSnapshot(
            level=self.level,
            active_alphabet=self.active_alphabet,
            rounds_played=self.rounds_played,
            correct_count=self.correct_count,
            rounds_per_block=self.cfg.rounds_per_block,
            round_active=self.round_active,
            wrong_letter=self.wrong_letter,
            expected_letter=self.expected_letter,
        )

    # ---- internals ----
    def _invalidate(self) -> None:
        self._generation += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _resume(self, generation: int) -> None:
        if generation != self._generation or not self.running:
            return
        self._pending = None
        self._start_round()

    def pick_letter(self) -> str:
        """Choose the next target from the active alphabet.

        The first round of a block always uses the newest letter; later rounds
        draw uniformly from the most recently introduced letters.
        """
        if self.rounds_played == 0:
            return self.active_alphabet[-1]
        window = self.active_alphabet[-min(len(self.active_alphabet), self.cfg.recent_window):]
        return self.rng.choice(window)

    def _start_round(self) -> None:
        self._invalidate()
        self.target = self.pick_letter()
        self.answered = False
        self.wrong_letter = None
        self.expected_letter = None
        self.player.play_text(self.target)
        self._notify()

    def _evaluate_block(self) -> None:
        accuracy = self.correct_count / self.cfg.rounds_per_block
        level = self.level
        if accuracy >= self.cfg.promote_threshold:
            level = min(self.level + 1, self.cfg.max_level)
        elif accuracy <= self.cfg.demote_threshold:
            level = max(self.level - 1, 1)
        logger.info("Block finished: %d/%d correct (%.0f%%)",
                    self.correct_count, self.cfg.rounds_per_block, accuracy * 100)
        self.rounds_played = 0
        self.correct_count = 0
        if level != self.level:
            logger.info("Level %d -> %d", self.level, level)
            self._apply_level(level)
            self.store.set_level(self.level)

    def _apply_level(self, level: int) -> None:
        self.level = level
        self.active_alphabet = active_alphabet(level, self.cfg.koch_order)

    def _notify(self) -> None:
        snap = self.snapshot()
        for callback in self._listeners:
            callback(snap)

"""Playback scheduling for KochTrainer.

MorsePlayer turns one character into a chain of tone and silence units
driven by a Scheduler, repeats the chain until stopped, and drops any
continuation that belongs to a superseded chain.
"""
from dataclasses import dataclass
import logging
from typing import Callable, List, Optional, Tuple

from koch_clock import Scheduler, TimerHandle
from koch_codec import MorseCodec, UnknownSymbolError
from koch_synth import ToneSource
from koch_utils import DEFAULT_DOT_MS, DEFAULT_REPEAT_PAUSE_MS, DEFAULT_TONE_HZ

logger = logging.getLogger(__name__)


@dataclass
class PlayerConfig:
    """Timing and pitch of playback.

    ``dot_ms`` is one time unit; a dash is three.
    """
    dot_ms: float = DEFAULT_DOT_MS
    tone_hz: float = DEFAULT_TONE_HZ
    repeat_pause_ms: float = DEFAULT_REPEAT_PAUSE_MS
    repeat: bool = True

    def __post_init__(self):
        if self.dot_ms <= 0:
            raise ValueError("dot_ms must be positive")
        if self.tone_hz <= 0:
            raise ValueError("tone_hz must be positive")
        if self.repeat_pause_ms < 0:
            raise ValueError("repeat_pause_ms must not be negative")


class MorsePlayer:
    """Play a character as Morse through a ToneSource.

    At most one chain is live at a time. Every scheduled continuation carries
    the generation it was created for and does nothing once ``stop`` or a new
    ``play_text`` has moved the generation on.
    """
    def __init__(self, tone_source: ToneSource, scheduler: Scheduler,
                 cfg: Optional[PlayerConfig] = None, codec: Optional[MorseCodec] = None,
                 on_finished: Optional[Callable[[], None]] = None):
        self.tone_source = tone_source
        self.scheduler = scheduler
        self.cfg = cfg or PlayerConfig()
        self.codec = codec or MorseCodec()
        self.on_finished = on_finished
        self._playing = False
        self._generation = 0
        self._units: List[Tuple[str, int]] = []
        self._text: Optional[str] = None
        self._pending: Optional[TimerHandle] = None
        self.repeat_count = 0

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def current_text(self) -> Optional[str]:
        """Text of the live chain, or None when stopped."""
        return self._text if self._playing else None

    def play_text(self, text: str) -> None:
        """Start playing ``text``, replacing any chain in flight.

        Raises:
            UnknownSymbolError: if ``text`` is empty or has a character with
                no Morse code. Nothing is emitted or scheduled in that case.
        """
        units = self.codec.units(text) if text.strip() else None
        if units is None:
            raise UnknownSymbolError(f"Cannot play {text!r}: no Morse code")
        self.stop()
        self._playing = True
        self._generation += 1
        self._units = units
        self._text = text
        self.repeat_count = 0
        logger.debug("Playing %r (generation %d)", text, self._generation)
        self._step(self._generation, 0)

    def stop(self) -> None:
        """Halt the chain. A tone already sounding is left to finish."""
        self._playing = False
        self._generation += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def shutdown(self) -> None:
        """Stop the chain and silence the tone source."""
        self.stop()
        self.tone_source.cancel_pending_emission()

    def _schedule(self, delay_ms: float, generation: int, index: int) -> None:
        self._pending = self.scheduler.call_later(
            delay_ms, lambda: self._step(generation, index))

    def _step(self, generation: int, index: int) -> None:
        if generation != self._generation or not self._playing:
            return
        self._pending = None

        if index >= len(self._units):
            self.repeat_count += 1
            if self.cfg.repeat:
                self._schedule(self.cfg.repeat_pause_ms, generation, 0)
            else:
                self._playing = False
                if self.on_finished is not None:
                    self.on_finished()
            return

        kind, length = self._units[index]
        duration = length * self.cfg.dot_ms
        if kind != 'gap':
            self.tone_source.emit_tone(duration, self.cfg.tone_hz)
        self._schedule(duration, generation, index + 1)

"""Tone synthesis and output for KochTrainer.

Contains the ToneSource protocol used by the player, the SynthConfig
dataclass, ToneSynth which renders numpy tone buffers, and
SoundDeviceToneSource which plays them through sounddevice.
"""
from dataclasses import dataclass
import logging
from typing import Dict, Optional, Protocol, Tuple, runtime_checkable
import numpy as np

try:
    import sounddevice as sd
except (ImportError, OSError):
    # OSError: PortAudio library not found
    sd = None

from koch_utils import DEFAULT_SAMPLE_RATE, env_ramp

logger = logging.getLogger(__name__)

# Audio envelope constants
RAMP_DURATION_SECONDS = 0.005


@runtime_checkable
class ToneSource(Protocol):
    """Primitive capability to sound a single tone."""

    def emit_tone(self, duration_ms: float, frequency_hz: float) -> None: ...
    def cancel_pending_emission(self) -> None: ...


@dataclass
class SynthConfig:
    """Configuration for the synthesizer."""
    sample_rate: int = DEFAULT_SAMPLE_RATE
    gain: float = 0.25


class ToneSynth:
    """Render mono sine tones with click-free edges.

    Buffers are cached per (duration, frequency) since a drill only ever
    needs a dot and a dash.
    """
    def __init__(self, cfg: SynthConfig):
        self.cfg = cfg
        self._cache: Dict[Tuple[float, float], 'np.ndarray'] = {}

    def tone(self, duration_ms: float, freq: float) -> 'np.ndarray':
        """Synthesize a tone for given duration (ms) and frequency (Hz).

        Returns:
            A float32 numpy array of shape (n_samples,) scaled by gain.
        """
        key = (float(duration_ms), float(freq))
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        sr = self.cfg.sample_rate
        n = max(1, int(duration_ms * sr / 1000.0))
        t = np.arange(n, dtype=np.float32) / sr
        sig = np.sin(2 * np.pi * freq * t).astype(np.float32)

        ramp_samps = min(n // 2, max(1, int(RAMP_DURATION_SECONDS * sr)))
        if ramp_samps > 0:
            ramp = env_ramp(ramp_samps)
            sig[:ramp_samps] *= ramp
            sig[-ramp_samps:] *= ramp[::-1]

        sig *= self.cfg.gain
        self._cache[key] = sig
        return sig


class SoundDeviceToneSource:
    """ToneSource that plays synthesized buffers on the default output device.

    ``sounddevice.play`` returns immediately, so emitting never blocks the
    scheduler thread.
    """
    def __init__(self, cfg: Optional[SynthConfig] = None):
        if sd is None:
            raise RuntimeError("sounddevice is not available. Install sounddevice and PortAudio to play audio.")
        self.synth = ToneSynth(cfg or SynthConfig())

    def emit_tone(self, duration_ms: float, frequency_hz: float) -> None:
        buf = self.synth.tone(duration_ms, frequency_hz)
        try:
            sd.play(buf, samplerate=self.synth.cfg.sample_rate)
        except Exception as e:
            logger.error("Audio error: %s", e)

    def cancel_pending_emission(self) -> None:
        try:
            sd.stop()
        except Exception as e:
            logger.error("Audio error: %s", e)

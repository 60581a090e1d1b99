"""Utility functions and constants for KochTrainer.

This module holds the shared tables (ALPHABET, KOCH_ORDER, KEYBOARD_ROWS),
audio/timing defaults and small helpers used across the package.
"""
from types import MappingProxyType
from typing import Iterable, List, Mapping, Tuple
import numpy as np

SHORT = '.'
LONG = '-'

# Morse mapping for letters, digits and punctuation (keys are lower case)
_ALPHABET_PAIRS: List[Tuple[str, str]] = [
    ('a', '.-'),     ('b', '-...'),   ('c', '-.-.'),   ('d', '-..'),    ('e', '.'),
    ('f', '..-.'),   ('g', '--.'),    ('h', '....'),   ('i', '..'),     ('j', '.---'),
    ('k', '-.-'),    ('l', '.-..'),   ('m', '--'),     ('n', '-.'),     ('o', '---'),
    ('p', '.--.'),   ('q', '--.-'),   ('r', '.-.'),    ('s', '...'),    ('t', '-'),
    ('u', '..-'),    ('v', '...-'),   ('w', '.--'),    ('x', '-..-'),   ('y', '-.--'),
    ('z', '--..'),
    ('1', '.----'),  ('2', '..---'),  ('3', '...--'),  ('4', '....-'),  ('5', '.....'),
    ('6', '-....'),  ('7', '--...'),  ('8', '---..'),  ('9', '----.'),  ('0', '-----'),
    ('.', '.-.-.-'), (',', '--..--'), ('?', '..--..'), ("'", '.----.'), ('/', '-..-.'),
    ('(', '-.--.'),  (')', '-.--.-'), ('&', '.-...'),  (':', '---...'), (';', '-.-.-.'),
    ('=', '-...-'),  ('+', '.-.-.'),  ('-', '-....-'), ('_', '..--.-'), ('"', '.-..-.'),
    ('$', '...-..-'), ('!', '-.-.--'), ('@', '.--.-.'),
]

# Order in which characters are introduced to the learner
KOCH_ORDER: Tuple[str, ...] = (
    'K', 'M', 'R', 'S', 'U', 'A', 'P', 'T', 'L', 'O',
    'W', 'I', '.', 'N', 'J', 'E', 'F', '0', 'Y', ',',
    'V', 'G', '5', '/', 'Q', '9', 'Z', 'H', '3', '8',
    'B', '?', '4', '2', '7', 'C', '1', 'D', '6', 'X',
)

# On-screen keyboard layout
KEYBOARD_ROWS: Tuple[Tuple[str, ...], ...] = (
    ('1', '2', '3', '4', '5', '6', '7', '8', '9', '0', '-', '='),
    ('Q', 'W', 'E', 'R', 'T', 'Y', 'U', 'I', 'O', 'P', '/'),
    ('A', 'S', 'D', 'F', 'G', 'H', 'J', 'K', 'L', ';'),
    ('Z', 'X', 'C', 'V', 'B', 'N', 'M', ',', '.', '?'),
)

# Default audio/timing constants
DEFAULT_SAMPLE_RATE = 48000
DEFAULT_TONE_HZ = 587.0  # D5
DEFAULT_DOT_MS = 55
DEFAULT_REPEAT_PAUSE_MS = 3000
DEFAULT_MISMATCH_PAUSE_MS = 1000


def build_alphabet(pairs: Iterable[Tuple[str, str]]) -> Mapping[str, str]:
    """Build an immutable character -> marks table.

    Args:
        pairs: (character, marks) tuples. Characters are lower-cased.

    Returns:
        A read-only mapping.

    Raises:
        ValueError: on a repeated character, a repeated code, or a code
            containing anything other than dots and dashes.
    """
    table = {}
    owners = {}
    for char, code in pairs:
        char = char.lower()
        if len(char) != 1:
            raise ValueError(f"Alphabet keys must be single characters, got {char!r}")
        if not code or set(code) - {SHORT, LONG}:
            raise ValueError(f"Invalid code {code!r} for {char!r}")
        if char in table:
            raise ValueError(f"Duplicate alphabet entry for {char!r}")
        if code in owners:
            raise ValueError(f"Code {code!r} is shared by {owners[code]!r} and {char!r}")
        table[char] = code
        owners[code] = char
    return MappingProxyType(table)


ALPHABET: Mapping[str, str] = build_alphabet(_ALPHABET_PAIRS)

_missing = [c for c in KOCH_ORDER + sum(KEYBOARD_ROWS, ()) if c.lower() not in ALPHABET]
if _missing:
    raise RuntimeError(f"Characters without Morse code: {_missing}")


def active_alphabet(level: int, order: Tuple[str, ...] = KOCH_ORDER) -> Tuple[str, ...]:
    """Return the prefix of ``order`` drilled at ``level`` (``level + 1`` characters)."""
    return tuple(order[:clamp_level(level, order) + 1])


def clamp_level(level: int, order: Tuple[str, ...] = KOCH_ORDER) -> int:
    """Clamp a mastery level into ``1 .. len(order) - 1``."""
    return min(max(1, int(level)), max(1, len(order) - 1))


def env_ramp(samples: int) -> 'np.ndarray':
    """Generate a cosine-shaped envelope ramp of length ``samples``.

    The ramp is used for a short fade-in/fade-out on tones to avoid clicks.

    Args:
        samples: Number of ramp samples (int).

    Returns:
        A numpy float32 array containing the ramp from ~0 to 1.
    """
    t = np.arange(samples, dtype=np.float32)
    ramp = 0.5 * (1 - np.cos(np.pi * (t + 1) / (samples + 1)))
    return ramp.astype(np.float32)

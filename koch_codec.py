"""Text <-> Morse code conversion for KochTrainer.

Contains MorseCodec which encodes text to dot/dash marks (optionally with
timing spaces) and decodes spaced Morse back to text.
"""
import logging
from typing import Dict, List, Mapping, Optional, Tuple

from koch_utils import ALPHABET, LONG, SHORT

logger = logging.getLogger(__name__)


class UnknownSymbolError(ValueError):
    """Raised when a character that has no Morse code is sent to playback."""


class MorseCodec:
    """Encode and decode Morse code against an alphabet table.

    Spaced code uses one space between the marks of a character,
    ``SHORT_GAP`` spaces between characters and ``MEDIUM_GAP`` spaces
    between words, so every space is one time unit of silence.
    """
    SHORT_GAP = 3
    MEDIUM_GAP = 7

    def __init__(self, alphabet: Mapping[str, str] = ALPHABET):
        self.alphabet = alphabet
        self._by_code: Dict[str, str] = {code: char for char, code in alphabet.items()}

    def code_for(self, symbol: str) -> Optional[str]:
        """Return the marks for a single character, or None if unmapped."""
        return self.alphabet.get(symbol.lower())

    def symbol_for_code(self, code: str) -> Optional[str]:
        """Given a string of dots and dashes return its character, or None."""
        return self._by_code.get(code)

    def encode(self, text: str) -> Optional[str]:
        """Encode text to marks, discarding all whitespace.

        Returns:
            The concatenated marks, or None if any character is unmapped.
        """
        codes = []
        for ch in ''.join(text.split()).lower():
            code = self.alphabet.get(ch)
            if code is None:
                logger.debug("No Morse code for %r", ch)
                return None
            codes.append(code)
        return ''.join(codes)

    def encode_with_spacing(self, text: str) -> Optional[str]:
        """Encode text with the spaces needed for playback.

        Example:
            'hi you' -> '. . . .   . .       - . - -   - - -   . . -'

        Returns:
            Spaced code, or None if any character is unmapped.
        """
        symbol_gap = ' ' * self.SHORT_GAP
        word_gap = ' ' * self.MEDIUM_GAP
        words = []
        for word in text.lower().split():
            symbols = []
            for ch in word:
                code = self.alphabet.get(ch)
                if code is None:
                    logger.debug("No Morse code for %r", ch)
                    return None
                symbols.append(' '.join(code))
            words.append(symbol_gap.join(symbols))
        return word_gap.join(words)

    def decode(self, code: str) -> Optional[str]:
        """Decode spaced Morse code back to text.

        The input is treated as if produced by ``encode_with_spacing``.

        Returns:
            Lower-case text, or None if any symbol is not in the alphabet.
        """
        if not code.strip():
            return ''
        symbol_gap = ' ' * self.SHORT_GAP
        word_gap = ' ' * self.MEDIUM_GAP
        decoded_words = []
        for word in code.strip(' ').split(word_gap):
            decoded = []
            for symbol in word.split(symbol_gap):
                char = self.symbol_for_code(symbol.replace(' ', ''))
                if char is None:
                    return None
                decoded.append(char)
            decoded_words.append(''.join(decoded))
        return ' '.join(decoded_words)

    def units(self, text: str) -> Optional[List[Tuple[str, int]]]:
        """Convert text to the emission sequence used by the player.

        Each entry is ('dot', 1), ('dash', 3) or ('gap', n) in time units.
        Every mark is followed by a one-unit silence, so a character always
        ends with a short gap.

        Returns:
            The unit list, or None if any character is unmapped.
        """
        spaced = self.encode_with_spacing(text)
        if spaced is None:
            return None
        parts: List[Tuple[str, int]] = []
        for ch in spaced + ' ':
            if ch == SHORT:
                parts.append(('dot', 1))
            elif ch == LONG:
                parts.append(('dash', 3))
            elif parts and parts[-1][0] == 'gap':
                parts[-1] = ('gap', parts[-1][1] + 1)
            else:
                parts.append(('gap', 1))
        return parts

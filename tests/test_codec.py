import pytest

from koch_codec import MorseCodec
from koch_utils import ALPHABET, build_alphabet


@pytest.fixture
def codec() -> MorseCodec:
    return MorseCodec()


def test_encode_discards_whitespace_and_case(codec: MorseCodec) -> None:
    assert codec.encode("SOS") == "...---..."
    assert codec.encode("  s o\ts ") == "...---..."


def test_encode_empty(codec: MorseCodec) -> None:
    assert codec.encode("") == ""
    assert codec.encode_with_spacing("") == ""


def test_encode_unmapped_returns_none(codec: MorseCodec) -> None:
    assert codec.encode("k#") is None
    assert codec.encode_with_spacing("k #") is None


def test_encode_with_spacing_example(codec: MorseCodec) -> None:
    assert codec.encode_with_spacing("hi you") == ". . . .   . .       - . - -   - - -   . . -"


def test_encode_with_spacing_collapses_whitespace(codec: MorseCodec) -> None:
    assert codec.encode_with_spacing("  hi \t\n you ") == codec.encode_with_spacing("hi you")


def test_decode_example(codec: MorseCodec) -> None:
    assert codec.decode(". . . .   . .       - . - -   - - -   . . -") == "hi you"


def test_decode_unknown_symbol_returns_none(codec: MorseCodec) -> None:
    assert codec.decode(". . . . . . . .") is None
    assert codec.decode(". -   . . . . . . . .") is None


def test_decode_empty(codec: MorseCodec) -> None:
    assert codec.decode("") == ""


@pytest.mark.parametrize("text", ["KMRSU", "the quick brown fox", "cq de k1abc/3 5nn tu", "why? 73, (ok)"])
def test_round_trip(codec: MorseCodec, text: str) -> None:
    assert codec.decode(codec.encode_with_spacing(text)) == " ".join(text.lower().split())


def test_round_trip_every_character(codec: MorseCodec) -> None:
    text = " ".join(ALPHABET)
    assert codec.decode(codec.encode_with_spacing(text)) == text


def test_lookups(codec: MorseCodec) -> None:
    assert codec.code_for("K") == "-.-"
    assert codec.code_for("#") is None
    assert codec.symbol_for_code("--") == "m"
    assert codec.symbol_for_code("........") is None


def test_units_for_single_character(codec: MorseCodec) -> None:
    assert codec.units("k") == [('dash', 3), ('gap', 1), ('dot', 1), ('gap', 1), ('dash', 3), ('gap', 1)]


def test_units_include_character_and_word_gaps(codec: MorseCodec) -> None:
    assert codec.units("e t") == [('dot', 1), ('gap', 7), ('dash', 3), ('gap', 1)]
    assert codec.units("et") == [('dot', 1), ('gap', 3), ('dash', 3), ('gap', 1)]


def test_units_unmapped(codec: MorseCodec) -> None:
    assert codec.units("~") is None


def test_custom_alphabet() -> None:
    codec = MorseCodec(build_alphabet([('a', '.-'), ('b', '-...')]))
    assert codec.encode("ab") == ".--..."
    assert codec.encode("c") is None

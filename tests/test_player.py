import pytest

from koch_clock import ManualScheduler
from koch_codec import UnknownSymbolError
from koch_player import MorsePlayer, PlayerConfig


def test_plays_dash_dot_dash_with_unit_timing(player: MorsePlayer, tones, clock: ManualScheduler) -> None:
    player.play_text("K")
    assert player.is_playing
    assert player.current_text == "K"
    clock.advance(500)
    # dash at 0, dot after dash + gap (150 + 50), dash after dot + gap (50 + 50)
    assert tones.tones == [(0, 150, 600.0), (200, 50, 600.0), (300, 150, 600.0)]


def test_sequence_repeats_after_pause(player: MorsePlayer, tones, clock: ManualScheduler) -> None:
    player.play_text("E")
    # dot (50) + trailing gap (50) ends at 100, then 3000 ms pause
    clock.advance(3099)
    assert [t[0] for t in tones.tones] == [0]
    clock.advance(1)
    assert [t[0] for t in tones.tones] == [0, 3100]
    assert player.repeat_count == 1
    clock.advance(3100)
    assert len(tones.tones) == 3
    assert player.is_playing


def test_stop_halts_chain(player: MorsePlayer, tones, clock: ManualScheduler) -> None:
    player.play_text("K")
    clock.advance(10)
    player.stop()
    assert not player.is_playing
    assert player.current_text is None
    clock.advance(10000)
    assert len(tones.tones) == 1
    assert clock.pending == 0
    # a sounding tone is not cut off
    assert tones.cancelled == 0


def test_stop_then_play_never_emits_previous_sequence(player: MorsePlayer, tones, clock: ManualScheduler) -> None:
    player.play_text("0")  # five dashes
    clock.advance(200)
    assert len(tones.tones) == 2
    player.stop()
    player.play_text("E")
    emitted_before = len(tones.tones)
    clock.advance(10000)
    new = tones.tones[emitted_before:]
    assert new
    assert all(duration == 50 for _, duration, _ in new)


def test_play_replaces_chain_in_flight(player: MorsePlayer, tones, clock: ManualScheduler) -> None:
    player.play_text("M")
    clock.advance(10)
    player.play_text("E")
    clock.advance(10000)
    durations = [d for _, d, _ in tones.tones]
    assert durations[0] == 150
    assert all(d == 50 for d in durations[1:])
    assert clock.pending == 1


def test_stale_continuation_is_dropped(tones, clock: ManualScheduler) -> None:
    player = MorsePlayer(tones, clock, PlayerConfig(dot_ms=50))
    player.play_text("T")
    player._step(player._generation - 1, 0)  # noqa: SLF001
    assert len(tones.tones) == 1


@pytest.mark.parametrize("text", ["#", "", "   ", "k~"])
def test_unknown_character_fails_fast(player: MorsePlayer, tones, clock: ManualScheduler, text: str) -> None:
    with pytest.raises(UnknownSymbolError):
        player.play_text(text)
    assert tones.tones == []
    assert clock.pending == 0
    assert not player.is_playing


def test_unknown_character_leaves_running_chain_alone(player: MorsePlayer, tones, clock: ManualScheduler) -> None:
    player.play_text("E")
    with pytest.raises(UnknownSymbolError):
        player.play_text("#")
    assert player.is_playing
    assert player.current_text == "E"


def test_no_repeat_finishes_and_calls_back(tones, clock: ManualScheduler) -> None:
    finished = []
    player = MorsePlayer(tones, clock, PlayerConfig(dot_ms=10, repeat=False),
                         on_finished=lambda: finished.append(True))
    player.play_text("S")
    clock.advance(1000)
    assert len(tones.tones) == 3
    assert not player.is_playing
    assert finished == [True]
    assert player.repeat_count == 1


def test_shutdown_silences_tone_source(player: MorsePlayer, tones, clock: ManualScheduler) -> None:
    player.play_text("K")
    player.shutdown()
    assert tones.cancelled == 1
    assert not player.is_playing


@pytest.mark.parametrize("kwargs", [{"dot_ms": 0}, {"tone_hz": -1}, {"repeat_pause_ms": -5}])
def test_player_config_validation(kwargs) -> None:
    with pytest.raises(ValueError):
        PlayerConfig(**kwargs)

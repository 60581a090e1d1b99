"""GUI front-end for KochTrainer (Tkinter application).

This module defines the App class which draws the on-screen keyboard and
tally, forwards key presses and clicks to the Trainer, and redraws from the
Trainer's snapshot. Lesson logic lives in koch_trainer; audio in
koch_player and koch_synth.
"""
import argparse
import logging
import tkinter as tk
from tkinter import ttk, messagebox
from typing import Dict, List, Optional

from koch_clock import TkScheduler
from koch_codec import MorseCodec
from koch_config import JsonLevelStore, load_settings, save_settings
from koch_player import MorsePlayer, PlayerConfig
from koch_synth import SoundDeviceToneSource
from koch_trainer import KeyState, Trainer, TrainerConfig, TrainerSnapshot
from koch_utils import KEYBOARD_ROWS, KOCH_ORDER

logger = logging.getLogger(__name__)

KEY_COLORS = {
    KeyState.INACTIVE: "#666666",
    KeyState.ACTIVE: "#fa9f1f",
    KeyState.CORRECT: "#3cb043",
    KeyState.INCORRECT: "#d0312d",
}
BG = "#1e1e1e"


class App(tk.Tk):
    """Main window: tally, keyboard and lesson controls."""

    def __init__(self, settings: Dict[str, float], store: JsonLevelStore,
                 overrides: Optional[Dict[str, float]] = None):
        super().__init__()
        self.title("KochTrainer")
        self.geometry("900x520")
        self.configure(bg=BG)
        self.protocol("WM_DELETE_WINDOW", self._on_closing)

        self.codec = MorseCodec()
        self.settings = dict(settings)
        # Command-line values apply to this run only and are never saved
        self.overrides = dict(overrides or {})
        self.store = store
        self.scheduler = TkScheduler(self)
        self.tone_source = SoundDeviceToneSource()
        self.player = MorsePlayer(self.tone_source, self.scheduler, self._player_config(), self.codec)
        self.trainer = Trainer(self.player, self.scheduler, store, TrainerConfig())

        self.level_var = tk.IntVar(value=self.trainer.level)
        self.keys: Dict[str, tk.Label] = {}
        self._build_ui()
        self.trainer.add_listener(self.redraw)
        self.redraw(self.trainer.snapshot())

    def _player_config(self) -> PlayerConfig:
        effective = {**self.settings, **self.overrides}
        return PlayerConfig(dot_ms=effective['dot_ms'], tone_hz=effective['tone_hz'],
                            repeat_pause_ms=effective['repeat_pause_ms'])

    def _build_ui(self):
        """Construct tally, control row and keyboard."""
        self.tally_label = tk.Label(self, text="", font=("Courier New", 48), fg=KEY_COLORS[KeyState.ACTIVE], bg=BG)
        self.tally_label.pack(pady=(16, 8))

        ctrl = ttk.Frame(self)
        ctrl.pack(pady=4)
        self.start_btn = ttk.Button(ctrl, text="Start", command=self.toggle)
        self.start_btn.pack(side="left", padx=4)
        ttk.Button(ctrl, text="Replay", command=self.trainer.replay).pack(side="left", padx=4)
        ttk.Label(ctrl, text="Level:").pack(side="left", padx=(16, 4))
        ttk.Spinbox(ctrl, from_=1, to=len(KOCH_ORDER) - 1, increment=1, width=4,
                    textvariable=self.level_var, command=self._on_level).pack(side="left")

        board = tk.Frame(self, bg=BG)
        board.pack(side="bottom", pady=16)
        for r, row in enumerate(KEYBOARD_ROWS):
            row_frame = tk.Frame(board, bg=BG)
            row_frame.grid(row=r, column=0, pady=4)
            for letter in row:
                key = tk.Label(row_frame, text=f"{letter}\n{self.codec.code_for(letter)}",
                               width=6, height=2, font=("Courier New", 12),
                               relief="solid", bd=2, bg=BG)
                key.pack(side="left", padx=4)
                key.bind("<Button-1>", lambda _e, c=letter: self.trainer.answer(c))
                self.keys[letter] = key

        self.bind("<Key>", self._on_key)

    def _on_key(self, event):
        # Ignore key presses aimed at the level spinbox
        if isinstance(event.widget, (ttk.Spinbox, tk.Entry, ttk.Entry)):
            return
        if event.char:
            self.trainer.answer(event.char)

    def _on_level(self):
        try:
            level = int(self.level_var.get())
        except (tk.TclError, ValueError):
            return
        self.trainer.set_level(level)

    def toggle(self):
        """Start or stop the lesson."""
        if self.trainer.running:
            self.trainer.stop()
        else:
            self.trainer.start()

    def redraw(self, snap: TrainerSnapshot):
        """Paint keys and tally from a trainer snapshot."""
        self.tally_label.config(text=snap.tally)
        self.start_btn.config(text="Stop" if self.trainer.running else "Start")
        try:
            shown = self.level_var.get()
        except (tk.TclError, ValueError):
            # Spinbox holds text that is not a number
            shown = None
        if shown != snap.level:
            self.level_var.set(snap.level)
        for letter, key in self.keys.items():
            color = KEY_COLORS[snap.key_state(letter)]
            key.config(fg=color, highlightbackground=color)

    def _on_closing(self):
        """Save settings and close the application gracefully."""
        save_settings(self.settings)
        self.trainer.stop()
        self.player.shutdown()
        self.destroy()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="koch-trainer", description="Koch-method Morse listening trainer")
    parser.add_argument("--dot-ms", type=float, help="duration of one dot in milliseconds")
    parser.add_argument("--tone", type=float, help="tone frequency in Hz")
    parser.add_argument("--level", type=int, help="start at this mastery level")
    parser.add_argument("--reset", action="store_true", help="forget the saved mastery level")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def cli_overrides(args: argparse.Namespace) -> Dict[str, float]:
    """Settings given on the command line, keyed like the config file."""
    overrides = {}
    if args.dot_ms is not None:
        overrides['dot_ms'] = args.dot_ms
    if args.tone is not None:
        overrides['tone_hz'] = args.tone
    return overrides


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    settings = load_settings()
    overrides = cli_overrides(args)

    store = JsonLevelStore()
    if args.reset:
        store.clear()

    try:
        app = App(settings, store, overrides)
    except (RuntimeError, ValueError) as e:
        logger.error("%s", e)
        messagebox.showerror("KochTrainer", str(e))
        return 1
    if args.level is not None:
        app.trainer.set_level(args.level)
    app.mainloop()
    return 0


if __name__ == '__main__':
    raise SystemExit(main())

import logging
import tkinter as tk

logger = logging.getLogger(__name__)

SOUND_MUTED_KEY = "soundMuted"

# Bell offsets in milliseconds for each cue
CUE_PATTERNS = {
    "move": (0,),
    "merge": (0, 90),
    "win": (0, 150, 300, 450),  # C5 E5 G5 C6 in the tone version
    "gameover": (250,),
}


class AudioManager:
    """
    Plays move/merge/win/game-over cues on the Tk bell and remembers the mute flag.

    Cues are fire-and-forget: later bells are scheduled with ``after`` so
    nothing here blocks, and any Tk error is logged and dropped.
    """

    def __init__(self, storage=None, widget=None):
        self.storage = storage
        self.widget = widget
        self.muted = False
        self.load_audio_settings()

    def load_audio_settings(self):
        if self.storage is None:
            self.muted = False
            return
        self.muted = self.storage.get(SOUND_MUTED_KEY, "false") == "true"
        logger.debug("Audio settings loaded: muted=%s", self.muted)

    def play_move(self):
        self.play_sound("move")

    def play_merge(self):
        self.play_sound("merge")

    def play_win(self):
        self.play_sound("win")

    def play_game_over(self):
        self.play_sound("gameover")

    def play_sound(self, cue):
        if self.muted:
            return
        pattern = CUE_PATTERNS.get(cue)
        if pattern is None:
            logger.warning("Unknown sound type: %s", cue)
            return
        if self.widget is None:
            logger.debug("No audio output, skipping %s cue", cue)
            return
        try:
            for delay in pattern:
                if delay:
                    self.widget.after(delay, self.widget.bell)
                else:
                    self.widget.bell()
        except tk.TclError as e:
            logger.error("Error playing sound %s: %s", cue, e)

    def toggle_mute(self) -> bool:
        """Flip the mute flag, persist it, and return the new value."""
        self.muted = not self.muted
        if self.storage is not None and not self.storage.set(SOUND_MUTED_KEY, self.muted):
            logger.warning("Mute state changed but not persisted")
        return self.muted

    def is_muted(self) -> bool:
        return self.muted

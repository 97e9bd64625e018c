import logging
import random
import tkinter as tk

from shiba2048.audio import AudioManager
from shiba2048.config import GameConfig
from shiba2048.game_engine import GridEngine
from shiba2048.input_manager import InputManager
from shiba2048.layout import LayoutCalculator
from shiba2048.renderer import Message, Renderer
from shiba2048.scores import ScoreTracker
from shiba2048.storage import JsonFileStore

logger = logging.getLogger(__name__)

FRAME_INTERVAL_MS = 16


class Game2048GUI:
    """
    Connects a GridEngine to its renderer, audio and input.

    The engine never sees any of these collaborators: this class runs a move,
    then decides which cue to play, which popup to show and what to redraw.
    """

    def __init__(self, master, engine, renderer, audio, input_manager):
        self.master = master
        self.engine = engine
        self.renderer = renderer
        self.audio = audio
        self.input_manager = input_manager
        self._frame_pending = None

        self.input_manager.set_move_callback(self.handle_move)
        self.input_manager.set_button_click_callback(self.handle_button)

        # Initial draw
        self.render()

    @classmethod
    def create(cls, master, config=None, storage=None):
        """Build the Tk canvas and every collaborator around a fresh engine."""
        config = config if config is not None else GameConfig()
        storage = storage if storage is not None else JsonFileStore(config.storage_path)

        master.title("2048 Game")
        master.resizable(False, False)
        canvas = tk.Canvas(master, width=config.window_width, height=config.window_height, highlightthickness=0)
        canvas.pack()

        layout = LayoutCalculator(config.window_width, config.window_height, config.grid_size)
        audio = AudioManager(storage, widget=master)
        renderer = Renderer(canvas, layout, storage, audio)
        engine = GridEngine(
            size=config.grid_size,
            scores=ScoreTracker(storage),
            history_capacity=config.history_capacity,
            undo_budget=config.undo_budget,
            win_value=config.win_value,
            four_probability=config.four_probability,
            rng=random.Random(config.seed),
        )
        input_manager = InputManager(master, layout, pointer_widget=canvas)
        return cls(master, engine, renderer, audio, input_manager)

    # -------------------------------------------------------------------------
    #                                 MOVES
    # -------------------------------------------------------------------------
    def handle_move(self, direction) -> bool:
        # A popup (win or game over) has to be answered before play resumes
        if self.renderer.message is not None:
            return False

        result = self.engine.move(direction)
        if not result:
            return False

        self.renderer.apply_events(result.events)
        if result.merges:
            self.audio.play_merge()
        else:
            self.audio.play_move()

        if result.won:
            self.audio.play_win()
            self.show_win_message()
        elif result.over:
            self.audio.play_game_over()
            self.show_game_over_message()

        self.render()
        return True

    # -------------------------------------------------------------------------
    #                                BUTTONS
    # -------------------------------------------------------------------------
    def handle_button(self, button_type):
        if button_type in ("new", "restart"):
            self.restart()
        elif button_type == "undo":
            self.undo()
        elif button_type == "sound":
            muted = self.audio.toggle_mute()
            logger.debug("Sound %s", "muted" if muted else "unmuted")
            self.render()
        elif button_type == "theme":
            self.renderer.toggle_theme()
            self.render()
        elif button_type == "continue":
            self.continue_game()
        else:
            logger.warning("Unknown button type: %s", button_type)

    def restart(self):
        self.engine.restart()
        self.renderer.clear_message()
        self.renderer.clear_animations()
        self.render()

    def undo(self) -> bool:
        if not self.engine.undo():
            return False
        self.renderer.clear_message()
        self.renderer.clear_animations()
        self.render()
        return True

    def continue_game(self):
        self.engine.continue_game()
        self.renderer.clear_message()
        # The winning move may also have filled the board
        if self.engine.is_done():
            self.audio.play_game_over()
            self.show_game_over_message()
        self.render()

    # -------------------------------------------------------------------------
    #                                POPUPS
    # -------------------------------------------------------------------------
    def show_win_message(self):
        self.renderer.set_message(Message(
            kind="win",
            title="Congratulations!",
            text=f"You reached {self.engine.win_value}!",
            buttons=(("Keep going", "continue"), ("Restart", "restart")),
        ))

    def show_game_over_message(self):
        self.renderer.set_message(Message(
            kind="gameover",
            title="Game Over",
            text=f"Final score: {self.engine.score}",
            buttons=(("Restart", "restart"),),
        ))

    # -------------------------------------------------------------------------
    #                                DRAWING
    # -------------------------------------------------------------------------
    def render(self):
        self.renderer.render(
            self.engine.get_state(),
            self.engine.score,
            self.engine.best_score,
            self.engine.undo_count,
        )
        self.input_manager.set_message_actions(self.renderer.message_actions())
        if self.renderer.needs_redraw():
            self._schedule_frame()

    def _schedule_frame(self):
        if self._frame_pending is None:
            self._frame_pending = self.master.after(FRAME_INTERVAL_MS, self._on_frame)

    def _on_frame(self):
        self._frame_pending = None
        self.render()

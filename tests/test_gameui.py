import logging
import random
import tkinter as tk

import pytest

from conftest import FakeCanvas, FakeWidget, key_event
from shiba2048.audio import AudioManager
from shiba2048.config import GameConfig
from shiba2048.game_engine import GridEngine
from shiba2048.gameui import FRAME_INTERVAL_MS, Game2048GUI
from shiba2048.input_manager import InputManager
from shiba2048.layout import LayoutCalculator
from shiba2048.renderer import Renderer
from shiba2048.scores import ScoreTracker
from shiba2048.storage import MemoryStore


class FakeMaster(FakeWidget):
    def title(self, text):
        self.titles.append(text)

    def resizable(self, width, height):
        pass


class FakeTkCanvas(FakeCanvas, FakeWidget):
    def __init__(self, master=None, **options):
        FakeCanvas.__init__(self)
        FakeWidget.__init__(self)
        self.options = options

    def pack(self):
        pass


def build_gui(engine, store, clock, layout=None):
    master = FakeMaster()
    speaker = FakeWidget()
    layout = layout or LayoutCalculator(460, 700, engine.size)
    audio = AudioManager(store, speaker)
    renderer = Renderer(FakeCanvas(), layout, store, audio, clock=clock)
    inputs = InputManager(master, layout, clock=clock)
    gui = Game2048GUI(master, engine, renderer, audio, inputs)
    return gui, master, speaker


@pytest.fixture
def gui_parts(engine, store, clock):
    return build_gui(engine, store, clock)


@pytest.fixture
def gui(gui_parts):
    return gui_parts[0]


def test_initial_render(gui):
    assert "Undo (5)" in gui.renderer.canvas.texts()


def test_key_press_moves_and_plays_merge(gui_parts):
    gui, master, speaker = gui_parts
    gui.engine.load_state([[2, 2, 0, 0], [0] * 4, [0] * 4, [0] * 4])

    master.bindings["<KeyPress>"](key_event("Left"))

    assert gui.engine.score == 4
    assert speaker.bells == 1
    assert [delay for delay, _ in speaker.scheduled] == [90]
    assert gui.renderer.has_active_animations()


def test_plain_slide_plays_move_cue(gui_parts):
    gui, _, speaker = gui_parts
    gui.engine.load_state([[0, 0, 0, 2], [0] * 4, [0] * 4, [0] * 4])
    assert gui.handle_move("left")
    assert speaker.bells == 1
    assert speaker.scheduled == []


def test_noop_move_is_silent(gui_parts):
    gui, _, speaker = gui_parts
    gui.engine.load_state([[2, 0, 0, 0], [0] * 4, [0] * 4, [0] * 4])
    assert gui.handle_move("left") is False
    assert speaker.bells == 0


def test_animation_frames_until_settled(gui_parts, clock):
    gui, master, _ = gui_parts
    gui.engine.load_state([[0, 0, 0, 2], [0] * 4, [0] * 4, [0] * 4])
    gui.handle_move("left")
    assert [delay for delay, _ in master.scheduled] == [FRAME_INTERVAL_MS]

    clock.advance(0.2)
    master.run_scheduled()
    assert master.scheduled == []
    assert not gui.renderer.needs_redraw()


def test_win_popup_blocks_moves_until_continue(gui):
    gui.engine.load_state([[1024, 1024, 0, 0], [0] * 4, [0] * 4, [0] * 4])

    assert gui.handle_move("left")
    assert gui.renderer.message.kind == "win"
    assert gui.input_manager.message_actions == ("continue", "restart")
    assert gui.handle_move("right") is False

    gui.handle_button("continue")
    assert gui.renderer.message is None
    assert gui.engine.keep_playing
    assert gui.handle_move("right")
    assert gui.renderer.message is None


def test_game_over_popup(store, clock):
    engine = GridEngine(size=2, scores=ScoreTracker(store), four_probability=1.0, rng=random.Random(3))
    gui, _, speaker = build_gui(engine, store, clock)
    engine.load_state([[2, 8], [16, 0]])

    assert gui.handle_move("right")

    assert gui.renderer.message.kind == "gameover"
    assert "Final score: 0" in gui.renderer.message.text
    assert [delay for delay, _ in speaker.scheduled] == [250]


def test_continue_on_a_dead_board_shows_game_over(gui):
    board = [[2048, 4, 2, 4], [4, 2, 4, 2], [2, 4, 2, 4], [4, 2, 4, 2]]
    gui.engine.load_state(board, won=True)
    gui.show_win_message()

    gui.handle_button("continue")

    assert gui.renderer.message.kind == "gameover"


def test_undo_button(gui):
    gui.engine.load_state([[0, 0, 0, 2], [0] * 4, [0] * 4, [0] * 4])
    gui.handle_move("left")
    gui.handle_button("undo")
    assert gui.engine.undo_count == 4
    assert gui.engine.get_state()[0] == [0, 0, 0, 2]
    assert "Undo (4)" in gui.renderer.canvas.texts()


def test_undo_clears_popup(gui):
    gui.engine.load_state([[1024, 1024, 0, 0], [0] * 4, [0] * 4, [0] * 4])
    gui.handle_move("left")
    assert gui.undo()
    assert gui.renderer.message is None
    assert not gui.engine.won


def test_new_game_button(gui):
    gui.engine.load_state([[1024, 1024, 0, 0], [0] * 4, [0] * 4, [0] * 4])
    gui.handle_move("left")
    gui.handle_button("restart")
    assert gui.renderer.message is None
    assert gui.engine.score == 0
    assert gui.engine.best_score == 2048
    assert gui.engine.tile_count() == 2


def test_sound_and_theme_buttons(gui, store):
    gui.handle_button("sound")
    assert gui.audio.is_muted()
    assert store.get("soundMuted") == "true"

    gui.handle_button("theme")
    assert gui.renderer.get_theme() == "dark"
    assert store.get("darkMode") == "true"


def test_unknown_button(gui, caplog):
    with caplog.at_level(logging.WARNING):
        gui.handle_button("settings")
    assert "Unknown button type: settings" in caplog.text


def test_create_wires_tk_widgets(monkeypatch, tmp_path):
    monkeypatch.setattr(tk, "Canvas", FakeTkCanvas)
    master = FakeMaster()
    config = GameConfig(storage_path=str(tmp_path / "storage.json"), seed=5)

    gui = Game2048GUI.create(master, config, storage=MemoryStore({"bestScore": "64"}))

    assert master.titles == ["2048 Game"]
    assert isinstance(gui.renderer.canvas, FakeTkCanvas)
    assert gui.renderer.canvas.options["width"] == 460
    assert "<ButtonPress-1>" in gui.renderer.canvas.bindings
    assert "<KeyPress>" in master.bindings
    assert gui.engine.best_score == 64
    assert gui.engine.tile_count() == 2

import tkinter as tk

from shiba2048.audio import SOUND_MUTED_KEY, AudioManager
from shiba2048.storage import MemoryStore


def test_cues_ring_the_bell(widget, store):
    audio = AudioManager(store, widget)
    audio.play_move()
    assert widget.bells == 1

    audio.play_win()
    assert widget.bells == 2
    assert [delay for delay, _ in widget.scheduled] == [150, 300, 450]
    widget.run_scheduled()
    assert widget.bells == 5


def test_mute_is_persisted(widget, store):
    audio = AudioManager(store, widget)
    assert audio.toggle_mute() is True
    assert store.get(SOUND_MUTED_KEY) == "true"

    audio.play_merge()
    assert widget.bells == 0
    assert AudioManager(store, widget).is_muted()


def test_unknown_cue(widget, caplog):
    AudioManager(widget=widget).play_sound("fanfare")
    assert widget.bells == 0
    assert "Unknown sound type" in caplog.text


def test_no_output_device():
    audio = AudioManager(MemoryStore())
    audio.play_game_over()
    assert not audio.is_muted()


def test_tk_errors_do_not_escape(widget, caplog):
    def broken():
        raise tk.TclError("can't invoke \"bell\" command")

    widget.bell = broken
    AudioManager(widget=widget).play_merge()
    assert "Error playing sound merge" in caplog.text

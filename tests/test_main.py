import random

from shiba2048 import main as cli


def test_simulate_prints_report(capsys, tmp_path):
    plot = tmp_path / "scores.png"
    assert cli.main(["simulate", "--games", "2", "--seed", "3", "--plot", str(plot)]) == 0
    out = capsys.readouterr().out
    assert "games=2" in out
    assert plot.exists()


def test_simulate_is_reproducible(capsys):
    cli.main(["simulate", "--games", "2", "--seed", "8"])
    first = capsys.readouterr().out
    cli.main(["simulate", "--games", "2", "--seed", "8"])
    assert capsys.readouterr().out == first


def test_simulate_needs_games():
    assert cli.main(["simulate", "--games", "0"]) == 2


def test_play_is_the_default(monkeypatch):
    configs = []
    monkeypatch.setattr(cli, "play_game", configs.append)
    assert cli.main(["--seed", "4"]) == 0
    assert configs[0].seed == 4


def test_simulate_seeds_moves_apart_from_spawns(monkeypatch, capsys):
    seeded = []

    class RecordingAI(cli.DummyAI):
        def __init__(self, rng=None, undo_probability=0.0):
            super().__init__(rng, undo_probability)
            seeded.append(rng.getstate())

    monkeypatch.setattr(cli, "DummyAI", RecordingAI)
    cli.main(["simulate", "--games", "1", "--seed", "3"])
    assert seeded == [random.Random(4).getstate()]

import random
from types import SimpleNamespace

import pytest

from shiba2048.game_engine import GridEngine
from shiba2048.layout import LayoutCalculator
from shiba2048.scores import ScoreTracker
from shiba2048.storage import MemoryStore


class FakeCanvas:
    """Records canvas calls instead of drawing."""

    def __init__(self):
        self.items = []
        self.deleted = []

    def delete(self, tag):
        self.deleted.append(tag)
        self.items = []

    def create_rectangle(self, *coords, **options):
        self.items.append(("rectangle", coords, options))
        return len(self.items)

    def create_text(self, *coords, **options):
        self.items.append(("text", coords, options))
        return len(self.items)

    def texts(self):
        return [options.get("text") for kind, _, options in self.items if kind == "text"]

    def rectangles(self):
        return [(coords, options) for kind, coords, options in self.items if kind == "rectangle"]


class FakeWidget:
    """Stands in for a Tk widget: bindings, after() callbacks and the bell."""

    def __init__(self):
        self.bindings = {}
        self.scheduled = []
        self.bells = 0
        self.titles = []

    def bind(self, sequence, callback):
        self.bindings[sequence] = callback

    def unbind(self, sequence):
        self.bindings.pop(sequence, None)

    def after(self, delay, callback):
        self.scheduled.append((delay, callback))
        return f"after#{len(self.scheduled)}"

    def bell(self):
        self.bells += 1

    def run_scheduled(self):
        pending, self.scheduled = self.scheduled, []
        for _, callback in pending:
            callback()


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def key_event(keysym):
    return SimpleNamespace(keysym=keysym)


def pointer_event(x, y):
    return SimpleNamespace(x=x, y=y)


def without_spawn(grid, result):
    """The grid with the tile spawned by a move taken out again."""
    grid = [row[:] for row in grid]
    if result.spawned is not None:
        row, col, _ = result.spawned
        grid[row][col] = 0
    return grid


@pytest.fixture
def rng():
    return random.Random(2048)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def engine(rng, store):
    return GridEngine(scores=ScoreTracker(store), rng=rng)


@pytest.fixture
def layout():
    return LayoutCalculator(460, 700)


@pytest.fixture
def canvas():
    return FakeCanvas()


@pytest.fixture
def widget():
    return FakeWidget()


@pytest.fixture
def clock():
    return FakeClock()

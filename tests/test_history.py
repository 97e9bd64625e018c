import pytest

from shiba2048.game_engine import GameState, HistoryStack


def state(n):
    return GameState(grid=((n, 0), (0, 0)), score=n, won=False, keep_playing=False)


def test_pop_returns_most_recent():
    history = HistoryStack()
    history.push(state(2))
    history.push(state(4))
    assert history.pop() == state(4)
    assert history.pop() == state(2)
    assert history.pop() is None


def test_oldest_is_evicted_first():
    history = HistoryStack(capacity=5)
    for n in range(1, 8):
        history.push(state(n))
    assert len(history) == 5
    assert [s.score for s in history] == [3, 4, 5, 6, 7]


def test_peek_and_clear():
    history = HistoryStack()
    assert history.peek() is None
    history.push(state(8))
    assert history.peek() == state(8)
    assert len(history) == 1
    history.clear()
    assert len(history) == 0


def test_only_snapshots_are_accepted():
    history = HistoryStack()
    with pytest.raises(TypeError):
        history.push([[2, 0], [0, 0]])


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        HistoryStack(capacity=0)

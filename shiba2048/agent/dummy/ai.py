import random

import numpy as np
from tqdm import tqdm

from shiba2048.agent.dummy.report import EvalReport

DIRECTIONS = ['up', 'down', 'left', 'right']


class InvariantViolation(AssertionError):
    """The engine broke one of its rules during a soak game."""


def _require(condition, message):
    if not condition:
        raise InvariantViolation(message)


def _compress(row):
    """Push non-zero values to the front (left) of the row."""
    new_row = [num for num in row if num != 0]
    return new_row + [0] * (len(row) - len(new_row))


def _merge(row):
    """Merge adjacent equal tiles from left to right; returns (row, points)."""
    points = 0
    for i in range(len(row) - 1):
        if row[i] != 0 and row[i] == row[i + 1]:
            row[i] *= 2
            points += row[i]
            row[i + 1] = 0
    return row, points


def _slide_left(grid):
    new_grid = []
    points = 0
    for row in grid:
        merged, gained = _merge(_compress(row))
        new_grid.append(_compress(merged))
        points += gained
    return new_grid, points


def _transpose(grid):
    return [list(r) for r in zip(*grid)]


def reference_move(grid, direction):
    """
    Row-by-row compress/merge/compress, independent of the engine's traversal.
    Returns (grid after the slide, points scored); no tile is spawned.
    """
    grid = [list(row) for row in grid]
    if direction == 'left':
        return _slide_left(grid)
    if direction == 'right':
        moved, points = _slide_left([row[::-1] for row in grid])
        return [row[::-1] for row in moved], points
    if direction == 'up':
        moved, points = _slide_left(_transpose(grid))
        return _transpose(moved), points
    if direction == 'down':
        moved, points = _slide_left([row[::-1] for row in _transpose(grid)])
        return _transpose([row[::-1] for row in moved]), points
    raise ValueError(f"Invalid direction: {direction!r}")


def check_move(engine, before, result, history_len, undo_count):
    """
    Compare the engine after one move against the snapshot taken before it.
    `before` is the engine's GameState, history_len and undo_count its
    history length and remaining undos, all captured just before the move.
    """
    after = engine.snapshot()
    expected_grid, expected_points = reference_move(before.grid, result.direction.value)

    if not result:
        _require(expected_grid == before.grid_copy(), f"{result.direction.value} was refused but tiles could move")
        _require(after == before, f"no-op {result.direction.value} changed the state")
        _require(not result.events, "no-op move reported events")
        _require(len(engine.history) == history_len, "no-op move touched the history")
        _require(engine.undo_count == undo_count, "no-op move touched the undo budget")
        return

    landed = after.grid_copy()
    if result.spawned is not None:
        row, col, value = result.spawned
        _require(expected_grid[row][col] == 0, f"tile spawned on a taken cell {(row, col)}")
        _require(landed[row][col] == value, f"spawned tile missing at {(row, col)}")
        landed[row][col] = 0
    _require(
        landed == expected_grid,
        f"{result.direction.value} left tiles at {landed}, expected them to land at {expected_grid}",
    )
    _require(result.score_gained == expected_points, f"scored {result.score_gained}, expected {expected_points}")

    spawned = 1 if result.spawned is not None else 0
    _require(
        after.tile_count() == before.tile_count() - result.merges + spawned,
        f"tile count {after.tile_count()} after {result.merges} merges from {before.tile_count()}",
    )

    merge_events = [e for e in result.events if e.kind == "merge"]
    _require(len(merge_events) == result.merges, "merge events do not match the merge count")
    merge_cells = [e.to_cell for e in merge_events]
    _require(len(set(merge_cells)) == len(merge_cells), f"a cell merged twice in one move: {merge_cells}")
    _require(
        result.score_gained == sum(e.value for e in merge_events),
        "score gain does not match the merged values",
    )
    _require(after.score == before.score + result.score_gained, "score is not the sum of merges")

    expected_history = min(history_len + 1, engine.history.capacity)
    _require(len(engine.history) == expected_history, f"history length {len(engine.history)} != {expected_history}")
    _require(engine.history.peek() == before, "history does not end with the pre-move snapshot")
    _require(engine.undo_count == undo_count, "a move changed the undo budget")

    if before.won:
        _require(not result.won, "win fired twice")
        _require(engine.won, "win latch was released by a move")
    if result.won:
        _require(engine.has_won(), f"win reported without a {engine.win_value} tile")

    _require(result.over == (not engine.moves_available()), "game-over flag disagrees with the board")
    for row in after.grid:
        for value in row:
            _require(value == 0 or (value >= 2 and value & (value - 1) == 0), f"not a tile value: {value}")


class DummyAI:
    """
    Picks random moves from ['up','down','left','right'].

    Used to soak-test the engine: eval() plays whole games and checks every
    move (and, if asked, an occasional undo) against the engine's rules.
    """

    def __init__(self, rng=None, undo_probability=0.0):
        self.rng = rng if rng is not None else random.Random()
        self.undo_probability = undo_probability

    def predict_move(self, state):
        # For this dummy AI, we ignore 'state' and pick a random action
        return self.rng.choice(DIRECTIONS)

    def eval(self, engine, n_episodes=10, check=True, max_moves=100000, progress=True):
        """
        Play n_episodes games to the end.

        :param engine: The GridEngine to drive; it is restarted for each game.
        :param n_episodes: Number of games to run.
        :param check: Raise InvariantViolation as soon as a move breaks a rule.
        :param max_moves: Safety cap on move attempts per game.
        :return: EvalReport over all games.
        """
        scores = []
        highest_tiles = []
        move_counts = []
        undos = 0

        for _ in tqdm(range(n_episodes), desc="Evaluation Progress", leave=False, disable=not progress):
            engine.restart()
            moves = 0

            for _ in range(max_moves):
                if engine.is_done():
                    break

                before = engine.snapshot()
                history_len = len(engine.history)
                undo_count = engine.undo_count

                action = self.predict_move(engine.get_state())
                result = engine.move(action)
                if check:
                    check_move(engine, before, result, history_len, undo_count)
                if not result:
                    continue
                moves += 1

                if self.undo_probability and self.rng.random() < self.undo_probability and engine.can_undo():
                    undone = engine.undo()
                    if check:
                        _require(undone, "undo refused although history and budget were available")
                        _require(engine.snapshot() == before, "undo did not restore the pre-move state")
                        _require(engine.undo_count == undo_count - 1, "undo did not spend exactly one unit")
                    undos += 1

            scores.append(engine.score)
            highest_tiles.append(engine.max_tile())
            move_counts.append(moves)

        return EvalReport(
            scores=np.array(scores, dtype=np.int64),
            highest_tiles=np.array(highest_tiles, dtype=np.int64),
            moves=np.array(move_counts, dtype=np.int64),
            undos=undos,
        )

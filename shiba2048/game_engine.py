import logging
import random
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from shiba2048.scores import ScoreTracker

logger = logging.getLogger(__name__)

GRID_SIZE = 4
WIN_VALUE = 2048
HISTORY_CAPACITY = 5
UNDO_BUDGET = 5
FOUR_PROBABILITY = 0.1

Cell = Tuple[int, int]


class InvalidDirectionError(ValueError):
    """A move was requested in something other than up/down/left/right."""


class InvalidGridError(ValueError):
    """A grid of the wrong shape, or holding a value that is not a tile, was loaded."""


class Direction(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def vector(self) -> Cell:
        """(d_row, d_col) unit step for this direction."""
        return _VECTORS[self]

    @classmethod
    def parse(cls, value):
        """Accept a Direction or one of 'up', 'down', 'left', 'right' (any case)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for direction in cls:
                if direction.value == value.strip().lower():
                    return direction
        raise InvalidDirectionError(
            f"Invalid direction: {value!r}. Must be 'up', 'down', 'left', or 'right'"
        )


_VECTORS = {
    Direction.UP: (-1, 0),
    Direction.DOWN: (1, 0),
    Direction.LEFT: (0, -1),
    Direction.RIGHT: (0, 1),
}


@dataclass(frozen=True)
class MoveEvent:
    """
    One tile movement produced by a move, for the renderer to animate.
    kind is "move" (a tile slid from from_cell to to_cell) or "merge"
    (a doubled tile appeared at to_cell; from_cell == to_cell).
    """
    kind: str
    from_cell: Cell
    to_cell: Cell
    value: int


@dataclass(frozen=True)
class MoveResult:
    direction: Direction
    moved: bool
    events: Tuple[MoveEvent, ...] = ()
    score_gained: int = 0
    merges: int = 0
    spawned: Optional[Tuple[int, int, int]] = None
    won: bool = False
    over: bool = False

    def __bool__(self):
        return self.moved


@dataclass(frozen=True)
class GameState:
    """Immutable snapshot of everything undo has to restore."""
    grid: Tuple[Tuple[int, ...], ...]
    score: int
    won: bool
    keep_playing: bool

    def grid_copy(self) -> List[List[int]]:
        return [list(row) for row in self.grid]

    def tile_count(self) -> int:
        return sum(1 for row in self.grid for value in row if value)


class HistoryStack:
    """
    Bounded buffer of GameState snapshots, oldest first.
    Pushing past capacity drops the oldest snapshot, never a middle one.
    """

    def __init__(self, capacity: int = HISTORY_CAPACITY):
        if capacity < 1:
            raise ValueError(f"History capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._states = deque(maxlen=capacity)

    def push(self, state: GameState):
        if not isinstance(state, GameState):
            raise TypeError(f"Expected a GameState snapshot, got {type(state).__name__}")
        self._states.append(state)

    def pop(self) -> Optional[GameState]:
        if not self._states:
            return None
        return self._states.pop()

    def peek(self) -> Optional[GameState]:
        if not self._states:
            return None
        return self._states[-1]

    def clear(self):
        self._states.clear()

    def __iter__(self):
        return iter(list(self._states))

    def __len__(self):
        return len(self._states)


class GridEngine:
    """
    The 2048 rule set over a square grid of ints (0 marks an empty cell).

    The engine owns the grid, the win/keep-playing/done flags and the undo
    history. Score bookkeeping is delegated to a ScoreTracker, which is the
    only piece that talks to persistent storage.
    """

    def __init__(
        self,
        size=GRID_SIZE,
        scores=None,
        history_capacity=HISTORY_CAPACITY,
        undo_budget=UNDO_BUDGET,
        win_value=WIN_VALUE,
        four_probability=FOUR_PROBABILITY,
        rng=None,
    ):
        if size < 2:
            raise InvalidGridError(f"Grid size must be at least 2, got {size}")
        self.size = size
        self.scores = scores if scores is not None else ScoreTracker()
        self.history = HistoryStack(history_capacity)
        self.undo_budget = undo_budget
        self.win_value = win_value
        self.four_probability = four_probability
        self.rng = rng if rng is not None else random.Random()

        self.grid = [[0] * size for _ in range(size)]
        self.won = False
        self.keep_playing = False
        self.done = False  # True when no more moves are possible
        self.undo_count = undo_budget
        self.restart()

    # -------------------------------------------------------------------------
    #                              GAME LIFECYCLE
    # -------------------------------------------------------------------------
    def reset_grid(self):
        """Empty the grid and clear score, flags, history and the undo budget."""
        self.grid = [[0] * self.size for _ in range(self.size)]
        self.scores.reset()
        self.won = False
        self.keep_playing = False
        self.done = False
        self.history.clear()
        self.undo_count = self.undo_budget
        logger.debug("Grid reset")

    def restart(self):
        """Start a new game: empty grid plus two random tiles."""
        self.reset_grid()
        self.add_random_tile()
        self.add_random_tile()
        logger.debug("New game started, best score %d", self.scores.best_score)

    reset = restart

    def continue_game(self):
        """After a win, keep accepting moves without re-announcing the win."""
        self.keep_playing = True
        logger.debug("Keep playing after win")

    # -------------------------------------------------------------------------
    #                              TILE SPAWNING
    # -------------------------------------------------------------------------
    def empty_cells(self) -> List[Cell]:
        return [
            (row, col)
            for row in range(self.size)
            for col in range(self.size)
            if self.grid[row][col] == 0
        ]

    def add_random_tile(self):
        """
        Put a 2 (or, with four_probability, a 4) into a uniformly chosen empty cell.
        Returns (row, col, value), or None when the grid is full.
        """
        empty_cells = self.empty_cells()
        if not empty_cells:
            logger.debug("No empty cells available")
            return None
        row, col = self.rng.choice(empty_cells)
        value = 4 if self.rng.random() < self.four_probability else 2
        self.grid[row][col] = value
        logger.debug("Added random tile %d at (%d, %d)", value, row, col)
        return row, col, value

    # -------------------------------------------------------------------------
    #                                 MOVING
    # -------------------------------------------------------------------------
    def _build_traversals(self, vector):
        """Row and column orders that visit the cells nearest the target edge first."""
        rows = list(range(self.size))
        cols = list(range(self.size))
        if vector[0] == 1:
            rows.reverse()
        if vector[1] == 1:
            cols.reverse()
        return rows, cols

    def _within_bounds(self, cell):
        return 0 <= cell[0] < self.size and 0 <= cell[1] < self.size

    def _find_farthest_position(self, cell, vector):
        """
        Slide from cell while the next cell is empty.
        Returns (farthest empty cell reached, first blocking cell beyond it);
        the blocking cell may lie outside the grid.
        """
        previous = cell
        nxt = (cell[0] + vector[0], cell[1] + vector[1])
        while self._within_bounds(nxt) and self.grid[nxt[0]][nxt[1]] == 0:
            previous = nxt
            nxt = (nxt[0] + vector[0], nxt[1] + vector[1])
        return previous, nxt

    def move(self, direction) -> MoveResult:
        """
        Slide and merge every tile towards direction.

        A tile produced by a merge never merges again in the same call.
        If nothing moved the grid, score, history and undo budget are untouched
        and no tile spawns. Otherwise the pre-move snapshot goes onto the
        history, one random tile spawns and the win/game-over flags are updated.
        """
        direction = Direction.parse(direction)
        vector = direction.vector
        rows, cols = self._build_traversals(vector)

        before = self.snapshot()
        merged = [[False] * self.size for _ in range(self.size)]
        events = []
        score_gained = 0
        merges = 0

        for row in rows:
            for col in cols:
                value = self.grid[row][col]
                if value == 0:
                    continue

                farthest, blocking = self._find_farthest_position((row, col), vector)

                if (
                    self._within_bounds(blocking)
                    and self.grid[blocking[0]][blocking[1]] == value
                    and not merged[blocking[0]][blocking[1]]
                ):
                    merged_value = value * 2
                    self.grid[blocking[0]][blocking[1]] = merged_value
                    self.grid[row][col] = 0
                    merged[blocking[0]][blocking[1]] = True

                    self.scores.add(merged_value)
                    score_gained += merged_value
                    merges += 1

                    events.append(MoveEvent("move", (row, col), blocking, value))
                    events.append(MoveEvent("merge", blocking, blocking, merged_value))
                    logger.debug("Merged %d + %d = %d at %s", value, value, merged_value, blocking)
                elif farthest != (row, col):
                    self.grid[farthest[0]][farthest[1]] = value
                    self.grid[row][col] = 0
                    events.append(MoveEvent("move", (row, col), farthest, value))

        if not events:
            logger.debug("No tiles moved %s", direction.value)
            return MoveResult(direction=direction, moved=False)

        self.history.push(before)
        spawned = self.add_random_tile()
        won_now = self._check_win()
        self.done = not self.moves_available()
        if self.done:
            logger.info("Game over, no more moves available. Score: %d", self.score)

        return MoveResult(
            direction=direction,
            moved=True,
            events=tuple(events),
            score_gained=score_gained,
            merges=merges,
            spawned=spawned,
            won=won_now,
            over=self.done,
        )

    # -------------------------------------------------------------------------
    #                                  UNDO
    # -------------------------------------------------------------------------
    def can_undo(self) -> bool:
        return self.undo_count > 0 and len(self.history) > 0

    def undo(self) -> bool:
        """Restore the most recent snapshot. Costs one unit of the undo budget."""
        if self.undo_count <= 0:
            logger.debug("No undo attempts remaining")
            return False
        state = self.history.pop()
        if state is None:
            logger.debug("No history available for undo")
            return False

        self.grid = state.grid_copy()
        self.scores.restore(state.score)
        self.won = state.won
        self.keep_playing = state.keep_playing
        self.undo_count -= 1
        self.done = not self.moves_available()
        logger.debug("Undo successful. Remaining undo count: %d", self.undo_count)
        return True

    # -------------------------------------------------------------------------
    #                            WIN / GAME OVER
    # -------------------------------------------------------------------------
    def has_won(self) -> bool:
        return any(value == self.win_value for row in self.grid for value in row)

    def _check_win(self) -> bool:
        """Latch the win flag; True only on the call that latched it."""
        if self.won or not self.has_won():
            return False
        self.won = True
        logger.info("Player won! Reached %d", self.win_value)
        return True

    def moves_available(self) -> bool:
        """True if any cell is empty or two orthogonal neighbours hold equal values."""
        for i in range(self.size):
            for j in range(self.size):
                if self.grid[i][j] == 0:
                    return True
                # check horizontal neighbor
                if j < self.size - 1 and self.grid[i][j] == self.grid[i][j + 1]:
                    return True
                # check vertical neighbor
                if i < self.size - 1 and self.grid[i][j] == self.grid[i + 1][j]:
                    return True
        return False

    def is_game_over(self) -> bool:
        return not self.moves_available()

    # -------------------------------------------------------------------------
    #                           STATE ACCESS / SEEDING
    # -------------------------------------------------------------------------
    @property
    def score(self) -> int:
        return self.scores.score

    @property
    def best_score(self) -> int:
        return self.scores.best_score

    def snapshot(self) -> GameState:
        return GameState(
            grid=tuple(tuple(row) for row in self.grid),
            score=self.score,
            won=self.won,
            keep_playing=self.keep_playing,
        )

    def load_state(self, state, score=0, won=False, keep_playing=False):
        """
        Replace the position with state, either a GameState or a grid of ints.
        The history is cleared; the undo budget is left alone.
        """
        if isinstance(state, GameState):
            grid, score, won, keep_playing = state.grid, state.score, state.won, state.keep_playing
        else:
            grid = state
        self.grid = self._validated_grid(grid)
        self.scores.restore(score)
        self.won = won
        self.keep_playing = keep_playing
        self.history.clear()
        self.done = not self.moves_available()

    def _validated_grid(self, grid: Sequence[Sequence[int]]) -> List[List[int]]:
        if len(grid) != self.size:
            raise InvalidGridError(f"Expected {self.size} rows, received {len(grid)}")
        rows = []
        for row in grid:
            if len(row) != self.size:
                raise InvalidGridError(f"Expected rows of {self.size} cells, received {len(row)}")
            for value in row:
                if not isinstance(value, int) or value < 0 or (value and (value < 2 or value & (value - 1))):
                    raise InvalidGridError(f"Not a tile value: {value!r}")
            rows.append(list(row))
        return rows

    def get_state(self) -> List[List[int]]:
        """Return a copy of the current grid."""
        return [row[:] for row in self.grid]

    def tile_count(self) -> int:
        return sum(1 for row in self.grid for value in row if value)

    def max_tile(self) -> int:
        return max(value for row in self.grid for value in row)

    def get_score(self) -> int:
        return self.score

    def is_done(self) -> bool:
        return self.done

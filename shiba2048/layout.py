"""
Screen geometry shared by the renderer (where to draw) and the input manager
(what was clicked). Both must agree on every rectangle, so neither computes
positions on its own.
"""

from dataclasses import dataclass

from shiba2048.game_engine import GRID_SIZE

HORIZONTAL_PADDING = 40
HEADER_HEIGHT = 120  # score boxes + button row
VERTICAL_MARGIN = 100
CELL_PADDING = 12
COMPACT_CELL_PADDING = 10
COMPACT_WIDTH = 375

SCORE_BOX_WIDTH = 90
SCORE_BOX_HEIGHT = 60
BUTTON_WIDTH = 80
BUTTON_HEIGHT = 45
SMALL_BUTTON_SIZE = 50
SPACING = 10

MESSAGE_BOX_WIDTH = 300
MESSAGE_BOX_HEIGHT = 200
MESSAGE_BUTTON_WIDTH = 120
MESSAGE_BUTTON_HEIGHT = 40
MESSAGE_BUTTON_SPACING = 20


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self):
        return self.x + self.width

    @property
    def bottom(self):
        return self.y + self.height

    @property
    def center(self):
        return self.x + self.width / 2, self.y + self.height / 2

    def contains(self, x, y) -> bool:
        return self.x <= x <= self.right and self.y <= y <= self.bottom


class LayoutCalculator:
    def __init__(self, width, height, grid_size=GRID_SIZE):
        self.grid_size = grid_size
        self.resize(width, height)

    def resize(self, width, height):
        """Recompute every position for a window of width x height pixels."""
        self.width = width
        self.height = height

        available_width = width - HORIZONTAL_PADDING
        available_height = height - VERTICAL_MARGIN
        self.grid_width = min(available_width, available_height - HEADER_HEIGHT)
        if self.grid_width <= 0:
            raise ValueError(f"Window {width}x{height} is too small for the board")

        self.cell_padding = COMPACT_CELL_PADDING if width < COMPACT_WIDTH else CELL_PADDING
        n = self.grid_size
        self.cell_size = (self.grid_width - self.cell_padding * (n + 1)) / n

        top_offset = (height - (HEADER_HEIGHT + self.grid_width)) / 2
        self.header_y = top_offset
        self.grid_x = (width - self.grid_width) / 2
        self.grid_y = top_offset + HEADER_HEIGHT

    # -------------------------------------------------------------------------
    #                                  BOARD
    # -------------------------------------------------------------------------
    def grid_rect(self) -> Rect:
        return Rect(self.grid_x, self.grid_y, self.grid_width, self.grid_width)

    def cell_rect(self, row, col) -> Rect:
        step = self.cell_size + self.cell_padding
        x = self.grid_x + col * step + self.cell_padding
        y = self.grid_y + row * step + self.cell_padding
        return Rect(x, y, self.cell_size, self.cell_size)

    # -------------------------------------------------------------------------
    #                                  HEADER
    # -------------------------------------------------------------------------
    def score_boxes(self):
        right = self.grid_x + self.grid_width
        best_x = right - SCORE_BOX_WIDTH
        score_x = best_x - SCORE_BOX_WIDTH - SPACING
        return {
            "score": Rect(score_x, self.header_y, SCORE_BOX_WIDTH, SCORE_BOX_HEIGHT),
            "best": Rect(best_x, self.header_y, SCORE_BOX_WIDTH, SCORE_BOX_HEIGHT),
        }

    def button_row_y(self):
        return self.header_y + SCORE_BOX_HEIGHT + SPACING + 5

    def header_buttons(self):
        """New, Undo, Sound and Theme buttons, laid out right to left from the grid edge."""
        y = self.button_row_y()
        theme_x = self.grid_x + self.grid_width - SMALL_BUTTON_SIZE
        sound_x = theme_x - SMALL_BUTTON_SIZE - SPACING
        undo_x = sound_x - BUTTON_WIDTH - SPACING
        new_x = undo_x - BUTTON_WIDTH - SPACING
        return {
            "new": Rect(new_x, y, BUTTON_WIDTH, BUTTON_HEIGHT),
            "undo": Rect(undo_x, y, BUTTON_WIDTH, BUTTON_HEIGHT),
            "sound": Rect(sound_x, y, SMALL_BUTTON_SIZE, BUTTON_HEIGHT),
            "theme": Rect(theme_x, y, SMALL_BUTTON_SIZE, BUTTON_HEIGHT),
        }

    # -------------------------------------------------------------------------
    #                              MESSAGE POPUP
    # -------------------------------------------------------------------------
    def message_box(self) -> Rect:
        return Rect(
            self.width / 2 - MESSAGE_BOX_WIDTH / 2,
            self.height / 2 - MESSAGE_BOX_HEIGHT / 2,
            MESSAGE_BOX_WIDTH,
            MESSAGE_BOX_HEIGHT,
        )

    def message_buttons(self, actions):
        """Popup buttons centred as a row near the bottom of the message box."""
        actions = list(actions)
        if not actions:
            return {}
        box = self.message_box()
        total = len(actions) * MESSAGE_BUTTON_WIDTH + (len(actions) - 1) * MESSAGE_BUTTON_SPACING
        start_x = self.width / 2 - total / 2
        y = box.bottom - 60
        return {
            action: Rect(
                start_x + i * (MESSAGE_BUTTON_WIDTH + MESSAGE_BUTTON_SPACING),
                y,
                MESSAGE_BUTTON_WIDTH,
                MESSAGE_BUTTON_HEIGHT,
            )
            for i, action in enumerate(actions)
        }

    def hit_test(self, x, y, message_actions=()):
        """Return the button type under (x, y), or None. Popup buttons are checked first."""
        for action, rect in self.message_buttons(message_actions).items():
            if rect.contains(x, y):
                return action
        for name, rect in self.header_buttons().items():
            if rect.contains(x, y):
                return name
        return None

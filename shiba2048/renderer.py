import logging
import math
import time
import tkinter as tk
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

DARK_MODE_KEY = "darkMode"

ACCENT_COLOR = "#f59563"
THEMES = {
    "light": {
        "background": "#fff8f0",
        "cell": "#cbb5a0",
        "hint": "#a89080",
        "button": "#d4c5b0",
        "button_text": "#6b5544",
        "message_bg": "#fff8f0",
        "message_border": "#e8d4bc",
        "message_text": "#000000",
    },
    "dark": {
        "background": "#2c2416",
        "cell": "#3a2a1a",
        "hint": "#8b7a6a",
        "button": "#4a3a2a",
        "button_text": "#e8d4bc",
        "message_bg": "#3d2f1f",
        "message_border": "#5c4a2f",
        "message_text": "#ffffff",
    },
}
CELL_COLORS = {
    2: "#ffefd5",
    4: "#ffe4b5",
    8: "#ffd89b",
    16: "#ffcc80",
    32: "#ffb74d",
    64: "#ffa726",
    128: "#ff9800",
    256: "#fb8c00",
    512: "#f57c00",
    1024: "#ef6c00",
    2048: "#e65100",
}
EXTRA_CELL_COLOR = "#bf360c"  # anything above 2048
DARK_TEXT_COLOR = "#8b6f47"
LIGHT_TEXT_COLOR = "#ffffff"
WIN_COLOR = "#4caf50"
LOSE_COLOR = "#f44336"
RESTART_COLOR = "#ff9800"

FONT_FAMILY = "Verdana"
ANIMATION_DURATION = 0.1  # seconds
THEME_TRANSITION_DURATION = 0.3
MERGE_PULSE = 0.2


def get_tile_color(value):
    return CELL_COLORS.get(value, EXTRA_CELL_COLOR)


def get_text_color(value):
    return DARK_TEXT_COLOR if value <= 4 else LIGHT_TEXT_COLOR


def ease_out_cubic(t):
    return 1 - (1 - t) ** 3


def ease_in_out_cubic(t):
    if t < 0.5:
        return 4 * t * t * t
    return 1 - (-2 * t + 2) ** 3 / 2


def parse_color(color):
    hex_value = color.lstrip("#")
    if len(hex_value) == 3:
        hex_value = "".join(c * 2 for c in hex_value)
    return tuple(int(hex_value[i:i + 2], 16) for i in (0, 2, 4))


def interpolate_color(color1, color2, factor):
    """Linear blend between two #rrggbb colours; factor 0 gives color1."""
    c1 = parse_color(color1)
    c2 = parse_color(color2)
    r, g, b = (round(a + (b - a) * factor) for a, b in zip(c1, c2))
    return f"#{r:02x}{g:02x}{b:02x}"


@dataclass(frozen=True)
class Message:
    kind: str  # "win" or "gameover"
    title: str
    text: str
    buttons: Tuple[Tuple[str, str], ...]  # (label, action)


@dataclass(frozen=True)
class _Animation:
    kind: str
    from_cell: Tuple[int, int]
    to_cell: Tuple[int, int]
    value: int
    start: float


class Renderer:
    """
    Draws the whole game onto a Tk canvas on every call to render().

    Move and merge animations are fed in from the engine's event list and
    interpolated against the clock; the theme switch fades over 300 ms.
    """

    def __init__(self, canvas, layout, storage=None, audio=None, clock=time.monotonic):
        self.canvas = canvas
        self.layout = layout
        self.storage = storage
        self.audio = audio
        self.clock = clock

        self.theme = "light"
        self.target_theme = "light"
        self.transition_start: Optional[float] = None

        self.message: Optional[Message] = None
        self.animations = []

        self.load_theme_settings()

    # -------------------------------------------------------------------------
    #                                  THEME
    # -------------------------------------------------------------------------
    def load_theme_settings(self):
        if self.storage is None:
            return
        self.theme = "dark" if self.storage.get(DARK_MODE_KEY, "false") == "true" else "light"
        self.target_theme = self.theme
        logger.debug("Theme settings loaded: theme=%s", self.theme)

    def get_theme(self):
        return self.target_theme

    def set_theme(self, theme) -> bool:
        if theme not in THEMES:
            logger.warning("Invalid theme: %s", theme)
            return False
        if theme == self.target_theme:
            return False

        now = self.clock()
        if self.transition_start is not None and theme == self.theme:
            # Run the fade in progress backwards from the colour on screen
            remaining = 1.0 - self._transition_progress(now)
            self.theme = self.target_theme
            self.transition_start = now - remaining * THEME_TRANSITION_DURATION
        else:
            self.transition_start = now
        self.target_theme = theme
        if self.storage is not None and not self.storage.set(DARK_MODE_KEY, theme == "dark"):
            logger.warning("Theme changed to %s but not persisted", theme)
        logger.debug("Starting theme transition from %s to %s", self.theme, theme)
        return True

    def toggle_theme(self):
        new_theme = "light" if self.get_theme() == "dark" else "dark"
        self.set_theme(new_theme)
        return new_theme

    def is_theme_transitioning(self) -> bool:
        return self.transition_start is not None

    def _transition_progress(self, now):
        return min((now - self.transition_start) / THEME_TRANSITION_DURATION, 1.0)

    def _update_theme_transition(self, now):
        if self.transition_start is None:
            return
        if self._transition_progress(now) >= 1.0:
            self.theme = self.target_theme
            self.transition_start = None

    def theme_color(self, key, now=None):
        if self.transition_start is None:
            return THEMES[self.theme][key]
        now = self.clock() if now is None else now
        progress = ease_in_out_cubic(self._transition_progress(now))
        return interpolate_color(THEMES[self.theme][key], THEMES[self.target_theme][key], progress)

    # -------------------------------------------------------------------------
    #                                 MESSAGES
    # -------------------------------------------------------------------------
    def set_message(self, message: Message):
        self.message = message
        logger.debug("Message set: %s", message.kind)

    def clear_message(self):
        self.message = None

    def message_actions(self):
        if self.message is None:
            return ()
        return tuple(action for _, action in self.message.buttons)

    # -------------------------------------------------------------------------
    #                                ANIMATIONS
    # -------------------------------------------------------------------------
    def add_move_animation(self, from_cell, to_cell, value):
        self.animations.append(_Animation("move", tuple(from_cell), tuple(to_cell), value, self.clock()))

    def add_merge_animation(self, cell, value):
        self.animations.append(_Animation("merge", tuple(cell), tuple(cell), value, self.clock()))

    def apply_events(self, events):
        """Replace running animations with the ones described by a move's events."""
        self.clear_animations()
        for event in events:
            if event.kind == "merge":
                self.add_merge_animation(event.to_cell, event.value)
            else:
                self.add_move_animation(event.from_cell, event.to_cell, event.value)

    def _update_animations(self, now):
        self.animations = [a for a in self.animations if now - a.start < ANIMATION_DURATION]

    def clear_animations(self):
        self.animations = []

    def has_active_animations(self) -> bool:
        return bool(self.animations)

    def needs_redraw(self) -> bool:
        return self.has_active_animations() or self.is_theme_transitioning()

    # -------------------------------------------------------------------------
    #                                 DRAWING
    # -------------------------------------------------------------------------
    def render(self, grid, score, best_score, undo_count):
        now = self.clock()
        self._update_theme_transition(now)
        self._update_animations(now)
        try:
            self.canvas.delete("all")
            self.draw_background(now)
            self.draw_header(score, best_score, undo_count, now)
            self.draw_grid(now)
            if self.animations:
                self.draw_tiles_with_animations(grid, now)
            else:
                self.draw_tiles(grid)
            self.draw_message(now)
        except tk.TclError as e:
            logger.error("Failed to render: %s", e)

    def draw_background(self, now):
        self.canvas.create_rectangle(
            0, 0, self.layout.width, self.layout.height,
            fill=self.theme_color("background", now), outline="",
        )

    def draw_header(self, score, best_score, undo_count, now):
        layout = self.layout
        self.canvas.create_text(
            layout.grid_x, layout.header_y + 30, text="2048", anchor="w",
            font=(FONT_FAMILY, 36, "bold"), fill=ACCENT_COLOR,
        )

        boxes = layout.score_boxes()
        for key, label, value in (("score", "SCORE", score), ("best", "BEST", best_score)):
            box = boxes[key]
            self.canvas.create_rectangle(box.x, box.y, box.right, box.bottom, fill=ACCENT_COLOR, outline="")
            self.canvas.create_text(
                box.center[0], box.y + 14, text=label,
                font=(FONT_FAMILY, 10, "bold"), fill=LIGHT_TEXT_COLOR,
            )
            self.canvas.create_text(
                box.center[0], box.bottom - 20, text=str(value),
                font=(FONT_FAMILY, 18, "bold"), fill=LIGHT_TEXT_COLOR,
            )

        row_y = layout.button_row_y()
        self.canvas.create_text(
            layout.grid_x, row_y + 16, text="Join the numbers to\nget to 2048!", anchor="w",
            font=(FONT_FAMILY, 10), fill=self.theme_color("hint", now),
        )

        muted = self.audio is not None and self.audio.is_muted()
        labels = {
            "new": "New",
            "undo": f"Undo ({undo_count})",
            "sound": "✕" if muted else "♪",
            "theme": "☀" if self.get_theme() == "dark" else "☾",
        }
        for name, rect in layout.header_buttons().items():
            if name == "undo":
                fill, text_fill = self.theme_color("button", now), self.theme_color("button_text", now)
            else:
                fill, text_fill = ACCENT_COLOR, LIGHT_TEXT_COLOR
            self.canvas.create_rectangle(rect.x, rect.y, rect.right, rect.bottom, fill=fill, outline="")
            self.canvas.create_text(
                rect.center[0], rect.center[1], text=labels[name],
                font=(FONT_FAMILY, 12, "bold"), fill=text_fill,
            )

    def draw_grid(self, now):
        cell_color = self.theme_color("cell", now)
        for i in range(self.layout.grid_size):
            for j in range(self.layout.grid_size):
                rect = self.layout.cell_rect(i, j)
                self.canvas.create_rectangle(rect.x, rect.y, rect.right, rect.bottom, fill=cell_color, outline="")

    def draw_single_tile(self, i, j, value, offset_x=0, offset_y=0, scale=1.0):
        """
        Draws a single tile at (i,j).
        offset_x/offset_y slide it (move animation), scale grows it around its centre (merge pulse).
        """
        rect = self.layout.cell_rect(i, j)
        x_center = rect.center[0] + offset_x
        y_center = rect.center[1] + offset_y
        half = rect.width * scale / 2
        self.canvas.create_rectangle(
            x_center - half, y_center - half, x_center + half, y_center + half,
            fill=get_tile_color(value), outline="",
        )
        font_size = rect.width * 0.25 * scale
        if value >= 1024:
            font_size *= 0.7
        font_size = max(8, int(font_size))
        self.canvas.create_text(
            x_center, y_center, text=str(value),
            font=(FONT_FAMILY, font_size, "bold"), fill=get_text_color(value),
        )

    def draw_tiles(self, grid):
        for i, row in enumerate(grid):
            for j, value in enumerate(row):
                if value:
                    self.draw_single_tile(i, j, value)

    def draw_tiles_with_animations(self, grid, now):
        step = self.layout.cell_size + self.layout.cell_padding
        arriving = set()

        # 1. Tiles in flight, drawn from their source cell
        for anim in self.animations:
            if anim.kind != "move":
                continue
            t = ease_out_cubic(min((now - anim.start) / ANIMATION_DURATION, 1.0))
            offset_x = (anim.to_cell[1] - anim.from_cell[1]) * step * t
            offset_y = (anim.to_cell[0] - anim.from_cell[0]) * step * t
            self.draw_single_tile(anim.from_cell[0], anim.from_cell[1], anim.value, offset_x, offset_y)
            arriving.add(anim.to_cell)

        # 2. Merged tiles pulse, everything else not in flight is drawn in place
        merges = {anim.to_cell: anim for anim in self.animations if anim.kind == "merge"}
        for i, row in enumerate(grid):
            for j, value in enumerate(row):
                if not value:
                    continue
                merge = merges.get((i, j))
                if merge is not None:
                    progress = min((now - merge.start) / ANIMATION_DURATION, 1.0)
                    self.draw_single_tile(i, j, value, scale=1 + math.sin(progress * math.pi) * MERGE_PULSE)
                elif (i, j) not in arriving:
                    self.draw_single_tile(i, j, value)

    def draw_message(self, now):
        if self.message is None:
            return
        layout = self.layout
        self.canvas.create_rectangle(
            0, 0, layout.width, layout.height, fill="#000000", stipple="gray50", outline="",
        )

        box = layout.message_box()
        self.canvas.create_rectangle(
            box.x, box.y, box.right, box.bottom,
            fill=self.theme_color("message_bg", now),
            outline=self.theme_color("message_border", now), width=3,
        )
        center_x = box.center[0]
        self.canvas.create_text(
            center_x, box.y + 45, text=self.message.title,
            font=(FONT_FAMILY, 24, "bold"),
            fill=WIN_COLOR if self.message.kind == "win" else LOSE_COLOR,
        )
        self.canvas.create_text(
            center_x, box.y + 90, text=self.message.text,
            font=(FONT_FAMILY, 14), fill=self.theme_color("message_text", now),
        )

        rects = layout.message_buttons(self.message_actions())
        for label, action in self.message.buttons:
            rect = rects[action]
            self.canvas.create_rectangle(
                rect.x, rect.y, rect.right, rect.bottom,
                fill=WIN_COLOR if action == "continue" else RESTART_COLOR, outline="",
            )
            self.canvas.create_text(
                rect.center[0], rect.center[1], text=label,
                font=(FONT_FAMILY, 12, "bold"), fill=LIGHT_TEXT_COLOR,
            )

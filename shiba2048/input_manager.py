import logging
import math
import time

logger = logging.getLogger(__name__)

KEY_DIRECTIONS = {
    "Up": "up",
    "Down": "down",
    "Left": "left",
    "Right": "right",
    "w": "up",
    "s": "down",
    "a": "left",
    "d": "right",
}
SWIPE_THRESHOLD = 20  # pixels
CLICK_MAX_DISTANCE = 10  # pixels
CLICK_MAX_DURATION = 0.3  # seconds


class InputManager:
    """
    Turns Tk keyboard and pointer events into direction and button events.

    A press/release pair is a click if the pointer travelled less than 10 px
    within 300 ms; otherwise it is a swipe along its dominant axis, provided
    it travelled more than 20 px. Clicks are resolved to buttons through the
    same LayoutCalculator the renderer draws with.
    """

    def __init__(self, widget, layout, pointer_widget=None, clock=time.monotonic):
        self.widget = widget
        self.pointer_widget = pointer_widget if pointer_widget is not None else widget
        self.layout = layout
        self.clock = clock

        self.on_move = None
        self.on_button_click = None
        self.message_actions = ()
        self._touch_start = None  # (x, y, time)

        self.bind_events()

    def bind_events(self):
        self.widget.bind("<KeyPress>", self.on_key)
        self.pointer_widget.bind("<ButtonPress-1>", self.on_press)
        self.pointer_widget.bind("<ButtonRelease-1>", self.on_release)

    # -------------------------------------------------------------------------
    #                        KEYBOARD EVENTS
    # -------------------------------------------------------------------------
    def on_key(self, event):
        keysym = event.keysym if len(event.keysym) > 1 else event.keysym.lower()
        direction = KEY_DIRECTIONS.get(keysym)
        if direction is not None:
            self._emit_move(direction)

    # -------------------------------------------------------------------------
    #                        POINTER EVENTS
    # -------------------------------------------------------------------------
    def on_press(self, event):
        self._touch_start = (event.x, event.y, self.clock())

    def on_release(self, event):
        if self._touch_start is None:
            return
        start_x, start_y, start_time = self._touch_start
        self._touch_start = None

        dx = event.x - start_x
        dy = event.y - start_y
        duration = self.clock() - start_time
        if math.hypot(dx, dy) < CLICK_MAX_DISTANCE and duration < CLICK_MAX_DURATION:
            self.handle_click(event.x, event.y)
        else:
            self.handle_swipe(dx, dy)

    def handle_swipe(self, dx, dy):
        if max(abs(dx), abs(dy)) <= SWIPE_THRESHOLD:
            return None
        if abs(dx) > abs(dy):
            direction = "right" if dx > 0 else "left"
        else:
            direction = "down" if dy > 0 else "up"
        self._emit_move(direction)
        return direction

    def handle_click(self, x, y):
        button_type = self.layout.hit_test(x, y, self.message_actions)
        if button_type is None:
            logger.debug("No button at (%s, %s)", x, y)
            return None
        logger.debug("Button detected: %s", button_type)
        if self.on_button_click is not None:
            self.on_button_click(button_type)
        return button_type

    def _emit_move(self, direction):
        if self.on_move is not None:
            self.on_move(direction)

    # -------------------------------------------------------------------------
    #                              CALLBACKS
    # -------------------------------------------------------------------------
    def set_move_callback(self, callback):
        self.on_move = callback

    def set_button_click_callback(self, callback):
        self.on_button_click = callback

    def set_message_actions(self, actions):
        """Popup buttons currently on screen, checked before the header buttons."""
        self.message_actions = tuple(actions)

    def destroy(self):
        self.on_move = None
        self.on_button_click = None
        self.widget.unbind("<KeyPress>")
        self.pointer_widget.unbind("<ButtonPress-1>")
        self.pointer_widget.unbind("<ButtonRelease-1>")

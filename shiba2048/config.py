import logging
import os
from dataclasses import dataclass, field, fields
from typing import Optional

from shiba2048.game_engine import FOUR_PROBABILITY, GRID_SIZE, HISTORY_CAPACITY, UNDO_BUDGET, WIN_VALUE

ENV_PREFIX = "SHIBA2048_"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s %(message)s"


def default_storage_path():
    return os.path.join(os.path.expanduser("~"), ".shiba2048", "storage.json")


@dataclass(frozen=True)
class GameConfig:
    grid_size: int = GRID_SIZE
    history_capacity: int = HISTORY_CAPACITY
    undo_budget: int = UNDO_BUDGET
    win_value: int = WIN_VALUE
    four_probability: float = FOUR_PROBABILITY
    storage_path: str = field(default_factory=default_storage_path)
    window_width: int = 460
    window_height: int = 700
    seed: Optional[int] = None
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ=None, **overrides):
        """
        Build a config from SHIBA2048_* variables, e.g. SHIBA2048_STORAGE_PATH,
        SHIBA2048_SEED or SHIBA2048_LOG_LEVEL. SHIBA2048_STORAGE is accepted as
        a short name for the storage path. Explicit keyword overrides win.
        """
        environ = os.environ if environ is None else environ
        values = {}
        if environ.get(ENV_PREFIX + "STORAGE"):
            values["storage_path"] = environ[ENV_PREFIX + "STORAGE"]

        for f in fields(cls):
            name = ENV_PREFIX + f.name.upper()
            raw = environ.get(name)
            if raw is None or raw == "":
                continue
            values[f.name] = _convert(name, raw, f.name)

        values.update({k: v for k, v in overrides.items() if v is not None})
        config = cls(**values)
        config.validate()
        return config

    def validate(self):
        if self.grid_size < 2:
            raise ValueError(f"grid_size must be at least 2, got {self.grid_size}")
        if self.history_capacity < 1:
            raise ValueError(f"history_capacity must be at least 1, got {self.history_capacity}")
        if self.undo_budget < 0:
            raise ValueError(f"undo_budget cannot be negative, got {self.undo_budget}")
        if not 0.0 <= self.four_probability <= 1.0:
            raise ValueError(f"four_probability must be within [0, 1], got {self.four_probability}")
        if self.win_value < 4 or self.win_value & (self.win_value - 1):
            raise ValueError(f"win_value must be a power of two, got {self.win_value}")


_FLOAT_FIELDS = {"four_probability"}
_STR_FIELDS = {"storage_path", "log_level"}


def _convert(name, raw, field_name):
    if field_name in _STR_FIELDS:
        return raw
    try:
        if field_name in _FLOAT_FIELDS:
            return float(raw)
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def configure_logging(level="WARNING"):
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format=LOG_FORMAT)

import logging

logger = logging.getLogger(__name__)

BEST_SCORE_KEY = "bestScore"


class ScoreTracker:
    """
    Running score plus the best score ever reached.

    The best score is loaded from the KeyValueStore on construction and written
    back whenever the running score passes it. A failed write only costs
    persistence: the in-memory best score stays correct.
    """

    def __init__(self, storage=None):
        self.storage = storage
        self.score = 0
        self.best_score = 0
        self.load_best_score()

    def load_best_score(self) -> int:
        if self.storage is None:
            self.best_score = 0
            return 0

        raw = self.storage.get(BEST_SCORE_KEY, "0")
        try:
            best = int(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring unreadable best score %r", raw)
            best = 0
        if best < 0:
            logger.warning("Ignoring negative best score %d", best)
            best = 0

        self.best_score = best
        logger.debug("Best score loaded: %d", best)
        return best

    def add(self, points: int) -> int:
        if points < 0:
            raise ValueError(f"Score can only grow, got {points} points")
        self.score += points
        if self.score > self.best_score:
            self.best_score = self.score
            self._save_best_score()
        return self.score

    def reset(self):
        self.score = 0

    def restore(self, score: int):
        """Set the running score from an undo snapshot; the best score is untouched."""
        if score < 0:
            raise ValueError(f"Score cannot be negative, got {score}")
        self.score = score

    def _save_best_score(self) -> bool:
        if self.storage is None:
            return False
        if not self.storage.set(BEST_SCORE_KEY, str(self.best_score)):
            logger.warning("Failed to save best score %d, keeping it in memory only", self.best_score)
            return False
        logger.debug("New best score saved: %d", self.best_score)
        return True

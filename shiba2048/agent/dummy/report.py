from dataclasses import dataclass

import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure


@dataclass
class EvalReport:
    scores: np.ndarray
    highest_tiles: np.ndarray
    moves: np.ndarray
    undos: int = 0

    @property
    def games(self):
        return len(self.scores)

    @property
    def avg_score(self):
        return float(np.mean(self.scores)) if self.games else 0.0

    @property
    def score_std(self):
        return float(np.std(self.scores)) if self.games else 0.0

    @property
    def max_score(self):
        return int(np.max(self.scores)) if self.games else 0

    @property
    def min_score(self):
        return int(np.min(self.scores)) if self.games else 0

    @property
    def avg_moves(self):
        return float(np.mean(self.moves)) if self.games else 0.0

    def tile_histogram(self):
        """Highest tile reached -> number of games."""
        values, counts = np.unique(self.highest_tiles, return_counts=True)
        return {int(v): int(c) for v, c in zip(values, counts)}

    def summary(self):
        tiles = ", ".join(f"{tile}: {count}" for tile, count in self.tile_histogram().items())
        return (
            f"games={self.games} avg_score={self.avg_score:.2f}, max_score={self.max_score}, "
            f"min_score={self.min_score}, std={self.score_std:.2f}, "
            f"avg_moves={self.avg_moves:.1f}, undos={self.undos}\n"
            f"highest tiles: {tiles}"
        )


def plot_scores(report, path):
    """Save a score histogram and a highest-tile bar chart to path."""
    fig = Figure(figsize=(7, 6), dpi=100)
    FigureCanvasAgg(fig)
    ax_score = fig.add_subplot(211)
    ax_tile = fig.add_subplot(212)

    ax_score.set_title("Final Score per Game")
    ax_score.set_xlabel("Score")
    ax_score.set_ylabel("Games")
    ax_score.hist(report.scores, bins=min(20, max(1, report.games)), color="green")

    histogram = report.tile_histogram()
    ax_tile.set_title("Highest Tile per Game")
    ax_tile.set_xlabel("Tile")
    ax_tile.set_ylabel("Games")
    ax_tile.bar([str(tile) for tile in histogram], list(histogram.values()), color="orange")

    fig.tight_layout()
    fig.savefig(path)
    return path

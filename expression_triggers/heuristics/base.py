"""
Abstract base class for geometric landmark heuristics.

All heuristics must implement this interface to be used with ExpressionScorer.
"""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from expression_triggers.readings import HeuristicResult


class LandmarkHeuristic(ABC):
    """
    Abstract base class for detecting an expression from landmark geometry.

    Each heuristic looks at a handful of fixed landmark indices and reports
    at most one candidate expression per tick. Heuristics are independent:
    the scorer evaluates them in a fixed order and isolates their failures,
    so an implementation may let IndexError or ZeroDivisionError escape
    when the points it needs are missing or degenerate.
    """

    #: Human readable name used in log messages
    name: str = "heuristic"

    @abstractmethod
    def evaluate(self, points: np.ndarray) -> Optional[HeuristicResult]:
        """
        Inspect one tick's landmarks.

        Parameters:
            points (np.ndarray): Array of shape (N, 2) with (x, y) pixel coordinates.

        Returns:
            Optional[HeuristicResult]: The detected candidate, or None when the
            geometry does not indicate this heuristic's expression.
        """
        pass

    @staticmethod
    def y(points: np.ndarray, index: int) -> float:
        """Vertical coordinate of landmark ``index`` as a Python float."""
        if index < 0 or index >= len(points):
            raise IndexError(f"Landmark {index} missing (got {len(points)} points)")
        return float(points[index][1])

    def vertical_distance(self, points: np.ndarray, a: int, b: int) -> float:
        """Absolute vertical distance between landmarks ``a`` and ``b``."""
        return abs(self.y(points, b) - self.y(points, a))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

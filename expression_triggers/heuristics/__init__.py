"""
Geometric landmark heuristics for expression scoring.

- LandmarkHeuristic: Base class, one candidate expression per tick
- Rule heuristics: Eye wink, half smile, brow frown, mouth open
"""

from expression_triggers.heuristics.base import LandmarkHeuristic
from expression_triggers.heuristics.rules import (
    BrowFrownHeuristic,
    EyeWinkHeuristic,
    HeuristicConfig,
    MouthOpenHeuristic,
    SmileAsymmetryHeuristic,
    default_heuristics,
)

__all__ = [
    "LandmarkHeuristic",
    "HeuristicConfig",
    "EyeWinkHeuristic",
    "SmileAsymmetryHeuristic",
    "BrowFrownHeuristic",
    "MouthOpenHeuristic",
    "default_heuristics",
]

"""
Rule-based geometric heuristics for asymmetric and local expressions.

These heuristics use hand-crafted thresholds on landmark distances.
No training required - they complement the basic expression classifier
with winks, half smiles, brow frowns and an open mouth.
"""

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from expression_triggers.heuristics.base import LandmarkHeuristic
from expression_triggers.readings import HeuristicResult, LandmarkIndex


@dataclass
class HeuristicConfig:
    """Thresholds shared by the default heuristic battery.

    Distances are in landmark units (pixels at capture resolution).
    """

    # Eye wink: left/right aperture ratio
    wink_left_ratio: float = 0.5
    wink_right_ratio: float = 2.0
    wink_confidence: float = 0.8

    # Half smile: left/right corner offset ratio
    smile_left_ratio: float = 1.3
    smile_right_ratio: float = 0.7
    smile_gain: float = 0.7
    smile_max_confidence: float = 0.9

    # Brow frown: brow-to-nose distance
    frown_max_distance: float = 25.0
    frown_confidence: float = 0.8

    # Mouth open: lip gap
    mouth_min_distance: float = 15.0
    mouth_scale: float = 20.0
    mouth_max_confidence: float = 0.9


class EyeWinkHeuristic(LandmarkHeuristic):
    """
    Detects a wink from the ratio of left to right eye aperture.

    The two outcomes are mutually exclusive: a ratio below 0.5 cannot
    also be above 2.0.
    """

    name = "eye_wink"

    def __init__(self, config: Optional[HeuristicConfig] = None):
        self.config = config or HeuristicConfig()

    def evaluate(self, points: np.ndarray) -> Optional[HeuristicResult]:
        left = self.vertical_distance(
            points, LandmarkIndex.LEFT_EYE_TOP, LandmarkIndex.LEFT_EYE_BOTTOM
        )
        right = self.vertical_distance(
            points, LandmarkIndex.RIGHT_EYE_TOP, LandmarkIndex.RIGHT_EYE_BOTTOM
        )
        ratio = left / right

        if ratio < self.config.wink_left_ratio:
            return HeuristicResult("leftEyeWink", self.config.wink_confidence)
        if ratio > self.config.wink_right_ratio:
            return HeuristicResult("rightEyeWink", self.config.wink_confidence)
        return None


class SmileAsymmetryHeuristic(LandmarkHeuristic):
    """
    Detects a half smile from how far each mouth corner sits from the
    upper lip center.

    Confidence grows with the asymmetry: min(|ratio - 1| * 0.7, 0.9).
    """

    name = "smile_asymmetry"

    def __init__(self, config: Optional[HeuristicConfig] = None):
        self.config = config or HeuristicConfig()

    def evaluate(self, points: np.ndarray) -> Optional[HeuristicResult]:
        cfg = self.config
        left = self.vertical_distance(
            points, LandmarkIndex.UPPER_LIP_CENTER, LandmarkIndex.MOUTH_LEFT_CORNER
        )
        right = self.vertical_distance(
            points, LandmarkIndex.UPPER_LIP_CENTER, LandmarkIndex.MOUTH_RIGHT_CORNER
        )
        ratio = left / right
        confidence = min(abs(ratio - 1.0) * cfg.smile_gain, cfg.smile_max_confidence)

        if ratio > cfg.smile_left_ratio:
            return HeuristicResult("leftSmile", confidence)
        if ratio < cfg.smile_right_ratio:
            return HeuristicResult("rightSmile", confidence)
        return None


class BrowFrownHeuristic(LandmarkHeuristic):
    """Detects a frown when the brow center drops close to the nose bridge."""

    name = "brow_frown"

    def __init__(self, config: Optional[HeuristicConfig] = None):
        self.config = config or HeuristicConfig()

    def evaluate(self, points: np.ndarray) -> Optional[HeuristicResult]:
        distance = self.vertical_distance(
            points, LandmarkIndex.BROW_CENTER, LandmarkIndex.NOSE_BRIDGE
        )
        if distance < self.config.frown_max_distance:
            return HeuristicResult("frownBrow", self.config.frown_confidence)
        return None


class MouthOpenHeuristic(LandmarkHeuristic):
    """Detects an open mouth from the gap between the lip centers."""

    name = "mouth_open"

    def __init__(self, config: Optional[HeuristicConfig] = None):
        self.config = config or HeuristicConfig()

    def evaluate(self, points: np.ndarray) -> Optional[HeuristicResult]:
        cfg = self.config
        distance = self.vertical_distance(
            points, LandmarkIndex.UPPER_LIP_CENTER, LandmarkIndex.LOWER_LIP_CENTER
        )
        if distance > cfg.mouth_min_distance:
            confidence = min(distance / cfg.mouth_scale, cfg.mouth_max_confidence)
            return HeuristicResult("mouthOpen", confidence)
        return None


def default_heuristics(config: Optional[HeuristicConfig] = None) -> List[LandmarkHeuristic]:
    """
    Build the default heuristic battery in evaluation order.

    Order matters: when two heuristics report the same confidence the
    earlier one wins in ExpressionScorer.pick_best.
    """
    config = config or HeuristicConfig()
    return [
        EyeWinkHeuristic(config),
        SmileAsymmetryHeuristic(config),
        BrowFrownHeuristic(config),
        MouthOpenHeuristic(config),
    ]

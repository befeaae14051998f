"""
Expression scorer fusing classifier confidences with landmark heuristics.

The scorer turns one ExpressionReading into a single best expression:

    basic scores  -> score_basic     -> (key, confidence)
    landmarks     -> score_geometric -> [HeuristicResult, ...]
    both          -> pick_best       -> ScoredExpression
"""

import logging
from typing import List, Mapping, Optional, Sequence

import numpy as np

from expression_triggers.heuristics import LandmarkHeuristic, default_heuristics
from expression_triggers.readings import (
    ExpressionReading,
    HeuristicResult,
    ScoredExpression,
)

logger = logging.getLogger(__name__)


class ExpressionScorer:
    """
    Picks the tick's best expression.

    Attributes:
        noise_floor: Basic confidences must be strictly above this to count.
        geometric_floor: Heuristic confidences must be strictly above this
            to replace the basic result.
        heuristics: Ordered heuristic battery.
    """

    DEFAULT_KEY = "neutral"
    NOISE_FLOOR = 0.3
    GEOMETRIC_FLOOR = 0.4

    def __init__(
        self,
        heuristics: Optional[Sequence[LandmarkHeuristic]] = None,
        noise_floor: float = NOISE_FLOOR,
        geometric_floor: float = GEOMETRIC_FLOOR,
    ):
        self.heuristics: List[LandmarkHeuristic] = (
            list(heuristics) if heuristics is not None else default_heuristics()
        )
        self.noise_floor = noise_floor
        self.geometric_floor = geometric_floor

    def score_basic(self, basic_scores: Mapping[str, float]) -> ScoredExpression:
        """
        Select the strongest basic expression above the noise floor.

        Ties go to the first key reaching the maximum in iteration order.

        Args:
            basic_scores: Expression key -> confidence

        Returns:
            ScoredExpression, ``("neutral", 0.0)`` if nothing beats the floor
        """
        best_key = self.DEFAULT_KEY
        best_confidence = 0.0

        for key, confidence in basic_scores.items():
            if confidence > best_confidence and confidence > self.noise_floor:
                best_key = key
                best_confidence = confidence

        return ScoredExpression(best_key, best_confidence)

    def score_geometric(self, landmarks) -> List[HeuristicResult]:
        """
        Run the heuristic battery over one tick's landmarks.

        Each heuristic is isolated: if it raises (missing landmark index,
        zero-height feature, malformed point) it simply contributes nothing.

        Args:
            landmarks: Sequence of (x, y) points, an (N, 2) array, or None

        Returns:
            Results in heuristic order; empty when landmarks are absent
        """
        if landmarks is None:
            return []

        try:
            points = np.asarray(landmarks, dtype=np.float64)
        except (TypeError, ValueError) as e:
            logger.debug(f"Unusable landmarks, skipping heuristics: {e}")
            return []

        results: List[HeuristicResult] = []
        for heuristic in self.heuristics:
            try:
                result = heuristic.evaluate(points)
            except (ArithmeticError, IndexError, TypeError, ValueError) as e:
                logger.debug(f"Heuristic {heuristic.name} failed: {e}")
                continue
            if result is not None:
                results.append(result)

        return results

    def pick_best(
        self,
        basic: ScoredExpression,
        geometric: Sequence[HeuristicResult],
    ) -> ScoredExpression:
        """
        Merge the basic result with heuristic candidates.

        A heuristic replaces the current best only if its confidence is
        strictly greater than both the current best and the geometric floor,
        so the first of several equal candidates wins.
        """
        best = basic
        for result in geometric:
            if result.confidence > best.confidence and result.confidence > self.geometric_floor:
                best = ScoredExpression(result.key, result.confidence)
        return best

    def score(self, reading: ExpressionReading) -> ScoredExpression:
        """
        Score a full reading.

        Args:
            reading: One tick of classifier output and landmarks

        Returns:
            The tick's best expression
        """
        basic = self.score_basic(reading.basic_scores)
        geometric = self.score_geometric(reading.landmarks)
        best = self.pick_best(basic, geometric)
        logger.debug(
            f"Scored basic={basic.key}:{basic.confidence:.2f} "
            f"geometric={[(r.key, round(r.confidence, 2)) for r in geometric]} "
            f"best={best.key}:{best.confidence:.2f}"
        )
        return best

"""
Per-tick data structures for expression scoring.

This module defines the ephemeral values that flow through one sampling
tick: the raw reading from the upstream face model, the results of the
geometric heuristics, and the fused best-expression decision.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence, Tuple


# A single 2D landmark point (x, y) in capture pixels
Point = Tuple[float, float]


class LandmarkIndex:
    """Indices into the 68-point facial landmark layout.

    Only the points read by the geometric heuristics are listed. The
    layout is fixed by the upstream landmark model.
    """

    BROW_CENTER = 19
    NOSE_BRIDGE = 27

    LEFT_EYE_TOP = 37
    LEFT_EYE_BOTTOM = 41
    RIGHT_EYE_TOP = 43
    RIGHT_EYE_BOTTOM = 47

    MOUTH_LEFT_CORNER = 48
    UPPER_LIP_CENTER = 51
    MOUTH_RIGHT_CORNER = 54
    LOWER_LIP_CENTER = 57

    NUM_POINTS = 68


@dataclass
class ExpressionReading:
    """One tick of input from the face model.

    Attributes:
        basic_scores: Expression key -> confidence in [0, 1]. Values are
            trusted, not validated.
        landmarks: Optional ordered sequence of (x, y) points following
            the 68-point layout described by LandmarkIndex.
        timestamp: Capture time in seconds, or None to use the engine clock.
    """

    basic_scores: Mapping[str, float] = field(default_factory=dict)
    landmarks: Optional[Sequence[Point]] = field(default=None, repr=False)
    timestamp: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping) -> 'ExpressionReading':
        """
        Build a reading from a decoded JSON record.

        Accepts ``expressions`` or ``basic_scores`` for the confidences and
        an optional ``landmarks`` list of ``[x, y]`` pairs or ``{"x", "y"}``
        objects.
        """
        scores = data.get('basic_scores', data.get('expressions', {})) or {}
        raw_points = data.get('landmarks')
        timestamp = data.get('timestamp')
        landmarks = None
        if raw_points is not None:
            landmarks = [
                (p['x'], p['y']) if isinstance(p, Mapping) else (p[0], p[1])
                for p in raw_points
            ]
        return cls(
            basic_scores={str(k): float(v) for k, v in scores.items()},
            landmarks=landmarks,
            timestamp=float(timestamp) if timestamp is not None else None,
        )


@dataclass(frozen=True)
class HeuristicResult:
    """Candidate produced by one geometric heuristic."""

    key: str
    confidence: float


@dataclass(frozen=True)
class ScoredExpression:
    """The tick's best expression after fusing basic and geometric scores."""

    key: str
    confidence: float

    def as_tuple(self) -> Tuple[str, float]:
        return (self.key, self.confidence)

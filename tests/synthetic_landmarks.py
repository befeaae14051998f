"""
Synthetic 68-point landmarks for heuristic and engine tests.

Builds a neutral face in pixel space whose heuristic-relevant distances can
be set directly. Defaults trigger none of the heuristics:

    eye apertures 10/10, brow gap 40, corner offsets 10/10, lip gap 10
"""

from typing import List, Tuple

import numpy as np

from expression_triggers.readings import LandmarkIndex as L

EYE_TOP_Y = 200.0
BROW_BASE_Y = 200.0
UPPER_LIP_Y = 300.0


def make_landmarks(
    left_eye: float = 10.0,
    right_eye: float = 10.0,
    brow_gap: float = 40.0,
    left_corner: float = 10.0,
    right_corner: float = 10.0,
    mouth_gap: float = 10.0,
    num_points: int = L.NUM_POINTS,
) -> np.ndarray:
    """
    Create an (num_points, 2) landmark array.

    Args:
        left_eye: Vertical aperture of the left eye
        right_eye: Vertical aperture of the right eye
        brow_gap: Distance between brow center and nose bridge
        left_corner: Offset of the left mouth corner below the upper lip center
        right_corner: Offset of the right mouth corner below the upper lip center
        mouth_gap: Distance between upper and lower lip centers
        num_points: Truncate the layout to simulate missing landmarks
    """
    lm = np.zeros((L.NUM_POINTS, 2), dtype=np.float64)
    lm[:, 0] = np.linspace(100.0, 400.0, L.NUM_POINTS)
    lm[:, 1] = 250.0

    lm[L.LEFT_EYE_TOP, 1] = EYE_TOP_Y
    lm[L.LEFT_EYE_BOTTOM, 1] = EYE_TOP_Y + left_eye
    lm[L.RIGHT_EYE_TOP, 1] = EYE_TOP_Y
    lm[L.RIGHT_EYE_BOTTOM, 1] = EYE_TOP_Y + right_eye

    lm[L.NOSE_BRIDGE, 1] = BROW_BASE_Y
    lm[L.BROW_CENTER, 1] = BROW_BASE_Y - brow_gap

    lm[L.UPPER_LIP_CENTER, 1] = UPPER_LIP_Y
    lm[L.MOUTH_LEFT_CORNER, 1] = UPPER_LIP_Y + left_corner
    lm[L.MOUTH_RIGHT_CORNER, 1] = UPPER_LIP_Y + right_corner
    lm[L.LOWER_LIP_CENTER, 1] = UPPER_LIP_Y + mouth_gap

    return lm[:num_points]


def as_points(lm: np.ndarray) -> List[Tuple[float, float]]:
    """Plain list of (x, y) tuples, the shape readings arrive in."""
    return [(float(x), float(y)) for x, y in lm]

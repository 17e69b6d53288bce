"""
Geometric features computed from landmark points.

Pure functions only: no thresholds are applied here except the margins passed
in by the caller. Image coordinates grow downward, so "above" means a smaller
y value.
"""
import math
from typing import Optional, Sequence

from .landmarks import FaceLandmarks, HandLandmarks, LandmarkPoint


def distance(a: LandmarkPoint, b: LandmarkPoint) -> float:
    """2D distance between two points (ignoring z)."""
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return math.sqrt(dx*dx + dy*dy)


def is_above(a: LandmarkPoint, b: LandmarkPoint, margin: float = 0.0) -> bool:
    """True if a sits higher in the frame than b by more than margin."""
    return a[1] < b[1] - margin


def is_below(a: LandmarkPoint, b: LandmarkPoint, margin: float = 0.0) -> bool:
    """True if a sits lower in the frame than b by more than margin."""
    return a[1] > b[1] + margin


def horizontal_gap(a: LandmarkPoint, b: LandmarkPoint) -> float:
    return abs(a[0] - b[0])


def vertical_gap(a: LandmarkPoint, b: LandmarkPoint) -> float:
    return abs(a[1] - b[1])


def hand_points(hand) -> Optional[Sequence[LandmarkPoint]]:
    """Return the 21 hand points, or None if the layout is wrong."""
    if hand is None:
        return None
    points = hand.landmarks if isinstance(hand, HandLandmarks) else hand
    try:
        count = len(points)
    except TypeError:
        return None
    if count != HandLandmarks.NUM_POINTS:
        return None
    return points


def eye_aspect_ratio(eye: Sequence[LandmarkPoint]) -> Optional[float]:
    """
    Eye aspect ratio for a 6-point contour.

    EAR = (|p1-p5| + |p2-p4|) / (2 * |p0-p3|)

    Returns None for a contour of the wrong size or zero width.
    """
    if eye is None or len(eye) != FaceLandmarks.EYE_POINTS:
        return None
    width = distance(eye[0], eye[3])
    if width <= 0.0:
        return None
    return (distance(eye[1], eye[5]) + distance(eye[2], eye[4])) / (2.0 * width)


def mouth_aspect_ratio(mouth: Sequence[LandmarkPoint]) -> Optional[float]:
    """Mouth opening height over corner-to-corner width."""
    if mouth is None or len(mouth) < FaceLandmarks.MIN_MOUTH_POINTS:
        return None
    width = distance(mouth[FaceLandmarks.MOUTH_LEFT], mouth[FaceLandmarks.MOUTH_RIGHT])
    if width <= 0.0:
        return None
    height = distance(mouth[FaceLandmarks.MOUTH_TOP], mouth[FaceLandmarks.MOUTH_BOTTOM])
    return height / width

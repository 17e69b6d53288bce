"""
Landmark value types shared by the classifiers and the detector adapters.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, NamedTuple, Optional, Sequence, Tuple

from .errors import MalformedLandmarksError


class LandmarkPoint(NamedTuple):
    """Normalized landmark. z is relative depth, more negative = closer."""
    x: float
    y: float
    z: float = 0.0


def _to_point(value) -> LandmarkPoint:
    if isinstance(value, LandmarkPoint):
        return value
    if hasattr(value, "x") and hasattr(value, "y"):
        # MediaPipe NormalizedLandmark and similar objects
        return LandmarkPoint(float(value.x), float(value.y), float(getattr(value, "z", 0.0) or 0.0))
    coords = tuple(value)
    if len(coords) == 2:
        return LandmarkPoint(float(coords[0]), float(coords[1]))
    if len(coords) == 3:
        return LandmarkPoint(float(coords[0]), float(coords[1]), float(coords[2]))
    raise MalformedLandmarksError(f"Expected 2 or 3 coordinates, got {len(coords)}")


@dataclass(frozen=True)
class HandLandmarks:
    """
    Normalized hand landmarks in MediaPipe order.

    Attributes:
        landmarks: 21 LandmarkPoints, normalized 0-1
        handedness: 'Left', 'Right' or 'Unknown'
        confidence: Detection confidence 0-1
    """
    landmarks: Tuple[LandmarkPoint, ...]
    handedness: str = "Unknown"
    confidence: float = 1.0

    NUM_POINTS = 21

    # MediaPipe landmark indices for convenience
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20

    @classmethod
    def from_points(
        cls,
        points: Iterable,
        handedness: str = "Unknown",
        confidence: float = 1.0,
    ) -> "HandLandmarks":
        """Build from (x, y[, z]) tuples or landmark objects, validating the layout."""
        converted = tuple(_to_point(p) for p in points)
        if len(converted) != cls.NUM_POINTS:
            raise MalformedLandmarksError(
                f"Hand needs {cls.NUM_POINTS} landmarks, got {len(converted)}"
            )
        return cls(landmarks=converted, handedness=handedness, confidence=confidence)

    def get(self, index: int) -> LandmarkPoint:
        """Get landmark by index."""
        return self.landmarks[index]

    @property
    def is_complete(self) -> bool:
        return len(self.landmarks) == self.NUM_POINTS

    @property
    def wrist(self) -> LandmarkPoint:
        return self.landmarks[self.WRIST]

    @property
    def thumb_tip(self) -> LandmarkPoint:
        return self.landmarks[self.THUMB_TIP]

    @property
    def index_tip(self) -> LandmarkPoint:
        return self.landmarks[self.INDEX_TIP]

    @property
    def middle_tip(self) -> LandmarkPoint:
        return self.landmarks[self.MIDDLE_TIP]

    @property
    def ring_tip(self) -> LandmarkPoint:
        return self.landmarks[self.RING_TIP]

    @property
    def pinky_tip(self) -> LandmarkPoint:
        return self.landmarks[self.PINKY_TIP]


# MediaPipe face mesh indices, eye contours in EAR order p0..p5
# (outer corner, two upper lid points, inner corner, two lower lid points)
LEFT_EYE_MESH = (33, 160, 158, 133, 153, 144)
RIGHT_EYE_MESH = (362, 385, 387, 263, 373, 380)

# Inner lip contour, clockwise from the left corner
INNER_LIP_MESH = (
    78, 95, 88, 178, 87, 14, 317, 402, 318, 324,
    308, 415, 310, 311, 312, 13, 82, 81, 80, 191,
)


@dataclass(frozen=True)
class FaceLandmarks:
    """Named face point groups used for eye and mouth geometry."""
    left_eye: Tuple[LandmarkPoint, ...]
    right_eye: Tuple[LandmarkPoint, ...]
    mouth: Tuple[LandmarkPoint, ...]

    EYE_POINTS = 6
    MIN_MOUTH_POINTS = 20

    # Positions within the mouth group
    MOUTH_LEFT = 0
    MOUTH_BOTTOM = 5
    MOUTH_RIGHT = 10
    MOUTH_TOP = 15

    @classmethod
    def from_groups(
        cls,
        left_eye: Iterable,
        right_eye: Iterable,
        mouth: Iterable,
    ) -> "FaceLandmarks":
        face = cls(
            left_eye=tuple(_to_point(p) for p in left_eye),
            right_eye=tuple(_to_point(p) for p in right_eye),
            mouth=tuple(_to_point(p) for p in mouth),
        )
        if len(face.left_eye) != cls.EYE_POINTS or len(face.right_eye) != cls.EYE_POINTS:
            raise MalformedLandmarksError("Each eye contour needs exactly 6 points")
        if len(face.mouth) < cls.MIN_MOUTH_POINTS:
            raise MalformedLandmarksError(
                f"Mouth contour needs at least {cls.MIN_MOUTH_POINTS} points, got {len(face.mouth)}"
            )
        return face

    @classmethod
    def from_mesh(cls, mesh: Sequence) -> "FaceLandmarks":
        """Pick the eye and mouth groups out of a 468/478-point face mesh."""
        needed = max(max(LEFT_EYE_MESH), max(RIGHT_EYE_MESH), max(INNER_LIP_MESH)) + 1
        if len(mesh) < needed:
            raise MalformedLandmarksError(
                f"Face mesh needs at least {needed} points, got {len(mesh)}"
            )
        return cls.from_groups(
            left_eye=[mesh[i] for i in LEFT_EYE_MESH],
            right_eye=[mesh[i] for i in RIGHT_EYE_MESH],
            mouth=[mesh[i] for i in INNER_LIP_MESH],
        )


ExpressionProbabilities = Dict[str, float]


@dataclass(frozen=True)
class FaceDetection:
    """One face detector result: expression scores plus geometry."""
    expression_probabilities: ExpressionProbabilities
    landmarks: Optional[FaceLandmarks] = None


"""
Facial expression classification.

The external expression model supplies a probability per label; the highest
one wins. The model has no wink class, so a wink is derived from eye and
mouth geometry and overrides the model whenever it is detected.
"""
from typing import Dict, Mapping, Optional, Tuple
import logging

from .classification import Classification
from .config import ExpressionConfig
from .features import eye_aspect_ratio, mouth_aspect_ratio
from .labels import PROBABILITY_LABELS, ExpressionLabel
from .landmarks import FaceDetection, FaceLandmarks

logger = logging.getLogger(__name__)


class EyeState:
    """Open/closed state of one eye with a hysteresis dead-zone."""

    def __init__(self, config: ExpressionConfig):
        self._config = config
        self.closed = False

    def update(self, ear: Optional[float]) -> bool:
        """Feed a new EAR reading, return True if the eye is now closed."""
        if ear is None:
            return self.closed
        if ear < self._config.eye_closed_ear:
            self.closed = True
        elif ear > self._config.eye_open_ear:
            self.closed = False
        # Between the two thresholds the previous state is kept
        return self.closed

    def reset(self) -> None:
        self.closed = False


def base_expression(
    probabilities: Optional[Mapping[str, float]],
) -> Tuple[Optional[ExpressionLabel], float]:
    """Label with the highest probability. Ties keep the earlier label."""
    if not probabilities:
        return None, 0.0
    best: Optional[ExpressionLabel] = None
    best_prob = -1.0
    for label in PROBABILITY_LABELS:
        value = probabilities.get(label.value)
        if value is None:
            continue
        value = float(value)
        if value > best_prob:
            best, best_prob = label, value
    if best is None:
        return None, 0.0
    return best, max(0.0, min(1.0, best_prob))


class ExpressionClassifier:
    """
    Turns a face detection into one expression label.

    Wink rules:
    - exactly one eye closed, the other open, EAR difference significant
    - or tongue out (high mouth aspect ratio) with at least one eye closed
    """

    def __init__(self, config: Optional[ExpressionConfig] = None):
        self._config = config or ExpressionConfig()
        self._left = EyeState(self._config)
        self._right = EyeState(self._config)

    @property
    def config(self) -> ExpressionConfig:
        return self._config

    def reset(self) -> None:
        self._left.reset()
        self._right.reset()

    def classify(self, detection: Optional[FaceDetection]) -> Classification:
        if detection is None:
            return Classification.none("no_face")

        label, confidence = base_expression(detection.expression_probabilities)
        debug: Dict[str, object] = {
            "base": label.value if label is not None else None,
            "base_confidence": round(confidence, 3),
        }

        wink = self._detect_wink(detection.landmarks, debug)
        if wink:
            return Classification(ExpressionLabel.WINK, self._config.wink_confidence, debug)

        if label is None:
            return Classification.none("no_expression", **debug)
        return Classification(label, confidence, debug)

    def _detect_wink(self, face: Optional[FaceLandmarks], debug: Dict[str, object]) -> bool:
        if face is None:
            debug["wink"] = "no_landmarks"
            return False

        left_ear = eye_aspect_ratio(face.left_eye)
        right_ear = eye_aspect_ratio(face.right_eye)
        mar = mouth_aspect_ratio(face.mouth)
        if left_ear is None or right_ear is None:
            logger.debug("Skipping wink check, malformed eye contour")
            debug["wink"] = "malformed_eyes"
            return False

        left_closed = self._left.update(left_ear)
        right_closed = self._right.update(right_ear)
        ear_diff = abs(left_ear - right_ear)

        debug.update({
            "left_ear": round(left_ear, 3),
            "right_ear": round(right_ear, 3),
            "ear_diff": round(ear_diff, 3),
            "mar": round(mar, 3) if mar is not None else None,
            "left_closed": left_closed,
            "right_closed": right_closed,
        })

        one_eye = (left_closed != right_closed) and ear_diff > self._config.ear_difference
        tongue_out = mar is not None and mar > self._config.tongue_out_mar
        relaxed = tongue_out and (left_closed or right_closed)

        debug["tongue_out"] = tongue_out
        debug["wink"] = one_eye or relaxed
        return one_eye or relaxed

"""
MediaPipe Face Landmarker wrapper producing expression probabilities and
eye/mouth geometry for each frame.

The expression probabilities come from a pluggable ExpressionModel. The
default one scores MediaPipe's face blendshapes with a weight table; any
other model (for example a dedicated expression network) can be passed in.
"""
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional
import logging
import time

import cv2
import numpy as np
import mediapipe as mp

from ..config import MediaPipeConfig
from ..errors import DetectorUnavailableError, MalformedLandmarksError
from ..labels import ExpressionLabel
from ..landmarks import ExpressionProbabilities, FaceDetection, FaceLandmarks

logger = logging.getLogger(__name__)

BaseOptions = mp.tasks.BaseOptions
FaceLandmarker = mp.tasks.vision.FaceLandmarker
FaceLandmarkerOptions = mp.tasks.vision.FaceLandmarkerOptions
VisionRunningMode = mp.tasks.vision.RunningMode

# Maps blendshape scores (name -> 0..1) to expression probabilities
ExpressionModel = Callable[[Mapping[str, float]], ExpressionProbabilities]


class BlendshapeExpressionModel:
    """
    Scores expressions as weighted sums of MediaPipe blendshapes.

    Neutral is whatever the other expressions leave over.
    """

    DEFAULT_WEIGHTS: Dict[str, Dict[str, float]] = {
        ExpressionLabel.HAPPY.value: {
            "mouthSmileLeft": 0.5,
            "mouthSmileRight": 0.5,
        },
        ExpressionLabel.SAD.value: {
            "mouthFrownLeft": 0.35,
            "mouthFrownRight": 0.35,
            "browInnerUp": 0.3,
        },
        ExpressionLabel.ANGRY.value: {
            "browDownLeft": 0.35,
            "browDownRight": 0.35,
            "mouthPressLeft": 0.15,
            "mouthPressRight": 0.15,
        },
        ExpressionLabel.SURPRISED.value: {
            "jawOpen": 0.4,
            "browInnerUp": 0.2,
            "eyeWideLeft": 0.2,
            "eyeWideRight": 0.2,
        },
        ExpressionLabel.DISGUSTED.value: {
            "noseSneerLeft": 0.35,
            "noseSneerRight": 0.35,
            "mouthUpperUpLeft": 0.15,
            "mouthUpperUpRight": 0.15,
        },
    }

    def __init__(self, weights: Optional[Dict[str, Dict[str, float]]] = None):
        self._weights = weights or self.DEFAULT_WEIGHTS

    def __call__(self, blendshapes: Mapping[str, float]) -> ExpressionProbabilities:
        probabilities: ExpressionProbabilities = {}
        for label, table in self._weights.items():
            score = sum(weight * float(blendshapes.get(name, 0.0)) for name, weight in table.items())
            probabilities[label] = max(0.0, min(1.0, score))
        strongest = max(probabilities.values(), default=0.0)
        probabilities[ExpressionLabel.NEUTRAL.value] = max(0.0, 1.0 - strongest)
        return probabilities


class FaceTracker:
    """Synchronous single-face detector (VIDEO running mode)."""

    def __init__(
        self,
        config: MediaPipeConfig,
        expression_model: Optional[ExpressionModel] = None,
        model_path: Optional[Path] = None,
    ):
        self._config = config
        self._expression_model = expression_model or BlendshapeExpressionModel()
        self._model_path = Path(model_path or config.face_model_path)
        self._landmarker: Optional[FaceLandmarker] = None
        self._start_perf: float = 0
        self._last_timestamp_ms: int = -1

    def start(self) -> None:
        """
        Create the landmarker.

        Raises:
            DetectorUnavailableError: model missing or MediaPipe failed to start
        """
        if self._landmarker is not None:
            return

        if not self._model_path.exists():
            raise DetectorUnavailableError(
                "face",
                f"model file not found: {self._model_path} (download from "
                "https://storage.googleapis.com/mediapipe-models/face_landmarker/"
                "face_landmarker/float16/1/face_landmarker.task)",
            )

        options = FaceLandmarkerOptions(
            base_options=BaseOptions(model_asset_path=str(self._model_path)),
            running_mode=VisionRunningMode.VIDEO,
            num_faces=1,
            min_face_detection_confidence=self._config.min_detection_confidence,
            min_tracking_confidence=self._config.min_tracking_confidence,
            output_face_blendshapes=True,
        )
        try:
            self._landmarker = FaceLandmarker.create_from_options(options)
        except (RuntimeError, ValueError) as e:
            raise DetectorUnavailableError("face", str(e)) from e

        self._start_perf = time.perf_counter()
        self._last_timestamp_ms = -1

    def stop(self) -> None:
        if self._landmarker:
            self._landmarker.close()
            self._landmarker = None

    @property
    def is_running(self) -> bool:
        return self._landmarker is not None

    def detect(self, frame: np.ndarray) -> Optional[FaceDetection]:
        """
        Detect a face in a BGR frame.

        Returns:
            FaceDetection, or None if no face was found.
        """
        if self._landmarker is None:
            raise DetectorUnavailableError("face", "tracker not started")

        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_frame)

        timestamp_ms = int((time.perf_counter() - self._start_perf) * 1000)
        if timestamp_ms <= self._last_timestamp_ms:
            timestamp_ms = self._last_timestamp_ms + 1
        self._last_timestamp_ms = timestamp_ms

        try:
            result = self._landmarker.detect_for_video(mp_image, timestamp_ms)
        except (RuntimeError, ValueError) as e:
            raise DetectorUnavailableError("face", str(e)) from e

        if not result.face_landmarks:
            return None

        blendshapes: Dict[str, float] = {}
        if result.face_blendshapes:
            blendshapes = {c.category_name: c.score for c in result.face_blendshapes[0]}

        try:
            landmarks: Optional[FaceLandmarks] = FaceLandmarks.from_mesh(result.face_landmarks[0])
        except MalformedLandmarksError as e:
            logger.debug("Face mesh unusable for wink detection: %s", e)
            landmarks = None

        return FaceDetection(
            expression_probabilities=self._expression_model(blendshapes),
            landmarks=landmarks,
        )

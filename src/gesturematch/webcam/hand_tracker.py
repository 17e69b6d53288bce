"""
MediaPipe Hand Landmarker wrapper using the Tasks API in LIVE_STREAM mode.

Frames are submitted asynchronously; results come back through a callback on
a MediaPipe thread. The callback only forwards the converted hands, callers
are expected to marshal them back onto their own thread.
"""
from pathlib import Path
from typing import Callable, List, Optional
import logging
import time

import cv2
import numpy as np
import mediapipe as mp

from ..config import MediaPipeConfig
from ..errors import DetectorUnavailableError, MalformedLandmarksError
from ..landmarks import HandLandmarks

logger = logging.getLogger(__name__)

# MediaPipe Tasks API imports
BaseOptions = mp.tasks.BaseOptions
HandLandmarker = mp.tasks.vision.HandLandmarker
HandLandmarkerOptions = mp.tasks.vision.HandLandmarkerOptions
VisionRunningMode = mp.tasks.vision.RunningMode

HandsCallback = Callable[[List[HandLandmarks], int], None]

# Hand connections for drawing (same as MediaPipe's HAND_CONNECTIONS)
HAND_CONNECTIONS = [
    (0, 1), (1, 2), (2, 3), (3, 4),      # Thumb
    (0, 5), (5, 6), (6, 7), (7, 8),      # Index
    (0, 9), (9, 10), (10, 11), (11, 12), # Middle
    (0, 13), (13, 14), (14, 15), (15, 16), # Ring
    (0, 17), (17, 18), (18, 19), (19, 20), # Pinky
    (5, 9), (9, 13), (13, 17),           # Palm
]


def hands_from_result(result, max_hands: int = 2) -> List[HandLandmarks]:
    """Convert a HandLandmarkerResult into our landmark type, dropping malformed hands."""
    hands: List[HandLandmarks] = []
    if result is None or not result.hand_landmarks:
        return hands
    for i, hand_landmarks in enumerate(result.hand_landmarks[:max_hands]):
        handedness = "Unknown"
        confidence = 1.0
        if result.handedness and i < len(result.handedness) and result.handedness[i]:
            category = result.handedness[i][0]
            handedness = category.category_name
            confidence = category.score
        try:
            hands.append(HandLandmarks.from_points(hand_landmarks, handedness, confidence))
        except MalformedLandmarksError as e:
            logger.debug("Dropping hand %d: %s", i, e)
    return hands


class HandTracker:
    """
    Asynchronous hand landmark detector for up to two hands.

    Usage:
        tracker = HandTracker(config.mediapipe, on_hands)
        tracker.start()
        tracker.submit(frame)       # on_hands(hands, timestamp_ms) fires later
    """

    def __init__(
        self,
        config: MediaPipeConfig,
        on_hands: HandsCallback,
        model_path: Optional[Path] = None,
    ):
        self._config = config
        self._on_hands = on_hands
        self._model_path = Path(model_path or config.hand_model_path)
        self._landmarker: Optional[HandLandmarker] = None
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
                "hand",
                f"model file not found: {self._model_path} (download from "
                "https://storage.googleapis.com/mediapipe-models/hand_landmarker/"
                "hand_landmarker/float16/1/hand_landmarker.task)",
            )

        options = HandLandmarkerOptions(
            base_options=BaseOptions(model_asset_path=str(self._model_path)),
            running_mode=VisionRunningMode.LIVE_STREAM,
            num_hands=min(2, self._config.max_num_hands),
            min_hand_detection_confidence=self._config.min_detection_confidence,
            min_tracking_confidence=self._config.min_tracking_confidence,
            result_callback=self._handle_result,
        )
        try:
            self._landmarker = HandLandmarker.create_from_options(options)
        except (RuntimeError, ValueError) as e:
            raise DetectorUnavailableError("hand", str(e)) from e

        self._start_perf = time.perf_counter()
        self._last_timestamp_ms = -1

    def stop(self) -> None:
        if self._landmarker:
            self._landmarker.close()
            self._landmarker = None

    @property
    def is_running(self) -> bool:
        return self._landmarker is not None

    def submit(self, frame: np.ndarray) -> int:
        """
        Queue a BGR frame for detection.

        Returns:
            The timestamp the result will be reported with.
        """
        if self._landmarker is None:
            raise DetectorUnavailableError("hand", "tracker not started")

        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_frame)

        # Calculate strictly monotonic timestamp
        timestamp_ms = int((time.perf_counter() - self._start_perf) * 1000)
        if timestamp_ms <= self._last_timestamp_ms:
            timestamp_ms = self._last_timestamp_ms + 1
        self._last_timestamp_ms = timestamp_ms

        try:
            self._landmarker.detect_async(mp_image, timestamp_ms)
        except (RuntimeError, ValueError) as e:
            raise DetectorUnavailableError("hand", str(e)) from e
        return timestamp_ms

    def _handle_result(self, result, output_image, timestamp_ms: int) -> None:
        self._on_hands(hands_from_result(result, self._config.max_num_hands), timestamp_ms)


def draw_hands(frame: np.ndarray, hands: List[HandLandmarks]) -> np.ndarray:
    """Draw landmarks and connections for debugging."""
    h, w = frame.shape[:2]
    for hand in hands:
        for x, y, _ in hand.landmarks:
            cv2.circle(frame, (int(x * w), int(y * h)), 4, (0, 255, 0), -1)
        for start_idx, end_idx in HAND_CONNECTIONS:
            start = hand.get(start_idx)
            end = hand.get(end_idx)
            cv2.line(
                frame,
                (int(start.x * w), int(start.y * h)),
                (int(end.x * w), int(end.y * h)),
                (0, 255, 0), 2,
            )
    return frame

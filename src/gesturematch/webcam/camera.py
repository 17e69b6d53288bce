"""
Camera capture shared by the hand and face detectors.
"""
from typing import Optional
import logging

import cv2
import numpy as np

from ..config import CameraConfig

logger = logging.getLogger(__name__)


class Camera:
    """OpenCV capture wrapper returning mirrored BGR frames."""

    def __init__(self, config: CameraConfig):
        self._config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._last_frame: Optional[np.ndarray] = None

    def start(self) -> bool:
        """
        Open the capture device.

        Returns:
            True if started successfully, False otherwise.
        """
        if self._cap is not None:
            return True

        cap = cv2.VideoCapture(self._config.device_id)
        if not cap.isOpened():
            logger.error("Could not open camera %d", self._config.device_id)
            cap.release()
            return False

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._config.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._config.height)
        cap.set(cv2.CAP_PROP_FPS, self._config.fps)
        self._cap = cap
        return True

    def stop(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._last_frame = None

    def read(self) -> Optional[np.ndarray]:
        """Grab the next frame, or None if the camera is not delivering."""
        if self._cap is None:
            return None
        ok, frame = self._cap.read()
        if not ok:
            return None
        if self._config.mirror:
            frame = cv2.flip(frame, 1)
        self._last_frame = frame
        return frame

    @property
    def last_frame(self) -> Optional[np.ndarray]:
        return self._last_frame

    @property
    def is_open(self) -> bool:
        return self._cap is not None

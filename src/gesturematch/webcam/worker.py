"""
Timer-driven detection ticks for the hand and face detectors.

Both tickers run on the Qt event loop of the thread that owns the worker.
The hand detector is asynchronous: its result callback arrives on a
MediaPipe thread and is re-emitted through a queued signal, so every
result is handled on the owning thread, one at a time. A tick that fires
while the previous hand detection is still pending is skipped.
"""
import time
from typing import List, Optional
import logging

from PyQt5.QtCore import QObject, QTimer, pyqtSignal, pyqtSlot

from ..config import Config
from ..errors import DetectorUnavailableError
from ..landmarks import HandLandmarks
from .camera import Camera
from .face_tracker import ExpressionModel, FaceTracker
from .hand_tracker import HandTracker

logger = logging.getLogger(__name__)


class DetectionWorker(QObject):
    """
    Owns the camera and both detectors and drives them from two QTimers.
    """
    # Signals
    hands_detected = pyqtSignal(object)     # List[HandLandmarks]
    face_detected = pyqtSignal(object)      # Optional[FaceDetection]
    frame_ready = pyqtSignal(object)        # numpy BGR frame
    capability_changed = pyqtSignal(str, bool, str)  # modality, available, reason
    error = pyqtSignal(str)

    # Internal: MediaPipe thread -> owning thread
    _hand_result = pyqtSignal(object, int)

    def __init__(
        self,
        config: Config,
        enable_hands: bool = True,
        enable_face: bool = True,
        expression_model: Optional[ExpressionModel] = None,
        parent=None,
    ):
        super().__init__(parent)
        self._config = config
        self._enable_hands = enable_hands
        self._enable_face = enable_face

        self._camera = Camera(config.camera)
        self._hand_tracker = HandTracker(config.mediapipe, self._hand_result.emit)
        self._face_tracker = FaceTracker(config.mediapipe, expression_model)

        self._hand_timer = QTimer(self)
        self._hand_timer.setInterval(config.ticks.hand_interval_ms)
        self._hand_timer.timeout.connect(self._hand_tick)

        self._face_timer = QTimer(self)
        self._face_timer.setInterval(config.ticks.face_interval_ms)
        self._face_timer.timeout.connect(self._face_tick)

        self._hand_result.connect(self._on_hand_result)

        self._hand_pending_since: Optional[float] = None
        self._is_running = False
        self.skipped_ticks = 0

    @property
    def is_running(self) -> bool:
        return self._is_running

    def start(self) -> bool:
        """Open the camera and start whichever detectors can run."""
        if self._is_running:
            return True
        if not self._camera.start():
            self.error.emit("Could not open camera")
            return False

        self._is_running = True
        if self._enable_hands and self._start_detector("hand", self._hand_tracker):
            self._hand_timer.start()
        if self._enable_face and self._start_detector("face", self._face_tracker):
            self._face_timer.start()

        if not (self._hand_timer.isActive() or self._face_timer.isActive()):
            self.error.emit("No detector available")
        return True

    def stop(self) -> None:
        """Suspend both tickers and release the camera and detectors."""
        self._hand_timer.stop()
        self._face_timer.stop()
        self._hand_tracker.stop()
        self._face_tracker.stop()
        self._camera.stop()
        self._hand_pending_since = None
        self._is_running = False

    def _start_detector(self, modality: str, tracker) -> bool:
        try:
            tracker.start()
        except DetectorUnavailableError as e:
            logger.warning("%s", e)
            self.capability_changed.emit(modality, False, e.reason)
            return False
        self.capability_changed.emit(modality, True, "")
        return True

    def _disable(self, modality: str, error: DetectorUnavailableError) -> None:
        logger.error("%s", error)
        if modality == "hand":
            self._hand_timer.stop()
            self._hand_tracker.stop()
            self._hand_pending_since = None
        else:
            self._face_timer.stop()
            self._face_tracker.stop()
        self.capability_changed.emit(modality, False, error.reason)

    def _hand_ready(self) -> bool:
        if self._hand_pending_since is None:
            return True
        waited_ms = (time.perf_counter() - self._hand_pending_since) * 1000
        # LIVE_STREAM mode may drop a frame without ever calling back
        return waited_ms > self._config.ticks.hand_pending_timeout_ms

    @pyqtSlot()
    def _hand_tick(self) -> None:
        if not self._hand_ready():
            self.skipped_ticks += 1
            return
        frame = self._camera.read()
        if frame is None:
            return
        try:
            self._hand_tracker.submit(frame)
        except DetectorUnavailableError as e:
            self._disable("hand", e)
            return
        self._hand_pending_since = time.perf_counter()
        self.frame_ready.emit(frame)

    @pyqtSlot(object, int)
    def _on_hand_result(self, hands: List[HandLandmarks], timestamp_ms: int) -> None:
        self._hand_pending_since = None
        if not self._is_running:
            return
        self.hands_detected.emit(hands)

    @pyqtSlot()
    def _face_tick(self) -> None:
        frame = self._camera.last_frame if self._hand_timer.isActive() else self._camera.read()
        if frame is None:
            frame = self._camera.read()
        if frame is None:
            return
        try:
            detection = self._face_tracker.detect(frame)
        except DetectorUnavailableError as e:
            self._disable("face", e)
            return
        if not self._hand_timer.isActive():
            self.frame_ready.emit(frame)
        self.face_detected.emit(detection)

"""
Qt-facing game controller.

Connects the detection worker to the match engine and exposes the game
state and commands to a UI layer through signals and slots.
"""
from typing import Optional
import logging
import random

from PyQt5.QtCore import QObject, QTimer, pyqtSignal, pyqtSlot

from ..config import Config
from ..engine import FACE, HAND, GameView, MatchEngine, monotonic_ms
from ..labels import display_name
from .face_tracker import ExpressionModel
from .worker import DetectionWorker

logger = logging.getLogger(__name__)


def qt_scheduler(delay_ms: int, callback) -> None:
    """One-shot callback on the Qt event loop."""
    QTimer.singleShot(delay_ms, callback)


class GameController(QObject):
    """
    Commands: start, stop, resume, skip, set_webcam.
    State goes out through state_changed(GameView).
    """
    state_changed = pyqtSignal(object)               # GameView
    decision_changed = pyqtSignal(str)               # display name of current decision
    capability_changed = pyqtSignal(str, bool, str)  # modality, available, reason

    def __init__(
        self,
        config: Config,
        enable_hands: bool = True,
        enable_face: bool = True,
        expression_model: Optional[ExpressionModel] = None,
        rng: Optional[random.Random] = None,
        parent=None,
    ):
        super().__init__(parent)
        self._config = config
        self._engine = MatchEngine(config, scheduler=qt_scheduler, clock=monotonic_ms, rng=rng)
        self._engine.add_listener(self._on_engine_change)
        self._last_decision: Optional[str] = None

        self._worker = DetectionWorker(
            config,
            enable_hands=enable_hands,
            enable_face=enable_face,
            expression_model=expression_model,
            parent=self,
        )
        self._worker.hands_detected.connect(self._engine.on_hands)
        self._worker.face_detected.connect(self._engine.on_face)
        self._worker.capability_changed.connect(self._on_capability)
        self._worker.error.connect(lambda msg: logger.error("Worker error: %s", msg))

    @property
    def engine(self) -> MatchEngine:
        return self._engine

    @property
    def worker(self) -> DetectionWorker:
        return self._worker

    def view(self) -> GameView:
        return self._engine.view()

    # --- Commands ------------------------------------------------------------

    @pyqtSlot()
    def start(self) -> None:
        self._engine.start()

    @pyqtSlot()
    def stop(self) -> None:
        self._engine.stop()

    @pyqtSlot()
    def resume(self) -> None:
        self._engine.resume()

    @pyqtSlot()
    def skip(self) -> None:
        self._engine.skip()

    @pyqtSlot(bool)
    def set_webcam(self, enabled: bool) -> bool:
        """Start or suspend capture and both detection tickers."""
        if enabled:
            started = self._worker.start()
            self._engine.set_webcam(started)
            return started
        self._worker.stop()
        self._engine.set_webcam(False)
        return True

    @pyqtSlot()
    def toggle_webcam(self) -> bool:
        return self.set_webcam(not self._worker.is_running)

    def shutdown(self) -> None:
        self._worker.stop()

    # --- Handlers ------------------------------------------------------------

    @pyqtSlot(str, bool, str)
    def _on_capability(self, modality: str, available: bool, reason: str) -> None:
        if modality in (HAND, FACE):
            self._engine.set_available(modality, available)
        if not available:
            logger.warning("%s detection inactive: %s", modality, reason)
        self.capability_changed.emit(modality, available, reason)

    def _on_engine_change(self, view: GameView) -> None:
        self.state_changed.emit(view)
        decision = display_name(view.decision)
        if decision != self._last_decision:
            self._last_decision = decision
            self.decision_changed.emit(decision)

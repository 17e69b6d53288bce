"""
Recognition and matching pipeline, independent of Qt and the camera.

One call per detection tick and modality:
landmarks -> classification -> voting -> match evaluation -> session.

Scheduling of delayed resolutions and the clock are injected so the engine
runs the same under the Qt event loop and in tests.
"""
from dataclasses import dataclass
import random
import time
from typing import Callable, List, Optional, Sequence, Tuple
import logging

from .classification import Classification
from .config import Config
from .expression_classifier import ExpressionClassifier
from .gesture_classifier import GestureClassifier
from .labels import TargetLabel
from .landmarks import FaceDetection, HandLandmarks
from .session import (
    Event, GameSession, Match, Resume, Skip, Start, Status, Stop, Transition, reduce,
)
from .voting import Decision, VotingBuffer

logger = logging.getLogger(__name__)

Scheduler = Callable[[int, Callable[[], None]], None]
Clock = Callable[[], int]

HAND = "hand"
FACE = "face"


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


@dataclass(frozen=True)
class GameView:
    """Everything a UI needs to render the game."""
    target: Optional[TargetLabel]
    decision: Optional[TargetLabel]
    score: int
    progress: Tuple[int, int]
    status: Status
    message: str
    hand_available: bool
    face_available: bool
    webcam_on: bool


class MatchEngine:
    """
    Owns the classifiers, one voting window per modality and the session.

    Listeners registered with ``add_listener`` are called with a GameView
    after every accepted session transition or decision change.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ):
        self._config = config or Config()
        self._schedule = scheduler
        self._clock = clock or monotonic_ms
        self._rng = rng or random.Random(self._config.game.seed)

        self._gestures = GestureClassifier(self._config.gestures)
        self._expressions = ExpressionClassifier(self._config.expressions)
        self._votes = {
            HAND: VotingBuffer.from_config(self._config.voting),
            FACE: VotingBuffer.from_config(self._config.voting),
        }
        self._decisions = {HAND: Decision.none(), FACE: Decision.none()}
        self._last_decision: Optional[TargetLabel] = None
        self._available = {HAND: True, FACE: True}
        self._webcam_on = True

        self._session = GameSession()
        self._listeners: List[Callable[[GameView], None]] = []

    # --- State ---------------------------------------------------------------

    @property
    def session(self) -> GameSession:
        return self._session

    @property
    def decision(self) -> Optional[TargetLabel]:
        return self._last_decision

    def modality_decision(self, modality: str) -> Decision:
        return self._decisions[modality]

    def voting_window(self, modality: str) -> VotingBuffer:
        return self._votes[modality]

    def view(self) -> GameView:
        session = self._session
        return GameView(
            target=session.target,
            decision=self._last_decision,
            score=session.score,
            progress=session.progress,
            status=session.status,
            message=session.message,
            hand_available=self._available[HAND],
            face_available=self._available[FACE],
            webcam_on=self._webcam_on,
        )

    def add_listener(self, callback: Callable[[GameView], None]) -> None:
        self._listeners.append(callback)

    # --- Commands ------------------------------------------------------------

    def start(self) -> Transition:
        return self.dispatch(Start())

    def stop(self) -> Transition:
        transition = self.dispatch(Stop())
        if transition.accepted:
            self._clear_decisions()
        return transition

    def resume(self) -> Transition:
        return self.dispatch(Resume())

    def skip(self) -> Transition:
        return self.dispatch(Skip())

    def set_webcam(self, enabled: bool) -> None:
        """Turning the webcam off forgets every in-flight decision."""
        self._webcam_on = enabled
        if not enabled:
            self._clear_decisions()
            self._expressions.reset()
        self._notify()

    def set_available(self, modality: str, available: bool) -> None:
        if self._available.get(modality) == available:
            return
        self._available[modality] = available
        if not available:
            self._votes[modality].clear()
            self._decisions[modality] = Decision.none()
        self._notify()

    # --- Ticks ---------------------------------------------------------------

    def on_hands(self, hands: Optional[Sequence[HandLandmarks]]) -> Decision:
        """Process one hand detection result (0..2 hands)."""
        if not self._webcam_on:
            return Decision.none()
        classification = self._gestures.classify(hands)
        return self._vote(HAND, classification)

    def on_face(self, detection: Optional[FaceDetection]) -> Decision:
        """Process one face detection result, None when no face was found."""
        if not self._webcam_on:
            # Keeps the eye hysteresis state as it was reset
            return Decision.none()
        classification = self._expressions.classify(detection)
        return self._vote(FACE, classification)

    def _vote(self, modality: str, classification: Classification) -> Decision:
        decision = self._votes[modality].push(classification)
        previous = self._decisions[modality]
        self._decisions[modality] = decision

        if decision.label is not None:
            changed = decision.label != self._last_decision
            self._last_decision = decision.label
            if self._session.active:
                transition = self.dispatch(Match(decision.label, self._clock()))
                if transition.accepted:
                    return decision
            if changed:
                self._notify()
        elif previous.label is not None and self._last_decision == previous.label:
            self._last_decision = self._decisions[FACE if modality == HAND else HAND].label
            self._notify()
        return decision

    def _clear_decisions(self) -> None:
        for modality, votes in self._votes.items():
            votes.clear()
            self._decisions[modality] = Decision.none()
        self._last_decision = None

    # --- Session -------------------------------------------------------------

    def dispatch(self, event: Event) -> Transition:
        """Run one event through the session reducer and schedule follow-ups."""
        transition = reduce(
            self._session, event, rng=self._rng, config=self._config.game,
        )
        if not transition.accepted:
            return transition

        self._session = transition.session
        if self._session.message:
            logger.info(self._session.message)
        self._notify()

        if transition.schedule is not None:
            resolution = transition.schedule
            if self._schedule is None:
                logger.warning("No scheduler configured, resolving immediately")
                self.dispatch(resolution.event)
            else:
                self._schedule(resolution.delay_ms, lambda: self.dispatch(resolution.event))
        return transition

    def _notify(self) -> None:
        view = self.view()
        for callback in list(self._listeners):
            callback(view)

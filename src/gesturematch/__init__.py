"""
gesturematch

Match live hand gestures and facial expressions against a shuffled
sequence of targets. The recognition core has no camera or Qt dependency;
see gesturematch.webcam for the MediaPipe and Qt adapters.
"""
from .config import Config, load_config
from .classification import Classification
from .engine import GameView, MatchEngine
from .expression_classifier import ExpressionClassifier
from .gesture_classifier import GestureClassifier
from .labels import ALL_TARGETS, ExpressionLabel, GestureLabel
from .landmarks import FaceDetection, FaceLandmarks, HandLandmarks, LandmarkPoint
from .session import GameSession, Status, reduce
from .voting import Decision, VotingBuffer

__all__ = [
    'Config',
    'load_config',
    'Classification',
    'GameView',
    'MatchEngine',
    'ExpressionClassifier',
    'GestureClassifier',
    'ALL_TARGETS',
    'ExpressionLabel',
    'GestureLabel',
    'FaceDetection',
    'FaceLandmarks',
    'HandLandmarks',
    'LandmarkPoint',
    'GameSession',
    'Status',
    'reduce',
    'Decision',
    'VotingBuffer',
]

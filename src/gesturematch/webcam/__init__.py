"""
gesturematch webcam module

Camera capture, MediaPipe hand/face detection and the Qt game controller.
"""
from .camera import Camera
from .hand_tracker import HandTracker
from .face_tracker import BlendshapeExpressionModel, FaceTracker
from .worker import DetectionWorker
from .controller import GameController

__all__ = [
    'Camera',
    'HandTracker',
    'FaceTracker',
    'BlendshapeExpressionModel',
    'DetectionWorker',
    'GameController',
]

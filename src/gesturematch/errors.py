"""Exceptions raised by gesturematch."""


class GestureMatchError(Exception):
    """Base class for all gesturematch errors."""


class MalformedLandmarksError(GestureMatchError, ValueError):
    """Landmark input does not match the expected anatomical layout."""


class DetectorUnavailableError(GestureMatchError, RuntimeError):
    """An external landmark detector could not be started or crashed."""

    def __init__(self, modality: str, reason: str):
        super().__init__(f"{modality} detection inactive: {reason}")
        self.modality = modality
        self.reason = reason

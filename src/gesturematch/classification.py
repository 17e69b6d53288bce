"""
Per-tick classification result shared by the gesture and expression classifiers.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .labels import TargetLabel


@dataclass(frozen=True)
class Classification:
    """
    One labeled observation for a single detection tick.

    Attributes:
        label: Recognized label, or None for "nothing recognized"
        confidence: 0-1
        debug: Structured diagnostics (sub-condition results, distances).
            Consumed by overlays and tests, never by control flow.
    """
    label: Optional[TargetLabel] = None
    confidence: float = 0.0
    debug: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def none(cls, reason: Optional[str] = None, **debug: Any) -> "Classification":
        if reason is not None:
            debug["reason"] = reason
        return cls(label=None, confidence=0.0, debug=debug)

    @property
    def is_none(self) -> bool:
        return self.label is None

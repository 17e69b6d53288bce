"""
Temporal voting over the most recent per-frame classifications.

A single frame of geometric thresholding is noisy, so a label is only
reported once it shows up often enough in a short sliding window.
"""
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Mapping, Optional

from .classification import Classification
from .config import VotingConfig
from .labels import TargetLabel


@dataclass
class LabelStats:
    count: int = 0
    total_confidence: float = 0.0

    @property
    def average_confidence(self) -> float:
        return self.total_confidence / self.count if self.count else 0.0


@dataclass(frozen=True)
class Decision:
    """Stabilized output of the voting window for one tick."""
    label: Optional[TargetLabel] = None
    confidence: float = 0.0
    consistency: float = 0.0    # occurrences / capacity
    score: float = 0.0
    debug: Dict[str, object] = field(default_factory=dict)

    @classmethod
    def none(cls, **debug) -> "Decision":
        return cls(debug=debug)

    @property
    def is_none(self) -> bool:
        return self.label is None


class VotingBuffer:
    """
    Fixed-capacity FIFO of classifications with frequency voting.

    score(label) = (count / capacity) * average_confidence

    A label is eligible only when its count reaches its required count.
    The eligible label with the highest score wins; on equal scores the
    label seen first in the window keeps the lead.
    """

    def __init__(
        self,
        capacity: int = 5,
        required_counts: Optional[Mapping[str, int]] = None,
        default_required: int = 2,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._required = {str(k): int(v) for k, v in (required_counts or {}).items()}
        self._default_required = default_required
        self._window: Deque[Classification] = deque(maxlen=capacity)

    @classmethod
    def from_config(cls, config: VotingConfig) -> "VotingBuffer":
        return cls(
            capacity=config.capacity,
            required_counts=config.required_counts,
            default_required=config.default_required,
        )

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._window)

    def entries(self) -> List[Classification]:
        return list(self._window)

    def required_count(self, label: TargetLabel) -> int:
        key = getattr(label, "value", label)
        return self._required.get(key, self._default_required)

    def clear(self) -> None:
        self._window.clear()

    def push(self, classification: Optional[Classification]) -> Decision:
        """Insert one tick's classification (None = missing input) and vote."""
        self._window.append(classification if classification is not None else Classification.none())
        return self.decide()

    def decide(self) -> Decision:
        stats: Dict[TargetLabel, LabelStats] = {}
        for entry in self._window:
            if entry.label is None:
                continue
            entry_stats = stats.setdefault(entry.label, LabelStats())
            entry_stats.count += 1
            entry_stats.total_confidence += entry.confidence

        best: Optional[TargetLabel] = None
        best_score = 0.0
        for label, label_stats in stats.items():
            if label_stats.count < self.required_count(label):
                continue
            score = (label_stats.count / self._capacity) * label_stats.average_confidence
            if best is None or score > best_score:
                best, best_score = label, score

        debug = {
            getattr(label, "value", str(label)): {
                "count": s.count,
                "average_confidence": round(s.average_confidence, 3),
            }
            for label, s in stats.items()
        }
        if best is None:
            return Decision.none(votes=debug)

        winner = stats[best]
        return Decision(
            label=best,
            confidence=winner.average_confidence,
            consistency=winner.count / self._capacity,
            score=best_score,
            debug={"votes": debug},
        )

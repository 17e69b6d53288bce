"""
Labels a game round can ask for, plus their display catalog.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union


class GestureLabel(str, Enum):
    """Hand gestures recognized from landmark geometry."""
    THUMBS_UP = "thumbs_up"
    THUMBS_DOWN = "thumbs_down"
    KOREAN_HEART = "korean_heart"
    ROCK = "rock"
    LOVE_SIGN = "love_sign"
    PEACE_SIGN = "peace_sign"
    TWO_HAND_HEART = "two_hand_heart"


class ExpressionLabel(str, Enum):
    """Facial expressions. WINK is synthesized, never supplied by a model."""
    NEUTRAL = "neutral"
    HAPPY = "happy"
    SAD = "sad"
    ANGRY = "angry"
    SURPRISED = "surprised"
    DISGUSTED = "disgusted"
    WINK = "wink"


TargetLabel = Union[GestureLabel, ExpressionLabel]

# Labels an external expression model may report probabilities for
PROBABILITY_LABELS: Tuple[ExpressionLabel, ...] = tuple(
    label for label in ExpressionLabel if label is not ExpressionLabel.WINK
)

ALL_TARGETS: Tuple[TargetLabel, ...] = tuple(ExpressionLabel) + tuple(GestureLabel)


def parse_label(value: Union[str, TargetLabel, None]) -> Optional[TargetLabel]:
    """Resolve a label name to its enum member, or None if unknown."""
    if value is None:
        return None
    if isinstance(value, (GestureLabel, ExpressionLabel)):
        return value
    for enum_cls in (GestureLabel, ExpressionLabel):
        try:
            return enum_cls(value)
        except ValueError:
            continue
    return None


@dataclass(frozen=True)
class CatalogEntry:
    name: str
    emoji: str
    description: str
    tip: str = ""


CATALOG: Dict[TargetLabel, CatalogEntry] = {
    ExpressionLabel.NEUTRAL: CatalogEntry("Neutral", "😐", "Relax your face"),
    ExpressionLabel.HAPPY: CatalogEntry("Happy", "😄", "Give a big smile"),
    ExpressionLabel.SAD: CatalogEntry("Sad", "😢", "Frown and drop the corners of your mouth"),
    ExpressionLabel.ANGRY: CatalogEntry("Angry", "😠", "Lower your brows and press your lips"),
    ExpressionLabel.SURPRISED: CatalogEntry("Surprised", "😲", "Raise your brows and open your mouth"),
    ExpressionLabel.DISGUSTED: CatalogEntry("Disgusted", "🤢", "Wrinkle your nose"),
    ExpressionLabel.WINK: CatalogEntry(
        "Wink", "😉", "Close one eye",
        "Keep the other eye wide open",
    ),
    GestureLabel.THUMBS_UP: CatalogEntry(
        "Thumbs Up", "👍", "Make a fist and extend your thumb upward",
        "Keep other fingers closed, thumb pointing up",
    ),
    GestureLabel.THUMBS_DOWN: CatalogEntry(
        "Thumbs Down", "👎", "Make a fist and extend your thumb downward",
        "Keep other fingers closed, thumb pointing down",
    ),
    GestureLabel.LOVE_SIGN: CatalogEntry(
        "Love Sign", "🤟", "Extend thumb, index finger, and pinky (I Love You in ASL)",
        "Keep middle and ring fingers folded down",
    ),
    GestureLabel.PEACE_SIGN: CatalogEntry(
        "Peace Sign", "✌️", "Extend index and middle fingers in a V shape",
        "Keep ring and pinky fingers folded, make a clear V",
    ),
    GestureLabel.KOREAN_HEART: CatalogEntry(
        "Korean Heart", "🤏", "Touch thumb tip and index finger tip to form a small heart",
        "Make a tiny heart shape with thumb and index finger",
    ),
    GestureLabel.ROCK: CatalogEntry(
        "Rock", "🤘", "Extend index finger and pinky",
        "Keep middle and ring fingers curled",
    ),
    GestureLabel.TWO_HAND_HEART: CatalogEntry(
        "Two-Hand Heart", "💖", "Use both hands to form a heart shape above your head",
        "Bring both hands together, thumbs touching at top, fingers forming heart",
    ),
}


def display_name(label: Optional[TargetLabel]) -> str:
    if label is None:
        return "None"
    entry = CATALOG[label]
    return f"{entry.emoji} {entry.name}"

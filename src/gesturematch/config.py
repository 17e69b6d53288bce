"""
Config loader for gesturematch.
Loads YAML configuration with dataclass validation.

Every threshold below is an empirical default tuned against webcam footage;
they are exposed here so they can be tuned and tested independently.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional
import yaml


@dataclass
class CameraConfig:
    device_id: int = 0
    width: int = 640
    height: int = 480
    fps: int = 30
    mirror: bool = True


@dataclass
class MediaPipeConfig:
    max_num_hands: int = 2
    min_detection_confidence: float = 0.3
    min_tracking_confidence: float = 0.3
    hand_model_path: str = "models/hand_landmarker.task"
    face_model_path: str = "models/face_landmarker.task"


@dataclass
class TickConfig:
    hand_interval_ms: int = 66
    face_interval_ms: int = 250
    # A LIVE_STREAM detector may drop a frame without calling back
    hand_pending_timeout_ms: int = 1000


@dataclass
class GestureConfig:
    fixed_confidence: float = 0.8   # Reported by the boolean-AND gestures

    # Korean finger heart (single hand, weighted)
    korean_tip_distance: float = 0.05
    korean_raise_margin: float = 0.02
    korean_bend_margin: float = 0.01
    korean_extension: float = 0.05
    korean_weights: Dict[str, float] = field(default_factory=lambda: {
        "tips_close": 0.4,
        "fingers_raised": 0.2,
        "thumb_bent": 0.15,
        "index_bent": 0.15,
        "fingers_extended": 0.1,
    })
    korean_heart_accept: float = 0.6

    # Two-hand heart (weighted)
    heart_raise_margin: float = 0.03
    heart_thumb_distance: float = 0.18
    heart_index_spread_ratio: float = 1.2
    heart_shape_margin: float = 0.02
    heart_same_height: float = 0.12
    heart_wrist_gap_min: float = 0.1
    heart_wrist_gap_max: float = 0.5
    heart_index_extension: float = 0.08
    two_hand_heart_weights: Dict[str, float] = field(default_factory=lambda: {
        "hands_raised": 0.2,
        "thumbs_close": 0.2,
        "indexes_separated": 0.15,
        "heart_shape": 0.15,
        "same_height": 0.1,
        "facing_each_other": 0.1,
        "hands_close": 0.05,
        "fingers_extended": 0.05,
    })
    two_hand_heart_accept: float = 0.65

    # Rock: thumb tucked against the palm, otherwise it reads as a love sign
    rock_thumb_tuck: float = 0.08

    # Thumbs up / down
    thumb_vertical: float = 0.08
    curl_tolerance: float = 0.03
    curled_fingers_required: int = 3
    thumb_separation: float = 0.05

    # Love sign
    love_raise: float = 0.1
    love_fold_margin: float = 0.05

    # Peace sign
    peace_spread: float = 0.05


@dataclass
class ExpressionConfig:
    eye_closed_ear: float = 0.27    # closed below this
    eye_open_ear: float = 0.28      # open above this, in between keeps last state
    ear_difference: float = 0.01
    tongue_out_mar: float = 0.3
    wink_confidence: float = 0.9


@dataclass
class VotingConfig:
    capacity: int = 5
    default_required: int = 2
    required_counts: Dict[str, int] = field(default_factory=lambda: {
        "two_hand_heart": 3,
    })


@dataclass
class GameConfig:
    cooldown_ms: int = 3000
    resolution_delay_ms: int = 1500
    completion_delay_ms: int = 3000
    seed: Optional[int] = None


@dataclass
class Config:
    camera: CameraConfig = field(default_factory=CameraConfig)
    mediapipe: MediaPipeConfig = field(default_factory=MediaPipeConfig)
    ticks: TickConfig = field(default_factory=TickConfig)
    gestures: GestureConfig = field(default_factory=GestureConfig)
    expressions: ExpressionConfig = field(default_factory=ExpressionConfig)
    voting: VotingConfig = field(default_factory=VotingConfig)
    game: GameConfig = field(default_factory=GameConfig)


def _dict_to_dataclass(cls, data: dict):
    """Convert a dict to a dataclass, ignoring unknown keys."""
    if data is None:
        return cls()
    field_names = {f.name for f in cls.__dataclass_fields__.values()}
    filtered = {k: v for k, v in data.items() if k in field_names}
    defaults = cls()
    # Partial weight tables merge into the defaults instead of replacing them
    for name, value in filtered.items():
        current = getattr(defaults, name)
        if isinstance(current, dict) and isinstance(value, dict):
            merged = dict(current)
            merged.update(value)
            filtered[name] = merged
    return cls(**filtered)


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default config.yaml
                    in project root.

    Returns:
        Config dataclass with all settings.
    """
    if config_path is None:
        # Default to config.yaml in project root
        config_path = Path(__file__).parent.parent.parent / "config.yaml"

    config_path = Path(config_path)

    if not config_path.exists():
        # Return defaults if no config file
        return Config()

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    return Config(
        camera=_dict_to_dataclass(CameraConfig, data.get('camera')),
        mediapipe=_dict_to_dataclass(MediaPipeConfig, data.get('mediapipe')),
        ticks=_dict_to_dataclass(TickConfig, data.get('ticks')),
        gestures=_dict_to_dataclass(GestureConfig, data.get('gestures')),
        expressions=_dict_to_dataclass(ExpressionConfig, data.get('expressions')),
        voting=_dict_to_dataclass(VotingConfig, data.get('voting')),
        game=_dict_to_dataclass(GameConfig, data.get('game')),
    )

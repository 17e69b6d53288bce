"""
Hand gesture classification from landmark geometry.

Each gesture is a rule table of small named predicates. Weighted rules add the
configured weight of every predicate that holds and accept above a threshold;
plain rules require every predicate. Rules are tried in precedence order and
the first match wins, so exactly one label (or none) comes out per frame.
"""
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Sequence, Tuple
import logging

from .classification import Classification
from .config import GestureConfig
from .features import distance, hand_points, horizontal_gap, is_above, is_below, vertical_gap
from .labels import GestureLabel
from .landmarks import HandLandmarks

logger = logging.getLogger(__name__)

H = HandLandmarks
FINGER_TIPS = (H.INDEX_TIP, H.MIDDLE_TIP, H.RING_TIP, H.PINKY_TIP)

Predicate = Callable[[object, GestureConfig], bool]


@dataclass(frozen=True)
class Condition:
    name: str
    check: Predicate


@dataclass(frozen=True)
class GestureRule:
    """
    A gesture definition.

    Attributes:
        label: Gesture reported on a match
        conditions: Scored (weighted rules) or required (plain rules) predicates
        gates: Predicates that must hold regardless of the score
        weights_field: GestureConfig attribute holding the weight table;
            None makes this a plain all-conditions rule
        accept_field: GestureConfig attribute holding the acceptance threshold
        two_hands: Rule takes a (left, right) pair instead of one hand
    """
    label: GestureLabel
    conditions: Tuple[Condition, ...]
    gates: Tuple[Condition, ...] = ()
    weights_field: Optional[str] = None
    accept_field: Optional[str] = None
    two_hands: bool = False


@dataclass
class RuleResult:
    label: GestureLabel
    matched: bool
    confidence: float
    flags: Dict[str, bool] = field(default_factory=dict)


# --- Thumbs up / down -------------------------------------------------------

def _thumb_up_displaced(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    return is_above(hand.thumb_tip, hand.wrist, cfg.thumb_vertical)


def _thumb_down_displaced(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    return is_below(hand.thumb_tip, hand.wrist, cfg.thumb_vertical)


def _thumb_chain_up(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    tip, ip, mcp = hand.get(H.THUMB_TIP), hand.get(H.THUMB_IP), hand.get(H.THUMB_MCP)
    return tip.y < ip.y < mcp.y


def _thumb_chain_down(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    tip, ip, mcp = hand.get(H.THUMB_TIP), hand.get(H.THUMB_IP), hand.get(H.THUMB_MCP)
    return tip.y > ip.y > mcp.y


def _curled_toward_palm_count(hand: HandLandmarks, cfg: GestureConfig, thumb_up: bool) -> int:
    wrist = hand.wrist
    count = 0
    for idx in FINGER_TIPS:
        tip = hand.get(idx)
        if thumb_up:
            # Fingers wrapped below the raised thumb sit near or under wrist level
            curled = tip.y > wrist.y - cfg.curl_tolerance
        else:
            curled = tip.y < wrist.y + cfg.curl_tolerance
        if curled:
            count += 1
    return count


def _fingers_curled_up(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    return _curled_toward_palm_count(hand, cfg, thumb_up=True) >= cfg.curled_fingers_required


def _fingers_curled_down(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    return _curled_toward_palm_count(hand, cfg, thumb_up=False) >= cfg.curled_fingers_required


def _thumb_isolated(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    return distance(hand.thumb_tip, hand.index_tip) > cfg.thumb_separation


def _thumb_pose(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    """Thumb pointing straight up or down, clear of the index finger."""
    if not _thumb_isolated(hand, cfg):
        return False
    up = _thumb_up_displaced(hand, cfg) and _thumb_chain_up(hand, cfg)
    down = _thumb_down_displaced(hand, cfg) and _thumb_chain_down(hand, cfg)
    return up or down


# --- Korean finger heart ----------------------------------------------------

def _tips_close(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    return distance(hand.thumb_tip, hand.index_tip) < cfg.korean_tip_distance


def _tips_raised(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    return (is_above(hand.thumb_tip, hand.wrist, cfg.korean_raise_margin)
            and is_above(hand.index_tip, hand.wrist, cfg.korean_raise_margin))


def _thumb_bent(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    return is_above(hand.thumb_tip, hand.get(H.THUMB_IP), cfg.korean_bend_margin)


def _index_bent(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    return is_above(hand.index_tip, hand.get(H.INDEX_PIP), cfg.korean_bend_margin)


def _tips_extended(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    return (distance(hand.thumb_tip, hand.wrist) > cfg.korean_extension
            and distance(hand.index_tip, hand.wrist) > cfg.korean_extension)


def _not_thumb_pose(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    return not _thumb_pose(hand, cfg)


# --- Rock -------------------------------------------------------------------

def _index_extended(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    return is_above(hand.index_tip, hand.get(H.INDEX_PIP))


def _pinky_extended(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    return is_above(hand.pinky_tip, hand.get(H.PINKY_PIP))


def _middle_curled(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    return is_below(hand.middle_tip, hand.get(H.MIDDLE_PIP))


def _ring_curled(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    return is_below(hand.ring_tip, hand.get(H.RING_PIP))


def _thumb_tucked(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    return distance(hand.thumb_tip, hand.get(H.INDEX_MCP)) < cfg.rock_thumb_tuck


# --- Love sign --------------------------------------------------------------

def _love_tips_raised(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    wrist = hand.wrist
    return all(
        is_above(hand.get(idx), wrist, cfg.love_raise)
        for idx in (H.THUMB_TIP, H.INDEX_TIP, H.PINKY_TIP)
    )


def _love_middle_ring_folded(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    wrist = hand.wrist
    return (hand.middle_tip.y > wrist.y - cfg.love_fold_margin
            and hand.ring_tip.y > wrist.y - cfg.love_fold_margin)


# --- Peace sign -------------------------------------------------------------
# Index PIP is the shared reference joint for all four fingers

def _peace_extended(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    ref = hand.get(H.INDEX_PIP)
    return is_above(hand.index_tip, ref) and is_above(hand.middle_tip, ref)


def _peace_folded(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    ref = hand.get(H.INDEX_PIP)
    return is_below(hand.ring_tip, ref) and is_below(hand.pinky_tip, ref)


def _peace_spread(hand: HandLandmarks, cfg: GestureConfig) -> bool:
    return horizontal_gap(hand.index_tip, hand.middle_tip) > cfg.peace_spread


# --- Two-hand heart ---------------------------------------------------------

HandPair = Tuple[HandLandmarks, HandLandmarks]


def _hands_raised(pair: HandPair, cfg: GestureConfig) -> bool:
    margin = cfg.heart_raise_margin
    return all(
        is_above(hand.thumb_tip, hand.wrist, margin) and is_above(hand.index_tip, hand.wrist, margin)
        for hand in pair
    )


def _thumbs_close(pair: HandPair, cfg: GestureConfig) -> bool:
    left, right = pair
    return distance(left.thumb_tip, right.thumb_tip) < cfg.heart_thumb_distance


def _indexes_separated(pair: HandPair, cfg: GestureConfig) -> bool:
    left, right = pair
    thumbs = distance(left.thumb_tip, right.thumb_tip)
    return distance(left.index_tip, right.index_tip) > thumbs * cfg.heart_index_spread_ratio


def _heart_shape(pair: HandPair, cfg: GestureConfig) -> bool:
    return all(
        is_below(hand.index_tip, hand.thumb_tip, cfg.heart_shape_margin) for hand in pair
    )


def _same_height(pair: HandPair, cfg: GestureConfig) -> bool:
    left, right = pair
    return vertical_gap(left.thumb_tip, right.thumb_tip) < cfg.heart_same_height


def _facing_each_other(pair: HandPair, cfg: GestureConfig) -> bool:
    left, right = pair
    return left.thumb_tip.x < left.index_tip.x and right.thumb_tip.x > right.index_tip.x


def _hands_close(pair: HandPair, cfg: GestureConfig) -> bool:
    left, right = pair
    gap = horizontal_gap(left.wrist, right.wrist)
    return cfg.heart_wrist_gap_min < gap < cfg.heart_wrist_gap_max


def _both_indexes_extended(pair: HandPair, cfg: GestureConfig) -> bool:
    return all(
        distance(hand.index_tip, hand.wrist) > cfg.heart_index_extension for hand in pair
    )


TWO_HAND_HEART = GestureRule(
    label=GestureLabel.TWO_HAND_HEART,
    conditions=(
        Condition("hands_raised", _hands_raised),
        Condition("thumbs_close", _thumbs_close),
        Condition("indexes_separated", _indexes_separated),
        Condition("heart_shape", _heart_shape),
        Condition("same_height", _same_height),
        Condition("facing_each_other", _facing_each_other),
        Condition("hands_close", _hands_close),
        Condition("fingers_extended", _both_indexes_extended),
    ),
    weights_field="two_hand_heart_weights",
    accept_field="two_hand_heart_accept",
    two_hands=True,
)

KOREAN_HEART = GestureRule(
    label=GestureLabel.KOREAN_HEART,
    conditions=(
        Condition("tips_close", _tips_close),
        Condition("fingers_raised", _tips_raised),
        Condition("thumb_bent", _thumb_bent),
        Condition("index_bent", _index_bent),
        Condition("fingers_extended", _tips_extended),
    ),
    gates=(Condition("not_thumb_pose", _not_thumb_pose),),
    weights_field="korean_weights",
    accept_field="korean_heart_accept",
)

ROCK = GestureRule(
    label=GestureLabel.ROCK,
    conditions=(
        Condition("index_extended", _index_extended),
        Condition("pinky_extended", _pinky_extended),
        Condition("middle_curled", _middle_curled),
        Condition("ring_curled", _ring_curled),
    ),
    gates=(Condition("thumb_tucked", _thumb_tucked),),
)

THUMBS_UP = GestureRule(
    label=GestureLabel.THUMBS_UP,
    conditions=(
        Condition("thumb_displaced", _thumb_up_displaced),
        Condition("thumb_chain", _thumb_chain_up),
        Condition("fingers_curled", _fingers_curled_up),
        Condition("thumb_isolated", _thumb_isolated),
    ),
)

THUMBS_DOWN = GestureRule(
    label=GestureLabel.THUMBS_DOWN,
    conditions=(
        Condition("thumb_displaced", _thumb_down_displaced),
        Condition("thumb_chain", _thumb_chain_down),
        Condition("fingers_curled", _fingers_curled_down),
        Condition("thumb_isolated", _thumb_isolated),
    ),
)

LOVE_SIGN = GestureRule(
    label=GestureLabel.LOVE_SIGN,
    conditions=(
        Condition("tips_raised", _love_tips_raised),
        Condition("middle_ring_folded", _love_middle_ring_folded),
    ),
)

PEACE_SIGN = GestureRule(
    label=GestureLabel.PEACE_SIGN,
    conditions=(
        Condition("index_middle_extended", _peace_extended),
        Condition("ring_pinky_folded", _peace_folded),
        Condition("separated", _peace_spread),
    ),
)

# Order matters: the shapes overlap geometrically
SINGLE_HAND_RULES: Tuple[GestureRule, ...] = (
    KOREAN_HEART,
    ROCK,
    THUMBS_UP,
    THUMBS_DOWN,
    LOVE_SIGN,
    PEACE_SIGN,
)

RULES: Dict[GestureLabel, GestureRule] = {
    rule.label: rule for rule in (TWO_HAND_HEART,) + SINGLE_HAND_RULES
}


def evaluate_rule(rule: GestureRule, subject, config: GestureConfig) -> RuleResult:
    """Evaluate one rule against a hand (or a hand pair for two-hand rules)."""
    flags = {cond.name: bool(cond.check(subject, config)) for cond in rule.conditions}
    gates_ok = True
    for gate in rule.gates:
        flags[gate.name] = bool(gate.check(subject, config))
        gates_ok = gates_ok and flags[gate.name]

    if rule.weights_field is None:
        matched = gates_ok and all(flags[cond.name] for cond in rule.conditions)
        confidence = config.fixed_confidence if matched else 0.0
        return RuleResult(rule.label, matched, confidence, flags)

    weights = getattr(config, rule.weights_field)
    accept = getattr(config, rule.accept_field)
    # Rounded so summed float weights compare cleanly against the threshold
    score = round(sum(weights.get(cond.name, 0.0) for cond in rule.conditions if flags[cond.name]), 6)
    score = min(1.0, score)
    matched = gates_ok and score > accept
    return RuleResult(rule.label, matched, score, flags)


class GestureClassifier:
    """
    Classifies one frame of 0..2 hands into at most one gesture.

    Precedence:
    - two_hand_heart (only when two hands are visible)
    - korean_heart, rock, thumbs_up, thumbs_down, love_sign, peace_sign
    """

    MAX_HANDS = 2

    def __init__(self, config: Optional[GestureConfig] = None):
        self._config = config or GestureConfig()

    @property
    def config(self) -> GestureConfig:
        return self._config

    def classify(self, hands: Optional[Sequence[HandLandmarks]]) -> Classification:
        if not hands:
            return Classification.none("no_hands")

        valid = [hand for hand in list(hands)[:self.MAX_HANDS] if hand_points(hand) is not None]
        if len(valid) < min(len(hands), self.MAX_HANDS):
            logger.debug("Dropped %d malformed hand(s)", min(len(hands), self.MAX_HANDS) - len(valid))
        if not valid:
            return Classification.none("malformed_hands")

        debug: Dict[str, object] = {"hands": len(valid)}

        if len(valid) == 2:
            result = evaluate_rule(TWO_HAND_HEART, self._ordered_pair(valid), self._config)
            debug[result.label.value] = self._summarize(result)
            if result.matched:
                return Classification(result.label, result.confidence, debug)

        for rule in SINGLE_HAND_RULES:
            for hand in valid:
                result = evaluate_rule(rule, hand, self._config)
                if result.matched:
                    debug[result.label.value] = self._summarize(result)
                    debug["distance"] = round(distance(hand.thumb_tip, hand.index_tip), 3)
                    return Classification(result.label, result.confidence, debug)
                if rule.weights_field is not None:
                    debug[result.label.value] = self._summarize(result)

        return Classification.none("no_match", **debug)

    def evaluate(self, label: GestureLabel, hands: Sequence[HandLandmarks]) -> RuleResult:
        """Evaluate a single rule, ignoring precedence. Useful for tuning."""
        rule = RULES[GestureLabel(label)]
        if rule.two_hands:
            if len(hands) < 2:
                return RuleResult(rule.label, False, 0.0)
            return evaluate_rule(rule, self._ordered_pair(hands[:2]), self._config)
        return evaluate_rule(rule, hands[0], self._config)

    @staticmethod
    def _ordered_pair(hands: Sequence[HandLandmarks]) -> HandPair:
        """Order two hands left to right in the frame by wrist x."""
        first, second = hands[0], hands[1]
        if first.wrist.x <= second.wrist.x:
            return (first, second)
        return (second, first)

    @staticmethod
    def _summarize(result: RuleResult) -> Dict[str, object]:
        summary: Dict[str, object] = dict(result.flags)
        summary["confidence"] = round(result.confidence, 3)
        return summary

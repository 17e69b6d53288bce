import pytest
from gesturematch.config import ExpressionConfig
from gesturematch.expression_classifier import EyeState, ExpressionClassifier, base_expression
from gesturematch.labels import ExpressionLabel
from gesturematch.landmarks import FaceDetection, FaceLandmarks

from conftest import make_detection, make_eye, make_mouth


@pytest.fixture
def classifier():
    config = ExpressionConfig()
    return ExpressionClassifier(config)


def test_highest_probability_wins(classifier):
    result = classifier.classify(make_detection({"neutral": 0.2, "happy": 0.7, "sad": 0.1}))

    assert result.label == ExpressionLabel.HAPPY
    assert result.confidence == pytest.approx(0.7)


def test_unknown_keys_are_ignored():
    label, confidence = base_expression({"fearful": 0.9, "sad": 0.3})

    assert label == ExpressionLabel.SAD
    assert confidence == pytest.approx(0.3)


def test_ties_keep_the_earlier_label():
    label, _ = base_expression({"angry": 0.5, "happy": 0.5})

    assert label == ExpressionLabel.HAPPY


def test_no_face(classifier):
    result = classifier.classify(None)

    assert result.is_none
    assert result.debug["reason"] == "no_face"


def test_no_probabilities(classifier):
    assert classifier.classify(make_detection({})).debug["reason"] == "no_expression"


def test_wink_overrides_model(classifier):
    result = classifier.classify(make_detection({"happy": 0.99}, left_ear=0.15, right_ear=0.35))

    assert result.label == ExpressionLabel.WINK
    assert result.confidence == pytest.approx(classifier.config.wink_confidence)
    assert result.debug["base"] == "happy"


def test_wink_with_either_eye(classifier):
    result = classifier.classify(make_detection(left_ear=0.35, right_ear=0.15))

    assert result.label == ExpressionLabel.WINK


def test_blink_is_not_a_wink(classifier):
    result = classifier.classify(make_detection(left_ear=0.15, right_ear=0.15))

    assert result.label == ExpressionLabel.NEUTRAL


def test_small_ear_difference_is_not_a_wink(classifier):
    # Left just closed, right in the dead zone and still open
    result = classifier.classify(make_detection(left_ear=0.269, right_ear=0.275))

    assert result.debug["left_closed"] is True
    assert result.debug["right_closed"] is False
    assert result.label == ExpressionLabel.NEUTRAL


def test_significant_ear_difference_is_a_wink(classifier):
    result = classifier.classify(make_detection(left_ear=0.26, right_ear=0.275))

    assert result.label == ExpressionLabel.WINK


def test_tongue_out_relaxes_wink(classifier):
    # Both eyes squeezed shut, which is a blink without the open mouth
    result = classifier.classify(make_detection(left_ear=0.2, right_ear=0.2, mar=0.4))

    assert result.debug["tongue_out"] is True
    assert result.label == ExpressionLabel.WINK


def test_tongue_out_needs_a_closed_eye(classifier):
    result = classifier.classify(make_detection(mar=0.4))

    assert result.label == ExpressionLabel.NEUTRAL


def test_eye_state_dead_zone():
    eye = EyeState(ExpressionConfig())

    assert eye.update(0.275) is False    # starts open, dead zone keeps it
    assert eye.update(0.2) is True
    assert eye.update(0.275) is True     # dead zone keeps closed
    assert eye.update(None) is True
    assert eye.update(0.3) is False


def test_dead_zone_remembers_previous_frame(classifier):
    classifier.classify(make_detection(left_ear=0.2, right_ear=0.35))
    result = classifier.classify(make_detection(left_ear=0.275, right_ear=0.35))

    assert result.debug["left_closed"] is True
    assert result.label == ExpressionLabel.WINK

    classifier.reset()
    result = classifier.classify(make_detection(left_ear=0.275, right_ear=0.35))
    assert result.label == ExpressionLabel.NEUTRAL


def test_missing_landmarks_skip_wink(classifier):
    detection = FaceDetection(expression_probabilities={"sad": 0.8}, landmarks=None)

    result = classifier.classify(detection)

    assert result.label == ExpressionLabel.SAD
    assert result.debug["wink"] == "no_landmarks"


def test_malformed_eye_contour_skips_wink(classifier):
    face = FaceLandmarks(
        left_eye=tuple(make_eye(0.1)[:4]),
        right_eye=tuple(make_eye(0.35)),
        mouth=tuple(make_mouth(0.05)),
    )
    detection = FaceDetection(expression_probabilities={"angry": 0.6}, landmarks=face)

    result = classifier.classify(detection)

    assert result.label == ExpressionLabel.ANGRY
    assert result.debug["wink"] == "malformed_eyes"

import pytest
from gesturematch.errors import GestureMatchError, MalformedLandmarksError
from gesturematch.features import (
    distance, eye_aspect_ratio, hand_points, is_above, is_below, mouth_aspect_ratio,
)
from gesturematch.landmarks import (
    FaceLandmarks, HandLandmarks, INNER_LIP_MESH, LandmarkPoint, LEFT_EYE_MESH,
)

from conftest import make_eye, make_mouth, thumbs_up_hand


def test_distance_ignores_depth():
    a = LandmarkPoint(0.0, 0.0, 5.0)
    b = LandmarkPoint(0.3, 0.4, -5.0)

    assert distance(a, b) == pytest.approx(0.5)


def test_vertical_relations_use_image_coordinates():
    high = LandmarkPoint(0.5, 0.2)
    low = LandmarkPoint(0.5, 0.6)

    assert is_above(high, low)
    assert is_below(low, high)
    assert not is_above(high, low, margin=0.5)


def test_eye_aspect_ratio():
    assert eye_aspect_ratio(make_eye(0.35)) == pytest.approx(0.35)
    assert eye_aspect_ratio(make_eye(0.1)) == pytest.approx(0.1)


def test_eye_aspect_ratio_rejects_bad_contours():
    assert eye_aspect_ratio(make_eye(0.3)[:5]) is None
    assert eye_aspect_ratio([(0.5, 0.5)] * 6) is None
    assert eye_aspect_ratio(None) is None


def test_mouth_aspect_ratio():
    assert mouth_aspect_ratio(make_mouth(0.4)) == pytest.approx(0.4)
    assert mouth_aspect_ratio(make_mouth(0.4)[:19]) is None


def test_hand_points_layout():
    hand = thumbs_up_hand()

    assert hand_points(hand) is hand.landmarks
    assert hand_points(hand.landmarks[:20]) is None
    assert hand_points(None) is None


def test_hand_from_points_validates_count():
    with pytest.raises(MalformedLandmarksError):
        HandLandmarks.from_points([(0.5, 0.5)] * 20)


def test_malformed_landmarks_is_value_error():
    with pytest.raises(ValueError):
        HandLandmarks.from_points([(0.5, 0.5, 0.0, 1.0)] * 21)
    assert issubclass(MalformedLandmarksError, GestureMatchError)


def test_face_from_groups_validates():
    with pytest.raises(MalformedLandmarksError):
        FaceLandmarks.from_groups(make_eye(0.3)[:5], make_eye(0.3), make_mouth(0.1))
    with pytest.raises(MalformedLandmarksError):
        FaceLandmarks.from_groups(make_eye(0.3), make_eye(0.3), make_mouth(0.1)[:10])


def test_face_from_mesh_picks_groups():
    mesh = [LandmarkPoint(i / 500, i / 500) for i in range(478)]

    face = FaceLandmarks.from_mesh(mesh)

    assert face.left_eye[0] == mesh[LEFT_EYE_MESH[0]]
    assert face.mouth == tuple(mesh[i] for i in INNER_LIP_MESH)
    with pytest.raises(MalformedLandmarksError):
        FaceLandmarks.from_mesh(mesh[:300])

"""
Synthetic landmark poses shared by the tests.

Coordinates are normalized image coordinates: y grows downward.
"""
import pytest

from gesturematch.landmarks import FaceDetection, FaceLandmarks, HandLandmarks


def make_hand(wrist, thumb, index, middle, ring, pinky, handedness="Right"):
    """Build a hand from the wrist plus four (x, y) joints per finger."""
    points = [wrist] + list(thumb) + list(index) + list(middle) + list(ring) + list(pinky)
    return HandLandmarks.from_points(points, handedness=handedness)


def thumbs_up_hand():
    return make_hand(
        wrist=(0.50, 0.80),
        thumb=[(0.45, 0.75), (0.42, 0.68), (0.41, 0.60), (0.40, 0.52)],
        index=[(0.48, 0.70), (0.52, 0.68), (0.53, 0.74), (0.51, 0.78)],
        middle=[(0.51, 0.70), (0.55, 0.69), (0.55, 0.75), (0.53, 0.79)],
        ring=[(0.54, 0.71), (0.57, 0.70), (0.57, 0.76), (0.55, 0.80)],
        pinky=[(0.57, 0.72), (0.59, 0.72), (0.59, 0.77), (0.57, 0.80)],
    )


def thumbs_down_hand():
    return make_hand(
        wrist=(0.50, 0.40),
        thumb=[(0.45, 0.45), (0.42, 0.52), (0.41, 0.60), (0.40, 0.68)],
        index=[(0.48, 0.50), (0.52, 0.52), (0.53, 0.46), (0.51, 0.42)],
        middle=[(0.51, 0.50), (0.55, 0.50), (0.55, 0.45), (0.53, 0.41)],
        ring=[(0.54, 0.49), (0.57, 0.49), (0.57, 0.44), (0.55, 0.40)],
        pinky=[(0.57, 0.48), (0.59, 0.48), (0.59, 0.43), (0.57, 0.40)],
    )


def korean_heart_hand():
    return make_hand(
        wrist=(0.50, 0.80),
        thumb=[(0.45, 0.75), (0.42, 0.68), (0.44, 0.60), (0.48, 0.50)],
        index=[(0.50, 0.62), (0.50, 0.55), (0.49, 0.52), (0.49, 0.48)],
        middle=[(0.53, 0.64), (0.55, 0.62), (0.55, 0.68), (0.54, 0.72)],
        ring=[(0.56, 0.65), (0.58, 0.64), (0.58, 0.70), (0.57, 0.73)],
        pinky=[(0.59, 0.67), (0.61, 0.66), (0.61, 0.71), (0.60, 0.74)],
    )


def rock_hand():
    return make_hand(
        wrist=(0.50, 0.80),
        thumb=[(0.45, 0.76), (0.43, 0.70), (0.45, 0.66), (0.50, 0.66)],
        index=[(0.48, 0.62), (0.47, 0.52), (0.47, 0.46), (0.47, 0.40)],
        middle=[(0.51, 0.62), (0.52, 0.56), (0.52, 0.62), (0.52, 0.66)],
        ring=[(0.55, 0.63), (0.56, 0.57), (0.56, 0.63), (0.56, 0.67)],
        pinky=[(0.58, 0.66), (0.60, 0.58), (0.61, 0.53), (0.62, 0.48)],
    )


def love_sign_hand():
    return make_hand(
        wrist=(0.50, 0.80),
        thumb=[(0.44, 0.76), (0.40, 0.70), (0.36, 0.66), (0.33, 0.62)],
        index=[(0.48, 0.62), (0.47, 0.52), (0.47, 0.46), (0.47, 0.40)],
        middle=[(0.51, 0.62), (0.52, 0.60), (0.52, 0.70), (0.52, 0.78)],
        ring=[(0.55, 0.63), (0.56, 0.61), (0.56, 0.71), (0.56, 0.78)],
        pinky=[(0.58, 0.66), (0.60, 0.58), (0.61, 0.53), (0.62, 0.50)],
    )


def peace_sign_hand():
    return make_hand(
        wrist=(0.50, 0.80),
        thumb=[(0.45, 0.76), (0.43, 0.70), (0.46, 0.66), (0.52, 0.67)],
        index=[(0.47, 0.62), (0.45, 0.54), (0.43, 0.47), (0.42, 0.40)],
        middle=[(0.51, 0.61), (0.53, 0.53), (0.55, 0.46), (0.56, 0.39)],
        ring=[(0.55, 0.63), (0.57, 0.58), (0.57, 0.63), (0.56, 0.66)],
        pinky=[(0.58, 0.66), (0.60, 0.62), (0.60, 0.66), (0.59, 0.69)],
    )


def relaxed_hand():
    """Open hand hanging down, matches nothing."""
    return make_hand(
        wrist=(0.50, 0.40),
        thumb=[(0.46, 0.44), (0.43, 0.48), (0.41, 0.52), (0.40, 0.55)],
        index=[(0.47, 0.52), (0.46, 0.58), (0.46, 0.62), (0.46, 0.66)],
        middle=[(0.50, 0.53), (0.50, 0.60), (0.50, 0.64), (0.50, 0.68)],
        ring=[(0.53, 0.52), (0.54, 0.59), (0.54, 0.63), (0.54, 0.66)],
        pinky=[(0.56, 0.51), (0.57, 0.56), (0.57, 0.59), (0.57, 0.62)],
    )


def _heart_half(wrist, thumb_tip, index_tip, handedness):
    wx, wy = wrist
    tx, ty = thumb_tip
    ix, iy = index_tip
    curled = [(wx, wy - 0.10), (wx, wy - 0.12), (wx, wy - 0.10), (wx, wy - 0.08)]
    return make_hand(
        wrist=wrist,
        thumb=[(wx, wy - 0.05), ((wx + tx) / 2, wy - 0.12), (tx, ty + 0.08), thumb_tip],
        index=[(wx, wy - 0.12), (ix, iy + 0.12), (ix, iy + 0.06), index_tip],
        middle=curled,
        ring=curled,
        pinky=curled,
        handedness=handedness,
    )


def two_hand_heart_pair():
    """Right hand first so the classifier has to order them itself."""
    left = _heart_half((0.38, 0.80), (0.47, 0.50), (0.40, 0.56), "Left")
    right = _heart_half((0.62, 0.80), (0.53, 0.50), (0.60, 0.56), "Right")
    return [right, left]


POSES = {
    "thumbs_up": thumbs_up_hand,
    "thumbs_down": thumbs_down_hand,
    "korean_heart": korean_heart_hand,
    "rock": rock_hand,
    "love_sign": love_sign_hand,
    "peace_sign": peace_sign_hand,
}


def make_eye(ear, x0=0.3, y0=0.4, width=0.1):
    """6-point eye contour (p0..p5) with the requested aspect ratio."""
    half = ear * width / 2
    return [
        (x0, y0),
        (x0 + width * 0.3, y0 - half),
        (x0 + width * 0.7, y0 - half),
        (x0 + width, y0),
        (x0 + width * 0.7, y0 + half),
        (x0 + width * 0.3, y0 + half),
    ]


def make_mouth(mar, cx=0.5, cy=0.7, width=0.2):
    """20-point inner lip contour with the requested opening ratio."""
    half_h = mar * width / 2
    half_w = width / 2
    points = []
    for i in range(20):
        if i <= 10:
            # Lower lip, left corner -> right corner
            t = i / 10
            x = cx - half_w + width * t
            y = cy + half_h * (1 - abs(2 * t - 1))
        else:
            # Upper lip, right corner -> left corner
            t = (i - 10) / 10
            x = cx + half_w - width * t
            y = cy - half_h * (1 - abs(2 * t - 1))
        points.append((x, y))
    return points


def make_face(left_ear=0.35, right_ear=0.35, mar=0.05):
    return FaceLandmarks.from_groups(
        left_eye=make_eye(left_ear, x0=0.30),
        right_eye=make_eye(right_ear, x0=0.60),
        mouth=make_mouth(mar),
    )


def make_detection(probabilities=None, **face):
    if probabilities is None:
        probabilities = {"neutral": 0.9, "happy": 0.05}
    return FaceDetection(expression_probabilities=probabilities, landmarks=make_face(**face))


class FakeClock:
    def __init__(self, now=0):
        self.now = now

    def __call__(self):
        return self.now


class ManualScheduler:
    """Collects delayed callbacks and fires them when the clock advances."""

    def __init__(self, clock):
        self.clock = clock
        self.pending = []

    def __call__(self, delay_ms, callback):
        self.pending.append((self.clock.now + delay_ms, callback))

    def advance(self, ms):
        self.clock.now += ms
        due = sorted(
            (item for item in self.pending if item[0] <= self.clock.now),
            key=lambda item: item[0],
        )
        self.pending = [item for item in self.pending if item[0] > self.clock.now]
        for _, callback in due:
            callback()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return ManualScheduler(clock)

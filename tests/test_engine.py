import random

import pytest
from gesturematch.config import Config
from gesturematch.engine import FACE, HAND, MatchEngine
from gesturematch.labels import ExpressionLabel, GestureLabel
from gesturematch.session import Status

from conftest import make_detection, relaxed_hand, thumbs_up_hand

UP = GestureLabel.THUMBS_UP
HAPPY = ExpressionLabel.HAPPY


@pytest.fixture
def engine(clock, scheduler):
    return MatchEngine(Config(), scheduler=scheduler, clock=clock, rng=random.Random(3))


def skip_to(engine, label):
    """Skip until label is the current target and not the last one."""
    for _ in range(200):
        session = engine.session
        if session.target == label and session.index < len(session.sequence) - 1:
            return
        engine.skip()
    raise AssertionError(f"{label} never came up")


def show_hand(engine, clock, hand, ticks=2):
    decision = None
    for _ in range(ticks):
        clock.now += 66
        decision = engine.on_hands([hand])
    return decision


def test_decisions_without_a_game(engine, clock, scheduler):
    decision = show_hand(engine, clock, thumbs_up_hand())

    assert decision.label == UP
    assert engine.decision == UP
    assert engine.session.score == 0
    assert scheduler.pending == []


def test_gesture_match_flow(engine, clock, scheduler):
    engine.start()
    skip_to(engine, UP)
    index = engine.session.index

    assert show_hand(engine, clock, thumbs_up_hand(), ticks=1).is_none
    show_hand(engine, clock, thumbs_up_hand(), ticks=1)

    assert engine.session.score == 1
    assert engine.session.match_lock
    assert engine.view().message == "Correct! +1 point"

    # Holding the pose while locked does not score again
    show_hand(engine, clock, thumbs_up_hand(), ticks=3)
    assert engine.session.score == 1

    scheduler.advance(1500)
    assert engine.session.index == index + 1
    assert not engine.session.match_lock
    assert engine.session.target != UP


def test_expression_match_flow(engine, clock, scheduler):
    engine.start()
    skip_to(engine, HAPPY)

    for _ in range(2):
        clock.now += 250
        engine.on_face(make_detection({"happy": 0.9, "neutral": 0.1}))

    assert engine.session.score == 1
    assert engine.modality_decision(FACE).label == HAPPY


def test_stop_settles_pending_resolution(engine, clock, scheduler):
    engine.start()
    skip_to(engine, UP)
    index = engine.session.index
    show_hand(engine, clock, thumbs_up_hand())

    engine.stop()

    assert engine.session.status == Status.PAUSED
    assert engine.decision is None
    assert len(engine.voting_window(HAND)) == 0

    assert engine.session.index == index + 1
    scheduler.advance(1500)
    assert engine.session.index == index + 1
    assert engine.session.score == 1

    engine.resume()
    assert engine.session.active
    assert not engine.session.match_lock


def test_paused_game_ignores_matches(engine, clock):
    engine.start()
    skip_to(engine, UP)
    engine.stop()

    show_hand(engine, clock, thumbs_up_hand())

    assert engine.decision == UP
    assert engine.session.score == 0


def test_webcam_off_forgets_decisions(engine, clock):
    show_hand(engine, clock, thumbs_up_hand())

    engine.set_webcam(False)

    assert engine.decision is None
    assert engine.view().webcam_on is False
    assert show_hand(engine, clock, thumbs_up_hand()).is_none
    assert len(engine.voting_window(HAND)) == 0


def test_webcam_off_skips_expression_classification(engine):
    engine.set_webcam(False)
    engine.on_face(make_detection(left_ear=0.2, right_ear=0.35))
    engine.set_webcam(True)

    # Left eye in the dead zone keeps its state, which must still be open
    engine.on_face(make_detection(left_ear=0.275, right_ear=0.35))

    assert engine.voting_window(FACE).entries()[-1].label == ExpressionLabel.NEUTRAL


def test_unavailable_modality_is_cleared(engine, clock):
    show_hand(engine, clock, thumbs_up_hand())

    engine.set_available(HAND, False)

    view = engine.view()
    assert view.hand_available is False
    assert view.face_available is True
    assert engine.modality_decision(HAND).is_none
    assert len(engine.voting_window(HAND)) == 0


def test_decision_falls_back_when_votes_expire(engine, clock):
    show_hand(engine, clock, thumbs_up_hand())
    assert engine.decision == UP

    show_hand(engine, clock, relaxed_hand(), ticks=4)

    assert engine.decision is None


def test_listeners_receive_views(engine):
    views = []
    engine.add_listener(views.append)

    engine.start()

    assert views[-1].status == Status.ACTIVE
    assert views[-1].message == "New game started!"
    assert views[-1].progress == (1, len(engine.session.sequence))


def test_without_scheduler_resolves_immediately(clock):
    engine = MatchEngine(Config(), clock=clock, rng=random.Random(3))
    engine.start()
    skip_to(engine, UP)
    index = engine.session.index

    show_hand(engine, clock, thumbs_up_hand())

    assert engine.session.score == 1
    assert engine.session.index == index + 1
    assert not engine.session.match_lock

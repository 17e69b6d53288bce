"""
Game progression state machine.

All session changes go through ``reduce(session, event)``. The session is an
immutable value; a transition returns the new session plus, for an accepted
match, the delayed resolution the caller has to schedule.

A confirmed match holds the single-flight lock until its resolution fires.
Every resolution carries the generation and index it was scheduled for, and
is dropped if the session moved on (stop, new game) in the meantime. A stop
that interrupts a held lock applies the resolution itself, so the matched
target is never offered again.
"""
from dataclasses import dataclass, replace
from enum import Enum
import random
from typing import Optional, Sequence, Tuple, Union
import logging

from .config import GameConfig
from .labels import ALL_TARGETS, TargetLabel, parse_label

logger = logging.getLogger(__name__)


class Status(Enum):
    NOT_STARTED = "NotStarted"
    ACTIVE = "Active"
    PAUSED = "Paused"
    COMPLETED = "Completed"


@dataclass(frozen=True)
class GameSession:
    sequence: Tuple[TargetLabel, ...] = ()
    index: int = 0
    score: int = 0
    active: bool = False
    started: bool = False
    status: Status = Status.NOT_STARTED
    last_match_time: Optional[int] = None     # ms, None = no match to cool down from
    last_match_label: Optional[TargetLabel] = None
    match_lock: bool = False
    generation: int = 0
    message: str = ""

    @property
    def target(self) -> Optional[TargetLabel]:
        if 0 <= self.index < len(self.sequence):
            return self.sequence[self.index]
        return None

    @property
    def progress(self) -> Tuple[int, int]:
        """(current position, sequence length), 1-based for display."""
        if not self.sequence:
            return (0, 0)
        return (min(self.index + 1, len(self.sequence)), len(self.sequence))


# --- Events -----------------------------------------------------------------

@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class Stop:
    pass


@dataclass(frozen=True)
class Resume:
    pass


@dataclass(frozen=True)
class Skip:
    pass


@dataclass(frozen=True)
class Match:
    """A stabilized user decision arriving at time now_ms."""
    label: TargetLabel
    now_ms: int


@dataclass(frozen=True)
class Resolve:
    """Delayed completion of a confirmed match."""
    generation: int
    index: int


Event = Union[Start, Stop, Resume, Skip, Match, Resolve]


@dataclass(frozen=True)
class ScheduledResolution:
    delay_ms: int
    event: Resolve


@dataclass(frozen=True)
class Transition:
    session: GameSession
    schedule: Optional[ScheduledResolution] = None
    accepted: bool = True


def shuffled_targets(
    rng: Optional[random.Random] = None,
    targets: Sequence[TargetLabel] = ALL_TARGETS,
) -> Tuple[TargetLabel, ...]:
    """Fresh uniform permutation of the full target set."""
    rng = rng or random.Random()
    sequence = list(targets)
    rng.shuffle(sequence)
    return tuple(sequence)


def reduce(
    session: GameSession,
    event: Event,
    rng: Optional[random.Random] = None,
    config: Optional[GameConfig] = None,
    targets: Sequence[TargetLabel] = ALL_TARGETS,
) -> Transition:
    """Apply one event to the session."""
    config = config or GameConfig()
    rng = rng or random.Random()

    if isinstance(event, Start):
        return Transition(_start(session, rng, targets))
    if isinstance(event, Stop):
        return _stop(session, rng, targets)
    if isinstance(event, Resume):
        return _resume(session)
    if isinstance(event, Skip):
        return _skip(session, rng, targets)
    if isinstance(event, Match):
        return evaluate_match(session, event.label, event.now_ms, config)
    if isinstance(event, Resolve):
        return _resolve(session, event, rng, targets)
    raise TypeError(f"Unknown session event: {event!r}")


def _ignored(session: GameSession) -> Transition:
    return Transition(session, accepted=False)


def _start(session: GameSession, rng: random.Random, targets: Sequence[TargetLabel]) -> GameSession:
    return GameSession(
        sequence=shuffled_targets(rng, targets),
        index=0,
        score=0,
        active=True,
        started=True,
        status=Status.ACTIVE,
        last_match_time=None,
        last_match_label=None,
        match_lock=False,
        generation=session.generation + 1,
        message="New game started!",
    )


def _stop(session: GameSession, rng: random.Random, targets: Sequence[TargetLabel]) -> Transition:
    if not session.active:
        return _ignored(session)
    if session.match_lock:
        # The scheduled resolution goes stale below, so its effect lands now
        session = _apply_resolution(session, rng, targets)
        if session.status == Status.COMPLETED:
            return Transition(replace(session, generation=session.generation + 1))
    return Transition(replace(
        session,
        active=False,
        status=Status.PAUSED,
        match_lock=False,
        generation=session.generation + 1,
        message="Game paused",
    ))


def _resume(session: GameSession) -> Transition:
    if session.active or session.status not in (Status.PAUSED, Status.COMPLETED):
        return _ignored(session)
    return Transition(replace(
        session,
        active=True,
        status=Status.ACTIVE,
        last_match_time=None,
        last_match_label=None,
        message="Game resumed",
    ))


def _skip(session: GameSession, rng: random.Random, targets: Sequence[TargetLabel]) -> Transition:
    if not session.active or session.match_lock:
        return _ignored(session)
    next_index = session.index + 1
    if next_index >= len(session.sequence):
        return Transition(replace(
            session,
            sequence=shuffled_targets(rng, targets),
            index=0,
            message="Skipped! New round shuffled",
        ))
    return Transition(replace(session, index=next_index, message="Skipped"))


def evaluate_match(
    session: GameSession,
    label: Union[TargetLabel, str, None],
    now_ms: int,
    config: Optional[GameConfig] = None,
) -> Transition:
    """
    Try to score a stabilized decision against the current target.

    Rejections (inactive, wrong label, locked, cooling down) leave the
    session untouched and produce no message.
    """
    config = config or GameConfig()
    label = parse_label(label)
    if not session.active or label is None:
        return _ignored(session)
    if label != session.target:
        return _ignored(session)
    if session.match_lock:
        return _ignored(session)
    if (session.last_match_time is not None
            and label == session.last_match_label
            and now_ms - session.last_match_time <= config.cooldown_ms):
        return _ignored(session)

    is_last = session.index + 1 >= len(session.sequence)
    delay = config.completion_delay_ms if is_last else config.resolution_delay_ms
    updated = replace(
        session,
        match_lock=True,
        score=session.score + 1,
        last_match_time=now_ms,
        last_match_label=label,
        message="Correct! +1 point",
    )
    return Transition(
        updated,
        schedule=ScheduledResolution(delay, Resolve(updated.generation, updated.index)),
    )


def _resolve(
    session: GameSession,
    event: Resolve,
    rng: random.Random,
    targets: Sequence[TargetLabel],
) -> Transition:
    if (event.generation != session.generation
            or event.index != session.index
            or not session.match_lock):
        logger.debug("Dropping stale resolution %s (session generation %d, index %d)",
                     event, session.generation, session.index)
        return _ignored(session)

    return Transition(_apply_resolution(session, rng, targets))


def _apply_resolution(
    session: GameSession,
    rng: random.Random,
    targets: Sequence[TargetLabel],
) -> GameSession:
    """Advance past the matched target, or complete the sequence."""
    if session.index + 1 >= len(session.sequence):
        final_score = session.score
        return replace(
            session,
            sequence=shuffled_targets(rng, targets),
            index=0,
            score=0,
            active=False,
            status=Status.COMPLETED,
            last_match_time=None,
            last_match_label=None,
            match_lock=False,
            message=f"Sequence complete! Final score: {final_score}",
        )

    return replace(
        session,
        index=session.index + 1,
        match_lock=False,
        message="",
    )

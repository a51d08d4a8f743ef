import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .base_analyzer import ExerciseSession
from .exercise_types import ExerciseState

logger = logging.getLogger("ExerciseAnalyzer.recovery")


class LossSeverity(Enum):
    BRIEF = "brief"
    MEDIUM = "medium"
    SUSTAINED = "sustained"


@dataclass
class RecoveryConfig:
    brief_max: float = 2.0  # seconds; losses shorter than this are brief
    medium_max: float = 5.0  # seconds; losses at least this long are sustained
    brief_keep: int = 2
    medium_keep: int = 1
    cooldown_grace: float = 0.5  # seconds of cooldown left after a brief loss


@dataclass
class RecoveryOutcome:
    """What a recovery did to the session, reported before the new frame is analyzed."""
    severity: LossSeverity
    loss_duration: float
    retained_samples: int
    state: ExerciseState


class RecoveryPolicy:
    """
    Graded handling of detection loss.

    A short occlusion keeps the rep in progress, a longer absence drops the
    phase, and a sustained absence wipes all movement history. Learned
    thresholds always survive.
    """

    def __init__(self, config: RecoveryConfig = None):
        self.config = config or RecoveryConfig()

    def mark_lost(self, session: ExerciseSession, now: float) -> None:
        """Record the start of a detection gap. Later lost frames keep the first start time."""
        if session.detection_loss_start is None:
            session.detection_loss_start = now
            logger.debug(f"[RECOVERY] Detection lost at {now:.2f}s")

    @staticmethod
    def is_lost(session: ExerciseSession) -> bool:
        return session.detection_loss_start is not None

    def classify(self, duration: float) -> LossSeverity:
        if duration < self.config.brief_max:
            return LossSeverity.BRIEF
        if duration < self.config.medium_max:
            return LossSeverity.MEDIUM
        return LossSeverity.SUSTAINED

    def recover(self, session: ExerciseSession, now: float, cooldown: float) -> Optional[RecoveryOutcome]:
        """
        Apply the recovery rules on re-detection.

        Args:
            session: Session that was in a detection gap
            now: Time of the re-detected frame in seconds
            cooldown: Rep cooldown of the active exercise in seconds

        Returns:
            RecoveryOutcome, or None if the session was not in a detection gap
        """
        if session.detection_loss_start is None:
            return None

        duration = max(0.0, now - session.detection_loss_start)
        severity = self.classify(duration)
        cfg = self.config

        if severity == LossSeverity.BRIEF:
            session.keep_last_positions(cfg.brief_keep)
            # Partial cooldown only: blocks a double count without a full wait
            partial = now - cooldown + cfg.cooldown_grace
            if session.last_rep_time is None:
                session.last_rep_time = partial
            else:
                session.last_rep_time = max(session.last_rep_time, partial)
        elif severity == LossSeverity.MEDIUM:
            session.state = ExerciseState.NEUTRAL
            session.keep_last_positions(cfg.medium_keep)
            session.last_rep_time = now
            session.down_min_angle = None
        else:
            session.state = ExerciseState.NEUTRAL
            session.positions.clear()
            session.velocity_history.clear()
            session.movement_direction = "stationary"
            session.last_rep_time = now
            session.down_min_angle = None
            session.in_position_streak = 0

        session.detection_loss_start = None
        logger.info(f"[RECOVERY] {severity.value} loss of {duration:.2f}s, state={session.state.value}, "
                    f"kept {len(session.positions)} samples")
        return RecoveryOutcome(severity, duration, len(session.positions), session.state)

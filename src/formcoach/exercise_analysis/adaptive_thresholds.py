import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Optional

from .config_utils import load_exercise_config
from .exercise_types import ExerciseType

logger = logging.getLogger("ExerciseAnalyzer.thresholds")


@dataclass(frozen=True)
class AdaptiveThresholds:
    """Angle boundaries of the rep state machine: below ``down`` enters the bottom, above ``up`` completes."""
    down: float
    up: float


@dataclass
class LearnerConfig:
    history_size: int = 50
    min_samples: int = 20
    min_learning_time: float = 10.0  # seconds
    low_percentile: float = 0.2
    high_percentile: float = 0.8
    safety_margin: float = 10.0  # degrees kept between the observed range and each threshold
    max_shift: float = 30.0  # hard bound on how far a learned threshold may move from its default
    min_threshold_gap: float = 20.0  # learned up must stay this far above learned down


def default_thresholds(exercise_type: ExerciseType, config: Optional[dict] = None) -> AdaptiveThresholds:
    """Hand-tuned thresholds from the exercise config table."""
    cfg = config if config is not None else load_exercise_config(exercise_type.value)
    phase = cfg["phase_thresholds"]
    return AdaptiveThresholds(down=float(phase["down"]), up=float(phase["up"]))


class AdaptiveThresholdLearner:
    """
    Personalizes the down/up thresholds from the observed range of the primary angle.

    Keeps a rolling history of the primary angle for the exercise currently
    being learned. Once enough samples and learning time have accumulated the
    20th/80th percentiles of the history, pulled inwards by a safety margin,
    replace the defaults. Learned values never move past their default in the
    direction that makes a rep easier to reach, and never further than
    ``max_shift`` from it.
    """

    def __init__(self, config: LearnerConfig = None, defaults: Dict[ExerciseType, AdaptiveThresholds] = None):
        self.config = config or LearnerConfig()
        self._defaults: Dict[ExerciseType, AdaptiveThresholds] = dict(defaults or {})
        self._learned: Dict[ExerciseType, AdaptiveThresholds] = {}
        self._exercise: Optional[ExerciseType] = None
        self._history: Deque[float] = deque(maxlen=self.config.history_size)
        self._learning_start: Optional[float] = None

    @property
    def sample_count(self) -> int:
        return len(self._history)

    @property
    def exercise(self) -> Optional[ExerciseType]:
        return self._exercise

    def set_defaults(self, exercise_type: ExerciseType, thresholds: AdaptiveThresholds) -> None:
        self._defaults[exercise_type] = thresholds

    def get_defaults(self, exercise_type: ExerciseType) -> AdaptiveThresholds:
        if exercise_type not in self._defaults:
            self._defaults[exercise_type] = default_thresholds(exercise_type)
        return self._defaults[exercise_type]

    def get(self, exercise_type: ExerciseType) -> AdaptiveThresholds:
        """Learned thresholds for the exercise, or its defaults if nothing was learned yet."""
        return self._learned.get(exercise_type) or self.get_defaults(exercise_type)

    def is_learned(self, exercise_type: ExerciseType) -> bool:
        return exercise_type in self._learned

    def reset(self, exercise_type: Optional[ExerciseType] = None) -> None:
        """Restart learning, optionally switching to a new exercise."""
        self._exercise = exercise_type
        self._history.clear()
        self._learning_start = None

    def update(self, angle: float, exercise_type: ExerciseType, timestamp: float) -> AdaptiveThresholds:
        """
        Record one primary-angle observation.

        Args:
            angle: Primary joint angle in degrees
            exercise_type: Exercise the angle belongs to; a change restarts learning
            timestamp: Caller clock in seconds

        Returns:
            The thresholds to use for this frame
        """
        if exercise_type != self._exercise:
            if self._exercise is not None:
                logger.info(f"[THRESHOLDS] Exercise changed to {exercise_type.value}, restarting learning")
            self.reset(exercise_type)

        if angle is None or not math.isfinite(angle):
            return self.get(exercise_type)

        if self._learning_start is None:
            self._learning_start = timestamp
        self._history.append(float(angle))

        elapsed = timestamp - self._learning_start
        if elapsed >= self.config.min_learning_time and len(self._history) >= self.config.min_samples:
            self._recompute(exercise_type)
        return self.get(exercise_type)

    def _recompute(self, exercise_type: ExerciseType) -> None:
        cfg = self.config
        defaults = self.get_defaults(exercise_type)
        ordered = sorted(self._history)
        n = len(ordered)
        p_low = ordered[min(n - 1, int(n * cfg.low_percentile))]
        p_high = ordered[min(n - 1, int(n * cfg.high_percentile))]

        down = max(defaults.down, p_low + cfg.safety_margin)
        up = min(defaults.up, p_high - cfg.safety_margin)
        down = min(down, defaults.down + cfg.max_shift)
        up = max(up, defaults.up - cfg.max_shift)

        if up - down < cfg.min_threshold_gap:
            logger.debug(f"[THRESHOLDS] Rejected {exercise_type.value} down={down:.1f} up={up:.1f}: range too narrow")
            return

        learned = AdaptiveThresholds(down=down, up=up)
        if self._learned.get(exercise_type) != learned:
            logger.info(f"[THRESHOLDS] {exercise_type.value}: down={down:.1f} up={up:.1f} "
                        f"(p{int(cfg.low_percentile * 100)}={p_low:.1f}, p{int(cfg.high_percentile * 100)}={p_high:.1f}, n={n})")
            self._learned[exercise_type] = learned

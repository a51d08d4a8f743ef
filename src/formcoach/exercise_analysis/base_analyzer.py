import logging
import math
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, Tuple

import numpy as np

from ..feedback.messages import FeedbackGenerator, FeedbackItem
from ..pose_detection.types import PoseFrame
from .adaptive_thresholds import AdaptiveThresholdLearner, AdaptiveThresholds, default_thresholds
from .config_utils import load_exercise_config, merge_config
from .exercise_types import ExerciseState, ExerciseType, PositionSample

# --- Logger Setup ---
logger = logging.getLogger("ExerciseAnalyzer")
if not logger.hasHandlers():
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s %(levelname)s %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(logging.INFO)


@dataclass
class ExerciseSession:
    """
    All mutable per-session state of one exercise.

    Created when a session starts and thrown away when the exercise changes or
    the session ends. Analyzers read and update it on every frame; the recovery
    policy trims it after detection loss.
    """
    exercise_type: ExerciseType
    window_size: int = 10
    state: ExerciseState = ExerciseState.NEUTRAL
    rep_count: int = 0
    last_rep_time: Optional[float] = None
    rep_flash_until: Optional[float] = None
    down_min_angle: Optional[float] = None  # Lowest primary angle since entering DOWN
    in_position_streak: int = 0
    movement_direction: str = "stationary"
    detection_loss_start: Optional[float] = None
    learner: AdaptiveThresholdLearner = field(default_factory=AdaptiveThresholdLearner)
    positions: Optional[Deque[PositionSample]] = field(default=None)
    velocity_history: Deque[float] = field(default_factory=lambda: deque(maxlen=3))

    def __post_init__(self):
        if self.positions is None:
            self.positions = deque(maxlen=self.window_size)

    def rep_flash_active(self, now: float) -> bool:
        return self.rep_flash_until is not None and now < self.rep_flash_until

    def keep_last_positions(self, count: int) -> None:
        kept = list(self.positions)[-count:] if count > 0 else []
        self.positions.clear()
        self.positions.extend(kept)


@dataclass
class AnalysisResult:
    """Per-frame output of an exercise analyzer."""
    form_quality: float
    is_exercising: bool
    feedback: List[FeedbackItem]
    primary_angle: Optional[float]
    angle_name: str
    rep_detected: bool = False
    in_position: bool = True
    measurements: Dict[str, float] = field(default_factory=dict)


# --- Generic FormRule ---
class FormRule:
    """Limit on one alignment measurement with the score penalty and message when it is violated."""

    def __init__(self, measurement, min_val=None, max_val=None, penalty=0.0, message=None,
                 min_message=None, max_message=None, icon="⚠️", success_message=None, success_icon="✅"):
        self.measurement = measurement
        self.min_val = min_val
        self.max_val = max_val
        self.penalty = penalty
        self.message = message
        self.min_message = min_message
        self.max_message = max_message
        self.icon = icon
        self.success_message = success_message
        self.success_icon = success_icon

    @classmethod
    def from_dict(cls, rule: Dict[str, Any]) -> "FormRule":
        return cls(
            rule["measurement"],
            min_val=rule.get("min"),
            max_val=rule.get("max"),
            penalty=rule.get("penalty", 0.0),
            message=rule.get("message"),
            min_message=rule.get("min_message"),
            max_message=rule.get("max_message"),
            icon=rule.get("icon", "⚠️"),
            success_message=rule.get("success_message"),
            success_icon=rule.get("success_icon", "✅"),
        )

    def check(self, measurements: Dict[str, float]) -> Optional[str]:
        """Return the violation message, or None when the rule holds or the measurement is unavailable."""
        val = measurements.get(self.measurement)
        if val is None or not math.isfinite(val):
            return None
        if self.min_val is not None and val < self.min_val:
            return self.min_message or self.message or f"{self.measurement} below minimum"
        if self.max_val is not None and val > self.max_val:
            return self.max_message or self.message or f"{self.measurement} above maximum"
        return None


# --- Analyzer Registry ---
EXERCISE_ANALYZER_REGISTRY = {}


def register_exercise_analyzer(exercise_type: ExerciseType):
    def decorator(cls):
        EXERCISE_ANALYZER_REGISTRY[exercise_type] = cls
        return cls
    return decorator


def create_analyzer(exercise_type, config: Optional[Dict[str, Any]] = None) -> "BaseExerciseAnalyzer":
    exercise_type = ExerciseType.parse(exercise_type)
    if exercise_type not in EXERCISE_ANALYZER_REGISTRY:
        raise ValueError(f"No analyzer registered for {exercise_type.value}")
    return EXERCISE_ANALYZER_REGISTRY[exercise_type](config=config)


class BaseExerciseAnalyzer(ABC):
    """
    Shared per-frame algorithm for all exercises.

    Subclasses decide which joints make up the primary angle, which alignment
    measurements exist and whether the subject is in a valid starting
    position. Everything numeric comes from the exercise config table.
    """

    exercise_type: ExerciseType = None

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = merge_config(load_exercise_config(self.exercise_type.value), config)
        self.rep_config = self.config["rep_counting"]
        self.counts_reps = bool(self.rep_config.get("counts_reps", True))
        self.primary_name = self.config["primary_angle"]
        self.secondary_name = self.config.get("secondary_measurement")
        self.form_rules = [FormRule.from_dict(rule) for rule in self.config.get("alignment_rules", [])]
        self.defaults = default_thresholds(self.exercise_type, self.config)

    @property
    def cooldown(self) -> float:
        return float(self.rep_config["cooldown"])

    def get_exercise_name(self) -> str:
        return self.exercise_type.value

    @abstractmethod
    def get_required_landmarks(self) -> List[str]:
        """Get the list of landmarks required for this exercise."""
        pass

    @abstractmethod
    def calculate_measurements(self, frame: PoseFrame) -> Dict[str, float]:
        """
        Compute the primary angle and alignment measurements for a frame.

        Args:
            frame: Pose frame with all required landmarks present

        Returns:
            Dict keyed by measurement name; must contain the configured primary angle
        """
        pass

    def is_in_position(self, frame: PoseFrame, measurements: Dict[str, float]) -> bool:
        """Coarse check that the subject is in the starting posture. Always true unless overridden."""
        return True

    def create_session(self, learner: Optional[AdaptiveThresholdLearner] = None) -> ExerciseSession:
        learner = learner or AdaptiveThresholdLearner()
        learner.set_defaults(self.exercise_type, self.defaults)
        return ExerciseSession(
            exercise_type=self.exercise_type,
            window_size=int(self.rep_config.get("window_size", 10)),
            learner=learner,
        )

    def analyze(self, frame: PoseFrame, session: ExerciseSession, now: float) -> AnalysisResult:
        """
        Analyze a single frame and advance the session.

        Args:
            frame: Pose frame that already passed the quality gate
            session: Per-session state, updated in place
            now: Caller clock in seconds

        Returns:
            AnalysisResult with form quality, feedback and rep event for this frame
        """
        if not frame.has_landmarks(self.get_required_landmarks()):
            return self._degraded_result(FeedbackGenerator.partial_view())

        measurements = self.calculate_measurements(frame)
        angle = measurements.get(self.primary_name)
        if angle is None or not math.isfinite(angle):
            return self._degraded_result(FeedbackGenerator.reacquiring(), measurements)

        secondary = measurements.get(self.secondary_name, float("nan")) if self.secondary_name else float("nan")
        session.positions.append(PositionSample(angle, secondary, now))
        self._update_movement_tracking(session)
        thresholds = session.learner.update(angle, self.exercise_type, now)

        # Position gating
        if not self.is_in_position(frame, measurements):
            session.in_position_streak = 0
            icon = self.config.get("position", {}).get("icon", "💪")
            return AnalysisResult(
                form_quality=0.0,
                is_exercising=False,
                feedback=[FeedbackGenerator.get_into_position(self.get_exercise_name(), icon)],
                primary_angle=angle,
                angle_name=self.primary_name,
                in_position=False,
                measurements=measurements,
            )
        session.in_position_streak += 1

        rep_detected = False
        if self.counts_reps:
            rep_detected = self._update_state_machine(session, angle, thresholds, now)

        form_quality, feedback = self._score_form(session, angle, measurements)
        if rep_detected:
            rep_msg = self.config.get("feedback", {}).get("rep_detected", {})
            feedback.insert(0, FeedbackItem.success(rep_msg.get("message", "Rep detected!"), rep_msg.get("icon", "🎯")))

        return AnalysisResult(
            form_quality=form_quality,
            is_exercising=self._is_exercising(session, angle, measurements, thresholds),
            feedback=feedback,
            primary_angle=angle,
            angle_name=self.primary_name,
            rep_detected=rep_detected,
            measurements=measurements,
        )

    # --- State machine ---
    def _update_state_machine(self, session: ExerciseSession, angle: float,
                              thresholds: AdaptiveThresholds, now: float) -> bool:
        """Advance neutral/down/up. Returns True when this frame completed a rep."""
        if session.state in (ExerciseState.NEUTRAL, ExerciseState.UP):
            if angle < thresholds.down:
                logger.debug(f"[{self.get_exercise_name()}] {session.state.value} -> down at {angle:.1f}")
                session.state = ExerciseState.DOWN
                session.down_min_angle = angle
            return False

        # DOWN
        session.down_min_angle = angle if session.down_min_angle is None else min(session.down_min_angle, angle)
        if angle <= thresholds.up:
            return False
        if not self._cooldown_elapsed(session, now):
            logger.debug(f"[{self.get_exercise_name()}] Rep rejected: cooldown")
            return False
        if not self._is_stable(session, angle):
            logger.debug(f"[{self.get_exercise_name()}] Rep rejected: unstable samples")
            return False
        movement_range = self._movement_range(session, angle)
        if movement_range <= float(self.rep_config["min_range"]):
            logger.debug(f"[{self.get_exercise_name()}] Rep rejected: range {movement_range:.1f}")
            return False

        session.state = ExerciseState.UP
        session.rep_count += 1
        session.last_rep_time = now
        session.rep_flash_until = now + float(self.rep_config.get("rep_flash_duration", 0.8))
        session.down_min_angle = None
        logger.info(f"[{self.get_exercise_name()}] Rep {session.rep_count} counted (range {movement_range:.1f} deg)")
        return True

    def _cooldown_elapsed(self, session: ExerciseSession, now: float) -> bool:
        return session.last_rep_time is None or now - session.last_rep_time > self.cooldown

    def _is_stable(self, session: ExerciseSession, angle: float) -> bool:
        # Coarse anti-jitter guard over the most recent samples
        frames = int(self.rep_config["stability_frames"])
        tolerance = float(self.rep_config["stability_tolerance"])
        recent = list(session.positions)[-frames:]
        return all(abs(sample.primary_angle - angle) <= tolerance for sample in recent)

    def _movement_range(self, session: ExerciseSession, angle: float) -> float:
        frames = int(self.rep_config["range_frames"])
        recent = [sample.primary_angle for sample in list(session.positions)[-frames:]]
        if session.down_min_angle is not None:
            recent.append(session.down_min_angle)
        return angle - min(recent) if recent else 0.0

    def _update_movement_tracking(self, session: ExerciseSession) -> None:
        if len(session.positions) < 2:
            return
        previous, current = session.positions[-2], session.positions[-1]
        time_diff = current.timestamp - previous.timestamp
        if time_diff <= 0:
            return
        session.velocity_history.append((current.primary_angle - previous.primary_angle) / time_diff)
        smoothed_velocity = float(np.mean(session.velocity_history))
        threshold = float(self.rep_config.get("velocity_threshold", 10))
        if abs(smoothed_velocity) < threshold:
            session.movement_direction = "stationary"
        elif smoothed_velocity > 0:
            session.movement_direction = "ascending"
        else:
            session.movement_direction = "descending"

    # --- Form scoring ---
    def _score_form(self, session: ExerciseSession, angle: float,
                    measurements: Dict[str, float]) -> Tuple[float, List[FeedbackItem]]:
        score = 100.0
        feedback: List[FeedbackItem] = []
        show_success = self._shows_success_feedback(session)

        band = self.config.get("depth_band")
        if band and self._band_applies(band, session):
            penalty, item = self._score_band(angle, band)
            score -= penalty
            if item is not None and (penalty > 0 or show_success):
                feedback.append(item)

        for rule in self.form_rules:
            violation = rule.check(measurements)
            if violation:
                score -= rule.penalty
                feedback.append(FeedbackItem.warning(violation, rule.icon))
            elif rule.success_message and show_success and rule.measurement in measurements:
                feedback.append(FeedbackItem.success(rule.success_message, rule.success_icon))

        return max(0.0, min(100.0, score)), feedback

    @staticmethod
    def _band_applies(band: Dict[str, Any], session: ExerciseSession) -> bool:
        states = band.get("applies_in_states")
        return states is None or session.state.value in states

    @staticmethod
    def _score_band(angle: float, band: Dict[str, Any]) -> Tuple[float, Optional[FeedbackItem]]:
        perfect, acceptable = band["perfect"], band["acceptable"]
        messages = band.get("messages", {})
        if perfect["min"] <= angle <= perfect["max"]:
            msg = messages.get("perfect")
            return 0.0, FeedbackItem.success(msg["message"], msg.get("icon", "✅")) if msg else None
        side = "above" if angle > perfect["max"] else "below"
        msg = messages.get(side)
        item = FeedbackItem.warning(msg["message"], msg.get("icon", "⚠️")) if msg else None
        if acceptable["min"] <= angle <= acceptable["max"]:
            return float(band.get("minor_penalty", 0)), item
        return float(band.get("major_penalty", 0)), item

    def _shows_success_feedback(self, session: ExerciseSession) -> bool:
        return session.state != ExerciseState.NEUTRAL

    def _is_exercising(self, session: ExerciseSession, angle: float,
                       measurements: Dict[str, float], thresholds: AdaptiveThresholds) -> bool:
        engaged = float(self.config["phase_thresholds"].get("engaged", thresholds.down))
        return session.state != ExerciseState.NEUTRAL or angle < engaged

    def _degraded_result(self, item: FeedbackItem, measurements: Dict[str, float] = None) -> AnalysisResult:
        return AnalysisResult(
            form_quality=0.0,
            is_exercising=False,
            feedback=[item],
            primary_angle=None,
            angle_name=self.primary_name,
            measurements=measurements or {},
        )

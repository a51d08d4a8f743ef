import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .exercise_analysis import (
    AdaptiveThresholdLearner,
    AnalysisResult,
    ExerciseState,
    ExerciseType,
    LearnerConfig,
    RecoveryConfig,
    RecoveryOutcome,
    RecoveryPolicy,
    create_analyzer,
)
from .feedback.messages import FeedbackGenerator, FeedbackItem
from .pose_detection.quality_assessor import (
    DetectionQuality,
    QualityAssessment,
    QualityAssessor,
    QualityConfig,
    TrackingStatus,
)
from .pose_detection.types import PoseFrame
from .session import SessionAggregator, SessionSummary

# --- Logger Setup ---
logger = logging.getLogger("FormCoachTrainer")
if not logger.hasHandlers():
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s %(levelname)s %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(logging.INFO)


@dataclass
class CurrentAngles:
    primary_angle: Optional[float] = None
    angle_name: str = ""


@dataclass
class FormMetrics:
    """Externally consumed per-frame snapshot. Always rebuilt whole, never patched."""
    form_quality: float = 0.0
    reps: int = 0
    is_exercising: bool = False
    current_angles: CurrentAngles = field(default_factory=CurrentAngles)
    is_person_detected: bool = False
    detection_quality: DetectionQuality = DetectionQuality.POOR
    tracking_status: TrackingStatus = TrackingStatus.LOST
    session_time: str = "00:00"
    movement_direction: str = "stationary"
    rep_flash: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "formQuality": round(self.form_quality, 1),
            "reps": self.reps,
            "isExercising": self.is_exercising,
            "currentAngles": {
                "primaryAngle": self.current_angles.primary_angle,
                "angleName": self.current_angles.angle_name,
            },
            "isPersonDetected": self.is_person_detected,
            "detectionQuality": self.detection_quality.value,
            "trackingStatus": self.tracking_status.value,
            "sessionTime": self.session_time,
            "movementDirection": self.movement_direction,
            "repFlash": self.rep_flash,
        }


@dataclass
class FrameResult:
    metrics: FormMetrics
    feedback: List[FeedbackItem]
    rep_detected: bool = False
    quality: Optional[QualityAssessment] = None
    recovery: Optional[RecoveryOutcome] = None
    exercise_state: ExerciseState = ExerciseState.NEUTRAL


class FormCoachTrainer:
    """
    Frame-driven coaching engine for a single subject.

    Call ``process_frame`` once per pose frame. The trainer gates each frame on
    detection quality, handles detection gaps through the recovery policy,
    runs the analyzer for the selected exercise and rebuilds the metrics and
    feedback from scratch.
    """

    def __init__(self, exercise_type="squat", active: bool = True,
                 quality_config: QualityConfig = None,
                 recovery_config: RecoveryConfig = None,
                 learner_config: LearnerConfig = None,
                 analyzer_configs: Dict[str, Dict[str, Any]] = None):
        """
        Initialize the trainer.

        Args:
            exercise_type: Exercise to analyze ("squat", "pushup" or "plank")
            active: Whether frames are processed at all
            quality_config: Quality assessor thresholds
            recovery_config: Detection-loss recovery timings
            learner_config: Adaptive threshold learner settings
            analyzer_configs: Per-exercise config overrides keyed by exercise name
        """
        self.quality_assessor = QualityAssessor(quality_config)
        self.recovery_policy = RecoveryPolicy(recovery_config)
        self.learner_config = learner_config or LearnerConfig()
        self.analyzer_configs = analyzer_configs or {}
        self.active = active
        self._lock = threading.Lock()

        self.exercise_type = ExerciseType.parse(exercise_type)
        self.analyzer = create_analyzer(self.exercise_type, self.analyzer_configs.get(self.exercise_type.value))
        self.session = None
        self._last_result: Optional[FrameResult] = None
        self._start_session()

    # --- Session control ---
    def _start_session(self) -> None:
        self.session = self.analyzer.create_session(AdaptiveThresholdLearner(self.learner_config))
        self.aggregator = SessionAggregator(self.exercise_type)
        self._last_result = FrameResult(metrics=FormMetrics(), feedback=[])

    def set_exercise(self, exercise_type) -> None:
        """Switch exercise. All per-session state is discarded."""
        exercise_type = ExerciseType.parse(exercise_type)
        with self._lock:
            if exercise_type == self.exercise_type:
                return
            logger.info(f"[TRAINER] Switching exercise {self.exercise_type.value} -> {exercise_type.value}")
            self.exercise_type = exercise_type
            self.analyzer = create_analyzer(exercise_type, self.analyzer_configs.get(exercise_type.value))
            self._start_session()

    def set_active(self, active: bool) -> None:
        """Toggle frame processing. Any change of the flag starts from a fresh session."""
        with self._lock:
            if active == self.active:
                return
            self.active = active
            logger.info(f"[TRAINER] Analysis {'activated' if active else 'deactivated'}")
            self._start_session()

    def reset_session(self) -> None:
        with self._lock:
            logger.info(f"[TRAINER] Session reset ({self.exercise_type.value})")
            self._start_session()

    def summary(self) -> SessionSummary:
        with self._lock:
            return self.aggregator.summary()

    @property
    def metrics(self) -> FormMetrics:
        return self._last_result.metrics

    @property
    def feedback(self) -> List[FeedbackItem]:
        return self._last_result.feedback

    @property
    def rep_flash(self) -> bool:
        return self._last_result.metrics.rep_flash

    # --- Frame processing ---
    def process_frame(self, frame: PoseFrame, now: Optional[float] = None) -> FrameResult:
        """
        Process a single pose frame.

        Args:
            frame: Pose frame from the pose source; an empty frame means no person
            now: Time in seconds; defaults to the frame timestamp

        Returns:
            FrameResult with the rebuilt metrics and feedback for this frame
        """
        with self._lock:
            if now is None:
                now = frame.timestamp
            if not self.active:
                return FrameResult(metrics=FormMetrics(), feedback=[])

            quality = self.quality_assessor.assess(frame)
            session = self.session

            if frame.is_empty:
                self.recovery_policy.mark_lost(session, now)
                result = self._idle_result(now, quality, [FeedbackGenerator.tracking(quality.tracking_status)],
                                           person_detected=False)
                self._last_result = result
                return result

            if not quality.is_analyzable:
                # Landmarks without enough key points count as lost; other poor frames keep any gap as is
                if quality.tracking_status == TrackingStatus.LOST:
                    self.recovery_policy.mark_lost(session, now)
                result = self._idle_result(now, quality, [FeedbackGenerator.tracking(quality.tracking_status)],
                                           person_detected=True)
                self._last_result = result
                return result

            recovery = None
            if self.recovery_policy.is_lost(session):
                recovery = self.recovery_policy.recover(session, now, self.analyzer.cooldown)

            analysis = self._run_analyzer(frame, now)
            result = self._build_result(now, quality, analysis, recovery)
            self._last_result = result
            return result

    def _run_analyzer(self, frame: PoseFrame, now: float) -> AnalysisResult:
        try:
            return self.analyzer.analyze(frame, self.session, now)
        except Exception as e:
            logger.error(f"[TRAINER] Analysis failed for {self.exercise_type.value}: {e}", exc_info=True)
            return AnalysisResult(
                form_quality=0.0,
                is_exercising=False,
                feedback=[FeedbackGenerator.analysis_error()],
                primary_angle=None,
                angle_name=self.analyzer.primary_name,
            )

    def _build_result(self, now: float, quality: QualityAssessment, analysis: AnalysisResult,
                      recovery: Optional[RecoveryOutcome]) -> FrameResult:
        session = self.session
        feedback: List[FeedbackItem] = []
        if quality.tracking_status != TrackingStatus.OPTIMAL:
            feedback.append(FeedbackGenerator.tracking(quality.tracking_status))
        feedback.extend(analysis.feedback)
        if not analysis.feedback and not analysis.is_exercising:
            icon = self.analyzer.config.get("position", {}).get("icon", "💪")
            feedback.append(FeedbackGenerator.get_into_position(self.exercise_type.value, icon))

        self.aggregator.record(now, True, analysis.is_exercising, analysis.form_quality, session.rep_count)
        metrics = FormMetrics(
            form_quality=analysis.form_quality,
            reps=session.rep_count,
            is_exercising=analysis.is_exercising,
            current_angles=CurrentAngles(analysis.primary_angle, analysis.angle_name),
            is_person_detected=True,
            detection_quality=quality.detection_quality,
            tracking_status=quality.tracking_status,
            session_time=self.aggregator.session_time,
            movement_direction=session.movement_direction,
            rep_flash=session.rep_flash_active(now),
        )
        return FrameResult(
            metrics=metrics,
            feedback=feedback,
            rep_detected=analysis.rep_detected,
            quality=quality,
            recovery=recovery,
            exercise_state=session.state,
        )

    def _idle_result(self, now: float, quality: QualityAssessment, feedback: List[FeedbackItem],
                     person_detected: bool) -> FrameResult:
        session = self.session
        self.aggregator.record(now, person_detected, False, 0.0, session.rep_count)
        metrics = FormMetrics(
            form_quality=0.0,
            reps=session.rep_count,
            is_exercising=False,
            current_angles=CurrentAngles(None, self.analyzer.primary_name),
            is_person_detected=person_detected,
            detection_quality=quality.detection_quality,
            tracking_status=quality.tracking_status,
            session_time=self.aggregator.session_time,
            movement_direction=session.movement_direction,
            rep_flash=session.rep_flash_active(now),
        )
        return FrameResult(metrics=metrics, feedback=feedback, quality=quality, exercise_state=session.state)

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from .exercise_analysis.exercise_types import ExerciseType


def format_session_time(seconds: float) -> str:
    """Format elapsed seconds as MM:SS."""
    total = max(0, int(seconds))
    return f"{total // 60:02d}:{total % 60:02d}"


@dataclass
class SessionSummary:
    exercise_type: str
    duration_seconds: int
    total_reps: int
    average_form_score: float
    best_form_score: float
    hold_seconds: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SessionAggregator:
    """
    Accumulates session totals from per-frame metrics.

    Active time only grows while a person is detected. Gaps between frames are
    capped at ``max_frame_gap`` so a stalled video source does not inflate the
    session duration. Form scores are averaged over exercising frames only.
    """

    def __init__(self, exercise_type: ExerciseType, max_frame_gap: float = 1.0):
        self.exercise_type = ExerciseType.parse(exercise_type)
        self.max_frame_gap = max_frame_gap
        self.reset()

    def reset(self) -> None:
        self.active_seconds = 0.0
        self.hold_seconds = 0.0
        self.total_reps = 0
        self.best_form_score = 0.0
        self._form_total = 0.0
        self._form_frames = 0
        self._last_time: Optional[float] = None

    def record(self, now: float, is_person_detected: bool, is_exercising: bool,
               form_quality: float, reps: int) -> None:
        """
        Record one processed frame.

        Args:
            now: Frame time in seconds
            is_person_detected: Whether the frame contained a person
            is_exercising: Whether the analyzer judged the subject to be exercising
            form_quality: Form score of the frame, 0-100
            reps: Current rep count of the session
        """
        elapsed = 0.0
        if self._last_time is not None:
            elapsed = min(max(0.0, now - self._last_time), self.max_frame_gap)
        self._last_time = now

        if is_person_detected:
            self.active_seconds += elapsed
        if is_exercising:
            self.hold_seconds += elapsed
            self._form_total += form_quality
            self._form_frames += 1
            self.best_form_score = max(self.best_form_score, form_quality)
        self.total_reps = max(self.total_reps, reps)

    @property
    def average_form_score(self) -> float:
        if self._form_frames == 0:
            return 0.0
        return self._form_total / self._form_frames

    @property
    def session_time(self) -> str:
        return format_session_time(self.active_seconds)

    def summary(self) -> SessionSummary:
        return SessionSummary(
            exercise_type=self.exercise_type.value,
            duration_seconds=int(self.active_seconds),
            total_reps=self.total_reps,
            average_form_score=round(self.average_form_score, 1),
            best_form_score=round(self.best_form_score, 1),
            hold_seconds=round(self.hold_seconds if self.exercise_type == ExerciseType.PLANK else 0.0, 1),
        )

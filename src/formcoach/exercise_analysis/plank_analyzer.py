from typing import Dict, List

from ..pose_detection.types import PoseFrame
from .adaptive_thresholds import AdaptiveThresholds
from .base_analyzer import BaseExerciseAnalyzer, ExerciseSession, register_exercise_analyzer
from .exercise_types import ExerciseType
from .pose_utils import average_angle, bilateral_angle, body_midpoint, calculate_line_offset


@register_exercise_analyzer(ExerciseType.PLANK)
class PlankAnalyzer(BaseExerciseAnalyzer):
    """
    Time-based plank hold analysis.

    No repetitions are counted. The subject counts as exercising once the
    horizontal position has been held for a few consecutive frames with an
    acceptably straight body line.
    """

    exercise_type = ExerciseType.PLANK

    def get_required_landmarks(self) -> List[str]:
        return [
            "left_shoulder", "right_shoulder",
            "left_elbow", "right_elbow",
            "left_hip", "right_hip",
            "left_knee", "right_knee",
            "left_ankle", "right_ankle"
        ]

    def calculate_measurements(self, frame: PoseFrame) -> Dict[str, float]:
        left_line, right_line = bilateral_angle(frame, "shoulder", "hip", "knee")
        body_line = average_angle([left_line, right_line])

        shoulder = body_midpoint(frame, "shoulder")
        elbow = body_midpoint(frame, "elbow")
        hip = body_midpoint(frame, "hip")
        ankle = body_midpoint(frame, "ankle")

        return {
            "body_line_angle": body_line if body_line is not None else float("nan"),
            "hip_offset": calculate_line_offset(shoulder, ankle, hip),
            "elbow_offset": abs(elbow[0] - shoulder[0]),
            "alignment": abs(shoulder[1] - hip[1]) + abs(hip[1] - ankle[1]),
            "shoulder_y": shoulder[1],
            "hip_y": hip[1],
        }

    def is_in_position(self, frame: PoseFrame, measurements: Dict[str, float]) -> bool:
        position = self.config.get("position", {})
        return (
            measurements["alignment"] < position.get("max_alignment", 0.25)
            and measurements["shoulder_y"] > position.get("min_shoulder_y", 0.3)
            and measurements["hip_y"] > position.get("min_hip_y", 0.3)
        )

    def _shows_success_feedback(self, session: ExerciseSession) -> bool:
        # The plank never leaves NEUTRAL, reaching here means the position gate passed
        return True

    def _is_exercising(self, session: ExerciseSession, angle: float,
                       measurements: Dict[str, float], thresholds: AdaptiveThresholds) -> bool:
        hold_frames = int(self.rep_config.get("hold_confirm_frames", 5))
        min_line = float(self.config["depth_band"]["acceptable"]["min"])
        return session.in_position_streak >= hold_frames and angle >= min_line

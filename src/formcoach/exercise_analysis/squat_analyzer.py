from typing import Dict, List

from ..pose_detection.types import PoseFrame
from .base_analyzer import BaseExerciseAnalyzer, register_exercise_analyzer
from .exercise_types import ExerciseType
from .pose_utils import average_angle, bilateral_angle, body_midpoint, calculate_torso_lean


@register_exercise_analyzer(ExerciseType.SQUAT)
class SquatAnalyzer(BaseExerciseAnalyzer):
    """Knee-angle squat analysis. Evaluated standing, so there is no position gate."""

    exercise_type = ExerciseType.SQUAT

    def get_required_landmarks(self) -> List[str]:
        return [
            "left_shoulder", "right_shoulder",
            "left_hip", "right_hip",
            "left_knee", "right_knee",
            "left_ankle", "right_ankle"
        ]

    def calculate_measurements(self, frame: PoseFrame) -> Dict[str, float]:
        left_knee, right_knee = bilateral_angle(frame, "hip", "knee", "ankle")
        knee_angle = average_angle([left_knee, right_knee])

        measurements = {
            "left_knee_angle": left_knee,
            "right_knee_angle": right_knee,
            "knee_angle": knee_angle if knee_angle is not None else float("nan"),
            "knee_asymmetry": abs(left_knee - right_knee),
            "torso_lean": calculate_torso_lean(body_midpoint(frame, "shoulder"), body_midpoint(frame, "hip")),
        }
        return measurements

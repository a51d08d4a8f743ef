import logging
from typing import Dict, List

from ..pose_detection.types import PoseFrame
from .base_analyzer import BaseExerciseAnalyzer, register_exercise_analyzer
from .exercise_types import ExerciseType
from .pose_utils import average_angle, bilateral_angle, body_midpoint, calculate_line_offset

logger = logging.getLogger("ExerciseAnalyzer")


@register_exercise_analyzer(ExerciseType.PUSHUP)
class PushupAnalyzer(BaseExerciseAnalyzer):
    exercise_type = ExerciseType.PUSHUP

    def get_required_landmarks(self) -> List[str]:
        return [
            "left_shoulder", "right_shoulder",
            "left_elbow", "right_elbow",
            "left_wrist", "right_wrist",
            "left_hip", "right_hip",
            "left_ankle", "right_ankle"
        ]

    def calculate_measurements(self, frame: PoseFrame) -> Dict[str, float]:
        left_elbow, right_elbow = bilateral_angle(frame, "shoulder", "elbow", "wrist")
        elbow_angle = average_angle([left_elbow, right_elbow])

        shoulder = body_midpoint(frame, "shoulder")
        hip = body_midpoint(frame, "hip")
        ankle = body_midpoint(frame, "ankle")

        return {
            "left_elbow_angle": left_elbow,
            "right_elbow_angle": right_elbow,
            "elbow_angle": elbow_angle if elbow_angle is not None else float("nan"),
            "elbow_asymmetry": abs(left_elbow - right_elbow),
            # Positive: hips below the shoulder-ankle line (sagging)
            "hip_offset": calculate_line_offset(shoulder, ankle, hip),
            "body_tilt": abs(shoulder[1] - hip[1]),
            "shoulder_y": shoulder[1],
        }

    def is_in_position(self, frame: PoseFrame, measurements: Dict[str, float]) -> bool:
        """
        Horizontal check: shoulders roughly level with hips and not at the top of the frame.

        A standing subject has a large vertical shoulder-hip gap and shoulders high up in the image.
        """
        position = self.config.get("position", {})
        horizontal = measurements["body_tilt"] < position.get("max_tilt", 0.3)
        low_enough = measurements["shoulder_y"] > position.get("min_shoulder_y", 0.3)
        if not (horizontal and low_enough):
            logger.debug(f"[pushup] Not in position: tilt={measurements['body_tilt']:.2f}, "
                         f"shoulder_y={measurements['shoulder_y']:.2f}")
        return horizontal and low_enough

from typing import Any, List

import cv2
import numpy as np

from .base_detector import BasePoseDetector
from .types import LANDMARK_NAMES, Landmark, PoseFrame


def landmarks_to_pose_frame(pose_landmarks: Any, timestamp: float) -> PoseFrame:
    """
    Convert MediaPipe ``results.pose_landmarks`` into a PoseFrame.

    Args:
        pose_landmarks: NormalizedLandmarkList from MediaPipe, or None
        timestamp: Capture time in seconds

    Returns:
        PoseFrame carrying every landmark, empty if nothing was detected
    """
    if pose_landmarks is None:
        return PoseFrame.empty(timestamp)
    landmarks = tuple(
        Landmark(float(lm.x), float(lm.y), float(getattr(lm, "visibility", 0.0)))
        for lm in pose_landmarks.landmark
    )
    return PoseFrame(landmarks=landmarks, timestamp=timestamp)


class MediaPipePoseDetector(BasePoseDetector):
    """MediaPipe BlazePose implementation of pose detection."""

    def __init__(self, min_detection_confidence: float = 0.5, min_tracking_confidence: float = 0.5,
                 model_complexity: int = 1):
        """
        Initialize the MediaPipe pose detector.

        Args:
            min_detection_confidence: Minimum confidence for pose detection
            min_tracking_confidence: Minimum confidence for pose tracking
            model_complexity: Complexity of the pose landmark model (0, 1, or 2)
        """
        try:
            import mediapipe as mp
        except ImportError as e:
            raise RuntimeError(
                "MediaPipe is not installed. Install the camera extra with: pip install formcoach[camera]"
            ) from e

        self.mp_pose = mp.solutions.pose
        self.pose = self.mp_pose.Pose(
            static_image_mode=False,
            model_complexity=model_complexity,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence
        )

    def detect(self, frame: np.ndarray, timestamp: float) -> PoseFrame:
        frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        results = self.pose.process(frame_rgb)
        return landmarks_to_pose_frame(results.pose_landmarks, timestamp)

    def get_landmark_names(self) -> List[str]:
        return list(LANDMARK_NAMES)

    def close(self) -> None:
        self.pose.close()

from dataclasses import dataclass
from enum import Enum
from typing import List

import numpy as np

from .types import LANDMARK_INDEX, PoseFrame


class DetectionQuality(Enum):
    """How far the current frame can be trusted for exercise analysis."""
    POOR = "poor"
    GOOD = "good"
    EXCELLENT = "excellent"


class TrackingStatus(Enum):
    """Why the detection quality is what it is. Drives user guidance."""
    OPTIMAL = "optimal"
    TOO_CLOSE = "too_close"
    PARTIAL = "partial"
    LOST = "lost"
    REPOSITIONING = "repositioning"


# shoulders, hips, knees, elbows
KEY_LANDMARKS = [
    "left_shoulder", "right_shoulder",
    "left_hip", "right_hip",
    "left_knee", "right_knee",
    "left_elbow", "right_elbow"
]


@dataclass
class QualityConfig:
    """Thresholds used by the quality assessor."""
    visibility_threshold: float = 0.5  # Landmark counts as visible above this
    lost_completeness: float = 0.5
    partial_completeness: float = 0.75
    repositioning_confidence: float = 0.7
    too_close_shoulder_width: float = 0.6  # Shoulders wider than 60% of the frame
    frame_edge_margin: float = 0.05  # Ankles closer than this to the frame edge
    excellent_confidence: float = 0.8
    excellent_completeness: float = 0.9
    good_confidence: float = 0.6
    good_completeness: float = 0.75


@dataclass
class QualityAssessment:
    """Result of assessing a single pose frame."""
    detection_quality: DetectionQuality
    tracking_status: TrackingStatus
    confidence: float
    completeness: float

    @property
    def is_analyzable(self) -> bool:
        return self.detection_quality in (DetectionQuality.GOOD, DetectionQuality.EXCELLENT)


class QualityAssessor:
    """Turns a raw landmark frame into a detection quality / tracking status pair."""

    def __init__(self, config: QualityConfig = None):
        self.config = config or QualityConfig()
        self._key_indices: List[int] = [LANDMARK_INDEX[name] for name in KEY_LANDMARKS]

    def assess(self, frame: PoseFrame) -> QualityAssessment:
        """
        Assess pose detection quality.

        Args:
            frame: Pose frame from the pose source, possibly empty

        Returns:
            QualityAssessment with detection quality, tracking status, confidence and completeness
        """
        cfg = self.config
        if frame.is_empty:
            return QualityAssessment(DetectionQuality.POOR, TrackingStatus.LOST, 0.0, 0.0)

        landmarks = frame.landmarks

        # Average visibility over visible landmarks only
        visible = [lm.visibility for lm in landmarks if lm.visibility > cfg.visibility_threshold]
        confidence = float(np.mean(visible)) if visible else 0.0

        visible_keys = [
            idx for idx in self._key_indices
            if idx < len(landmarks) and landmarks[idx].visibility > cfg.visibility_threshold
        ]
        completeness = len(visible_keys) / len(self._key_indices)

        tracking_status = self._tracking_status(frame, confidence, completeness)

        if (confidence >= cfg.excellent_confidence
                and completeness >= cfg.excellent_completeness
                and tracking_status == TrackingStatus.OPTIMAL):
            detection_quality = DetectionQuality.EXCELLENT
        elif confidence >= cfg.good_confidence and completeness >= cfg.good_completeness:
            detection_quality = DetectionQuality.GOOD
        else:
            detection_quality = DetectionQuality.POOR

        return QualityAssessment(detection_quality, tracking_status, confidence, completeness)

    def _tracking_status(self, frame: PoseFrame, confidence: float, completeness: float) -> TrackingStatus:
        cfg = self.config
        if completeness < cfg.lost_completeness:
            return TrackingStatus.LOST
        if self._shoulder_width(frame) > cfg.too_close_shoulder_width:
            return TrackingStatus.TOO_CLOSE
        if self._is_partially_visible(frame) or completeness < cfg.partial_completeness:
            return TrackingStatus.PARTIAL
        if confidence < cfg.repositioning_confidence:
            return TrackingStatus.REPOSITIONING
        return TrackingStatus.OPTIMAL

    @staticmethod
    def _shoulder_width(frame: PoseFrame) -> float:
        left = frame.get("left_shoulder")
        right = frame.get("right_shoulder")
        if left is None or right is None:
            return 0.0
        return abs(left.x - right.x)

    def _is_partially_visible(self, frame: PoseFrame) -> bool:
        # Feet cut off by the frame edge
        margin = self.config.frame_edge_margin
        left_ankle = frame.get("left_ankle")
        right_ankle = frame.get("right_ankle")
        if left_ankle is None or right_ankle is None:
            return True
        return (
            left_ankle.x < margin
            or right_ankle.x > 1.0 - margin
            or left_ankle.y > 1.0 - margin
            or right_ankle.y > 1.0 - margin
        )

from .types import LANDMARK_INDEX, LANDMARK_NAMES, Landmark, PoseFrame
from .quality_assessor import DetectionQuality, QualityAssessment, QualityAssessor, QualityConfig, TrackingStatus
from .base_detector import BasePoseDetector

__all__ = [
    'LANDMARK_INDEX',
    'LANDMARK_NAMES',
    'Landmark',
    'PoseFrame',
    'DetectionQuality',
    'QualityAssessment',
    'QualityAssessor',
    'QualityConfig',
    'TrackingStatus',
    'BasePoseDetector',
]

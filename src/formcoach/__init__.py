"""
formcoach - real-time exercise form coaching from pose landmarks.
"""

from .exercise_analysis import ExerciseState, ExerciseType
from .feedback.messages import FeedbackItem, Severity
from .pose_detection.quality_assessor import DetectionQuality, TrackingStatus
from .pose_detection.types import Landmark, PoseFrame
from .session import SessionAggregator, SessionSummary
from .trainer import CurrentAngles, FormCoachTrainer, FormMetrics, FrameResult

__version__ = "0.1.0"

__all__ = [
    'ExerciseState',
    'ExerciseType',
    'FeedbackItem',
    'Severity',
    'DetectionQuality',
    'TrackingStatus',
    'Landmark',
    'PoseFrame',
    'SessionAggregator',
    'SessionSummary',
    'CurrentAngles',
    'FormCoachTrainer',
    'FormMetrics',
    'FrameResult',
]

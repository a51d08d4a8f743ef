"""
Exercise analysis package: per-exercise form scoring, rep counting and recovery.
"""

from .exercise_types import ExerciseType, ExerciseState, PositionSample
from .adaptive_thresholds import AdaptiveThresholdLearner, AdaptiveThresholds, LearnerConfig
from .base_analyzer import (
    AnalysisResult,
    BaseExerciseAnalyzer,
    EXERCISE_ANALYZER_REGISTRY,
    ExerciseSession,
    FormRule,
    create_analyzer,
)
from .recovery_policy import LossSeverity, RecoveryConfig, RecoveryOutcome, RecoveryPolicy

# Importing the analyzers registers them
from .squat_analyzer import SquatAnalyzer
from .pushup_analyzer import PushupAnalyzer
from .plank_analyzer import PlankAnalyzer

__all__ = [
    'ExerciseType',
    'ExerciseState',
    'PositionSample',
    'AdaptiveThresholdLearner',
    'AdaptiveThresholds',
    'LearnerConfig',
    'AnalysisResult',
    'BaseExerciseAnalyzer',
    'EXERCISE_ANALYZER_REGISTRY',
    'ExerciseSession',
    'FormRule',
    'create_analyzer',
    'LossSeverity',
    'RecoveryConfig',
    'RecoveryOutcome',
    'RecoveryPolicy',
    'SquatAnalyzer',
    'PushupAnalyzer',
    'PlankAnalyzer',
]

from dataclasses import dataclass
from enum import Enum

from ..pose_detection.quality_assessor import TrackingStatus


class Severity(Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class FeedbackItem:
    """One user-facing feedback line for the current frame."""
    severity: Severity
    message: str
    icon: str = ""

    @classmethod
    def success(cls, message: str, icon: str = "✅") -> "FeedbackItem":
        return cls(Severity.SUCCESS, message, icon)

    @classmethod
    def warning(cls, message: str, icon: str = "⚠️") -> "FeedbackItem":
        return cls(Severity.WARNING, message, icon)

    @classmethod
    def error(cls, message: str, icon: str = "❌") -> "FeedbackItem":
        return cls(Severity.ERROR, message, icon)

    def to_dict(self):
        return {"type": self.severity.value, "message": self.message, "icon": self.icon}


_TRACKING_MESSAGES = {
    TrackingStatus.OPTIMAL: "Perfect tracking - continue exercise",
    TrackingStatus.TOO_CLOSE: "Move back for better tracking",
    TrackingStatus.PARTIAL: "Stand fully in frame",
    TrackingStatus.LOST: "No person detected",
    TrackingStatus.REPOSITIONING: "Tracking lost - repositioning...",
}

EXERCISE_LABELS = {
    "squat": "squat",
    "pushup": "push-up",
    "plank": "plank",
}


# --- Feedback Templates ---
class FeedbackGenerator:
    @staticmethod
    def tracking_message(status: TrackingStatus) -> str:
        return _TRACKING_MESSAGES.get(status, "Adjusting tracking...")

    @staticmethod
    def tracking(status: TrackingStatus) -> FeedbackItem:
        icon = "👤" if status == TrackingStatus.LOST else "⚠️"
        return FeedbackItem.warning(FeedbackGenerator.tracking_message(status), icon)

    @staticmethod
    def get_into_position(exercise: str, icon: str = "💪") -> FeedbackItem:
        label = EXERCISE_LABELS.get(exercise, exercise)
        return FeedbackItem.warning(f"Get into {label} position to start analysis", icon)

    @staticmethod
    def partial_view() -> FeedbackItem:
        return FeedbackItem.warning("Step fully into frame - some body parts are missing", "📷")

    @staticmethod
    def reacquiring() -> FeedbackItem:
        return FeedbackItem.warning("Hold still - re-acquiring your pose", "⏳")

    @staticmethod
    def analysis_error() -> FeedbackItem:
        return FeedbackItem.error("Analysis paused for this frame", "❌")

from dataclasses import dataclass
from enum import Enum


class ExerciseType(Enum):
    """Exercises the engine can analyze."""
    SQUAT = "squat"
    PUSHUP = "pushup"
    PLANK = "plank"

    @classmethod
    def parse(cls, value) -> "ExerciseType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower().replace("-", "").replace("_", ""))
        except ValueError:
            raise ValueError(f"Unsupported exercise type: {value}") from None


class ExerciseState(Enum):
    """Phase of the subject within one repetition cycle."""
    NEUTRAL = "neutral"
    DOWN = "down"
    UP = "up"


@dataclass(frozen=True)
class PositionSample:
    primary_angle: float
    secondary_measurement: float
    timestamp: float

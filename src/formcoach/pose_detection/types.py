from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


# BlazePose landmark order, index == position in PoseFrame.landmarks
LANDMARK_NAMES = [
    "nose", "left_eye_inner", "left_eye", "left_eye_outer",
    "right_eye_inner", "right_eye", "right_eye_outer", "left_ear",
    "right_ear", "mouth_left", "mouth_right", "left_shoulder",
    "right_shoulder", "left_elbow", "right_elbow", "left_wrist",
    "right_wrist", "left_pinky", "right_pinky", "left_index",
    "right_index", "left_thumb", "right_thumb", "left_hip",
    "right_hip", "left_knee", "right_knee", "left_ankle",
    "right_ankle", "left_heel", "right_heel", "left_foot_index",
    "right_foot_index"
]

LANDMARK_INDEX: Dict[str, int] = {name: idx for idx, name in enumerate(LANDMARK_NAMES)}

NUM_LANDMARKS = len(LANDMARK_NAMES)


@dataclass(frozen=True)
class Landmark:
    """A single normalized 2D body keypoint."""

    x: float  # [0, 1] of frame width
    y: float  # [0, 1] of frame height, grows downwards
    visibility: float = 0.0


@dataclass(frozen=True)
class PoseFrame:
    """
    All landmarks reported by the pose source for one instant.

    An empty ``landmarks`` tuple means no person was detected. ``timestamp`` is
    in seconds from a monotonic clock owned by the caller.
    """

    landmarks: Tuple[Landmark, ...] = field(default_factory=tuple)
    timestamp: float = 0.0

    @property
    def is_empty(self) -> bool:
        return len(self.landmarks) == 0

    def get(self, name: str) -> Optional[Landmark]:
        idx = LANDMARK_INDEX.get(name)
        if idx is None or idx >= len(self.landmarks):
            return None
        return self.landmarks[idx]

    def has_landmarks(self, names: List[str]) -> bool:
        """True when every named landmark is present in the frame (visibility not checked)."""
        return all(self.get(name) is not None for name in names)

    def __getitem__(self, name: str) -> Landmark:
        landmark = self.get(name)
        if landmark is None:
            raise KeyError(name)
        return landmark

    @classmethod
    def empty(cls, timestamp: float) -> "PoseFrame":
        return cls(landmarks=(), timestamp=timestamp)

    @classmethod
    def from_named(cls, points: Dict[str, Tuple[float, float, float]], timestamp: float,
                   default_visibility: float = 0.0) -> "PoseFrame":
        """
        Build a full 33-landmark frame from a partial name -> (x, y, visibility) mapping.

        Landmarks not named are filled in at the frame centre with ``default_visibility``.
        """
        landmarks = []
        for name in LANDMARK_NAMES:
            if name in points:
                x, y, visibility = points[name]
                landmarks.append(Landmark(float(x), float(y), float(visibility)))
            else:
                landmarks.append(Landmark(0.5, 0.5, default_visibility))
        return cls(landmarks=tuple(landmarks), timestamp=timestamp)

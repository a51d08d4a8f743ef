from abc import ABC, abstractmethod
from typing import List

import numpy as np

from .types import PoseFrame


class BasePoseDetector(ABC):
    """Base class for pose detection implementations."""

    @abstractmethod
    def detect(self, frame: np.ndarray, timestamp: float) -> PoseFrame:
        """
        Detect pose landmarks in the given frame.

        Args:
            frame: Input frame as numpy array (BGR, as delivered by OpenCV)
            timestamp: Capture time in seconds from a monotonic clock

        Returns:
            PoseFrame with all landmarks, or an empty PoseFrame when no person was found
        """
        pass

    @abstractmethod
    def get_landmark_names(self) -> List[str]:
        """
        Get the list of landmark names that this detector provides.

        Returns:
            List of landmark names in index order
        """
        pass

    def close(self) -> None:
        """Release model resources. No-op by default."""
        pass

from types import SimpleNamespace

from formcoach.pose_detection.mediapipe_detector import landmarks_to_pose_frame
from formcoach.pose_detection.types import NUM_LANDMARKS


def test_no_landmarks_gives_empty_frame():
    frame = landmarks_to_pose_frame(None, 1.5)
    assert frame.is_empty
    assert frame.timestamp == 1.5


def test_converts_normalized_landmarks():
    raw = [SimpleNamespace(x=i / 100, y=0.5, z=0.0, visibility=0.9) for i in range(NUM_LANDMARKS)]
    frame = landmarks_to_pose_frame(SimpleNamespace(landmark=raw), 2.0)
    assert len(frame.landmarks) == NUM_LANDMARKS
    assert frame["left_shoulder"].x == 0.11
    assert frame["right_hip"].visibility == 0.9
    assert frame.timestamp == 2.0

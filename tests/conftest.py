import math

import pytest

from formcoach.pose_detection.types import PoseFrame

VISIBLE = 0.95


def _both_sides(points, part, x, y, spread=0.02, visibility=VISIBLE):
    points[f"left_{part}"] = (x - spread, y, visibility)
    points[f"right_{part}"] = (x + spread, y, visibility)


def build_standing_frame(knee_angle, timestamp, visibility=VISIBLE, torso=0.35):
    """Upright subject seen from the side whose knees bend to ``knee_angle``."""
    theta = math.radians(knee_angle)
    thigh = 0.15
    knee = (0.5, 0.65)
    hip = (knee[0] + thigh * math.sin(theta), knee[1] + thigh * math.cos(theta))
    points = {}
    _both_sides(points, "ankle", 0.5, 0.85, visibility=visibility)
    _both_sides(points, "knee", *knee, visibility=visibility)
    _both_sides(points, "hip", *hip, visibility=visibility)
    _both_sides(points, "shoulder", hip[0], hip[1] - torso, visibility=visibility)
    _both_sides(points, "elbow", hip[0], hip[1] - torso + 0.12, visibility=visibility)
    _both_sides(points, "wrist", hip[0], hip[1] - torso + 0.24, visibility=visibility)
    return PoseFrame.from_named(points, timestamp, default_visibility=visibility)


def build_pushup_frame(elbow_angle, timestamp, hip_drop=0.0, visibility=VISIBLE):
    """Horizontal subject seen from the side with elbows bent to ``elbow_angle``."""
    phi = math.radians(elbow_angle)
    body_y = 0.6
    shoulder = (0.3, body_y)
    elbow = (0.3, body_y + 0.12)
    wrist = (elbow[0] + 0.12 * math.sin(phi), elbow[1] - 0.12 * math.cos(phi))
    points = {}
    _both_sides(points, "shoulder", *shoulder, spread=0.01, visibility=visibility)
    _both_sides(points, "elbow", *elbow, spread=0.01, visibility=visibility)
    _both_sides(points, "wrist", *wrist, spread=0.01, visibility=visibility)
    _both_sides(points, "hip", 0.5, body_y + hip_drop, spread=0.01, visibility=visibility)
    _both_sides(points, "knee", 0.62, body_y + hip_drop / 2, spread=0.01, visibility=visibility)
    _both_sides(points, "ankle", 0.75, body_y, spread=0.01, visibility=visibility)
    return PoseFrame.from_named(points, timestamp, default_visibility=visibility)


def build_plank_frame(timestamp, hip_drop=0.0, elbow_shift=0.0, visibility=VISIBLE):
    """Forearm plank seen from the side; ``hip_drop`` > 0 sags the hips, < 0 pikes them."""
    body_y = 0.55
    shoulder = (0.3, body_y)
    hip = (0.5, body_y + hip_drop)
    ankle = (0.75, body_y)
    knee = (hip[0] + 0.48 * (ankle[0] - hip[0]), hip[1] + 0.48 * (ankle[1] - hip[1]))
    points = {}
    _both_sides(points, "shoulder", *shoulder, spread=0.01, visibility=visibility)
    _both_sides(points, "elbow", shoulder[0] + elbow_shift, body_y + 0.15, spread=0.01, visibility=visibility)
    _both_sides(points, "wrist", shoulder[0] + elbow_shift + 0.1, body_y + 0.15, spread=0.01,
                visibility=visibility)
    _both_sides(points, "hip", *hip, spread=0.01, visibility=visibility)
    _both_sides(points, "knee", *knee, spread=0.01, visibility=visibility)
    _both_sides(points, "ankle", *ankle, spread=0.01, visibility=visibility)
    return PoseFrame.from_named(points, timestamp, default_visibility=visibility)


@pytest.fixture
def standing_frame():
    return build_standing_frame


@pytest.fixture
def pushup_frame():
    return build_pushup_frame


@pytest.fixture
def plank_frame():
    return build_plank_frame


@pytest.fixture
def squat_sequence():
    """170 -> 80 -> 170 degrees, five frames each, phases starting at 0 / 0.4 / 0.8 s."""
    def build(frame_step=0.02):
        frames = []
        for phase_start, angle in ((0.0, 170), (0.4, 80), (0.8, 170)):
            for i in range(5):
                frames.append(build_standing_frame(angle, phase_start + i * frame_step))
        return frames
    return build

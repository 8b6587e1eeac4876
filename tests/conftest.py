"""
Pytest configuration and fixtures for gymnastics coach tests.
"""

import math
import pytest
from typing import List

from gymnastics_coach.models import Landmark
from gymnastics_coach.frame_source import DemoFrameSource


def make_frame(shoulder=(0.5, 0.2), hip=(0.5, 0.5), knee=(0.5, 0.7), ankle=(0.5, 0.9),
               score: float = 0.9, shoulder_score: float = 0.9) -> List[Landmark]:
    """Build a four-landmark frame for the left side of the body."""
    return [
        Landmark(name="left_shoulder", x=shoulder[0], y=shoulder[1], score=shoulder_score),
        Landmark(name="left_hip", x=hip[0], y=hip[1], score=score),
        Landmark(name="left_knee", x=knee[0], y=knee[1], score=score),
        Landmark(name="left_ankle", x=ankle[0], y=ankle[1], score=score),
    ]


def ideal_frame() -> List[Landmark]:
    """Frame with a 170 degree knee angle and a 175 degree hip angle."""
    hip = (0.5, 0.5)
    knee = (0.5, 0.7)
    # hip sits straight above the knee (-90 deg); ankle ray at -90 + 170 = 80 deg
    ankle = (knee[0] + 0.2 * math.cos(math.radians(80)), knee[1] + 0.2 * math.sin(math.radians(80)))
    # knee sits straight below the hip (+90 deg); shoulder ray at 90 - 175 = -85 deg
    shoulder = (hip[0] + 0.3 * math.cos(math.radians(-85)), hip[1] + 0.3 * math.sin(math.radians(-85)))
    return make_frame(shoulder=shoulder, hip=hip, knee=knee, ankle=ankle, score=0.95)


@pytest.fixture
def standing_frames():
    """30 frames of a perfectly collinear standing pose."""
    return [make_frame(score=0.92) for _ in range(30)]


@pytest.fixture
def ideal_frames():
    """30 frames matching the reference knee and hip angles."""
    return [ideal_frame() for _ in range(30)]


@pytest.fixture
def bent_knee_frames():
    """10 frames with a 90 degree knee bend and the ankle off balance."""
    return [make_frame(ankle=(0.7, 0.7)) for _ in range(10)]


@pytest.fixture
def demo_source():
    """Deterministic demo landmark source."""
    return DemoFrameSource(num_frames=30, seed=7)


# Pytest configuration
def pytest_configure(config):
    """Pytest configuration for gymnastics coach tests."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers."""
    for item in items:
        if "integration" in item.nodeid.lower() or "test_api" in item.nodeid:
            item.add_marker(pytest.mark.integration)

        if "mediapipe" in item.nodeid.lower():
            item.add_marker(pytest.mark.slow)

"""
Tests for skeleton overlay frame interpolation.
"""

import pytest

from gymnastics_coach.interpolation import frame_at, interpolate, upsample
from gymnastics_coach.models import Landmark


@pytest.fixture
def frame_a():
    return [
        Landmark(name="left_hip", x=0.1, y=0.2, z=0.0, score=0.6),
        Landmark(name="left_knee", x=0.3, y=0.4, z=-0.2, score=0.8),
    ]


@pytest.fixture
def frame_b():
    return [
        Landmark(name="left_hip", x=0.5, y=0.6, z=0.4, score=1.0),
        Landmark(name="left_knee", x=0.7, y=0.2, z=0.2, score=0.4),
    ]


def assert_frames_close(actual, expected):
    assert len(actual) == len(expected)
    for got, want in zip(actual, expected):
        assert got.name == want.name
        assert got.x == pytest.approx(want.x)
        assert got.y == pytest.approx(want.y)
        assert got.z == pytest.approx(want.z)
        assert got.score == pytest.approx(want.score)


class TestInterpolate:
    """Test suite for interpolate."""

    def test_start_returns_first_frame(self, frame_a, frame_b):
        assert interpolate(frame_a, frame_b, 0.0) == frame_a

    def test_end_returns_second_frame(self, frame_a, frame_b):
        assert_frames_close(interpolate(frame_a, frame_b, 1.0), frame_b)

    def test_midpoint(self, frame_a, frame_b):
        result = interpolate(frame_a, frame_b, 0.5)

        assert result[0].x == pytest.approx(0.3)
        assert result[0].y == pytest.approx(0.4)
        assert result[0].z == pytest.approx(0.2)
        assert result[0].score == pytest.approx(0.8)
        assert result[1].x == pytest.approx(0.5)
        assert result[1].z == pytest.approx(0.0)
        assert result[1].score == pytest.approx(0.6)

    def test_pairs_by_position_not_name(self, frame_a, frame_b):
        swapped = list(reversed(frame_b))
        result = interpolate(frame_a, swapped, 1.0)

        # names come from the first frame, coordinates from the same position
        assert result[0].name == "left_hip"
        assert result[0].x == pytest.approx(0.7)

    @pytest.mark.parametrize("t", [-0.1, 1.01])
    def test_ratio_out_of_range(self, frame_a, frame_b, t):
        with pytest.raises(ValueError):
            interpolate(frame_a, frame_b, t)

    def test_inputs_unchanged(self, frame_a, frame_b):
        before = list(frame_a)
        interpolate(frame_a, frame_b, 0.3)
        assert frame_a == before


class TestFrameAt:
    """Playback lookup at a given time."""

    def test_exact_sample(self, frame_a, frame_b):
        assert frame_at([frame_a, frame_b], 0.0, fps=15) == frame_a

    def test_between_samples(self, frame_a, frame_b):
        # halfway between sample 0 and sample 1 at 15 Hz
        result = frame_at([frame_a, frame_b], 1 / 30, fps=15)
        assert_frames_close(result, interpolate(frame_a, frame_b, 0.5))

    def test_last_sample_is_held(self, frame_a, frame_b):
        assert frame_at([frame_a, frame_b], 1.1 / 15, fps=15) == frame_b

    def test_past_end(self, frame_a, frame_b):
        assert frame_at([frame_a, frame_b], 10.0, fps=15) is None

    def test_no_frames(self):
        assert frame_at([], 0.5) is None

    def test_invalid_fps(self, frame_a):
        with pytest.raises(ValueError):
            frame_at([frame_a], 0.0, fps=0)


class TestUpsample:
    """Resampling a 15 Hz stream to display rate."""

    def test_upsample_to_60hz(self, frame_a, frame_b):
        frames = [frame_a, frame_b] * 15  # 2 seconds at 15 Hz
        result = upsample(frames, source_fps=15, target_fps=60)

        assert len(result) == 120
        assert result[0] == frame_a
        assert_frames_close(result[2], interpolate(frame_a, frame_b, 0.5))

    def test_empty_stream(self):
        assert upsample([]) == []

"""
Tests for the MediaPipe frame source.

Skipped when the optional detector dependencies are not installed.
"""

import pytest
from unittest.mock import Mock

mp = pytest.importorskip("mediapipe")
pytest.importorskip("cv2")

if not hasattr(mp, "solutions"):
    pytest.skip("mediapipe build without the solutions API", allow_module_level=True)

from gymnastics_coach.frame_source import FrameSourceError
from gymnastics_coach.mediapipe_source import MediaPipeFrameSource
from gymnastics_coach.models import Joint


class TestMediaPipeFrameSource:
    """Test suite for MediaPipeFrameSource."""

    @pytest.fixture
    def source(self):
        return MediaPipeFrameSource(sample_rate_hz=15, model_complexity=0)

    def test_initialization(self, source):
        assert source.sample_rate_hz == 15
        assert source.model_complexity == 0

    def test_invalid_sample_rate(self):
        with pytest.raises(ValueError):
            MediaPipeFrameSource(sample_rate_hz=0)

    def test_extract_landmarks_no_pose(self, source):
        mock_results = Mock()
        mock_results.pose_landmarks = None

        assert source._extract_landmarks(mock_results) == []

    def test_extract_landmarks_names_by_index(self, source):
        mock_results = Mock()
        mock_landmarks = []
        for i in range(33):
            mock_lm = Mock()
            mock_lm.x = 0.5 + (i * 0.01)
            mock_lm.y = 0.5
            mock_lm.z = 0.0
            mock_lm.visibility = 0.9
            mock_landmarks.append(mock_lm)
        mock_results.pose_landmarks.landmark = mock_landmarks

        frame = source._extract_landmarks(mock_results)

        assert len(frame) == 33
        assert frame[0].name == Joint.NOSE.value
        assert frame[23].name == Joint.LEFT_HIP.value
        assert frame[25].x == pytest.approx(0.75)
        assert frame[25].score == pytest.approx(0.9)

    def test_visibility_clamped_to_score_range(self, source):
        mock_results = Mock()
        mock_lm = Mock(x=0.5, y=0.5, z=0.0, visibility=1.2)
        mock_results.pose_landmarks.landmark = [mock_lm]

        assert source._extract_landmarks(mock_results)[0].score == 1.0

    @pytest.mark.parametrize("fps, step", [(30.0, 2), (60.0, 4), (15.0, 1), (10.0, 1), (0.0, 1)])
    def test_frame_step(self, source, fps, step):
        assert source._frame_step(fps) == step

    @pytest.mark.asyncio
    async def test_unreadable_video(self, source, tmp_path):
        with pytest.raises(FrameSourceError):
            await source.detect_video(str(tmp_path / "missing.mp4"))

    @pytest.mark.asyncio
    async def test_unreadable_image(self, source, tmp_path):
        with pytest.raises(FrameSourceError):
            await source.detect_image(str(tmp_path / "missing.png"))

    @pytest.mark.parametrize("frame_count, fps, duration", [
        (60.0, 30.0, 2.0),
        (50.0, 25.0, 2.0),
        (0.0, 30.0, None),
        (60.0, 0.0, None),
    ])
    def test_duration_from_metadata(self, frame_count, fps, duration):
        assert MediaPipeFrameSource._duration(frame_count, fps) == duration

    @pytest.mark.asyncio
    async def test_unreadable_video_duration(self, source, tmp_path):
        with pytest.raises(FrameSourceError):
            await source.video_duration(str(tmp_path / "missing.mp4"))

"""
Tests for landmark frame sources.
"""

import pytest

from gymnastics_coach.frame_source import DemoFrameSource, FrameSource
from gymnastics_coach.models import Joint
from gymnastics_coach.scoring import analyze_pose


class TestDemoFrameSource:
    """Test suite for the deterministic demo generator."""

    def test_is_frame_source(self, demo_source):
        assert isinstance(demo_source, FrameSource)
        assert demo_source.sample_rate_hz == 15.0

    def test_generates_requested_frames(self, demo_source):
        frames = demo_source.generate()

        assert len(frames) == 30
        for frame in frames:
            assert [lm.name for lm in frame] == [
                Joint.LEFT_SHOULDER.value,
                Joint.LEFT_HIP.value,
                Joint.LEFT_KNEE.value,
                Joint.LEFT_ANKLE.value,
            ]

    def test_knee_jitter_bounded(self, demo_source):
        for frame in demo_source.generate():
            knee = frame[2]
            assert 0.45 <= knee.x <= 0.55
            assert knee.y == 0.7

    def test_deterministic_for_seed(self):
        assert DemoFrameSource(seed=3).generate() == DemoFrameSource(seed=3).generate()

    def test_seed_changes_jitter(self):
        assert DemoFrameSource(seed=1).generate() != DemoFrameSource(seed=2).generate()

    def test_negative_frame_count(self):
        with pytest.raises(ValueError):
            DemoFrameSource(num_frames=-1)

    @pytest.mark.asyncio
    async def test_detect_video(self, demo_source):
        frames = await demo_source.detect_video("routine.mp4")
        assert frames == demo_source.generate()

    @pytest.mark.asyncio
    async def test_detect_image_returns_first_frame(self, demo_source):
        frame = await demo_source.detect_image("pose.jpg")
        assert frame == demo_source.generate()[0]

    @pytest.mark.asyncio
    async def test_detect_image_without_frames(self):
        assert await DemoFrameSource(num_frames=0).detect_image("pose.jpg") == []

    @pytest.mark.asyncio
    async def test_video_duration(self):
        source = DemoFrameSource(num_frames=45, sample_rate_hz=15.0)
        assert await source.video_duration("routine.mp4") == pytest.approx(3.0)

    def test_demo_routine_scores_well(self, demo_source):
        result = analyze_pose(demo_source.generate())

        assert result.valid_frames == 30
        assert result.stability == 100
        assert result.smoothness == 100
        assert result.ai_score >= 7.0


class TestFrameSourceDefaults:
    """Behaviour shared by every frame source."""

    @pytest.mark.asyncio
    async def test_video_duration_unknown_by_default(self):
        class FixedFrameSource(FrameSource):
            async def detect_video(self, video_path):
                return []

            async def detect_image(self, image_path):
                return []

        assert await FixedFrameSource().video_duration("routine.mp4") is None

"""
Landmark frame sources.

A frame source turns an uploaded video or image into an ordered sequence of
landmark frames. The scoring engine does not care which implementation
supplied the frames: the deterministic demo generator and the MediaPipe
detector are interchangeable.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np

from .models import Frame, Joint, Landmark

logger = logging.getLogger(__name__)


class FrameSourceError(Exception):
    """Raised when landmarks cannot be extracted from a file."""


class FrameSource(ABC):
    """Produces landmark frames from media files."""

    sample_rate_hz: float = 15.0

    @abstractmethod
    async def detect_video(self, video_path: str) -> List[Frame]:
        """Detect landmarks in a video, one frame per sampled instant."""

    @abstractmethod
    async def detect_image(self, image_path: str) -> Frame:
        """Detect landmarks in a still image (empty frame if no pose)."""

    async def video_duration(self, video_path: str) -> Optional[float]:
        """Length of a video in seconds, or None when it cannot be determined."""
        return None


class DemoFrameSource(FrameSource):
    """
    Deterministic demo landmark generator.

    Produces a standing pose with a slightly jittering knee. The jitter comes
    from a seeded generator, so every call with the same settings returns the
    same frames.
    """

    def __init__(self, num_frames: int = 30, seed: int = 0, sample_rate_hz: float = 15.0):
        if num_frames < 0:
            raise ValueError("num_frames must be non-negative")
        self.num_frames = num_frames
        self.seed = seed
        self.sample_rate_hz = sample_rate_hz

    def generate(self) -> List[Frame]:
        """Generate the demo frame sequence."""
        rng = np.random.default_rng(self.seed)
        jitter = (rng.random(self.num_frames) - 0.5) * 0.1

        frames = []
        for offset in jitter:
            frames.append([
                Landmark(name=Joint.LEFT_SHOULDER.value, x=0.5, y=0.2, score=0.9),
                Landmark(name=Joint.LEFT_HIP.value, x=0.5, y=0.5, score=0.95),
                Landmark(name=Joint.LEFT_KNEE.value, x=0.5 + float(offset), y=0.7, score=0.9),
                Landmark(name=Joint.LEFT_ANKLE.value, x=0.5, y=0.9, score=0.85),
            ])
        return frames

    async def detect_video(self, video_path: str) -> List[Frame]:
        logger.info(f"Generating {self.num_frames} demo frames for {video_path}")
        return self.generate()

    async def detect_image(self, image_path: str) -> Frame:
        frames = self.generate()
        return frames[0] if frames else []

    async def video_duration(self, video_path: str) -> Optional[float]:
        return self.num_frames / self.sample_rate_hz

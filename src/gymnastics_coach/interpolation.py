"""
Frame interpolation for skeleton overlay playback.

Landmarks are detected at a low sample rate (15 Hz by default); the overlay
renderer blends adjacent frames to draw at display rate. Scoring always runs
on the original, non-interpolated frames.
"""

import logging
import math
from typing import List, Optional, Sequence

from .models import Frame, Landmark

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_RATE_HZ = 15.0
DEFAULT_DISPLAY_RATE_HZ = 60.0


def interpolate(frame_a: Frame, frame_b: Frame, t: float) -> Frame:
    """
    Blend two frames landmark by landmark.

    Landmarks are paired by position, not by name; both frames are expected
    to come from the same detector. Names are taken from ``frame_a``.

    Args:
        frame_a: Frame at t = 0
        frame_b: Frame at t = 1
        t: Interpolation ratio (0.0 = frame_a, 1.0 = frame_b)

    Returns:
        Interpolated frame

    Raises:
        ValueError: If ``t`` lies outside [0, 1]
    """
    if not 0.0 <= t <= 1.0:
        raise ValueError(f"Interpolation ratio must be within [0, 1], got {t}")

    interpolated = []
    for lm_a, lm_b in zip(frame_a, frame_b):
        interpolated.append(Landmark(
            name=lm_a.name,
            x=lm_a.x + (lm_b.x - lm_a.x) * t,
            y=lm_a.y + (lm_b.y - lm_a.y) * t,
            z=lm_a.z + (lm_b.z - lm_a.z) * t,
            score=lm_a.score + (lm_b.score - lm_a.score) * t,
        ))
    return interpolated


def frame_at(frames: Sequence[Frame], time_seconds: float,
             fps: float = DEFAULT_SAMPLE_RATE_HZ) -> Optional[Frame]:
    """
    Frame to draw at a playback position.

    Args:
        frames: Detected frames sampled at ``fps``
        time_seconds: Playback position
        fps: Detection sample rate

    Returns:
        The blended frame, or None when the position is past the last frame
    """
    if fps <= 0:
        raise ValueError(f"Sample rate must be positive, got {fps}")
    if not frames or time_seconds < 0:
        return None

    exact_index = time_seconds * fps
    frame_index = math.floor(exact_index)
    if frame_index >= len(frames):
        return None

    next_index = min(frame_index + 1, len(frames) - 1)
    if frame_index == next_index:
        return frames[frame_index]

    # clamp against float error in exact_index - frame_index
    ratio = min(1.0, max(0.0, exact_index - frame_index))
    return interpolate(frames[frame_index], frames[next_index], ratio)


def upsample(frames: Sequence[Frame],
             source_fps: float = DEFAULT_SAMPLE_RATE_HZ,
             target_fps: float = DEFAULT_DISPLAY_RATE_HZ) -> List[Frame]:
    """Resample a detection stream to the display rate."""
    if source_fps <= 0 or target_fps <= 0:
        raise ValueError("Frame rates must be positive")
    if not frames:
        return []

    duration = len(frames) / source_fps
    total = int(math.floor(duration * target_fps))
    upsampled = []
    for i in range(total):
        frame = frame_at(frames, i / target_fps, source_fps)
        if frame is None:
            break
        upsampled.append(frame)

    logger.debug(f"Upsampled {len(frames)} frames @ {source_fps}Hz to {len(upsampled)} @ {target_fps}Hz")
    return upsampled

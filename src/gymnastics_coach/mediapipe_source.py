"""
MediaPipe pose detection frame source.

Extracts the 33 named body landmarks from uploaded videos and images with
MediaPipe Pose, sampling videos at a fixed detection rate.
"""

import asyncio
import logging
from typing import List, Optional

import cv2
import mediapipe as mp
import numpy as np

from .frame_source import FrameSource, FrameSourceError
from .models import Frame, Joint, Landmark

logger = logging.getLogger(__name__)

_JOINTS = list(Joint)


class MediaPipeFrameSource(FrameSource):
    """
    MediaPipe-based landmark detector.

    Videos are sampled at ``sample_rate_hz``; frames without a detected pose
    are skipped. CPU-bound detection runs in the default executor.
    """

    def __init__(self,
                 sample_rate_hz: float = 15.0,
                 model_complexity: int = 1,
                 min_detection_confidence: float = 0.5,
                 min_tracking_confidence: float = 0.5):
        """
        Initialize the detector.

        Args:
            sample_rate_hz: Detection rate for videos
            model_complexity: MediaPipe model complexity (0, 1, or 2)
            min_detection_confidence: Minimum confidence for a detection
            min_tracking_confidence: Minimum confidence for tracking across frames
        """
        if sample_rate_hz <= 0:
            raise ValueError("sample_rate_hz must be positive")
        self.sample_rate_hz = sample_rate_hz
        self.model_complexity = model_complexity
        self.min_detection_confidence = min_detection_confidence
        self.min_tracking_confidence = min_tracking_confidence
        self.mp_pose = mp.solutions.pose

        logger.info(f"MediaPipeFrameSource initialized - rate: {sample_rate_hz}Hz, complexity: {model_complexity}")

    def _extract_landmarks(self, results) -> Frame:
        """
        Convert MediaPipe results into named landmarks.

        Args:
            results: MediaPipe pose detection results

        Returns:
            Named landmarks with normalized coordinates, empty if no pose
        """
        if not results.pose_landmarks:
            return []

        frame = []
        for index, landmark in enumerate(results.pose_landmarks.landmark):
            if index >= len(_JOINTS):
                break
            frame.append(Landmark(
                name=_JOINTS[index].value,
                x=landmark.x,
                y=landmark.y,
                z=getattr(landmark, 'z', 0.0),
                score=min(1.0, max(0.0, landmark.visibility)),
            ))
        return frame

    def _detect(self, pose, image: np.ndarray) -> Frame:
        rgb_image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        return self._extract_landmarks(pose.process(rgb_image))

    def _frame_step(self, fps: float) -> int:
        """Number of decoded frames between two detections."""
        if fps <= 0:
            return 1
        return max(1, int(round(fps / self.sample_rate_hz)))

    @staticmethod
    def _duration(frame_count: float, fps: float) -> Optional[float]:
        """Video length from container metadata, None when the metadata is missing."""
        if fps <= 0 or frame_count <= 0:
            return None
        return frame_count / fps

    def _video_duration_sync(self, video_path: str) -> Optional[float]:
        cap = cv2.VideoCapture(video_path)
        if not cap.isOpened():
            raise FrameSourceError(f"Cannot open video file: {video_path}")
        try:
            return self._duration(cap.get(cv2.CAP_PROP_FRAME_COUNT), cap.get(cv2.CAP_PROP_FPS))
        finally:
            cap.release()

    def _detect_video_sync(self, video_path: str) -> List[Frame]:
        cap = cv2.VideoCapture(video_path)
        if not cap.isOpened():
            raise FrameSourceError(f"Cannot open video file: {video_path}")

        fps = cap.get(cv2.CAP_PROP_FPS)
        step = self._frame_step(fps)
        frames: List[Frame] = []
        frame_number = 0

        logger.info(f"Detecting landmarks in {video_path}: {fps:.1f} FPS, every {step} frame(s)")

        try:
            with self.mp_pose.Pose(
                static_image_mode=False,
                model_complexity=self.model_complexity,
                enable_segmentation=False,
                min_detection_confidence=self.min_detection_confidence,
                min_tracking_confidence=self.min_tracking_confidence,
                smooth_landmarks=True
            ) as pose:
                while cap.isOpened():
                    ret, image = cap.read()
                    if not ret:
                        break
                    if frame_number % step == 0:
                        frame = self._detect(pose, image)
                        if frame:
                            frames.append(frame)
                    frame_number += 1
        finally:
            cap.release()

        logger.info(f"✅ Detected poses in {len(frames)} sampled frames out of {frame_number}")
        return frames

    def _detect_image_sync(self, image_path: str) -> Frame:
        image: Optional[np.ndarray] = cv2.imread(image_path)
        if image is None:
            raise FrameSourceError(f"Cannot read image file: {image_path}")

        with self.mp_pose.Pose(
            static_image_mode=True,
            model_complexity=self.model_complexity,
            enable_segmentation=False,
            min_detection_confidence=self.min_detection_confidence
        ) as pose:
            return self._detect(pose, image)

    async def detect_video(self, video_path: str) -> List[Frame]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._detect_video_sync, video_path)

    async def detect_image(self, image_path: str) -> Frame:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._detect_image_sync, image_path)

    async def video_duration(self, video_path: str) -> Optional[float]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._video_duration_sync, video_path)

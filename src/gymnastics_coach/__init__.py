"""
Gymnastics Coach - Routine Pose Scoring

Scores gymnastics routines from body-landmark frames and keeps a history of
analysis sessions.

This package provides:
- A pure pose scoring engine (posture, stability, smoothness, 0-10 AI score)
- Frame interpolation for smooth skeleton overlay playback
- Demo and MediaPipe-based landmark frame sources
- Batch analysis with per-file status tracking
- FastAPI web interface with upload, batch and session history endpoints
"""

__version__ = "0.1.0"

from .models import (
    Joint,
    Landmark,
    Frame,
    ScoreBadge,
    ScoreRecord,
    BatchItem,
    BatchItemStatus,
    BatchSummary,
    AnalysisSession,
)
from .scoring import analyze_pose, calculate_angle, score_badge
from .interpolation import interpolate, frame_at, upsample
from .frame_source import FrameSource, FrameSourceError, DemoFrameSource
from .batch import BatchOrchestrator
from .sessions import SessionStore, build_session, export_sessions_csv
from .config import Settings
from .api import create_app

__all__ = [
    "__version__",

    # Data models
    "Joint",
    "Landmark",
    "Frame",
    "ScoreBadge",
    "ScoreRecord",
    "BatchItem",
    "BatchItemStatus",
    "BatchSummary",
    "AnalysisSession",

    # Core
    "analyze_pose",
    "calculate_angle",
    "score_badge",
    "interpolate",
    "frame_at",
    "upsample",

    # Collaborators
    "FrameSource",
    "FrameSourceError",
    "DemoFrameSource",
    "BatchOrchestrator",
    "SessionStore",
    "build_session",
    "export_sessions_csv",

    # API
    "Settings",
    "create_app",
]

"""
Pydantic models for the gymnastics coach pose scoring system.

This module defines the core data models shared by the scoring engine, the
frame interpolator, the batch orchestrator and the session store, ensuring
type safety and data validation for landmarks, score records and persisted
analysis sessions.
"""

from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import List, Optional
from datetime import datetime
from enum import Enum
import uuid


class Joint(str, Enum):
    """
    Named body landmarks produced by the pose detector.

    Member order matches the MediaPipe/BlazePose landmark index, so
    ``list(Joint)[i]`` is the name of landmark ``i``.
    """

    NOSE = "nose"
    LEFT_EYE_INNER = "left_eye_inner"
    LEFT_EYE = "left_eye"
    LEFT_EYE_OUTER = "left_eye_outer"
    RIGHT_EYE_INNER = "right_eye_inner"
    RIGHT_EYE = "right_eye"
    RIGHT_EYE_OUTER = "right_eye_outer"
    LEFT_EAR = "left_ear"
    RIGHT_EAR = "right_ear"
    MOUTH_LEFT = "mouth_left"
    MOUTH_RIGHT = "mouth_right"
    LEFT_SHOULDER = "left_shoulder"
    RIGHT_SHOULDER = "right_shoulder"
    LEFT_ELBOW = "left_elbow"
    RIGHT_ELBOW = "right_elbow"
    LEFT_WRIST = "left_wrist"
    RIGHT_WRIST = "right_wrist"
    LEFT_PINKY = "left_pinky"
    RIGHT_PINKY = "right_pinky"
    LEFT_INDEX = "left_index"
    RIGHT_INDEX = "right_index"
    LEFT_THUMB = "left_thumb"
    RIGHT_THUMB = "right_thumb"
    LEFT_HIP = "left_hip"
    RIGHT_HIP = "right_hip"
    LEFT_KNEE = "left_knee"
    RIGHT_KNEE = "right_knee"
    LEFT_ANKLE = "left_ankle"
    RIGHT_ANKLE = "right_ankle"
    LEFT_HEEL = "left_heel"
    RIGHT_HEEL = "right_heel"
    LEFT_FOOT_INDEX = "left_foot_index"
    RIGHT_FOOT_INDEX = "right_foot_index"


class Landmark(BaseModel):
    """Single named body landmark in one frame."""

    model_config = ConfigDict(
        frozen=True,
        allow_inf_nan=False,
        json_schema_extra={
            "example": {
                "name": "left_hip",
                "x": 0.5,
                "y": 0.5,
                "z": 0.0,
                "score": 0.95
            }
        }
    )

    name: str = Field(description="Landmark identifier, e.g. 'left_hip'")
    x: float = Field(description="Normalized x position (not clamped to 0-1)")
    y: float = Field(description="Normalized y position (not clamped to 0-1)")
    z: float = Field(default=0.0, description="Normalized depth")
    score: float = Field(ge=0, le=1, description="Detection confidence (0-1)")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Ensure the landmark has a name."""
        if not v:
            raise ValueError("Landmark name must not be empty")
        return v


# One instant of a routine: ordered landmarks, duplicates by name allowed.
Frame = List[Landmark]


class ScoreBadge(str, Enum):
    """Display label for a 0-10 AI score."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    NEEDS_WORK = "Needs Work"


class ScoreRecord(BaseModel):
    """Output of the pose scoring engine for one analysis run."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "aiScore": 9.4,
                "posture": 85,
                "stability": 100,
                "smoothness": 100,
                "feedback": [
                    "Good leg extension! Knee angles are well maintained.",
                    "Excellent landing stability – body alignment is balanced throughout.",
                    "Smooth transitions detected – great flow between movements!",
                    "Outstanding posture control throughout the routine!"
                ],
                "avgKneeAngle": 180.0,
                "avgHipAngle": 180.0,
                "landingStability": 100.0,
                "validFrames": 30,
                "totalFrames": 30
            }
        }
    )

    ai_score: float = Field(alias="aiScore", ge=0, le=10, description="Composite 0-10 score")
    posture: int = Field(ge=0, le=100, description="Joint-angle posture score")
    stability: int = Field(ge=0, le=100, description="Horizontal balance score")
    smoothness: int = Field(ge=0, le=100, description="Deviation-frequency score")
    feedback: List[str] = Field(default_factory=list, description="Ordered coaching feedback")
    avg_knee_angle: float = Field(alias="avgKneeAngle", ge=0, le=180)
    avg_hip_angle: float = Field(alias="avgHipAngle", ge=0, le=180)
    landing_stability: float = Field(alias="landingStability", ge=0, le=100)
    valid_frames: int = Field(default=0, alias="validFrames", ge=0)
    total_frames: int = Field(default=0, alias="totalFrames", ge=0)

    @property
    def badge(self) -> ScoreBadge:
        """Display badge for this record's AI score."""
        from .scoring import score_badge
        return score_badge(self.ai_score)

    def recomputed_ai_score(self) -> float:
        """Recompute the composite score from the rounded sub-scores."""
        from .scoring import composite_score
        return composite_score(self.posture, self.stability, self.smoothness)


class BatchItemStatus(str, Enum):
    """Per-file status inside a batch."""

    WAITING = "waiting"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"


class BatchItem(BaseModel):
    """One uploaded file tracked by the batch orchestrator."""

    item_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    filename: str = Field(description="Original filename, used for attribution")
    status: BatchItemStatus = Field(default=BatchItemStatus.WAITING)
    progress: float = Field(default=0.0, ge=0, le=100)
    score: Optional[ScoreRecord] = Field(default=None)
    error: Optional[str] = Field(default=None)
    session_id: Optional[str] = Field(default=None)

    @property
    def is_finished(self) -> bool:
        """Whether the item reached a terminal state."""
        return self.status in (BatchItemStatus.COMPLETE, BatchItemStatus.FAILED)


class BatchSummary(BaseModel):
    """Aggregated results across the completed items of a batch."""

    batch_id: str
    total_items: int = Field(ge=0)
    completed: int = Field(ge=0)
    failed: int = Field(ge=0)
    avg_ai_score: float = Field(default=0.0, ge=0, le=10)
    avg_posture: float = Field(default=0.0, ge=0, le=100)
    avg_stability: float = Field(default=0.0, ge=0, le=100)
    avg_smoothness: float = Field(default=0.0, ge=0, le=100)
    best: Optional[BatchItem] = None
    worst: Optional[BatchItem] = None


class AnalysisSession(BaseModel):
    """Persisted analysis session row."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "session_id": "123e4567-e89b-12d3-a456-426614174000",
                "user_id": "athlete-1",
                "ai_score": 9.4,
                "posture_score": 85,
                "stability_score": 100,
                "smoothness_score": 100,
                "feedback_text": "Good leg extension! Knee angles are well maintained.",
                "keypoints_data": []
            }
        }
    )

    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str = Field(min_length=1, description="Owner of the session")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    batch_id: Optional[str] = None
    video_path: Optional[str] = None
    duration_seconds: Optional[float] = Field(default=None, ge=0)
    ai_score: Optional[float] = Field(default=None, ge=0, le=10)
    posture_score: Optional[int] = Field(default=None, ge=0, le=100)
    stability_score: Optional[int] = Field(default=None, ge=0, le=100)
    smoothness_score: Optional[int] = Field(default=None, ge=0, le=100)
    avg_knee_angle: Optional[float] = None
    avg_hip_angle: Optional[float] = None
    landing_stability: Optional[float] = None
    feedback_text: Optional[str] = None
    voice_notes: Optional[str] = None
    keypoints_data: List[Frame] = Field(
        default_factory=list,
        description="Full landmark sequence kept for later re-render"
    )

    @field_validator("session_id")
    @classmethod
    def validate_session_id(cls, v: str) -> str:
        """Ensure session_id is a valid UUID string."""
        try:
            uuid.UUID(v)
        except ValueError:
            raise ValueError("session_id must be a valid UUID")
        return v

    @property
    def feedback(self) -> List[str]:
        """Feedback lines as stored in ``feedback_text``."""
        if not self.feedback_text:
            return []
        return self.feedback_text.split("\n")

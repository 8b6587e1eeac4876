"""
FastAPI backend for the gymnastics coach scoring system.

This module exposes the pose scoring engine, the frame interpolator, media
uploads, batch analysis and the analysis session history over REST.
"""

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import aiofiles
from fastapi import FastAPI, UploadFile, File, Form, HTTPException, BackgroundTasks
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

from .batch import BatchOrchestrator, IMAGE_FORMATS
from .config import Settings
from .frame_source import DemoFrameSource, FrameSource, FrameSourceError
from .interpolation import interpolate
from .models import Frame, ScoreRecord
from .scoring import analyze_pose
from .sessions import SessionStore, build_session, export_sessions_csv

logger = logging.getLogger(__name__)

VIDEO_FORMATS = {'.mp4', '.mov', '.avi', '.mkv', '.webm'}
SUPPORTED_FORMATS = VIDEO_FORMATS | IMAGE_FORMATS
NO_POSE_IN_IMAGE = "No pose detected in image"


class AnalyzeRequest(BaseModel):
    """Request model for scoring a landmark sequence."""
    frames: List[Frame] = Field(default_factory=list)


class InterpolateRequest(BaseModel):
    """Request model for blending two frames."""
    frame_a: Frame
    frame_b: Frame
    t: float = Field(ge=0, le=1)


class VoiceNotesRequest(BaseModel):
    """Request model for attaching transcribed notes to a session."""
    voice_notes: str = Field(max_length=10000)


def _score_payload(record: ScoreRecord) -> dict:
    payload = record.model_dump(by_alias=True)
    payload["badge"] = record.badge.value
    return payload


def _default_frame_source(settings: Settings) -> FrameSource:
    if settings.use_demo_detector:
        logger.info("Using deterministic demo landmark source")
        return DemoFrameSource(sample_rate_hz=settings.sample_rate_hz)

    # Imported here to avoid MediaPipe initialization when the demo source is used
    from .mediapipe_source import MediaPipeFrameSource
    return MediaPipeFrameSource(sample_rate_hz=settings.sample_rate_hz)


def create_app(settings: Optional[Settings] = None,
               frame_source: Optional[FrameSource] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Service settings (read from the environment if None)
        frame_source: Landmark detector (chosen from settings if None)

    Returns:
        Configured FastAPI app instance
    """
    settings = settings or Settings.from_env()
    settings.ensure_dirs()

    app = FastAPI(
        title="Gymnastics Coach - Routine Scoring",
        description="Pose-based scoring and feedback for gymnastics routines",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

    frame_source = frame_source or _default_frame_source(settings)
    session_store = SessionStore(results_dir=str(settings.results_dir))
    orchestrator = BatchOrchestrator(
        frame_source,
        session_store=session_store,
        max_concurrency=settings.batch_concurrency
    )
    max_bytes = int(settings.max_upload_mb * 1024 * 1024)

    app.state.settings = settings
    app.state.session_store = session_store
    app.state.orchestrator = orchestrator

    async def save_upload(file: UploadFile) -> Path:
        """Validate an uploaded file and write it to the videos directory."""
        if not file.filename:
            raise HTTPException(status_code=400, detail="No filename provided")

        file_ext = Path(file.filename).suffix.lower()
        if file_ext not in SUPPORTED_FORMATS:
            raise HTTPException(
                status_code=400,
                detail=f"Unsupported format {file_ext}. Supported: {', '.join(sorted(SUPPORTED_FORMATS))}"
            )

        target = settings.videos_dir / f"{uuid.uuid4()}{file_ext}"
        written = 0
        async with aiofiles.open(target, 'wb') as out:
            while chunk := await file.read(1024 * 1024):
                written += len(chunk)
                if written > max_bytes:
                    break
                await out.write(chunk)

        if written > max_bytes:
            target.unlink(missing_ok=True)
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum size: {settings.max_upload_mb:g}MB"
            )
        return target

    async def check_video_length(path: Path) -> Optional[float]:
        """Reject videos over the length limit; returns the duration in seconds."""
        try:
            duration = await frame_source.video_duration(str(path))
        except FrameSourceError as e:
            path.unlink(missing_ok=True)
            raise HTTPException(status_code=422, detail=str(e))

        if duration is not None and duration > settings.max_video_seconds:
            logger.warning(f"Rejected {path.name}: {duration:.1f}s exceeds {settings.max_video_seconds:g}s limit")
            path.unlink(missing_ok=True)
            raise HTTPException(
                status_code=400,
                detail=f"Video too long ({duration:.1f}s). Maximum length: {settings.max_video_seconds:g} seconds"
            )
        return duration

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "timestamp": datetime.utcnow()}

    @app.post("/analyze")
    async def analyze(request: AnalyzeRequest):
        """Score a landmark sequence."""
        record = analyze_pose(request.frames)
        return _score_payload(record)

    @app.post("/interpolate", response_model=Frame)
    async def interpolate_frames(request: InterpolateRequest):
        """Blend two landmark frames for overlay playback."""
        return interpolate(request.frame_a, request.frame_b, request.t)

    @app.post("/upload")
    async def upload_media(
        media_file: UploadFile = File(...),
        user_id: str = Form(...),
    ):
        """
        Upload a routine video or image, score it and store the session.

        Args:
            media_file: Uploaded video or image
            user_id: Owner of the analysis session

        Returns:
            Stored session, score record and badge
        """
        path = await save_upload(media_file)
        is_image = path.suffix.lower() in IMAGE_FORMATS
        duration = None if is_image else await check_video_length(path)

        try:
            if is_image:
                frame = await frame_source.detect_image(str(path))
                frames = [frame] if frame else []
            else:
                frames = await frame_source.detect_video(str(path))
        except FrameSourceError as e:
            logger.error(f"Landmark detection failed for {media_file.filename}: {e}")
            path.unlink(missing_ok=True)
            raise HTTPException(status_code=422, detail=str(e))

        record = analyze_pose(frames)
        if is_image and not frames:
            record = record.model_copy(update={"feedback": [NO_POSE_IN_IMAGE]})

        session = build_session(
            record, frames, user_id=user_id,
            video_path=str(path), duration_seconds=duration
        )
        await session_store.save(session)

        logger.info(f"Upload {media_file.filename} analyzed: session {session.session_id}, score {record.ai_score}")
        return {
            "session": session.model_dump(mode="json"),
            "score": record.model_dump(by_alias=True),
            "badge": record.badge.value,
        }

    @app.post("/batch")
    async def create_batch(
        background_tasks: BackgroundTasks,
        files: List[UploadFile] = File(...),
        user_id: str = Form(...),
    ):
        """Upload several files and analyze them in the background."""
        paths: List[Path] = []
        try:
            for file in files:
                path = await save_upload(file)
                paths.append(path)
                if path.suffix.lower() not in IMAGE_FORMATS:
                    await check_video_length(path)
        except HTTPException:
            for saved in paths:
                saved.unlink(missing_ok=True)
            raise

        batch_id = orchestrator.create_batch([file.filename for file in files])

        background_tasks.add_task(
            orchestrator.run_batch, batch_id, [str(p) for p in paths], user_id
        )

        return {
            "batch_id": batch_id,
            "items": [item.model_dump(mode="json", by_alias=True) for item in orchestrator.get_items(batch_id)],
        }

    @app.get("/batch/{batch_id}")
    async def get_batch(batch_id: str, sort_by: str = "ai_score", descending: bool = True):
        """Per-file status, overall progress and aggregated results of a batch."""
        try:
            items = orchestrator.get_items(batch_id)
            ranked = orchestrator.sorted_items(batch_id, key=sort_by, descending=descending)
        except KeyError:
            raise HTTPException(status_code=404, detail="Batch not found")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        return {
            "batch_id": batch_id,
            "progress": orchestrator.overall_progress(batch_id),
            "items": [item.model_dump(mode="json", by_alias=True) for item in items],
            "ranked": [item.model_dump(mode="json", by_alias=True) for item in ranked],
            "summary": orchestrator.summarize(batch_id).model_dump(mode="json", by_alias=True),
        }

    @app.get("/sessions")
    async def list_sessions(user_id: Optional[str] = None):
        """List stored analysis sessions, newest first."""
        sessions = await session_store.list(user_id=user_id)
        return [session.model_dump(mode="json") for session in sessions]

    @app.get("/sessions/export.csv")
    async def export_sessions(user_id: Optional[str] = None):
        """Download the session history as CSV."""
        sessions = await session_store.list(user_id=user_id)
        return Response(
            content=export_sessions_csv(sessions),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": 'attachment; filename="analysis_sessions.csv"'}
        )

    @app.get("/sessions/{session_id}")
    async def get_session(session_id: str):
        """Get one stored analysis session."""
        session = await session_store.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return session.model_dump(mode="json")

    @app.patch("/sessions/{session_id}/voice-notes")
    async def set_voice_notes(session_id: str, request: VoiceNotesRequest):
        """Attach transcribed voice notes to a session."""
        session = await session_store.update_voice_notes(session_id, request.voice_notes)
        if session is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return session.model_dump(mode="json")

    @app.delete("/sessions/{session_id}")
    async def delete_session(session_id: str):
        """Delete a stored analysis session."""
        if not await session_store.delete(session_id):
            raise HTTPException(status_code=404, detail="Session not found")
        return {"deleted": session_id}

    return app

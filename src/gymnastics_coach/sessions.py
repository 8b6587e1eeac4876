"""
Analysis session persistence and export.

Each scored routine is stored as an analysis session record together with its
full landmark sequence, so results can be listed, re-rendered and exported
later. Sessions are written as one JSON document per record.
"""

import csv
import io
import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import aiofiles

from .models import AnalysisSession, Frame, ScoreRecord

logger = logging.getLogger(__name__)


CSV_HEADERS = [
    "Session ID",
    "Date",
    "Time",
    "AI Score",
    "Posture Score (%)",
    "Stability Score (%)",
    "Smoothness Score (%)",
    "Avg Knee Angle",
    "Avg Hip Angle",
    "Landing Stability",
    "Duration (seconds)",
    "Video Path",
    "Feedback",
    "Voice Notes",
]


def build_session(score: ScoreRecord,
                  frames: Sequence[Frame],
                  user_id: str,
                  video_path: Optional[str] = None,
                  duration_seconds: Optional[float] = None,
                  batch_id: Optional[str] = None,
                  voice_notes: Optional[str] = None) -> AnalysisSession:
    """
    Create the persisted record for one analysis run.

    Args:
        score: Scoring engine output
        frames: Landmark frames the score was computed from
        user_id: Owner of the session
        video_path: Storage path of the uploaded media
        duration_seconds: Media duration, if known
        batch_id: Batch the session belongs to, if any
        voice_notes: Transcribed notes attached by the athlete

    Returns:
        AnalysisSession ready to be saved
    """
    return AnalysisSession(
        user_id=user_id,
        batch_id=batch_id,
        video_path=video_path,
        duration_seconds=duration_seconds,
        ai_score=score.ai_score,
        posture_score=score.posture,
        stability_score=score.stability,
        smoothness_score=score.smoothness,
        avg_knee_angle=score.avg_knee_angle,
        avg_hip_angle=score.avg_hip_angle,
        landing_stability=score.landing_stability,
        feedback_text="\n".join(score.feedback),
        voice_notes=voice_notes,
        keypoints_data=[list(frame) for frame in frames],
    )


class SessionStore:
    """JSON file store for analysis sessions."""

    def __init__(self, results_dir: str = "uploads/results"):
        self.results_dir = Path(results_dir)
        self.results_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"SessionStore initialized - results dir: {self.results_dir}")

    def _path(self, session_id: str) -> Path:
        return self.results_dir / f"{session_id}.json"

    async def save(self, session: AnalysisSession) -> AnalysisSession:
        """Write a session to disk, replacing any previous copy."""
        results_file = self._path(session.session_id)
        async with aiofiles.open(results_file, 'w') as f:
            await f.write(json.dumps(session.model_dump(mode="json"), indent=2))

        logger.info(f"Analysis session saved: {results_file}")
        return session

    async def get(self, session_id: str) -> Optional[AnalysisSession]:
        """
        Load one session.

        Returns:
            The session, or None if it does not exist or cannot be read
        """
        results_file = self._path(session_id)
        if not results_file.exists():
            return None

        try:
            async with aiofiles.open(results_file, 'r') as f:
                data = json.loads(await f.read())
            return AnalysisSession.model_validate(data)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading analysis session {session_id}: {e}")
            return None

    async def list(self, user_id: Optional[str] = None) -> List[AnalysisSession]:
        """All stored sessions, newest first, optionally for one user."""
        sessions = []
        for results_file in self.results_dir.glob("*.json"):
            session = await self.get(results_file.stem)
            if session is None:
                continue
            if user_id is not None and session.user_id != user_id:
                continue
            sessions.append(session)

        sessions.sort(key=lambda s: s.created_at, reverse=True)
        return sessions

    async def delete(self, session_id: str) -> bool:
        """Remove a session. Returns False if it did not exist."""
        results_file = self._path(session_id)
        if not results_file.exists():
            return False
        results_file.unlink()
        logger.info(f"Analysis session deleted: {session_id}")
        return True

    async def update_voice_notes(self, session_id: str, voice_notes: str) -> Optional[AnalysisSession]:
        """
        Attach transcribed voice notes to a stored session.

        Score fields are never modified; a new analysis creates a new session.
        """
        session = await self.get(session_id)
        if session is None:
            return None
        updated = session.model_copy(update={"voice_notes": voice_notes})
        return await self.save(updated)


def _fixed(value: Optional[float]) -> str:
    return "" if value is None else f"{value:.2f}"


def _plain(value) -> str:
    return "" if value is None else str(value)


def export_sessions_csv(sessions: Iterable[AnalysisSession]) -> str:
    """Render sessions as CSV text with one header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)

    for session in sessions:
        writer.writerow([
            session.session_id,
            session.created_at.strftime("%Y-%m-%d"),
            session.created_at.strftime("%H:%M:%S"),
            _fixed(session.ai_score),
            _plain(session.posture_score),
            _plain(session.stability_score),
            _plain(session.smoothness_score),
            _fixed(session.avg_knee_angle),
            _fixed(session.avg_hip_angle),
            _fixed(session.landing_stability),
            _fixed(session.duration_seconds),
            _plain(session.video_path),
            _plain(session.feedback_text),
            _plain(session.voice_notes),
        ])

    return buffer.getvalue()

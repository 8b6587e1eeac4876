"""
Runtime configuration for the gymnastics coach service.

Values come from environment variables, optionally loaded from a ``.env``
file with python-dotenv.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() in ("1", "true", "yes")


class Settings(BaseModel):
    """Service settings."""

    host: str = "127.0.0.1"
    port: int = Field(default=8000, gt=0)
    debug: bool = False
    log_level: str = "INFO"
    uploads_dir: Path = Path("uploads")
    sample_rate_hz: float = Field(default=15.0, gt=0)
    max_upload_mb: float = Field(default=100.0, gt=0)
    max_video_seconds: float = Field(default=20.0, gt=0)
    batch_concurrency: int = Field(default=4, ge=1)
    use_demo_detector: bool = False

    @property
    def videos_dir(self) -> Path:
        return self.uploads_dir / "videos"

    @property
    def results_dir(self) -> Path:
        return self.uploads_dir / "results"

    def ensure_dirs(self) -> None:
        """Create the upload subdirectories."""
        for directory in [self.videos_dir, self.results_dir]:
            directory.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """Build settings from the environment (and ``.env`` if present)."""
        load_dotenv(env_file)
        return cls(
            host=os.getenv("HOST", "127.0.0.1"),
            port=int(os.getenv("PORT", "8000")),
            debug=_env_bool("DEBUG", False),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            uploads_dir=Path(os.getenv("UPLOADS_DIR", "uploads")),
            sample_rate_hz=float(os.getenv("SAMPLE_RATE_HZ", "15")),
            max_upload_mb=float(os.getenv("MAX_UPLOAD_MB", "100")),
            max_video_seconds=float(os.getenv("MAX_VIDEO_SECONDS", "20")),
            batch_concurrency=int(os.getenv("BATCH_CONCURRENCY", "4")),
            use_demo_detector=_env_bool("USE_DEMO_DETECTOR", False),
        )

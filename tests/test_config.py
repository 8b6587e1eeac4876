"""
Tests for environment-driven settings.
"""

import pytest
from pathlib import Path

from gymnastics_coach.config import Settings

ENV_VARS = ["PORT", "UPLOADS_DIR", "MAX_VIDEO_SECONDS", "USE_DEMO_DETECTOR", "LOG_LEVEL"]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    """Test suite for Settings."""

    def test_defaults(self):
        settings = Settings()

        assert settings.max_video_seconds == 20.0
        assert settings.videos_dir == Path("uploads") / "videos"
        assert settings.results_dir == Path("uploads") / "results"

    def test_from_env(self, clean_env, tmp_path):
        clean_env.setenv("PORT", "9000")
        clean_env.setenv("MAX_VIDEO_SECONDS", "45")
        clean_env.setenv("USE_DEMO_DETECTOR", "true")
        clean_env.setenv("LOG_LEVEL", "debug")

        settings = Settings.from_env(env_file=str(tmp_path / "missing.env"))

        assert settings.port == 9000
        assert settings.max_video_seconds == 45.0
        assert settings.use_demo_detector is True
        assert settings.log_level == "DEBUG"

    def test_from_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(f"UPLOADS_DIR={tmp_path / 'media'}\nMAX_VIDEO_SECONDS=12.5\n")

        settings = Settings.from_env(env_file=str(env_file))

        assert settings.uploads_dir == tmp_path / "media"
        assert settings.max_video_seconds == 12.5

    def test_rejects_non_positive_video_limit(self):
        with pytest.raises(ValueError):
            Settings(max_video_seconds=0)

    def test_ensure_dirs(self, tmp_path):
        settings = Settings(uploads_dir=tmp_path / "uploads")

        settings.ensure_dirs()

        assert settings.videos_dir.is_dir()
        assert settings.results_dir.is_dir()

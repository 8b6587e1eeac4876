"""
Gymnastics Coach Application Entry Point

Runs the FastAPI application for routine upload, pose scoring and session
history.
"""

import logging

import uvicorn

from gymnastics_coach.config import Settings


def main():
    """
    Run the Gymnastics Coach application.

    Reads settings from the environment (and ``.env``), configures logging
    and starts the uvicorn server.
    """
    settings = Settings.from_env()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    uvicorn.run(
        "main:get_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else settings.log_level.lower()
    )


def get_app():
    """Get the FastAPI app instance."""
    from gymnastics_coach.api import create_app
    return create_app()


if __name__ == "__main__":
    main()

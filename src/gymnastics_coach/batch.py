"""
Batch analysis orchestration.

Runs landmark detection and scoring for several uploaded files at once with
bounded concurrency. Every file is tracked as its own batch item; a failure
in one file marks only that item as failed.
"""

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .frame_source import FrameSource
from .models import BatchItem, BatchItemStatus, BatchSummary
from .scoring import analyze_pose
from .sessions import SessionStore, build_session

logger = logging.getLogger(__name__)

IMAGE_FORMATS = {'.jpg', '.jpeg', '.png'}
SORT_KEYS = {"ai_score", "posture", "stability", "smoothness"}


class BatchOrchestrator:
    """
    Tracks and runs batches of routine analyses.

    State lives on the orchestrator instance (batch id -> items); nothing is
    shared between batches.
    """

    def __init__(self,
                 frame_source: FrameSource,
                 session_store: Optional[SessionStore] = None,
                 max_concurrency: int = 4):
        """
        Initialize the orchestrator.

        Args:
            frame_source: Landmark detector used for every item
            session_store: Where completed analyses are persisted (optional)
            max_concurrency: Maximum number of items analyzed at once
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.frame_source = frame_source
        self.session_store = session_store
        self.max_concurrency = max_concurrency
        self.batches: Dict[str, Dict[str, BatchItem]] = {}

        logger.info(f"BatchOrchestrator initialized - concurrency: {max_concurrency}")

    def create_batch(self, filenames: Sequence[str]) -> str:
        """Register a new batch with every file waiting."""
        batch_id = str(uuid.uuid4())
        items = [BatchItem(filename=name) for name in filenames]
        self.batches[batch_id] = {item.item_id: item for item in items}
        logger.info(f"Batch {batch_id} created with {len(items)} items")
        return batch_id

    def _items(self, batch_id: str) -> Dict[str, BatchItem]:
        if batch_id not in self.batches:
            raise KeyError(f"Unknown batch: {batch_id}")
        return self.batches[batch_id]

    def get_items(self, batch_id: str) -> List[BatchItem]:
        """Items of a batch in upload order."""
        return list(self._items(batch_id).values())

    def _update(self, batch_id: str, item_id: str, **changes) -> BatchItem:
        items = self._items(batch_id)
        items[item_id] = items[item_id].model_copy(update=changes)
        return items[item_id]

    async def _analyze_item(self, batch_id: str, item: BatchItem, path: str,
                            user_id: str, semaphore: asyncio.Semaphore) -> BatchItem:
        async with semaphore:
            self._update(batch_id, item.item_id, status=BatchItemStatus.PROCESSING, progress=10.0)
            try:
                if Path(path).suffix.lower() in IMAGE_FORMATS:
                    frame = await self.frame_source.detect_image(path)
                    frames = [frame] if frame else []
                else:
                    frames = await self.frame_source.detect_video(path)
                self._update(batch_id, item.item_id, progress=60.0)

                score = analyze_pose(frames)

                session_id = None
                if self.session_store is not None:
                    session = build_session(
                        score, frames, user_id=user_id,
                        video_path=path, batch_id=batch_id
                    )
                    await self.session_store.save(session)
                    session_id = session.session_id

                logger.info(f"Batch {batch_id}: {item.filename} scored {score.ai_score}")
                return self._update(
                    batch_id, item.item_id,
                    status=BatchItemStatus.COMPLETE, progress=100.0,
                    score=score, session_id=session_id
                )

            except Exception as e:
                logger.error(f"Batch {batch_id}: analysis failed for {item.filename}: {e}")
                return self._update(
                    batch_id, item.item_id,
                    status=BatchItemStatus.FAILED, progress=100.0, error=str(e)
                )

    async def run_batch(self, batch_id: str, paths: Sequence[str],
                        user_id: str = "anonymous") -> List[BatchItem]:
        """
        Analyze every item of a batch.

        Args:
            batch_id: Batch created with ``create_batch``
            paths: Local file paths, in the same order as the batch's filenames
            user_id: Owner of the persisted sessions

        Returns:
            Final items in upload order
        """
        items = self.get_items(batch_id)
        if len(paths) != len(items):
            raise ValueError(f"Batch {batch_id} has {len(items)} items but {len(paths)} paths were given")

        semaphore = asyncio.Semaphore(self.max_concurrency)
        await asyncio.gather(*[
            self._analyze_item(batch_id, item, path, user_id, semaphore)
            for item, path in zip(items, paths)
        ])

        summary = self.summarize(batch_id)
        logger.info(f"Batch {batch_id} finished: {summary.completed} complete, {summary.failed} failed")
        return self.get_items(batch_id)

    def overall_progress(self, batch_id: str) -> float:
        """Percentage of items in a terminal state."""
        items = self.get_items(batch_id)
        if not items:
            return 100.0
        finished = sum(1 for item in items if item.is_finished)
        return finished / len(items) * 100

    def summarize(self, batch_id: str) -> BatchSummary:
        """Aggregate scores over the completed items."""
        items = self.get_items(batch_id)
        scored = [item for item in items if item.status == BatchItemStatus.COMPLETE and item.score]
        failed = sum(1 for item in items if item.status == BatchItemStatus.FAILED)

        summary = BatchSummary(
            batch_id=batch_id,
            total_items=len(items),
            completed=len(scored),
            failed=failed
        )
        if not scored:
            return summary

        count = len(scored)
        best = scored[0]
        worst = scored[0]
        for item in scored[1:]:
            if item.score.ai_score > best.score.ai_score:
                best = item
            if item.score.ai_score < worst.score.ai_score:
                worst = item

        return summary.model_copy(update={
            "avg_ai_score": sum(i.score.ai_score for i in scored) / count,
            "avg_posture": sum(i.score.posture for i in scored) / count,
            "avg_stability": sum(i.score.stability for i in scored) / count,
            "avg_smoothness": sum(i.score.smoothness for i in scored) / count,
            "best": best,
            "worst": worst,
        })

    def sorted_items(self, batch_id: str, key: str = "ai_score",
                     descending: bool = True) -> List[BatchItem]:
        """Completed items ordered by one of the score fields."""
        if key not in SORT_KEYS:
            raise ValueError(f"Unsupported sort key {key}. Supported: {', '.join(sorted(SORT_KEYS))}")
        scored = [item for item in self.get_items(batch_id) if item.score is not None]
        return sorted(scored, key=lambda item: getattr(item.score, key), reverse=descending)

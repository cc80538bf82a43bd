from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Tuple

from .config import AppConfig
from .definitions import Argument, EventKind, route_hook
from .models import GitlabHook
from .operation_service import OperationExecutor, OperationResult
from .tracker import JiraTracker, Tracker

logger = logging.getLogger(__name__)

QueuedEvent = Tuple[EventKind, str, Argument]


class WebhookService:
    """Routes GitLab events to their operations.

    Events are queued and handled one at a time by a single worker task, which
    is the only user of the tracker.
    """

    def __init__(self, cfg: AppConfig, tracker: Optional[Tracker] = None) -> None:
        self.config = cfg
        self.tracker = tracker or JiraTracker(cfg.jira)
        self.executor = OperationExecutor(self.tracker)
        self.queue: asyncio.Queue[QueuedEvent] = asyncio.Queue()
        self.worker_task: asyncio.Task[None] | None = None

    def start(self) -> None:
        """Start the background worker task."""

        if self.worker_task is None or self.worker_task.done():
            self.worker_task = asyncio.create_task(self._worker())

    async def stop(self) -> None:
        """Stop the background worker task."""

        if self.worker_task is not None:
            self.worker_task.cancel()
            try:
                await self.worker_task
            except asyncio.CancelledError:  # pragma: no cover - cancellation path
                pass

    async def _worker(self) -> None:
        while True:
            try:
                kind, bucket, args = await self.queue.get()
            except asyncio.CancelledError:
                break
            try:
                await self.process_event(kind, bucket, args)
            except Exception as e:
                logger.exception(f"Processing {kind.value}/{bucket} failed: {e}")
            finally:
                self.queue.task_done()

    async def dispatch(self, hook: GitlabHook) -> bool:
        """Queue a hook for processing; returns False when no bucket applies to it."""
        route = route_hook(hook)
        if route is None:
            logger.info(f"Ignoring {hook.object_kind} event without a matching bucket")
            return False
        kind, bucket = route
        await self.queue.put((kind, bucket, Argument.from_hook(hook)))
        logger.info(f"Queued {kind.value}/{bucket} event ({self.queue.qsize()} pending)")
        return True

    async def process_event(self, kind: EventKind, bucket: str, args: Argument) -> List[OperationResult]:
        operations = self.config.definitions.router.operations_for(kind, bucket)
        if not operations:
            logger.info(f"No operations configured for {kind.value}/{bucket}")
            return []

        logger.info(f"Running {len(operations)} operation(s) for {kind.value}/{bucket}")
        results = await asyncio.to_thread(self.executor.call_operations, operations, args)
        for result in results:
            if not result.ok:
                logger.warning(f"Operation {result.name!r} finished with errors: {result.error or 'issue updates failed'}")
        return results

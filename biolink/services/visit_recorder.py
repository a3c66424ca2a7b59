"""Fire-and-forget recording of profile visits."""

import asyncio

import structlog

from biolink.core.backend import BackendClient, get_backend_client
from biolink.core.exceptions import RecordingFailure
from biolink.core.observability import record_visit_submission
from biolink.core.session import ANONYMOUS, ViewerSession
from biolink.schemas import VisitEvent

logger = structlog.get_logger()


class VisitRecorder:
    """Submits one visit event per call, in a detached task.

    The caller never waits for the submission and never sees its outcome.
    Failures are logged and counted, not retried.

    Usage:
        recorder = VisitRecorder()
        recorder.record_visit("ana", session)  # returns immediately
        # ... on shutdown ...
        await recorder.drain()
    """

    def __init__(self, client: BackendClient | None = None):
        self._client = client
        self._pending: set[asyncio.Task[None]] = set()
        self._visits_sent = 0
        self._visits_failed = 0

    @property
    def client(self) -> BackendClient:
        return self._client or get_backend_client()

    def record_visit(self, handle: str, session: ViewerSession = ANONYMOUS) -> None:
        """Start submitting a visit for ``handle``. Must run inside an event loop."""
        if not handle:
            logger.debug("Visit not recorded (empty handle)")
            return

        event = VisitEvent(
            handle=handle,
            referrer=session.referrer,
            credential=session.credential,
        )
        task = asyncio.create_task(self._submit(event))
        # Hold a reference until done so the task is not garbage-collected
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _submit(self, event: VisitEvent) -> None:
        try:
            await self.client.post_visit(event)
        except RecordingFailure as e:
            self._visits_failed += 1
            record_visit_submission("failed")
            logger.warning(
                "Failed to record visit",
                handle=event.handle,
                error=e.reason,
            )
            return
        except Exception as e:
            self._visits_failed += 1
            record_visit_submission("failed")
            logger.error(
                "Unexpected error recording visit",
                handle=event.handle,
                error=str(e),
            )
            return

        self._visits_sent += 1
        record_visit_submission("sent")
        logger.debug(
            "Visit recorded",
            handle=event.handle,
            has_referrer=event.referrer is not None,
            authenticated=event.credential is not None,
        )

    async def drain(self) -> None:
        """Wait for submissions still in flight."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._pending)

    @property
    def stats(self) -> dict:
        """Get recorder statistics."""
        return {
            "visits_sent": self._visits_sent,
            "visits_failed": self._visits_failed,
            "pending": len(self._pending),
        }


# Global recorder instance
_visit_recorder: VisitRecorder | None = None


def get_visit_recorder() -> VisitRecorder:
    """Get the global visit recorder instance."""
    global _visit_recorder
    if _visit_recorder is None:
        _visit_recorder = VisitRecorder()
    return _visit_recorder


async def drain_visit_recorder() -> None:
    """Wait for the global recorder's pending submissions."""
    if _visit_recorder is not None:
        await _visit_recorder.drain()

"""Crawl session lifecycle management.

The CrawlSessionManager starts crawl sessions as background asyncio tasks,
serves progress snapshots and final results to pollers, and forgets finished
sessions once their retention window has passed.

All state is held in-memory. Finished sessions are evicted lazily whenever
the store is accessed and periodically by ``sweep_loop``; a session that is
still running is never evicted.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from uuid import uuid4

from sitecrawl.middleware.error_handler import CrawlerError, SessionNotFoundError
from sitecrawl.models.requests import CrawlOptions, CrawlSession, SessionStatus
from sitecrawl.services.frontier import FrontierScheduler
from sitecrawl.validators.url_validator import check_url_syntax

logger = logging.getLogger(__name__)


class SessionProgress:
    """Progress listener that writes monotonic snapshots into a session."""

    def __init__(self, session: CrawlSession) -> None:
        self._session = session

    def on_progress(
        self,
        current: int,
        total: int,
        message: str,
        current_url: str | None = None,
    ) -> None:
        progress = self._session.progress
        total = max(total, progress.total)
        progress.current = max(progress.current, min(current, total))
        progress.total = total
        progress.message = message
        progress.current_url = current_url


class CrawlSessionManager:
    """Manages crawl session lifecycle.

    Parameters
    ----------
    scheduler:
        Frontier scheduler that executes each session's crawl loop.
    retention_seconds:
        How long a completed or failed session stays retrievable.
    sweep_interval_seconds:
        Period of the background eviction sweep.
    clock:
        Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        scheduler: FrontierScheduler,
        *,
        retention_seconds: float = 30,
        sweep_interval_seconds: float = 10,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._scheduler = scheduler
        self._retention_seconds = retention_seconds
        self._sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock

        # In-memory stores
        self._sessions: dict[str, CrawlSession] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        self._finished_at: dict[str, float] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self, url: str, options: CrawlOptions | None = None) -> str:
        """Create a session for *url* and start crawling it in the background.

        Returns the session id immediately. Raises :class:`InvalidUrlError`
        for a malformed start URL, in which case no session is created.
        """
        start_url = check_url_syntax(url)
        self._evict_expired()

        session = CrawlSession(
            id=str(uuid4()),
            start_url=start_url,
            options=options or CrawlOptions(),
        )
        session.progress.total = session.options.max_pages
        session.progress.message = "Crawl queued"
        self._sessions[session.id] = session
        self._tasks[session.id] = asyncio.create_task(
            self._run(session), name=f"crawl-{session.id}"
        )

        logger.info(
            "Created crawl session",
            extra={"session_id": session.id, "target_url": start_url},
        )
        return session.id

    def get(self, session_id: str) -> CrawlSession:
        """Return the session, raising :class:`SessionNotFoundError` if unknown or evicted."""
        self._evict_expired()
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(
                f"Crawl session '{session_id}' not found",
                session_id=session_id,
            )
        return session

    def progress(self, session_id: str) -> dict:
        return self.get(session_id).progress.to_dict()

    def result(self, session_id: str) -> dict:
        """Return the final payload, or the session's running / failed status."""
        session = self.get(session_id)
        if session.status is SessionStatus.RUNNING:
            return {"status": SessionStatus.RUNNING.value, "progress": session.progress.to_dict()}
        if session.status is SessionStatus.FAILED:
            return {"status": SessionStatus.FAILED.value, "error": session.error}
        return {"status": SessionStatus.COMPLETED.value, **(session.result or {})}

    # ------------------------------------------------------------------
    # Crawl execution
    # ------------------------------------------------------------------

    async def _run(self, session: CrawlSession) -> None:
        listener = SessionProgress(session)
        try:
            result = await self._scheduler.run(session, listener)
        except asyncio.CancelledError:
            self._finish(session, SessionStatus.FAILED, error="Crawl cancelled")
            raise
        except Exception as exc:
            message = exc.message if isinstance(exc, CrawlerError) else str(exc)
            logger.error(
                "Crawl session failed: %s",
                message,
                exc_info=not isinstance(exc, CrawlerError),
                extra={"session_id": session.id, "target_url": session.start_url},
            )
            self._finish(session, SessionStatus.FAILED, error=message or type(exc).__name__)
        else:
            session.result = result
            self._finish(session, SessionStatus.COMPLETED)
        finally:
            self._tasks.pop(session.id, None)

    def _finish(
        self,
        session: CrawlSession,
        status: SessionStatus,
        error: str | None = None,
    ) -> None:
        session.status = status
        session.error = error
        session.completed_at = datetime.now(timezone.utc)

        progress = session.progress
        progress.completed = True
        progress.error = error
        if status is SessionStatus.COMPLETED:
            progress.message = f"Crawl completed: {len(session.pages)} pages"
        else:
            progress.message = f"Crawl failed: {error}"

        self._finished_at[session.id] = self._clock()
        logger.info(
            "Crawl session %s",
            status.value,
            extra={"session_id": session.id, "pages_crawled": len(session.pages)},
        )

    # ------------------------------------------------------------------
    # Eviction
    # ------------------------------------------------------------------

    def _evict_expired(self) -> int:
        cutoff = self._clock() - self._retention_seconds
        expired = [sid for sid, finished in self._finished_at.items() if finished <= cutoff]
        for session_id in expired:
            self._finished_at.pop(session_id, None)
            self._sessions.pop(session_id, None)
        if expired:
            logger.debug("Evicted %d finished crawl sessions", len(expired))
        return len(expired)

    async def sweep_loop(self) -> None:
        """Evict expired sessions every ``sweep_interval_seconds``."""
        while True:
            await asyncio.sleep(self._sweep_interval_seconds)
            self._evict_expired()

    async def shutdown(self) -> None:
        """Cancel every running crawl and wait for the tasks to unwind."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Cancelled %d running crawl sessions", len(tasks))

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_stats(self) -> dict:
        self._evict_expired()
        counts = {status.value: 0 for status in SessionStatus}
        for session in self._sessions.values():
            counts[session.status.value] += 1
        return {"total": len(self._sessions), **counts}

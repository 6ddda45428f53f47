"""Temporary-artifact management for downloaded source documents.

Files fetched from an external source (e.g. Google Drive) are written to a
dedicated temp directory, extracted, and deleted by the ingestion service.
:class:`TempFileSweeper` is the safety net for anything left behind by a
crashed worker: a periodic background task, owned by the process
lifecycle, that removes entries older than a maximum age.

The sweeper never starts itself -- ``main.py``'s lifespan (or the CLI)
calls :meth:`TempFileSweeper.start` and :meth:`TempFileSweeper.stop`.
"""

from __future__ import annotations

import asyncio
import shutil
import time
from pathlib import Path

import structlog

logger = structlog.get_logger(logger_name=__name__)


def ensure_temp_dir(temp_dir: str | Path) -> Path:
    """Create *temp_dir* (and parents) if missing and return it as a Path."""
    path = Path(temp_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def remove_artifact(path: str | Path) -> bool:
    """Delete a single temporary artifact.

    Returns ``True`` when something was removed.  Missing files are not an
    error -- the sweeper may already have collected them.
    """
    target = Path(path)
    try:
        if target.is_dir():
            shutil.rmtree(target)
        else:
            target.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        logger.warning("temp_artifact_remove_failed", path=str(target), error=str(exc))
        return False
    logger.debug("temp_artifact_removed", path=str(target))
    return True


class TempFileSweeper:
    """Periodically removes stale entries from a temp directory.

    Parameters
    ----------
    temp_dir:
        Directory holding downloaded artifacts.
    interval_seconds:
        Pause between sweeps (default 30 minutes).
    max_age_seconds:
        Entries whose modification time is older than this are removed
        (default 1 hour).
    """

    def __init__(
        self,
        temp_dir: str | Path,
        interval_seconds: float = 1800.0,
        max_age_seconds: float = 3600.0,
    ) -> None:
        self._temp_dir = Path(temp_dir)
        self._interval = interval_seconds
        self._max_age = max_age_seconds
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def sweep(self, now: float | None = None) -> int:
        """Run one sweep synchronously and return the number of entries removed."""
        if not self._temp_dir.exists():
            return 0

        cutoff = (now if now is not None else time.time()) - self._max_age
        removed = 0
        for entry in self._temp_dir.iterdir():
            try:
                mtime = entry.stat().st_mtime
            except FileNotFoundError:
                continue
            if mtime < cutoff and remove_artifact(entry):
                removed += 1

        if removed:
            logger.info("temp_sweep_completed", removed=removed, temp_dir=str(self._temp_dir))
        return removed

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop (idempotent)."""
        if self.is_running:
            return
        ensure_temp_dir(self._temp_dir)
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="temp-file-sweeper")
        logger.info(
            "temp_sweeper_started",
            temp_dir=str(self._temp_dir),
            interval_seconds=self._interval,
            max_age_seconds=self._max_age,
        )

    async def stop(self) -> None:
        """Signal the loop to exit and wait for it; safe to call when not running."""
        if self._task is None:
            return
        self._stop_event.set()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("temp_sweeper_stopped")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.to_thread(self.sweep)
            except OSError as exc:
                logger.warning("temp_sweep_failed", error=str(exc))
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                continue

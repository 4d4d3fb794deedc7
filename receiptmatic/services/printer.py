# receiptmatic/services/printer.py
"""The printer engine: admits one receipt at a time, reveals it line by line
and walks it through ASSEMBLING -> REVEALING -> SETTLING -> SETTLED.

Every job gets one lifecycle coroutine. Its sleeps are the reveal ticks and
the settle timer, so cancelling the coroutine cancels all of them at once.
"""
from __future__ import annotations

import asyncio
import logging
import threading
import time
from datetime import datetime, timezone, tzinfo
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from receiptmatic.background import TaskSupervisor
from receiptmatic.jobs import Job, JobSnapshot, JobState, JobStore
from receiptmatic.services.enrichment import Enricher, build_enricher, contain
from receiptmatic.services.formatter import build_template, format_lines
from receiptmatic.settings.config import Settings

logger = logging.getLogger(__name__)

# ids are unique across every engine in the process
_id_lock = threading.Lock()
_last_id_ms = 0


def _new_job_id() -> str:
    global _last_id_ms
    with _id_lock:
        ms = int(time.time() * 1000)
        if ms <= _last_id_ms:
            ms = _last_id_ms + 1
        _last_id_ms = ms
    return f"receipt-{ms}"


def _pick_tz(name: Optional[str]) -> Optional[tzinfo]:
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        pass
    logger.warning("Unknown timezone %r; receipts will be stamped in UTC", name)
    return timezone.utc


class PrinterEngine:
    def __init__(
        self,
        enrich: Enricher,
        *,
        reveal_interval: float = 0.2,
        settle_delay: float = 0.8,
        wrap_width: int = 30,
        tz: Optional[str] = None,
        time_format: str = "%Y/%m/%d %H:%M:%S",
        enrich_timeout: Optional[float] = 11.0,
        store: Optional[JobStore] = None,
    ):
        self.reveal_interval = reveal_interval
        self.settle_delay = settle_delay
        self.wrap_width = wrap_width
        self.time_format = time_format
        self._tz = _pick_tz(tz)
        self.enrich_timeout = enrich_timeout
        # bounds ASSEMBLING no matter where the enricher came from
        self._enrich = contain(enrich, timeout=enrich_timeout)

        self.store = store or JobStore()
        self.store.add_listener(self._on_store_change)

        self._busy = False
        self._active_id: Optional[str] = None
        self._active_state: Optional[JobState] = None
        self._closed = False
        self._tasks = TaskSupervisor("printer")
        self._version = 0
        self._changed = asyncio.Event()

    # ---------- observable state ----------
    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def active(self) -> Optional[Tuple[str, JobState]]:
        if self._active_id is None:
            return None
        return self._active_id, self._active_state

    @property
    def version(self) -> int:
        return self._version

    def snapshot(self) -> list[JobSnapshot]:
        return self.store.snapshot()

    # ---------- submission ----------
    def submit(self, raw_text: str) -> Optional[str]:
        """Start printing ``raw_text``; returns the job id, or None when the
        text is blank, a receipt is already printing or the engine is closed.

        Must be called from a running event loop.
        """
        if not (raw_text or "").strip():
            logger.debug("Blank submission ignored")
            return None
        if self._closed:
            logger.debug("Printer closed; submission ignored")
            return None
        if self._busy:
            logger.debug("Printer busy with %s; submission rejected", self._active_id)
            return None
        # raises RuntimeError before any state changes when called off-loop
        asyncio.get_running_loop()

        self._busy = True
        jid = _new_job_id()
        self._active_id, self._active_state = jid, JobState.ASSEMBLING
        self._touch()

        self._tasks.spawn(self._run(jid, raw_text), name=f"print:{jid}")
        logger.info("Receipt %s accepted (%d chars)", jid, len(raw_text))
        return jid

    # ---------- lifecycle ----------
    async def _run(self, jid: str, raw_text: str) -> None:
        try:
            template = await self._assemble(raw_text)

            self._active_state = JobState.REVEALING
            self.store.insert(Job(id=jid, lines=tuple(template)))
            logger.debug("Receipt %s revealing %d lines", jid, len(template))

            for _ in template:
                await asyncio.sleep(self.reveal_interval)
                self.store.append_line(jid)

            self._advance(jid, JobState.SETTLING)
            await asyncio.sleep(self.settle_delay)
            self._advance(jid, JobState.SETTLED)
            logger.info("Receipt %s complete", jid)
        except asyncio.CancelledError:
            logger.info("Receipt %s cancelled in %s", jid, self._active_state.value if self._active_state else "?")
            raise
        finally:
            self._release(jid)

    async def _assemble(self, raw_text: str) -> list[str]:
        body = format_lines(raw_text, self.wrap_width)
        extra = await self._enrich(raw_text)
        extra_lines = format_lines(extra, self.wrap_width) if extra else []
        return build_template(body, extra_lines, self._timestamp())

    def _advance(self, jid: str, state: JobState) -> None:
        self._active_state = state
        self.store.set_state(jid, state)

    def _release(self, jid: str) -> None:
        if self._active_id != jid:
            return
        self._active_id = self._active_state = None
        self._busy = False
        self._touch()

    def _timestamp(self) -> str:
        return datetime.now(self._tz).strftime(self.time_format)

    # ---------- change notification ----------
    def _on_store_change(self, event: str, snap: JobSnapshot) -> None:
        self._touch()

    def _touch(self) -> None:
        self._version += 1
        self._changed.set()
        self._changed = asyncio.Event()

    async def wait_for_update(self, version: int, timeout: float) -> int:
        """Wait until something changed after ``version`` (or ``timeout``
        seconds pass) and return the current version."""
        if self._version != version:
            return self._version
        event = self._changed
        try:
            await asyncio.wait_for(event.wait(), timeout)
        except asyncio.TimeoutError:
            pass
        return self._version

    # ---------- teardown ----------
    async def wait_idle(self) -> None:
        await self._tasks.join()

    async def aclose(self) -> None:
        """Cancel every pending reveal tick and settle timer. Idempotent."""
        self._closed = True
        tasks = await self._tasks.cancel_all()
        if tasks:
            logger.info("Printer closed; cancelled %d job(s)", len(tasks))
        # tasks cancelled before their first step never reach _release
        self._active_id = self._active_state = None
        self._busy = False
        self._touch()


def build_engine(cfg: Settings, enrich: Optional[Enricher] = None) -> PrinterEngine:
    return PrinterEngine(
        enrich or build_enricher(cfg),
        reveal_interval=cfg.print_interval,
        settle_delay=cfg.settle_delay,
        wrap_width=cfg.WRAP_WIDTH,
        tz=cfg.APP_TZ,
        time_format=cfg.TIME_FORMAT,
        enrich_timeout=cfg.ENRICH_TIMEOUT + 1.0,
    )


__all__ = ["PrinterEngine", "build_engine"]

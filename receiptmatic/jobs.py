# receiptmatic/jobs.py
from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class JobState(str, enum.Enum):
    ASSEMBLING = "assembling"
    REVEALING = "revealing"
    SETTLING = "settling"
    SETTLED = "settled"


# Only forward moves, one step at a time. SETTLED is terminal.
TRANSITIONS: Dict[JobState, JobState] = {
    JobState.ASSEMBLING: JobState.REVEALING,
    JobState.REVEALING: JobState.SETTLING,
    JobState.SETTLING: JobState.SETTLED,
}

ACTIVE_STATES = frozenset({JobState.ASSEMBLING, JobState.REVEALING, JobState.SETTLING})


class JobStoreError(RuntimeError):
    """Internal consistency error: the writer broke a store invariant."""


class InvalidTransition(JobStoreError):
    pass


def next_state(state: JobState) -> JobState:
    try:
        return TRANSITIONS[state]
    except KeyError:
        raise InvalidTransition(f"{state.value} is terminal") from None


@dataclass
class Job:
    id: str
    lines: Tuple[str, ...]
    revealed: int = 0
    state: JobState = JobState.REVEALING
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total(self) -> int:
        return len(self.lines)


@dataclass(frozen=True)
class JobSnapshot:
    id: str
    template: Tuple[str, ...]
    revealed: int
    state: JobState
    created_at: datetime

    @property
    def total(self) -> int:
        return len(self.template)

    @property
    def lines(self) -> Tuple[str, ...]:
        """Lines printed so far."""
        return self.template[:self.revealed]


Listener = Callable[[str, JobSnapshot], None]


def _freeze(j: Job) -> JobSnapshot:
    return JobSnapshot(id=j.id, template=j.lines, revealed=j.revealed, state=j.state, created_at=j.created_at)


class JobStore:
    """Receipts printed this session, in creation order.

    Written only by the printer engine. Readers get frozen snapshots.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._jobs: Dict[str, Job] = {}
        self._listeners: List[Listener] = []
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def add_listener(self, fn: Listener) -> None:
        self._listeners.append(fn)

    def insert(self, job: Job) -> JobSnapshot:
        with self._lock:
            if job.id in self._jobs:
                raise JobStoreError(f"duplicate job id {job.id}")
            if job.revealed != 0 or job.state is not JobState.REVEALING:
                raise JobStoreError(f"job {job.id} must enter the store unrevealed and REVEALING")
            self._jobs[job.id] = job
            snap = self._bump(job)
        self._emit("inserted", snap)
        return snap

    def append_line(self, jid: str) -> bool:
        with self._lock:
            j = self._jobs.get(jid)
            if not j:
                logger.warning("append_line on unknown job %s ignored", jid)
                return False
            if j.state is not JobState.REVEALING:
                raise JobStoreError(f"job {jid} is {j.state.value}, not revealing")
            if j.revealed >= j.total:
                raise JobStoreError(f"job {jid} already fully revealed")
            j.revealed += 1
            snap = self._bump(j)
        self._emit("line", snap)
        return True

    def set_state(self, jid: str, state: JobState) -> bool:
        with self._lock:
            j = self._jobs.get(jid)
            if not j:
                logger.warning("set_state(%s) on unknown job %s ignored", state.value, jid)
                return False
            if next_state(j.state) is not state:
                raise InvalidTransition(f"job {jid}: {j.state.value} -> {state.value}")
            if j.state is JobState.REVEALING and j.revealed != j.total:
                raise InvalidTransition(f"job {jid} left revealing at {j.revealed}/{j.total}")
            j.state = state
            snap = self._bump(j)
        self._emit("state", snap)
        return True

    def get(self, jid: str) -> Optional[JobSnapshot]:
        with self._lock:
            j = self._jobs.get(jid)
            return _freeze(j) if j else None

    def snapshot(self) -> List[JobSnapshot]:
        with self._lock:
            return [_freeze(j) for j in self._jobs.values()]

    def _bump(self, j: Job) -> JobSnapshot:
        self._version += 1
        return _freeze(j)

    def _emit(self, event: str, snap: JobSnapshot) -> None:
        for fn in list(self._listeners):
            try:
                fn(event, snap)
            except Exception:  # noqa: BLE001
                logger.exception("Job store listener failed on %s for %s", event, snap.id)

from __future__ import annotations

import logging
import queue
import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .actions import ConversionOutcome, run_conversion
from .archive import sector_id
from .driver import SectorRange

LOG = logging.getLogger("rsc_landscape.jobs")

_PROBLEM_LIMIT = 200

Runner = Callable[..., ConversionOutcome]


@dataclass(frozen=True)
class ConversionTask:
    archive_path: Path
    mode: str
    sector_range: SectorRange
    clean: bool
    output_path: Path


@dataclass
class ConversionJob:
    id: str
    archive: str
    mode: str
    first_sector: str
    last_sector: str
    clean: bool
    output: str
    status: str = "queued"
    queued_at: Optional[str] = None
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    built: int = 0
    skipped: int = 0
    malformed: int = 0
    placed: int = 0
    problems: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "archive": self.archive,
            "mode": self.mode,
            "first_sector": self.first_sector,
            "last_sector": self.last_sector,
            "clean": self.clean,
            "output": self.output,
            "status": self.status,
            "queued_at": self.queued_at,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "built": self.built,
            "skipped": self.skipped,
            "malformed": self.malformed,
            "placed": self.placed,
            "problems": list(self.problems),
            "error": self.error,
        }


class JobQueue:
    """Runs conversions one at a time on a single worker thread.

    Conversions stay sequential; a second request waits behind the first
    rather than writing into the same world concurrently.
    """

    def __init__(self, history_limit: int = 100, runner: Runner = run_conversion) -> None:
        self._history_limit = history_limit
        self._runner = runner
        self._pending: "queue.Queue[Optional[tuple[str, ConversionTask]]]" = queue.Queue()
        self._jobs: OrderedDict[str, ConversionJob] = OrderedDict()
        self._lock = threading.Lock()
        self._thread = threading.Thread(target=self._worker_loop, name="rsc-landscape-worker", daemon=True)
        self._started = False

    def start(self) -> None:
        if self._started:
            return
        self._thread.start()
        self._started = True

    def stop(self) -> None:
        if not self._started:
            return
        self._pending.put(None)
        self._thread.join(timeout=5)
        self._started = False

    def submit(self, task: ConversionTask) -> ConversionJob:
        (x1, y1), (x2, y2) = task.sector_range
        job = ConversionJob(
            id=str(uuid.uuid4()),
            archive=task.archive_path.name,
            mode=task.mode,
            first_sector=sector_id(0, x1, y1),
            last_sector=sector_id(0, x2, y2),
            clean=task.clean,
            output=task.output_path.name,
            queued_at=_utcnow(),
        )
        with self._lock:
            self._jobs[job.id] = job
            while len(self._jobs) > self._history_limit:
                self._jobs.popitem(last=False)
        self._pending.put((job.id, task))
        LOG.info("Queued %s conversion %s (%s..%s)", job.mode, job.id, job.first_sector, job.last_sector)
        return replace(job, problems=list(job.problems))

    def list(self) -> List[ConversionJob]:
        with self._lock:
            return [replace(job, problems=list(job.problems)) for job in reversed(self._jobs.values())]

    def get(self, job_id: str) -> Optional[ConversionJob]:
        with self._lock:
            job = self._jobs.get(job_id)
            return replace(job, problems=list(job.problems)) if job else None

    def _worker_loop(self) -> None:
        while True:
            item = self._pending.get()
            if item is None:
                self._pending.task_done()
                return

            job_id, task = item
            self._update(job_id, status="running", started_at=_utcnow())
            try:
                outcome = self._runner(task.archive_path, task.sector_range, clean=task.clean, output_path=task.output_path)
            except Exception as exc:  # noqa: BLE001
                LOG.exception("Conversion %s failed", job_id)
                self._update(job_id, status="failed", error=str(exc), finished_at=_utcnow())
            else:
                self._update(
                    job_id,
                    status="succeeded",
                    built=outcome.built,
                    skipped=outcome.skipped,
                    malformed=outcome.malformed,
                    placed=outcome.placed,
                    problems=outcome.problems[:_PROBLEM_LIMIT],
                    finished_at=_utcnow(),
                )
            finally:
                self._pending.task_done()

    def _update(self, job_id: str, **changes: Any) -> None:
        with self._lock:
            job = self._jobs.get(job_id)
            # Evicted from history while running.
            if job is None:
                return
            for name, value in changes.items():
                setattr(job, name, value)


def _utcnow() -> str:
    return datetime.now(tz=timezone.utc).isoformat()

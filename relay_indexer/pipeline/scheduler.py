# relay_indexer/pipeline/scheduler.py
"""
Cadence-driven scheduling of indexer jobs.

Each registered job gets its own worker thread that sleeps until the next
trigger and then calls ``job.run()``. The runner's single-flight token keeps
overlapping triggers from executing concurrently, and a trigger that lands
while the job is busy is dropped rather than queued.
"""

import re
import threading
import time
from typing import Dict, List, Optional

from croniter import croniter

from .runner import JobRunner
from ..core.errors import ConfigurationError
from ..core.logging import LoggingMixin
from ..types.chain import RunSummary

_INTERVAL_PATTERN = re.compile(r'^\s*(\d+)\s*([smh]?)\s*$')
_UNIT_SECONDS = {'': 1, 's': 1, 'm': 60, 'h': 3600}


class Cadence:
    """Either a fixed interval (``30s``, ``5m``, ``1h``, ``45``) or a cron expression"""

    def __init__(self, expression: str, interval: Optional[float] = None):
        self.expression = expression
        self.interval = interval

    @classmethod
    def parse(cls, expression: str) -> 'Cadence':
        if not expression or not str(expression).strip():
            raise ConfigurationError("Empty cadence expression")
        expression = str(expression).strip()

        match = _INTERVAL_PATTERN.match(expression)
        if match:
            seconds = int(match.group(1)) * _UNIT_SECONDS[match.group(2)]
            if seconds <= 0:
                raise ConfigurationError(f"Cadence interval must be positive: {expression}")
            return cls(expression, interval=float(seconds))

        if not croniter.is_valid(expression):
            raise ConfigurationError(f"Invalid cadence expression: {expression}")
        return cls(expression)

    @property
    def is_interval(self) -> bool:
        return self.interval is not None

    def next_delay(self, now: Optional[float] = None) -> float:
        """Seconds from ``now`` until the next trigger"""
        now = time.time() if now is None else now
        if self.interval is not None:
            return self.interval
        next_fire = croniter(self.expression, now).get_next(float)
        return max(0.0, next_fire - now)

    def __repr__(self) -> str:
        return f"Cadence({self.expression!r})"


class Scheduler(LoggingMixin):
    def __init__(self):
        self._jobs: Dict[str, JobRunner] = {}
        self._cadences: Dict[str, Cadence] = {}
        self._threads: List[threading.Thread] = []
        self._stop = threading.Event()

    @property
    def jobs(self) -> Dict[str, JobRunner]:
        return dict(self._jobs)

    @property
    def running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def cadence_for(self, name: str) -> Optional[Cadence]:
        return self._cadences.get(name)

    def register(self, job: JobRunner, cadence: str) -> None:
        if job.name in self._jobs:
            raise ConfigurationError(f"Job already registered: {job.name}")
        self._cadences[job.name] = Cadence.parse(cadence)
        self._jobs[job.name] = job
        self.log_debug("Job registered", job_name=job.name, cadence=cadence)

    def run_once(self, name: str) -> Optional[RunSummary]:
        job = self._jobs.get(name)
        if job is None:
            raise ConfigurationError(f"Unknown job: {name}")
        return job.run()

    def run_all(self) -> Dict[str, Optional[RunSummary]]:
        return {name: job.run() for name, job in self._jobs.items()}

    def start(self, run_immediately: bool = True) -> None:
        if self.running:
            self.log_warning("Scheduler already running")
            return

        self._stop.clear()
        self._threads = []
        for name, job in self._jobs.items():
            thread = threading.Thread(
                target=self._loop,
                args=(job, self._cadences[name], run_immediately),
                name=f"job-{name}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()

        self.log_info("Scheduler started", job_count=len(self._threads))

    def _loop(self, job: JobRunner, cadence: Cadence, run_immediately: bool) -> None:
        if run_immediately and not self._stop.is_set():
            self._trigger(job)

        while not self._stop.is_set():
            if self._stop.wait(cadence.next_delay()):
                break
            self._trigger(job)

    def _trigger(self, job: JobRunner) -> None:
        try:
            job.run()
        except Exception as e:
            self.log_exception("Unhandled error in scheduled run", job_name=job.name, error=str(e))

    def wait(self) -> None:
        """Block until ``stop()`` is called"""
        while not self._stop.wait(1.0):
            pass

    def stop(self, timeout: Optional[float] = 30.0) -> None:
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout)
            if thread.is_alive():
                self.log_warning("Job still running at shutdown", thread_name=thread.name)
        self._threads = []
        self.log_info("Scheduler stopped")

"""Recurring distributions on a fixed interval.

Jobs live in memory only and do not survive a restart. Each job re-runs a
holder distribution every ``interval_seconds`` whether the previous run
succeeded or not. Only one job per signing credential is accepted, since
runs of two jobs sharing a signer would race on the same account. A stopped
job keeps its signer reserved until a run already in progress finishes.
"""

import logging
import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from ....errors import InputError, ScheduleValidationError
from ..signers import KeypairSigner, decode_signer
from ..utils import validate_svm_address
from .constants import INTERVAL_UNITS
from .types import RunStatus, ScheduleJob

if TYPE_CHECKING:
    from ..holders import HolderSnapshotProvider
    from .coordinator import DistributionCoordinator

logger = logging.getLogger(__name__)

TimerFactory = Callable[..., Any]


class ScheduleConfig(BaseModel):
    """Parameters of a recurring distribution."""

    asset_id: str
    holder_limit: int = Field(default=0, ge=0)  # 0 means all holders
    interval_seconds: float = Field(gt=0)
    distribution_percentage: float = Field(gt=0, le=100)

    @field_validator("asset_id")
    @classmethod
    def _asset_is_address(cls, value: str) -> str:
        value = value.strip()
        if not validate_svm_address(value):
            raise ValueError(f"Invalid token mint address: {value}")
        return value

    @property
    def distribution_fraction(self) -> float:
        return self.distribution_percentage / 100


def interval_from_units(value: int | str, unit: str) -> float:
    """Convert a count of minutes, hours or days to seconds.

    Raises:
        InputError: Non-positive value or unknown unit.
    """
    try:
        count = int(value)
    except (TypeError, ValueError):
        raise InputError(f"Invalid interval value: {value!r}") from None
    if count <= 0:
        raise InputError("Interval must be a positive number")
    seconds = INTERVAL_UNITS.get(unit.strip().lower())
    if seconds is None:
        raise InputError(f"Invalid interval type {unit!r}, expected minutes, hours or days")
    return float(count * seconds)


@dataclass
class _Entry:
    job: ScheduleJob
    signer: KeypairSigner
    timer: Any = None
    running: bool = False


class RecurrenceScheduler:
    """Registry of recurring distribution jobs.

    All registry mutation goes through this object's methods under one lock.
    Timers come from ``timer_factory`` (``threading.Timer`` by default); pass
    ``auto_start=False`` to drive jobs with ``run_pending`` instead.
    """

    def __init__(
        self,
        coordinator: "DistributionCoordinator",
        holders: "HolderSnapshotProvider",
        clock: Callable[[], float] = time.time,
        timer_factory: TimerFactory = threading.Timer,
        auto_start: bool = True,
    ):
        self._coordinator = coordinator
        self._holders = holders
        self._clock = clock
        self._timer_factory = timer_factory
        self._auto_start = auto_start
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}
        # stopped while running, signer stays reserved until the run ends
        self._draining: dict[str, _Entry] = {}

    def create(
        self,
        config: ScheduleConfig | dict[str, Any],
        signer: KeypairSigner | str,
    ) -> str:
        """Verify and register a recurring job.

        The holder snapshot is checked once, synchronously; a token with no
        holders is never registered. The first run happens one interval
        after creation.

        Returns:
            The new job id.

        Raises:
            ScheduleValidationError: Invalid config or credentials, signer
                already used by another job, or no holders found.
        """
        if not isinstance(config, ScheduleConfig):
            try:
                config = ScheduleConfig.model_validate(config)
            except ValidationError as e:
                raise ScheduleValidationError(f"Invalid schedule: {e}") from e

        if isinstance(signer, str):
            try:
                signer = decode_signer(signer)
            except InputError as e:
                raise ScheduleValidationError(str(e)) from e

        with self._lock:
            self._check_signer_free(signer)

        holders = self._holders.get_holders(config.asset_id, config.holder_limit or None)
        if not holders:
            raise ScheduleValidationError(
                f"Could not find any token holders for {config.asset_id}, schedule not created"
            )
        logger.info("Found %d holders for scheduled distributions", len(holders))

        job = ScheduleJob(
            id=uuid.uuid4().hex[:12],
            asset_id=config.asset_id,
            holder_limit=config.holder_limit,
            interval_seconds=config.interval_seconds,
            distribution_fraction=config.distribution_fraction,
            credentials_ref=signer.address,
            next_run_at=self._clock() + config.interval_seconds,
        )
        entry = _Entry(job=job, signer=signer)
        with self._lock:
            # another create may have taken the signer while holders were fetched
            self._check_signer_free(signer)
            self._entries[job.id] = entry
            if self._auto_start:
                self._arm(entry)

        logger.info(
            "Scheduled %s%% distributions of %s to %s holders of %s every %gs (job %s)",
            f"{config.distribution_percentage:g}",
            signer.address,
            config.holder_limit or "all",
            config.asset_id,
            config.interval_seconds,
            job.id,
        )
        return job.id

    def stop(self, job_id: str) -> bool:
        """Deactivate and remove a job. A run already in progress finishes."""
        with self._lock:
            entry = self._entries.pop(job_id, None)
            if entry is None:
                return False
            self._retire(entry)
        logger.info("Schedule %s stopped", job_id)
        return True

    def stop_all(self) -> int:
        with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()
            for entry in entries:
                self._retire(entry)
        if entries:
            logger.info("Stopped %d schedules", len(entries))
        return len(entries)

    def list(self) -> list[ScheduleJob]:
        """Snapshots of all registered jobs, soonest first."""
        with self._lock:
            jobs = [replace(e.job) for e in self._entries.values()]
        return sorted(jobs, key=lambda j: j.next_run_at)

    def get(self, job_id: str) -> ScheduleJob | None:
        with self._lock:
            entry = self._entries.get(job_id)
            return replace(entry.job) if entry else None

    def run_pending(self) -> int:
        """Run every active job that is due now. Returns the number run."""
        now = self._clock()
        with self._lock:
            due = [e for e in self._entries.values() if e.job.active and now >= e.job.next_run_at]
        return sum(1 for entry in due if self._run(entry))

    def _arm(self, entry: _Entry) -> None:
        delay = max(0.0, entry.job.next_run_at - self._clock())
        timer = self._timer_factory(delay, self._fire, args=(entry.job.id,))
        timer.daemon = True
        timer.start()
        entry.timer = timer

    def _check_signer_free(self, signer: KeypairSigner) -> None:
        entries = list(self._entries.values()) + list(self._draining.values())
        if any(e.signer.address == signer.address for e in entries):
            raise ScheduleValidationError(
                f"Wallet {signer.address} already has an active schedule; use one wallet per schedule"
            )

    def _retire(self, entry: _Entry) -> None:
        entry.job.active = False
        if entry.timer is not None:
            entry.timer.cancel()
            entry.timer = None
        if entry.running:
            self._draining[entry.job.id] = entry

    def _fire(self, job_id: str) -> None:
        with self._lock:
            entry = self._entries.get(job_id)
        if entry is None or not entry.job.active:
            return

        if self._clock() >= entry.job.next_run_at:
            self._run(entry)

        with self._lock:
            if entry.job.active:
                self._arm(entry)

    def _run(self, entry: _Entry) -> bool:
        job = entry.job
        with self._lock:
            if entry.running or not job.active:
                return False
            entry.running = True

        logger.info("Running scheduled distribution %s (run #%d)", job.id, job.runs_completed + 1)
        status: RunStatus | None = None
        try:
            holders = self._holders.get_holders(job.asset_id, job.holder_limit or None)
            if not holders:
                logger.warning("No token holders found for %s, skipping this run", job.asset_id)
            else:
                report = self._coordinator.distribute(
                    entry.signer,
                    holders,
                    job.distribution_fraction,
                    interactive=False,
                )
                status = report.status
        except Exception:
            logger.exception("Error in scheduled distribution %s", job.id)
            status = RunStatus.FAILED
        finally:
            with self._lock:
                job.next_run_at = self._clock() + job.interval_seconds
                job.runs_completed += 1
                job.last_status = status
                entry.running = False
                self._draining.pop(job.id, None)

        logger.info("Next run of schedule %s at %s", job.id, time.ctime(job.next_run_at))
        return True

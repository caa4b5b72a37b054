"""Types for holder distributions on Solana."""

from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from typing import Any

from ....errors import InputError
from ..constants import LAMPORTS_PER_SOL


@dataclass(frozen=True)
class Holder:
    """One owner in a token holder snapshot."""

    owner: str  # Solana address (base58)
    weight: int  # Raw token units held


@dataclass
class Recipient:
    """A recipient in a distribution.

    ``weight`` is either a token balance or an explicitly assigned percentage.
    The allocation fields are filled in by ``allocate``.
    """

    owner: str
    weight: float
    allocated_amount: Fraction = Fraction(0)  # SOL, exact
    allocated_units: int = 0  # lamports

    @classmethod
    def from_holder(cls, holder: Holder) -> "Recipient":
        return cls(owner=holder.owner, weight=holder.weight)


@dataclass(frozen=True)
class Budget:
    """Balance available to a run.

    Attributes:
        total_units: Signer balance in lamports.
        reserve_units: Lamports held back for transaction fees.
        distribution_fraction: Share of the remainder to distribute, in (0, 1].
    """

    total_units: int
    reserve_units: int
    distribution_fraction: float

    def __post_init__(self) -> None:
        if not 0 < self.distribution_fraction <= 1:
            raise InputError(
                f"distribution_fraction must be in (0, 1], got {self.distribution_fraction}"
            )
        if self.reserve_units < 0:
            raise InputError(f"reserve_units must be >= 0, got {self.reserve_units}")

    @property
    def available_units(self) -> int:
        return max(0, self.total_units - self.reserve_units)

    @property
    def spendable_units(self) -> int:
        # str() so 0.9 is exactly 9/10
        return int(self.available_units * Fraction(str(self.distribution_fraction)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalUnits": self.total_units,
            "reserveUnits": self.reserve_units,
            "distributionFraction": self.distribution_fraction,
            "spendableUnits": self.spendable_units,
        }


@dataclass
class Batch:
    """Recipients submitted together as one atomic transfer set."""

    index: int
    recipients: list[Recipient]

    def __len__(self) -> int:
        return len(self.recipients)

    @property
    def owners(self) -> list[str]:
        return [r.owner for r in self.recipients]


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"  # nothing transferable in the batch


@dataclass
class SubmissionOutcome:
    """Result of submitting one batch."""

    batch_index: int
    status: OutcomeStatus
    recipients_included: int = 0
    units_transferred: int = 0
    signature: str | None = None
    reason: str | None = None
    attempts: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "batchIndex": self.batch_index,
            "status": self.status.value,
            "recipientsIncluded": self.recipients_included,
            "unitsTransferred": self.units_transferred,
            "attempts": self.attempts,
        }
        if self.signature:
            d["signature"] = self.signature
        if self.reason:
            d["reason"] = self.reason
        return d


class RunStatus(str, Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class DistributionPlan:
    """Allocated and partitioned run, shown to the caller before submission."""

    budget: Budget
    recipients: list[Recipient]
    batches: list[Batch]

    @property
    def allocated_units(self) -> int:
        return sum(r.allocated_units for r in self.recipients)

    def top_recipients(self, count: int = 20) -> list[Recipient]:
        return sorted(self.recipients, key=lambda r: r.allocated_units, reverse=True)[:count]


@dataclass
class DistributionReport:
    """Aggregate of all batch outcomes for one run."""

    outcomes: list[SubmissionOutcome] = field(default_factory=list)
    budget: Budget | None = None
    recipient_count: int = 0
    error: str | None = None
    cancelled: bool = False

    @property
    def successful_batches(self) -> int:
        return sum(1 for o in self.outcomes if o.status is OutcomeStatus.SUCCESS)

    @property
    def failed_batches(self) -> int:
        return sum(1 for o in self.outcomes if o.status is OutcomeStatus.FAILED)

    @property
    def skipped_batches(self) -> int:
        return sum(1 for o in self.outcomes if o.status is OutcomeStatus.SKIPPED)

    @property
    def recipients_paid(self) -> int:
        return sum(o.recipients_included for o in self.outcomes if o.succeeded)

    @property
    def units_transferred(self) -> int:
        return sum(o.units_transferred for o in self.outcomes if o.succeeded)

    @property
    def status(self) -> RunStatus:
        if self.cancelled:
            return RunStatus.CANCELLED
        if self.successful_batches == 0:
            return RunStatus.FAILED
        if self.failed_batches:
            return RunStatus.PARTIAL
        return RunStatus.COMPLETE

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "status": self.status.value,
            "recipientCount": self.recipient_count,
            "successfulBatches": self.successful_batches,
            "failedBatches": self.failed_batches,
            "skippedBatches": self.skipped_batches,
            "recipientsPaid": self.recipients_paid,
            "unitsTransferred": self.units_transferred,
            "solTransferred": self.units_transferred / LAMPORTS_PER_SOL,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
        if self.budget is not None:
            d["budget"] = self.budget.to_dict()
        if self.error:
            d["error"] = self.error
        return d


@dataclass
class ScheduleJob:
    """A recurring distribution registered with the scheduler.

    ``credentials_ref`` is the signer's public address, never the secret.
    Times are epoch seconds.
    """

    id: str
    asset_id: str
    holder_limit: int
    interval_seconds: float
    distribution_fraction: float
    credentials_ref: str
    next_run_at: float
    runs_completed: int = 0
    active: bool = True
    last_status: RunStatus | None = None

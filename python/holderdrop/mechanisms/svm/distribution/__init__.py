"""Holder-weighted SOL distributions.

Allocates a share of a wallet's balance across token holders (or explicit
percentages), splits recipients into transactions of at most 20 transfers,
submits them one at a time and reports partial success. Recurring runs are
handled by ``RecurrenceScheduler``.
"""

from .allocation import allocate, explicit_recipients, normalize_percentages, parse_percentage
from .coordinator import DistributionCoordinator, WeightMode
from .partition import batch_count, partition
from .scheduler import RecurrenceScheduler, ScheduleConfig, interval_from_units
from .submitter import BatchSubmitter, RetryPolicy
from .types import (
    Batch,
    Budget,
    DistributionPlan,
    DistributionReport,
    Holder,
    OutcomeStatus,
    Recipient,
    RunStatus,
    ScheduleJob,
    SubmissionOutcome,
)

__all__ = [
    # Types
    "Batch",
    "Budget",
    "DistributionPlan",
    "DistributionReport",
    "Holder",
    "OutcomeStatus",
    "Recipient",
    "RunStatus",
    "ScheduleJob",
    "SubmissionOutcome",
    # Engine
    "allocate",
    "explicit_recipients",
    "normalize_percentages",
    "parse_percentage",
    "batch_count",
    "partition",
    "BatchSubmitter",
    "RetryPolicy",
    "DistributionCoordinator",
    "WeightMode",
    # Scheduling
    "RecurrenceScheduler",
    "ScheduleConfig",
    "interval_from_units",
]

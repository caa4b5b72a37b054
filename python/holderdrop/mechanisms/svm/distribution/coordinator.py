"""Distribution coordinator: validate, allocate, partition, confirm, submit, report."""

import logging
from collections.abc import Callable, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from ....errors import (
    DistributionError,
    InsufficientBudget,
    NoEligibleRecipients,
    ValidationGateDeclined,
)
from ..signers import KeypairSigner, decode_signer
from .allocation import allocate, normalize_percentages
from .constants import (
    FEE_RESERVE_PER_BATCH_LAMPORTS,
    LARGE_FANOUT_THRESHOLD,
    MANUAL_FEE_RESERVE_LAMPORTS,
    MAX_BATCH_SIZE,
)
from .partition import batch_count, partition
from .submitter import BatchSubmitter
from .types import Budget, DistributionPlan, DistributionReport, Recipient

if TYPE_CHECKING:
    from ..gateway import LedgerGateway

logger = logging.getLogger(__name__)


class Weighted(Protocol):
    owner: str
    weight: float


class WeightMode(str, Enum):
    PROPORTIONAL = "proportional"  # weight = raw holding
    EXPLICIT = "explicit"  # weight = user-assigned percentage


ConfirmCallback = Callable[[DistributionPlan], bool]


class DistributionCoordinator:
    """Runs one distribution end to end.

    Batches are submitted strictly one after another: they share one signer
    and its account state on the ledger. A failed batch never stops the
    following ones.
    """

    def __init__(
        self,
        gateway: "LedgerGateway",
        submitter: BatchSubmitter,
        max_batch_size: int = MAX_BATCH_SIZE,
        fee_reserve_per_batch: int = FEE_RESERVE_PER_BATCH_LAMPORTS,
        manual_fee_reserve: int = MANUAL_FEE_RESERVE_LAMPORTS,
        large_fanout_threshold: int = LARGE_FANOUT_THRESHOLD,
    ):
        self._gateway = gateway
        self._submitter = submitter
        self._max_batch_size = max_batch_size
        self._fee_reserve_per_batch = fee_reserve_per_batch
        self._manual_fee_reserve = manual_fee_reserve
        self._large_fanout_threshold = large_fanout_threshold

    def fee_reserve(self, recipient_count: int, mode: WeightMode) -> int:
        if mode is WeightMode.EXPLICIT:
            return self._manual_fee_reserve
        return self._fee_reserve_per_batch * batch_count(recipient_count, self._max_batch_size)

    def plan(
        self,
        signer: KeypairSigner,
        recipients: Sequence[Weighted],
        distribution_fraction: float,
        mode: WeightMode = WeightMode.PROPORTIONAL,
    ) -> DistributionPlan:
        """Validate inputs, carve the budget, allocate and partition.

        Raises:
            NoEligibleRecipients: No recipients or zero total weight.
            InsufficientBudget: Empty wallet or nothing left after the reserve.
            InputError: distribution_fraction outside (0, 1].
            LedgerUnavailable: The signer balance could not be read.
        """
        if not recipients:
            raise NoEligibleRecipients("No recipients provided for distribution")

        balance = self._gateway.get_balance(signer.address)
        logger.info("Sender wallet %s balance: %d lamports", signer.address, balance)
        if balance <= 0:
            raise InsufficientBudget("No SOL to distribute, balance is 0")

        # fresh copies, callers' lists are never mutated
        entries = [Recipient(owner=r.owner, weight=r.weight) for r in recipients]
        if mode is WeightMode.EXPLICIT:
            normalize_percentages(entries)

        budget = Budget(
            total_units=balance,
            reserve_units=self.fee_reserve(len(entries), mode),
            distribution_fraction=distribution_fraction,
        )
        allocate(budget, entries)

        if budget.spendable_units <= 0:
            raise InsufficientBudget("Not enough SOL to distribute after reserving for fees")

        batches = partition(entries, self._max_batch_size)
        logger.info(
            "Distributing %d of %d lamports (%.2f%%, %d reserved for fees) to %d recipients in %d batches",
            budget.spendable_units,
            budget.total_units,
            distribution_fraction * 100,
            budget.reserve_units,
            len(entries),
            len(batches),
        )
        return DistributionPlan(budget=budget, recipients=entries, batches=batches)

    def distribute(
        self,
        signer: KeypairSigner | str,
        recipients: Sequence[Weighted],
        distribution_fraction: float,
        *,
        mode: WeightMode = WeightMode.PROPORTIONAL,
        interactive: bool = True,
        confirm: ConfirmCallback | None = None,
        confirm_threshold: int | None = None,
    ) -> DistributionReport:
        """Run a distribution and report per-batch outcomes.

        Args:
            signer: Signer, or a secret key to decode.
            recipients: Holders or recipients, weight descending.
            distribution_fraction: Share of the post-reserve balance to send.
            mode: How weights are interpreted.
            interactive: False for scheduler-driven runs, which skip the
                confirmation gate.
            confirm: Called with the plan when confirmation is required.
            confirm_threshold: Recipient count above which confirmation is
                required. Defaults to the coordinator's large fan-out threshold.

        Returns:
            The run report. Pre-flight errors yield a failed report with
            ``error`` set and no batches attempted.
        """
        report = DistributionReport(recipient_count=len(recipients))

        try:
            if isinstance(signer, str):
                signer = decode_signer(signer)
            plan = self.plan(signer, recipients, distribution_fraction, mode)
        except DistributionError as e:
            logger.error("Distribution aborted: %s", e)
            report.error = str(e)
            return report

        report.budget = plan.budget

        if interactive:
            threshold = self._large_fanout_threshold if confirm_threshold is None else confirm_threshold
            try:
                self._confirm_if_large(plan, confirm, threshold)
            except ValidationGateDeclined as e:
                logger.info("Distribution cancelled: %s", e)
                report.cancelled = True
                report.error = str(e)
                return report

        last = len(plan.batches) - 1
        for batch in plan.batches:
            logger.info(
                "Processing batch %d/%d with %d recipients", batch.index + 1, last + 1, len(batch)
            )
            outcome = self._submitter.submit(batch, signer)
            report.outcomes.append(outcome)
            if batch.index < last:
                self._submitter.pause_after(outcome)

        logger.info(
            "Distribution %s: %d successful, %d failed, %d skipped batches; %d recipients received %d lamports",
            report.status.value,
            report.successful_batches,
            report.failed_batches,
            report.skipped_batches,
            report.recipients_paid,
            report.units_transferred,
        )
        return report

    def _confirm_if_large(
        self,
        plan: DistributionPlan,
        confirm: ConfirmCallback | None,
        threshold: int,
    ) -> None:
        count = len(plan.recipients)
        if count <= threshold:
            return
        if confirm is None:
            raise ValidationGateDeclined(
                f"Distribution to {count} recipients requires confirmation"
            )
        if not confirm(plan):
            raise ValidationGateDeclined(f"Distribution to {count} recipients declined")

"""Submission of one batch as one atomic transfer set."""

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ....errors import BatchSubmissionError, ConfirmationTimeout, TransferRejected
from ..utils import validate_svm_address
from .constants import DUST_THRESHOLD_LAMPORTS, FAILURE_DELAY_SECONDS, SUCCESS_DELAY_SECONDS
from .types import Batch, OutcomeStatus, SubmissionOutcome

if TYPE_CHECKING:
    from ..gateway import LedgerGateway
    from ..signers import KeypairSigner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff for rejected submissions.

    Attributes:
        max_attempts: Total attempts per batch, including the first.
        base_seconds: Delay before the second attempt.
        factor: Growth factor between consecutive delays.
        max_seconds: Upper bound on a single delay.
        jitter_pct: Random +/- spread applied to each delay.
    """

    max_attempts: int = 3
    base_seconds: float = 1
    factor: float = 2
    max_seconds: float = 8
    jitter_pct: float = 0.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")

    def backoff_seconds(self, attempt: int) -> float:
        """Delay after failed attempt number ``attempt`` (1-based)."""
        attempt = max(attempt, 1)
        delay = min(self.base_seconds * (self.factor ** (attempt - 1)), self.max_seconds)
        if self.jitter_pct > 0:
            spread = delay * self.jitter_pct
            delay = random.uniform(delay - spread, delay + spread)
        return max(delay, 0.0)


class BatchSubmitter:
    """Turns one batch into one confirmed transfer-set submission.

    Dust allocations and invalid addresses are left out of the transfer set
    without failing the batch. Only ``TransferRejected`` is retried. A
    confirmation timeout or a send lost in transport fails the batch at once
    since the transaction may still land.
    """

    def __init__(
        self,
        gateway: "LedgerGateway",
        retry_policy: RetryPolicy | None = None,
        dust_threshold: int = DUST_THRESHOLD_LAMPORTS,
        success_delay: float = SUCCESS_DELAY_SECONDS,
        failure_delay: float = FAILURE_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._gateway = gateway
        self._retry_policy = retry_policy or RetryPolicy()
        self._dust_threshold = dust_threshold
        self._success_delay = success_delay
        self._failure_delay = failure_delay
        self._sleep = sleep

    def build_transfers(self, batch: Batch) -> list[tuple[str, int]]:
        """(address, lamports) for every transferable recipient in the batch."""
        transfers: list[tuple[str, int]] = []
        for recipient in batch.recipients:
            if recipient.allocated_units < self._dust_threshold:
                logger.debug(
                    "Batch %d: skipping dust allocation of %d lamports for %s",
                    batch.index + 1,
                    recipient.allocated_units,
                    recipient.owner,
                )
                continue
            if not validate_svm_address(recipient.owner):
                logger.warning(
                    "Batch %d: skipping invalid recipient address %s", batch.index + 1, recipient.owner
                )
                continue
            transfers.append((recipient.owner, recipient.allocated_units))
        return transfers

    def submit(self, batch: Batch, signer: "KeypairSigner") -> SubmissionOutcome:
        transfers = self.build_transfers(batch)
        if not transfers:
            logger.info("No transferable recipients in batch %d, skipping", batch.index + 1)
            return SubmissionOutcome(batch_index=batch.index, status=OutcomeStatus.SKIPPED)

        units = sum(amount for _, amount in transfers)
        logger.info(
            "Sending batch %d with %d transfers (%d lamports)", batch.index + 1, len(transfers), units
        )

        attempt = 0
        while True:
            attempt += 1
            try:
                signature = self._gateway.submit_transfer_set(signer, transfers)
            except ConfirmationTimeout as e:
                return self._failed(batch, attempt, str(e), signature=e.signature)
            except TransferRejected as e:
                if attempt >= self._retry_policy.max_attempts:
                    return self._failed(batch, attempt, str(e))
                delay = self._retry_policy.backoff_seconds(attempt)
                logger.warning(
                    "Batch %d attempt %d/%d rejected: %s; retrying in %.1fs",
                    batch.index + 1,
                    attempt,
                    self._retry_policy.max_attempts,
                    e,
                    delay,
                )
                self._sleep(delay)
                continue
            except BatchSubmissionError as e:
                return self._failed(batch, attempt, str(e))
            except Exception as e:
                return self._failed(batch, attempt, f"unexpected_submission_error: {e}")

            logger.info("Batch %d confirmed: %s", batch.index + 1, signature)
            return SubmissionOutcome(
                batch_index=batch.index,
                status=OutcomeStatus.SUCCESS,
                recipients_included=len(transfers),
                units_transferred=units,
                signature=signature,
                attempts=attempt,
            )

    def pause_after(self, outcome: SubmissionOutcome) -> None:
        """Rate-limit pause before the next batch."""
        if outcome.status is OutcomeStatus.SUCCESS:
            self._sleep(self._success_delay)
        elif outcome.status is OutcomeStatus.FAILED:
            self._sleep(self._failure_delay)

    def _failed(
        self,
        batch: Batch,
        attempts: int,
        reason: str,
        signature: str | None = None,
    ) -> SubmissionOutcome:
        logger.warning("Batch %d failed after %d attempt(s): %s", batch.index + 1, attempts, reason)
        return SubmissionOutcome(
            batch_index=batch.index,
            status=OutcomeStatus.FAILED,
            signature=signature,
            reason=reason,
            attempts=attempts,
        )

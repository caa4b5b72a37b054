"""Error taxonomy for holder distributions.

Pre-flight errors (input, recipients, budget) abort a run before any batch
is attempted. Batch errors are recorded per batch and never abort a run.
"""


class DistributionError(Exception):
    """Base class for every distribution failure."""


class InputError(DistributionError, ValueError):
    """Malformed address, credential, percentage or schedule parameter."""


class NoEligibleRecipients(DistributionError):
    """Empty recipient list or zero total weight."""


class InsufficientBudget(DistributionError):
    """Nothing left to distribute after the fee reserve and fraction."""


class LedgerUnavailable(DistributionError):
    """The ledger could not be reached while preparing a run."""


class BatchSubmissionError(DistributionError):
    """A batch could not be submitted or confirmed."""


class TransferRejected(BatchSubmissionError):
    """The ledger refused the transaction. Safe to resubmit."""


class ConfirmationTimeout(BatchSubmissionError):
    """The transaction was sent but not confirmed in time.

    Not retried: the transaction may still land.
    """

    def __init__(self, signature: str, timeout: float):
        super().__init__(f"Transaction {signature} not confirmed within {timeout:g}s")
        self.signature = signature
        self.timeout = timeout


class SubmissionUncertain(BatchSubmissionError):
    """The send failed in transport, after the node may have accepted it.

    Not retried: a resubmission with a fresh blockhash is a new transaction.
    """


class ValidationGateDeclined(DistributionError):
    """The caller declined the large fan-out confirmation."""


class ScheduleValidationError(InputError):
    """A recurring job could not be registered."""

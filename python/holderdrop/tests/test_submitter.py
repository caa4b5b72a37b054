"""Unit tests for single-batch submission."""

import pytest

from holderdrop.errors import ConfirmationTimeout, TransferRejected
from holderdrop.mechanisms.svm.distribution import (
    Batch,
    BatchSubmitter,
    OutcomeStatus,
    Recipient,
    RetryPolicy,
    SubmissionOutcome,
)

from fakes import FakeGateway, make_recipients


def make_batch(allocated, index=0):
    return Batch(index=index, recipients=make_recipients([1] * len(allocated), allocated))


class TestBuildTransfers:
    """Test which recipients make it into a transfer set."""

    def test_dust_is_skipped(self):
        """Allocations below 1000 lamports are left out."""
        submitter = BatchSubmitter(FakeGateway())
        batch = make_batch([5_000, 999, 1_000])

        transfers = submitter.build_transfers(batch)

        assert transfers == [
            (batch.recipients[0].owner, 5_000),
            (batch.recipients[2].owner, 1_000),
        ]

    def test_invalid_address_is_skipped(self):
        """An unparsable address is dropped without failing the batch."""
        submitter = BatchSubmitter(FakeGateway())
        good = make_recipients([1], [5_000])[0]
        bad = Recipient(owner="not-a-pubkey", weight=1, allocated_units=5_000)

        transfers = submitter.build_transfers(Batch(index=0, recipients=[bad, good]))

        assert transfers == [(good.owner, 5_000)]


class TestSubmit:
    """Test submission outcomes and retries."""

    def test_success(self, signer, sleep):
        gateway = FakeGateway()
        submitter = BatchSubmitter(gateway, sleep=sleep)
        batch = make_batch([5_000, 7_000])

        outcome = submitter.submit(batch, signer)

        assert outcome.status is OutcomeStatus.SUCCESS
        assert outcome.recipients_included == 2
        assert outcome.units_transferred == 12_000
        assert outcome.signature == "sig1"
        assert outcome.attempts == 1
        assert len(gateway.submissions) == 1
        assert sleep.calls == []

    def test_all_dust_batch_is_skipped(self, signer):
        """A batch with nothing transferable is never sent."""
        gateway = FakeGateway()
        submitter = BatchSubmitter(gateway)

        outcome = submitter.submit(make_batch([10, 20], index=3), signer)

        assert outcome.status is OutcomeStatus.SKIPPED
        assert outcome.batch_index == 3
        assert gateway.submissions == []

    def test_rejection_is_retried(self, signer, sleep):
        """A rejected batch is resubmitted after a backoff."""
        gateway = FakeGateway(results=[TransferRejected("blockhash not found"), None])
        submitter = BatchSubmitter(gateway, sleep=sleep)

        outcome = submitter.submit(make_batch([5_000]), signer)

        assert outcome.succeeded
        assert outcome.attempts == 2
        assert outcome.signature == "sig2"
        assert sleep.calls == [1]

    def test_retries_exhausted(self, signer, sleep):
        """The batch fails once every attempt was rejected."""
        gateway = FakeGateway(results=[TransferRejected("insufficient funds")] * 3)
        submitter = BatchSubmitter(gateway, retry_policy=RetryPolicy(max_attempts=3), sleep=sleep)

        outcome = submitter.submit(make_batch([5_000]), signer)

        assert outcome.status is OutcomeStatus.FAILED
        assert outcome.attempts == 3
        assert "insufficient funds" in outcome.reason
        assert outcome.units_transferred == 0
        assert sleep.calls == [1, 2]

    def test_confirmation_timeout_is_not_retried(self, signer, sleep):
        """A timed out transaction may still land and is never resent."""
        gateway = FakeGateway(results=[ConfirmationTimeout("5igSig", 60)])
        submitter = BatchSubmitter(gateway, sleep=sleep)

        outcome = submitter.submit(make_batch([5_000]), signer)

        assert outcome.status is OutcomeStatus.FAILED
        assert outcome.attempts == 1
        assert outcome.signature == "5igSig"
        assert "not confirmed" in outcome.reason
        assert len(gateway.submissions) == 1
        assert sleep.calls == []

    def test_unexpected_error_fails_batch(self, signer):
        gateway = FakeGateway(results=[RuntimeError("connection reset")])
        submitter = BatchSubmitter(gateway)

        outcome = submitter.submit(make_batch([5_000]), signer)

        assert outcome.status is OutcomeStatus.FAILED
        assert outcome.reason == "unexpected_submission_error: connection reset"


class TestPauseAfter:
    """Test the rate-limit pause between batches."""

    @pytest.mark.parametrize(
        "status, expected",
        [(OutcomeStatus.SUCCESS, [2]), (OutcomeStatus.FAILED, [5]), (OutcomeStatus.SKIPPED, [])],
    )
    def test_delay_by_status(self, sleep, status, expected):
        submitter = BatchSubmitter(FakeGateway(), sleep=sleep)

        submitter.pause_after(SubmissionOutcome(batch_index=0, status=status))

        assert sleep.calls == expected


class TestRetryPolicy:
    """Test exponential backoff."""

    def test_backoff_doubles_up_to_cap(self):
        policy = RetryPolicy(base_seconds=1, factor=2, max_seconds=8)

        assert [policy.backoff_seconds(n) for n in range(1, 6)] == [1, 2, 4, 8, 8]

    def test_jitter_stays_in_range(self):
        policy = RetryPolicy(base_seconds=4, jitter_pct=0.25)

        for _ in range(20):
            assert 3 <= policy.backoff_seconds(1) <= 5

    def test_max_attempts_must_be_positive(self):
        with pytest.raises(ValueError, match="max_attempts"):
            RetryPolicy(max_attempts=0)

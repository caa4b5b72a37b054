"""Unit tests for the Solana RPC gateway using a stub RPC client."""

from types import SimpleNamespace

import pytest
from solana.exceptions import SolanaRpcException
from solana.rpc.core import RPCException
from solders.hash import Hash
from solders.signature import Signature
from solders.transaction_status import TransactionConfirmationStatus

from holderdrop.errors import (
    ConfirmationTimeout,
    InputError,
    LedgerUnavailable,
    SubmissionUncertain,
    TransferRejected,
)
from holderdrop.mechanisms.svm import SolanaRpcGateway
from holderdrop.mechanisms.svm.distribution import (
    Batch,
    BatchSubmitter,
    OutcomeStatus,
    RetryPolicy,
)

from fakes import FakeClock, make_recipients, new_address


def status(confirmation=TransactionConfirmationStatus.Confirmed, err=None):
    return SimpleNamespace(err=err, confirmation_status=confirmation)


class StubClient:
    """Answers the handful of RPC calls the gateway makes."""

    def __init__(self, balance=0, statuses=None, send_error=None, balance_error=None):
        self.balance = balance
        self.statuses = list(statuses or [status()])
        self.send_error = send_error
        self.balance_error = balance_error
        self.sent = []
        self.send_attempts = 0
        self.status_polls = 0

    def get_balance(self, pubkey, commitment=None):
        if self.balance_error:
            raise self.balance_error
        return SimpleNamespace(value=self.balance)

    def get_latest_blockhash(self, commitment=None):
        return SimpleNamespace(value=SimpleNamespace(blockhash=Hash.default()))

    def send_transaction(self, tx, opts=None):
        self.send_attempts += 1
        if self.send_error:
            raise self.send_error
        self.sent.append(tx)
        return SimpleNamespace(value=Signature.default())

    def get_signature_statuses(self, signatures):
        self.status_polls += 1
        current = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        return SimpleNamespace(value=[current])


def make_gateway(client, timeout=60, poll_interval=2):
    clock = FakeClock()
    return SolanaRpcGateway(
        client,
        confirmation_timeout=timeout,
        poll_interval=poll_interval,
        sleep=clock.advance,
        clock=clock,
    )


class TestGetBalance:
    def test_returns_lamports(self):
        gateway = make_gateway(StubClient(balance=1_500_000_000))

        assert gateway.get_balance(new_address()) == 1_500_000_000

    def test_invalid_address(self):
        with pytest.raises(InputError, match="Invalid Solana address"):
            make_gateway(StubClient()).get_balance("nope")

    def test_transport_failure_is_ledger_unavailable(self):
        client = StubClient(balance_error=SolanaRpcException("read timed out"))

        with pytest.raises(LedgerUnavailable, match="read timed out"):
            make_gateway(client).get_balance(new_address())

    def test_rpc_error_is_ledger_unavailable(self):
        client = StubClient(balance_error=RPCException("node is behind"))

        with pytest.raises(LedgerUnavailable):
            make_gateway(client).get_balance(new_address())


class TestSubmitTransferSet:
    """Test atomic transfer-set submission and confirmation polling."""

    def test_one_transaction_with_one_transfer_per_recipient(self, signer):
        client = StubClient()
        gateway = make_gateway(client)
        transfers = [(new_address(), 5_000), (new_address(), 7_000), (new_address(), 9_000)]

        signature = gateway.submit_transfer_set(signer, transfers)

        assert signature == str(Signature.default())
        assert len(client.sent) == 1
        tx = client.sent[0]
        assert len(tx.message.instructions) == 3
        assert tx.message.account_keys[0] == signer.pubkey

    def test_waits_for_confirmation(self, signer):
        client = StubClient(
            statuses=[
                None,
                status(TransactionConfirmationStatus.Processed),
                status(TransactionConfirmationStatus.Finalized),
            ]
        )

        make_gateway(client).submit_transfer_set(signer, [(new_address(), 5_000)])

        assert client.status_polls == 3

    def test_rpc_rejection(self, signer):
        client = StubClient(send_error=RPCException("Blockhash not found"))

        with pytest.raises(TransferRejected, match="Blockhash not found"):
            make_gateway(client).submit_transfer_set(signer, [(new_address(), 5_000)])

    def test_transport_failure_on_send_is_uncertain(self, signer):
        """A send that fails in transport may have reached the node."""
        client = StubClient(send_error=SolanaRpcException("connection reset"))

        with pytest.raises(SubmissionUncertain, match="connection reset") as exc_info:
            make_gateway(client).submit_transfer_set(signer, [(new_address(), 5_000)])

        assert not isinstance(exc_info.value, TransferRejected)
        assert client.send_attempts == 1

    def test_landed_with_error(self, signer):
        client = StubClient(statuses=[status(err="InstructionError")])

        with pytest.raises(TransferRejected, match="InstructionError"):
            make_gateway(client).submit_transfer_set(signer, [(new_address(), 5_000)])

    def test_confirmation_timeout(self, signer):
        client = StubClient(statuses=[None])
        gateway = make_gateway(client, timeout=10, poll_interval=2)

        with pytest.raises(ConfirmationTimeout) as exc_info:
            gateway.submit_transfer_set(signer, [(new_address(), 5_000)])

        assert exc_info.value.signature == str(Signature.default())
        assert client.status_polls == 5

    def test_empty_transfer_set(self, signer):
        with pytest.raises(ValueError, match="empty"):
            make_gateway(StubClient()).submit_transfer_set(signer, [])


class TestSubmitterOverRpc:
    """Test retry decisions on errors raised by the RPC gateway."""

    def test_send_transport_failure_is_not_resubmitted(self, signer, sleep):
        """A send lost in transport is sent once, never again with a fresh blockhash."""
        client = StubClient(send_error=SolanaRpcException("connection reset"))
        submitter = BatchSubmitter(
            make_gateway(client), retry_policy=RetryPolicy(max_attempts=3), sleep=sleep
        )
        batch = Batch(index=0, recipients=make_recipients([1, 1], [5_000, 7_000]))

        outcome = submitter.submit(batch, signer)

        assert outcome.status is OutcomeStatus.FAILED
        assert outcome.attempts == 1
        assert "may still land" in outcome.reason
        assert client.send_attempts == 1
        assert sleep.calls == []

    def test_rpc_rejection_is_resubmitted(self, signer, sleep):
        client = StubClient(send_error=RPCException("Blockhash not found"))
        submitter = BatchSubmitter(
            make_gateway(client), retry_policy=RetryPolicy(max_attempts=3), sleep=sleep
        )
        batch = Batch(index=0, recipients=make_recipients([1], [5_000]))

        outcome = submitter.submit(batch, signer)

        assert outcome.status is OutcomeStatus.FAILED
        assert outcome.attempts == 3
        assert client.send_attempts == 3

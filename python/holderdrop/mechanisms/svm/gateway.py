"""Ledger gateway: balance lookup and transfer-set submission over Solana RPC."""

import logging
import time
from collections.abc import Callable
from typing import Protocol

from solana.exceptions import SolanaRpcException
from solana.rpc.api import Client
from solana.rpc.commitment import Confirmed
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.message import Message  # type: ignore
from solders.pubkey import Pubkey  # type: ignore
from solders.signature import Signature  # type: ignore
from solders.system_program import TransferParams, transfer  # type: ignore
from solders.transaction import Transaction  # type: ignore
from solders.transaction_status import TransactionConfirmationStatus  # type: ignore

from ...errors import (
    ConfirmationTimeout,
    InputError,
    LedgerUnavailable,
    SubmissionUncertain,
    TransferRejected,
)
from .constants import DEFAULT_CONFIRMATION_TIMEOUT_SECONDS, DEFAULT_POLL_INTERVAL_SECONDS
from .signers import KeypairSigner

logger = logging.getLogger(__name__)

_CONFIRMED_STATUSES = (
    TransactionConfirmationStatus.Confirmed,
    TransactionConfirmationStatus.Finalized,
)


class LedgerGateway(Protocol):
    """Ledger access consumed by the distribution engine."""

    def get_balance(self, address: str) -> int:
        """Balance of ``address`` in lamports.

        Raises:
            LedgerUnavailable: The ledger could not be queried.
        """
        ...

    def submit_transfer_set(
        self,
        signer: KeypairSigner,
        transfers: list[tuple[str, int]],
    ) -> str:
        """Submit all transfers as one atomic transaction and wait for confirmation.

        Returns:
            The transaction signature.

        Raises:
            TransferRejected: The ledger refused the transaction.
            SubmissionUncertain: The send failed in transport.
            ConfirmationTimeout: No confirmation within the timeout.
        """
        ...


class SolanaRpcGateway:
    """LedgerGateway backed by a solana-py RPC client.

    ``RPCException`` is an error answer from the node, so nothing was
    accepted. ``SolanaRpcException`` is a transport failure, after which the
    node may or may not hold the transaction.
    """

    def __init__(
        self,
        client: Client,
        confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT_SECONDS,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self._confirmation_timeout = confirmation_timeout
        self._poll_interval = poll_interval
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_url(cls, rpc_url: str, **kwargs) -> "SolanaRpcGateway":
        return cls(Client(rpc_url, commitment=Confirmed), **kwargs)

    def get_balance(self, address: str) -> int:
        try:
            pubkey = Pubkey.from_string(address)
        except ValueError:
            raise InputError(f"Invalid Solana address: {address}") from None
        try:
            return self._client.get_balance(pubkey, commitment=Confirmed).value
        except (RPCException, SolanaRpcException) as e:
            raise LedgerUnavailable(f"Could not read balance of {address}: {e}") from e

    def build_transaction(
        self,
        signer: KeypairSigner,
        transfers: list[tuple[str, int]],
    ) -> Transaction:
        """Build and sign one legacy transaction with a system transfer per recipient."""
        payer = signer.pubkey
        instructions = [
            transfer(
                TransferParams(
                    from_pubkey=payer,
                    to_pubkey=Pubkey.from_string(address),
                    lamports=lamports,
                )
            )
            for address, lamports in transfers
        ]
        blockhash = self._client.get_latest_blockhash(commitment=Confirmed).value.blockhash
        message = Message.new_with_blockhash(instructions, payer, blockhash)
        return Transaction([signer.keypair], message, blockhash)

    def submit_transfer_set(
        self,
        signer: KeypairSigner,
        transfers: list[tuple[str, int]],
    ) -> str:
        if not transfers:
            raise ValueError("Transfer set is empty")

        # nothing has been sent if building fails
        try:
            tx = self.build_transaction(signer, transfers)
        except (RPCException, SolanaRpcException) as e:
            raise TransferRejected(f"Could not build transaction: {e}") from e

        try:
            result = self._client.send_transaction(
                tx, opts=TxOpts(skip_confirmation=True, preflight_commitment=Confirmed)
            )
        except RPCException as e:
            raise TransferRejected(f"Transaction rejected: {e}") from e
        except SolanaRpcException as e:
            raise SubmissionUncertain(f"Transaction send failed, it may still land: {e}") from e

        signature = str(result.value)
        logger.debug("Sent transaction %s with %d transfers", signature, len(transfers))
        self.wait_for_confirmation(signature)
        return signature

    def wait_for_confirmation(self, signature: str) -> None:
        """Poll signature status until confirmed.

        Raises:
            TransferRejected: The transaction landed with an error.
            ConfirmationTimeout: Not confirmed within the timeout.
        """
        sig = Signature.from_string(signature)
        start = self._clock()
        while self._clock() - start < self._confirmation_timeout:
            try:
                statuses = self._client.get_signature_statuses([sig]).value
            except SolanaRpcException as e:
                logger.debug("Status poll for %s failed: %s", signature, e)
                statuses = [None]

            status = statuses[0] if statuses else None
            if status is not None:
                if status.err is not None:
                    raise TransferRejected(f"Transaction {signature} failed: {status.err}")
                if status.confirmation_status in _CONFIRMED_STATUSES:
                    return
            self._sleep(self._poll_interval)

        raise ConfirmationTimeout(signature, self._confirmation_timeout)

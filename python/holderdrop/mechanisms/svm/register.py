"""Construction helpers wiring the Solana gateway into the distribution engine."""

from typing import TYPE_CHECKING

from solana.rpc.api import Client
from solana.rpc.commitment import Confirmed

from .distribution.coordinator import DistributionCoordinator
from .distribution.scheduler import RecurrenceScheduler
from .distribution.submitter import BatchSubmitter
from .gateway import LedgerGateway, SolanaRpcGateway
from .holders import HolderSnapshotProvider, SolanaHolderSnapshot

if TYPE_CHECKING:
    from ...config import Settings


def create_rpc_client(settings: "Settings") -> Client:
    """Create a solana-py RPC client for the configured network."""
    return Client(settings.resolved_rpc_url, commitment=Confirmed)


def create_svm_gateway(settings: "Settings", client: Client | None = None) -> SolanaRpcGateway:
    """Create a ledger gateway with the configured confirmation timeout."""
    return SolanaRpcGateway(
        client or create_rpc_client(settings),
        confirmation_timeout=settings.confirmation_timeout_seconds,
        poll_interval=settings.poll_interval_seconds,
    )


def create_svm_coordinator(
    settings: "Settings",
    gateway: LedgerGateway,
) -> DistributionCoordinator:
    """Create a distribution coordinator from settings.

    Args:
        settings: Runtime settings (batch size, reserves, delays, retries).
        gateway: Ledger gateway used for balances and submission.
    """
    submitter = BatchSubmitter(
        gateway,
        retry_policy=settings.retry_policy,
        dust_threshold=settings.dust_threshold_lamports,
        success_delay=settings.success_delay_seconds,
        failure_delay=settings.failure_delay_seconds,
    )
    return DistributionCoordinator(
        gateway,
        submitter,
        max_batch_size=settings.max_batch_size,
        fee_reserve_per_batch=settings.fee_reserve_per_batch_lamports,
        manual_fee_reserve=settings.manual_fee_reserve_lamports,
        large_fanout_threshold=settings.large_fanout_threshold,
    )


def create_svm_scheduler(
    coordinator: DistributionCoordinator,
    holders: HolderSnapshotProvider,
) -> RecurrenceScheduler:
    return RecurrenceScheduler(coordinator, holders)


def create_svm_holder_snapshot(settings: "Settings", client: Client | None = None) -> SolanaHolderSnapshot:
    return SolanaHolderSnapshot(client or create_rpc_client(settings))

"""Solana (SVM) ledger access: signers, RPC gateway and holder snapshots."""

from .constants import (
    LAMPORTS_PER_SOL,
    NETWORK_CONFIGS,
    SOLANA_DEVNET_CAIP2,
    SOLANA_MAINNET_CAIP2,
    SOLANA_TESTNET_CAIP2,
)
from .gateway import LedgerGateway, SolanaRpcGateway
from .holders import HolderSnapshotProvider, HolderSummary, SolanaHolderSnapshot, summarize_holders
from .signers import KeypairSigner, decode_signer

__all__ = [
    "LAMPORTS_PER_SOL",
    "NETWORK_CONFIGS",
    "SOLANA_DEVNET_CAIP2",
    "SOLANA_MAINNET_CAIP2",
    "SOLANA_TESTNET_CAIP2",
    "LedgerGateway",
    "SolanaRpcGateway",
    "HolderSnapshotProvider",
    "HolderSummary",
    "SolanaHolderSnapshot",
    "summarize_holders",
    "KeypairSigner",
    "decode_signer",
]

"""Utility functions for Solana (SVM) ledger access."""

from solders.pubkey import Pubkey  # type: ignore

from .constants import LAMPORTS_PER_SOL, NETWORK_ALIASES, NETWORK_CONFIGS


def normalize_network(network: str) -> str:
    """Normalize a network name to its CAIP-2 identifier.

    Raises:
        ValueError: If the network is not a known Solana network.
    """
    network = network.strip()
    if network in NETWORK_CONFIGS:
        return network
    alias = NETWORK_ALIASES.get(network.lower())
    if alias is None:
        raise ValueError(f"Unknown Solana network: {network}")
    return alias


def get_network_config(network: str) -> dict[str, str]:
    """Get the config dict (name, rpc_url) for a Solana network."""
    return NETWORK_CONFIGS[normalize_network(network)]


def get_rpc_url(network: str, custom_url: str | None = None) -> str:
    """Get the RPC URL for a Solana network."""
    if custom_url:
        return custom_url
    return get_network_config(network)["rpc_url"]


def validate_svm_address(address: str) -> bool:
    """Check that a string is a base58 encoded 32-byte public key."""
    if not address or not isinstance(address, str):
        return False
    try:
        Pubkey.from_string(address.strip())
    except ValueError:
        return False
    return True


def lamports_to_sol(lamports: int) -> float:
    return lamports / LAMPORTS_PER_SOL


def format_sol(lamports: int, places: int = 6) -> str:
    return f"{lamports_to_sol(lamports):.{places}f} SOL"


def shorten_address(address: str, keep: int = 12) -> str:
    if len(address) <= keep:
        return address
    return f"{address[:keep]}..."

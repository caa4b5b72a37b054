"""Constants for Solana (SVM) ledger access."""

LAMPORTS_PER_SOL = 1_000_000_000

SOLANA_MAINNET_CAIP2 = "solana:5eykt4UsFv8P8NJdTREpY1vzqKqZKvdp"
SOLANA_DEVNET_CAIP2 = "solana:EtWTRABZaYq6iMfeYKouRu166VU2xqa1"
SOLANA_TESTNET_CAIP2 = "solana:4uhcVJyU9pJkvQyS88uRDiswHXSCkY3z"

NETWORK_CONFIGS = {
    SOLANA_MAINNET_CAIP2: {
        "name": "mainnet-beta",
        "rpc_url": "https://api.mainnet-beta.solana.com",
    },
    SOLANA_DEVNET_CAIP2: {
        "name": "devnet",
        "rpc_url": "https://api.devnet.solana.com",
    },
    SOLANA_TESTNET_CAIP2: {
        "name": "testnet",
        "rpc_url": "https://api.testnet.solana.com",
    },
}

# Legacy network names accepted on input
NETWORK_ALIASES = {
    "solana": SOLANA_MAINNET_CAIP2,
    "mainnet": SOLANA_MAINNET_CAIP2,
    "mainnet-beta": SOLANA_MAINNET_CAIP2,
    "solana-devnet": SOLANA_DEVNET_CAIP2,
    "devnet": SOLANA_DEVNET_CAIP2,
    "solana-testnet": SOLANA_TESTNET_CAIP2,
    "testnet": SOLANA_TESTNET_CAIP2,
}

# SPL token account layout
TOKEN_ACCOUNT_SIZE = 165
TOKEN_ACCOUNT_MINT_OFFSET = 0

# Confirmation polling
DEFAULT_CONFIRMATION_TIMEOUT_SECONDS = 60
DEFAULT_POLL_INTERVAL_SECONDS = 2

"""Constants for holder distributions on Solana."""

# System program transfers that fit into one legacy transaction
MAX_BATCH_SIZE = 20

# Allocations below this many lamports are not transferred
DUST_THRESHOLD_LAMPORTS = 1000

# Fee reserves (0.01 SOL per batch for holder runs, 0.001 SOL flat for manual runs)
FEE_RESERVE_PER_BATCH_LAMPORTS = 10_000_000
MANUAL_FEE_RESERVE_LAMPORTS = 1_000_000

DEFAULT_DISTRIBUTION_PERCENTAGE = 90

# Interactive runs above this many recipients require confirmation
LARGE_FANOUT_THRESHOLD = 100

# Pause before the next batch
SUCCESS_DELAY_SECONDS = 2
FAILURE_DELAY_SECONDS = 5

# Explicit percentages within this distance of 100 are used as entered
PERCENTAGE_TOLERANCE = 0.01

INTERVAL_UNITS = {
    "minutes": 60,
    "hours": 60 * 60,
    "days": 24 * 60 * 60,
}

"""Token holder snapshots from the SPL Token program."""

import logging
import math
from dataclasses import dataclass
from typing import Any, Protocol

from solana.rpc.api import Client
from solana.rpc.commitment import Confirmed
from solana.rpc.types import MemcmpOpts
from solders.pubkey import Pubkey  # type: ignore
from spl.token.constants import TOKEN_PROGRAM_ID  # type: ignore

from ...errors import InputError
from .constants import TOKEN_ACCOUNT_MINT_OFFSET, TOKEN_ACCOUNT_SIZE
from .distribution.types import Holder

logger = logging.getLogger(__name__)


class HolderSnapshotProvider(Protocol):
    def get_holders(self, asset_id: str, limit: int | None = None) -> list[Holder]:
        """Holders of ``asset_id`` by weight descending, weight > 0 only."""
        ...


@dataclass(frozen=True)
class HolderSummary:
    holder_count: int
    total_supply: int
    top_decile_share: float  # percent of supply held by the top 10% of holders


def rank_holders(balances: dict[str, int], limit: int | None = None) -> list[Holder]:
    """Order owners by balance descending, dropping empty ones."""
    holders = [Holder(owner=owner, weight=amount) for owner, amount in balances.items() if amount > 0]
    holders.sort(key=lambda h: (-h.weight, h.owner))
    if limit is not None and limit > 0:
        holders = holders[:limit]
    return holders


def summarize_holders(holders: list[Holder]) -> HolderSummary:
    total = sum(h.weight for h in holders)
    if not holders or total == 0:
        return HolderSummary(holder_count=len(holders), total_supply=total, top_decile_share=0.0)
    top_count = max(1, math.ceil(len(holders) * 0.1))
    top = sum(h.weight for h in holders[:top_count])
    return HolderSummary(
        holder_count=len(holders),
        total_supply=total,
        top_decile_share=top / total * 100,
    )


def _parse_token_account(parsed: Any) -> tuple[str, int] | None:
    """Extract (owner, raw amount) from a jsonParsed token account."""
    if not isinstance(parsed, dict):
        return None
    info = parsed.get("info") or {}
    owner = info.get("owner")
    token_amount = info.get("tokenAmount") or {}
    amount = token_amount.get("amount")
    if not owner or amount is None:
        return None
    return owner, int(amount)


class SolanaHolderSnapshot:
    """HolderSnapshotProvider that scans token accounts of one mint.

    Balances of several token accounts owned by the same wallet are summed.
    """

    def __init__(self, client: Client):
        self._client = client

    def get_holders(self, asset_id: str, limit: int | None = None) -> list[Holder]:
        try:
            mint = Pubkey.from_string(asset_id.strip())
        except ValueError:
            raise InputError(f"Invalid token mint address: {asset_id}") from None

        resp = self._client.get_program_accounts_json_parsed(
            TOKEN_PROGRAM_ID,
            commitment=Confirmed,
            filters=[
                TOKEN_ACCOUNT_SIZE,
                MemcmpOpts(offset=TOKEN_ACCOUNT_MINT_OFFSET, bytes=str(mint)),
            ],
        )
        accounts = resp.value or []

        balances: dict[str, int] = {}
        for keyed in accounts:
            try:
                entry = _parse_token_account(keyed.account.data.parsed)
            except (AttributeError, TypeError, ValueError) as e:
                logger.debug("Skipping unparsable token account %s: %s", keyed.pubkey, e)
                continue
            if entry is None:
                continue
            owner, amount = entry
            balances[owner] = balances.get(owner, 0) + amount

        holders = rank_holders(balances, limit)
        logger.info(
            "Found %d token accounts, %d holders with a balance for %s",
            len(accounts),
            sum(1 for amount in balances.values() if amount > 0),
            asset_id,
        )
        return holders

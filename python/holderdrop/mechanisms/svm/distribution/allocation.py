"""Proportional allocation of a budget across weighted recipients."""

import math
from collections.abc import Iterable
from fractions import Fraction

from ....errors import InputError, NoEligibleRecipients
from ..constants import LAMPORTS_PER_SOL
from ..utils import validate_svm_address
from .constants import PERCENTAGE_TOLERANCE
from .types import Budget, Recipient


def allocate(
    budget: Budget,
    recipients: list[Recipient],
    units_per_whole: int = LAMPORTS_PER_SOL,
) -> list[Recipient]:
    """Fill in each recipient's share of the budget's spendable units.

    Each share is ``weight / sum(weights)`` of the spendable units, rounded
    down to the unit. Rounding loss is kept, not redistributed, so the sum of
    allocations is at most the spendable amount and falls short of it by
    less than one unit per recipient.

    Args:
        budget: Budget to carve.
        recipients: Recipients in weight-descending order. Updated in place.
        units_per_whole: Smallest units per whole coin (lamports per SOL).

    Returns:
        The same list, allocation fields populated.

    Raises:
        NoEligibleRecipients: Empty list or zero total weight.
    """
    if not recipients:
        raise NoEligibleRecipients("No recipients to allocate to")

    weights = [Fraction(r.weight) for r in recipients]
    if any(w < 0 for w in weights):
        raise InputError("Recipient weights must be non-negative")

    total_weight = sum(weights)
    if total_weight == 0:
        raise NoEligibleRecipients("Total recipient weight is zero")

    spendable = budget.spendable_units
    for recipient, weight in zip(recipients, weights):
        share = weight * spendable / total_weight
        recipient.allocated_units = math.floor(share)
        recipient.allocated_amount = share / units_per_whole

    return recipients


def parse_percentage(text: str | float) -> float:
    """Parse a user-entered percentage in (0, 100].

    Raises:
        InputError: If the value is not a number in range.
    """
    try:
        value = float(text)
    except (TypeError, ValueError):
        raise InputError(f"Invalid percentage: {text!r}") from None
    if math.isnan(value) or value <= 0 or value > 100:
        raise InputError(f"Percentage must be greater than 0 and at most 100, got {text}")
    return value


def normalize_percentages(
    recipients: list[Recipient],
    tolerance: float = PERCENTAGE_TOLERANCE,
) -> list[Recipient]:
    """Rescale explicit percentages so they sum to 100.

    Percentages already within ``tolerance`` of 100 are left untouched.
    """
    total = sum(r.weight for r in recipients)
    if total <= 0:
        raise NoEligibleRecipients("Total percentage is zero")
    if abs(total - 100) <= tolerance:
        return recipients
    for r in recipients:
        r.weight = r.weight / total * 100
    return recipients


def explicit_recipients(pairs: Iterable[tuple[str, str | float]]) -> list[Recipient]:
    """Build recipients from (address, percentage) pairs entered by a user.

    Addresses and percentages are validated, then percentages are normalized.

    Raises:
        InputError: On an invalid address, percentage, or a duplicate address.
        NoEligibleRecipients: If no pairs are given.
    """
    recipients: list[Recipient] = []
    seen: set[str] = set()
    for address, percentage in pairs:
        address = address.strip()
        if not validate_svm_address(address):
            raise InputError(f"Invalid recipient address: {address}")
        if address in seen:
            raise InputError(f"Duplicate recipient address: {address}")
        seen.add(address)
        recipients.append(Recipient(owner=address, weight=parse_percentage(percentage)))

    if not recipients:
        raise NoEligibleRecipients("No recipients entered")
    return normalize_percentages(recipients)

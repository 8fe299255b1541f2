"""Split calculation: partition a bill total into per-debtor principals"""

from typing import List, Optional, Sequence

from layersplit.domain.exceptions import InvalidSplit
from layersplit.domain.models import SplitKind
from layersplit.domain.money import Money

DEFAULT_MAX_PARTICIPANTS = 20


def compute_shares(
    total: Money,
    participants: Sequence[object],
    kind: SplitKind,
    custom_amounts: Optional[Sequence[Money | int | None]] = None,
    max_participants: int = DEFAULT_MAX_PARTICIPANTS,
) -> List[Money]:
    """
    Compute each participant's principal, in participant order.

    EQUAL gives every participant floor(total / N). The remainder
    (< N units) is not assigned to any debt; it stays with the creator,
    who paid the bill in the first place. Bill.unassigned_remainder
    reports it back.

    CUSTOM takes one amount per participant and requires the amounts to
    add up to the total exactly.

    Raises:
        InvalidSplit: empty or oversized participant list, non-positive
            total, an EQUAL total too small to give everyone a nonzero share,
            missing, zero or negative custom amounts, custom amounts that
            do not sum to the total, or the reserved DUTCH kind

    Example:
        100 units / 3 debtors → [33, 33, 33], 1 unit unassigned
    """
    count = len(participants)
    if count == 0:
        raise InvalidSplit("at least one participant is required")
    if count > max_participants:
        raise InvalidSplit(f"at most {max_participants} participants allowed, got {count}")
    if total.units <= 0:
        raise InvalidSplit("total must be greater than zero")

    if kind == SplitKind.EQUAL:
        share = Money(total.units // count)
        if not share:
            raise InvalidSplit(f"total of {total.units} is too small to split among {count} participants")
        return [share] * count

    if kind == SplitKind.CUSTOM:
        return _custom_shares(total, count, custom_amounts)

    raise InvalidSplit(f"split kind {kind.value} is not supported")


def _custom_shares(
    total: Money,
    count: int,
    custom_amounts: Optional[Sequence[Money | int | None]],
) -> List[Money]:
    if custom_amounts is None or len(custom_amounts) != count:
        raise InvalidSplit("custom split requires one amount per participant")

    shares: List[Money] = []
    for index, amount in enumerate(custom_amounts):
        if amount is None:
            raise InvalidSplit(f"custom amount missing for participant {index + 1}")
        if not isinstance(amount, Money):
            # Raw ints from callers; Money rejects negatives and floats
            if isinstance(amount, int) and not isinstance(amount, bool) and amount < 0:
                raise InvalidSplit(f"custom amount for participant {index + 1} is negative")
            amount = Money(amount)
        if not amount:
            raise InvalidSplit(f"custom amount for participant {index + 1} must be greater than zero")
        shares.append(amount)

    assigned = sum(share.units for share in shares)
    if assigned != total.units:
        raise InvalidSplit(f"custom amounts sum to {assigned}, expected {total.units}")

    return shares


def unassigned_remainder(total: Money, shares: Sequence[Money]) -> Money:
    """Portion of the total not owed by any debtor"""
    return total.saturating_sub(Money.total(shares))

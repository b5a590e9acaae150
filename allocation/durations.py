"""
Duration allocation helpers.
Spreads a monthly target of hours over a number of activity entries so that the
entries look individually plausible while the total stays fixed.
"""
import random
from typing import List, Optional, Sequence

# per-entry jitter added to the even share before renormalizing
JITTER_LOW = -0.5
JITTER_HIGH = 1.5

_default_rng = random.Random()


class AllocationDegenerate(ValueError):
    """Raised when the configured total/variation could produce non-positive durations."""


def validate_allocation(target_total: float, variation: float) -> None:
    """Reject totals and variations that could make the effective total non-positive.

    Callers should run this once, before allocating.
    """
    if target_total <= 0:
        raise AllocationDegenerate(f"Target total must be positive, got {target_total}")
    if variation < 0:
        raise AllocationDegenerate(f"Variation must not be negative, got {variation}")
    if variation >= target_total:
        raise AllocationDegenerate(f"Variation ({variation}) must be smaller than the target total ({target_total})")


def _jitter_low(base: float) -> float:
    # never let a rough value drop below half of the even share
    return -min(-JITTER_LOW, base / 2.0)


def allocate_durations(count: int, target_total: float, variation: float, rng: Optional[random.Random] = None) -> List[float]:
    """
    Return `count` durations that sum to a randomized effective total.

    The effective total is target_total +/- variation. Every entry starts from an even
    share plus a small asymmetric jitter, and the rough values are then scaled so their sum
    equals the effective total. Values are returned unrounded; the sum holds up to
    floating point error. Rounding for display is left to the caller (see round_durations).

    Parameters:
        count (int): Number of entries to allocate for. 0 yields an empty list.
        target_total (float): Target sum of all durations.
        variation (float): Maximum absolute deviation of the effective total from target_total.
        rng: Optional random.Random instance; a module-level instance is used otherwise.

    Returns:
        List[float]: Durations in allocation order.
    """
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")
    if count == 0:
        return []
    rng = rng or _default_rng

    effective_total = target_total + rng.uniform(-variation, variation)
    base = effective_total / count
    low = _jitter_low(base)
    rough = [base + rng.uniform(low, JITTER_HIGH) for _ in range(count)]

    adjustment = effective_total / sum(rough)
    return [value * adjustment for value in rough]


def round_durations(durations: Sequence[float], ndigits: int = 2) -> List[float]:
    """Round durations for display. The rounded sum may drift by up to len(durations) * 0.005."""
    return [round(d, ndigits) for d in durations]

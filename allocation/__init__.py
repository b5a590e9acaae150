"""
Allocation package: expose the duration allocator used to spread the monthly hours over entries.
"""

from .durations import AllocationDegenerate, allocate_durations, round_durations, validate_allocation

__all__ = ["AllocationDegenerate", "allocate_durations", "round_durations", "validate_allocation"]

# ==============================================
# Statistics over frequency tables
# ==============================================
#
# PURPOSE:
#   Helpers for histograms of the form {size: occurrences}.
#
# FUNCTIONS:
# ----------
# - compute_statistics(histogram) -> Statistics
#     min / max / weighted mean / population std dev of the sizes,
#     weighted by occurrence. An empty histogram gives
#     min=0, max=0, mean=nan, std_dev=nan.
#
# - compute_power_of_two_histogram(histogram) -> dict
#     Re-bucket every size to the smallest power of two >= size.
#
# - trim_and_sum(histogram, threshold) -> int
#     Drop entries whose share of the total is <= threshold and
#     return the total of the ORIGINAL table. Used at report time.
#
# - merge_histograms(into, other) -> dict
#     Sum `other` into `into`, key by key.
#
# ==============================================

import math
from dataclasses import dataclass
from typing import Dict

Histogram = Dict[int, int]


@dataclass(frozen=True)
class Statistics:
    """Descriptive statistics summarizing a frequency table."""
    min: int
    max: int
    mean: float
    std_dev: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "min": self.min,
            "max": self.max,
            "mean": self.mean,
            "std_dev": self.std_dev,
        }


def power_of_two(n: int) -> int:
    """Return the smallest power of two that is >= n (1 for n <= 1)."""
    p = 1
    while p < n:
        p *= 2
    return p


def compute_power_of_two_histogram(histogram: Histogram) -> Histogram:
    """
    Convert a frequency table into one keyed by powers of two.

    Example:
        {3: 2, 4: 1} → {4: 3}

    Args:
        histogram: Mapping of size → occurrences

    Returns:
        A new mapping of power-of-two size → summed occurrences
    """
    powers: Histogram = {}
    for size, count in histogram.items():
        p = power_of_two(size)
        powers[p] = powers.get(p, 0) + count
    return powers


def compute_statistics(histogram: Histogram) -> Statistics:
    """
    Compute weighted descriptive statistics for a frequency table.

    The standard deviation is the population standard deviation:
    the squared deviations are divided by the total occurrence count,
    not by the number of distinct sizes.

    Args:
        histogram: Mapping of size → occurrences

    Returns:
        Statistics; mean and std_dev are NaN when there is no data
    """
    if not histogram:
        return Statistics(min=0, max=0, mean=math.nan, std_dev=math.nan)

    lowest = min(histogram)
    highest = max(histogram)
    total = 0
    weighted_sum = 0
    for size, count in histogram.items():
        weighted_sum += size * count
        total += count

    if total == 0:
        return Statistics(min=lowest, max=highest, mean=math.nan, std_dev=math.nan)

    mean = weighted_sum / total

    squared_deviations = 0.0
    for size, count in histogram.items():
        squared_deviations += (size - mean) ** 2 * count

    return Statistics(
        min=lowest,
        max=highest,
        mean=mean,
        std_dev=math.sqrt(squared_deviations / total),
    )


def trim_and_sum(histogram: Histogram, threshold: float) -> int:
    """
    Remove low-frequency entries in place and return the original total.

    Entries whose share of the total is <= `threshold` are deleted from
    `histogram`. Callers that need the full table afterwards should pass
    a copy.

    Args:
        histogram: Mapping of size → occurrences (mutated)
        threshold: Share (0.0 - 1.0) at or below which entries are dropped

    Returns:
        Sum of all occurrences before trimming
    """
    total = sum(histogram.values())
    if total == 0:
        return 0
    for size in [s for s, c in histogram.items() if c / total <= threshold]:
        del histogram[size]
    return total


def merge_histograms(into: Histogram, other: Histogram) -> Histogram:
    """Sum every entry of `other` into `into` and return `into`."""
    for size, count in other.items():
        into[size] = into.get(size, 0) + count
    return into

# ==============================================
# ANALYSIS: VALUE TYPES, BUCKETING & STATISTICS
# ==============================================
#
# Everything that happens to an observation after the store
# has been asked about it. Nothing in here talks to Redis.
#
# Modules:
# --------
# - value_type.py    → ValueType enum (matches Redis TYPE replies)
# - example_set.py   → BoundedExampleSet (capped, insertion ordered)
# - statistics.py    → Histogram helpers and descriptive statistics
# - results.py       → Per-bucket Results + the Accumulator
# - aggregator.py    → Bucketing policies
#
# ==============================================

from .value_type import ValueType
from .example_set import BoundedExampleSet
from .statistics import (
    Statistics,
    compute_statistics,
    compute_power_of_two_histogram,
    merge_histograms,
    trim_and_sum,
)
from .results import (
    Results,
    ValueSample,
    Accumulator,
    merge_results_maps,
    MAX_EXAMPLE_KEYS,
    MAX_EXAMPLE_ELEMENTS,
    MAX_EXAMPLE_VALUES,
)
from .aggregator import Aggregator, any_key, by_value_type, key_prefix, combine

__all__ = [
    "ValueType",
    "BoundedExampleSet",
    "Statistics",
    "compute_statistics",
    "compute_power_of_two_histogram",
    "merge_histograms",
    "trim_and_sum",
    "Results",
    "ValueSample",
    "Accumulator",
    "merge_results_maps",
    "MAX_EXAMPLE_KEYS",
    "MAX_EXAMPLE_ELEMENTS",
    "MAX_EXAMPLE_VALUES",
    "Aggregator",
    "any_key",
    "by_value_type",
    "key_prefix",
    "combine",
]

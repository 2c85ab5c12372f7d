# ==============================================
# SAMPLING: KEY SELECTION & PER-TYPE SAMPLERS
# ==============================================
#
# Decides WHICH keys to look at and HOW MUCH to fetch for each.
#
# Modules:
# --------
# - run_config.py   → RunConfig + the two modes (RandomSample, PatternScan)
# - key_source.py   → Producer threads emitting Observations
# - samplers.py     → One sampler per Redis type
#
# ==============================================

from .run_config import RunConfig, RandomSample, PatternScan
from .key_source import (
    Observation,
    KeySource,
    RandomKeySource,
    ScanKeySource,
    make_key_source,
)
from .samplers import sample_key, SAMPLERS

__all__ = [
    "RunConfig",
    "RandomSample",
    "PatternScan",
    "Observation",
    "KeySource",
    "RandomKeySource",
    "ScanKeySource",
    "make_key_source",
    "sample_key",
    "SAMPLERS",
]

# ==============================================
# reckon — Sampled Keyspace Statistics for Redis
# ==============================================
#
# Package Structure:
#
# reckon/
# ├── analysis/         # Value types, bucketing, histograms, statistics
# ├── storage/          # Redis connection pool and per-type fetches
# ├── sampling/         # Run configuration, key sources, type samplers
# ├── config.py         # Configuration management (.env)
# ├── errors.py         # Error taxonomy
# ├── reckoner.py       # Single-instance run orchestrator
# ├── pipeline.py       # Multi-instance runs + result folding
# ├── report.py         # Render-ready report model
# └── cli.py            # Command line entry point
#
# ==============================================

__version__ = "0.1.0"

# ==============================================
# Errors
# ==============================================
#
# PURPOSE:
#   One exception hierarchy for everything that can end a run.
#   Every error is fatal to the run that raised it; nothing in
#   the sampling path retries.
#
# CLASSES:
# --------
# - ReckonError            → Base class
# - ConfigurationError     → Invalid RunConfig, raised before any network activity
# - StoreConnectionError   → Redis unreachable (carries host:port)
# - ProtocolError          → Unexpected reply shape or unknown value type
# - StoreOperationError    → A single command failed while sampling/scanning
# - NoKeysError            → The instance reports no keys (or no count at all)
# - RunCancelledError     → The run was cancelled from outside before it finished
#
# ==============================================

from typing import Optional


class ReckonError(Exception):
    """Base class for all errors raised by reckon."""


class ConfigurationError(ReckonError):
    """The run configuration is invalid."""


class StoreConnectionError(ReckonError):
    """The Redis instance could not be reached."""

    def __init__(self, message: str, address: Optional[str] = None):
        super().__init__(message)
        self.address = address


class ProtocolError(ReckonError):
    """Redis replied with something this layer cannot interpret."""


class StoreOperationError(ReckonError):
    """A Redis command failed during sampling."""


class NoKeysError(StoreOperationError):
    """No keys are present in the configured Redis database."""


class RunCancelledError(ReckonError):
    """The run was cancelled before it completed."""

# ==============================================
# Reckoner — Run Orchestrator
# ==============================================
#
# PURPOSE:
#   Run one sampling pass against one Redis instance and return the
#   bucketed Results, or raise. Users interact with this class (or
#   with pipeline.SamplingPipeline for several instances).
#
# HOW A RUN FLOWS:
#
#   ┌──────────────────────────────────────────────────────────┐
#   │                        Reckoner                          │
#   │                                                          │
#   │  CONFIGURING   RunConfig.validate()                      │
#   │       │                                                  │
#   │       ▼                                                  │
#   │  CONNECTING    RedisClient.connect(), borrow(),          │
#   │       │        key_count()                               │
#   │       ▼                                                  │
#   │  STREAMING     KeySource ──queue(2)──▶ sample_key()       │
#   │       │                                  │               │
#   │       │                     aggregator ──┤               │
#   │       │                                  ▼               │
#   │       │                            Accumulator           │
#   │       ▼                                                  │
#   │  COMPLETED | ABORTED                                     │
#   └──────────────────────────────────────────────────────────┘
#
#   - RandomSample runs stop once target_samples(key_count) keys
#     were sampled. PatternScan runs stop when the scan ends.
#   - Leaving STREAMING for any reason cancels the key source, drains
#     its buffer and waits (bounded) for it to release its connection.
#   - Any error aborts the run; partial Results are never returned.
#   - Setting the run-level cancel token (shared by every run of a
#     SamplingPipeline) aborts the run with RunCancelledError. The key
#     source watches the same token, so it stops sending requests too.
#
# CLASS: Reckoner
# ---------------
#   - __init__(run_config, aggregator=any_key, client_factory=None, cancel=None)
#   - run() -> RunResult
#   - cancel() -> None
#   - state: RunState
#
# ==============================================

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional

from reckon.analysis.aggregator import Aggregator, any_key
from reckon.analysis.results import Accumulator, Results
from reckon.errors import RunCancelledError
from reckon.sampling.key_source import make_key_source
from reckon.sampling.run_config import RandomSample, RunConfig
from reckon.sampling.samplers import sample_key
from reckon.storage.redis_client import RedisClient


class RunState(Enum):
    CONFIGURING = "configuring"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass
class RunResult:
    """Outcome of a successful run."""
    address: str
    results: Dict[str, Results] = field(default_factory=dict)
    key_count: int = 0  # keys in the instance, from INFO
    observed: int = 0   # keys actually sampled


class Reckoner:
    """
    Samples one Redis instance.

    A Reckoner is single-use: call run() once.
    """

    PROGRESS_INTERVAL = 100
    SOURCE_SHUTDOWN_TIMEOUT = 5.0

    def __init__(
        self,
        run_config: RunConfig,
        aggregator: Aggregator = any_key,
        client_factory: Optional[Callable[[RunConfig], RedisClient]] = None,
        verbose: bool = True,
        cancel: Optional[threading.Event] = None,
    ):
        """
        Args:
            run_config: What to sample and how
            aggregator: Bucketing policy (defaults to a single "any-key" bucket)
            client_factory: Builds the store client for the run_config;
                            defaults to RedisClient.from_run_config
            verbose: Print progress lines
            cancel: Run-level cancellation token, possibly shared with other
                    runs; setting it aborts this run with RunCancelledError
        """
        self._config = run_config
        self._cancel = cancel if cancel is not None else threading.Event()
        self._aggregator = aggregator
        self._client_factory = client_factory or RedisClient.from_run_config
        self._verbose = verbose
        self._accumulator = Accumulator()
        self._state = RunState.CONFIGURING
        self._observed = 0

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def observed(self) -> int:
        return self._observed

    def cancel(self) -> None:
        """Ask a running (or not yet started) run to abort. Safe from any thread."""
        self._cancel.set()

    def _check_cancelled(self) -> None:
        if self._cancel.is_set():
            raise RunCancelledError(f"run against redis at {self._config.address} was cancelled")

    def run(self) -> RunResult:
        """
        Perform the configured sampling operation.

        Returns:
            RunResult with the per-bucket Results and the instance key count

        Raises:
            ConfigurationError: invalid RunConfig (nothing was contacted)
            StoreConnectionError: the instance could not be reached
            NoKeysError: the instance holds no keys
            ProtocolError / StoreOperationError: a request failed mid-run
            RunCancelledError: the cancellation token was set before completion
        """
        if self._state is not RunState.CONFIGURING:
            raise RuntimeError("a Reckoner can only run once")

        try:
            self._config.validate()
            self._check_cancelled()

            self._state = RunState.CONNECTING
            client = self._client_factory(self._config)
            try:
                return self._run_connected(client)
            finally:
                client.disconnect()
        except Exception as e:
            self._state = RunState.ABORTED
            self._log(f"✗ Run against redis at {self._config.address} aborted: {e}")
            raise

    def _run_connected(self, client) -> RunResult:
        client.connect()
        conn = client.borrow()
        try:
            key_count = conn.key_count(self._config.db)
            self._log(f"✓ redis at {self._config.address} has {key_count} keys")

            target = None
            if isinstance(self._config.mode, RandomSample):
                target = self._config.mode.target_samples(key_count)
                self._log(f"   → sampling {target} keys")
            else:
                self._log(f"   → scanning keys matching {self._config.mode.glob!r}")

            self._check_cancelled()
            self._state = RunState.STREAMING
            self._stream(client, conn, target)
        finally:
            conn.close()

        self._state = RunState.COMPLETED
        self._log(f"✓ examined {self._observed} keys from redis at {self._config.address}")
        return RunResult(
            address=self._config.address,
            results=self._accumulator.results,
            key_count=key_count,
            observed=self._observed,
        )

    def _stream(self, client, conn, target: Optional[int]) -> None:
        """Consume the key source until the target is reached or it ends."""
        source = make_key_source(self._config.mode, client, parent=self._cancel)
        source.start()
        try:
            for observation in source:
                self._check_cancelled()
                if observation.failed:
                    raise observation.error

                sample_key(observation, conn, self._aggregator, self._accumulator)
                self._observed += 1

                if self._observed % self.PROGRESS_INTERVAL == 0:
                    self._log(f"   → examined {self._observed} keys from redis at {self._config.address}...")

                if target is not None and self._observed >= target:
                    break
            else:
                # A cancelled source ends its stream early
                self._check_cancelled()
        finally:
            source.close(timeout=self.SOURCE_SHUTDOWN_TIMEOUT)

    def _log(self, message: str) -> None:
        if self._verbose:
            print(message)


def run(run_config: RunConfig, aggregator: Aggregator = any_key, **kwargs) -> RunResult:
    """Shorthand for Reckoner(run_config, aggregator, **kwargs).run()."""
    return Reckoner(run_config, aggregator, **kwargs).run()

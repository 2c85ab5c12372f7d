"""
==============================================
Multi-instance Sampling Pipeline
==============================================

Runs one Reckoner per Redis instance, in parallel, and folds every
completed result map into a running total with Results.merge().

USAGE EXAMPLES:

1. Sample three instances and merge:
    from reckon.pipeline import SamplingPipeline
    from reckon.sampling import RunConfig

    configs = [RunConfig.sample("10.0.0.%d" % i, 6379, min_samples=500) for i in (1, 2, 3)]
    result = SamplingPipeline().run(configs)
    print(result.key_count, sorted(result.results))

2. Keep going when one instance is down:
    result = SamplingPipeline(isolate_failures=True).run(configs)
    for address, error in result.failures.items():
        print(address, error)
"""

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from reckon.analysis.aggregator import Aggregator, any_key
from reckon.analysis.results import Results, merge_results_maps
from reckon.reckoner import Reckoner, RunResult
from reckon.sampling.run_config import RunConfig


@dataclass
class PipelineResult:
    """Merged outcome of several runs."""
    results: Dict[str, Results] = field(default_factory=dict)
    key_count: int = 0
    instances: List[str] = field(default_factory=list)       # addresses that completed
    failures: Dict[str, Exception] = field(default_factory=dict)

    def fold(self, run_result: RunResult) -> None:
        """Merge one completed run into the totals."""
        merge_results_maps(self.results, run_result.results)
        self.key_count += run_result.key_count
        self.instances.append(run_result.address)


class SamplingPipeline:
    """
    Samples several Redis instances concurrently.

    Each instance gets its own worker thread, connection pool and
    Results. The only thing workers share is a cancellation token,
    which is set when the pipeline raises so the runs still in flight
    stop early. The merge
    happens on the calling thread, in completion order, which is fine
    because merge is associative and commutative.
    """

    def __init__(
        self,
        aggregator: Aggregator = any_key,
        client_factory: Optional[Callable] = None,
        max_workers: Optional[int] = None,
        isolate_failures: bool = False,
        verbose: bool = True,
    ):
        """
        Args:
            aggregator: Bucketing policy shared by every run
            client_factory: Passed through to each Reckoner
            max_workers: Thread cap (default: one per instance)
            isolate_failures: Record failing instances and merge the rest,
                              instead of raising the first failure
            verbose: Print progress lines
        """
        self._aggregator = aggregator
        self._client_factory = client_factory
        self._max_workers = max_workers
        self._isolate_failures = isolate_failures
        self._verbose = verbose

    def run(self, configs: Sequence[RunConfig]) -> PipelineResult:
        """
        Run every config and merge the results.

        Raises:
            The first run's error, unless isolate_failures is set.
        """
        result = PipelineResult()
        if not configs:
            return result

        # Shared by every run; set as soon as the pipeline gives up
        cancel = threading.Event()
        workers = self._max_workers or len(configs)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="reckon-run") as executor:
            futures = {executor.submit(self._run_one, config, cancel): config for config in configs}
            try:
                for future in as_completed(futures):
                    config = futures[future]
                    try:
                        run_result = future.result()
                    except Exception as e:
                        if not self._isolate_failures:
                            raise
                        result.failures[config.address] = e
                        self._log(f"⚠ Skipping redis at {config.address}: {e}")
                        continue
                    self._log(f"✓ Got results back from redis at {config.address}")
                    result.fold(run_result)
            except BaseException:
                cancel.set()
                for future in futures:
                    future.cancel()
                raise

        self._log(f"✓ total key count: {result.key_count}")
        return result

    def _run_one(self, config: RunConfig, cancel: threading.Event) -> RunResult:
        return Reckoner(
            config,
            self._aggregator,
            client_factory=self._client_factory,
            verbose=self._verbose,
            cancel=cancel,
        ).run()

    def _log(self, message: str) -> None:
        if self._verbose:
            print(message)

# ==============================================
# Key Sources
# ==============================================
#
# PURPOSE:
#   Produce a stream of (key, value type) Observations from a Redis
#   instance on a background thread, handing them to the consumer
#   over a small bounded queue.
#
# CLASSES:
# --------
# - Observation (dataclass)
#     key, value_type, error. An Observation carrying an error is the
#     last one a source ever delivers.
#
# - KeySource (base)
#     Owns the producer thread, the queue (depth 2) and the
#     cancellation token (a threading.Event handed in at creation).
#       start()          → borrow a connection, start producing
#       __iter__         → observations in FIFO order until end of stream
#       cancel()         → fire-and-forget stop request
#       drain()          → take whatever is still buffered, without blocking
#       join(timeout)    → wait (bounded) for the producer to exit
#       close(timeout)   → cancel + drain + join, then drain again
#
# - RandomKeySource
#     RANDOMKEY + TYPE, forever. The same key can come up more than
#     once (sampling with replacement).
#
# - ScanKeySource(glob)
#     SCAN cursor MATCH glob, TYPE for every key of every page, until
#     the cursor comes back to 0. Keys written or deleted during the
#     scan may be seen zero, one or several times.
#
# CANCELLATION:
#   The token is checked before every store request, and a producer
#   blocked on a full queue re-checks it on every put timeout. Once it
#   is set, no further requests are sent. A producer already inside
#   put() can still land one last item, so close() drains again after
#   the producer has exited and leaves the queue empty.
#
#   An optional parent token (the run-level one) stops the source as
#   well. cancel() and close() never set the parent.
#
# ==============================================

import queue
import threading
from dataclasses import dataclass
from typing import Iterator, List, Optional

from reckon.analysis.value_type import ValueType

from .run_config import Mode, PatternScan, RandomSample

# Marks the end of the stream inside the queue
_END = object()


@dataclass
class Observation:
    """A key seen by a KeySource, or the error that stopped it."""
    key: Optional[str] = None
    value_type: ValueType = ValueType.UNKNOWN
    error: Optional[Exception] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class KeySource:
    """
    Background producer of Observations.

    Subclasses implement _produce(conn).
    """

    BUFFER_SIZE = 2
    POLL_INTERVAL = 0.05  # seconds between cancellation checks while waiting on the queue

    def __init__(self, client, cancel: Optional[threading.Event] = None, buffer_size: int = BUFFER_SIZE,
                 parent: Optional[threading.Event] = None):
        """
        Args:
            client: A RedisClient (anything with borrow())
            cancel: Cancellation token; a fresh one is created if omitted
            buffer_size: Queue depth between producer and consumer
            parent: Outer token that also stops the source when set
        """
        self._client = client
        self._cancel = cancel if cancel is not None else threading.Event()
        self._parent = parent
        self._queue: "queue.Queue" = queue.Queue(maxsize=buffer_size)
        self._thread: Optional[threading.Thread] = None

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set() or (self._parent is not None and self._parent.is_set())

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "KeySource":
        if self._thread is not None:
            raise RuntimeError(f"{type(self).__name__} already started")
        self._thread = threading.Thread(
            target=self._run, name=f"reckon-{type(self).__name__}", daemon=True
        )
        self._thread.start()
        return self

    def cancel(self) -> None:
        self._cancel.set()

    def drain(self) -> List[Observation]:
        """Remove and return every buffered observation, oldest first."""
        drained = []
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return drained
            if item is not _END:
                drained.append(item)

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the producer thread to exit.

        Returns:
            True if the thread is gone, False if it is still running
        """
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def close(self, timeout: Optional[float] = None) -> List[Observation]:
        """
        Cancel, drain the buffer and wait up to `timeout` for the producer.

        Whatever the producer queued while it was shutting down is drained
        too, once it has exited.
        """
        self.cancel()
        drained = self.drain()
        if self.join(timeout):
            drained.extend(self.drain())
        return drained

    def __iter__(self) -> Iterator[Observation]:
        while True:
            try:
                item = self._queue.get(timeout=self.POLL_INTERVAL)
            except queue.Empty:
                if self.cancelled:
                    return
                continue
            if item is _END:
                return
            yield item

    # ======================================
    # Producer side
    # ======================================
    def _run(self) -> None:
        conn = None
        try:
            conn = self._client.borrow()
            self._produce(conn)
        except Exception as e:
            # Delivered to the consumer, which aborts the run with it
            self._emit(Observation(error=e))
        finally:
            if conn is not None:
                conn.close()
            self._emit(_END)

    def _emit(self, item) -> bool:
        """
        Queue `item`, waiting for room unless the source gets cancelled.

        Returns:
            True if queued, False if cancelled first
        """
        while not self.cancelled:
            try:
                self._queue.put(item, timeout=self.POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False

    def _produce(self, conn) -> None:
        raise NotImplementedError


class RandomKeySource(KeySource):
    """Endless stream of random keys."""

    def _produce(self, conn) -> None:
        while not self.cancelled:
            key = conn.random_key()
            if self.cancelled:
                return
            value_type = conn.key_type(key)
            if not self._emit(Observation(key=key, value_type=value_type)):
                return


class ScanKeySource(KeySource):
    """One full SCAN pass over the keys matching `glob`."""

    def __init__(self, client, glob: str, cancel: Optional[threading.Event] = None,
                 count: Optional[int] = None, buffer_size: int = KeySource.BUFFER_SIZE,
                 parent: Optional[threading.Event] = None):
        super().__init__(client, cancel=cancel, buffer_size=buffer_size, parent=parent)
        self.glob = glob
        self.count = count

    def _produce(self, conn) -> None:
        # None = not started yet; the server signals a finished pass by returning cursor 0
        cursor = None
        while cursor != 0:
            if self.cancelled:
                return
            cursor, keys = conn.scan(0 if cursor is None else cursor, self.glob, self.count)
            for key in keys:
                if self.cancelled:
                    return
                value_type = conn.key_type(key)
                if not self._emit(Observation(key=key, value_type=value_type)):
                    return


def make_key_source(mode: Mode, client, cancel: Optional[threading.Event] = None,
                    parent: Optional[threading.Event] = None) -> KeySource:
    """Pick the key source matching a RunConfig mode."""
    if isinstance(mode, PatternScan):
        return ScanKeySource(client, mode.glob, cancel=cancel, parent=parent)
    if isinstance(mode, RandomSample):
        return RandomKeySource(client, cancel=cancel, parent=parent)
    raise TypeError(f"unsupported sampling mode: {mode!r}")

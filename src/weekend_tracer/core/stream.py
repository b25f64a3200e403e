"""Bounded channel carrying sample batches from a render run to its consumer.

A render run produces one SampleBatch per traced chunk of pixels. Batches go
through a SampleStream, a bounded queue with two extra flags:

- closed: the consumer is gone. Every later send() fails, and the producer
  takes that failure as its signal to stop.
- finished: the producer has sent its last batch.

send() never blocks indefinitely. It waits in short slices while the queue
is full, and if the consumer has not made room within stall_timeout the
stream closes itself, so an abandoned run cannot hang.

Example:
    >>> import numpy as np
    >>> from weekend_tracer.core.stream import SampleBatch, SampleStream
    >>> stream = SampleStream(capacity=4)
    >>> batch = SampleBatch(np.array([0]), np.array([0]), np.array([[0.5, 0.7, 1.0]]))
    >>> stream.send(batch)
    True
    >>> stream.finish()
    >>> [event for b in stream for event in b.events()]
    [(0, 0, (0.5, 0.7, 1.0))]
"""

import logging
import queue
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

# Default number of batches the channel buffers before send() blocks
DEFAULT_CAPACITY = 64

# Default seconds a producer waits on a full channel before giving up
DEFAULT_STALL_TIMEOUT = 30.0

# Seconds between checks of the closed flag while blocked
POLL_INTERVAL = 0.05


@dataclass(frozen=True)
class SampleBatch:
    """One linear color sample for each of a set of pixels.

    Attributes:
        xs: Pixel columns, shape (n,).
        ys: Pixel rows, shape (n,), 0 = bottom row.
        colors: Linear RGB samples, shape (n, 3).
        pass_index: The sampling pass that produced the batch.
    """

    xs: np.ndarray
    ys: np.ndarray
    colors: np.ndarray
    pass_index: int = 0

    def __post_init__(self) -> None:
        n = len(self.xs)
        if len(self.ys) != n or np.shape(self.colors) != (n, 3):
            raise ValueError(
                f"Batch arrays disagree: {len(self.xs)} xs, {len(self.ys)} ys, colors {np.shape(self.colors)}"
            )

    def __len__(self) -> int:
        return len(self.xs)

    def events(self) -> Iterator[tuple[int, int, tuple[float, float, float]]]:
        """Yield (x, y, (r, g, b)) for every sample in the batch."""
        for x, y, color in zip(self.xs, self.ys, self.colors):
            yield int(x), int(y), (float(color[0]), float(color[1]), float(color[2]))


BatchCallback = Callable[[SampleBatch], None]


class SampleStream:
    """Bounded many-producer, single-consumer channel of SampleBatch.

    Attributes:
        capacity: Maximum number of buffered batches.
        stall_timeout: Seconds send() waits for room before closing the
            stream. None waits as long as the stream stays open.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        stall_timeout: float | None = DEFAULT_STALL_TIMEOUT,
        on_batch: BatchCallback | None = None,
    ) -> None:
        """Create an open, empty stream.

        Args:
            capacity: Maximum number of buffered batches (>= 1).
            stall_timeout: Seconds send() may wait on a full channel.
            on_batch: Called on the producer's thread after each successful
                send. Use it to tell a display that new data is available.

        Raises:
            ValueError: If capacity is less than 1 or stall_timeout is not
                positive.
        """
        if capacity < 1:
            raise ValueError(f"Stream capacity must be at least 1, got {capacity}")
        if stall_timeout is not None and stall_timeout <= 0:
            raise ValueError(f"Stall timeout must be positive, got {stall_timeout}")
        self.capacity = capacity
        self.stall_timeout = stall_timeout
        self._on_batch = on_batch
        self._queue: queue.Queue[SampleBatch] = queue.Queue(maxsize=capacity)
        self._closed = threading.Event()
        self._finished = threading.Event()
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        """Whether the consumer has closed the stream."""
        return self._closed.is_set()

    @property
    def finished(self) -> bool:
        """Whether the producer has sent its last batch."""
        return self._finished.is_set()

    def send(self, batch: SampleBatch) -> bool:
        """Hand a batch to the consumer.

        Returns:
            True if the batch was queued. False if the stream is closed, or
            was closed because the consumer stalled; the producer should
            stop. A batch is never left buffered in a closed stream.
        """
        started = time.monotonic()
        while True:
            # Checking closed and queueing happen under the same lock as close()
            with self._lock:
                if self._closed.is_set():
                    return False
                try:
                    self._queue.put_nowait(batch)
                    break
                except queue.Full:
                    pass

            if self.stall_timeout is not None and time.monotonic() - started >= self.stall_timeout:
                logger.warning(
                    "Consumer made no room for %.1fs; closing sample stream",
                    self.stall_timeout,
                )
                self.close()
                return False
            # Wakes early when the stream is closed
            self._closed.wait(POLL_INTERVAL)

        if self._on_batch is not None:
            self._on_batch(batch)
        return True

    @property
    def done(self) -> bool:
        """Whether nothing more will come out: closed, or finished and empty."""
        return self._closed.is_set() or (self._finished.is_set() and self._queue.empty())

    def receive(self, timeout: float | None = None) -> SampleBatch | None:
        """Take the next batch.

        Args:
            timeout: Seconds to wait. None waits until a batch arrives or
                the stream is done; 0 does not wait.

        Returns:
            The next batch, or None if nothing arrived in time or the stream
            is closed or finished and empty.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            try:
                return self._queue.get_nowait()
            except queue.Empty:
                pass
            if self.done:
                return None
            remaining = POLL_INTERVAL if deadline is None else min(POLL_INTERVAL, deadline - time.monotonic())
            if remaining <= 0:
                return None
            try:
                return self._queue.get(timeout=remaining)
            except queue.Empty:
                continue

    def drain(self) -> list[SampleBatch]:
        """Take every batch that is buffered right now, without waiting."""
        batches = []
        while True:
            try:
                batches.append(self._queue.get_nowait())
            except queue.Empty:
                return batches

    def __iter__(self) -> Iterator[SampleBatch]:
        """Yield batches until the stream is finished and empty, or closed."""
        while True:
            batch = self.receive()
            if batch is None:
                return
            yield batch

    def close(self) -> None:
        """Stop accepting batches and drop the buffered ones.

        Producers notice on their next send(). Closing twice is harmless.
        """
        with self._lock:
            self._closed.set()
            self.drain()

    def finish(self) -> None:
        """Mark that the producer will send nothing more."""
        self._finished.set()

    def wait_finished(self, timeout: float | None = None) -> bool:
        """Block until the producer finishes; returns False on timeout."""
        return self._finished.wait(timeout)

    def __repr__(self) -> str:
        state = "closed" if self.closed else "finished" if self.finished else "open"
        return f"SampleStream(capacity={self.capacity}, buffered={self._queue.qsize()}, {state})"

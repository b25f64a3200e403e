"""Per-pixel accumulation of samples and gamma-corrected snapshots.

The buffer keeps a running (sum, count) per pixel. A snapshot divides each
pixel's sum by its own count, so pixels that received different numbers of
samples sit side by side correctly while a render is still in progress.

Coordinates follow the camera: y = 0 is the bottom row. Snapshots are
row-major with the top row first, ready for display.

Example:
    >>> from weekend_tracer.core.accumulation import AccumulationBuffer
    >>> buffer = AccumulationBuffer(width=2, height=1)
    >>> buffer.add_sample(0, 0, (0.25, 0.25, 0.25))
    >>> buffer.snapshot()[0, 0].tolist()
    [0.5, 0.5, 0.5]
"""

from collections.abc import Iterable, Sequence

import numpy as np
import numpy.typing as npt

from weekend_tracer.core.stream import SampleBatch


class AccumulationBuffer:
    """Running sums and sample counts for a width x height image.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        """Create an empty buffer.

        Raises:
            ValueError: If width or height is less than 1.
        """
        self._allocate(width, height)

    def _allocate(self, width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"Buffer must be at least 1x1, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        # Indexed [y, x] with y = 0 the bottom row
        self._sums = np.zeros((self.height, self.width, 3), dtype=np.float64)
        self._counts = np.zeros((self.height, self.width), dtype=np.int64)

    def reset(self) -> None:
        """Forget all samples, keeping the resolution."""
        self._sums.fill(0.0)
        self._counts.fill(0)

    def resize(self, width: int, height: int) -> None:
        """Change the resolution. All samples are discarded."""
        self._allocate(width, height)

    def add_sample(self, x: int, y: int, color: Sequence[float]) -> None:
        """Fold one linear color sample into pixel (x, y).

        Raises:
            IndexError: If (x, y) is outside the image.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) is outside {self.width}x{self.height}")
        self._sums[y, x] += color
        self._counts[y, x] += 1

    def add_batch(self, batch: SampleBatch) -> int:
        """Fold every sample of a batch in. Returns the number of samples.

        Samples outside the image (e.g. from a run at an older resolution)
        are ignored.
        """
        xs = np.asarray(batch.xs, dtype=np.int64)
        ys = np.asarray(batch.ys, dtype=np.int64)
        colors = np.asarray(batch.colors, dtype=np.float64)

        inside = (xs >= 0) & (xs < self.width) & (ys >= 0) & (ys < self.height)
        if not inside.all():
            xs, ys, colors = xs[inside], ys[inside], colors[inside]

        # np.add.at folds repeated coordinates correctly
        np.add.at(self._sums, (ys, xs), colors)
        np.add.at(self._counts, (ys, xs), 1)
        return int(xs.shape[0])

    def consume(self, batches: Iterable[SampleBatch]) -> int:
        """Fold in every batch of an iterable such as a SampleStream.

        Returns:
            The number of samples added.
        """
        return sum(self.add_batch(batch) for batch in batches)

    @property
    def total_samples(self) -> int:
        """Number of samples accumulated over all pixels."""
        return int(self._counts.sum())

    @property
    def min_samples(self) -> int:
        """Sample count of the least-sampled pixel."""
        return int(self._counts.min())

    def samples_at(self, x: int, y: int) -> int:
        """Number of samples accumulated at pixel (x, y)."""
        return int(self._counts[y, x])

    def mean(self) -> npt.NDArray[np.float64]:
        """Per-pixel linear mean, bottom row first. Unsampled pixels are 0."""
        counts = np.maximum(self._counts, 1)[..., np.newaxis]
        return self._sums / counts

    def snapshot(self) -> npt.NDArray[np.float32]:
        """Gamma-corrected image, sqrt(sum / count) per channel.

        Returns:
            float32 array of shape (height, width, 3), top row first.
            Unsampled pixels are black.
        """
        image = np.sqrt(np.maximum(self.mean(), 0.0))
        return np.flipud(image).astype(np.float32)

    def snapshot_uint8(self) -> npt.NDArray[np.uint8]:
        """8-bit version of snapshot(), channels clipped to [0, 1] first."""
        image = np.clip(self.snapshot(), 0.0, 1.0)
        return (image * 255.999).astype(np.uint8)

    def __repr__(self) -> str:
        return (
            f"AccumulationBuffer(width={self.width}, height={self.height}, "
            f"samples={self.total_samples})"
        )

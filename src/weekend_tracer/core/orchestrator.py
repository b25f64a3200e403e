"""Progressive, cancellable rendering.

A RenderRun renders one (Scene, Camera, SamplingParams) combination on a
background thread:

1. Every pixel coordinate is listed once and shuffled, so the image fills in
   evenly instead of row by row.
2. Each of samples_per_pixel passes walks the shuffled list in chunks. A
   chunk is traced in parallel on Taichi's worker threads, one jittered
   sample per pixel offset by the run's seeded generator, and sent down
   the run's SampleStream as a SampleBatch.
3. When a send fails because the stream was closed, the run stops at once;
   no further chunk is traced for it.

Taichi fields hold one scene and one camera at a time, so device access is
serialized by a module lock: a run uploads its scene and camera if another
run's are resident, launches the chunk and copies the colors out, all under
the lock. A cancelled run and the run that replaced it can therefore overlap
without waiting on each other. The Scene itself is never locked; it is an
immutable value shared by reference.

ProgressiveRenderer is the consumer side for a display: it starts runs,
restarts them on resize, and folds incoming batches into an
AccumulationBuffer from which snapshots are taken.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.config import SamplingParams
    >>> from weekend_tracer.core.orchestrator import ProgressiveRenderer
    >>> from weekend_tracer.scene.presets import (
    ...     ground_and_sphere_camera, ground_and_sphere_scene
    ... )
    >>> renderer = ProgressiveRenderer(seed=1)
    >>> image = renderer.render(
    ...     ground_and_sphere_scene(),
    ...     ground_and_sphere_camera(image_width=80),
    ...     SamplingParams(samples_per_pixel=4, max_depth=10),
    ... )
    >>> image.shape
    (45, 80, 3)
"""

import itertools
import logging
import threading
import time

import numpy as np
import numpy.typing as npt

from weekend_tracer.camera.thin_lens import Camera, CameraParams, load_camera, unload_camera
from weekend_tracer.config import SamplingParams
from weekend_tracer.core.accumulation import AccumulationBuffer
from weekend_tracer.core.integrator import trace_samples
from weekend_tracer.core.stream import (
    DEFAULT_CAPACITY,
    DEFAULT_STALL_TIMEOUT,
    BatchCallback,
    SampleBatch,
    SampleStream,
)
from weekend_tracer.scene.intersection import clear_scene, load_scene
from weekend_tracer.scene.world import Scene

logger = logging.getLogger(__name__)

# Pixels traced per kernel launch; also the granularity of cancellation
DEFAULT_CHUNK_SIZE = 4096

# =============================================================================
# Device Ownership
# =============================================================================

_device_lock = threading.Lock()

# Id of the run whose scene and camera are currently uploaded
_resident_run: int | None = None

_run_ids = itertools.count(1)


def _make_resident(run: "RenderRun") -> None:
    """Upload the run's scene and camera unless they are already loaded.

    Must be called with _device_lock held.
    """
    global _resident_run
    if _resident_run != run.run_id:
        load_scene(run.scene)
        load_camera(run.camera)
        _resident_run = run.run_id
        logger.debug("Uploaded scene and camera of run %d", run.run_id)


def reset_device_state() -> None:
    """Clear the loaded scene and camera and forget which run owns the device."""
    global _resident_run
    with _device_lock:
        clear_scene()
        unload_camera()
        _resident_run = None


# =============================================================================
# Render Run (producer)
# =============================================================================


class RenderRun:
    """One progressive render producing sample batches on a thread.

    Attributes:
        run_id: Unique id of the run within the process.
        scene: The scene being rendered. Never modified.
        camera: The derived camera configuration.
        sampling: Samples per pixel and maximum path depth.
        stream: The channel the batches are sent to.
        passes_completed: Number of full passes over the image so far.
        error: The exception that ended the run, if any.
    """

    def __init__(
        self,
        scene: Scene,
        camera: Camera,
        sampling: SamplingParams,
        stream: SampleStream | None = None,
        seed: int | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        """Prepare a run. Nothing is traced until start() or run().

        Args:
            scene: The scene to render.
            camera: Camera built for the output resolution.
            sampling: Sampling budget.
            stream: Channel to send batches to. A new SampleStream by default.
            seed: Seed for the shuffle of pixel coordinates and for the
                position of each sample inside its pixel. A fixed seed
                reproduces every camera ray of the run.
            chunk_size: Pixels traced per kernel launch.

        Raises:
            ValueError: If chunk_size is less than 1.
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")
        self.run_id = next(_run_ids)
        self.scene = scene
        self.camera = camera
        self.sampling = sampling
        self.stream = stream if stream is not None else SampleStream()
        self.passes_completed = 0
        self.error: Exception | None = None
        self._seed = seed
        self._chunk_size = chunk_size
        self._cancelled = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def width(self) -> int:
        return self.camera.image_width

    @property
    def height(self) -> int:
        return self.camera.image_height

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set() or self.stream.closed

    def coordinates(self) -> tuple[np.ndarray, np.ndarray]:
        """Every pixel coordinate exactly once, in shuffled order.

        Returns:
            Arrays (xs, ys) of int32 with y = 0 the bottom row.
        """
        rng = np.random.default_rng(self._seed)
        order = rng.permutation(self.width * self.height)
        xs = (order % self.width).astype(np.int32)
        ys = (order // self.width).astype(np.int32)
        return xs, ys

    def start(self) -> "RenderRun":
        """Run on a daemon thread. Returns self."""
        if self._thread is not None:
            raise RuntimeError(f"Render run {self.run_id} was already started")
        self._thread = threading.Thread(
            target=self._run_thread, name=f"render-run-{self.run_id}", daemon=True
        )
        self._thread.start()
        return self

    def cancel(self) -> None:
        """Ask the run to stop and close its stream. Does not wait."""
        self._cancelled.set()
        self.stream.close()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the thread to exit. Returns False on timeout."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run_thread(self) -> None:
        try:
            self.run()
        except Exception as e:
            self.error = e
            logger.exception("Render run %d failed", self.run_id)
        finally:
            self.stream.finish()

    def run(self) -> None:
        """Trace all passes on the calling thread, sending each chunk.

        Returns early, without error, once the stream is closed.
        """
        xs, ys = self.coordinates()
        n = xs.shape[0]
        # Separate stream from the shuffle so both stay reproducible
        jitter_rng = np.random.default_rng(None if self._seed is None else [self._seed, 1])
        started = time.perf_counter()
        logger.info(
            "Render run %d started: %dx%d, %d spp, max depth %d, %d spheres",
            self.run_id,
            self.width,
            self.height,
            self.sampling.samples_per_pixel,
            self.sampling.max_depth,
            len(self.scene),
        )

        for pass_index in range(self.sampling.samples_per_pixel):
            for start in range(0, n, self._chunk_size):
                if self.cancelled:
                    logger.debug("Render run %d cancelled in pass %d", self.run_id, pass_index)
                    return
                chunk_xs = xs[start : start + self._chunk_size]
                chunk_ys = ys[start : start + self._chunk_size]

                with _device_lock:
                    _make_resident(self)
                    colors = trace_samples(
                        chunk_xs,
                        chunk_ys,
                        self.width,
                        self.height,
                        self.sampling.max_depth,
                        offsets=jitter_rng.random((len(chunk_xs), 2), dtype=np.float32),
                    )

                batch = SampleBatch(chunk_xs, chunk_ys, colors, pass_index)
                if not self.stream.send(batch):
                    logger.debug("Render run %d stream closed in pass %d", self.run_id, pass_index)
                    return
            self.passes_completed = pass_index + 1

        logger.info(
            "Render run %d finished: %d passes in %.2fs",
            self.run_id,
            self.passes_completed,
            time.perf_counter() - started,
        )

    def __repr__(self) -> str:
        return (
            f"RenderRun(id={self.run_id}, {self.width}x{self.height}, "
            f"passes={self.passes_completed}/{self.sampling.samples_per_pixel})"
        )


# =============================================================================
# Progressive Renderer (consumer)
# =============================================================================


class ProgressiveRenderer:
    """Drives render runs and accumulates their samples for display.

    Starting a new run (including through resize()) cancels the current one
    without waiting for its thread; the old run notices the closed stream on
    its next send and exits on its own.

    Attributes:
        width: Current image width, or 0 before the first start().
        height: Current image height, or 0 before the first start().
    """

    def __init__(
        self,
        seed: int | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        capacity: int = DEFAULT_CAPACITY,
        stall_timeout: float | None = DEFAULT_STALL_TIMEOUT,
        on_batch: BatchCallback | None = None,
    ) -> None:
        """Create an idle renderer.

        Args:
            seed: Base seed for coordinate shuffles. Run k uses seed + k.
            chunk_size: Pixels traced per kernel launch.
            capacity: Batches buffered per run before the producer blocks.
            stall_timeout: Seconds a producer waits for this renderer to
                make room before the run is abandoned.
            on_batch: Called from the producer thread whenever a batch
                lands, e.g. to request a repaint.
        """
        self._seed = seed
        self._chunk_size = chunk_size
        self._capacity = capacity
        self._stall_timeout = stall_timeout
        self._on_batch = on_batch
        self._runs_started = 0

        self._scene: Scene | None = None
        self._camera_params: CameraParams | None = None
        self._sampling: SamplingParams | None = None
        self._run: RenderRun | None = None
        self._buffer: AccumulationBuffer | None = None

    @property
    def width(self) -> int:
        return self._buffer.width if self._buffer is not None else 0

    @property
    def height(self) -> int:
        return self._buffer.height if self._buffer is not None else 0

    @property
    def current_run(self) -> RenderRun | None:
        return self._run

    def _require_buffer(self) -> AccumulationBuffer:
        if self._buffer is None:
            raise RuntimeError("No render started. Call start() first.")
        return self._buffer

    def start(
        self,
        scene: Scene,
        camera_params: CameraParams,
        sampling: SamplingParams | None = None,
    ) -> RenderRun:
        """Begin a new run, cancelling the current one.

        Args:
            scene: The scene to render.
            camera_params: Camera and output resolution.
            sampling: Sampling budget. Defaults to SamplingParams.from_env().

        Returns:
            The new, already started run.

        Raises:
            ValueError: If the camera parameters are degenerate.
        """
        camera = Camera.from_params(camera_params)
        sampling = sampling if sampling is not None else SamplingParams.from_env()

        self.cancel()

        self._scene = scene
        self._camera_params = camera_params
        self._sampling = sampling
        if self._buffer is None:
            self._buffer = AccumulationBuffer(camera.image_width, camera.image_height)
        else:
            self._buffer.resize(camera.image_width, camera.image_height)

        seed = None if self._seed is None else self._seed + self._runs_started
        self._runs_started += 1
        stream = SampleStream(self._capacity, self._stall_timeout, self._on_batch)
        self._run = RenderRun(scene, camera, sampling, stream, seed=seed, chunk_size=self._chunk_size)
        return self._run.start()

    def resize(self, width: int, height: int) -> RenderRun:
        """Restart the current scene at a new resolution.

        The aspect ratio follows the new size. Does nothing but return the
        current run if the size is unchanged.

        Raises:
            RuntimeError: If nothing was started yet.
            ValueError: If width or height is less than 1.
        """
        if self._scene is None or self._camera_params is None or self._run is None:
            raise RuntimeError("No render started. Call start() first.")
        if (width, height) == (self.width, self.height):
            return self._run
        logger.debug("Resizing render from %dx%d to %dx%d", self.width, self.height, width, height)
        return self.start(self._scene, self._camera_params.resized(width, height), self._sampling)

    def update(self) -> int:
        """Fold in every batch that has arrived. Returns the samples added."""
        buffer = self._require_buffer()
        if self._run is None:
            return 0
        return sum(buffer.add_batch(batch) for batch in self._run.stream.drain())

    def wait(self, timeout: float | None = None) -> bool:
        """Accumulate until the current run is done.

        Args:
            timeout: Seconds to wait. None waits for completion.

        Returns:
            True if the run completed every pass, False on timeout or if it
            was cancelled.

        Raises:
            RuntimeError: If the run failed.
        """
        buffer = self._require_buffer()
        run = self._run
        deadline = None if timeout is None else time.monotonic() + timeout
        while not run.stream.done:
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                return False
            batch = run.stream.receive(timeout=remaining)
            if batch is not None:
                buffer.add_batch(batch)

        run.join()
        if run.error is not None:
            raise RuntimeError(f"Render run {run.run_id} failed") from run.error
        return not run.cancelled and run.passes_completed == run.sampling.samples_per_pixel

    def render(
        self,
        scene: Scene,
        camera_params: CameraParams,
        sampling: SamplingParams | None = None,
    ) -> npt.NDArray[np.float32]:
        """Render to completion and return the snapshot."""
        self.start(scene, camera_params, sampling)
        self.wait()
        return self.snapshot()

    def cancel(self) -> None:
        """Cancel the current run, if any, without waiting for it."""
        if self._run is None:
            return
        if not self._run.stream.done:
            logger.debug("Cancelling render run %d", self._run.run_id)
        self._run.cancel()

    def snapshot(self) -> npt.NDArray[np.float32]:
        """Gamma-corrected float image of shape (height, width, 3), top row first."""
        return self._require_buffer().snapshot()

    def snapshot_uint8(self) -> npt.NDArray[np.uint8]:
        """8-bit version of snapshot()."""
        return self._require_buffer().snapshot_uint8()

    @property
    def sample_count(self) -> int:
        """Samples accumulated by every pixel, i.e. completed passes seen."""
        return self._buffer.min_samples if self._buffer is not None else 0

    @property
    def is_complete(self) -> bool:
        """Whether every pixel has all samples of the current run."""
        if self._run is None or self._sampling is None:
            return False
        return self.sample_count >= self._sampling.samples_per_pixel

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )

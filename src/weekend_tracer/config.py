"""Render configuration.

Two groups of settings, each a frozen dataclass validated on construction:

- SamplingParams: how much work a render does per pixel.
- RuntimeSettings: how the Taichi runtime is started.

Both can be overridden from environment variables.

Example:
    >>> from weekend_tracer.config import SamplingParams
    >>> SamplingParams.from_env({"WEEKEND_TRACER_SAMPLES_PER_PIXEL": "8"})
    SamplingParams(samples_per_pixel=8, max_depth=50)
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace

ENV_PREFIX = "WEEKEND_TRACER_"

SUPPORTED_ARCHS = ("cpu", "gpu", "cuda", "vulkan", "metal", "opengl")


def _env_int(environ: Mapping[str, str], name: str) -> int | None:
    raw = environ.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{ENV_PREFIX + name} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class SamplingParams:
    """Per-pixel sampling budget.

    Attributes:
        samples_per_pixel: Number of passes over the image (>= 1).
        max_depth: Maximum number of scattering events per path (>= 0).
            0 renders black.
    """

    samples_per_pixel: int = 100
    max_depth: int = 50

    def __post_init__(self) -> None:
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel must be >= 1, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        base: "SamplingParams | None" = None,
    ) -> "SamplingParams":
        """Apply WEEKEND_TRACER_SAMPLES_PER_PIXEL and WEEKEND_TRACER_MAX_DEPTH.

        Args:
            environ: Variables to read. Defaults to os.environ.
            base: Values used where no variable is set. Defaults to
                SamplingParams().

        Raises:
            ValueError: If a variable is not an integer or out of range.
        """
        environ = os.environ if environ is None else environ
        params = base or cls()
        overrides = {}
        spp = _env_int(environ, "SAMPLES_PER_PIXEL")
        if spp is not None:
            overrides["samples_per_pixel"] = spp
        depth = _env_int(environ, "MAX_DEPTH")
        if depth is not None:
            overrides["max_depth"] = depth
        return replace(params, **overrides)


@dataclass(frozen=True)
class RuntimeSettings:
    """Settings for starting the Taichi runtime.

    Attributes:
        arch: Backend name, one of SUPPORTED_ARCHS.
        workers: CPU worker threads. None lets Taichi decide.
        seed: Random seed of the device generator.
        log_level: Level for the weekend_tracer loggers.
    """

    arch: str = "cpu"
    workers: int | None = None
    seed: int = 0
    log_level: int = logging.WARNING

    def __post_init__(self) -> None:
        if self.arch not in SUPPORTED_ARCHS:
            raise ValueError(f"Unknown arch {self.arch!r}; expected one of {', '.join(SUPPORTED_ARCHS)}")
        if self.workers is not None and self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "RuntimeSettings":
        """Read WEEKEND_TRACER_ARCH, WEEKEND_TRACER_WORKERS, WEEKEND_TRACER_SEED
        and WEEKEND_TRACER_LOG_LEVEL.

        Raises:
            ValueError: If a variable is malformed.
        """
        environ = os.environ if environ is None else environ
        settings = cls()
        overrides: dict = {}
        arch = environ.get(ENV_PREFIX + "ARCH")
        if arch:
            overrides["arch"] = arch.strip().lower()
        workers = _env_int(environ, "WORKERS")
        if workers is not None:
            overrides["workers"] = workers
        seed = _env_int(environ, "SEED")
        if seed is not None:
            overrides["seed"] = seed
        level = environ.get(ENV_PREFIX + "LOG_LEVEL")
        if level:
            resolved = logging.getLevelName(level.strip().upper())
            if not isinstance(resolved, int):
                raise ValueError(f"{ENV_PREFIX}LOG_LEVEL is not a logging level: {level!r}")
            overrides["log_level"] = resolved
        return replace(settings, **overrides)

"""Taichi runtime initialization.

Example:
    >>> from weekend_tracer.config import RuntimeSettings
    >>> from weekend_tracer.runtime import init_runtime
    >>> init_runtime(RuntimeSettings(arch="cpu", workers=4, seed=42))
"""

import logging

import taichi as ti

from weekend_tracer.config import RuntimeSettings

logger = logging.getLogger(__name__)

_ARCHS = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
    "cuda": ti.cuda,
    "vulkan": ti.vulkan,
    "metal": ti.metal,
    "opengl": ti.opengl,
}


def init_runtime(settings: RuntimeSettings | None = None) -> RuntimeSettings:
    """Initialize Taichi for rendering.

    Must be called before importing modules that declare device fields
    (camera, materials, scene, integrator).

    Args:
        settings: Runtime settings. Defaults to RuntimeSettings.from_env().

    Returns:
        The settings that were applied.
    """
    settings = settings or RuntimeSettings.from_env()
    logging.getLogger("weekend_tracer").setLevel(settings.log_level)

    kwargs = {"arch": _ARCHS[settings.arch], "random_seed": settings.seed}
    if settings.workers is not None:
        kwargs["cpu_max_num_threads"] = settings.workers
    ti.init(**kwargs)

    logger.info(
        "Taichi initialized: arch=%s workers=%s seed=%d",
        settings.arch,
        settings.workers if settings.workers is not None else "auto",
        settings.seed,
    )
    return settings

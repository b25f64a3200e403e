"""Pytest configuration for weekend_tracer tests.

Taichi is initialized once per session; device fields are declared when the
weekend_tracer modules are first imported inside the tests.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate fields declared by modules imported in earlier tests.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_device_state():
    """Clear the loaded scene before and after each test."""
    # Import here so Taichi is initialized before fields are declared
    from weekend_tracer.core.orchestrator import reset_device_state

    reset_device_state()
    yield
    reset_device_state()


@pytest.fixture
def load_world():
    """Load a Scene and a camera onto the device, bypassing render runs."""
    from weekend_tracer.camera.thin_lens import Camera, load_camera
    from weekend_tracer.core.orchestrator import reset_device_state
    from weekend_tracer.scene.intersection import load_scene

    def _load(scene, camera_params=None):
        reset_device_state()
        load_scene(scene)
        if camera_params is not None:
            load_camera(Camera.from_params(camera_params))

    return _load

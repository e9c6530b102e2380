"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate the module-level fields declared by the package.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene and material registries around each test."""
    # Import here so Taichi is initialized first
    from pathtracer.core.integrator import clear_render_target
    from pathtracer.scene.manager import clear_scene_data

    clear_scene_data()
    clear_render_target()

    yield

    clear_scene_data()
    clear_render_target()


@pytest.fixture
def upload_camera():
    """Return a helper that uploads a camera config and sizes the render target."""
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.core.integrator import setup_render_target

    def _upload(config):
        geometry = setup_camera(config)
        setup_render_target(config.image_width, config.image_height)
        return geometry

    return _upload

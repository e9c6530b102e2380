"""Demo scenes paired with camera configurations.

Each factory returns a (Scene, CameraConfig) tuple ready for rendering:

- make_basic_world(): a ground sphere, a diffuse sphere, a hollow glass
  sphere (glass shell around an air pocket) and a fuzzy metal sphere.
- make_wide_angle_world(): two touching spheres filling a 90 degree view.
- make_random_world(seed): a ground sphere covered by a 22 x 22 grid of
  small randomly placed spheres, plus three large spheres (diffuse, glass,
  polished metal), seen through a narrow lens with depth of field.

The random world draws from numpy.random.default_rng(seed), so a given seed
always produces the same scene.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.demo import make_random_world
    >>> scene, config = make_random_world(seed=42)
    >>> len(scene) > 4
    True
"""

import math

import numpy as np

from pathtracer.camera.thin_lens import CameraConfig
from pathtracer.materials.dielectric import Dielectric
from pathtracer.materials.lambertian import Lambertian
from pathtracer.materials.metal import Metal
from pathtracer.scene.manager import Scene

# Refractive index used for every glass sphere
GLASS_INDEX = 1.5

# Small spheres are placed on a grid of cells [-GRID_EXTENT, GRID_EXTENT)
GRID_EXTENT = 11
SMALL_RADIUS = 0.2

# Small spheres closer than this to FEATURE_POINT are skipped
FEATURE_POINT = (4.0, 0.2, 0.0)
CLEARANCE = 0.9

# Cumulative thresholds of the material choice for small spheres
DIFFUSE_PROBABILITY = 0.8
METAL_PROBABILITY = 0.95


def make_basic_world() -> tuple[Scene, CameraConfig]:
    """Build the basic material showcase scene.

    Returns:
        Tuple of (scene, camera_config).
    """
    scene = Scene()

    ground = Lambertian((0.8, 0.8, 0.0))
    center = Lambertian((0.1, 0.2, 0.5))
    glass = Dielectric(GLASS_INDEX)
    bubble = Dielectric(1.0 / GLASS_INDEX)
    metal = Metal((0.8, 0.6, 0.2), fuzz=1.0)

    scene.add_sphere((1.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.2), 0.5, center)
    scene.add_sphere((-0.9, -0.25, -1.0), 0.5, glass)
    scene.add_sphere((-0.9, -0.25, -1.0), 0.4, bubble)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, metal)

    config = CameraConfig(
        aspect_ratio=16.0 / 9.0,
        image_width=400,
        samples_per_pixel=100,
        max_depth=50,
        vfov=90.0,
    )
    return scene, config


def make_wide_angle_world() -> tuple[Scene, CameraConfig]:
    """Build two touching spheres at the edges of a 90 degree view.

    Returns:
        Tuple of (scene, camera_config).
    """
    scene = Scene()

    r = math.cos(math.pi / 4.0)
    scene.add_sphere((-r, 0.0, -1.0), r, Lambertian((0.0, 0.0, 1.0)))
    scene.add_sphere((r, 0.0, -1.0), r, Lambertian((1.0, 0.0, 0.0)))

    config = CameraConfig(
        aspect_ratio=16.0 / 9.0,
        image_width=400,
        samples_per_pixel=100,
        max_depth=50,
        vfov=90.0,
    )
    return scene, config


def make_random_world(seed: int = 0) -> tuple[Scene, CameraConfig]:
    """Build the random sphere field.

    Args:
        seed: Seed for the scene layout generator.

    Returns:
        Tuple of (scene, camera_config).
    """
    rng = np.random.default_rng(seed)
    scene = Scene()

    scene.add_sphere((0.0, -1000.5, 0.0), 1000.0, Lambertian((0.8, 0.8, 0.0)))

    feature = np.array(FEATURE_POINT)
    for a in range(-GRID_EXTENT, GRID_EXTENT):
        for b in range(-GRID_EXTENT, GRID_EXTENT):
            choose_material = rng.random()
            center = np.array(
                [a + 0.9 * rng.random(), SMALL_RADIUS, b + 0.9 * rng.random()]
            )

            if np.linalg.norm(center - feature) <= CLEARANCE:
                continue

            if choose_material < DIFFUSE_PROBABILITY:
                albedo = rng.random(3) * rng.random(3)
                material = Lambertian(tuple(albedo))
            elif choose_material < METAL_PROBABILITY:
                albedo = rng.uniform(0.5, 1.0, 3)
                fuzz = rng.uniform(0.0, 0.5)
                material = Metal(tuple(albedo), fuzz=fuzz)
            else:
                material = Dielectric(GLASS_INDEX)

            scene.add_sphere(tuple(center), SMALL_RADIUS, material)

    scene.add_sphere((0.0, 1.0, 0.0), 1.0, Dielectric(GLASS_INDEX))
    scene.add_sphere((-4.0, 1.0, 0.0), 1.0, Lambertian((0.4, 0.2, 0.1)))
    scene.add_sphere((4.0, 1.0, 0.0), 1.0, Metal((0.7, 0.6, 0.5), fuzz=0.0))

    config = CameraConfig(
        aspect_ratio=5.0 / 4.0,
        image_width=1200,
        samples_per_pixel=500,
        max_depth=50,
        vfov=20.0,
        look_from=(13.0, 2.0, 3.0),
        look_to=(0.0, 0.0, 0.0),
        view_up=(0.0, 1.0, 0.0),
        lens_angle=0.6,
        focus_distance=10.0,
    )
    return scene, config

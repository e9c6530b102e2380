"""Scene-level sphere intersection testing.

This module stores the uploaded spheres in Taichi fields and resolves the
nearest intersection of a ray against all of them, returning the hit
together with the material id of the sphere that was hit.

Spheres are tested in insertion order while the upper bound of the search
interval shrinks to the closest hit found so far. A later sphere only
replaces the current best when it is strictly closer, so two spheres
reporting the same t resolve to the one added first.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere((0, 0, -1), 0.5, material_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: 1 if the ray intersected any sphere, 0 on a miss.
        t: The ray parameter of the closest intersection.
        point: The intersection point.
        normal: Unit surface normal, oriented against the incoming ray.
        front_face: 1 for a hit from outside, 0 from inside.
        material_id: Unified material id of the hit sphere, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all spheres.

    Only the count is reset; stale field data is overwritten by later adds.
    """
    num_spheres[None] = 0


def add_sphere(center, radius: float, material_id: int = 0) -> int:
    """Append a sphere to the scene storage.

    Args:
        center: The center point, a vec3 or any 3-sequence.
        radius: The sphere radius (positive).
        material_id: Unified material id of the sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = vec3(center[0], center[1], center[2])
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def _hit_record_to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        material_id=material_id,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the closest sphere hit along a ray.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Exclusive lower bound of the search interval.
        t_max: Exclusive upper bound of the search interval.

    Returns:
        A SceneHitRecord for the closest intersection, or a miss record
        (hit == 0) if nothing was hit.
    """
    closest_t = t_max
    result = _make_miss_record()

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        # closest_t as the open upper bound enforces strict improvement
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _hit_record_to_scene_hit_record(rec, sphere_material_ids[i])

    return result

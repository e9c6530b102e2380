"""Sphere primitive with closed-form ray-sphere intersection.

The intersection solves |origin + t * direction - center|^2 = radius^2 in the
half-b form:

    oc     = center - origin
    a      = direction . direction
    h      = direction . oc
    c      = oc . oc - radius^2
    disc   = h^2 - a * c
    t      = (h -/+ sqrt(disc)) / a

The nearer root is tried first, then the farther one; the first root that
lies strictly inside (t_min, t_max) is accepted.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: 1 if the ray intersected the sphere inside the interval, else 0.
            The remaining fields are only meaningful when hit == 1.
        t: The ray parameter of the intersection.
        point: The intersection point.
        normal: Unit surface normal, oriented against the incoming ray.
        front_face: 1 if the ray approached from outside the sphere, 0 if it
            hit the inside surface (the stored normal is then flipped).
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The ray direction (need not be normalized, must be
            non-zero).
        sphere: The sphere to test.
        t_min: Exclusive lower bound of the accepted parameter range.
        t_max: Exclusive upper bound of the accepted parameter range.

    Returns:
        A HitRecord; check its hit field.
    """
    oc = sphere.center - ray_origin
    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = h * h - a * c

    # Taichi requires outer-scope declaration of branch results
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        t = (h - sqrt_d) / a
        valid = t_min < t < t_max
        if not valid:
            t = (h + sqrt_d) / a
            valid = t_min < t < t_max

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction
            outward_normal = (hit_point - sphere.center) / sphere.radius

            if tm.dot(ray_direction, outward_normal) < 0.0:
                is_front_face = 1
                hit_normal = outward_normal
            else:
                is_front_face = 0
                hit_normal = -outward_normal

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )


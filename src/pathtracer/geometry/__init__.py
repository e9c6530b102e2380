"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with closed-form ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) and follow the
pattern:
    rec = hit_shape(ray_origin, ray_direction, shape, t_min, t_max)
    if rec.hit == 1: ...
"""

from .sphere import HitRecord, Sphere, hit_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
]

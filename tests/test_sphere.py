"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside (front face)
- Ray missing sphere
- Ray starting inside sphere (back face)
- Open search interval bounds
- Rays aimed at the center from many directions
"""

import math

import numpy as np
import taichi as ti


def _run_hit(origin, direction, center, radius, t_min, t_max):
    """Intersect one ray with one sphere and return the record as a dict."""
    from pathtracer.geometry.sphere import Sphere, hit_sphere, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    point = ti.field(dtype=ti.math.vec3, shape=())
    normal = ti.field(dtype=ti.math.vec3, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel():
        sphere = Sphere(center=vec3(center[0], center[1], center[2]), radius=radius)
        record = hit_sphere(
            vec3(origin[0], origin[1], origin[2]),
            vec3(direction[0], direction[1], direction[2]),
            sphere,
            t_min,
            t_max,
        )
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        normal[None] = record.normal
        front_face[None] = record.front_face

    test_kernel()
    return {
        "hit": int(hit[None]),
        "t": float(t_val[None]),
        "point": point[None].to_numpy(),
        "normal": normal[None].to_numpy(),
        "front_face": int(front_face[None]),
    }


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_direct_hit(self):
        """Ray from z=5 toward the origin hits the unit sphere at t=4."""
        rec = _run_hit((0, 0, 5), (0, 0, -1), (0, 0, 0), 1.0, 0.001, 1000.0)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 4.0) < 1e-5
        assert np.allclose(rec["point"], [0.0, 0.0, 1.0], atol=1e-5)
        assert np.allclose(rec["normal"], [0.0, 0.0, 1.0], atol=1e-5)
        assert rec["front_face"] == 1

    def test_unnormalized_direction(self):
        """t is measured in units of the direction vector."""
        rec = _run_hit((0, 0, 5), (0, 0, -2), (0, 0, 0), 1.0, 0.001, 1000.0)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 2.0) < 1e-5

    def test_miss(self):
        """Ray passing beside the sphere misses."""
        rec = _run_hit((5, 0, 0), (0, 0, -1), (0, 0, 0), 1.0, 0.001, 1000.0)
        assert rec["hit"] == 0

    def test_inside_hits_back_face(self):
        """A ray from the center hits the far side with a flipped normal."""
        rec = _run_hit((0, 0, 0), (0, 0, 1), (0, 0, 0), 1.0, 0.001, 1000.0)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 1.0) < 1e-5
        assert rec["front_face"] == 0
        # Normal is flipped to face the ray
        assert np.allclose(rec["normal"], [0.0, 0.0, -1.0], atol=1e-5)

    def test_far_root_when_near_root_outside_interval(self):
        """If the near root is below t_min, the far root is used."""
        rec = _run_hit((0, 0, 5), (0, 0, -1), (0, 0, 0), 1.0, 4.5, 1000.0)
        assert rec["hit"] == 1
        assert abs(rec["t"] - 6.0) < 1e-5
        assert rec["front_face"] == 0

    def test_sphere_behind_ray(self):
        """Both roots negative: no hit."""
        rec = _run_hit((0, 0, 5), (0, 0, 1), (0, 0, 0), 1.0, 0.001, 1000.0)
        assert rec["hit"] == 0

    def test_interval_excludes_distant_root(self):
        """Sphere (5,5,5) r=0.5 along (1,1,1): interval (0, 1) misses."""
        rec = _run_hit((0, 0, 0), (1, 1, 1), (5, 5, 5), 0.5, 0.0, 1.0)
        assert rec["hit"] == 0

    def test_interval_includes_root(self):
        """Sphere (5,5,5) r=0.5 along (1,1,1): interval (0, 100) hits."""
        rec = _run_hit((0, 0, 0), (1, 1, 1), (5, 5, 5), 0.5, 0.0, 100.0)
        assert rec["hit"] == 1
        expected_t = 5.0 - 0.5 / math.sqrt(3.0)
        assert abs(rec["t"] - expected_t) < 1e-4
        assert rec["front_face"] == 1

    def test_upper_bound_is_exclusive(self):
        """A root exactly at t_max is rejected."""
        rec = _run_hit((0, 0, 5), (0, 0, -1), (0, 0, 0), 1.0, 0.001, 4.0)
        # Near root (4) rejected, far root (6) also outside
        assert rec["hit"] == 0

    def test_aimed_at_center_from_many_directions(self):
        """Rays aimed at the center from outside always hit the front face."""
        rng = np.random.default_rng(8)
        center = (1.0, -2.0, 0.5)
        radius = 0.75
        for _ in range(8):
            direction = rng.normal(size=3)
            direction /= np.linalg.norm(direction)
            distance = rng.uniform(2.0, 20.0)
            origin = tuple(np.array(center) - distance * direction)

            rec = _run_hit(origin, tuple(direction), center, radius, 0.001, 1e6)
            assert rec["hit"] == 1
            assert rec["t"] > 0.0
            assert rec["front_face"] == 1
            # Normal points back toward the ray origin
            assert np.dot(rec["normal"], direction) < 0.0
            assert abs(rec["t"] - (distance - radius)) < 1e-3

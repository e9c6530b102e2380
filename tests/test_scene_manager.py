"""Unit tests for the scene description and upload.

Tests cover:
- SphereInfo validation
- Scene collection behaviour and capacity
- Material deduplication by identity
- Upload into the Taichi fields (material table, registries, spheres)
- Material type lookup inside kernels
"""

import logging

import numpy as np
import pytest
import taichi as ti


class TestSphereInfo:
    """Tests for SphereInfo validation."""

    def test_valid_sphere(self):
        from pathtracer.materials import Lambertian
        from pathtracer.scene.manager import SphereInfo

        material = Lambertian((0.5, 0.5, 0.5))
        sphere = SphereInfo(center=np.array([1, 2, 3]), radius=2, material=material)
        assert sphere.center == (1.0, 2.0, 3.0)
        assert sphere.radius == 2.0
        assert sphere.material is material

    @pytest.mark.parametrize("radius", [0.0, -1.0, float("nan"), float("inf")])
    def test_invalid_radius(self, radius):
        from pathtracer.materials import Lambertian
        from pathtracer.scene.manager import SphereInfo

        with pytest.raises(ValueError, match="radius"):
            SphereInfo(center=(0, 0, 0), radius=radius, material=Lambertian((0.5, 0.5, 0.5)))

    def test_invalid_center(self):
        from pathtracer.materials import Lambertian
        from pathtracer.scene.manager import SphereInfo

        with pytest.raises(ValueError):
            SphereInfo(center=(0, 0), radius=1.0, material=Lambertian((0.5, 0.5, 0.5)))

    def test_unsupported_material(self):
        from pathtracer.scene.manager import SphereInfo

        with pytest.raises(TypeError, match="Unsupported material"):
            SphereInfo(center=(0, 0, 0), radius=1.0, material="glass")


class TestScene:
    """Tests for the host-side Scene collection."""

    def test_add_and_iterate(self):
        from pathtracer.materials import Dielectric, Lambertian
        from pathtracer.scene.manager import Scene

        scene = Scene()
        first = scene.add_sphere((0, 0, -1), 0.5, Lambertian((0.1, 0.2, 0.5)))
        second = scene.add_sphere((1, 0, -1), 0.5, Dielectric(1.5))

        assert len(scene) == 2
        assert list(scene) == [first, second]
        assert scene.spheres == (first, second)

        scene.clear()
        assert len(scene) == 0

    def test_constructed_from_spheres(self):
        from pathtracer.materials import Metal
        from pathtracer.scene.manager import Scene, SphereInfo

        metal = Metal((0.8, 0.8, 0.8))
        spheres = [SphereInfo((i, 0, 0), 0.5, metal) for i in range(3)]
        assert len(Scene(spheres)) == 3

    def test_materials_deduplicated_by_identity(self):
        from pathtracer.materials import Lambertian, Metal
        from pathtracer.scene.manager import Scene

        shared = Lambertian((0.5, 0.5, 0.5))
        twin = Lambertian((0.5, 0.5, 0.5))
        metal = Metal((0.9, 0.9, 0.9), fuzz=0.1)

        scene = Scene()
        scene.add_sphere((0, 0, 0), 1.0, shared)
        scene.add_sphere((2, 0, 0), 1.0, metal)
        scene.add_sphere((4, 0, 0), 1.0, shared)
        scene.add_sphere((6, 0, 0), 1.0, twin)

        materials = scene.materials
        assert len(materials) == 3
        assert materials[0] is shared
        assert materials[1] is metal
        assert materials[2] is twin

    def test_capacity(self):
        from pathtracer.materials import Lambertian
        from pathtracer.scene.intersection import MAX_SPHERES
        from pathtracer.scene.manager import Scene

        material = Lambertian((0.5, 0.5, 0.5))
        scene = Scene()
        for i in range(MAX_SPHERES):
            scene.add_sphere((float(i), 0.0, 0.0), 0.4, material)

        with pytest.raises(RuntimeError, match="Maximum number of spheres"):
            scene.add_sphere((0.0, 5.0, 0.0), 0.4, material)


class TestUpload:
    """Tests for Scene.upload and the material table."""

    def _build_scene(self):
        from pathtracer.materials import Dielectric, Lambertian, Metal
        from pathtracer.scene.manager import Scene

        ground = Lambertian((0.8, 0.8, 0.0))
        glass = Dielectric(1.5)
        metal = Metal((0.8, 0.6, 0.2), fuzz=0.3)

        scene = Scene()
        scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
        scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
        scene.add_sphere((-1.0, 0.0, -1.0), 0.4, Dielectric(1.0 / 1.5))
        scene.add_sphere((1.0, 0.0, -1.0), 0.5, metal)
        scene.add_sphere((0.0, 0.0, -1.0), 0.5, ground)
        return scene

    def test_material_ids_and_types(self):
        from pathtracer.scene.manager import MaterialType

        infos = self._build_scene().upload()

        assert [info.material_id for info in infos] == [0, 1, 2, 3]
        assert [info.material_type for info in infos] == [
            MaterialType.LAMBERTIAN,
            MaterialType.DIELECTRIC,
            MaterialType.DIELECTRIC,
            MaterialType.METAL,
        ]
        assert [info.type_index for info in infos] == [0, 0, 1, 0]

    def test_registries_and_spheres_written(self):
        from pathtracer.materials import (
            get_dielectric_material_count,
            get_lambertian_material_count,
            get_metal_material_count,
        )
        from pathtracer.scene.intersection import (
            get_sphere_count,
            sphere_material_ids,
            sphere_radii,
        )
        from pathtracer.scene.manager import num_materials

        self._build_scene().upload()

        assert get_lambertian_material_count() == 1
        assert get_metal_material_count() == 1
        assert get_dielectric_material_count() == 2
        assert num_materials[None] == 4

        assert get_sphere_count() == 5
        assert [sphere_material_ids[i] for i in range(5)] == [0, 1, 2, 3, 0]
        assert abs(sphere_radii[2] - 0.4) < 1e-6

    def test_upload_replaces_previous_scene(self):
        from pathtracer.materials import Lambertian
        from pathtracer.scene.intersection import get_sphere_count
        from pathtracer.scene.manager import Scene, num_materials

        self._build_scene().upload()

        scene = Scene()
        scene.add_sphere((0, 0, -1), 0.5, Lambertian((0.1, 0.1, 0.1)))
        scene.upload()

        assert get_sphere_count() == 1
        assert num_materials[None] == 1

    def test_empty_scene_upload(self):
        from pathtracer.scene.intersection import get_sphere_count
        from pathtracer.scene.manager import Scene

        assert Scene().upload() == []
        assert get_sphere_count() == 0

    def test_upload_logs_summary(self, caplog):
        with caplog.at_level(logging.INFO, logger="pathtracer.scene.manager"):
            self._build_scene().upload()
        assert "5 spheres, 4 materials" in caplog.text

    def test_kernel_material_lookup(self):
        from pathtracer.scene.manager import get_material_type, get_material_type_index

        self._build_scene().upload()

        types = ti.field(dtype=ti.i32, shape=6)
        indices = ti.field(dtype=ti.i32, shape=6)

        @ti.kernel
        def test_kernel():
            for i in range(6):
                # ids 4 and 5 are out of range, -1 is checked separately
                types[i] = get_material_type(i)
                indices[i] = get_material_type_index(i)

        test_kernel()
        assert types.to_numpy().tolist() == [0, 2, 2, 1, -1, -1]
        assert indices.to_numpy().tolist() == [0, 0, 1, 0, -1, -1]

    def test_kernel_negative_material_id(self):
        from pathtracer.scene.manager import get_material_type

        self._build_scene().upload()
        result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = get_material_type(-1)

        test_kernel()
        assert result[None] == -1


class TestRegisterMaterial:
    def test_unsupported_type(self):
        from pathtracer.scene.manager import register_material

        with pytest.raises(TypeError, match="Unsupported material"):
            register_material(object())

    def test_material_type_values(self):
        from pathtracer.scene.manager import MaterialType

        assert int(MaterialType.LAMBERTIAN) == 0
        assert int(MaterialType.METAL) == 1
        assert int(MaterialType.DIELECTRIC) == 2

"""Monte Carlo path tracer built on Taichi.

This package renders scenes of spheres with diffuse, metal and glass
materials by tracing jittered camera rays through a thin-lens camera and
averaging many random light paths per pixel.

Subpackages:
    core: Vector utilities, random sampling, color encoding, integrator and
        render entry points
    geometry: Sphere primitive and intersection
    materials: Lambertian, metal and dielectric scattering
    scene: Scene description, upload and demo scenes
    camera: Thin-lens camera with ray generation
    preview: Pixel stream and PNG export, Matplotlib preview

Taichi must be initialized (ti.init) before importing modules that declare
fields, for example pathtracer.core.integrator.
"""

__version__ = "0.1.0"

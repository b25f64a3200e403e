"""Taichi-based stochastic sphere path tracer.

Renders scenes of spheres with diffuse, metal and glass materials through a
thin-lens camera, refining the image progressively:
- Path tracing with bounded depth and a sky-gradient background
- Depth of field from a finite lens aperture
- Background render runs that stream sample batches and stop when cancelled
- Per-pixel accumulation with gamma-corrected snapshots

Subpackages:
    core: Vector and ray utilities, integrator, streaming and orchestration
    geometry: Sphere primitive and intersection
    materials: Lambertian, metal and dielectric scattering
    scene: Scene description, device storage and presets
    camera: Thin-lens camera with ray generation

Call weekend_tracer.runtime.init_runtime() (or ti.init()) before importing
the subpackages that declare Taichi fields.
"""

__version__ = "0.1.0"

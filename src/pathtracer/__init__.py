"""Monte Carlo path tracer built on Taichi.

This package renders scenes of spheres and triangles with physically
motivated materials, evaluated in parallel Taichi kernels:
- Iterative path tracing with a bounded bounce budget
- Lambertian, metal and dielectric scattering
- Thin-lens camera with defocus blur
- Batch and progressive rendering with explicit per-pixel random streams

Subpackages:
    core: Vector math, random streams, integrator and render drivers
    camera: Thin-lens camera model
    geometry: Sphere and triangle primitives
    materials: Scattering models
    scene: Scene aggregate, presets and file loaders
    preview: Gamma correction, image export and interactive preview
"""

__version__ = "0.1.0"

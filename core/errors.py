"""Error types raised by the ray tracer.

Geometric and numeric anomalies met while tracing (parallel rays, zero-length
directions, NaN) are never raised: intersection routines report them as
misses. Only structural problems detected before rendering and worker
failures during rendering surface as exceptions.
"""


class RaytracerError(Exception):
    """Base class for all ray tracer errors."""


class InvalidInputError(RaytracerError, ValueError):
    """The scene, a primitive, a material or the render settings are unusable."""


class RenderError(RaytracerError):
    """A render worker failed; the framebuffer cannot be trusted."""

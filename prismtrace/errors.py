"""Exception types raised by prismtrace."""


class RayTracingError(Exception):
    """Base class for all ray tracer errors."""


class ConfigError(RayTracingError):
    """Invalid render configuration or arguments."""


class SceneError(RayTracingError):
    """Missing or malformed scene description or mesh data."""


class ImageError(RayTracingError):
    """Failure while encoding or writing the output image."""

"""Exceptions raised while tracing a ray against a surface.

Every geometric outcome that is not a plain result is one of these.
Nothing in the package lets an infinity or NaN escape instead.
"""


class TraceError(Exception):
    """Base class for ray/surface trace outcomes."""


class NoIntersectionError(TraceError):
    """No point of the surface lies strictly ahead of the ray origin."""
    def __init__(self, message="ray does not meet the surface ahead of its origin",
                 roots=None):
        super().__init__(message)
        self.roots = roots


class NoRealRootsError(NoIntersectionError):
    """The ray's supporting line misses the conic entirely."""
    def __init__(self, discriminant):
        super().__init__(f"no real roots (discriminant={discriminant!r})")
        self.discriminant = discriminant


class TotalInternalReflectionError(TraceError):
    """Snell's law has no solution: |sin(alpha_i) * n1 / n2| > 1.

    The reflected part of the interaction is still well defined; it is
    attached once known so callers can keep the reflected ray.
    """
    def __init__(self, sin_refracted):
        super().__init__(
            f"total internal reflection (sin of refraction angle = {sin_refracted:.6g})")
        self.sin_refracted = sin_refracted
        self.x_r = None
        self.y_r = None
        self.k_rfl = None
        self.k_rfr = None  # always None; lets the error stand in for a result
        self.mirror = None


class DegenerateGeometryError(TraceError, ZeroDivisionError):
    """A formula hit a zero denominator or an empty domain."""


class ParallelRayError(DegenerateGeometryError):
    """The incident ray runs parallel to the mirror line."""


class VerticalTangentError(DegenerateGeometryError):
    """The implicit derivative has a zero denominator at the point."""
    def __init__(self, x, y):
        super().__init__(f"vertical tangent at ({x!r}, {y!r})")
        self.x = x
        self.y = y

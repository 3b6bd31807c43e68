"""Scalar ray tracing against a single line or conic surface.

Control flow for a conic surface::

    intersect_line -> select_forward_root -> tangent_slope -> reflect_refract_at

Outcomes other than an ``OpticalResult`` are raised:
``NoIntersectionError`` (``NoRealRootsError`` included),
``TotalInternalReflectionError`` and ``DegenerateGeometryError``.
"""

from typing import Optional

from .constants import DEFAULT_INDEX, RAY_EPSILON
from .datatypes import ConicSurface, LineSurface, MirrorLine, OpticalResult, Ray, Slope
from .errors import NoIntersectionError, TotalInternalReflectionError
from .intersection import (
    intersect_line,
    intersect_with_line,
    select_forward_root,
    tangent_slope,
)
from .refraction import reflect_refract_at


def _incident_slope(dx, dy) -> Slope:
    if dx == 0 and dy == 0:
        raise ValueError("ray direction is the zero vector")
    return Slope.from_direction(dx, dy)


def trace_conic_surface(x0, y0, dx, dy, conic,
                        n1=DEFAULT_INDEX, n2=DEFAULT_INDEX) -> OpticalResult:
    """Trace the ray (x0, y0) + t (dx, dy), t > 0, against a conic.

    The nearest intersection strictly ahead of the origin is used; the
    surface is replaced by its tangent line there and the mirror-line
    laws are applied.  A vertical ray or a vertical tangent is carried
    as a tagged slope, never as a large number.
    """
    k = _incident_slope(dx, dy)
    roots = intersect_line(conic, k, x0, y0)
    x_r, y_r = select_forward_root(roots, x0, y0, dx, dy)

    mirror = MirrorLine.through(x_r, y_r, tangent_slope(conic, x_r, y_r))
    # report the root itself, not its re-intersection with the tangent
    try:
        result = reflect_refract_at(x0, y0, k, mirror, n1, n2)
    except TotalInternalReflectionError as err:
        err.x_r, err.y_r = x_r, y_r
        raise
    return result._replace(x_r=x_r, y_r=y_r)


def trace_line_surface(x0, y0, dx, dy, line: MirrorLine,
                       n1=DEFAULT_INDEX, n2=DEFAULT_INDEX) -> OpticalResult:
    """Trace a ray against a straight mirror line."""
    k = _incident_slope(dx, dy)
    x_r, y_r = intersect_with_line(x0, y0, k, line)

    ux, uy = Ray(x0, y0, dx, dy).unit_direction()
    if (x_r - x0) * ux + (y_r - y0) * uy <= RAY_EPSILON:
        raise NoIntersectionError("mirror line lies behind the ray origin")
    return reflect_refract_at(x0, y0, k, line, n1, n2)


def trace(ray: Ray, surface) -> OpticalResult:
    """Dispatch on the surface type."""
    if isinstance(surface, ConicSurface):
        return trace_conic_surface(ray.x0, ray.y0, ray.dx, ray.dy,
                                   surface.conic, surface.n1, surface.n2)
    if isinstance(surface, LineSurface):
        return trace_line_surface(ray.x0, ray.y0, ray.dx, ray.dy,
                                  surface.line, surface.n1, surface.n2)
    raise TypeError(f"unsupported surface type {type(surface).__name__}")


def outgoing_rays(ray: Ray, result) -> tuple[Ray, Optional[Ray]]:
    """Orient the outgoing slopes of *result* into rays leaving the hit point.

    The reflected ray heads back to the incident side of the mirror and
    the refracted ray continues across it.  *result* may also be a
    ``TotalInternalReflectionError``, in which case the refracted ray is
    ``None``.
    """
    a, b, _ = result.mirror.coefficients
    ux, uy = ray.unit_direction()
    incoming = ux * a + uy * b

    rx, ry = result.k_rfl.direction()
    if (rx * a + ry * b) * incoming > 0:
        rx, ry = -rx, -ry
    reflected = Ray(result.x_r, result.y_r, rx, ry)

    if result.k_rfr is None:
        return reflected, None
    tx, ty = result.k_rfr.direction()
    if (tx * a + ty * b) * incoming < 0:
        tx, ty = -tx, -ty
    return reflected, Ray(result.x_r, result.y_r, tx, ty)

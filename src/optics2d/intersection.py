"""Line/conic intersection, curve evaluation and implicit slopes.

Coordinate convention
---------------------
* A ray's supporting line is  ``y - y0 = k (x - x0)``  with a tagged
  slope ``k`` (see ``datatypes.Slope``); a vertical ``k`` is the line
  ``x = x0``.
* A mirror line is  ``k_m x + y + c = 0``  (or ``x + c = 0`` when tagged
  vertical), so its slope is ``-k_m``.

Every division is checked: zero denominators raise a
``DegenerateGeometryError`` subclass and a negative discriminant raises
``NoRealRootsError``.
"""

import math

from .constants import RAY_EPSILON
from .datatypes import CurvePoints, MirrorLine, Ray, Roots, Slope, TangentSlopes
from .errors import (
    DegenerateGeometryError,
    NoIntersectionError,
    NoRealRootsError,
    ParallelRayError,
    VerticalTangentError,
)


def _solve_quadratic(a, b, c) -> tuple[float, float]:
    """Real roots of a t^2 + b t + c = 0, in no particular order.

    ``a == 0`` falls back to the linear root, returned twice; a zero
    discriminant returns the double root twice, bit-identical.
    """
    if a == 0:
        if b == 0:
            raise DegenerateGeometryError("quadratic and linear terms both vanish")
        root = -c / b
        if not math.isfinite(root):
            raise DegenerateGeometryError("linear root overflowed")
        return root, root

    discriminant = b * b - 4.0 * a * c
    if discriminant < 0:
        raise NoRealRootsError(discriminant)
    if discriminant == 0:
        root = -b / (2.0 * a)
        r1 = r2 = root
    else:
        # q keeps b and the square root the same sign (no cancellation)
        q = -0.5 * (b + math.copysign(math.sqrt(discriminant), b))
        r1 = q / a
        r2 = c / q
    if not (math.isfinite(r1) and math.isfinite(r2)):
        raise DegenerateGeometryError("quadratic roots overflowed")
    return r1, r2


def intersect_line(conic, k, x0, y0) -> Roots:
    """Intersect the line through (x0, y0) with slope *k* and a conic.

    Parameters
    ----------
    conic  : 6-sequence (A, B, C, D, E, F).
    k      : float or Slope; ``±inf`` is read as vertical.
    x0, y0 : a point on the line.

    Returns
    -------
    Roots(x1, y1, x2, y2).  When the line runs along an asymptotic
    direction of the conic (``a == 0``, e.g. parallel to a parabola's
    axis) there is a single crossing and both roots are that point.

    Raises
    ------
    NoRealRootsError        : the line misses the conic.
    DegenerateGeometryError : the line lies along a degenerate direction
                              with no crossing at all (``a == b == 0``).
    """
    A, B, C, D, E, F = conic
    k = Slope.of(k)

    if k.vertical:
        # Solve the curve along x = x0 instead of substituting a slope.
        y1, y2 = _solve_quadratic(C, B * x0 + E, A * x0 * x0 + D * x0 + F)
        return Roots(x0, y1, x0, y2)

    k = k.value
    m = y0 - k * x0  # intercept of the line
    a = A + B * k + C * k * k
    b = B * m + 2.0 * C * k * m + D + E * k
    c = C * m * m + E * m + F

    x1, x2 = _solve_quadratic(a, b, c)
    y1 = k * (x1 - x0) + y0
    y2 = k * (x2 - x0) + y0
    return Roots(x1, y1, x2, y2)


def y_at(conic, x) -> CurvePoints:
    """Heights of the curve above *x*.

    ``(None, None)`` when the vertical line misses the curve, and
    ``(y1, None)`` when the two roots coincide exactly or the curve is
    linear in y there.
    """
    A, B, C, D, E, F = conic
    try:
        y1, y2 = _solve_quadratic(C, B * x + E, A * x * x + D * x + F)
    except NoRealRootsError:
        return CurvePoints(None, None)
    if y1 == y2:
        return CurvePoints(y1, None)
    return CurvePoints(y1, y2)


def slope_at(conic, x, y) -> float:
    """Implicit derivative dy/dx of the curve at (x, y).

    Raises ``VerticalTangentError`` (a ``ZeroDivisionError``) where the
    tangent is vertical.
    """
    A, B, C, D, E, _ = conic
    numerator = 2.0 * A * x + B * y + D
    denominator = B * x + 2.0 * C * y + E
    if denominator == 0:
        raise VerticalTangentError(x, y)
    return -numerator / denominator


def tangent_slope(conic, x, y) -> Slope:
    """Tangent slope at (x, y) as a tagged Slope; vertical where
    ``slope_at`` would raise."""
    A, B, C, D, E, _ = conic
    numerator = 2.0 * A * x + B * y + D
    denominator = B * x + 2.0 * C * y + E
    if numerator == 0 and denominator == 0:
        raise DegenerateGeometryError(f"singular point of the conic at ({x!r}, {y!r})")
    # tangent direction is perpendicular to the gradient (numerator, denominator)
    return Slope.from_direction(denominator, -numerator)


def derivatives_at_x(conic, x) -> TangentSlopes:
    """Larger and smaller tangent slope at the curve points above *x*.

    A single point where the curve is linear in y gives its slope
    twice.  Where the vertical line x = *x* touches the curve the
    tangent there is vertical, so ``VerticalTangentError`` is raised.
    """
    slopes = [slope_at(conic, x, y) for y in y_at(conic, x) if y is not None]
    if not slopes:
        return TangentSlopes(None, None)
    return TangentSlopes(max(slopes), min(slopes))


# ---------------------------------------------------------------------------
# Ray-specific helpers
# ---------------------------------------------------------------------------

def select_forward_root(roots: Roots, x0, y0, dx, dy) -> tuple[float, float]:
    """Pick the intersection nearest to the ray origin that lies ahead of it.

    Each root is projected onto the unit ray direction; only projections
    greater than ``RAY_EPSILON`` count as ahead.  The smaller such
    projection wins.
    """
    ux, uy = Ray(x0, y0, dx, dy).unit_direction()
    proj1 = (roots.x1 - x0) * ux + (roots.y1 - y0) * uy
    proj2 = (roots.x2 - x0) * ux + (roots.y2 - y0) * uy

    if proj1 > RAY_EPSILON and (proj1 < proj2 or proj2 <= RAY_EPSILON):
        return roots.x1, roots.y1
    if proj2 > RAY_EPSILON:
        return roots.x2, roots.y2
    raise NoIntersectionError(roots=roots)


def intersect_with_line(x0, y0, k, line: MirrorLine) -> tuple[float, float]:
    """Where the line through (x0, y0) with slope *k* meets a mirror line.

    Raises ``ParallelRayError`` when the two lines are parallel.
    """
    k = Slope.of(k)

    if line.vertical:
        if k.vertical:
            raise ParallelRayError("vertical ray parallel to vertical mirror")
        x_r = -line.c
        return x_r, y0 + k.value * (x_r - x0)

    if k.vertical:
        return x0, -line.k_m * x0 - line.c

    denominator = line.k_m + k.value
    if denominator == 0:
        raise ParallelRayError(f"ray slope {k.value!r} parallel to mirror k_m={line.k_m!r}")
    x_r = (k.value * x0 - y0 - line.c) / denominator
    if not math.isfinite(x_r):
        raise ParallelRayError("ray and mirror are numerically parallel")
    return x_r, -line.k_m * x_r - line.c

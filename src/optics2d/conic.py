"""Closed-form invariants and constructors for general conics.

A conic is any 6-sequence ``(A, B, C, D, E, F)`` describing

    A x^2 + B xy + C y^2 + D x + E y + F = 0

Notation
--------
* ``delta  = B^2 - 4AC``: negative for ellipses, zero for parabolas,
  positive for hyperbolas.
* ``delta1 = F * delta + sigma1``: -4 times the determinant of the 3x3
  conic matrix; zero for degenerate conics.
* ``sigma2 = hypot(A - C, B)``: zero exactly for circles (and for
  degenerate point/line cases with A == C, B == 0).
"""

import math

from .constants import CLASSIFY_EPSILON
from .datatypes import Conic, ConicInvariants, ConicKind
from .errors import DegenerateGeometryError


def classify(conic) -> ConicInvariants:
    """Scalar invariants used for eccentricity, area and type."""
    A, B, C, D, E, F = conic
    delta = B * B - 4.0 * A * C
    sigma1 = A * E * E + C * D * D - B * D * E
    delta1 = F * delta + sigma1
    delta2 = D * D + E * E - 4.0 * (A + C) * F
    sigma2 = math.hypot(A - C, B)
    return ConicInvariants(delta, delta1, delta2, sigma1, sigma2)


def evaluate(conic, x, y) -> float:
    """Value of the implicit function at (x, y); zero on the curve."""
    A, B, C, D, E, F = conic
    return A * x * x + B * x * y + C * y * y + D * x + E * y + F


def eccentricity(conic) -> float:
    """Eccentricity from the invariants.

    ``delta1 == 0`` returns 1 by convention.  Non-degenerate parabolas
    never take that branch (the formula itself gives 1 for them); only
    degenerate conics do, including a point-circle.
    """
    A, _, C, _, _, _ = conic
    inv = classify(conic)
    a_plus_c = A + C
    if inv.delta1 > 0:
        denominator = inv.sigma2 + a_plus_c
    elif inv.delta1 < 0:
        denominator = inv.sigma2 - a_plus_c
    else:
        return 1.0

    if denominator == 0:
        raise DegenerateGeometryError("eccentricity: zero denominator")
    ratio = 2.0 * inv.sigma2 / denominator
    if ratio < 0:
        raise DegenerateGeometryError(f"eccentricity: negative radicand {ratio!r}")
    return math.sqrt(ratio)


def ellipse_area(conic) -> float:
    """Area enclosed by a real, non-degenerate ellipse; 0 for anything else."""
    A, _, C, _, _, _ = conic
    inv = classify(conic)
    if inv.delta < 0 and inv.delta1 * (A + C) > 0:
        return abs(2.0 / inv.delta * inv.delta1 * math.sqrt(-1.0 / inv.delta)) * math.pi
    return 0.0


def center(conic) -> tuple[float, float]:
    """Center of a central conic (ellipse or hyperbola)."""
    A, B, C, D, E, _ = conic
    delta = B * B - 4.0 * A * C
    if delta == 0:
        raise DegenerateGeometryError("conic has no center (delta == 0)")
    return (2.0 * C * D - B * E) / delta, (2.0 * A * E - B * D) / delta


def conic_type(conic) -> ConicKind:
    A, B, C, _, _, _ = conic
    inv = classify(conic)
    if abs(inv.delta1) <= CLASSIFY_EPSILON:
        return ConicKind.DEGENERATE
    if abs(inv.delta) <= CLASSIFY_EPSILON:
        return ConicKind.PARABOLA
    if inv.delta > 0:
        return ConicKind.HYPERBOLA
    if inv.delta1 * (A + C) < 0:
        # no real points
        return ConicKind.DEGENERATE
    if inv.sigma2 <= CLASSIFY_EPSILON:
        return ConicKind.CIRCLE
    return ConicKind.ELLIPSE


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------

def from_ellipse_params(a, b, theta, cx, cy) -> Conic:
    """General coefficients of an ellipse given its geometry.

    Parameters
    ----------
    a, b   : semi-axes; *a* lies along the direction *theta*.
    theta  : counter-clockwise rotation of the *a* axis from +x (radians).
    cx, cy : center.

    The result is normalised so that F is the constant term of
    ``u^2/a^2 + v^2/b^2 - 1`` in rotated coordinates, which makes
    ``center(result) == (cx, cy)``.
    """
    if a == 0 or b == 0:
        raise DegenerateGeometryError("ellipse semi-axes must be nonzero")

    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    inv_a2 = 1.0 / (a * a)
    inv_b2 = 1.0 / (b * b)

    A = cos_t ** 2 * inv_a2 + sin_t ** 2 * inv_b2
    B = 2.0 * sin_t * cos_t * (inv_a2 - inv_b2)
    C = sin_t ** 2 * inv_a2 + cos_t ** 2 * inv_b2
    D = -2.0 * A * cx - B * cy
    E = -B * cx - 2.0 * C * cy
    F = A * cx ** 2 + B * cx * cy + C * cy ** 2 - 1.0
    return Conic(A, B, C, D, E, F)


def circle(radius, cx=0.0, cy=0.0) -> Conic:
    return Conic(1.0, 0.0, 1.0, -2.0 * cx, -2.0 * cy, cx * cx + cy * cy - radius * radius)


def parabola(focal_length) -> Conic:
    """Parabola y^2 = 4 f x: vertex at the origin, focus at (f, 0)."""
    if focal_length == 0:
        raise DegenerateGeometryError("parabola focal length must be nonzero")
    return Conic(0.0, 0.0, 1.0, -4.0 * focal_length, 0.0, 0.0)

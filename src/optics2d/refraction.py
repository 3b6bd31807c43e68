"""Reflection and refraction at a straight (or locally straight) surface.

Two forms live here:

* Scalar slope algebra used by the exact tracer.  Lines are handled
  through their angles, so vertical rays and vertical mirrors need no
  special constants.
* The vector form of Snell's law plus ray propagation, written with
  ``jax.numpy`` and no Python-level control flow so they work under
  ``jax.jit`` and ``jax.vmap`` in the batch tracer.
"""

import math

import jax.numpy as jnp

from .constants import BATCH_EPSILON, DEFAULT_INDEX, HALF_PI, RAY_EPSILON
from .datatypes import MirrorLine, OpticalResult, Slope
from .errors import DegenerateGeometryError, TotalInternalReflectionError
from .intersection import intersect_with_line


def _wrap_half_turn(angle):
    """Map a line-angle difference into [-pi/2, pi/2)."""
    return (angle + HALF_PI) % math.pi - HALF_PI


def reflect_point(x, y, a, b, c) -> tuple[float, float]:
    """Mirror image of (x, y) across the line  a x + b y + c = 0."""
    denominator = a * a + b * b
    if denominator == 0:
        raise DegenerateGeometryError("line coefficients a and b are both zero")
    x_foot = (b * b * x - a * b * y - a * c) / denominator
    y_foot = (a * a * y - a * b * x - b * c) / denominator
    return 2.0 * x_foot - x, 2.0 * y_foot - y


def incidence_angle(k, mirror: MirrorLine) -> float:
    """Signed angle between the incident line and the mirror normal.

    Where the slope form is defined this equals
    ``atan((1/k_m - k) / (1 + k/k_m))``; it does not depend on which
    way either line is oriented.
    """
    normal_angle = mirror.slope.angle + HALF_PI
    return _wrap_half_turn(normal_angle - Slope.of(k).angle)


def refraction_angle(alpha_i, n1, n2) -> float:
    """Snell's law  n1 sin(alpha_i) = n2 sin(alpha_r).

    Raises ``TotalInternalReflectionError`` when no refracted ray exists.
    """
    if n1 <= 0 or n2 <= 0:
        raise ValueError(f"refractive indices must be positive, got n1={n1!r}, n2={n2!r}")
    sin_r = math.sin(alpha_i) * n1 / n2
    if abs(sin_r) > 1.0:
        raise TotalInternalReflectionError(sin_r)
    return math.asin(sin_r)


def reflect_refract_at(x0, y0, k, mirror: MirrorLine,
                       n1=DEFAULT_INDEX, n2=DEFAULT_INDEX) -> OpticalResult:
    """Reflect and refract the line through (x0, y0) with slope *k* at *mirror*.

    Steps
    -----
    1. Intersect the incident line with the mirror.
    2. Mirror the incident start point across the mirror; the reflected
       line joins that image to the hit point.  If the start point is the
       hit point, another point of the incident line is mirrored instead.
    3. Angle of incidence against the mirror normal.
    4. Snell's law for the refraction angle.
    5. The refracted line sits at the refraction angle from the normal,
       on the same rotational side as the incident line.

    A ``TotalInternalReflectionError`` carries ``x_r``, ``y_r``,
    ``k_rfl`` and ``mirror`` for the reflected part.
    """
    k = Slope.of(k)
    x_r, y_r = intersect_with_line(x0, y0, k, mirror)

    px, py = x0, y0
    if math.hypot(px - x_r, py - y_r) <= RAY_EPSILON:
        ux, uy = k.direction()
        px, py = x_r - ux, y_r - uy
    x_sym, y_sym = reflect_point(px, py, *mirror.coefficients)
    k_rfl = Slope.through(x_sym, y_sym, x_r, y_r)

    alpha_i = incidence_angle(k, mirror)
    try:
        alpha_r = refraction_angle(alpha_i, n1, n2)
    except TotalInternalReflectionError as err:
        err.x_r, err.y_r, err.k_rfl, err.mirror = x_r, y_r, k_rfl, mirror
        raise

    k_rfr = Slope.from_angle(mirror.slope.angle + HALF_PI - alpha_r)
    return OpticalResult(x_r, y_r, k_rfl, k_rfr, mirror)


def reflect_refract(x0, y0, k, k_m, c, n1=DEFAULT_INDEX, n2=DEFAULT_INDEX) -> OpticalResult:
    """Geometric optics at the mirror line  k_m x + y + c = 0.

    Parameters
    ----------
    x0, y0 : start point of the incident ray.
    k      : incident slope (float, ``±inf`` or Slope).
    k_m, c : mirror line coefficients.
    n1, n2 : refractive index on the incident side and the far side.

    Returns
    -------
    OpticalResult(x_r, y_r, k_rfl, k_rfr, mirror).
    """
    return reflect_refract_at(x0, y0, k, MirrorLine(k_m, c), n1, n2)


# ---------------------------------------------------------------------------
# Vector form (batch tracing)
# ---------------------------------------------------------------------------

def snell_refraction(
    incident_dir: jnp.ndarray,
    normal: jnp.ndarray,
    n1: float,
    n2: float,
) -> tuple[jnp.ndarray, jnp.ndarray]:
    """Refracted direction from the vector form of Snell's law.

    Parameters
    ----------
    incident_dir : (2,) array
        Unit direction of the incoming ray.
    normal : (2,) array
        Unit surface normal facing the incoming ray (``dot < 0``).
    n1, n2 : float
        Refractive index of the medium being left / entered.

    Returns
    -------
    refracted_dir : (2,) array
        Unit direction of the refracted ray.  Under total internal
        reflection this is still finite but meaningless.
    valid : scalar bool array
        False under total internal reflection.
    """
    eta = n1 / n2

    cos_i = jnp.abs(-jnp.dot(incident_dir, normal))
    sin2_t = eta ** 2 * (1.0 - cos_i ** 2)

    valid = sin2_t <= 1.0
    sin2_t_safe = jnp.clip(sin2_t, 0.0, 1.0)
    cos_t = jnp.sqrt(1.0 - sin2_t_safe)

    refracted = eta * incident_dir + (eta * cos_i - cos_t) * normal
    refracted = refracted / (jnp.linalg.norm(refracted) + BATCH_EPSILON)
    return refracted, valid


def propagate(
    origin: jnp.ndarray,
    direction: jnp.ndarray,
    distance: float,
) -> jnp.ndarray:
    """``origin + distance * direction``."""
    return origin + distance * direction

"""Vectorised tracing of many rays against one conic.

A single-ray body written without Python-level control flow (only
``jnp.where`` / ``jnp.select``) is mapped over a ray fan with
``jax.vmap``.  Instead of raising, every ray reports a status code from
``datatypes`` (``TRACE_OK``, ``TRACE_NO_REAL_ROOTS``, ``TRACE_MISSED``,
``TRACE_TIR``, ``TRACE_DEGENERATE``) and its outputs stay finite.

Coordinate convention
---------------------
* Rays are parametrised as ``P(t) = origin + t * d`` with ``d`` the
  normalised direction, so vertical rays need no special handling.
* The conic is a ``(NUM_CONIC_PARAMS,)`` array laid out as in
  ``datatypes`` (``conic_params`` builds one from a ``Conic``).
"""

import jax
import jax.numpy as jnp

from .constants import BATCH_EPSILON, DEFAULT_INDEX, RAY_EPSILON
from .datatypes import (
    A_COEF, B_COEF, C_COEF, D_COEF, E_COEF, F_COEF,
    TRACE_DEGENERATE, TRACE_MISSED, TRACE_NO_REAL_ROOTS, TRACE_OK, TRACE_TIR,
)
from .refraction import propagate, snell_refraction


def _trace_single_ray(origin, direction, conic, n1, n2):
    """Trace one ray; body function for ``jax.vmap``.

    Returns
    -------
    hit : (2,) array
    reflected : (2,) unit array, heading away from the surface.
    refracted : (2,) unit array, continuing across the surface.
    status : scalar int array
    """
    A = conic[A_COEF]
    B = conic[B_COEF]
    C = conic[C_COEF]
    D = conic[D_COEF]
    E = conic[E_COEF]
    F = conic[F_COEF]

    d = direction / (jnp.linalg.norm(direction) + BATCH_EPSILON)
    x0, y0 = origin[0], origin[1]
    dx, dy = d[0], d[1]

    # 1. Conic along the ray:  a t^2 + b t + c = 0
    a = A * dx * dx + B * dx * dy + C * dy * dy
    b = (2.0 * A * x0 * dx + B * (x0 * dy + y0 * dx) + 2.0 * C * y0 * dy
         + D * dx + E * dy)
    c = A * x0 * x0 + B * x0 * y0 + C * y0 * y0 + D * x0 + E * y0 + F

    discriminant = b * b - 4.0 * a * c
    sqrt_disc = jnp.sqrt(jnp.maximum(discriminant, 0.0))

    # a == 0: the ray runs along an asymptotic direction, one crossing.
    is_linear = jnp.abs(a) < BATCH_EPSILON
    no_crossing = is_linear & (jnp.abs(b) < BATCH_EPSILON)
    has_roots = is_linear | (discriminant >= 0.0)

    safe_a = jnp.where(is_linear, 1.0, a)
    safe_b = jnp.where(no_crossing, 1.0, b)
    t_linear = -c / safe_b

    # q keeps b and the square root the same sign (no cancellation)
    q = -0.5 * (b + jnp.where(b >= 0, 1.0, -1.0) * sqrt_disc)
    safe_q = jnp.where(jnp.abs(q) < BATCH_EPSILON, 1.0, q)
    t1 = jnp.where(is_linear, t_linear, q / safe_a)
    t2 = jnp.where(is_linear, t_linear, jnp.where(jnp.abs(q) < BATCH_EPSILON, t1, c / safe_q))

    # 2. Nearest root strictly ahead of the origin
    ahead1 = t1 > RAY_EPSILON
    ahead2 = t2 > RAY_EPSILON
    t = jnp.where(ahead1 & ((t1 < t2) | ~ahead2), t1, t2)
    t = jnp.where(ahead1 | ahead2, t, 0.0)
    hit = propagate(origin, d, t)

    # 3. Gradient normal, turned to face the incoming ray
    hx, hy = hit[0], hit[1]
    grad = jnp.stack([2.0 * A * hx + B * hy + D, B * hx + 2.0 * C * hy + E])
    grad_norm = jnp.linalg.norm(grad)
    normal = grad / (grad_norm + BATCH_EPSILON)
    normal = jnp.where(jnp.dot(d, normal) > 0, -normal, normal)

    # 4. Reflect and refract
    reflected = d - 2.0 * jnp.dot(d, normal) * normal
    refracted, refraction_valid = snell_refraction(d, normal, n1, n2)

    status = jnp.select(
        [
            ~has_roots,
            no_crossing | (grad_norm < BATCH_EPSILON),
            ~(ahead1 | ahead2),
            ~refraction_valid,
        ],
        [TRACE_NO_REAL_ROOTS, TRACE_DEGENERATE, TRACE_MISSED, TRACE_TIR],
        default=TRACE_OK,
    )
    return hit, reflected, refracted, status


def trace_conic_batch(origins, directions, conic, n1=DEFAULT_INDEX, n2=DEFAULT_INDEX):
    """Trace a batch of rays against one conic using ``jax.vmap``.

    Parameters
    ----------
    origins : (N, 2) array
        Ray start points.
    directions : (N, 2) array
        Ray directions (need not be normalised).
    conic : (NUM_CONIC_PARAMS,) array or Conic
        Shared by all rays.
    n1, n2 : float
        Refractive index on the incident side and the far side.

    Returns
    -------
    hits : (N, 2) array
    reflected : (N, 2) array
        Unit reflected directions; meaningful where status is TRACE_OK
        or TRACE_TIR.
    refracted : (N, 2) array
        Unit refracted directions; meaningful where status is TRACE_OK.
    status : (N,) int array
    """
    conic = jnp.asarray(conic, dtype=jnp.float32)
    batched = jax.vmap(_trace_single_ray, in_axes=(0, 0, None, None, None))
    return batched(jnp.asarray(origins), jnp.asarray(directions), conic, n1, n2)


def propagate_to_plane(points, directions, x_plane):
    """Advance each ray along its direction to the vertical plane x = x_plane.

    Rays parallel to the plane are left where they are.
    """
    dx = directions[:, 0]
    parallel = jnp.abs(dx) < BATCH_EPSILON
    t = (x_plane - points[:, 0]) / jnp.where(parallel, 1.0, dx)
    t = jnp.where(parallel, 0.0, t)
    return points + t[:, None] * directions


def compute_rms_spread(points, valid_mask, reference=0.0):
    """RMS height of valid rays about *reference* on a vertical plane.

    Returns 0.0 if no rays are valid.
    """
    dy = points[:, 1] - reference
    weights = valid_mask.astype(points.dtype)
    n_valid = jnp.sum(weights)
    mean_dy2 = jnp.sum(dy ** 2 * weights) / jnp.maximum(n_valid, 1.0)
    return jnp.sqrt(mean_dy2)

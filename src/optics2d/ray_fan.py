"""Ray fan generation for batch tracing.

Both generators return ``(origins, directions)`` as ``(N, 2)`` arrays,
ready for ``batch.trace_conic_batch``.
"""

import jax.numpy as jnp


def generate_parallel_beam(angle, num_rays, half_width, center=(0.0, 0.0)):
    """A collimated beam travelling at *angle* (radians from +x).

    Parameters
    ----------
    angle : float
        Propagation direction of every ray.
    num_rays : int
        Number of rays across the beam.
    half_width : float
        Rays are spread evenly over ``[-half_width, half_width]``
        perpendicular to the propagation direction.
    center : (2,) sequence
        Start point of the central ray.

    Returns
    -------
    origins : (num_rays, 2) array
    directions : (num_rays, 2) array of unit vectors
    """
    cos_a = jnp.cos(angle)
    sin_a = jnp.sin(angle)
    direction = jnp.array([cos_a, sin_a])
    across = jnp.array([-sin_a, cos_a])

    offsets = jnp.linspace(-half_width, half_width, num_rays)
    origins = jnp.asarray(center, dtype=jnp.float32) + offsets[:, None] * across
    directions = jnp.tile(direction, (num_rays, 1))
    return origins, directions


def generate_point_fan(x, y, num_rays, half_angle, axis_angle=0.0):
    """Rays leaving the point (x, y), spread evenly over
    ``axis_angle ± half_angle``."""
    angles = axis_angle + jnp.linspace(-half_angle, half_angle, num_rays)
    directions = jnp.stack([jnp.cos(angles), jnp.sin(angles)], axis=-1)
    origins = jnp.tile(jnp.array([x, y], dtype=jnp.float32), (num_rays, 1))
    return origins, directions

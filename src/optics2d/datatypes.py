"""Core data structures for 2D conic-surface ray optics.

Scalar tracing works on small immutable NamedTuples.  Slopes are
tagged (``Slope``) so that a vertical line is a distinct value rather
than an infinity or a very large number.  Batch tracing stores a conic
as a flat JAX array whose column layout is defined here.
"""

import math
from enum import Enum
from typing import NamedTuple, Optional

import jax.numpy as jnp

from .constants import DEFAULT_INDEX, HALF_PI, SLOPE_EPSILON
from .errors import DegenerateGeometryError


# ---------------------------------------------------------------------------
# Slopes
# ---------------------------------------------------------------------------

class Slope(NamedTuple):
    """Slope dy/dx of a line, or the vertical tag.

    ``value`` is meaningless when ``vertical`` is set.
    """
    value: float = 0.0
    vertical: bool = False

    @classmethod
    def of(cls, k) -> "Slope":
        """Coerce a float (``±inf`` meaning vertical) or a Slope."""
        if isinstance(k, Slope):
            return k
        k = float(k)
        if math.isnan(k):
            raise ValueError("slope is NaN")
        if math.isinf(k):
            return cls(0.0, True)
        return cls(k)

    @classmethod
    def through(cls, x1, y1, x2, y2) -> "Slope":
        """Slope of the segment from (x1, y1) to (x2, y2)."""
        dx = x2 - x1
        dy = y2 - y1
        if dx == 0.0 and dy == 0.0:
            raise DegenerateGeometryError(
                f"no slope through coincident points ({x1!r}, {y1!r})")
        if abs(dx) <= SLOPE_EPSILON * abs(dy):
            return cls(0.0, True)
        return cls(dy / dx)

    @classmethod
    def from_direction(cls, dx, dy) -> "Slope":
        return cls.through(0.0, 0.0, dx, dy)

    @classmethod
    def from_angle(cls, phi) -> "Slope":
        """Slope of the line at angle *phi* (radians) from the +x axis."""
        return cls.from_direction(math.cos(phi), math.sin(phi))

    @property
    def angle(self) -> float:
        """Line angle in [-pi/2, pi/2]; vertical is +pi/2."""
        if self.vertical:
            return HALF_PI
        return math.atan(self.value)

    def direction(self) -> tuple[float, float]:
        """Unit vector along the line, with dx >= 0 (vertical: +y)."""
        if self.vertical:
            return 0.0, 1.0
        norm = math.hypot(1.0, self.value)
        return 1.0 / norm, self.value / norm


VERTICAL = Slope(0.0, True)


# ---------------------------------------------------------------------------
# Conics
# ---------------------------------------------------------------------------

class Conic(NamedTuple):
    """General second-degree curve  A x^2 + B xy + C y^2 + D x + E y + F = 0.

    At least one of A, B, C must be nonzero; this is not checked.
    """
    A: float
    B: float
    C: float
    D: float
    E: float
    F: float


class ConicInvariants(NamedTuple):
    delta: float    # B^2 - 4AC
    delta1: float   # F * delta + sigma1
    delta2: float   # D^2 + E^2 - 4(A + C)F
    sigma1: float   # A E^2 + C D^2 - B D E
    sigma2: float   # hypot(A - C, B)


class ConicKind(Enum):
    """Type of a conic as decided by its invariants."""
    ELLIPSE = "ellipse"
    CIRCLE = "circle"
    PARABOLA = "parabola"
    HYPERBOLA = "hyperbola"
    DEGENERATE = "degenerate"  # line pairs, single points, no real points


class Roots(NamedTuple):
    """Both real intersections of a line with a conic (may coincide)."""
    x1: float
    y1: float
    x2: float
    y2: float


class CurvePoints(NamedTuple):
    """Curve heights above a given x; ``None`` where a root is absent."""
    y1: Optional[float]
    y2: Optional[float]


class TangentSlopes(NamedTuple):
    larger: Optional[float]
    smaller: Optional[float]


# ---------------------------------------------------------------------------
# Rays, mirror lines and surfaces
# ---------------------------------------------------------------------------

class Ray(NamedTuple):
    """A half-line from (x0, y0) along the direction vector (dx, dy)."""
    x0: float
    y0: float
    dx: float
    dy: float

    @classmethod
    def from_slope(cls, x0, y0, k) -> "Ray":
        """Ray through (x0, y0) with slope *k*, heading towards +x (or +y)."""
        dx, dy = Slope.of(k).direction()
        return cls(x0, y0, dx, dy)

    @property
    def slope(self) -> Slope:
        return Slope.from_direction(self.dx, self.dy)

    def unit_direction(self) -> tuple[float, float]:
        norm = math.hypot(self.dx, self.dy)
        if norm == 0.0:
            raise ValueError("ray direction is the zero vector")
        return self.dx / norm, self.dy / norm

    def point_at(self, t) -> tuple[float, float]:
        return self.x0 + t * self.dx, self.y0 + t * self.dy


class MirrorLine(NamedTuple):
    """Straight working surface  k_m x + y + c = 0.

    With ``vertical`` set the line is  x + c = 0  and ``k_m`` is unused.
    """
    k_m: float
    c: float
    vertical: bool = False

    @classmethod
    def through(cls, x, y, slope) -> "MirrorLine":
        """The line through (x, y) with the given slope."""
        slope = Slope.of(slope)
        if slope.vertical:
            return cls(0.0, -x, True)
        return cls(-slope.value, slope.value * x - y)

    @property
    def coefficients(self) -> tuple[float, float, float]:
        """(a, b, c) of the general form  a x + b y + c = 0."""
        if self.vertical:
            return 1.0, 0.0, self.c
        return self.k_m, 1.0, self.c

    @property
    def slope(self) -> Slope:
        if self.vertical:
            return VERTICAL
        return Slope(-self.k_m)


class LineSurface(NamedTuple):
    line: MirrorLine
    n1: float = DEFAULT_INDEX   # incident side
    n2: float = DEFAULT_INDEX   # far side


class ConicSurface(NamedTuple):
    conic: Conic
    n1: float = DEFAULT_INDEX
    n2: float = DEFAULT_INDEX


class OpticalResult(NamedTuple):
    """Hit point plus reflected and refracted slopes at one surface."""
    x_r: float
    y_r: float
    k_rfl: Slope
    k_rfr: Slope
    mirror: MirrorLine  # local mirror line the laws were applied to


# ---------------------------------------------------------------------------
# Batch layout
# ---------------------------------------------------------------------------
# A conic for batch tracing is a (NUM_CONIC_PARAMS,) array; the column
# indices are defined here so every module agrees on the layout.

A_COEF = 0  # x^2
B_COEF = 1  # xy
C_COEF = 2  # y^2
D_COEF = 3  # x
E_COEF = 4  # y
F_COEF = 5  # constant

NUM_CONIC_PARAMS = 6

# Per-ray status codes reported by the batch tracer.
TRACE_OK = 0
TRACE_NO_REAL_ROOTS = 1
TRACE_MISSED = 2
TRACE_TIR = 3
TRACE_DEGENERATE = 4


def conic_params(conic) -> jnp.ndarray:
    """Return a conic as a 1-D array of length NUM_CONIC_PARAMS."""
    A, B, C, D, E, F = conic
    return jnp.array([A, B, C, D, E, F], dtype=jnp.float32)

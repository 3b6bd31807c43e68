import math

# A run |dx| this small relative to |dy| is a vertical line.
SLOPE_EPSILON = 1e-12

# Roots closer than this to the ray origin (along the unit direction)
# are not "ahead" of it.  Keeps a chained ray from re-hitting its origin.
RAY_EPSILON = 1e-9

# Zero tolerance for delta / delta1 in conic_type only.
CLASSIFY_EPSILON = 1e-12

# Division guard for the branchless JAX path.
BATCH_EPSILON = 1e-12

DEFAULT_INDEX = 1.0
HALF_PI = 0.5 * math.pi

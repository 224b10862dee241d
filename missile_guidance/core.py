"""
Core guidance math for a pursuer chasing a target in 3D.

Contains:
- Vector helpers (coercion, guarded normalization)
- Target: relative position/velocity value with the closing test
- Ideal Proportional Navigation (ipn)
- Linear intercept aiming (linear_aim) and steering correction (linear_steer)

Everything here is a pure function of its inputs. Nothing is cached or shared,
so calls are safe from any number of threads.

Reference: https://nptel.ac.in/courses/101108056/9
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

# Below this |a| the intercept quadratic is treated as the equal-speed case
DEGENERATE_SPEED_TOLERANCE = 1e-3


# =============================================================================
# VECTOR HELPERS
# =============================================================================

def as_vector(value) -> np.ndarray:
    """
    Coerce a 3-sequence to a float vector of shape (3,).

    Floating dtypes (float32, float64, longdouble) are kept as given so the
    math runs in the caller's precision. Anything else becomes float64.
    """
    vec = np.array(value)
    if not np.issubdtype(vec.dtype, np.floating):
        vec = vec.astype(np.float64)
    if vec.shape != (3,):
        raise ValueError(f"expected a 3-vector, got shape {vec.shape}")
    return vec


def try_normalize(vector: np.ndarray, min_norm: float = 0.0) -> Optional[np.ndarray]:
    """Unit vector along `vector`, or None if its length is not above `min_norm`."""
    norm = np.linalg.norm(vector)
    if not norm > min_norm:
        return None
    return vector / norm


# =============================================================================
# TARGET MODEL
# =============================================================================

@dataclass(frozen=True, eq=False)
class Target:
    """
    A target as seen from the pursuer.

    Both vectors are relative to the pursuer in a non-rotating frame:
    - position: target location minus pursuer location
    - velocity: target velocity minus pursuer velocity

    Build a fresh one every control tick; it never changes after construction.
    """
    position: np.ndarray
    velocity: np.ndarray

    def __post_init__(self):
        position = as_vector(self.position)
        velocity = as_vector(self.velocity)
        position.flags.writeable = False
        velocity.flags.writeable = False
        object.__setattr__(self, "position", position)
        object.__setattr__(self, "velocity", velocity)

    @classmethod
    def relative(cls, pursuer_position, pursuer_velocity,
                 target_position, target_velocity) -> "Target":
        """Build the pursuer-relative target from absolute states."""
        return cls(
            position=as_vector(target_position) - as_vector(pursuer_position),
            velocity=as_vector(target_velocity) - as_vector(pursuer_velocity),
        )

    @property
    def is_closing(self) -> bool:
        """True while the target approaches the origin (position . velocity < 0)."""
        return bool(np.dot(self.position, self.velocity) < 0)

    @property
    def range(self) -> float:
        """Distance from the pursuer to the target."""
        return float(np.linalg.norm(self.position))

    def position_at(self, t: float) -> np.ndarray:
        """Where the target will be after t seconds at constant velocity."""
        return self.position + self.velocity * t

    def __repr__(self):
        return f"Target(position={self.position.tolist()}, velocity={self.velocity.tolist()})"


def is_closing(target: Target) -> bool:
    """Function form of `Target.is_closing`."""
    return target.is_closing


# =============================================================================
# PROPORTIONAL NAVIGATION
# =============================================================================

def ipn(navigation_constant: float, target: Target) -> np.ndarray:
    """
    Ideal Proportional Navigation.

    Returns the commanded acceleration for the pursuer.

    THE MATH:
    ---------
    The line of sight rotates at

        w = (p x v) / |p|²

    and the command is N * (v x w): perpendicular to the relative velocity,
    scaled by the LOS rate and the navigation constant N (typically 2-5).

    `target.is_closing` must be true. At zero range the LOS rate is undefined
    (division by zero); never call this with the target at the origin.
    """
    assert target.is_closing, "ipn requires a closing target"
    p = target.position
    v = target.velocity
    w = np.cross(p, v) / np.dot(p, p)
    return np.cross(v * navigation_constant, w)


# =============================================================================
# LINEAR INTERCEPT
# =============================================================================

def linear_aim(target: Target, speed: float) -> Optional[Tuple[np.ndarray, float]]:
    """
    Direction to launch a projectile at `speed` so it hits `target`, and the
    time of impact.

    THE MATH:
    ---------
    A projectile fired along unit direction d is at t * speed * d; the target
    is at p + v * t. Setting them equal and taking the squared norm gives

        a*t² + b*t + c = 0

    where:
    - a = |v|² - speed²
    - b = 2 * (p · v)
    - c = |p|²

    SPECIAL CASE - EQUAL SPEEDS:
    When |a| < DEGENERATE_SPEED_TOLERANCE the quadratic collapses. We then aim
    straight at the target's current position and report t = 0.

    Returns None when no real root exists, when both roots lie in the past,
    or when the aim point is the origin itself (direction undefined).
    """
    p = target.position
    v = target.velocity

    a = np.dot(v, v) - speed * speed
    if abs(a) < DEGENERATE_SPEED_TOLERANCE:
        direction = try_normalize(p)
        if direction is None:
            return None
        return direction, p.dtype.type(0)

    b = 2 * np.dot(p, v)
    c = np.dot(p, p)

    discriminant = b * b - 4 * a * c
    if discriminant < 0:
        logger.debug("no intercept: discriminant %g < 0", discriminant)
        return None

    sqrt_disc = np.sqrt(discriminant)
    t0 = (-b + sqrt_disc) / (2 * a)
    t1 = (-b - sqrt_disc) / (2 * a)

    # Impact in the past is meaningless; take the earliest future root
    valid_times = [t for t in (t0, t1) if t >= 0]
    if not valid_times:
        logger.debug("no intercept: roots %g and %g are both negative", t0, t1)
        return None
    t = min(valid_times)

    direction = try_normalize(target.position_at(t))
    if direction is None:
        return None
    return direction, t


def linear_steer(target: Target, current_velocity,
                 average_speed: float) -> Optional[Tuple[np.ndarray, float]]:
    """
    Change in velocity that puts an in-flight projectile on an intercept
    course, and the time to impact.

    The projectile keeps its current speed and only turns. Adding its current
    velocity back onto the relative target velocity turns the question into a
    launch-from-rest problem at `average_speed`, which linear_aim solves. The
    resulting heading scaled by the current speed is the goal velocity.

    Returns None whenever linear_aim does.
    """
    current_velocity = as_vector(current_velocity)
    adjusted = Target(
        position=target.position,
        velocity=target.velocity + current_velocity,
    )
    solution = linear_aim(adjusted, average_speed)
    if solution is None:
        return None
    direction, t = solution
    goal = direction * np.linalg.norm(current_velocity)
    return goal - current_velocity, t

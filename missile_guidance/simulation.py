"""
Demo engagement driver.

Flies a missile against a constant-velocity target, calling the guidance core
once per tick:
- Builds a pursuer-relative Target from the two bodies
- Asks linear_steer for a velocity correction and clamps it to the missile's
  steering limit
- Adds a short boost along the current heading
- Integrates both bodies with semi-implicit Euler

The engagement ends when the target stops closing (hit or passed).
"""

import logging
import shutil
import sys
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np

from .core import Target, as_vector, linear_steer, try_normalize

logger = logging.getLogger(__name__)

# Rendering cadence drives the physics step
FRAMERATE = 30
STEPS_PER_FRAME = 10
TIMESTEP = 1.0 / (STEPS_PER_FRAME * FRAMERATE)

# Boost phase
BOOST_TIME = 2.0                      # seconds of boost
MAX_BOOST = 1e3                       # m/s gained over the whole boost
BOOST_ACCEL = MAX_BOOST / BOOST_TIME  # m/s²


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass
class Body:
    """A point mass with position and velocity (meters, m/s)."""
    position: np.ndarray
    velocity: np.ndarray

    def __post_init__(self):
        self.position = as_vector(self.position)
        self.velocity = as_vector(self.velocity)

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))

    def integrate(self, acceleration: np.ndarray, dt: float = TIMESTEP):
        """Semi-implicit Euler: update velocity, then position with the new velocity."""
        self.velocity = self.velocity + dt * acceleration
        self.position = self.position + dt * self.velocity

    def copy(self) -> "Body":
        return Body(position=self.position.copy(), velocity=self.velocity.copy())


@dataclass
class Scene:
    """Initial conditions and limits for one engagement."""
    missile: Body
    target: Body
    max_steering_accel: float = 1e3   # m/s² - cap on the guidance command
    max_time: float = 60.0            # seconds before giving up


DEFAULT_SCENES = [
    Scene(
        missile=Body(position=[0.0, 0.0, 0.0], velocity=[0.0, 1e3, 0.0]),
        target=Body(position=[1e4, 3e3, 0.0], velocity=[-2e3, 0.0, 0.0]),
        max_steering_accel=1e3,
    ),
]


@dataclass
class SimResult:
    """Summary of a finished engagement."""
    steps: int
    miss: float
    peak_steering: np.ndarray
    status: str  # passed, timeout
    missile_path: List[np.ndarray] = field(default_factory=list)
    target_path: List[np.ndarray] = field(default_factory=list)

    def __str__(self):
        return (f"{self.steps} steps; miss by {self.miss:.2f}m; "
                f"peak steering accel {np.linalg.norm(self.peak_steering):.1f}m/s²")


# =============================================================================
# SIMULATION ENGINE
# =============================================================================

class Sim:
    """
    Step-by-step simulation of one Scene.

    The scene's bodies are copied, so a Scene can be replayed.
    """

    def __init__(self, scene: Scene, dt: float = TIMESTEP):
        self.missile = scene.missile.copy()
        self.target = scene.target.copy()
        self.max_steering_accel = scene.max_steering_accel
        self.dt = dt
        self.steps = 0
        self.peak_steering = np.zeros(3)

    @property
    def time(self) -> float:
        return self.steps * self.dt

    @property
    def distance(self) -> float:
        return float(np.linalg.norm(self.target.position - self.missile.position))

    @property
    def miss_distance(self) -> Optional[float]:
        """Final range once the target has stopped closing, None while it still closes."""
        if self.relative_target().is_closing:
            return None
        return self.distance

    def relative_target(self) -> Target:
        return Target.relative(self.missile.position, self.missile.velocity,
                               self.target.position, self.target.velocity)

    def steering(self, target: Target) -> np.ndarray:
        """Guidance command for this tick, clamped to the steering limit."""
        if not target.is_closing:
            return np.zeros(3)

        solution = linear_steer(target, self.missile.velocity, self.missile.speed)
        if solution is None:
            logger.debug("t=%.3fs: no intercept solution, holding course", self.time)
            return np.zeros(3)

        accel = solution[0] / self.dt
        magnitude = np.linalg.norm(accel)
        if magnitude > self.max_steering_accel:
            accel = accel * (self.max_steering_accel / magnitude)
        return accel

    def boost(self) -> np.ndarray:
        if self.time > BOOST_TIME:
            return np.zeros(3)
        heading = try_normalize(self.missile.velocity, 1e-3)
        if heading is None:
            heading = np.array([0.0, 1.0, 0.0])
        return heading * BOOST_ACCEL

    def step(self) -> bool:
        """Advance one tick. Returns True once the target is no longer closing."""
        target = self.relative_target()
        steering = self.steering(target)
        if np.dot(steering, steering) > np.dot(self.peak_steering, self.peak_steering):
            self.peak_steering = steering

        boost = self.boost()

        self.target.integrate(np.zeros(3), self.dt)
        self.missile.integrate(steering + boost, self.dt)
        self.steps += 1
        return not target.is_closing


def print_progress(fraction: float):
    """Draw a one-line progress bar sized to the terminal."""
    width = shutil.get_terminal_size().columns
    label = f" {fraction * 100:5.1f}%"
    bar_width = max(width - len(label) - 2, 0)
    filled = int(bar_width * min(max(fraction, 0.0), 1.0))
    sys.stdout.write("\r[" + "#" * filled + " " * (bar_width - filled) + "]" + label)
    sys.stdout.flush()


def clear_progress():
    width = shutil.get_terminal_size().columns
    sys.stdout.write("\r" + " " * width + "\r")
    sys.stdout.flush()


def run_scene(scene: Scene, on_step: Optional[Callable[[Sim], None]] = None,
              progress: bool = False) -> SimResult:
    """
    Run a scene to completion.

    Args:
        scene: Initial conditions
        on_step: Called with the Sim before every step (e.g. to render frames)
        progress: Draw a terminal progress bar of the distance closed

    Returns:
        SimResult with the miss distance and recorded trails
    """
    sim = Sim(scene)
    initial_distance = sim.distance
    missile_path = [sim.missile.position.copy()]
    target_path = [sim.target.position.copy()]
    status = "timeout"

    while sim.time < scene.max_time:
        if on_step is not None:
            on_step(sim)
        done = sim.step()
        missile_path.append(sim.missile.position.copy())
        target_path.append(sim.target.position.copy())
        if progress and initial_distance > 0:
            print_progress(1.0 - sim.distance / initial_distance)
        if done:
            status = "passed"
            break

    if progress:
        clear_progress()
    if status == "timeout":
        logger.warning("scene timed out after %.1fs at range %.1fm", sim.time, sim.distance)

    return SimResult(
        steps=sim.steps,
        miss=sim.distance,
        peak_steering=sim.peak_steering,
        status=status,
        missile_path=missile_path,
        target_path=target_path,
    )

"""
Missile Guidance Package

Intercept geometry for a pursuer chasing a moving target in 3D:
- Closing test on a pursuer-relative target
- Ideal Proportional Navigation acceleration
- Linear intercept aiming and in-flight steering correction

Usage:
    from missile_guidance import Target, linear_steer

    target = Target(position=[1e4, 3e3, 0.0], velocity=[-3e3, -1e3, 0.0])
    if target.is_closing:
        delta_v, time_to_impact = linear_steer(target, [0.0, 1e3, 0.0], 1e3)
"""

# Import core components
from .core import (
    # Data structures
    Target,

    # Vector helpers
    as_vector,
    try_normalize,

    # Guidance
    DEGENERATE_SPEED_TOLERANCE,
    is_closing,
    ipn,
    linear_aim,
    linear_steer,
)

# Version
__version__ = "1.0.0"

# Define what gets exported with "from missile_guidance import *"
__all__ = [
    'Target',
    'as_vector',
    'try_normalize',
    'DEGENERATE_SPEED_TOLERANCE',
    'is_closing',
    'ipn',
    'linear_aim',
    'linear_steer',
]

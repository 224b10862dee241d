"""Unit tests for the guidance core."""
import numpy as np
import pytest

from missile_guidance import (
    DEGENERATE_SPEED_TOLERANCE,
    Target,
    as_vector,
    ipn,
    is_closing,
    linear_aim,
    linear_steer,
    try_normalize,
)


def miss(target: Target, navigation_constant: float = 3.0, timestep: float = 1e-2) -> float:
    """Fly ideal PN until the target stops closing and return the final range."""
    position = np.array(target.position)
    velocity = np.array(target.velocity)
    while target.is_closing:
        acceleration = ipn(navigation_constant, target)
        assert abs(np.dot(acceleration, target.velocity)) < 1e-3
        # The pursuer accelerates, so the relative velocity changes the other way
        velocity = velocity - timestep * acceleration
        position = position + timestep * velocity
        target = Target(position=position, velocity=velocity)
    return target.range


def closest_approach(position, velocity) -> float:
    """Minimum range of a constant-velocity relative motion over t >= 0."""
    position = np.asarray(position, dtype=float)
    velocity = np.asarray(velocity, dtype=float)
    vv = np.dot(velocity, velocity)
    t = 0.0 if vv == 0 else max(0.0, -np.dot(position, velocity) / vv)
    return float(np.linalg.norm(position + velocity * t))


# =============================================================================
# TARGET
# =============================================================================

def test_target_coerces_and_freezes_vectors():
    target = Target(position=[1, 2, 3], velocity=(0, 0, -1))
    assert target.position.dtype == np.float64
    with pytest.raises(ValueError):
        target.position[0] = 5.0


def test_target_keeps_float32():
    target = Target(position=np.array([0, 0, -10], dtype=np.float32),
                    velocity=np.array([0, 0, 1], dtype=np.float32))
    assert target.position.dtype == np.float32
    assert target.is_closing


def test_target_rejects_wrong_shape():
    with pytest.raises(ValueError):
        Target(position=[1.0, 2.0], velocity=[0.0, 0.0, 1.0])


def test_relative_target():
    target = Target.relative(pursuer_position=[1.0, 1.0, 0.0],
                             pursuer_velocity=[0.0, 10.0, 0.0],
                             target_position=[11.0, 1.0, 0.0],
                             target_velocity=[-5.0, 10.0, 0.0])
    np.testing.assert_allclose(target.position, [10.0, 0.0, 0.0])
    np.testing.assert_allclose(target.velocity, [-5.0, 0.0, 0.0])
    assert target.range == pytest.approx(10.0)
    np.testing.assert_allclose(target.position_at(2.0), [0.0, 0.0, 0.0])


@pytest.mark.parametrize(
    "position, velocity, expected",
    [
        ((0, 0, -10), (0, 0, 1), True),
        ((0, -1, -10), (0, 1, 0.1), True),
        ((0, 0, 10), (0, 1, -1), True),
        ((0, 0, 10), (0, 0, 1), False),
        ((10, 0, 0), (0, 5, 0), False),   # dot product exactly zero
        ((0, 0, 0), (1, 1, 1), False),
    ],
)
def test_is_closing(position, velocity, expected):
    target = Target(position=position, velocity=velocity)
    assert target.is_closing is expected
    assert is_closing(target) is expected


def test_try_normalize():
    np.testing.assert_allclose(try_normalize(np.array([3.0, 0.0, 4.0])), [0.6, 0.0, 0.8])
    assert try_normalize(np.zeros(3)) is None
    assert try_normalize(np.array([1e-4, 0.0, 0.0]), 1e-3) is None


def test_as_vector_promotes_integers():
    assert as_vector([1, 2, 3]).dtype == np.float64


# =============================================================================
# PROPORTIONAL NAVIGATION
# =============================================================================

@pytest.mark.parametrize("gain", [2.0, 3.0, 5.0])
@pytest.mark.parametrize(
    "position, velocity",
    [
        ((0, -1, -10), (0, 1, 0.1)),
        ((100, 30, -5), (-40, 2, 3)),
        ((0, 0, 10), (0, 1, -1)),
    ],
)
def test_ipn_is_perpendicular_to_velocity(gain, position, velocity):
    target = Target(position=position, velocity=velocity)
    acceleration = ipn(gain, target)
    assert np.dot(acceleration, target.velocity) == pytest.approx(0.0, abs=1e-9)


def test_ipn_zero_on_collision_course():
    # Pure head-on approach: the line of sight does not rotate
    acceleration = ipn(3.0, Target(position=[0, 0, -10], velocity=[0, 0, 1]))
    np.testing.assert_allclose(acceleration, np.zeros(3))


def test_ipn_requires_closing_target():
    with pytest.raises(AssertionError):
        ipn(3.0, Target(position=[0, 0, 10], velocity=[0, 0, 1]))


def test_ipn_direct_approach():
    assert miss(Target(position=[0.0, 0.0, -10.0], velocity=[0.0, 0.0, 1.0])) < 1.0


def test_ipn_deflection():
    assert miss(Target(position=[0.0, -1.0, -10.0], velocity=[0.0, 1.0, 0.1])) < 1.0


def test_ipn_behind():
    assert miss(Target(position=[0.0, 0.0, 10.0], velocity=[0.0, 1.0, -1.0])) < 1.0


# =============================================================================
# LINEAR AIM
# =============================================================================

@pytest.mark.parametrize(
    "position, velocity, speed",
    [
        ((1000, 0, 0), (0, 20, 0), 50.0),
        ((0, -1, -10), (0, 1, 0.1), 3.0),
        ((500, 200, -100), (-30, 10, 5), 80.0),
        ((0, 0, 10), (0, 1, -1), 2.0),
        # Target faster than the projectile but coming straight at it
        ((-100, 0, 0), (20, 1, 0), 10.0),
    ],
)
def test_linear_aim_hits(position, velocity, speed):
    target = Target(position=position, velocity=velocity)
    solution = linear_aim(target, speed)
    assert solution is not None
    direction, t = solution

    assert np.linalg.norm(direction) == pytest.approx(1.0)
    assert t >= 0
    aim_point = target.position_at(t)
    np.testing.assert_allclose(np.cross(direction, aim_point), np.zeros(3), atol=1e-6)
    np.testing.assert_allclose(speed * t * direction, aim_point, rtol=1e-6, atol=1e-6)


def test_linear_aim_picks_earliest_root():
    # Faster target passing in front: two future crossings, keep the first
    target = Target(position=[-100, 10, 0], velocity=[20, 0, 0])
    direction, t = linear_aim(target, 10.0)
    a, b, c = 400 - 100, 2 * -2000, 100 * 100 + 10 * 10
    roots = np.roots([a, b, c])
    assert t == pytest.approx(min(roots))


def test_linear_aim_equal_speeds_aims_at_current_position():
    target = Target(position=[0, 0, -10], velocity=[3, 4, 0])
    direction, t = linear_aim(target, 5.0)
    np.testing.assert_allclose(direction, [0.0, 0.0, -1.0])
    assert t == 0


def test_linear_aim_near_equal_speeds_within_tolerance():
    speed = np.sqrt(25.0 + DEGENERATE_SPEED_TOLERANCE / 2)
    direction, t = linear_aim(Target(position=[10, 0, 0], velocity=[0, 5, 0]), speed)
    np.testing.assert_allclose(direction, [1.0, 0.0, 0.0])
    assert t == 0


def test_linear_aim_negative_discriminant():
    # Target crossing faster than the projectile can ever reach
    assert linear_aim(Target(position=[10, 0, 0], velocity=[0, 5, 0]), 1.0) is None


def test_linear_aim_both_roots_negative():
    # Faster target running away: the only "solutions" are in the past
    assert linear_aim(Target(position=[10, 0, 0], velocity=[5, 0, 0]), 1.0) is None


def test_linear_aim_repeated_root():
    # a = 9, b = -30, c = 25: discriminant is exactly zero
    target = Target(position=[-3, 4, 0], velocity=[5, 0, 0])
    direction, t = linear_aim(target, 4.0)
    assert t == pytest.approx(5.0 / 3.0)
    np.testing.assert_allclose(direction, [0.8, 0.6, 0.0])


def test_linear_aim_equal_speeds_at_origin_has_no_direction():
    assert linear_aim(Target(position=[0, 0, 0], velocity=[3, 4, 0]), 5.0) is None


def test_linear_aim_aim_point_at_origin_has_no_direction():
    # a = 4, b = -40, c = 100: the only root meets the target at the origin
    assert linear_aim(Target(position=[0, 10, 0], velocity=[0, -2, 0]), 0.0) is None


# =============================================================================
# LINEAR STEER
# =============================================================================

def test_linear_steer_reduces_miss():
    missile_velocity = np.array([0.0, 50.0, 0.0])
    target = Target.relative(pursuer_position=[0, 0, 0],
                             pursuer_velocity=missile_velocity,
                             target_position=[1000, 0, 0],
                             target_velocity=[0, 20, 0])
    before = closest_approach(target.position, target.velocity)

    delta, t = linear_steer(target, missile_velocity, np.linalg.norm(missile_velocity))
    new_velocity = missile_velocity + delta
    after = closest_approach(target.position, [0, 20, 0] - new_velocity)

    assert t > 0
    assert after < before
    assert after == pytest.approx(0.0, abs=1e-6)
    # Only the heading changes
    assert np.linalg.norm(new_velocity) == pytest.approx(np.linalg.norm(missile_velocity))


def test_linear_steer_on_course_is_zero():
    missile_velocity = np.array([100.0, 0.0, 0.0])
    target = Target.relative([0, 0, 0], missile_velocity, [1000, 0, 0], [0, 0, 0])
    delta, t = linear_steer(target, missile_velocity, 100.0)
    np.testing.assert_allclose(delta, np.zeros(3), atol=1e-9)
    assert t == pytest.approx(10.0)


def test_linear_steer_propagates_no_solution():
    missile_velocity = np.array([0.0, 1.0, 0.0])
    target = Target.relative([0, 0, 0], missile_velocity, [10, 0, 0], [5, 0, 0])
    assert linear_steer(target, missile_velocity, 1.0) is None


def test_linear_steer_equal_speeds_at_origin_has_no_direction():
    missile_velocity = np.array([5.0, 0.0, 0.0])
    target = Target.relative([0, 0, 0], missile_velocity, [0, 0, 0], [0, 5, 0])
    assert linear_steer(target, missile_velocity, 5.0) is None

"""Tests for the dual (differentiable) transform types."""

import jax
import jax.numpy as jnp
import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from jax_se2.dual import DualNum
from jax_se2.transforms import (
    Position2,
    Position2Dual,
    Rotation2,
    Rotation2Dual,
    Transform2,
    Transform2Dual,
    Twist2,
    Twist2Dual,
    Twist2Incr,
    Vector2,
    Vector2Dual,
)


def derivatives(f, t0):
    """Value, first and second derivative of a scalar function via JAX autodiff."""
    return jnp.array([f(t0), jax.grad(f)(t0), jax.grad(jax.grad(f))(t0)])


FIXED = Transform2(Vector2(0.5, -1.0), Rotation2.exp(0.3))


def pose(s):
    """A pose along a curved path, composed with a fixed offset."""
    return Transform2(Vector2(jnp.cos(s), s * s), Rotation2.exp(0.5 * s)) * FIXED


def pose_dual(s):
    return Transform2Dual(Vector2Dual(s.cos(), s * s), Rotation2Dual.exp(s * 0.5)) * FIXED


# Rotation2Dual
def test_rotation_rejects_mismatched_sizes():
    with pytest.raises(ValueError):
        Rotation2Dual(DualNum.constant(1.0, 3), DualNum.constant(0.0, 2))


def test_rotation_rejects_more_than_three_terms():
    with pytest.raises(ValueError):
        Rotation2Dual(DualNum.constant(1.0, 4), DualNum.constant(0.0, 4))


@given(st.integers(min_value=0, max_value=100))
@settings(deadline=None)
def test_constant_rotation_log_matches_plain(seed):
    theta = jax.random.uniform(jax.random.PRNGKey(seed), (), minval=-jnp.pi, maxval=jnp.pi)
    R = Rotation2.exp(theta)
    log = Rotation2Dual.constant(R, 3).log()
    np.testing.assert_allclose(log.value(), R.log(), atol=1e-12)
    np.testing.assert_allclose(log.drop(1).values, jnp.zeros(2), atol=1e-12)


def test_rotation_exp_log_derivatives():
    R = Rotation2Dual.exp(DualNum.variable(0.4, 3))
    np.testing.assert_allclose(R.log().values, [0.4, 1.0, 0.0], atol=1e-12)


def test_rotation_velocity():
    theta = DualNum.variable(1.2, 3) * 2.0
    w = Rotation2Dual.exp(theta).velocity()
    assert w.size == 2
    np.testing.assert_allclose(w.values, [2.0, 0.0], atol=1e-12)


def test_rotation_velocity_of_constant_is_zero():
    w = Rotation2Dual.constant(Rotation2.exp(0.7), 3).velocity()
    np.testing.assert_allclose(w.values, jnp.zeros(2), atol=1e-12)


def test_rotation_minus_and_plus():
    a = Rotation2Dual.exp(DualNum.variable(0.2, 3))
    b = Rotation2Dual.constant(Rotation2.exp(-0.3), 3)
    np.testing.assert_allclose((a - b).values, [0.5, 1.0, 0.0], atol=1e-12)
    np.testing.assert_allclose((b + 0.5).log().values, [0.2, 0.0, 0.0], atol=1e-12)
    np.testing.assert_allclose((b + DualNum.variable(0.5, 3)).log().values, [0.2, 1.0, 0.0], atol=1e-12)


def test_rotation_acts_on_vectors():
    R = Rotation2Dual.exp(DualNum.variable(0.0, 3))
    v = R * Vector2(1.0, 0.0)
    np.testing.assert_allclose(v.x.values, [1.0, 0.0, -1.0], atol=1e-12)
    np.testing.assert_allclose(v.y.values, [0.0, 1.0, 0.0], atol=1e-12)
    assert v.value() == Vector2(1.0, 0.0)


# Transform2Dual
def test_constant_transform_value():
    T = Transform2(Vector2(1.0, 2.0), Rotation2.exp(0.5))
    D = Transform2Dual.constant(T, 3)
    assert D.value() == T
    velocity = D.velocity()
    np.testing.assert_allclose(velocity.trans_vel.x.values, jnp.zeros(2))
    np.testing.assert_allclose(velocity.rot_vel.values, jnp.zeros(2), atol=1e-12)


def test_pose_derivatives_match_autodiff():
    s0 = 0.6
    D = pose_dual(DualNum.variable(s0, 3))

    np.testing.assert_allclose(
        D.translation.x.values, derivatives(lambda s: pose(s).translation.x, s0), rtol=1e-10, atol=1e-10
    )
    np.testing.assert_allclose(
        D.translation.y.values, derivatives(lambda s: pose(s).translation.y, s0), rtol=1e-10, atol=1e-10
    )
    np.testing.assert_allclose(
        D.rotation.log().values, derivatives(lambda s: pose(s).rotation.log(), s0), rtol=1e-10, atol=1e-10
    )


def test_pose_velocity():
    s0 = 0.6
    tw = pose_dual(DualNum.variable(s0, 3)).velocity()
    assert tw.trans_vel.x.size == 2
    np.testing.assert_allclose(
        tw.trans_vel.y.values,
        [jax.grad(lambda s: pose(s).translation.y)(s0), jax.grad(jax.grad(lambda s: pose(s).translation.y))(s0)],
        rtol=1e-10,
    )
    np.testing.assert_allclose(tw.rot_vel.values, [0.5, 0.0], atol=1e-12)


def test_inverse_derivatives_match_autodiff():
    s0 = -0.4
    D = pose_dual(DualNum.variable(s0, 3)).inverse()
    np.testing.assert_allclose(
        D.translation.x.values,
        derivatives(lambda s: pose(s).inverse().translation.x, s0),
        rtol=1e-10,
        atol=1e-10,
    )
    I = (pose_dual(DualNum.variable(s0, 3)) * D).value()
    np.testing.assert_allclose([I.translation.x, I.translation.y, I.rotation.real], [0.0, 0.0, 1.0], atol=1e-12)


def test_dual_compose_matches_autodiff():
    s0 = 0.25
    s = DualNum.variable(s0, 3)
    D = pose_dual(s) * pose_dual(s * s)
    np.testing.assert_allclose(
        D.translation.y.values,
        derivatives(lambda t: (pose(t) * pose(t * t)).translation.y, s0),
        rtol=1e-10,
        atol=1e-10,
    )


def test_plus_increment():
    incr = Twist2Incr(Vector2(0.3, 0.1), 0.2)
    T = Transform2(Vector2(1.0, 2.0), Rotation2.exp(0.5))
    D = Transform2Dual.constant(T, 3) + incr
    expected = T + incr
    np.testing.assert_allclose(
        [D.value().translation.x, D.value().translation.y, D.value().rotation.log()],
        [expected.translation.x, expected.translation.y, expected.rotation.log()],
        atol=1e-12,
    )


def test_plus_increment_derivatives_match_autodiff():
    s0 = 0.7
    incr = Twist2Incr(Vector2(0.3, -0.2), 0.4)
    D = pose_dual(DualNum.variable(s0, 3)) + incr

    np.testing.assert_allclose(
        D.translation.x.values, derivatives(lambda s: (pose(s) + incr).translation.x, s0), rtol=1e-10, atol=1e-10
    )
    np.testing.assert_allclose(
        D.translation.y.values, derivatives(lambda s: (pose(s) + incr).translation.y, s0), rtol=1e-10, atol=1e-10
    )
    np.testing.assert_allclose(
        D.rotation.log().values, derivatives(lambda s: (pose(s) + incr).rotation.log(), s0), rtol=1e-10, atol=1e-10
    )


def test_reparam_matches_autodiff():
    t0 = 0.9
    t = DualNum.variable(t0, 3)
    s_of_t = t * t
    D = pose_dual(DualNum.variable(s_of_t.value(), 3)).reparam(s_of_t)
    np.testing.assert_allclose(
        D.translation.x.values, derivatives(lambda u: pose(u * u).translation.x, t0), rtol=1e-10, atol=1e-10
    )
    np.testing.assert_allclose(
        D.rotation.log().values, derivatives(lambda u: pose(u * u).rotation.log(), t0), rtol=1e-10, atol=1e-10
    )


def test_transform_rotates_dual_twist():
    D = Transform2Dual.constant(Transform2(Vector2(3.0, 3.0), Rotation2.exp(jnp.pi / 2)), 2)
    tw = D * Twist2Dual.constant(Twist2(Vector2(1.0, 0.0), 0.2), 2)
    value = tw.value()
    np.testing.assert_allclose([value.trans_vel.x, value.trans_vel.y, value.rot_vel], [0.0, 1.0, 0.2], atol=1e-12)


def test_twist_dual_addition():
    a = Twist2Dual.constant(Twist2(Vector2(1.0, 2.0), 0.5), 2)
    b = Twist2(Vector2(0.5, 0.5), 0.5)
    total = (a + b).value()
    np.testing.assert_allclose([total.trans_vel.x, total.trans_vel.y, total.rot_vel], [1.5, 2.5, 1.0])


def test_velocity_jit_compatibility():
    @jax.jit
    def velocity(s):
        return pose_dual(s).velocity()

    tw = velocity(DualNum.variable(0.6, 3))
    np.testing.assert_allclose(tw.rot_vel.values, [0.5, 0.0], atol=1e-12)


# Vector2Dual / Position2Dual
def test_vector_norm_derivatives():
    s0 = 1.3
    s = DualNum.variable(s0, 3)
    v = Vector2Dual(s * 3.0, s.sin())
    np.testing.assert_allclose(
        v.norm().values, derivatives(lambda u: jnp.sqrt(9.0 * u * u + jnp.sin(u) ** 2), s0), rtol=1e-10
    )


def test_constant_vector_drop_is_zero():
    v = Vector2Dual.constant(Vector2(1.0, 2.0), 3).drop(1)
    np.testing.assert_allclose(v.x.values, jnp.zeros(2))
    np.testing.assert_allclose(v.y.values, jnp.zeros(2))


def test_position_dual_algebra():
    s = DualNum.variable(0.5, 3)
    p = Position2Dual(s, s * s)
    q = Position2Dual.constant(Position2(1.0, 1.0), 3)
    d = p - q
    np.testing.assert_allclose(d.x.values, [-0.5, 1.0, 0.0])
    np.testing.assert_allclose(d.y.values, [-0.75, 1.0, 2.0])
    assert (q + Vector2(1.0, 0.0)).value() == Position2(2.0, 1.0)
    assert (Vector2Dual.constant(Vector2(1.0, 0.0), 3) + Position2(1.0, 1.0)).value() == Position2(2.0, 1.0)
    assert p.free().bind().value() == p.value()


def test_position_tangent_on_unit_circle():
    # arc-length parameterized unit circle: heading is s + pi/2, curvature 1
    s0 = 0.4
    s = DualNum.variable(s0, 3)
    heading = Rotation2Dual.tangent(Position2Dual(s.cos(), s.sin()))
    assert heading.size == 2
    np.testing.assert_allclose(heading.log().values, [s0 + jnp.pi / 2, 1.0], atol=1e-12)
    np.testing.assert_allclose(heading.velocity().values, [1.0], atol=1e-12)

    tv = Position2Dual(s.cos(), s.sin()).tangent_vec()
    np.testing.assert_allclose(tv.value().norm(), 1.0)


def test_empty_tangent_keeps_batch_shape():
    p = Position2Dual(DualNum.constant(jnp.zeros(2), 1), DualNum.constant(jnp.ones(2), 1))
    heading = Rotation2Dual.tangent(p)
    assert heading.size == 0
    assert heading.log().values.shape == (2, 0)


# Structural equality
def test_dual_rotation_equality():
    a = Rotation2Dual.constant(Rotation2.exp(0.3), 3)
    b = Rotation2Dual.constant(Rotation2.exp(0.3), 3)
    c = Rotation2Dual.constant(Rotation2.exp(0.4), 3)
    assert a == b
    assert a != c
    assert a != Rotation2Dual.constant(Rotation2.exp(0.3), 2)


def test_dual_values_equality():
    s = DualNum.variable(0.5, 3)
    assert DualNum.variable(0.5, 3) == s
    assert DualNum.constant(0.5, 3) != s
    assert s != 0.5
    assert pose_dual(s) == pose_dual(DualNum.variable(0.5, 3))
    assert pose_dual(s).velocity() == pose_dual(DualNum.variable(0.5, 3)).velocity()
    assert Vector2Dual(s, s) != Position2Dual(s, s)

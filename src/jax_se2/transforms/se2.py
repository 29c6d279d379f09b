"""SE(2) and se(2) Lie group operations in JAX.

Rigid transforms are stored as a translation vector plus a unit-complex
rotation. The exponential and logarithm maps use the closed forms from
Eade, "Lie Groups for 2D and 3D Transformations", eqs. (133)-(134). Near zero
rotation the angle is nudged away from zero by ``EPS`` instead of switching to
a series expansion, so the derivative channels of the dual types stay smooth.
"""

from typing import Generic, Tuple, Union

import jax
import jax.numpy as jnp
from flax import struct

from ..dual import DualNum, NewParam, Param, tree_equal
from .so2 import Rotation2, Rotation2Dual
from .vector import Vector2, Vector2Dual

Array = jax.Array
Scalar = Union[float, Array]

# Regularization for the removable singularity of sin(u)/u at u = 0
EPS = 2.2e-15


def entries(theta: Scalar) -> Tuple[Array, Array]:
    """
    Coefficients of the left Jacobian V = [[A, -B], [B, A]].

    Args:
        theta: rotation angle, scalar or batched

    Returns:
        (A, B) with A = sin(u)/u and B = (1 - cos(u))/u, u = theta + EPS*sign(theta)
    """
    # sign(0) counts as positive
    u = theta + jnp.where(theta >= 0.0, EPS, -EPS)
    return jnp.sin(u) / u, (1.0 - jnp.cos(u)) / u


@struct.dataclass
class Twist2:
    """Body velocity: linear rate ``trans_vel`` and angular rate ``rot_vel``."""

    __eq__ = tree_equal

    trans_vel: Vector2
    rot_vel: Scalar

    def __add__(self, other: "Twist2") -> "Twist2":
        if not isinstance(other, Twist2):
            return NotImplemented
        return Twist2(self.trans_vel + other.trans_vel, self.rot_vel + other.rot_vel)


@struct.dataclass
class Twist2Incr:
    """Finite se(2) increment consumed by ``Transform2.exp``."""

    __eq__ = tree_equal

    trans_incr: Vector2
    rot_incr: Scalar


@struct.dataclass
class Twist2Dual(Generic[Param]):
    __eq__ = tree_equal

    trans_vel: Vector2Dual[Param]
    rot_vel: DualNum[Param]

    @classmethod
    def constant(cls, t: Twist2, n: int) -> "Twist2Dual[Param]":
        return cls(Vector2Dual.constant(t.trans_vel, n), DualNum.constant(t.rot_vel, n))

    def __add__(self, other):
        if not isinstance(other, (Twist2, Twist2Dual)):
            return NotImplemented
        return Twist2Dual(self.trans_vel + other.trans_vel, self.rot_vel + other.rot_vel)

    def value(self) -> Twist2:
        return Twist2(self.trans_vel.value(), self.rot_vel.value())

    def reparam(self, old_param: DualNum[NewParam]) -> "Twist2Dual[NewParam]":
        return Twist2Dual(self.trans_vel.reparam(old_param), self.rot_vel.reparam(old_param))


@struct.dataclass
class Transform2:
    """Immutable rigid transform: x -> rotation * x + translation."""

    __eq__ = tree_equal

    translation: Vector2
    rotation: Rotation2

    # Constructors
    @classmethod
    def identity(cls) -> "Transform2":
        return cls(Vector2.zero(), Rotation2.identity())

    @classmethod
    def exp(cls, incr: Twist2Incr) -> "Transform2":
        """
        SE(2) exponential map.

        Integrates a constant body velocity over unit time.

        Args:
            incr: se(2) increment

        Returns:
            Transform reached from the identity
        """
        A, B = entries(incr.rot_incr)
        v = incr.trans_incr
        translation = Vector2(A * v.x - B * v.y, B * v.x + A * v.y)
        return cls(translation, Rotation2.exp(incr.rot_incr))

    def log(self) -> Twist2Incr:
        """SE(2) logarithm map, the inverse of ``exp``."""
        theta = self.rotation.log()

        A, B = entries(theta)
        denom = A * A + B * B

        x, y = self.translation.x, self.translation.y
        return Twist2Incr(Vector2((A * x + B * y) / denom, (-B * x + A * y) / denom), theta)

    # Basic operations
    def compose(self, other: "Transform2") -> "Transform2":
        """Self ∘ other (apply *other* first, then self)."""
        return Transform2(self.rotation * other.translation + self.translation, self.rotation * other.rotation)

    def apply(self, v: Vector2) -> Vector2:
        return self.rotation * v + self.translation

    def __mul__(self, other):
        if isinstance(other, Transform2):
            return self.compose(other)
        if isinstance(other, Vector2):
            return self.apply(other)
        if isinstance(other, Twist2):
            return Twist2(self.rotation * other.trans_vel, other.rot_vel)
        return NotImplemented

    def inverse(self) -> "Transform2":
        r_inv = self.rotation.inverse()
        return Transform2(r_inv * -self.translation, r_inv)

    def __add__(self, incr: Twist2Incr) -> "Transform2":
        if not isinstance(incr, Twist2Incr):
            return NotImplemented
        return self * Transform2.exp(incr)

    def __sub__(self, other: "Transform2") -> Twist2Incr:
        """Increment taking ``other`` to ``self``, expressed in ``other``'s frame."""
        if not isinstance(other, Transform2):
            return NotImplemented
        return (other.inverse() * self).log()


@struct.dataclass
class Transform2Dual(Generic[Param]):
    """Rigid transform whose components are functions of ``Param``."""

    __eq__ = tree_equal

    translation: Vector2Dual[Param]
    rotation: Rotation2Dual[Param]

    @classmethod
    def constant(cls, t: Transform2, n: int) -> "Transform2Dual[Param]":
        return cls(Vector2Dual.constant(t.translation, n), Rotation2Dual.constant(t.rotation, n))

    def compose(self, other) -> "Transform2Dual[Param]":
        return Transform2Dual(self.rotation * other.translation + self.translation, self.rotation * other.rotation)

    def __mul__(self, other):
        if isinstance(other, (Transform2, Transform2Dual)):
            return self.compose(other)
        if isinstance(other, Twist2Dual):
            return Twist2Dual(self.rotation * other.trans_vel, other.rot_vel)
        return NotImplemented

    def __add__(self, incr: Twist2Incr) -> "Transform2Dual[Param]":
        if not isinstance(incr, Twist2Incr):
            return NotImplemented
        return self * Transform2.exp(incr)

    def inverse(self) -> "Transform2Dual[Param]":
        r_inv = self.rotation.inverse()
        return Transform2Dual(r_inv * -self.translation, r_inv)

    def value(self) -> Transform2:
        return Transform2(self.translation.value(), self.rotation.value())

    def velocity(self) -> Twist2Dual[Param]:
        """World-frame velocity of the pose with respect to ``Param``."""
        return Twist2Dual(self.translation.drop(1), self.rotation.velocity())

    def reparam(self, old_param: DualNum[NewParam]) -> "Transform2Dual[NewParam]":
        return Transform2Dual(self.translation.reparam(old_param), self.rotation.reparam(old_param))

"""SO(2) rotations as unit complex numbers.

``Rotation2`` is the plain group element and ``Rotation2Dual`` its
differentiable counterpart, whose two components are dual numbers over the
same parameter. Unit norm is assumed throughout and never renormalized.
"""

from typing import Generic, Union

import jax
import jax.numpy as jnp
from flax import struct

from ..dual import MAX_TERMS, DualNum, NewParam, Param, tree_equal
from .vector import Position2Dual, Vector2, Vector2Dual

Array = jax.Array
Scalar = Union[float, Array]


@struct.dataclass
class Rotation2:
    __eq__ = tree_equal

    real: Scalar
    imag: Scalar

    @classmethod
    def identity(cls) -> "Rotation2":
        return cls(1.0, 0.0)

    @classmethod
    def exp(cls, theta: Scalar) -> "Rotation2":
        """Rotation by ``theta`` radians."""
        return cls(jnp.cos(theta), jnp.sin(theta))

    def log(self) -> Array:
        """Signed angle in (-pi, pi]."""
        return jnp.arctan2(self.imag, self.real)

    def compose(self, other: "Rotation2") -> "Rotation2":
        return Rotation2(
            self.real * other.real - self.imag * other.imag,
            self.real * other.imag + self.imag * other.real,
        )

    def apply(self, v: Vector2) -> Vector2:
        return Vector2(
            self.real * v.x - self.imag * v.y,
            self.imag * v.x + self.real * v.y,
        )

    def __mul__(self, other):
        if isinstance(other, Rotation2):
            return self.compose(other)
        if isinstance(other, Vector2):
            return self.apply(other)
        return NotImplemented

    def inverse(self) -> "Rotation2":
        return Rotation2(self.real, -self.imag)

    def __add__(self, theta: Scalar) -> "Rotation2":
        return self * Rotation2.exp(theta)

    def __sub__(self, other: "Rotation2") -> Array:
        """Angle taking ``other`` to ``self``."""
        if not isinstance(other, Rotation2):
            return NotImplemented
        return (other.inverse() * self).log()

    def vec(self) -> Vector2:
        return Vector2(self.real, self.imag)


@struct.dataclass
class Rotation2Dual(Generic[Param]):
    __eq__ = tree_equal

    real: DualNum[Param]
    imag: DualNum[Param]

    def __post_init__(self):
        # pytree unflattening may hand us placeholder leaves
        if not all(isinstance(d, DualNum) and isinstance(d.values, jax.Array) for d in (self.real, self.imag)):
            return
        real_size, imag_size = self.real.size, self.imag.size
        if real_size != imag_size:
            raise ValueError(f"real and imag must have the same number of terms, got {real_size} and {imag_size}")
        if real_size > MAX_TERMS:
            raise ValueError(f"rotations support at most {MAX_TERMS} terms, got {real_size}")

    @classmethod
    def exp(cls, theta: DualNum[Param]) -> "Rotation2Dual[Param]":
        return cls(theta.cos(), theta.sin())

    @classmethod
    def constant(cls, r: Rotation2, n: int) -> "Rotation2Dual[Param]":
        return cls(DualNum.constant(r.real, n), DualNum.constant(r.imag, n))

    @classmethod
    def tangent(cls, position: Position2Dual[Param]) -> "Rotation2Dual[Param]":
        """
        Heading of the curve traced by ``position``.

        Only a unit rotation when the parameter is arc length.
        """
        return cls(position.x.drop(1), position.y.drop(1))

    @property
    def size(self) -> int:
        return self.real.size

    def compose(self, other) -> "Rotation2Dual[Param]":
        return Rotation2Dual(
            self.real * other.real - self.imag * other.imag,
            self.real * other.imag + self.imag * other.real,
        )

    def apply(self, v) -> Vector2Dual[Param]:
        return Vector2Dual(
            self.real * v.x - self.imag * v.y,
            self.imag * v.x + self.real * v.y,
        )

    def __mul__(self, other):
        if isinstance(other, (Rotation2, Rotation2Dual)):
            return self.compose(other)
        if isinstance(other, (Vector2, Vector2Dual)):
            return self.apply(other)
        return NotImplemented

    def __add__(self, theta):
        if isinstance(theta, DualNum):
            return self * Rotation2Dual.exp(theta)
        return self * Rotation2.exp(theta)

    def inverse(self) -> "Rotation2Dual[Param]":
        return Rotation2Dual(self.real, -self.imag)

    def __sub__(self, other: "Rotation2Dual[Param]") -> DualNum[Param]:
        if not isinstance(other, Rotation2Dual):
            return NotImplemented
        return (other.inverse() * self).log()

    def value(self) -> Rotation2:
        return Rotation2(self.real.value(), self.imag.value())

    def reparam(self, old_param: DualNum[NewParam]) -> "Rotation2Dual[NewParam]":
        return Rotation2Dual(self.real.reparam(old_param), self.imag.reparam(old_param))

    def log(self) -> DualNum[Param]:
        """
        Angle of the rotation with its derivatives.

        The derivative terms are those of atan2 restricted to the unit circle,
        where d(theta) = real * d(imag) - imag * d(real). The second term keeps
        the same form and is only exact for paths that stay on the circle.
        """
        r, i = self.real, self.imag
        terms = []
        for k in range(self.size):
            if k == 0:
                terms.append(jnp.arctan2(i[0], r[0]))
            elif k == 1:
                terms.append(r[0] * i[1] - i[0] * r[1])
            elif k == 2:
                terms.append(r[0] * i[2] - i[0] * r[2])
            else:
                raise AssertionError(f"unreachable: rotation with {self.size} terms")
        return DualNum.from_terms(terms, r.values.shape[:-1])

    def velocity(self) -> DualNum[Param]:
        """Angular rate, one term shorter than the rotation."""
        return self.real * self.imag.drop(1) - self.imag * self.real.drop(1)

"""Free vectors and affine positions in the plane.

Vectors form a vector space; positions only admit ``position + vector`` and
``position - position``. Keeping the two apart means expressions like adding
two points or taking the norm of a point are not expressible.
"""

from typing import Generic, Union

import jax
import jax.numpy as jnp
from flax import struct

from ..dual import DualNum, NewParam, Param, tree_equal

Array = jax.Array
Scalar = Union[float, Array]


@struct.dataclass
class Vector2:
    __eq__ = tree_equal

    x: Scalar
    y: Scalar

    @classmethod
    def zero(cls) -> "Vector2":
        return cls(0.0, 0.0)

    def __add__(self, other: "Vector2") -> "Vector2":
        if not isinstance(other, Vector2):
            return NotImplemented
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector2") -> "Vector2":
        if not isinstance(other, Vector2):
            return NotImplemented
        return Vector2(self.x - other.x, self.y - other.y)

    def __neg__(self) -> "Vector2":
        return Vector2(-self.x, -self.y)

    def __mul__(self, s: Scalar) -> "Vector2":
        return Vector2(self.x * s, self.y * s)

    __rmul__ = __mul__

    def __truediv__(self, s: Scalar) -> "Vector2":
        return Vector2(self.x / s, self.y / s)

    def dot(self, other: "Vector2") -> Array:
        return self.x * other.x + self.y * other.y

    def sqr_norm(self) -> Array:
        return self.dot(self)

    def norm(self) -> Array:
        return jnp.sqrt(self.sqr_norm())

    def bind(self) -> "Position2":
        """The point reached by applying this displacement to the origin."""
        return Position2(self.x, self.y)


@struct.dataclass
class Position2:
    __eq__ = tree_equal

    x: Scalar
    y: Scalar

    def __add__(self, v: Vector2) -> "Position2":
        if not isinstance(v, Vector2):
            return NotImplemented
        return Position2(self.x + v.x, self.y + v.y)

    def __sub__(self, other: "Position2") -> Vector2:
        if not isinstance(other, Position2):
            return NotImplemented
        return Vector2(self.x - other.x, self.y - other.y)


@struct.dataclass
class Vector2Dual(Generic[Param]):
    __eq__ = tree_equal

    x: DualNum[Param]
    y: DualNum[Param]

    @classmethod
    def constant(cls, v: Vector2, n: int) -> "Vector2Dual[Param]":
        return cls(DualNum.constant(v.x, n), DualNum.constant(v.y, n))

    def __add__(self, other):
        if isinstance(other, Position2):
            return Position2Dual(self.x + other.x, self.y + other.y)
        if isinstance(other, (Vector2, Vector2Dual)):
            return Vector2Dual(self.x + other.x, self.y + other.y)
        return NotImplemented

    def __sub__(self, other):
        if not isinstance(other, (Vector2, Vector2Dual)):
            return NotImplemented
        return Vector2Dual(self.x - other.x, self.y - other.y)

    def __neg__(self) -> "Vector2Dual[Param]":
        return Vector2Dual(-self.x, -self.y)

    def __mul__(self, s) -> "Vector2Dual[Param]":
        return Vector2Dual(self.x * s, self.y * s)

    def __truediv__(self, s) -> "Vector2Dual[Param]":
        return Vector2Dual(self.x / s, self.y / s)

    def dot(self, other: "Vector2Dual[Param]") -> DualNum[Param]:
        return self.x * other.x + self.y * other.y

    def sqr_norm(self) -> DualNum[Param]:
        return self.dot(self)

    def norm(self) -> DualNum[Param]:
        return self.sqr_norm().sqrt()

    def drop(self, n: int) -> "Vector2Dual[Param]":
        return Vector2Dual(self.x.drop(n), self.y.drop(n))

    def value(self) -> Vector2:
        return Vector2(self.x.value(), self.y.value())

    def reparam(self, old_param: DualNum[NewParam]) -> "Vector2Dual[NewParam]":
        return Vector2Dual(self.x.reparam(old_param), self.y.reparam(old_param))

    def bind(self) -> "Position2Dual[Param]":
        return Position2Dual(self.x, self.y)


@struct.dataclass
class Position2Dual(Generic[Param]):
    __eq__ = tree_equal

    x: DualNum[Param]
    y: DualNum[Param]

    @classmethod
    def constant(cls, p: Position2, n: int) -> "Position2Dual[Param]":
        return cls(DualNum.constant(p.x, n), DualNum.constant(p.y, n))

    def __add__(self, v):
        if not isinstance(v, (Vector2, Vector2Dual)):
            return NotImplemented
        return Position2Dual(self.x + v.x, self.y + v.y)

    def __sub__(self, other):
        if not isinstance(other, (Position2, Position2Dual)):
            return NotImplemented
        return Vector2Dual(self.x - other.x, self.y - other.y)

    def free(self) -> Vector2Dual[Param]:
        """Displacement of this point from the origin."""
        return Vector2Dual(self.x, self.y)

    def tangent_vec(self) -> Vector2Dual[Param]:
        return Vector2Dual(self.x.drop(1), self.y.drop(1))

    def reparam(self, old_param: DualNum[NewParam]) -> "Position2Dual[NewParam]":
        return Position2Dual(self.x.reparam(old_param), self.y.reparam(old_param))

    def value(self) -> Position2:
        return Position2(self.x.value(), self.y.value())

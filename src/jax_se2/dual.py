"""Truncated dual numbers for forward-mode differentiation in JAX.

A ``DualNum`` carries a value together with its first derivatives with respect
to a single scalar parameter. Term ``i`` of ``values`` is the ``i``-th
derivative, so ``values[..., 0]`` is the value itself. The parameter identity
is a phantom type argument (``DualNum[Time]``, ``DualNum[Arclength]``) that only
exists for static checkers; it has no runtime representation.

All operations are pure and JIT-able. The number of terms is the size of the
last array axis and is therefore static under tracing.
"""

import logging
from math import comb
from typing import Generic, Sequence, Tuple, TypeVar, Union

import jax
import jax.numpy as jnp
from flax import struct

Array = jax.Array
Scalar = Union[float, Array]

Param = TypeVar("Param")
NewParam = TypeVar("NewParam")

# value + first + second derivative
MAX_TERMS = 3

logger = logging.getLogger(__name__)


def _pack(terms: Sequence[Array], batch_shape: Tuple[int, ...] = ()) -> Array:
    """Stack per-order terms along a new trailing axis."""
    if not terms:
        return jnp.zeros(batch_shape + (0,))
    return jnp.stack(jnp.broadcast_arrays(*terms), axis=-1)


def tree_equal(a, b):
    """
    Structural equality for pytree value types.

    Two values are equal when they have the same type and tree structure and
    every leaf array is equal, so batched and dual values compare to a bool.
    """
    if type(a) is not type(b):
        return NotImplemented
    leaves_a, tree_a = jax.tree_util.tree_flatten(a)
    leaves_b, tree_b = jax.tree_util.tree_flatten(b)
    return tree_a == tree_b and all(bool(jnp.array_equal(x, y)) for x, y in zip(leaves_a, leaves_b))


def _chain(outer: Sequence[Array], inner: Array, n: int) -> Array:
    """
    Faa di Bruno's formula truncated at second order.

    Args:
        outer: derivatives f(g0), f'(g0), f''(g0) of the outer function
        inner: (..., m) terms of the inner function g
        n: number of output terms

    Returns:
        (..., n) terms of f(g(t))
    """
    if n > MAX_TERMS:
        raise ValueError(f"chain rule supports at most {MAX_TERMS} terms, got {n}")

    terms = [outer[0]]
    if n > 1:
        terms.append(outer[1] * inner[..., 1])
    if n > 2:
        terms.append(outer[2] * inner[..., 1] ** 2 + outer[1] * inner[..., 2])
    return _pack(terms[:n], inner.shape[:-1])


@struct.dataclass
class DualNum(Generic[Param]):
    """Value and derivatives of a scalar function of ``Param``."""

    values: Array  # shape (..., n)

    __eq__ = tree_equal

    # Constructors
    @classmethod
    def constant(cls, c: Scalar, n: int) -> "DualNum[Param]":
        """Lift ``c`` to ``n`` terms with every derivative set to zero."""
        if n < 1:
            raise ValueError(f"a dual number needs at least one term, got {n}")
        c = jnp.asarray(c, dtype=float)
        return cls(jnp.concatenate([c[..., None], jnp.zeros(c.shape + (n - 1,), dtype=c.dtype)], axis=-1))

    @classmethod
    def variable(cls, x0: Scalar, n: int) -> "DualNum[Param]":
        """The parameter itself, evaluated at ``x0``."""
        if n < 1:
            raise ValueError(f"a dual number needs at least one term, got {n}")
        x0 = jnp.asarray(x0, dtype=float)
        terms = [x0, jnp.ones_like(x0)] + [jnp.zeros_like(x0)] * (n - 2)
        return cls(_pack(terms[:n], x0.shape))

    @classmethod
    def from_terms(cls, terms: Sequence[Scalar], batch_shape: Tuple[int, ...] = ()) -> "DualNum[Param]":
        return cls(_pack([jnp.asarray(t, dtype=float) for t in terms], batch_shape))

    # Accessors
    @property
    def size(self) -> int:
        return self.values.shape[-1]

    def __getitem__(self, i: int) -> Array:
        return self.values[..., i]

    def value(self) -> Array:
        return self.values[..., 0]

    def drop(self, n: int) -> "DualNum[Param]":
        """Shift out the ``n`` lowest orders; term ``i`` becomes term ``i + n``."""
        return DualNum(self.values[..., n:])

    def _aligned(self, other: "DualNum") -> Tuple[Array, Array]:
        n = min(self.size, other.size)
        if self.size != other.size:
            logger.debug("truncating dual operands of %d and %d terms to %d", self.size, other.size, n)
        return self.values[..., :n], other.values[..., :n]

    def _shift(self, c: Scalar) -> Array:
        if self.size == 0:
            return self.values
        head = self.values[..., :1] + jnp.asarray(c)[..., None]
        tail = jnp.broadcast_to(self.values[..., 1:], head.shape[:-1] + (self.size - 1,))
        return jnp.concatenate([head, tail], axis=-1)

    # Arithmetic
    def __add__(self, other):
        if isinstance(other, DualNum):
            a, b = self._aligned(other)
            return DualNum(a + b)
        return DualNum(self._shift(other))

    __radd__ = __add__

    def __neg__(self) -> "DualNum[Param]":
        return DualNum(-self.values)

    def __sub__(self, other):
        if isinstance(other, DualNum):
            a, b = self._aligned(other)
            return DualNum(a - b)
        return DualNum(self._shift(-jnp.asarray(other)))

    def __rsub__(self, other):
        return (-self) + other

    def __mul__(self, other):
        if isinstance(other, DualNum):
            a, b = self._aligned(other)
            # Leibniz rule: (fg)^(k) = sum_i C(k, i) f^(i) g^(k-i)
            terms = [
                sum(comb(k, i) * a[..., i] * b[..., k - i] for i in range(k + 1))
                for k in range(a.shape[-1])
            ]
            return DualNum(_pack(terms, jnp.broadcast_shapes(a.shape[:-1], b.shape[:-1])))
        return DualNum(self.values * jnp.asarray(other)[..., None])

    __rmul__ = __mul__

    def __truediv__(self, other):
        if isinstance(other, DualNum):
            return self * other.recip()
        return DualNum(self.values / jnp.asarray(other)[..., None])

    def __rtruediv__(self, other):
        return self.recip() * other

    # Elementary functions
    def _compose(self, f0: Array, f1: Array, f2: Array) -> "DualNum[Param]":
        return DualNum(_chain([f0, f1, f2], self.values, self.size))

    def recip(self) -> "DualNum[Param]":
        x = self.values[..., 0]
        r = 1.0 / x
        return self._compose(r, -r * r, 2.0 * r * r * r)

    def sqrt(self) -> "DualNum[Param]":
        x = self.values[..., 0]
        s = jnp.sqrt(x)
        return self._compose(s, 0.5 / s, -0.25 / (s * x))

    def sin(self) -> "DualNum[Param]":
        x = self.values[..., 0]
        s, c = jnp.sin(x), jnp.cos(x)
        return self._compose(s, c, -s)

    def cos(self) -> "DualNum[Param]":
        x = self.values[..., 0]
        s, c = jnp.sin(x), jnp.cos(x)
        return self._compose(c, -s, -c)

    def reparam(self, old_param: "DualNum[NewParam]") -> "DualNum[NewParam]":
        """
        Re-express this function of P as a function of Q.

        Args:
            old_param: P written as a dual function of the new parameter Q

        Returns:
            this value with derivatives taken with respect to Q
        """
        n = min(self.size, old_param.size)
        outer = [self.values[..., i] for i in range(min(self.size, MAX_TERMS))]
        outer += [None] * (MAX_TERMS - len(outer))
        return DualNum(_chain(outer, old_param.values, n))

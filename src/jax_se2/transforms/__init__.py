"""
JAX-based SE(2) algebra for planar robotics.

This module provides JIT-compilable, differentiable implementations of:
- 2D vectors and positions (vector module)
- SO(2) rotations (so2 module)
- SE(2) rigid transforms and twists (se2 module)
- frame-local pose errors (error module)

Every type has a dual counterpart that carries up to two derivatives with
respect to a path or time parameter.
"""

from . import error, se2, so2, vector
from .error import Transform2Error, local_error
from .se2 import Transform2, Transform2Dual, Twist2, Twist2Dual, Twist2Incr
from .so2 import Rotation2, Rotation2Dual
from .vector import Position2, Position2Dual, Vector2, Vector2Dual

__all__ = [
    "error",
    "se2",
    "so2",
    "vector",
    "Position2",
    "Position2Dual",
    "Rotation2",
    "Rotation2Dual",
    "Transform2",
    "Transform2Dual",
    "Transform2Error",
    "Twist2",
    "Twist2Dual",
    "Twist2Incr",
    "Vector2",
    "Vector2Dual",
    "local_error",
]

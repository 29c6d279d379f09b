"""
JAX SE(2): differentiable planar rigid-body algebra.

This library provides SO(2)/SE(2) group operations, exponential and logarithm
maps, and dual-number variants of every type that propagate first and second
derivatives through geometric composition.
"""

import logging

import jax

logging.getLogger(__name__).addHandler(logging.NullHandler())

jax.config.update("jax_enable_x64", True)
logging.getLogger(__name__).debug("enabled jax_enable_x64")

from . import dual
from . import transforms
from .dual import DualNum

__version__ = "0.1.0"
__all__ = ["dual", "transforms", "DualNum"]

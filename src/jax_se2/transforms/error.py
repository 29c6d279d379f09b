"""Pose error for feedback control."""

from typing import Union

import jax
from flax import struct

from ..dual import tree_equal
from .se2 import Transform2
from .vector import Vector2

Array = jax.Array


@struct.dataclass
class Transform2Error:
    __eq__ = tree_equal

    trans_error: Vector2
    rot_error: Union[float, Array]


def local_error(target_pose: Transform2, actual_pose: Transform2) -> Transform2Error:
    """
    Deviation of ``target_pose`` from ``actual_pose`` in the actual frame.

    Unlike ``target_pose - actual_pose``, which mixes the two orientations,
    the translational error here is rotated purely into ``actual_pose``'s frame.

    Args:
        target_pose: desired pose
        actual_pose: measured pose

    Returns:
        Translation error in the actual frame and the wrapped heading error
    """
    trans_error_world = target_pose.translation - actual_pose.translation
    rot_error = target_pose.rotation - actual_pose.rotation
    return Transform2Error(actual_pose.rotation.inverse() * trans_error_world, rot_error)

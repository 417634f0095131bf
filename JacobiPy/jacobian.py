#!/usr/bin/env python3
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Jacobian Module - JacobiPy

Builds the geometric Jacobian of a bone chain by walking from the end
effector toward the root, one column per enabled rotation axis.

Copyright (c) 2025 JacobiPy contributors
Licensed under the GNU Affero General Public License v3.0 or later (AGPL-3.0-or-later)
"""

import logging
import numpy as np
from typing import Any, List, Union
from numpy.typing import NDArray

from . import utils

logger = logging.getLogger(__name__)

_UNIT_AXES = np.eye(3)


def jacobian_column(
    bone: Any,
    end_effector_position: NDArray[np.float64],
    axis: Union[NDArray[np.float64], List[float]],
    include_orientation: bool = True,
) -> NDArray[np.float64]:
    """
    Jacobian column for one rotation axis of one bone.

    Parameters:
        bone: Bone exposing its ``combined`` world transform.
        end_effector_position (np.ndarray): World position of the end effector.
        axis (array-like): Rotation axis in the bone's local frame.
        include_orientation (bool): Append the angular rows.

    Returns:
        np.ndarray: ``v x (p_e - p_b)`` followed by ``v`` when orientation is
        tracked, where ``v`` is the axis in world space.
    """
    p_j = utils.transform_position(bone.combined)
    v_j = utils.transform_axis(bone.combined, axis)
    linear = np.cross(v_j, np.asarray(end_effector_position, dtype=float) - p_j)
    if include_orientation:
        return np.concatenate((linear, v_j))
    return linear


def build_jacobian(
    end_effector: Any,
    n_joint_dofs: int,
    include_orientation: bool = True,
) -> NDArray[np.float64]:
    """
    Builds the m x n Jacobian of the chain ending at ``end_effector``.

    Bones are visited from the end effector toward the root; for each bone
    its enabled axes contribute columns in x, y, z order. Traversal stops
    once ``n_joint_dofs`` columns are filled or at the first missing or
    uninitialized bone. Unfilled trailing columns stay zero.

    Args:
        end_effector: Bone exposing ``combined``, ``parent``, ``initialized``
            and ``axes``.
        n_joint_dofs: Number of columns n.
        include_orientation: m = 6 when True, 3 otherwise.

    Returns:
        np.ndarray: Jacobian of shape (m, n).
    """
    m = 6 if include_orientation else 3
    J = np.zeros((m, n_joint_dofs))
    p_e = utils.transform_position(end_effector.combined)

    joint = 0
    bone = end_effector
    visited = 0
    while bone is not None and bone.initialized and joint < n_joint_dofs:
        for axis in range(3):
            if bone.axes[axis] and joint < n_joint_dofs:
                J[:, joint] = jacobian_column(bone, p_e, _UNIT_AXES[axis], include_orientation)
                joint += 1
        bone = bone.parent
        visited += 1

    logger.debug(
        "Jacobian %dx%d: %d columns filled from %d bones", m, n_joint_dofs, joint, visited
    )
    return J


__all__ = ['jacobian_column', 'build_jacobian']

#!/usr/bin/env python3
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Pose Error - JacobiPy

Residual between the desired and the current end-effector pose, the
right-hand side of every inverse solving strategy.

Copyright (c) 2025 JacobiPy contributors
Licensed under the GNU Affero General Public License v3.0 or later (AGPL-3.0-or-later)
"""

import numpy as np
from typing import Any, List, Optional, Union
from numpy.typing import NDArray

from . import utils


def compute_pose_error(
    end_effector: Any,
    target_position: Union[NDArray[np.float64], List[float]],
    target_orientation: Optional[Union[NDArray[np.float64], List[float]]] = None,
    include_orientation: bool = True,
) -> NDArray[np.float64]:
    """
    Computes deltaP, the linearized pose residual of the end effector.

    The first three entries are ``target_position - current_position``. With
    orientation tracking, the last three are the XYZ Euler increments of the
    shortest-arc rotation taking the current orientation onto the target.

    Args:
        end_effector: Bone exposing a 4x4 ``combined`` world transform.
        target_position: Desired position, shape (3,).
        target_orientation: Desired (x, y, z, w) quaternion; normalized here.
            Required when ``include_orientation`` is True.
        include_orientation: Selects m = 6 (True) or m = 3 (False).

    Returns:
        np.ndarray: Residual of length 6 or 3.
    """
    target_position = np.asarray(target_position, dtype=float)
    if target_position.shape != (3,):
        raise ValueError(
            f"Target position must be shape (3,), got {target_position.shape}"
        )

    delta_p = np.zeros(6 if include_orientation else 3)
    delta_p[:3] = target_position - utils.transform_position(end_effector.combined)

    if include_orientation:
        if target_orientation is None:
            raise ValueError("A target orientation is required when orientation is tracked.")
        current = utils.transform_orientation(end_effector.combined)
        delta_rot = utils.relative_rotation(current, target_orientation)
        delta_p[3:] = utils.quaternion_to_euler(delta_rot)

    return delta_p


__all__ = ['compute_pose_error']

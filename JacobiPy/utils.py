#!/usr/bin/env python3
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Utility Functions - JacobiPy

Small vector, transform and quaternion helpers shared by the pose error,
Jacobian and solver modules. Quaternions are scalar-last (x, y, z, w), the
convention used by scipy.spatial.transform.Rotation.

Copyright (c) 2025 JacobiPy contributors
Licensed under the GNU Affero General Public License v3.0 or later (AGPL-3.0-or-later)
"""

import numpy as np
from typing import Tuple, Union, List
from numpy.typing import NDArray
from scipy.spatial.transform import Rotation


def transform_position(T: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Extracts the world position from a homogeneous transformation matrix.

    The origin is pushed through the transform and de-homogenized, so a
    transform whose last row is scaled still yields a metric position.

    Args:
        T (np.ndarray): A 4x4 transformation matrix.

    Returns:
        np.ndarray: A 3-element position vector.
    """
    T = np.asarray(T, dtype=float)
    if T.shape != (4, 4):
        raise ValueError(f"Transform must be shape (4, 4), got {T.shape}")
    origin = T @ np.array([0.0, 0.0, 0.0, 1.0])
    return origin[:3] / origin[3]


def transform_orientation(T: NDArray[np.float64]) -> Rotation:
    """Returns the rotational part of a 4x4 transform as a scipy Rotation."""
    return Rotation.from_matrix(np.asarray(T, dtype=float)[:3, :3])


def transform_axis(T: NDArray[np.float64], axis: Union[NDArray[np.float64], List[float]]) -> NDArray[np.float64]:
    """
    Rotates a local direction into world space (w = 0, translation ignored).
    """
    direction = np.append(np.asarray(axis, dtype=float), 0.0)
    return (np.asarray(T, dtype=float) @ direction)[:3]


def normalize_quaternion(q: Union[NDArray[np.float64], List[float]]) -> NDArray[np.float64]:
    """Normalizes an (x, y, z, w) quaternion."""
    q = np.asarray(q, dtype=float)
    if q.shape != (4,):
        raise ValueError(f"Quaternion must be shape (4,), got {q.shape}")
    norm = np.linalg.norm(q)
    if norm == 0:
        raise ValueError("Cannot normalize a zero quaternion.")
    return q / norm


def relative_rotation(current: Rotation, target_quat: Union[NDArray[np.float64], List[float]]) -> NDArray[np.float64]:
    """
    Computes the shortest-arc quaternion that rotates ``current`` onto the target.

    Parameters:
        current (Rotation): Current world orientation.
        target_quat (array-like): Target orientation as an (x, y, z, w) quaternion;
            it is normalized first.

    Returns:
        np.ndarray: The (x, y, z, w) increment ``target * current^-1`` with w >= 0.
    """
    target = Rotation.from_quat(normalize_quaternion(target_quat))
    delta = (target * current.inv()).as_quat()
    # q and -q encode the same rotation; keep the short way round
    if delta[3] < 0:
        delta = -delta
    return delta


def quaternion_to_euler(q: Union[NDArray[np.float64], List[float]]) -> Tuple[float, float, float]:
    """
    Converts an (x, y, z, w) quaternion to roll-pitch-yaw (XYZ Euler angles).

    Args:
        q: Quaternion, shape (4,)

    Returns:
        (roll, pitch, yaw) in radians
    """
    x, y, z, w = normalize_quaternion(q)

    roll = np.arctan2(2.0 * (w * x + y * z), 1.0 - 2.0 * (x * x + y * y))
    # Gimbal lock clamps pitch to +-90 degrees
    pitch = np.arcsin(np.clip(2.0 * (w * y - z * x), -1.0, 1.0))
    yaw = np.arctan2(2.0 * (w * z + x * y), 1.0 - 2.0 * (y * y + z * z))

    return float(roll), float(pitch), float(yaw)


def axis_rotation(axis: int, angle: float) -> NDArray[np.float64]:
    """
    Homogeneous 4x4 rotation about a principal axis.

    Args:
        axis: 0 for x, 1 for y, 2 for z
        angle: Rotation angle in radians
    """
    T = np.eye(4)
    T[:3, :3] = Rotation.from_rotvec(angle * np.eye(3)[axis]).as_matrix()
    return T


def max_abs(vec: NDArray[np.float64], start: float = 0.0) -> float:
    """
    Largest absolute component of ``vec``, never less than ``start``.
    """
    vec = np.asarray(vec, dtype=float)
    if vec.size == 0:
        return float(start)
    return float(max(start, np.max(np.abs(vec))))


def clamp_max_abs(vec: NDArray[np.float64], gamma: float) -> NDArray[np.float64]:
    """
    Scales a vector down so its largest absolute component equals ``gamma``.

    Vectors already within the bound are returned unchanged. A zero bound
    yields a zero vector.

    Parameters:
        vec (np.ndarray): Vector to clamp.
        gamma (float): Maximum allowed absolute component (>= 0).

    Returns:
        np.ndarray: The clamped vector.
    """
    vec = np.asarray(vec, dtype=float)
    peak = max_abs(vec, gamma)
    if peak == 0:
        return np.zeros_like(vec)
    if peak != gamma:
        return vec / peak * gamma
    return vec.copy()


__all__ = [
    'transform_position',
    'transform_orientation',
    'transform_axis',
    'normalize_quaternion',
    'relative_rotation',
    'quaternion_to_euler',
    'axis_rotation',
    'max_abs',
    'clamp_max_abs',
]

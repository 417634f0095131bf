#!/usr/bin/env python3
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Skeleton Module - JacobiPy

A minimal bone hierarchy exposing what the Jacobian solver consumes from a
skeleton: a combined world transform, a parent link, an ``initialized`` flag
marking the end of the valid chain, and a mask of enabled rotation axes.

Host applications with their own skeleton only need to provide objects with
the same four attributes; this module exists so the solver can be driven and
tested on its own.

Copyright (c) 2025 JacobiPy contributors
Licensed under the GNU Affero General Public License v3.0 or later (AGPL-3.0-or-later)
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple, Union
from numpy.typing import NDArray

from . import utils


@dataclass(eq=False)
class BoneNode:
    """
    One joint of a kinematic chain.

    Attributes:
        name: Bone name (diagnostics only).
        local: 4x4 rest transform relative to the parent bone.
        parent: Parent bone, or None. A parent with ``initialized=False``
            acts as the root sentinel that terminates chain traversal.
        axes: Enabled rotation axes (x, y, z).
        angles: Current joint angle about each axis, radians.
        initialized: False only for the root sentinel.
        combined: World transform, refreshed by :func:`update_combined`.
    """

    name: str = "bone"
    local: NDArray[np.float64] = field(default_factory=lambda: np.eye(4))
    parent: Optional["BoneNode"] = None
    axes: Tuple[bool, bool, bool] = (False, False, False)
    angles: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    initialized: bool = True
    combined: NDArray[np.float64] = field(default_factory=lambda: np.eye(4))

    def __post_init__(self):
        self.local = np.asarray(self.local, dtype=np.float64)
        self.angles = np.asarray(self.angles, dtype=np.float64)
        self.combined = np.asarray(self.combined, dtype=np.float64)
        self.axes = tuple(bool(a) for a in self.axes)
        if self.local.shape != (4, 4):
            raise ValueError(f"Local transform must be shape (4, 4), got {self.local.shape}")
        if self.angles.shape != (3,):
            raise ValueError(f"Angles must be shape (3,), got {self.angles.shape}")
        if len(self.axes) != 3:
            raise ValueError(f"Axis mask must have 3 entries, got {len(self.axes)}")

    @property
    def position(self) -> NDArray[np.float64]:
        return utils.transform_position(self.combined)

    def rotation_matrix(self) -> NDArray[np.float64]:
        """Joint rotation, x then y then z, over the enabled axes only."""
        R = np.eye(4)
        for axis in range(3):
            if self.axes[axis]:
                R = R @ utils.axis_rotation(axis, self.angles[axis])
        return R


def iter_chain(end_effector: BoneNode, max_bones: Optional[int] = None) -> Iterator[BoneNode]:
    """
    Walks from the end effector toward the root.

    Stops at the first missing or uninitialized bone, or after ``max_bones``
    bones when given.
    """
    bone = end_effector
    count = 0
    while bone is not None and bone.initialized:
        if max_bones is not None and count >= max_bones:
            return
        yield bone
        count += 1
        bone = bone.parent


def update_combined(bone: BoneNode) -> NDArray[np.float64]:
    """
    Recomputes ``bone.combined`` from its parent's combined transform.

    Only this bone is updated; callers refreshing a whole chain go root to tip.
    """
    parent_combined = bone.parent.combined if bone.parent is not None else np.eye(4)
    bone.combined = parent_combined @ bone.local @ bone.rotation_matrix()
    return bone.combined


def refresh_chain(end_effector: BoneNode) -> None:
    """Recomputes every combined transform on the path root -> end effector."""
    for bone in reversed(list(iter_chain(end_effector))):
        update_combined(bone)


def build_chain(
    offsets: Sequence[Union[NDArray[np.float64], List[float]]],
    axes: Sequence[Tuple[bool, bool, bool]],
    names: Optional[Sequence[str]] = None,
) -> List[BoneNode]:
    """
    Builds a serial chain hanging off a root sentinel.

    Args:
        offsets: Translation of each bone relative to its parent.
        axes: Enabled (x, y, z) rotation axes for each bone.
        names: Optional bone names.

    Returns:
        The bones ordered root to tip; the last one is the natural end effector.

    Example:
        >>> bones = build_chain([[0, 0, 0], [1, 0, 0]], [(False, False, True), (False, False, False)])
        >>> bones[-1].position
        array([1., 0., 0.])
    """
    if len(offsets) != len(axes):
        raise ValueError(
            f"Got {len(offsets)} offsets but {len(axes)} axis masks."
        )
    if names is not None and len(names) != len(offsets):
        raise ValueError(f"Got {len(names)} names for {len(offsets)} bones.")

    root = BoneNode(name="root", initialized=False)
    bones: List[BoneNode] = []
    parent = root
    for i, (offset, mask) in enumerate(zip(offsets, axes)):
        local = np.eye(4)
        local[:3, 3] = np.asarray(offset, dtype=float)
        name = names[i] if names is not None else f"bone_{i}"
        bone = BoneNode(name=name, local=local, parent=parent, axes=mask)
        update_combined(bone)
        bones.append(bone)
        parent = bone
    return bones


def chain_dofs(end_effector: BoneNode) -> int:
    """Number of enabled rotation axes between the end effector and the root."""
    return sum(sum(bone.axes) for bone in iter_chain(end_effector))


def apply_joint_deltas(
    end_effector: BoneNode,
    delta_theta: Union[NDArray[np.float64], List[float]],
) -> int:
    """
    Adds a joint delta vector to the bone angles and refreshes the chain.

    Entries are consumed in Jacobian column order: end effector first, x then
    y then z per bone, then the parent. Entries beyond the chain are ignored.

    Returns:
        int: Number of entries applied.
    """
    delta_theta = np.asarray(delta_theta, dtype=float)
    joint = 0
    for bone in iter_chain(end_effector):
        if joint >= len(delta_theta):
            break
        for axis in range(3):
            if bone.axes[axis] and joint < len(delta_theta):
                bone.angles[axis] += delta_theta[joint]
                joint += 1
    refresh_chain(end_effector)
    return joint


__all__ = [
    'BoneNode',
    'iter_chain',
    'update_combined',
    'refresh_chain',
    'build_chain',
    'chain_dofs',
    'apply_joint_deltas',
]

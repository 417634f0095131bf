#!/usr/bin/env python3
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Jacobian IK Solver - JacobiPy

Facade tying together the pose error, the Jacobian builder, the SVD adapter
and the inverse solving strategies. One call computes the joint update that
moves an end effector toward a target pose; the iterative driver repeats that
step on a bone chain until the residual is small.

An instance keeps the last residual norm and the last decomposition for
inspection only. Strategies never read them, but concurrent calls on one
instance still race on those attributes; use one solver per thread.

Copyright (c) 2025 JacobiPy contributors
Licensed under the GNU Affero General Public License v3.0 or later (AGPL-3.0-or-later)
"""

import dataclasses
import logging
import numpy as np
from typing import Any, List, Optional, Tuple, Union
from numpy.typing import NDArray

from .config import SolverConfig
from .jacobian import build_jacobian
from .pose_error import compute_pose_error
from .skeleton import apply_joint_deltas
from .strategies import IKMode, solve_delta_theta
from .svd import SVDDecomposition, compute_svd

logger = logging.getLogger(__name__)


class JacobianIKSolver:
    """
    Computes joint-angle updates for a bone chain from its Jacobian.

    Example:
        >>> from JacobiPy import JacobianIKSolver, IKMode, build_chain
        >>> bones = build_chain([[0, 0, 0], [1, 0, 0], [1, 0, 0]],
        ...                     [(False, False, True), (False, False, True), (False, False, False)])
        >>> solver = JacobianIKSolver(n_joint_dofs=2, include_orientation=False)
        >>> delta = solver.compute_delta_theta(bones[-1], [1.0, 1.0, 0.0], mode=IKMode.DLS)
        >>> solver.get_error()
        1.4142135623730951
    """

    def __init__(self, config: Optional[SolverConfig] = None, **overrides: Any) -> None:
        """
        Args:
            config: Dimensions and damping constants. Defaults to SolverConfig().
            **overrides: SolverConfig fields replacing those of ``config``.
        """
        if config is None:
            config = SolverConfig(**overrides)
        elif overrides:
            config = dataclasses.replace(config, **overrides)
        self.config = config

        self.error: Optional[float] = None
        self.last_pose_error: Optional[NDArray[np.float64]] = None
        self.last_jacobian: Optional[NDArray[np.float64]] = None
        self.last_decomposition: Optional[SVDDecomposition] = None

    @property
    def n_joint_dofs(self) -> int:
        return self.config.n_joint_dofs

    @property
    def include_orientation(self) -> bool:
        return self.config.include_orientation

    def compute_delta_theta(
        self,
        end_effector: Any,
        target_position: Union[NDArray[np.float64], List[float]],
        target_orientation: Optional[Union[NDArray[np.float64], List[float]]] = None,
        mode: Union[IKMode, int, str] = IKMode.TRANSPOSE,
    ) -> NDArray[np.float64]:
        """
        Joint update moving ``end_effector`` toward the target pose.

        Args:
            end_effector: Bone exposing ``combined``, ``parent``,
                ``initialized`` and ``axes``.
            target_position: Desired world position, shape (3,).
            target_orientation: Desired (x, y, z, w) quaternion. Required when
                the solver tracks orientation, ignored otherwise.
            mode: IKMode, integer code 0-5 or mode name.

        Returns:
            np.ndarray: deltaTheta of length ``n_joint_dofs`` in Jacobian
            column order.

        Raises:
            SVDReconstructionError: If an SVD based mode gets a defective
                decomposition. No partial result is returned.
        """
        mode = IKMode.coerce(mode)
        delta_p = compute_pose_error(
            end_effector,
            target_position,
            target_orientation,
            include_orientation=self.include_orientation,
        )
        jacobian = build_jacobian(
            end_effector, self.n_joint_dofs, include_orientation=self.include_orientation
        )

        self.error = float(np.linalg.norm(delta_p))
        self.last_pose_error = delta_p
        self.last_jacobian = jacobian

        decomposition = None
        if mode.uses_svd:
            decomposition = compute_svd(jacobian, self.config.svd_tolerance)
        self.last_decomposition = decomposition

        logger.debug("Solving with %s, residual norm %.6g", mode.name, self.error)
        return solve_delta_theta(jacobian, delta_p, mode, self.config, decomposition)

    def get_error(self) -> float:
        """
        Norm of the last residual, or ``inf`` before the first solve so an
        unsolved instance never looks converged.
        """
        return self.error if self.error is not None else float("inf")

    def iterative_inverse_kinematics(
        self,
        end_effector: Any,
        target_position: Union[NDArray[np.float64], List[float]],
        target_orientation: Optional[Union[NDArray[np.float64], List[float]]] = None,
        mode: Union[IKMode, int, str] = IKMode.DLS,
        max_iterations: int = 100,
        tolerance: float = 1e-4,
        plot_residuals: bool = False,
        png_name: str = "ik_residuals.png",
    ) -> Tuple[bool, int, List[float]]:
        """
        Repeats solve-and-apply steps on a :class:`~JacobiPy.skeleton.BoneNode`
        chain until the residual norm drops below ``tolerance``.

        Bone angles are modified in place through
        :func:`~JacobiPy.skeleton.apply_joint_deltas`.

        Returns:
            Tuple of (success, iterations, residuals)
            - success: True if the residual norm fell below ``tolerance``
            - iterations: Number of solves performed
            - residuals: Residual norm measured at each solve
        """
        if max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")
        if tolerance <= 0:
            raise ValueError("tolerance must be > 0")

        mode = IKMode.coerce(mode)
        logger.info(
            "Iterative IK: mode=%s, max_iterations=%d, tolerance=%g",
            mode.name, max_iterations, tolerance,
        )

        residuals: List[float] = []
        success = False
        for _ in range(max_iterations):
            delta_theta = self.compute_delta_theta(
                end_effector, target_position, target_orientation, mode
            )
            residuals.append(self.get_error())
            if self.get_error() < tolerance:
                success = True
                break
            apply_joint_deltas(end_effector, delta_theta)

        if success:
            logger.info(
                "Iterative IK converged after %d iterations, error %.3g",
                len(residuals), residuals[-1],
            )
        else:
            logger.warning(
                "Iterative IK stopped after %d iterations, error %.3g",
                len(residuals), residuals[-1],
            )

        if plot_residuals:
            from JacobiPy import require_feature

            require_feature("plotting")
            import matplotlib
            matplotlib.use("Agg")
            import matplotlib.pyplot as plt

            fig, ax = plt.subplots()
            ax.plot(np.arange(len(residuals)), residuals, label=f"{mode.name} residual")
            ax.set_xlabel("Iteration"); ax.set_ylabel("Norm")
            ax.set_yscale("log")
            ax.set_title("IK convergence")
            ax.legend(); ax.grid(True); fig.tight_layout()
            fig.savefig(png_name, dpi=200)
            plt.close(fig)
            logger.info("Residual plot saved to %s", png_name)

        return success, len(residuals), residuals


__all__ = ['JacobianIKSolver']

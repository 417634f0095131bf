#!/usr/bin/env python3
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Solver configuration - JacobiPy

Copyright (c) 2025 JacobiPy contributors
Licensed under the GNU Affero General Public License v3.0 or later (AGPL-3.0-or-later)
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SolverConfig:
    """Dimensions and damping constants for the Jacobian IK solver."""

    n_joint_dofs: int = 6  # Jacobian columns (n)
    include_orientation: bool = True  # m = 6 when True, 3 otherwise
    lambda_pseudo_inverse: float = 0.0  # Undamped; unstable near singularities
    lambda_dls: float = 0.18
    lambda_svd: float = 0.112  # Fraction of the largest singular value, 0 to 1
    lambda_dls_with_svd: float = 0.18
    lambda_sdls: float = 0.7853981634  # 45 degrees
    svd_tolerance: float = 1e-4  # Relative reconstruction tolerance

    def __post_init__(self):
        if int(self.n_joint_dofs) != self.n_joint_dofs or self.n_joint_dofs < 1:
            raise ValueError("n_joint_dofs must be an integer >= 1")
        for name in (
            "lambda_pseudo_inverse",
            "lambda_dls",
            "lambda_svd",
            "lambda_dls_with_svd",
            "lambda_sdls",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if self.lambda_svd > 1:
            raise ValueError("lambda_svd must be <= 1")
        if self.svd_tolerance <= 0:
            raise ValueError("svd_tolerance must be > 0")

    @property
    def n_task_dofs(self) -> int:
        """Residual length m."""
        return 6 if self.include_orientation else 3

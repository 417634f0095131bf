#!/usr/bin/env python3
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Inverse Solving Strategies - JacobiPy

Six ways of turning a Jacobian J (m x n) and a pose residual deltaP (m,)
into a joint update deltaTheta (n,):

1. Transpose            - J^T deltaP, cheapest, default fallback
2. Pseudo-inverse       - undamped (Moore-Penrose), unstable near singularities
3. DLS                  - damped least squares, fixed lambda
4. SVD                  - truncates singular values below a fraction of the largest
5. DLS with SVD         - per singular value Tikhonov damping
6. SDLS                 - selectively damped least squares, clamps each
                          singular direction's joint step separately

Every strategy is a plain function with the same (J, deltaP) -> deltaTheta
contract; :func:`solve_delta_theta` dispatches on :class:`IKMode`.

Copyright (c) 2025 JacobiPy contributors
Licensed under the GNU Affero General Public License v3.0 or later (AGPL-3.0-or-later)
"""

import numpy as np
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union
from numpy.typing import NDArray

from .config import SolverConfig
from .svd import SVDDecomposition, compute_svd
from .utils import clamp_max_abs, max_abs


class IKMode(Enum):
    """Inverse solving strategy; values are the historical integer mode codes."""

    TRANSPOSE = 0
    PSEUDO_INVERSE = 1
    DLS = 2
    SVD = 3
    DLS_WITH_SVD = 4
    SDLS = 5

    @property
    def uses_svd(self) -> bool:
        return self in (IKMode.SVD, IKMode.DLS_WITH_SVD, IKMode.SDLS)

    @classmethod
    def coerce(cls, mode: Union["IKMode", int, str, None]) -> "IKMode":
        """
        Resolves an IKMode, integer code or name.

        Unknown integer codes select the transpose default; unknown names
        raise ValueError.
        """
        if mode is None:
            return cls.TRANSPOSE
        if isinstance(mode, cls):
            return mode
        if isinstance(mode, str):
            key = mode.strip().lower().replace("-", "_").replace("+", "_with_").replace(" ", "_")
            if key == "default":
                return cls.TRANSPOSE
            for member in cls:
                if member.name.lower() == key:
                    return member
            raise ValueError(
                f"Unknown IK mode '{mode}'. Choose one of {[m.name.lower() for m in cls]}."
            )
        if isinstance(mode, (int, np.integer)) and not isinstance(mode, bool):
            try:
                return cls(int(mode))
            except ValueError:
                return cls.TRANSPOSE
        raise ValueError(f"Invalid IK mode {mode!r}.")


def _check_inputs(
    jacobian: NDArray[np.float64], delta_p: NDArray[np.float64]
) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    jacobian = np.asarray(jacobian, dtype=np.float64)
    delta_p = np.asarray(delta_p, dtype=np.float64)
    if jacobian.ndim != 2:
        raise ValueError(f"Jacobian must be 2-D, got shape {jacobian.shape}")
    if delta_p.shape != (jacobian.shape[0],):
        raise ValueError(
            f"Pose error must be shape ({jacobian.shape[0]},), got {delta_p.shape}"
        )
    return jacobian, delta_p


def damped_pseudo_inverse(jacobian: NDArray[np.float64], lam: float = 0.0) -> NDArray[np.float64]:
    """
    Damped pseudo-inverse of an m x n Jacobian.

    For m <= n the left form (J^T J + lam^2 I)^-1 J^T is used, otherwise the
    right form J^T (J J^T + lam^2 I)^-1. With lam == 0 both forms reduce to
    the Moore-Penrose inverse, computed directly; it is not regularized and
    blows up near singular configurations.

    Parameters:
        jacobian (np.ndarray): Matrix of shape (m, n).
        lam (float): Damping factor lambda.

    Returns:
        np.ndarray: Matrix of shape (n, m).
    """
    J = np.asarray(jacobian, dtype=np.float64)
    m, n = J.shape
    if lam == 0:
        return np.linalg.pinv(J)
    if m <= n:
        return np.linalg.solve(J.T @ J + lam**2 * np.eye(n), J.T)
    # A = J J^T + lam^2 I is symmetric, so J^T A^-1 = (A^-1 J)^T
    return np.linalg.solve(J @ J.T + lam**2 * np.eye(m), J).T


def delta_theta_by_transpose(
    jacobian: NDArray[np.float64],
    delta_p: NDArray[np.float64],
    config: Optional[SolverConfig] = None,
    decomposition: Optional[SVDDecomposition] = None,
) -> NDArray[np.float64]:
    """Jacobian transpose: J^T deltaP."""
    J, delta_p = _check_inputs(jacobian, delta_p)
    return J.T @ delta_p


def delta_theta_by_pseudo_inverse(
    jacobian: NDArray[np.float64],
    delta_p: NDArray[np.float64],
    config: Optional[SolverConfig] = None,
    decomposition: Optional[SVDDecomposition] = None,
) -> NDArray[np.float64]:
    """Undamped pseudo-inverse (lambda = 0); unstable near singular configurations."""
    config = config or SolverConfig()
    J, delta_p = _check_inputs(jacobian, delta_p)
    return damped_pseudo_inverse(J, config.lambda_pseudo_inverse) @ delta_p


def delta_theta_by_dls(
    jacobian: NDArray[np.float64],
    delta_p: NDArray[np.float64],
    config: Optional[SolverConfig] = None,
    decomposition: Optional[SVDDecomposition] = None,
) -> NDArray[np.float64]:
    """Damped least squares with ``config.lambda_dls``."""
    config = config or SolverConfig()
    J, delta_p = _check_inputs(jacobian, delta_p)
    return damped_pseudo_inverse(J, config.lambda_dls) @ delta_p


def delta_theta_by_svd(
    jacobian: NDArray[np.float64],
    delta_p: NDArray[np.float64],
    config: Optional[SolverConfig] = None,
    decomposition: Optional[SVDDecomposition] = None,
) -> NDArray[np.float64]:
    """
    Truncated SVD inverse: V D U^T deltaP.

    D holds 1/sigma_i where |sigma_i| exceeds ``lambda_svd`` times the largest
    singular value and 0 elsewhere.
    """
    config = config or SolverConfig()
    J, delta_p = _check_inputs(jacobian, delta_p)
    U, s, V = decomposition or compute_svd(J, config.svd_tolerance)
    m, n = J.shape

    threshold = config.lambda_svd * max_abs(s)
    D = np.zeros((n, m))
    for i in range(min(m, n)):
        D[i, i] = 1.0 / s[i] if abs(s[i]) > threshold else 0.0

    return V @ D @ U.T @ delta_p


def delta_theta_by_dls_with_svd(
    jacobian: NDArray[np.float64],
    delta_p: NDArray[np.float64],
    config: Optional[SolverConfig] = None,
    decomposition: Optional[SVDDecomposition] = None,
) -> NDArray[np.float64]:
    """
    Damped least squares through the SVD: V E U^T deltaP with
    E_ii = sigma_i / (sigma_i^2 + lambda^2).
    """
    config = config or SolverConfig()
    J, delta_p = _check_inputs(jacobian, delta_p)
    U, s, V = decomposition or compute_svd(J, config.svd_tolerance)
    m, n = J.shape

    lam_sq = config.lambda_dls_with_svd**2
    E = np.zeros((n, m))
    for i in range(min(m, n)):
        denominator = s[i] ** 2 + lam_sq
        E[i, i] = s[i] / denominator if denominator != 0 else 0.0

    return V @ E @ U.T @ delta_p


def sdls_contributions(
    jacobian: NDArray[np.float64],
    delta_p: NDArray[np.float64],
    decomposition: SVDDecomposition,
    lambda_sdls: float,
) -> List[Tuple[NDArray[np.float64], float]]:
    """
    Per singular direction joint steps of selectively damped least squares.

    For each i < min(m, n):

    - ``alpha_i = u_i . deltaP``
    - ``w_i = 1 / sigma_i``, 0 for a singular value at numerical zero
    - ``M_i = w_i * sum_l sum_j |V[j, i]| * |J[l, j]|`` over the leading
      rows l < m // 3
    - ``gamma_i = lambda_sdls * min(1, 1 / M_i)`` (0 when M_i is 0)
    - step ``w_i * alpha_i * v_i`` scaled so its largest entry is at most gamma_i

    Returns:
        list: ``(step, gamma_i)`` pairs in singular value order.
    """
    J, delta_p = _check_inputs(jacobian, delta_p)
    U, s, V = decomposition
    m, n = J.shape

    # Same cutoff numpy.linalg.matrix_rank uses
    zero_tolerance = max_abs(s) * max(m, n) * np.finfo(np.float64).eps

    contributions = []
    for i in range(min(m, n)):
        u_i = U[:, i]
        v_i = V[:, i]

        alpha_i = float(u_i @ delta_p)
        omega_inverse_i = 1.0 / s[i] if abs(s[i]) > zero_tolerance else 0.0

        M_i = 0.0
        for l in range(m // 3):
            M_i += float(np.sum(np.abs(v_i) * np.abs(J[l, :])))
        M_i *= omega_inverse_i

        gamma_i = abs(1.0 / M_i) if M_i != 0 else 0.0
        gamma_i = min(gamma_i, 1.0) * lambda_sdls

        step = clamp_max_abs(omega_inverse_i * alpha_i * v_i, gamma_i)
        contributions.append((step, gamma_i))

    return contributions


def delta_theta_by_sdls(
    jacobian: NDArray[np.float64],
    delta_p: NDArray[np.float64],
    config: Optional[SolverConfig] = None,
    decomposition: Optional[SVDDecomposition] = None,
) -> NDArray[np.float64]:
    """Selectively damped least squares; sum of :func:`sdls_contributions`."""
    config = config or SolverConfig()
    J, delta_p = _check_inputs(jacobian, delta_p)
    decomposition = decomposition or compute_svd(J, config.svd_tolerance)

    theta = np.zeros(J.shape[1])
    for step, _ in sdls_contributions(J, delta_p, decomposition, config.lambda_sdls):
        theta += step
    return theta


STRATEGIES: Dict[IKMode, Callable[..., NDArray[np.float64]]] = {
    IKMode.TRANSPOSE: delta_theta_by_transpose,
    IKMode.PSEUDO_INVERSE: delta_theta_by_pseudo_inverse,
    IKMode.DLS: delta_theta_by_dls,
    IKMode.SVD: delta_theta_by_svd,
    IKMode.DLS_WITH_SVD: delta_theta_by_dls_with_svd,
    IKMode.SDLS: delta_theta_by_sdls,
}


def solve_delta_theta(
    jacobian: NDArray[np.float64],
    delta_p: NDArray[np.float64],
    mode: Union[IKMode, int, str] = IKMode.TRANSPOSE,
    config: Optional[SolverConfig] = None,
    decomposition: Optional[SVDDecomposition] = None,
) -> NDArray[np.float64]:
    """
    Dispatches to the strategy selected by ``mode``.

    Args:
        jacobian: Matrix of shape (m, n).
        delta_p: Pose residual of shape (m,).
        mode: IKMode, integer code or name.
        config: Damping constants (defaults when None).
        decomposition: Precomputed SVD of ``jacobian`` for the SVD based
            modes; computed here when omitted.

    Returns:
        np.ndarray: Joint update of shape (n,).
    """
    mode = IKMode.coerce(mode)
    config = config or SolverConfig()
    if mode.uses_svd and decomposition is None:
        decomposition = compute_svd(jacobian, config.svd_tolerance)
    return STRATEGIES[mode](jacobian, delta_p, config, decomposition)


__all__ = [
    'IKMode',
    'STRATEGIES',
    'damped_pseudo_inverse',
    'delta_theta_by_transpose',
    'delta_theta_by_pseudo_inverse',
    'delta_theta_by_dls',
    'delta_theta_by_svd',
    'delta_theta_by_dls_with_svd',
    'sdls_contributions',
    'delta_theta_by_sdls',
    'solve_delta_theta',
]

#!/usr/bin/env python3
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
SVD Module - JacobiPy

Wraps scipy's dense singular value decomposition for the Jacobian and
verifies the factors before any strategy consumes them.

Copyright (c) 2025 JacobiPy contributors
Licensed under the GNU Affero General Public License v3.0 or later (AGPL-3.0-or-later)
"""

import logging
import numpy as np
from typing import NamedTuple
from numpy.typing import NDArray
from scipy import linalg

logger = logging.getLogger(__name__)


class SVDReconstructionError(RuntimeError):
    """Raised when U diag(s) V^T does not reproduce the decomposed matrix."""


class SVDDecomposition(NamedTuple):
    """
    Full SVD of an m x n matrix, J = U diag(singular_values) V^T.

    U is (m, m), singular_values has length min(m, n) in descending order,
    V is (n, n) and holds the right singular vectors as columns.
    """

    U: NDArray[np.float64]
    singular_values: NDArray[np.float64]
    V: NDArray[np.float64]

    def reconstruct(self) -> NDArray[np.float64]:
        """Rebuilds the m x n matrix from the factors."""
        m = self.U.shape[0]
        n = self.V.shape[0]
        S = np.zeros((m, n))
        k = len(self.singular_values)
        S[:k, :k] = np.diag(self.singular_values)
        return self.U @ S @ self.V.T


def check_svd(
    J: NDArray[np.float64],
    decomposition: SVDDecomposition,
    tolerance: float = 1e-4,
) -> bool:
    """
    Checks that the factors reproduce ``J`` within a relative tolerance.

    The residual is measured in the Frobenius norm and compared against
    ``tolerance * max(1, ||J||)`` so an all-zero Jacobian is still checked
    against an absolute bound.
    """
    J = np.asarray(J, dtype=float)
    m, n = J.shape
    U, s, V = decomposition
    if U.shape != (m, m) or V.shape != (n, n) or s.shape != (min(m, n),):
        return False
    if not (np.all(np.isfinite(U)) and np.all(np.isfinite(s)) and np.all(np.isfinite(V))):
        return False
    residual = np.linalg.norm(decomposition.reconstruct() - J)
    return bool(residual <= tolerance * max(1.0, np.linalg.norm(J)))


def compute_svd(J: NDArray[np.float64], tolerance: float = 1e-4) -> SVDDecomposition:
    """
    Decomposes the Jacobian and validates the result.

    Args:
        J: Jacobian of shape (m, n).
        tolerance: Relative reconstruction tolerance passed to :func:`check_svd`.

    Returns:
        SVDDecomposition: Fresh factors for this matrix; nothing is cached.

    Raises:
        SVDReconstructionError: If the factors do not reproduce ``J``.
    """
    J = np.asarray(J, dtype=np.float64)
    if J.ndim != 2:
        raise ValueError(f"Jacobian must be 2-D, got shape {J.shape}")

    U, s, Vh = linalg.svd(J, full_matrices=True)
    decomposition = SVDDecomposition(U=U, singular_values=s, V=Vh.T)

    if not check_svd(J, decomposition, tolerance):
        raise SVDReconstructionError(
            f"SVD of {J.shape[0]}x{J.shape[1]} Jacobian failed the reconstruction check."
        )

    logger.debug("Singular values: %s", s)
    return decomposition


__all__ = ['SVDDecomposition', 'SVDReconstructionError', 'check_svd', 'compute_svd']

#!/usr/bin/env python3
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
JacobiPy Package

Jacobian-based inverse kinematics for chains of rotational joints: pose
residuals, Jacobian construction, a validated SVD adapter and six inverse
solving strategies (transpose, pseudo-inverse, DLS, truncated SVD, DLS with
SVD and selectively damped least squares).

License: GNU Affero General Public License v3.0 or later (AGPL-3.0-or-later)
Copyright (c) 2025 JacobiPy contributors
"""

import logging
import platform
import sys
from typing import Dict, List

# Package metadata
__version__ = "0.3.0"
__author__ = "JacobiPy contributors"
__license__ = "AGPL-3.0-or-later"

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Dependency availability tracking
_available_features = {
    'core': True,        # numpy, scipy
    'plotting': False,   # residual plots (matplotlib)
}

# Track missing dependencies for helpful error messages
_missing_dependencies = {}


def _check_dependency(module_name: str, package_name: str = None, feature: str = None) -> bool:
    """
    Check if a dependency is available and track missing ones.

    Args:
        module_name: Name of the module to import
        package_name: Name of the package to install (if different from module)
        feature: Feature category this dependency belongs to

    Returns:
        bool: True if dependency is available, False otherwise
    """
    try:
        __import__(module_name)
        return True
    except ImportError as e:
        if package_name is None:
            package_name = module_name

        if feature:
            _missing_dependencies.setdefault(feature, []).append({
                'module': module_name,
                'package': package_name,
                'error': str(e),
            })

        return False


# Check core dependencies (should always be available)
try:
    import numpy as np
    import scipy
except ImportError as e:
    _available_features['core'] = False
    raise ImportError(f"Core dependencies missing: {e}. Please reinstall JacobiPy.")

_available_features['plotting'] = _check_dependency('matplotlib', 'matplotlib', 'plotting')

# ---------------------------------------------------------------------
# Core modules
# ---------------------------------------------------------------------
from JacobiPy import utils, skeleton, config, pose_error, jacobian, svd, strategies, solver
from JacobiPy.config import SolverConfig
from JacobiPy.skeleton import BoneNode, build_chain, apply_joint_deltas, chain_dofs
from JacobiPy.pose_error import compute_pose_error
from JacobiPy.jacobian import build_jacobian, jacobian_column
from JacobiPy.svd import SVDDecomposition, SVDReconstructionError, compute_svd, check_svd
from JacobiPy.strategies import IKMode, damped_pseudo_inverse, solve_delta_theta
from JacobiPy.solver import JacobianIKSolver

# ---------------------------------------------------------------------
# Helper functions for users
# ---------------------------------------------------------------------

def get_available_features() -> List[str]:
    """Get list of available feature categories."""
    return [feature for feature, available in _available_features.items() if available]


def get_missing_features() -> List[str]:
    """Get list of missing feature categories."""
    return [feature for feature, available in _available_features.items() if not available]


def require_feature(feature: str) -> None:
    """
    Raise an error if a required feature is not available.

    Args:
        feature: Feature name to check

    Raises:
        ValueError: If the feature name is unknown
        ImportError: If the feature is not available
    """
    if feature not in _available_features:
        raise ValueError(f"Unknown feature: {feature}")

    if not _available_features[feature]:
        missing_deps = _missing_dependencies.get(feature, [])
        dep_list = ", ".join([dep['package'] for dep in missing_deps])
        raise ImportError(
            f"Feature '{feature}' not available. Missing dependencies: {dep_list}. "
            f"Install with: pip install {dep_list}"
        )


def get_system_info() -> Dict[str, str]:
    """Get system information relevant to JacobiPy."""
    info = {
        'python_version': f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        'platform': platform.system(),
        'architecture': platform.machine(),
        'jacobipy_version': __version__,
        'numpy_version': np.__version__,
        'scipy_version': scipy.__version__,
    }
    if _available_features['plotting']:
        import matplotlib
        info['matplotlib_version'] = matplotlib.__version__
    return info


__all__ = [
    # Modules
    "utils",
    "skeleton",
    "config",
    "pose_error",
    "jacobian",
    "svd",
    "strategies",
    "solver",

    # Main API
    "SolverConfig",
    "BoneNode",
    "build_chain",
    "apply_joint_deltas",
    "chain_dofs",
    "compute_pose_error",
    "build_jacobian",
    "jacobian_column",
    "SVDDecomposition",
    "SVDReconstructionError",
    "compute_svd",
    "check_svd",
    "IKMode",
    "damped_pseudo_inverse",
    "solve_delta_theta",
    "JacobianIKSolver",

    # Feature availability functions
    "get_available_features",
    "get_missing_features",
    "require_feature",
    "get_system_info",
]

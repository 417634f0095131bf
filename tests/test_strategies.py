#!/usr/bin/env python3

"""
Inverse Solving Strategy Tests - JacobiPy

Copyright (c) 2025 JacobiPy contributors
Licensed under the GNU Affero General Public License v3.0 or later (AGPL-3.0-or-later)
"""

import unittest
import numpy as np

from JacobiPy.config import SolverConfig
from JacobiPy.jacobian import build_jacobian
from JacobiPy.skeleton import build_chain
from JacobiPy.strategies import (
    IKMode,
    STRATEGIES,
    damped_pseudo_inverse,
    delta_theta_by_dls,
    delta_theta_by_dls_with_svd,
    delta_theta_by_pseudo_inverse,
    delta_theta_by_sdls,
    delta_theta_by_svd,
    delta_theta_by_transpose,
    sdls_contributions,
    solve_delta_theta,
)
from JacobiPy.svd import compute_svd


class TestIKMode(unittest.TestCase):

    def test_integer_codes(self):
        self.assertEqual(IKMode.coerce(0), IKMode.TRANSPOSE)
        self.assertEqual(IKMode.coerce(1), IKMode.PSEUDO_INVERSE)
        self.assertEqual(IKMode.coerce(2), IKMode.DLS)
        self.assertEqual(IKMode.coerce(3), IKMode.SVD)
        self.assertEqual(IKMode.coerce(4), IKMode.DLS_WITH_SVD)
        self.assertEqual(IKMode.coerce(np.int64(5)), IKMode.SDLS)

    def test_unknown_integer_falls_back_to_transpose(self):
        self.assertEqual(IKMode.coerce(42), IKMode.TRANSPOSE)
        self.assertEqual(IKMode.coerce(-1), IKMode.TRANSPOSE)

    def test_names(self):
        self.assertEqual(IKMode.coerce("default"), IKMode.TRANSPOSE)
        self.assertEqual(IKMode.coerce("DLS+SVD"), IKMode.DLS_WITH_SVD)
        self.assertEqual(IKMode.coerce("pseudo-inverse"), IKMode.PSEUDO_INVERSE)
        self.assertEqual(IKMode.coerce("sdls"), IKMode.SDLS)
        self.assertEqual(IKMode.coerce(None), IKMode.TRANSPOSE)

    def test_invalid(self):
        with self.assertRaises(ValueError):
            IKMode.coerce("newton")
        with self.assertRaises(ValueError):
            IKMode.coerce(True)
        with self.assertRaises(ValueError):
            IKMode.coerce(2.0)

    def test_uses_svd(self):
        self.assertEqual(
            {mode for mode in IKMode if mode.uses_svd},
            {IKMode.SVD, IKMode.DLS_WITH_SVD, IKMode.SDLS},
        )


class TestDampedPseudoInverse(unittest.TestCase):

    def setUp(self):
        self.rng = np.random.default_rng(11)

    def test_undamped_is_moore_penrose(self):
        J = self.rng.normal(size=(3, 5))
        np.testing.assert_allclose(damped_pseudo_inverse(J, 0.0), np.linalg.pinv(J), atol=1e-10)

    def test_left_form(self):
        J = self.rng.normal(size=(3, 6))
        lam = 0.18
        expected = np.linalg.inv(J.T @ J + lam**2 * np.eye(6)) @ J.T
        np.testing.assert_allclose(damped_pseudo_inverse(J, lam), expected, atol=1e-10)

    def test_right_form(self):
        J = self.rng.normal(size=(6, 3))
        lam = 0.18
        expected = J.T @ np.linalg.inv(J @ J.T + lam**2 * np.eye(6))
        np.testing.assert_allclose(damped_pseudo_inverse(J, lam), expected, atol=1e-10)

    def test_forms_agree(self):
        J = self.rng.normal(size=(4, 6))
        lam = 0.3
        right = J.T @ np.linalg.inv(J @ J.T + lam**2 * np.eye(4))
        np.testing.assert_allclose(damped_pseudo_inverse(J, lam), right, atol=1e-10)


class TestStrategies(unittest.TestCase):

    ALL = [
        delta_theta_by_transpose,
        delta_theta_by_pseudo_inverse,
        delta_theta_by_dls,
        delta_theta_by_svd,
        delta_theta_by_dls_with_svd,
        delta_theta_by_sdls,
    ]

    def setUp(self):
        self.rng = np.random.default_rng(5)
        self.config = SolverConfig()

    def test_zero_error_gives_zero_update(self):
        for shape in [(6, 6), (3, 6), (6, 3)]:
            J = self.rng.normal(size=shape)
            for strategy in self.ALL:
                delta = strategy(J, np.zeros(shape[0]), self.config)
                self.assertEqual(delta.shape, (shape[1],))
                np.testing.assert_allclose(delta, np.zeros(shape[1]), atol=1e-12,
                                           err_msg=strategy.__name__)

    def test_short_chain_trailing_zeros(self):
        bones = build_chain(
            [[0, 0, 0], [0, 0, 1], [1, 0, 0], [1, 0, 0]],
            [(False, False, True), (False, True, False), (False, False, True), (False, False, False)],
        )
        bones[1].angles[1] = 0.3
        J = build_jacobian(bones[-1], 5)
        delta_p = np.array([0.1, -0.2, 0.3, 0.05, 0.0, -0.1])
        for strategy in self.ALL:
            delta = strategy(J, delta_p, self.config)
            np.testing.assert_allclose(delta[3:], [0.0, 0.0], atol=1e-10, err_msg=strategy.__name__)
            self.assertTrue(np.all(np.isfinite(delta)))

    def test_transpose(self):
        J = self.rng.normal(size=(6, 4))
        delta_p = self.rng.normal(size=6)
        np.testing.assert_allclose(delta_theta_by_transpose(J, delta_p), J.T @ delta_p)

    def test_pseudo_inverse_solves_full_rank(self):
        J = self.rng.normal(size=(6, 6))
        delta_p = self.rng.normal(size=6)
        delta = delta_theta_by_pseudo_inverse(J, delta_p, self.config)
        np.testing.assert_allclose(J @ delta, delta_p, atol=1e-8)

    def test_svd_without_threshold_matches_pseudo_inverse(self):
        J = self.rng.normal(size=(6, 6))
        delta_p = self.rng.normal(size=6)
        config = SolverConfig(lambda_svd=0.0)
        np.testing.assert_allclose(
            delta_theta_by_svd(J, delta_p, config),
            delta_theta_by_pseudo_inverse(J, delta_p, config),
            atol=1e-8,
        )

    def test_svd_truncates_small_singular_values(self):
        J = np.diag([1.0, 0.01, 2.0])
        delta = delta_theta_by_svd(J, np.ones(3), self.config)
        np.testing.assert_allclose(delta, [1.0, 0.0, 0.5], atol=1e-12)

    def test_svd_zero_jacobian(self):
        delta = delta_theta_by_svd(np.zeros((6, 3)), np.ones(6), self.config)
        np.testing.assert_array_equal(delta, np.zeros(3))

    def test_dls_with_svd_matches_dls(self):
        for shape in [(6, 6), (3, 6), (6, 3)]:
            J = self.rng.normal(size=shape)
            delta_p = self.rng.normal(size=shape[0])
            np.testing.assert_allclose(
                delta_theta_by_dls_with_svd(J, delta_p, self.config),
                delta_theta_by_dls(J, delta_p, self.config),
                atol=1e-10,
            )

    def test_dls_with_svd_undamped_zero_singular_value(self):
        config = SolverConfig(lambda_dls_with_svd=0.0)
        J = np.diag([1.0, 0.0, 2.0])
        delta = delta_theta_by_dls_with_svd(J, np.ones(3), config)
        np.testing.assert_allclose(delta, [1.0, 0.0, 0.5], atol=1e-12)

    def test_dls_bounded_when_rank_deficient(self):
        J = np.zeros((6, 4))
        J[:, 0] = [1.0, 0.0, 0.0, 0.0, 0.0, 1.0]
        J[:, 1] = J[:, 0]
        J[:, 2] = 1e-9 * np.ones(6)
        delta_p = np.array([0.0, 5.0, -3.0, 1.0, 2.0, 0.5])
        delta = delta_theta_by_dls(J, delta_p, self.config)
        self.assertTrue(np.all(np.isfinite(delta)))
        # ||J^T (J J^T + l^2 I)^-1|| <= 1 / (2 l)
        self.assertLessEqual(
            np.linalg.norm(delta), np.linalg.norm(delta_p) / (2 * self.config.lambda_dls) + 1e-9
        )

    def test_transpose_rank_deficient(self):
        delta = delta_theta_by_transpose(np.zeros((6, 3)), np.ones(6))
        np.testing.assert_array_equal(delta, np.zeros(3))

    def test_rejects_mismatched_shapes(self):
        with self.assertRaises(ValueError):
            delta_theta_by_transpose(np.zeros((6, 3)), np.zeros(3))
        with self.assertRaises(ValueError):
            solve_delta_theta(np.zeros(6), np.zeros(6))


class TestSDLS(unittest.TestCase):

    def setUp(self):
        self.rng = np.random.default_rng(23)
        self.config = SolverConfig()

    def test_contributions_respect_gamma(self):
        for shape in [(6, 6), (3, 6), (6, 3), (3, 2)]:
            J = self.rng.normal(size=shape)
            delta_p = 10.0 * self.rng.normal(size=shape[0])
            decomposition = compute_svd(J)
            contributions = sdls_contributions(J, delta_p, decomposition, self.config.lambda_sdls)
            self.assertEqual(len(contributions), min(shape))
            for step, gamma in contributions:
                self.assertLessEqual(gamma, self.config.lambda_sdls + 1e-12)
                self.assertLessEqual(np.max(np.abs(step)), gamma + 1e-12)

    def test_sum_of_contributions(self):
        J = self.rng.normal(size=(6, 5))
        delta_p = self.rng.normal(size=6)
        decomposition = compute_svd(J)
        total = sum(step for step, _ in sdls_contributions(J, delta_p, decomposition, self.config.lambda_sdls))
        np.testing.assert_allclose(delta_theta_by_sdls(J, delta_p, self.config, decomposition), total)

    def test_total_step_bounded(self):
        J = self.rng.normal(size=(6, 6))
        delta_p = 100.0 * self.rng.normal(size=6)
        delta = delta_theta_by_sdls(J, delta_p, self.config)
        self.assertLessEqual(np.max(np.abs(delta)), 6 * self.config.lambda_sdls + 1e-9)

    def test_zero_jacobian(self):
        delta = delta_theta_by_sdls(np.zeros((6, 4)), np.ones(6), self.config)
        np.testing.assert_array_equal(delta, np.zeros(4))

    def test_small_error_unclamped(self):
        # One joint, unit column along x: M = 1, step is the plain projection
        J = np.array([[1.0], [0.0], [0.0]])
        delta = delta_theta_by_sdls(J, np.array([0.1, 0.0, 0.0]), self.config)
        np.testing.assert_allclose(delta, [0.1], atol=1e-12)

    def test_saturation_reads_leading_rows_only(self):
        # m = 3 reads row 0 alone, so a column along y has M = 0 and no step
        J = np.array([[0.0], [1.0], [0.0]])
        delta = delta_theta_by_sdls(J, np.array([0.0, 0.1, 0.0]), self.config)
        np.testing.assert_array_equal(delta, [0.0])

    def test_two_joint_clamped_values(self):
        # Orthogonal columns, sigma = (2.5, 1), V = I up to sign.
        # M_0 = (1.6 + 1.2) / 2.5 and M_1 = (0.48 + 0.64) / 1 both equal 1.12;
        # rows 2..5 (1.5 and 0.6 among them) never enter M_i.
        J = np.array([
            [1.6, 0.48],
            [-1.2, 0.64],
            [0.0, 0.0],
            [1.5, 0.0],
            [0.0, 0.0],
            [0.0, 0.6],
        ])
        delta_p = J @ np.array([1.0, -0.5])
        gamma = self.config.lambda_sdls / 1.12

        contributions = sdls_contributions(J, delta_p, compute_svd(J), self.config.lambda_sdls)
        np.testing.assert_allclose([g for _, g in contributions], [gamma, gamma], rtol=1e-12)

        # Joint 0 wants 1.0 rad and is clamped to gamma, joint 1 wants -0.5 and is not
        delta = delta_theta_by_sdls(J, delta_p, self.config)
        np.testing.assert_allclose(delta, [gamma, -0.5], atol=1e-9)


class TestSolveDeltaTheta(unittest.TestCase):

    def test_dispatch_matches_strategies(self):
        rng = np.random.default_rng(2)
        J = rng.normal(size=(6, 6))
        delta_p = rng.normal(size=6)
        config = SolverConfig()
        expected = {
            IKMode.TRANSPOSE: delta_theta_by_transpose(J, delta_p, config),
            IKMode.PSEUDO_INVERSE: delta_theta_by_pseudo_inverse(J, delta_p, config),
            IKMode.DLS: delta_theta_by_dls(J, delta_p, config),
            IKMode.SVD: delta_theta_by_svd(J, delta_p, config),
            IKMode.DLS_WITH_SVD: delta_theta_by_dls_with_svd(J, delta_p, config),
            IKMode.SDLS: delta_theta_by_sdls(J, delta_p, config),
        }
        for mode, value in expected.items():
            np.testing.assert_allclose(solve_delta_theta(J, delta_p, mode, config), value)
            np.testing.assert_allclose(solve_delta_theta(J, delta_p, mode.value, config), value)

    def test_every_strategy_documented(self):
        for mode, strategy in STRATEGIES.items():
            self.assertTrue(strategy.__doc__, mode.name)

    def test_reuses_given_decomposition(self):
        J = np.diag([1.0, 2.0, 4.0])
        decomposition = compute_svd(J)
        delta = solve_delta_theta(J, np.ones(3), IKMode.SVD, SolverConfig(), decomposition)
        np.testing.assert_allclose(delta, [1.0, 0.5, 0.25])


if __name__ == '__main__':
    unittest.main()

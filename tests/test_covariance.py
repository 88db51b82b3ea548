"""
Tests for the covariance module.
"""

import logging
import pytest
import numpy as np
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from moviemath.math.covariance import calculate_covariance_matrix, pairwise_covariance
from moviemath.math.named_matrix import NamedMatrix
from moviemath.math.standardize import standardize_records


class TestPairwiseCovariance:
    """Tests for the pairwise_covariance function."""

    def test_simple(self):
        """Test covariance of two perfectly correlated columns."""
        values = np.array([[1.0, 1.0], [-1.0, -1.0]])
        cov = pairwise_covariance(values)

        # (1*1 + (-1)*(-1)) / (2 - 1) = 2
        assert np.allclose(cov, [[2.0, 2.0], [2.0, 2.0]])

    def test_invalid_pairs(self):
        """Test pairs with too few jointly valid rows fall back to identity entries."""
        values = np.array([
            [1.0, np.nan],
            [-1.0, np.nan],
            [0.0, 2.0]
        ])
        cov = pairwise_covariance(values)

        assert np.isclose(cov[0, 0], 1.0)  # (1 + 1 + 0) / 2
        assert cov[1, 1] == 1.0            # one valid value
        assert cov[0, 1] == 0.0            # one jointly valid row
        assert cov[1, 0] == 0.0

    def test_matches_numpy(self):
        """Test agreement with numpy for centered data."""
        rng = np.random.default_rng(3)
        values = rng.normal(size=(40, 4))
        values -= values.mean(axis=0)

        assert np.allclose(pairwise_covariance(values), np.cov(values, rowvar=False))


class TestCalculateCovarianceMatrix:
    """Tests for the calculate_covariance_matrix function."""

    def test_single_record_identity(self, caplog):
        """Test one record gives the identity matrix and a warning."""
        with caplog.at_level(logging.WARNING):
            cov = calculate_covariance_matrix([{'a': 0.0, 'b': 0.0, 'c': 0.0}])

        assert cov.colnames() == ['a', 'b', 'c']
        assert cov.rownames() == ['a', 'b', 'c']
        assert np.array_equal(cov.values, np.eye(3))
        assert "identity" in caplog.text

    def test_no_records_identity(self):
        """Test no records gives the identity over the given features."""
        cov = calculate_covariance_matrix([], ['a', 'b'])
        assert np.array_equal(cov.values, np.eye(2))

    def test_symmetric(self):
        """Test the covariance matrix is symmetric with variances on the diagonal."""
        records = [{'a': a, 'b': b, 'c': a * b}
                   for a, b in [(1, 5), (2, 3), (4, 4), (7, 1), (3, 3)]]
        std = standardize_records(records)
        cov = calculate_covariance_matrix(std['standardized'])

        values = cov.values
        assert np.allclose(values, values.T)

        # Standardized with population std, divided by n - 1
        n = len(records)
        assert np.allclose(np.diag(values), n / (n - 1))

    def test_named_matrix_input(self):
        """Test a NamedMatrix can be passed directly."""
        nmat = NamedMatrix(np.array([[1.0, -1.0], [-1.0, 1.0]]), colnames=['x', 'y'])
        cov = calculate_covariance_matrix(nmat)

        assert cov.colnames() == ['x', 'y']
        assert np.allclose(cov.values, [[2.0, -2.0], [-2.0, 2.0]])

        # Feature subset
        cov_x = calculate_covariance_matrix(nmat, ['x'])
        assert cov_x.colnames() == ['x']
        assert np.allclose(cov_x.values, [[2.0]])

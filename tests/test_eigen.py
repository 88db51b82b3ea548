"""
Tests for the power iteration eigen-decomposition module.
"""

import pytest
import numpy as np
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from moviemath.math.eigen import (
    basis_vector, deflate, eigen_decomposition, normalize_vector,
    power_iteration, random_unit_vector, rayleigh_quotient, vector_length
)
from moviemath.math.named_matrix import NamedMatrix


class TestVectorHelpers:
    """Tests for the vector helper functions."""

    def test_normalize_vector(self):
        """Test vector normalization."""
        v = normalize_vector(np.array([3.0, 4.0]))
        assert np.allclose(v, [0.6, 0.8])
        assert np.isclose(vector_length(v), 1.0)

        # Zero vector is returned unchanged
        zero = np.zeros(3)
        assert np.array_equal(normalize_vector(zero), zero)

    def test_random_unit_vector(self):
        """Test random unit vectors are unit length and reproducible."""
        v1 = random_unit_vector(4, np.random.default_rng(11))
        v2 = random_unit_vector(4, np.random.default_rng(11))

        assert np.isclose(vector_length(v1), 1.0)
        assert np.all(v1 >= 0)
        assert np.array_equal(v1, v2)

    def test_basis_vector(self):
        """Test basis vector construction."""
        assert np.array_equal(basis_vector(3, 1), [0.0, 1.0, 0.0])

    def test_rayleigh_and_deflate(self):
        """Test the Rayleigh quotient and in-place deflation."""
        matrix = np.array([[2.0, 0.0], [0.0, 1.0]])
        v = np.array([1.0, 0.0])

        assert rayleigh_quotient(matrix, v) == 2.0

        deflate(matrix, 2.0, v)
        assert np.allclose(matrix, [[0.0, 0.0], [0.0, 1.0]])


class TestPowerIteration:
    """Tests for the power_iteration function."""

    def test_dominant_vector(self):
        """Test power iteration finds the dominant eigenvector."""
        matrix = np.array([[2.0, 1.0], [1.0, 2.0]])
        v = power_iteration(matrix, np.array([1.0, 0.0]))

        expected = np.array([1.0, 1.0]) / np.sqrt(2)
        assert np.isclose(abs(np.dot(v, expected)), 1.0, atol=1e-8)

    def test_zero_matrix_reseeds(self):
        """Test a zero matrix yields a random unit vector rather than NaN."""
        v = power_iteration(np.zeros((3, 3)), basis_vector(3, 0),
                            rng=np.random.default_rng(5))

        assert np.all(np.isfinite(v))
        assert np.isclose(vector_length(v), 1.0)

    def test_iteration_cap(self):
        """Test a single iteration returns the normalized first product."""
        matrix = np.array([[3.0, 1.0], [1.0, 1.0]])
        v = power_iteration(matrix, np.array([1.0, 0.0]), iters=1)

        assert np.allclose(v, np.array([3.0, 1.0]) / np.sqrt(10))


class TestEigenDecomposition:
    """Tests for the eigen_decomposition function."""

    def test_diagonal(self):
        """Test a diagonal matrix gives its diagonal and the basis vectors."""
        cov = NamedMatrix(np.array([[5.0, 0.0], [0.0, 2.0]]), ['a', 'b'], ['a', 'b'])
        result = eigen_decomposition(cov)

        assert np.allclose(result['eigenvalues'], [5.0, 2.0])
        assert result['eigenvectors'][0] == {'a': 1.0, 'b': 0.0}
        assert result['eigenvectors'][1] == {'a': 0.0, 'b': 1.0}
        assert result['comps'].shape == (2, 2)

    def test_input_not_modified(self):
        """Test deflation works on a copy of the covariance matrix."""
        values = np.array([[5.0, 1.0], [1.0, 2.0]])
        cov = NamedMatrix(values.copy(), ['a', 'b'], ['a', 'b'])
        eigen_decomposition(cov)

        assert np.array_equal(cov.values, values)

    def test_matches_numpy(self):
        """Test agreement with numpy for well-separated eigenvalues."""
        rng = np.random.default_rng(42)
        q, _ = np.linalg.qr(rng.normal(size=(3, 3)))
        matrix = q @ np.diag([10.0, 4.0, 1.0]) @ q.T
        names = ['x', 'y', 'z']

        result = eigen_decomposition(NamedMatrix(matrix, names, names))

        np_values, np_vectors = np.linalg.eigh(matrix)
        order = np.argsort(np_values)[::-1]

        for k in range(2):
            assert np.isclose(result['eigenvalues'][k], np_values[order[k]], rtol=1e-6)
            dot = np.dot(result['comps'][k], np_vectors[:, order[k]])
            assert np.isclose(abs(dot), 1.0, atol=1e-6)

    def test_deterministic(self):
        """Test repeated runs give identical results."""
        matrix = np.array([[4.0, 1.0, 0.5], [1.0, 3.0, 0.2], [0.5, 0.2, 1.0]])
        cov = NamedMatrix(matrix, ['a', 'b', 'c'], ['a', 'b', 'c'])

        first = eigen_decomposition(cov)
        second = eigen_decomposition(cov)

        assert first['eigenvalues'] == second['eigenvalues']
        assert np.array_equal(first['comps'], second['comps'])

    def test_zero_matrix(self):
        """Test a zero matrix reports unit eigenvalues and unit vectors."""
        cov = NamedMatrix(np.zeros((2, 2)), ['a', 'b'], ['a', 'b'])
        result = eigen_decomposition(cov, rng=np.random.default_rng(0))

        assert result['eigenvalues'] == [1.0, 1.0]
        for vector in result['comps']:
            assert np.all(np.isfinite(vector))
            assert np.isclose(vector_length(vector), 1.0)

    def test_single_feature(self):
        """Test a 1x1 matrix: the second component comes from a random start."""
        cov = NamedMatrix(np.array([[3.0]]), ['a'], ['a'])
        result = eigen_decomposition(cov, rng=np.random.default_rng(1))

        assert np.allclose(result['eigenvalues'], [3.0, 1.0])
        assert result['eigenvectors'][0] == {'a': 1.0}
        assert np.isclose(abs(result['eigenvectors'][1]['a']), 1.0)

    def test_no_features(self):
        """Test an empty matrix gives unit eigenvalues and empty vectors."""
        result = eigen_decomposition(NamedMatrix.identity([]))

        assert result['eigenvalues'] == [1.0, 1.0]
        assert result['eigenvectors'] == [{}, {}]
        assert result['comps'].shape == (2, 0)

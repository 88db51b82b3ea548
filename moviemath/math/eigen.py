"""
Approximate eigen-decomposition for the moviemath analysis engine.

This module extracts the leading eigenvalue/eigenvector pairs of a symmetric
covariance matrix using power iteration with deflation. It is an
approximation intended for 2D visualization: the second pair is found on the
deflated remainder and is not guaranteed to be the true second eigenpair.
"""

import logging
import numpy as np
from typing import Any, Dict, List, Optional

from moviemath.math.named_matrix import NamedMatrix
from moviemath.utils.general import get_rng

logger = logging.getLogger(__name__)

N_COMPONENTS = 2
MAX_ITERS = 100
TOLERANCE = 1e-10
ZERO_NORM = 1e-10


def vector_length(v: np.ndarray) -> float:
    """
    Calculate the length (norm) of a vector.

    Args:
        v: Vector

    Returns:
        Vector length
    """
    return float(np.linalg.norm(v))


def normalize_vector(v: np.ndarray) -> np.ndarray:
    """
    Normalize a vector to unit length.

    Args:
        v: Vector to normalize

    Returns:
        Normalized vector (the zero vector is returned unchanged)
    """
    norm = vector_length(v)
    if norm == 0:
        return v
    return v / norm


def random_unit_vector(n: int, rng: np.random.Generator) -> np.ndarray:
    """
    Draw a uniform-random vector and scale it to unit length.

    Args:
        n: Dimension
        rng: Random generator

    Returns:
        Unit vector with non-negative components
    """
    v = rng.random(n)
    while vector_length(v) == 0:
        v = rng.random(n)
    return normalize_vector(v)


def basis_vector(n: int, k: int) -> np.ndarray:
    """
    Create the k-th standard basis vector of dimension n.

    Args:
        n: Dimension
        k: Position of the 1

    Returns:
        Basis vector
    """
    v = np.zeros(n)
    v[k] = 1.0
    return v


def power_iteration(matrix: np.ndarray,
                    start_vector: np.ndarray,
                    iters: int = MAX_ITERS,
                    tolerance: float = TOLERANCE,
                    zero_norm: float = ZERO_NORM,
                    rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """
    Approximate the dominant eigenvector of a square matrix.

    Each step multiplies the matrix by the current vector and normalizes the
    product. A product with norm below zero_norm is replaced by a random unit
    vector. Iteration stops once the squared change between successive
    vectors drops below tolerance.

    Args:
        matrix: Square matrix
        start_vector: Initial vector
        iters: Maximum number of iterations
        tolerance: Convergence threshold on the squared change
        zero_norm: Norm below which the product is considered degenerate
        rng: Random generator used for reseeding

    Returns:
        Unit-length approximation of the dominant eigenvector
    """
    vector = np.asarray(start_vector, dtype=float)

    for i in range(iters):
        product = matrix @ vector
        norm = vector_length(product)

        if not np.isfinite(norm) or norm < zero_norm:
            rng = get_rng(rng)
            new_vector = random_unit_vector(len(vector), rng)
            logger.debug(f"Degenerate product at iteration {i}, reseeded")
        else:
            new_vector = product / norm

        diff = float(np.sum((vector - new_vector) ** 2))
        vector = new_vector

        if diff < tolerance:
            logger.debug(f"Power iteration converged after {i + 1} iterations")
            break

    return vector


def rayleigh_quotient(matrix: np.ndarray, v: np.ndarray) -> float:
    """
    Estimate the eigenvalue associated with v as v^T M v.

    Args:
        matrix: Square matrix
        v: Unit vector

    Returns:
        Rayleigh quotient
    """
    return float(v @ matrix @ v)


def deflate(matrix: np.ndarray, eigenvalue: float, v: np.ndarray) -> None:
    """
    Remove an eigenpair's contribution from the matrix in place.

    Args:
        matrix: Square matrix, modified in place
        eigenvalue: Eigenvalue to remove
        v: Corresponding unit eigenvector
    """
    matrix -= eigenvalue * np.outer(v, v)


def eigen_decomposition(cov: NamedMatrix,
                        n_comps: int = N_COMPONENTS,
                        iters: int = MAX_ITERS,
                        tolerance: float = TOLERANCE,
                        zero_norm: float = ZERO_NORM,
                        rng: Optional[np.random.Generator] = None) -> Dict[str, Any]:
    """
    Extract the leading eigenpairs of a symmetric feature-by-feature matrix.

    Component k starts from the k-th basis vector; when there are fewer
    features than components a random unit vector is used instead. After
    each extraction the pair is deflated out of a working copy of the matrix.
    Zero or undefined eigenvalues are reported as 1.

    Args:
        cov: Square NamedMatrix keyed by feature name
        n_comps: Number of eigenpairs to extract
        iters: Maximum power iterations per component
        tolerance: Convergence threshold on the squared change
        zero_norm: Norm below which a product is considered degenerate
        rng: Random generator used for reseeding

    Returns:
        Dictionary with 'eigenvalues' (list of floats), 'eigenvectors'
        (list of feature -> component dicts) and 'comps' (n_comps x n array)
    """
    features = cov.colnames()
    n = len(features)
    matrix = cov.values.copy()

    eigenvalues: List[float] = []
    eigenvectors: List[Dict[str, float]] = []
    comps = np.zeros((n_comps, n))

    for k in range(n_comps):
        if n == 0:
            eigenvalues.append(1.0)
            eigenvectors.append({})
            continue

        if k < n:
            start = basis_vector(n, k)
        else:
            rng = get_rng(rng)
            start = random_unit_vector(n, rng)

        vector = power_iteration(matrix, start, iters, tolerance, zero_norm, rng)
        eigenvalue = rayleigh_quotient(matrix, vector)

        if np.isfinite(eigenvalue):
            deflate(matrix, eigenvalue, vector)

        if not np.isfinite(eigenvalue) or eigenvalue == 0:
            eigenvalue = 1.0

        eigenvalues.append(eigenvalue)
        eigenvectors.append(dict(zip(features, vector.tolist())))
        comps[k] = vector

    return {
        'eigenvalues': eigenvalues,
        'eigenvectors': eigenvectors,
        'comps': comps
    }

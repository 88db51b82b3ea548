"""
PCA (Principal Component Analysis) for the moviemath analysis engine.

This module orchestrates standardization, covariance construction,
approximate eigen-decomposition and projection of feature records onto the
first two principal components. Every step degrades to a defined neutral
value instead of raising on malformed numeric input.
"""

import logging
import numpy as np
import pandas as pd
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from moviemath.math.covariance import calculate_covariance_matrix
from moviemath.math.eigen import (
    N_COMPONENTS, MAX_ITERS, TOLERANCE, ZERO_NORM, eigen_decomposition
)
from moviemath.math.named_matrix import NamedMatrix
from moviemath.math.standardize import STD_EPSILON, standardize_matrix

logger = logging.getLogger(__name__)


def variance_explained(eigenvalues: Sequence[float]) -> List[float]:
    """
    Calculate the fraction of retained variance captured by each component.

    Args:
        eigenvalues: Retained eigenvalues

    Returns:
        Each eigenvalue divided by their sum (a zero sum is treated as 1)
    """
    total = float(sum(eigenvalues))
    if total == 0:
        total = 1.0
    return [float(val) / total for val in eigenvalues]


def project_matrix(standardized: np.ndarray, comps: np.ndarray) -> np.ndarray:
    """
    Project standardized rows onto each component.

    Product terms that are not finite are dropped before summation.

    Args:
        standardized: Standardized matrix (records x features)
        comps: Components (n_comps x features)

    Returns:
        Scores array (records x n_comps)
    """
    terms = standardized[:, np.newaxis, :] * comps[np.newaxis, :, :]
    terms = np.where(np.isfinite(terms), terms, 0.0)
    return terms.sum(axis=2)


def degenerate_result(features: Sequence[str]) -> Dict[str, Any]:
    """
    Build the neutral result returned for an empty record set.

    Args:
        features: Feature names

    Returns:
        PCA result with no scores, unit eigenvalues, zero eigenvectors and
        an even variance split
    """
    features = list(features)
    return {
        'pc_scores': np.zeros((0, N_COMPONENTS)),
        'eigenvalues': [1.0] * N_COMPONENTS,
        'eigenvectors': [{f: 0.0 for f in features} for _ in range(N_COMPONENTS)],
        'variance_explained': [1.0 / N_COMPONENTS] * N_COMPONENTS,
        'comps': np.zeros((N_COMPONENTS, len(features))),
        'features': features,
        'means': {},
        'stds': {}
    }


def pca(records: Sequence[Mapping[str, Any]],
        features: Optional[Sequence[str]] = None,
        iters: int = MAX_ITERS,
        tolerance: float = TOLERANCE,
        std_epsilon: float = STD_EPSILON,
        zero_norm: float = ZERO_NORM,
        rng: Optional[np.random.Generator] = None) -> Dict[str, Any]:
    """
    Perform PCA on feature records and project them onto two components.

    Every listed feature is coerced to a float; values that are not numbers
    count as 0.

    Args:
        records: Feature records (feature name -> value)
        features: Features to analyze (defaults to the keys of the first record)
        iters: Maximum power iterations per component
        tolerance: Power iteration convergence threshold
        std_epsilon: Standard deviations below this are clamped to 1
        zero_norm: Norm below which a power iteration product is reseeded
        rng: Random generator used for reseeding degenerate products

    Returns:
        Dictionary with 'pc_scores' (records x 2 array aligned with records),
        'eigenvalues', 'eigenvectors' (feature -> weight dicts),
        'variance_explained', plus 'comps', 'features', 'means' and 'stds'
    """
    if features is None:
        features = list(records[0].keys()) if records else []
    features = list(features)

    if not records:
        logger.warning("PCA called with no records; returning degenerate result")
        return degenerate_result(features)

    nmat = NamedMatrix.from_records(records, features)
    nmat = NamedMatrix(np.nan_to_num(nmat.values, nan=0.0), colnames=features)

    std = standardize_matrix(nmat, std_epsilon)
    cov = calculate_covariance_matrix(std['matrix'])
    eig = eigen_decomposition(cov, N_COMPONENTS, iters, tolerance, zero_norm, rng)

    scores = project_matrix(std['matrix'].values, eig['comps'])

    return {
        'pc_scores': scores,
        'eigenvalues': eig['eigenvalues'],
        'eigenvectors': eig['eigenvectors'],
        'variance_explained': variance_explained(eig['eigenvalues']),
        'comps': eig['comps'],
        'features': features,
        'means': std['means'],
        'stds': std['stds']
    }


def pca_project_dataframe(df: pd.DataFrame,
                          features: Sequence[str],
                          id_column: Optional[str] = None,
                          **kwargs) -> Tuple[Dict[str, Any], Dict[Any, np.ndarray]]:
    """
    Perform PCA on the rows of a DataFrame.

    Args:
        df: DataFrame with one row per observation
        features: Feature columns to analyze; missing columns count as 0
        id_column: Column holding row ids (defaults to the DataFrame index)
        **kwargs: Passed through to pca

    Returns:
        Tuple of (pca_results, projections by row id)
    """
    present = [f for f in features if f in df.columns]
    records = df[present].to_dict('records')

    results = pca(records, features, **kwargs)

    ids = df[id_column].tolist() if id_column is not None else df.index.tolist()
    projections = {row_id: proj for row_id, proj in zip(ids, results['pc_scores'])}

    return results, projections

"""
Distance utilities for the moviemath analysis engine.
"""

import numpy as np
from typing import Sequence
from scipy.spatial.distance import pdist, squareform


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Calculate Euclidean distance between two points.

    Args:
        a: First point
        b: Second point

    Returns:
        Euclidean distance
    """
    return float(np.linalg.norm(np.asarray(a, dtype=float) - np.asarray(b, dtype=float)))


def distance_matrix(points: np.ndarray) -> np.ndarray:
    """
    Calculate the pairwise distance matrix for a set of points.

    Args:
        points: Array of points (n x d)

    Returns:
        Symmetric n x n matrix of Euclidean distances
    """
    points = np.asarray(points, dtype=float)
    if points.shape[0] < 2:
        return np.zeros((points.shape[0], points.shape[0]))
    return squareform(pdist(points, metric='euclidean'))

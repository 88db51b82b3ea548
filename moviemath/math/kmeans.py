"""
K-means clustering for the moviemath analysis engine.

This module partitions projected points into a fixed number of clusters.
Centroids are seeded uniformly at random inside the bounding box of the
data, then refined by alternating assignment and update steps until every
centroid settles or the iteration cap is reached. A cluster that loses all
of its points keeps its previous centroid.
"""

import logging
import numpy as np
from copy import deepcopy
from typing import Any, Dict, List, Optional, Sequence

from moviemath.math.distance import distance_matrix, euclidean_distance
from moviemath.utils.general import get_rng

logger = logging.getLogger(__name__)

MAX_ITERS = 100
TOLERANCE = 0.001


class Cluster:
    """
    Represents a cluster in K-means clustering.
    """

    def __init__(self,
                 center: Sequence[float],
                 members: Optional[List[int]] = None,
                 id: Optional[int] = None):
        """
        Initialize a cluster with a center and optional members.

        Args:
            center: The center of the cluster
            members: Indices of points belonging to the cluster
            id: Cluster index
        """
        self.center = np.array(center, dtype=float)
        self.members = [] if members is None else list(members)
        self.id = id

    def add_member(self, idx: int) -> None:
        """
        Add a member to the cluster.

        Args:
            idx: Index of the point to add
        """
        self.members.append(idx)

    def clear_members(self) -> None:
        """Clear all members from the cluster."""
        self.members = []

    def update_center(self, points: np.ndarray) -> None:
        """
        Move the center to the mean of the member points.

        Args:
            points: Array containing all points
        """
        if not self.members:
            # No members, keep the current center
            return

        self.center = np.mean(points[self.members], axis=0)

    def __repr__(self) -> str:
        """String representation of the cluster."""
        return f"Cluster(id={self.id}, members={len(self.members)})"


def as_points(points: Any) -> np.ndarray:
    """
    Convert a sequence of coordinate tuples to a 2D float array.

    Args:
        points: Sequence of points, or an array

    Returns:
        Array of shape (n_points, n_dims)
    """
    arr = np.asarray(points, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(len(arr), -1) if len(arr) else arr.reshape(0, 2)
    return arr


def init_clusters(points: np.ndarray,
                  k: int,
                  rng: Optional[np.random.Generator] = None) -> List[Cluster]:
    """
    Seed k clusters uniformly at random inside the bounding box of the points.

    Each coordinate is drawn independently, so seeds need not coincide with
    data points.

    Args:
        points: Array of points
        k: Number of clusters
        rng: Random generator

    Returns:
        List of clusters with no members
    """
    rng = get_rng(rng)
    lows = points.min(axis=0)
    highs = points.max(axis=0)

    clusters = []
    for i in range(k):
        center = lows + rng.random(points.shape[1]) * (highs - lows)
        clusters.append(Cluster(center, [], i))

    return clusters


def nearest_cluster(point: np.ndarray, clusters: List[Cluster]) -> int:
    """
    Find the position of the cluster whose center is closest to a point.

    Ties go to the lowest position.

    Args:
        point: The point
        clusters: List of clusters

    Returns:
        Position of the nearest cluster
    """
    min_dist = float('inf')
    nearest = 0

    for j, cluster in enumerate(clusters):
        dist = euclidean_distance(point, cluster.center)
        if dist < min_dist:
            min_dist = dist
            nearest = j

    return nearest


def assign_points_to_clusters(points: np.ndarray, clusters: List[Cluster]) -> List[int]:
    """
    Assign each point to its nearest cluster.

    Args:
        points: Array of points
        clusters: List of clusters; member lists are rebuilt

    Returns:
        Cluster position for each point
    """
    for cluster in clusters:
        cluster.clear_members()

    labels = []
    for i, point in enumerate(points):
        j = nearest_cluster(point, clusters)
        clusters[j].add_member(i)
        labels.append(j)

    return labels


def update_cluster_centers(points: np.ndarray, clusters: List[Cluster]) -> None:
    """
    Update the centers of all clusters.

    Args:
        points: Array of points
        clusters: List of clusters
    """
    for cluster in clusters:
        cluster.update_center(points)


def cluster_step(points: np.ndarray, clusters: List[Cluster]) -> List[Cluster]:
    """
    Perform one assignment and update step of K-means clustering.

    Args:
        points: Array of points
        clusters: Current clusters

    Returns:
        Updated clusters (the input is not modified)
    """
    clusters = deepcopy(clusters)
    assign_points_to_clusters(points, clusters)
    update_cluster_centers(points, clusters)
    return clusters


def centroids_converged(old_clusters: List[Cluster],
                        new_clusters: List[Cluster],
                        threshold: float = TOLERANCE) -> bool:
    """
    Check whether every centroid moved less than the threshold.

    Args:
        old_clusters: Clusters before a step
        new_clusters: Clusters after the step, in the same order
        threshold: Maximum distance a centroid may move

    Returns:
        True if all centroids have settled
    """
    for old, new in zip(old_clusters, new_clusters):
        if euclidean_distance(old.center, new.center) >= threshold:
            return False
    return True


def k_means(points: Any,
            k: int,
            max_iterations: int = MAX_ITERS,
            tolerance: float = TOLERANCE,
            rng: Optional[np.random.Generator] = None,
            initial_centroids: Optional[Sequence[Sequence[float]]] = None) -> Dict[str, Any]:
    """
    Perform K-means clustering on a set of points.

    At least one step always runs. Labels are recomputed from the final
    centroids so that the returned labels and centroids agree.

    Args:
        points: Sequence of (x, y) points
        k: Number of clusters (at least 1)
        max_iterations: Maximum number of steps
        tolerance: Centroid movement below which the run has converged
        rng: Random generator for centroid seeding
        initial_centroids: Starting centroids (exactly k), e.g. the centroids
            of a previous run; replaces random seeding

    Returns:
        Dictionary with 'clusters' (cluster index per point), 'centroids'
        (list of coordinate tuples) and 'iterations'
    """
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")

    data = as_points(points)
    if data.shape[0] == 0:
        raise ValueError("Cannot cluster an empty point set")

    if initial_centroids is not None:
        if len(initial_centroids) != k:
            raise ValueError(f"Expected {k} initial centroids, got {len(initial_centroids)}")
        clusters = [Cluster(center, [], i) for i, center in enumerate(initial_centroids)]
    else:
        clusters = init_clusters(data, k, rng)

    iterations = 0
    while True:
        new_clusters = cluster_step(data, clusters)
        iterations += 1

        converged = centroids_converged(clusters, new_clusters, tolerance)
        clusters = new_clusters

        if converged or iterations >= max_iterations:
            break

    logger.debug(f"K-means with k={k} on {data.shape[0]} points stopped after "
                 f"{iterations} iterations (converged={converged})")

    labels = assign_points_to_clusters(data, clusters)

    return {
        'clusters': labels,
        'centroids': [tuple(cluster.center.tolist()) for cluster in clusters],
        'iterations': iterations
    }


def silhouette(points: Any, labels: Sequence[int]) -> float:
    """
    Calculate the mean silhouette coefficient of a labelling.

    Args:
        points: Sequence of points
        labels: Cluster index for each point

    Returns:
        Silhouette coefficient (between -1 and 1); 0.0 when there are fewer
        than two non-empty clusters
    """
    data = as_points(points)
    labels = np.asarray(labels)
    groups = sorted(set(labels.tolist()))

    if len(groups) <= 1 or data.shape[0] == 0:
        return 0.0

    dist = distance_matrix(data)
    members = {g: np.flatnonzero(labels == g) for g in groups}

    silhouette_values = []
    for idx in range(data.shape[0]):
        own = members[labels[idx]]
        same = own[own != idx]

        if len(same) == 0:
            # Singleton cluster
            silhouette_values.append(0.0)
            continue

        a = dist[idx, same].mean()
        b = min(dist[idx, members[g]].mean() for g in groups if g != labels[idx])

        if a == 0 and b == 0:
            silhouette_values.append(0.0)
        else:
            silhouette_values.append((b - a) / max(a, b))

    return float(np.mean(silhouette_values))

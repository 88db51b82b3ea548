"""
End-to-end analysis: PCA projection, optional k-means, scatter payload.
"""

import logging
import numpy as np
from typing import Any, Dict, Mapping, Optional, Sequence

from moviemath.analysis.scatter import build_scatter_payload
from moviemath.components.config import Config, ConfigManager
from moviemath.math.kmeans import k_means, silhouette
from moviemath.math.pca import pca
from moviemath.utils.general import RngLike, get_rng

logger = logging.getLogger(__name__)


def run_analysis(records: Sequence[Mapping[str, Any]],
                 features: Optional[Sequence[str]] = None,
                 k: Optional[int] = None,
                 config: Optional[Config] = None,
                 rng: RngLike = None,
                 year: Any = 'all') -> Dict[str, Any]:
    """
    Project records with PCA and optionally cluster the projection.

    Args:
        records: Feature records (movies)
        features: Features to analyze (defaults to the configured features)
        k: Number of clusters (defaults to the configured k); 0 skips
            clustering
        config: Configuration (defaults to the shared configuration)
        rng: Seed or generator; defaults to the configured k-means seed
        year: Selected year, used for the chart title

    Returns:
        Dictionary with 'pca', 'kmeans' (or None), 'silhouette' (or None)
        and 'scatter'
    """
    config = config or ConfigManager.get_config()
    features = list(features) if features is not None else config.get('data.features')
    if k is None:
        k = config.get('kmeans.k') or 0
    rng = get_rng(rng if rng is not None else config.get('kmeans.seed'))

    pca_result = pca(
        records,
        features,
        iters=config.get('pca.max-iters', 100),
        tolerance=config.get('pca.tolerance', 1e-10),
        std_epsilon=config.get('pca.std-epsilon', 1e-5),
        zero_norm=config.get('pca.zero-norm', 1e-10),
        rng=rng
    )

    cluster_result = None
    score = None
    if k > 0 and len(records) > 0:
        cluster_result = k_means(
            pca_result['pc_scores'],
            k,
            max_iterations=config.get('kmeans.max-iters', 100),
            tolerance=config.get('kmeans.tolerance', 0.001),
            rng=rng
        )
        score = silhouette(pca_result['pc_scores'], cluster_result['clusters'])
        logger.info(f"Clustered {len(records)} records into k={k}, silhouette={score:.3f}")
    elif k > 0:
        logger.warning("Skipping k-means: no records to cluster")

    return {
        'pca': pca_result,
        'kmeans': cluster_result,
        'silhouette': score,
        'scatter': build_scatter_payload(records, pca_result, cluster_result, year)
    }


def serialize_pca(pca_result: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert a PCA result to JSON-compatible types."""
    return {
        'pc_scores': np.asarray(pca_result['pc_scores']).tolist(),
        'eigenvalues': [float(v) for v in pca_result['eigenvalues']],
        'eigenvectors': [dict(v) for v in pca_result['eigenvectors']],
        'variance_explained': [float(v) for v in pca_result['variance_explained']],
        'features': list(pca_result['features']),
    }


def serialize_kmeans(cluster_result: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """Convert a k-means result to JSON-compatible types."""
    if cluster_result is None:
        return None
    return {
        'clusters': [int(c) for c in cluster_result['clusters']],
        'centroids': [[float(x) for x in c] for c in cluster_result['centroids']],
        'iterations': int(cluster_result['iterations']),
    }


def to_serializable(result: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Convert an analysis result to JSON-compatible types.

    Args:
        result: Output of run_analysis

    Returns:
        Dictionary of plain lists, floats and strings
    """
    return {
        'pca': serialize_pca(result['pca']),
        'kmeans': serialize_kmeans(result['kmeans']),
        'silhouette': result['silhouette'],
        'scatter': result['scatter'],
    }

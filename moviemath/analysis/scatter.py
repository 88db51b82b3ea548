"""
Scatter payload construction for PCA charts.

Turns a PCA result (and optionally a k-means result) into a plain,
renderer-agnostic structure: titles, axis labels with the variance each
component explains, one point series per cluster and the centroid series.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from moviemath.utils.general import is_number, to_number

LABEL_FIELDS = ('Film', 'Year', 'Genre')


def axis_label(component: int, ratio: float) -> str:
    """Label a principal component axis with its explained variance."""
    return f"PC{component} ({ratio * 100:.2f}%)"


def chart_title(records: Sequence[Mapping[str, Any]], year: Any = 'all') -> str:
    """
    Build the chart title for a year selection.

    Args:
        records: Records shown in the chart
        year: Selected year, or 'all'

    Returns:
        Title string
    """
    if year != 'all':
        return f"PCA ({year})"

    years = [int(to_number(r.get('Year'))) for r in records if is_number(r.get('Year'))]
    if not years:
        return "PCA"
    if min(years) == max(years):
        return f"PCA ({min(years)})"
    return f"PCA ({min(years)}-{max(years)})"


def point_row(score: Sequence[float],
              record: Mapping[str, Any],
              label_fields: Sequence[str] = LABEL_FIELDS) -> List[Any]:
    """A scatter point: both scores followed by the record's label fields."""
    return [float(score[0]), float(score[1])] + [record.get(f) for f in label_fields]


def build_scatter_payload(records: Sequence[Mapping[str, Any]],
                          pca_result: Mapping[str, Any],
                          cluster_result: Optional[Mapping[str, Any]] = None,
                          year: Any = 'all',
                          label_fields: Sequence[str] = LABEL_FIELDS) -> Dict[str, Any]:
    """
    Build the scatter chart payload for a PCA projection.

    Args:
        records: Records in the same order as the PCA scores
        pca_result: Result of pca()
        cluster_result: Optional result of k_means() on the scores
        year: Selected year, or 'all'
        label_fields: Record fields appended to every point

    Returns:
        Dictionary with 'title', 'subtitle', 'x_axis', 'y_axis', 'series'
        and 'loadings'
    """
    scores = pca_result['pc_scores']
    ratios = pca_result['variance_explained']

    series = []
    if cluster_result is not None:
        centroids = cluster_result['centroids']
        labels = cluster_result['clusters']

        for i in range(len(centroids)):
            series.append({
                'name': f"Cluster {i + 1}",
                'kind': 'points',
                'data': [point_row(scores[j], records[j], label_fields)
                         for j in range(len(records)) if labels[j] == i]
            })

        for i, center in enumerate(centroids):
            series.append({
                'name': f"Center {i + 1}",
                'kind': 'centroid',
                'data': [[float(center[0]), float(center[1]), f"Cluster center {i + 1}"]]
            })

        subtitle = f"K-means (k={len(centroids)})"
    else:
        series.append({
            'name': 'PCA points',
            'kind': 'points',
            'data': [point_row(scores[j], records[j], label_fields)
                     for j in range(len(records))]
        })
        subtitle = ''

    return {
        'title': chart_title(records, year),
        'subtitle': subtitle,
        'x_axis': axis_label(1, ratios[0]),
        'y_axis': axis_label(2, ratios[1]),
        'series': series,
        'loadings': [dict(v) for v in pca_result['eigenvectors']]
    }

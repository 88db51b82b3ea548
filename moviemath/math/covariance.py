"""
Covariance matrix construction for the moviemath analysis engine.

The input is expected to be standardized already, so products are summed
without re-centering. Each feature pair only counts the records where both
values are valid numbers.
"""

import logging
import numpy as np
from typing import Any, Mapping, Optional, Sequence, Union

from moviemath.math.named_matrix import NamedMatrix

logger = logging.getLogger(__name__)


def pairwise_covariance(values: np.ndarray) -> np.ndarray:
    """
    Calculate the covariance of every column pair over jointly valid rows.

    Pairs with one or no jointly valid rows fall back to the identity
    entry (1 on the diagonal, 0 elsewhere).

    Args:
        values: Standardized matrix (records x features), NaN for invalid

    Returns:
        Square features x features covariance array
    """
    valid = ~np.isnan(values)
    filled = np.where(valid, values, 0.0)
    valid_f = valid.astype(float)

    sums = filled.T @ filled
    counts = valid_f.T @ valid_f

    n_features = values.shape[1]
    cov = np.eye(n_features)
    estimable = counts > 1
    cov[estimable] = sums[estimable] / (counts[estimable] - 1)
    return cov


def calculate_covariance_matrix(data: Union[NamedMatrix, Sequence[Mapping[str, Any]]],
                                features: Optional[Sequence[str]] = None) -> NamedMatrix:
    """
    Build the feature-by-feature covariance matrix of standardized records.

    Args:
        data: Standardized NamedMatrix, or a sequence of standardized records
        features: Ordered feature names when data is a record sequence

    Returns:
        Square NamedMatrix keyed by feature name on both axes. With fewer
        than two records this is the identity matrix.
    """
    if isinstance(data, NamedMatrix):
        nmat = data if features is None else data.colname_subset(features)
    else:
        nmat = NamedMatrix.from_records(data, features)

    names = nmat.colnames()
    n_records = nmat.shape[0]

    if n_records < 2:
        logger.warning(f"Covariance needs at least 2 records, got {n_records}; "
                       f"using identity matrix over {len(names)} features")
        return NamedMatrix.identity(names)

    return NamedMatrix(pairwise_covariance(nmat.values), rownames=names, colnames=names)

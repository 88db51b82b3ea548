"""
Feature standardization for the moviemath analysis engine.

Each feature is rescaled to zero mean and unit (population) standard
deviation over all records of one analysis run. Degenerate inputs never
raise: non-numeric values are skipped when estimating the mean and spread,
a spread that cannot be estimated or is effectively zero is clamped to 1,
and any NaN left in the output is forced to 0.
"""

import logging
import numpy as np
from typing import Any, Dict, Mapping, Optional, Sequence

from moviemath.math.named_matrix import NamedMatrix

logger = logging.getLogger(__name__)

# Standard deviations below this are treated as constant features
STD_EPSILON = 1e-5


def feature_means(values: np.ndarray) -> np.ndarray:
    """
    Calculate the mean of each column over its valid (non-NaN) entries.

    Args:
        values: Matrix of raw values (records x features), NaN for invalid

    Returns:
        Column means; a column with no valid values has mean 0
    """
    valid = ~np.isnan(values)
    counts = valid.sum(axis=0)
    sums = np.where(valid, values, 0.0).sum(axis=0)
    return np.divide(sums, counts,
                     out=np.zeros(values.shape[1]),
                     where=counts > 0)


def feature_stds(values: np.ndarray,
                 means: np.ndarray,
                 std_epsilon: float = STD_EPSILON) -> np.ndarray:
    """
    Calculate the population standard deviation of each column.

    Columns with one or no valid values, and columns whose spread falls
    below std_epsilon, get a standard deviation of 1.

    Args:
        values: Matrix of raw values (records x features), NaN for invalid
        means: Column means from feature_means
        std_epsilon: Clamp threshold

    Returns:
        Column standard deviations
    """
    valid = ~np.isnan(values)
    counts = valid.sum(axis=0)
    sq_devs = np.where(valid, (values - means) ** 2, 0.0).sum(axis=0)

    stds = np.ones(values.shape[1])
    estimable = counts > 1
    stds[estimable] = np.sqrt(sq_devs[estimable] / counts[estimable])
    stds[stds < std_epsilon] = 1.0
    return stds


def standardize_matrix(nmat: NamedMatrix,
                       std_epsilon: float = STD_EPSILON) -> Dict[str, Any]:
    """
    Standardize every column of a record matrix.

    Args:
        nmat: Record matrix (records x features), NaN for non-numeric values
        std_epsilon: Standard deviations below this are clamped to 1

    Returns:
        Dictionary with 'matrix' (standardized NamedMatrix), 'means' and
        'stds' (feature name -> value)
    """
    features = nmat.colnames()
    values = nmat.values

    if values.size == 0:
        return {
            'matrix': NamedMatrix(np.zeros(values.shape), nmat.rownames(), features),
            'means': {},
            'stds': {}
        }

    means = feature_means(values)
    stds = feature_stds(values, means, std_epsilon)

    # Non-numeric values take part as 0 once the statistics are known
    raw = np.where(np.isnan(values), 0.0, values)
    with np.errstate(invalid='ignore', divide='ignore'):
        standardized = (raw - means) / stds
    standardized = np.where(np.isfinite(standardized), standardized, 0.0)

    logger.debug(f"Standardized {values.shape[0]} records over {len(features)} features")

    return {
        'matrix': NamedMatrix(standardized, nmat.rownames(), features),
        'means': dict(zip(features, means.tolist())),
        'stds': dict(zip(features, stds.tolist()))
    }


def standardize_records(records: Sequence[Mapping[str, Any]],
                        features: Optional[Sequence[str]] = None,
                        std_epsilon: float = STD_EPSILON) -> Dict[str, Any]:
    """
    Standardize a sequence of feature records.

    Args:
        records: Feature records sharing an identical feature set
        features: Ordered feature names (defaults to the keys of the first record)
        std_epsilon: Standard deviations below this are clamped to 1

    Returns:
        Dictionary with 'standardized' (list of feature -> value dicts aligned
        with records), 'matrix' (standardized NamedMatrix), 'means' and 'stds'.
        Empty input, or records without features, gives an empty
        'standardized' list and empty 'means'/'stds'.
    """
    nmat = NamedMatrix.from_records(records, features)
    result = standardize_matrix(nmat, std_epsilon)

    if nmat.values.size == 0:
        result['standardized'] = []
    else:
        result['standardized'] = result['matrix'].to_records()

    return result

"""
Named Matrix implementation for the moviemath analysis engine.

This module provides a data structure for matrices with named rows and columns.
Feature records (feature name -> value mappings) are held as a fixed-order
numeric matrix with a parallel list of feature names, so the linear algebra
works on positions while callers keep working with names.
"""

import numpy as np
import pandas as pd
from typing import List, Dict, Mapping, Union, Optional, Sequence, Any

from moviemath.utils.general import parse_number


class IndexHash:
    """
    Maintains an ordered index of names with fast membership checks.
    """

    def __init__(self, names: Optional[Sequence[Any]] = None):
        """
        Initialize an IndexHash with optional initial names.

        Args:
            names: Optional list of initial names
        """
        self._names = [] if names is None else list(names)
        self._index_hash = {name: idx for idx, name in enumerate(self._names)}

    def get_names(self) -> List[Any]:
        """Return the ordered list of names."""
        return self._names.copy()

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: Any) -> bool:
        return name in self._index_hash


class NamedMatrix:
    """
    A matrix with named rows and columns.

    Rows are observations (one per record), columns are feature names.
    A square NamedMatrix with identical row and column names is used for
    feature-by-feature matrices such as the covariance matrix. Uses a
    pandas DataFrame of floats as the underlying storage.
    """

    def __init__(self,
                 matrix: Optional[Union[np.ndarray, pd.DataFrame]] = None,
                 rownames: Optional[Sequence[Any]] = None,
                 colnames: Optional[Sequence[Any]] = None):
        """
        Initialize a NamedMatrix with optional initial data.

        Args:
            matrix: Initial matrix data (numpy array or pandas DataFrame)
            rownames: List of row names
            colnames: List of column names
        """
        if matrix is None:
            rows = [] if rownames is None else list(rownames)
            cols = [] if colnames is None else list(colnames)
            self._matrix = pd.DataFrame(
                np.zeros((len(rows), len(cols))),
                index=rows,
                columns=cols
            )
        elif isinstance(matrix, pd.DataFrame):
            self._matrix = matrix.astype(float).copy()
            if rownames is not None:
                self._matrix.index = list(rownames)
            if colnames is not None:
                self._matrix.columns = list(colnames)
        else:
            matrix = np.asarray(matrix, dtype=float)
            rows = list(rownames) if rownames is not None else list(range(matrix.shape[0]))
            cols = list(colnames) if colnames is not None else list(range(matrix.shape[1]))
            self._matrix = pd.DataFrame(matrix, index=rows, columns=cols)

        self._row_index = IndexHash(self._matrix.index)
        self._col_index = IndexHash(self._matrix.columns)

    @classmethod
    def from_records(cls,
                     records: Sequence[Mapping[str, Any]],
                     features: Optional[Sequence[str]] = None,
                     rownames: Optional[Sequence[Any]] = None) -> 'NamedMatrix':
        """
        Build a matrix from feature records.

        Values that are not finite numbers (missing keys, None, text) are
        stored as NaN so that callers can decide how to treat them.

        Args:
            records: Sequence of feature name -> value mappings
            features: Ordered feature names (defaults to the keys of the
                first record)
            rownames: Optional row names (defaults to record positions)

        Returns:
            A new NamedMatrix with one row per record
        """
        if features is None:
            features = list(records[0].keys()) if records else []
        features = list(features)

        values = np.array(
            [[parse_number(record.get(feature)) for feature in features]
             for record in records],
            dtype=float
        ).reshape(len(records), len(features))

        return cls(values, rownames=rownames, colnames=features)

    @classmethod
    def identity(cls, names: Sequence[Any]) -> 'NamedMatrix':
        """
        Create a square identity matrix over the given names.

        Args:
            names: Row and column names

        Returns:
            Identity NamedMatrix
        """
        names = list(names)
        return cls(np.eye(len(names)), rownames=names, colnames=names)

    @property
    def values(self) -> np.ndarray:
        """Get the matrix as a numpy array."""
        return self._matrix.to_numpy(dtype=float)

    @property
    def shape(self) -> tuple:
        """Get the (rows, columns) shape."""
        return self._matrix.shape

    def rownames(self) -> List[Any]:
        """Get the list of row names."""
        return self._row_index.get_names()

    def colnames(self) -> List[Any]:
        """Get the list of column names."""
        return self._col_index.get_names()

    def colname_subset(self, colnames: Sequence[Any]) -> 'NamedMatrix':
        """
        Create a subset of the matrix with only the specified columns.

        Names that are not columns of this matrix are ignored.

        Args:
            colnames: List of column names to include, in the wanted order

        Returns:
            A new NamedMatrix with only the specified columns
        """
        valid_cols = [col for col in colnames if col in self._col_index]
        return NamedMatrix(self._matrix[valid_cols], colnames=valid_cols)

    def to_records(self) -> List[Dict[Any, float]]:
        """
        Convert the matrix back to one feature mapping per row.

        Returns:
            List of column name -> value dictionaries
        """
        cols = self.colnames()
        return [dict(zip(cols, row)) for row in self.values.tolist()]

    def __repr__(self) -> str:
        return f"NamedMatrix(rows={len(self._row_index)}, cols={len(self._col_index)})"

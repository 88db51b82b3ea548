"""
Numerical analysis engine for moviemath.

This package provides standardization, covariance, approximate
eigen-decomposition, PCA projection and k-means clustering.
"""

from moviemath.math.pca import pca, pca_project_dataframe
from moviemath.math.kmeans import k_means, silhouette

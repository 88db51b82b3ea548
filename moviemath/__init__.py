"""
Moviemath package for exploring movie financial and critical metrics.

This package reduces movie feature records to two principal components and
clusters the projection with k-means, producing data for chart renderers.
"""

__version__ = '0.1.0'

from moviemath.math.pca import pca
from moviemath.math.kmeans import k_means
from moviemath.components.config import Config, ConfigManager

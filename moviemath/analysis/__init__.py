"""
Movie analysis built on the moviemath engine.

This package provides the movie dataset session object, the scatter payload
for PCA charts, and the end-to-end analysis pipeline.
"""

from moviemath.analysis.dataset import MovieDataset, DatasetError
from moviemath.analysis.pipeline import run_analysis
from moviemath.analysis.scatter import build_scatter_payload

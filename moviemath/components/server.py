"""
Server component for moviemath.

This module provides a FastAPI server exposing PCA, k-means and the combined
analysis to chart front-ends.
"""

import logging
from typing import Any, Dict, List, Optional, Union

import fastapi
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from moviemath import __version__
from moviemath.analysis.pipeline import (
    run_analysis, serialize_kmeans, serialize_pca, to_serializable
)
from moviemath.components.config import Config, ConfigManager
from moviemath.math.kmeans import k_means
from moviemath.math.pca import pca
from moviemath.utils.general import get_rng

# Set up logging
logger = logging.getLogger(__name__)


# Define API models
class PCARequest(BaseModel):
    """PCA request model."""

    records: List[Dict[str, Any]]
    features: Optional[List[str]] = None
    seed: Optional[int] = None


class KMeansRequest(BaseModel):
    """K-means request model."""

    points: List[List[float]]
    k: int
    max_iterations: Optional[int] = None
    seed: Optional[int] = None


class AnalyzeRequest(BaseModel):
    """Combined analysis request model."""

    records: List[Dict[str, Any]]
    features: Optional[List[str]] = None
    k: Optional[int] = None
    seed: Optional[int] = None
    year: Union[int, str] = 'all'


def create_app(config: Optional[Config] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        config: Configuration (defaults to the shared configuration)

    Returns:
        FastAPI app
    """
    config = config or ConfigManager.get_config()

    app = FastAPI(
        title="Moviemath API",
        description="PCA and k-means analysis of movie metrics",
        version=__version__
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check
    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    @app.post("/pca")
    async def run_pca(request: PCARequest):
        features = request.features or config.get('data.features')
        result = pca(
            request.records,
            features,
            iters=config.get('pca.max-iters', 100),
            tolerance=config.get('pca.tolerance', 1e-10),
            std_epsilon=config.get('pca.std-epsilon', 1e-5),
            zero_norm=config.get('pca.zero-norm', 1e-10),
            rng=get_rng(request.seed)
        )
        return serialize_pca(result)

    @app.post("/kmeans")
    async def run_kmeans(request: KMeansRequest):
        seed = request.seed if request.seed is not None else config.get('kmeans.seed')
        result = k_means(
            request.points,
            request.k,
            max_iterations=request.max_iterations or config.get('kmeans.max-iters', 100),
            tolerance=config.get('kmeans.tolerance', 0.001),
            rng=get_rng(seed)
        )
        return serialize_kmeans(result)

    @app.post("/analyze")
    async def analyze(request: AnalyzeRequest):
        result = run_analysis(
            request.records,
            request.features,
            k=request.k,
            config=config,
            rng=request.seed,
            year=request.year
        )
        return to_serializable(result)

    @app.exception_handler(fastapi.exceptions.RequestValidationError)
    async def validation_exception_handler(request, exc):
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc)}
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request, exc):
        logger.warning(f"Rejected request to {request.url.path}: {exc}")
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc)}
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request, exc):
        logger.exception("Unhandled exception")
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"}
        )

    return app


def uvicorn_log_level(level: str) -> str:
    """Map a configured level name to a uvicorn log level."""
    level = level.lower()
    return 'warning' if level == 'warn' else level


class Server:
    """
    Uvicorn-hosted server for moviemath.
    """

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize a server.

        Args:
            config: Configuration for the server
        """
        self.config = config or ConfigManager.get_config()
        self.app = create_app(self.config)

    def run(self) -> None:
        """
        Run the server until interrupted.
        """
        port = self.config.get('server.port', 8080)
        host = self.config.get('server.host', 'localhost')

        logger.info(f"Server starting at http://{host}:{port}")

        uvicorn.run(
            self.app,
            host=host,
            port=port,
            log_level=uvicorn_log_level(self.config.get('logging.level', 'info'))
        )

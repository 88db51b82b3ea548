"""
Tests for the HTTP server component.
"""

import pytest
import numpy as np
import sys
import os
from fastapi.testclient import TestClient

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from moviemath.components.config import Config
from moviemath.components.server import Server, create_app, uvicorn_log_level
from moviemath.math.pca import pca


RECORDS = [
    {'Film': 'A', 'Year': 2008, 'x': 1.0, 'y': 2.0, 'z': 0.5},
    {'Film': 'B', 'Year': 2008, 'x': 2.0, 'y': 3.5, 'z': 0.1},
    {'Film': 'C', 'Year': 2009, 'x': 8.0, 'y': 1.0, 'z': 0.9},
    {'Film': 'D', 'Year': 2009, 'x': 9.0, 'y': 0.5, 'z': 0.7},
    {'Film': 'E', 'Year': 2010, 'x': 4.0, 'y': 6.0, 'z': 0.2},
]


@pytest.fixture
def client():
    return TestClient(create_app(Config()))


class TestEndpoints:
    """Tests for the API endpoints."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_pca(self, client):
        """Test the PCA endpoint."""
        response = client.post("/pca", json={'records': RECORDS, 'features': ['x', 'y', 'z']})

        assert response.status_code == 200
        data = response.json()
        assert len(data['pc_scores']) == 5
        assert len(data['eigenvalues']) == 2
        assert np.isclose(sum(data['variance_explained']), 1.0)
        assert set(data['eigenvectors'][0]) == {'x', 'y', 'z'}

    def test_pca_empty(self, client):
        """Test PCA on no records returns the degenerate result."""
        response = client.post("/pca", json={'records': [], 'features': ['x', 'y']})

        assert response.status_code == 200
        data = response.json()
        assert data['pc_scores'] == []
        assert data['eigenvalues'] == [1.0, 1.0]
        assert data['variance_explained'] == [0.5, 0.5]

    def test_pca_uses_configured_settings(self):
        """Test the PCA endpoint applies every configured PCA setting."""
        settings = {'max-iters': 1, 'tolerance': 1e-3, 'std-epsilon': 10.0, 'zero-norm': 1e-6}
        client = TestClient(create_app(Config({'pca': settings})))

        response = client.post("/pca", json={'records': RECORDS, 'features': ['x', 'y', 'z']})
        assert response.status_code == 200
        data = response.json()

        expected = pca(RECORDS, ['x', 'y', 'z'], iters=1, tolerance=1e-3,
                       std_epsilon=10.0, zero_norm=1e-6)
        assert np.allclose(data['eigenvalues'], expected['eigenvalues'])
        assert np.allclose(data['pc_scores'], expected['pc_scores'])

        default = pca(RECORDS, ['x', 'y', 'z'])
        assert not np.allclose(data['eigenvalues'], default['eigenvalues'])

    def test_kmeans(self, client):
        """Test the k-means endpoint."""
        points = [[0, 0], [0.5, 0.2], [10, 10], [10.5, 9.8]]
        response = client.post("/kmeans", json={'points': points, 'k': 2, 'seed': 3})

        assert response.status_code == 200
        data = response.json()
        assert len(data['clusters']) == 4
        assert len(data['centroids']) == 2
        assert data['iterations'] >= 1

    def test_kmeans_invalid(self, client):
        """Test invalid clustering requests are rejected."""
        response = client.post("/kmeans", json={'points': [], 'k': 2})
        assert response.status_code == 422

        response = client.post("/kmeans", json={'points': [[0, 0]], 'k': 0})
        assert response.status_code == 422

        response = client.post("/kmeans", json={'points': [[0, 0]]})
        assert response.status_code == 422

    def test_analyze(self, client):
        """Test the combined analysis endpoint."""
        response = client.post("/analyze", json={
            'records': RECORDS,
            'features': ['x', 'y', 'z'],
            'k': 2,
            'seed': 1,
            'year': 'all'
        })

        assert response.status_code == 200
        data = response.json()
        assert len(data['kmeans']['clusters']) == 5
        assert data['scatter']['title'] == "PCA (2008-2010)"
        assert data['scatter']['subtitle'] == "K-means (k=2)"
        assert -1.0 <= data['silhouette'] <= 1.0

    def test_analyze_without_clusters(self, client):
        """Test the combined analysis without clustering."""
        response = client.post("/analyze", json={
            'records': RECORDS,
            'features': ['x', 'y'],
            'k': 0,
            'year': 2008
        })

        assert response.status_code == 200
        data = response.json()
        assert data['kmeans'] is None
        assert data['silhouette'] is None
        assert data['scatter']['title'] == "PCA (2008)"


    def test_analyze_configured_clusters(self):
        """Test the combined analysis clusters with the configured k when none is given."""
        client = TestClient(create_app(Config({'kmeans': {'k': 2}})))
        response = client.post("/analyze", json={
            'records': RECORDS,
            'features': ['x', 'y', 'z'],
            'seed': 1
        })

        assert response.status_code == 200
        data = response.json()
        assert len(data['kmeans']['centroids']) == 2
        assert data['scatter']['subtitle'] == "K-means (k=2)"


class TestServer:
    """Tests for the Server wrapper."""

    def test_uvicorn_log_level(self):
        assert uvicorn_log_level('warn') == 'warning'
        assert uvicorn_log_level('WARNING') == 'warning'
        assert uvicorn_log_level('DEBUG') == 'debug'

    def test_init(self):
        """Test the server builds its app from the configuration."""
        server = Server(Config({'server': {'port': 9999}}))

        assert server.config.get('server.port') == 9999
        assert server.app.title == "Moviemath API"

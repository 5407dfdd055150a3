"""Tests for the cave map HTTP API."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from py_cavemap.api.main import app

SOLID_CENTRE = [
    [0, 0, 0],
    [0, 255, 0],
    [0, 0, 0],
]


class TestAPIEndpoints:
    """Test the API endpoints."""

    def setup_method(self):
        """Set up test client."""
        self.client = TestClient(app)

    def test_root(self):
        """Test the root endpoint."""
        response = self.client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Cave Map API"
        assert data["status"] == "running"

    def test_health(self):
        """Test the health check."""
        response = self.client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_contour(self):
        """Test contouring a hand made grid."""
        response = self.client.post("/maps/contour", json={"rows": SOLID_CENTRE})
        assert response.status_code == 200

        data = response.json()
        assert data["width"] == 3
        assert data["height"] == 3
        assert len(data["vertices"]) == 5
        assert len(data["triangles"]) == 4
        assert len(data["outlines"]) == 1
        assert data["starting_point"] is None
        assert data["seed"] is None

    def test_contour_mode(self):
        """Test that the traversal mode is accepted by name."""
        response = self.client.post(
            "/maps/contour",
            json={"rows": SOLID_CENTRE, "triangulate_mode": "spiral"},
        )
        assert response.status_code == 200

    @pytest.mark.parametrize("rows", [
        [[0]],
        [[0, 300], [0, 0]],
    ])
    def test_contour_bad_grid(self, rows):
        """Test that invalid grids are a client error."""
        response = self.client.post("/maps/contour", json={"rows": rows})
        assert response.status_code == 400

    def test_contour_bad_mode(self):
        """Test that unknown modes fail validation."""
        response = self.client.post(
            "/maps/contour",
            json={"rows": SOLID_CENTRE, "triangulate_mode": "zigzag"},
        )
        assert response.status_code == 422

    def test_generate(self):
        """Test generating a cave."""
        request = {"width": 40, "height": 30, "seed": "api-test"}
        response = self.client.post("/maps/generate", json=request)
        assert response.status_code == 200

        data = response.json()
        assert data["seed"] == "api-test"
        assert data["width"] == 40
        assert data["height"] == 30
        assert isinstance(data["rooms"], int)
        assert len(data["triangles"]) > 0

        # Same seed, same map
        again = self.client.post("/maps/generate", json=request).json()
        assert again["vertices"] == data["vertices"]

    def test_generate_upscaled(self):
        """Test that upscaling is reflected in the returned size."""
        response = self.client.post(
            "/maps/generate",
            json={"width": 20, "height": 16, "seed": "up", "upscale_filter": True},
        )
        assert response.status_code == 200
        assert response.json()["width"] == 40

    @pytest.mark.parametrize("request_body", [
        {"width": 1},
        {"height": 10000},
        {"random_fill_percent": 150},
        {"triangulate_max_ratio": 0.5},
    ])
    def test_generate_validation(self, request_body):
        """Test that out of range requests fail validation."""
        response = self.client.post("/maps/generate", json=request_body)
        assert response.status_code == 422

    @patch("py_cavemap.api.main.CaveMap.refresh")
    def test_generate_failure(self, mock_refresh):
        """Test that generation errors are reported as client errors."""
        mock_refresh.side_effect = ValueError("bad density")
        response = self.client.post("/maps/generate", json={"width": 10, "height": 10})

        assert response.status_code == 400
        assert response.json()["detail"] == "bad density"

"""
Request metrics, /metrics exposition, /health/detailed and log-directory cleanup.
"""

import os
import time

import pytest
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from src.api.server import app
from src.billing.webhooks import handle_event
from src.log.log_manager import LogManager
from src.observability.middleware import _normalize_path


@pytest.fixture
def client(db, upload_dir):
    with TestClient(app) as c:
        yield c


def _sample(name, labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestNormalizePath:
    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/posts", "/posts"),
            ("/posts/abc123", "/posts/{id}"),
            ("/posts/abc/photos/p1", "/posts/{id}/photos/{id}"),
            ("/posts/abc/photos/order", "/posts/{id}/photos/order"),
            ("/posts/abc/versions/v9/analyses", "/posts/{id}/versions/{id}/analyses"),
            ("/categories/c1/learning-samples/s1", "/categories/{id}/learning-samples/{id}"),
            ("/auth/me", "/auth/me"),
        ],
    )
    def test_ids_become_placeholders(self, path, expected):
        assert _normalize_path(path) == expected


class TestMetricsEndpoint:
    def test_request_is_counted(self, client):
        labels = {"method": "GET", "endpoint": "/posts", "status_code": "401"}
        before = _sample("blogcraft_http_requests_total", labels)

        assert client.get("/posts").status_code == 401

        assert _sample("blogcraft_http_requests_total", labels) == before + 1
        body = client.get("/metrics").text
        assert "blogcraft_http_requests_total" in body
        assert "blogcraft_http_request_duration_seconds" in body

    def test_metrics_and_health_are_not_counted(self, client):
        labels = {"method": "GET", "endpoint": "/metrics", "status_code": "200"}
        client.get("/metrics")
        assert _sample("blogcraft_http_requests_total", labels) == 0.0

    def test_webhook_events_are_counted(self, db):
        labels = {"event_type": "other", "applied": "false"}
        before = _sample("blogcraft_webhook_events_total", labels)
        assert handle_event({"type": "invoice.paid", "data": {"object": {}}}) is False
        assert _sample("blogcraft_webhook_events_total", labels) == before + 1


class TestHealthDetailed:
    def test_components(self, client, llm_unconfigured):
        resp = client.get("/health/detailed")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["components"]["database"] == "ok"
        assert data["components"]["llm"] == "not_configured"
        assert data["components"]["payments"] in ("ok", "not_configured")

    def test_llm_configured(self, client, llm_configured):
        assert client.get("/health/detailed").json()["components"]["llm"] == "ok"


class TestLogCleanup:
    def _touch(self, path, size=0, age_days=0):
        with open(path, "wb") as f:
            f.write(b"x" * size)
        if age_days:
            old = time.time() - age_days * 86400
            os.utime(path, (old, old))

    def test_old_files_are_removed(self, tmp_path):
        manager = LogManager({"log_dir": str(tmp_path), "max_age_days": 7, "console_output": False})
        self._touch(tmp_path / "old.log", age_days=30)
        self._touch(tmp_path / "recent.log", age_days=1)
        self._touch(manager.run_file)

        report = manager.cleanup()

        assert report["deleted"] == ["old.log"]
        assert (tmp_path / "recent.log").exists()
        assert manager.run_file.exists()

    def test_oldest_files_go_first_over_size_limit(self, tmp_path):
        manager = LogManager({"log_dir": str(tmp_path), "max_size_mb": 1, "console_output": False})
        chunk = 600 * 1024
        self._touch(tmp_path / "a.log", size=chunk, age_days=3)
        self._touch(tmp_path / "b.log", size=chunk, age_days=2)
        self._touch(tmp_path / "c.log", size=chunk, age_days=1)

        report = manager.cleanup()

        assert report["deleted"] == ["a.log", "b.log"]
        assert (tmp_path / "c.log").exists()
        assert report["remaining_mb"] < 1

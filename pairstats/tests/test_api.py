"""API endpoint tests"""

import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pairstats.api.deps import get_db
from pairstats.core.config import settings
from pairstats.main import app
from pairstats.models import Base
from pairstats.tests.factories import E18, PAIR_WETH_A, TOKEN_A, WETH, raw_log, registered, sync


class TestAPI:
    """Test API endpoints"""

    @pytest.fixture
    def client(self, tmp_path, monkeypatch):
        """Test client over an in-memory database and a temporary events file"""
        engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
        Base.metadata.create_all(engine)
        TestingSession = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

        def override_get_db():
            db = TestingSession()
            try:
                yield db
            finally:
                db.close()

        events = tmp_path / "events.jsonl"
        blocks = [
            {"height": 10_000_900, "timestamp": 1, "logs": [raw_log(registered(PAIR_WETH_A, WETH, TOKEN_A, n=1))]},
            {"height": 10_000_901, "timestamp": 2, "logs": [raw_log(sync(PAIR_WETH_A, 1000 * E18, 2 * E18, n=2))]},
        ]
        events.write_text("\n".join(json.dumps(b) for b in blocks), encoding="utf-8")
        monkeypatch.setattr(settings, "EVENTS_PATH", str(events))

        app.dependency_overrides[get_db] = override_get_db
        yield TestClient(app)
        app.dependency_overrides.clear()
        engine.dispose()

    def test_health_check(self, client):
        """Test health check endpoint"""
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["database"] == "ok"
        assert body["last_batch_status"] is None
        assert body["checkpoint"] is None

    def test_readiness(self, client):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_indexer_run_then_stats(self, client):
        response = client.post("/indexer/run")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["batches"] == 1
        assert body["events_processed"] == 2
        assert body["checkpoint"] == 10_000_901

        stats = client.get("/stats").json()
        assert len(stats) == 1
        assert stats[0]["status"] == "success"
        assert stats[0]["summary"]["pairs_created"] == 1

        checkpoints = client.get("/stats/checkpoints").json()
        assert checkpoints[0]["processor_name"] == "pairstats"
        assert checkpoints[0]["last_block_height"] == 10_000_901

        assert client.get("/health").json()["last_batch_status"] == "success"

    def test_stats_filters(self, client):
        response = client.get("/stats?status=failure&limit=5")
        assert response.status_code == 200
        assert response.json() == []

    def test_invalid_endpoint(self, client):
        """Test invalid endpoint returns 404"""
        response = client.get("/invalid")
        assert response.status_code == 404

import time
from typing import Iterable, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from services.pipeline import AcquisitionPipeline

from tests.fakes import ClosableSource, RecordingSink


@pytest.fixture
def pipelines() -> List[AcquisitionPipeline]:
    return []


@pytest.fixture
def make_client(monkeypatch, pipelines):
    def factory(lines: Iterable[str]) -> TestClient:
        pipeline: Optional[AcquisitionPipeline] = None

        def build_test_pipeline(
            device: Optional[str] = None, baud_rate: Optional[int] = None
        ) -> AcquisitionPipeline:
            nonlocal pipeline
            if pipeline is None:
                pipeline = AcquisitionPipeline(source=lines, sink=RecordingSink())
                pipelines.append(pipeline)
            return pipeline

        def cache_clear() -> None:
            nonlocal pipeline
            pipeline = None

        build_test_pipeline.cache_clear = cache_clear  # type: ignore[attr-defined]

        monkeypatch.setattr("app.main.build_default_pipeline", build_test_pipeline)
        monkeypatch.setattr("app.api.build_default_pipeline", build_test_pipeline)
        return TestClient(create_app())

    return factory


def _poll_stats(client: TestClient, status: str, timeout: float = 5.0) -> dict:
    deadline = time.monotonic() + timeout
    last_payload: dict | None = None
    while time.monotonic() < deadline:
        response = client.get("/pipeline/stats")
        assert response.status_code == 200
        last_payload = response.json()
        if last_payload["status"] == status:
            return last_payload
        time.sleep(0.02)
    pytest.fail(f"Pipeline did not reach {status}: {last_payload}")


def test_health_endpoints(make_client) -> None:
    with make_client(ClosableSource([])) as client:
        assert client.get("/health").json() == {"status": "ok"}
        assert client.get("/").json()["status"] == "ok"
        assert client.get("/pipeline/stats").json()["status"] == "running"


def test_health_reports_unavailable_once_source_is_exhausted(make_client) -> None:
    with make_client([]) as client:
        _poll_stats(client, "exhausted")
        response = client.get("/health")

    assert response.status_code == 503
    assert response.json() == {"status": "unavailable", "pipeline": "exhausted"}


def test_latest_reading_after_telegram(make_client, telegram_lines) -> None:
    with make_client(telegram_lines) as client:
        stats = _poll_stats(client, "exhausted")
        response = client.get("/readings/latest")

    assert stats["snapshots_decoded"] == 1
    assert stats["points_written"] == 9
    assert response.status_code == 200
    payload = response.json()
    assert payload["electricity_timestamp"] == "2020-12-21T01:08:33+01:00"
    assert payload["gas_timestamp"] == "2010-12-21T01:05:11+01:00"
    assert payload["electricity_reading_low_tariff"] == {"value": 2134.177, "unit": "kWh"}
    assert payload["gas_reading"] == {"value": 3799.479, "unit": "m3"}
    assert payload["current"] == {"value": 1.0, "unit": "A"}


def test_latest_reading_not_found_before_first_snapshot(make_client) -> None:
    with make_client(["noise"]) as client:
        _poll_stats(client, "exhausted")
        response = client.get("/readings/latest")

    assert response.status_code == 404
    assert response.json()["detail"] == "No telegram has been written yet."


def test_lifespan_shuts_down_pipeline(make_client, pipelines, telegram_lines) -> None:
    with make_client(telegram_lines) as client:
        _poll_stats(client, "exhausted")

    assert len(pipelines) == 1
    sink = pipelines[0].sink
    assert isinstance(sink, RecordingSink)
    assert sink.closed is True

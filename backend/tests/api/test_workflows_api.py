"""HTTP tests for the workflow endpoints."""

import pytest
from fastapi.testclient import TestClient

from workflow_orchestrator.api.deps import get_step_registry
from workflow_orchestrator.core.config import settings
from workflow_orchestrator.main import create_app
from workflow_orchestrator.pipeline.registry import default_registry

from tests.fixtures.steps import RecordingStep

NO_RETRY_CONTINUE = {"max_retries": 0, "retry_strategy": "fixed", "fallback_enabled": True}
NO_RETRY_ABORT = {"max_retries": 0, "retry_strategy": "fixed", "fallback_enabled": False}


@pytest.fixture
def client(test_registry):
    app = create_app()
    app.dependency_overrides[get_step_registry] = lambda: test_registry
    # no context manager: the lifespan would reconfigure logging for the session
    return TestClient(app)


def _workflow(steps, error_handling=NO_RETRY_CONTINUE, **extra):
    return {
        "workflow_id": "wf-api-001",
        "name": "Valuation Workflow",
        "steps": steps,
        "error_handling": error_handling,
        **extra,
    }


def _step(name, type_="Recording", **config):
    return {"name": name, "type": type_, "config": config}


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "env": settings.APP_ENV}


def test_step_types(client):
    response = client.get("/api/v1/workflows/step-types")

    assert response.status_code == 200
    assert response.json() == {"step_types": ["BrokenCleanup", "Failing", "Recording"]}


def test_execute_success(client):
    body = _workflow([_step("DataInput", output={"revenue": 10}), _step("Valuation"), _step("Report")])

    response = client.post("/api/v1/workflows/execute", json=body)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["workflow_id"] == "wf-api-001"
    assert data["execution_time_ms"] >= 0

    result = data["result"]
    assert result["status"] == "COMPLETED"
    assert result["summary"]["completed_steps"] == 3
    assert [s["name"] for s in result["steps"]] == ["DataInput", "Valuation", "Report"]
    assert result["errors"] == []


def test_execute_degraded_run_still_returns_200(client):
    body = _workflow(
        [
            _step("DataInput"),
            _step("Validation", "Failing", error="validation", message="revenue must be positive"),
            _step("Report"),
        ]
    )

    response = client.post("/api/v1/workflows/execute", json=body)

    assert response.status_code == 200
    result = response.json()["result"]
    assert result["status"] == "FAILED"
    assert result["summary"]["failed_steps"] == 1
    assert result["errors"][0]["step"] == "Validation"
    assert result["errors"][0]["type"] == "StepValidationError"


def test_execute_too_few_steps_is_400(client):
    body = _workflow([_step("a"), _step("b")])

    response = client.post("/api/v1/workflows/execute", json=body)

    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    assert data["error"]["code"] == "INVALID_WORKFLOW"
    assert "at least 3 steps" in data["error"]["message"]
    assert data["error"]["timestamp"]


def test_execute_unknown_step_type_is_400(client):
    body = _workflow([_step("a"), _step("b", "Teleport"), _step("c")])

    response = client.post("/api/v1/workflows/execute", json=body)

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "INVALID_WORKFLOW"
    assert error["step"] == "b"


def test_execute_abort_is_500_with_partial_report(client):
    body = _workflow(
        [_step("a"), _step("b", "Failing", message="division by zero"), _step("c")],
        error_handling=NO_RETRY_ABORT,
    )

    response = client.post("/api/v1/workflows/execute", json=body)

    assert response.status_code == 500
    data = response.json()
    assert data["success"] is False
    assert data["error"]["code"] == "WORKFLOW_EXECUTION_FAILED"
    assert data["error"]["step"] == "b"
    assert data["error"]["message"] == "Workflow failed at step: b"

    partial = data["result"]
    assert partial["status"] == "FAILED"
    assert [s["name"] for s in partial["steps"]] == ["a", "b"]
    assert partial["summary"]["completed_steps"] == 1


def test_execute_rejects_malformed_body(client):
    body = _workflow(
        [_step("a"), _step("b"), _step("c")],
        error_handling={"max_retries": -1},
    )

    response = client.post("/api/v1/workflows/execute", json=body)

    assert response.status_code == 422


@pytest.fixture
def host_registered_step():
    """Register a step type on the default registry the way a host would."""
    default_registry.register("HostRecording", RecordingStep)
    yield "HostRecording"
    default_registry.registry.pop("HostRecording", None)


def test_default_registry_is_empty_until_host_registers():
    client = TestClient(create_app())
    body = _workflow([_step("a"), _step("b"), _step("c")])

    response = client.post("/api/v1/workflows/execute", json=body)

    assert response.status_code == 400
    assert "Unknown step type 'Recording'" in response.json()["error"]["message"]


def test_host_registered_steps_run_without_override(host_registered_step):
    client = TestClient(create_app())
    body = _workflow([_step(name, host_registered_step) for name in ("a", "b", "c")])

    types = client.get("/api/v1/workflows/step-types").json()["step_types"]
    response = client.post("/api/v1/workflows/execute", json=body)

    assert host_registered_step in types
    assert response.status_code == 200
    assert response.json()["result"]["status"] == "COMPLETED"

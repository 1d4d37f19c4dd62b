"""HTTP surface tests: routing, CORS, envelope rendering and health endpoints."""

import json

import pytest
from fastapi.testclient import TestClient

from codemode_service.compiler import (
    CompilerFrontendAdapter,
    EngineDiagnostic,
    EngineOutput,
)
from codemode_service.orchestrator import RequestOrchestrator
from codemode_service.sandbox import (
    EntryModuleSynthesizer,
    SandboxDispatcher,
    SandboxResponse,
)
from main import app

from fakes import FakeFrontend, FakeLoader


@pytest.fixture
def pipeline():
    frontend = FakeFrontend(EngineOutput(emitted="async function codemode() { return 2; }"))
    loader = FakeLoader(
        SandboxResponse(status=200, body=json.dumps({"success": True, "result": 2}))
    )
    return frontend, loader


@pytest.fixture
def client(pipeline):
    frontend, loader = pipeline
    with TestClient(app) as client:
        app.state.frontend = frontend
        app.state.loader = loader
        app.state.orchestrator = RequestOrchestrator(
            adapter=CompilerFrontendAdapter(frontend),
            synthesizer=EntryModuleSynthesizer(),
            dispatcher=SandboxDispatcher(loader),
        )
        yield client


class TestRunEndpoint:
    def test_preflight(self, client, pipeline):
        response = client.options("/")

        assert response.status_code == 204
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type"
        frontend, loader = pipeline
        assert frontend.units == []
        assert loader.requests == []

    @pytest.mark.parametrize("path", ["/health/ready", "/metrics/", "/no/such/path"])
    def test_preflight_on_any_path(self, client, path):
        response = client.options(path)

        assert response.status_code == 204
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"

    def test_post_raw_body(self, client):
        response = client.post("/", content="async function codemode() { return 1 + 1 }")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.json() == {"success": True, "result": 2}

    def test_post_json_body(self, client, pipeline):
        response = client.post("/", json={"code": "async function codemode() {}"})

        assert response.status_code == 200
        frontend, _ = pipeline
        assert frontend.units[0].text == "async function codemode() {}"

    def test_json_is_indented(self, client):
        response = client.post("/", content="async function codemode() {}")

        assert response.text == '{\n  "success": true,\n  "result": 2\n}'

    def test_empty_body(self, client, pipeline):
        response = client.post("/", content="   ")

        assert response.status_code == 400
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.json() == {
            "success": False,
            "error": "Request body is empty. Please provide TypeScript code.",
        }
        frontend, loader = pipeline
        assert frontend.units == []
        assert loader.requests == []

    def test_invalid_json_body(self, client):
        response = client.post(
            "/", content='{"code": ', headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.parametrize("method", ["PUT", "DELETE", "PATCH"])
    def test_method_not_allowed(self, client, method):
        response = client.request(method, "/", content="const a = 1;")

        assert response.status_code == 405
        assert response.json() == {"success": False, "error": "Method not allowed"}
        assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.parametrize("method", ["TRACE", "PROPFIND", "PURGE"])
    def test_unrouted_method_gets_envelope(self, client, pipeline, method):
        response = client.request(method, "/")

        assert response.status_code == 405
        assert response.headers["content-type"].startswith("application/json")
        assert response.json() == {"success": False, "error": "Method not allowed"}
        assert response.headers["access-control-allow-origin"] == "*"
        frontend, loader = pipeline
        assert frontend.units == []
        assert loader.requests == []

    def test_wrong_method_elsewhere_keeps_default_error(self, client):
        response = client.post("/health/live")

        assert response.status_code == 405
        assert response.json() == {"detail": "Method Not Allowed"}

    def test_lone_surrogate_result_stays_json(self, client, pipeline):
        _, loader = pipeline
        loader.response = SandboxResponse(
            status=200, body='{"success": true, "result": "\\ud800"}'
        )

        response = client.post("/", content="async function codemode() { return '\\uD800' }")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert '"result": "\\ud800"' in response.text
        assert response.json() == {"success": True, "result": "\ud800"}

    def test_non_ascii_is_escaped(self, client, pipeline):
        _, loader = pipeline
        loader.response = SandboxResponse(
            status=200, body=json.dumps({"success": True, "result": "héllo"})
        )

        response = client.post("/", content="async function codemode() { return 'héllo' }")

        assert '"result": "h\\u00e9llo"' in response.text
        assert response.json()["result"] == "héllo"

    def test_get_without_code_serves_playground(self, client, pipeline):
        response = client.get("/")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "<textarea" in response.text
        assert "async function codemode()" in response.text
        frontend, _ = pipeline
        assert frontend.units == []

    def test_get_with_code_runs_it(self, client, pipeline):
        response = client.get("/", params={"code": "async function codemode() { return 2; }"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "result": 2}
        frontend, _ = pipeline
        assert frontend.units[0].text == "async function codemode() { return 2; }"

    def test_check_failure(self, client, pipeline):
        frontend, loader = pipeline
        frontend.output = EngineOutput(
            pre_emit=[
                EngineDiagnostic(
                    code=2322,
                    category=1,
                    message_text="Type 'string' is not assignable to type 'number'.",
                    file_name="/input.ts",
                    start=6,
                )
            ]
        )

        response = client.post("/", content='const x: number = "hello";')

        assert response.status_code == 400
        data = response.json()
        assert data["error"].startswith("TypeScript compilation failed:\n")
        assert data["diagnostics"][0]["code"] == 2322
        assert data["diagnostics"][0]["line"] == 1
        assert loader.requests == []

    def test_runtime_failure_has_no_diagnostics(self, client, pipeline):
        _, loader = pipeline
        loader.response = SandboxResponse(
            status=500, body=json.dumps({"success": False, "error": "boom"})
        )

        response = client.post("/", content="async function codemode() { throw new Error('boom') }")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "boom"}


class TestHealthEndpoints:
    def test_health(self, client):
        response = client.get("/health/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == app.state.settings.service_name

    def test_live(self, client):
        assert client.get("/health/live").json() == {"alive": True}

    def test_ready_with_available_runtimes(self, client):
        data = client.get("/health/ready").json()

        assert data["ready"] is True
        assert data["checks"] == {"compiler": True, "sandbox": True}

    def test_not_ready_without_sandbox(self, client, monkeypatch):
        monkeypatch.setattr(app.state.loader, "is_available", lambda: False)
        monkeypatch.setattr(app.state.settings, "debug", False)

        data = client.get("/health/ready").json()

        assert data["ready"] is False
        assert data["checks"]["sandbox"] is False

    def test_metrics_exposed(self, client):
        client.post("/", content="   ")

        response = client.get("/metrics/")

        assert response.status_code == 200
        assert "codemode_requests_total" in response.text

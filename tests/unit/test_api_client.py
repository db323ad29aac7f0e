"""Tests for the HTTP client wrapper and the endpoint classes."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

from codesentry.api.auth import AuthApi
from codesentry.api.client import ApiClient
from codesentry.api.codegen import CodeGenApi, GeneratedCodeApi
from codesentry.api.security import CodeSecurityApi
from codesentry.api.token import TokenStore
from codesentry.errors import (
    ApiError,
    AuthenticationError,
    TransientFetchError,
    TransportError,
)
from codesentry.scan.models import Outcome, ScanStatus
from codesentry.scan.orchestrator import PollConfig, ScanOrchestrator


def _response(status_code: int = 200, body=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    if body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


def _envelope(data=None, status: int = 200, message: str = "ok") -> dict:
    return {"status": status, "message": message, "data": data}


@pytest.fixture
def token_store(tmp_path: Path) -> TokenStore:
    return TokenStore(tmp_path / "token")


@pytest.fixture
def session() -> MagicMock:
    return MagicMock()


@pytest.fixture
def client(session: MagicMock, token_store: TokenStore) -> ApiClient:
    return ApiClient("http://api.test/", token_store=token_store, session=session)


class TestApiClient:
    def test_unwraps_envelope(self, client, session):
        session.request.return_value = _response(200, _envelope(["a", "b"]))
        assert client.get("/code-gen/models") == ["a", "b"]

        method, url = session.request.call_args.args
        assert method == "GET"
        assert url == "http://api.test/code-gen/models"

    def test_sends_raw_token(self, client, session, token_store):
        token_store.save("tok-123")
        session.request.return_value = _response(200, _envelope("x"))
        client.post("/auth/refresh")
        headers = session.request.call_args.kwargs["headers"]
        assert headers["Authorization"] == "tok-123"

    def test_no_token_no_header(self, client, session):
        session.request.return_value = _response(200, _envelope("x"))
        client.get("/generated-code/list")
        assert "Authorization" not in session.request.call_args.kwargs["headers"]

    def test_envelope_error_status(self, client, session):
        session.request.return_value = _response(
            200, _envelope(None, status=500, message="generator down")
        )
        with pytest.raises(ApiError) as excinfo:
            client.get("/code-gen/models")
        assert excinfo.value.message == "generator down"
        assert excinfo.value.status_code == 500

    def test_http_error_uses_body_message(self, client, session):
        session.request.return_value = _response(404, {"message": "not found"})
        with pytest.raises(ApiError) as excinfo:
            client.get("/generated-code/zzz")
        assert excinfo.value.status_code == 404
        assert "not found" in str(excinfo.value)

    def test_unauthorized_clears_token(self, client, session, token_store):
        token_store.save("expired")
        session.request.return_value = _response(401, {"message": "expired"})
        with pytest.raises(AuthenticationError):
            client.get("/generated-code/list")
        assert token_store.load() is None

    def test_transport_failure(self, client, session):
        session.request.side_effect = requests.exceptions.ConnectTimeout("slow")
        with pytest.raises(TransportError) as excinfo:
            client.get("/generated-code/list")
        assert excinfo.value.status_code is None

    def test_per_request_timeout(self, client, session):
        session.request.return_value = _response(200, _envelope("x"))
        client.get("/x", timeout=2.0)
        assert session.request.call_args.kwargs["timeout"] == 2.0
        client.get("/x")
        assert session.request.call_args.kwargs["timeout"] == client.timeout


class TestAuthApi:
    def test_login_stores_token(self, client, session, token_store):
        session.request.return_value = _response(200, _envelope("tok-abc"))
        AuthApi(client).login("alice", "secret")
        assert token_store.load() == "tok-abc"
        assert session.request.call_args.kwargs["json"] == {
            "account": "alice",
            "password": "secret",
        }

    def test_logout_clears_token_even_when_server_fails(
        self, client, session, token_store
    ):
        token_store.save("tok")
        session.request.side_effect = requests.exceptions.ConnectionError("down")
        with pytest.raises(TransportError):
            AuthApi(client).logout()
        assert token_store.load() is None


class TestCodeGenApi:
    def test_generate_code(self, client, session):
        session.request.return_value = _response(
            200,
            _envelope(
                {
                    "codeId": "c1",
                    "content": "print('hi')",
                    "language": "python",
                    "modelUsed": "deepseek",
                }
            ),
        )
        result = CodeGenApi(client).generate_code(
            "say hi", "python", model_type="deepseek"
        )
        assert result.code_id == "c1"
        assert result.model_used == "deepseek"
        assert session.request.call_args.kwargs["json"]["modelType"] == "deepseek"

    def test_list_codes_parses_scan_status(self, client, session):
        session.request.return_value = _response(
            200,
            _envelope(
                [
                    {"id": "a", "content": "", "language": "go", "scanStatus": "COMPLETED"},
                    {"id": "b", "content": "", "language": "go", "scanStatus": "weird"},
                ]
            ),
        )
        docs = GeneratedCodeApi(client).list_codes()
        assert [d.scan_status for d in docs] == [ScanStatus.COMPLETED, ScanStatus.PENDING]


class TestCodeSecurityApi:
    def test_scan_code_plain_acknowledgement(self, client, session):
        session.request.return_value = _response(200, _envelope("scan started"))
        outcome = CodeSecurityApi(client).scan_code("c1")
        assert outcome.code_id == "c1"
        assert outcome.message == "scan started"
        assert outcome.enhanced is None
        method, url = session.request.call_args.args
        assert (method, url) == ("POST", "http://api.test/code-security/scan/c1")

    def test_scan_code_enhanced_payload(self, client, session):
        session.request.return_value = _response(
            200,
            _envelope(
                {
                    "message": "enhanced scan started",
                    "enhancedAnalysis": {
                        "queries": ["MATCH (v:Vuln) RETURN v"],
                        "retrievedNodes": [{"id": "CWE-79"}],
                    },
                }
            ),
        )
        outcome = CodeSecurityApi(client).scan_code("c1")
        assert outcome.enhanced is not None
        assert outcome.enhanced.queries == ("MATCH (v:Vuln) RETURN v",)

    def test_scan_code_failure_raises(self, client, session):
        session.request.side_effect = requests.exceptions.ConnectionError("down")
        with pytest.raises(TransportError):
            CodeSecurityApi(client).scan_code("c1")

    def test_fetch_status_completed(self, client, session, report_payload):
        session.request.return_value = _response(200, _envelope(report_payload))
        check = CodeSecurityApi(client).fetch_scan_status("code-1")
        assert check.status == ScanStatus.COMPLETED
        assert check.report.security_score == 85

    def test_fetch_status_falls_back_to_document(self, client, session):
        session.request.side_effect = [
            _response(404, {"message": "no result yet"}),
            _response(
                200,
                _envelope({"id": "code-1", "content": "", "language": "py",
                           "scanStatus": "SCANNING"}),
            ),
        ]
        check = CodeSecurityApi(client).fetch_scan_status("code-1")
        assert check.status == ScanStatus.SCANNING
        assert check.report is None

    def test_fetch_status_document_failed(self, client, session):
        session.request.side_effect = [
            _response(200, _envelope(None, status=404, message="none")),
            _response(
                200,
                _envelope({"id": "code-1", "content": "", "language": "py",
                           "scanStatus": "FAILED"}),
            ),
        ]
        check = CodeSecurityApi(client).fetch_scan_status("code-1")
        assert check.status == ScanStatus.FAILED

    def test_fetch_status_transport_error_is_transient(self, client, session):
        session.request.side_effect = requests.exceptions.ReadTimeout("slow")
        with pytest.raises(TransientFetchError):
            CodeSecurityApi(client).fetch_scan_status("code-1")

    def test_fetch_status_server_error_is_transient(self, client, session):
        session.request.return_value = _response(503, {"message": "busy"})
        with pytest.raises(TransientFetchError):
            CodeSecurityApi(client).fetch_scan_status("code-1")

    def test_fetch_status_unauthorized_propagates(self, client, session):
        session.request.return_value = _response(401, {"message": "expired"})
        with pytest.raises(AuthenticationError):
            CodeSecurityApi(client).fetch_scan_status("code-1")

    def test_status_timeout_applied(self, client, session, report_payload):
        session.request.return_value = _response(200, _envelope(report_payload))
        CodeSecurityApi(client, status_timeout=2.5).fetch_scan_status("code-1")
        assert session.request.call_args.kwargs["timeout"] == 2.5

    @pytest.mark.parametrize(
        "payload",
        [
            {"securityScore": None},
            {"securityScore": 150, "vulnerabilities": []},
            {"securityScore": 70, "vulnerabilities": [{"type": "XSS", "line": "ten"}]},
        ],
    )
    def test_malformed_result_is_an_api_error(self, client, session, payload):
        session.request.return_value = _response(200, _envelope(payload))
        with pytest.raises(ApiError) as excinfo:
            CodeSecurityApi(client).get_scan_result("code-1")
        assert excinfo.value.status_code == 502

    def test_fetch_status_malformed_result_is_transient(self, client, session):
        session.request.return_value = _response(200, _envelope({"securityScore": None}))
        with pytest.raises(TransientFetchError):
            CodeSecurityApi(client).fetch_scan_status("code-1")

    def test_poll_loop_survives_malformed_results(self, client, session):
        session.request.return_value = _response(200, _envelope({"securityScore": None}))

        async def no_sleep(delay: float) -> None:
            return None

        security = CodeSecurityApi(client)
        orch = ScanOrchestrator(
            security.scan_code,
            PollConfig(fetch_status=security.fetch_scan_status, max_attempts=3),
            sleep=no_sleep,
        )
        outcome = asyncio.run(orch.poll_until_terminal("code-1"))

        assert outcome.outcome == Outcome.TIMED_OUT
        assert outcome.attempts == 3

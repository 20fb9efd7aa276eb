"""End-to-end tests for the verify sign-in routes."""

from __future__ import annotations

import pytest
from flask import Flask
from flask.testing import FlaskClient

from rpverify.web.routes.verify import REQUEST_ID_KEY, USER_KEY
from tests.conftest import EXAMPLE_AUTHN_REQUEST, MockServiceProvider


def start_run(client: FlaskClient, service_provider: MockServiceProvider) -> None:
    service_provider.respond("/generate-request", 200, EXAMPLE_AUTHN_REQUEST)
    response = client.post("/verify/start")
    assert response.status_code == 200


class TestStart:
    """Tests for sending the user to the hub."""

    def test_renders_form_and_saves_request_id(
        self, client: FlaskClient, service_provider: MockServiceProvider
    ) -> None:
        service_provider.respond("/generate-request", 200, EXAMPLE_AUTHN_REQUEST)

        response = client.get("/verify/start")

        assert response.status_code == 200
        assert response.mimetype == "text/html"
        assert b'action="https://hub.test/SAML2/SSO"' in response.data
        assert b'value="some-saml-request"' in response.data
        with client.session_transaction() as sess:
            assert sess[REQUEST_ID_KEY] == "some-request-id"

    def test_sends_entity_id_from_config(
        self, matching_app: Flask, service_provider: MockServiceProvider
    ) -> None:
        service_provider.respond("/generate-request", 200, EXAMPLE_AUTHN_REQUEST)

        matching_app.test_client().post("/verify/start")

        assert service_provider.payloads("/generate-request") == [
            {"levelOfAssurance": "LEVEL_2", "entityId": "https://service.test/entity"}
        ]

    def test_custom_form_template(self, service_provider: MockServiceProvider) -> None:
        from rpverify.app import create_app

        app = create_app({
            "TESTING": True,
            "SECRET_KEY": "test-secret-key",
            "VERIFY_FORM_TEMPLATE": "verify/form.html",
            "VERIFY_TRANSPORT": service_provider.transport,
        })
        service_provider.respond("/generate-request", 200, EXAMPLE_AUTHN_REQUEST)

        response = app.test_client().get("/verify/start")

        assert response.status_code == 200
        assert b"<title>Continue to GOV.UK Verify</title>" in response.data
        assert b'value="some-saml-request"' in response.data

    def test_service_provider_error(self, client: FlaskClient, service_provider: MockServiceProvider) -> None:
        service_provider.respond("/generate-request", 500, {"code": 500, "message": "hub metadata unavailable"})

        response = client.get("/verify/start")

        assert response.status_code == 500
        assert b"Sorry, there is a problem with GOV.UK Verify" in response.data
        assert b"hub metadata unavailable" in response.data

    def test_malformed_service_provider_body(self, client: FlaskClient, service_provider: MockServiceProvider) -> None:
        service_provider.respond("/generate-request", 200, ["not", "an", "object"])

        response = client.get("/verify/start")

        assert response.status_code == 500
        assert b"expected a JSON object, got list" in response.data


class TestIdentityResponse:
    """Tests for the response post in an identity journey."""

    def test_identity_verified_signs_in(self, client: FlaskClient, service_provider: MockServiceProvider) -> None:
        start_run(client, service_provider)
        service_provider.respond(
            "/translate-response",
            200,
            {
                "scenario": "IDENTITY_VERIFIED",
                "pid": "some-pid",
                "levelOfAssurance": "LEVEL_2",
                "attributes": {"firstName": {"value": "Jane", "verified": True}},
            },
        )

        response = client.post("/verify/response", data={"SAMLResponse": "some-saml-response"})

        assert response.status_code == 302
        assert response.headers["Location"].endswith("/")
        assert service_provider.payloads("/translate-response") == [
            {"samlResponse": "some-saml-response", "requestId": "some-request-id", "levelOfAssurance": "LEVEL_2"}
        ]
        with client.session_transaction() as sess:
            assert sess[USER_KEY]["pid"] == "some-pid"
            assert sess[USER_KEY]["first_name"] == "Jane"
            assert REQUEST_ID_KEY not in sess

        index = client.get("/")
        assert b"some-pid" in index.data
        assert b"Hello, Jane." in index.data

    @pytest.mark.parametrize("scenario", ["CANCELLATION", "AUTHENTICATION_FAILED", "NO_AUTHENTICATION"])
    def test_negative_scenarios_show_failure(
        self, client: FlaskClient, service_provider: MockServiceProvider, scenario: str
    ) -> None:
        start_run(client, service_provider)
        service_provider.respond("/translate-response", 200, {"scenario": scenario})

        response = client.post("/verify/response", data={"SAMLResponse": "some-saml-response"})

        assert response.status_code == 401
        assert b"You have not been signed in" in response.data
        assert scenario.encode() in response.data

    def test_unknown_scenario_is_an_error(self, client: FlaskClient, service_provider: MockServiceProvider) -> None:
        start_run(client, service_provider)
        service_provider.respond("/translate-response", 200, {"scenario": "UNKNOWN_X"})

        response = client.post("/verify/response", data={"SAMLResponse": "some-saml-response"})

        assert response.status_code == 500
        assert b"Unrecognised scenario UNKNOWN_X" in response.data

    def test_identity_without_pid_is_an_error(
        self, client: FlaskClient, service_provider: MockServiceProvider
    ) -> None:
        """The application declining the identity ends as a request error."""
        start_run(client, service_provider)
        service_provider.respond("/translate-response", 200, {"scenario": "IDENTITY_VERIFIED"})

        response = client.post("/verify/response", data={"SAMLResponse": "some-saml-response"})

        assert response.status_code == 500
        assert b"SAML Response was an error" in response.data

    @pytest.mark.parametrize("status", [400, 422, 500])
    def test_service_provider_error(
        self, client: FlaskClient, service_provider: MockServiceProvider, status: int
    ) -> None:
        start_run(client, service_provider)
        service_provider.respond("/translate-response", status, {"code": status, "message": "boom"})

        response = client.post("/verify/response", data={"SAMLResponse": "some-saml-response"})

        assert response.status_code == 500
        assert b"boom" in response.data

    def test_unexpected_status(self, client: FlaskClient, service_provider: MockServiceProvider) -> None:
        start_run(client, service_provider)
        service_provider.respond("/translate-response", 401, {"code": 401, "message": "nope"})

        response = client.post("/verify/response", data={"SAMLResponse": "some-saml-response"})

        assert response.status_code == 500
        assert b"Unexpected status 401" in response.data

    def test_missing_request_id(self, client: FlaskClient, service_provider: MockServiceProvider) -> None:
        response = client.post("/verify/response", data={"SAMLResponse": "some-saml-response"})

        assert response.status_code == 500
        assert b"No verify request id saved for this session" in response.data
        assert service_provider.requests == []

    def test_request_id_is_single_use(self, client: FlaskClient, service_provider: MockServiceProvider) -> None:
        start_run(client, service_provider)
        service_provider.respond("/translate-response", 200, {"scenario": "CANCELLATION"})

        client.post("/verify/response", data={"SAMLResponse": "some-saml-response"})
        replay = client.post("/verify/response", data={"SAMLResponse": "some-saml-response"})

        assert replay.status_code == 500
        assert len(service_provider.payloads("/translate-response")) == 1


class TestMatchingResponse:
    """Tests for the response post in a matching journey."""

    @pytest.fixture
    def client(self, matching_app: Flask) -> FlaskClient:
        return matching_app.test_client()

    def test_success_match_signs_in(self, client: FlaskClient, service_provider: MockServiceProvider) -> None:
        start_run(client, service_provider)
        service_provider.respond(
            "/translate-response",
            200,
            {"scenario": "SUCCESS_MATCH", "pid": "some-pid", "levelOfAssurance": "LEVEL_2"},
        )

        response = client.post("/verify/response", data={"SAMLResponse": "some-saml-response"})

        assert response.status_code == 302
        assert service_provider.payloads("/translate-response")[0]["entityId"] == "https://service.test/entity"
        with client.session_transaction() as sess:
            assert sess[USER_KEY]["scenario"] == "SUCCESS_MATCH"

    def test_account_creation_signs_in_new_user(
        self, client: FlaskClient, service_provider: MockServiceProvider
    ) -> None:
        start_run(client, service_provider)
        service_provider.respond(
            "/translate-response",
            200,
            {
                "scenario": "ACCOUNT_CREATION",
                "pid": "some-pid",
                "levelOfAssurance": "LEVEL_2",
                "attributes": {"firstName": {"value": "Jane", "verified": True}},
            },
        )

        response = client.post("/verify/response", data={"SAMLResponse": "some-saml-response"})

        assert response.status_code == 302
        with client.session_transaction() as sess:
            assert sess[USER_KEY]["new_user"] is True
            assert sess[USER_KEY]["first_name"] == "Jane"

    def test_no_match_shows_failure(self, client: FlaskClient, service_provider: MockServiceProvider) -> None:
        start_run(client, service_provider)
        service_provider.respond("/translate-response", 200, {"scenario": "NO_MATCH"})

        response = client.post("/verify/response", data={"SAMLResponse": "some-saml-response"})

        assert response.status_code == 401
        assert b"We could not match your identity" in response.data

    def test_sign_out(self, client: FlaskClient, service_provider: MockServiceProvider) -> None:
        start_run(client, service_provider)
        service_provider.respond("/translate-response", 200, {"scenario": "SUCCESS_MATCH", "pid": "some-pid"})
        client.post("/verify/response", data={"SAMLResponse": "some-saml-response"})

        response = client.get("/verify/sign-out")

        assert response.status_code == 302
        with client.session_transaction() as sess:
            assert USER_KEY not in sess

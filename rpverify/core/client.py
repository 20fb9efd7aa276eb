"""HTTP client for the verify service provider.

Users of rpverify should normally go through `create_strategy` or
`create_identity_strategy` rather than instantiating this class directly.
The client never looks inside SAML payloads: signature and validity checks
are the service provider's job.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from rpverify.core.exceptions import VerifyServiceError, VerifyServiceUnavailableError
from rpverify.core.logging import RecordingClient, TrafficRecorder, get_traffic_recorder
from rpverify.core.scenarios import (
    AuthnRequestResponse,
    ErrorMessage,
    JourneyType,
    LevelOfAssurance,
    ServiceResponse,
    TranslatedResponseBody,
    parse_translated_response,
)

logger = logging.getLogger("rpverify.client")

GENERATE_REQUEST_PATH = "/generate-request"
TRANSLATE_RESPONSE_PATH = "/translate-response"


def _decode_body(response: httpx.Response) -> Any:
    """Decode a JSON body, falling back to the raw text."""
    if "application/json" in response.headers.get("content-type", ""):
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


def _require_fields(path: str, status: int, data: Any, fields: tuple[str, ...]) -> dict[str, Any]:
    """Check a success body is a JSON object carrying the given fields."""
    if not isinstance(data, dict):
        raise VerifyServiceError(
            f"Malformed response from {path}: expected a JSON object, got {type(data).__name__}",
            status=status,
        )
    missing = [name for name in fields if name not in data]
    if missing:
        raise VerifyServiceError(
            f"Malformed response from {path}: missing {', '.join(missing)}",
            status=status,
        )
    return data


class VerifyServiceProviderClient:
    """Client for the two operations of the verify service provider.

    Error statuses are returned as `ErrorMessage` bodies with the HTTP status
    preserved, so callers can tell them apart. Transport failures and
    success responses with an unusable body raise.
    """

    def __init__(
        self,
        service_provider_host: str,
        journey_type: JourneyType = JourneyType.IDENTITY,
        recorder: TrafficRecorder | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            service_provider_host: Base URL of the service provider (e.g. http://localhost:50400).
            journey_type: Journey the service provider is configured for.
            recorder: Where exchanges are recorded; defaults to the global recorder.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, mainly for tests.
        """
        self.service_provider_host = service_provider_host.rstrip("/")
        self.journey_type = JourneyType(journey_type)
        self.timeout = timeout
        self._transport = transport
        self._recorder = recorder or get_traffic_recorder()
        self._http_client: RecordingClient | None = None

    @property
    def http_client(self) -> RecordingClient:
        """Get or create the HTTP client that records traffic."""
        if self._http_client is None:
            self._http_client = RecordingClient(
                recorder=self._recorder,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._http_client

    @property
    def recorder(self) -> TrafficRecorder:
        return self._recorder

    def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def __enter__(self) -> VerifyServiceProviderClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _post(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        url = f"{self.service_provider_host}{path}"
        logger.debug(f"Sending request: POST {url}")
        try:
            return self.http_client.post(
                url,
                json=payload,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise VerifyServiceUnavailableError(
                f"Could not reach verify service provider at {url}: {e}"
            ) from e

    def generate_request(
        self,
        level_of_assurance: LevelOfAssurance | str = LevelOfAssurance.LEVEL_2,
        entity_id: str | None = None,
    ) -> ServiceResponse[AuthnRequestResponse | ErrorMessage]:
        """Ask the service provider for a new authentication request.

        Args:
            level_of_assurance: Level of assurance to request.
            entity_id: Entity id of the relying party. Only needed when the
                service provider is multi-tenanted; omitted when None.

        Returns:
            ServiceResponse holding an AuthnRequestResponse on success,
            or an ErrorMessage otherwise.

        Raises:
            VerifyServiceUnavailableError: If the service provider cannot be reached.
            VerifyServiceError: If a success response is missing a field.
        """
        payload: dict[str, Any] = {"levelOfAssurance": str(level_of_assurance)}
        if entity_id:
            payload["entityId"] = entity_id

        response = self._post(GENERATE_REQUEST_PATH, payload)
        data = _decode_body(response)

        if response.is_success:
            data = _require_fields(
                GENERATE_REQUEST_PATH,
                response.status_code,
                data,
                ("samlRequest", "requestId", "ssoLocation"),
            )
            body = AuthnRequestResponse.from_dict(data)
            logger.info(f"Authn request generated, request id: {body.request_id}")
            return ServiceResponse(status=response.status_code, body=body)

        error = ErrorMessage.from_response(response.status_code, data)
        logger.warning(
            f"Error generating authn request ({response.status_code}): {error.message}. "
            "Enable TRACE logging to see the bodies"
        )
        return ServiceResponse(status=response.status_code, body=error)

    def translate_response(
        self,
        saml_response: str,
        request_id: str,
        level_of_assurance: LevelOfAssurance | str = LevelOfAssurance.LEVEL_2,
        entity_id: str | None = None,
    ) -> ServiceResponse[TranslatedResponseBody | ErrorMessage]:
        """Ask the service provider to translate a SAML response.

        Args:
            saml_response: Base64-encoded SAML response posted by the browser.
            request_id: Request id saved when the authn request was generated.
            level_of_assurance: Minimum level of assurance to accept.
            entity_id: Entity id of the relying party; omitted when None.

        Returns:
            ServiceResponse holding the translated body for this client's
            journey type on success, or an ErrorMessage otherwise.

        Raises:
            VerifyServiceUnavailableError: If the service provider cannot be reached.
            VerifyServiceError: If a 200 response is not an object with a scenario.
        """
        payload: dict[str, Any] = {
            "samlResponse": saml_response,
            "requestId": request_id,
            "levelOfAssurance": str(level_of_assurance),
        }
        if entity_id:
            payload["entityId"] = entity_id

        response = self._post(TRANSLATE_RESPONSE_PATH, payload)
        data = _decode_body(response)

        if response.status_code == 200:
            data = _require_fields(TRANSLATE_RESPONSE_PATH, response.status_code, data, ("scenario",))
            body = parse_translated_response(data, self.journey_type)
            logger.info(f"Response translated for request: {request_id}")
            return ServiceResponse(status=response.status_code, body=body)

        error = ErrorMessage.from_response(response.status_code, data)
        logger.warning(
            f"Error translating response for request id {request_id} "
            f"({response.status_code}): {error.message}. "
            "Enable TRACE logging to see the bodies"
        )
        return ServiceResponse(status=response.status_code, body=error)

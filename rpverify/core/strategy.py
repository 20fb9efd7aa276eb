"""Verify authentication strategy.

Drives one protocol run in two requests:
- initiate: generate an authn request, save its request id and send the
  browser a form that posts it to the hub
- complete: translate the SAML response posted back, classify its scenario
  and hand the outcome to exactly one of accept, reject or abort

The strategy holds configuration only. Everything that belongs to a run
lives in the request, the saved request id and the service provider's
payloads, so one instance can serve concurrent users.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from enum import StrEnum
from functools import partial
from typing import Any, Protocol

from rpverify.core.client import VerifyServiceProviderClient
from rpverify.core.exceptions import UnrecognisedScenarioError, VerifyServiceError
from rpverify.core.logging import TrafficRecorder
from rpverify.core.saml_form import create_saml_form
from rpverify.core.scenarios import (
    IDENTITY_SCENARIOS,
    MATCHING_SCENARIOS,
    NEGATIVE_SCENARIOS,
    AuthnRequestResponse,
    ErrorMessage,
    JourneyType,
    LevelOfAssurance,
    Scenario,
    TranslatedResponseBody,
)

# Form field the hub posts the SAML response back in
SAML_RESPONSE_FIELD = "SAMLResponse"

# Statuses from /translate-response that carry a provider error message
ERROR_STATUSES = frozenset({400, 422, 500})

JOURNEY_SCENARIOS = {
    JourneyType.MATCHING: MATCHING_SCENARIOS,
    JourneyType.IDENTITY: IDENTITY_SCENARIOS,
}


class VerifyRequest(Protocol):
    """The part of an inbound request the strategy looks at.

    Flask and Werkzeug requests satisfy this as they are.
    """

    form: Mapping[str, Any]


class AuthenticationHandlers(Protocol):
    """Host framework primitives the strategy finishes a request with."""

    def render(self, document: str) -> Any:
        """Send the authn request form to the browser."""
        ...

    def accept(self, user: Any, outcome: TranslatedResponseBody) -> Any:
        """The application accepted the verified user."""
        ...

    def reject(self, reason: str, status: int | None = None) -> Any:
        """The run ended in a known, non-fatal negative outcome."""
        ...

    def abort(self, error: Exception) -> Any:
        """The run failed and cannot be recovered."""
        ...


class RunState(StrEnum):
    """Stages of one protocol run, used in debug logging."""

    IDLE = "idle"
    CHALLENGE_ISSUED = "challenge_issued"
    COMPLETED = "completed"


Signal = Callable[[], Any]
UserCallback = Callable[[TranslatedResponseBody], Any]
SaveRequestId = Callable[[str, Any], Any]
LoadRequestId = Callable[[Any], str]
FormRenderer = Callable[[str, str], str]


def has_saml_response(request: VerifyRequest) -> bool:
    """Check whether a request carries a SAML response from the hub."""
    form = getattr(request, "form", None)
    return bool(form) and bool(form.get(SAML_RESPONSE_FIELD))


class VerifyStrategy:
    """Authentication strategy for GOV.UK Verify style journeys.

    Use `create_strategy` (matching journeys) or `create_identity_strategy`
    (identity journeys) rather than calling the constructor directly.
    """

    name = "verify"

    def __init__(
        self,
        client: VerifyServiceProviderClient,
        handlers: AuthenticationHandlers,
        save_request_id: SaveRequestId,
        load_request_id: LoadRequestId,
        create_user: UserCallback | None = None,
        verify_user: UserCallback | None = None,
        handle_identity: UserCallback | None = None,
        service_entity_id: str | None = None,
        level_of_assurance: LevelOfAssurance | str = LevelOfAssurance.LEVEL_2,
        render_form: FormRenderer = create_saml_form,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the strategy.

        Args:
            client: Client for the verify service provider.
            handlers: Host primitives to finish each request with.
            save_request_id: Stores the request id against the request's session.
            load_request_id: Loads the request id saved for the request's session.
            create_user: Matching journeys: creates a user from ACCOUNT_CREATION.
            verify_user: Matching journeys: looks up the user from SUCCESS_MATCH.
            handle_identity: Identity journeys: handles IDENTITY_VERIFIED.
            service_entity_id: Entity id sent to a multi-tenanted service provider.
            level_of_assurance: LEVEL_1 or LEVEL_2; also the minimum accepted.
            render_form: Builds the authn request form from (sso_location, saml_request).
            logger: Logger to report on; defaults to the "rpverify.strategy" logger.
        """
        self.client = client
        self.handlers = handlers
        self.save_request_id = save_request_id
        self.load_request_id = load_request_id
        self.create_user = create_user
        self.verify_user = verify_user
        self.handle_identity = handle_identity
        self.service_entity_id = service_entity_id
        self.level_of_assurance = LevelOfAssurance(level_of_assurance)
        self.render_form = render_form
        self.logger = logger or logging.getLogger("rpverify.strategy")

    @property
    def journey_type(self) -> JourneyType:
        return self.client.journey_type

    def authenticate(self, request: VerifyRequest) -> Any:
        """Handle one request of a protocol run.

        Requests carrying a SAML response complete a run; any other request
        starts one. The outcome is worked out first and then handed to
        exactly one of render, accept or reject. Anything raised on the way,
        including by that handler, ends up in `handlers.abort`. Only an
        exception from `abort` itself propagates.

        Args:
            request: The inbound request.

        Returns:
            Whatever the called handler returns.
        """
        try:
            if has_saml_response(request):
                signal = self.complete(request)
            else:
                signal = self.initiate(request)
            return signal()
        except Exception as e:
            self.logger.error(f"Verify authentication aborted: {e}")
            return self.handlers.abort(e)

    def initiate(self, request: VerifyRequest) -> Signal:
        """Start a protocol run.

        Args:
            request: The inbound request the request id is saved against.

        Returns:
            The handler call that sends the authn request form.

        Raises:
            VerifyServiceError: If the service provider did not generate a request.
        """
        self.logger.debug(f"Run {RunState.IDLE}: generating authn request")
        response = self.client.generate_request(self.level_of_assurance, self.service_entity_id)
        body = response.body
        if not response.is_success or not isinstance(body, AuthnRequestResponse):
            message = body.message if isinstance(body, ErrorMessage) else f"Unexpected status {response.status}"
            raise VerifyServiceError(message, status=response.status)

        self.save_request_id(body.request_id, request)
        self.logger.debug(f"Run {RunState.CHALLENGE_ISSUED}: request id {body.request_id}")

        document = self.render_form(body.sso_location, body.saml_request)
        return partial(self.handlers.render, document)

    def complete(self, request: VerifyRequest) -> Signal:
        """Finish a protocol run from the SAML response in the request.

        Args:
            request: The inbound request carrying the SAML response.

        Returns:
            The accept or reject handler call for the translated outcome.

        Raises:
            VerifyServiceError: If the service provider reported an error.
            UnrecognisedScenarioError: If the scenario is not a known one.
        """
        request_id = self.load_request_id(request)
        saml_response = request.form[SAML_RESPONSE_FIELD]

        response = self.client.translate_response(
            saml_response,
            request_id,
            self.level_of_assurance,
            self.service_entity_id,
        )
        body = response.body

        if response.status == 200 and not isinstance(body, ErrorMessage):
            signal = self._dispatch(body)
            self.logger.debug(f"Run {RunState.COMPLETED}: request id {request_id}")
            return signal

        if response.status in ERROR_STATUSES and isinstance(body, ErrorMessage):
            raise VerifyServiceError(body.message, status=response.status)

        raise VerifyServiceError(f"Unexpected status {response.status}", status=response.status)

    def _dispatch(self, body: TranslatedResponseBody) -> Signal:
        """Map a translated response to the handler call for its scenario."""
        scenario = Scenario.lookup(body.scenario)
        if scenario is None:
            raise UnrecognisedScenarioError(body.scenario)

        if scenario not in JOURNEY_SCENARIOS[self.journey_type]:
            self.logger.warning(f"Scenario {scenario} is not expected for a {self.journey_type} journey")

        if scenario == Scenario.IDENTITY_VERIFIED:
            return self._accept_user(body, self.handle_identity)
        if scenario == Scenario.ACCOUNT_CREATION:
            return self._accept_user(body, self.create_user)
        if scenario == Scenario.SUCCESS_MATCH:
            return self._accept_user(body, self.verify_user)
        if scenario in NEGATIVE_SCENARIOS:
            self.logger.info(f"Verify journey ended with scenario {scenario}")
            return partial(self.handlers.reject, scenario)

        # REQUEST_ERROR is raised locally, never expected from the service provider
        raise UnrecognisedScenarioError(body.scenario)

    def _accept_user(self, body: TranslatedResponseBody, callback: UserCallback | None) -> Signal:
        """Let the application decide whether a verified user is acceptable."""
        user = callback(body) if callback is not None else None
        if user:
            return partial(self.handlers.accept, user, body)

        self.logger.info(
            f"Application did not accept user for scenario {body.scenario} (pid {body.pid})"
        )
        return partial(self.handlers.reject, Scenario.REQUEST_ERROR)


def create_strategy(
    service_provider_host: str,
    create_user: UserCallback,
    verify_user: UserCallback,
    save_request_id: SaveRequestId,
    load_request_id: LoadRequestId,
    handlers: AuthenticationHandlers,
    service_entity_id: str | None = None,
    render_form: FormRenderer = create_saml_form,
    level_of_assurance: LevelOfAssurance | str = LevelOfAssurance.LEVEL_2,
    recorder: TrafficRecorder | None = None,
    timeout: float = 30.0,
) -> VerifyStrategy:
    """Create a strategy for a matching journey.

    Only use this if your service connects through a matching service
    adapter.

    Args:
        service_provider_host: URL the service provider runs on (e.g. http://localhost:50400).
        create_user: Called with ACCOUNT_CREATION responses. Should store the
            user's attributes and return an object representing the user.
        verify_user: Called with SUCCESS_MATCH responses. Should look the user
            up by their pid and return an object representing the user.
        save_request_id: Saves the generated request id securely against the
            user's session so it can be matched to the SAML response.
        load_request_id: Loads the request id saved for the user's session.
        handlers: Host primitives to finish each request with.
        service_entity_id: Only required if the service provider is multi-tenanted.
        render_form: Builds the authn request form; defaults to a plain auto-posting form.
        level_of_assurance: LEVEL_1 or LEVEL_2, defaults to LEVEL_2.
        recorder: Where service provider traffic is recorded.
        timeout: Request timeout in seconds.

    Returns:
        Configured VerifyStrategy.
    """
    client = VerifyServiceProviderClient(
        service_provider_host,
        journey_type=JourneyType.MATCHING,
        recorder=recorder,
        timeout=timeout,
    )
    return VerifyStrategy(
        client,
        handlers,
        save_request_id,
        load_request_id,
        create_user=create_user,
        verify_user=verify_user,
        service_entity_id=service_entity_id,
        level_of_assurance=level_of_assurance,
        render_form=render_form,
    )


def create_identity_strategy(
    service_provider_host: str,
    handle_identity: UserCallback,
    save_request_id: SaveRequestId,
    load_request_id: LoadRequestId,
    handlers: AuthenticationHandlers,
    service_entity_id: str | None = None,
    render_form: FormRenderer = create_saml_form,
    level_of_assurance: LevelOfAssurance | str = LevelOfAssurance.LEVEL_2,
    recorder: TrafficRecorder | None = None,
    timeout: float = 30.0,
) -> VerifyStrategy:
    """Create a strategy for an identity journey (no matching service adapter).

    Args:
        service_provider_host: URL the service provider runs on (e.g. http://localhost:50400).
        handle_identity: Called with IDENTITY_VERIFIED responses. Should store
            the identity and return an object representing the user.
        save_request_id: Saves the generated request id against the user's session.
        load_request_id: Loads the request id saved for the user's session.
        handlers: Host primitives to finish each request with.
        service_entity_id: Only required if the service provider is multi-tenanted.
        render_form: Builds the authn request form; defaults to a plain auto-posting form.
        level_of_assurance: LEVEL_1 or LEVEL_2, defaults to LEVEL_2.
        recorder: Where service provider traffic is recorded.
        timeout: Request timeout in seconds.

    Returns:
        Configured VerifyStrategy.
    """
    client = VerifyServiceProviderClient(
        service_provider_host,
        journey_type=JourneyType.IDENTITY,
        recorder=recorder,
        timeout=timeout,
    )
    return VerifyStrategy(
        client,
        handlers,
        save_request_id,
        load_request_id,
        handle_identity=handle_identity,
        service_entity_id=service_entity_id,
        level_of_assurance=level_of_assurance,
        render_form=render_form,
    )

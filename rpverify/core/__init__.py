"""Verify protocol core: service provider client, strategy and response handlers."""

from rpverify.core.client import VerifyServiceProviderClient
from rpverify.core.exceptions import (
    UnrecognisedScenarioError,
    VerifyError,
    VerifyServiceError,
    VerifyServiceUnavailableError,
)
from rpverify.core.handlers import (
    IdentityResponseScenarios,
    ResponseScenarios,
    create_identity_response_handler,
    create_response_handler,
)
from rpverify.core.logging import (
    TRACE,
    RecordingClient,
    TrafficLog,
    TrafficRecorder,
    VSPExchange,
    configure_logging,
    get_traffic_recorder,
    redact_saml,
    set_traffic_recorder,
)
from rpverify.core.saml_form import create_saml_form
from rpverify.core.scenarios import (
    IDENTITY_SCENARIOS,
    MATCHING_SCENARIOS,
    NEGATIVE_SCENARIOS,
    Address,
    AuthnRequestResponse,
    ErrorMessage,
    IdentityAddress,
    IdentityAttributes,
    IdentityResponseBody,
    JourneyType,
    LevelOfAssurance,
    MatchingAttributes,
    MatchingResponseBody,
    Scenario,
    ServiceResponse,
    TranslatedResponseBody,
    VerifiableAttribute,
    VerifiableIdentityAttribute,
    parse_translated_response,
)
from rpverify.core.strategy import (
    AuthenticationHandlers,
    RunState,
    VerifyRequest,
    VerifyStrategy,
    create_identity_strategy,
    create_strategy,
)

__all__ = [
    # Client
    "VerifyServiceProviderClient",
    # Exceptions
    "UnrecognisedScenarioError",
    "VerifyError",
    "VerifyServiceError",
    "VerifyServiceUnavailableError",
    # Handlers
    "IdentityResponseScenarios",
    "ResponseScenarios",
    "create_identity_response_handler",
    "create_response_handler",
    # Logging
    "TRACE",
    "RecordingClient",
    "TrafficLog",
    "TrafficRecorder",
    "VSPExchange",
    "configure_logging",
    "get_traffic_recorder",
    "redact_saml",
    "set_traffic_recorder",
    # Form
    "create_saml_form",
    # Scenarios
    "IDENTITY_SCENARIOS",
    "MATCHING_SCENARIOS",
    "NEGATIVE_SCENARIOS",
    "Address",
    "AuthnRequestResponse",
    "ErrorMessage",
    "IdentityAddress",
    "IdentityAttributes",
    "IdentityResponseBody",
    "JourneyType",
    "LevelOfAssurance",
    "MatchingAttributes",
    "MatchingResponseBody",
    "Scenario",
    "ServiceResponse",
    "TranslatedResponseBody",
    "VerifiableAttribute",
    "VerifiableIdentityAttribute",
    "parse_translated_response",
    # Strategy
    "AuthenticationHandlers",
    "RunState",
    "VerifyRequest",
    "VerifyStrategy",
    "create_identity_strategy",
    "create_strategy",
]

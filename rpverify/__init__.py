"""rpverify - relying party integration for GOV.UK Verify style identity assurance."""

__version__ = "0.1.0"

from rpverify.core.handlers import (
    IdentityResponseScenarios,
    ResponseScenarios,
    create_identity_response_handler,
    create_response_handler,
)
from rpverify.core.scenarios import JourneyType, LevelOfAssurance, Scenario
from rpverify.core.strategy import (
    AuthenticationHandlers,
    VerifyStrategy,
    create_identity_strategy,
    create_strategy,
)

__all__ = [
    "__version__",
    "AuthenticationHandlers",
    "IdentityResponseScenarios",
    "JourneyType",
    "LevelOfAssurance",
    "ResponseScenarios",
    "Scenario",
    "VerifyStrategy",
    "create_identity_response_handler",
    "create_identity_strategy",
    "create_response_handler",
    "create_strategy",
]

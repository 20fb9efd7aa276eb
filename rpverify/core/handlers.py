"""Response handlers for the three-way strategy outcome.

A strategy finishes with one of (error), (user, outcome) or (reason, status).
Host frameworks usually pass these on to a single callback with the shape
`callback(error, user, info_or_error, status)`. The handlers built here turn
that callback into one call on a named scenario callback, so services only
write code for the scenarios they need to tell apart.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from rpverify.core.exceptions import UnrecognisedScenarioError, VerifyError
from rpverify.core.scenarios import Scenario

ResponseHandler = Callable[..., Any]


@dataclass
class ResponseScenarios:
    """Callbacks for each outcome of a matching journey.

    Only for services that match users through a matching service adapter.
    """

    # The user was matched; receives whatever `verify_user` returned
    on_match: Callable[[Any], Any]
    # No match, but a new account was created; receives what `create_user` returned
    on_create_user: Callable[[Any], Any]
    # The user failed to authenticate, for example a wrong password
    on_authn_failed: Callable[[], Any]
    # The user authenticated but the matching service found no match
    on_no_match: Callable[[], Any]
    # The user cancelled at the identity provider
    on_cancel: Callable[[], Any]
    # The response could not be handled, or represents an error
    on_error: Callable[[Exception], Any]


@dataclass
class IdentityResponseScenarios:
    """Callbacks for each outcome of an identity journey."""

    on_identity_verified: Callable[[Any], Any]
    on_authn_failed: Callable[[], Any]
    on_cancel: Callable[[], Any]
    on_no_authentication: Callable[[], Any]
    on_error: Callable[[Exception], Any]


def _scenario_of(outcome: Any) -> Any:
    if isinstance(outcome, dict):
        return outcome.get("scenario")
    return getattr(outcome, "scenario", outcome)


def create_response_handler(scenarios: ResponseScenarios) -> ResponseHandler:
    """Build a handler for matching journey outcomes.

    Args:
        scenarios: Callbacks to handle each type of outcome.

    Returns:
        Handler that calls exactly one of the scenario callbacks and returns its result.
    """
    negative: dict[Scenario, Callable[[], Any]] = {
        Scenario.NO_MATCH: scenarios.on_no_match,
        Scenario.CANCELLATION: scenarios.on_cancel,
        Scenario.AUTHENTICATION_FAILED: scenarios.on_authn_failed,
    }

    def handle(
        error: Exception | None,
        user: Any,
        info_or_error: Any = None,
        status: int | None = None,
    ) -> Any:
        if error:
            return scenarios.on_error(error)
        if user:
            if _scenario_of(info_or_error) == Scenario.ACCOUNT_CREATION:
                return scenarios.on_create_user(user)
            return scenarios.on_match(user)
        return _handle_failure(info_or_error, negative, scenarios.on_error)

    return handle


def create_identity_response_handler(scenarios: IdentityResponseScenarios) -> ResponseHandler:
    """Build a handler for identity journey outcomes.

    Args:
        scenarios: Callbacks to handle each type of outcome.

    Returns:
        Handler that calls exactly one of the scenario callbacks and returns its result.
    """
    negative: dict[Scenario, Callable[[], Any]] = {
        Scenario.CANCELLATION: scenarios.on_cancel,
        Scenario.AUTHENTICATION_FAILED: scenarios.on_authn_failed,
        Scenario.NO_AUTHENTICATION: scenarios.on_no_authentication,
    }

    def handle(
        error: Exception | None,
        identity: Any,
        info_or_error: Any = None,
        status: int | None = None,
    ) -> Any:
        if error:
            return scenarios.on_error(error)
        if identity:
            return scenarios.on_identity_verified(identity)
        return _handle_failure(info_or_error, negative, scenarios.on_error)

    return handle


def _handle_failure(
    reason: Any,
    negative: dict[Scenario, Callable[[], Any]],
    on_error: Callable[[Exception], Any],
) -> Any:
    """Route a rejection reason to its callback, or to on_error."""
    scenario = Scenario.lookup(reason)
    if scenario == Scenario.REQUEST_ERROR:
        return on_error(VerifyError("SAML Response was an error"))
    if scenario in negative:
        return negative[scenario]()
    return on_error(UnrecognisedScenarioError(reason))

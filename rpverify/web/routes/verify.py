"""Verify sign-in routes.

Shows the host side of the strategy: the request id lives in the Flask
session between the two requests of a run, and the strategy's outcome is
fanned out to one page per scenario through the response handlers.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from flask import (
    Blueprint,
    Flask,
    Response,
    current_app,
    redirect,
    render_template,
    request,
    session,
    url_for,
)

if TYPE_CHECKING:
    from werkzeug.wrappers import Response as WerkzeugResponse

from rpverify.core.client import VerifyServiceProviderClient
from rpverify.core.exceptions import VerifyError
from rpverify.core.handlers import (
    IdentityResponseScenarios,
    ResponseHandler,
    ResponseScenarios,
    create_identity_response_handler,
    create_response_handler,
)
from rpverify.core.saml_form import create_saml_form
from rpverify.core.scenarios import (
    IdentityResponseBody,
    JourneyType,
    MatchingResponseBody,
    Scenario,
    TranslatedResponseBody,
)
from rpverify.core.strategy import FormRenderer, VerifyStrategy

logger = logging.getLogger("rpverify.web")

# Get the directories relative to this package
_web_dir = Path(__file__).parent.parent
_templates_dir = _web_dir / "templates"

verify_bp = Blueprint(
    "verify",
    __name__,
    template_folder=str(_templates_dir),
    url_prefix="/verify",
)

# Session keys
REQUEST_ID_KEY = "verify_request_id"
USER_KEY = "verify_user"

EXTENSION_KEY = "rpverify"

FAILURE_MESSAGES = {
    Scenario.NO_MATCH: "We could not match your identity to an existing account.",
    Scenario.CANCELLATION: "You cancelled signing in with your identity provider.",
    Scenario.AUTHENTICATION_FAILED: "You could not sign in with your identity provider.",
    Scenario.NO_AUTHENTICATION: "Your identity provider could not verify you this time.",
}


def save_request_id(request_id: str, req: Any) -> None:
    """Keep the request id in the user's session until the response comes back."""
    session[REQUEST_ID_KEY] = request_id


def load_request_id(req: Any) -> str:
    """Take the request id out of the user's session; it is only good for one response."""
    request_id = session.pop(REQUEST_ID_KEY, None)
    if not request_id:
        raise VerifyError("No verify request id saved for this session")
    return request_id


# Demo application callbacks. A real service would look users up in, or add
# them to, its own datastore here.
def _user_from(body: TranslatedResponseBody, **extra: Any) -> dict[str, Any]:
    user: dict[str, Any] = {
        "pid": body.pid,
        "level_of_assurance": body.level_of_assurance,
        "scenario": str(body.scenario),
    }
    user.update(extra)
    return user


def verify_user(body: MatchingResponseBody) -> dict[str, Any] | None:
    """Look up a matched user by pid."""
    if not body.pid:
        return None
    return _user_from(body)


def create_user(body: MatchingResponseBody) -> dict[str, Any] | None:
    """Create a user from account creation attributes."""
    if not body.pid:
        return None
    first_name = body.attributes.first_name.value if body.attributes and body.attributes.first_name else None
    return _user_from(body, first_name=first_name, new_user=True)


def handle_identity(body: IdentityResponseBody) -> dict[str, Any] | None:
    """Accept a verified identity."""
    if not body.pid:
        return None
    first_name = body.attributes.first_name.value if body.attributes and body.attributes.first_name else None
    return _user_from(body, first_name=first_name)


def _signed_in(user: Any) -> WerkzeugResponse:
    session[USER_KEY] = user
    return redirect(url_for("main.index"))


def _failure(scenario: Scenario) -> tuple[str, int]:
    return render_template(
        "verify/failure.html",
        scenario=scenario,
        message=FAILURE_MESSAGES[scenario],
    ), 401


def _error(error: Exception) -> tuple[str, int]:
    logger.error(f"Verify sign-in failed: {error}")
    return render_template("verify/error.html", error=error), 500


def build_response_handler(journey_type: JourneyType) -> ResponseHandler:
    """Build the page-per-scenario handler for a journey type."""
    if journey_type == JourneyType.MATCHING:
        return create_response_handler(ResponseScenarios(
            on_match=_signed_in,
            on_create_user=_signed_in,
            on_authn_failed=lambda: _failure(Scenario.AUTHENTICATION_FAILED),
            on_no_match=lambda: _failure(Scenario.NO_MATCH),
            on_cancel=lambda: _failure(Scenario.CANCELLATION),
            on_error=_error,
        ))
    return create_identity_response_handler(IdentityResponseScenarios(
        on_identity_verified=_signed_in,
        on_authn_failed=lambda: _failure(Scenario.AUTHENTICATION_FAILED),
        on_cancel=lambda: _failure(Scenario.CANCELLATION),
        on_no_authentication=lambda: _failure(Scenario.NO_AUTHENTICATION),
        on_error=_error,
    ))


class FlaskHandlers:
    """Finishes strategy runs as Flask responses.

    Passes accept, reject and abort on to a response handler with the
    `(error, user, info_or_error, status)` callback shape.
    """

    def __init__(self, response_handler: ResponseHandler) -> None:
        self.response_handler = response_handler

    def render(self, document: str) -> Response:
        return Response(document, mimetype="text/html")

    def accept(self, user: Any, outcome: TranslatedResponseBody) -> Any:
        return self.response_handler(None, user, outcome, None)

    def reject(self, reason: str, status: int | None = None) -> Any:
        return self.response_handler(None, None, reason, status)

    def abort(self, error: Exception) -> Any:
        return self.response_handler(error, None, None, None)


def template_form_renderer(template_name: str) -> FormRenderer:
    """Render the authn request form with one of the service's own templates."""

    def render(sso_location: str, saml_request: str) -> str:
        return render_template(template_name, sso_location=sso_location, saml_request=saml_request)

    return render


def init_verify(app: Flask) -> VerifyStrategy:
    """Build the app's strategy from its VERIFY_* config.

    Args:
        app: Flask application.

    Returns:
        The strategy, also kept in `app.extensions`.
    """
    journey_type = JourneyType(app.config["VERIFY_JOURNEY_TYPE"])
    client = VerifyServiceProviderClient(
        app.config["VERIFY_SERVICE_PROVIDER_HOST"],
        journey_type=journey_type,
        timeout=app.config["VERIFY_TIMEOUT"],
        transport=app.config.get("VERIFY_TRANSPORT"),
    )

    if journey_type == JourneyType.MATCHING:
        callbacks = {"create_user": create_user, "verify_user": verify_user}
    else:
        callbacks = {"handle_identity": handle_identity}

    form_template = app.config.get("VERIFY_FORM_TEMPLATE")
    strategy = VerifyStrategy(
        client,
        FlaskHandlers(build_response_handler(journey_type)),
        save_request_id,
        load_request_id,
        **callbacks,
        service_entity_id=app.config.get("VERIFY_ENTITY_ID"),
        level_of_assurance=app.config["VERIFY_LEVEL_OF_ASSURANCE"],
        render_form=template_form_renderer(form_template) if form_template else create_saml_form,
    )
    app.extensions[EXTENSION_KEY] = strategy
    return strategy


def get_strategy() -> VerifyStrategy:
    """Get the current app's strategy."""
    return current_app.extensions[EXTENSION_KEY]


@verify_bp.route("/start", methods=["GET", "POST"])
def start() -> Any:
    """Send the user to the hub to sign in."""
    return get_strategy().authenticate(request)


@verify_bp.route("/response", methods=["POST"])
def response() -> Any:
    """Handle the SAML response the hub posts back."""
    return get_strategy().authenticate(request)


@verify_bp.route("/sign-out")
def sign_out() -> WerkzeugResponse:
    """Forget the signed-in user."""
    session.pop(USER_KEY, None)
    return redirect(url_for("main.index"))

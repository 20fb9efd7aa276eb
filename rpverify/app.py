"""Flask application factory for the demo relying party."""

from __future__ import annotations

import os
import secrets
from typing import TYPE_CHECKING

from flask import Flask

if TYPE_CHECKING:
    from rpverify.core.config import AppConfig


def create_app(config: dict | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Optional configuration dictionary to override defaults.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Default configuration
    app.config.from_mapping(
        SECRET_KEY=os.environ.get("RPVERIFY_SECRET_KEY") or secrets.token_hex(32),
        VERIFY_SERVICE_PROVIDER_HOST="http://localhost:50400",
        VERIFY_JOURNEY_TYPE="identity",
        VERIFY_LEVEL_OF_ASSURANCE="LEVEL_2",
        VERIFY_ENTITY_ID=None,
        VERIFY_TIMEOUT=30.0,
        VERIFY_FORM_TEMPLATE=None,
        # httpx transport for the service provider client, mainly for tests
        VERIFY_TRANSPORT=None,
    )

    if config:
        app.config.from_mapping(config)

    from rpverify.web import routes

    routes.init_app(app)

    from rpverify.web.routes.verify import init_verify

    init_verify(app)

    return app


def run_server(
    app_config: AppConfig | None = None,
    host: str | None = None,
    port: int | None = None,
) -> None:
    """Run the Flask development server.

    Args:
        app_config: Application configuration. Loads from file/env if not provided.
        host: Override host from config.
        port: Override port from config.
    """
    from rpverify.core.config import load_config
    from rpverify.core.logging import configure_logging

    if app_config is None:
        app_config = load_config()

    configure_logging(
        level=app_config.logging.level,
        log_payloads=app_config.logging.log_payloads,
        log_file=app_config.logging.log_file,
    )

    server_host = host or app_config.server.host
    server_port = port or app_config.server.port
    verify = app_config.verify

    app = create_app({
        "VERIFY_SERVICE_PROVIDER_HOST": verify.service_provider_host,
        "VERIFY_JOURNEY_TYPE": str(verify.journey_type),
        "VERIFY_LEVEL_OF_ASSURANCE": str(verify.level_of_assurance),
        "VERIFY_ENTITY_ID": verify.entity_id,
        "VERIFY_TIMEOUT": verify.timeout,
        "VERIFY_FORM_TEMPLATE": verify.form_template,
    })
    app.debug = app_config.server.debug

    print("Starting rpverify demo relying party...")
    print(f"  URL: http://{server_host}:{server_port}")
    print(f"  Verify service provider: {verify.service_provider_host} ({verify.journey_type} journey)")
    print("")

    app.run(host=server_host, port=server_port)

"""Server CLI commands."""

import click


@click.command()
@click.option(
    "--host",
    "-h",
    default=None,
    help="Host to bind to (default: from config or 127.0.0.1)",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (default: from config or 3200)",
)
@click.option(
    "--service-provider",
    default=None,
    help="Verify service provider URL (default: from config)",
)
@click.option(
    "--journey",
    type=click.Choice(["identity", "matching"]),
    default=None,
    help="Journey type (default: from config or identity)",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Enable debug mode",
)
def serve(
    host: str | None,
    port: int | None,
    service_provider: str | None,
    journey: str | None,
    debug: bool,
) -> None:
    """Start the demo relying party web server.

    Examples:

        # Start with settings from config.yaml
        rpverify serve

        # Point at a local service provider in matching mode
        rpverify serve --service-provider http://localhost:50400 --journey matching
    """
    from rpverify.app import run_server
    from rpverify.core.config import load_config
    from rpverify.core.scenarios import JourneyType

    try:
        config = load_config()
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from None

    if service_provider:
        config.verify.service_provider_host = service_provider

    if journey:
        config.verify.journey_type = JourneyType(journey)

    if debug:
        config.server.debug = True

    run_server(app_config=config, host=host, port=port)

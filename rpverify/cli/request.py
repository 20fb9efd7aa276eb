"""CLI commands that call the verify service provider directly."""

from __future__ import annotations

from typing import Any

import click

from rpverify.cli.config import error_result, json_option, output_result
from rpverify.core.client import VerifyServiceProviderClient
from rpverify.core.config import AppConfig, load_config
from rpverify.core.exceptions import VerifyError
from rpverify.core.logging import TrafficLog, TrafficRecorder, configure_logging
from rpverify.core.scenarios import ErrorMessage, JourneyType, LevelOfAssurance

level_option = click.option(
    "--level",
    "level_of_assurance",
    type=click.Choice([level.value for level in LevelOfAssurance]),
    default=None,
    help="Level of assurance (default: from config)",
)

entity_id_option = click.option(
    "--entity-id",
    default=None,
    help="Entity id for a multi-tenanted service provider (default: from config)",
)

traffic_option = click.option(
    "--show-traffic",
    is_flag=True,
    help="Print the HTTP exchanges with the service provider",
)


def _load(ctx: click.Context, output_json: bool) -> tuple[AppConfig, TrafficRecorder]:
    try:
        app_config = load_config()
    except ValueError as e:
        error_result(f"Invalid configuration: {e}", output_json)

    log_level = (ctx.obj or {}).get("log_level") or app_config.logging.level
    recorder = configure_logging(
        level=log_level,
        log_payloads=app_config.logging.log_payloads,
        log_file=app_config.logging.log_file,
    )
    return app_config, recorder


def _make_client(
    app_config: AppConfig,
    recorder: TrafficRecorder,
    host: str | None,
    journey_type: str | None = None,
) -> VerifyServiceProviderClient:
    return VerifyServiceProviderClient(
        host or app_config.verify.service_provider_host,
        journey_type=JourneyType(journey_type) if journey_type else app_config.verify.journey_type,
        recorder=recorder,
        timeout=app_config.verify.timeout,
    )


def _echo_traffic(log: TrafficLog | None) -> None:
    if log is None:
        return
    click.echo("", err=True)
    click.echo(f"HTTP exchanges ({len(log.exchanges)}):", err=True)
    for exchange in log.exchanges:
        click.echo(f"  {exchange.summary()}", err=True)


def _report(status: int, body: Any, output_json: bool) -> None:
    data = {"status": status, "body": body.to_dict()}
    if isinstance(body, ErrorMessage):
        if output_json:
            output_result(data, as_json=True)
            raise SystemExit(1)
        error_result(f"Service provider returned {status}: {body.message}")
    output_result(data if output_json else body.to_dict(), output_json)


@click.group()
def request() -> None:
    """Call the verify service provider."""
    pass


@request.command("generate")
@click.option("--host", default=None, help="Service provider URL (default: from config)")
@level_option
@entity_id_option
@traffic_option
@json_option
@click.pass_context
def request_generate(
    ctx: click.Context,
    host: str | None,
    level_of_assurance: str | None,
    entity_id: str | None,
    show_traffic: bool,
    output_json: bool,
) -> None:
    """Generate an authn request.

    Examples:

        rpverify request generate

        rpverify request generate --level LEVEL_1 --json
    """
    app_config, recorder = _load(ctx, output_json)
    recorder.begin("generate_request")

    with _make_client(app_config, recorder, host) as client:
        try:
            response = client.generate_request(
                level_of_assurance or app_config.verify.level_of_assurance,
                entity_id or app_config.verify.entity_id,
            )
        except VerifyError as e:
            log = recorder.finish()
            if show_traffic:
                _echo_traffic(log)
            error_result(str(e), output_json)

    log = recorder.finish()
    if show_traffic:
        _echo_traffic(log)
    _report(response.status, response.body, output_json)


@request.command("translate")
@click.argument("saml_response")
@click.argument("request_id")
@click.option("--host", default=None, help="Service provider URL (default: from config)")
@click.option(
    "--journey",
    type=click.Choice([journey.value for journey in JourneyType]),
    default=None,
    help="Journey type of the service provider (default: from config)",
)
@level_option
@entity_id_option
@traffic_option
@json_option
@click.pass_context
def request_translate(
    ctx: click.Context,
    saml_response: str,
    request_id: str,
    host: str | None,
    journey: str | None,
    level_of_assurance: str | None,
    entity_id: str | None,
    show_traffic: bool,
    output_json: bool,
) -> None:
    """Translate a SAML response posted back by the hub.

    Pass "-" as SAML_RESPONSE to read it from stdin.

    Examples:

        rpverify request translate "$SAML_RESPONSE" "$REQUEST_ID"

        pbpaste | rpverify request translate - "$REQUEST_ID" --json
    """
    if saml_response == "-":
        saml_response = click.get_text_stream("stdin").read().strip()

    app_config, recorder = _load(ctx, output_json)
    recorder.begin("translate_response")

    with _make_client(app_config, recorder, host, journey) as client:
        try:
            response = client.translate_response(
                saml_response,
                request_id,
                level_of_assurance or app_config.verify.level_of_assurance,
                entity_id or app_config.verify.entity_id,
            )
        except VerifyError as e:
            log = recorder.finish()
            if show_traffic:
                _echo_traffic(log)
            error_result(str(e), output_json)

    log = recorder.finish()
    if show_traffic:
        _echo_traffic(log)
    _report(response.status, response.body, output_json)

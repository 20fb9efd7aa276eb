"""Logging and traffic capture for calls to the verify service provider.

Every POST to the service provider is kept as a `VSPExchange`. A CLI
command (or a test) can `begin` an operation on a `TrafficRecorder` to
collect the exchanges that belong to it.

SAML payloads are base64 blobs that identify a user, so they are redacted
from logs unless payload logging is switched on explicitly. At the TRACE
level the (redacted) bodies are logged as well.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import httpx

# Below DEBUG: request and response bodies
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LEVELS = {
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "TRACE": TRACE,
}

logger = logging.getLogger("rpverify.traffic")

REDACTED = "[REDACTED]"

_SAML_PATTERNS = [
    # JSON exchanged with the service provider
    re.compile(r'("(?:samlResponse|samlRequest)"\s*:\s*")[^"]+(")', re.IGNORECASE),
    # Form posts between the browser and the hub
    re.compile(r"((?:SAMLResponse|SAMLRequest)=)[^&\s]+()"),
    # Session cookies carry the saved request id
    re.compile(r"((?:Set-)?Cookie:\s*)[^\r\n]+()", re.IGNORECASE),
]


def redact_saml(text: str) -> str:
    """Replace SAML payloads and cookies in text with a placeholder."""
    for pattern in _SAML_PATTERNS:
        text = pattern.sub(rf"\1{REDACTED}\2", text)
    return text


@dataclass
class VSPExchange:
    """One POST to the service provider and what came back."""

    method: str
    url: str
    request_body: str | None = None
    status: int | None = None
    response_body: str | None = None
    elapsed_ms: float | None = None
    error: str | None = None

    @property
    def endpoint(self) -> str:
        return httpx.URL(self.url).path

    def summary(self) -> str:
        outcome = self.status if self.status is not None else f"failed ({self.error})"
        timing = f" in {self.elapsed_ms:.1f}ms" if self.elapsed_ms is not None else ""
        return f"{self.method} {self.url} -> {outcome}{timing}"

    def to_dict(self, include_payloads: bool = False) -> dict[str, Any]:
        """Convert to a dictionary, redacting SAML payloads by default."""

        def body(value: str | None) -> str | None:
            if value is None or include_payloads:
                return value
            return redact_saml(value)

        return {
            "method": self.method,
            "url": self.url,
            "status": self.status,
            "request_body": body(self.request_body),
            "response_body": body(self.response_body),
            "elapsed_ms": self.elapsed_ms,
            "error": self.error,
        }


@dataclass
class TrafficLog:
    """Exchanges made while carrying out one operation."""

    operation: str
    exchanges: list[VSPExchange] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None

    @property
    def failed(self) -> list[VSPExchange]:
        return [e for e in self.exchanges if e.error]


class TrafficRecorder:
    """Logs each exchange and collects it into the current operation's log."""

    def __init__(self, log_payloads: bool = False) -> None:
        """Initialize the recorder.

        Args:
            log_payloads: Log SAML payloads unredacted at TRACE level.
        """
        self.log_payloads = log_payloads
        self._current: TrafficLog | None = None

    def begin(self, operation: str) -> TrafficLog:
        """Start collecting exchanges for an operation."""
        self._current = TrafficLog(operation=operation)
        logger.debug(f"Recording traffic for {operation}")
        return self._current

    def finish(self) -> TrafficLog | None:
        """Stop collecting and return the operation's log, if one was started."""
        log, self._current = self._current, None
        if log is not None:
            log.finished_at = datetime.now(UTC)
            logger.debug(f"Recorded {len(log.exchanges)} exchanges for {log.operation}")
        return log

    def record(self, exchange: VSPExchange) -> None:
        if self._current is not None:
            self._current.exchanges.append(exchange)

        if exchange.error:
            logger.warning(exchange.summary())
        else:
            logger.debug(exchange.summary())

        if logger.isEnabledFor(TRACE):
            data = exchange.to_dict(include_payloads=self.log_payloads)
            logger.log(TRACE, f"  request: {data['request_body']}")
            logger.log(TRACE, f"  response: {data['response_body']}")


class RecordingClient(httpx.Client):
    """httpx client that hands every exchange, failed ones included, to a recorder."""

    def __init__(self, recorder: TrafficRecorder | None = None, **kwargs: Any) -> None:
        self.recorder = recorder or TrafficRecorder()
        super().__init__(**kwargs)

    def send(self, request: httpx.Request, **kwargs: Any) -> httpx.Response:
        exchange = VSPExchange(
            method=request.method,
            url=str(request.url),
            request_body=request.content.decode("utf-8", errors="replace") or None,
        )
        start = time.perf_counter()
        try:
            response = super().send(request, **kwargs)
        except httpx.HTTPError as e:
            exchange.error = str(e) or type(e).__name__
            raise
        else:
            exchange.status = response.status_code
            if not kwargs.get("stream"):
                exchange.response_body = response.text
            return response
        finally:
            exchange.elapsed_ms = (time.perf_counter() - start) * 1000
            self.recorder.record(exchange)


_recorder: TrafficRecorder | None = None


def get_traffic_recorder() -> TrafficRecorder:
    """Get the recorder clients use when none is passed in."""
    global _recorder
    if _recorder is None:
        _recorder = TrafficRecorder()
    return _recorder


def set_traffic_recorder(recorder: TrafficRecorder) -> None:
    global _recorder
    _recorder = recorder


def configure_logging(
    level: int | str = logging.INFO,
    log_payloads: bool = False,
    log_file: str | None = None,
) -> TrafficRecorder:
    """Configure logging for the rpverify package.

    Args:
        level: Log level or its name (ERROR, WARNING, INFO, DEBUG, TRACE).
            Unknown names fall back to INFO.
        log_payloads: Log SAML payloads unredacted at TRACE level.
        log_file: Optional file path to write logs to.

    Returns:
        The recorder new clients will use.
    """
    if isinstance(level, str):
        level = LEVELS.get(level.upper(), logging.INFO)

    package_logger = logging.getLogger("rpverify")
    package_logger.setLevel(level)
    package_logger.handlers.clear()

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    recorder = TrafficRecorder(log_payloads=log_payloads)
    set_traffic_recorder(recorder)

    if log_payloads:
        logger.warning("SAML payload logging enabled - responses identify users!")

    return recorder

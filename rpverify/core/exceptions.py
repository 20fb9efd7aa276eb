"""Exceptions raised while talking to the verify service provider."""

from __future__ import annotations


class VerifyError(Exception):
    """Base exception for verify protocol faults."""


class VerifyServiceError(VerifyError):
    """The verify service provider answered with an error status."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class VerifyServiceUnavailableError(VerifyError):
    """The verify service provider could not be reached."""


class UnrecognisedScenarioError(VerifyError):
    """A translated response carried a scenario outside the known vocabulary."""

    def __init__(self, scenario: object) -> None:
        super().__init__(f"Unrecognised scenario {scenario}")
        self.scenario = scenario

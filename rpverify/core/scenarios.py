"""Types representing the JSON exchanged with the verify service provider.

Covers the `/generate-request` and `/translate-response` endpoints for both
journey types:
- Matching journeys report a match (or account creation) against an
  existing user record.
- Identity journeys report a verified identity with attribute history.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Generic, TypeVar


class Scenario(StrEnum):
    """Everything a translated response from verify could mean."""

    IDENTITY_VERIFIED = "IDENTITY_VERIFIED"
    SUCCESS_MATCH = "SUCCESS_MATCH"
    ACCOUNT_CREATION = "ACCOUNT_CREATION"
    NO_MATCH = "NO_MATCH"
    CANCELLATION = "CANCELLATION"
    NO_AUTHENTICATION = "NO_AUTHENTICATION"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    REQUEST_ERROR = "REQUEST_ERROR"

    @classmethod
    def lookup(cls, value: object) -> Scenario | None:
        """Return the scenario named by value, or None if it is not one."""
        try:
            return cls(value)
        except (ValueError, TypeError):
            return None


class LevelOfAssurance(StrEnum):
    """Level of assurance requested from (and attained at) the provider."""

    LEVEL_1 = "LEVEL_1"
    LEVEL_2 = "LEVEL_2"


class JourneyType(StrEnum):
    """How the verify service provider is configured to answer."""

    MATCHING = "matching"
    IDENTITY = "identity"


# Scenarios that need no application callback, only classification
NEGATIVE_SCENARIOS = frozenset({
    Scenario.NO_MATCH,
    Scenario.CANCELLATION,
    Scenario.AUTHENTICATION_FAILED,
    Scenario.NO_AUTHENTICATION,
})

MATCHING_SCENARIOS = frozenset({
    Scenario.SUCCESS_MATCH,
    Scenario.ACCOUNT_CREATION,
    Scenario.NO_MATCH,
    Scenario.CANCELLATION,
    Scenario.AUTHENTICATION_FAILED,
    Scenario.REQUEST_ERROR,
})

IDENTITY_SCENARIOS = frozenset({
    Scenario.IDENTITY_VERIFIED,
    Scenario.CANCELLATION,
    Scenario.AUTHENTICATION_FAILED,
    Scenario.NO_AUTHENTICATION,
    Scenario.REQUEST_ERROR,
})


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class AuthnRequestResponse:
    """Success body of `/generate-request`: the challenge for one run."""

    saml_request: str
    request_id: str
    sso_location: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuthnRequestResponse:
        """Create from the service provider's JSON."""
        return cls(
            saml_request=data["samlRequest"],
            request_id=data["requestId"],
            sso_location=data["ssoLocation"],
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert back to the wire representation."""
        return {
            "samlRequest": self.saml_request,
            "requestId": self.request_id,
            "ssoLocation": self.sso_location,
        }


@dataclass(frozen=True)
class ErrorMessage:
    """Body returned by every error response from the service provider."""

    code: int
    message: str

    @classmethod
    def from_response(cls, status: int, data: Any) -> ErrorMessage:
        """Build from a decoded error body, which may not be JSON at all.

        Args:
            status: HTTP status of the response.
            data: Decoded JSON object, or the raw body text.

        Returns:
            ErrorMessage with the HTTP status as a fallback code.
        """
        if isinstance(data, dict):
            return cls(
                code=data.get("code", status),
                message=str(data.get("message") or data.get("reason") or f"HTTP {status}"),
            )
        text = str(data).strip() if data else ""
        return cls(code=status, message=text or f"HTTP {status}")

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


@dataclass(frozen=True)
class VerifiableAttribute:
    """A matching attribute that may or may not have been checked by the IdP.

    "Verified" attributes were checked against a document such as a
    passport. "Not verified" attributes were entered by the user.
    """

    value: Any
    verified: bool

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VerifiableAttribute:
        return cls(value=data.get("value"), verified=bool(data.get("verified", False)))

    def to_dict(self) -> dict[str, Any]:
        value = self.value.to_dict() if hasattr(self.value, "to_dict") else self.value
        return {"value": value, "verified": self.verified}


@dataclass(frozen=True)
class Address:
    """Address attribute of a matching journey."""

    lines: list[str] = field(default_factory=list)
    post_code: str | None = None
    international_post_code: str | None = None
    uprn: str | None = None
    from_date: str | None = None
    to_date: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Address:
        return cls(
            lines=list(data.get("lines") or []),
            post_code=data.get("postCode"),
            international_post_code=data.get("internationalPostCode"),
            uprn=data.get("uprn"),
            from_date=data.get("fromDate"),
            to_date=data.get("toDate"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _drop_none({
            "lines": self.lines,
            "postCode": self.post_code,
            "internationalPostCode": self.international_post_code,
            "uprn": self.uprn,
            "fromDate": self.from_date,
            "toDate": self.to_date,
        })


def _verifiable(data: dict[str, Any] | None) -> VerifiableAttribute | None:
    if data is None:
        return None
    return VerifiableAttribute.from_dict(data)


def _verifiable_address(data: dict[str, Any]) -> VerifiableAttribute:
    return VerifiableAttribute(
        value=Address.from_dict(data.get("value") or {}),
        verified=bool(data.get("verified", False)),
    )


@dataclass(frozen=True)
class MatchingAttributes:
    """User account creation attributes.

    Present when the matching service returned no match and the service is
    configured to create user accounts.
    """

    first_name: VerifiableAttribute | None = None
    middle_name: VerifiableAttribute | None = None
    surname: VerifiableAttribute | None = None
    date_of_birth: VerifiableAttribute | None = None
    address: VerifiableAttribute | None = None
    address_history: list[VerifiableAttribute] = field(default_factory=list)
    cycle3: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MatchingAttributes:
        return cls(
            first_name=_verifiable(data.get("firstName")),
            middle_name=_verifiable(data.get("middleName")),
            surname=_verifiable(data.get("surname")),
            date_of_birth=_verifiable(data.get("dateOfBirth")),
            address=_verifiable_address(data["address"]) if data.get("address") else None,
            address_history=[_verifiable_address(a) for a in data.get("addressHistory") or []],
            cycle3=data.get("cycle3"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _drop_none({
            "firstName": self.first_name.to_dict() if self.first_name else None,
            "middleName": self.middle_name.to_dict() if self.middle_name else None,
            "surname": self.surname.to_dict() if self.surname else None,
            "dateOfBirth": self.date_of_birth.to_dict() if self.date_of_birth else None,
            "address": self.address.to_dict() if self.address else None,
            "addressHistory": [a.to_dict() for a in self.address_history] or None,
            "cycle3": self.cycle3,
        })


@dataclass(frozen=True)
class VerifiableIdentityAttribute:
    """An identity attribute with the period it was valid for."""

    value: Any
    verified: bool
    from_date: str | None = None
    to_date: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], value: Any = None) -> VerifiableIdentityAttribute:
        return cls(
            value=data.get("value") if value is None else value,
            verified=bool(data.get("verified", False)),
            from_date=data.get("from"),
            to_date=data.get("to"),
        )

    def to_dict(self) -> dict[str, Any]:
        value = self.value.to_dict() if hasattr(self.value, "to_dict") else self.value
        return _drop_none({
            "value": value,
            "verified": self.verified,
            "from": self.from_date,
            "to": self.to_date,
        })


@dataclass(frozen=True)
class IdentityAddress:
    """Address attribute of an identity journey."""

    lines: list[str] = field(default_factory=list)
    post_code: str | None = None
    international_post_code: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IdentityAddress:
        return cls(
            lines=list(data.get("lines") or []),
            post_code=data.get("postCode"),
            international_post_code=data.get("internationalPostCode"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _drop_none({
            "lines": self.lines,
            "postCode": self.post_code,
            "internationalPostCode": self.international_post_code,
        })


@dataclass(frozen=True)
class IdentityAttributes:
    """Identity attributes, each carrying its own verification history."""

    first_name: VerifiableIdentityAttribute | None = None
    middle_names: list[VerifiableIdentityAttribute] = field(default_factory=list)
    surnames: list[VerifiableIdentityAttribute] = field(default_factory=list)
    date_of_birth: VerifiableIdentityAttribute | None = None
    gender: str | None = None
    addresses: list[VerifiableIdentityAttribute] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IdentityAttributes:
        first_name = data.get("firstName")
        date_of_birth = data.get("dateOfBirth")
        return cls(
            first_name=VerifiableIdentityAttribute.from_dict(first_name) if first_name else None,
            middle_names=[
                VerifiableIdentityAttribute.from_dict(n) for n in data.get("middleNames") or []
            ],
            surnames=[VerifiableIdentityAttribute.from_dict(n) for n in data.get("surnames") or []],
            date_of_birth=(
                VerifiableIdentityAttribute.from_dict(date_of_birth) if date_of_birth else None
            ),
            gender=data.get("gender"),
            addresses=[
                VerifiableIdentityAttribute.from_dict(
                    a, value=IdentityAddress.from_dict(a.get("value") or {})
                )
                for a in data.get("addresses") or []
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        return _drop_none({
            "firstName": self.first_name.to_dict() if self.first_name else None,
            "middleNames": [n.to_dict() for n in self.middle_names] or None,
            "surnames": [n.to_dict() for n in self.surnames] or None,
            "dateOfBirth": self.date_of_birth.to_dict() if self.date_of_birth else None,
            "gender": self.gender,
            "addresses": [a.to_dict() for a in self.addresses] or None,
        })


@dataclass(frozen=True)
class MatchingResponseBody:
    """Success body of `/translate-response` for a matching journey.

    `scenario` is kept exactly as received so that values outside the
    known vocabulary can be reported rather than coerced.
    """

    scenario: str
    pid: str | None = None
    level_of_assurance: str | None = None
    attributes: MatchingAttributes | None = None

    journey_type = JourneyType.MATCHING

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MatchingResponseBody:
        attributes = data.get("attributes")
        return cls(
            scenario=data.get("scenario", ""),
            pid=data.get("pid"),
            level_of_assurance=data.get("levelOfAssurance"),
            attributes=MatchingAttributes.from_dict(attributes) if attributes else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return _drop_none({
            "scenario": str(self.scenario),
            "pid": self.pid,
            "levelOfAssurance": self.level_of_assurance,
            "attributes": self.attributes.to_dict() if self.attributes else None,
        })


@dataclass(frozen=True)
class IdentityResponseBody:
    """Success body of `/translate-response` for an identity journey."""

    scenario: str
    pid: str | None = None
    level_of_assurance: str | None = None
    attributes: IdentityAttributes | None = None

    journey_type = JourneyType.IDENTITY

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IdentityResponseBody:
        attributes = data.get("attributes")
        return cls(
            scenario=data.get("scenario", ""),
            pid=data.get("pid"),
            level_of_assurance=data.get("levelOfAssurance"),
            attributes=IdentityAttributes.from_dict(attributes) if attributes else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return _drop_none({
            "scenario": str(self.scenario),
            "pid": self.pid,
            "levelOfAssurance": self.level_of_assurance,
            "attributes": self.attributes.to_dict() if self.attributes else None,
        })


TranslatedResponseBody = MatchingResponseBody | IdentityResponseBody


def parse_translated_response(
    data: dict[str, Any],
    journey_type: JourneyType,
) -> TranslatedResponseBody:
    """Decode a `/translate-response` success body for the given journey.

    Args:
        data: Decoded JSON body.
        journey_type: Journey the service provider is configured for.

    Returns:
        MatchingResponseBody or IdentityResponseBody.
    """
    if journey_type == JourneyType.IDENTITY:
        return IdentityResponseBody.from_dict(data)
    return MatchingResponseBody.from_dict(data)


BodyT = TypeVar("BodyT")


@dataclass(frozen=True)
class ServiceResponse(Generic[BodyT]):
    """Status code and typed body of one call to the service provider."""

    status: int
    body: BodyT

    @property
    def is_success(self) -> bool:
        """Check if the service provider answered with a 2xx status."""
        return 200 <= self.status < 300

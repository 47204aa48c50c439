"""Data models and dataclasses."""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from constants import POWER_STATE_OFF, POWER_STATE_ON


class InvalidDirective(ValueError):
    """A recognised directive is missing a field the adapter needs."""


class ApiFailure(Exception):
    """A failure reported back to Alexa as an ErrorResponse; usually a Nest API call."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"statusCode": self.status_code, "message": self.message}


class NetworkFailure(ApiFailure):
    """DNS, connection or TLS error; no HTTP status was received."""

    def __init__(self, message: str):
        super().__init__(message)


class UpstreamFailure(ApiFailure):
    """Nest answered with a status other than 200."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message, status_code)


class AwayState(str, enum.Enum):
    """Away mode of a Nest structure."""
    HOME = "home"
    AWAY = "away"

    @classmethod
    def from_api(cls, value: Any) -> "AwayState":
        # Nest also reports "auto-away"; only "home" counts as present
        return cls.HOME if value == cls.HOME.value else cls.AWAY

    @classmethod
    def from_power_state(cls, power_state: str) -> "AwayState":
        return cls.HOME if power_state == POWER_STATE_ON else cls.AWAY

    @property
    def power_state(self) -> str:
        return POWER_STATE_ON if self is AwayState.HOME else POWER_STATE_OFF


@dataclass
class Home:
    """A Nest structure exposed to Alexa as a switch."""
    id: str
    display_name: str

    @classmethod
    def from_api(cls, structure: Dict[str, Any]) -> "Home":
        return cls(id=structure["structure_id"], display_name=structure.get("name", ""))


@dataclass
class Directive:
    """Fields of an inbound Alexa directive the adapter works with."""
    namespace: str
    name: str
    message_id: str
    token: str
    endpoint_id: Optional[str] = None
    header: Dict[str, Any] = field(default_factory=dict, repr=False)

    def __repr__(self) -> str:
        return (
            f"Directive(namespace={self.namespace!r}, name={self.name!r}, "
            f"message_id={self.message_id!r}, endpoint_id={self.endpoint_id!r})"
        )

    @classmethod
    def from_request(cls, request: Dict[str, Any]) -> "Directive":
        """
        Discovery carries the token in directive.payload.scope, every
        other directive in directive.endpoint.scope.
        """
        directive = request.get("directive") or {}
        header = directive.get("header") or {}
        for key in ("namespace", "name", "messageId"):
            if key not in header:
                raise InvalidDirective(f"Directive header is missing '{key}'")

        endpoint = directive.get("endpoint") or {}
        scope = endpoint.get("scope") or (directive.get("payload") or {}).get("scope") or {}
        token = scope.get("token")
        if not token:
            raise InvalidDirective(
                f"{header['namespace']}.{header['name']} directive carries no bearer token"
            )

        return cls(
            namespace=header["namespace"],
            name=header["name"],
            message_id=header["messageId"],
            token=token,
            endpoint_id=endpoint.get("endpointId"),
            header=header,
        )

"""Builders for Alexa Smart Home response messages."""

import copy
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from constants import (
    ALEXA_NAMESPACE,
    DISCOVER_RESPONSE,
    DISPLAY_CATEGORY,
    ERROR_INTERNAL,
    ERROR_INVALID_CREDENTIAL,
    ERROR_NO_SUCH_ENDPOINT,
    ERROR_RATE_LIMIT,
    ERROR_RESPONSE,
    FRIENDLY_NAME_PREFIX,
    INTERFACE_VERSION,
    MANUFACTURER_NAME,
    MESSAGE_ID_SUFFIX,
    POWER_CONTROLLER_NAMESPACE,
    POWER_STATE_PROPERTY,
    SCRUBBED_TOKEN,
    UNCERTAINTY_IN_MILLISECONDS,
)
from models import ApiFailure, Directive, Home

ERROR_TYPES = {
    401: ERROR_INVALID_CREDENTIAL,
    404: ERROR_NO_SUCH_ENDPOINT,
    429: ERROR_RATE_LIMIT,
}


def _time_of_sample() -> str:
    """Current UTC time as ISO-8601 with milliseconds, e.g. 2018-01-01T10:00:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _response_header(
    directive: Directive,
    name: Optional[str] = None,
    namespace: Optional[str] = None,
    suffix: str = MESSAGE_ID_SUFFIX,
) -> Dict[str, Any]:
    # copy so the inbound header is left untouched
    header = copy.deepcopy(directive.header)
    if name:
        header["name"] = name
    if namespace:
        header["namespace"] = namespace
    header["messageId"] = f"{directive.message_id}{suffix}"
    return header


def error_type_for(status_code: Optional[int]) -> str:
    """Map an HTTP status code to an Alexa error type."""
    return ERROR_TYPES.get(status_code, ERROR_INTERNAL)


def generate_response(
    directive: Directive,
    power_state: str,
    name: Optional[str] = None,
    namespace: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a response carrying the endpoint's power state."""
    return {
        "context": {
            "properties": [{
                "namespace": POWER_CONTROLLER_NAMESPACE,
                "name": POWER_STATE_PROPERTY,
                "value": power_state,
                "timeOfSample": _time_of_sample(),
                "uncertaintyInMilliseconds": UNCERTAINTY_IN_MILLISECONDS,
            }]
        },
        "event": {
            "header": _response_header(directive, name, namespace),
            "endpoint": {
                "scope": {
                    "type": "BearerToken",
                    "token": directive.token,
                },
                "endpointId": directive.endpoint_id,
            },
            "payload": {},
        },
    }


def discovery_endpoint(home: Home) -> Dict[str, Any]:
    """Describe one Nest structure as an Alexa switch endpoint."""
    friendly_name = f"{FRIENDLY_NAME_PREFIX} {home.display_name}"
    return {
        "endpointId": home.id,
        "manufacturerName": MANUFACTURER_NAME,
        "friendlyName": friendly_name,
        "description": friendly_name,
        "displayCategories": [DISPLAY_CATEGORY],
        "cookie": {},
        "capabilities": [
            {
                "type": "AlexaInterface",
                "interface": ALEXA_NAMESPACE,
                "version": INTERFACE_VERSION,
            },
            {
                "type": "AlexaInterface",
                "interface": POWER_CONTROLLER_NAMESPACE,
                "version": INTERFACE_VERSION,
                "properties": {
                    "supported": [{"name": POWER_STATE_PROPERTY}],
                    "retrievable": True,
                    "proactivelyReported": False,
                },
            },
        ],
    }


def generate_discovery_response(directive: Directive, homes: List[Home]) -> Dict[str, Any]:
    """Build a Discover.Response listing one endpoint per home."""
    # Discovery responses keep the inbound messageId
    return {
        "event": {
            "header": _response_header(directive, name=DISCOVER_RESPONSE, suffix=""),
            "payload": {
                "endpoints": [discovery_endpoint(h) for h in homes],
            },
        }
    }


def generate_error_response(directive: Directive, error: ApiFailure) -> Dict[str, Any]:
    """Build an Alexa ErrorResponse for a failed Nest call."""
    event: Dict[str, Any] = {
        "header": _response_header(directive, name=ERROR_RESPONSE, namespace=ALEXA_NAMESPACE),
    }
    if directive.endpoint_id is not None:
        event["endpoint"] = {"endpointId": directive.endpoint_id}
    event["payload"] = {
        "type": error_type_for(error.status_code),
        "message": error.message,
    }
    return {"event": event}


def _scrub(node: Any) -> None:
    if isinstance(node, dict):
        scope = node.get("scope")
        if isinstance(scope, dict) and "token" in scope:
            scope["token"] = SCRUBBED_TOKEN
        for value in node.values():
            _scrub(value)
    elif isinstance(node, list):
        for item in node:
            _scrub(item)


def sanitize_json(message: Dict[str, Any]) -> str:
    """
    JSON representation of an Alexa directive or response with every
    OAuth token replaced by a placeholder. Only use this form for logging.
    """
    scrubbed = copy.deepcopy(message)
    _scrub(scrubbed)
    return json.dumps(scrubbed, default=str)


def loggable_error(error: Any) -> str:
    """String form of an error for logging."""
    if isinstance(error, ApiFailure):
        fields = error.to_dict()
    else:
        fields = getattr(error, "__dict__", None) or {"message": str(error)}
    try:
        return json.dumps(fields)
    except (TypeError, ValueError):
        return getattr(error, "message", None) or str(error)

"""Alexa directive routing and handlers."""

import logging
import os
from typing import Any, Dict, Optional

import yaml

from alexa_responses import (
    generate_discovery_response,
    generate_error_response,
    generate_response,
    loggable_error,
    sanitize_json,
)
from constants import (
    ALEXA_NAMESPACE,
    CONFIG_FILE_ENV,
    DEFAULT_CONFIG_FILE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_NEST_API_URL,
    DISCOVER,
    DISCOVERY_NAMESPACE,
    POWER_CONTROLLER_NAMESPACE,
    REPORT_STATE,
    RESPONSE,
    STATE_REPORT,
    TURN_OFF,
    TURN_ON,
)
from models import ApiFailure, AwayState, Directive
from nest_client import NestClient

logger = logging.getLogger(__name__)


def _load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load and validate the configuration file, falling back to defaults."""
    path = path or os.environ.get(CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE)
    config: Dict[str, Any] = {
        "nest_api": {
            "url": DEFAULT_NEST_API_URL,
            "max_redirects": DEFAULT_MAX_REDIRECTS,
            "timeout": None,
        },
        "logging": {"level": DEFAULT_LOG_LEVEL},
    }

    # The Lambda bundle normally ships without a config file
    if not os.path.exists(path):
        return config

    try:
        with open(path, 'r') as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in '{path}': {e}")

    if not loaded:
        raise ValueError(f"'{path}' is empty")
    if not isinstance(loaded, dict):
        raise ValueError(f"'{path}' must contain a mapping")

    for section in ("nest_api", "logging"):
        values = loaded.get(section) or {}
        if not isinstance(values, dict):
            raise ValueError(f"'{section}' section in configuration must be a mapping")
        config[section].update(values)

    nest_config = config["nest_api"]
    if not isinstance(nest_config["url"], str) or not nest_config["url"].startswith(("http://", "https://")):
        raise ValueError("'nest_api.url' must be an http(s) URL")
    max_redirects = nest_config["max_redirects"]
    if isinstance(max_redirects, bool) or not isinstance(max_redirects, int) or max_redirects < 0:
        raise ValueError("'nest_api.max_redirects' must be a non-negative integer")
    timeout = nest_config["timeout"]
    if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0):
        raise ValueError("'nest_api.timeout' must be a positive number or null")
    if not isinstance(config["logging"]["level"], str):
        raise ValueError("'logging.level' must be a string")

    return config


try:
    config = _load_config()
except ValueError as e:
    logger.error(f"Configuration error: {e}")
    raise

NEST_API_URL = config['nest_api']['url']
NEST_MAX_REDIRECTS = config['nest_api']['max_redirects']
NEST_TIMEOUT = config['nest_api']['timeout']
LOG_LEVEL = config['logging']['level'].upper()


class Nest2Alexa:
    """Routes one Alexa directive to the matching Nest operation."""

    def __init__(
        self,
        api_url: str = NEST_API_URL,
        max_redirects: int = NEST_MAX_REDIRECTS,
        timeout: Optional[float] = NEST_TIMEOUT,
    ):
        self.api_url = api_url
        self.max_redirects = max_redirects
        self.timeout = timeout

    def client(self, token: str) -> NestClient:
        """New Nest client for a single invocation."""
        return NestClient(
            token,
            api_url=self.api_url,
            max_redirects=self.max_redirects,
            timeout=self.timeout,
        )

    async def dispatch(self, request: Dict[str, Any], responder) -> None:
        """
        Handle one inbound directive. Directives other than Discover,
        TurnOn/TurnOff and ReportState are ignored: neither
        responder.succeed nor responder.fail is called.
        """
        header = (request.get("directive") or {}).get("header") or {}
        namespace, name = header.get("namespace"), header.get("name")

        if namespace == DISCOVERY_NAMESPACE and name == DISCOVER:
            logger.info(f"Received an Alexa.Discovery request: {sanitize_json(request)}")
            await self.handle_discovery(Directive.from_request(request), responder)
        elif namespace == POWER_CONTROLLER_NAMESPACE and name in (TURN_ON, TURN_OFF):
            logger.info(f"Received an Alexa.PowerController request: {sanitize_json(request)}")
            await self.handle_power_control(Directive.from_request(request), responder)
        elif namespace == ALEXA_NAMESPACE and name == REPORT_STATE:
            logger.info(f"Received a ReportState request: {sanitize_json(request)}")
            await self.handle_report_state(Directive.from_request(request), responder)
        else:
            logger.debug(f"Ignoring unsupported directive {namespace}.{name}")

    def _fail(self, directive: Directive, responder, label: str, error: ApiFailure):
        logger.warning(f"Failed while processing {label} with: {loggable_error(error)}")
        responder.fail(generate_error_response(directive, error))

    async def handle_discovery(self, directive: Directive, responder):
        """List the user's homes and describe each one as a switch."""
        try:
            async with self.client(directive.token) as nest:
                homes = await nest.list_homes()
        except ApiFailure as e:
            self._fail(directive, responder, "an Alexa.Discovery event", e)
            return

        response = generate_discovery_response(directive, homes)
        logger.info(f"Responded to an Alexa.Discovery event with: {sanitize_json(response)}")
        responder.succeed(response)

    async def handle_power_control(self, directive: Directive, responder):
        """TurnOn sets the home to "home", TurnOff sets it to "away"."""
        if not directive.endpoint_id:
            error = ApiFailure(f"{directive.name} directive carries no endpointId")
            self._fail(directive, responder, "an Alexa.PowerController event", error)
            return
        target = AwayState.HOME if directive.name == TURN_ON else AwayState.AWAY

        try:
            async with self.client(directive.token) as nest:
                confirmed = await nest.set_away_state(directive.endpoint_id, target)
        except ApiFailure as e:
            self._fail(directive, responder, "an Alexa.PowerController event", e)
            return

        if confirmed is not target:
            logger.info(f"Nest confirmed '{confirmed.value}' after requesting '{target.value}'")
        response = generate_response(directive, confirmed.power_state, RESPONSE, ALEXA_NAMESPACE)
        logger.info(f"Responded to an Alexa.PowerController event with: {sanitize_json(response)}")
        responder.succeed(response)

    async def handle_report_state(self, directive: Directive, responder):
        """Report the home's away status as the endpoint's power state."""
        if not directive.endpoint_id:
            error = ApiFailure(f"{directive.name} directive carries no endpointId")
            self._fail(directive, responder, "a ReportState event", error)
            return

        try:
            async with self.client(directive.token) as nest:
                away_state = await nest.get_away_state(directive.endpoint_id)
        except ApiFailure as e:
            self._fail(directive, responder, "a ReportState event", e)
            return

        response = generate_response(directive, away_state.power_state, STATE_REPORT)
        logger.info(f"Responded to a ReportState event with: {sanitize_json(response)}")
        responder.succeed(response)

#!/usr/bin/env python3
"""Nest away mode as an Alexa Smart Home skill."""

import asyncio
import logging
from typing import Any, Dict, Optional

from nest2alexa_app import LOG_LEVEL, Nest2Alexa

logger = logging.getLogger(__name__)


class CollectingResponder:
    """Responder that keeps the single outcome of an invocation."""

    def __init__(self):
        self.response: Optional[Dict[str, Any]] = None
        self.failed = False

    def succeed(self, response: Dict[str, Any]):
        self.response = response

    def fail(self, response: Dict[str, Any]):
        self.response = response
        self.failed = True


def handler(request: Dict[str, Any], responder) -> None:
    """
    Main entry point. Calls responder.succeed or responder.fail exactly once
    for a supported directive, and neither for any other directive.
    """
    app = Nest2Alexa()
    asyncio.run(app.dispatch(request, responder))


def lambda_handler(event: Dict[str, Any], context) -> Optional[Dict[str, Any]]:
    """AWS Lambda entry point; error responses are returned like any other."""
    responder = CollectingResponder()
    handler(event, responder)
    return responder.response


logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
# Lambda installs its own root handler, so basicConfig alone won't set the level
logging.getLogger().setLevel(LOG_LEVEL)

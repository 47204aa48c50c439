"""Nest REST API client."""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Union

import aiohttp
from yarl import URL

from constants import (
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_NEST_API_URL,
    HTTP_OK,
    HTTP_TEMPORARY_REDIRECT,
    NEST_STRUCTURES_PATH,
)
from models import AwayState, Home, NetworkFailure, UpstreamFailure

logger = logging.getLogger(__name__)


def _parse_json(body: Union[str, bytes]) -> Any:
    """Decode a JSON body, or None if it is not valid UTF-8 JSON."""
    try:
        if isinstance(body, bytes):
            body = body.decode("utf-8")
        return json.loads(body)
    except ValueError:
        # UnicodeDecodeError is a ValueError too
        return None


def _error_message(body: Union[str, bytes], fallback: str) -> str:
    """Return the "message" field of a JSON error body, or the fallback."""
    data = _parse_json(body)
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return fallback


class NestClient:
    """
    Client for the three Nest calls the adapter needs:
      - list structures (homes)
      - read a structure's away status
      - write a structure's away status

    Nest answers with 307 when a request must go to another shard; every call
    follows those redirects itself, up to max_redirects hops.
    """

    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_NEST_API_URL,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        timeout: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.max_redirects = max_redirects
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "NestClient":
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        """Close the HTTP session if this client opened it."""
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()
        self.session = None

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.token}",
        }

    def structure_url(self, home_id: str) -> str:
        return f"{self.api_url}/{NEST_STRUCTURES_PATH}/{home_id}"

    async def _request(
        self,
        method: str,
        url: str,
        fallback_message: str,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Send one request, following 307 redirects with the same method,
        body and token, and return the decoded JSON body of the final 200.
        """
        if self.session is None:
            raise RuntimeError("NestClient used outside of 'async with'")

        data = json.dumps(body) if body is not None else None
        hops = 0
        while True:
            logger.debug(f"{method} {url}")
            try:
                async with self.session.request(
                    method,
                    url,
                    headers=self._get_headers(),
                    data=data,
                    allow_redirects=False,
                ) as resp:
                    status = resp.status
                    location = resp.headers.get("Location")
                    raw = b"" if status == HTTP_TEMPORARY_REDIRECT else await resp.read()
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise NetworkFailure(str(e) or type(e).__name__) from e

            if status != HTTP_TEMPORARY_REDIRECT:
                break

            if not location:
                raise UpstreamFailure(status, "Nest redirected the request without a Location header")
            hops += 1
            if hops > self.max_redirects:
                raise UpstreamFailure(
                    status, f"Nest redirected the request more than {self.max_redirects} times"
                )
            url = str(URL(url).join(URL(location)))
            logger.debug(f"Nest redirected {method} to {url}")

        if status != HTTP_OK:
            raise UpstreamFailure(status, _error_message(raw, fallback_message))

        payload = _parse_json(raw)
        if not isinstance(payload, dict):
            raise UpstreamFailure(status, fallback_message)
        return payload

    async def list_homes(self) -> List[Home]:
        """Get the user's structures (homes)."""
        fallback = "The user's structures couldn't be determined"
        data = await self._request("GET", self.api_url, fallback)
        structures = data.get("structures") or {}
        if not isinstance(structures, dict) or not all(
            isinstance(s, dict) and s.get("structure_id") for s in structures.values()
        ):
            raise UpstreamFailure(HTTP_OK, fallback)
        homes = [Home.from_api(s) for s in structures.values()]
        logger.debug(f"Retrieved {len(homes)} structures from Nest")
        return homes

    async def get_away_state(self, home_id: str) -> AwayState:
        """Get a structure's away status."""
        data = await self._request(
            "GET",
            self.structure_url(home_id),
            f"The user's structure's ({home_id}) away status couldn't be determined",
        )
        return AwayState.from_api(data.get("away"))

    async def set_away_state(self, home_id: str, new_state: AwayState) -> AwayState:
        """Set a structure's away status and return the value Nest confirmed."""
        data = await self._request(
            "PUT",
            self.structure_url(home_id),
            f"The user's structure's ({home_id}) away status couldn't be set",
            body={"away": AwayState(new_state).value},
        )
        return AwayState.from_api(data.get("away"))

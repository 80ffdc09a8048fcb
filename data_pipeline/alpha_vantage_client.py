"""Alpha Vantage API client shared by every gateway operation."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import requests

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.alphavantage.co/query"
DEFAULT_TIMEOUT = 15.0
DEFAULT_MAX_RESPONSE_BYTES = 16 * 1024 * 1024
_CHUNK_SIZE = 64 * 1024

# Keys Alpha Vantage uses to report a failed call with an HTTP 200 response.
_ERROR_KEYS = ("Error Message", "Information", "Note")


class AlphaVantageError(RuntimeError):
    """Raised when the Alpha Vantage API call fails or returns an error payload."""


class AlphaVantageClient:
    """Thin wrapper around the Alpha Vantage REST API.

    One instance owns one ``requests.Session`` and is meant to be built once at
    startup and shared by every request the server handles.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
    ) -> None:
        if not api_key:
            raise ValueError("Alpha Vantage API key is required")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_response_bytes = max_response_bytes

    # ------------------------------------------------------------------
    def fetch(self, function: str, **query: str) -> Dict[str, Any]:
        """Call ``function`` with the given query parameters and return the JSON object.

        Raises :class:`AlphaVantageError` for network failures, non-2xx
        responses, bodies that are not a JSON object and upstream error
        payloads. An empty object is returned as-is; deciding whether that
        means "no data" is up to the caller.
        """

        params = {"function": function, **query, "apikey": self.api_key}
        LOGGER.debug("Alpha Vantage request %s %s", function, query)

        try:
            response = self.session.get(self.base_url, params=params, timeout=self.timeout, stream=True)
            try:
                response.raise_for_status()
                body = self._read_body(response)
            finally:
                response.close()
        except requests.RequestException as exc:
            raise AlphaVantageError(str(exc)) from exc

        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise AlphaVantageError(f"Invalid JSON in response: {exc}") from exc

        if not isinstance(payload, dict):
            raise AlphaVantageError(f"Unexpected {function} payload format")

        for key in _ERROR_KEYS:
            message = payload.get(key)
            if message:
                LOGGER.warning("Alpha Vantage %s for %s: %s", key.lower(), function, message)
                raise AlphaVantageError(str(message))

        return payload

    def _read_body(self, response: requests.Response) -> bytes:
        """Read the streamed body, stopping as soon as it passes ``max_response_bytes``."""

        limit = self.max_response_bytes
        declared = (response.headers or {}).get("Content-Length")
        if declared and declared.isdigit() and int(declared) > limit:
            raise AlphaVantageError(f"Response of {declared} bytes exceeds limit of {limit} bytes")

        chunks: list[bytes] = []
        size = 0
        for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
            size += len(chunk)
            if size > limit:
                raise AlphaVantageError(f"Response exceeds limit of {limit} bytes")
            chunks.append(chunk)
        return b"".join(chunks)


__all__ = [
    "AlphaVantageClient",
    "AlphaVantageError",
    "DEFAULT_BASE_URL",
    "DEFAULT_MAX_RESPONSE_BYTES",
    "DEFAULT_TIMEOUT",
]

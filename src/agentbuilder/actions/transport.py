"""
HTTP transport used by the action executor.

AiohttpTransport wraps a shared aiohttp session and translates HTTP and
network failures into the package's typed exceptions, so the executor's
retry policy can branch on exception type instead of raw status codes.

Example:
    async with AiohttpTransport() as transport:
        response = await transport.send(
            HttpRequest(method="GET", url="https://api.example.com/weather")
        )
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import aiohttp

from ..domain.ports import IHttpTransport
from ..exceptions import (
    APIError,
    ConnectionError,
    NetworkError,
    ServerError,
    TimeoutError,
)

logger = logging.getLogger(__name__)


@dataclass
class HttpRequest:
    """A fully-built outgoing request."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    json: Any = None
    data: Optional[str] = None
    timeout: float = 30.0

    @property
    def body(self) -> Any:
        return self.json if self.json is not None else self.data


@dataclass
class HttpResponse:
    """A decoded upstream response."""

    status: int
    data: Any = None
    headers: dict[str, str] = field(default_factory=dict)


def stringify_params(params: dict[str, Any]) -> dict[str, str]:
    """Convert query param values to strings (aiohttp rejects bools and None)."""
    result = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            result[key] = "true" if value else "false"
        elif isinstance(value, (dict, list)):
            result[key] = json.dumps(value)
        else:
            result[key] = str(value)
    return result


def decode_body(text: str) -> Any:
    """Decode a response body as JSON, falling back to the raw text."""
    if not text:
        return text
    try:
        return json.loads(text)
    except ValueError:
        return text


def create_api_error(status: int, method: str, url: str, response_body: str) -> APIError:
    """Create the appropriate APIError subclass for a status code."""
    if status >= 500:
        return ServerError(
            f"Request failed with status code {status}",
            status_code=status,
            endpoint=url,
            method=method,
            response_body=response_body,
        )
    return APIError(
        f"Request failed with status code {status}",
        status_code=status,
        endpoint=url,
        method=method,
        response_body=response_body,
    )


class AiohttpTransport(IHttpTransport):
    """IHttpTransport backed by a shared aiohttp.ClientSession.

    The session is created lazily on first use, or eagerly when the
    transport is used as an async context manager. The composition root
    owns the transport and closes it on shutdown.
    """

    def __init__(self, session: Optional[aiohttp.ClientSession] = None):
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "AiohttpTransport":
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(limit=100, limit_per_host=10),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def send(self, request: HttpRequest) -> HttpResponse:
        """Send a single request (no retry logic).

        Raises:
            ServerError: Upstream answered 5xx
            APIError: Upstream answered 4xx
            ConnectionError: Connection to the host failed
            TimeoutError: No complete response within request.timeout
            NetworkError: Any other client-side transport failure
        """
        session = self._ensure_session()

        try:
            async with session.request(
                method=request.method,
                url=request.url,
                headers=request.headers,
                params=stringify_params(request.params),
                json=request.json,
                data=request.data,
                timeout=aiohttp.ClientTimeout(total=request.timeout),
            ) as response:
                text = await response.text()
                if response.status >= 400:
                    raise create_api_error(
                        status=response.status,
                        method=request.method,
                        url=request.url,
                        response_body=text,
                    )

                return HttpResponse(
                    status=response.status,
                    data=decode_body(text),
                    headers=dict(response.headers),
                )

        # ServerTimeoutError is both a timeout and a connection error
        except asyncio.TimeoutError as e:
            raise TimeoutError(
                f"timeout of {int(request.timeout * 1000)}ms exceeded",
                timeout_seconds=request.timeout,
                cause=e,
            )

        except aiohttp.ClientConnectionError as e:
            raise ConnectionError(
                f"Failed to connect to {request.url}",
                host=request.url,
                cause=e,
            )

        except aiohttp.ClientError as e:
            raise NetworkError(
                f"Network error during {request.method} {request.url}: {e}",
                cause=e,
            )

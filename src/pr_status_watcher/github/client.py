"""Transport for the GitHub API.

``GitHubClient`` sends one request, decodes the JSON object it gets back and
turns every kind of failure into a ``GitHubError`` subclass. Timeouts,
unreachable hosts and 5xx answers are retried with exponential backoff; the
rest fail on the first attempt.
"""

import asyncio
import json
import logging
import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin

import aiohttp

from .auth import AuthProvider
from .exceptions import (
    GitHubAPIError,
    GitHubAuthenticationError,
    GitHubConnectionError,
    GitHubError,
    GitHubInvalidResponseError,
    GitHubRateLimitError,
    GitHubServerError,
    GitHubTimeoutError,
)

logger = logging.getLogger(__name__)

ACCEPT_HEADER = "application/vnd.github+json"


@dataclass
class GitHubClientConfig:
    """Endpoint and transport limits for GitHubClient."""

    base_url: str = "https://api.github.com"
    graphql_path: str = "/graphql"
    timeout: int = 30
    max_retries: int = 2
    retry_backoff_factor: float = 2.0
    user_agent: str = "PR-Status-Watcher/1.0"


def _header_int(headers: Mapping[str, str], name: str) -> int | None:
    value = headers.get(name)
    try:
        return int(value) if value else None
    except ValueError:
        logger.debug(f"Ignoring malformed {name} header: {value!r}")
        return None


def error_for_status(
    status: int, body: dict[str, Any], headers: Mapping[str, str]
) -> GitHubAPIError:
    """Build the exception matching an HTTP error status.

    A 403 mentioning the rate limit becomes ``GitHubRateLimitError``; any
    other 401/403 means the token was rejected.
    """
    message = body.get("message") or f"HTTP {status}"

    if status == 401:
        return GitHubAuthenticationError(message, status, body)
    if status == 403:
        if "rate limit" in message.lower():
            return GitHubRateLimitError(
                message,
                reset_time=_header_int(headers, "X-RateLimit-Reset"),
                remaining=_header_int(headers, "X-RateLimit-Remaining") or 0,
                limit=_header_int(headers, "X-RateLimit-Limit") or 0,
                status_code=status,
                response_data=body,
            )
        return GitHubAuthenticationError(message, status, body)
    if status >= 500:
        return GitHubServerError(message, status, body)
    return GitHubAPIError(message, status, body)


class GitHubClient:
    """Async GitHub API client returning decoded JSON objects."""

    def __init__(
        self,
        auth: AuthProvider,
        config: GitHubClientConfig | None = None,
    ) -> None:
        self.auth = auth
        self.config = config or GitHubClientConfig()

        # Created lazily so the client can be built outside a running loop
        self._session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()

    async def __aenter__(self) -> "GitHubClient":
        await self._get_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session, if one was opened."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def get(self, path: str) -> dict[str, Any]:
        """GET a REST path such as ``/user``."""
        return await self._request("GET", path)

    async def graphql(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """POST a GraphQL document.

        The envelope is returned untouched, ``errors`` included; only
        transport and HTTP level failures raise here.
        """
        payload = {"query": query, "variables": variables or {}}
        return await self._request("POST", self.config.graphql_path, payload)

    async def get_user(self) -> dict[str, Any]:
        """Profile of the token's owner."""
        return await self.get("/user")

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            async with self._session_lock:
                if self._session is None or self._session.closed:
                    self._session = aiohttp.ClientSession(
                        timeout=aiohttp.ClientTimeout(total=self.config.timeout),
                        headers={
                            "User-Agent": self.config.user_agent,
                            "Accept": ACCEPT_HEADER,
                        },
                    )
        return self._session

    def _retry_delay(self, attempt: int) -> float:
        return self.config.retry_backoff_factor**attempt

    async def _request(
        self, method: str, path: str, payload: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Send a request, retrying transient failures.

        The token is resolved once, before the first attempt, so a missing
        token fails without touching the network.

        Raises:
            GitHubAuthenticationMissingError: If no token is available
            GitHubError: For every transport, HTTP or decoding failure
        """
        request_id = uuid.uuid4().hex[:8]
        url = urljoin(self.config.base_url.rstrip("/") + "/", path.lstrip("/"))
        token = await self.auth.get_token()
        session = await self._get_session()

        failure: GitHubError | None = None
        attempts = self.config.max_retries + 1
        for attempt in range(attempts):
            started = time.monotonic()
            logger.debug(f"[{request_id}] {method} {url} (attempt {attempt + 1}/{attempts})")
            try:
                async with session.request(
                    method, url, json=payload, headers=token.to_header()
                ) as response:
                    logger.debug(
                        f"[{request_id}] HTTP {response.status} "
                        f"after {time.monotonic() - started:.2f}s"
                    )
                    if response.status >= 400:
                        raise await self._error_from_response(response, request_id)
                    return await self._decode(response)
            except TimeoutError:
                failure = GitHubTimeoutError(
                    f"GitHub API timed out after {self.config.timeout}s ({method} {url})"
                )
            except aiohttp.ClientError as e:
                failure = GitHubConnectionError(f"Cannot reach GitHub API ({method} {url}): {e}")
            except GitHubServerError as e:
                failure = e

            if attempt + 1 < attempts:
                delay = self._retry_delay(attempt)
                logger.warning(f"[{request_id}] {failure}; retrying in {delay:.1f}s")
                await asyncio.sleep(delay)

        if failure:
            raise failure
        raise GitHubError(f"Request failed after {attempts} attempts ({method} {url})")

    async def _decode(self, response: aiohttp.ClientResponse) -> dict[str, Any]:
        try:
            body = await response.json(content_type=None)
        except (json.JSONDecodeError, ValueError) as e:
            raise GitHubInvalidResponseError(
                f"Invalid response from GitHub API: {e}", response.status
            ) from e

        if not isinstance(body, dict):
            raise GitHubInvalidResponseError(
                "Invalid response from GitHub API: expected a JSON object",
                response.status,
            )
        return body

    async def _error_from_response(
        self, response: aiohttp.ClientResponse, request_id: str
    ) -> GitHubAPIError:
        try:
            body = await response.json(content_type=None)
        except (json.JSONDecodeError, ValueError):
            body = None
        if not isinstance(body, dict):
            body = {"message": (await response.text()).strip()}

        error = error_for_status(response.status, body, response.headers)
        logger.warning(f"[{request_id}] GitHub API error {response.status}: {error.message}")
        return error

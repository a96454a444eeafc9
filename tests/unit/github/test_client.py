"""
Unit tests for GitHub API client.

Why: Ensure the transport classifies every failure into the error taxonomy
     and retries only transient failures.

What: Tests GitHubClient GraphQL and REST calls, error mapping, retries and
      authentication handling.

How: Uses aioresponses to mock aiohttp without real network calls.
"""

import asyncio
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest
import pytest_asyncio
from aioresponses import aioresponses

from pr_status_watcher.github.auth import EnvironmentTokenAuth, TokenAuth
from pr_status_watcher.github.client import GitHubClient, GitHubClientConfig
from pr_status_watcher.github.exceptions import (
    ErrorKind,
    GitHubAPIError,
    GitHubAuthenticationError,
    GitHubAuthenticationMissingError,
    GitHubConnectionError,
    GitHubInvalidResponseError,
    GitHubRateLimitError,
    GitHubServerError,
    GitHubTimeoutError,
)

GRAPHQL_URL = "https://api.github.com/graphql"
USER_URL = "https://api.github.com/user"


class TestGitHubClientConfig:
    """Test GitHubClientConfig data class."""

    def test_defaults(self) -> None:
        config = GitHubClientConfig()

        assert config.base_url == "https://api.github.com"
        assert config.graphql_path == "/graphql"
        assert config.timeout == 30
        assert config.max_retries == 2
        assert config.retry_backoff_factor == 2.0


class TestGitHubClient:
    """Test GitHubClient class."""

    @pytest_asyncio.fixture
    async def client(self) -> AsyncGenerator[GitHubClient, None]:
        client = GitHubClient(TokenAuth("test_token"), GitHubClientConfig(max_retries=0))
        yield client
        await client.close()

    @pytest.mark.asyncio
    async def test_graphql_posts_query_with_token(self, client: GitHubClient) -> None:
        with aioresponses() as m:
            m.post(GRAPHQL_URL, payload={"data": {"ok": True}})

            body = await client.graphql("query { ok }", {"first": 1})

            assert body == {"data": {"ok": True}}
            [calls] = list(m.requests.values())
            kwargs = calls[0].kwargs
            assert kwargs["json"] == {"query": "query { ok }", "variables": {"first": 1}}
            assert kwargs["headers"]["Authorization"] == "Bearer test_token"

    @pytest.mark.asyncio
    async def test_get_user(self, client: GitHubClient) -> None:
        with aioresponses() as m:
            m.get(USER_URL, payload={"login": "alice"})

            assert await client.get_user() == {"login": "alice"}

    @pytest.mark.asyncio
    async def test_timeout_maps_to_timeout_error(self, client: GitHubClient) -> None:
        with aioresponses() as m:
            m.post(GRAPHQL_URL, exception=asyncio.TimeoutError())

            with pytest.raises(GitHubTimeoutError) as exc_info:
                await client.graphql("query { ok }")

        assert exc_info.value.kind == ErrorKind.TIMEOUT
        assert "30s" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_connection_failure_keeps_cause(self, client: GitHubClient) -> None:
        with aioresponses() as m:
            m.post(GRAPHQL_URL, exception=aiohttp.ClientConnectionError("connection refused"))

            with pytest.raises(GitHubConnectionError) as exc_info:
                await client.graphql("query { ok }")

        assert exc_info.value.kind == ErrorKind.TRANSPORT_UNAVAILABLE
        assert "connection refused" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_non_json_body_is_invalid_response(self, client: GitHubClient) -> None:
        with aioresponses() as m:
            m.post(GRAPHQL_URL, status=200, body="<html>oops</html>")

            with pytest.raises(GitHubInvalidResponseError) as exc_info:
                await client.graphql("query { ok }")

        assert exc_info.value.kind == ErrorKind.INVALID_RESPONSE

    @pytest.mark.asyncio
    async def test_json_array_is_invalid_response(self, client: GitHubClient) -> None:
        with aioresponses() as m:
            m.post(GRAPHQL_URL, status=200, body="[1, 2]")

            with pytest.raises(GitHubInvalidResponseError):
                await client.graphql("query { ok }")

    @pytest.mark.asyncio
    async def test_401_is_authentication_error(self, client: GitHubClient) -> None:
        with aioresponses() as m:
            m.post(GRAPHQL_URL, status=401, payload={"message": "Bad credentials"})

            with pytest.raises(GitHubAuthenticationError) as exc_info:
                await client.graphql("query { ok }")

        assert exc_info.value.status_code == 401
        assert exc_info.value.kind == ErrorKind.API_ERROR
        assert "Bad credentials" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_403_rate_limit(self, client: GitHubClient) -> None:
        with aioresponses() as m:
            m.post(
                GRAPHQL_URL,
                status=403,
                payload={"message": "API rate limit exceeded"},
                headers={
                    "X-RateLimit-Reset": "1700000000",
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Limit": "5000",
                },
            )

            with pytest.raises(GitHubRateLimitError) as exc_info:
                await client.graphql("query { ok }")

        assert exc_info.value.reset_time == 1700000000
        assert exc_info.value.limit == 5000
        assert exc_info.value.status_code == 403
        assert exc_info.value.response_data == {"message": "API rate limit exceeded"}

    @pytest.mark.asyncio
    async def test_403_rate_limit_with_malformed_headers(self, client: GitHubClient) -> None:
        with aioresponses() as m:
            m.post(
                GRAPHQL_URL,
                status=403,
                payload={"message": "API rate limit exceeded"},
                headers={
                    "X-RateLimit-Reset": "soon",
                    "X-RateLimit-Remaining": "",
                    "X-RateLimit-Limit": "5k",
                },
            )

            with pytest.raises(GitHubRateLimitError) as exc_info:
                await client.graphql("query { ok }")

        assert exc_info.value.reset_time is None
        assert exc_info.value.remaining == 0
        assert exc_info.value.limit == 0

    @pytest.mark.asyncio
    async def test_other_status_is_api_error(self, client: GitHubClient) -> None:
        with aioresponses() as m:
            m.post(GRAPHQL_URL, status=422, payload={"message": "Unprocessable"})

            with pytest.raises(GitHubAPIError, match="Unprocessable"):
                await client.graphql("query { ok }")

    @pytest.mark.asyncio
    async def test_server_error_without_retries(self, client: GitHubClient) -> None:
        with aioresponses() as m:
            m.post(GRAPHQL_URL, status=502, body="Bad Gateway")

            with pytest.raises(GitHubServerError) as exc_info:
                await client.graphql("query { ok }")

        assert exc_info.value.status_code == 502
        assert "Bad Gateway" in str(exc_info.value)


class TestGitHubClientRetries:
    """Test retry behavior for transient failures."""

    @pytest.mark.asyncio
    async def test_server_error_is_retried(self) -> None:
        client = GitHubClient(TokenAuth("test_token"), GitHubClientConfig(max_retries=1))
        try:
            with aioresponses() as m, patch(
                "pr_status_watcher.github.client.asyncio.sleep", new=AsyncMock()
            ) as sleep:
                m.post(GRAPHQL_URL, status=500, payload={"message": "boom"})
                m.post(GRAPHQL_URL, payload={"data": {}})

                body = await client.graphql("query { ok }")

                assert body == {"data": {}}
                sleep.assert_awaited_once_with(1.0)
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self) -> None:
        client = GitHubClient(TokenAuth("test_token"), GitHubClientConfig(max_retries=2))
        try:
            with aioresponses() as m, patch(
                "pr_status_watcher.github.client.asyncio.sleep", new=AsyncMock()
            ) as sleep:
                m.post(GRAPHQL_URL, status=401, payload={"message": "Bad credentials"})

                with pytest.raises(GitHubAuthenticationError):
                    await client.graphql("query { ok }")

                sleep.assert_not_awaited()
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_retries_exhausted_raises_last_error(self) -> None:
        client = GitHubClient(TokenAuth("test_token"), GitHubClientConfig(max_retries=2))
        try:
            with aioresponses() as m, patch(
                "pr_status_watcher.github.client.asyncio.sleep", new=AsyncMock()
            ) as sleep:
                for _ in range(3):
                    m.post(GRAPHQL_URL, exception=asyncio.TimeoutError())

                with pytest.raises(GitHubTimeoutError):
                    await client.graphql("query { ok }")

                assert sleep.await_count == 2
        finally:
            await client.close()


class TestAuthentication:
    """Test token providers."""

    @pytest.mark.asyncio
    async def test_missing_environment_token(self, clean_token_env) -> None:
        with pytest.raises(GitHubAuthenticationMissingError) as exc_info:
            await EnvironmentTokenAuth().get_token()

        assert exc_info.value.kind == ErrorKind.AUTHENTICATION_MISSING

    @pytest.mark.asyncio
    async def test_environment_token_fallback(self, clean_token_env) -> None:
        clean_token_env.setenv("GH_TOKEN", "gh-cli-token")

        token = await EnvironmentTokenAuth().get_token()

        assert token.to_header() == {"Authorization": "Bearer gh-cli-token"}

    def test_empty_fixed_token(self) -> None:
        with pytest.raises(GitHubAuthenticationMissingError):
            TokenAuth("")

    @pytest.mark.asyncio
    async def test_missing_token_fails_before_request(self, clean_token_env) -> None:
        client = GitHubClient(EnvironmentTokenAuth())
        try:
            with aioresponses() as m:
                with pytest.raises(GitHubAuthenticationMissingError):
                    await client.graphql("query { ok }")

                assert m.requests == {}
        finally:
            await client.close()

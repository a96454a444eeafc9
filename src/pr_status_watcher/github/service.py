"""Pull request fetch operations on top of the GitHub client."""

import logging
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from ..interfaces import PullRequestService
from ..models import PullRequest
from .client import GitHubClient
from .conversion import convert_node
from .exceptions import (
    GitHubAPIError,
    GitHubError,
    GitHubInvalidResponseError,
    GitHubRateLimitError,
)
from .graphql import (
    SEARCH_QUERY,
    GraphQLEnvelope,
    PullRequestNode,
    SearchData,
    authored_search,
    review_requested_search,
)
from .pagination import DEFAULT_MAX_ITEMS, DEFAULT_MAX_PAGES, CursorPaginator, SearchPage

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
RATE_LIMITED_ERROR_TYPE = "RATE_LIMITED"


class GitHubPullRequestService(PullRequestService):
    """Fetches authored and review-requested pull requests via GraphQL search."""

    def __init__(
        self,
        client: GitHubClient,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
        max_items: int = DEFAULT_MAX_ITEMS,
    ):
        """Initialize the service.

        Args:
            client: GitHub API client
            page_size: Pull requests per page (max 100)
            max_pages: Page cap per search
            max_items: Pull request cap per search
        """
        self.client = client
        self.page_size = min(page_size, DEFAULT_PAGE_SIZE)
        self.max_pages = max_pages
        self.max_items = max_items

    async def fetch_authored(self, username: str) -> list[PullRequest]:
        """Fetch open pull requests authored by ``username``."""
        return await self._search(authored_search(username), username)

    async def fetch_review_requested(self, username: str) -> list[PullRequest]:
        """Fetch open pull requests awaiting review by ``username``."""
        return await self._search(review_requested_search(username), username)

    async def resolve_current_identity(self) -> str | None:
        """Resolve the login of the authenticated user.

        Returns:
            The login, or None when it cannot be determined
        """
        try:
            user = await self.client.get_user()
        except GitHubError as e:
            logger.error(f"Failed to resolve GitHub user: {e}")
            return None

        login = user.get("login")
        if not isinstance(login, str) or not login:
            logger.error("GitHub user response has no login")
            return None
        return login

    async def _search(self, query: str, viewer_username: str) -> list[PullRequest]:
        async def fetch_page(cursor: str | None) -> SearchPage[dict[str, Any] | None]:
            return await self._fetch_search_page(query, cursor)

        paginator = CursorPaginator(
            fetch_page,
            max_pages=self.max_pages,
            max_items=self.max_items,
            label=f"'{query}'",
        )
        raw_nodes = await paginator.collect_all()

        fetched_at = datetime.now(UTC)
        pull_requests = []
        for raw in raw_nodes:
            pr = self._convert_raw_node(raw, viewer_username, fetched_at)
            if pr is not None:
                pull_requests.append(pr)

        logger.info(
            f"Search '{query}' returned {len(pull_requests)} pull requests "
            f"({len(raw_nodes) - len(pull_requests)} dropped, "
            f"{paginator.pages_fetched} pages)"
        )
        return pull_requests

    async def _fetch_search_page(
        self, query: str, cursor: str | None
    ) -> SearchPage[dict[str, Any] | None]:
        """Request and decode one search page.

        Raises:
            GitHubAPIError: If the response carries GraphQL errors
            GitHubInvalidResponseError: If the response cannot be decoded
        """
        variables: dict[str, Any] = {"query": query, "first": self.page_size}
        if cursor:
            variables["after"] = cursor

        body = await self.client.graphql(SEARCH_QUERY, variables)

        try:
            envelope = GraphQLEnvelope.model_validate(body)
        except ValidationError as e:
            raise GitHubInvalidResponseError(
                f"Invalid response from GitHub API: {e.error_count()} decode errors"
            ) from e

        # Protocol errors win over whatever partial data came with them
        if envelope.errors:
            first = envelope.errors[0]
            if first.type == RATE_LIMITED_ERROR_TYPE:
                raise GitHubRateLimitError(first.message, response_data=body)
            raise GitHubAPIError(first.message, response_data=body)

        if envelope.data is None:
            raise GitHubInvalidResponseError("Invalid response from GitHub API: no data")

        try:
            search = SearchData.model_validate(envelope.data).search
        except ValidationError as e:
            raise GitHubInvalidResponseError(
                f"Invalid response from GitHub API: {e.error_count()} decode errors"
            ) from e

        return SearchPage(
            items=list(search.nodes),
            has_next_page=search.page_info.has_next_page,
            end_cursor=search.page_info.end_cursor,
        )

    def _convert_raw_node(
        self,
        raw: dict[str, Any] | None,
        viewer_username: str,
        fetched_at: datetime,
    ) -> PullRequest | None:
        """Decode and convert one node, dropping it on failure."""
        if not raw:
            logger.debug("Skipping empty search node")
            return None

        try:
            node = PullRequestNode.model_validate(raw)
        except ValidationError as e:
            logger.warning(
                f"Dropping undecodable pull request node {raw.get('url', '?')}: "
                f"{e.error_count()} errors"
            )
            return None

        pr = convert_node(node, viewer_username, fetched_at=fetched_at)
        if pr is None:
            logger.warning(
                f"Dropping pull request node missing required fields: {node.url or node.number}"
            )
        return pr

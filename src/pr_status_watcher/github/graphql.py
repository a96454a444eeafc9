"""GraphQL search query and typed response models.

Every field in the node models is optional: GitHub omits or nulls fields it
cannot resolve (deleted authors, inaccessible commits), and deciding which
missing fields are fatal is the converter's job, not the decoder's.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

SEARCH_QUERY = """
query($query: String!, $first: Int!, $after: String) {
  search(query: $query, type: ISSUE, first: $first, after: $after) {
    pageInfo {
      hasNextPage
      endCursor
    }
    nodes {
      ... on PullRequest {
        number
        title
        publishedAt
        url
        repository { nameWithOwner }
        author { login }
        isDraft
        state
        reviewDecision
        mergeable
        mergeQueueEntry { position }
        reviews(states: APPROVED, first: 0) { totalCount }
        latestReviews(first: 100) {
          nodes {
            author { login }
            state
          }
        }
        headRefOid
        headRefName
        commits(last: 1) {
          nodes {
            commit {
              statusCheckRollup {
                state
                contexts(first: 100) {
                  totalCount
                  nodes {
                    __typename
                    ... on CheckRun {
                      name
                      status
                      conclusion
                      detailsUrl
                    }
                    ... on StatusContext {
                      context
                      state
                      targetUrl
                    }
                  }
                }
              }
            }
          }
        }
      }
    }
  }
}
"""


def authored_search(username: str) -> str:
    """Search expression for open pull requests authored by ``username``."""
    return f"author:{username} type:pr state:open"


def review_requested_search(username: str) -> str:
    """Search expression for open pull requests awaiting review by ``username``."""
    return f"review-requested:{username} type:pr state:open"


class GraphQLModel(BaseModel):
    """Base for response models, populated from camelCase keys."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class GraphQLErrorModel(GraphQLModel):
    message: str = ""
    type: str | None = None
    path: list[Any] | None = None


class GraphQLEnvelope(GraphQLModel):
    """Top-level ``{data, errors}`` response."""

    data: dict[str, Any] | None = None
    errors: list[GraphQLErrorModel] | None = None


class PageInfo(GraphQLModel):
    has_next_page: bool = Field(default=False, alias="hasNextPage")
    end_cursor: str | None = Field(default=None, alias="endCursor")


class CheckContextNode(GraphQLModel):
    """Either a ``CheckRun`` or a ``StatusContext``.

    Runs carry ``name``/``status``/``conclusion``; contexts carry
    ``context``/``state``. The shape is told apart by ``__typename`` when
    present and by the fields themselves otherwise.
    """

    typename: str | None = Field(default=None, alias="__typename")

    # CheckRun
    name: str | None = None
    status: str | None = None
    conclusion: str | None = None
    details_url: str | None = Field(default=None, alias="detailsUrl")

    # StatusContext
    context: str | None = None
    state: str | None = None
    target_url: str | None = Field(default=None, alias="targetUrl")

    @property
    def is_status_context(self) -> bool:
        if self.typename:
            return self.typename == "StatusContext"
        return self.context is not None


class CheckContextConnection(GraphQLModel):
    total_count: int = Field(default=0, alias="totalCount")
    nodes: list[CheckContextNode | None] = Field(default_factory=list)


class StatusCheckRollup(GraphQLModel):
    state: str | None = None
    contexts: CheckContextConnection | None = None


class CommitRef(GraphQLModel):
    status_check_rollup: StatusCheckRollup | None = Field(
        default=None, alias="statusCheckRollup"
    )


class CommitNode(GraphQLModel):
    commit: CommitRef | None = None


class CommitConnection(GraphQLModel):
    nodes: list[CommitNode | None] = Field(default_factory=list)


class ActorRef(GraphQLModel):
    login: str | None = None


class RepositoryRef(GraphQLModel):
    name_with_owner: str | None = Field(default=None, alias="nameWithOwner")


class MergeQueueEntryRef(GraphQLModel):
    position: int | None = None


class CountRef(GraphQLModel):
    total_count: int = Field(default=0, alias="totalCount")


class LatestReviewNode(GraphQLModel):
    author: ActorRef | None = None
    state: str | None = None


class LatestReviewConnection(GraphQLModel):
    nodes: list[LatestReviewNode | None] = Field(default_factory=list)


class PullRequestNode(GraphQLModel):
    """One pull request node from the search connection."""

    number: int | None = None
    title: str | None = None
    url: str | None = None
    published_at: str | None = Field(default=None, alias="publishedAt")
    repository: RepositoryRef | None = None
    author: ActorRef | None = None
    is_draft: bool | None = Field(default=None, alias="isDraft")
    state: str | None = None
    review_decision: str | None = Field(default=None, alias="reviewDecision")
    mergeable: str | None = None
    merge_queue_entry: MergeQueueEntryRef | None = Field(
        default=None, alias="mergeQueueEntry"
    )
    reviews: CountRef | None = None
    latest_reviews: LatestReviewConnection | None = Field(
        default=None, alias="latestReviews"
    )
    head_ref_oid: str | None = Field(default=None, alias="headRefOid")
    head_ref_name: str | None = Field(default=None, alias="headRefName")
    commits: CommitConnection | None = None

    @property
    def status_check_rollup(self) -> StatusCheckRollup | None:
        """Rollup of the head commit, if any."""
        if not self.commits:
            return None
        for node in self.commits.nodes:
            if node and node.commit:
                return node.commit.status_check_rollup
        return None


class SearchResult(GraphQLModel):
    """One page of the search connection.

    Nodes stay raw so that one malformed node can be dropped without
    failing the page.
    """

    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")
    nodes: list[dict[str, Any] | None] = Field(default_factory=list)


class SearchData(GraphQLModel):
    search: SearchResult

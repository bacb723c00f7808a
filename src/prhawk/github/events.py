"""Pull request event handling.

Each triggering webhook event is one independent run:
1. Compare the PR's base and head commits
2. Score every changed file at both revisions
3. Render the report, unless nothing could be analyzed
4. Post it as a new comment on the PR

Handlers are registered explicitly in an `EventDispatcher` built once at
startup by `build_handler_table`.
"""

from __future__ import annotations

import inspect
import logging
from functools import partial
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from prhawk.analysis.models import RunOutcome
from prhawk.analysis.oracle import ComplexityOracle
from prhawk.analysis.pipeline import analyze_files
from prhawk.config import ProjectConfig
from prhawk.github.client import GitHubClient
from prhawk.github.renderer import analyzed_results, render_complexity_comment

logger = logging.getLogger(__name__)

PULL_REQUEST_EVENT = "pull_request"

EventHandler = Callable[[dict[str, Any]], Awaitable[RunOutcome] | RunOutcome]


class GitRef(BaseModel):
    sha: str
    ref: str = ""


class PullRequest(BaseModel):
    number: int
    base: GitRef
    head: GitRef


class Repository(BaseModel):
    full_name: str


class PullRequestEvent(BaseModel):
    """The parts of a pull_request webhook payload the bot reads."""

    action: str
    repository: Repository
    pull_request: PullRequest

    @property
    def kind(self) -> str:
        return f"{PULL_REQUEST_EVENT}.{self.action}"


class PullRequestCoordinator:
    """Runs the compare → analyze → render → post sequence for one event."""

    def __init__(
        self,
        github: GitHubClient,
        oracle: ComplexityOracle,
        config: ProjectConfig | None = None,
    ) -> None:
        self.github = github
        self.oracle = oracle
        self.config = config or ProjectConfig()

    async def handle(self, event: PullRequestEvent) -> RunOutcome:
        """Handle one triggering event.

        Raises:
            FetchError: If the comparison or any file revision cannot be fetched.
            OracleError: If a supported file cannot be scored.
            CommentError: If the report cannot be posted.
        """
        repo = event.repository.full_name
        pr = event.pull_request
        outcome = RunOutcome(event=event.kind, repository=repo, pull_number=pr.number)

        changed = await self.github.compare_commits(repo, pr.base.sha, pr.head.sha)
        outcome.files_changed = len(changed)

        results = await analyze_files(
            changed,
            base_ref=pr.base.sha,
            head_ref=pr.head.sha,
            fetch_content=partial(self.github.get_content, repo),
            oracle=self.oracle,
            fetch_unsupported=self.config.analysis.fetch_unsupported,
        )

        analyzed = analyzed_results(results)
        outcome.files_analyzed = len(analyzed)
        if not analyzed:
            logger.info(
                "%s on %s#%d: no analyzable files among %d, not commenting",
                event.kind, repo, pr.number, len(changed),
            )
            return outcome

        comment = render_complexity_comment(analyzed, title=self.config.bot.comment_title)
        outcome.comment_id = await self.github.create_comment(repo, pr.number, comment)
        outcome.posted = True
        logger.info(
            "%s on %s#%d: posted report for %d of %d files",
            event.kind, repo, pr.number, len(analyzed), len(changed),
        )
        return outcome

    async def handle_payload(self, payload: dict[str, Any]) -> RunOutcome:
        return await self.handle(PullRequestEvent.model_validate(payload))


class EventDispatcher:
    """Explicit table of event kind → handler.

    Event kinds are "<X-GitHub-Event>.<action>", e.g. "pull_request.opened".
    """

    def __init__(self) -> None:
        self._handlers: dict[str, EventHandler] = {}

    def register(self, kind: str, handler: EventHandler) -> None:
        self._handlers[kind] = handler

    def get(self, kind: str) -> EventHandler | None:
        return self._handlers.get(kind)

    def list_events(self) -> list[str]:
        return list(self._handlers.keys())

    async def dispatch(self, kind: str, payload: dict[str, Any]) -> RunOutcome | None:
        """Run the handler for `kind`. Returns None if no handler is registered."""
        handler = self._handlers.get(kind)
        if handler is None:
            logger.debug("Ignoring event %s", kind)
            return None

        logger.info("Handling %s", kind)
        result = handler(payload)
        if inspect.isawaitable(result):
            result = await result
        return result


def build_handler_table(
    coordinator: PullRequestCoordinator,
    config: ProjectConfig | None = None,
) -> EventDispatcher:
    """Register the coordinator for every triggering pull request action."""
    config = config or coordinator.config
    dispatcher = EventDispatcher()
    for action in config.bot.trigger_actions:
        dispatcher.register(f"{PULL_REQUEST_EVENT}.{action}", coordinator.handle_payload)
    return dispatcher

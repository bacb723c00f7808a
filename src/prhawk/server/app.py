"""FastAPI webhook receiver for PRHawk.

GitHub delivers pull request events to `POST /webhook`. The event kind is
built from the `X-GitHub-Event` header and the payload's `action`, and handed
to the dispatcher constructed at startup.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Header, HTTPException, Request
from pydantic import BaseModel, ValidationError

from prhawk import __version__
from prhawk.analysis.models import RunOutcome
from prhawk.analysis.oracle import create_oracle
from prhawk.config import ProjectConfig
from prhawk.exceptions import PRHawkError
from prhawk.github.client import GitHubClient
from prhawk.github.events import EventDispatcher, PullRequestCoordinator, build_handler_table

logger = logging.getLogger(__name__)


class WebhookResponse(BaseModel):
    """Response to a webhook delivery."""

    event: str
    handled: bool
    outcome: RunOutcome | None = None


class HealthResponse(BaseModel):
    status: str
    version: str
    events: list[str]


def create_app(
    config: ProjectConfig | None = None,
    dispatcher: EventDispatcher | None = None,
) -> FastAPI:
    """Create the webhook application.

    Args:
        config: Project configuration.
        dispatcher: Prebuilt handler table. When omitted, one is built at
            startup around a fresh GitHub client and oracle.

    Returns:
        Configured FastAPI application
    """
    config = config or ProjectConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        if app.state.dispatcher is not None:
            yield
            return

        logger.info("Starting PRHawk webhook server")
        github = GitHubClient(config.github)
        coordinator = PullRequestCoordinator(github, create_oracle(config.analysis), config)
        app.state.dispatcher = build_handler_table(coordinator, config)
        logger.info("Listening for: %s", ", ".join(app.state.dispatcher.list_events()))

        yield

        logger.info("Shutting down PRHawk webhook server")
        await github.aclose()

    app = FastAPI(
        title="PRHawk",
        description="Complexity deltas for pull requests",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.dispatcher = dispatcher

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        active: EventDispatcher | None = app.state.dispatcher
        return HealthResponse(
            status="ok",
            version=__version__,
            events=active.list_events() if active else [],
        )

    @app.post("/webhook", response_model=WebhookResponse)
    async def webhook(
        request: Request,
        x_github_event: str = Header(default=""),
    ) -> WebhookResponse:
        """Receive a GitHub webhook delivery and run the matching handler."""
        active: EventDispatcher | None = app.state.dispatcher
        if active is None:
            raise HTTPException(status_code=503, detail="Server is not ready")

        try:
            payload: dict[str, Any] = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Body is not valid JSON")
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Body must be a JSON object")

        kind = f"{x_github_event}.{payload.get('action', '')}"
        try:
            outcome = await active.dispatch(kind, payload)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=f"Malformed {kind} payload: {e}")
        except PRHawkError as e:
            logger.exception("Run for %s failed", kind)
            raise HTTPException(status_code=502, detail=str(e))

        return WebhookResponse(event=kind, handled=outcome is not None, outcome=outcome)

    return app

"""Command-line interface for PRHawk."""

from __future__ import annotations

import asyncio
import json
import os
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from prhawk import __version__
from prhawk.config import (
    ProjectConfig,
    find_project_root,
    load_config,
    save_config,
    set_config_value,
)
from prhawk.exceptions import ConfigError, PRHawkError
from prhawk.ui.console import Console, setup_logging

console = Console()


def _get_project_root(path: str | None = None) -> Path:
    """Resolve the directory whose .prhawk/config.json applies."""
    if path:
        root = Path(path).resolve()
        if not root.exists():
            console.error(f"Path does not exist: {path}")
            sys.exit(1)
        return root
    return find_project_root() or Path.cwd()


def _load_config(root: Path) -> ProjectConfig:
    try:
        return load_config(root)
    except ConfigError as e:
        console.error(str(e))
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="prhawk")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """PRHawk - complexity deltas for every pull request."""
    setup_logging(verbose)


# =========================================================================
# Webhook Server
# =========================================================================

@main.command()
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--host", default=None, help="Interface to bind (default from config).")
@click.option("--port", default=None, type=int, help="Port to bind (default from config).")
def serve(path: str | None, host: str | None, port: int | None):
    """Start the webhook server.

    Point a GitHub App or repository webhook at:

        http://<host>:<port>/webhook

    with the "Pull requests" event enabled.
    """
    import uvicorn

    from prhawk.server.app import create_app

    root = _get_project_root(path)
    config = _load_config(root)
    if not config.github.token:
        console.warning(f"${config.github.token_env} is not set, comments cannot be posted")

    app = create_app(config)
    uvicorn.run(
        app,
        host=host or config.server.host,
        port=port or config.server.port,
        log_config=None,
    )


# =========================================================================
# GitHub Action
# =========================================================================

@main.command("handle-event")
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option(
    "--event-path",
    default=None,
    help="Webhook payload file (default: $GITHUB_EVENT_PATH).",
)
@click.option(
    "--event-name",
    default=None,
    help="Webhook event name (default: $GITHUB_EVENT_NAME).",
)
def handle_event(path: str | None, event_path: str | None, event_name: str | None):
    """Handle one webhook event, as delivered to a GitHub Action.

    Usage in CI:

        prhawk handle-event
    """
    root = _get_project_root(path)
    config = _load_config(root)

    event_path = event_path or os.environ.get("GITHUB_EVENT_PATH")
    event_name = event_name or os.environ.get("GITHUB_EVENT_NAME", "pull_request")
    if not event_path or not Path(event_path).exists():
        console.error("No event payload found. Pass --event-path or set GITHUB_EVENT_PATH.")
        sys.exit(1)

    payload = json.loads(Path(event_path).read_text())
    kind = f"{event_name}.{payload.get('action', '')}"

    try:
        outcome = asyncio.run(_dispatch_once(config, kind, payload))
    except ValidationError as e:
        console.error(f"Malformed {kind} payload: {e}")
        sys.exit(1)
    except PRHawkError as e:
        console.error(f"Analysis failed: {e}")
        sys.exit(1)

    if outcome is None:
        console.info(f"Event {kind} does not trigger an analysis")
        return
    console.show_outcome(outcome)


async def _dispatch_once(config: ProjectConfig, kind: str, payload: dict):
    from prhawk.analysis.oracle import create_oracle
    from prhawk.github.client import GitHubClient
    from prhawk.github.events import PullRequestCoordinator, build_handler_table

    async with GitHubClient(config.github) as github:
        coordinator = PullRequestCoordinator(github, create_oracle(config.analysis), config)
        dispatcher = build_handler_table(coordinator, config)
        return await dispatcher.dispatch(kind, payload)


# =========================================================================
# Manual Report
# =========================================================================

@main.command()
@click.argument("repo")
@click.argument("base")
@click.argument("head")
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--post", "pull_number", default=None, type=int,
              help="Post the report as a comment on this PR number.")
@click.option("--format", "output_format", type=click.Choice(["markdown", "table", "json"]),
              default="markdown", help="Output format.")
def report(
    repo: str,
    base: str,
    head: str,
    path: str | None,
    pull_number: int | None,
    output_format: str,
):
    """Compute the complexity report between two commits of REPO (owner/name).

    Local usage:

        prhawk report octo/app 1a2b3c4 5d6e7f8 --format table
    """
    root = _get_project_root(path)
    config = _load_config(root)

    try:
        results, comment, comment_id = asyncio.run(
            _run_report(config, repo, base, head, pull_number)
        )
    except PRHawkError as e:
        console.error(f"Analysis failed: {e}")
        sys.exit(1)

    if output_format == "json":
        click.echo(json.dumps([r.model_dump() for r in results], indent=2))
    elif output_format == "table":
        console.show_results(results)
    elif comment is None:
        console.warning("No analyzable files changed")
    else:
        click.echo(comment)

    if comment_id is not None:
        console.success(f"Posted report to {repo}#{pull_number}")


async def _run_report(
    config: ProjectConfig,
    repo: str,
    base: str,
    head: str,
    pull_number: int | None,
):
    from functools import partial

    from prhawk.analysis.oracle import create_oracle
    from prhawk.analysis.pipeline import analyze_files
    from prhawk.github.client import GitHubClient
    from prhawk.github.renderer import analyzed_results, render_complexity_comment

    async with GitHubClient(config.github) as github:
        changed = await github.compare_commits(repo, base, head)
        results = await analyze_files(
            changed,
            base_ref=base,
            head_ref=head,
            fetch_content=partial(github.get_content, repo),
            oracle=create_oracle(config.analysis),
            fetch_unsupported=config.analysis.fetch_unsupported,
        )

        if not analyzed_results(results):
            return results, None, None

        comment = render_complexity_comment(results, title=config.bot.comment_title)
        comment_id = None
        if pull_number is not None:
            comment_id = await github.create_comment(repo, pull_number, comment)
        return results, comment, comment_id


# =========================================================================
# Config Management
# =========================================================================

@main.command("config")
@click.argument("action", type=click.Choice(["set", "get", "show"]))
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.option("--path", "-p", default=None, help="Path to the project root.")
def config_cmd(action: str, key: str | None, value: str | None, path: str | None):
    """Manage PRHawk configuration."""
    root = _get_project_root(path)
    config = _load_config(root)

    if action == "show":
        console.console.print_json(json.dumps(config.model_dump(), indent=2))
    elif action == "get":
        if not key:
            console.error("Usage: prhawk config get <key>")
            sys.exit(1)
        data = config.model_dump()
        for part in key.split("."):
            if isinstance(data, dict) and part in data:
                data = data[part]
            else:
                console.error(f"Unknown key: {key}")
                sys.exit(1)
        console.console.print(f"{key} = {data}")
    elif action == "set":
        if not key or value is None:
            console.error("Usage: prhawk config set <key> <value>")
            sys.exit(1)
        try:
            # Try to parse as JSON for non-string values
            try:
                parsed_value = json.loads(value)
            except json.JSONDecodeError:
                parsed_value = value

            config = set_config_value(config, key, parsed_value)
            saved_to = save_config(root, config)
            console.success(f"Set {key} = {parsed_value} in {saved_to}")
        except KeyError:
            console.error(f"Unknown config key: {key}")
            sys.exit(1)
        except ConfigError as e:
            console.error(str(e))
            sys.exit(1)


if __name__ == "__main__":
    main()

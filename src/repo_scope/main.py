import asyncio
import json
from logging import Logger
from typing import Any, Literal

import click
import yaml
from fastmcp import FastMCP
from fastmcp.server.middleware.logging import LoggingMiddleware
from fastmcp.utilities.logging import get_logger

from repo_scope.clients.errors.github import ClientError
from repo_scope.models.analysis import RepositoryAnalysis
from repo_scope.servers.analysis import AnalysisServer
from repo_scope.servers.shared.errors import ServerError
from repo_scope.settings import PROVIDERS, Provider, Settings
from repo_scope.utilities.markdown import render_markdown

OutputFormat = Literal["json", "markdown", "yaml"]

logger: Logger = get_logger(name=__name__)

mcp: FastMCP[None] = FastMCP[None](name="RepoScope")

mcp.add_middleware(middleware=LoggingMiddleware(include_payloads=True, logger=logger))

analysis_server: AnalysisServer = AnalysisServer(logger=logger)
_ = analysis_server.register_tools(fastmcp=mcp)


def format_analysis(analysis: RepositoryAnalysis, output: OutputFormat) -> str:
    if output == "markdown":
        return render_markdown(analysis)

    data: dict[str, Any] = analysis.model_dump(mode="json")

    if output == "yaml":
        return yaml.safe_dump(data, sort_keys=False)

    return json.dumps(data, indent=2)


@click.group()
def cli():
    """Analyze public GitHub repositories with AI."""


@cli.command()
@click.option(
    "--mcp-transport",
    type=click.Choice(["stdio", "streamable-http"]),
    default="stdio",
    help="The transport to run the MCP server on",
)
def serve(mcp_transport: Literal["stdio", "streamable-http"]):
    mcp.run(transport=mcp_transport)


@cli.command()
@click.argument("url")
@click.option("--provider", type=click.Choice(PROVIDERS), default=None, help="The AI provider to use (defaults to DEFAULT_PROVIDER)")
@click.option("--api-key", default=None, help="The API key for the provider (defaults to the provider's environment variable)")
@click.option("--max-depth", type=click.IntRange(min=0), default=None, help="How many levels of the repository tree to list")
@click.option("--no-fallback", is_flag=True, default=False, help="Fail instead of using a heuristic analysis when the provider fails")
@click.option("--output", type=click.Choice(["json", "markdown", "yaml"]), default="json", help="The format to print the analysis in")
def analyze(url: str, provider: Provider | None, api_key: str | None, max_depth: int | None, no_fallback: bool, output: OutputFormat):
    settings: Settings = Settings.from_env()

    updates: dict[str, Any] = {}

    if max_depth is not None:
        updates["tree_max_depth"] = max_depth

    if no_fallback:
        updates["enable_fallback"] = False

    server = AnalysisServer(settings=settings.model_copy(update=updates), logger=logger)

    try:
        analysis: RepositoryAnalysis = asyncio.run(server.analyze_repository(url=url, provider=provider, api_key=api_key))
    except (ServerError, ClientError) as e:
        raise click.ClickException(str(e)) from e

    click.echo(format_analysis(analysis, output=output))


if __name__ == "__main__":
    cli()

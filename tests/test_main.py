from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from typing import Any

import pytest
import yaml
from click.testing import CliRunner
from fastmcp.client import Client
from fastmcp.client.transports import FastMCPTransport

from repo_scope.main import cli, format_analysis, mcp
from repo_scope.models.analysis import AIAnalysis, RepositoryAnalysis
from tests.test_markdown import sample_analysis


def test_main():
    assert mcp is not None


@pytest.fixture
async def main_mcp_client() -> AsyncGenerator[Client[FastMCPTransport], Any]:
    async with Client[FastMCPTransport](transport=mcp) as mcp_client:
        yield mcp_client


async def test_list_tools(main_mcp_client: Client[FastMCPTransport]):
    list_tools = await main_mcp_client.list_tools()

    assert [tool.name for tool in list_tools] == ["analyze_repository"]


def test_cli_help():
    result = CliRunner().invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "analyze" in result.output
    assert "serve" in result.output


def test_cli_analyze_invalid_url():
    result = CliRunner().invoke(cli, ["analyze", "https://example.com/octo-org/octo-app"])

    assert result.exit_code == 1
    assert "Invalid GitHub URL format. Please use: https://github.com/owner/repo" in result.output


def test_format_analysis():
    analysis: RepositoryAnalysis = sample_analysis(
        AIAnalysis(overview="Overview.", purpose="Purpose.", architecture="Architecture."),
        analyzed_at=datetime(2025, 6, 1, tzinfo=UTC),
    )

    assert yaml.safe_load(format_analysis(analysis, output="yaml"))["aiAnalysis"]["overview"] == "Overview."
    assert '"fullName": "octo-org/octo-app"' in format_analysis(analysis, output="json")
    assert format_analysis(analysis, output="markdown").startswith("# octo-org/octo-app\n")

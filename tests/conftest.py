"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Add tests to path for web_mock imports
tests_path = Path(__file__).parent
sys.path.insert(0, str(tests_path))

from sourcecontrol.models import SourceControlSpec  # noqa: E402
from web_mock import MockWebSiteManagementClient  # noqa: E402

RESOURCE_GROUP = "rg-web"
APP_NAME = "frontend-app"


@pytest.fixture
def web_client() -> MockWebSiteManagementClient:
    """Mock management client with one existing web app."""
    client = MockWebSiteManagementClient()
    client.web_apps.add_app(RESOURCE_GROUP, APP_NAME)
    return client


@pytest.fixture
def spec() -> SourceControlSpec:
    return SourceControlSpec(
        resource_group_name=RESOURCE_GROUP,
        app_service_name=APP_NAME,
        repo_url="https://github.com/example/frontend.git",
        branch="main",
    )

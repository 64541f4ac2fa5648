"""Azure App Service API mock for testing.

In-memory stand-in for ``WebSiteManagementClient.web_apps`` covering the
source-control operations, so lifecycle code runs without Azure.

Key Features:
- In-memory bindings keyed by (resource group, app), case-insensitive
- Long-running create pollers that can block, fail, or succeed
- Call recording for "no network call was made" assertions
- Error injection per operation

Usage:
    from web_mock import MockWebSiteManagementClient

    client = MockWebSiteManagementClient()
    client.web_apps.add_app("rg-web", "frontend")
    state = await create_source_control(client, ctx, spec)
    assert client.web_apps.call_names == ["begin_create_or_update_source_control", ...]
"""

from .operations import MockPoller, MockWebAppsOperations, MockWebSiteManagementClient

__all__ = [
    "MockPoller",
    "MockWebAppsOperations",
    "MockWebSiteManagementClient",
]

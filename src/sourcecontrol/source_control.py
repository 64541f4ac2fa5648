"""Lifecycle operations for an App Service source-control binding.

Each operation is a near-direct translation of declared configuration into
one Azure management call:

- create: begin_create_or_update_source_control, wait for the LRO, then
  read back to capture the server-assigned id
- read: get_source_control, merged leniently into local state
- update: delete followed by create (there is no in-place update)
- delete: delete_source_control, no wait-for-gone check

The management client and the execution context are passed explicitly to
every call. No retries happen here; the caller owns retry policy.

DRIFT RISK: update is not transactional. If the delete succeeds and the
create fails, the remote binding is gone while the caller's state still
describes it. A subsequent read raises SourceControlNotFoundError.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from azure.core.exceptions import AzureError, ResourceNotFoundError

from .context import OperationContext
from .errors import SourceControlError, SourceControlNotFoundError, SourceControlReadError
from .models import SourceControlSpec, SourceControlState
from .resource_id import parse_source_control_id

logger = logging.getLogger(__name__)


async def _call(func: Any, /, **kwargs: Any) -> Any:
    """Run a blocking SDK call in the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lambda: func(**kwargs))


async def create_source_control(
    client: Any,
    ctx: OperationContext,
    spec: SourceControlSpec,
) -> SourceControlState:
    """Bind a web app to a repository and branch.

    Args:
        client: WebSiteManagementClient (or anything exposing ``web_apps``).
        ctx: Execution context; cancelling it aborts the LRO wait.
        spec: Validated declaration.

    Returns:
        State whose ``id`` is the server-assigned binding id.

    Raises:
        AzureError: From the create call, the LRO, or the follow-up read,
            unmodified.
        OperationCancelledError: If ``ctx`` is cancelled during the wait.
        OperationTimeoutError: If the ``ctx`` deadline passes during the wait.
    """
    operation = "Create source control"
    ctx.raise_if_cancelled(operation)

    logger.info(
        "Preparing source control creation",
        extra={
            "resource_group": spec.resource_group_name,
            "app_service": spec.app_service_name,
            "branch": spec.branch,
        },
    )

    poller = await _call(
        client.web_apps.begin_create_or_update_source_control,
        resource_group_name=spec.resource_group_name,
        name=spec.app_service_name,
        site_source_control=spec.to_site_source_control(),
    )
    await ctx.wait_for_poller(poller, operation)

    ctx.raise_if_cancelled(operation)
    read = await _call(
        client.web_apps.get_source_control,
        resource_group_name=spec.resource_group_name,
        name=spec.app_service_name,
    )
    if not read.id:
        raise SourceControlError(
            f"Source control for web app {spec.app_service_name!r} in resource group "
            f"{spec.resource_group_name!r} was created but has no id"
        )

    logger.info(
        "Source control created",
        extra={"resource_id": read.id, "app_service": spec.app_service_name},
    )
    return SourceControlState.from_spec(spec, remote_id=read.id)


async def read_source_control(
    client: Any,
    ctx: OperationContext,
    state: SourceControlState,
) -> SourceControlState:
    """Refresh local state from the remote binding.

    Fields omitted from the response keep their local values.

    Raises:
        ResourceIdParseError: Before any network call, if ``state.id`` is
            malformed.
        SourceControlNotFoundError: If the binding or its app is gone.
        SourceControlReadError: For any other remote failure.
    """
    operation = "Read source control"
    site = parse_source_control_id(state.id or "")
    ctx.raise_if_cancelled(operation)

    try:
        remote = await _call(
            client.web_apps.get_source_control,
            resource_group_name=site.resource_group,
            name=site.app_name,
        )
    except ResourceNotFoundError as e:
        raise SourceControlNotFoundError(site.app_name, site.resource_group, e) from e
    except AzureError as e:
        raise SourceControlReadError(site.app_name, site.resource_group, e) from e

    return state.apply_remote(site.resource_group, site.app_name, remote)


async def delete_source_control(
    client: Any,
    ctx: OperationContext,
    state: SourceControlState,
) -> None:
    """Remove the remote binding.

    Success is the absence of an error from the delete call itself.

    Raises:
        ResourceIdParseError: Before any network call, if ``state.id`` is
            malformed.
        AzureError: From the delete call, unmodified.
    """
    operation = "Delete source control"
    site = parse_source_control_id(state.id or "")
    ctx.raise_if_cancelled(operation)

    logger.debug(
        f"Deleting source control on web app {site.app_name!r} "
        f"(resource group {site.resource_group!r})"
    )
    await _call(
        client.web_apps.delete_source_control,
        resource_group_name=site.resource_group,
        name=site.app_name,
    )
    logger.info(
        "Source control deleted",
        extra={"resource_id": state.id, "app_service": site.app_name},
    )


async def update_source_control(
    client: Any,
    ctx: OperationContext,
    state: SourceControlState,
    spec: SourceControlSpec,
) -> SourceControlState:
    """Replace the binding: delete the current one, then create from ``spec``.

    If the delete fails, create is never attempted.
    """
    await delete_source_control(client, ctx, state)
    try:
        return await create_source_control(client, ctx, spec)
    except (AzureError, SourceControlError):
        logger.warning(
            "Recreate failed after delete; remote binding no longer exists",
            extra={"resource_id": state.id, "app_service": spec.app_service_name},
        )
        raise


async def import_source_control(
    client: Any,
    ctx: OperationContext,
    remote_id: str,
) -> SourceControlState:
    """Adopt an existing binding given only its remote id."""
    return await read_source_control(client, ctx, SourceControlState(id=remote_id))

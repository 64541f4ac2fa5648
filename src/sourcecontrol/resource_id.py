"""ARM resource id parsing for source-control bindings.

A binding's remote id looks like::

    /subscriptions/{sub}/resourceGroups/{rg}/providers/Microsoft.Web/sites/{app}/sourcecontrols/web

Only the subscription, resource group and the segment keyed ``sites`` are
needed to address the binding again.
"""

from __future__ import annotations

from dataclasses import dataclass

from azure.mgmt.core.tools import parse_resource_id, resource_id

from .errors import ResourceIdParseError

SITES_SEGMENT = "sites"
WEB_NAMESPACE = "Microsoft.Web"
SOURCE_CONTROL_CHILD_TYPE = "sourcecontrols"
SOURCE_CONTROL_CHILD_NAME = "web"


@dataclass(frozen=True)
class SiteRef:
    """Address of a web app (and thus of its single binding)."""

    subscription_id: str
    resource_group: str
    app_name: str


def _path_segments(parts: dict[str, str]) -> dict[str, str]:
    """Collect ``type -> name`` pairs from a parsed id, keys lower-cased."""
    segments: dict[str, str] = {}
    if "type" in parts and "name" in parts:
        segments[parts["type"].lower()] = parts["name"]
    for index in range(1, (parts.get("last_child_num") or 0) + 1):
        child_type = parts.get(f"child_type_{index}")
        child_name = parts.get(f"child_name_{index}")
        if child_type and child_name:
            segments[child_type.lower()] = child_name
    return segments


def parse_source_control_id(remote_id: str) -> SiteRef:
    """Decompose a persisted binding id into its web app address.

    Raises:
        ResourceIdParseError: If the id is empty, lacks a subscription or
            resource group, or has no ``sites`` segment.
    """
    if not remote_id or not remote_id.startswith("/"):
        raise ResourceIdParseError(remote_id, "expected an absolute ARM resource id")

    parts = parse_resource_id(remote_id)

    subscription = parts.get("subscription")
    if not subscription:
        raise ResourceIdParseError(remote_id, "missing 'subscriptions' segment")

    resource_group = parts.get("resource_group")
    if not resource_group:
        raise ResourceIdParseError(remote_id, "missing 'resourceGroups' segment")

    app_name = _path_segments(parts).get(SITES_SEGMENT)
    if not app_name:
        raise ResourceIdParseError(remote_id, f"missing '{SITES_SEGMENT}' segment")

    return SiteRef(subscription_id=subscription, resource_group=resource_group, app_name=app_name)


def source_control_id(subscription_id: str, resource_group: str, app_name: str) -> str:
    """Format the canonical id of a web app's source-control binding."""
    return resource_id(
        subscription=subscription_id,
        resource_group=resource_group,
        namespace=WEB_NAMESPACE,
        type=SITES_SEGMENT,
        name=app_name,
        child_type_1=SOURCE_CONTROL_CHILD_TYPE,
        child_name_1=SOURCE_CONTROL_CHILD_NAME,
    )

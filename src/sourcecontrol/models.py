"""Pydantic models for source-control binding declarations and state.

These models provide:
1. Type-safe parsing of declared configuration (YAML or CLI)
2. Validation at the boundary, before any Azure API call
3. Clean transformation to the Azure SDK ``SiteSourceControl`` descriptor
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, fields, replace
from typing import Annotated, Any

from azure.mgmt.web.models import SiteSourceControl
from pydantic import BaseModel, Field, field_validator

DEFAULT_BRANCH = "master"

# App Service and resource group naming rules
VALID_APP_SERVICE_NAME_PATTERN = r"^[0-9a-zA-Z-]{1,60}$"
VALID_RESOURCE_GROUP_NAME_PATTERN = r"^[-\w._()]{1,90}$"

# Changing any of these forces the binding to be destroyed and recreated
FORCE_NEW_FIELDS: tuple[str, ...] = ("resource_group_name", "app_service_name")


class SourceControlSpec(BaseModel):
    """Declared source-control binding for a single web app."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    resource_group_name: str = Field(alias="resourceGroupName")
    app_service_name: str = Field(alias="appServiceName")
    repo_url: Annotated[str, Field(min_length=1, alias="repoUrl")]
    branch: Annotated[str, Field(min_length=1)] = DEFAULT_BRANCH

    use_manual_integration: bool = Field(False, alias="isManualIntegration")
    rollback_enabled: bool = Field(False, alias="deploymentRollbackEnabled")
    use_mercurial: bool = Field(False, alias="isMercurial")

    @field_validator("resource_group_name")
    @classmethod
    def validate_resource_group_name(cls, v: str) -> str:
        if not re.match(VALID_RESOURCE_GROUP_NAME_PATTERN, v):
            raise ValueError(
                "resource group name may only contain letters, digits, '-', '_', '.', "
                "'(' and ')' and must be 1-90 characters"
            )
        if v.endswith("."):
            raise ValueError("resource group name cannot end with a period")
        return v

    @field_validator("app_service_name")
    @classmethod
    def validate_app_service_name(cls, v: str) -> str:
        if not re.match(VALID_APP_SERVICE_NAME_PATTERN, v):
            raise ValueError(
                "app service name may only contain letters, digits and hyphens "
                "and must be 1-60 characters"
            )
        return v

    def to_site_source_control(self) -> SiteSourceControl:
        """Build the Azure SDK descriptor submitted on create."""
        return SiteSourceControl(
            repo_url=self.repo_url,
            branch=self.branch,
            is_manual_integration=self.use_manual_integration,
            deployment_rollback_enabled=self.rollback_enabled,
            is_mercurial=self.use_mercurial,
        )


# Remote descriptor attribute -> local state field
_REMOTE_FIELD_MAP: dict[str, str] = {
    "repo_url": "repo_url",
    "branch": "branch",
    "is_manual_integration": "use_manual_integration",
    "deployment_rollback_enabled": "rollback_enabled",
    "is_mercurial": "use_mercurial",
}


@dataclass(frozen=True)
class SourceControlState:
    """Local shadow copy of a remote binding.

    ``None`` means "not known locally". ``id`` is set if and only if a
    create (or import) has completed.
    """

    id: str | None = None
    resource_group_name: str | None = None
    app_service_name: str | None = None
    repo_url: str | None = None
    branch: str | None = None
    use_manual_integration: bool | None = None
    rollback_enabled: bool | None = None
    use_mercurial: bool | None = None

    @property
    def is_bound(self) -> bool:
        return self.id is not None

    @classmethod
    def from_spec(cls, spec: SourceControlSpec, remote_id: str | None = None) -> SourceControlState:
        return cls(
            id=remote_id,
            resource_group_name=spec.resource_group_name,
            app_service_name=spec.app_service_name,
            repo_url=spec.repo_url,
            branch=spec.branch,
            use_manual_integration=spec.use_manual_integration,
            rollback_enabled=spec.rollback_enabled,
            use_mercurial=spec.use_mercurial,
        )

    def apply_remote(
        self,
        resource_group_name: str,
        app_service_name: str,
        remote: SiteSourceControl,
    ) -> SourceControlState:
        """Merge a remote read into this state.

        Identifiers are always overwritten. Descriptor attributes the
        response omits (``None`` on the SDK model) keep their local value;
        present values, including empty strings and ``False``, win.
        """
        updates: dict[str, Any] = {
            "resource_group_name": resource_group_name,
            "app_service_name": app_service_name,
        }
        for remote_attr, local_field in _REMOTE_FIELD_MAP.items():
            value = getattr(remote, remote_attr, None)
            if value is not None:
                updates[local_field] = value
        return replace(self, **updates)

    def differs_from(self, spec: SourceControlSpec) -> list[str]:
        """Return the names of declared fields that differ from this state."""
        desired = SourceControlState.from_spec(spec, remote_id=self.id)
        return [f.name for f in fields(self) if getattr(self, f.name) != getattr(desired, f.name)]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SourceControlState:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


def replacement_fields(state: SourceControlState, spec: SourceControlSpec) -> list[str]:
    """Return the immutable fields whose change forces recreation."""
    return [name for name in state.differs_from(spec) if name in FORCE_NEW_FIELDS]

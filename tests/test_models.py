"""Tests for source-control declaration and state models."""

from __future__ import annotations

import pytest
from azure.mgmt.web.models import SiteSourceControl
from pydantic import ValidationError

from sourcecontrol.models import (
    DEFAULT_BRANCH,
    SourceControlSpec,
    SourceControlState,
    replacement_fields,
)

BINDING_ID = (
    "/subscriptions/00000000-0000-0000-0000-000000000001/resourceGroups/rg-web"
    "/providers/Microsoft.Web/sites/frontend-app/sourcecontrols/web"
)


class TestSourceControlSpec:
    """Tests for SourceControlSpec model."""

    def test_valid_spec_from_aliases(self) -> None:
        """Test camelCase declaration keys are accepted."""
        spec = SourceControlSpec.model_validate(
            {
                "resourceGroupName": "rg-web",
                "appServiceName": "frontend-app",
                "repoUrl": "https://github.com/example/frontend.git",
                "branch": "develop",
            }
        )
        assert spec.resource_group_name == "rg-web"
        assert spec.app_service_name == "frontend-app"
        assert spec.branch == "develop"

    def test_branch_defaults_to_master(self) -> None:
        """Test that an omitted branch becomes 'master'."""
        spec = SourceControlSpec(
            resource_group_name="rg-web",
            app_service_name="frontend-app",
            repo_url="https://example.com/r.git",
        )
        assert spec.branch == DEFAULT_BRANCH == "master"

    def test_default_flags(self) -> None:
        spec = SourceControlSpec(
            resource_group_name="rg", app_service_name="app", repo_url="https://example.com/r.git"
        )
        assert spec.use_manual_integration is False
        assert spec.rollback_enabled is False
        assert spec.use_mercurial is False

    def test_unknown_fields_ignored(self) -> None:
        spec = SourceControlSpec.model_validate(
            {
                "resourceGroupName": "rg",
                "appServiceName": "app",
                "repoUrl": "https://example.com/r.git",
                "somethingElse": 1,
            }
        )
        assert not hasattr(spec, "somethingElse")

    @pytest.mark.parametrize(
        "app_name",
        ["", "has_underscore", "has space", "a" * 61, "dots.not.allowed"],
    )
    def test_invalid_app_service_name(self, app_name: str) -> None:
        """Test app service naming rules are enforced."""
        with pytest.raises(ValidationError) as exc_info:
            SourceControlSpec(
                resource_group_name="rg",
                app_service_name=app_name,
                repo_url="https://example.com/r.git",
            )
        assert "app_service_name" in str(exc_info.value) or "appServiceName" in str(
            exc_info.value
        )

    def test_max_length_app_service_name(self) -> None:
        spec = SourceControlSpec(
            resource_group_name="rg", app_service_name="a" * 60, repo_url="https://x/r.git"
        )
        assert len(spec.app_service_name) == 60

    @pytest.mark.parametrize("group", ["", "ends-with-period.", "bad/slash", "r" * 91])
    def test_invalid_resource_group_name(self, group: str) -> None:
        with pytest.raises(ValidationError):
            SourceControlSpec(
                resource_group_name=group,
                app_service_name="app",
                repo_url="https://example.com/r.git",
            )

    def test_resource_group_name_allows_parentheses(self) -> None:
        spec = SourceControlSpec(
            resource_group_name="rg_web.(prod)",
            app_service_name="app",
            repo_url="https://example.com/r.git",
        )
        assert spec.resource_group_name == "rg_web.(prod)"

    def test_empty_repo_url_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SourceControlSpec(resource_group_name="rg", app_service_name="app", repo_url="")

    def test_missing_repo_url_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            SourceControlSpec.model_validate({"resourceGroupName": "rg", "appServiceName": "app"})
        assert "repoUrl" in str(exc_info.value)

    def test_to_site_source_control(self, spec: SourceControlSpec) -> None:
        """Test conversion to the SDK descriptor."""
        descriptor = spec.to_site_source_control()

        assert isinstance(descriptor, SiteSourceControl)
        assert descriptor.repo_url == "https://github.com/example/frontend.git"
        assert descriptor.branch == "main"
        assert descriptor.is_manual_integration is False
        assert descriptor.deployment_rollback_enabled is False
        assert descriptor.is_mercurial is False


class TestSourceControlState:
    """Tests for SourceControlState."""

    def test_absent_state_is_not_bound(self) -> None:
        assert SourceControlState().is_bound is False

    def test_from_spec(self, spec: SourceControlSpec) -> None:
        state = SourceControlState.from_spec(spec, remote_id=BINDING_ID)

        assert state.is_bound is True
        assert state.id == BINDING_ID
        assert state.repo_url == spec.repo_url
        assert state.branch == "main"

    def test_apply_remote_overwrites_present_fields(self, spec: SourceControlSpec) -> None:
        state = SourceControlState.from_spec(spec, remote_id=BINDING_ID)
        remote = SiteSourceControl(repo_url="https://example.com/other.git", branch="dev")

        merged = state.apply_remote("rg-web", "frontend-app", remote)

        assert merged.repo_url == "https://example.com/other.git"
        assert merged.branch == "dev"
        assert merged.id == BINDING_ID

    def test_apply_remote_keeps_absent_fields(self, spec: SourceControlSpec) -> None:
        """Test that fields omitted from the response leave local values untouched."""
        state = SourceControlState.from_spec(spec, remote_id=BINDING_ID)

        merged = state.apply_remote("rg-web", "frontend-app", SiteSourceControl())

        assert merged == state

    def test_apply_remote_empty_string_is_present(self, spec: SourceControlSpec) -> None:
        """Test an empty string from the service is a value, not an absence."""
        state = SourceControlState.from_spec(spec, remote_id=BINDING_ID)

        merged = state.apply_remote("rg-web", "frontend-app", SiteSourceControl(branch=""))

        assert merged.branch == ""
        assert merged.repo_url == spec.repo_url

    def test_apply_remote_overwrites_identifiers(self) -> None:
        state = SourceControlState(id=BINDING_ID)

        merged = state.apply_remote("rg-web", "frontend-app", SiteSourceControl())

        assert merged.resource_group_name == "rg-web"
        assert merged.app_service_name == "frontend-app"
        assert merged.repo_url is None

    def test_differs_from(self, spec: SourceControlSpec) -> None:
        state = SourceControlState.from_spec(spec, remote_id=BINDING_ID)
        changed = spec.model_copy(update={"branch": "release"})

        assert state.differs_from(spec) == []
        assert state.differs_from(changed) == ["branch"]

    def test_replacement_fields(self, spec: SourceControlSpec) -> None:
        state = SourceControlState.from_spec(spec, remote_id=BINDING_ID)
        moved = spec.model_copy(update={"app_service_name": "other-app", "branch": "dev"})

        assert replacement_fields(state, moved) == ["app_service_name"]
        assert replacement_fields(state, spec) == []

    def test_dict_round_trip_ignores_unknown_keys(self, spec: SourceControlSpec) -> None:
        state = SourceControlState.from_spec(spec, remote_id=BINDING_ID)
        data = state.to_dict()
        data["legacy_field"] = "x"

        assert SourceControlState.from_dict(data) == state

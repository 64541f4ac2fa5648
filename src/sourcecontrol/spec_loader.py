"""Declaration file loading with validation.

SECURITY: File size is checked before reading. Validation happens at the
boundary so malformed declarations never reach the Azure API.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from .config import MAX_SPEC_FILE_SIZE_BYTES
from .models import SourceControlSpec

logger = logging.getLogger(__name__)

EXPECTED_KIND = "WebSourceControl"


class SpecLoadError(Exception):
    """Raised when a declaration cannot be loaded or fails validation."""

    pass


def load_spec(spec_path: Path) -> tuple[str, SourceControlSpec]:
    """Load and validate a source-control declaration from YAML.

    Both flat files and Kubernetes-style wrappers are accepted::

        apiVersion: wsc/v1
        kind: WebSourceControl
        metadata:
          name: frontend
        spec:
          resourceGroupName: rg-web
          appServiceName: frontend-app
          repoUrl: https://github.com/example/frontend.git

    Args:
        spec_path: Path to the YAML file.

    Returns:
        Tuple of (binding name, validated spec). The name is
        ``metadata.name`` when present, otherwise the file stem.

    Raises:
        SpecLoadError: If the file cannot be read, parsed, or validated.
    """
    if not spec_path.exists():
        raise SpecLoadError(f"Spec file not found: {spec_path}")

    try:
        file_size = spec_path.stat().st_size
    except OSError as e:
        raise SpecLoadError(f"Failed to stat spec file {spec_path}: {e}") from e

    if file_size > MAX_SPEC_FILE_SIZE_BYTES:
        raise SpecLoadError(
            f"Spec file exceeds maximum size of {MAX_SPEC_FILE_SIZE_BYTES} bytes: {spec_path}"
        )

    try:
        raw_data = yaml.safe_load(spec_path.read_text(encoding="utf-8"))
    except OSError as e:
        raise SpecLoadError(f"Failed to read spec file {spec_path}: {e}") from e
    except yaml.YAMLError as e:
        raise SpecLoadError(f"Invalid YAML in {spec_path}: {e}") from e

    if not isinstance(raw_data, dict):
        raise SpecLoadError(f"Spec file must contain a YAML mapping: {spec_path}")

    name = spec_path.stem
    if "apiVersion" in raw_data and "spec" in raw_data:
        kind = raw_data.get("kind")
        if kind is not None and kind != EXPECTED_KIND:
            raise SpecLoadError(f"Unsupported kind {kind!r} in {spec_path}, expected {EXPECTED_KIND}")

        metadata = raw_data.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise SpecLoadError(f"Metadata section must be a mapping: {spec_path}")
        name = str(metadata.get("name") or name)

        spec_data = raw_data.get("spec")
        if not isinstance(spec_data, dict):
            raise SpecLoadError(f"Spec section must be a mapping: {spec_path}")
    else:
        spec_data = raw_data

    try:
        spec = SourceControlSpec.model_validate(spec_data)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"  - {loc}: {error['msg']}")
        error_list = "\n".join(errors)
        raise SpecLoadError(f"Validation failed for {spec_path}:\n{error_list}") from e

    logger.info("Loaded source control spec '%s' from %s", name, spec_path)
    return name, spec

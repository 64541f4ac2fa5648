"""Authenticated Azure App Service management client.

Authentication is secretless: only managed identity credentials are used,
and startup is refused when password or secret credentials are present in
the environment.
"""

from __future__ import annotations

import logging
import os

from azure.identity import ManagedIdentityCredential
from azure.mgmt.web import WebSiteManagementClient

from .config import Config

logger = logging.getLogger(__name__)

# Environment variables that indicate secret-based authentication
FORBIDDEN_CREDENTIAL_ENV_VARS: tuple[str, ...] = (
    "AZURE_CLIENT_SECRET",
    "AZURE_CLIENT_CERTIFICATE_PATH",
    "AZURE_CLIENT_CERTIFICATE_PASSWORD",
    "AZURE_USERNAME",
    "AZURE_PASSWORD",
)


class SecretlessViolationError(Exception):
    """Raised when credential secrets are found in the environment."""

    pass


def enforce_secretless_architecture() -> None:
    """Refuse to authenticate if any credential secret is set.

    Raises:
        SecretlessViolationError: If a forbidden env var is non-empty.
    """
    for env_var in FORBIDDEN_CREDENTIAL_ENV_VARS:
        if os.environ.get(env_var):
            logger.critical(
                "Secretless architecture violation",
                extra={"security_event": "credential_detected", "env_var": env_var},
            )
            raise SecretlessViolationError(
                f"Credential environment variable {env_var} is set. Only managed "
                f"identity authentication is allowed; unset {env_var} and assign a "
                f"managed identity instead."
            )


def get_managed_identity_credential(client_id: str | None = None) -> ManagedIdentityCredential:
    """Build a managed identity credential after the secretless check."""
    enforce_secretless_architecture()

    if client_id:
        logger.info(
            "Using user-assigned managed identity",
            extra={"client_id": client_id[:8] + "..." if len(client_id) > 8 else client_id},
        )
        return ManagedIdentityCredential(client_id=client_id)

    logger.info("Using system-assigned managed identity")
    return ManagedIdentityCredential()


def create_web_client(config: Config) -> WebSiteManagementClient:
    """Create the management client shared by all lifecycle operations."""
    credential = get_managed_identity_credential(config.client_id)
    return WebSiteManagementClient(credential=credential, subscription_id=config.subscription_id)

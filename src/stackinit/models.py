"""Shared domain models for stackinit."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .constants import (
    DEFAULT_AUTH_TIMEOUT,
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_DEPLOY_TIMEOUT,
    DEFAULT_LOCATION,
    DEFAULT_NAME_CAP,
    TEMPLATE_NAME,
)


@dataclass(frozen=True)
class BootstrapSettings:
    """Explicit run configuration handed to the orchestrator."""

    verbose: bool = False
    location: str = DEFAULT_LOCATION
    name_cap: int = DEFAULT_NAME_CAP
    name_suffix_bytes: int = 0
    deploy_mode: str = "azd"
    auth_apply_mode: str = "deferred"
    auth_failure: str = "skip"
    pipeline_mode: str = "secrets"
    publish_repository: bool = True
    run_setup: bool = True
    template_name: str = TEMPLATE_NAME
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT
    auth_timeout: float = DEFAULT_AUTH_TIMEOUT
    deploy_timeout: float = DEFAULT_DEPLOY_TIMEOUT


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external process invocation."""

    args: Tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    payload: Any = None


@dataclass(frozen=True)
class SubstitutionRule:
    """Replace every match of ``search`` with ``replacement``."""

    search: str
    replacement: str
    regex: bool = False
    flags: int = 0


@dataclass(frozen=True)
class DatabaseSelection:
    kind: str
    connection_string: str
    shadow_connection_string: Optional[str] = None


@dataclass(frozen=True)
class AuthCredentials:
    provider: str
    client_id: str
    client_secret: str


@dataclass(frozen=True)
class ProvisioningResult:
    deployment_outputs: Mapping[str, Any]
    database_password: str
    subscription_id: str
    tenant_id: str


@dataclass(frozen=True)
class PromptSpec:
    """A single question for the prompt collaborator."""

    kind: str
    message: str
    choices: Sequence[str] = ()
    default: Any = None
    secret: bool = False


@dataclass
class ProvisioningContext:
    """Values threaded between bootstrap steps. Owned by the orchestrator."""

    root_directory: str
    app_name: str = ""
    location: str = DEFAULT_LOCATION
    subscription_id: Optional[str] = None
    tenant_id: Optional[str] = None
    resource_group: Optional[str] = None
    database_username: Optional[str] = None
    database_password: Optional[str] = None
    session_secret: Optional[str] = None
    deployment_outputs: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    auth_credentials: Optional[AuthCredentials] = None
    database: Optional[DatabaseSelection] = None
    passthrough: List[str] = field(default_factory=list)

    def record_deployment(self, result: ProvisioningResult):
        self.deployment_outputs = MappingProxyType(dict(result.deployment_outputs))
        self.database_password = result.database_password
        self.subscription_id = result.subscription_id
        self.tenant_id = result.tenant_id

    def summary(self) -> Dict[str, Any]:
        return {
            "app_name": self.app_name,
            "location": self.location,
            "subscription_id": self.subscription_id,
            "resource_group": self.resource_group,
            "database": self.database.kind if self.database else None,
            "identity_provider": self.auth_credentials.provider if self.auth_credentials else None,
        }

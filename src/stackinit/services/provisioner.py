"""Azure resource provisioning for the bootstrapped project."""

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from stackinit.constants import (
    BICEP_TEMPLATE_FILE,
    PARAMETERS_FILE,
    PLACEHOLDER_IMAGE,
    RESOLVED_PARAMETERS_FILE,
    SESSION_SECRET_BYTES,
)
from stackinit.errors import BootstrapError, MissingDeploymentOutput, NoSubscriptionFound
from stackinit.errors_catalog import actionable_error
from stackinit.models import AuthCredentials, BootstrapSettings, ProvisioningContext, ProvisioningResult
from stackinit.services import secret_generator


def resource_group_name(app_name: str) -> str:
    return f"rg-{app_name}"


def _env_var_name(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).upper()


def find_output(outputs: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """Look up ``key`` or its azd env-var spelling (``databaseHost`` -> ``DATABASE_HOST``)."""
    for candidate in (key, _env_var_name(key)):
        value = outputs.get(candidate)
        if value not in (None, ""):
            return value
    return default


def require_output(outputs: Mapping[str, Any], key: str) -> Any:
    value = find_output(outputs, key)
    if value is None:
        raise MissingDeploymentOutput(actionable_error("missing_output", key=key), key=key)
    return value


def extract_outputs(payload: Any) -> Dict[str, Any]:
    """Return the deployment outputs from an ``az``/``azd`` JSON payload.

    Accepts ``properties.outputs`` (``az deployment group create``), a top-level
    ``outputs`` mapping, or an already flat mapping (``azd env get-values``).
    ARM style ``{"type": ..., "value": ...}`` entries are unwrapped.
    """
    if not isinstance(payload, dict):
        return {}

    if "properties" in payload:
        properties = payload["properties"]
        raw_outputs = properties.get("outputs") if isinstance(properties, dict) else None
    elif "outputs" in payload:
        raw_outputs = payload["outputs"]
    else:
        raw_outputs = payload
    if not isinstance(raw_outputs, dict):
        return {}

    outputs: Dict[str, Any] = {}
    for key, value in raw_outputs.items():
        if isinstance(value, dict) and "value" in value and set(value) <= {"type", "value"}:
            value = value["value"]
        outputs[key] = value
    return outputs


class ResourceProvisioner:
    """Logs into Azure, resolves deployment parameters and deploys the stack."""

    def __init__(self, command_runner, settings: BootstrapSettings, logger, console):
        self.command_runner = command_runner
        self.settings = settings
        self.logger = logger
        self.console = console

    def login(self) -> Tuple[str, str]:
        self.console.print("[blue]Logging in to Azure...[/blue]")
        accounts = self.command_runner.run_json(
            ["az", "login", "--output", "json"],
            expect=list,
            interactive=True,
            timeout=self.settings.auth_timeout,
        )
        if not accounts:
            raise NoSubscriptionFound(actionable_error("no_subscription"))

        account = accounts[0]
        if not isinstance(account, dict) or not account.get("id") or not account.get("tenantId"):
            raise NoSubscriptionFound(actionable_error("no_subscription"))

        self.logger.debug("Azure login success: %s", account.get("name") or account["id"])
        return account["id"], account["tenantId"]

    def build_parameters(
        self,
        context: ProvisioningContext,
        database_password: str,
        session_secret: str,
        credentials: Optional[AuthCredentials] = None,
    ) -> Dict[str, str]:
        parameters = {
            "environmentName": context.app_name,
            "location": context.location,
            "webContainerAppName": context.app_name,
            "databaseUsername": context.database_username or context.app_name,
            "databasePassword": database_password,
            "sessionSecret": session_secret,
            "webImageName": PLACEHOLDER_IMAGE,
        }
        if credentials:
            parameters["googleClientId"] = credentials.client_id
            parameters["googleClientSecret"] = credentials.client_secret
        return parameters

    def write_parameters(self, root_directory: str, values: Mapping[str, str]) -> Path:
        source = Path(root_directory, PARAMETERS_FILE)
        try:
            document = json.loads(source.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise BootstrapError(f"Could not read parameters file {source}: {exc}") from exc

        if not isinstance(document, dict):
            raise BootstrapError(f"Parameters file {source} must contain a JSON object.")
        parameters = document.setdefault("parameters", {})
        if not isinstance(parameters, dict):
            raise BootstrapError(f"`parameters` in {source} must be a JSON object.")

        for name, value in values.items():
            entry = parameters.get(name)
            if not isinstance(entry, dict):
                entry = {}
                parameters[name] = entry
            entry["value"] = value

        if self.settings.deploy_mode == "group":
            target = Path(root_directory, RESOLVED_PARAMETERS_FILE)
        else:
            target = source
        try:
            target.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
        except OSError as exc:
            raise BootstrapError(f"Could not write parameters file {target}: {exc}") from exc

        self.logger.debug("Wrote deployment parameters to %s", target)
        return target

    def restore_parameters(self, root_directory: str, written: Path, pristine: bytes):
        """Put back the template parameters document, or delete the resolved copy."""
        source = Path(root_directory, PARAMETERS_FILE)
        try:
            if written == source:
                source.write_bytes(pristine)
            elif written.exists():
                written.unlink()
        except OSError as exc:
            message = f"Warning: Could not clean up {written}, it still holds deployment secrets: {exc}"
            self.console.print(f"[yellow]{message}[/yellow]")
            self.logger.warning(message)
            return
        self.logger.debug("Removed resolved deployment parameters from %s", written)

    def deploy(self, context: ProvisioningContext, parameters_path: Path) -> Dict[str, Any]:
        if self.settings.deploy_mode == "group":
            return self._deploy_resource_group(context, parameters_path)
        return self._deploy_azd_environment(context)

    def _deploy_azd_environment(self, context: ProvisioningContext) -> Dict[str, Any]:
        root = context.root_directory
        self.command_runner.run(
            [
                "azd",
                "env",
                "new",
                context.app_name,
                "--subscription",
                context.subscription_id,
                "--location",
                context.location,
                "--no-prompt",
            ],
            cwd=root,
            timeout=self.settings.command_timeout,
        )
        self.console.print("[blue]Provisioning Azure resources with azd...[/blue]")
        self.command_runner.run(
            ["azd", "provision", "--no-prompt"],
            interactive=True,
            cwd=root,
            timeout=self.settings.deploy_timeout,
        )
        values = self.command_runner.run_json(
            ["azd", "env", "get-values", "--output", "json"],
            cwd=root,
            timeout=self.settings.command_timeout,
        )
        return extract_outputs(values)

    def _deploy_resource_group(
        self,
        context: ProvisioningContext,
        parameters_path: Path,
    ) -> Dict[str, Any]:
        root = context.root_directory
        self.command_runner.run(
            [
                "az",
                "group",
                "create",
                "--name",
                context.resource_group,
                "--location",
                context.location,
                "--output",
                "json",
            ],
            timeout=self.settings.command_timeout,
        )
        with self.console.status("Deploying Azure resources (this can take a while)..."):
            deployment = self.command_runner.run_json(
                [
                    "az",
                    "deployment",
                    "group",
                    "create",
                    "--resource-group",
                    context.resource_group,
                    "--template-file",
                    os.path.join(root, BICEP_TEMPLATE_FILE),
                    "--parameters",
                    f"@{parameters_path}",
                    "--output",
                    "json",
                ],
                timeout=self.settings.deploy_timeout,
            )
        return extract_outputs(deployment)

    def provision(
        self,
        context: ProvisioningContext,
        credentials: Optional[AuthCredentials] = None,
    ) -> ProvisioningResult:
        subscription_id, tenant_id = self.login()
        context.subscription_id = subscription_id
        context.tenant_id = tenant_id
        context.resource_group = resource_group_name(context.app_name)
        context.database_username = context.app_name

        database_password = secret_generator.random_password()
        session_secret = secret_generator.random_hex(SESSION_SECRET_BYTES)

        source = Path(context.root_directory, PARAMETERS_FILE)
        try:
            pristine = source.read_bytes()
        except OSError as exc:
            raise BootstrapError(f"Could not read parameters file {source}: {exc}") from exc

        values = self.build_parameters(context, database_password, session_secret, credentials)
        parameters_path = self.write_parameters(context.root_directory, values)
        try:
            outputs = self.deploy(context, parameters_path)
        finally:
            self.restore_parameters(context.root_directory, parameters_path, pristine)
        self.logger.debug("Deployment outputs: %s", sorted(outputs))
        self.console.print("[green]Azure resources are provisioned.[/green]")

        return ProvisioningResult(
            deployment_outputs=outputs,
            database_password=database_password,
            subscription_id=subscription_id,
            tenant_id=tenant_id,
        )

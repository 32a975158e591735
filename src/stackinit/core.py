import logging
import os
import re
import subprocess
from typing import Any, List, Optional, Sequence

from rich.console import Console

from .constants import (
    AUTH_APPLY_MODES,
    AUTH_FAILURE_POLICIES,
    DEPLOY_MODES,
    PIPELINE_MODES,
    SESSION_SECRET_BYTES,
    TEMPLATE_ONLY_FILES,
    TEMPLATE_VCS_DIR,
    WORKFLOW_FILE,
)
from .errors import BootstrapError, MissingCredential
from .models import AuthCredentials, BootstrapSettings, ProvisioningContext
from .services import secret_generator
from .services.command_runner import CommandRunner
from .services.database import DEVCONTAINER, DatabaseSelector
from .services.filesystem import FileSystemService
from .services.identity import IdentityProviderConfigurator
from .services.journal import StepJournal
from .services.prompter import Prompter
from .services.provisioner import ResourceProvisioner, find_output, require_output
from .services.repository import RepositoryPublisher
from .services.template_rewriter import TemplateRewriter
from .services.toolchain import ToolchainService

console = Console()
logger = logging.getLogger("stackinit")


class StepSkipped(Exception):
    """An optional step gave up and the run continues without it."""


def normalize_app_name(directory_name: str, cap: int) -> str:
    """Lowercase ``directory_name``, drop hyphens and other non-alphanumerics, cap its length."""
    return re.sub(r"[^a-z0-9]", "", directory_name.lower())[:cap]


class StackBootstrapper:
    def __init__(
        self,
        root_directory: str,
        settings: Optional[BootstrapSettings] = None,
        passthrough: Optional[Sequence[str]] = None,
        command_runner=None,
        prompter=None,
        subprocess_module=subprocess,
    ):
        self.settings = settings or BootstrapSettings()
        self._validate_settings()

        self.root_directory = os.path.abspath(root_directory)
        if not os.path.isdir(self.root_directory):
            raise BootstrapError(f"Root directory not found: {root_directory}")

        self.context = ProvisioningContext(
            root_directory=self.root_directory,
            location=self.settings.location,
            passthrough=list(passthrough or []),
        )

        self.command_runner = command_runner or CommandRunner(
            logger=logger,
            default_timeout=self.settings.command_timeout,
        )
        self.prompter = prompter or Prompter(console=console)
        self.journal = StepJournal(logger=logger)
        self.toolchain_service = ToolchainService(
            logger=logger,
            console=console,
            subprocess_module=subprocess_module,
        )
        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.template_rewriter = TemplateRewriter(logger=logger)
        self.provisioner = ResourceProvisioner(
            command_runner=self.command_runner,
            settings=self.settings,
            logger=logger,
            console=console,
        )
        self.identity_configurator = IdentityProviderConfigurator(
            command_runner=self.command_runner,
            prompter=self.prompter,
            settings=self.settings,
            logger=logger,
            console=console,
        )
        self.database_selector = DatabaseSelector(prompter=self.prompter, logger=logger)
        self.repository_publisher = RepositoryPublisher(
            command_runner=self.command_runner,
            toolchain_service=self.toolchain_service,
            settings=self.settings,
            logger=logger,
            console=console,
        )

    def _validate_settings(self):
        checks = (
            ("deploy_mode", self.settings.deploy_mode, DEPLOY_MODES),
            ("auth_apply_mode", self.settings.auth_apply_mode, AUTH_APPLY_MODES),
            ("auth_failure", self.settings.auth_failure, AUTH_FAILURE_POLICIES),
            ("pipeline_mode", self.settings.pipeline_mode, PIPELINE_MODES),
        )
        for name, value, allowed in checks:
            if value not in allowed:
                raise BootstrapError(f"Invalid {name} '{value}'. Supported values: {', '.join(allowed)}")
        if self.settings.name_cap < 1:
            raise BootstrapError("name_cap must be at least 1.")
        if self.settings.name_suffix_bytes < 0:
            raise BootstrapError("name_suffix_bytes must not be negative.")

    def _run_step(self, name: str, callback, *args, **kwargs) -> Any:
        self.journal.step_started(name)

        try:
            result = callback(*args, **kwargs)
        except StepSkipped as exc:
            self.journal.step_finished(name, "skipped", detail=str(exc))
            return None
        except BaseException as exc:
            self.journal.step_finished(name, "failed", detail=str(exc) or type(exc).__name__)
            raise

        self.journal.step_finished(name, "success")
        return result

    def required_tools(self) -> List[str]:
        tools = ["az"]
        uses_azd = self.settings.deploy_mode == "azd" or (
            self.settings.publish_repository and self.settings.pipeline_mode == "azd-pipeline"
        )
        if uses_azd:
            tools.append("azd")
        if self.settings.publish_repository:
            tools.extend(["git", "gh"])
        if self.settings.run_setup:
            tools.append("npm")
        return tools

    def preflight(self):
        console.print("[blue]Checking required tools...[/blue]")
        self.toolchain_service.require_all(self.required_tools())

    def resolve_app_name(self) -> str:
        directory_name = os.path.basename(self.root_directory.rstrip(os.sep))
        app_name = normalize_app_name(directory_name, self.settings.name_cap)
        if not app_name:
            raise BootstrapError(
                f"Cannot derive an app name from directory '{directory_name}'. "
                "Rename it to contain letters or digits."
            )
        if self.settings.name_suffix_bytes:
            app_name += secret_generator.random_hex(self.settings.name_suffix_bytes)

        self.context.app_name = app_name
        console.print(f"[blue]Creating app with name [bold]{app_name}[/bold][/blue]")
        return app_name

    def configure_identity(self, app_url: Optional[str] = None) -> Optional[AuthCredentials]:
        try:
            credentials = self.identity_configurator.configure(self.context, app_url=app_url)
        except MissingCredential as exc:
            if self.settings.auth_failure == "abort":
                raise
            console.print(f"[yellow]Skipping Google sign-in: {exc}[/yellow]")
            logger.warning("Identity provider setup skipped: %s", exc)
            raise StepSkipped(str(exc)) from exc

        self.context.auth_credentials = credentials
        return credentials

    def provision_resources(self):
        credentials = None
        if self.settings.auth_apply_mode == "deferred":
            credentials = self.context.auth_credentials

        result = self.provisioner.provision(self.context, credentials=credentials)
        self.context.record_deployment(result)

        outputs = self.context.deployment_outputs
        self.context.resource_group = (
            find_output(outputs, "resourceGroupName")
            or find_output(outputs, "azureResourceGroup")
            or self.context.resource_group
        )
        return result

    def select_database(self):
        selection = self.database_selector.select(
            self.context.deployment_outputs,
            database_password=self.context.database_password,
        )
        self.context.database = selection
        console.print(f"[green]Using {selection.kind} database.[/green]")
        return selection

    def rewrite_templates(self):
        root = self.root_directory
        context = self.context
        if context.database is None:
            raise BootstrapError("No database was selected before rewriting the templates.")

        registry_login_server = None
        if os.path.exists(os.path.join(root, WORKFLOW_FILE)):
            registry_login_server = require_output(context.deployment_outputs, "registryLoginServer")

        context.session_secret = secret_generator.random_hex(SESSION_SECRET_BYTES)

        self.template_rewriter.setup_readme(root, context.app_name, self.settings.template_name)
        self.template_rewriter.setup_environment_file(root, context.session_secret, context.database)
        self.template_rewriter.setup_package_json(root, context.app_name)
        if registry_login_server:
            self.template_rewriter.setup_workflow(
                root,
                context.app_name,
                context.subscription_id or "",
                context.tenant_id or "",
                str(registry_login_server),
            )
        console.print("[green]Project files updated.[/green]")

    def cleanup_template(self):
        logger.info("Removing template-only files from disk.")
        self.filesystem_service.remove_files(self.root_directory, TEMPLATE_ONLY_FILES)
        if self.settings.publish_repository:
            self.filesystem_service.cleanup_dir(os.path.join(self.root_directory, TEMPLATE_VCS_DIR))

    def publish_repository(self) -> str:
        return self.repository_publisher.publish(self.context)

    def run_project_setup(self):
        if self.context.database and self.context.database.kind == DEVCONTAINER:
            console.print(
                "[yellow]Skipping the project setup until you open the devcontainer. "
                'Once done, "npm run setup" will execute on your behalf.[/yellow]'
            )
            raise StepSkipped("devcontainer database")

        console.print("[blue]Running the setup script to make sure everything was set up properly[/blue]")
        self.command_runner.run(
            ["npm", "run", "setup"],
            interactive=True,
            cwd=self.root_directory,
            timeout=self.settings.deploy_timeout,
        )

    def run(self) -> int:
        exit_code = 1

        try:
            logger.info("Starting bootstrap in %s", self.root_directory)
            if self.context.passthrough:
                logger.debug("Pass-through options: %s", " ".join(self.context.passthrough))

            self._run_step("preflight", self.preflight)
            self._run_step("resolve_app_name", self.resolve_app_name)

            if self.settings.auth_apply_mode == "deferred":
                self._run_step("configure_identity", self.configure_identity)

            self._run_step("provision_resources", self.provision_resources)

            if self.settings.auth_apply_mode == "live":
                app_url = find_output(self.context.deployment_outputs, "webUri")
                self._run_step("configure_identity", self.configure_identity, app_url)

            self._run_step("select_database", self.select_database)
            self._run_step("rewrite_templates", self.rewrite_templates)
            self._run_step("cleanup_template", self.cleanup_template)

            if self.settings.publish_repository:
                self._run_step("publish_repository", self.publish_repository)

            if self.settings.run_setup:
                self._run_step("run_project_setup", self.run_project_setup)

            console.print('[bold green]Project is ready! Start development with "npm run dev"[/bold green]')
            logger.debug("Context summary: %s", self.context.summary())
            exit_code = 0
            return exit_code

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            exit_code = 130
            return exit_code
        except BootstrapError as exc:
            failed_step = self.journal.failed_step() or "run"
            console.print(f"[bold red]Error in step '{failed_step}':[/bold red] {exc}")
            logger.error(str(exc))
            exit_code = 1
            return exit_code
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            exit_code = 1
            return exit_code
        finally:
            console.print(self.journal.render())
            if exit_code != 0:
                completed = self.journal.completed_steps()
                logger.warning(
                    "The project directory may be partially modified (completed steps: %s). "
                    "Review the created Azure/GitHub resources before running the bootstrap again.",
                    ", ".join(completed) or "none",
                )

"""GitHub repository creation and CI wiring."""

from typing import Dict, List, Optional

from stackinit.constants import GITHUB_HOSTNAME
from stackinit.errors import MalformedOutput
from stackinit.errors_catalog import actionable_error
from stackinit.models import BootstrapSettings, ProvisioningContext

REQUIRED_TOOLS = ("git", "gh")


class RepositoryPublisher:
    """Creates the private GitHub repository and registers pipeline settings."""

    def __init__(self, command_runner, toolchain_service, settings: BootstrapSettings, logger, console):
        self.command_runner = command_runner
        self.toolchain_service = toolchain_service
        self.settings = settings
        self.logger = logger
        self.console = console

    def check_prerequisites(self):
        self.toolchain_service.require_all(REQUIRED_TOOLS)

    def _gh_env(self) -> Optional[Dict[str, str]]:
        return {"GH_DEBUG": "1"} if self.settings.verbose else None

    def _gh(self, args: List[str], **kwargs):
        kwargs.setdefault("timeout", self.settings.command_timeout)
        return self.command_runner.run(["gh"] + args, env=self._gh_env(), **kwargs)

    def _git(self, args: List[str], root: str):
        return self.command_runner.run(["git"] + args, cwd=root, timeout=self.settings.command_timeout)

    def authenticate(self):
        self.console.print("[blue]Authenticating with GitHub...[/blue]")
        self._gh(
            ["auth", "login", "--hostname", GITHUB_HOSTNAME, "--git-protocol", "https", "--web"],
            interactive=True,
            timeout=self.settings.auth_timeout,
        )

    def commit_initial(self, root: str):
        self._git(["init"], root)
        self._git(["add", "."], root)
        self._git(["commit", "-m", "Initial commit"], root)

    def current_user(self) -> str:
        user = self.command_runner.run_json(
            ["gh", "api", "user"],
            env=self._gh_env(),
            timeout=self.settings.command_timeout,
        )
        login = user.get("login")
        if not login:
            raise MalformedOutput(
                actionable_error("malformed_output", command="gh api user", expected="a `login` field")
            )
        return login

    def create_remote(self, context: ProvisioningContext):
        self._gh(
            [
                "repo",
                "create",
                context.app_name,
                "--private",
                "--push",
                "--source",
                context.root_directory,
            ],
            cwd=context.root_directory,
        )

    def pipeline_secrets(self, context: ProvisioningContext) -> Dict[str, str]:
        return {
            "AZURE_ENV_NAME": context.app_name,
            "AZURE_LOCATION": context.location,
            "AZURE_SUBSCRIPTION_ID": context.subscription_id or "",
            "AZURE_TENANT_ID": context.tenant_id or "",
        }

    def configure_pipeline(self, context: ProvisioningContext, owner: str):
        if self.settings.pipeline_mode == "azd-pipeline":
            self.command_runner.run(
                ["azd", "pipeline", "config", "--provider", "github"],
                interactive=True,
                cwd=context.root_directory,
                timeout=self.settings.deploy_timeout,
            )
            return

        repository = f"{owner}/{context.app_name}"
        for name, value in self.pipeline_secrets(context).items():
            if not value:
                self.logger.warning("Skipping empty secret %s", name)
                continue
            self.logger.info("Setting secret %s on %s", name, repository)
            self._gh(
                ["secret", "set", name, "--body", value, "--repo", repository],
                cwd=context.root_directory,
            )

    def publish(self, context: ProvisioningContext) -> str:
        self.console.print(f"[blue]Setting up repository: {context.app_name}...[/blue]")
        self.check_prerequisites()

        self.authenticate()
        self.commit_initial(context.root_directory)
        owner = self.current_user()
        self.create_remote(context)
        self.configure_pipeline(context, owner)

        repository = f"{owner}/{context.app_name}"
        self.console.print(f"[green]Successfully set up repository {repository}.[/green]")
        return repository

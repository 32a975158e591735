"""Optional Google sign-in registration for the deployed app."""

from typing import Optional

from stackinit.errors import MissingCredential
from stackinit.errors_catalog import actionable_error
from stackinit.models import AuthCredentials, BootstrapSettings, PromptSpec, ProvisioningContext

NOT_ASKED = "not_asked"
DECLINED = "declined"
COLLECTING = "collecting"
CONFIGURED = "configured"
FAILED = "failed"

PROVIDER = "google"
INSTRUCTIONS_URL = "https://developers.google.com/identity/protocols/oauth2/openid-connect"


def predicted_app_url(app_name: str) -> str:
    return f"https://{app_name}.azurewebsites.net"


class IdentityProviderConfigurator:
    """Walks the operator through creating an OAuth app and wires its credentials.

    In ``deferred`` mode the credentials are handed back to the orchestrator and
    end up in the deployment parameters. In ``live`` mode they are pushed to the
    already deployed web app with ``az webapp auth google update``.
    """

    def __init__(self, command_runner, prompter, settings: BootstrapSettings, logger, console):
        self.command_runner = command_runner
        self.prompter = prompter
        self.settings = settings
        self.logger = logger
        self.console = console
        self.state = NOT_ASKED

    def configure(
        self,
        context: ProvisioningContext,
        app_url: Optional[str] = None,
    ) -> Optional[AuthCredentials]:
        wanted = self.prompter.ask(
            PromptSpec(
                kind="confirm",
                message="Do you want to set up Google sign-in for the app?",
                default=False,
            )
        )
        if not wanted:
            self.state = DECLINED
            self.logger.info("Skipping identity provider setup.")
            return None

        self.state = COLLECTING
        url = (app_url or predicted_app_url(context.app_name)).rstrip("/")
        self.console.print("Follow the instructions for creating an OAuth app on Google.")
        self.console.print(f"Instructions: {INSTRUCTIONS_URL}")
        self.console.print("Enter below homepage URL and authorization callback URL when creating the app.")
        self.console.print(f"Homepage URL: [bold]{url}[/bold]")
        self.console.print(f"Authorization callback URL: [bold]{url}/.auth/login/{PROVIDER}/callback[/bold]")

        client_id = self._ask_required("client ID", "Enter client ID")
        client_secret = self._ask_required("client secret", "Enter client secret", secret=True)
        credentials = AuthCredentials(provider=PROVIDER, client_id=client_id, client_secret=client_secret)

        if self.settings.auth_apply_mode == "live":
            self.apply_live(context, credentials)

        self.state = CONFIGURED
        return credentials

    def apply_live(self, context: ProvisioningContext, credentials: AuthCredentials):
        self.console.print("[blue]Updating the web app authentication settings...[/blue]")
        self.command_runner.run(
            [
                "az",
                "webapp",
                "auth",
                "google",
                "update",
                "--resource-group",
                context.resource_group,
                "--name",
                context.app_name,
                "--client-id",
                credentials.client_id,
                "--client-secret",
                credentials.client_secret,
                "--yes",
            ],
            timeout=self.settings.command_timeout,
        )

    def _ask_required(self, field: str, message: str, secret: bool = False) -> str:
        answer = self.prompter.ask(PromptSpec(kind="text", message=message, secret=secret))
        answer = (answer or "").strip()
        if not answer:
            self.state = FAILED
            raise MissingCredential(
                actionable_error("missing_credential", field=field, provider="Google")
            )
        return answer

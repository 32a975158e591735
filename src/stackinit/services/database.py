"""Database strategy selection and connection string resolution."""

from typing import Any, Mapping, Optional
from urllib.parse import quote

from stackinit.constants import DEVCONTAINER_CONNECTION_STRING, LOCAL_CONNECTION_STRING
from stackinit.errors import BootstrapError
from stackinit.models import DatabaseSelection, PromptSpec
from stackinit.services.provisioner import require_output

DEVCONTAINER = "devcontainer"
LOCAL = "local"
AZURE = "azure"

CHOICES = {
    "devcontainer": DEVCONTAINER,
    "Local": LOCAL,
    "Azure": AZURE,
}


class DatabaseSelector:
    """Maps the operator's database choice to connection strings."""

    def __init__(self, prompter, logger):
        self.prompter = prompter
        self.logger = logger

    def select(
        self,
        deployment_outputs: Mapping[str, Any],
        database_password: Optional[str] = None,
    ) -> DatabaseSelection:
        answer = self.prompter.ask(
            PromptSpec(
                kind="choice",
                message="What database server should we use?",
                choices=list(CHOICES),
                default="Local",
            )
        )
        kind = CHOICES.get(answer)
        self.logger.debug("Database choice: %s", answer)

        if kind == DEVCONTAINER:
            return DatabaseSelection(kind=DEVCONTAINER, connection_string=DEVCONTAINER_CONNECTION_STRING)

        if kind == LOCAL:
            connection_string = self.prompter.ask(
                PromptSpec(
                    kind="text",
                    message="What is the connection string?",
                    default=LOCAL_CONNECTION_STRING,
                )
            )
            return DatabaseSelection(kind=LOCAL, connection_string=connection_string or LOCAL_CONNECTION_STRING)

        if kind == AZURE:
            return DatabaseSelection(
                kind=AZURE,
                connection_string=self.azure_connection_string(deployment_outputs, database_password),
            )

        raise BootstrapError(f"Unknown database choice: {answer}")

    @staticmethod
    def azure_connection_string(
        deployment_outputs: Mapping[str, Any],
        database_password: Optional[str],
    ) -> str:
        protocol = str(require_output(deployment_outputs, "databaseProtocol")).rstrip(":/")
        host = require_output(deployment_outputs, "databaseHost")
        name = require_output(deployment_outputs, "databaseName")
        username = require_output(deployment_outputs, "databaseUsername")
        if not database_password:
            raise BootstrapError("No generated database password is available for the Azure database.")

        return f"{protocol}://{quote(str(username), safe='')}:{quote(database_password, safe='')}@{host}/{name}"

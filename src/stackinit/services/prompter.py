"""Interactive question collaborator backed by rich prompts."""

from typing import Any

from rich.console import Console
from rich.prompt import Confirm, Prompt

from stackinit.errors import BootstrapError
from stackinit.models import PromptSpec

TEXT = "text"
CHOICE = "choice"
CONFIRM = "confirm"


class Prompter:
    """Asks one question at a time and returns the answer."""

    def __init__(self, console: Console):
        self.console = console

    def ask(self, spec: PromptSpec) -> Any:
        if spec.kind == CONFIRM:
            return Confirm.ask(spec.message, console=self.console, default=bool(spec.default))

        if spec.kind == CHOICE:
            if not spec.choices:
                raise BootstrapError(f"Choice prompt without choices: {spec.message}")
            return Prompt.ask(
                spec.message,
                console=self.console,
                choices=list(spec.choices),
                default=spec.default if spec.default is not None else spec.choices[0],
            )

        if spec.kind == TEXT:
            if spec.default is None:
                return Prompt.ask(spec.message, console=self.console, password=spec.secret)
            return Prompt.ask(
                spec.message,
                console=self.console,
                password=spec.secret,
                default=spec.default,
            )

        raise BootstrapError(f"Unknown prompt kind: {spec.kind}")

"""Pre-flight detection of the external command-line tools."""

import subprocess
from typing import Iterable, List

from stackinit.constants import TOOL_INSTALL_URLS
from stackinit.errors import MissingTool
from stackinit.errors_catalog import actionable_error


class ToolchainService:
    """Checks that required executables exist before anything is changed."""

    def __init__(self, logger, console, subprocess_module=subprocess):
        self.logger = logger
        self.console = console
        self.subprocess = subprocess_module

    def is_available(self, tool: str) -> bool:
        try:
            self.subprocess.run([tool, "--version"], check=True, capture_output=True)
        except (self.subprocess.CalledProcessError, FileNotFoundError):
            return False
        return True

    def require(self, tool: str):
        if not self.is_available(tool):
            url = TOOL_INSTALL_URLS.get(tool, "see the tool documentation")
            raise MissingTool(actionable_error("missing_tool", tool=tool, url=url), tool=tool)
        self.logger.debug("Found %s", tool)

    def require_all(self, tools: Iterable[str]) -> List[str]:
        checked: List[str] = []
        for tool in tools:
            if tool in checked:
                continue
            self.require(tool)
            checked.append(tool)
        self.console.print(f"[green]Found required tools: {', '.join(checked)}.[/green]")
        return checked

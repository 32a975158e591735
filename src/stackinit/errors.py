"""Domain errors for stackinit."""

from typing import Optional


class BootstrapError(RuntimeError):
    """Raised when the bootstrap cannot continue safely."""


class MissingTool(BootstrapError):
    """A required executable is not installed."""

    def __init__(self, message: str, tool: str):
        super().__init__(message)
        self.tool = tool


class ProcessFailure(BootstrapError):
    """An external command exited with a non-zero status."""

    def __init__(self, message: str, exit_code: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr


class MalformedOutput(ProcessFailure):
    """An external command succeeded but its structured output was unusable."""


class TimedOut(BootstrapError):
    """An external command did not finish within its time limit."""

    def __init__(self, message: str, timeout: Optional[float] = None):
        super().__init__(message)
        self.timeout = timeout


class MissingCredential(BootstrapError):
    """A required interactive answer was left empty."""


class NoSubscriptionFound(BootstrapError):
    """Cloud login succeeded but returned no usable account."""


class MissingDeploymentOutput(BootstrapError):
    """A deployment output needed by a later step is absent."""

    def __init__(self, message: str, key: str):
        super().__init__(message)
        self.key = key

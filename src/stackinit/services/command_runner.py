"""Subprocess execution service for stackinit."""

import json
import os
import subprocess
from typing import Any, Dict, List, Optional, Type

from stackinit.constants import TOOL_INSTALL_URLS
from stackinit.errors import MalformedOutput, MissingTool, ProcessFailure, TimedOut
from stackinit.errors_catalog import actionable_error
from stackinit.models import CommandResult


class CommandRunner:
    """Runs external commands with consistent error handling."""

    def __init__(self, logger, default_timeout: Optional[float] = None, subprocess_module=subprocess):
        self.logger = logger
        self.default_timeout = default_timeout
        self.subprocess = subprocess_module

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        parse_json: bool = False,
        interactive: bool = False,
        timeout: Optional[float] = None,
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> CommandResult:
        cmd_str = " ".join(cmd)
        self.logger.debug("Executing: %s", cmd_str)

        effective_timeout = timeout if timeout is not None else self.default_timeout
        runtime_env = None
        if env:
            runtime_env = os.environ.copy()
            runtime_env.update(env)

        # Interactive commands keep stderr on the terminal (device codes, progress);
        # stdout is only piped when its JSON is needed.
        if not interactive:
            streams = {"capture_output": True}
        elif parse_json:
            streams = {"stdout": subprocess.PIPE}
        else:
            streams = {}

        try:
            completed = self.subprocess.run(
                cmd,
                text=True,
                timeout=effective_timeout,
                cwd=cwd,
                env=runtime_env,
                **streams,
            )
        except FileNotFoundError as exc:
            tool = cmd[0]
            raise MissingTool(
                actionable_error(
                    "missing_tool",
                    tool=tool,
                    url=TOOL_INSTALL_URLS.get(tool, "see the tool documentation"),
                ),
                tool=tool,
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise TimedOut(
                actionable_error("command_timed_out", timeout=effective_timeout, command=cmd_str),
                timeout=effective_timeout,
            ) from exc
        except OSError as exc:
            raise ProcessFailure(f"Failed to execute command: {cmd_str}. {exc}") from exc

        stdout = completed.stdout or ""
        stderr = (completed.stderr or "").strip()
        if stdout:
            self.logger.debug("Command output: %s", stdout.strip())

        if completed.returncode != 0:
            message = actionable_error(
                "command_failed",
                exit_code=completed.returncode,
                command=cmd_str,
            )
            if stderr:
                message = f"{message}\n{stderr}"
            if check:
                raise ProcessFailure(message, exit_code=completed.returncode, stderr=stderr)
            self.logger.warning(message)

        payload = self._decode(stdout) if parse_json else None
        return CommandResult(
            args=tuple(cmd),
            returncode=completed.returncode,
            stdout=stdout,
            stderr=stderr,
            payload=payload,
        )

    def run_json(self, cmd: List[str], expect: Type = dict, **kwargs) -> Any:
        """Run ``cmd`` and return its decoded JSON payload, which must be an ``expect``."""
        result = self.run(cmd, parse_json=True, **kwargs)
        if not isinstance(result.payload, expect):
            raise MalformedOutput(
                actionable_error(
                    "malformed_output",
                    command=" ".join(cmd),
                    expected=f"a JSON {'array' if expect is list else 'object'}",
                ),
                exit_code=result.returncode,
                stderr=result.stderr,
            )
        return result.payload

    def _decode(self, stdout: str) -> Any:
        try:
            return json.loads(stdout)
        except ValueError:
            self.logger.debug("Output is not JSON, keeping raw text.")
            return stdout.strip()

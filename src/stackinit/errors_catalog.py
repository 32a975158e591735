"""Actionable error catalog for stackinit."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "missing_tool": {
        "what": "Required command not found: {tool}.",
        "next": "Please install '{tool}' ({url}) and rerun the command.",
    },
    "command_failed": {
        "what": "Command failed ({exit_code}): {command}",
        "next": "Check the command output above, fix the cause and rerun the bootstrap.",
    },
    "command_timed_out": {
        "what": "Command timed out after {timeout}s: {command}",
        "next": "Raise the matching timeout in `.stackinit.yml` or check your network connection.",
    },
    "no_subscription": {
        "what": "Azure login returned no subscriptions.",
        "next": "Make sure your account has access to an Azure subscription, then rerun.",
    },
    "malformed_output": {
        "what": "Unexpected output from `{command}`: expected {expected}.",
        "next": "Update the CLI to a recent version and rerun with `--verbose` to inspect its output.",
    },
    "missing_credential": {
        "what": "No {field} provided for the {provider} provider.",
        "next": "Rerun the bootstrap and paste the {field} shown in the {provider} console.",
    },
    "missing_output": {
        "what": "Deployment output `{key}` is missing.",
        "next": "Add `{key}` to the outputs of `infra/main.bicep` or choose another database option.",
    },
}


def actionable_error(code: str, **kwargs: object) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"

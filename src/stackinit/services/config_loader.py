"""YAML defaults file for the stackinit command line."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from stackinit.constants import (
    AUTH_APPLY_MODES,
    AUTH_FAILURE_POLICIES,
    DEPLOY_MODES,
    PIPELINE_MODES,
)
from stackinit.errors import BootstrapError

FLAG = "flag"
TEXT = "text"
COUNT = "count"
SECONDS = "seconds"


class ConfigLoader:
    """Finds and validates ``.stackinit.yml`` before its values reach the CLI."""

    DEFAULT_FILE_NAME = ".stackinit.yml"

    KEY_KINDS = {
        "verbose": FLAG,
        "log_file": TEXT,
        "location": TEXT,
        "name_cap": COUNT,
        "name_suffix_bytes": COUNT,
        "deploy_mode": DEPLOY_MODES,
        "auth_apply_mode": AUTH_APPLY_MODES,
        "auth_failure": AUTH_FAILURE_POLICIES,
        "pipeline_mode": PIPELINE_MODES,
        "publish_repository": FLAG,
        "run_setup": FLAG,
        "template_name": TEXT,
        "command_timeout": SECONDS,
        "auth_timeout": SECONDS,
        "deploy_timeout": SECONDS,
    }

    def find_default(self, *directories: str) -> Optional[str]:
        for directory in directories:
            candidate = Path(directory, self.DEFAULT_FILE_NAME)
            if candidate.is_file():
                return str(candidate)
        return None

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.is_file():
            raise BootstrapError(f"Config file not found: {config_path}")

        try:
            with path.open("r", encoding="utf-8") as file_obj:
                document = yaml.safe_load(file_obj)
        except (yaml.YAMLError, OSError) as exc:
            raise BootstrapError(f"Invalid config file '{config_path}': {exc}") from exc

        if document is None:
            return {}
        if not isinstance(document, dict):
            raise BootstrapError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(str(key) for key in document if key not in self.KEY_KINDS)
        if unknown:
            raise BootstrapError(f"Unknown configuration keys: {', '.join(unknown)}")

        for key, value in document.items():
            self._check_value(config_path, key, value)
        return document

    def _check_value(self, config_path: str, key: str, value: Any):
        kind = self.KEY_KINDS[key]
        if kind == FLAG:
            valid = isinstance(value, bool)
            expected = "true or false"
        elif kind == TEXT:
            valid = isinstance(value, str) and bool(value.strip())
            expected = "a non-empty string"
        elif kind == COUNT:
            valid = isinstance(value, int) and not isinstance(value, bool) and value >= 0
            expected = "a non-negative integer"
        elif kind == SECONDS:
            valid = isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0
            expected = "a positive number of seconds"
        else:
            valid = value in kind
            expected = "one of " + ", ".join(kind)

        if not valid:
            raise BootstrapError(f"'{key}' in {config_path} must be {expected}, got {value!r}.")

"""Token substitution over the template's project files."""

import json
import os
import re
from pathlib import Path
from typing import List, Optional, Pattern, Sequence

from stackinit.constants import (
    ENV_EXAMPLE_FILE,
    ENV_FILE,
    PACKAGE_JSON_FILE,
    README_FILE,
    WORKFLOW_FILE,
)
from stackinit.errors import BootstrapError
from stackinit.models import DatabaseSelection, SubstitutionRule


def _compile(rule: SubstitutionRule) -> Pattern[str]:
    pattern = rule.search if rule.regex else re.escape(rule.search)
    try:
        return re.compile(pattern, rule.flags)
    except re.error as exc:
        raise BootstrapError(f"Invalid substitution pattern {rule.search!r}: {exc}") from exc


def _env_line_rule(key: str, value: str) -> SubstitutionRule:
    return SubstitutionRule(
        search=rf"^{re.escape(key)}=[^\r\n]*",
        replacement=f'{key}="{value}"',
        regex=True,
        flags=re.MULTILINE,
    )


class TemplateRewriter:
    """Reads a file, applies ordered substitution rules and writes the result."""

    def __init__(self, logger):
        self.logger = logger

    @staticmethod
    def check_rules(rules: Sequence[SubstitutionRule]):
        compiled = [_compile(rule) for rule in rules]
        for index, rule in enumerate(rules):
            for later_rule, later in zip(rules[index + 1:], compiled[index + 1:]):
                if later.search(rule.replacement):
                    raise BootstrapError(
                        f"Replacement for {rule.search!r} would be rewritten again by "
                        f"the later rule {later_rule.search!r}."
                    )

    @classmethod
    def rewrite_text(cls, text: str, rules: Sequence[SubstitutionRule]) -> str:
        cls.check_rules(rules)
        for rule in rules:
            replacement = rule.replacement
            text = _compile(rule).sub(lambda _match: replacement, text)
        return text

    def apply_substitutions(
        self,
        file_path: str,
        rules: Sequence[SubstitutionRule],
        output_path: Optional[str] = None,
    ) -> Path:
        source = Path(file_path)
        target = Path(output_path) if output_path else source
        try:
            with open(source, "r", encoding="utf-8", newline="") as file_obj:
                text = file_obj.read()
        except OSError as exc:
            raise BootstrapError(f"Could not read {source}: {exc}") from exc

        new_text = self.rewrite_text(text, rules)
        self._write(target, new_text)
        self.logger.debug("Rewrote %s -> %s (%s rules)", source, target, len(rules))
        return target

    def setup_readme(self, root_directory: str, app_name: str, template_name: str) -> Path:
        readme_path = os.path.join(root_directory, README_FILE)
        return self.apply_substitutions(readme_path, [SubstitutionRule(template_name, app_name)])

    def setup_environment_file(
        self,
        root_directory: str,
        session_secret: str,
        database: DatabaseSelection,
    ) -> Path:
        example_path = Path(root_directory, ENV_EXAMPLE_FILE)
        env_path = Path(root_directory, ENV_FILE)
        try:
            with open(example_path, "r", encoding="utf-8", newline="") as file_obj:
                env = file_obj.read()
        except OSError as exc:
            raise BootstrapError(f"Could not read {example_path}: {exc}") from exc

        rules: List[SubstitutionRule] = []
        missing_lines: List[str] = []
        for key, value in (
            ("SESSION_SECRET", session_secret),
            ("DATABASE_URL", database.connection_string),
        ):
            rule = _env_line_rule(key, value)
            if _compile(rule).search(env):
                rules.append(rule)
            else:
                missing_lines.append(rule.replacement)

        new_env = self.rewrite_text(env, rules)
        if database.shadow_connection_string:
            missing_lines.append(f'SHADOW_DATABASE_URL="{database.shadow_connection_string}"')
        for line in missing_lines:
            if new_env and not new_env.endswith("\n"):
                new_env += "\n"
            new_env += line

        self._write(env_path, new_env)
        self.logger.debug("Wrote environment file %s", env_path)
        return env_path

    def setup_package_json(self, root_directory: str, app_name: str) -> Path:
        package_json_path = Path(root_directory, PACKAGE_JSON_FILE)
        try:
            manifest = json.loads(package_json_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise BootstrapError(f"Could not read {package_json_path}: {exc}") from exc
        if not isinstance(manifest, dict):
            raise BootstrapError(f"{package_json_path} must contain a JSON object.")

        manifest["name"] = app_name
        self._write(package_json_path, json.dumps(manifest, indent=2, ensure_ascii=False) + "\n")
        return package_json_path

    def setup_workflow(
        self,
        root_directory: str,
        app_name: str,
        subscription_id: str,
        tenant_id: str,
        registry_login_server: str,
    ) -> Optional[Path]:
        workflow_path = os.path.join(root_directory, WORKFLOW_FILE)
        if not os.path.exists(workflow_path):
            self.logger.info("No CI workflow at %s, skipping.", WORKFLOW_FILE)
            return None

        rules = [
            SubstitutionRule("${AZURE_WEBAPP_NAME}", app_name),
            SubstitutionRule("${AZURE_REGISTRY_URL}", registry_login_server),
            SubstitutionRule("${AZURE_SUBSCRIPTION_ID}", subscription_id),
            SubstitutionRule("${AZURE_TENANT_ID}", tenant_id),
            SubstitutionRule("${IMAGE_NAME}", app_name),
        ]
        return self.apply_substitutions(workflow_path, rules)

    @staticmethod
    def _write(path: Path, text: str):
        try:
            with open(path, "w", encoding="utf-8", newline="") as file_obj:
                file_obj.write(text)
        except OSError as exc:
            raise BootstrapError(f"Could not write {path}: {exc}") from exc

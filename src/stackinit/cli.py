import logging
import os

import click
from rich.logging import RichHandler

from .constants import (
    AUTH_APPLY_MODES,
    AUTH_FAILURE_POLICIES,
    DEFAULT_AUTH_TIMEOUT,
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_DEPLOY_TIMEOUT,
    DEFAULT_LOCATION,
    DEFAULT_NAME_CAP,
    DEPLOY_MODES,
    PIPELINE_MODES,
    TEMPLATE_NAME,
)
from .core import BootstrapError, StackBootstrapper
from .models import BootstrapSettings
from .services.config_loader import ConfigLoader


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command(context_settings={"ignore_unknown_options": True, "allow_extra_args": True})
@click.argument("root_directory", type=click.Path(file_okay=False))
@click.argument("passthrough", nargs=-1, type=click.UNPROCESSED)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help="Path to a YAML configuration file. Defaults to .stackinit.yml in the root directory or cwd.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
@click.option("--location", required=False, help=f"Azure location (default: {DEFAULT_LOCATION})")
@click.option(
    "--name-cap",
    required=False,
    type=int,
    default=None,
    help=f"Maximum app name length before any suffix (default: {DEFAULT_NAME_CAP}).",
)
@click.option(
    "--name-suffix-bytes",
    required=False,
    type=int,
    default=None,
    help="Append this many random bytes (hex) to the app name (default: 0).",
)
@click.option(
    "--deploy-mode",
    required=False,
    type=click.Choice(DEPLOY_MODES),
    help="Provision with `azd` (env + provision) or `az deployment group create`.",
)
@click.option(
    "--auth-apply-mode",
    required=False,
    type=click.Choice(AUTH_APPLY_MODES),
    help="Write Google credentials into the deployment parameters or update the live app.",
)
@click.option(
    "--auth-failure",
    required=False,
    type=click.Choice(AUTH_FAILURE_POLICIES),
    help="What to do when Google credentials are left empty (default: skip).",
)
@click.option(
    "--pipeline-mode",
    required=False,
    type=click.Choice(PIPELINE_MODES),
    help="Register GitHub secrets one by one or run `azd pipeline config`.",
)
@click.option(
    "--publish/--no-publish",
    "publish_repository",
    default=None,
    help="Create the GitHub repository and push the initial commit (default: on).",
)
@click.option(
    "--run-setup/--no-run-setup",
    "run_setup",
    default=None,
    help='Run "npm run setup" at the end (default: on).',
)
@click.option("--command-timeout", type=float, default=None, help="Timeout in seconds for CLI calls.")
@click.option("--auth-timeout", type=float, default=None, help="Timeout in seconds for login flows.")
@click.option("--deploy-timeout", type=float, default=None, help="Timeout in seconds for provisioning.")
def main(
    root_directory,
    passthrough,
    config,
    verbose,
    log_file,
    location,
    name_cap,
    name_suffix_bytes,
    deploy_mode,
    auth_apply_mode,
    auth_failure,
    pipeline_mode,
    publish_repository,
    run_setup,
    command_timeout,
    auth_timeout,
    deploy_timeout,
):
    """Provision Azure resources and a GitHub repository for a freshly cloned stack template."""
    logger = logging.getLogger("stackinit")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            resolved_config = config_loader.find_default(root_directory, os.getcwd())
        config_values = config_loader.load(resolved_config)
    except BootstrapError as exc:
        raise click.ClickException(str(exc)) from exc

    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    try:
        settings = BootstrapSettings(
            verbose=verbose,
            location=str(_resolve_option(location, config_values, "location", default=DEFAULT_LOCATION)),
            name_cap=int(_resolve_option(name_cap, config_values, "name_cap", default=DEFAULT_NAME_CAP)),
            name_suffix_bytes=int(
                _resolve_option(name_suffix_bytes, config_values, "name_suffix_bytes", default=0)
            ),
            deploy_mode=_resolve_option(deploy_mode, config_values, "deploy_mode", default="azd"),
            auth_apply_mode=_resolve_option(
                auth_apply_mode, config_values, "auth_apply_mode", default="deferred"
            ),
            auth_failure=_resolve_option(auth_failure, config_values, "auth_failure", default="skip"),
            pipeline_mode=_resolve_option(pipeline_mode, config_values, "pipeline_mode", default="secrets"),
            publish_repository=bool(
                _resolve_option(publish_repository, config_values, "publish_repository", default=True)
            ),
            run_setup=bool(_resolve_option(run_setup, config_values, "run_setup", default=True)),
            template_name=str(
                _resolve_option(None, config_values, "template_name", default=TEMPLATE_NAME)
            ),
            command_timeout=float(
                _resolve_option(
                    command_timeout, config_values, "command_timeout", default=DEFAULT_COMMAND_TIMEOUT
                )
            ),
            auth_timeout=float(
                _resolve_option(auth_timeout, config_values, "auth_timeout", default=DEFAULT_AUTH_TIMEOUT)
            ),
            deploy_timeout=float(
                _resolve_option(
                    deploy_timeout, config_values, "deploy_timeout", default=DEFAULT_DEPLOY_TIMEOUT
                )
            ),
        )
    except (TypeError, ValueError) as exc:
        raise click.ClickException(f"Invalid configuration value: {exc}") from exc

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    try:
        bootstrapper = StackBootstrapper(
            root_directory=root_directory,
            settings=settings,
            passthrough=passthrough,
        )
    except BootstrapError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(bootstrapper.run())


if __name__ == "__main__":
    main()

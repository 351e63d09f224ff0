import logging
import os

import click
from rich.logging import RichHandler

from .constants import DEFAULT_BRANCH_PREFIX, DEFAULT_CHECK_COMMAND
from .core import NodeUpgrader, UpgraderError
from .services.config_loader import ConfigLoader


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if config.get(key) is not None:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.argument("check_command", required=False)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help="Path to a YAML configuration file. Defaults to .nodeupgrader.yml if present.",
)
@click.option(
    "--cwd",
    "repository_root",
    required=False,
    type=click.Path(file_okay=False),
    help="Repository to upgrade (default: current directory).",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    default=None,
    help="Upgrade without asking for confirmation.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=None,
    help="Run initial checks and list outdated packages without changing anything.",
)
@click.option(
    "--check-timeout",
    required=False,
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds before a check run is treated as failed (default: no timeout).",
)
@click.option(
    "--install-timeout",
    required=False,
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds before a package install is abandoned (default: no timeout).",
)
@click.option(
    "--branch-prefix",
    required=False,
    help=f"Prefix for the work branch name (default: {DEFAULT_BRANCH_PREFIX}).",
)
@click.option(
    "--report-file",
    required=False,
    type=click.Path(),
    help="Write a JSON session report to this path.",
)
def main(
    check_command,
    config,
    repository_root,
    verbose,
    log_file,
    yes,
    dry_run,
    check_timeout,
    install_timeout,
    branch_prefix,
    report_file,
):
    """Upgrade outdated Node dependencies one at a time, keeping only those
    that pass CHECK_COMMAND (default: "npm test")."""
    logger = logging.getLogger("nodeupgrader")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            resolved_config = config_loader.find_default(repository_root or os.getcwd())

        config_values = config_loader.load(resolved_config)
    except UpgraderError as exc:
        raise click.ClickException(str(exc)) from exc

    check_command = _resolve_option(
        check_command, config_values, "check_command", default=DEFAULT_CHECK_COMMAND
    )
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    yes = bool(_resolve_option(yes, config_values, "yes", default=False))
    dry_run = bool(_resolve_option(dry_run, config_values, "dry_run", default=False))
    check_timeout = _resolve_option(check_timeout, config_values, "check_timeout")
    install_timeout = _resolve_option(install_timeout, config_values, "install_timeout")
    branch_prefix = _resolve_option(
        branch_prefix, config_values, "branch_prefix", default=DEFAULT_BRANCH_PREFIX
    )
    report_file = _resolve_option(report_file, config_values, "report_file")

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
        upgrader = NodeUpgrader(
            check_command=check_command,
            repository_root=repository_root,
            assume_yes=yes,
            dry_run=dry_run,
            check_timeout=float(check_timeout) if check_timeout is not None else None,
            install_timeout=float(install_timeout) if install_timeout is not None else None,
            branch_prefix=branch_prefix,
            report_file=report_file,
        )
    except UpgraderError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(upgrader.run())


if __name__ == "__main__":
    main()

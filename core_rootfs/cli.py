# core_rootfs/cli.py
import os
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from core_rootfs import __version__
from core_rootfs.checks import check_privileges, validate_arguments
from core_rootfs.config.models import ProvisionConfig
from core_rootfs.provision import provision
from core_rootfs.utils.exceptions import ProvisionError
from core_rootfs.utils.logger import DEFAULT_LOG_DIRECTORY, initialize_app_logger
from core_rootfs.utils.prompt import assume_yes, interactive_responder
from core_rootfs.workspace import Workspace

app = typer.Typer(
    add_completion=False,
    help="Download an Ubuntu Core image and prepare it to boot on an ARM board.",
)


def _version_callback(value: bool):
    if value:
        typer.echo(f"core-rootfs {__version__}")
        raise typer.Exit()


@app.command()
def main(
    distribution: Optional[str] = typer.Argument(None, help="Ubuntu Core distribution: oneiric, precise."),
    architecture: Optional[str] = typer.Argument(None, help="Ubuntu Core architecture: armel, armhf (precise onwards)."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="TOML configuration file."),
    workspace: Path = typer.Option(Path("."), "--workspace", "-w", help="Directory to extract the filesystem into."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Answer yes to every confirmation."),
    log_dir: str = typer.Option(DEFAULT_LOG_DIRECTORY, "--log-dir", help="Directory for the log file."),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit."),
):
    """
    Provision an Ubuntu Core root filesystem in the workspace (default: current directory).
    """
    # Nothing is written, not even the log file, until these pass
    try:
        check_privileges(os.geteuid())
        validate_arguments(distribution, architecture)
    except ProvisionError as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    logger = initialize_app_logger(app_name="core_rootfs", log_directory=log_dir)
    logger.debug(f"Logging to {logger.log_file_path}")

    try:
        settings = ProvisionConfig.load_config_from_file(config) if config else ProvisionConfig()
    except (ValueError, ValidationError) as e:
        logger.critical(f"Configuration error: {e}")
        raise typer.Exit(code=1)

    responder = assume_yes if yes else interactive_responder(logger.console)

    try:
        result = provision(
            distribution,
            architecture,
            workspace=Workspace(workspace.absolute()),
            config=settings,
            logger=logger,
            responder=responder,
        )
    except ProvisionError as e:
        logger.critical(str(e))
        logger.console.print("[bold red]Aborting...[/bold red]")
        raise typer.Exit(code=1)

    if not result.succeeded:
        logger.error(f"Filesystem set up with errors in: {', '.join(result.failed_steps)}")
        raise typer.Exit(code=1)

    logger.console.print("[green]Congratulation, you are done![/green]")

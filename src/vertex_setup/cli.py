"""Main CLI entry point for vertex-setup."""

import asyncio
import logging
import sys

import click
from pydantic import ValidationError

from . import __version__
from .config.settings import load_settings
from .core.errors import CollaboratorMissing, ProjectNotConfigured
from .core.gcloud import GcloudCli, find_gcloud
from .core.models import WorkflowState
from .core.ports import AutoApprove, RichConfirmation
from .onboarding.probe import ApiProbe
from .onboarding.wizard import SetupWizard
from .ui.components import create_error_panel
from .ui.console import configure_logging, create_console

logger = logging.getLogger(__name__)

EXIT_FATAL = 1
EXIT_INTERRUPTED = 130


@click.command()
@click.version_option(version=__version__, prog_name="vertex-setup")
@click.option(
    "--debug",
    is_flag=True,
    help="Enable debug logging (overrides VERTEX_SETUP_LOG_LEVEL)",
)
def main(debug: bool) -> None:
    """
    Set up Google Cloud Vertex AI for this machine.

    Enables the Vertex AI API, lists models, configures Application Default
    Credentials, checks environment variables, makes one sample Gemini call
    and prints usage instructions.
    """
    try:
        settings = load_settings()
    except ValidationError as e:
        click.echo(f"Invalid VERTEX_SETUP_* configuration:\n{e}", err=True)
        sys.exit(EXIT_FATAL)

    configure_logging("DEBUG" if debug else settings.log_level)
    console = create_console()

    try:
        cli = GcloudCli(find_gcloud(settings.gcloud_path))
        confirm = RichConfirmation(console) if settings.is_interactive else AutoApprove()
        wizard = SetupWizard(
            settings,
            cli,
            confirm,
            console=console,
            probe=ApiProbe(cli, timeout=settings.http_timeout),
        )
        report = asyncio.run(wizard.run())
    except (CollaboratorMissing, ProjectNotConfigured) as e:
        logger.debug("Setup aborted", exc_info=True)
        console.print(create_error_panel(e.message, details=e.detail))
        sys.exit(EXIT_FATAL)
    except KeyboardInterrupt:
        console.print("\n[yellow]Setup cancelled.[/yellow]")
        sys.exit(EXIT_INTERRUPTED)

    if report.state is WorkflowState.COMPLETED_DEGRADED:
        logger.info("Finished with %d stage(s) degraded", len(report.degraded))

"""Setup checks: service enablement, models, credentials and environment."""

import logging
from typing import Iterable, Mapping

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.errors import (
    CollaboratorMissing,
    CredentialError,
    SetupError,
    UnexpectedResponseShape,
)
from ..core.models import (
    SERVICE_NAME,
    EnablementOutcome,
    EnvVarCheckResult,
    ModelDescriptor,
    ProjectContext,
    ServiceStatus,
)
from ..core.ports import CloudCliPort, ConfirmationPort

logger = logging.getLogger(__name__)

REQUIRED_ENV_VARS: dict[str, str] = {
    "VERTEX_AI_PROJECT_ID": "Google Cloud project id used by client code (export VERTEX_AI_PROJECT_ID=<project>)",
    "VERTEX_AI_REGION": "Vertex AI location, e.g. us-central1 (export VERTEX_AI_REGION=us-central1)",
    "GOOGLE_APPLICATION_CREDENTIALS": "Path to a service account key; optional when using ADC from 'gcloud auth application-default login'",
}


async def check_and_enable(
    cli: CloudCliPort,
    project: ProjectContext,
    confirm: ConfirmationPort,
    console: Console | None = None,
) -> EnablementOutcome:
    """
    Ensure the Vertex AI service is enabled for the project.

    Args:
        cli: Cloud CLI port
        project: Active project context
        confirm: Gate asked before enabling (a billable, irreversible action)
        console: Where to print the enablement notice

    Returns:
        ENABLED, DISABLED (user declined) or ENABLE_FAILED. A failed enable
        or re-check carries the raw error.

    Raises:
        SetupError: If the initial enabled-services lookup fails
    """
    console = console or Console()

    if await cli.is_service_enabled(project.project_id, SERVICE_NAME):
        return EnablementOutcome(ServiceStatus.ENABLED)

    console.print(
        f"[yellow]⚠ {SERVICE_NAME} is not enabled for project "
        f"[bold]{project.project_id}[/bold].[/yellow]\n"
        "  Enabling it authorizes billable Vertex AI usage on this project."
    )
    if not confirm.confirm(f"Enable {SERVICE_NAME} now?", default=False):
        logger.info("User declined enabling %s", SERVICE_NAME)
        return EnablementOutcome(ServiceStatus.DISABLED)

    try:
        await cli.enable_service(project.project_id, SERVICE_NAME)
        enabled = await cli.is_service_enabled(project.project_id, SERVICE_NAME)
    except CollaboratorMissing:
        raise
    except SetupError as e:
        logger.warning("Enabling %s failed: %s", SERVICE_NAME, e)
        console.print(f"[red]✗ Enable command failed:[/red] {escape(str(e))}")
        return EnablementOutcome(ServiceStatus.ENABLE_FAILED, e)

    if enabled:
        return EnablementOutcome(ServiceStatus.ENABLED)
    return EnablementOutcome(ServiceStatus.ENABLE_FAILED)


async def list_models(cli: CloudCliPort, project: ProjectContext) -> list[ModelDescriptor]:
    """
    List models available in the project's region.

    Order is exactly the order the CLI returned. An empty list means the
    lookup worked and found nothing.

    Raises:
        UnexpectedResponseShape: If a record is not a usable model entry
    """
    records = await cli.list_models(project.project_id, project.region)
    models = []
    for index, record in enumerate(records):
        try:
            models.append(ModelDescriptor.model_validate(record))
        except ValidationError as e:
            raise UnexpectedResponseShape(
                f"model record #{index + 1} could not be parsed", detail=str(e)
            ) from e
    return models


async def ensure_credentials(cli: CloudCliPort, project: ProjectContext) -> None:
    """
    Bootstrap Application Default Credentials via the cloud CLI.

    Only the exit code of the external process is observed.

    Raises:
        CredentialError: If the bootstrap exits non-zero
    """
    returncode = await cli.bootstrap_credentials(project.project_id)
    if returncode != 0:
        raise CredentialError(returncode)


def verify_environment(
    names: Iterable[str], environ: Mapping[str, str]
) -> EnvVarCheckResult:
    """
    Check which of the given environment variables are set.

    Pure read of ``environ``; an empty value counts as missing.
    """
    checks = {name: bool(environ.get(name, "").strip()) for name in names}
    guidance = {name: REQUIRED_ENV_VARS.get(name, "") for name in checks}
    return EnvVarCheckResult(checks=checks, guidance=guidance)


def display_models(models: list[ModelDescriptor], console: Console) -> None:
    """Render the model list, or a distinct message when it is empty."""
    if not models:
        console.print(
            "[blue]ℹ No models found in this project and region.[/blue]\n"
            "  [dim]Google's publisher models (e.g. gemini-2.0-flash) are still available.[/dim]"
        )
        return

    table = Table(title=f"Vertex AI Models ({len(models)})", show_header=True, header_style="bold")
    table.add_column("#", style="cyan", width=4)
    table.add_column("Display Name", style="white")
    table.add_column("Resource", style="dim")
    table.add_column("Regions", style="green")

    for i, model in enumerate(models, 1):
        name = escape(model.label)
        if model.description:
            name += f"\n[dim]{escape(model.description)}[/dim]"
        table.add_row(str(i), name, escape(model.name), ", ".join(model.supported_regions))

    console.print(table)


def display_environment_results(result: EnvVarCheckResult, environ: Mapping[str, str], console: Console) -> None:
    """Render environment variable presence with guidance for missing ones."""
    for name, present in result.checks.items():
        if present:
            value = environ.get(name, "")
            display_value = value if len(value) < 60 else value[:57] + "..."
            console.print(f"  [green]✓ {name}[/green] = {escape(display_value)}")
        else:
            console.print(f"  [yellow]• {name}[/yellow] not set - {escape(result.guidance.get(name, ''))}")

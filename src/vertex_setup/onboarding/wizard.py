"""Six-stage Vertex AI setup wizard."""

import logging
from pathlib import Path
from typing import Any, Awaitable, Mapping, Optional

from dotenv import set_key
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from ..config.settings import Settings, environment_snapshot
from ..core.errors import CollaboratorMissing, ProjectNotConfigured, SetupError
from ..core.models import (
    SERVICE_NAME,
    ProjectContext,
    ServiceStatus,
    Stage,
    StageResult,
    StageStatus,
    WorkflowReport,
)
from ..core.ports import CloudCliPort, ConfirmationPort
from ..ui.components import (
    create_error_panel,
    create_key_value_table,
    create_panel,
    create_spinner,
)
from .checks import (
    REQUIRED_ENV_VARS,
    check_and_enable,
    display_environment_results,
    display_models,
    ensure_credentials,
    list_models,
    verify_environment,
)
from .probe import ApiProbe, build_endpoint
from .report import UsageReporter

logger = logging.getLogger(__name__)

TOTAL_STEPS = 6


class SetupWizard:
    """Runs the setup stages strictly in order and records every outcome."""

    def __init__(
        self,
        settings: Settings,
        cli: CloudCliPort,
        confirm: ConfirmationPort,
        console: Optional[Console] = None,
        environ: Optional[Mapping[str, str]] = None,
        probe: Optional[ApiProbe] = None,
        env_file: Optional[Path] = None,
    ) -> None:
        """
        Initialize the setup wizard.

        Args:
            settings: Runtime settings
            cli: Cloud CLI port (gcloud in production, a fake in tests)
            confirm: Gate for enabling the service and writing .env
            console: Rich Console instance for output (injected dependency)
            environ: Read-only environment mapping (default: snapshot of os.environ)
            probe: API probe (default: one built on ``cli``)
            env_file: Where to offer writing missing variables (default: ./.env)
        """
        self.settings = settings
        self.cli = cli
        self.confirm = confirm
        self.console = console or Console()
        self.environ = environment_snapshot() if environ is None else environ
        self.probe = probe or ApiProbe(cli, timeout=settings.http_timeout)
        self.env_file = env_file or Path.cwd() / ".env"
        self.reporter = UsageReporter(
            console=self.console,
            model_id=settings.model_id,
            use_search_grounding=settings.use_search_grounding,
        )

    async def run(self) -> WorkflowReport:
        """
        Run all six stages.

        Returns:
            The ordered stage results

        Raises:
            CollaboratorMissing: If gcloud cannot be executed
            ProjectNotConfigured: If gcloud has no active project
        """
        self._display_welcome()
        context = await self._resolve_project()
        report = WorkflowReport(context=context)

        self._step_header(1, "Checking Vertex AI service enablement")
        report.record(await self._step_service(context))

        self._step_header(2, "Listing available models")
        report.record(await self._step_models(context))

        self._step_header(3, "Configuring Application Default Credentials")
        report.record(await self._step_credentials(context))

        self._step_header(4, "Verifying environment variables")
        report.record(self._step_environment(context))

        self._step_header(5, "Testing the Vertex AI API")
        report.record(await self._step_probe(context))

        self._step_header(6, "Usage instructions")
        report.record(StageResult(Stage.USAGE, StageStatus.OK, "printed below"))
        self.reporter.report(report)

        logger.info("Workflow finished: %s", report.state.value)
        return report

    def _display_welcome(self) -> None:
        welcome_text = (
            "[bold cyan]Vertex AI Setup[/bold cyan]\n\n"
            "This tool will:\n"
            f"  • check that {SERVICE_NAME} is enabled (and enable it)\n"
            "  • list the models available in your region\n"
            "  • set up Application Default Credentials\n"
            "  • verify your environment variables\n"
            "  • make one sample Gemini API call\n"
            "  • print usage instructions"
        )
        self.console.print(Panel(welcome_text, border_style="cyan", padding=(1, 2)))

    def _step_header(self, number: int, title: str) -> None:
        self.console.print(f"\n[bold cyan]Step {number}/{TOTAL_STEPS}: {title}[/bold cyan]")

    async def _resolve_project(self) -> ProjectContext:
        try:
            project_id = await self.cli.active_project()
        except CollaboratorMissing:
            raise
        except SetupError as e:
            raise ProjectNotConfigured("could not read the active gcloud project", detail=str(e)) from e

        if not project_id:
            raise ProjectNotConfigured(
                "no Google Cloud project is set",
                detail="Run 'gcloud config set project YOUR_PROJECT_ID' and try again.",
            )

        context = ProjectContext(project_id=project_id, region=self.settings.region)
        self.console.print(
            create_key_value_table(
                {"Project": context.project_id, "Region": context.region, "Model": self.settings.model_id}
            )
        )
        return context

    async def _guarded(
        self,
        stage: Stage,
        attempted: str,
        awaitable: Awaitable[Any],
        spinner: bool = False,
    ) -> tuple[Any, Optional[StageResult]]:
        """Await a stage operation, turning stage-local errors into a failed result."""
        try:
            if spinner:
                with create_spinner(self.console) as progress:
                    progress.add_task(attempted, total=None)
                    return await awaitable, None
            return await awaitable, None
        except CollaboratorMissing:
            raise
        except SetupError as e:
            return None, self._failure(stage, attempted, e)

    def _failure(
        self,
        stage: Stage,
        attempted: str,
        error: SetupError,
        status: StageStatus = StageStatus.FAILED,
        value: Any = None,
    ) -> StageResult:
        logger.debug("%s failed while %s", stage.value, attempted, exc_info=error)
        self.console.print(
            create_error_panel(f"{stage.value}: failed while {attempted}", details=str(error))
        )
        return StageResult(stage, status, f"{type(error).__name__}: {error.message}", error, value)

    async def _step_service(self, context: ProjectContext) -> StageResult:
        outcome, failed = await self._guarded(
            Stage.SERVICE,
            "checking enabled services",
            check_and_enable(self.cli, context, self.confirm, self.console),
        )
        if failed is not None:
            failed.value = ServiceStatus.UNKNOWN
            return failed

        status = outcome.status
        if status is ServiceStatus.ENABLED:
            self.console.print(f"[green]✓ {SERVICE_NAME} is enabled[/green]")
            return StageResult(Stage.SERVICE, StageStatus.OK, "enabled", value=status)
        if status is ServiceStatus.DISABLED:
            self.console.print("[yellow]⚠ Enablement skipped; later stages may fail.[/yellow]")
            return StageResult(Stage.SERVICE, StageStatus.SKIPPED, "not enabled (declined)", value=status)

        self.console.print(f"[red]✗ {SERVICE_NAME} could not be confirmed as enabled[/red]")
        if outcome.error is not None:
            summary = f"{type(outcome.error).__name__}: {outcome.error.message}"
        else:
            summary = "enablement not confirmed"
        return StageResult(Stage.SERVICE, StageStatus.FAILED, summary, outcome.error, status)

    async def _step_models(self, context: ProjectContext) -> StageResult:
        models, failed = await self._guarded(
            Stage.MODELS, "listing models", list_models(self.cli, context), spinner=True
        )
        if failed is not None:
            return failed

        display_models(models, self.console)
        summary = f"{len(models)} model(s)" if models else "no models found"
        return StageResult(Stage.MODELS, StageStatus.OK, summary, value=models)

    async def _step_credentials(self, context: ProjectContext) -> StageResult:
        self.console.print(
            "Running [cyan]gcloud auth application-default login[/cyan]. "
            "Follow the prompts in your browser or terminal."
        )
        _, failed = await self._guarded(
            Stage.CREDENTIALS,
            "bootstrapping Application Default Credentials",
            ensure_credentials(self.cli, context),
        )
        if failed is not None:
            return failed

        self.console.print("[green]✓ Application Default Credentials configured[/green]")
        return StageResult(Stage.CREDENTIALS, StageStatus.OK, "configured")

    def _step_environment(self, context: ProjectContext) -> StageResult:
        result = verify_environment(REQUIRED_ENV_VARS, self.environ)
        display_environment_results(result, self.environ, self.console)

        if result.missing:
            self._offer_env_file(result.missing, context)

        total = len(result.checks)
        summary = f"{total - len(result.missing)}/{total} set"
        if result.missing:
            summary += f"; missing: {', '.join(result.missing)}"
        return StageResult(Stage.ENVIRONMENT, StageStatus.OK, summary, value=result)

    def _offer_env_file(self, missing: list[str], context: ProjectContext) -> None:
        """Offer to persist known values to .env, only with explicit consent."""
        values = {
            "VERTEX_AI_PROJECT_ID": context.project_id,
            "VERTEX_AI_REGION": context.region,
        }
        writable = {name: values[name] for name in missing if name in values}
        if not writable or not self.confirm.interactive:
            return

        names = ", ".join(writable)
        if not self.confirm.confirm(f"Write {names} to {self.env_file}?", default=False):
            return

        self.env_file.touch(exist_ok=True)
        for name, value in writable.items():
            set_key(str(self.env_file), name, value)
        self.console.print(
            f"[green]✓ Saved {names} to {self.env_file}[/green] "
            "[dim](loaded automatically on the next run)[/dim]"
        )

    async def _step_probe(self, context: ProjectContext) -> StageResult:
        settings = self.settings
        endpoint = build_endpoint(context.project_id, context.region, settings.model_id)
        grounding = " with Google Search grounding" if settings.use_search_grounding else ""
        self.console.print(f"Calling [cyan]{settings.model_id}[/cyan]{grounding}...")

        with create_spinner(self.console) as progress:
            progress.add_task("Waiting for the model...", total=None)
            result = await self.probe.probe(
                endpoint, settings.model_id, settings.prompt, settings.use_search_grounding
            )

        if result.error is not None:
            return self._failure(Stage.API_PROBE, f"calling {endpoint}", result.error, value=result)

        self.console.print(
            create_panel(
                Text(result.response_text or ""),
                title="[bold green]✓ API test successful[/bold green]",
                border_style="green",
                subtitle=f"{result.latency_seconds:.2f}s",
            )
        )
        if result.grounding_sources:
            self.console.print("[bold yellow]Grounding sources:[/bold yellow]")
            for source in result.grounding_sources:
                self.console.print(f"  • {escape(source)}")

        summary = f"HTTP {result.status_code} in {result.latency_seconds:.2f}s"
        return StageResult(Stage.API_PROBE, StageStatus.OK, summary, value=result)

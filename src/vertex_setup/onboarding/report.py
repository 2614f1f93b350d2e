"""Final usage instructions and troubleshooting."""

import logging
from typing import Optional

import click
from rich.console import Console
from rich.text import Text

from ..core.models import (
    DEFAULT_MODEL_ID,
    SERVICE_NAME,
    ProjectContext,
    Stage,
    StageStatus,
    WorkflowReport,
    WorkflowState,
)
from ..ui.components import (
    create_panel,
    create_stage_table,
    create_success_panel,
    create_syntax,
    create_warning_panel,
)
from .probe import build_endpoint, search_tool_for

logger = logging.getLogger(__name__)

SHELL_SNIPPET = """\
ACCESS_TOKEN=$(gcloud auth print-access-token)
curl -s -X POST \\
  -H "Authorization: Bearer $ACCESS_TOKEN" \\
  -H "Content-Type: application/json" \\
  "{endpoint}" \\
  -d '{{"contents": [{{"role": "user", "parts": [{{"text": "Hello"}}]}}]}}'
"""

PYTHON_IMPORTS = {
    "plain": "from vertexai.generative_models import GenerativeModel",
    "search": "from vertexai.generative_models import GenerativeModel, Tool",
    "retrieval": "from vertexai.generative_models import GenerativeModel, Tool, grounding",
}
PYTHON_TOOLS = {
    "search": 'search = Tool.from_dict({"google_search": {}})',
    "retrieval": "search = Tool.from_google_search_retrieval(grounding.GoogleSearchRetrieval())",
}


def python_snippet(project: str, region: str, model_id: str, use_search_grounding: bool) -> str:
    """Python SDK example matching the request the probe sends."""
    if not use_search_grounding:
        kind = "plain"
    elif "googleSearchRetrieval" in search_tool_for(model_id):
        kind = "retrieval"
    else:
        kind = "search"

    lines = [
        "import vertexai",
        PYTHON_IMPORTS[kind],
        "",
        f'vertexai.init(project="{project}", location="{region}")',
        f'model = GenerativeModel("{model_id}")',
    ]
    if kind == "plain":
        lines.append('response = model.generate_content("Hello")')
    else:
        lines.append(PYTHON_TOOLS[kind])
        lines.append('response = model.generate_content("Hello", tools=[search])')
    lines.append("print(response.text)")
    return "\n".join(lines) + "\n"


TROUBLESHOOTING: dict[Stage, str] = {
    Stage.SERVICE: (
        f"Enablement of {SERVICE_NAME} could not be confirmed. Enable it manually:\n"
        f"  gcloud services enable {SERVICE_NAME} --project {{project}}"
    ),
    Stage.MODELS: (
        "Model listing failed. Check access with:\n"
        "  gcloud ai models list --region {region} --project {project}"
    ),
    Stage.CREDENTIALS: (
        "Application Default Credentials were not configured. Run:\n"
        "  gcloud auth application-default login --project {project}"
    ),
    Stage.API_PROBE: (
        "The sample API call failed. Verify your account with:\n"
        "  gcloud auth print-access-token\n"
        "and re-run vertex-setup to retry the call."
    ),
}


class UsageReporter:
    """Prints the consolidated outcome and follow-up guidance."""

    def __init__(
        self,
        console: Optional[Console] = None,
        model_id: str = DEFAULT_MODEL_ID,
        use_search_grounding: bool = True,
    ) -> None:
        self.console = console or Console()
        self.model_id = model_id
        self.use_search_grounding = use_search_grounding

    def report(self, report: WorkflowReport) -> None:
        """
        Print the summary. Never raises.

        Rendering errors degrade to a plain-text version of the same content.
        """
        try:
            self._render(report)
        except Exception as e:
            logger.debug("Rich rendering failed, falling back to plain text", exc_info=True)
            click.echo(f"(formatting error: {e})", err=True)
            try:
                click.echo(self.plain_text(report))
            except Exception:
                logger.debug("Plain-text summary failed", exc_info=True)
                for result in report.results:
                    click.echo(f"{result.stage.value}: {result.status.value}")

    def _context(self, report: WorkflowReport) -> ProjectContext:
        return report.context or ProjectContext(project_id="PROJECT_ID")

    def _render(self, report: WorkflowReport) -> None:
        context = self._context(report)
        endpoint = build_endpoint(context.project_id, context.region, self.model_id)
        console = self.console

        console.print(create_stage_table(report.results))

        console.print("\n[bold yellow]Authentication[/bold yellow]")
        console.print("  [cyan]gcloud auth login[/cyan]")
        console.print("  [cyan]gcloud auth application-default login[/cyan]")

        console.print("\n[bold yellow]Calling the API from the shell[/bold yellow]")
        console.print(create_syntax(SHELL_SNIPPET.format(endpoint=endpoint), "bash"))

        console.print("\n[bold yellow]Calling the API from Python[/bold yellow]")
        console.print(
            create_syntax(
                python_snippet(context.project_id, context.region, self.model_id, self.use_search_grounding)
            )
        )

        console.print("\n[bold yellow]Endpoint[/bold yellow]")
        console.print(f"  [cyan]{endpoint}[/cyan]")

        notes = self.troubleshooting_notes(report)
        if notes:
            console.print(
                create_panel(Text("\n\n".join(notes)), title="[bold yellow]Troubleshooting[/bold yellow]", border_style="yellow")
            )

        if report.state is WorkflowState.COMPLETED_FULL:
            console.print(create_success_panel("Setup complete. All stages succeeded."))
        else:
            names = ", ".join(result.stage.value for result in report.degraded)
            console.print(
                create_warning_panel(
                    f"Setup finished with {len(report.degraded)} stage(s) needing attention.",
                    details=names,
                )
            )
        console.print("[dim]Docs: https://cloud.google.com/vertex-ai/docs[/dim]")

    def troubleshooting_notes(self, report: WorkflowReport) -> list[str]:
        """One note per failed or skipped stage, plus missing env vars."""
        context = self._context(report)
        notes: list[str] = []

        for result in report.results:
            if result.status is StageStatus.OK or result.stage not in TROUBLESHOOTING:
                continue
            note = TROUBLESHOOTING[result.stage].format(project=context.project_id, region=context.region)
            if result.error is not None:
                note += f"\n  Error: {result.error}"
            notes.append(note)

        env_check = report.env_check
        if env_check is not None and env_check.missing:
            lines = ["Missing environment variables:"]
            for advisory in env_check.advisories():
                lines.append(f"  {advisory.name}: {advisory.guidance}")
            notes.append("\n".join(lines))

        return notes

    def plain_text(self, report: WorkflowReport) -> str:
        """Render the summary without any markup."""
        context = self._context(report)
        lines = ["Setup summary:"]
        for result in report.results:
            lines.append(f"  [{result.status.value.upper()}] {result.stage.value}: {result.summary}")
        lines.append("")
        lines.append(f"Endpoint: {build_endpoint(context.project_id, context.region, self.model_id)}")
        for note in self.troubleshooting_notes(report):
            lines.append("")
            lines.append(note)
        return "\n".join(lines)

"""Capability interfaces the workflow depends on.

The production cloud CLI lives in :mod:`vertex_setup.core.gcloud`; tests use an
in-memory fake with scripted outputs.
"""

from typing import Any, Protocol

from rich.console import Console
from rich.prompt import Confirm


class CloudCliPort(Protocol):
    """One coroutine per cloud CLI operation the workflow needs."""

    async def active_project(self) -> str:
        """Return the active project id, or an empty string if unset."""
        ...

    async def is_service_enabled(self, project_id: str, service: str) -> bool:
        ...

    async def enable_service(self, project_id: str, service: str) -> None:
        ...

    async def list_models(self, project_id: str, region: str) -> list[dict[str, Any]]:
        """Return raw model records in the order the CLI produced them."""
        ...

    async def bootstrap_credentials(self, project_id: str) -> int:
        """Run the interactive ADC login and return its exit code."""
        ...

    async def mint_token(self) -> str:
        ...


class ConfirmationPort(Protocol):
    """Yes/no gate in front of actions that change cloud or local state."""

    interactive: bool

    def confirm(self, message: str, default: bool = False) -> bool:
        ...


class AutoApprove:
    """Approves every gate. Used when stdin is not a terminal and in tests."""

    interactive = False

    def __init__(self) -> None:
        self.asked: list[str] = []

    def confirm(self, message: str, default: bool = False) -> bool:
        self.asked.append(message)
        return True


class RichConfirmation:
    """Asks the user on the terminal with ``rich.prompt.Confirm``."""

    interactive = True

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def confirm(self, message: str, default: bool = False) -> bool:
        return Confirm.ask(message, default=default, console=self.console)

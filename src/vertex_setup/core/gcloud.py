"""gcloud-backed implementation of the cloud CLI port."""

import asyncio
import json
import logging
import shutil
from dataclasses import dataclass
from typing import Any, Optional

from .errors import (
    AuthError,
    CollaboratorMissing,
    CommandFailed,
    classify_command_failure,
)

logger = logging.getLogger(__name__)

# stderr gcloud prints when a list command matches nothing
EMPTY_LISTING_MARKERS = ("not find any resources", "Listed 0 items")


@dataclass
class CommandOutput:
    """Captured result of a finished gcloud invocation."""

    argv: list[str]
    returncode: int
    stdout: str
    stderr: str


def find_gcloud(executable: str = "gcloud") -> str:
    """
    Locate the gcloud executable.

    Raises:
        CollaboratorMissing: If it is not on PATH.
    """
    path = shutil.which(executable)
    if not path:
        raise CollaboratorMissing(
            f"'{executable}' not found on PATH",
            detail="Install the Google Cloud CLI: https://cloud.google.com/sdk/docs/install",
        )
    return path


def _service_matches(entry: Any, service: str) -> bool:
    if not isinstance(entry, dict):
        return False
    config = entry.get("config")
    if isinstance(config, dict) and config.get("name") == service:
        return True
    return str(entry.get("name", "")).endswith(f"/services/{service}")


class GcloudCli:
    """Runs gcloud as an asyncio subprocess, one command at a time."""

    TERMINATE_TIMEOUT = 5.0

    def __init__(self, executable: str = "gcloud") -> None:
        self.executable = executable
        self.process: Optional[asyncio.subprocess.Process] = None

    async def _run(self, *args: str, check: bool = True) -> CommandOutput:
        argv = [self.executable, *args]
        logger.debug("Running: %s", " ".join(argv))
        try:
            self.process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                stdin=asyncio.subprocess.DEVNULL,
            )
        except FileNotFoundError as e:
            raise CollaboratorMissing(f"'{self.executable}' could not be executed", str(e)) from e

        try:
            stdout, stderr = await self.process.communicate()
        finally:
            await self._cleanup_process()

        output = CommandOutput(
            argv=argv,
            returncode=self.process.returncode if self.process else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
        self.process = None
        logger.debug("Exit code %d: %s", output.returncode, " ".join(argv))

        if check and output.returncode != 0:
            raise classify_command_failure(argv, output.returncode, output.stderr)
        return output

    async def _cleanup_process(self) -> None:
        """Terminate the child if we were cancelled while it was running."""
        if self.process is None or self.process.returncode is not None:
            return
        try:
            self.process.terminate()
            try:
                await asyncio.wait_for(self.process.wait(), timeout=self.TERMINATE_TIMEOUT)
            except asyncio.TimeoutError:
                self.process.kill()
                await self.process.wait()
        except ProcessLookupError:
            pass

    @staticmethod
    def _parse_json(output: CommandOutput) -> Any:
        text = output.stdout.strip()
        if not text:
            return []
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise CommandFailed(
                output.argv, output.returncode, f"unparseable JSON output: {e}"
            ) from e

    async def active_project(self) -> str:
        output = await self._run("config", "get-value", "project")
        project = output.stdout.strip()
        return "" if project == "(unset)" else project

    async def is_service_enabled(self, project_id: str, service: str) -> bool:
        output = await self._run(
            "services", "list", "--enabled",
            "--project", project_id,
            "--format=json",
        )
        services = self._parse_json(output)
        if not isinstance(services, list):
            raise CommandFailed(output.argv, output.returncode, "expected a JSON list of services")
        return any(_service_matches(entry, service) for entry in services)

    async def enable_service(self, project_id: str, service: str) -> None:
        await self._run("services", "enable", service, "--project", project_id)

    async def list_models(self, project_id: str, region: str) -> list[dict[str, Any]]:
        output = await self._run(
            "ai", "models", "list",
            "--region", region,
            "--project", project_id,
            "--format=json",
            check=False,
        )
        if output.returncode != 0:
            if any(marker in output.stderr for marker in EMPTY_LISTING_MARKERS):
                return []
            raise classify_command_failure(output.argv, output.returncode, output.stderr)
        models = self._parse_json(output)
        if not isinstance(models, list):
            raise CommandFailed(output.argv, output.returncode, "expected a JSON list of models")
        return models

    async def bootstrap_credentials(self, project_id: str) -> int:
        """
        Run ``gcloud auth application-default login``.

        The child inherits the terminal so browser hand-off and prompts reach
        the user directly. Output is never captured.
        """
        argv = [self.executable, "auth", "application-default", "login", "--project", project_id]
        logger.debug("Running (interactive): %s", " ".join(argv))
        try:
            self.process = await asyncio.create_subprocess_exec(*argv)
        except FileNotFoundError as e:
            raise CollaboratorMissing(f"'{self.executable}' could not be executed", str(e)) from e
        try:
            returncode = await self.process.wait()
        finally:
            await self._cleanup_process()
            self.process = None
        logger.debug("Exit code %d: %s", returncode, " ".join(argv))
        return returncode

    async def mint_token(self) -> str:
        try:
            output = await self._run("auth", "print-access-token")
        except CommandFailed as e:
            raise AuthError("could not obtain an access token", detail=e.stderr) from e
        token = output.stdout.strip()
        if not token:
            raise AuthError(
                "empty access token received",
                detail="Run 'gcloud auth login' and try again.",
            )
        return token

"""Error taxonomy for the setup workflow.

Stage-local errors are caught by the wizard at the stage boundary and recorded
as failed stage results. Only ``CollaboratorMissing`` and
``ProjectNotConfigured`` abort the run.
"""

from typing import Optional


class SetupError(Exception):
    """Base class for every error raised by vertex-setup."""

    def __init__(self, message: str, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail.strip() if detail else None

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message


class CollaboratorMissing(SetupError):
    """The external cloud CLI could not be found or executed."""


class ProjectNotConfigured(SetupError):
    """No active project is configured in the cloud CLI."""


class CommandFailed(SetupError):
    """A cloud CLI command exited with a non-zero status."""

    def __init__(self, command: list[str], returncode: int, stderr: str = "") -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"'{' '.join(self.command)}' exited with code {returncode}",
            detail=stderr or None,
        )


class PermissionDenied(CommandFailed):
    """The active account lacks permission for the requested operation."""


class AuthError(SetupError):
    """Authentication failed, either minting a token or calling the API."""

    def __init__(
        self,
        message: str,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, detail)
        self.status_code = status_code


class TransportError(SetupError):
    """The HTTP request did not complete or returned an error status."""

    def __init__(
        self,
        message: str,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, detail)
        self.status_code = status_code


class UnexpectedResponseShape(SetupError):
    """The API answered successfully but without the expected fields."""


class CredentialError(SetupError):
    """Application Default Credentials bootstrap exited non-zero."""

    def __init__(self, returncode: int) -> None:
        super().__init__(
            f"credential bootstrap exited with code {returncode}",
        )
        self.returncode = returncode


class EnvVarMissing(SetupError):
    """Advisory: an expected environment variable is not set."""

    def __init__(self, name: str, guidance: str) -> None:
        super().__init__(f"{name} is not set", detail=guidance)
        self.name = name
        self.guidance = guidance


# gcloud stderr fragments used to classify failures
PERMISSION_MARKERS = (
    "PERMISSION_DENIED",
    "does not have permission",
    "Permission denied",
)
AUTH_MARKERS = (
    "UNAUTHENTICATED",
    "You do not currently have an active account selected",
    "Reauthentication failed",
    "gcloud auth login",
    "invalid_grant",
)


def classify_command_failure(
    command: list[str], returncode: int, stderr: str
) -> SetupError:
    """Map a failed gcloud invocation to the most specific error type."""
    if any(marker in stderr for marker in PERMISSION_MARKERS):
        return PermissionDenied(command, returncode, stderr)
    if any(marker in stderr for marker in AUTH_MARKERS):
        return AuthError(
            f"'{' '.join(command)}' failed to authenticate", detail=stderr
        )
    return CommandFailed(command, returncode, stderr)

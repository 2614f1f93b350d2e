"""Unit tests for the gcloud-backed cloud CLI.

Subprocesses are never spawned: ``asyncio.create_subprocess_exec`` is patched
to return a mock process with canned output.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from vertex_setup.core.errors import (
    AuthError,
    CollaboratorMissing,
    CommandFailed,
    PermissionDenied,
    classify_command_failure,
)
from vertex_setup.core.gcloud import GcloudCli, find_gcloud
from vertex_setup.core.models import SERVICE_NAME

from tests.utils.fixtures import (
    ENABLED_SERVICES,
    GCLOUD_PERMISSION_STDERR,
    MODEL_RECORDS,
    PROJECT_ID,
    REGION,
    SERVICES_WITHOUT_VERTEX,
)

# ============================================================================
# Fixtures
# ============================================================================


def make_process(stdout: str = "", stderr: str = "", returncode: int = 0) -> AsyncMock:
    """Create a finished mock asyncio subprocess."""
    process = AsyncMock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(stdout.encode(), stderr.encode()))
    process.wait = AsyncMock(return_value=returncode)
    process.terminate = MagicMock()
    process.kill = MagicMock()
    return process


@pytest.fixture
def gcloud():
    return GcloudCli("/usr/bin/gcloud")


# ============================================================================
# Command tests
# ============================================================================


class TestCommands:
    """Tests for the individual gcloud commands."""

    @pytest.mark.asyncio
    async def test_active_project(self, gcloud):
        process = make_process(stdout=f"{PROJECT_ID}\n")
        with patch("asyncio.create_subprocess_exec", return_value=process) as exec_mock:
            project = await gcloud.active_project()

        assert project == PROJECT_ID
        assert exec_mock.call_args.args == ("/usr/bin/gcloud", "config", "get-value", "project")
        assert gcloud.process is None

    @pytest.mark.asyncio
    async def test_active_project_unset(self, gcloud):
        with patch("asyncio.create_subprocess_exec", return_value=make_process(stdout="(unset)\n")):
            assert await gcloud.active_project() == ""

    @pytest.mark.asyncio
    async def test_service_enabled(self, gcloud):
        process = make_process(stdout=json.dumps(ENABLED_SERVICES))
        with patch("asyncio.create_subprocess_exec", return_value=process) as exec_mock:
            assert await gcloud.is_service_enabled(PROJECT_ID, SERVICE_NAME) is True

        args = exec_mock.call_args.args
        assert args[1:4] == ("services", "list", "--enabled")
        assert "--format=json" in args
        assert PROJECT_ID in args

    @pytest.mark.asyncio
    async def test_service_not_enabled(self, gcloud):
        process = make_process(stdout=json.dumps(SERVICES_WITHOUT_VERTEX))
        with patch("asyncio.create_subprocess_exec", return_value=process):
            assert await gcloud.is_service_enabled(PROJECT_ID, SERVICE_NAME) is False

    @pytest.mark.asyncio
    async def test_service_list_bad_json(self, gcloud):
        with patch("asyncio.create_subprocess_exec", return_value=make_process(stdout="{not json")):
            with pytest.raises(CommandFailed) as exc_info:
                await gcloud.is_service_enabled(PROJECT_ID, SERVICE_NAME)

        assert "unparseable JSON" in exc_info.value.stderr

    @pytest.mark.asyncio
    async def test_service_list_skips_non_dict_entries(self, gcloud):
        services = ["aiplatform.googleapis.com", None, {"config": "aiplatform"}, *ENABLED_SERVICES]
        with patch("asyncio.create_subprocess_exec", return_value=make_process(stdout=json.dumps(services))):
            assert await gcloud.is_service_enabled(PROJECT_ID, SERVICE_NAME) is True

    @pytest.mark.asyncio
    async def test_service_list_not_a_list(self, gcloud):
        process = make_process(stdout=json.dumps({"services": ENABLED_SERVICES}))
        with patch("asyncio.create_subprocess_exec", return_value=process):
            with pytest.raises(CommandFailed) as exc_info:
                await gcloud.is_service_enabled(PROJECT_ID, SERVICE_NAME)

        assert "expected a JSON list" in exc_info.value.stderr

    @pytest.mark.asyncio
    async def test_enable_permission_denied(self, gcloud):
        process = make_process(stderr=GCLOUD_PERMISSION_STDERR, returncode=1)
        with patch("asyncio.create_subprocess_exec", return_value=process):
            with pytest.raises(PermissionDenied) as exc_info:
                await gcloud.enable_service(PROJECT_ID, SERVICE_NAME)

        assert exc_info.value.returncode == 1
        assert exc_info.value.command[1:4] == ["services", "enable", SERVICE_NAME]

    @pytest.mark.asyncio
    async def test_list_models(self, gcloud):
        process = make_process(stdout=json.dumps(MODEL_RECORDS))
        with patch("asyncio.create_subprocess_exec", return_value=process) as exec_mock:
            models = await gcloud.list_models(PROJECT_ID, REGION)

        assert models == MODEL_RECORDS
        args = exec_mock.call_args.args
        assert args[1:4] == ("ai", "models", "list")
        assert REGION in args

    @pytest.mark.asyncio
    @pytest.mark.parametrize("stdout", ["", "[]"])
    async def test_list_models_empty_output(self, gcloud, stdout):
        with patch("asyncio.create_subprocess_exec", return_value=make_process(stdout=stdout)):
            assert await gcloud.list_models(PROJECT_ID, REGION) == []

    @pytest.mark.asyncio
    async def test_list_models_listed_zero_items(self, gcloud):
        process = make_process(stderr="Listed 0 items.\n", returncode=1)
        with patch("asyncio.create_subprocess_exec", return_value=process):
            assert await gcloud.list_models(PROJECT_ID, REGION) == []

    @pytest.mark.asyncio
    async def test_list_models_permission_denied(self, gcloud):
        process = make_process(stderr=GCLOUD_PERMISSION_STDERR, returncode=1)
        with patch("asyncio.create_subprocess_exec", return_value=process):
            with pytest.raises(PermissionDenied):
                await gcloud.list_models(PROJECT_ID, REGION)

    @pytest.mark.asyncio
    async def test_list_models_not_a_list(self, gcloud):
        process = make_process(stdout=json.dumps({"models": []}))
        with patch("asyncio.create_subprocess_exec", return_value=process):
            with pytest.raises(CommandFailed):
                await gcloud.list_models(PROJECT_ID, REGION)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("returncode", [0, 1])
    async def test_bootstrap_credentials_returns_exit_code(self, gcloud, returncode):
        process = make_process(returncode=returncode)
        with patch("asyncio.create_subprocess_exec", return_value=process) as exec_mock:
            result = await gcloud.bootstrap_credentials(PROJECT_ID)

        assert result == returncode
        assert exec_mock.call_args.args[1:4] == ("auth", "application-default", "login")
        # inherits the terminal
        assert exec_mock.call_args.kwargs == {}
        process.communicate.assert_not_called()

    @pytest.mark.asyncio
    async def test_mint_token(self, gcloud):
        with patch("asyncio.create_subprocess_exec", return_value=make_process(stdout="ya29.abc\n")):
            assert await gcloud.mint_token() == "ya29.abc"

    @pytest.mark.asyncio
    async def test_mint_token_empty(self, gcloud):
        with patch("asyncio.create_subprocess_exec", return_value=make_process(stdout="\n")):
            with pytest.raises(AuthError):
                await gcloud.mint_token()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "stderr",
        [
            "ERROR: (gcloud.auth.print-access-token) something broke",
            "ERROR: You do not currently have an active account selected.",
        ],
    )
    async def test_mint_token_failure_is_auth_error(self, gcloud, stderr):
        with patch("asyncio.create_subprocess_exec", return_value=make_process(stderr=stderr, returncode=1)):
            with pytest.raises(AuthError):
                await gcloud.mint_token()

    @pytest.mark.asyncio
    async def test_missing_executable(self, gcloud):
        with patch("asyncio.create_subprocess_exec", side_effect=FileNotFoundError("gcloud")):
            with pytest.raises(CollaboratorMissing):
                await gcloud.active_project()


# ============================================================================
# Process cleanup
# ============================================================================


class TestCleanup:
    """Tests for child process cleanup."""

    @pytest.mark.asyncio
    async def test_cleanup_process_already_finished(self, gcloud):
        gcloud.process = make_process(returncode=0)

        await gcloud._cleanup_process()

        gcloud.process.terminate.assert_not_called()
        gcloud.process.kill.assert_not_called()

    @pytest.mark.asyncio
    async def test_cleanup_process_running(self, gcloud):
        process = make_process()
        process.returncode = None
        gcloud.process = process

        await gcloud._cleanup_process()

        process.terminate.assert_called_once()
        process.kill.assert_not_called()

    @pytest.mark.asyncio
    async def test_cleanup_process_timeout(self, gcloud):
        process = make_process()
        process.returncode = None
        gcloud.process = process

        with patch("asyncio.wait_for", side_effect=asyncio.TimeoutError()):
            await gcloud._cleanup_process()

        process.terminate.assert_called_once()
        process.kill.assert_called_once()

    @pytest.mark.asyncio
    async def test_cleanup_process_gone(self, gcloud):
        process = make_process()
        process.returncode = None
        process.terminate = MagicMock(side_effect=ProcessLookupError())
        gcloud.process = process

        await gcloud._cleanup_process()

        process.kill.assert_not_called()


# ============================================================================
# Discovery and classification
# ============================================================================


def test_find_gcloud_missing(monkeypatch):
    monkeypatch.setattr("shutil.which", lambda name: None)

    with pytest.raises(CollaboratorMissing) as exc_info:
        find_gcloud("gcloud")

    assert "not found on PATH" in exc_info.value.message
    assert "cloud.google.com/sdk" in exc_info.value.detail


def test_find_gcloud_found(monkeypatch):
    monkeypatch.setattr("shutil.which", lambda name: f"/opt/google-cloud-sdk/bin/{name}")

    assert find_gcloud("gcloud") == "/opt/google-cloud-sdk/bin/gcloud"


@pytest.mark.parametrize(
    "stderr, expected",
    [
        (GCLOUD_PERMISSION_STDERR, PermissionDenied),
        ("ERROR: (gcloud) UNAUTHENTICATED: request had invalid credentials", AuthError),
        ("ERROR: Reauthentication failed. Please run: gcloud auth login", AuthError),
        ("ERROR: (gcloud) Quota exceeded", CommandFailed),
    ],
)
def test_classify_command_failure(stderr, expected):
    error = classify_command_failure(["gcloud", "x"], 1, stderr)

    assert type(error) is expected
    assert stderr in str(error)

"""Shared pytest fixtures for vertex-setup tests.

Fixtures are organized by category:
- Cloud CLI fakes: an in-memory CloudCliPort with scripted outputs
- HTTP: httpx.MockTransport factories that record every request
- Configuration: settings, project context and environment mappings
- Console: a Rich console that captures output to a string
"""

import os
from typing import Callable, Dict

import pytest
from rich.console import Console

from vertex_setup.config.settings import Settings
from vertex_setup.core.models import ProjectContext
from vertex_setup.core.ports import AutoApprove
from vertex_setup.onboarding.probe import ApiProbe
from vertex_setup.ui.console import captured_console

from tests.utils.fixtures import PROJECT_ID, REGION
from tests.utils.test_helpers import FakeCloudCli, RecordingTransport

# =============================================================================
# Cloud CLI fakes
# =============================================================================


@pytest.fixture
def fake_cli() -> FakeCloudCli:
    """A cloud CLI where every operation succeeds and the service is enabled."""
    return FakeCloudCli()


@pytest.fixture
def auto_approve() -> AutoApprove:
    return AutoApprove()


# =============================================================================
# HTTP
# =============================================================================


@pytest.fixture
def make_transport() -> Callable[..., RecordingTransport]:
    """
    Factory for recording mock transports.

    Example:
        def test_probe(make_transport):
            recorder = make_transport(status_code=403, payload={"error": {}})
    """
    return RecordingTransport


@pytest.fixture
def make_probe() -> Callable[[FakeCloudCli, RecordingTransport], ApiProbe]:
    def factory(cli: FakeCloudCli, recorder: RecordingTransport, timeout: float = 5.0) -> ApiProbe:
        return ApiProbe(cli, timeout=timeout, transport=recorder.transport)

    return factory


# =============================================================================
# Configuration
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Non-interactive settings with grounding enabled."""
    return Settings(
        region=REGION,
        model_id="gemini-2.0-flash",
        prompt="What is Vertex AI?",
        use_search_grounding=True,
        http_timeout=5.0,
        interactive=False,
    )


@pytest.fixture
def project_context() -> ProjectContext:
    return ProjectContext(project_id=PROJECT_ID, region=REGION)


@pytest.fixture
def full_environ() -> Dict[str, str]:
    """Environment with every expected variable set."""
    return {
        "VERTEX_AI_PROJECT_ID": PROJECT_ID,
        "VERTEX_AI_REGION": REGION,
        "GOOGLE_APPLICATION_CREDENTIALS": "/home/dev/.config/gcloud/key.json",
        "PATH": "/usr/bin",
    }


@pytest.fixture
def clean_settings_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Remove VERTEX_SETUP_* variables and run from an empty directory."""
    for name in list(os.environ):
        if name.startswith("VERTEX_SETUP_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


# =============================================================================
# Console
# =============================================================================


@pytest.fixture
def console() -> Console:
    """Console capturing output; read it with ``console.file.getvalue()``."""
    return captured_console()

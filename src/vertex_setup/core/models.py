"""Transient data model for a single setup run."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import EnvVarMissing, SetupError

SERVICE_NAME = "aiplatform.googleapis.com"
DEFAULT_MODEL_ID = "gemini-2.0-flash"

_LOCATION_RE = re.compile(r"/locations/([^/]+)/")


class ProjectContext(BaseModel):
    """Active project and region, fixed for the lifetime of the run."""

    model_config = ConfigDict(frozen=True)

    project_id: str = Field(..., description="Active Google Cloud project")
    region: str = Field("us-central1", description="Vertex AI location")

    @field_validator("project_id", "region")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject empty identifiers."""
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class ServiceStatus(Enum):
    """Enablement state of the Vertex AI service."""

    UNKNOWN = "unknown"
    DISABLED = "disabled"
    ENABLED = "enabled"
    ENABLE_FAILED = "enable_failed"


@dataclass(frozen=True)
class EnablementOutcome:
    """Service status after the enablement check, with the failure if any."""

    status: ServiceStatus
    error: Optional[SetupError] = None


class ModelDescriptor(BaseModel):
    """A model entry as reported by ``gcloud ai models list``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str
    display_name: str = Field("", alias="displayName")
    description: str = ""
    supported_regions: tuple[str, ...] = Field((), alias="supportedRegions")

    @model_validator(mode="before")
    @classmethod
    def derive_region_from_name(cls, data: Any) -> Any:
        """Fill supported_regions from the resource name when absent."""
        if not isinstance(data, dict):
            return data
        if data.get("supportedRegions") or data.get("supported_regions"):
            return data
        match = _LOCATION_RE.search(str(data.get("name", "")))
        if match:
            data = {**data, "supportedRegions": (match.group(1),)}
        return data

    @property
    def label(self) -> str:
        return self.display_name or self.name.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class EnvVarCheckResult:
    """Presence of each expected environment variable, in check order."""

    checks: dict[str, bool]
    guidance: dict[str, str] = field(default_factory=dict)

    @property
    def missing(self) -> list[str]:
        return [name for name, present in self.checks.items() if not present]

    @property
    def all_present(self) -> bool:
        return not self.missing

    def advisories(self) -> list[EnvVarMissing]:
        """Return one advisory per missing variable."""
        return [
            EnvVarMissing(name, self.guidance.get(name, "")) for name in self.missing
        ]


@dataclass
class ApiProbeResult:
    """Outcome of the single sample generateContent request."""

    request_payload: dict[str, Any]
    response_text: Optional[str] = None
    error: Optional[SetupError] = None
    latency_seconds: float = 0.0
    status_code: Optional[int] = None
    grounding_sources: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None and self.response_text is not None


class Stage(Enum):
    """The six workflow stages, in execution order."""

    SERVICE = "Service enablement"
    MODELS = "Model listing"
    CREDENTIALS = "Credentials"
    ENVIRONMENT = "Environment variables"
    API_PROBE = "API probe"
    USAGE = "Usage instructions"


class StageStatus(Enum):
    OK = "ok"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class StageResult:
    """Tagged outcome of one stage."""

    stage: Stage
    status: StageStatus
    summary: str
    error: Optional[SetupError] = None
    value: Any = None

    @property
    def ok(self) -> bool:
        return self.status is StageStatus.OK


class WorkflowState(Enum):
    NOT_STARTED = "not_started"
    COMPLETED_FULL = "completed_full"
    COMPLETED_DEGRADED = "completed_degraded"


@dataclass
class WorkflowReport:
    """Ordered stage results threaded through the pipeline."""

    context: Optional[ProjectContext] = None
    results: list[StageResult] = field(default_factory=list)

    def record(self, result: StageResult) -> StageResult:
        self.results.append(result)
        return result

    def get(self, stage: Stage) -> Optional[StageResult]:
        for result in self.results:
            if result.stage is stage:
                return result
        return None

    @property
    def degraded(self) -> list[StageResult]:
        return [r for r in self.results if not r.ok]

    @property
    def state(self) -> WorkflowState:
        if not self.results:
            return WorkflowState.NOT_STARTED
        if self.degraded:
            return WorkflowState.COMPLETED_DEGRADED
        return WorkflowState.COMPLETED_FULL

    @property
    def service_status(self) -> ServiceStatus:
        result = self.get(Stage.SERVICE)
        if result is None or not isinstance(result.value, ServiceStatus):
            return ServiceStatus.UNKNOWN
        return result.value

    @property
    def env_check(self) -> Optional[EnvVarCheckResult]:
        result = self.get(Stage.ENVIRONMENT)
        if result is None:
            return None
        return result.value

"""Core types, errors and cloud CLI access for vertex-setup."""

from vertex_setup.core.gcloud import GcloudCli, find_gcloud
from vertex_setup.core.models import (
    SERVICE_NAME,
    ApiProbeResult,
    EnablementOutcome,
    EnvVarCheckResult,
    ModelDescriptor,
    ProjectContext,
    ServiceStatus,
    Stage,
    StageResult,
    StageStatus,
    WorkflowReport,
    WorkflowState,
)
from vertex_setup.core.ports import AutoApprove, CloudCliPort, ConfirmationPort, RichConfirmation

__all__ = [
    "SERVICE_NAME",
    "ApiProbeResult",
    "AutoApprove",
    "CloudCliPort",
    "ConfirmationPort",
    "EnablementOutcome",
    "EnvVarCheckResult",
    "GcloudCli",
    "ModelDescriptor",
    "ProjectContext",
    "RichConfirmation",
    "ServiceStatus",
    "Stage",
    "StageResult",
    "StageStatus",
    "WorkflowReport",
    "WorkflowState",
    "find_gcloud",
]

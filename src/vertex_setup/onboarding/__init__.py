"""
Setup workflow for vertex-setup.

Each stage lives in its own function or class so it can be tested against a
fake cloud CLI; :class:`SetupWizard` runs them in order.
"""

from .checks import (
    REQUIRED_ENV_VARS,
    check_and_enable,
    display_environment_results,
    display_models,
    ensure_credentials,
    list_models,
    verify_environment,
)
from .probe import ApiProbe, build_endpoint, build_request_body, search_tool_for
from .report import UsageReporter, python_snippet
from .wizard import SetupWizard

__all__ = [
    "REQUIRED_ENV_VARS",
    "ApiProbe",
    "SetupWizard",
    "UsageReporter",
    "build_endpoint",
    "build_request_body",
    "check_and_enable",
    "display_environment_results",
    "display_models",
    "ensure_credentials",
    "list_models",
    "python_snippet",
    "search_tool_for",
    "verify_environment",
]

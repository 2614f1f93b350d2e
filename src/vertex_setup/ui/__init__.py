"""vertex-setup UI system - Rich terminal components."""

from vertex_setup.ui.components import (
    create_error_panel,
    create_key_value_table,
    create_panel,
    create_spinner,
    create_stage_table,
    create_success_panel,
    create_syntax,
    create_table,
    create_warning_panel,
)
from vertex_setup.ui.console import captured_console, configure_logging, create_console

__all__ = [
    "captured_console",
    "configure_logging",
    "create_console",
    "create_error_panel",
    "create_key_value_table",
    "create_panel",
    "create_spinner",
    "create_stage_table",
    "create_success_panel",
    "create_syntax",
    "create_table",
    "create_warning_panel",
]

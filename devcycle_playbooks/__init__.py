"""
DevCycle Playbooks: structured installation and lifecycle procedures served to coding agents
"""

from .config import ServiceConfig
from .exceptions import (
    DuplicatePlaybookError, PlaybookClientError, PlaybookConfigError, PlaybookError,
    PlaybookNotFoundError, PlaybookParameterError, PlaybookRenderError
)
from .registry import (
    Playbook, PlaybookKind, PlaybookLinter, PlaybookRegistry, PlaybookRenderer, create_default_registry
)

__version__ = "1.0.0"

__all__ = [
    "DuplicatePlaybookError", "Playbook", "PlaybookClientError", "PlaybookConfigError", "PlaybookError",
    "PlaybookKind", "PlaybookLinter", "PlaybookNotFoundError", "PlaybookParameterError",
    "PlaybookRegistry", "PlaybookRenderError", "PlaybookRenderer", "ServiceConfig",
    "create_default_registry",
]

"""
Playbook registry, rendering and linting
"""

from .linter import LintIssue, LintReport, PlaybookLinter
from .models import (
    ChecklistItem, CodeSample, EnvVar, Link, Parameter, Playbook, PlaybookKind,
    SdkVariant, Severity, Step, ToolReference, TroubleshootingEntry
)
from .playbook_registry import PlaybookRegistry, create_default_registry
from .renderer import PlaybookRenderer, resolve_parameters

__all__ = [
    "ChecklistItem", "CodeSample", "EnvVar", "Link", "LintIssue", "LintReport",
    "Parameter", "Playbook", "PlaybookKind", "PlaybookLinter", "PlaybookRegistry",
    "PlaybookRenderer", "SdkVariant", "Severity", "Step", "ToolReference",
    "TroubleshootingEntry", "create_default_registry", "resolve_parameters",
]

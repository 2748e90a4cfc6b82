"""
Data model for playbooks served to coding agents
"""

import re
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

PLAYBOOK_ID_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*$")


class PlaybookKind(str, Enum):
    FRAMEWORK_INSTALL = "framework_install"
    SDK_INSTALL = "sdk_install"
    LIFECYCLE = "lifecycle"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass
class Parameter:
    """Template variable substituted when a playbook is rendered"""
    name: str
    description: str
    default: Optional[str] = None
    required: bool = False


@dataclass
class EnvVar:
    """Environment variable the host application is expected to define"""
    name: str
    description: str
    secret: bool = True


@dataclass
class ToolReference:
    """External MCP tool an executing agent is expected to have"""
    name: str
    description: str
    mutating: bool = False


@dataclass
class CodeSample:
    language: str
    code: str
    title: str = ""
    filename: Optional[str] = None


@dataclass
class Step:
    title: str
    body: str
    code_samples: List[CodeSample] = field(default_factory=list)
    uses_tools: List[str] = field(default_factory=list)
    introduces_tools: List[ToolReference] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Step":
        return cls(
            title=data["title"],
            body=data.get("body", ""),
            code_samples=[CodeSample(**sample) for sample in data.get("code_samples", [])],
            uses_tools=list(data.get("uses_tools", [])),
            introduces_tools=[ToolReference(**tool) for tool in data.get("introduces_tools", [])],
        )


@dataclass
class TroubleshootingEntry:
    symptom: str
    cause: str
    remedy: str


@dataclass
class ChecklistItem:
    text: str
    blocking: bool = True


@dataclass
class Link:
    title: str
    url: str


@dataclass
class SdkVariant:
    """One SDK flavour listed by a multi-variant installation guide"""
    name: str
    package: str
    install_command: str
    platform: str


@dataclass
class Playbook:
    """A structured, parameterized procedure"""
    id: str
    title: str
    kind: PlaybookKind
    summary: str
    sdk: Optional[str] = None
    version: str = "1.0.0"
    tags: List[str] = field(default_factory=list)
    parameters: List[Parameter] = field(default_factory=list)
    env_vars: List[EnvVar] = field(default_factory=list)
    tools: List[ToolReference] = field(default_factory=list)
    prerequisites: List[str] = field(default_factory=list)
    variants: List[SdkVariant] = field(default_factory=list)
    steps: List[Step] = field(default_factory=list)
    checklist: List[ChecklistItem] = field(default_factory=list)
    troubleshooting: List[TroubleshootingEntry] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)

    def __post_init__(self):
        if not PLAYBOOK_ID_PATTERN.match(self.id):
            raise ValueError(f"Invalid playbook id: {self.id!r}")
        self.kind = PlaybookKind(self.kind)

    def tool_names(self) -> List[str]:
        """Names of all tools declared up front or introduced by a step"""
        names = [tool.name for tool in self.tools]
        for step in self.steps:
            for tool in step.introduces_tools:
                if tool.name not in names:
                    names.append(tool.name)
        return names

    def all_tools(self) -> List[ToolReference]:
        tools = list(self.tools)
        seen = {tool.name for tool in tools}
        for step in self.steps:
            for tool in step.introduces_tools:
                if tool.name not in seen:
                    seen.add(tool.name)
                    tools.append(tool)
        return tools

    def parameter(self, name: str) -> Optional[Parameter]:
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def summary_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "kind": self.kind.value,
            "summary": self.summary,
            "sdk": self.sdk,
            "version": self.version,
            "tags": list(self.tags),
            "step_count": len(self.steps),
            "tools": self.tool_names(),
        }

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Playbook":
        return cls(
            id=data["id"],
            title=data["title"],
            kind=PlaybookKind(data["kind"]),
            summary=data.get("summary", ""),
            sdk=data.get("sdk"),
            version=data.get("version", "1.0.0"),
            tags=list(data.get("tags", [])),
            parameters=[Parameter(**param) for param in data.get("parameters", [])],
            env_vars=[EnvVar(**var) for var in data.get("env_vars", [])],
            tools=[ToolReference(**tool) for tool in data.get("tools", [])],
            prerequisites=list(data.get("prerequisites", [])),
            variants=[SdkVariant(**variant) for variant in data.get("variants", [])],
            steps=[Step.from_dict(step) for step in data.get("steps", [])],
            checklist=[ChecklistItem(**item) for item in data.get("checklist", [])],
            troubleshooting=[TroubleshootingEntry(**entry) for entry in data.get("troubleshooting", [])],
            links=[Link(**link) for link in data.get("links", [])],
        )

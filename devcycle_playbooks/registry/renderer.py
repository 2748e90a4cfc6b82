"""
Playbook rendering: parameter resolution and Jinja2 templating through adalflow
"""

import logging
from typing import Any, Dict, Optional

from adalflow.core.prompt_builder import Prompt

from ..exceptions import PlaybookParameterError, PlaybookRenderError
from .models import Playbook

logger = logging.getLogger(__name__)


def resolve_parameters(playbook: Playbook, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
    """Merge parameter defaults with caller supplied values"""
    overrides = overrides or {}
    declared = {param.name for param in playbook.parameters}

    unknown = sorted(name for name in overrides if name not in declared)
    if unknown:
        raise PlaybookParameterError(
            f"Unknown parameters for {playbook.id}: {', '.join(unknown)}",
            unknown=unknown,
        )

    values: Dict[str, str] = {}
    missing = []
    for param in playbook.parameters:
        value = overrides.get(param.name, param.default)
        if value is None or value == "":
            if param.required:
                missing.append(param.name)
                continue
            value = ""
        values[param.name] = str(value)

    if missing:
        raise PlaybookParameterError(
            f"Missing required parameters for {playbook.id}: {', '.join(missing)}",
            missing=missing,
        )

    return values


class PlaybookRenderer:
    """Renders playbooks to markdown or to a structured dictionary"""

    def to_template(self, playbook: Playbook) -> str:
        """Build the unrendered markdown template for a playbook"""
        content = f"""# {playbook.title}

{playbook.summary}

"""

        if playbook.parameters:
            content += "## Parameters\n\n| Name | Value | Description |\n|------|-------|-------------|\n"
            for param in playbook.parameters:
                content += f"| `{param.name}` | `{{{{ {param.name} }}}}` | {param.description} |\n"
            content += "\n"

        if playbook.prerequisites:
            content += "## Prerequisites\n\n"
            for prerequisite in playbook.prerequisites:
                content += f"- {prerequisite}\n"
            content += "\n"

        if playbook.env_vars:
            content += "## Environment Variables\n\n"
            for var in playbook.env_vars:
                marker = " (secret)" if var.secret else ""
                content += f"- `{var.name}`{marker}: {var.description}\n"
            content += "\n"

        if playbook.variants:
            content += "## SDK Variants\n\n| SDK | Platform | Package | Install |\n|-----|----------|---------|---------|\n"
            for variant in playbook.variants:
                content += (
                    f"| {variant.name} | {variant.platform} | `{variant.package}` "
                    f"| `{variant.install_command}` |\n"
                )
            content += "\n"

        if playbook.tools:
            content += "## Required Tools\n\n| Tool | Mutating | Purpose |\n|------|----------|---------|\n"
            for tool in playbook.tools:
                content += f"| `{tool.name}` | {'yes' if tool.mutating else 'no'} | {tool.description} |\n"
            content += "\n"

        content += "## Steps\n\n"
        for number, step in enumerate(playbook.steps, start=1):
            content += f"### Step {number}: {step.title}\n\n{step.body.strip()}\n\n"
            for tool in step.introduces_tools:
                content += f"> Tool `{tool.name}`: {tool.description}\n\n"
            for sample in step.code_samples:
                if sample.title:
                    content += f"**{sample.title}**"
                    if sample.filename:
                        content += f" (`{sample.filename}`)"
                    content += "\n\n"
                content += f"```{sample.language}\n{sample.code.strip()}\n```\n\n"

        if playbook.checklist:
            content += "## Safety Checklist\n\n"
            for item in playbook.checklist:
                suffix = " **(blocking)**" if item.blocking else ""
                content += f"- [ ] {item.text}{suffix}\n"
            content += "\n"

        if playbook.troubleshooting:
            content += "## Troubleshooting\n\n"
            for entry in playbook.troubleshooting:
                content += (
                    f"### {entry.symptom}\n\n"
                    f"- **Likely cause**: {entry.cause}\n"
                    f"- **Remedy**: {entry.remedy}\n\n"
                )

        if playbook.links:
            content += "## References\n\n"
            for link in playbook.links:
                content += f"- [{link.title}]({link.url})\n"
            content += "\n"

        return content

    def render(self, playbook: Playbook, parameters: Optional[Dict[str, Any]] = None) -> str:
        """Render a playbook to markdown with parameters substituted"""
        values = resolve_parameters(playbook, parameters)
        rendered = self._render_text(self.to_template(playbook), values, playbook.id)
        logger.debug(f"Rendered playbook {playbook.id} ({len(rendered)} chars)")
        return rendered

    def render_structured(self, playbook: Playbook,
                          parameters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Render every text field of the playbook dictionary"""
        values = resolve_parameters(playbook, parameters)
        data = self._render_value(playbook.to_dict(), values, playbook.id)
        data["parameters_used"] = values
        return data

    def _render_value(self, value: Any, values: Dict[str, str], playbook_id: str) -> Any:
        if isinstance(value, str):
            if "{{" in value or "{%" in value or "{#" in value:
                return self._render_text(value, values, playbook_id)
            return value
        if isinstance(value, list):
            return [self._render_value(item, values, playbook_id) for item in value]
        if isinstance(value, dict):
            return {key: self._render_value(item, values, playbook_id) for key, item in value.items()}
        return value

    def _render_text(self, template: str, values: Dict[str, str], playbook_id: str) -> str:
        try:
            prompt = Prompt(template=template)
        except Exception as e:
            logger.error(f"Failed to render playbook {playbook_id}: {e}")
            raise PlaybookRenderError(f"Failed to render playbook {playbook_id}: {e}")

        # Prompt fills unknown variables with None instead of failing
        undeclared = sorted(set(prompt.prompt_variables) - set(values))
        if undeclared:
            logger.error(f"Playbook {playbook_id} uses undeclared placeholders: {', '.join(undeclared)}")
            raise PlaybookRenderError(
                f"Playbook {playbook_id} uses undeclared placeholders: {', '.join(undeclared)}"
            )

        try:
            return prompt.call(**values)
        except Exception as e:
            logger.error(f"Failed to render playbook {playbook_id}: {e}")
            raise PlaybookRenderError(f"Failed to render playbook {playbook_id}: {e}")

"""
Markdown Exporter for writing rendered playbooks to disk
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .exceptions import PlaybookParameterError
from .registry import Playbook, PlaybookRenderer, resolve_parameters

logger = logging.getLogger(__name__)


class MarkdownExporter:
    """Exports rendered playbooks to markdown files"""

    def __init__(self, output_dir: str = "docs_export", renderer: Optional[PlaybookRenderer] = None):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.renderer = renderer or PlaybookRenderer()

    async def export_playbooks(self, playbooks: Iterable[Playbook],
                               parameters: Optional[Dict[str, Dict[str, Any]]] = None) -> Dict[str, str]:
        """Export every playbook plus an index file

        ``parameters`` maps playbook ids to render parameters. Playbooks with
        required parameters that are not supplied keep their placeholders.
        """
        parameters = parameters or {}
        exported_files = {}

        try:
            # Export each playbook as a numbered file
            for number, playbook in enumerate(playbooks, start=1):
                file_name = f"{number:02d}-{self._sanitize_filename(playbook.id)}.md"
                file_path = await self.export_playbook(playbook, parameters.get(playbook.id), file_name)
                exported_files[playbook.id] = file_path

            # Create index file
            index_file = await self._create_index_file(exported_files)
            exported_files["_index"] = str(index_file)

            logger.info(f"Exported {len(exported_files) - 1} playbooks to {self.output_dir}")
            return exported_files

        except Exception as e:
            logger.error(f"Failed to export playbooks: {e}")
            raise

    async def export_playbook(self, playbook: Playbook, parameters: Optional[Dict[str, Any]] = None,
                              output_file: Optional[str] = None) -> str:
        """Export a single playbook to a markdown file"""
        if not output_file:
            output_file = f"{self._sanitize_filename(playbook.id)}.md"

        file_path = self.output_dir / output_file

        content = self._playbook_content(playbook, parameters)

        content += f"\n---\n\n*Playbook `{playbook.id}` version {playbook.version}, generated on {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}*\n"

        with open(file_path, 'w', encoding='utf-8') as f:
            f.write(content)

        logger.info(f"Exported playbook {playbook.id} to {file_path}")
        return str(file_path)

    def _playbook_content(self, playbook: Playbook, parameters: Optional[Dict[str, Any]]) -> str:
        """Rendered markdown, or the unrendered template when required values are missing"""
        declared = {param.name for param in playbook.parameters}
        supplied = dict(parameters or {})

        # Unknown names are ignored for export
        unknown = sorted(name for name in supplied if name not in declared)
        if unknown:
            logger.warning(f"Ignoring unknown parameters for {playbook.id}: {', '.join(unknown)}")
            supplied = {name: value for name, value in supplied.items() if name in declared}

        try:
            values = resolve_parameters(playbook, supplied)
        except PlaybookParameterError as e:
            logger.info(f"Exporting {playbook.id} unrendered, missing parameters: {', '.join(e.missing)}")
            return self.renderer.to_template(playbook)

        return self.renderer.render(playbook, values)

    async def _create_index_file(self, exported_files: Dict[str, str]) -> Path:
        """Create the index file linking every exported playbook"""

        file_path = self.output_dir / "README.md"

        content = f"""# DevCycle Playbooks

*Generated on {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}*

Instructional playbooks for installing DevCycle SDKs and cleaning up feature flags.

## Playbooks

"""

        for playbook_id, path in exported_files.items():
            relative_path = Path(path).relative_to(self.output_dir)
            content += f"- [{playbook_id}]({relative_path})\n"

        with open(file_path, 'w', encoding='utf-8') as f:
            f.write(content)

        return file_path

    def _sanitize_filename(self, filename: str) -> str:
        """Sanitize filename for filesystem compatibility"""
        invalid_chars = '<>:"/\\|?*'
        for char in invalid_chars:
            filename = filename.replace(char, '_')

        filename = '_'.join(filter(None, filename.split('_')))

        if not filename:
            filename = "unnamed"
        if len(filename) > 100:
            filename = filename[:100]

        return filename.lower()

    def get_export_summary(self) -> Dict[str, Any]:
        """Get summary of exported files"""

        if not self.output_dir.exists():
            return {"error": "Export directory does not exist"}

        files = sorted(self.output_dir.glob("*.md"))

        return {
            "export_directory": str(self.output_dir),
            "total_files": len(files),
            "files": [f.name for f in files],
            "size_kb": sum(f.stat().st_size for f in files) / 1024,
            "created": datetime.now().isoformat()
        }

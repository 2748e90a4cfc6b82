"""
Playbook Registry for managing and discovering available playbooks
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union

from ..exceptions import DuplicatePlaybookError, PlaybookError, PlaybookNotFoundError
from .linter import PlaybookLinter
from .models import Playbook, PlaybookKind

logger = logging.getLogger(__name__)


class PlaybookRegistry:
    """In-memory registry of playbooks with lookup indices"""

    def __init__(self, linter: Optional[PlaybookLinter] = None):
        self.playbooks: Dict[str, Playbook] = {}
        self.tag_index: Dict[str, Set[str]] = {}   # tag -> playbook ids
        self.sdk_index: Dict[str, Set[str]] = {}   # sdk -> playbook ids
        self.kind_index: Dict[str, Set[str]] = {}  # kind -> playbook ids
        self.tool_index: Dict[str, Set[str]] = {}  # tool name -> playbook ids
        self.linter = linter or PlaybookLinter()

    def __len__(self) -> int:
        return len(self.playbooks)

    def __contains__(self, playbook_id: str) -> bool:
        return playbook_id in self.playbooks

    def register(self, playbook: Playbook, replace: bool = False):
        """Register a playbook in the registry"""
        # Replace or reject an existing registration
        if playbook.id in self.playbooks:
            if not replace:
                raise DuplicatePlaybookError(playbook.id)
            self.unregister(playbook.id)

        self.playbooks[playbook.id] = playbook
        self._update_indices(playbook)

        logger.info(f"Registered playbook: {playbook.id}")

    def unregister(self, playbook_id: str):
        """Unregister a playbook from the registry"""
        playbook = self.get(playbook_id)

        # Remove from indices
        for index, keys in self._index_keys(playbook):
            for key in keys:
                if key in index:
                    index[key].discard(playbook_id)
                    if not index[key]:
                        del index[key]

        del self.playbooks[playbook_id]
        logger.info(f"Unregistered playbook: {playbook_id}")

    def _index_keys(self, playbook: Playbook):
        return [
            (self.tag_index, [tag.lower() for tag in playbook.tags]),
            (self.sdk_index, [playbook.sdk.lower()] if playbook.sdk else []),
            (self.kind_index, [playbook.kind.value]),
            (self.tool_index, playbook.tool_names()),
        ]

    def _update_indices(self, playbook: Playbook):
        for index, keys in self._index_keys(playbook):
            for key in keys:
                index.setdefault(key, set()).add(playbook.id)

    def get(self, playbook_id: str) -> Playbook:
        """Get a playbook by id"""
        playbook = self.playbooks.get(playbook_id)
        if playbook is None:
            raise PlaybookNotFoundError(playbook_id)
        return playbook

    def list_all(self) -> List[Playbook]:
        """List all registered playbooks ordered by id"""
        return [self.playbooks[playbook_id] for playbook_id in sorted(self.playbooks)]

    def _from_ids(self, ids: Set[str]) -> List[Playbook]:
        return [self.playbooks[playbook_id] for playbook_id in sorted(ids) if playbook_id in self.playbooks]

    def find_by_tag(self, tag: str) -> List[Playbook]:
        return self._from_ids(self.tag_index.get(tag.lower(), set()))

    def find_by_sdk(self, sdk: str) -> List[Playbook]:
        return self._from_ids(self.sdk_index.get(sdk.lower(), set()))

    def find_by_kind(self, kind: Union[str, PlaybookKind]) -> List[Playbook]:
        return self._from_ids(self.kind_index.get(PlaybookKind(kind).value, set()))

    def find_by_tool(self, tool_name: str) -> List[Playbook]:
        """Find playbooks that rely on a specific external tool"""
        return self._from_ids(self.tool_index.get(tool_name, set()))

    def filter(self, kind: Optional[str] = None, sdk: Optional[str] = None,
               tag: Optional[str] = None, tool: Optional[str] = None) -> List[Playbook]:
        """Playbooks matching every given criterion"""
        ids = set(self.playbooks)
        if kind:
            ids &= self.kind_index.get(PlaybookKind(kind).value, set())
        if sdk:
            ids &= self.sdk_index.get(sdk.lower(), set())
        if tag:
            ids &= self.tag_index.get(tag.lower(), set())
        if tool:
            ids &= self.tool_index.get(tool, set())
        return self._from_ids(ids)

    def search(self, query: str) -> List[Playbook]:
        """Search playbooks by id, title, summary or tags"""
        query_lower = query.lower().strip()
        if not query_lower:
            return self.list_all()

        matching = []
        for playbook in self.list_all():
            haystacks = [playbook.id, playbook.title, playbook.summary] + playbook.tags
            if any(query_lower in text.lower() for text in haystacks):
                matching.append(playbook)
        return matching

    def get_statistics(self) -> Dict[str, Any]:
        """Get registry statistics"""
        return {
            "total_playbooks": len(self.playbooks),
            "kinds": {kind: len(ids) for kind, ids in sorted(self.kind_index.items())},
            "sdks": {sdk: len(ids) for sdk, ids in sorted(self.sdk_index.items())},
            "tags": {tag: len(ids) for tag, ids in sorted(self.tag_index.items())},
            "tools": sorted(self.tool_index),
            "total_steps": sum(len(playbook.steps) for playbook in self.playbooks.values()),
            "last_updated": datetime.utcnow().isoformat(),
        }

    def validate_registry(self) -> List[str]:
        """Validate registry consistency and content, return any issues"""
        issues = []

        # Check index consistency
        for index_name, index in [("tag", self.tag_index), ("sdk", self.sdk_index),
                                  ("kind", self.kind_index), ("tool", self.tool_index)]:
            for key, playbook_ids in index.items():
                for playbook_id in playbook_ids:
                    if playbook_id not in self.playbooks:
                        issues.append(
                            f"{index_name.capitalize()} index contains non-existent playbook "
                            f"'{playbook_id}' for '{key}'"
                        )

        for playbook in self.list_all():
            # Lint errors make the registry invalid
            report = self.linter.lint(playbook)
            for issue in report.errors:
                where = f" ({issue.location})" if issue.location else ""
                issues.append(f"Playbook '{playbook.id}'{where}: {issue.code}: {issue.message}")

        return issues

    def export_registry(self, output_file: Union[str, Path]):
        """Export registry to a JSON file"""
        try:
            registry_data = {
                "playbooks": [playbook.to_dict() for playbook in self.list_all()],
                "statistics": self.get_statistics(),
                "exported_at": datetime.utcnow().isoformat(),
            }

            with open(output_file, 'w', encoding='utf-8') as f:
                json.dump(registry_data, f, indent=2)

            logger.info(f"Exported playbook registry to {output_file}")

        except OSError as e:
            logger.error(f"Failed to export playbook registry: {e}")
            raise

    def import_registry(self, input_file: Union[str, Path], merge: bool = False) -> int:
        """Import playbooks from a registry export"""
        try:
            with open(input_file, 'r', encoding='utf-8') as f:
                imported_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to import playbook registry: {e}")
            raise PlaybookError(f"Cannot read registry file {input_file}: {e}")

        imported = [self._parse(entry, str(input_file)) for entry in imported_data.get("playbooks", [])]

        # Replace entire registry
        if not merge:
            self.playbooks = {}
            self.tag_index = {}
            self.sdk_index = {}
            self.kind_index = {}
            self.tool_index = {}

        # Register imported playbooks, rebuilding indices
        for playbook in imported:
            self.register(playbook, replace=True)

        logger.info(f"Imported {len(imported)} playbooks from {input_file}")
        return len(imported)

    def load_directory(self, directory: Union[str, Path], replace: bool = True) -> int:
        """Load every *.json playbook file in a directory"""
        path = Path(directory)
        if not path.is_dir():
            raise PlaybookError(f"Playbook directory not found: {path}")

        count = 0
        for playbook_file in sorted(path.glob("*.json")):
            try:
                with open(playbook_file, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Failed to read playbook file {playbook_file.name}: {e}")
                raise PlaybookError(f"Cannot read playbook file {playbook_file}: {e}")

            self.register(self._parse(data, str(playbook_file)), replace=replace)
            count += 1

        logger.info(f"Loaded {count} playbooks from {path}")
        return count

    def _parse(self, data: Dict[str, Any], source: str) -> Playbook:
        try:
            return Playbook.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise PlaybookError(f"Invalid playbook definition in {source}: {e}")


def create_default_registry(extra_dir: Optional[str] = None) -> PlaybookRegistry:
    """Registry with the built-in playbooks plus an optional directory of extras"""
    from ..playbooks import builtin_playbooks

    registry = PlaybookRegistry()
    for playbook in builtin_playbooks():
        registry.register(playbook)

    if extra_dir:
        registry.load_directory(extra_dir)

    return registry

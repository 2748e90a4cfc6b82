"""
Command line interface for listing, rendering, linting and serving playbooks
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Dict, List, Optional

from .config import ServiceConfig
from .exceptions import PlaybookConfigError, PlaybookError
from .markdown_exporter import MarkdownExporter
from .registry import PlaybookLinter, PlaybookRenderer, create_default_registry

logger = logging.getLogger(__name__)


def parse_parameters(values: List[str]) -> Dict[str, str]:
    """Turn repeated NAME=VALUE arguments into a dictionary"""
    parameters = {}
    for value in values or []:
        name, sep, setting = value.partition("=")
        if not sep or not name.strip():
            raise PlaybookConfigError(f"Parameters must look like NAME=VALUE, got {value!r}")
        parameters[name.strip()] = setting
    return parameters


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devcycle-playbooks",
        description="Serve and inspect DevCycle installation and lifecycle playbooks",
    )
    parser.add_argument("--extra-dir", help="Directory of additional playbook JSON files")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List playbooks")
    list_parser.add_argument("--kind")
    list_parser.add_argument("--sdk")
    list_parser.add_argument("--tag")
    list_parser.add_argument("--tool")

    show_parser = subparsers.add_parser("show", help="Show a playbook definition")
    show_parser.add_argument("playbook_id")
    show_parser.add_argument("--json", action="store_true", help="Print the structured definition")

    render_parser = subparsers.add_parser("render", help="Render a playbook")
    render_parser.add_argument("playbook_id")
    render_parser.add_argument("-p", "--param", action="append", default=[], metavar="NAME=VALUE")
    render_parser.add_argument("--format", choices=["markdown", "json"], default="markdown")
    render_parser.add_argument("--output", "-o", help="Write to a file instead of stdout")

    lint_parser = subparsers.add_parser("lint", help="Run documentation-quality checks")
    lint_parser.add_argument("playbook_ids", nargs="*")

    export_parser = subparsers.add_parser("export", help="Export all playbooks to markdown files")
    export_parser.add_argument("--output-dir")

    serve_parser = subparsers.add_parser("serve", help="Run the playbook MCP server")
    serve_parser.add_argument("--host")
    serve_parser.add_argument("--port", type=int)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = ServiceConfig.from_env()
        logging.basicConfig(level=logging.DEBUG if args.verbose else getattr(logging, config.log_level))
        registry = create_default_registry(args.extra_dir or config.extra_dir)

        if args.command == "list":
            for playbook in registry.filter(kind=args.kind, sdk=args.sdk, tag=args.tag, tool=args.tool):
                print(f"{playbook.id}\t{playbook.kind.value}\t{playbook.title}")
            return 0

        if args.command == "show":
            playbook = registry.get(args.playbook_id)
            if args.json:
                print(json.dumps(playbook.to_dict(), indent=2))
            else:
                print(PlaybookRenderer().to_template(playbook))
            return 0

        if args.command == "render":
            playbook = registry.get(args.playbook_id)
            renderer = PlaybookRenderer()
            parameters = parse_parameters(args.param)
            if args.format == "json":
                output = json.dumps(renderer.render_structured(playbook, parameters), indent=2)
            else:
                output = renderer.render(playbook, parameters)

            if args.output:
                with open(args.output, 'w', encoding='utf-8') as f:
                    f.write(output)
                logger.info(f"Rendered {playbook.id} to {args.output}")
            else:
                print(output)
            return 0

        if args.command == "lint":
            linter = PlaybookLinter()
            playbooks = [registry.get(pid) for pid in args.playbook_ids] or registry.list_all()
            failed = False
            for playbook in playbooks:
                report = linter.lint(playbook)
                status = "ok" if report.ok else "FAILED"
                print(f"{playbook.id}: {status} ({len(report.errors)} errors, {len(report.warnings)} warnings)")
                for issue in report.issues:
                    where = f" [{issue.location}]" if issue.location else ""
                    print(f"  {issue.severity.value}: {issue.code}{where}: {issue.message}")
                failed = failed or not report.ok
            return 1 if failed else 0

        if args.command == "export":
            exporter = MarkdownExporter(args.output_dir or config.export_dir)
            exported = asyncio.run(exporter.export_playbooks(registry.list_all()))
            print(f"Exported {len(exported) - 1} playbooks to {exporter.output_dir}")
            return 0

        if args.command == "serve":
            from .mcp_server import MCPServer

            server = MCPServer(registry=registry, config=config)
            asyncio.run(server.start(host=args.host, port=args.port))
            return 0

    except (PlaybookError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    return 2


if __name__ == "__main__":
    sys.exit(main())

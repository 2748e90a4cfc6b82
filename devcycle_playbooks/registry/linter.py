"""
Documentation-quality checks for playbooks

Checks that code samples parse in their stated language, that environment
variable names are used consistently, and that every step only relies on
tools introduced before it. Every text field is also compiled as a template
the same way the renderer does, so a playbook that lints clean renders.

Code that needs literal template braces, such as JSX `style={{ ... }}`, wraps
them in `{% raw %}...{% endraw %}` or writes `{{ "{{" }}`.
"""

import ast
import difflib
import json
import logging
import re
import shlex
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from adalflow.core.prompt_builder import Prompt

from .models import CodeSample, Playbook, Severity

logger = logging.getLogger(__name__)

TEMPLATE_MARKER_PATTERN = re.compile(r"\{[{%#]")
BACKTICK_PATTERN = re.compile(r"`([^`\n]+)`")
ENV_NAME = r"([A-Z][A-Z0-9_]*)"
BACKTICK_ENV_PATTERN = re.compile(r"^[A-Z][A-Z0-9]*(?:_[A-Z0-9]+)+$")

CODE_ENV_PATTERNS = [
    re.compile(r"process\.env\." + ENV_NAME),
    re.compile(r"import\.meta\.env\." + ENV_NAME),
    re.compile(r"os\.environ\[\s*[\"']" + ENV_NAME + r"[\"']\s*\]"),
    re.compile(r"os\.environ\.get\(\s*[\"']" + ENV_NAME + r"[\"']"),
    re.compile(r"os\.getenv\(\s*[\"']" + ENV_NAME + r"[\"']"),
    re.compile(r"System\.getenv\(\s*\"" + ENV_NAME + r"\""),
    re.compile(r"os\.Getenv\(\s*\"" + ENV_NAME + r"\""),
]
SHELL_ENV_PATTERN = re.compile(r"\$\{?" + ENV_NAME + r"\}?")
SHELL_BUILTIN_VARS = {
    "HOME", "PATH", "PWD", "OLDPWD", "USER", "LOGNAME", "SHELL", "LANG", "TERM", "TMPDIR",
    "HOSTNAME", "UID", "EDITOR", "IFS", "PS1", "RANDOM", "SECONDS", "LINENO", "BASH_SOURCE",
}
DOTENV_LINE_PATTERN = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)=.*$")

LANGUAGE_ALIASES = {
    "python": "python", "py": "python",
    "json": "json",
    "javascript": "javascript", "js": "javascript", "jsx": "javascript",
    "typescript": "javascript", "ts": "javascript", "tsx": "javascript",
    "bash": "shell", "sh": "shell", "shell": "shell", "console": "shell", "zsh": "shell",
    "dotenv": "dotenv", "env": "dotenv",
}

CLOSING = {")": "(", "]": "[", "}": "{"}

FIELD_LABELS = {
    "steps": "step", "code_samples": "sample", "variants": "variant", "links": "link",
    "parameters": "parameter", "env_vars": "env var", "tools": "tool", "introduces_tools": "introduced tool",
    "uses_tools": "used tool", "checklist": "checklist", "troubleshooting": "troubleshooting",
    "prerequisites": "prerequisite", "tags": "tag",
}


@dataclass
class LintIssue:
    severity: Severity
    code: str
    message: str
    location: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "location": self.location,
        }


@dataclass
class LintReport:
    playbook_id: str
    issues: List[LintIssue] = field(default_factory=list)

    @property
    def errors(self) -> List[LintIssue]:
        return [issue for issue in self.issues if issue.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[LintIssue]:
        return [issue for issue in self.issues if issue.severity == Severity.WARNING]

    @property
    def ok(self) -> bool:
        return not self.errors

    def codes(self) -> List[str]:
        return [issue.code for issue in self.issues]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playbook_id": self.playbook_id,
            "ok": self.ok,
            "error_count": len(self.errors),
            "warning_count": len(self.warnings),
            "issues": [issue.to_dict() for issue in self.issues],
        }


def check_code_syntax(language: str, code: str) -> Optional[str]:
    """Return a description of the first syntax problem, or None if the code parses"""
    kind = LANGUAGE_ALIASES.get(language.lower())

    if kind == "python":
        try:
            ast.parse(code)
        except SyntaxError as e:
            return f"line {e.lineno}: {e.msg}"
        return None

    if kind == "json":
        try:
            json.loads(code)
        except json.JSONDecodeError as e:
            return f"line {e.lineno}: {e.msg}"
        return None

    if kind == "javascript":
        return _check_brackets(code)

    if kind == "shell":
        for number, line in enumerate(code.splitlines(), start=1):
            try:
                shlex.split(line, comments=True)
            except ValueError as e:
                return f"line {number}: {e}"
        return None

    if kind == "dotenv":
        for number, line in enumerate(code.splitlines(), start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if not DOTENV_LINE_PATTERN.match(stripped):
                return f"line {number}: expected NAME=value"
        return None

    raise LookupError(language)


def _check_brackets(code: str) -> Optional[str]:
    """Bracket, string and comment balance scan for JavaScript-family code"""
    stack: List[Tuple[str, int]] = []
    i = 0
    n = len(code)

    def line_of(pos: int) -> int:
        return code.count("\n", 0, pos) + 1

    while i < n:
        ch = code[i]
        in_template = bool(stack) and stack[-1][0] == "`"

        if in_template:
            if ch == "\\":
                i += 2
                continue
            if ch == "`":
                stack.pop()
            elif code.startswith("${", i):
                stack.append(("${", i))
                i += 2
                continue
            i += 1
            continue

        if code.startswith("//", i):
            newline = code.find("\n", i)
            i = n if newline == -1 else newline
            continue
        if code.startswith("/*", i):
            end = code.find("*/", i + 2)
            if end == -1:
                return f"line {line_of(i)}: unterminated comment"
            i = end + 2
            continue
        if ch in "\"'":
            j = i + 1
            while j < n and code[j] != ch:
                if code[j] == "\\":
                    j += 1
                elif code[j] == "\n":
                    return f"line {line_of(i)}: unterminated string"
                j += 1
            if j >= n:
                return f"line {line_of(i)}: unterminated string"
            i = j + 1
            continue
        if ch == "`":
            stack.append(("`", i))
        elif ch in "([{":
            stack.append((ch, i))
        elif ch in CLOSING:
            if not stack:
                return f"line {line_of(i)}: unexpected '{ch}'"
            opener, _ = stack.pop()
            expected = "{" if opener == "${" else opener
            if expected != CLOSING[ch]:
                return f"line {line_of(i)}: '{ch}' does not close '{opener}'"
        i += 1

    if stack:
        opener, pos = stack[-1]
        return f"line {line_of(pos)}: unclosed '{opener}'"
    return None


def _referenced_env_vars(sample: CodeSample) -> List[str]:
    kind = LANGUAGE_ALIASES.get(sample.language.lower())
    names = []
    for pattern in CODE_ENV_PATTERNS:
        names.extend(pattern.findall(sample.code))
    if kind == "shell":
        names.extend(
            name for name in SHELL_ENV_PATTERN.findall(sample.code) if name not in SHELL_BUILTIN_VARS
        )
    if kind == "dotenv":
        for line in sample.code.splitlines():
            match = DOTENV_LINE_PATTERN.match(line.strip())
            if match:
                names.append(match.group(1))
    return names


def _backticked(text: str) -> List[str]:
    return [token.strip() for token in BACKTICK_PATTERN.findall(text)]


def render_with_stand_ins(text: str, substitutions: Dict[str, str]) -> Tuple[str, List[str]]:
    """Render text as a template, filling every variable with a stand-in value

    Returns the rendered text and the variable names it uses. Raises ValueError
    when the text does not compile or render as a template.
    """
    if not TEMPLATE_MARKER_PATTERN.search(text):
        return text, []

    try:
        prompt = Prompt(template=text)
        variables = sorted(prompt.prompt_variables)
        rendered = prompt.call(**{name: substitutions.get(name, "placeholder") for name in variables})
    except Exception as e:
        raise ValueError(str(e)) from e
    return rendered, variables


class PlaybookLinter:
    """Runs documentation-quality checks over a playbook"""

    def lint(self, playbook: Playbook) -> LintReport:
        report = LintReport(playbook_id=playbook.id)

        if not playbook.steps:
            report.issues.append(LintIssue(Severity.ERROR, "empty-steps", "Playbook has no steps"))

        self._check_parameters(playbook, report)
        self._check_code_samples(playbook, report)
        self._check_env_vars(playbook, report)
        self._check_tools(playbook, report)
        self._check_links(playbook, report)

        if report.issues:
            logger.debug(
                f"Lint {playbook.id}: {len(report.errors)} errors, {len(report.warnings)} warnings"
            )
        return report

    def lint_all(self, playbooks: Iterable[Playbook]) -> Dict[str, LintReport]:
        return {playbook.id: self.lint(playbook) for playbook in playbooks}

    def _check_parameters(self, playbook: Playbook, report: LintReport):
        seen = set()
        for param in playbook.parameters:
            if param.name in seen:
                report.issues.append(LintIssue(
                    Severity.ERROR, "param-duplicate",
                    f"Parameter '{param.name}' is declared more than once",
                ))
            seen.add(param.name)

        substitutions = self._stand_ins(playbook)
        referenced = set()
        for location, text in self._text_fields(playbook):
            try:
                _, variables = render_with_stand_ins(text, substitutions)
            except ValueError as e:
                report.issues.append(LintIssue(
                    Severity.ERROR, "template-syntax",
                    f"Text does not compile as a template: {e}",
                    location,
                ))
                continue

            for name in variables:
                referenced.add(name)
                if name not in seen:
                    report.issues.append(LintIssue(
                        Severity.ERROR, "param-undeclared",
                        f"Placeholder '{{{{ {name} }}}}' has no matching parameter",
                        location,
                    ))

        for name in sorted(seen - referenced):
            report.issues.append(LintIssue(
                Severity.WARNING, "param-unused",
                f"Parameter '{name}' is never referenced",
            ))

    def _check_code_samples(self, playbook: Playbook, report: LintReport):
        substitutions = self._stand_ins(playbook)

        for location, sample in self._code_samples(playbook):
            try:
                code, _ = render_with_stand_ins(sample.code, substitutions)
            except ValueError:
                # already reported as template-syntax
                continue

            try:
                problem = check_code_syntax(sample.language, code)
            except LookupError:
                report.issues.append(LintIssue(
                    Severity.WARNING, "code-language",
                    f"Cannot check syntax of '{sample.language}' samples",
                    location,
                ))
                continue
            if problem:
                report.issues.append(LintIssue(
                    Severity.ERROR, "code-syntax",
                    f"Invalid {sample.language} sample: {problem}",
                    location,
                ))

    def _stand_ins(self, playbook: Playbook) -> Dict[str, str]:
        return {
            param.name: param.default if param.default else "placeholder"
            for param in playbook.parameters
        }

    def _check_env_vars(self, playbook: Playbook, report: LintReport):
        declared = [var.name for var in playbook.env_vars]
        references: List[Tuple[str, str]] = []

        for location, sample in self._code_samples(playbook):
            for name in _referenced_env_vars(sample):
                references.append((name, location))

        for location, text in self._prose_fields(playbook):
            for token in _backticked(text):
                if BACKTICK_ENV_PATTERN.match(token):
                    references.append((token, location))

        reported = set()
        for name, location in references:
            if name in declared or (name, location) in reported:
                continue
            reported.add((name, location))
            message = f"Environment variable '{name}' is not declared"
            close = difflib.get_close_matches(name, declared, n=1, cutoff=0.6)
            if close:
                message += f" (did you mean '{close[0]}'?)"
            report.issues.append(LintIssue(Severity.ERROR, "env-undeclared", message, location))

        used = {name for name, _ in references}
        for name in declared:
            if name not in used:
                report.issues.append(LintIssue(
                    Severity.WARNING, "env-unused",
                    f"Environment variable '{name}' is declared but never referenced",
                ))

    def _check_tools(self, playbook: Playbook, report: LintReport):
        # position 0 is the up-front tool table, step N introduces at position N
        introduced_at = {tool.name: 0 for tool in playbook.tools}
        for number, step in enumerate(playbook.steps, start=1):
            for tool in step.introduces_tools:
                introduced_at.setdefault(tool.name, number)

        used = set()
        for number, step in enumerate(playbook.steps, start=1):
            location = f"step {number}"
            for name in step.uses_tools:
                used.add(name)
                if name not in introduced_at:
                    report.issues.append(LintIssue(
                        Severity.ERROR, "tool-undeclared",
                        f"Step uses tool '{name}' which is never introduced",
                        location,
                    ))
                elif introduced_at[name] > number:
                    report.issues.append(LintIssue(
                        Severity.ERROR, "tool-order",
                        f"Step uses tool '{name}' before step {introduced_at[name]} introduces it",
                        location,
                    ))

            for token in set(_backticked(step.body)):
                position = introduced_at.get(token)
                if position is not None and position > number and token not in step.uses_tools:
                    report.issues.append(LintIssue(
                        Severity.ERROR, "tool-order",
                        f"Step mentions tool '{token}' before step {position} introduces it",
                        location,
                    ))

        for name in introduced_at:
            if name not in used:
                report.issues.append(LintIssue(
                    Severity.WARNING, "tool-unused",
                    f"Tool '{name}' is introduced but no step uses it",
                ))

    def _check_links(self, playbook: Playbook, report: LintReport):
        for link in playbook.links:
            if urlparse(link.url).scheme not in ("http", "https"):
                report.issues.append(LintIssue(
                    Severity.WARNING, "link-scheme",
                    f"Link '{link.title}' is not an http(s) URL: {link.url}",
                ))

    def _code_samples(self, playbook: Playbook):
        for number, step in enumerate(playbook.steps, start=1):
            for index, sample in enumerate(step.code_samples, start=1):
                yield f"step {number} sample {index}", sample

    def _prose_fields(self, playbook: Playbook):
        yield "summary", playbook.summary
        for index, prerequisite in enumerate(playbook.prerequisites, start=1):
            yield f"prerequisite {index}", prerequisite
        for number, step in enumerate(playbook.steps, start=1):
            yield f"step {number}", step.body
        for index, item in enumerate(playbook.checklist, start=1):
            yield f"checklist {index}", item.text
        for index, entry in enumerate(playbook.troubleshooting, start=1):
            yield f"troubleshooting {index}", " ".join([entry.symptom, entry.cause, entry.remedy])

    def _text_fields(self, playbook: Playbook):
        """Every string the renderer emits, labelled with where it sits"""
        yield from self._walk_strings(playbook.to_dict(), [])

    def _walk_strings(self, value: Any, path: List[str]):
        if isinstance(value, str):
            yield " ".join(path) or "playbook", value
        elif isinstance(value, list):
            label = FIELD_LABELS.get(path[-1], path[-1]) if path else "item"
            for index, item in enumerate(value, start=1):
                yield from self._walk_strings(item, path[:-1] + [f"{label} {index}"])
        elif isinstance(value, dict):
            for key, item in value.items():
                yield from self._walk_strings(item, path + [key])

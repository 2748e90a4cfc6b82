import pytest

from devcycle_playbooks.playbooks import builtin_playbooks
from devcycle_playbooks.registry import (
    CodeSample, EnvVar, Link, Parameter, PlaybookLinter, Severity, Step, ToolReference
)
from devcycle_playbooks.registry.linter import check_code_syntax

from .conftest import make_playbook


@pytest.fixture()
def linter():
    return PlaybookLinter()


@pytest.mark.parametrize("playbook", builtin_playbooks(), ids=lambda p: p.id)
def test_builtin_playbooks_lint_clean(linter, playbook):
    report = linter.lint(playbook)
    assert report.ok, report.to_dict()
    assert report.warnings == []


def test_sample_playbook_is_clean(linter, sample_playbook):
    report = linter.lint(sample_playbook)
    assert report.issues == []
    assert report.to_dict()["ok"] is True


def test_python_syntax_error_reported():
    assert check_code_syntax("python", "def broken(:\n    pass") is not None
    assert check_code_syntax("py", "x = 1") is None


def test_json_syntax_error_reported():
    assert check_code_syntax("json", '{"a": 1,}') is not None
    assert check_code_syntax("json", '{"a": [1, 2]}') is None


def test_javascript_bracket_scan():
    assert check_code_syntax("javascript", "const x = { a: [1, 2] }") is None
    assert "unclosed" in check_code_syntax("tsx", "function f() {\n  return (<div />)\n")
    assert "does not close" in check_code_syntax("jsx", "render(<App />}")
    assert check_code_syntax("js", "const s = 'unterminated") is not None


def test_javascript_scan_ignores_strings_comments_and_templates():
    code = (
        "// closing ) in a comment\n"
        "/* and } in a block */\n"
        "const a = ')' + \"]\"\n"
        "const b = `value ${items.map((i) => `${i}`).join(',')}`\n"
    )
    assert check_code_syntax("typescript", code) is None


def test_shell_and_dotenv_checks():
    assert check_code_syntax("bash", 'echo "unbalanced') is not None
    assert check_code_syntax("sh", "npm install --save pkg  # comment") is None
    assert check_code_syntax("dotenv", "# comment\nKEY=value\n\nexport OTHER=1") is None
    assert check_code_syntax("dotenv", "not a pair") == "line 1: expected NAME=value"


def test_unknown_language_is_a_warning(linter):
    playbook = make_playbook(steps=[
        Step("Only", "Use `list-features` with `SAMPLE_SDK_KEY`.",
             code_samples=[CodeSample("kotlin", "val x = 1")], uses_tools=["list-features"]),
    ])
    report = linter.lint(playbook)

    assert report.ok
    assert [issue.code for issue in report.warnings] == ["code-language"]


def test_code_syntax_error_is_an_error(linter):
    playbook = make_playbook(steps=[
        Step("Only", "Use `list-features` with `SAMPLE_SDK_KEY`.",
             code_samples=[CodeSample("python", "if True print(1)")], uses_tools=["list-features"]),
    ])
    report = linter.lint(playbook)

    assert not report.ok
    assert report.errors[0].code == "code-syntax"
    assert report.errors[0].location == "step 1 sample 1"


def test_placeholders_are_substituted_before_parsing(linter):
    playbook = make_playbook(steps=[
        Step("Only", "Call `list-features` for `SAMPLE_SDK_KEY`.",
             code_samples=[CodeSample("json", '{"service": "{{ service }}"}')], uses_tools=["list-features"]),
    ])
    assert linter.lint(playbook).ok


def test_undeclared_env_var_suggests_close_match(linter):
    playbook = make_playbook(steps=[
        Step("Only", "Call `list-features`.",
             code_samples=[CodeSample("python", 'import os\nkey = os.environ["SAMPLE_SDK_KY"]')],
             uses_tools=["list-features"]),
    ])
    report = linter.lint(playbook)

    errors = [issue for issue in report.errors if issue.code == "env-undeclared"]
    assert len(errors) == 1
    assert "did you mean 'SAMPLE_SDK_KEY'" in errors[0].message
    assert "env-unused" in report.codes()


def test_env_var_references_in_prose_and_shell(linter):
    playbook = make_playbook(
        env_vars=[EnvVar("SAMPLE_SDK_KEY", "Key"), EnvVar("OTHER_SDK_KEY", "Other key")],
        steps=[
            Step("One", "Export `SAMPLE_SDK_KEY` and call `list-features`.", uses_tools=["list-features"],
                 code_samples=[CodeSample("bash", 'echo "$OTHER_SDK_KEY" ${UNKNOWN_KEY}')]),
        ],
    )
    report = linter.lint(playbook)

    messages = [issue.message for issue in report.errors]
    assert messages == ["Environment variable 'UNKNOWN_KEY' is not declared"]


def test_tool_used_before_introduction(linter):
    playbook = make_playbook(
        tools=[],
        steps=[
            Step("First", "Call `update-feature-status` early.", uses_tools=["update-feature-status"]),
            Step("Second", "Now introduce it with `SAMPLE_SDK_KEY`.",
                 introduces_tools=[ToolReference("update-feature-status", "Change status", mutating=True)]),
        ],
    )
    report = linter.lint(playbook)

    order_errors = [issue for issue in report.errors if issue.code == "tool-order"]
    assert len(order_errors) == 1
    assert order_errors[0].location == "step 1"
    assert "step 2" in order_errors[0].message


def test_tool_mentioned_in_prose_before_introduction(linter):
    playbook = make_playbook(steps=[
        Step("First", "Use `list-features`, later `update-variable-status`.", uses_tools=["list-features"]),
        Step("Second", "Archive with `SAMPLE_SDK_KEY` set.", uses_tools=["update-variable-status"],
             introduces_tools=[ToolReference("update-variable-status", "Archive", mutating=True)]),
    ])
    report = linter.lint(playbook)

    assert [issue.code for issue in report.errors] == ["tool-order"]


def test_undeclared_and_unused_tools(linter):
    playbook = make_playbook(
        tools=[ToolReference("list-features", "List"), ToolReference("fetch-feature-variations", "Fetch")],
        steps=[Step("Only", "Go with `SAMPLE_SDK_KEY`.", uses_tools=["list-features", "mystery-tool"])],
    )
    report = linter.lint(playbook)

    assert [issue.code for issue in report.errors] == ["tool-undeclared"]
    assert "tool-unused" in [issue.code for issue in report.warnings]


def test_parameter_checks(linter):
    playbook = make_playbook(
        summary="Uses {{ service }} and {{ region }}",
        parameters=[
            Parameter("service", "Service"),
            Parameter("service", "Duplicate"),
            Parameter("unused", "Never referenced"),
        ],
    )
    report = linter.lint(playbook)
    codes = report.codes()

    assert "param-duplicate" in codes
    assert "param-undeclared" in codes
    assert "param-unused" in codes


def test_empty_steps_and_link_scheme(linter):
    playbook = make_playbook(steps=[], env_vars=[], tools=[], links=[Link("Local", "file:///tmp/doc.md")])
    report = linter.lint(playbook)

    assert "empty-steps" in [issue.code for issue in report.errors]
    assert any(issue.code == "link-scheme" and issue.severity == Severity.WARNING for issue in report.issues)


def test_lint_all(linter):
    reports = linter.lint_all(builtin_playbooks())
    assert set(reports) == {"devcycle-react-sdk-install", "devcycle-sdk-install", "devcycle-feature-cleanup"}


def test_literal_template_braces_are_a_template_error(linter):
    playbook = make_playbook(steps=[
        Step("Only", "Style it with `SAMPLE_SDK_KEY` and `list-features`.", uses_tools=["list-features"],
             code_samples=[CodeSample("jsx", "const x = <div style={{ margin: 0 }}>hi</div>")]),
    ])
    report = linter.lint(playbook)

    assert not report.ok
    assert [(issue.code, issue.location) for issue in report.errors] == [
        ("template-syntax", "step 1 sample 1 code")
    ]


@pytest.mark.parametrize("code", [
    "const x = <div style={% raw %}{{ margin: 0 }}{% endraw %}>hi</div>",
    'const x = <div style={{ "{{" }} margin: 0 }}>hi</div>',
])
def test_escaped_template_braces_lint_clean(linter, code):
    playbook = make_playbook(steps=[
        Step("Only", "Style it with `SAMPLE_SDK_KEY` and `list-features`.", uses_tools=["list-features"],
             code_samples=[CodeSample("jsx", code)]),
    ])
    assert linter.lint(playbook).issues == []


def test_placeholders_checked_in_every_rendered_field(linter):
    playbook = make_playbook(
        links=[Link("Docs", "https://docs.example.com/{{ region }}")],
        tools=[ToolReference("list-features", "List features in {{ project }}")],
    )
    report = linter.lint(playbook)

    undeclared = {issue.location for issue in report.errors if issue.code == "param-undeclared"}
    assert undeclared == {"link 1 url", "tool 1 description"}


def test_shell_builtin_variables_are_not_reported(linter):
    playbook = make_playbook(steps=[
        Step("Only", "Run it with `SAMPLE_SDK_KEY` and `list-features`.", uses_tools=["list-features"],
             code_samples=[CodeSample("bash", 'cd "$HOME/app" && echo $PATH')]),
    ])
    assert linter.lint(playbook).ok

import pytest
from fastapi.testclient import TestClient

from devcycle_playbooks.mcp_server import MCPServer
from devcycle_playbooks.registry import (
    CodeSample, EnvVar, Link, Parameter, Playbook, PlaybookKind, Step, ToolReference,
    create_default_registry
)


def make_playbook(playbook_id="sample-playbook", **overrides) -> Playbook:
    """Small playbook that lints clean unless overridden"""
    fields = dict(
        id=playbook_id,
        title="Sample playbook",
        kind=PlaybookKind.SDK_INSTALL,
        summary="Install something for {{ service }}",
        sdk="node",
        tags=["sample", "install"],
        parameters=[Parameter("service", "Service name", default="checkout")],
        env_vars=[EnvVar("SAMPLE_SDK_KEY", "Key for the sample SDK")],
        tools=[ToolReference("list-features", "List features")],
        steps=[
            Step(
                title="Install",
                body="Run the install and call `list-features`.",
                code_samples=[CodeSample("bash", "npm install --save sample-sdk")],
                uses_tools=["list-features"],
            ),
            Step(
                title="Configure",
                body="Read the key.",
                code_samples=[CodeSample("javascript", "const key = process.env.SAMPLE_SDK_KEY")],
            ),
        ],
        links=[Link("Docs", "https://example.com/docs")],
    )
    fields.update(overrides)
    return Playbook(**fields)


@pytest.fixture()
def sample_playbook():
    return make_playbook()


@pytest.fixture()
def registry():
    return create_default_registry()


@pytest.fixture()
def client(registry):
    return TestClient(MCPServer(registry=registry).app)

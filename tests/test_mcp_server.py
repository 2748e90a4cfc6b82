import json

from fastapi.testclient import TestClient

from devcycle_playbooks.config import ServiceConfig
from devcycle_playbooks.main import create_app
from devcycle_playbooks.mcp_server import MCPServer


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"] == {"status": "healthy", "playbooks": 3}
    assert body["timestamp"] is not None


def test_list_playbooks(client):
    body = client.get("/mcp/playbooks").json()

    ids = [p["id"] for p in body["data"]["playbooks"]]
    assert ids == ["devcycle-feature-cleanup", "devcycle-react-sdk-install", "devcycle-sdk-install"]


def test_list_playbooks_with_filters(client):
    body = client.get("/mcp/playbooks", params={"kind": "lifecycle"}).json()
    assert [p["id"] for p in body["data"]["playbooks"]] == ["devcycle-feature-cleanup"]

    body = client.get("/mcp/playbooks", params={"tool": "list-features"}).json()
    assert [p["id"] for p in body["data"]["playbooks"]] == ["devcycle-feature-cleanup"]


def test_list_playbooks_invalid_kind(client):
    response = client.get("/mcp/playbooks", params={"kind": "nonsense"})
    assert response.status_code == 400


def test_search_playbooks(client):
    response = client.post("/mcp/playbooks/search", json={"query": "install", "sdk": "react"})

    assert response.status_code == 200
    assert [p["id"] for p in response.json()["data"]["playbooks"]] == ["devcycle-react-sdk-install"]


def test_get_playbook(client):
    body = client.get("/mcp/playbooks/devcycle-sdk-install").json()

    assert body["data"]["id"] == "devcycle-sdk-install"
    assert body["data"]["kind"] == "sdk_install"
    assert len(body["data"]["variants"]) == 9


def test_get_unknown_playbook(client):
    response = client.get("/mcp/playbooks/unknown-playbook")

    assert response.status_code == 404
    assert response.json()["detail"] == "Playbook not found"


def test_render_markdown(client):
    response = client.post(
        "/mcp/playbooks/devcycle-react-sdk-install/render",
        json={"parameters": {"install_command": "yarn add"}},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["format"] == "markdown"
    assert "yarn add @devcycle/react-client-sdk" in data["content"]


def test_render_json(client):
    response = client.post(
        "/mcp/playbooks/devcycle-feature-cleanup/render",
        json={"parameters": {"feature_key": "dark-mode"}, "format": "json"},
    )

    content = response.json()["data"]["content"]
    assert content["parameters_used"]["feature_key"] == "dark-mode"
    assert "`dark-mode`" in content["steps"][0]["body"]


def test_render_missing_required_parameter(client):
    response = client.post("/mcp/playbooks/devcycle-feature-cleanup/render", json={})

    assert response.status_code == 400
    assert "feature_key" in response.json()["detail"]


def test_render_unknown_format(client):
    response = client.post("/mcp/playbooks/devcycle-sdk-install/render", json={"format": "html"})
    assert response.status_code == 400


def test_lint(client):
    data = client.get("/mcp/playbooks/devcycle-react-sdk-install/lint").json()["data"]

    assert data["playbook_id"] == "devcycle-react-sdk-install"
    assert data["ok"] is True
    assert data["error_count"] == 0


def test_tools(client):
    data = client.get("/mcp/playbooks/devcycle-feature-cleanup/tools").json()["data"]
    tools = {tool["name"]: tool for tool in data["tools"]}

    assert len(tools) == 5
    assert tools["update-variable-status"]["mutating"] is True
    assert tools["list-feature-targeting"]["mutating"] is False


def test_checklist(client):
    data = client.get("/mcp/playbooks/devcycle-feature-cleanup/checklist").json()["data"]

    assert len(data["checklist"]) == 5
    assert data["checklist"][-1]["blocking"] is False


def test_statistics(client):
    data = client.get("/mcp/statistics").json()["data"]
    assert data["total_playbooks"] == 3


def test_server_uses_config_for_extra_playbooks(tmp_path, sample_playbook):
    (tmp_path / "sample.json").write_text(json.dumps(sample_playbook.to_dict()))
    server = MCPServer(config=ServiceConfig(extra_dir=str(tmp_path)))

    body = TestClient(server.app).get("/health").json()
    assert body["data"]["playbooks"] == 4


def test_create_app_reads_environment(monkeypatch, tmp_path, sample_playbook):
    (tmp_path / "sample.json").write_text(json.dumps(sample_playbook.to_dict()))
    monkeypatch.setenv("PLAYBOOKS_EXTRA_DIR", str(tmp_path))

    app = create_app()

    assert TestClient(app).get("/mcp/playbooks/sample-playbook").json()["data"]["sdk"] == "node"

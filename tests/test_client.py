import asyncio

import aiohttp
import pytest

from devcycle_playbooks.client import PlaybookClient
from devcycle_playbooks.exceptions import PlaybookClientError, PlaybookNotFoundError


class StubResponse:
    def __init__(self, status=200, payload=None, text=""):
        self.status = status
        self._payload = payload
        self._text = text

    async def json(self):
        return self._payload

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class StubSession:
    """Records requests and replays canned responses"""

    def __init__(self, *responses, error=None):
        self.responses = list(responses)
        self.error = error
        self.calls = []
        self.closed = False

    def request(self, method, url, json=None, params=None, headers=None):
        self.calls.append({"method": method, "url": url, "json": json, "params": params})
        if self.error:
            raise self.error
        return self.responses.pop(0)

    async def close(self):
        self.closed = True


def ok(data):
    return StubResponse(payload={"success": True, "data": data, "error": None})


def run(coro):
    return asyncio.run(coro)


def test_list_playbooks_drops_unset_filters():
    session = StubSession(ok({"playbooks": [{"id": "devcycle-sdk-install"}]}))
    client = PlaybookClient("http://playbooks.local:8003", session=session)

    playbooks = run(client.list_playbooks(sdk="python"))

    assert playbooks == [{"id": "devcycle-sdk-install"}]
    assert session.calls[0]["url"] == "http://playbooks.local:8003/mcp/playbooks"
    assert session.calls[0]["params"] == {"sdk": "python"}


def test_render_playbook_posts_parameters():
    session = StubSession(ok({"playbook_id": "devcycle-feature-cleanup", "format": "markdown",
                              "content": "# Clean up"}))
    client = PlaybookClient("http://playbooks.local/", session=session)

    content = run(client.render_playbook("devcycle-feature-cleanup", {"feature_key": "dark-mode"}))

    assert content == "# Clean up"
    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "http://playbooks.local/mcp/playbooks/devcycle-feature-cleanup/render"
    assert call["json"] == {"parameters": {"feature_key": "dark-mode"}, "format": "markdown"}
    assert call["params"] is None


def test_search_tools_and_checklist():
    session = StubSession(
        ok({"playbooks": []}),
        ok({"playbook_id": "p", "tools": [{"name": "list-features"}]}),
        ok({"playbook_id": "p", "checklist": [{"text": "Check", "blocking": True}]}),
    )
    client = PlaybookClient("http://playbooks.local", session=session)

    assert run(client.search_playbooks("react")) == []
    assert run(client.get_tools("p")) == [{"name": "list-features"}]
    assert run(client.get_checklist("p")) == [{"text": "Check", "blocking": True}]
    assert session.calls[0]["json"]["query"] == "react"


def test_unknown_playbook_raises_not_found():
    session = StubSession(StubResponse(status=404, text='{"detail": "Playbook not found"}'))
    client = PlaybookClient("http://playbooks.local", session=session)

    with pytest.raises(PlaybookNotFoundError):
        run(client.get_playbook("missing"))


def test_http_error_raises_client_error():
    session = StubSession(StubResponse(status=400, text="Missing required parameters"))
    client = PlaybookClient("http://playbooks.local", session=session)

    with pytest.raises(PlaybookClientError) as exc_info:
        run(client.render_playbook("devcycle-feature-cleanup"))

    assert exc_info.value.status == 400
    assert "Missing required parameters" in str(exc_info.value)


def test_unsuccessful_envelope_raises():
    session = StubSession(StubResponse(payload={"success": False, "error": "boom"}))
    client = PlaybookClient("http://playbooks.local", session=session)

    with pytest.raises(PlaybookClientError, match="boom"):
        run(client.health())


def test_connection_errors_are_wrapped():
    session = StubSession(error=aiohttp.ClientConnectionError("refused"))
    client = PlaybookClient("http://playbooks.local", session=session)

    with pytest.raises(PlaybookClientError):
        run(client.health())
    assert run(client.test_connection()) is False


def test_test_connection_succeeds():
    session = StubSession(ok({"status": "healthy", "playbooks": 3}))
    client = PlaybookClient("http://playbooks.local", session=session)

    assert run(client.test_connection()) is True


def test_close_leaves_injected_session_open():
    session = StubSession()
    client = PlaybookClient("http://playbooks.local", session=session)

    run(client.close())

    assert session.closed is False


def test_base_url_defaults_to_environment(monkeypatch):
    monkeypatch.setenv("PLAYBOOKS_SERVER_URL", "http://remote:9000/")
    client = PlaybookClient(session=StubSession())

    assert client.base_url == "http://remote:9000/"

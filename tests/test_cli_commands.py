import json

import pytest
from loguru import logger
from typer.testing import CliRunner

from webterm import __version__
from webterm.cli import commands
from webterm.cli.command_groups.bookmark_command import flatten_bookmarks
from webterm.config.schema import Config
from webterm.handlers.models import TabCreateParams, TabIdsParams, TabParams
from webterm.utils.exceptions import RemoteError, RpcTimeoutError, TransportError

runner = CliRunner()

TABS = [
    {"id": 7, "title": "Example", "url": "https://example.com"},
    {"id": 8, "title": "Docs", "url": "https://docs.example.com"},
]


class FakeCompanion:
    def __init__(self, results=None, error=None):
        self.results = results or {}
        self.error = error
        self.calls = []

    def __call__(self, command, params=None, *, socket_path, timeout_s=None, max_frame_bytes=0):
        self.calls.append({"command": command, "params": params, "socket_path": socket_path, "timeout_s": timeout_s})
        if self.error is not None:
            raise self.error
        return self.results.get(command)


@pytest.fixture
def companion(monkeypatch):
    fake = FakeCompanion(
        results={
            "tab.list": TABS,
            "tab.get": TABS[0],
            "tab.source": "<html></html>",
            "selection.get": "picked text",
            "window.create": {"id": 3, "focused": False},
            "bookmark.list": [
                {
                    "id": "0",
                    "title": "",
                    "children": [
                        {"id": "1", "title": "Bookmarks bar", "children": [{"id": "3", "title": "Ex", "url": "https://example.com"}]},
                        {"id": "2", "title": "Other bookmarks", "children": []},
                    ],
                }
            ],
            "history.search": [{"id": "1", "url": "https://example.com", "title": "Example", "visitCount": 2}],
        }
    )
    monkeypatch.setattr(commands, "rpc_call", fake)
    monkeypatch.setattr(commands, "get_config", lambda: Config())
    yield fake
    # the root callback points loguru at the runner's captured stderr
    logger.remove()


def test_version() -> None:
    result = runner.invoke(commands.app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_tab_list_table(companion) -> None:
    result = runner.invoke(commands.app, ["tab", "list"])
    assert result.exit_code == 0
    assert "Example" in result.output
    assert "https://docs.example.com" in result.output
    assert companion.calls[0]["command"] == "tab.list"


def test_tab_list_json(companion) -> None:
    result = runner.invoke(commands.app, ["tab", "list", "--json"])
    assert result.exit_code == 0
    assert json.loads(result.output) == TABS


def test_tab_get_and_url(companion) -> None:
    result = runner.invoke(commands.app, ["tab", "get", "7", "--json"])
    assert result.exit_code == 0
    assert json.loads(result.output)["id"] == 7
    assert companion.calls[-1]["params"] == TabParams(tab_id=7)

    result = runner.invoke(commands.app, ["tab", "url"])
    assert result.output.strip() == "https://example.com"
    assert companion.calls[-1]["params"] == TabParams()


def test_tab_pin_sends_ids_or_defaults_to_active(companion) -> None:
    assert runner.invoke(commands.app, ["tab", "pin", "7", "8"]).exit_code == 0
    assert companion.calls[-1]["params"] == TabIdsParams(tab_ids=[7, 8])
    assert runner.invoke(commands.app, ["tab", "close"]).exit_code == 0
    assert companion.calls[-1]["command"] == "tab.remove"
    assert companion.calls[-1]["params"].tab_ids is None


def test_tab_create_and_source(companion) -> None:
    result = runner.invoke(commands.app, ["tab", "create", "https://a.example", "https://b.example"])
    assert result.exit_code == 0
    assert companion.calls[-1]["params"] == TabCreateParams(urls=["https://a.example", "https://b.example"])

    result = runner.invoke(commands.app, ["tab", "source"])
    assert result.output == "<html></html>"


def test_selection_commands(companion) -> None:
    result = runner.invoke(commands.app, ["selection", "get", "--tab", "8"])
    assert result.output.strip() == "picked text"
    assert companion.calls[-1]["params"].tab_id == 8
    assert runner.invoke(commands.app, ["selection", "set", "new text"]).exit_code == 0
    assert companion.calls[-1]["params"].text == "new text"


def test_window_create_json(companion) -> None:
    result = runner.invoke(commands.app, ["window", "create", "https://example.com", "--json"])
    assert result.exit_code == 0
    assert json.loads(result.output)["id"] == 3


def test_bookmark_list_flattens_tree(companion) -> None:
    result = runner.invoke(commands.app, ["bookmark", "list"])
    assert result.exit_code == 0
    assert "Bookmarks bar/" in result.output
    assert "https://example.com" in result.output


def test_flatten_bookmarks_indents_by_depth() -> None:
    rows = list(flatten_bookmarks([{"id": "1", "title": "Bar", "children": [{"id": "3", "title": "Ex", "url": "u"}]}]))
    assert rows == [["1", "Bar/", ""], ["3", "  Ex", "u"]]


def test_history_search_passes_query(companion) -> None:
    result = runner.invoke(commands.app, ["history", "search", "example", "--json"])
    assert result.exit_code == 0
    assert companion.calls[-1]["params"].query == "example"
    assert json.loads(result.output)[0]["visitCount"] == 2


def test_global_socket_and_timeout_overrides(companion) -> None:
    result = runner.invoke(commands.app, ["--socket", "/tmp/other.sock", "--timeout", "0", "tab", "list"])
    assert result.exit_code == 0
    assert companion.calls[-1]["socket_path"] == "/tmp/other.sock"
    assert companion.calls[-1]["timeout_s"] is None

    runner.invoke(commands.app, ["--timeout", "2.5", "tab", "list"])
    assert companion.calls[-1]["timeout_s"] == 2.5
    assert companion.calls[-1]["socket_path"] == Config().bridge.socket


def test_remote_error_exits_1(companion) -> None:
    companion.error = RemoteError("tab not found: 9", command="tab.get")
    result = runner.invoke(commands.app, ["tab", "get", "9"])
    assert result.exit_code == 1
    assert "tab not found: 9" in result.output


def test_timeout_exits_1(companion) -> None:
    companion.error = RpcTimeoutError("tab.source", 30.0)
    result = runner.invoke(commands.app, ["tab", "source"])
    assert result.exit_code == 1
    assert "timed out" in result.output


def test_missing_companion_exits_3(companion) -> None:
    companion.error = TransportError("no companion listening on /tmp/x.sock")
    result = runner.invoke(commands.app, ["window", "list"])
    assert result.exit_code == 3
    assert "cannot reach the webterm companion" in result.output


def test_usage_error_exits_2(companion) -> None:
    result = runner.invoke(commands.app, ["tab", "focus"])
    assert result.exit_code == 2
    assert companion.calls == []


def test_companion_serve_runs_server(monkeypatch) -> None:
    import webterm.companion
    from webterm.cli.command_groups import companion_command

    seen = {}

    async def fake_run_companion(config, *, socket_path=None, stdio=False):
        seen.update(socket_path=socket_path, stdio=stdio)

    config = Config()
    config.logging.file = False
    monkeypatch.setattr(companion_command, "get_config", lambda: config)
    monkeypatch.setattr(webterm.companion, "run_companion", fake_run_companion)

    result = runner.invoke(commands.app, ["companion", "serve", "--socket", "/tmp/c.sock"])
    logger.remove()
    assert result.exit_code == 0
    assert seen == {"socket_path": "/tmp/c.sock", "stdio": False}


def test_companion_serve_reports_busy_socket(monkeypatch) -> None:
    import webterm.companion
    from webterm.cli.command_groups import companion_command

    async def fake_run_companion(config, *, socket_path=None, stdio=False):
        raise TransportError("another companion is already listening on /tmp/c.sock")

    config = Config()
    config.logging.file = False
    monkeypatch.setattr(companion_command, "get_config", lambda: config)
    monkeypatch.setattr(webterm.companion, "run_companion", fake_run_companion)

    result = runner.invoke(commands.app, ["companion", "serve", "--stdio"])
    logger.remove()
    assert result.exit_code == 3

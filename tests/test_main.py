"""Tests for the codeloop CLI."""

import json

from codeloop import main as cli
from codeloop.errors import ModelInvocationError
from codeloop.models import ModelTurn, TextReply, ToolCall, ToolCallsReply


class FakeClient:
    """Stands in for ResponsesClient: edits src/App.jsx once, then answers."""

    def __init__(self, settings=None, ctx=None):
        self.turns = [
            ModelTurn(
                message=ToolCallsReply(
                    calls=[
                        ToolCall(
                            id="call_1",
                            name="apply_changes",
                            arguments={
                                "files": [{"path": "src/App.jsx", "content": "export default 2;\n", "action": "modify"}],
                                "summary": "Bump App",
                            },
                        )
                    ]
                )
            ),
            ModelTurn(message=TextReply(content="Bumped the App export.")),
        ]

    def generate_with_tools(self, messages, tools):
        return self.turns.pop(0)


class FailingClient:
    def __init__(self, settings=None, ctx=None):
        pass

    def generate_with_tools(self, messages, tools):
        raise ModelInvocationError("Responses API error 503: unavailable")


def _project(root):
    (root / "src").mkdir()
    (root / "src" / "App.jsx").write_text("export default 1;\n")


class TestCli:
    def test_help(self, capsys):
        assert cli.main(["--help"]) == 0
        assert "Usage: codeloop" in capsys.readouterr().out

    def test_missing_request(self, capsys):
        assert cli.main([]) == 2

    def test_unknown_option(self, capsys):
        assert cli.main(["--frobnicate", "do it"]) == 2

    def test_bad_max_turns(self, tmp_path, capsys):
        assert cli.main(["-r", str(tmp_path), "--max-turns", "many", "do it"]) == 2

    def test_text_output(self, tmp_path, monkeypatch, capsys):
        _project(tmp_path)
        monkeypatch.setattr(cli, "ResponsesClient", FakeClient)
        assert cli.main(["--root", str(tmp_path), "bump", "the", "export"]) == 0
        out = capsys.readouterr().out
        assert "Bumped the App export." in out
        assert "modify src/App.jsx" in out
        assert "Summary: Bump App" in out
        # Changes are reported, never written back.
        assert (tmp_path / "src" / "App.jsx").read_text() == "export default 1;\n"

    def test_json_output(self, tmp_path, monkeypatch, capsys):
        _project(tmp_path)
        monkeypatch.setattr(cli, "ResponsesClient", FakeClient)
        assert cli.main(["-r", str(tmp_path), "--json", "bump"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["agentResponse"] == "Bumped the App export."
        assert payload["changedFiles"][0]["path"] == "src/App.jsx"
        assert payload["turnCount"] == 2

    def test_model_failure_exits_nonzero(self, tmp_path, monkeypatch, capsys):
        _project(tmp_path)
        monkeypatch.setattr(cli, "ResponsesClient", FailingClient)
        assert cli.main(["-r", str(tmp_path), "bump"]) == 1
        assert "503" in capsys.readouterr().err

    def test_zero_max_turns(self, tmp_path, capsys):
        assert cli.main(["-r", str(tmp_path), "--max-turns=0", "do it"]) == 2
        assert "at least 1" in capsys.readouterr().err

"""Tests for settings loading, ignore rules and snapshot loading."""

from codeloop.fs import IgnoreRule, list_repo_paths, load_snapshot, parse_ignore_rules, rule_matches
from codeloop.settings import load_settings, setting


class TestSettings:
    def test_missing_file_is_empty(self, tmp_path):
        assert load_settings(tmp_path) == {}

    def test_yaml_settings(self, tmp_path):
        (tmp_path / ".codeloop").mkdir()
        (tmp_path / ".codeloop" / "settings.yaml").write_text("session:\n  max_turns: 7\ncontext: React app\n")
        settings = load_settings(tmp_path)
        assert setting(settings, "session.max_turns") == 7
        assert setting(settings, "context") == "React app"
        assert setting(settings, "api.model", "gpt-5") == "gpt-5"

    def test_broken_yaml_is_empty(self, tmp_path):
        (tmp_path / ".codeloop").mkdir()
        (tmp_path / ".codeloop" / "settings.yml").write_text("session: [1, 2\n")
        assert load_settings(tmp_path) == {}

    def test_non_mapping_is_empty(self, tmp_path):
        (tmp_path / ".codeloop").mkdir()
        (tmp_path / ".codeloop" / "settings.yaml").write_text("- a\n- b\n")
        assert load_settings(tmp_path) == {}


class TestIgnoreRules:
    def test_parse(self):
        rules = parse_ignore_rules("# comment\n\n/dist\nbuild/\n*.log\n!keep.log\n")
        assert rules == [
            IgnoreRule(False, "dist", True, False),
            IgnoreRule(False, "build", False, True),
            IgnoreRule(False, "*.log", False, False),
            IgnoreRule(True, "keep.log", False, False),
        ]

    def test_name_pattern_matches_any_depth(self):
        rule = IgnoreRule(False, "*.log", False, False)
        assert rule_matches(rule, "debug.log")
        assert rule_matches(rule, "logs/deep/debug.log")
        assert not rule_matches(rule, "src/app.js")

    def test_rooted_pattern(self):
        rule = IgnoreRule(False, "dist", True, False)
        assert rule_matches(rule, "dist/bundle.js")
        assert not rule_matches(rule, "src/dist/bundle.js")

    def test_dir_only_pattern(self):
        rule = IgnoreRule(False, "build", False, True)
        assert rule_matches(rule, "build/out.js")
        assert not rule_matches(rule, "build")


class TestSnapshot:
    def _project(self, root):
        (root / "src").mkdir()
        (root / "src" / "App.jsx").write_text("export default function App() {}\n")
        (root / "package.json").write_text('{"name": "demo"}')
        (root / "node_modules" / "react").mkdir(parents=True)
        (root / "node_modules" / "react" / "index.js").write_text("module.exports = {};")
        (root / "debug.log").write_text("noise")
        (root / "keep.log").write_text("signal")
        (root / ".codeloopignore").write_text("*.log\n!keep.log\n")

    def test_walk_honors_ignore_file(self, tmp_path):
        self._project(tmp_path)
        paths = list_repo_paths(tmp_path)
        assert "src/App.jsx" in paths
        assert "keep.log" in paths
        assert "debug.log" not in paths
        assert not any(p.startswith("node_modules/") for p in paths)

    def test_load_snapshot(self, tmp_path):
        self._project(tmp_path)
        (tmp_path / "big.txt").write_text("x" * 200)
        (tmp_path / "blob.bin").write_bytes(b"\xff\xfe\x00\x80")
        records = {r.path: r for r in load_snapshot(tmp_path, max_bytes=100)}
        assert records["src/App.jsx"].language == "jsx"
        assert records["package.json"].content == '{"name": "demo"}'
        assert "big.txt" not in records
        assert "blob.bin" not in records

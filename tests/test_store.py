"""Tests for the session-scoped project file store."""

import pytest

from codeloop.models import FileRecord
from codeloop.store import ProjectFileStore, file_extension, infer_language


class TestInferLanguage:
    def test_known_extensions(self):
        assert infer_language("src/App.jsx") == "jsx"
        assert infer_language("src/index.js") == "javascript"
        assert infer_language("package.json") == "json"
        assert infer_language("config/app.yml") == "yaml"

    def test_unknown_extension_is_text(self):
        assert infer_language("README") == "text"
        assert infer_language("notes.weird") == "text"

    def test_dotfile_is_its_own_extension(self):
        assert file_extension(".env") == ".env"
        assert infer_language(".env") == "dotenv"

    def test_extension_is_case_insensitive(self):
        assert file_extension("Logo.SVG") == ".svg"


class TestProjectFileStore:
    def _store(self):
        return ProjectFileStore(
            [
                {"path": "src/App.jsx", "content": "export default 1;", "language": "jsx"},
                FileRecord(path="package.json", content="{}"),
            ]
        )

    def test_seeded_from_dicts_and_records(self):
        store = self._store()
        assert len(store) == 2
        assert store.get("package.json").language == "json"
        assert store.get("src/App.jsx").content == "export default 1;"

    def test_get_missing_returns_none(self):
        assert self._store().get("nope.js") is None

    def test_set_overwrites(self):
        store = self._store()
        store.set("src/App.jsx", "export default 2;", "jsx")
        assert store.get("src/App.jsx").content == "export default 2;"
        assert len(store) == 2

    def test_set_infers_missing_language(self):
        store = ProjectFileStore()
        rec = store.set("src/util.js", "export const x = 1;")
        assert rec.language == "javascript"

    def test_delete(self):
        store = self._store()
        assert store.delete("package.json") is True
        assert store.get("package.json") is None
        assert store.delete("package.json") is False

    def test_manifest_is_sorted(self):
        store = self._store()
        store.set("b.js", "")
        store.set("a.js", "")
        assert store.manifest() == ["a.js", "b.js", "package.json", "src/App.jsx"]

    def test_paths_are_normalized(self):
        store = ProjectFileStore()
        store.set("./src//App.jsx", "x")
        assert "src/App.jsx" in store
        assert store.manifest() == ["src/App.jsx"]
        store.set("/src/App.jsx", "y")
        assert store.manifest() == ["src/App.jsx"]
        assert store.get("src/App.jsx").content == "y"

    def test_empty_path_rejected(self):
        with pytest.raises(ValueError):
            ProjectFileStore().set("", "x")

    def test_stores_are_independent(self):
        seed = [{"path": "a.js", "content": "1"}]
        first = ProjectFileStore(seed)
        second = ProjectFileStore(seed)
        first.delete("a.js")
        assert "a.js" in second

# codeloop: In-memory, session-scoped working set. One ProjectFileStore is built per session from the persisted snapshot and owned by that session's ToolDispatcher; nothing here touches disk.

import posixpath
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .models import FileRecord, normalize_path

# Extension → language tag used when a snapshot entry or a change arrives without one.
LANGUAGE_BY_EXTENSION: Dict[str, str] = {
    ".js": "javascript",
    ".jsx": "jsx",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".css": "css",
    ".scss": "scss",
    ".html": "html",
    ".json": "json",
    ".md": "markdown",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".svg": "svg",
    ".env": "dotenv",
}


def file_extension(path: str) -> str:
    """Return the lowercase extension including the dot ('' when there is none)."""
    name = posixpath.basename(path or "")
    if name.startswith(".") and name.count(".") == 1:
        # Dotfiles such as ".env" are their own extension.
        return name.lower()
    _, ext = posixpath.splitext(name)
    return ext.lower()


def infer_language(path: str) -> str:
    """Infer a language tag from the file extension; unknown extensions map to 'text'."""
    if not path:
        return "text"
    return LANGUAGE_BY_EXTENSION.get(file_extension(path), "text")


SnapshotEntry = Union[FileRecord, Mapping[str, Any]]


class ProjectFileStore:
    """
    Mutable map of path → (content, language) for one editing session.

    Paths are unique; set() overwrites, delete() removes. manifest() is the
    sorted path list used when prompting the model.
    """

    def __init__(self, files: Optional[Iterable[SnapshotEntry]] = None) -> None:
        self._files: Dict[str, Tuple[str, str]] = {}
        for f in files or []:
            rec = f if isinstance(f, FileRecord) else FileRecord.model_validate(dict(f))
            self.set(rec.path, rec.content, rec.language)

    def get(self, path: str) -> Optional[FileRecord]:
        key = normalize_path(path)
        entry = self._files.get(key)
        if entry is None:
            return None
        content, language = entry
        return FileRecord(path=key, content=content, language=language)

    def set(self, path: str, content: Optional[str], language: Optional[str] = None) -> FileRecord:
        """Insert or overwrite a file; a missing language is inferred from the extension."""
        key = normalize_path(path)
        if not key:
            raise ValueError("path must not be empty")
        lang = language or infer_language(key)
        self._files[key] = (content or "", lang)
        return FileRecord(path=key, content=content or "", language=lang)

    def delete(self, path: str) -> bool:
        """Remove a file; returns False when the path was not present."""
        return self._files.pop(normalize_path(path), None) is not None

    def manifest(self) -> List[str]:
        return sorted(self._files.keys())

    def records(self) -> List[FileRecord]:
        """All files as records, in manifest order."""
        return [FileRecord(path=p, content=c, language=l) for p, (c, l) in sorted(self._files.items())]

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and normalize_path(path) in self._files

    def __len__(self) -> int:
        return len(self._files)

# codeloop: Pluggable language adapters. Each adapter knows how to parse one family of files and, for script languages, how to list the module specifiers a file imports. The validator only talks to this interface.

from abc import ABC, abstractmethod
import json
import re
from typing import Dict, List, Optional, Tuple

import tree_sitter_javascript
import yaml
from pydantic import BaseModel
from tree_sitter import Language, Node, Parser

from .models import IssueKind
from .store import file_extension


class ParseFailure(BaseModel):
    """Why a file did not parse; line is 1-based, column 0-based, both optional."""

    message: str
    line: Optional[int] = None
    column: Optional[int] = None


class LanguageAdapter(ABC):
    """
    Base class for language adapters.

    Subclasses set:
    - name: unique registry key
    - extensions: lowercase file extensions (with dot) this adapter handles
    - languages: language tags used when a path has no recognised extension
    - issue_kind: the ValidationIssue kind reported for parse failures
    """

    name: str = "base"
    extensions: Tuple[str, ...] = ()
    languages: Tuple[str, ...] = ()
    issue_kind: IssueKind = "syntax"

    @abstractmethod
    def parse(self, content: str) -> Optional[ParseFailure]:
        """Return None when content parses, otherwise a ParseFailure."""

    def extract_imports(self, content: str) -> List[str]:
        """Return module specifiers in source order. Data formats import nothing."""
        return []


_REGISTRY: Dict[str, LanguageAdapter] = {}


def register_adapter(cls):
    """Class decorator: instantiate the adapter and register it under its name (later registrations win)."""
    _REGISTRY[cls.name] = cls()
    return cls


def list_adapters() -> List[LanguageAdapter]:
    return list(_REGISTRY.values())


def adapter_for(path: str, language: Optional[str] = None) -> Optional[LanguageAdapter]:
    """Pick the adapter for a file by extension, falling back to its language tag."""
    ext = file_extension(path)
    if ext:
        for adapter in _REGISTRY.values():
            if ext in adapter.extensions:
                return adapter
    tag = (language or "").strip().lower()
    if tag:
        for adapter in _REGISTRY.values():
            if tag in adapter.languages:
                return adapter
    return None


# -----------------------------
# Script sources (JavaScript + JSX)
# -----------------------------

# Static imports, side-effect imports, re-exports, require() and dynamic import().
_IMPORT_PATTERNS = [
    re.compile(r"""\bimport\s+(?:[\w$*{},\s]+?\s*from\s*)?["']([^"'\n]+)["']"""),
    re.compile(r"""\bexport\s+[\w$*{},\s]+?\s*from\s*["']([^"'\n]+)["']"""),
    re.compile(r"""\b(?:require|import)\s*\(\s*["']([^"'\n]+)["']\s*\)"""),
]

_JS_LANGUAGE = Language(tree_sitter_javascript.language())


def _first_error_node(root: Node) -> Optional[Node]:
    """Depth-first search for the first ERROR or MISSING node, only descending into subtrees that contain one."""
    if not root.has_error:
        return None
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return root


@register_adapter
class JavaScriptAdapter(LanguageAdapter):
    """ES modules with inline JSX, parsed with the tree-sitter JavaScript grammar."""

    name = "javascript"
    extensions = (".js", ".jsx", ".mjs", ".cjs")
    languages = ("javascript", "js", "jsx", "mjs", "cjs")
    issue_kind: IssueKind = "syntax"

    def __init__(self) -> None:
        self._parser = Parser(_JS_LANGUAGE)

    def parse(self, content: str) -> Optional[ParseFailure]:
        source = content.encode("utf-8")
        tree = self._parser.parse(source)
        node = _first_error_node(tree.root_node)
        if node is None:
            return None
        row, column = node.start_point
        if node.is_missing:
            message = f"Missing '{node.type}'"
        else:
            snippet = source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")
            snippet = snippet.strip().splitlines()[0][:40] if snippet.strip() else ""
            message = f"Unexpected token near '{snippet}'" if snippet else "Unexpected token"
        return ParseFailure(message=f"{message} ({row + 1}:{column})", line=row + 1, column=column)

    def extract_imports(self, content: str) -> List[str]:
        found: List[Tuple[int, str]] = []
        for pattern in _IMPORT_PATTERNS:
            for m in pattern.finditer(content):
                found.append((m.start(), m.group(1)))
        found.sort(key=lambda item: item[0])
        return [spec for _, spec in found]


# -----------------------------
# Structured data
# -----------------------------

@register_adapter
class JsonAdapter(LanguageAdapter):
    name = "json"
    extensions = (".json",)
    languages = ("json",)
    issue_kind: IssueKind = "structured-data"

    def parse(self, content: str) -> Optional[ParseFailure]:
        try:
            json.loads(content)
        except ValueError as e:
            return ParseFailure(message=f"Invalid JSON: {e}")
        return None


@register_adapter
class YamlAdapter(LanguageAdapter):
    name = "yaml"
    extensions = (".yaml", ".yml")
    languages = ("yaml", "yml")
    issue_kind: IssueKind = "structured-data"

    def parse(self, content: str) -> Optional[ParseFailure]:
        try:
            # Multi-document files (---) are valid YAML.
            list(yaml.safe_load_all(content))
        except yaml.YAMLError as e:
            return ParseFailure(message=f"Invalid YAML: {e}")
        return None

# codeloop: Tool surface exposed to the model (read_files, apply_changes) and the per-session ToolDispatcher that executes calls against its own ProjectFileStore, keeps the change ledger and re-validates after every apply.

import copy
import json
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from .config import READ_FILES_CAP
from .context import Context, quiet_context
from .models import (
    ApplyChangesArgs,
    ChangedFile,
    ChangeSpec,
    DispatchResults,
    ReadFilesArgs,
    ValidationReport,
)
from .store import ProjectFileStore
from .validator import validate


# -----------------------------
# Tool definitions (Responses API function format)
# -----------------------------

def tool_definitions() -> List[Dict[str, Any]]:
    """Return the two tool definitions exposed to the model for function-calling."""
    return [
        {
            "type": "function",
            "name": "read_files",
            "description": (
                "Read the content of specific project files. Use this to understand existing code before making changes. "
                f"You can read up to {READ_FILES_CAP} files per call."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "paths": {
                        "type": "array",
                        "items": {"type": "string"},
                        "maxItems": READ_FILES_CAP,
                        "description": "Array of file paths to read (relative to project root)",
                    },
                },
                "required": ["paths"],
            },
        },
        {
            "type": "function",
            "name": "apply_changes",
            "description": (
                "Write, modify, or delete project files. Each file is automatically validated (syntax, imports). "
                "If validation errors are found, they are returned so you can fix them in a follow-up call. "
                "Always read files before modifying them. Return complete file contents, not diffs."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "files": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "path": {"type": "string", "description": "File path relative to project root"},
                                "content": {"type": "string", "description": "Complete file content (omit for delete)"},
                                "language": {"type": "string", "description": "Programming language (js, jsx, css, json, etc.)"},
                                "action": {
                                    "type": "string",
                                    "enum": ["create", "modify", "delete"],
                                    "description": "What to do with this file",
                                },
                            },
                            "required": ["path", "action"],
                        },
                        "description": "Array of file changes to apply",
                    },
                    "summary": {"type": "string", "description": "Brief summary of what these changes do"},
                    "envVarsNeeded": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Environment variable names needed by the changes (optional)",
                    },
                },
                "required": ["files", "summary"],
            },
        },
    ]


def to_anthropic_tools(defs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Convert function definitions to the {name, description, input_schema} shape."""
    return [
        {
            "name": d["name"],
            "description": d["description"],
            "input_schema": copy.deepcopy(d["parameters"]),
        }
        for d in defs
    ]


def _first_error(e: ValidationError) -> str:
    err = e.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))


# -----------------------------
# Dispatcher
# -----------------------------

class ToolDispatcher:
    """
    Executes tool calls for one session.

    Owns the session's ProjectFileStore plus the cumulative ledger (changed
    files, summaries, env vars). Malformed arguments never raise; they come
    back as {"error": ...} so the model can correct itself.
    """

    def __init__(
        self,
        store: ProjectFileStore,
        ctx: Optional[Context] = None,
        validate_fn: Callable[..., ValidationReport] = validate,
    ) -> None:
        self.store = store
        self.ctx = ctx or quiet_context()
        self._validate = validate_fn
        self._changed: Dict[str, ChangedFile] = {}
        self._summaries: List[str] = []
        self._env_vars: Dict[str, None] = {}

        self._handlers: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
            "read_files": self._read_files,
            "apply_changes": self._apply_changes,
        }

    def execute(self, name: str, args: Any) -> Dict[str, str]:
        """Run a tool by name; returns {"result": <JSON string>} in every case."""
        handler = self._handlers.get(name)
        if handler is None:
            return self._result({"error": f"Unknown tool: {name}"})
        if not isinstance(args, dict):
            return self._result({"error": f"{name} arguments must be an object"})
        return self._result(handler(args))

    @staticmethod
    def _result(payload: Dict[str, Any]) -> Dict[str, str]:
        return {"result": json.dumps(payload, ensure_ascii=False)}

    def _read_files(self, args: Dict[str, Any]) -> Dict[str, Any]:
        paths = args.get("paths")
        # Excess paths are dropped before validation, so they cannot fail the call.
        if isinstance(paths, list):
            args = {**args, "paths": paths[:READ_FILES_CAP]}
        try:
            parsed = ReadFilesArgs.model_validate(args)
        except ValidationError:
            return {"error": "paths must be a non-empty array of strings"}
        out: Dict[str, Optional[str]] = {}
        for p in parsed.paths:
            rec = self.store.get(p)
            out[p] = rec.content if rec is not None else None
        return out

    def _apply_changes(self, args: Dict[str, Any]) -> Dict[str, Any]:
        files = args.get("files")
        if not isinstance(files, list) or not files:
            return {"error": "files must be a non-empty array"}
        try:
            parsed = ApplyChangesArgs.model_validate(args)
        except ValidationError as e:
            return {"error": f"invalid apply_changes arguments: {_first_error(e)}"}

        applied: List[ChangeSpec] = []
        for change in parsed.files:
            if change.is_delete:
                self.store.delete(change.path)
                self._changed[change.path] = ChangedFile(path=change.path, action=change.action, content="", language=None)
                applied.append(change)
                continue
            existing = self.store.get(change.path)
            language = change.language or (existing.language if existing else None)
            rec = self.store.set(change.path, change.content, language)
            effective = change.model_copy(update={"content": rec.content, "language": rec.language})
            self._changed[change.path] = ChangedFile(
                path=rec.path, action=change.action, content=rec.content, language=rec.language
            )
            applied.append(effective)

        if parsed.summary:
            self._summaries.append(parsed.summary)
        for var in parsed.env_vars_needed or []:
            self._env_vars[var] = None

        # Deletes go along so untouched importers of a removed file are flagged.
        report = self._run_validation(applied)
        errors = [e.model_dump(mode="json", by_alias=True) for e in report.errors]
        self.ctx.log(
            f"apply_changes: applied={len(applied)} valid={report.valid} errors={len(errors)}"
        )
        return {"applied": len(applied), "validation": {"valid": report.valid, "errors": errors}}

    def _run_validation(self, changes: List[ChangeSpec]) -> ValidationReport:
        if not changes:
            return ValidationReport()
        try:
            return self._validate(changes, self.store.records())
        except Exception as e:
            # Analysis bugs must not stall the session; report as clean.
            self.ctx.log(f"Validation threw during apply_changes; treating as valid: {e}")
            return ValidationReport()

    def get_results(self) -> DispatchResults:
        return DispatchResults(
            changed_files=list(self._changed.values()),
            summary="; ".join(self._summaries),
            env_vars_needed=list(self._env_vars),
        )

    def manifest(self) -> List[str]:
        return self.store.manifest()

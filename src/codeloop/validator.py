# codeloop: Static validator run after every apply_changes. It parses changed files through their language adapters and resolves relative imports against the prospective file universe (the files that will exist once the pending change list is applied). Findings are advisory; nothing here blocks an edit.

import re
from typing import Iterable, List, Optional, Sequence, Set, Union

from .languages import adapter_for
from .models import ChangeSpec, FileRecord, ValidationIssue, ValidationReport

# Suffixes tried, in order, when an import specifier does not name a file directly.
RESOLUTION_CANDIDATES = (
    ".js",
    ".jsx",
    ".ts",
    ".tsx",
    "/index.js",
    "/index.jsx",
    "/index.ts",
    "/index.tsx",
)

# Style and asset imports are handled by the bundler, not resolved as modules.
_ASSET_IMPORT = re.compile(r"\.(css|scss|less|svg|png|jpe?g|gif|woff2?|ttf|eot)$", re.IGNORECASE)


def resolve_relative_path(from_file: str, specifier: str) -> str:
    """
    Join the importing file's directory with a relative specifier and collapse
    '.' and '..' segments. 'src/pages/Home.jsx' + './Header' -> 'src/pages/Header'.
    A '..' above the project root is dropped.
    """
    from_dir = "/".join(from_file.split("/")[:-1])
    joined = f"{from_dir}/{specifier}" if from_dir else specifier
    resolved: List[str] = []
    for part in joined.split("/"):
        if part in (".", ""):
            continue
        if part == "..":
            if resolved:
                resolved.pop()
        else:
            resolved.append(part)
    return "/".join(resolved)


def resolve_import(from_file: str, specifier: str, universe: Set[str]) -> Optional[str]:
    """Return the universe path a relative specifier resolves to, or None."""
    base = resolve_relative_path(from_file, specifier)
    if base in universe:
        return base
    for suffix in RESOLUTION_CANDIDATES:
        candidate = base + suffix
        if candidate in universe:
            return candidate
    return None


def is_checked_specifier(specifier: str) -> bool:
    """Only relative, non-asset specifiers are resolved against the project."""
    return specifier.startswith(".") and not _ASSET_IMPORT.search(specifier)


def _find_line(content: str, needle: str) -> Optional[int]:
    for i, line in enumerate(content.split("\n"), start=1):
        if needle in line:
            return i
    return None


def _as_change(item: Union[ChangeSpec, dict]) -> ChangeSpec:
    return item if isinstance(item, ChangeSpec) else ChangeSpec.model_validate(item)


def _as_record(item: Union[FileRecord, dict]) -> FileRecord:
    return item if isinstance(item, FileRecord) else FileRecord.model_validate(dict(item))


def _check_changed_file(change: ChangeSpec, universe: Set[str]) -> List[ValidationIssue]:
    adapter = adapter_for(change.path, change.language)
    if adapter is None:
        return []
    content = change.content or ""
    failure = adapter.parse(content)
    if failure is not None:
        return [
            ValidationIssue(
                file=change.path,
                line=failure.line,
                column=failure.column,
                message=failure.message,
                kind=adapter.issue_kind,
            )
        ]

    issues: List[ValidationIssue] = []
    for specifier in adapter.extract_imports(content):
        if not is_checked_specifier(specifier):
            continue
        if resolve_import(change.path, specifier, universe) is None:
            issues.append(
                ValidationIssue(
                    file=change.path,
                    line=_find_line(content, specifier),
                    message=f"Unresolved import '{specifier}' — no matching file found in project",
                    kind="import",
                )
            )
    return issues


def _check_deleted_imports(
    changed: Sequence[ChangeSpec], all_files: Sequence[FileRecord]
) -> List[ValidationIssue]:
    deleted = {c.path for c in changed if c.is_delete}
    if not deleted:
        return []
    touched = {c.path for c in changed}

    issues: List[ValidationIssue] = []
    for record in all_files:
        # Files in the change set are judged on their new content above.
        if record.path in touched or not record.content:
            continue
        adapter = adapter_for(record.path, record.language)
        if adapter is None:
            continue
        for specifier in adapter.extract_imports(record.content):
            if not is_checked_specifier(specifier):
                continue
            target = resolve_import(record.path, specifier, deleted)
            if target is not None:
                issues.append(
                    ValidationIssue(
                        file=record.path,
                        line=_find_line(record.content, specifier),
                        message=f"Imports '{specifier}' which resolves to deleted file '{target}'",
                        kind="deleted-import",
                    )
                )
    return issues


def prospective_universe(changed: Iterable[ChangeSpec], all_files: Iterable[FileRecord]) -> Set[str]:
    """Paths that exist once `changed` is applied on top of `all_files`."""
    changed = list(changed)
    universe = {f.path for f in all_files}
    universe.update(c.path for c in changed if not c.is_delete)
    universe.difference_update(c.path for c in changed if c.is_delete)
    return universe


def validate(
    changed: Sequence[Union[ChangeSpec, dict]],
    all_files: Sequence[Union[FileRecord, dict]],
) -> ValidationReport:
    """
    Validate a change list against the project it applies to.

    Args:
        changed: The pending ChangeSpecs (creates, modifies and deletes).
        all_files: The project's files. Import resolution uses the prospective
            universe (these paths, plus creates/modifies, minus deletes).

    Returns:
        A ValidationReport; valid is True when no errors were found.
    """
    changes = [_as_change(c) for c in changed]
    records = [_as_record(f) for f in all_files]
    universe = prospective_universe(changes, records)

    errors: List[ValidationIssue] = []
    for change in changes:
        if change.is_delete or not change.content:
            continue
        errors.extend(_check_changed_file(change, universe))
    errors.extend(_check_deleted_imports(changes, records))
    return ValidationReport(errors=errors)

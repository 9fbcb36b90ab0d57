# codeloop: Centralized Pydantic v2 models for the working set, tool arguments, validation output, model replies and the session result. Model replies are a discriminated union so text-only and tool-call turns are handled explicitly.

from __future__ import annotations

import posixpath
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel


def normalize_path(p: str) -> str:
    """Normalize a project path to POSIX form without a leading './' or '/'."""
    s = str(p).replace("\\", "/").strip().lstrip("/")
    if not s:
        return s
    norm = posixpath.normpath(s)
    return "" if norm == "." else norm


class CustomBaseModel(BaseModel):
    """Pydantic base model configured to forbid unknown fields for strict validation."""
    model_config = ConfigDict(extra="forbid")


class CamelModel(BaseModel):
    """Result models consumed downstream as JSON; dump with by_alias=True for camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChangeType(str, Enum):
    create = "create"
    modify = "modify"
    delete = "delete"


IssueKind = Literal["syntax", "structured-data", "import", "deleted-import"]


class FileRecord(CustomBaseModel):
    """One file of the working set."""

    path: str = Field(..., min_length=1, description="Project-relative POSIX path")
    content: str = Field(default="", description="Full text content")
    language: Optional[str] = Field(default=None, description="Language tag, e.g. jsx or json")


class ChangeSpec(BaseModel):
    """One file's delta inside a single apply_changes call, as sent by the model."""

    model_config = ConfigDict(extra="ignore")

    path: str = Field(..., min_length=1, description="File path relative to project root")
    action: ChangeType = Field(default=ChangeType.modify, description="What to do with this file")
    content: Optional[str] = Field(default=None, description="Complete file content (omit for delete)")
    language: Optional[str] = Field(default=None, description="Programming language (js, jsx, css, json, etc.)")

    # Normalize file paths on ingest so the store and the validator always see the same key.
    @field_validator("path")
    @classmethod
    def _normalize_path(cls, v: str) -> str:
        norm = normalize_path(v)
        if not norm:
            raise ValueError("path must not be empty")
        return norm

    @property
    def is_delete(self) -> bool:
        return self.action == ChangeType.delete


class ReadFilesArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")

    paths: List[str] = Field(..., min_length=1)


class ApplyChangesArgs(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    files: List[ChangeSpec] = Field(..., min_length=1)
    summary: Optional[str] = None
    env_vars_needed: Optional[List[str]] = Field(default=None, alias="envVarsNeeded")

    # Optional extras never block the file changes; malformed values are dropped.
    @field_validator("summary", mode="before")
    @classmethod
    def _lenient_summary(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None

    @field_validator("env_vars_needed", mode="before")
    @classmethod
    def _lenient_env_vars(cls, v: Any) -> Optional[List[str]]:
        if not isinstance(v, list):
            return None
        return [x for x in v if isinstance(x, str)]


class ValidationIssue(CustomBaseModel):
    """A single advisory finding; serialized with the wire key "type" for the kind."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    file: str
    line: Optional[int] = None
    column: Optional[int] = None
    message: str
    kind: IssueKind = Field(..., alias="type")


class ValidationReport(CustomBaseModel):
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def valid(self) -> bool:
        return not self.errors


class ToolCall(CustomBaseModel):
    id: str = Field(..., description="Call id used to key the tool output")
    name: str
    arguments: Any = Field(default_factory=dict, description="Decoded arguments; not guaranteed to be a mapping")


class TextReply(CustomBaseModel):
    kind: Literal["text"] = "text"
    content: str = ""


class ToolCallsReply(CustomBaseModel):
    kind: Literal["tool_calls"] = "tool_calls"
    calls: List[ToolCall] = Field(..., min_length=1)
    # Commentary the model emitted alongside its tool calls, possibly empty.
    content: str = ""


ModelMessage = Annotated[Union[TextReply, ToolCallsReply], Field(discriminator="kind")]


class TokenUsage(CamelModel):
    input_tokens: int = 0
    output_tokens: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
        )


class ModelTurn(CustomBaseModel):
    """Normalized result of one generate_with_tools call."""

    message: ModelMessage
    usage: TokenUsage = Field(default_factory=TokenUsage)
    model: str = ""
    finish_reason: str = "stop"


class ChangedFile(CamelModel):
    """Ledger entry for a path touched during the session."""

    path: str
    action: ChangeType
    content: str = ""
    language: Optional[str] = None


class DispatchResults(CamelModel):
    changed_files: List[ChangedFile] = Field(default_factory=list)
    summary: str = ""
    env_vars_needed: List[str] = Field(default_factory=list)


class SessionResult(DispatchResults):
    agent_response: Optional[str] = None
    token_usage: TokenUsage = Field(default_factory=TokenUsage)
    turn_count: int = 0

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys, as handed to persistence/transcript collaborators."""
        return self.model_dump(mode="json", by_alias=True)

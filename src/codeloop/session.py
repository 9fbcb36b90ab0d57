# codeloop: Conversation orchestrator. Drives the bounded multi-turn exchange with the model: each turn is one generate_with_tools call, tool calls are dispatched in order and their outputs folded back into the context, and the loop ends on a text-only reply or when the turn budget runs out.

import json
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from .context import Context, quiet_context
from .models import ModelTurn, SessionResult, TextReply, TokenUsage, ToolCall
from .prompts import build_session_system_prompt
from .store import ProjectFileStore
from .tools import ToolDispatcher, tool_definitions

GenerateWithTools = Callable[[List[Dict[str, Any]], List[Dict[str, Any]]], Union[ModelTurn, Mapping[str, Any]]]
ProgressSink = Callable[[Dict[str, str]], None]
MessageSink = Callable[[Dict[str, Any]], None]


class SessionState(str, Enum):
    start = "start"
    awaiting_model = "awaiting_model"
    executing_tools = "executing_tools"
    done = "done"
    turn_budget_exceeded = "turn_budget_exceeded"


def progress_detail(call: ToolCall) -> str:
    """Human-readable progress line for a tool call."""
    args = call.arguments if isinstance(call.arguments, dict) else {}
    if call.name == "read_files":
        paths = args.get("paths")
        n = len(paths) if isinstance(paths, list) else 0
        return f"Reading {n} file(s)"
    if call.name == "apply_changes":
        files = args.get("files")
        n = len(files) if isinstance(files, list) else 0
        return f"Applying changes to {n} file(s)"
    return f"Running {call.name}"


class Orchestrator:
    """
    Runs one editing session against a ToolDispatcher.

    The model may answer directly or edit files; validation errors from
    apply_changes reach the model only through the next turn's tool output,
    which is how it repairs its own edits. A model-invocation failure
    propagates to the caller and no partial result is produced.
    """

    def __init__(
        self,
        generate_with_tools: GenerateWithTools,
        dispatcher: ToolDispatcher,
        *,
        max_turns: int,
        progress: Optional[ProgressSink] = None,
        message_sink: Optional[MessageSink] = None,
        ctx: Optional[Context] = None,
    ) -> None:
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.generate_with_tools = generate_with_tools
        self.dispatcher = dispatcher
        self.max_turns = max_turns
        self.progress = progress
        self.message_sink = message_sink
        self.ctx = ctx or quiet_context()
        self.state = SessionState.start
        self.messages: List[Dict[str, Any]] = []

    def _append(self, msg: Dict[str, Any]) -> None:
        self.messages.append(msg)
        if self.message_sink:
            self.message_sink(msg)

    def _emit_progress(self, call: ToolCall) -> None:
        if self.progress:
            self.progress({"type": call.name, "detail": progress_detail(call)})

    def run(self, request: str, context_text: str = "") -> SessionResult:
        """Run the session to completion and return the assembled result."""
        self.messages = []
        system_text = build_session_system_prompt(self.dispatcher.manifest(), context_text)
        self._append({"type": "message", "role": "system", "content": system_text})
        self._append({"type": "message", "role": "user", "content": request})
        tools = tool_definitions()

        usage = TokenUsage()
        agent_response: Optional[str] = None
        turn_count = 0

        while turn_count < self.max_turns:
            self.state = SessionState.awaiting_model
            raw = self.generate_with_tools(list(self.messages), tools)
            turn = raw if isinstance(raw, ModelTurn) else ModelTurn.model_validate(raw)
            turn_count += 1
            usage = usage + turn.usage

            reply = turn.message
            # Last non-blank text wins, including commentary sent alongside tool calls.
            if reply.content and reply.content.strip():
                agent_response = reply.content

            if isinstance(reply, TextReply):
                self._append({"type": "message", "role": "assistant", "content": reply.content})
                self.state = SessionState.done
                self.ctx.log(f"Session finished after {turn_count} turn(s) (model={turn.model or 'unknown'}).")
                break

            self.state = SessionState.executing_tools
            if reply.content:
                self._append({"type": "message", "role": "assistant", "content": reply.content})
            for call in reply.calls:
                self._append({
                    "type": "function_call",
                    "call_id": call.id,
                    "name": call.name,
                    "arguments": json.dumps(call.arguments, ensure_ascii=False),
                })
            for call in reply.calls:
                self._emit_progress(call)
                self.ctx.log(f"Tool call {call.name} ({call.id})")
                output = self.dispatcher.execute(call.name, call.arguments)
                self._append({"type": "function_call_output", "call_id": call.id, "output": output["result"]})
        else:
            self.state = SessionState.turn_budget_exceeded
            self.ctx.log(f"Turn budget of {self.max_turns} exhausted; returning accumulated changes.")

        results = self.dispatcher.get_results()
        return SessionResult(
            changed_files=results.changed_files,
            summary=results.summary,
            env_vars_needed=results.env_vars_needed,
            agent_response=agent_response,
            token_usage=usage,
            turn_count=turn_count,
        )


def run_session(
    request: str,
    files: Iterable[Any],
    generate_with_tools: GenerateWithTools,
    *,
    max_turns: int,
    context_text: str = "",
    progress: Optional[ProgressSink] = None,
    message_sink: Optional[MessageSink] = None,
    ctx: Optional[Context] = None,
) -> SessionResult:
    """Build a fresh store and dispatcher from a snapshot and run one session over them."""
    ctx = ctx or quiet_context()
    dispatcher = ToolDispatcher(ProjectFileStore(files), ctx=ctx)
    orchestrator = Orchestrator(
        generate_with_tools,
        dispatcher,
        max_turns=max_turns,
        progress=progress,
        message_sink=message_sink,
        ctx=ctx,
    )
    return orchestrator.run(request, context_text=context_text)

# codeloop: CLI entrypoint. Loads a snapshot of a local project, runs one editing session against the Responses API and prints the outcome. Changes are reported, never written to disk.

import json
import pathlib
import sys
from typing import List, Optional

from .client import ResponsesClient
from .config import MAX_TURNS
from .context import Context
from .errors import CodeloopError
from .fs import load_snapshot
from .session import run_session
from .settings import load_settings, setting

USAGE = "Usage: codeloop [-r|--root PATH] [--context TEXT] [--max-turns N] [--json] REQUEST..."


def _print_help() -> None:
    print(USAGE)
    print("Options:")
    print("  -r, --root PATH     Project root to load (default: current directory)")
    print("  --context TEXT      Extra project context added to the system prompt")
    print("  --max-turns N       Turn budget for the session (default: CODELOOP_MAX_TURNS or settings session.max_turns)")
    print("  --json              Print the full session result as JSON")
    print("Environment:")
    print("  OPENAI_API_KEY, AI_MODEL, OPENAI_BASE_URL, CODELOOP_MAX_TURNS")


def main(argv: Optional[List[str]] = None) -> int:
    """
    codeloop CLI entrypoint.

    Usage:
        codeloop [-r|--root PATH] [--context TEXT] [--max-turns N] [--json] REQUEST...

    Notes:
        - OPENAI_API_KEY must be set (or settings.api.api_key in .codeloop/settings.yaml).
        - Everything after the options is joined into the request text.
    """
    args = list(sys.argv[1:] if argv is None else argv)

    if any(a in ("-h", "--help") for a in args):
        _print_help()
        return 0

    root_arg: Optional[str] = None
    context_text: Optional[str] = None
    max_turns_arg: Optional[str] = None
    as_json = False
    request_parts: List[str] = []
    i = 0
    while i < len(args):
        a = args[i]
        if a in ("-r", "--root", "--context", "--max-turns"):
            if i + 1 >= len(args):
                print(f"error: {a} requires an argument")
                return 2
            value = args[i + 1]
            if a in ("-r", "--root"):
                root_arg = value
            elif a == "--context":
                context_text = value
            else:
                max_turns_arg = value
            i += 2
            continue
        if a.startswith("--max-turns="):
            max_turns_arg = a.split("=", 1)[1]
            i += 1
            continue
        if a == "--json":
            as_json = True
            i += 1
            continue
        if a.startswith("-") and not request_parts:
            print(f"error: unknown option: {a}")
            return 2
        request_parts.append(a)
        i += 1

    request = " ".join(request_parts).strip()
    if not request:
        print(USAGE)
        return 2

    repo_root = pathlib.Path(root_arg).resolve() if root_arg else pathlib.Path(".").resolve()
    settings = load_settings(repo_root)
    # JSON mode keeps stdout machine-readable.
    ctx = Context(settings=settings, quiet=as_json)

    try:
        max_turns = int(max_turns_arg) if max_turns_arg is not None else int(setting(settings, "session.max_turns", MAX_TURNS))
    except ValueError:
        ctx.error_message(f"--max-turns must be an integer, got {max_turns_arg!r}")
        return 2
    if max_turns < 1:
        ctx.error_message("--max-turns must be at least 1")
        return 2
    if context_text is None:
        context_text = str(setting(settings, "context", "") or "")

    files = load_snapshot(repo_root)
    ctx.log(f"Loaded {len(files)} file(s) from {repo_root}")

    def progress(event):
        ctx.log(f"[{event['type']}] {event['detail']}")

    try:
        client = ResponsesClient(settings=settings, ctx=ctx)
        result = run_session(
            request,
            files,
            client.generate_with_tools,
            max_turns=max_turns,
            context_text=context_text,
            progress=progress,
            ctx=ctx,
        )
    except CodeloopError as e:
        ctx.error_message(str(e))
        return 1

    if as_json:
        print(json.dumps(result.to_payload(), indent=2, ensure_ascii=False))
        return 0

    ctx.send_to_user(result.agent_response or "(no response from the model)")
    if result.changed_files:
        ctx.send_to_user(f"Changed files ({len(result.changed_files)}):")
        for f in result.changed_files:
            ctx.send_to_user(f"  * {f.action.value} {f.path}")
    if result.summary:
        ctx.send_to_user(f"Summary: {result.summary}")
    if result.env_vars_needed:
        ctx.send_to_user(f"Environment variables needed: {', '.join(result.env_vars_needed)}")
    ctx.log(
        f"turns={result.turn_count} input_tokens={result.token_usage.input_tokens} "
        f"output_tokens={result.token_usage.output_tokens}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
